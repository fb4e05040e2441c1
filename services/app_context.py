# services/app_context.py
from dataclasses import dataclass

import requests
import streamlit as st

from github_service import GitHubService, logger


@dataclass(frozen=True)
class AppConfig:
    """Configuração de conexão lida de st.secrets (sobrescrita pela barra lateral)."""
    repo_full_name: str = ""
    github_token: str = ""
    branch_name: str = "main"
    connected: bool = False

    @property
    def cache_key(self) -> tuple:
        return (self.repo_full_name, self.branch_name)


def _conectar(ss) -> None:
    try:
        ss["gh"] = GitHubService(
            token=ss["github_token"],
            repo_full_name=ss["repo_full_name"],
            branch=ss["branch_name"],
        )
        ss["connected"] = True
        ss.pop("gh_error", None)
    except (ValueError, requests.exceptions.RequestException) as e:
        logger.error(f"Falha ao conectar no GitHub: {e}")
        ss["gh"] = None
        ss["connected"] = False
        ss["gh_error"] = str(e)


def init_context(reconectar: bool = False) -> None:
    """
    Inicializa o session_state e, havendo credenciais, o GitHubService.

    - Valores padrão vêm de st.secrets (repo_full_name, github_token, branch_name).
    - `reconectar=True` recria o serviço com o que estiver no session_state (botão Conectar).
    """
    ss = st.session_state

    ss["repo_full_name"] = ss.get("repo_full_name", st.secrets.get("repo_full_name", ""))
    ss["github_token"] = ss.get("github_token", st.secrets.get("github_token", ""))
    ss["branch_name"] = ss.get("branch_name", st.secrets.get("branch_name", "main"))

    if reconectar or ("gh" not in ss and ss["repo_full_name"] and ss["github_token"]):
        _conectar(ss)
    else:
        ss["connected"] = ss.get("gh") is not None


def get_context():
    """
    Retorna o session_state sem mutações.
    Garanta que init_context() foi chamado no início de cada página/app.
    """
    return st.session_state


def load_config() -> AppConfig:
    """Snapshot imutável da configuração corrente."""
    ss = st.session_state
    return AppConfig(
        repo_full_name=ss.get("repo_full_name", ""),
        github_token=ss.get("github_token", ""),
        branch_name=ss.get("branch_name", "main"),
        connected=bool(ss.get("connected")),
    )
