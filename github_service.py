# github_service.py
import base64
import json
import logging
import random
import time
from typing import Any, Optional, Tuple

import requests

logger = logging.getLogger("financeiro")
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)


class GitHubService:
    """
    Armazena os JSON do app (cartões, faturas, contas, transações) num repositório
    GitHub via Contents API. Cada gravação vira um commit; o `sha` do arquivo
    funciona como controle otimista de concorrência.
    """

    def __init__(
        self,
        token: str,
        repo_full_name: str,
        branch: str = "main",
        request_timeout: int = 15,
        max_retries: int = 2,
        user_agent: str = "financeiro-faturas-streamlit",
        api_base: str = "https://api.github.com",
        session: Optional[requests.Session] = None,
    ):
        if not token or not repo_full_name:
            raise ValueError("Token e repo_full_name são obrigatórios.")

        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": user_agent,
        })

        self.api_base = api_base.rstrip("/")
        self.repo = repo_full_name
        self.branch = branch
        self.timeout = request_timeout
        self.max_retries = max_retries

    def _contents_url(self, path: str) -> str:
        return f"{self.api_base}/repos/{self.repo}/contents/{path}"

    @staticmethod
    def _espera_rate_limit(resp: requests.Response) -> Optional[float]:
        """Segundos a aguardar se a resposta indicar rate limit; None caso contrário."""
        if int(resp.headers.get("X-RateLimit-Remaining", "1")) <= 0:
            reset_epoch = int(resp.headers.get("X-RateLimit-Reset", "0"))
            return max(0, reset_epoch - int(time.time())) + random.uniform(0.3, 0.9)
        if resp.status_code == 429:
            return float(resp.headers.get("Retry-After", "1"))
        if resp.status_code == 403 and "rate limit" in resp.text.lower():
            return 3 + random.uniform(0.4, 1.1)
        return None

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        """Request com retry em timeout/erro de rede e backoff em rate limit."""
        resp = None
        for attempt in range(self.max_retries + 1):
            try:
                resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.exceptions.RequestException as e:
                if attempt < self.max_retries:
                    logger.warning(f"{method} {url} falhou ({e.__class__.__name__}); tentativa {attempt + 1}.")
                    time.sleep(0.8 + random.uniform(0.2, 0.6))
                    continue
                raise

            wait_s = self._espera_rate_limit(resp)
            if wait_s is None:
                return resp
            if attempt < self.max_retries:
                logger.warning(f"Rate limit no GitHub ({resp.status_code}). Aguardando {wait_s:.1f}s.")
                time.sleep(wait_s)

        return resp

    def get_json(self, path: str, default: Optional[Any] = None) -> Tuple[Any, Optional[str]]:
        """
        Lê um arquivo JSON do branch. Se 404 e houver default, cria o arquivo e relê.
        Retorna (objeto, sha).
        """
        r = self._request("GET", self._contents_url(path), params={"ref": self.branch})

        if r.status_code == 200:
            data = r.json()
            decoded = base64.b64decode(data.get("content", ""))
            return json.loads(decoded.decode("utf-8")), data.get("sha")

        if r.status_code == 404:
            if default is not None:
                logger.info(f"{path} não existe; criando com valor padrão.")
                self.put_json(path, default, f"Inicializa {path}")
                return self.get_json(path, default=None)
            return default, None

        raise RuntimeError(f"Erro ao ler {path}: {r.status_code}\n{r.text}")

    def put_json(self, path: str, obj: Any, message: str, sha: Optional[str] = None) -> str:
        """
        Cria/atualiza arquivo JSON no branch e retorna o novo SHA.
        Em 409 (sha desatualizado) relê o SHA atual e tenta mais uma vez.
        """
        url = self._contents_url(path)
        content_str = json.dumps(obj, ensure_ascii=False, indent=2)
        payload = {
            "message": message,
            "content": base64.b64encode(content_str.encode("utf-8")).decode("utf-8"),
            "branch": self.branch,
        }
        if sha:
            payload["sha"] = sha

        r = self._request("PUT", url, json=payload)
        if r.status_code in (200, 201):
            logger.info(f"Commit em {path}: {message}")
            return r.json()["content"]["sha"]

        if r.status_code == 409:
            logger.warning(f"Conflito de SHA em {path}; relendo e regravando.")
            _, current_sha = self.get_json(path, default=obj)
            payload["sha"] = current_sha
            r2 = self._request("PUT", url, json=payload)
            if r2.status_code in (200, 201):
                return r2.json()["content"]["sha"]
            raise RuntimeError(f"Conflito ao salvar {path}: {r2.status_code}\n{r2.text}")

        raise RuntimeError(f"Erro ao salvar {path}: {r.status_code}\n{r.text}")

    def ensure_file(self, path: str, default: Any) -> Tuple[Any, Optional[str]]:
        """Garante que o arquivo exista; se não existir, cria com default e retorna (obj, sha)."""
        return self.get_json(path, default=default)

    def ping(self) -> bool:
        r = self._request("GET", f"{self.api_base}/repos/{self.repo}")
        return r.status_code == 200
