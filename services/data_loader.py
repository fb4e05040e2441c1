# services/data_loader.py
import logging

import streamlit as st

from services.app_context import get_context
from services.finance_core import atualizar
from services.schemas import validate_fatura_dict
from services.status import ABERTA, PAGA
from services.utils import parse_brl

logger = logging.getLogger("financeiro")

# Defaults para todos os arquivos usados pelo app.
DEFAULTS = {
    "data/cartoes.json": [],
    "data/faturas.json": [],
    "data/contas.json": [
        {
            "id": "c1",
            "nome": "Conta Corrente",
            "tipo": "banco",
            "moeda": "BRL",
            "saldo": 0.0,
            "ativa": True,
        }
    ],
    "data/transacoes.json": [],
}

LISTAS = tuple(DEFAULTS)


def _sanitizar_lista_de_dicts(gh, path: str, obj, sha: str) -> tuple[list, str]:
    """
    Sanitiza conteúdo que deve ser lista de dicts.
    - Se 'obj' não for lista, transforma em lista vazia.
    - Remove itens não-dict.
    - Se houve alteração, comita e retorna (lista_sanitizada, novo_sha).
    """
    if not isinstance(obj, list):
        obj = []

    clean = [x for x in obj if isinstance(x, dict)]
    if len(clean) != len(obj):
        logger.warning(f"{path}: {len(obj) - len(clean)} itens inválidos removidos.")
        new_sha = gh.put_json(path, clean, f"Sanitiza {path} (remove itens inválidos)", sha=sha)
        return clean, new_sha
    return obj, sha


def normalizar_fatura(d):
    """
    Normaliza fatura vinda do JSON.
    - Valores em texto ('R$ 1.234,56') viram número.
    - 'paga' e 'status' ficam coerentes: só 'paga' é persistido como status final.
    Retorna None para itens que não passam na validação.
    """
    if not isinstance(d, dict):
        return None

    d = d.copy()
    for campo in ("valor_total", "valor_pago", "valor_minimo"):
        v = d.get(campo)
        if isinstance(v, str):
            try:
                d[campo] = float(parse_brl(v))
            except ValueError:
                logger.warning(f"Fatura {d.get('id')}: {campo} ilegível ({v!r}).")
                return None

    d.setdefault("valor_pago", 0.0)
    d.setdefault("itens", [])
    d.setdefault("nome_cartao", "")

    pago = bool(d.get("paga")) or d.get("status") == PAGA
    d["paga"] = pago
    d["status"] = PAGA if pago else ABERTA

    if not validate_fatura_dict(d):
        logger.warning(f"Fatura {d.get('id')} ignorada: dados inválidos.")
        return None
    return d


@st.cache_data(ttl=60, show_spinner=False)
def load_all(cache_key: tuple):
    """
    Lê todos os arquivos via GitHubService (no contexto), criando os ausentes
    e removendo itens que não são dicts.
    Retorna {path: {"content": lista, "sha": sha}}.
    """
    ctx = get_context()
    if not ctx.get("connected"):
        raise RuntimeError("Não conectado ao GitHub. Informe repositório e token na barra lateral.")

    gh = ctx.get("gh")
    if gh is None:
        raise RuntimeError("GitHubService não está inicializado.")

    data = {}
    for path, default in DEFAULTS.items():
        obj, sha = gh.ensure_file(path, default)
        obj, sha = _sanitizar_lista_de_dicts(gh, path, obj, sha)
        data[path] = {"content": obj, "sha": sha}

    return data


def carregar_faturas(data: dict) -> list[dict]:
    """Faturas normalizadas (inválidas ficam de fora)."""
    return [f for f in (normalizar_fatura(x) for x in data["data/faturas.json"]["content"]) if f is not None]


def salvar_json(gh, gravacoes: list[tuple], recarregar: bool = True) -> None:
    """
    Grava um ou mais arquivos no GitHub, na ordem: [(path, obj, sha, mensagem), ...].
    Depois limpa o cache de dados e reroda a página.
    Se uma gravação falha, registra as que já foram feitas e propaga o erro.
    """
    gravados = []
    for path, obj, sha, mensagem in gravacoes:
        try:
            gh.put_json(path, obj, mensagem, sha=sha)
        except RuntimeError:
            logger.error(f"Falha ao gravar {path}; já gravados: {gravados or 'nenhum'}.")
            st.cache_data.clear()
            raise
        gravados.append(path)
    st.cache_data.clear()
    if recarregar:
        st.rerun()


def gravacoes_pagamento(data: dict, fatura: dict, conta: dict, tx: dict) -> list[tuple]:
    """
    Aplica um pagamento já validado às listas carregadas e devolve as gravações.
    Fatura e conta vêm antes da transação: se a gravação parar no meio,
    não fica transação de pagamento sem débito.
    """
    faturas = data["data/faturas.json"]["content"]
    contas = data["data/contas.json"]["content"]
    transacoes = data["data/transacoes.json"]["content"]

    atualizar(faturas, fatura)
    atualizar(contas, conta)
    transacoes.append(tx)
    return [
        ("data/faturas.json", faturas, data["data/faturas.json"]["sha"], f"Fatura {fatura['id']} -> {fatura['status']}"),
        ("data/contas.json", contas, data["data/contas.json"]["sha"], f"Débito pagamento fatura: {conta['id']}"),
        ("data/transacoes.json", transacoes, data["data/transacoes.json"]["sha"], f"Pagamento fatura: {fatura['id']}"),
    ]
