# services/fatura_queries.py
"""
Consultas de faturas padronizadas.

Este módulo centraliza:
- agrupamento de faturas por mês de vencimento (atual / próximas / passadas)
- consolidação dos itens de uma fatura por categoria
- DataFrame de faturas com status de exibição derivado
- KPIs por status

Todas as funções recebem `hoje` do chamador; nenhuma lê o relógio.
"""

from datetime import date
from typing import Any

import pandas as pd

from services.status import ABERTA, ATRASADA, PAGA, STATUS, derivar_status_fatura
from services.utils import parse_data, to_decimal

CORES_CATEGORIAS = {
    "alimentacao": "#F59E0B",
    "transporte": "#3B82F6",
    "moradia": "#8B5CF6",
    "saude": "#10B981",
    "educacao": "#EC4899",
    "lazer": "#F97316",
    "compras": "#6366F1",
    "outros": "#64748B",
}
COR_PADRAO = CORES_CATEGORIAS["outros"]


# ---------------------------------------------------------
# Agrupamento por mês de vencimento
# ---------------------------------------------------------
def agrupar_faturas(faturas: list[dict], hoje: Any) -> dict:
    """
    Separa as faturas pelo mês/ano do vencimento em relação a `hoje`.

    Retorna:
    {
        "atual": fatura do mês corrente (ou None; a última encontrada vence),
        "proximas": meses futuros, vencimento mais próximo primeiro,
        "passadas": meses anteriores, mais recente primeiro,
    }
    """
    ref = parse_data(hoje)
    mes_ref = (ref.year, ref.month)

    atual = None
    proximas: list[tuple[date, dict]] = []
    passadas: list[tuple[date, dict]] = []

    for f in faturas:
        venc = parse_data(f.get("data_vencimento"))
        mes = (venc.year, venc.month)
        if mes == mes_ref:
            atual = f
        elif mes > mes_ref:
            proximas.append((venc, f))
        else:
            passadas.append((venc, f))

    proximas.sort(key=lambda p: p[0])
    passadas.sort(key=lambda p: p[0], reverse=True)

    return {
        "atual": atual,
        "proximas": [f for _, f in proximas],
        "passadas": [f for _, f in passadas],
    }


# ---------------------------------------------------------
# Itens por categoria
# ---------------------------------------------------------
def itens_por_categoria(itens: list[dict]) -> list[dict]:
    """
    Agrupa os itens de uma fatura por categoria (chave em minúsculas; vazio vira 'outros').
    Cada categoria traz nome capitalizado, cor, total e as transações.
    Ordenado pelo total, maior primeiro.
    """
    categorias: dict[str, dict] = {}

    for item in itens:
        chave = (item.get("categoria") or "").strip().lower() or "outros"
        cat = categorias.setdefault(chave, {
            "id": chave,
            "nome": chave[:1].upper() + chave[1:],
            "cor": CORES_CATEGORIAS.get(chave, COR_PADRAO),
            "valor_total": 0.0,
            "transacoes": [],
        })
        valor = float(to_decimal(item.get("valor", 0)))
        cat["valor_total"] += valor
        cat["transacoes"].append({
            "id": item.get("id"),
            "descricao": item.get("descricao", ""),
            "valor": valor,
            "data": item.get("data"),
        })

    return sorted(categorias.values(), key=lambda c: c["valor_total"], reverse=True)


# ---------------------------------------------------------
# DataFrame base
# ---------------------------------------------------------
def preparar_faturas_df(faturas: list[dict], hoje: Any) -> pd.DataFrame:
    """
    Constrói um DataFrame consistente a partir das faturas.

    Regras:
    - converte valores e datas (vencimento inválido levanta ParseError)
    - cria coluna `status_exibicao` (paga / aberta / atrasada)
    - cria coluna `em_aberto` (valor_total - valor_pago, zero para pagas)
    """
    if not faturas:
        return pd.DataFrame()

    df = pd.DataFrame(faturas)

    for col in ("valor_total", "valor_pago"):
        if col not in df:
            df[col] = 0.0
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0)
    if "status" not in df:
        df["status"] = ABERTA

    df["data_vencimento"] = df["data_vencimento"].apply(parse_data)
    df["status_exibicao"] = [
        derivar_status_fatura(s, v, hoje)
        for s, v in zip(df["status"], df["data_vencimento"])
    ]
    df["em_aberto"] = (df["valor_total"] - df["valor_pago"]).clip(lower=0.0)
    df.loc[df["status_exibicao"] == PAGA, "em_aberto"] = 0.0

    return df.sort_values("data_vencimento").reset_index(drop=True)


# ---------------------------------------------------------
# KPIs por status
# ---------------------------------------------------------
def resumo_faturas(df: pd.DataFrame) -> dict:
    """
    Totais por status de exibição.

    Retorna:
    {
        "aberta": {"qtd", "valor"},
        "atrasada": {"qtd", "valor"},
        "paga": {"qtd", "valor"},
        "em_aberto": soma do que falta pagar,
    }
    """
    resumo = {s: {"qtd": 0, "valor": 0.0} for s in STATUS}
    resumo["em_aberto"] = 0.0

    if df.empty:
        return resumo

    grupos = df.groupby("status_exibicao")["valor_total"].agg(["count", "sum"])
    for sts, row in grupos.iterrows():
        resumo[sts] = {"qtd": int(row["count"]), "valor": round(float(row["sum"]), 2)}

    resumo["em_aberto"] = round(float(df["em_aberto"].sum()), 2)
    return resumo


def atrasadas(df: pd.DataFrame) -> pd.DataFrame:
    """Faturas atrasadas, vencimento mais antigo primeiro."""
    if df.empty:
        return df
    return df[df["status_exibicao"] == ATRASADA].sort_values("data_vencimento")
