# services/status.py
from datetime import date
from typing import Any

from services.utils import parse_data

PAGA = "paga"
ABERTA = "aberta"
ATRASADA = "atrasada"

STATUS = (
    ABERTA,     # não paga e vencimento no futuro
    ATRASADA,   # não paga e vencimento hoje ou no passado
    PAGA,       # marcada como paga na base
)


# ---------------------------------------------------------
# Derivação de status (pura: 'hoje' vem sempre do chamador)
# ---------------------------------------------------------
def derivar_status_fatura(status: str | None, vencimento: Any, hoje: Any) -> str:
    """
    Deriva o status de exibição de uma fatura.
    Regra (primeira que casar):
    - status armazenado 'paga' → paga (domina qualquer data)
    - hoje < vencimento → aberta
    - senão (inclusive no próprio dia do vencimento) → atrasada

    A comparação é só por data; datetimes são truncados.
    Datas em texto inválidas levantam ParseError.
    """
    if status == PAGA:
        return PAGA

    venc: date = parse_data(vencimento)
    ref: date = parse_data(hoje)

    if ref < venc:
        return ABERTA
    return ATRASADA


def status_da_fatura(fatura: dict, hoje: Any) -> str:
    """Atalho para registros de fatura (dict) vindos do JSON."""
    return derivar_status_fatura(fatura.get("status"), fatura.get("data_vencimento"), hoje)


def status_badge(sts: str) -> str:
    """Representação visual do status (somente UI)."""
    return {
        ABERTA: "🟢 Aberta",
        ATRASADA: "🔴 Atrasada",
        PAGA: "✅ Paga",
    }.get(sts, sts)
