# services/ui.py
import streamlit as st

from services.competencia import competencia_fatura
from services.finance_core import saldo_devedor
from services.status import PAGA, status_badge, status_da_fatura
from services.utils import fmt_brl, fmt_date_br, fmt_percent, key_for


def is_mobile() -> bool:
    """Modo mobile controlado explicitamente pelo usuário."""
    return st.session_state.get("modo_mobile", False)


def responsive_columns(desktop: int, mobile: int = 1):
    return st.columns(mobile if is_mobile() else desktop)


def section(title: str, caption: str | None = None):
    st.subheader(title)
    if caption:
        st.caption(caption)


def render_kpis(items, desktop_cols=4, mobile_cols=1):
    """items: [(label, valor) | (label, valor, ajuda)]"""
    cols = responsive_columns(desktop=desktop_cols, mobile=mobile_cols)
    n = len(cols)
    for i, it in enumerate(items):
        col = cols[i % n]
        if len(it) == 3:
            label, value, help_txt = it
            col.metric(label, value, help=help_txt)
        else:
            label, value = it
            col.metric(label, value)


def fatura_card(fatura: dict, cartao: dict | None, hoje, key: str) -> bool:
    """
    Card de fatura: competência, status derivado, valores e vencimento.
    Retorna True quando o botão 'Pagar' foi clicado.
    """
    sts = status_da_fatura(fatura, hoje)
    with st.container(border=True):
        c1, c2 = st.columns([3, 2])
        c1.markdown(f"**{competencia_fatura(fatura)}** · {fatura.get('nome_cartao') or (cartao or {}).get('nome', '—')}")
        c2.write(status_badge(sts))

        c1.write(f"Total: {fmt_brl(fatura.get('valor_total', 0))}")
        c1.write(f"Vencimento: {fmt_date_br(fatura.get('data_vencimento'))}")
        if fatura.get("valor_pago"):
            c1.caption(f"Pago: {fmt_brl(fatura['valor_pago'])} · Falta: {fmt_brl(saldo_devedor(fatura))}")

        limite = (cartao or {}).get("limite") or 0
        if limite:
            uso = float(fatura.get("valor_total", 0)) / float(limite) * 100
            c2.caption(f"Uso do limite: {fmt_percent(uso)}")

        return c2.button("Pagar", key=key_for("pagar", key), disabled=(sts == PAGA), use_container_width=True)
