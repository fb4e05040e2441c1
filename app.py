# app.py
import sys
from pathlib import Path
from datetime import date

import streamlit as st
import pandas as pd

# -------------------------------------------------
# Ajuste de path
# -------------------------------------------------
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# -------------------------------------------------
# Imports internos
# -------------------------------------------------
from services.app_context import get_context, init_context, load_config
from services.data_loader import load_all, carregar_faturas
from services.errors import ParseError
from services.fatura_queries import preparar_faturas_df, resumo_faturas, atrasadas
from services.finance_core import ativos
from services.status import ABERTA, ATRASADA, PAGA, status_badge
from services.ui import section, render_kpis, is_mobile
from services.utils import fmt_brl, fmt_date_br

# -------------------------------------------------
# Configuração da página (MOBILE-FIRST)
# -------------------------------------------------
st.set_page_config(
    page_title="Faturas do Cartão",
    page_icon="💳",
    layout="centered",
    initial_sidebar_state="collapsed",
)

st.title("💳 Faturas do Cartão")
st.caption("Panorama das faturas: abertas, atrasadas e pagas")

# -------------------------------------------------
# Contexto / Sessão
# -------------------------------------------------
init_context()
ctx = get_context()

# -------------------------------------------------
# Sidebar (controle + conexão)
# -------------------------------------------------
with st.sidebar:
    st.subheader("📱 Interface")
    st.toggle("Modo mobile", key="modo_mobile")

    st.divider()
    st.subheader("🔧 Conexão")

    st.text_input("Repositório (owner/repo)", key="repo_full_name")
    st.text_input("GitHub Token", key="github_token", type="password")
    st.text_input("Branch", key="branch_name")

    if st.button("Conectar", use_container_width=True):
        init_context(reconectar=True)
        if ctx.get("connected"):
            st.cache_data.clear()
            st.success("✅ Conectado ao GitHub")
            st.rerun()
        else:
            st.error(ctx.get("gh_error", "Falha ao conectar."))

    if not ctx.get("connected"):
        st.warning("Conecte ao GitHub para continuar.")
        st.stop()

cfg = load_config()

# -------------------------------------------------
# Carregamento de dados
# -------------------------------------------------
try:
    data = load_all(cfg.cache_key)
except RuntimeError as e:
    st.error(str(e))
    st.stop()

hoje = date.today()
faturas = carregar_faturas(data)
cartoes = ativos(data["data/cartoes.json"]["content"])

try:
    df = preparar_faturas_df(faturas, hoje)
except ParseError as e:
    st.error(f"Fatura com data inválida: {e}")
    st.stop()

resumo = resumo_faturas(df)

# -------------------------------------------------
# KPIs por status
# -------------------------------------------------
section("📊 Situação das faturas", f"Referência: {fmt_date_br(hoje)}")

render_kpis([
    (status_badge(ABERTA), fmt_brl(resumo[ABERTA]["valor"]), f"{resumo[ABERTA]['qtd']} fatura(s)"),
    (status_badge(ATRASADA), fmt_brl(resumo[ATRASADA]["valor"]), f"{resumo[ATRASADA]['qtd']} fatura(s)"),
    (status_badge(PAGA), fmt_brl(resumo[PAGA]["valor"]), f"{resumo[PAGA]['qtd']} fatura(s)"),
    ("Falta pagar", fmt_brl(resumo["em_aberto"]), "Total - pagamentos parciais"),
], desktop_cols=4, mobile_cols=1)

st.divider()

# -------------------------------------------------
# Atrasadas
# -------------------------------------------------
section("🔴 Faturas atrasadas")

atr = atrasadas(df)
if atr.empty:
    st.info("Nenhuma fatura atrasada. 🎉")
else:
    tabela = pd.DataFrame({
        "Cartão": atr["nome_cartao"],
        "Vencimento": atr["data_vencimento"].map(fmt_date_br),
        "Total": atr["valor_total"].map(fmt_brl),
        "Falta": atr["em_aberto"].map(fmt_brl),
    })
    st.dataframe(tabela, use_container_width=True, hide_index=True)

st.divider()

# -------------------------------------------------
# Evolução por vencimento
# -------------------------------------------------
section("📈 Valor por mês de vencimento")

if df.empty:
    st.info("Sem faturas cadastradas.")
else:
    serie = (
        df.assign(mes=pd.to_datetime(df["data_vencimento"]).dt.to_period("M").astype(str))
        .groupby("mes")["valor_total"]
        .sum()
        .sort_index()
    )
    st.bar_chart(serie, height=240 if is_mobile() else 420)

# -------------------------------------------------
# 🔍 Diagnóstico (opcional)
# -------------------------------------------------
with st.expander("🔍 Diagnóstico", expanded=False):
    st.write("Faturas no arquivo:", len(data["data/faturas.json"]["content"]))
    st.write("Faturas válidas:", len(faturas))
    st.write("Cartões ativos:", len(cartoes))
    if not df.empty:
        st.dataframe(df[["id", "nome_cartao", "valor_total", "valor_pago", "data_vencimento", "status", "status_exibicao"]])
