# pages/Faturas.py
import streamlit as st
import pandas as pd
from datetime import date, datetime

from services.app_context import init_context, get_context, load_config
from services.data_loader import load_all, carregar_faturas, gravacoes_pagamento, salvar_json
from services.errors import PagamentoError, ParseError
from services.fatura_queries import agrupar_faturas, itens_por_categoria
from services.finance_core import add_months, ativos, nova_fatura, pagar_fatura, saldo_devedor
from services.competencia import competencia_fatura
from services.ui import fatura_card, section
from services.utils import fmt_brl, fmt_date_br, fmt_data_relativa, fmt_datetime_br

# --------------------------------------------------
# Página
# --------------------------------------------------
st.set_page_config(page_title="Faturas por Cartão", page_icon="💳", layout="wide")
st.title("💳 Faturas por Cartão")

# --------------------------------------------------
# Contexto
# --------------------------------------------------
init_context()
ctx = get_context()
if not ctx.get("connected"):
    st.warning("Conecte ao GitHub na página principal antes de usar esta página.")
    st.stop()

cfg = load_config()
gh = ctx.get("gh")

# --------------------------------------------------
# Dados
# --------------------------------------------------
try:
    data = load_all(cfg.cache_key)
except RuntimeError as e:
    st.error(f"Falha ao carregar dados: {e}")
    st.stop()
hoje = date.today()

faturas_raw = data["data/faturas.json"]["content"]
faturas_todas = carregar_faturas(data)
sha_faturas = data["data/faturas.json"]["sha"]
contas_todas = data["data/contas.json"]["content"]

cartoes = ativos(data["data/cartoes.json"]["content"])
contas = [c for c in contas_todas if c.get("ativa", True)]

if not cartoes:
    st.info("Nenhum cartão cadastrado em data/cartoes.json.")
    st.stop()

cartao_por_id = {c["id"]: c for c in cartoes if c.get("id")}
cartao_id = st.selectbox(
    "Cartão",
    options=list(cartao_por_id),
    format_func=lambda cid: cartao_por_id[cid].get("nome", cid),
    key="cartao_selecionado",
)
cartao = cartao_por_id[cartao_id]
faturas = [f for f in faturas_todas if f.get("cartao_id") == cartao_id]

try:
    grupos = agrupar_faturas(faturas, hoje)
except ParseError as e:
    st.error(f"Fatura com vencimento inválido: {e}")
    st.stop()


# --------------------------------------------------
# Ações
# --------------------------------------------------
def registrar_pagamento(fatura: dict, conta: dict, valor: float, quando: datetime, descricao: str):
    try:
        tx = pagar_fatura(fatura, conta, valor, quando, descricao or None)
    except PagamentoError as e:
        st.error(str(e))
        return

    try:
        salvar_json(gh, gravacoes_pagamento(data, fatura, conta, tx), recarregar=False)
    except RuntimeError as e:
        st.error(f"Falha ao registrar pagamento: {e}")
        return
    st.session_state.pop("fatura_pagar", None)
    st.rerun()


def form_pagamento(fatura: dict):
    section(f"💸 Pagar fatura {competencia_fatura(fatura)}", f"Falta pagar {fmt_brl(saldo_devedor(fatura))}")
    if not contas:
        st.warning("Cadastre uma conta em data/contas.json para pagar faturas.")
        return

    conta_por_id = {c["id"]: c for c in contas}
    with st.form(f"form-pagar-{fatura['id']}"):
        conta_id = st.selectbox(
            "Conta",
            options=list(conta_por_id),
            format_func=lambda cid: f"{conta_por_id[cid].get('nome', cid)} ({fmt_brl(conta_por_id[cid].get('saldo', 0))})",
        )
        valor = st.number_input("Valor", min_value=0.0, value=float(saldo_devedor(fatura)), step=10.0, format="%.2f")
        dia = st.date_input("Data do pagamento", value=hoje, format="DD/MM/YYYY")
        descricao = st.text_input("Descrição (opcional)")
        if st.form_submit_button("Confirmar pagamento"):
            quando = datetime.combine(dia, datetime.now().time())
            registrar_pagamento(fatura, conta_por_id[conta_id], valor, quando, descricao)


def detalhes(fatura: dict):
    with st.expander(f"🧩 Gastos por categoria — {competencia_fatura(fatura)}"):
        cats = itens_por_categoria(fatura.get("itens", []))
        if not cats:
            st.info("Fatura sem itens.")
            return
        for cat in cats:
            st.markdown(
                f"<span style='color:{cat['cor']}'>●</span> **{cat['nome']}** — {fmt_brl(cat['valor_total'])}",
                unsafe_allow_html=True,
            )
            linhas = pd.DataFrame([
                {"Data": fmt_date_br(t["data"]), "Descrição": t["descricao"], "Valor": fmt_brl(t["valor"])}
                for t in cat["transacoes"]
            ])
            st.dataframe(linhas, use_container_width=True, hide_index=True)
        if fatura.get("pago_em"):
            st.caption(
                f"Paga em {fmt_datetime_br(fatura['pago_em'])} ({fmt_data_relativa(fatura['pago_em'], hoje)})"
            )


def listar(lista: list[dict], vazio: str):
    if not lista:
        st.info(vazio)
        return
    for f in lista:
        if fatura_card(f, cartao, hoje, key=f["id"]):
            st.session_state["fatura_pagar"] = f["id"]
        detalhes(f)


# --------------------------------------------------
# Abas
# --------------------------------------------------
tab_atual, tab_proximas, tab_passadas, tab_nova = st.tabs(["📌 Atual", "⏭️ Próximas", "🗂️ Passadas", "➕ Nova fatura"])

with tab_atual:
    listar([grupos["atual"]] if grupos["atual"] else [], "Nenhuma fatura com vencimento neste mês.")

with tab_proximas:
    listar(grupos["proximas"], "Nenhuma fatura futura.")

with tab_passadas:
    listar(grupos["passadas"], "Nenhuma fatura anterior.")

with tab_nova:
    with st.form("form-nova-fatura"):
        valor_total = st.number_input("Valor total", min_value=0.0, step=10.0, format="%.2f")
        c1, c2 = st.columns(2)
        fechamento = c1.date_input("Fechamento", value=hoje, format="DD/MM/YYYY")
        vencimento = c2.date_input("Vencimento", value=add_months(hoje, 1), format="DD/MM/YYYY")
        valor_minimo = st.number_input("Pagamento mínimo", min_value=0.0, step=10.0, format="%.2f")
        obs = st.text_input("Observações")
        if st.form_submit_button("Criar fatura"):
            try:
                f = nova_fatura(cartao, valor_total, vencimento, fechamento, valor_minimo=valor_minimo, observacoes=obs or None)
            except ValueError as e:
                st.error(str(e))
            else:
                faturas_raw.append(f)
                try:
                    salvar_json(gh, [("data/faturas.json", faturas_raw, sha_faturas, f"Nova fatura: {cartao.get('nome')} {f['data_vencimento']}")])
                except RuntimeError as e:
                    st.error(f"Falha ao salvar fatura: {e}")

# --------------------------------------------------
# Pagamento (fora das abas para não duplicar formulários)
# --------------------------------------------------
selecionada = next((f for f in faturas if f["id"] == st.session_state.get("fatura_pagar")), None)
if selecionada:
    st.divider()
    form_pagamento(selecionada)
