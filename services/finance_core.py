# services/finance_core.py
import calendar
import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from services.errors import PagamentoError
from services.status import ABERTA, PAGA
from services.utils import parse_data, parse_datetime, to_decimal

logger = logging.getLogger("financeiro")


# ---------------------------------------------------------
# IDs rastreáveis
# ---------------------------------------------------------
def novo_id(prefix: str) -> str:
    """Gera ID único com prefixo e timestamp (ex.: 'fat-20260108123045-abcd')."""
    ts = datetime.now().strftime("%Y%m%d%H%M%S")
    rand = uuid.uuid4().hex[:4]
    return f"{prefix}-{ts}-{rand}"


def atualizar(lista: list, item_atualizado: dict) -> bool:
    """Substitui o item de mesmo ID e marca 'atualizado_em'."""
    for i, x in enumerate(lista):
        if x.get("id") == item_atualizado.get("id"):
            lista[i] = item_atualizado
            lista[i]["atualizado_em"] = datetime.now().isoformat()
            return True
    return False


def ativos(lista: list) -> list:
    """Retorna itens não excluídos (cartões/contas com 'ativo' falso também saem)."""
    return [
        x for x in lista
        if isinstance(x, dict) and not x.get("excluido") and x.get("ativo", True)
    ]


def add_months(d: date, months: int) -> date:
    """Soma meses mantendo o dia, limitado ao último dia do mês de destino."""
    year = d.year + (d.month - 1 + months) // 12
    month = (d.month - 1 + months) % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last_day))


def _num(v: Any) -> float:
    return float(to_decimal(v))


# ---------------------------------------------------------
# Criação de fatura
# ---------------------------------------------------------
def nova_fatura(
    cartao: dict,
    valor_total: Any,
    data_vencimento: Any,
    data_fechamento: Any,
    valor_minimo: Any = 0,
    saldo_anterior: Any = 0,
    inicio_periodo: Any = None,
    fim_periodo: Any = None,
    observacoes: Optional[str] = None,
) -> dict:
    """
    Monta uma fatura nova (sempre 'aberta', sem pagamentos).
    - cartão, valor e datas de vencimento/fechamento são obrigatórios.
    - limite vem do cartão; limite disponível = limite - valor_total.
    """
    if not cartao or not cartao.get("id"):
        raise ValueError("Cartão é obrigatório.")
    if valor_total is None or data_vencimento is None or data_fechamento is None:
        raise ValueError("Campos obrigatórios não preenchidos.")

    total = to_decimal(valor_total)
    if total <= 0:
        raise ValueError("Valor da fatura deve ser maior que zero.")

    limite = to_decimal(cartao.get("limite", 0) or 0)

    return {
        "id": novo_id("fat"),
        "cartao_id": cartao["id"],
        "nome_cartao": cartao.get("nome", ""),
        "valor_total": float(total),
        "valor_minimo": _num(valor_minimo or 0),
        "saldo_anterior": _num(saldo_anterior or 0),
        "novo_saldo": float(total),
        "limite": float(limite),
        "limite_disponivel": float(limite - total),
        "data_vencimento": parse_data(data_vencimento).isoformat(),
        "data_fechamento": parse_data(data_fechamento).isoformat(),
        "inicio_periodo": parse_data(inicio_periodo).isoformat() if inicio_periodo else None,
        "fim_periodo": parse_data(fim_periodo).isoformat() if fim_periodo else None,
        "status": ABERTA,
        "paga": False,
        "pago_em": None,
        "valor_pago": 0.0,
        "conta_pagamento_id": None,
        "observacoes": observacoes,
        "itens": [],
        "criado_em": datetime.now().isoformat(),
    }


# ---------------------------------------------------------
# Pagamento de fatura
# ---------------------------------------------------------
def pagar_fatura(
    fatura: dict,
    conta: dict,
    valor: Any,
    data_pagamento: Any,
    descricao: Optional[str] = None,
) -> dict:
    """
    Registra o pagamento (total ou parcial) de uma fatura a partir de uma conta.

    - Recusa valor <= 0, fatura já paga e saldo insuficiente (PagamentoError).
    - Debita o saldo da conta e acumula 'valor_pago' na fatura.
    - Pagamentos acumulados >= valor_total marcam a fatura como 'paga'; abaixo disso segue 'aberta'.
    Retorna a transação 'pagamento_fatura' a ser gravada em transacoes.json.
    """
    try:
        pago = to_decimal(valor)
    except ValueError as e:
        raise PagamentoError(str(e)) from e
    if pago <= 0:
        raise PagamentoError("Conta e valor são obrigatórios.")
    if not conta or not conta.get("id"):
        raise PagamentoError("Conta e valor são obrigatórios.")

    if fatura.get("paga") or fatura.get("status") == PAGA:
        raise PagamentoError("Fatura já foi paga.")

    saldo = to_decimal(conta.get("saldo", 0) or 0)
    if saldo < pago:
        raise PagamentoError("Saldo insuficiente na conta.")

    quando = parse_datetime(data_pagamento)
    total = to_decimal(fatura.get("valor_total", 0) or 0)
    ja_pago = to_decimal(fatura.get("valor_pago", 0) or 0)
    quitada = ja_pago + pago >= total

    tx = {
        "id": novo_id("tx"),
        "tipo": "pagamento_fatura",
        "descricao": descricao or f"Pagamento fatura {fatura.get('nome_cartao', '')}".strip(),
        "valor": float(pago),
        "conta_id": conta["id"],
        "categoria_id": None,
        "data": quando.isoformat(),
        "status": "concluida",
        "tags": ["fatura", "pagamento"],
        "metadados": {
            "fatura_id": fatura.get("id"),
            "nome_cartao": fatura.get("nome_cartao"),
        },
    }

    conta["saldo"] = float(saldo - pago)
    conta["atualizado_em"] = datetime.now().isoformat()

    fatura["valor_pago"] = float(ja_pago + pago)
    fatura["paga"] = quitada
    fatura["status"] = PAGA if quitada else ABERTA
    if quitada:
        fatura["pago_em"] = quando.isoformat()
    fatura["conta_pagamento_id"] = conta["id"]
    fatura["atualizado_em"] = datetime.now().isoformat()

    logger.info(
        "Pagamento de %s na fatura %s (%s).",
        pago, fatura.get("id"), "quitada" if quitada else "parcial",
    )
    return tx


def saldo_devedor(fatura: dict) -> Decimal:
    """Quanto ainda falta pagar (nunca negativo)."""
    total = to_decimal(fatura.get("valor_total", 0) or 0)
    pago = to_decimal(fatura.get("valor_pago", 0) or 0)
    return max(total - pago, Decimal("0"))
