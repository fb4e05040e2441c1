# services/schemas.py
from services.utils import parse_data, to_decimal

# Campos de uma fatura em data/faturas.json:
#   id, cartao_id, nome_cartao, valor_total, valor_minimo, valor_pago,
#   data_vencimento, data_fechamento (ISO), status ("aberta" | "paga"), paga,
#   pago_em, conta_pagamento_id, itens [{id, descricao, valor, data, categoria}]


def validate_fatura_dict(d: dict) -> bool:
    """Validação leve de fatura: cartão, valor finito >= 0 e vencimento legível."""
    if not isinstance(d, dict):
        return False
    if not d.get("cartao_id"):
        return False
    try:
        v = to_decimal(d.get("valor_total", 0))
        parse_data(d.get("data_vencimento"))
    except ValueError:
        return False
    return v >= 0
