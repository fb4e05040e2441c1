# services/errors.py


class ParseError(ValueError):
    """Data ou valor em texto que não pôde ser interpretado."""


class PagamentoError(ValueError):
    """Pagamento de fatura recusado (já paga, saldo insuficiente, valor inválido)."""
