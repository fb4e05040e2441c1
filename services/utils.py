# services/utils.py
import re
import numbers
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

import pandas as pd

from services.errors import ParseError

CENTAVOS = Decimal("0.01")
_DECIMAL_SIMPLES = re.compile(r"^-?\d+(\.\d+)?$")


# ---------------------------------------------------------
# Valores monetários
# ---------------------------------------------------------
def to_decimal(v: Any) -> Decimal:
    """
    Converte um valor numérico para Decimal sem coerção silenciosa.
    - Aceita int, float, Decimal e str numérica ("1234.5").
    - Floats passam por str() para arredondar o valor decimal digitado, não o binário.
    - None, bool, NaN e infinito levantam ValueError.
    """
    if v is None or isinstance(v, bool):
        raise ValueError(f"Valor monetário inválido: {v!r}")

    if isinstance(v, Decimal):
        d = v
    elif isinstance(v, (numbers.Number, str)):
        try:
            d = Decimal(str(v).strip())
        except InvalidOperation:
            raise ValueError(f"Valor monetário inválido: {v!r}") from None
    else:
        raise ValueError(f"Valor monetário inválido: {v!r}")

    if not d.is_finite():
        raise ValueError(f"Valor monetário não finito: {v!r}")
    return d


def _agrupar_br(d: Decimal) -> str:
    # 1,234.50 -> 1.234,50
    s = f"{d:,.2f}"
    return s.replace(",", "X").replace(".", ",").replace("X", ".")


def fmt_brl(v: Any) -> str:
    """
    Formata valores em BRL no padrão brasileiro: 'R$ 1.234,50'.
    - Arredonda para centavos com ROUND_HALF_UP (0,005 -> 0,01).
    - Negativos exibem prefixo '-' ('-R$ 10,00'); o sinal é avaliado após o arredondamento.
    - Valores inválidos ou não finitos levantam ValueError.
    """
    val = to_decimal(v).quantize(CENTAVOS, rounding=ROUND_HALF_UP)
    prefix = "-" if val < 0 else ""
    return f"{prefix}R$ {_agrupar_br(abs(val))}"


def parse_brl(texto: Any) -> Decimal:
    """
    Converte texto no formato de moeda brasileira para Decimal.
    Ex.: 'R$ 1.234,56' -> Decimal('1234.56'); '-R$ 10,00' -> Decimal('-10.00').
    Números já convertidos, ou texto decimal simples como "1234.56" (ponto
    decimal, sem vírgula), passam direto por `to_decimal`.
    """
    if not isinstance(texto, str):
        return to_decimal(texto)
    if _DECIMAL_SIMPLES.match(texto.strip()):
        return to_decimal(texto.strip())

    limpo = re.sub(r"[^\d,\-]", "", texto).replace(",", ".")
    if not limpo or not any(ch.isdigit() for ch in limpo):
        raise ParseError(f"Valor em reais inválido: {texto!r}")

    negativo = limpo.startswith("-")
    limpo = limpo.replace("-", "")
    try:
        d = Decimal(limpo)
    except InvalidOperation:
        raise ParseError(f"Valor em reais inválido: {texto!r}") from None
    return -d if negativo else d


def fmt_percent(v: Any) -> str:
    """Formata percentual (escala 0-100) com duas casas: 12.345 -> '12,35%'."""
    val = to_decimal(v).quantize(CENTAVOS, rounding=ROUND_HALF_UP)
    prefix = "-" if val < 0 else ""
    return f"{prefix}{_agrupar_br(abs(val))}%"


# ---------------------------------------------------------
# Datas
# ---------------------------------------------------------
def _parse_timestamp(texto: str) -> pd.Timestamp:
    """ISO 8601 primeiro; depois o formato brasileiro dd/mm/aaaa."""
    for fmt in ("ISO8601", "%d/%m/%Y"):
        try:
            ts = pd.to_datetime(texto, format=fmt)
        except (ValueError, TypeError):
            continue
        if not pd.isna(ts):
            return ts
    raise ParseError(f"Data inválida: {texto!r}")


def parse_data(d: Any) -> date:
    """
    Converte para `date` aceitando:
      - date
      - datetime / pandas.Timestamp (usa .date(), sem converter fuso)
      - string ISO ('2024-03-05', '2024-03-05T10:00:00-03:00') ou 'dd/mm/aaaa'
    Levanta ParseError quando inválido; nunca devolve uma data padrão.
    """
    if isinstance(d, datetime):
        if pd.isna(d):
            raise ParseError("Data ausente (NaT).")
        return d.date()
    if isinstance(d, date):
        return d
    if not isinstance(d, str) or not d.strip():
        raise ParseError(f"Data inválida: {d!r}")
    return _parse_timestamp(d.strip()).date()


def parse_datetime(d: Any) -> datetime:
    """Como `parse_data`, mas preserva o horário (datas puras viram 00:00)."""
    if isinstance(d, datetime):
        if pd.isna(d):
            raise ParseError("Data ausente (NaT).")
        return d
    if isinstance(d, date):
        return datetime(d.year, d.month, d.day)
    if not isinstance(d, str) or not d.strip():
        raise ParseError(f"Data inválida: {d!r}")
    return _parse_timestamp(d.strip()).to_pydatetime()


def fmt_date_br(d: Any) -> str:
    """Formata qualquer data (objeto ou string) como 'dd/mm/aaaa'."""
    return parse_data(d).strftime("%d/%m/%Y")


def fmt_datetime_br(d: Any) -> str:
    """Formata data e hora como 'dd/mm/aaaa às HH:MM'."""
    return parse_datetime(d).strftime("%d/%m/%Y às %H:%M")


def fmt_data_relativa(d: Any, hoje: Any) -> str:
    """
    Exibição amigável de datas passadas: 'hoje', 'ontem', 'há N dias'.
    A partir de 7 dias (ou datas futuras) cai para 'dd/mm/aaaa'.
    """
    obj = parse_data(d)
    dias = (parse_data(hoje) - obj).days

    if dias == 0:
        return "hoje"
    if dias == 1:
        return "ontem"
    if 1 < dias < 7:
        return f"há {dias} dias"
    return fmt_date_br(obj)


def key_for(*parts: Any) -> str:
    """Chaves únicas e estáveis para widgets do Streamlit."""
    return "-".join(str(p) for p in parts if p is not None)
