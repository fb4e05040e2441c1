from datetime import date, datetime, timedelta
from decimal import Decimal

import pandas as pd
import pytest

from services.errors import ParseError
from services.utils import (
    fmt_brl,
    fmt_data_relativa,
    fmt_date_br,
    fmt_datetime_br,
    fmt_percent,
    key_for,
    parse_brl,
    parse_data,
    to_decimal,
)


# ---------------------------------------------------------
# fmt_brl
# ---------------------------------------------------------
@pytest.mark.parametrize(
    "valor, esperado",
    [
        (1234.5, "R$ 1.234,50"),
        (0, "R$ 0,00"),
        (0.0, "R$ 0,00"),
        (7, "R$ 7,00"),
        (999.999, "R$ 1.000,00"),
        (1234567.891, "R$ 1.234.567,89"),
        (Decimal("10.1"), "R$ 10,10"),
        ("1234.5", "R$ 1.234,50"),
        (-1234.5, "-R$ 1.234,50"),
    ],
)
def test_fmt_brl(valor, esperado):
    assert fmt_brl(valor) == esperado


@pytest.mark.parametrize(
    "valor, esperado",
    [
        (0.005, "R$ 0,01"),
        (2.675, "R$ 2,68"),
        (Decimal("1.125"), "R$ 1,13"),
        (Decimal("1.135"), "R$ 1,14"),
        (-0.005, "-R$ 0,01"),
    ],
)
def test_fmt_brl_arredonda_meio_para_cima(valor, esperado):
    assert fmt_brl(valor) == esperado


def test_fmt_brl_zero_negativo_sem_sinal():
    assert fmt_brl(-0.001) == "R$ 0,00"


def test_fmt_brl_aceita_tipos_numericos_do_pandas():
    s = pd.Series([1.5, 2.25])
    assert fmt_brl(s.sum()) == "R$ 3,75"
    assert fmt_brl(pd.Series([3]).iloc[0]) == "R$ 3,00"


@pytest.mark.parametrize("valor", [float("nan"), float("inf"), float("-inf"), None, True, "abc", "", [1]])
def test_fmt_brl_rejeita_valores_invalidos(valor):
    with pytest.raises(ValueError):
        fmt_brl(valor)


def test_fmt_brl_idempotente():
    assert fmt_brl(1234.5) == fmt_brl(1234.5)


# ---------------------------------------------------------
# parse_brl / to_decimal / fmt_percent
# ---------------------------------------------------------
@pytest.mark.parametrize(
    "texto, esperado",
    [
        ("R$ 1.234,56", Decimal("1234.56")),
        ("R$\xa01.234,56", Decimal("1234.56")),
        ("-R$ 10,00", Decimal("-10.00")),
        ("0,5", Decimal("0.5")),
        ("15", Decimal("15")),
        ("1234.56", Decimal("1234.56")),
        ("-7.5", Decimal("-7.5")),
        # sem vírgula e com um único ponto: ponto decimal, não milhar
        ("1.234", Decimal("1.234")),
        ("R$ 1.234", Decimal("1234")),
        (12.5, Decimal("12.5")),
    ],
)
def test_parse_brl(texto, esperado):
    assert parse_brl(texto) == esperado


@pytest.mark.parametrize("texto", ["", "R$", "abc", "1,2,3"])
def test_parse_brl_invalido(texto):
    with pytest.raises(ValueError):
        parse_brl(texto)


def test_to_decimal_usa_representacao_decimal_do_float():
    assert to_decimal(0.1) == Decimal("0.1")


def test_fmt_percent():
    assert fmt_percent(12.345) == "12,35%"
    assert fmt_percent(0) == "0,00%"
    assert fmt_percent(1500) == "1.500,00%"


# ---------------------------------------------------------
# Datas
# ---------------------------------------------------------
def test_fmt_date_br_texto_e_objeto_concordam():
    assert fmt_date_br("2024-03-05") == "05/03/2024"
    assert fmt_date_br(date(2024, 3, 5)) == "05/03/2024"


@pytest.mark.parametrize(
    "entrada",
    [
        datetime(2024, 3, 5, 23, 59),
        pd.Timestamp("2024-03-05 08:00"),
        "2024-03-05T23:30:00",
        "2024-03-05T23:30:00-03:00",
        "05/03/2024",
        " 2024-03-05 ",
    ],
)
def test_fmt_date_br_formatos_aceitos(entrada):
    assert fmt_date_br(entrada) == "05/03/2024"


@pytest.mark.parametrize("entrada", ["", "   ", "2024-13-01", "31/02/2024", "ontem", None, 20240305, pd.NaT])
def test_fmt_date_br_invalido_levanta_parse_error(entrada):
    with pytest.raises(ParseError):
        fmt_date_br(entrada)


def test_parse_error_e_value_error():
    with pytest.raises(ValueError):
        parse_data("xx")


def test_parse_data_devolve_date_puro():
    d = parse_data(datetime(2024, 1, 2, 3, 4))
    assert d == date(2024, 1, 2)
    assert type(d) is date


def test_fmt_datetime_br():
    assert fmt_datetime_br(datetime(2024, 3, 5, 9, 7)) == "05/03/2024 às 09:07"
    assert fmt_datetime_br("2024-03-05T18:30:00") == "05/03/2024 às 18:30"
    assert fmt_datetime_br(date(2024, 3, 5)) == "05/03/2024 às 00:00"


class TestDataRelativa:
    HOJE = date(2024, 3, 20)

    def test_hoje_e_ontem(self):
        assert fmt_data_relativa(self.HOJE, self.HOJE) == "hoje"
        assert fmt_data_relativa("2024-03-19", self.HOJE) == "ontem"

    def test_poucos_dias(self):
        assert fmt_data_relativa(self.HOJE - timedelta(days=3), self.HOJE) == "há 3 dias"
        assert fmt_data_relativa(self.HOJE - timedelta(days=6), self.HOJE) == "há 6 dias"

    def test_uma_semana_ou_mais_vira_data(self):
        assert fmt_data_relativa(self.HOJE - timedelta(days=7), self.HOJE) == "13/03/2024"

    def test_futuro_vira_data(self):
        assert fmt_data_relativa("2024-03-25", self.HOJE) == "25/03/2024"


def test_key_for_ignora_none():
    assert key_for("pagar", None, 3) == "pagar-3"
