# services/competencia.py
from datetime import date

from services.utils import parse_data

MESES = ["JAN", "FEV", "MAR", "ABR", "MAI", "JUN", "JUL", "AGO", "SET", "OUT", "NOV", "DEZ"]


def competencia_from_date(d: date) -> str:
    return f"{d.year}-{d.month:02d}"


def label_competencia(comp: str) -> str:
    """'2024-03' -> 'MAR/24'. Competências mal formadas são devolvidas como vieram."""
    try:
        y, m = comp.split("-")
        mes = int(m)
    except (ValueError, AttributeError):
        return comp
    if not 1 <= mes <= 12:
        return comp
    return f"{MESES[mes - 1]}/{y[-2:]}"


def competencia_fatura(fatura: dict) -> str:
    """Rótulo da fatura pelo mês do vencimento (ex.: 'SET/25')."""
    return label_competencia(competencia_from_date(parse_data(fatura.get("data_vencimento"))))
