"""Field-level normalizers for amounts and dates."""

from .currency import parse_currency, format_currency, amounts_match
from .dates import normalize_date, parse_date, month_key, is_canonical

__all__ = [
    "parse_currency",
    "format_currency",
    "amounts_match",
    "normalize_date",
    "parse_date",
    "month_key",
    "is_canonical",
]
