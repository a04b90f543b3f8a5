"""
Currency amount parsing and formatting.

Statements and ledgers mix European (1.234,56) and US (1,234.56) notation,
sometimes within the same file, so the decimal separator is inferred per
value from the position of the last comma and the last dot.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Union
import re

CURRENCY_MARKERS = re.compile(r"(?i)eur(?:os?)?|€|\$|usd|\s")
NON_NUMERIC = re.compile(r"[^\d.\-]")
TRAILING_MINUS = re.compile(r"^(\d[\d.]*)-$")
PARENTHESIZED = re.compile(r"^\((.*)\)$")

ZERO = Decimal("0")
CENT = Decimal("0.01")

AmountLike = Union[str, int, float, Decimal, None]


def parse_currency(value: AmountLike) -> Decimal:
    """
    Parse an amount written in European or US notation.

    The notation is decided by whichever separator comes last: a dot after
    the last comma means US notation, anything else is treated as European.
    Never raises; unparsable input yields 0.

    Args:
        value: Raw amount text (or an already numeric value)

    Returns:
        Signed Decimal amount
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return _finite(value)
    if isinstance(value, bool):
        return ZERO
    if isinstance(value, (int, float)):
        return _finite(Decimal(str(value)))

    text = CURRENCY_MARKERS.sub("", str(value))
    if not text:
        return ZERO

    # Accounting notation: "(123,45)" is a negative amount
    negative = False
    parenthesized = PARENTHESIZED.match(text)
    if parenthesized:
        negative = True
        text = parenthesized.group(1)

    if text.rfind(".") > text.rfind(","):
        # US notation: commas are thousands separators
        text = text.replace(",", "")
    else:
        text = text.replace(".", "").replace(",", ".")

    text = NON_NUMERIC.sub("", text)

    # Some ledgers print negatives as "123,45-"
    trailing = TRAILING_MINUS.match(text)
    if trailing:
        text = f"-{trailing.group(1)}"

    try:
        amount = _finite(Decimal(text))
    except InvalidOperation:
        return ZERO
    return -abs(amount) if negative else amount


def _finite(amount: Decimal) -> Decimal:
    return amount if amount.is_finite() else ZERO


def format_currency(amount: Any, currency: str = "EUR") -> str:
    """
    Format an amount in European notation, e.g. ``-1.234,56 EUR``.

    Args:
        amount: Amount to format
        currency: Currency code appended after the number

    Returns:
        Formatted string
    """
    value = parse_currency(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    integer_part, _, fraction = f"{abs(value):.2f}".partition(".")
    grouped = f"{int(integer_part):,}".replace(",", ".")
    formatted = f"{sign}{grouped},{fraction}"
    return f"{formatted} {currency}" if currency else formatted


def amounts_match(
    amount1: AmountLike,
    amount2: AmountLike,
    tolerance: Union[float, Decimal] = Decimal("0.01"),
) -> bool:
    """
    Compare two amounts by magnitude, ignoring sign.

    Ledger and statement sign conventions may be mirrored, so only the
    absolute values are compared.

    Args:
        amount1: First amount
        amount2: Second amount
        tolerance: Maximum allowed difference (exclusive)

    Returns:
        True if ``||amount1| - |amount2|| < tolerance``
    """
    tol = tolerance if isinstance(tolerance, Decimal) else Decimal(str(tolerance))
    difference = abs(abs(parse_currency(amount1)) - abs(parse_currency(amount2)))
    return difference < tol
