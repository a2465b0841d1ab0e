import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple

from ..logging import get_logger

_LOG = get_logger("normalize")

_QTY_MULTI_RE = re.compile(r"^\s*(\d+)\s*[x×]\s*(\d+(?:[.,]\d+)?)\s*([a-zA-Z]+)\s*$")
_QTY_SINGLE_RE = re.compile(r"^\s*(\d+(?:[.,]\d+)?)\s*([a-zA-Z]+)\s*$")


def parse_decimal_comma(token: str) -> Optional[float]:
    """Convert a receipt amount like '1,25' or '1.25' to a float.

    Only the first comma is treated as the decimal separator, matching how
    Spanish receipts print unit prices.
    """
    if token is None:
        return None
    s = str(token).strip().replace(",", ".", 1)
    if not s:
        return None
    try:
        value = Decimal(s)
    except InvalidOperation:
        return None
    return float(value)


def coerce_price(value: Any) -> Optional[float]:
    """Parse user input into a finite number, else None.

    Accepts numbers and numeric strings (decimal comma allowed). Booleans,
    NaN and infinities are rejected.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str):
        num = parse_decimal_comma(value)
        if num is None:
            return None
    else:
        return None
    if not math.isfinite(num):
        return None
    return num


def capitalize_first(name: str) -> str:
    """'LECHE ENTERA' -> 'Leche entera'."""
    s = (name or "").strip()
    if not s:
        return s
    return s[0].upper() + s[1:].lower()


def parse_quantity(quantity: Optional[str]) -> Tuple[Optional[float], Optional[str], Optional[int]]:
    """Split an Open Food Facts quantity string into (weight, unit, pieces).

    '500 g' -> (500.0, 'g', None); '6 x 1 L' -> (1.0, 'l', 6). Unparseable
    input yields (None, None, None).
    """
    if not isinstance(quantity, str) or not quantity.strip():
        return None, None, None
    m = _QTY_MULTI_RE.match(quantity)
    if m:
        pieces, amount, unit = m.groups()
        weight = parse_decimal_comma(amount)
        return weight, unit.lower(), int(pieces)
    m = _QTY_SINGLE_RE.match(quantity)
    if m:
        amount, unit = m.groups()
        return parse_decimal_comma(amount), unit.lower(), None
    _LOG.debug(f"Unrecognised quantity string: {quantity!r}")
    return None, None, None
