"""Receipt text -> ordered (name, unit price) lines.

Heuristic, best effort: each non-blank OCR line is tried against three
patterns in order and the first that matches wins.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from ..logging import get_logger
from ..domain.models import ParsedLine
from ..domain.normalize import parse_decimal_comma


LOG = get_logger("catalog-parser")

_PRICE = r"[0-9]+[.,][0-9]{2}"

# 2 salmorejo fresco 1,25 2,50  -> quantity, name, unit price, total
MULTI_PRICE_RE = re.compile(rf"^(\d+)\s+(.+?)\s+({_PRICE})\s+({_PRICE})$")
# 1 ls tortilla 1/2 p/ca 4,50
SINGLE_PRICE_RE = re.compile(rf"^(\d+)\s+(.+?)\s+({_PRICE})$")
FALLBACK_PRICE_RE = re.compile(rf"({_PRICE})\s*$")
LEADING_QTY_RE = re.compile(r"^[0-9]+\s+")

NOISE_WORDS: Tuple[str, ...] = ("total", "factura", "descripción")
MIN_NAME_LENGTH = 3


def _extract(line: str) -> Optional[Tuple[str, float]]:
    m = MULTI_PRICE_RE.match(line)
    if m:
        return m.group(2).strip(), parse_decimal_comma(m.group(3)) or 0.0
    m = SINGLE_PRICE_RE.match(line)
    if m:
        return m.group(2).strip(), parse_decimal_comma(m.group(3)) or 0.0
    m = FALLBACK_PRICE_RE.search(line)
    if m:
        name = FALLBACK_PRICE_RE.sub("", line, count=1).strip()
        name = LEADING_QTY_RE.sub("", name).strip()
        return name, parse_decimal_comma(m.group(1)) or 0.0
    return None


def parse_line(raw_line: str) -> Optional[ParsedLine]:
    """Parse one receipt line; None for blanks, misses and header/footer noise."""
    line = (raw_line or "").strip()
    if not line:
        return None
    extracted = _extract(line)
    if extracted is None:
        LOG.debug(f"No price pattern in line: {line!r}")
        return None
    name, price = extracted
    if price <= 0 or len(name) < MIN_NAME_LENGTH:
        LOG.debug(f"Rejected line {line!r} (name={name!r}, price={price})")
        return None
    lowered = name.lower()
    if any(word in lowered for word in NOISE_WORDS):
        LOG.debug(f"Skipping receipt noise line: {line!r}")
        return None
    return ParsedLine(name=name, price=price)


def parse_receipt_text(raw_text: str) -> List[ParsedLine]:
    """Return parsed lines in receipt order. Duplicates are kept."""
    out: List[ParsedLine] = []
    for raw_line in (raw_text or "").split("\n"):
        parsed = parse_line(raw_line)
        if parsed is not None:
            out.append(parsed)
    LOG.debug(f"Parsed {len(out)} candidate line(s) from receipt text")
    return out
