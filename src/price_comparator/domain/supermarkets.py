from __future__ import annotations

from typing import Dict, Optional, Tuple

from ..logging import get_logger

LOG = get_logger("supermarkets")

# Canonical supermarket names; tuple order is the detection priority.
SUPERMARKET_MERCADONA = "Mercadona"
SUPERMARKET_LIDL = "Lidl"
SUPERMARKET_CARREFOUR = "Carrefour"
SUPERMARKET_CONSUM = "Consum"

SUPERMARKETS: Tuple[str, ...] = (
    SUPERMARKET_MERCADONA,
    SUPERMARKET_LIDL,
    SUPERMARKET_CARREFOUR,
    SUPERMARKET_CONSUM,
)

# Sentinel for anything outside the vocabulary. Never a prices key.
SUPERMARKET_OTHER = "Otro"

SUPERMARKET_LOGOS: Dict[str, str] = {
    SUPERMARKET_MERCADONA: "https://www.mercadona.es/favicon.ico",
    SUPERMARKET_LIDL: "https://www.lidl.es/favicon.ico",
    SUPERMARKET_CARREFOUR: "https://www.carrefour.es/favicon.ico",
    SUPERMARKET_CONSUM: "https://www.consum.es/themes/custom/consum_es/assets/img/icon-responsive-consum.png",
}

_BY_LOWER: Dict[str, str] = {name.lower(): name for name in SUPERMARKETS}


def normalize_supermarket(value: Optional[str]) -> str:
    """Map free text to its vocabulary name, or to SUPERMARKET_OTHER."""
    if not isinstance(value, str):
        return SUPERMARKET_OTHER
    return _BY_LOWER.get(value.strip().lower(), SUPERMARKET_OTHER)


def is_known_supermarket(value: Optional[str]) -> bool:
    return normalize_supermarket(value) != SUPERMARKET_OTHER


def detect_supermarket(raw_text: str) -> Optional[str]:
    """Return the supermarket a receipt belongs to, or None.

    Lower-cases the whole text and checks each chain name as a literal
    substring in vocabulary order; first hit wins.
    """
    text = (raw_text or "").lower()
    for name in SUPERMARKETS:
        if name.lower() in text:
            LOG.debug(f"Detected supermarket {name}")
            return name
    LOG.debug("No known supermarket found in receipt text")
    return None
