from __future__ import annotations

from typing import Iterable, Optional

from ..domain.models import Product


def match_product(candidate_name: str, catalog: Iterable[Product]) -> Optional[Product]:
    """Return the first product whose name contains, or is contained in, the candidate.

    Case-insensitive, first hit in catalog order, no scoring. Loose on
    purpose: OCR truncates and pads names, and staging review catches the
    false positives ("Pan" also matches "Pan de Molde 450g").
    """
    needle = (candidate_name or "").strip().lower()
    if not needle:
        return None
    for product in catalog:
        name = (product.name or "").strip().lower()
        if not name:
            continue
        if name in needle or needle in name:
            return product
    return None


def find_exact(name: str, catalog: Iterable[Product]) -> Optional[Product]:
    """Case-insensitive exact name equality; the commit-time de-dup rule."""
    needle = (name or "").strip().lower()
    if not needle:
        return None
    for product in catalog:
        if (product.name or "").strip().lower() == needle:
            return product
    return None
