from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Ensure the repository's src/ is importable when tests run from repo root
SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_ROOT))

from price_comparator.catalog import Catalog, MemoryBlobStore  # noqa: E402


FIXED_NOW = datetime(2025, 3, 1, 12, 0, 0)


def product_dict(product_id: str, name: str, prices: Optional[Dict[str, float]] = None,
                 category: str = "Despensa") -> dict:
    prices = prices or {}
    return {
        "id": product_id,
        "name": name,
        "description": "",
        "category": category,
        "unit": "unidad",
        "image": "img.png",
        "prices": [
            {"supermarket": market, "price": prices.get(market, 0.0), "available": market in prices}
            for market in ("Mercadona", "Lidl", "Carrefour", "Consum")
        ],
        "price_history": [],
    }


def make_catalog(rows: List[dict]) -> Catalog:
    store = MemoryBlobStore({"products": json.dumps(rows)})
    return Catalog(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def small_catalog() -> Catalog:
    return make_catalog(
        [
            product_dict("p-leche", "Leche Entera", {"Mercadona": 0.95, "Lidl": 0.92}, category="Lácteos"),
            product_dict("p-pan", "Pan", {"Mercadona": 0.60}),
            product_dict("p-arroz", "Arroz Redondo 1kg", {"Lidl": 1.30, "Carrefour": 1.40}),
        ]
    )
