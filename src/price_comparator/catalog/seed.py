"""Bundled default products and synthesized price history for first launch."""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ..domain.models import PriceHistoryEntry, Product, SupermarketPrice
from ..domain.supermarkets import SUPERMARKETS


HISTORY_SAMPLES = 5
HISTORY_INTERVAL = timedelta(weeks=1)
HISTORY_VARIANCE = 0.10

# Prices in vocabulary order: Mercadona, Lidl, Carrefour, Consum.
DEFAULT_PRODUCTS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "name": "Leche Entera 1L",
        "description": "Leche de vaca entera de alta calidad.",
        "image": "https://images.unsplash.com/photo-1563636619-e9108b9355ce?w=400",
        "category": "Lácteos",
        "unit": "litro",
        "weight": 1.0,
        "weight_unit": "l",
        "prices": [0.95, 0.92, 0.98, 0.99],
    },
    {
        "id": "2",
        "name": "Aceite de Oliva Virgen Extra 1L",
        "description": "Aceite de oliva virgen extra obtenido directamente de aceitunas.",
        "image": "https://images.unsplash.com/photo-1474979266404-7eaacbcd87c5?w=400",
        "category": "Aceites",
        "unit": "litro",
        "weight": 1.0,
        "weight_unit": "l",
        "prices": [9.45, 9.25, 9.50, 9.60],
    },
    {
        "id": "3",
        "name": "Arroz Redondo 1kg",
        "description": "Arroz blanco de grano redondo, ideal para paellas.",
        "image": "https://images.unsplash.com/photo-1586201375761-83865001e31c?w=400",
        "category": "Despensa",
        "unit": "kg",
        "weight": 1.0,
        "weight_unit": "kg",
        "prices": [1.35, 1.30, 1.40, 1.42],
    },
    {
        "id": "4",
        "name": "Pechuga de Pollo 1kg",
        "description": "Pechuga de pollo fresca, sin piel.",
        "image": "https://images.unsplash.com/photo-1604503468506-a8da13d82791?w=400",
        "category": "Carnicería",
        "unit": "kg",
        "weight": 1.0,
        "weight_unit": "kg",
        "prices": [6.95, 6.75, 7.10, 7.05],
    },
    {
        "id": "5",
        "name": "Pan de Molde 450g",
        "description": "Pan de molde blanco extra tierno.",
        "image": "https://images.unsplash.com/photo-1509440159596-0249088772ff?w=400",
        "category": "Despensa",
        "unit": "unidad",
        "weight": 450.0,
        "weight_unit": "g",
        "prices": [1.15, 1.10, 1.20, 1.25],
    },
    {
        "id": "6",
        "name": "Huevos L 12 uds",
        "description": "Huevos frescos de gallinas criadas en suelo.",
        "image": "https://images.unsplash.com/photo-1506976785307-8732e854ad03?w=400",
        "category": "Despensa",
        "unit": "docena",
        "pieces": 12,
        "prices": [2.35, 2.25, 2.45, 2.40],
    },
    {
        "id": "7",
        "name": "Detergente Líquido 3L",
        "description": "Detergente para lavadora con fragancia floral.",
        "image": "https://images.unsplash.com/photo-1610557892470-55d9e80c0bce?w=400",
        "category": "Limpieza",
        "unit": "litro",
        "weight": 3.0,
        "weight_unit": "l",
        "prices": [5.45, 5.25, 5.60, 5.55],
    },
]


def synthesize_history(product: Product, now: datetime, rng: random.Random) -> List[PriceHistoryEntry]:
    """Weekly samples ending at `now`, each within +/-10% of the seed price."""
    entries: List[PriceHistoryEntry] = []
    for weeks_back in range(HISTORY_SAMPLES - 1, -1, -1):
        stamp = (now - weeks_back * HISTORY_INTERVAL).isoformat(timespec="seconds")
        for entry in product.prices:
            if not entry.available or entry.price <= 0:
                continue
            factor = 1 + rng.uniform(-HISTORY_VARIANCE, HISTORY_VARIANCE)
            entries.append(PriceHistoryEntry(entry.supermarket, round(entry.price * factor, 2), stamp))
    return entries


def default_products(now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> List[Product]:
    now = now or datetime.now()
    rng = rng or random.Random()
    out: List[Product] = []
    for raw in DEFAULT_PRODUCTS:
        product = Product(
            id=raw["id"],
            name=raw["name"],
            description=raw["description"],
            category=raw["category"],
            unit=raw["unit"],
            image=raw["image"],
            prices=[SupermarketPrice(name, price, True) for name, price in zip(SUPERMARKETS, raw["prices"])],
            weight=raw.get("weight"),
            weight_unit=raw.get("weight_unit"),
            pieces=raw.get("pieces"),
        )
        product.price_history = synthesize_history(product, now, rng)
        out.append(product)
    return out
