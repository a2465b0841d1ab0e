from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from ..logging import get_logger
from ..domain.models import NutritionalInfo


@dataclass
class LookupRecord:
    """What the product lookup knows about one barcode. Every field is optional."""

    barcode: str
    name: Optional[str] = None
    name_es: Optional[str] = None
    image_url: Optional[str] = None
    categories: Optional[str] = None
    quantity: Optional[str] = None
    brands: Optional[str] = None
    nutrition: Optional[NutritionalInfo] = None

    @property
    def display_name(self) -> Optional[str]:
        return self.name_es or self.name


def _s(v: Any) -> Optional[str]:
    return v.strip() if isinstance(v, str) and v.strip() else None


def _f(v: Any) -> Optional[float]:
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v)
    if isinstance(v, str):
        try:
            return float(v.replace(",", "."))
        except ValueError:
            return None
    return None


def _nutrition_from_off(product: Dict[str, Any]) -> Optional[NutritionalInfo]:
    nutriments = product.get("nutriments")
    if not isinstance(nutriments, dict):
        nutriments = {}
    grade = _s(product.get("nutrition_grades"))
    nova = product.get("nova_group")
    info = NutritionalInfo(
        calories=_f(nutriments.get("energy-kcal_100g")),
        fat=_f(nutriments.get("fat_100g")),
        saturated_fat=_f(nutriments.get("saturated-fat_100g")),
        carbs=_f(nutriments.get("carbohydrates_100g")),
        sugars=_f(nutriments.get("sugars_100g")),
        protein=_f(nutriments.get("proteins_100g")),
        salt=_f(nutriments.get("salt_100g")),
        nutri_score=grade.lower() if grade and len(grade) == 1 and grade.lower() in "abcde" else None,
        nova_group=int(nova) if isinstance(nova, (int, float)) and not isinstance(nova, bool) else None,
        ingredients=_s(product.get("ingredients_text_es")) or _s(product.get("ingredients_text")),
    )
    if all(v is None for v in info.to_dict().values()):
        return None
    return info


def record_from_off_payload(barcode: str, payload: Any) -> Optional[LookupRecord]:
    """Map an Open Food Facts v2 product payload; None when not found."""
    if not isinstance(payload, dict) or payload.get("status") != 1:
        return None
    product = payload.get("product")
    if not isinstance(product, dict):
        return None
    return LookupRecord(
        barcode=str(payload.get("code") or barcode),
        name=_s(product.get("product_name")),
        name_es=_s(product.get("product_name_es")),
        image_url=_s(product.get("image_front_url")),
        categories=_s(product.get("categories")),
        quantity=_s(product.get("quantity")),
        brands=_s(product.get("brands")),
        nutrition=_nutrition_from_off(product),
    )


class OpenFoodFactsClient:
    """Thin client for the Open Food Facts product endpoint."""

    def __init__(self, base_url: str = "https://world.openfoodfacts.org", *, timeout: int = 15) -> None:
        self.base = base_url.rstrip("/")
        self.timeout = int(timeout)
        self.log = get_logger("off-client")
        self.s = requests.Session()
        self.s.headers.update({
            "Accept": "application/json",
            "User-Agent": "price-comparator/0.1",
        })

    def _url(self, barcode: str) -> str:
        return f"{self.base}/api/v2/product/{requests.utils.quote(barcode)}.json"

    def lookup(self, barcode: str) -> Optional[LookupRecord]:
        """Return the record for barcode, or None when the product is unknown.

        Network and HTTP errors propagate as requests exceptions.
        """
        code = (barcode or "").strip()
        if not code:
            return None
        self.log.info(f"GET product for barcode {code}")
        r = self.s.get(self._url(code), timeout=self.timeout)
        if r.status_code == 404:
            self.log.info(f"Barcode {code} not found (404)")
            return None
        r.raise_for_status()
        try:
            body = r.json()
        except ValueError:
            self.log.warning(f"Non-JSON lookup response for {code}")
            return None
        record = record_from_off_payload(code, body)
        if record is None:
            self.log.info(f"Barcode {code} not found")
        return record
