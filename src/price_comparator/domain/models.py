from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .supermarkets import SUPERMARKETS, normalize_supermarket


PLACEHOLDER_IMAGE = "https://images.unsplash.com/photo-1542838132-92c53300491e?w=400"
DEFAULT_CATEGORY = "Otros"
DEFAULT_UNIT = "unidad"


def _opt_str(v: Any) -> Optional[str]:
    return v if isinstance(v, str) and v.strip() else None


def _opt_float(v: Any) -> Optional[float]:
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v)
    return None


def _opt_int(v: Any) -> Optional[int]:
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float) and v.is_integer():
        return int(v)
    return None


@dataclass
class NutritionalInfo:
    """Per-100g facts as reported by the product lookup."""

    calories: Optional[float] = None
    fat: Optional[float] = None
    saturated_fat: Optional[float] = None
    carbs: Optional[float] = None
    sugars: Optional[float] = None
    protein: Optional[float] = None
    salt: Optional[float] = None
    nutri_score: Optional[str] = None  # a..e
    nova_group: Optional[int] = None   # 1..4
    ingredients: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "calories": self.calories,
            "fat": self.fat,
            "saturated_fat": self.saturated_fat,
            "carbs": self.carbs,
            "sugars": self.sugars,
            "protein": self.protein,
            "salt": self.salt,
            "nutri_score": self.nutri_score,
            "nova_group": self.nova_group,
            "ingredients": self.ingredients,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["NutritionalInfo"]:
        if not isinstance(data, dict):
            return None
        return cls(
            calories=_opt_float(data.get("calories")),
            fat=_opt_float(data.get("fat")),
            saturated_fat=_opt_float(data.get("saturated_fat")),
            carbs=_opt_float(data.get("carbs")),
            sugars=_opt_float(data.get("sugars")),
            protein=_opt_float(data.get("protein")),
            salt=_opt_float(data.get("salt")),
            nutri_score=_opt_str(data.get("nutri_score")),
            nova_group=_opt_int(data.get("nova_group")),
            ingredients=_opt_str(data.get("ingredients")),
        )


@dataclass
class SupermarketPrice:
    supermarket: str
    price: float
    available: bool
    link: Optional[str] = None
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "supermarket": self.supermarket,
            "price": self.price,
            "available": self.available,
        }
        if self.link is not None:
            out["link"] = self.link
        if self.image is not None:
            out["image"] = self.image
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SupermarketPrice":
        return cls(
            supermarket=normalize_supermarket(data.get("supermarket")),
            price=_opt_float(data.get("price")) or 0.0,
            available=bool(data.get("available")),
            link=_opt_str(data.get("link")),
            image=_opt_str(data.get("image")),
        )


@dataclass
class PriceHistoryEntry:
    supermarket: str
    price: float
    timestamp: str  # ISO-8601, seconds precision

    def to_dict(self) -> Dict[str, Any]:
        return {"supermarket": self.supermarket, "price": self.price, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceHistoryEntry":
        return cls(
            supermarket=normalize_supermarket(data.get("supermarket")),
            price=_opt_float(data.get("price")) or 0.0,
            timestamp=str(data.get("timestamp") or ""),
        )


@dataclass
class Product:
    id: str
    name: str
    description: str
    category: str
    unit: str
    image: str
    prices: List[SupermarketPrice] = field(default_factory=list)
    price_history: List[PriceHistoryEntry] = field(default_factory=list)
    weight: Optional[float] = None
    weight_unit: Optional[str] = None
    pieces: Optional[int] = None
    nutritional_info: Optional[NutritionalInfo] = None

    def price_for(self, supermarket: str) -> Optional[SupermarketPrice]:
        for entry in self.prices:
            if entry.supermarket == supermarket:
                return entry
        return None

    def ensure_full_price_table(self) -> bool:
        """Add unavailable zero entries for missing vocabulary supermarkets.

        Entries are reordered to vocabulary order; entries outside the
        vocabulary are dropped. Returns True when the table changed.
        """
        by_name: Dict[str, SupermarketPrice] = {}
        for entry in self.prices:
            if entry.supermarket in SUPERMARKETS and entry.supermarket not in by_name:
                by_name[entry.supermarket] = entry
        table = [by_name.get(name) or SupermarketPrice(name, 0.0, False) for name in SUPERMARKETS]
        changed = table != self.prices
        self.prices = table
        return changed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "unit": self.unit,
            "image": self.image,
            "weight": self.weight,
            "weight_unit": self.weight_unit,
            "pieces": self.pieces,
            "nutritional_info": self.nutritional_info.to_dict() if self.nutritional_info else None,
            "prices": [p.to_dict() for p in self.prices],
            "price_history": [h.to_dict() for h in self.price_history],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        prices_in = data.get("prices")
        history_in = data.get("price_history")
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            category=str(data.get("category") or DEFAULT_CATEGORY),
            unit=str(data.get("unit") or DEFAULT_UNIT),
            image=str(data.get("image") or PLACEHOLDER_IMAGE),
            prices=[SupermarketPrice.from_dict(p) for p in prices_in if isinstance(p, dict)]
            if isinstance(prices_in, list) else [],
            price_history=[PriceHistoryEntry.from_dict(h) for h in history_in if isinstance(h, dict)]
            if isinstance(history_in, list) else [],
            weight=_opt_float(data.get("weight")),
            weight_unit=_opt_str(data.get("weight_unit")),
            pieces=_opt_int(data.get("pieces")),
            nutritional_info=NutritionalInfo.from_dict(data.get("nutritional_info")),
        )


@dataclass
class ParsedLine:
    name: str
    price: float


@dataclass
class StagingCandidate:
    """A proposed catalog entry awaiting review.

    existing_id is set iff is_new is False.
    """

    name: str
    price: float
    supermarket: str
    category: str = DEFAULT_CATEGORY
    unit: str = DEFAULT_UNIT
    image: str = PLACEHOLDER_IMAGE
    is_new: bool = True
    existing_id: Optional[str] = None
    old_price: Optional[float] = None
    description: Optional[str] = None
    weight: Optional[float] = None
    weight_unit: Optional[str] = None
    pieces: Optional[int] = None
    nutritional_info: Optional[NutritionalInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "supermarket": self.supermarket,
            "category": self.category,
            "unit": self.unit,
            "image": self.image,
            "is_new": self.is_new,
            "existing_id": self.existing_id,
            "old_price": self.old_price,
            "description": self.description,
            "weight": self.weight,
            "weight_unit": self.weight_unit,
            "pieces": self.pieces,
            "nutritional_info": self.nutritional_info.to_dict() if self.nutritional_info else None,
        }
