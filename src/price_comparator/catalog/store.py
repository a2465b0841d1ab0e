from __future__ import annotations

import copy
import json
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Protocol

from ..logging import get_logger
from ..domain.models import (
    PriceHistoryEntry,
    Product,
    StagingCandidate,
    SupermarketPrice,
)
from ..domain.supermarkets import SUPERMARKETS, SUPERMARKET_OTHER, normalize_supermarket
from .errors import ProductNotFoundError, UnknownSupermarketError
from .matcher import find_exact
from .seed import default_products


LOG = get_logger("catalog-store")

CATALOG_KEY = "products"
ALL_CATEGORIES = "Todos"


class BlobStore(Protocol):
    def load(self, key: str) -> Optional[str]: ...

    def save(self, key: str, text: str) -> None: ...


Listener = Callable[[List[Product]], None]


@dataclass
class CommitResult:
    updated: int = 0
    added: int = 0
    updated_ids: List[str] = field(default_factory=list)
    added_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "updated": self.updated,
            "added": self.added,
            "updated_ids": list(self.updated_ids),
            "added_ids": list(self.added_ids),
        }


def _new_id() -> str:
    return uuid.uuid4().hex


class Catalog:
    """The product store: owns every Product and its price history.

    - Loads the full product list from a key/value blob store; seeds it on
      first launch.
    - Every mutation rewrites the whole snapshot (write-through) and then
      notifies subscribers.
    - Reads hand out copies; callers never hold live Product objects.
    """

    def __init__(
        self,
        store: BlobStore,
        *,
        key: str = CATALOG_KEY,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.store = store
        self.key = key
        self._clock = clock or datetime.now
        self._rng = rng or random.Random()
        self._id_factory = id_factory or _new_id
        self._listeners: List[Listener] = []
        self._products: List[Product] = []
        self._load()

    # --------------- persistence ---------------
    def _load(self) -> None:
        text = self.store.load(self.key)
        if text is None:
            self._products = default_products(self._clock(), self._rng)
            LOG.info(f"No stored catalog under {self.key!r}; seeded {len(self._products)} default product(s)")
            self._save()
            return
        try:
            raw = json.loads(text)
        except json.JSONDecodeError:
            LOG.exception(f"Stored catalog under {self.key!r} is not valid JSON")
            raise
        if not isinstance(raw, list):
            raise ValueError(f"Stored catalog under {self.key!r} must be a JSON list")
        products = [Product.from_dict(item) for item in raw if isinstance(item, dict)]
        migrated = 0
        for product in products:
            if product.ensure_full_price_table():
                migrated += 1
        self._products = products
        LOG.info(f"Loaded {len(products)} product(s) from store")
        if migrated:
            LOG.info(f"Completed price tables for {migrated} legacy product(s)")
            self._save()

    def _save(self) -> None:
        payload = json.dumps([p.to_dict() for p in self._products], ensure_ascii=False)
        self.store.save(self.key, payload)

    def _persist(self) -> None:
        self._save()
        if self._listeners:
            snapshot = self.products()
            for listener in list(self._listeners):
                listener(snapshot)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with a fresh snapshot after every persisted mutation."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --------------- queries ---------------
    def _find(self, product_id: Optional[str]) -> Optional[Product]:
        if not product_id:
            return None
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    def _require(self, product_id: str) -> Product:
        product = self._find(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def products(self) -> List[Product]:
        return copy.deepcopy(self._products)

    def __len__(self) -> int:
        return len(self._products)

    def get(self, product_id: str) -> Product:
        return copy.deepcopy(self._require(product_id))

    def search(self, query: str = "", category: str = ALL_CATEGORIES) -> List[Product]:
        """Case-insensitive substring over name or category, then category filter."""
        q = (query or "").strip().lower()
        out: List[Product] = []
        for product in self._products:
            matches_query = not q or q in product.name.lower() or q in product.category.lower()
            matches_category = not category or category == ALL_CATEGORIES or product.category == category
            if matches_query and matches_category:
                out.append(product)
        return copy.deepcopy(out)

    def categories(self) -> List[str]:
        seen: List[str] = [ALL_CATEGORIES]
        for product in self._products:
            if product.category and product.category not in seen:
                seen.append(product.category)
        return seen

    @staticmethod
    def cheapest(product: Product) -> Optional[SupermarketPrice]:
        """Lowest available price; ties keep vocabulary order."""
        best: Optional[SupermarketPrice] = None
        for entry in product.prices:
            if not entry.available or entry.price <= 0:
                continue
            if best is None or entry.price < best.price:
                best = entry
        return copy.deepcopy(best) if best else None

    def history(self, product_id: str, supermarket: Optional[str] = None) -> List[PriceHistoryEntry]:
        product = self._require(product_id)
        entries = product.price_history
        if supermarket:
            wanted = normalize_supermarket(supermarket)
            entries = [h for h in entries if h.supermarket == wanted]
        return copy.deepcopy(entries)

    # --------------- mutations ---------------
    def _timestamp(self) -> str:
        return self._clock().isoformat(timespec="seconds")

    @staticmethod
    def _vocabulary_name(supermarket: str) -> str:
        name = normalize_supermarket(supermarket)
        if name == SUPERMARKET_OTHER:
            raise UnknownSupermarketError(supermarket)
        return name

    @staticmethod
    def _apply_price(product: Product, supermarket: str, price: float, stamp: str) -> None:
        entry = product.price_for(supermarket)
        if entry is None:
            product.ensure_full_price_table()
            entry = product.price_for(supermarket)
        entry.price = float(price)
        entry.available = True
        product.price_history.append(PriceHistoryEntry(supermarket, float(price), stamp))

    def _fresh_id(self) -> str:
        existing = {p.id for p in self._products}
        new_id = self._id_factory()
        while new_id in existing:
            new_id = self._id_factory()
        return new_id

    def update_price(self, product_id: str, supermarket: str, price: float) -> Product:
        name = self._vocabulary_name(supermarket)
        product = self._require(product_id)
        self._apply_price(product, name, price, self._timestamp())
        LOG.info(f"Updated {product.name!r} @ {name} -> {price:.2f}")
        self._persist()
        return copy.deepcopy(product)

    def add_product(self, product: Product) -> Product:
        """Insert a copy of product under a fresh id with a complete prices table."""
        stored = copy.deepcopy(product)
        stored.id = self._fresh_id()
        stored.ensure_full_price_table()
        self._products.append(stored)
        LOG.info(f"Added product {stored.name!r} ({stored.id})")
        self._persist()
        return copy.deepcopy(stored)

    def delete_product(self, product_id: str) -> None:
        product = self._require(product_id)
        self._products = [p for p in self._products if p.id != product_id]
        LOG.info(f"Deleted product {product.name!r} ({product_id})")
        self._persist()

    def _create_from_candidate(self, candidate: StagingCandidate, supermarket: str, stamp: str) -> Product:
        prices = [
            SupermarketPrice(name, float(candidate.price), True)
            if name == supermarket
            else SupermarketPrice(name, 0.0, False)
            for name in SUPERMARKETS
        ]
        history = [PriceHistoryEntry(p.supermarket, p.price, stamp) for p in prices if p.price != 0]
        return Product(
            id=self._fresh_id(),
            name=candidate.name,
            description=candidate.description or "",
            category=candidate.category,
            unit=candidate.unit,
            image=candidate.image,
            prices=prices,
            price_history=history,
            weight=candidate.weight,
            weight_unit=candidate.weight_unit,
            pieces=candidate.pieces,
            nutritional_info=copy.deepcopy(candidate.nutritional_info),
        )

    def commit(self, candidates: Iterable[StagingCandidate]) -> CommitResult:
        """Apply confirmed candidates in order; persist once afterwards.

        Linked candidates update their product directly. Unlinked ones (or
        links to products deleted meanwhile) are re-resolved by exact
        case-insensitive name before a new product is created.
        """
        batch = list(candidates)
        resolved = [self._vocabulary_name(c.supermarket) for c in batch]
        stamp = self._timestamp()
        result = CommitResult()
        for candidate, supermarket in zip(batch, resolved):
            target = self._find(candidate.existing_id)
            if candidate.existing_id and target is None:
                LOG.warning(f"Linked product {candidate.existing_id} vanished; re-checking {candidate.name!r} by name")
            if target is None:
                target = find_exact(candidate.name, self._products)
            if target is not None:
                self._apply_price(target, supermarket, candidate.price, stamp)
                result.updated += 1
                result.updated_ids.append(target.id)
                continue
            product = self._create_from_candidate(candidate, supermarket, stamp)
            self._products.append(product)
            result.added += 1
            result.added_ids.append(product.id)
        self._persist()
        LOG.info(f"Commit applied: {result.updated} update(s), {result.added} addition(s)")
        return result
