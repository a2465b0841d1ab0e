from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Union

from ..logging import get_logger
from ..domain.models import (
    DEFAULT_CATEGORY,
    DEFAULT_UNIT,
    PLACEHOLDER_IMAGE,
    Product,
    StagingCandidate,
)
from ..domain.normalize import capitalize_first, coerce_price, parse_quantity
from ..domain.supermarkets import SUPERMARKET_OTHER, detect_supermarket, normalize_supermarket
from .errors import (
    LEVEL_DANGER,
    LEVEL_SUCCESS,
    LEVEL_WARNING,
    CatalogError,
    CollaboratorError,
    InvalidCandidateError,
    NoProductsDetectedError,
    ProductLookupMissError,
    SupermarketNotDetectedError,
    UnknownSupermarketError,
)
from .lookup import LookupRecord
from .matcher import match_product
from .parser import parse_receipt_text
from .staging import StagingSession
from .store import Catalog, CommitResult


LOG = get_logger("catalog-service")


class OcrEngine(Protocol):
    def recognize(self, image_path: str) -> str: ...


class ProductLookup(Protocol):
    def lookup(self, barcode: str) -> Optional[LookupRecord]: ...


@dataclass
class Notice:
    level: str
    message: str

    def to_dict(self) -> dict:
        return {"level": self.level, "message": self.message}


def notice_for(outcome: Union[CommitResult, BaseException]) -> Notice:
    """Translate a commit result or a failed action into a user notice."""
    if isinstance(outcome, CommitResult):
        if outcome.updated or outcome.added:
            return Notice(
                LEVEL_SUCCESS,
                f"Ticket procesado: {outcome.updated} actualizados y {outcome.added} nuevos añadidos.",
            )
        return Notice(LEVEL_WARNING, "No se guardó ningún producto.")
    if isinstance(outcome, CatalogError):
        return Notice(outcome.level, str(outcome))
    return Notice(LEVEL_DANGER, "Error al acceder a la cámara o procesar imagen")


def _current_price(product: Product, supermarket: str) -> Optional[float]:
    entry = product.price_for(supermarket)
    if entry is None or not entry.available or entry.price <= 0:
        return None
    return entry.price


def _require_supermarket(value: Optional[str]) -> str:
    name = normalize_supermarket(value)
    if name == SUPERMARKET_OTHER:
        raise UnknownSupermarketError(value)
    return name


class CatalogImportService:
    """Builds staging sessions from receipts, barcodes and manual input.

    Owns no state besides its collaborators; the catalog is only read here
    until confirm() hands the confirmed list to Catalog.commit.
    """

    def __init__(self, catalog: Catalog, *, ocr: Optional[OcrEngine] = None,
                 lookup: Optional[ProductLookup] = None) -> None:
        self.catalog = catalog
        self.ocr = ocr
        self.lookup = lookup

    # ---------- receipt path ----------
    def candidates_from_text(self, text: str, supermarket: str) -> List[StagingCandidate]:
        snapshot = self.catalog.products()
        out: List[StagingCandidate] = []
        for line in parse_receipt_text(text):
            existing = match_product(line.name, snapshot)
            if existing is not None:
                LOG.debug(f"Line {line.name!r} matched catalog product {existing.name!r}")
                out.append(
                    StagingCandidate(
                        name=existing.name,
                        price=line.price,
                        supermarket=supermarket,
                        category=existing.category,
                        unit=existing.unit,
                        image=existing.image,
                        is_new=False,
                        existing_id=existing.id,
                        old_price=_current_price(existing, supermarket),
                    )
                )
                continue
            out.append(
                StagingCandidate(
                    name=capitalize_first(line.name),
                    price=line.price,
                    supermarket=supermarket,
                    description=f"Producto detectado automáticamente desde ticket de {supermarket}",
                )
            )
        return out

    def stage_receipt_text(self, text: str) -> StagingSession:
        supermarket = detect_supermarket(text)
        if supermarket is None:
            LOG.warning("Receipt rejected: no known supermarket in text")
            raise SupermarketNotDetectedError()
        candidates = self.candidates_from_text(text, supermarket)
        if not candidates:
            LOG.warning(f"Receipt from {supermarket} produced no product lines")
            raise NoProductsDetectedError()
        return StagingSession(candidates, source="receipt", supermarket=supermarket)

    def stage_receipt_image(self, image_path: str) -> StagingSession:
        if self.ocr is None:
            raise CollaboratorError("No hay motor OCR configurado.")
        try:
            text = self.ocr.recognize(image_path)
        except Exception as exc:
            LOG.error(f"OCR failed for {image_path}: {exc}")
            raise CollaboratorError("Error al acceder a la cámara o procesar imagen") from exc
        return self.stage_receipt_text(text or "")

    # ---------- barcode path ----------
    def candidate_from_lookup(self, record: LookupRecord, supermarket: str,
                              price: Optional[float] = None) -> StagingCandidate:
        snapshot = self.catalog.products()
        existing = match_product(record.display_name, snapshot) if record.display_name else None
        weight, weight_unit, pieces = parse_quantity(record.quantity)
        category = None
        if record.categories:
            category = record.categories.split(",")[0].strip() or None
        old_price = _current_price(existing, supermarket) if existing else None
        if price is None:
            price = old_price or 0.0
        return StagingCandidate(
            name=record.display_name or (existing.name if existing else f"Producto {record.barcode}"),
            price=price,
            supermarket=supermarket,
            category=category or (existing.category if existing else DEFAULT_CATEGORY),
            unit=existing.unit if existing else DEFAULT_UNIT,
            image=record.image_url or (existing.image if existing else PLACEHOLDER_IMAGE),
            is_new=existing is None,
            existing_id=existing.id if existing else None,
            old_price=old_price,
            description=record.brands,
            weight=weight if weight is not None else (existing.weight if existing else None),
            weight_unit=weight_unit or (existing.weight_unit if existing else None),
            pieces=pieces if pieces is not None else (existing.pieces if existing else None),
            nutritional_info=record.nutrition,
        )

    def stage_barcode(self, barcode: str, supermarket: str, price: Any = None) -> StagingSession:
        name = _require_supermarket(supermarket)
        code = (barcode or "").strip()
        if not code:
            raise InvalidCandidateError("No se escaneó ningún código.")
        if self.lookup is None:
            raise CollaboratorError("No hay servicio de búsqueda de productos configurado.")
        try:
            record = self.lookup.lookup(code)
        except Exception as exc:
            LOG.error(f"Product lookup failed for {code}: {exc}")
            raise CollaboratorError("Error al consultar el producto.") from exc
        if record is None:
            raise ProductLookupMissError(code)
        parsed_price = coerce_price(price) if price is not None else None
        candidate = self.candidate_from_lookup(record, name, parsed_price)
        return StagingSession([candidate], source="barcode", supermarket=name)

    # ---------- manual path ----------
    def stage_manual(
        self,
        name: str,
        price: Any,
        supermarket: str,
        *,
        category: Optional[str] = None,
        unit: Optional[str] = None,
        image: Optional[str] = None,
    ) -> StagingSession:
        market = _require_supermarket(supermarket)
        if not isinstance(name, str) or not name.strip():
            raise InvalidCandidateError("El nombre del producto es obligatorio.")
        value = coerce_price(price)
        if value is None or value <= 0:
            raise InvalidCandidateError("El precio debe ser mayor que cero.")
        candidate = StagingCandidate(
            name=name.strip(),
            price=value,
            supermarket=market,
            category=(category or "").strip() or DEFAULT_CATEGORY,
            unit=(unit or "").strip() or DEFAULT_UNIT,
            image=(image or "").strip() or PLACEHOLDER_IMAGE,
            is_new=True,
        )
        return StagingSession([candidate], source="manual", supermarket=market)

    # ---------- commit ----------
    def confirm(self, session: StagingSession) -> CommitResult:
        confirmed = session.confirm()
        return self.catalog.commit(confirmed)
