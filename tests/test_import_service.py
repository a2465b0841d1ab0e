from __future__ import annotations

from typing import Optional

import pytest

from price_comparator.catalog import CatalogImportService, notice_for
from price_comparator.catalog.errors import (
    CollaboratorError,
    InvalidCandidateError,
    NoProductsDetectedError,
    ProductLookupMissError,
    SupermarketNotDetectedError,
    UnknownSupermarketError,
)
from price_comparator.catalog.lookup import LookupRecord
from price_comparator.domain.models import NutritionalInfo


RECEIPT = "\n".join(
    [
        "MERCADONA, S.A. A-46103834",
        "C/ Mayor 1 Valencia",
        "FACTURA SIMPLIFICADA: 2831-014-123456",
        "2 leche entera 1,25 2,50",
        "1 TOMATE RAMA 1,99",
        "TOTAL 4,49",
    ]
)


class FakeOcr:
    def __init__(self, text: str = RECEIPT, error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error

    def recognize(self, image_path: str) -> str:
        if self.error:
            raise self.error
        return self.text


class FakeLookup:
    def __init__(self, record: Optional[LookupRecord] = None, error: Optional[Exception] = None) -> None:
        self.record = record
        self.error = error
        self.calls = []

    def lookup(self, barcode: str) -> Optional[LookupRecord]:
        self.calls.append(barcode)
        if self.error:
            raise self.error
        return self.record


def test_receipt_text_is_staged_against_the_catalog(small_catalog):
    service = CatalogImportService(small_catalog)
    session = service.stage_receipt_text(RECEIPT)

    assert session.supermarket == "Mercadona"
    first, second = session.candidates
    assert (first.name, first.price, first.is_new, first.existing_id) == ("Leche Entera", 1.25, False, "p-leche")
    assert first.old_price == 0.95
    assert first.category == "Lácteos"
    assert (second.name, second.price, second.is_new, second.existing_id) == ("Tomate rama", 1.99, True, None)
    assert second.category == "Otros" and second.unit == "unidad"
    assert "Mercadona" in second.description


def test_confirming_the_session_commits_and_reports_counts(small_catalog):
    service = CatalogImportService(small_catalog)
    session = service.stage_receipt_text(RECEIPT)
    session.update_price(1, "2,05")
    result = service.confirm(session)

    assert (result.updated, result.added) == (1, 1)
    assert small_catalog.get("p-leche").price_for("Mercadona").price == 1.25
    notice = notice_for(result)
    assert notice.level == "success"
    assert notice.message == "Ticket procesado: 1 actualizados y 1 nuevos añadidos."
    tomato = small_catalog.get(result.added_ids[0])
    assert tomato.price_for("Mercadona").price == 2.05


def test_cancelled_session_leaves_catalog_untouched(small_catalog):
    service = CatalogImportService(small_catalog)
    saved = small_catalog.store.load("products")
    session = service.stage_receipt_text(RECEIPT)
    session.cancel()
    assert small_catalog.store.load("products") == saved


def test_receipt_without_known_vendor_is_a_hard_stop(small_catalog):
    service = CatalogImportService(small_catalog)
    with pytest.raises(SupermarketNotDetectedError) as exc_info:
        service.stage_receipt_text("2 leche entera 1,25 2,50")
    assert notice_for(exc_info.value).level == "warning"


def test_receipt_without_product_lines(small_catalog):
    service = CatalogImportService(small_catalog)
    with pytest.raises(NoProductsDetectedError):
        service.stage_receipt_text("LIDL\nTOTAL 3,00\ngracias por su visita")


def test_image_path_runs_ocr_first(small_catalog):
    service = CatalogImportService(small_catalog, ocr=FakeOcr())
    session = service.stage_receipt_image("ticket.jpg")
    assert len(session) == 2


def test_ocr_failure_becomes_collaborator_error(small_catalog):
    boom = OSError("cannot open image")
    service = CatalogImportService(small_catalog, ocr=FakeOcr(error=boom))
    with pytest.raises(CollaboratorError) as exc_info:
        service.stage_receipt_image("ticket.jpg")
    assert exc_info.value.__cause__ is boom
    assert notice_for(exc_info.value).level == "danger"


def test_barcode_for_unknown_product_maps_lookup_fields(small_catalog):
    record = LookupRecord(
        barcode="8410000000001",
        name="Whole milk yogurt",
        name_es="Yogur natural",
        image_url="https://img/yogur.jpg",
        categories="Lácteos, Yogures",
        quantity="4 x 125 g",
        brands="Hacendado",
        nutrition=NutritionalInfo(calories=61.0, nutri_score="a", nova_group=1),
    )
    service = CatalogImportService(small_catalog, lookup=FakeLookup(record))
    session = service.stage_barcode("8410000000001", "mercadona", "1,10")

    (candidate,) = session.candidates
    assert session.source == "barcode"
    assert candidate.name == "Yogur natural"
    assert candidate.supermarket == "Mercadona"
    assert candidate.price == 1.10
    assert candidate.category == "Lácteos"
    assert (candidate.weight, candidate.weight_unit, candidate.pieces) == (125.0, "g", 4)
    assert candidate.is_new is True
    assert candidate.nutritional_info.nutri_score == "a"

    result = service.confirm(session)
    product = small_catalog.get(result.added_ids[0])
    assert product.nutritional_info.calories == 61.0
    assert product.image == "https://img/yogur.jpg"


def test_barcode_matching_catalog_falls_back_to_known_values(small_catalog):
    record = LookupRecord(barcode="123", name="Leche entera")
    service = CatalogImportService(small_catalog, lookup=FakeLookup(record))
    (candidate,) = service.stage_barcode("123", "Lidl").candidates

    assert candidate.existing_id == "p-leche"
    assert candidate.is_new is False
    assert candidate.price == 0.92
    assert candidate.old_price == 0.92
    assert candidate.category == "Lácteos"
    assert candidate.image == "img.png"


def test_barcode_lookup_miss_and_failure(small_catalog):
    service = CatalogImportService(small_catalog, lookup=FakeLookup(None))
    with pytest.raises(ProductLookupMissError):
        service.stage_barcode("000", "Lidl")

    service = CatalogImportService(small_catalog, lookup=FakeLookup(error=ConnectionError("offline")))
    with pytest.raises(CollaboratorError):
        service.stage_barcode("000", "Lidl")

    with pytest.raises(UnknownSupermarketError):
        service.stage_barcode("000", "Aldi")


def test_manual_entry_validation_and_defaults(small_catalog):
    service = CatalogImportService(small_catalog)
    with pytest.raises(InvalidCandidateError):
        service.stage_manual("  ", "1,00", "Lidl")
    with pytest.raises(InvalidCandidateError):
        service.stage_manual("Agua", "0", "Lidl")
    with pytest.raises(InvalidCandidateError):
        service.stage_manual("Agua", "gratis", "Lidl")

    session = service.stage_manual("Agua mineral 1,5L", "0,35", "consum")
    (candidate,) = session.candidates
    assert candidate.is_new is True
    assert (candidate.category, candidate.unit, candidate.supermarket) == ("Otros", "unidad", "Consum")


def test_manual_entry_with_existing_name_becomes_an_update(small_catalog):
    service = CatalogImportService(small_catalog)
    result = service.confirm(service.stage_manual("pan", 0.70, "Carrefour"))
    assert (result.updated, result.added) == (1, 0)
    assert small_catalog.get("p-pan").price_for("Carrefour").price == 0.70


def test_unexpected_errors_map_to_generic_danger_notice():
    notice = notice_for(RuntimeError("camera exploded"))
    assert notice.level == "danger"
