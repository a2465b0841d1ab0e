from price_comparator.catalog.parser import parse_line, parse_receipt_text
from price_comparator.domain.models import ParsedLine


def test_multi_price_line_uses_unit_price_not_total():
    assert parse_line("2 salmorejo fresco 1,25 2,50") == ParsedLine("salmorejo fresco", 1.25)
    assert parse_line("3 YOGUR NATURAL 0.45 1.35") == ParsedLine("YOGUR NATURAL", 0.45)


def test_receipt_scenario_drops_total_line():
    lines = parse_receipt_text("2 leche entera 1,25 2,50\nTOTAL 10,00")
    assert lines == [ParsedLine(name="leche entera", price=1.25)]


def test_single_price_line():
    assert parse_line("1 ls tortilla 1/2 p/ca 4,50") == ParsedLine("ls tortilla 1/2 p/ca", 4.50)


def test_fallback_takes_trailing_price_and_strips_quantity():
    assert parse_line("PAN BARRA 0,65") == ParsedLine("PAN BARRA", 0.65)
    assert parse_line("2 MANZANA1,99") == ParsedLine("MANZANA", 1.99)


def test_lines_without_price_are_skipped():
    assert parse_line("MERCADONA, S.A. A-46103834") is None
    assert parse_line("   ") is None
    assert parse_line("") is None


def test_short_names_and_non_positive_prices_are_rejected():
    assert parse_line("1 AB 1,00") is None
    assert parse_line("1 BOLSA PLASTICO 0,00") is None


def test_header_and_footer_noise_is_discarded():
    text = "\n".join(
        [
            "FACTURA SIMPLIFICADA 2,00",
            "1 SUBTOTAL 3,00",
            "DESCRIPCIÓN 1,00",
            "2 Total compra 5,00 10,00",
        ]
    )
    assert parse_receipt_text(text) == []


def test_order_is_preserved_and_duplicates_kept():
    text = "MERCADONA\n\n1 PAN BARRA 0,65\r\n1 HUEVOS L 2,35\n1 PAN BARRA 0,65\n"
    lines = parse_receipt_text(text)
    assert [line.name for line in lines] == ["PAN BARRA", "HUEVOS L", "PAN BARRA"]
    assert [line.price for line in lines] == [0.65, 2.35, 0.65]
