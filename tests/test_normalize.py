import math

from price_comparator.domain.normalize import (
    capitalize_first,
    coerce_price,
    parse_decimal_comma,
    parse_quantity,
)


def test_decimal_comma_and_dot():
    assert parse_decimal_comma("1,25") == 1.25
    assert parse_decimal_comma("9.45") == 9.45
    assert parse_decimal_comma("abc") is None


def test_coerce_price_rejects_non_finite():
    assert coerce_price("0,35") == 0.35
    assert coerce_price(3) == 3.0
    assert coerce_price(float("nan")) is None
    assert coerce_price("-inf") is None
    assert coerce_price([1]) is None
    assert not math.isnan(coerce_price("-1,00"))


def test_capitalize_first():
    assert capitalize_first("TOMATE RAMA") == "Tomate rama"
    assert capitalize_first("  leche ") == "Leche"
    assert capitalize_first("") == ""


def test_parse_quantity():
    assert parse_quantity("500 g") == (500.0, "g", None)
    assert parse_quantity("6 x 1 L") == (1.0, "l", 6)
    assert parse_quantity("1,5L") == (1.5, "l", None)
    assert parse_quantity("a bunch") == (None, None, None)
    assert parse_quantity(None) == (None, None, None)
