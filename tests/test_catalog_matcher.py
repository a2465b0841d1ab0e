from price_comparator.catalog.matcher import find_exact, match_product
from price_comparator.domain.models import Product


def _p(pid: str, name: str) -> Product:
    return Product(id=pid, name=name, description="", category="Otros", unit="unidad", image="")


CATALOG = [_p("1", "Leche Entera 1L"), _p("2", "Pan de Molde 450g"), _p("3", "Pan")]


def test_exact_name_is_reflexive():
    distinct = CATALOG[:2]
    for product in distinct:
        assert match_product(product.name, distinct) is product
    assert match_product("pan", [CATALOG[2]]) is CATALOG[2]


def test_candidate_containing_product_name_matches():
    assert match_product("LECHE ENTERA 1L PACK", CATALOG).id == "1"


def test_product_name_containing_candidate_matches():
    assert match_product("molde", CATALOG).id == "2"


def test_first_match_in_catalog_order_wins():
    # "pan" is contained in both "Pan de Molde 450g" and "Pan"
    assert match_product("pan", CATALOG).id == "2"


def test_no_match_returns_none():
    assert match_product("tomate rama", CATALOG) is None
    assert match_product("", CATALOG) is None


def test_find_exact_is_strict():
    assert find_exact("pan", CATALOG).id == "3"
    assert find_exact("  PAN DE MOLDE 450G ", CATALOG).id == "2"
    assert find_exact("molde", CATALOG) is None
