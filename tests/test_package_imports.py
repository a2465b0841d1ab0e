import importlib

import pytest


MODULES = [
    "price_comparator",
    "price_comparator.config",
    "price_comparator.paths",
    "price_comparator.domain.models",
    "price_comparator.domain.normalize",
    "price_comparator.domain.supermarkets",
    "price_comparator.catalog",
    "price_comparator.catalog.errors",
    "price_comparator.catalog.lookup",
    "price_comparator.catalog.matcher",
    "price_comparator.catalog.ocr",
    "price_comparator.catalog.parser",
    "price_comparator.catalog.seed",
    "price_comparator.catalog.service",
    "price_comparator.catalog.staging",
    "price_comparator.catalog.storage",
    "price_comparator.catalog.store",
    "price_comparator.catalog.frontend.app",
    "price_comparator.cli.main",
]


@pytest.mark.parametrize("name", MODULES)
def test_module_imports(name):
    assert importlib.import_module(name).__name__ == name
