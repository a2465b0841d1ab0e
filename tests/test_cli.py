from __future__ import annotations

import json
import logging
from pathlib import Path

from price_comparator.catalog import Catalog, SqliteBlobStore
from price_comparator.cli.main import main
from price_comparator.logging import ROOT_LOGGER


def _catalog(db: Path) -> Catalog:
    return Catalog(SqliteBlobStore(db_path=str(db)))


def test_init_seeds_the_store(tmp_path: Path, capsys) -> None:
    db = tmp_path / "catalog.sqlite3"
    assert main(["--db", str(db), "init"]) == 0
    assert capsys.readouterr().out.strip() == str(db)
    assert len(_catalog(db)) == 7


def test_receipt_dry_run_then_commit(tmp_path: Path, capsys) -> None:
    db = tmp_path / "catalog.sqlite3"
    ticket = tmp_path / "ticket.txt"
    ticket.write_text("MERCADONA\n1 TOMATE RAMA 1,99\nTOTAL 1,99\n", encoding="utf-8")

    assert main(["--db", str(db), "receipt", "--text-file", str(ticket)]) == 0
    staged = json.loads(capsys.readouterr().out)
    assert staged["supermarket"] == "Mercadona"
    assert [c["name"] for c in staged["candidates"]] == ["Tomate rama"]
    assert len(_catalog(db)) == 7

    assert main(["--db", str(db), "receipt", "--text-file", str(ticket), "--commit"]) == 0
    catalog = _catalog(db)
    assert len(catalog) == 8
    assert [p.name for p in catalog.search("tomate")] == ["Tomate rama"]


def test_catalog_errors_become_exit_codes(tmp_path: Path) -> None:
    db = tmp_path / "catalog.sqlite3"
    ticket = tmp_path / "ticket.txt"
    ticket.write_text("1 TOMATE RAMA 1,99\n", encoding="utf-8")

    assert main(["--db", str(db), "receipt", "--text-file", str(ticket)]) == 1
    assert main(["--db", str(db), "products", "show", "missing"]) == 1
    assert main(["--db", str(db), "add", "--name", "Agua", "--price", "0,35", "--supermarket", "Aldi"]) == 1


def test_manual_add_updates_existing_product(tmp_path: Path) -> None:
    db = tmp_path / "catalog.sqlite3"
    assert main(["--db", str(db), "add", "--name", "leche entera 1l", "--price", "1,05", "--supermarket", "Consum"]) == 0
    catalog = _catalog(db)
    assert len(catalog) == 7
    (leche,) = catalog.search("leche entera")
    assert leche.price_for("Consum").price == 1.05


def test_verbose_flag_lowers_log_level(tmp_path: Path) -> None:
    root = logging.getLogger(ROOT_LOGGER)
    before = root.level
    try:
        assert main(["-v", "--db", str(tmp_path / "catalog.sqlite3"), "init"]) == 0
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(before)
