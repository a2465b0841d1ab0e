from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Optional, Sequence

from ..config import load_db_path, load_lookup, load_tesseract
from ..logging import get_logger, set_level
from ..paths import expand_abs, find_project_root
from ..catalog import Catalog, CatalogImportService, SqliteBlobStore, StagingSession, notice_for
from ..catalog.errors import CatalogError
from ..catalog.lookup import OpenFoodFactsClient

LOG = get_logger("cli-main")


def _open_catalog(db_path: Optional[str]) -> Catalog:
    root = find_project_root(os.getcwd())
    path = expand_abs(db_path) if db_path else load_db_path(root)
    return Catalog(SqliteBlobStore(root, db_path=path))


def _print_json(payload: object) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _finish_session(service: CatalogImportService, session: StagingSession, commit: bool) -> int:
    _print_json(session.to_dict())
    if not commit:
        session.cancel()
        LOG.info("Dry run: pass --commit to apply these candidates")
        return 0
    result = service.confirm(session)
    notice = notice_for(result)
    LOG.info(f"[{notice.level}] {notice.message}")
    _print_json(result.to_dict())
    return 0


def _add_products_cli(subparsers: argparse._SubParsersAction) -> None:
    products = subparsers.add_parser("products", help="Query or edit the product catalog.")
    sub = products.add_subparsers(dest="products_command", required=True)

    ls = sub.add_parser("list", help="List products, optionally filtered")
    ls.add_argument("--search", default="")
    ls.add_argument("--category", default="Todos")

    def _list(ns: argparse.Namespace) -> int:
        catalog = _open_catalog(ns.db)
        rows = []
        for product in catalog.search(ns.search, ns.category):
            cheapest = Catalog.cheapest(product)
            rows.append({
                "id": product.id,
                "name": product.name,
                "category": product.category,
                "cheapest": cheapest.to_dict() if cheapest else None,
            })
        _print_json(rows)
        return 0

    ls.set_defaults(handler=_list)

    show = sub.add_parser("show", help="Show one product with its prices")
    show.add_argument("product_id")

    def _show(ns: argparse.Namespace) -> int:
        _print_json(_open_catalog(ns.db).get(ns.product_id).to_dict())
        return 0

    show.set_defaults(handler=_show)

    hist = sub.add_parser("history", help="Show the price history of a product")
    hist.add_argument("product_id")
    hist.add_argument("--supermarket")

    def _history(ns: argparse.Namespace) -> int:
        entries = _open_catalog(ns.db).history(ns.product_id, ns.supermarket)
        _print_json([h.to_dict() for h in entries])
        return 0

    hist.set_defaults(handler=_history)

    delete = sub.add_parser("delete", help="Delete a product and its history")
    delete.add_argument("product_id")

    def _delete(ns: argparse.Namespace) -> int:
        _open_catalog(ns.db).delete_product(ns.product_id)
        LOG.info(f"Deleted {ns.product_id}")
        return 0

    delete.set_defaults(handler=_delete)


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    parser = argparse.ArgumentParser(
        prog="price-comparator",
        description="Grocery catalog with per-supermarket prices, fed from receipts and barcodes.",
    )
    parser.add_argument("--db", help="SQLite catalog path (defaults to CATALOG_DB_PATH or var/catalog)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-line parse and match decisions")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Create the catalog store, seeding it on first use")

    def _init(ns: argparse.Namespace) -> int:
        catalog = _open_catalog(ns.db)
        print(catalog.store.db_path)
        LOG.info(f"Catalog ready with {len(catalog)} product(s)")
        return 0

    init.set_defaults(handler=_init)

    _add_products_cli(subparsers)

    receipt = subparsers.add_parser("receipt", help="Stage products from a receipt (text or image)")
    src = receipt.add_mutually_exclusive_group(required=True)
    src.add_argument("--text-file", help="File holding OCR text")
    src.add_argument("--image", help="Receipt photo to run through Tesseract")
    receipt.add_argument("--commit", action="store_true", help="Confirm the staged candidates")

    def _receipt(ns: argparse.Namespace) -> int:
        catalog = _open_catalog(ns.db)
        if ns.image:
            from ..catalog.ocr import TesseractOcr

            lang, cmd = load_tesseract(os.getcwd())
            service = CatalogImportService(catalog, ocr=TesseractOcr(lang=lang, cmd=cmd))
            session = service.stage_receipt_image(expand_abs(ns.image))
        else:
            with open(expand_abs(ns.text_file), "r", encoding="utf-8") as f:
                text = f.read()
            service = CatalogImportService(catalog)
            session = service.stage_receipt_text(text)
        return _finish_session(service, session, ns.commit)

    receipt.set_defaults(handler=_receipt)

    barcode = subparsers.add_parser("barcode", help="Stage a product from its barcode (Open Food Facts)")
    barcode.add_argument("code")
    barcode.add_argument("--supermarket", required=True)
    barcode.add_argument("--price")
    barcode.add_argument("--commit", action="store_true")

    def _barcode(ns: argparse.Namespace) -> int:
        base_url, timeout = load_lookup(os.getcwd())
        service = CatalogImportService(_open_catalog(ns.db), lookup=OpenFoodFactsClient(base_url, timeout=timeout))
        session = service.stage_barcode(ns.code, ns.supermarket, ns.price)
        return _finish_session(service, session, ns.commit)

    barcode.set_defaults(handler=_barcode)

    add = subparsers.add_parser("add", help="Add or update one product by hand")
    add.add_argument("--name", required=True)
    add.add_argument("--price", required=True)
    add.add_argument("--supermarket", required=True)
    add.add_argument("--category")
    add.add_argument("--unit")
    add.add_argument("--image")

    def _add(ns: argparse.Namespace) -> int:
        service = CatalogImportService(_open_catalog(ns.db))
        session = service.stage_manual(
            ns.name, ns.price, ns.supermarket, category=ns.category, unit=ns.unit, image=ns.image
        )
        return _finish_session(service, session, True)

    add.set_defaults(handler=_add)

    serve = subparsers.add_parser("serve", help="Run the catalog JSON API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8001)
    serve.add_argument("--log-level", default="info")
    serve.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        help="Allowed CORS origin (can be provided multiple times, use '*' for any).",
    )

    def _serve(ns: argparse.Namespace) -> int:
        from ..catalog.frontend import create_app
        import uvicorn

        app = create_app(
            root_dir=os.getcwd(),
            catalog=_open_catalog(ns.db),
            allow_origins=ns.allow_origins,
        )
        uvicorn.run(app, host=ns.host, port=ns.port, log_level=ns.log_level)
        return 0

    serve.set_defaults(handler=_serve)

    args = parser.parse_args(provided)
    if args.verbose:
        set_level("DEBUG")
    try:
        code = args.handler(args)
    except CatalogError as exc:
        notice = notice_for(exc)
        LOG.error(f"[{notice.level}] {notice.message}")
        code = 1
    LOG.info(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
