from __future__ import annotations

from typing import Any, Dict, List, Optional

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ...config import load_db_path, load_lookup, load_tesseract
from ...logging import get_logger
from ...paths import find_project_root
from ...domain.supermarkets import SUPERMARKET_LOGOS, SUPERMARKETS
from ..errors import CatalogError, CollaboratorError, ProductNotFoundError, SessionClosedError
from ..lookup import OpenFoodFactsClient
from ..service import CatalogImportService, OcrEngine, ProductLookup, notice_for
from ..staging import StagingSession
from ..storage import SqliteBlobStore
from ..store import Catalog


LOG = get_logger("catalog-frontend")


def _status_for(exc: Exception) -> int:
    if isinstance(exc, ProductNotFoundError):
        return 404
    if isinstance(exc, SessionClosedError):
        return 409
    if isinstance(exc, CollaboratorError):
        return 502
    return 422


async def _catalog_error(_: Request, exc: Exception) -> JSONResponse:
    notice = notice_for(exc)
    return JSONResponse({"detail": notice.message, "level": notice.level}, status_code=_status_for(exc))


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Body must be JSON") from exc
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object")
    return body


def create_app(
    root_dir: Optional[str] = None,
    *,
    catalog: Optional[Catalog] = None,
    lookup: Optional[ProductLookup] = None,
    ocr: Optional[OcrEngine] = None,
    allow_origins: Optional[List[str]] = None,
) -> Starlette:
    """Create a Starlette app exposing one Catalog and its staging workflow."""

    project_root = find_project_root(root_dir)
    if catalog is None:
        catalog = Catalog(SqliteBlobStore(project_root, db_path=load_db_path(project_root)))
    if lookup is None:
        base_url, timeout = load_lookup(project_root)
        lookup = OpenFoodFactsClient(base_url, timeout=timeout)
    if ocr is None:
        from ..ocr import TesseractOcr

        lang, cmd = load_tesseract(project_root)
        ocr = TesseractOcr(lang=lang, cmd=cmd)

    service = CatalogImportService(catalog, ocr=ocr, lookup=lookup)
    sessions: Dict[str, StagingSession] = {}

    def _session(request: Request) -> StagingSession:
        sid = request.path_params["session_id"]
        session = sessions.get(sid)
        if session is None:
            raise HTTPException(status_code=404, detail="Staging session not found")
        return session

    def _open(session: StagingSession) -> JSONResponse:
        sessions[session.session_id] = session
        return JSONResponse(session.to_dict(), status_code=201)

    async def health(_: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "products": len(catalog)})

    async def products(request: Request) -> JSONResponse:
        qp = request.query_params
        items = catalog.search(qp.get("search") or "", qp.get("category") or "Todos")
        payload = []
        for product in items:
            row = product.to_dict()
            cheapest = Catalog.cheapest(product)
            row["cheapest"] = cheapest.to_dict() if cheapest else None
            payload.append(row)
        return JSONResponse({"items": payload, "total": len(payload)})

    async def product_detail(request: Request) -> JSONResponse:
        product = catalog.get(request.path_params["product_id"])
        row = product.to_dict()
        cheapest = Catalog.cheapest(product)
        row["cheapest"] = cheapest.to_dict() if cheapest else None
        return JSONResponse(row)

    async def product_delete(request: Request) -> JSONResponse:
        catalog.delete_product(request.path_params["product_id"])
        return JSONResponse({"deleted": request.path_params["product_id"]})

    async def product_history(request: Request) -> JSONResponse:
        entries = catalog.history(request.path_params["product_id"], request.query_params.get("supermarket"))
        return JSONResponse({"items": [h.to_dict() for h in entries]})

    async def supermarkets(_: Request) -> JSONResponse:
        return JSONResponse({"items": [{"name": n, "logo": SUPERMARKET_LOGOS.get(n)} for n in SUPERMARKETS]})

    async def categories(_: Request) -> JSONResponse:
        return JSONResponse({"items": catalog.categories()})

    async def stage_receipt(request: Request) -> JSONResponse:
        body = await _json_body(request)
        text = body.get("text")
        if not isinstance(text, str):
            raise HTTPException(status_code=400, detail="'text' is required")
        return _open(service.stage_receipt_text(text))

    async def stage_barcode(request: Request) -> JSONResponse:
        body = await _json_body(request)
        return _open(service.stage_barcode(str(body.get("barcode") or ""), body.get("supermarket"), body.get("price")))

    async def stage_manual(request: Request) -> JSONResponse:
        body = await _json_body(request)
        session = service.stage_manual(
            body.get("name"),
            body.get("price"),
            body.get("supermarket"),
            category=body.get("category"),
            unit=body.get("unit"),
            image=body.get("image"),
        )
        return _open(session)

    async def staging_detail(request: Request) -> JSONResponse:
        return JSONResponse(_session(request).to_dict())

    def _index(request: Request, session: StagingSession) -> int:
        index = int(request.path_params["index"])
        if index >= len(session):
            raise HTTPException(status_code=404, detail="Candidate index out of range")
        return index

    async def staging_edit(request: Request) -> JSONResponse:
        session = _session(request)
        index = _index(request, session)
        body = await _json_body(request)
        if "name" in body:
            session.update_name(index, body.get("name"))
        if "price" in body:
            session.update_price(index, body.get("price"))
        return JSONResponse(session.to_dict())

    async def staging_remove(request: Request) -> JSONResponse:
        session = _session(request)
        session.remove(_index(request, session))
        return JSONResponse(session.to_dict())

    async def staging_confirm(request: Request) -> JSONResponse:
        session = _session(request)
        result = service.confirm(session)
        sessions.pop(session.session_id, None)
        return JSONResponse({"result": result.to_dict(), "notice": notice_for(result).to_dict()})

    async def staging_cancel(request: Request) -> JSONResponse:
        session = _session(request)
        session.cancel()
        sessions.pop(session.session_id, None)
        return JSONResponse({"session_id": session.session_id, "state": session.state})

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/products", products, methods=["GET"]),
        Route("/api/products/{product_id:str}", product_detail, methods=["GET"]),
        Route("/api/products/{product_id:str}", product_delete, methods=["DELETE"]),
        Route("/api/products/{product_id:str}/history", product_history, methods=["GET"]),
        Route("/api/supermarkets", supermarkets, methods=["GET"]),
        Route("/api/categories", categories, methods=["GET"]),
        Route("/api/staging/receipt", stage_receipt, methods=["POST"]),
        Route("/api/staging/barcode", stage_barcode, methods=["POST"]),
        Route("/api/staging/manual", stage_manual, methods=["POST"]),
        Route("/api/staging/{session_id:str}", staging_detail, methods=["GET"]),
        Route("/api/staging/{session_id:str}/items/{index:int}", staging_edit, methods=["PATCH"]),
        Route("/api/staging/{session_id:str}/items/{index:int}", staging_remove, methods=["DELETE"]),
        Route("/api/staging/{session_id:str}/confirm", staging_confirm, methods=["POST"]),
        Route("/api/staging/{session_id:str}/cancel", staging_cancel, methods=["POST"]),
    ]

    app = Starlette(debug=False, routes=routes, exception_handlers={CatalogError: _catalog_error})

    origins = allow_origins or ["http://localhost:8100", "http://127.0.0.1:8100"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if "*" in origins else origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    LOG.info(f"Catalog API ready with {len(catalog)} product(s)")
    return app


__all__ = ["create_app"]
