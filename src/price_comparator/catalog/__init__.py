"""Product catalog and receipt/barcode import pipeline.

Modules:
- parser: receipt OCR text -> (name, unit price) lines
- matcher: loose catalog matching and the exact-name commit check
- staging: editable StagingSession between extraction and commit
- store: Catalog, the persisted product store with price history
- storage: key/value blob stores (SQLite, memory)
- seed: bundled default products and synthesized history
- lookup: Open Food Facts barcode client
- ocr: Tesseract OCR adapter
- service: CatalogImportService composing the above
"""

from .store import Catalog, CommitResult
from .staging import StagingSession
from .storage import MemoryBlobStore, SqliteBlobStore
from .service import CatalogImportService, Notice, notice_for
from .frontend.app import create_app

__all__ = [
    "Catalog",
    "CommitResult",
    "StagingSession",
    "MemoryBlobStore",
    "SqliteBlobStore",
    "CatalogImportService",
    "Notice",
    "notice_for",
    "create_app",
]
