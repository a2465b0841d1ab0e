from __future__ import annotations

# Notice levels surfaced to the user.
LEVEL_SUCCESS = "success"
LEVEL_WARNING = "warning"
LEVEL_DANGER = "danger"


class CatalogError(Exception):
    """Base error for a single failed user action. Never fatal."""

    level = LEVEL_DANGER


class SupermarketNotDetectedError(CatalogError):
    level = LEVEL_WARNING

    def __init__(self) -> None:
        super().__init__("No se identificó el supermercado en el ticket.")


class NoProductsDetectedError(CatalogError):
    level = LEVEL_WARNING

    def __init__(self) -> None:
        super().__init__("No se detectaron productos válidos.")


class ProductLookupMissError(CatalogError):
    level = LEVEL_WARNING

    def __init__(self, barcode: str) -> None:
        super().__init__(f"Producto no encontrado para el código {barcode}.")
        self.barcode = barcode


class CollaboratorError(CatalogError):
    """OCR, camera, barcode or network failure caught at the boundary."""

    level = LEVEL_DANGER


class InvalidCandidateError(CatalogError, ValueError):
    level = LEVEL_WARNING


class SessionClosedError(CatalogError):
    level = LEVEL_WARNING


class UnknownSupermarketError(CatalogError, ValueError):
    level = LEVEL_WARNING

    def __init__(self, supermarket: object) -> None:
        super().__init__(f"Supermercado desconocido: {supermarket!r}")
        self.supermarket = supermarket


class ProductNotFoundError(CatalogError, KeyError):
    level = LEVEL_WARNING

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Producto no encontrado: {product_id}")
        self.product_id = product_id

    def __str__(self) -> str:
        return str(self.args[0])
