"""OCR collaborator: receipt image -> plain text via Tesseract."""

from __future__ import annotations

from typing import Optional

import pytesseract
from PIL import Image, ImageOps

from ..logging import get_logger

LOG = get_logger("catalog-ocr")


class TesseractOcr:
    def __init__(self, lang: str = "spa", cmd: Optional[str] = None) -> None:
        self.lang = lang
        if cmd:
            pytesseract.pytesseract.tesseract_cmd = cmd

    def recognize(self, image_path: str) -> str:
        """Grayscale + autocontrast, then run Tesseract with the configured language."""
        LOG.info(f"Recognizing receipt text ({self.lang})")
        LOG.debug(f"Image path: {image_path}")
        with Image.open(image_path) as img:
            gray = ImageOps.autocontrast(ImageOps.grayscale(img))
            text = pytesseract.image_to_string(gray, lang=self.lang)
        LOG.debug(f"OCR produced {len(text)} chars")
        return text
