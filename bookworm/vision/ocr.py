from __future__ import annotations

from typing import Optional

import pytesseract
from PIL import Image

from bookworm.errors import OCRError


# Shorter OCR output is treated as "no readable text on the page".
MIN_PAGE_TEXT_LENGTH = 10


def extract_page_text(
    image: Image.Image,
    language: str = "eng",
    tesseract_cmd: Optional[str] = None,
) -> str:
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")

    try:
        return pytesseract.image_to_string(image, lang=language).strip()
    except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as exc:
        raise OCRError(f"OCR failed: {exc}") from exc


def has_readable_text(text: str) -> bool:
    return len((text or "").strip()) > MIN_PAGE_TEXT_LENGTH
