from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List

import fitz  # PyMuPDF
import requests

from .errors import ExtractionFailed


LOGGER = logging.getLogger(__name__)

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def split_paragraphs(text: str) -> List[str]:
    """Split extracted text on blank lines into ranking chunks, dropping empty ones."""
    return [part.strip() for part in PARAGRAPH_BREAK.split(text or "") if part.strip()]


class TextExtractor:
    """Pulls plain text out of course-material PDFs addressed by URL or local path."""

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout

    def fetch(self, locator: str) -> bytes:
        try:
            if locator.startswith(("http://", "https://")):
                response = requests.get(locator, timeout=self.timeout)
                response.raise_for_status()
                return response.content
            return Path(locator).read_bytes()
        except (requests.RequestException, OSError) as exc:
            raise ExtractionFailed(f"Could not fetch {locator}: {exc}") from exc

    def parse(self, payload: bytes, locator: str) -> str:
        try:
            with fitz.open(stream=payload, filetype="pdf") as document:
                pages = [page.get_text() for page in document]
        except (RuntimeError, ValueError) as exc:
            raise ExtractionFailed(f"Could not extract text from {locator}: {exc}") from exc
        LOGGER.debug("Extracted %d pages from %s", len(pages), locator)
        return "\n\n".join(page.strip() for page in pages if page.strip())

    def extract_text(self, locator: str) -> str:
        return self.parse(self.fetch(locator), locator)
