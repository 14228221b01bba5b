from __future__ import annotations

import logging
import re
import threading
from io import BytesIO
from typing import Any, Callable

from pypdf import PdfReader

from .attempts import raise_if_cancelled

logger = logging.getLogger(__name__)

ReaderFactory = Callable[[BytesIO], Any]

_SPACE_RUN_RE = re.compile(r"[^\S\n]+")
_BLANK_LINES_RE = re.compile(r"\n\s*\n")


def normalize_pdf_text(text: str) -> str:
    """Collapse whitespace runs and condense blank lines to at most one."""
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    normalized = _SPACE_RUN_RE.sub(" ", normalized)
    normalized = _BLANK_LINES_RE.sub("\n\n", normalized)
    return normalized.strip()


class PdfTextExtractor:
    """Recovers the text layer of a PDF page by page.

    Each page's text-showing fragments are collected in content-stream order and
    joined with single spaces; pages are separated by a blank line. A page that
    fails is logged and skipped so the remaining pages still contribute.
    """

    def __init__(self, reader_factory: ReaderFactory | None = None):
        self._reader_factory = reader_factory or PdfReader
        self.page_errors: list[str] = []

    def _page_text(self, page: Any) -> str:
        fragments: list[str] = []

        def visitor_text(text: str, *_args: Any) -> None:
            value = (text or "").strip()
            if value:
                fragments.append(value)

        page.extract_text(visitor_text=visitor_text)
        return " ".join(fragments)

    def extract(self, content: bytes, cancel: threading.Event | None = None) -> str:
        self.page_errors = []
        reader = self._reader_factory(BytesIO(content))
        pages: list[str] = []
        for index, page in enumerate(reader.pages, start=1):
            raise_if_cancelled(cancel)
            try:
                page_text = self._page_text(page)
            except Exception as exc:  # noqa: BLE001 - one broken page must not sink the document
                logger.warning("pdf_page_extract_failed page=%s error=%s", index, exc)
                self.page_errors.append(f"Page {index} could not be read: {exc}")
                continue
            logger.debug("pdf_page_extracted page=%s chars=%s", index, len(page_text))
            if page_text.strip():
                pages.append(page_text)
        return normalize_pdf_text("\n\n".join(pages))

    def __call__(self, content: bytes, cancel: threading.Event) -> str:
        return self.extract(content, cancel)
