from __future__ import annotations

import logging
import threading
from io import BytesIO
from typing import Any, Callable
from zipfile import ZipFile

import defusedxml.ElementTree as ET
from docx import Document

from .attempts import raise_if_cancelled

logger = logging.getLogger(__name__)

DocumentFactory = Callable[[BytesIO], Any]


def _local_name(node: Any) -> str:
    tag = node.tag
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _paragraph_text(paragraph: Any) -> str:
    parts: list[str] = []
    for node in paragraph.iter():
        name = _local_name(node)
        if name == "t" and node.text:
            parts.append(node.text)
        elif name == "tab":
            parts.append("\t")
        elif name in {"br", "cr"}:
            parts.append("\n")
    return "".join(parts)


def paragraphs_in_order(root: Any, cancel: threading.Event | None = None) -> list[str]:
    """Text of every w:p under ``root`` in document order, table cells included.

    Empty paragraphs stay as blank lines so section spacing survives.
    """
    paragraphs: list[str] = []
    for node in root.iter():
        if _local_name(node) != "p":
            continue
        raise_if_cancelled(cancel)
        paragraphs.append(_paragraph_text(node))
    return paragraphs


def _extract_docx_text_fallback(content: bytes, cancel: threading.Event | None = None) -> str:
    with ZipFile(BytesIO(content)) as archive:
        raw = archive.read("word/document.xml")
    root = ET.fromstring(raw)
    return "\n".join(paragraphs_in_order(root, cancel))


class DocxTextExtractor:
    """Concatenates the main document part's text in order; no further scrubbing."""

    def __init__(self, document_factory: DocumentFactory | None = None):
        self._document_factory = document_factory or Document
        self.parser = ""

    def extract(self, content: bytes, cancel: threading.Event | None = None) -> str:
        try:
            document = self._document_factory(BytesIO(content))
            body = document.element.body
        except Exception as exc:  # noqa: BLE001 - bare packages without content types still carry document.xml
            logger.info("docx_package_open_failed error=%s; using zip/xml fallback", exc)
            self.parser = "zipxml-fallback"
            return _extract_docx_text_fallback(content, cancel)

        self.parser = "python-docx"
        return "\n".join(paragraphs_in_order(body, cancel))

    def __call__(self, content: bytes, cancel: threading.Event) -> str:
        return self.extract(content, cancel)
