"""Heuristic byte scrubbing for PDFs the structured parser could not read.

This is a last resort, not a parser. It keeps printable ASCII runs from the raw
bytes, so compressed content streams can decode into plausible-looking noise.
PDF syntax vocabulary is stripped afterwards so that a file with no text layer
does not pass the minimum-length check on object dictionaries and xref rows
alone, but the output of this strategy should always be treated as low-confidence.
"""
from __future__ import annotations

import logging
import re
import threading

from .attempts import raise_if_cancelled
from .limits import MIN_TEXT_CHARS

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 256 * 1024

_KEPT_PUNCTUATION = b" \t\n\r\x0b\x0c.,!?@#$%^&*()-_+="
_KEPT_BYTES = frozenset(
    list(range(ord("a"), ord("z") + 1))
    + list(range(ord("A"), ord("Z") + 1))
    + list(range(ord("0"), ord("9") + 1))
    + list(_KEPT_PUNCTUATION)
)
_DROPPED_BYTES = bytes(value for value in range(256) if value not in _KEPT_BYTES)

_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E\n\r\t]")
_WHITESPACE_RE = re.compile(r"\s+")
_REPEATED_CHAR_RE = re.compile(r"(.)\1{10,}")

_NUMERIC_TOKEN_RE = re.compile(r"^[-+]?[\d.]+$")
_DATE_STAMP_RE = re.compile(r"^\(?D\d{6,}")
_HEX_ID_RE = re.compile(r"^\(?[0-9A-Fa-f]{16,}\)?$")

PDF_SYNTAX_TOKENS = frozenset(
    {
        "obj", "endobj", "stream", "endstream", "xref", "trailer", "startxref", "R", "f", "n",
        "Type", "Pages", "Page", "Catalog", "Count", "Kids", "Parent", "MediaBox", "CropBox",
        "BleedBox", "TrimBox", "ArtBox", "Resources", "Contents", "Length", "Length1", "Length2",
        "Length3", "Filter", "FlateDecode", "DCTDecode", "ASCII85Decode", "ASCIIHexDecode",
        "LZWDecode", "RunLengthDecode", "JPXDecode", "CCITTFaxDecode", "DecodeParms", "Predictor",
        "Columns", "Font", "Subtype", "BaseFont", "Encoding", "WinAnsiEncoding", "MacRomanEncoding",
        "Type0", "Type1", "Type3", "TrueType", "FontDescriptor", "FontFile", "FontFile2",
        "FirstChar", "LastChar", "Widths", "XObject", "Image", "Form", "BBox", "Matrix", "Width",
        "Height", "ColorSpace", "DeviceRGB", "DeviceGray", "DeviceCMYK", "BitsPerComponent",
        "ProcSet", "PDF", "Text", "ImageB", "ImageC", "ImageI", "Producer", "Creator",
        "CreationDate", "ModDate", "Author", "Title", "Subject", "Keywords", "Trapped", "Root",
        "Info", "Size", "ID", "Prev", "Annots", "Rotate", "Outlines", "PageMode", "PageLayout",
        "UseNone", "Metadata", "XRef", "ObjStm", "N", "First", "Index", "W", "ExtGState", "Group",
        "S", "Transparency", "CS", "Lang", "StructTreeRoot", "MarkInfo", "Marked", "true",
        "false", "null", "BT", "ET", "Tf", "Td", "TD", "Tj", "TJ", "Tm", "cm", "q", "Q", "re",
        "BI", "EI", "Do", "gs", "rg", "RG", "g", "G", "w",
    }
)


def _is_syntax_noise(token: str) -> bool:
    if token in PDF_SYNTAX_TOKENS:
        return True
    if token.startswith("%"):
        return True
    if _NUMERIC_TOKEN_RE.match(token):
        return True
    return bool(_DATE_STAMP_RE.match(token) or _HEX_ID_RE.match(token))


def scrub_bytes(content: bytes, cancel: threading.Event | None = None) -> str:
    kept: list[bytes] = []
    for start in range(0, len(content), _CHUNK_SIZE):
        raise_if_cancelled(cancel)
        kept.append(content[start:start + _CHUNK_SIZE].translate(None, _DROPPED_BYTES))
    text = b"".join(kept).decode("ascii", errors="ignore")
    text = _NON_PRINTABLE_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text)
    text = _REPEATED_CHAR_RE.sub(r"\1", text)
    return text.strip()


def strip_pdf_syntax(text: str) -> str:
    return " ".join(token for token in text.split(" ") if token and not _is_syntax_noise(token))


class PdfFallbackExtractor:
    def __init__(self, min_chars: int = MIN_TEXT_CHARS):
        self.min_chars = min_chars

    def literal_decode(self, content: bytes) -> str | None:
        """Return the payload as text when it is not actually a PDF wrapper."""
        text = content.decode("utf-8", errors="replace")
        if "%PDF" in text:
            return None
        stripped = text.strip()
        if len(stripped) <= self.min_chars:
            return None
        return stripped

    def extract(self, content: bytes, cancel: threading.Event | None = None) -> str:
        literal = self.literal_decode(content)
        if literal is not None:
            logger.info("pdf_fallback_literal_decode chars=%s", len(literal))
            return literal

        scrubbed = scrub_bytes(content, cancel)
        raise_if_cancelled(cancel)
        cleaned = strip_pdf_syntax(scrubbed)
        logger.info("pdf_fallback_byte_scrub raw_chars=%s kept_chars=%s", len(scrubbed), len(cleaned))
        return cleaned

    def __call__(self, content: bytes, cancel: threading.Event) -> str:
        return self.extract(content, cancel)
