from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from zipfile import BadZipFile, ZipFile

from .errors import CONVERT_HINT, UnsupportedFormat
from .limits import SUPPORTED_EXTENSIONS
from .models import SourceFormat

PDF_MAGIC = b"%PDF-"
ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")
OLE_MAGIC = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"

_FORMAT_BY_EXTENSION: dict[str, SourceFormat] = {
    "pdf": "PDF",
    "docx": "DOCX",
}


@dataclass(frozen=True)
class FormatGuess:
    source_format: SourceFormat
    extension: str
    signature_ok: bool
    note: str = ""


def extension_from_filename(filename: str) -> str:
    name = (filename or "").strip()
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].strip().lower()[:20]


def format_from_filename(filename: str) -> tuple[SourceFormat, str]:
    ext = extension_from_filename(filename)
    if ext == "doc":
        raise UnsupportedFormat("Legacy .doc is not supported. Convert to .docx.")
    source_format = _FORMAT_BY_EXTENSION.get(ext)
    if source_format is None:
        label = f"'.{ext}'" if ext else "without an extension"
        allowed = ", ".join(f".{item}" for item in SUPPORTED_EXTENSIONS)
        raise UnsupportedFormat(
            f"Unsupported file type {label}. Allowed: {allowed}.",
            hint=CONVERT_HINT,
        )
    return source_format, ext


def _is_zip_payload(content: bytes) -> bool:
    return any(content.startswith(prefix) for prefix in ZIP_MAGICS)


def _zip_has_paths(content: bytes, prefixes: tuple[str, ...]) -> bool:
    try:
        with ZipFile(BytesIO(content)) as archive:
            names = archive.namelist()
        return any(any(name.startswith(prefix) for prefix in prefixes) for name in names)
    except (BadZipFile, OSError, ValueError):
        return False


def signature_matches(source_format: SourceFormat, content: bytes) -> bool:
    if source_format == "PDF":
        # Some producers emit a few junk bytes before the header; readers accept it within 1 KiB.
        return PDF_MAGIC in content[:1024]
    return _is_zip_payload(content) and _zip_has_paths(content, ("word/",))


def sniff_format(filename: str, content: bytes) -> FormatGuess:
    """Pick the extraction format from the extension and check the byte signature.

    The extension decides the strategy. A signature mismatch is reported on the
    guess rather than raised, so a mislabelled plain-text ``.pdf`` still reaches
    the fallback decoder. Compound OLE payloads are legacy Word files whatever
    their name says and are rejected outright.
    """
    source_format, ext = format_from_filename(filename)
    if content.startswith(OLE_MAGIC):
        raise UnsupportedFormat("Legacy .doc is not supported. Convert to .docx.")

    if signature_matches(source_format, content):
        return FormatGuess(source_format=source_format, extension=ext, signature_ok=True)
    return FormatGuess(
        source_format=source_format,
        extension=ext,
        signature_ok=False,
        note=f"File signature does not match .{ext} content.",
    )
