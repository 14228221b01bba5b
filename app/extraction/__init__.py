from .errors import (
    ExtractionError,
    ExtractionFailed,
    ExtractionTimeout,
    FileTooLarge,
    InsufficientText,
    UnsupportedFormat,
)
from .limits import EXTRACTION_TIMEOUT_S, MAX_FILE_SIZE, MIN_TEXT_CHARS
from .models import DocumentUpload, ExtractedDocument
from .supervisor import ExtractionSupervisor, extract_document

__all__ = [
    "DocumentUpload",
    "ExtractedDocument",
    "ExtractionSupervisor",
    "extract_document",
    "ExtractionError",
    "UnsupportedFormat",
    "FileTooLarge",
    "ExtractionTimeout",
    "ExtractionFailed",
    "InsufficientText",
    "MAX_FILE_SIZE",
    "MIN_TEXT_CHARS",
    "EXTRACTION_TIMEOUT_S",
]
