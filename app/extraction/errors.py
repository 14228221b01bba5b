from __future__ import annotations

CONVERT_HINT = "Please upload a text-based PDF or convert the file to DOCX."


class ExtractionError(RuntimeError):
    code = "extraction_error"
    status_code = 422

    def __init__(self, message: str, *, hint: str | None = None):
        super().__init__(message)
        self.hint = hint

    @property
    def detail(self) -> str:
        message = str(self)
        if self.hint and self.hint not in message:
            return f"{message} {self.hint}"
        return message


class UnsupportedFormat(ExtractionError):
    code = "unsupported_format"
    status_code = 400


class FileTooLarge(ExtractionError):
    code = "file_too_large"
    status_code = 413


class ExtractionTimeout(ExtractionError):
    code = "extraction_timeout"
    status_code = 504


class ExtractionFailed(ExtractionError):
    code = "extraction_failed"
    status_code = 422


class InsufficientText(ExtractionError):
    code = "insufficient_text"
    status_code = 422


class ExtractionCancelled(RuntimeError):
    """Raised inside a worker once the supervisor has abandoned the run."""
