from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from functools import partial

from app.core.progress import FLUSH_TIMEOUT_S, ProgressCallback, ProgressReporter

from .attempts import ExtractionAttempt, PlanResult, accept_any, has_min_text, run_plan
from .docx import DocumentFactory, DocxTextExtractor
from .errors import (
    CONVERT_HINT,
    ExtractionError,
    ExtractionFailed,
    ExtractionTimeout,
    FileTooLarge,
    InsufficientText,
)
from .limits import EXTRACTION_TIMEOUT_S, MAX_FILE_SIZE, MIN_TEXT_CHARS
from .models import DocumentUpload, ExtractedDocument, SourceFormat
from .pdf_fallback import PdfFallbackExtractor
from .pdf_primary import PdfTextExtractor, ReaderFactory
from .sniff import format_from_filename, sniff_format

logger = logging.getLogger(__name__)


class ExtractionSupervisor:
    """Runs the extraction plan for one upload under size and wall-clock limits.

    Parsing capabilities are injected: ``pdf_reader_factory`` builds a pypdf-like
    reader from a byte stream and ``docx_document_factory`` opens a python-docx-like
    document. Nothing is loaded implicitly, so tests can substitute slow or broken
    parsers.
    """

    def __init__(
        self,
        *,
        pdf_reader_factory: ReaderFactory | None = None,
        docx_document_factory: DocumentFactory | None = None,
        timeout_s: float = EXTRACTION_TIMEOUT_S,
        max_file_size: int = MAX_FILE_SIZE,
        min_text_chars: int = MIN_TEXT_CHARS,
    ):
        self._pdf_reader_factory = pdf_reader_factory
        self._docx_document_factory = docx_document_factory
        self.timeout_s = timeout_s
        self.max_file_size = max_file_size
        self.min_text_chars = min_text_chars

    def _too_large(self) -> FileTooLarge:
        return FileTooLarge(
            f"File too large. Maximum allowed size is {self.max_file_size // (1024 * 1024)} MB.",
            hint="Please try a smaller file.",
        )

    def extract(self, upload: DocumentUpload, progress: ProgressCallback | None = None) -> ExtractedDocument:
        reporter = ProgressReporter(progress)
        try:
            return self._supervise(upload, reporter)
        finally:
            reporter.close(flush_timeout=FLUSH_TIMEOUT_S)

    def _supervise(self, upload: DocumentUpload, reporter: ProgressReporter) -> ExtractedDocument:
        reporter.report("validating", 5)

        if upload.size > self.max_file_size:
            raise self._too_large()
        source_format, _ext = format_from_filename(upload.name)

        cancel = threading.Event()
        started = time.perf_counter()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="extraction")
        future = executor.submit(self._run, upload, source_format, cancel, reporter)
        try:
            document = future.result(timeout=self.timeout_s)
        except FuturesTimeout:
            cancel.set()
            reporter.close(discard=True)
            future.cancel()
            logger.warning(
                "extraction_timeout file=%s format=%s timeout_s=%s",
                upload.name,
                source_format,
                self.timeout_s,
            )
            raise ExtractionTimeout(
                "File processing timed out. This might be due to a large or complex document.",
                hint=CONVERT_HINT,
            ) from None
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        reporter.report("complete", 100)
        logger.info(
            "extraction_complete file=%s strategy=%s chars=%s latency_ms=%s",
            upload.name,
            document.strategy_used,
            document.char_count,
            int((time.perf_counter() - started) * 1000),
        )
        return document

    def _pdf_plan(self, primary: PdfTextExtractor) -> tuple[ExtractionAttempt, ...]:
        accept = partial(has_min_text, minimum=self.min_text_chars)
        return (
            ExtractionAttempt(strategy="PrimaryPdf", run=primary, accept=accept, stage="primary_pdf", progress=30),
            ExtractionAttempt(
                strategy="FallbackPdf",
                run=PdfFallbackExtractor(self.min_text_chars),
                accept=accept,
                stage="fallback_pdf",
                progress=60,
            ),
        )

    def _docx_plan(self) -> tuple[ExtractionAttempt, ...]:
        return (
            ExtractionAttempt(
                strategy="Docx",
                run=DocxTextExtractor(self._docx_document_factory),
                accept=accept_any,
                stage="docx",
                progress=30,
            ),
        )

    def _run(
        self,
        upload: DocumentUpload,
        source_format: SourceFormat,
        cancel: threading.Event,
        reporter: ProgressReporter,
    ) -> ExtractedDocument:
        content = upload.read()
        if len(content) > self.max_file_size:
            raise self._too_large()
        reporter.report("reading", 15)

        guess = sniff_format(upload.name, content)
        warnings: list[str] = []
        if not guess.signature_ok:
            logger.warning("extraction_signature_mismatch file=%s ext=%s", upload.name, guess.extension)
            warnings.append(guess.note)

        primary: PdfTextExtractor | None = None
        if source_format == "PDF":
            primary = PdfTextExtractor(self._pdf_reader_factory)
            attempts = self._pdf_plan(primary)
        else:
            attempts = self._docx_plan()

        result = run_plan(
            attempts,
            content,
            cancel=cancel,
            on_attempt=lambda attempt: reporter.report(attempt.stage, attempt.progress),
        )
        if primary is not None:
            warnings.extend(primary.page_errors)
        reporter.report("finalizing", 90)

        chosen = result.accepted
        if chosen is None:
            raise self._exhausted(result, source_format)

        text = chosen.text.strip()
        if len(text) < self.min_text_chars:
            raise self._insufficient(source_format)

        return ExtractedDocument(
            text=text,
            source_format=source_format,
            strategy_used=chosen.strategy,
            char_count=len(text),
            filename=upload.name,
            warnings=warnings,
        )

    def _insufficient(self, source_format: SourceFormat) -> InsufficientText:
        if source_format == "PDF":
            return InsufficientText(
                "Could not extract readable text from PDF. The PDF might contain only images "
                "or be password-protected.",
                hint=CONVERT_HINT,
            )
        return InsufficientText(
            "The extracted text is too short. Please ensure your resume contains readable text content."
        )

    def _exhausted(self, result: PlanResult, source_format: SourceFormat) -> ExtractionError:
        last = result.last
        if last is not None and not last.raised:
            return self._insufficient(source_format)
        if source_format == "PDF":
            return ExtractionFailed(
                "PDF processing failed completely. This PDF might contain only images, be "
                "password-protected, or use very complex formatting.",
                hint=CONVERT_HINT,
            )
        return ExtractionFailed(
            "Failed to extract text from DOCX file.",
            hint="Make sure the file is a valid .docx document.",
        )


def extract_document(
    filename: str,
    content: bytes,
    *,
    progress: ProgressCallback | None = None,
    supervisor: ExtractionSupervisor | None = None,
) -> ExtractedDocument:
    runner = supervisor or ExtractionSupervisor()
    return runner.extract(DocumentUpload.from_bytes(filename, content), progress=progress)
