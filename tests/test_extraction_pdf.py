import sys
import time
import unittest
from io import BytesIO
from pathlib import Path
from unittest.mock import MagicMock, patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pypdf import PdfWriter  # noqa: E402
from reportlab.lib.pagesizes import A4  # noqa: E402
from reportlab.pdfgen import canvas  # noqa: E402

from app.extraction import (  # noqa: E402
    DocumentUpload,
    ExtractionSupervisor,
    ExtractionTimeout,
    FileTooLarge,
    InsufficientText,
    MAX_FILE_SIZE,
    UnsupportedFormat,
    extract_document,
)
from app.extraction.pdf_fallback import PdfFallbackExtractor, scrub_bytes, strip_pdf_syntax  # noqa: E402
from app.extraction.pdf_primary import PdfTextExtractor, normalize_pdf_text  # noqa: E402

RESUME_LINES = [
    "Jane Doe - Senior Backend Engineer",
    "Eight years building Python services with FastAPI and PostgreSQL.",
    "Led a team of five engineers delivering payment integrations.",
]

PROSE = (
    "Jane Doe is a senior backend engineer with eight years of experience building "
    "Python services, Kubernetes deployments and PostgreSQL data models for fintech clients."
)


def _text_pdf(pages: list[list[str]]) -> bytes:
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    for lines in pages:
        y = 780
        for line in lines:
            pdf.drawString(72, y, line)
            y -= 18
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def _blank_pdf(pages: int = 1) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=595, height=842)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class _FakePage:
    def __init__(self, text: str = "", error: Exception | None = None, delay: float = 0.0):
        self.text = text
        self.error = error
        self.delay = delay

    def extract_text(self, visitor_text=None):
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        for fragment in self.text.split("|"):
            visitor_text(fragment, None, None, None, 12)
        return self.text


class _FakeReader:
    def __init__(self, pages):
        self.pages = pages


class PdfPrimaryTests(unittest.TestCase):
    def test_normalize_collapses_spaces_and_blank_lines(self):
        self.assertEqual(normalize_pdf_text("  a   b\t c\n\n\n\nd\r\n \r\ne  "), "a b c\n\nd\n\ne")

    def test_fragments_join_with_space_and_pages_with_blank_line(self):
        factory = lambda stream: _FakeReader([_FakePage("Hello|world"), _FakePage("Second|page")])  # noqa: E731
        text = PdfTextExtractor(factory).extract(b"%PDF-")
        self.assertEqual(text, "Hello world\n\nSecond page")

    def test_failing_page_is_skipped_and_recorded(self):
        factory = lambda stream: _FakeReader(  # noqa: E731
            [_FakePage("First|page"), _FakePage(error=ValueError("bad font")), _FakePage("Third|page")]
        )
        extractor = PdfTextExtractor(factory)
        text = extractor.extract(b"%PDF-")
        self.assertEqual(text, "First page\n\nThird page")
        self.assertEqual(len(extractor.page_errors), 1)
        self.assertIn("Page 2", extractor.page_errors[0])

    def test_reads_text_layer_of_real_pdf(self):
        text = PdfTextExtractor().extract(_text_pdf([RESUME_LINES]))
        self.assertIn("Senior Backend Engineer", text)
        self.assertIn("PostgreSQL", text)


class PdfFallbackTests(unittest.TestCase):
    def test_literal_decode_used_when_no_pdf_marker(self):
        text = PdfFallbackExtractor().extract(PROSE.encode("utf-8"))
        self.assertEqual(text, PROSE)

    def test_scrub_drops_binary_and_collapses_repeats(self):
        raw = b"Skills\x00\x01\xff Python" + b"=" * 30 + b" SQL\n\n\nDocker"
        self.assertEqual(scrub_bytes(raw), "Skills Python= SQL Docker")

    def test_pdf_syntax_tokens_are_stripped(self):
        noisy = "1 0 obj Type Catalog Pages 2 0 R endobj xref 0000000000 65535 f %%EOF Python developer"
        self.assertEqual(strip_pdf_syntax(noisy), "Python developer")

    def test_structure_only_pdf_yields_short_text(self):
        text = PdfFallbackExtractor().extract(_blank_pdf())
        self.assertLess(len(text), 50)


class PdfSupervisorTests(unittest.TestCase):
    def test_text_pdf_uses_primary_and_never_fallback(self):
        with patch("app.extraction.supervisor.PdfFallbackExtractor") as fallback_cls:
            document = extract_document("resume.pdf", _text_pdf([RESUME_LINES]))
        self.assertEqual(document.strategy_used, "PrimaryPdf")
        self.assertEqual(document.source_format, "PDF")
        self.assertEqual(document.char_count, len(document.text))
        fallback_cls.return_value.assert_not_called()

    def test_image_only_pdf_is_insufficient_text(self):
        with self.assertRaises(InsufficientText) as ctx:
            extract_document("scan.pdf", _blank_pdf(2))
        self.assertIn("DOCX", ctx.exception.detail)
        self.assertEqual(ctx.exception.status_code, 422)

    def test_corrupt_pdf_falls_back_to_byte_scrub(self):
        document = extract_document("broken.pdf", b"%PDF-1.4\n" + PROSE.encode("ascii"))
        self.assertEqual(document.strategy_used, "FallbackPdf")
        self.assertIn("Kubernetes", document.text)
        self.assertNotIn("%PDF", document.text)

    def test_mislabelled_text_file_is_decoded_literally_with_warning(self):
        document = extract_document("resume.pdf", PROSE.encode("utf-8"))
        self.assertEqual(document.strategy_used, "FallbackPdf")
        self.assertEqual(document.text, PROSE)
        self.assertTrue(any("signature" in warning for warning in document.warnings))

    def test_page_errors_surface_as_warnings(self):
        long_line = "Python|FastAPI|PostgreSQL|Docker|Kubernetes|Terraform|AWS|GCP|Redis"
        supervisor = ExtractionSupervisor(
            pdf_reader_factory=lambda stream: _FakeReader([_FakePage(error=KeyError("Font")), _FakePage(long_line)])
        )
        document = supervisor.extract(DocumentUpload.from_bytes("resume.pdf", b"%PDF-1.7"))
        self.assertEqual(document.strategy_used, "PrimaryPdf")
        self.assertEqual(len(document.warnings), 1)

    def test_oversized_upload_is_rejected_without_reading(self):
        read = MagicMock(return_value=b"")
        upload = DocumentUpload(name="resume.pdf", size=MAX_FILE_SIZE + 1, read=read)
        with self.assertRaises(FileTooLarge):
            ExtractionSupervisor().extract(upload)
        read.assert_not_called()

    def test_unsupported_extension_is_rejected_without_reading(self):
        read = MagicMock(return_value=b"")
        with self.assertRaises(UnsupportedFormat):
            ExtractionSupervisor().extract(DocumentUpload(name="resume.rtf", size=10, read=read))
        read.assert_not_called()

    def test_timeout_abandons_slow_parser(self):
        pages = [_FakePage("slow|page", delay=0.2) for _ in range(50)]
        supervisor = ExtractionSupervisor(pdf_reader_factory=lambda stream: _FakeReader(pages), timeout_s=0.3)
        events = []
        started = time.perf_counter()
        with self.assertRaises(ExtractionTimeout) as ctx:
            supervisor.extract(DocumentUpload.from_bytes("resume.pdf", b"%PDF-1.7"), progress=events.append)
        self.assertLess(time.perf_counter() - started, 2.0)
        self.assertEqual(ctx.exception.status_code, 504)
        self.assertNotIn("complete", [event["stage"] for event in events])

    def test_slow_progress_observer_does_not_consume_timeout(self):
        events = []

        def observer(event):
            time.sleep(0.6)
            events.append(event)

        supervisor = ExtractionSupervisor(timeout_s=1.0)
        content = b"%PDF-1.4\n" + PROSE.encode("ascii")
        document = supervisor.extract(DocumentUpload.from_bytes("resume.pdf", content), progress=observer)
        self.assertEqual(document.strategy_used, "FallbackPdf")
        self.assertGreater(document.char_count, 50)
        self.assertTrue(events)
        self.assertEqual(events[0]["stage"], "validating")

    def test_extraction_is_idempotent(self):
        content = _text_pdf([RESUME_LINES, RESUME_LINES[::-1]])
        first = extract_document("resume.pdf", content)
        second = extract_document("resume.pdf", content)
        self.assertEqual(first.text, second.text)
        self.assertIn("\n\n", first.text)

    def test_progress_is_monotonic_and_completes(self):
        events = []
        extract_document("resume.pdf", b"%PDF-1.4\n" + PROSE.encode("ascii"), progress=events.append)
        percents = [event["progress"] for event in events]
        self.assertEqual(percents, sorted(percents))
        self.assertEqual(percents[-1], 100)
        stages = [event["stage"] for event in events]
        self.assertEqual(stages[0], "validating")
        self.assertIn("fallback_pdf", stages)


if __name__ == "__main__":
    unittest.main()
