from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from io import BytesIO
from typing import Any, Callable, Sequence

from reportlab.lib.colors import HexColor
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from app.core.progress import FLUSH_TIMEOUT_S, ProgressCallback, ProgressReporter

from .cursor import PAGE_HEIGHT_MM, PAGE_WIDTH_MM
from .instructions import (
    Bullet,
    ChartImage,
    FilledBox,
    Footer,
    ImageBlock,
    LayoutInstruction,
    LayoutResult,
    SectionHeader,
    TableRow,
    Text,
)
from .layout import LayoutEngine
from .text import PT_TO_MM, line_height_mm

logger = logging.getLogger(__name__)

ImageProducer = Callable[[Any], Sequence[ChartImage]]

# Fraction of the font size between a line's top edge and its baseline.
_BASELINE_RATIO = 0.8


def report_filename(generated_on: date) -> str:
    return f"hr-analysis-report-{generated_on.isoformat()}.pdf"


@dataclass(frozen=True)
class RenderedReport:
    filename: str
    content: bytes
    total_pages: int
    media_type: str = "application/pdf"


class _CanvasPainter:
    def __init__(self, pdf: canvas.Canvas, engine: LayoutEngine, page_width_mm: float, page_height_mm: float):
        self.pdf = pdf
        self.engine = engine
        self.page_width_mm = page_width_mm
        self.page_height_mm = page_height_mm

    def _x(self, value: float) -> float:
        return value * mm

    def _y(self, value: float) -> float:
        return (self.page_height_mm - value) * mm

    def _baseline(self, top: float, index: int, font_size: float) -> float:
        return self._y(top + index * line_height_mm(font_size) + font_size * PT_TO_MM * _BASELINE_RATIO)

    def _draw_line(self, content: str, x: float, y: float, align: str) -> None:
        if align == "center":
            self.pdf.drawCentredString(x, y, content)
        elif align == "right":
            self.pdf.drawRightString(x, y, content)
        else:
            self.pdf.drawString(x, y, content)

    def draw(self, item: LayoutInstruction) -> None:
        pdf = self.pdf
        if isinstance(item, FilledBox):
            rect = item.rect
            pdf.setFillColor(HexColor(item.color))
            pdf.rect(
                self._x(rect.x),
                self._y(rect.y + rect.height),
                rect.width * mm,
                rect.height * mm,
                stroke=0,
                fill=1,
            )
        elif isinstance(item, Text):
            pdf.setFont(self.engine.font_for(item.weight), item.font_size)
            pdf.setFillColor(HexColor(item.color))
            for index, line in enumerate(item.lines):
                self._draw_line(line, self._x(item.x), self._baseline(item.y, index, item.font_size), item.align)
        elif isinstance(item, SectionHeader):
            pdf.setFont(self.engine.font_bold, item.font_size)
            pdf.setFillColor(HexColor(item.color))
            pdf.drawString(self._x(item.x), self._baseline(item.y, 0, item.font_size), item.title)
            if item.underline:
                rule_y = self._y(item.y + item.height + 1)
                pdf.setStrokeColor(HexColor(item.rule_color))
                pdf.setLineWidth(0.5)
                pdf.line(self._x(item.x), rule_y, self._x(item.x + item.rule_width), rule_y)
        elif isinstance(item, Bullet):
            pdf.setFont(self.engine.font_regular, item.font_size)
            pdf.setFillColor(HexColor(item.color))
            pdf.drawString(self._x(item.x), self._baseline(item.y, 0, item.font_size), "•")
            for index, line in enumerate(item.lines):
                pdf.drawString(self._x(item.x + 5), self._baseline(item.y, index, item.font_size), line)
        elif isinstance(item, TableRow):
            baseline = self._y(item.y + item.height / 2 + item.font_size * PT_TO_MM * 0.35)
            pdf.setFillColor(HexColor(item.color))
            pdf.setFont(self.engine.font_regular, item.font_size)
            pdf.drawString(self._x(item.x + 3), baseline, item.label)
            pdf.setFont(self.engine.font_bold, item.font_size)
            pdf.drawRightString(self._x(item.x + item.width - 3), baseline, item.value)
        elif isinstance(item, ImageBlock):
            pdf.drawImage(
                ImageReader(BytesIO(item.data)),
                self._x(item.x),
                self._y(item.y + item.height),
                item.width * mm,
                item.height * mm,
                preserveAspectRatio=True,
                mask="auto",
            )
        elif isinstance(item, Footer):
            pdf.setFont(self.engine.font_regular, item.font_size)
            pdf.setFillColor(HexColor(item.color))
            pdf.drawCentredString(self._x(item.x), self._y(item.y), item.text)


class ReportRenderer:
    """Draws LayoutEngine instructions onto a reportlab canvas.

    Chart images come from an injected ``image_producer``; the renderer itself
    never rasterizes anything.
    """

    def __init__(self, engine: LayoutEngine | None = None, image_producer: ImageProducer | None = None):
        self.engine = engine or LayoutEngine()
        self.image_producer = image_producer

    def layout(self, model: Any, generated_on: date | None = None) -> LayoutResult:
        images: Sequence[ChartImage] = ()
        if self.image_producer is not None:
            images = tuple(self.image_producer(model) or ())
        return self.engine.render(model, images=images, generated_on=generated_on)

    def draw(self, result: LayoutResult) -> bytes:
        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=(PAGE_WIDTH_MM * mm, PAGE_HEIGHT_MM * mm))
        pdf.setTitle("HR Resume Analysis Report")
        pdf.setAuthor(self.engine.brand)
        painter = _CanvasPainter(pdf, self.engine, PAGE_WIDTH_MM, PAGE_HEIGHT_MM)

        by_page: dict[int, list[LayoutInstruction]] = {}
        for item in result.instructions:
            by_page.setdefault(item.page, []).append(item)
        for page in range(1, result.total_pages + 1):
            for item in by_page.get(page, []):
                painter.draw(item)
            pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    def render(
        self,
        model: Any,
        generated_on: date | None = None,
        progress: ProgressCallback | None = None,
    ) -> RenderedReport:
        reporter = ProgressReporter(progress)
        generated_on = generated_on or date.today()
        try:
            reporter.report("layout", 20)
            result = self.layout(model, generated_on)
            reporter.report("drawing", 60, total_pages=result.total_pages)
            content = self.draw(result)
            reporter.report("complete", 100)
        finally:
            reporter.close(flush_timeout=FLUSH_TIMEOUT_S)
        logger.info("report_rendered pages=%s bytes=%s", result.total_pages, len(content))
        return RenderedReport(
            filename=report_filename(generated_on),
            content=content,
            total_pages=result.total_pages,
        )
