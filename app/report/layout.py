from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Sequence

from app.core.config import settings
from app.core.theme import get_report_theme

from .cursor import HEADER_RESERVE_MM, LINE_RESERVE_MM, PageCursor
from .instructions import (
    Bullet,
    ChartImage,
    FilledBox,
    Footer,
    ImageBlock,
    LayoutInstruction,
    LayoutResult,
    Rect,
    SectionHeader,
    TableRow,
    Text,
)
from .scoring import (
    format_percent,
    metric_rows,
    overall_score,
    recommendation_color_key,
    recommendation_tier,
    tier_color_key,
)
from .text import block_height_mm, line_height_mm, truncate_lines, wrap_text

logger = logging.getLogger(__name__)

REPORT_TITLE = "HR Resume Analysis Report"
TITLE_BAND_HEIGHT = 40.0
TITLE_BAND_RESUME_Y = 50.0
TABLE_ROW_HEIGHT = 8.0
SCORE_BOX_HEIGHT = 25.0
FINAL_BOX_HEIGHT = 20.0
BOX_PADDING_MM = 4.0
FOOTER_OFFSET = 10.0
EMPTY_SECTION_TEXT = "None identified."

_DEFAULT_COLORS = {
    "header_band": "#4c5fd5",
    "header_text": "#ffffff",
    "heading": "#2c3e50",
    "body": "#333333",
    "muted": "#666666",
    "rule": "#cccccc",
    "zebra": "#f1f3f5",
    "box_text": "#ffffff",
    "success": "#28a745",
    "info": "#17a2b8",
    "warning": "#f0ad00",
    "danger": "#dc3545",
}
_DEFAULT_SIZES = {
    "title": 22,
    "subtitle": 10,
    "section_header": 14,
    "body": 11,
    "bullet": 10,
    "table": 10,
    "box": 14,
    "footer": 8,
    "caption": 9,
}
_DEFAULT_SPACING = {
    "paragraph_gap": 4,
    "bullet_gap": 3,
    "section_gap": 5,
    "box_gap": 8,
    "table_gap": 6,
    "bullet_indent": 5,
}


def _merged(theme: Mapping[str, Any], key: str, defaults: Mapping[str, Any]) -> dict[str, Any]:
    section = theme.get(key) if isinstance(theme, Mapping) else None
    merged = dict(defaults)
    if isinstance(section, Mapping):
        merged.update(section)
    return merged


def footer_text(page_number: int, total_pages: int, generated_on: date, brand: str) -> str:
    return f"Page {page_number} of {total_pages} | Generated on {generated_on.isoformat()} | {brand}"


class LayoutEngine:
    """Lays a ReportModel out onto fixed A4 pages as drawing instructions.

    The engine is stateless between calls; each ``render`` threads its own
    PageCursor through the drawing primitives, so the same model and date always
    produce the same instruction sequence.
    """

    def __init__(self, *, theme: Mapping[str, Any] | None = None, brand: str | None = None):
        theme = get_report_theme() if theme is None else theme
        self.colors = _merged(theme, "colors", _DEFAULT_COLORS)
        self.sizes = _merged(theme, "sizes", _DEFAULT_SIZES)
        self.spacing = _merged(theme, "spacing", _DEFAULT_SPACING)
        fonts = _merged(theme, "fonts", {"regular": "Helvetica", "bold": "Helvetica-Bold"})
        self.font_regular = str(fonts["regular"])
        self.font_bold = str(fonts["bold"])
        self.brand = brand or settings.report_brand

    def font_for(self, weight: str) -> str:
        return self.font_bold if weight == "bold" else self.font_regular

    def render(
        self,
        model: Any,
        images: Sequence[ChartImage] = (),
        generated_on: date | None = None,
    ) -> LayoutResult:
        run = _LayoutRun(self, generated_on or date.today())
        return run.render(model, images)


class _LayoutRun:
    def __init__(self, engine: LayoutEngine, generated_on: date):
        self.engine = engine
        self.generated_on = generated_on
        self.cursor = PageCursor()
        self.out: list[LayoutInstruction] = []

    # primitives

    def _color(self, key: str) -> str:
        return str(self.engine.colors[key])

    def _size(self, key: str) -> float:
        return float(self.engine.sizes[key])

    def _gap(self, key: str) -> float:
        return float(self.engine.spacing[key])

    def _place_block(self, lines: list[str], font_size: float, max_width: float, font_name: str) -> list[str]:
        """Position the cursor for an unsplittable block and return the lines that fit."""
        cursor = self.cursor
        cursor.ensure_reserve(LINE_RESERVE_MM)
        cursor.ensure_fits(block_height_mm(font_size, len(lines)))
        max_lines = int(cursor.remaining // line_height_mm(font_size))
        if len(lines) > max_lines:
            logger.warning(
                "layout_block_truncated page=%s lines=%s kept=%s",
                cursor.page_index,
                len(lines),
                max_lines,
            )
            lines = truncate_lines(lines, max_lines, max_width, font_name, font_size)
        return lines

    def section_header(self, title: str) -> None:
        cursor = self.cursor
        cursor.ensure_reserve(HEADER_RESERVE_MM)
        size = self._size("section_header")
        height = line_height_mm(size)
        self.out.append(
            SectionHeader(
                page=cursor.page_index,
                x=cursor.margin,
                y=cursor.write_y,
                height=height,
                title=title,
                font_size=size,
                color=self._color("heading"),
                underline=True,
                rule_width=cursor.content_width,
                rule_color=self._color("rule"),
            )
        )
        cursor.advance(height, self._gap("paragraph_gap"))

    def paragraph(
        self,
        content: str,
        *,
        size_key: str = "body",
        color_key: str = "body",
        weight: str = "normal",
        gap_key: str = "paragraph_gap",
    ) -> None:
        cursor = self.cursor
        size = self._size(size_key)
        font = self.engine.font_for(weight)
        width = cursor.content_width
        lines = wrap_text(content, width, font, size)
        if not lines:
            return
        lines = self._place_block(lines, size, width, font)
        height = block_height_mm(size, len(lines))
        self.out.append(
            Text(
                page=cursor.page_index,
                x=cursor.margin,
                y=cursor.write_y,
                height=height,
                lines=tuple(lines),
                font_size=size,
                weight=weight,  # type: ignore[arg-type]
                color=self._color(color_key),
            )
        )
        cursor.advance(height, self._gap(gap_key))

    def bullet(self, content: str) -> None:
        cursor = self.cursor
        size = self._size("bullet")
        indent = self._gap("bullet_indent")
        width = cursor.content_width - indent - 5
        font = self.engine.font_regular
        lines = wrap_text(content, width, font, size)
        if not lines:
            return
        lines = self._place_block(lines, size, width, font)
        height = block_height_mm(size, len(lines))
        self.out.append(
            Bullet(
                page=cursor.page_index,
                x=cursor.margin + indent,
                y=cursor.write_y,
                height=height,
                lines=tuple(lines),
                indent=indent,
                font_size=size,
                color=self._color("body"),
            )
        )
        cursor.advance(height, self._gap("bullet_gap"))

    def _box_labels(self, labels: Sequence[tuple[str, float]], max_width: float, max_height: float):
        """Wrap each (text, size) label to the box width, truncating once the box would outgrow a page."""
        font = self.engine.font_bold
        wrapped: list[tuple[list[str], float]] = []
        used = 0.0
        for content, size in labels:
            lines = wrap_text(content, max_width, font, size)
            if not lines:
                continue
            room = int((max_height - used) // line_height_mm(size))
            if room <= 0:
                logger.warning("layout_box_label_dropped page=%s", self.cursor.page_index)
                break
            if len(lines) > room:
                logger.warning(
                    "layout_block_truncated page=%s lines=%s kept=%s",
                    self.cursor.page_index,
                    len(lines),
                    room,
                )
                lines = truncate_lines(lines, room, max_width, font, size)
            wrapped.append((lines, size))
            used += block_height_mm(size, len(lines))
        return wrapped, used

    def filled_box(self, height: float, color: str, labels: Sequence[tuple[str, float]]) -> None:
        """Full-width coloured box with centred bold labels of (text, font size).

        Labels wrap to the box width and the box grows past ``height`` to hold them.
        """
        cursor = self.cursor
        text_width = cursor.content_width - 2 * BOX_PADDING_MM
        wrapped, text_height = self._box_labels(labels, text_width, cursor.usable_height - 2 * BOX_PADDING_MM)
        height = max(height, text_height + 2 * BOX_PADDING_MM)
        cursor.ensure_fits(height)
        top = cursor.write_y
        self.out.append(
            FilledBox(
                page=cursor.page_index,
                rect=Rect(x=cursor.margin, y=top, width=cursor.content_width, height=height),
                color=color,
            )
        )
        y = top + max(0.0, (height - text_height) / 2)
        for lines, size in wrapped:
            block_h = block_height_mm(size, len(lines))
            self.out.append(
                Text(
                    page=cursor.page_index,
                    x=cursor.margin + cursor.content_width / 2,
                    y=y,
                    height=block_h,
                    lines=tuple(lines),
                    font_size=size,
                    weight="bold",
                    color=self._color("box_text"),
                    align="center",
                )
            )
            y += block_h
        cursor.advance(height, self._gap("box_gap"))

    def list_section(self, title: str, items: Sequence[str], *, always: bool = True) -> None:
        entries = [item.strip() for item in items if item and item.strip()]
        if not entries and not always:
            return
        self.section_header(title)
        if not entries:
            self.paragraph(EMPTY_SECTION_TEXT, color_key="muted", gap_key="section_gap")
            return
        for entry in entries:
            self.bullet(entry)
        self.cursor.advance(0, self._gap("section_gap") - self._gap("bullet_gap"))

    # sections

    def title_band(self) -> None:
        width = self.cursor.page_width
        self.out.append(
            FilledBox(page=1, rect=Rect(x=0, y=0, width=width, height=TITLE_BAND_HEIGHT), color=self._color("header_band"))
        )
        title_size = self._size("title")
        subtitle_size = self._size("subtitle")
        self.out.append(
            Text(
                page=1,
                x=width / 2,
                y=12,
                height=line_height_mm(title_size),
                lines=(REPORT_TITLE,),
                font_size=title_size,
                weight="bold",
                color=self._color("header_text"),
                align="center",
            )
        )
        self.out.append(
            Text(
                page=1,
                x=width / 2,
                y=12 + line_height_mm(title_size) + 4,
                height=line_height_mm(subtitle_size),
                lines=(f"Generated on {self.generated_on.isoformat()}",),
                font_size=subtitle_size,
                color=self._color("header_text"),
                align="center",
            )
        )
        self.cursor.write_y = TITLE_BAND_RESUME_Y

    def executive_summary(self, model: Any) -> None:
        self.section_header("Executive Summary")
        summary = (getattr(model, "summary", "") or "").strip() or "No summary provided."
        self.paragraph(summary)
        profile = " | ".join(
            [
                f"Experience: {getattr(model, 'experience_years', '') or 'N/A'}",
                f"Education: {getattr(model, 'education_level', '') or 'N/A'}",
                f"Salary Range: {getattr(model, 'salary_range', '') or 'N/A'}",
            ]
        )
        self.paragraph(profile, size_key="bullet", color_key="muted", gap_key="section_gap")

    def overall_score_box(self, model: Any) -> None:
        self.section_header("Overall Score")
        score = overall_score(model)
        self.filled_box(
            SCORE_BOX_HEIGHT,
            self._color(tier_color_key(score)),
            [(format_percent(score), self._size("title")), (recommendation_tier(score), self._size("body"))],
        )

    def key_metrics(self, model: Any) -> None:
        self.section_header("Key Metrics")
        cursor = self.cursor
        size = self._size("table")
        for index, (label, value) in enumerate(metric_rows(model)):
            cursor.ensure_fits(TABLE_ROW_HEIGHT)
            zebra = index % 2 == 0
            if zebra:
                self.out.append(
                    FilledBox(
                        page=cursor.page_index,
                        rect=Rect(x=cursor.margin, y=cursor.write_y, width=cursor.content_width, height=TABLE_ROW_HEIGHT),
                        color=self._color("zebra"),
                    )
                )
            self.out.append(
                TableRow(
                    page=cursor.page_index,
                    x=cursor.margin,
                    y=cursor.write_y,
                    height=TABLE_ROW_HEIGHT,
                    width=cursor.content_width,
                    label=label,
                    value=value,
                    zebra_stripe=zebra,
                    font_size=size,
                    color=self._color("body"),
                )
            )
            cursor.advance(TABLE_ROW_HEIGHT)
        cursor.advance(0, self._gap("table_gap"))

    def charts(self, images: Sequence[ChartImage]) -> None:
        if not images:
            return
        self.section_header("Skills Assessment")
        cursor = self.cursor
        caption_size = self._size("caption")
        for image in images:
            if image.width_px <= 0 or image.height_px <= 0:
                logger.warning("layout_image_skipped reason=invalid_size")
                continue
            caption_h = line_height_mm(caption_size) if image.caption else 0.0
            max_height = cursor.usable_height - caption_h
            width = cursor.content_width
            height = width * image.height_px / image.width_px
            if height > max_height:
                logger.warning("layout_image_scaled height_mm=%.1f max_mm=%.1f", height, max_height)
                width = width * max_height / height
                height = max_height
            cursor.ensure_fits(height + caption_h)
            self.out.append(
                ImageBlock(
                    page=cursor.page_index,
                    x=cursor.margin + (cursor.content_width - width) / 2,
                    y=cursor.write_y,
                    width=width,
                    height=height,
                    data=image.data,
                    caption=image.caption,
                )
            )
            cursor.advance(height)
            if image.caption:
                self.out.append(
                    Text(
                        page=cursor.page_index,
                        x=cursor.margin + cursor.content_width / 2,
                        y=cursor.write_y,
                        height=caption_h,
                        lines=(image.caption,),
                        font_size=caption_size,
                        color=self._color("muted"),
                        align="center",
                    )
                )
                cursor.advance(caption_h)
            cursor.advance(0, self._gap("box_gap"))

    def final_recommendation(self, model: Any) -> None:
        self.cursor.ensure_reserve(HEADER_RESERVE_MM)
        self.section_header("Final Recommendation")
        recommendation = (getattr(model, "hiring_recommendation", "") or "").strip()
        label = recommendation or recommendation_tier(overall_score(model))
        self.filled_box(
            FINAL_BOX_HEIGHT,
            self._color(recommendation_color_key(recommendation)),
            [(label, self._size("box"))],
        )

    def footers(self, total_pages: int) -> list[Footer]:
        cursor = self.cursor
        size = self._size("footer")
        return [
            Footer(
                page=page,
                x=cursor.page_width / 2,
                y=cursor.page_height - FOOTER_OFFSET,
                page_number=page,
                total_pages=total_pages,
                text=footer_text(page, total_pages, self.generated_on, self.engine.brand),
                font_size=size,
                color=self._color("muted"),
            )
            for page in range(1, total_pages + 1)
        ]

    def render(self, model: Any, images: Sequence[ChartImage]) -> LayoutResult:
        self.title_band()
        body_start = len(self.out)

        self.executive_summary(model)
        self.overall_score_box(model)
        self.key_metrics(model)
        self.charts(images)
        self.list_section("Strengths", getattr(model, "strengths", None) or [])
        self.list_section("Areas for Improvement", getattr(model, "weaknesses", None) or [])
        self.list_section("Skills Breakdown", getattr(model, "skills", None) or [])
        self.list_section("HR Recommendations", getattr(model, "suggestions", None) or [])
        self.list_section("Cultural Fit", getattr(model, "cultural_fit_indicators", None) or [], always=False)
        self.list_section("Red Flags", getattr(model, "red_flags", None) or [], always=False)
        self.list_section("Next Steps", getattr(model, "next_steps", None) or [], always=False)
        self.final_recommendation(model)

        total_pages = self.cursor.page_index
        self.out.extend(self.footers(total_pages))
        logger.debug("layout_complete pages=%s instructions=%s", total_pages, len(self.out))
        return LayoutResult(instructions=tuple(self.out), total_pages=total_pages, body_start=body_start)
