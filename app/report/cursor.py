from __future__ import annotations

from dataclasses import dataclass

PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0
MARGIN_MM = 25.0

# Room kept below a section header for the header plus one body line.
HEADER_RESERVE_MM = 40.0
LINE_RESERVE_MM = 20.0


@dataclass
class PageCursor:
    """Write position of a single layout run, in millimetres from the page top."""

    page_index: int = 1
    write_y: float = MARGIN_MM
    page_height: float = PAGE_HEIGHT_MM
    page_width: float = PAGE_WIDTH_MM
    margin: float = MARGIN_MM

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def bottom(self) -> float:
        return self.page_height - self.margin

    @property
    def usable_height(self) -> float:
        return self.page_height - 2 * self.margin

    @property
    def remaining(self) -> float:
        return self.bottom - self.write_y

    @property
    def at_page_top(self) -> bool:
        return self.write_y <= self.margin

    def new_page(self) -> None:
        self.page_index += 1
        self.write_y = self.margin

    def past_threshold(self, reserve: float) -> bool:
        return self.write_y > self.page_height - reserve

    def ensure_reserve(self, reserve: float) -> bool:
        """Start a new page when the cursor is below ``page_height - reserve``."""
        if self.past_threshold(reserve):
            self.new_page()
            return True
        return False

    def fits(self, height: float) -> bool:
        return self.write_y + height <= self.bottom

    def ensure_fits(self, height: float) -> bool:
        if not self.fits(height) and not self.at_page_top:
            self.new_page()
            return True
        return False

    def advance(self, height: float, gap: float = 0.0) -> None:
        self.write_y += height + gap
