"""Drawing instructions produced by the layout engine.

Positions are millimetres from the top-left corner of the page. ``y`` is the top
edge of the element and ``height`` its vertical extent, so every instruction
occupies ``[y, y + height]`` on its page.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Literal, Union

Weight = Literal["normal", "bold"]
Align = Literal["left", "center", "right"]


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class ChartImage:
    """Rasterized chart supplied by an image producer (PNG bytes plus pixel size)."""

    data: bytes
    width_px: int
    height_px: int
    caption: str = ""


@dataclass(frozen=True)
class _Instruction:
    kind: ClassVar[str] = ""

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["kind"] = self.kind
        return payload


@dataclass(frozen=True)
class Text(_Instruction):
    kind: ClassVar[str] = "text"

    page: int
    x: float
    y: float
    height: float
    lines: tuple[str, ...]
    font_size: float
    weight: Weight = "normal"
    color: str = "#000000"
    align: Align = "left"

    @property
    def content(self) -> str:
        return " ".join(self.lines)


@dataclass(frozen=True)
class SectionHeader(_Instruction):
    kind: ClassVar[str] = "section_header"

    page: int
    x: float
    y: float
    height: float
    title: str
    font_size: float
    color: str
    underline: bool = True
    rule_width: float = 0.0
    rule_color: str = "#cccccc"


@dataclass(frozen=True)
class Bullet(_Instruction):
    kind: ClassVar[str] = "bullet"

    page: int
    x: float
    y: float
    height: float
    lines: tuple[str, ...]
    indent: float
    font_size: float
    color: str = "#000000"

    @property
    def content(self) -> str:
        return " ".join(self.lines)


@dataclass(frozen=True)
class FilledBox(_Instruction):
    kind: ClassVar[str] = "filled_box"

    page: int
    rect: Rect
    color: str

    @property
    def y(self) -> float:
        return self.rect.y

    @property
    def height(self) -> float:
        return self.rect.height


@dataclass(frozen=True)
class TableRow(_Instruction):
    kind: ClassVar[str] = "table_row"

    page: int
    x: float
    y: float
    height: float
    width: float
    label: str
    value: str
    zebra_stripe: bool
    font_size: float
    color: str = "#000000"


@dataclass(frozen=True)
class ImageBlock(_Instruction):
    kind: ClassVar[str] = "image"

    page: int
    x: float
    y: float
    width: float
    height: float
    data: bytes = field(repr=False)
    caption: str = ""

    def to_dict(self) -> dict[str, Any]:
        payload = {key: value for key, value in asdict(self).items() if key != "data"}
        payload["kind"] = self.kind
        payload["byte_length"] = len(self.data)
        return payload


@dataclass(frozen=True)
class Footer(_Instruction):
    kind: ClassVar[str] = "footer"

    page: int
    x: float
    y: float
    page_number: int
    total_pages: int
    text: str
    font_size: float
    color: str = "#666666"


LayoutInstruction = Union[Text, SectionHeader, Bullet, FilledBox, TableRow, ImageBlock, Footer]


@dataclass(frozen=True)
class LayoutResult:
    instructions: tuple[LayoutInstruction, ...]
    total_pages: int
    # Index of the first instruction after the page-one title band.
    body_start: int = 0

    @property
    def body(self) -> tuple[LayoutInstruction, ...]:
        return tuple(
            item for item in self.instructions[self.body_start:] if not isinstance(item, Footer)
        )

    @property
    def footers(self) -> tuple[Footer, ...]:
        return tuple(item for item in self.instructions if isinstance(item, Footer))

    def on_page(self, page: int) -> list[LayoutInstruction]:
        return [item for item in self.instructions if item.page == page]

    def to_dicts(self) -> list[dict[str, Any]]:
        return [item.to_dict() for item in self.instructions]
