from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from pydantic import BaseModel, Field, model_validator

from .limits import MIN_TEXT_CHARS

SourceFormat = Literal["PDF", "DOCX"]
StrategyUsed = Literal["PrimaryPdf", "FallbackPdf", "Docx"]


@dataclass(frozen=True)
class DocumentUpload:
    """An uploaded blob whose size is known before its bytes are read."""

    name: str
    size: int
    read: Callable[[], bytes]

    @classmethod
    def from_bytes(cls, name: str, content: bytes) -> "DocumentUpload":
        return cls(name=name, size=len(content), read=lambda: content)


class ExtractedDocument(BaseModel):
    text: str
    source_format: SourceFormat
    strategy_used: StrategyUsed
    char_count: int = Field(ge=MIN_TEXT_CHARS)
    filename: str = ""
    warnings: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _char_count_matches_text(self) -> "ExtractedDocument":
        if self.char_count != len(self.text):
            raise ValueError("char_count must equal len(text)")
        return self
