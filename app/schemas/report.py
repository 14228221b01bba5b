from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.extraction.models import ExtractedDocument, SourceFormat, StrategyUsed

Score = Annotated[float | None, Field(ge=0, le=100)]

LIST_FIELDS = (
    "strengths",
    "weaknesses",
    "skills",
    "suggestions",
    "cultural_fit_indicators",
    "red_flags",
    "next_steps",
)
TEXT_FIELDS = (
    "summary",
    "education_level",
    "interview_readiness",
    "hiring_recommendation",
    "salary_range",
)


class ReportModel(BaseModel):
    """Analysis result as consumed by the report layout; tolerant of partial payloads."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    summary: str = ""

    match_score: Score = None
    technical_score: Score = None
    communication_score: Score = None
    leadership_score: Score = None
    problem_solving_score: Score = None
    teamwork_score: Score = None
    adaptability_score: Score = None
    skills_score: Score = None
    experience_score: Score = None
    education_score: Score = None

    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    cultural_fit_indicators: list[str] = Field(default_factory=list)
    red_flags: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)

    education_level: str = ""
    interview_readiness: str = ""
    hiring_recommendation: str = ""
    salary_range: str = ""
    experience_years: str = ""

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        if not isinstance(value, (list, tuple)):
            raise ValueError("expected a list of strings")
        return ["" if item is None else str(item) for item in value]

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("experience_years", mode="before")
    @classmethod
    def _coerce_experience(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).strip()


class ExtractTextResponse(BaseModel):
    text: str
    source_format: SourceFormat
    strategy_used: StrategyUsed
    char_count: int = Field(ge=0)
    filename: str = ""
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_document(cls, document: ExtractedDocument) -> "ExtractTextResponse":
        return cls(
            text=document.text,
            source_format=document.source_format,
            strategy_used=document.strategy_used,
            char_count=document.char_count,
            filename=document.filename,
            warnings=list(document.warnings),
        )


class AnalyzeRequest(BaseModel):
    resume_text: str = Field(min_length=1, max_length=50000)
    job_description: str = Field(default="", max_length=50000)


class LayoutPreviewResponse(BaseModel):
    total_pages: int = Field(ge=1)
    instructions: list[dict[str, Any]] = Field(default_factory=list)
