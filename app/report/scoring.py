from __future__ import annotations

import math
from typing import Any

OVERALL_INPUT_DEFAULTS: tuple[tuple[str, float], ...] = (
    ("match_score", 0),
    ("skills_score", 70),
    ("experience_score", 75),
    ("education_score", 80),
)

# (label, model field, default when absent)
KEY_METRICS: tuple[tuple[str, str, float | None], ...] = (
    ("Job Match", "match_score", 0),
    ("Technical Skills", "technical_score", 75),
    ("Communication", "communication_score", 80),
    ("Leadership", "leadership_score", 70),
    ("Problem Solving", "problem_solving_score", 85),
    ("Teamwork", "teamwork_score", 78),
    ("Adaptability", "adaptability_score", 82),
    ("Interview Readiness", "interview_readiness", None),
)

RECOMMENDATION_TIERS: tuple[tuple[int, str, str], ...] = (
    (85, "Highly Recommended", "success"),
    (70, "Recommended", "info"),
    (55, "Consider with Caution", "warning"),
)
LOWEST_TIER = ("Not Recommended", "danger")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _field(model: Any, name: str) -> Any:
    return getattr(model, name, None) if model is not None else None


def overall_score(model: Any) -> int:
    """Mean of match/skills/experience/education, each defaulted on its own."""
    values = []
    for name, default in OVERALL_INPUT_DEFAULTS:
        value = _field(model, name)
        values.append(float(default if value is None else value))
    return round_half_up(sum(values) / len(values))


def recommendation_tier(score: float) -> str:
    for threshold, label, _color in RECOMMENDATION_TIERS:
        if score >= threshold:
            return label
    return LOWEST_TIER[0]


def tier_color_key(score: float) -> str:
    for threshold, _label, color in RECOMMENDATION_TIERS:
        if score >= threshold:
            return color
    return LOWEST_TIER[1]


def recommendation_color_key(hiring_recommendation: str | None) -> str:
    value = (hiring_recommendation or "").lower()
    if "no hire" in value:
        return "danger"
    if "caution" in value:
        return "warning"
    return "success"


def format_percent(value: float) -> str:
    return f"{round_half_up(float(value))}%"


def metric_rows(model: Any) -> list[tuple[str, str]]:
    rows: list[tuple[str, str]] = []
    for label, name, default in KEY_METRICS:
        value = _field(model, name)
        if default is None:
            rows.append((label, str(value).strip() if value else "N/A"))
            continue
        rows.append((label, format_percent(default if value is None else value)))
    return rows
