from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from app.schemas.report import ReportModel
from app.services.analysis_llm import json_completion_required

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "summary",
    "match_score",
    "strengths",
    "weaknesses",
    "skills",
    "suggestions",
    "experience_years",
    "education_level",
    "salary_range",
    "technical_score",
    "communication_score",
    "leadership_score",
    "problem_solving_score",
    "teamwork_score",
    "adaptability_score",
    "interview_readiness",
    "cultural_fit_indicators",
    "red_flags",
    "hiring_recommendation",
    "next_steps",
)
ARRAY_FIELDS = (
    "strengths",
    "weaknesses",
    "skills",
    "suggestions",
    "cultural_fit_indicators",
    "red_flags",
    "next_steps",
)
NUMERIC_FIELDS = (
    "match_score",
    "technical_score",
    "communication_score",
    "leadership_score",
    "problem_solving_score",
    "teamwork_score",
    "adaptability_score",
)
STRING_FIELDS = ("summary", "education_level", "salary_range", "interview_readiness", "hiring_recommendation")

SYSTEM_PROMPT = (
    "You are a senior HR analytics expert with 15+ years of experience in talent acquisition "
    "and candidate assessment. Return only a JSON object."
)


class AnalysisQualityError(RuntimeError):
    def __init__(self, message: str, *, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


def build_analysis_prompt(resume_text: str, job_description: str = "") -> str:
    job_description = (job_description or "").strip()
    if job_description:
        job_block = (
            f"JOB REQUIREMENTS:\n{job_description}\n\n"
            "Provide detailed job-specific matching analysis and cultural fit assessment."
        )
        match_hint = "NUMBER_0_to_100"
    else:
        job_block = "Provide general professional assessment without specific job matching."
        match_hint = "75"

    return f"""Analyze this resume comprehensively from an HR perspective, focusing on hiring decisions, team fit, and long-term potential.

RESUME CONTENT:
{resume_text}

{job_block}

ANALYSIS FRAMEWORK:
- Evaluate technical competencies and soft skills
- Assess leadership potential and team collaboration
- Identify career progression and growth trajectory
- Consider cultural fit and organizational alignment
- Provide actionable hiring recommendations
- Estimate market value and compensation range
- Flag any potential concerns or red flags

Return ONLY this JSON structure:
{{
  "summary": "Professional 2-3 sentence executive summary highlighting key qualifications and suitability",
  "match_score": {match_hint},
  "strengths": ["4-5 specific strengths with examples from the resume"],
  "weaknesses": ["3-4 honest areas for improvement or concerns"],
  "skills": ["10-15 technical and professional skills"],
  "suggestions": ["Specific actionable recommendations, interview focus areas, development advice"],
  "experience_years": "NUMBER_estimated_total_years",
  "education_level": "Bachelor/Master/PhD/Other",
  "salary_range": "$XX,000 - $XX,000 (market rate estimate)",
  "technical_score": NUMBER_0_to_100,
  "communication_score": NUMBER_0_to_100,
  "leadership_score": NUMBER_0_to_100,
  "problem_solving_score": NUMBER_0_to_100,
  "teamwork_score": NUMBER_0_to_100,
  "adaptability_score": NUMBER_0_to_100,
  "interview_readiness": "High/Medium/Low",
  "cultural_fit_indicators": ["2-3 cultural fit observations"],
  "red_flags": ["Concerning gaps or inconsistencies, if any"],
  "hiring_recommendation": "Strong Hire/Hire/No Hire/Needs More Info",
  "next_steps": ["Immediate action items for the HR team"]
}}

SCORING GUIDELINES:
- match_score: Job relevance and requirements fit
- technical_score: Technical skills and expertise level
- communication_score: Written communication evidence in resume
- leadership_score: Leadership experience and potential
- problem_solving_score: Analytical and problem-solving capabilities
- teamwork_score: Collaboration and team experience
- adaptability_score: Career flexibility and learning agility

Base all assessments on actual resume content. Be objective, professional, and constructive in feedback."""


def validate_analysis_payload(payload: Any) -> list[str]:
    """Return a list of problems; empty when the payload is usable."""
    if not isinstance(payload, dict):
        return ["payload is not an object"]

    problems = [f"missing field: {name}" for name in REQUIRED_FIELDS if name not in payload]
    if problems:
        return problems

    for name in ARRAY_FIELDS:
        if not isinstance(payload[name], list):
            problems.append(f"field {name} is not a list")
    for name in NUMERIC_FIELDS:
        value = payload[name]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 100:
            problems.append(f"field {name} is not a number between 0 and 100")
    for name in STRING_FIELDS:
        value = payload[name]
        if not isinstance(value, str) or not value.strip():
            problems.append(f"field {name} is not a non-empty string")
    return problems


def run_analysis(resume_text: str, job_description: str = "") -> ReportModel:
    payload = json_completion_required(
        system_prompt=SYSTEM_PROMPT,
        user_prompt=build_analysis_prompt(resume_text, job_description),
    )
    problems = validate_analysis_payload(payload)
    if problems:
        logger.warning("analysis_payload_rejected problems=%s", "; ".join(problems[:5]))
        raise AnalysisQualityError("The analysis result was incomplete or malformed. Try again.")
    try:
        return ReportModel.model_validate(payload)
    except ValidationError as exc:
        logger.warning("analysis_payload_invalid errors=%s", exc.error_count())
        raise AnalysisQualityError("The analysis result was incomplete or malformed. Try again.") from exc
