import os
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.services.analysis_llm import AnalysisLLMError, analysis_llm_enabled, json_completion_required  # noqa: E402
from app.services.analysis_service import (  # noqa: E402
    AnalysisQualityError,
    build_analysis_prompt,
    run_analysis,
    validate_analysis_payload,
)


def _payload(**overrides):
    payload = {
        "summary": "Strong backend engineer.",
        "match_score": 82,
        "strengths": ["Python"],
        "weaknesses": ["Frontend"],
        "skills": ["Python", "SQL"],
        "suggestions": ["Explore design depth"],
        "experience_years": "8",
        "education_level": "Master",
        "salary_range": "$120,000 - $140,000",
        "technical_score": 88,
        "communication_score": 74,
        "leadership_score": 69,
        "problem_solving_score": 90,
        "teamwork_score": 81,
        "adaptability_score": 77.5,
        "interview_readiness": "High",
        "cultural_fit_indicators": [],
        "red_flags": [],
        "hiring_recommendation": "Hire",
        "next_steps": ["Schedule interview"],
    }
    payload.update(overrides)
    return payload


class AnalysisValidationTests(unittest.TestCase):
    def test_valid_payload_has_no_problems(self):
        self.assertEqual(validate_analysis_payload(_payload()), [])

    def test_missing_field_is_reported(self):
        payload = _payload()
        del payload["next_steps"]
        self.assertEqual(validate_analysis_payload(payload), ["missing field: next_steps"])

    def test_out_of_range_and_wrong_types_are_reported(self):
        problems = validate_analysis_payload(
            _payload(match_score=120, skills="Python", hiring_recommendation="  ", teamwork_score=True)
        )
        self.assertIn("field match_score is not a number between 0 and 100", problems)
        self.assertIn("field skills is not a list", problems)
        self.assertIn("field hiring_recommendation is not a non-empty string", problems)
        self.assertIn("field teamwork_score is not a number between 0 and 100", problems)

    def test_non_object_payload(self):
        self.assertEqual(validate_analysis_payload(["not", "a", "dict"]), ["payload is not an object"])


class AnalysisServiceTests(unittest.TestCase):
    def test_prompt_switches_on_job_description(self):
        general = build_analysis_prompt("resume text")
        specific = build_analysis_prompt("resume text", "Python backend role")
        self.assertIn("without specific job matching", general)
        self.assertIn('"match_score": 75', general)
        self.assertIn("JOB REQUIREMENTS:\nPython backend role", specific)
        self.assertIn("NUMBER_0_to_100", specific)

    def test_run_analysis_returns_report_model(self):
        with patch("app.services.analysis_service.json_completion_required", return_value=_payload()) as mocked:
            model = run_analysis("resume text", "job text")
        self.assertEqual(model.match_score, 82)
        self.assertEqual(model.hiring_recommendation, "Hire")
        self.assertIn("job text", mocked.call_args.kwargs["user_prompt"])

    def test_run_analysis_rejects_incomplete_payload(self):
        payload = _payload()
        del payload["summary"]
        with patch("app.services.analysis_service.json_completion_required", return_value=payload):
            with self.assertRaises(AnalysisQualityError) as ctx:
                run_analysis("resume text")
        self.assertEqual(ctx.exception.status_code, 502)

    def test_disabled_llm_raises_service_unavailable(self):
        with patch.dict(os.environ, {"ANALYSIS_LLM_ENABLED": "0"}):
            self.assertFalse(analysis_llm_enabled())
            with self.assertRaises(AnalysisLLMError) as ctx:
                json_completion_required(system_prompt="s", user_prompt="u")
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(ctx.exception.code, "llm_disabled")

    def test_placeholder_key_counts_as_unconfigured(self):
        with patch.dict(os.environ, {"ANALYSIS_LLM_ENABLED": "1", "OPENAI_API_KEY": "your_key_here"}):
            self.assertFalse(analysis_llm_enabled())


if __name__ == "__main__":
    unittest.main()
