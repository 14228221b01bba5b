import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.report.scoring import (  # noqa: E402
    format_percent,
    metric_rows,
    overall_score,
    recommendation_color_key,
    recommendation_tier,
    tier_color_key,
)
from app.schemas.report import ReportModel  # noqa: E402


class OverallScoreTests(unittest.TestCase):
    def test_inputs_default_independently(self):
        model = ReportModel(match_score=80)
        self.assertEqual(overall_score(model), 76)
        self.assertEqual(recommendation_tier(overall_score(model)), "Recommended")

    def test_absent_model_uses_all_defaults(self):
        # (0 + 70 + 75 + 80) / 4 = 56.25
        self.assertEqual(overall_score(None), 56)

    def test_half_values_round_up(self):
        model = ReportModel(match_score=81, skills_score=70, experience_score=75, education_score=80)
        # 306 / 4 = 76.5
        self.assertEqual(overall_score(model), 77)

    def test_tier_boundaries_are_inclusive(self):
        self.assertEqual(recommendation_tier(85), "Highly Recommended")
        self.assertEqual(recommendation_tier(84.9), "Recommended")
        self.assertEqual(recommendation_tier(70), "Recommended")
        self.assertEqual(recommendation_tier(55), "Consider with Caution")
        self.assertEqual(recommendation_tier(54), "Not Recommended")
        self.assertEqual([tier_color_key(s) for s in (90, 72, 60, 10)], ["success", "info", "warning", "danger"])


class RecommendationColorTests(unittest.TestCase):
    def test_closed_mapping(self):
        self.assertEqual(recommendation_color_key("Strong No Hire"), "danger")
        self.assertEqual(recommendation_color_key("Needs More Info (Caution)"), "warning")
        self.assertEqual(recommendation_color_key("Hire"), "success")
        self.assertEqual(recommendation_color_key("no hire"), "danger")
        self.assertEqual(recommendation_color_key(None), "success")


class MetricRowTests(unittest.TestCase):
    def test_eight_rows_with_defaults(self):
        rows = metric_rows(ReportModel())
        self.assertEqual(len(rows), 8)
        self.assertEqual(rows[0], ("Job Match", "0%"))
        self.assertEqual(rows[1], ("Technical Skills", "75%"))
        self.assertEqual(rows[-1], ("Interview Readiness", "N/A"))

    def test_scores_render_as_integer_percentages(self):
        rows = dict(metric_rows(ReportModel(technical_score=91.6, interview_readiness="High")))
        self.assertEqual(rows["Technical Skills"], "92%")
        self.assertEqual(rows["Interview Readiness"], "High")
        self.assertEqual(format_percent(0), "0%")


if __name__ == "__main__":
    unittest.main()
