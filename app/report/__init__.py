from .instructions import ChartImage, LayoutResult
from .layout import LayoutEngine
from .renderer import RenderedReport, ReportRenderer, report_filename
from .scoring import overall_score, recommendation_color_key, recommendation_tier

__all__ = [
    "ChartImage",
    "LayoutEngine",
    "LayoutResult",
    "RenderedReport",
    "ReportRenderer",
    "overall_score",
    "recommendation_color_key",
    "recommendation_tier",
    "report_filename",
]
