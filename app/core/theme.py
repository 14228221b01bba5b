from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

DEFAULT_THEME_PATH = Path(__file__).resolve().parents[2] / "config" / "report_theme.yaml"
REQUIRED_SECTIONS = ("colors", "fonts", "sizes", "spacing")

_HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def _validate_theme(theme: Any, path: Path) -> dict[str, Any]:
    if not isinstance(theme, dict):
        raise RuntimeError(f"Invalid report theme '{path}': expected a top-level mapping.")

    missing = [name for name in REQUIRED_SECTIONS if not isinstance(theme.get(name), dict)]
    if missing:
        raise RuntimeError(f"Invalid report theme '{path}': missing section(s) {', '.join(missing)}.")

    bad_colors = [
        name for name, value in theme["colors"].items() if not isinstance(value, str) or not _HEX_COLOR_RE.match(value)
    ]
    if bad_colors:
        raise RuntimeError(f"Invalid report theme '{path}': colors must be #rrggbb ({', '.join(bad_colors)}).")

    for section in ("sizes", "spacing"):
        for name, value in theme[section].items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise RuntimeError(f"Invalid report theme '{path}': {section}.{name} must be a positive number.")
    return theme


def load_report_theme(path: Path | str = DEFAULT_THEME_PATH) -> dict[str, Any]:
    """Read and validate a report theme YAML file (palette, fonts, sizes, spacing)."""
    theme_path = Path(path)
    try:
        raw = theme_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RuntimeError(f"Report theme not found at '{theme_path}'.") from exc
    except OSError as exc:
        raise RuntimeError(f"Failed to read report theme '{theme_path}': {exc}") from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in report theme '{theme_path}': {exc}") from exc
    return _validate_theme(parsed, theme_path)


@lru_cache(maxsize=1)
def get_report_theme() -> dict[str, Any]:
    return load_report_theme(DEFAULT_THEME_PATH)


def get_theme_value(path: str, default: Any = None) -> Any:
    """Dot-path lookup into the cached theme, e.g. 'colors.header_band'."""
    if not path:
        return default
    current: Any = get_report_theme()
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current
