from __future__ import annotations

from reportlab.pdfbase.pdfmetrics import stringWidth

PT_TO_MM = 25.4 / 72
LINE_HEIGHT_FACTOR = 0.5
ELLIPSIS = "..."


def text_width_mm(text: str, font_name: str, font_size: float) -> float:
    return stringWidth(text, font_name, font_size) * PT_TO_MM


def line_height_mm(font_size: float) -> float:
    return font_size * LINE_HEIGHT_FACTOR


def block_height_mm(font_size: float, line_count: int) -> float:
    return line_height_mm(font_size) * line_count


def _split_long_word(word: str, max_width: float, font_name: str, font_size: float) -> list[str]:
    pieces: list[str] = []
    current = ""
    for char in word:
        candidate = current + char
        if current and text_width_mm(candidate, font_name, font_size) > max_width:
            pieces.append(current)
            current = char
        else:
            current = candidate
    if current:
        pieces.append(current)
    return pieces


def wrap_text(text: str, max_width: float, font_name: str, font_size: float) -> list[str]:
    """Greedy word wrap measured with the font's metrics.

    Explicit newlines start a new line. A word wider than ``max_width`` on its
    own is split at character boundaries.
    """
    lines: list[str] = []
    for raw_line in (text or "").splitlines() or [""]:
        words = raw_line.split()
        if not words:
            continue
        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if text_width_mm(candidate, font_name, font_size) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            if text_width_mm(word, font_name, font_size) <= max_width:
                current = word
                continue
            pieces = _split_long_word(word, max_width, font_name, font_size)
            lines.extend(pieces[:-1])
            current = pieces[-1]
        if current:
            lines.append(current)
    return lines


def truncate_lines(
    lines: list[str],
    max_lines: int,
    max_width: float,
    font_name: str,
    font_size: float,
) -> list[str]:
    """Keep the first ``max_lines`` lines and end the last one with an ellipsis."""
    if len(lines) <= max_lines:
        return list(lines)
    kept = list(lines[: max(max_lines, 1)])
    last = kept[-1]
    while last and text_width_mm(last + ELLIPSIS, font_name, font_size) > max_width:
        last = last[:-1]
    kept[-1] = last.rstrip() + ELLIPSIS
    return kept
