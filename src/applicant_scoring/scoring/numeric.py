"""Rating and Number scoring.

Both map onto a fixed 0–10 point domain.  Unparseable input scores 0.
"""

from __future__ import annotations

import math

NUMERIC_MAX_POINTS = 10.0
RATING_MIN = 1
RATING_MAX = 5


def _clamp(value: float) -> float:
    return float(min(NUMERIC_MAX_POINTS, max(0.0, value)))


def score_rating(answer_text: str) -> float:
    """A 1–5 rating doubled onto 0–10; anything else is 0.

    >>> score_rating("4")
    8.0
    >>> score_rating("6")
    0.0
    """
    try:
        value = int(answer_text.strip())
    except ValueError:
        return 0.0
    if not RATING_MIN <= value <= RATING_MAX:
        return 0.0
    return _clamp(value * 2)


def _parse_number(answer_text: str) -> float | None:
    try:
        value = float(answer_text.strip().replace(",", ""))
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def is_experience_question(question_text: str) -> bool:
    """True for "how many years of experience"-style questions."""
    lowered = question_text.lower()
    return "year" in lowered and "experience" in lowered


def score_number(question_text: str, answer_text: str) -> float:
    """Years of experience count double; other numbers are clamped as-is.

    >>> score_number("Years of experience with Python?", "3")
    6.0
    >>> score_number("Preferred team size", "25")
    10.0
    """
    value = _parse_number(answer_text)
    if value is None:
        return 0.0
    if is_experience_question(question_text):
        return _clamp(value * 2)
    return _clamp(value)


def numeric_context(question_text: str) -> str:
    """Short tag describing what a numeric answer measures.

    Sent to the external evaluator so it can judge the number in context.
    """
    lowered = question_text.lower()
    if is_experience_question(question_text):
        return "years of experience"
    if "salary" in lowered or "compensation" in lowered:
        return "salary expectation"
    if "team" in lowered or "manage" in lowered:
        return "team size"
    if "hour" in lowered or "week" in lowered:
        return "time availability"
    return "general numeric response"
