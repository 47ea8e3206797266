"""Position maxima and percentage normalisation.

A position's maximum is the sum of its assigned questions' type maxima:

- Choice — greatest effective option points (override-aware)
- Rating, Number — 10
- Text — 30, a fixed denominator only; Text raw scores are not capped
- unknown type — 0

Maxima are recomputed from the repository on every call so an edited
assignment or override takes effect on the next scoring pass.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from applicant_scoring.repository.base import QuestionType
from applicant_scoring.scoring.choice import max_choice_points
from applicant_scoring.scoring.numeric import NUMERIC_MAX_POINTS

if TYPE_CHECKING:
    from collections.abc import Iterable

    from applicant_scoring.repository.base import Assignment, ScoringRepository

TEXT_MAX_POINTS = 30.0


def percentage(raw: float, maximum: float) -> float:
    """``raw / maximum`` as a percentage clamped into [0, 100].

    >>> percentage(38, 40)
    95.0
    >>> percentage(45, 40)
    100.0
    >>> percentage(5, 0)
    0.0
    """
    if maximum <= 0:
        return 0.0
    return min(100.0, max(0.0, raw * 100 / maximum))


def entry_percentage(raw: float, maximum: float) -> float:
    """Unclamped ``raw / maximum`` percentage for one breakdown entry.

    A Text answer scoring above its 30-point denominator shows above 100.

    >>> entry_percentage(45, 30)
    150.0
    """
    return raw * 100 / maximum if maximum > 0 else 0.0


def max_for_assignment(assignment: Assignment) -> float:
    qtype = assignment.question.question_type
    if qtype is QuestionType.CHOICE:
        return max_choice_points(assignment.question, assignment.overrides)
    if qtype in (QuestionType.RATING, QuestionType.NUMBER):
        return NUMERIC_MAX_POINTS
    if qtype is QuestionType.TEXT:
        return TEXT_MAX_POINTS
    return 0.0


def max_for_assignments(assignments: Iterable[Assignment]) -> float:
    return sum((max_for_assignment(a) for a in assignments), 0.0)


class PositionScoreNormalizer:
    """Computes per-position maxima from live repository configuration."""

    def __init__(self, repository: ScoringRepository) -> None:
        self.repository = repository

    def max_for_position(self, position_id: int) -> float:
        return max_for_assignments(self.repository.assignments_for_position(position_id))

    def percentage(self, raw: float, maximum: float) -> float:
        return percentage(raw, maximum)
