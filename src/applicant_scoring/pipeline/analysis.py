"""Reporting over scored answers: per-question performance and per-position stats.

:class:`QuestionPerformance` shows how applicants fare on one question
across every position that asks it.  Raw scores are bucketed:

====== ===========
bucket raw score
====== ===========
0-2    ≤ 2
3-4    ≤ 4
5-6    ≤ 6
7-8    ≤ 8
9-10   above 8
====== ===========

Text scores can exceed 10; they land in the top bucket.

:class:`PositionStatistics` summarises one position's ranking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from applicant_scoring.pipeline.ranker import CandidateRanking
    from applicant_scoring.repository.base import OptionOverride, Position, ScoringRepository
    from applicant_scoring.scoring.question import QuestionAnswerScorer

logger = logging.getLogger(__name__)

BUCKETS: tuple[tuple[str, float], ...] = (
    ("0-2", 2),
    ("3-4", 4),
    ("5-6", 6),
    ("7-8", 8),
)
TOP_BUCKET = "9-10"


def bucket_for(raw_score: float) -> str:
    """Distribution bucket label for *raw_score*.

    >>> bucket_for(4.0)
    '3-4'
    >>> bucket_for(8.5)
    '9-10'
    """
    for label, upper in BUCKETS:
        if raw_score <= upper:
            return label
    return TOP_BUCKET


def empty_distribution() -> dict[str, int]:
    return {label: 0 for label, _ in BUCKETS} | {TOP_BUCKET: 0}


@dataclass
class QuestionPerformance:
    """Answer count, mean raw score, and score distribution for one question."""

    question_id: int
    question_text: str
    total_responses: int
    average_score: float
    distribution: dict[str, int] = field(default_factory=empty_distribution)


@dataclass
class PositionStatistics:
    """Headline numbers for one position's applicant pool."""

    position_id: int
    title: str
    application_count: int
    average_percentage: float
    max_score: float
    top_percentage: float


async def analyze_question(
    repository: ScoringRepository,
    scorer: QuestionAnswerScorer,
    question_id: int,
) -> QuestionPerformance | None:
    """Score every answer to *question_id* and summarise the results.

    Each answer is scored with the option overrides of the position its
    application targets.  Returns ``None`` for an unknown question or a
    question nobody has answered.
    """
    question = repository.get_question(question_id)
    if question is None:
        logger.warning("Question %d not found", question_id)
        return None
    answers = repository.answers_for_question(question_id)
    if not answers:
        return None

    overrides_by_position: dict[int, tuple[OptionOverride, ...]] = {}
    distribution = empty_distribution()
    total = 0.0
    for answer in answers:
        application = repository.get_application(answer.application_id)
        overrides: tuple[OptionOverride, ...] = ()
        if application is not None:
            position_id = application.position_id
            if position_id not in overrides_by_position:
                overrides_by_position[position_id] = next(
                    (
                        a.overrides
                        for a in repository.assignments_for_position(position_id)
                        if a.question.id == question_id
                    ),
                    (),
                )
            overrides = overrides_by_position[position_id]
        raw = await scorer.score(question, answer.text, overrides)
        distribution[bucket_for(raw)] += 1
        total += raw

    return QuestionPerformance(
        question_id=question.id,
        question_text=question.text,
        total_responses=len(answers),
        average_score=total / len(answers),
        distribution=distribution,
    )


def position_statistics(
    position: Position,
    rankings: list[CandidateRanking],
    max_score: float,
) -> PositionStatistics:
    percentages = [r.percentage for r in rankings]
    return PositionStatistics(
        position_id=position.id,
        title=position.title,
        application_count=len(rankings),
        average_percentage=sum(percentages) / len(percentages) if percentages else 0.0,
        max_score=max_score,
        top_percentage=max(percentages, default=0.0),
    )
