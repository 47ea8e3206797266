"""Per-question score breakdown for one application.

Every assigned question gets exactly one entry, in assignment order,
whether or not the applicant answered it.  Unanswered questions show
``"Not answered"`` and score 0 but still count toward the maximum.
Entry percentages are not clamped, so a Text answer above its 30-point
denominator shows above 100%; only the application total is clamped.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from applicant_scoring.scoring.normalizer import entry_percentage, max_for_assignment, percentage

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from applicant_scoring.repository.base import Answer, Assignment, ScoringRepository
    from applicant_scoring.scoring.question import QuestionAnswerScorer

logger = logging.getLogger(__name__)

NOT_ANSWERED = "Not answered"


@dataclass
class ScoreBreakdownEntry:
    """One assigned question's contribution to an application's score."""

    question_id: int
    question_text: str
    question_type: str
    order: int
    answer_text: str
    raw_score: float
    max_score: float
    percentage: float
    answered: bool = True


@dataclass
class ApplicationScore:
    """Raw total, position maximum, and percentage for one application."""

    application_id: int
    raw_total: float = 0.0
    max_score: float = 0.0
    percentage: float = 0.0
    entries: list[ScoreBreakdownEntry] = field(default_factory=list)


class ScoreBreakdownReporter:
    """Scores an application's answers question by question.

    Usage::

        reporter = ScoreBreakdownReporter(repository, scorer)
        entries = await reporter.breakdown(application_id=7)
        for e in entries:
            print(e.order, e.question_text, e.raw_score, e.max_score)
    """

    def __init__(self, repository: ScoringRepository, scorer: QuestionAnswerScorer) -> None:
        self.repository = repository
        self.scorer = scorer

    async def score_answers(
        self,
        application_id: int,
        assignments: Sequence[Assignment],
        answers: Iterable[Answer],
    ) -> ApplicationScore:
        """Score *answers* against *assignments* without touching the repository.

        Answers to questions the position does not assign are ignored.
        """
        by_question = {a.question_id: a.text for a in answers}
        ordered = sorted(assignments, key=lambda a: a.order)
        raw_scores = await asyncio.gather(*(
            self.scorer.score_assignment(a, by_question.get(a.question.id))
            for a in ordered
        ))

        result = ApplicationScore(application_id=application_id)
        for assignment, raw in zip(ordered, raw_scores, strict=True):
            question = assignment.question
            answer_text = by_question.get(question.id)
            answered = bool(answer_text)
            maximum = max_for_assignment(assignment)
            result.entries.append(ScoreBreakdownEntry(
                question_id=question.id,
                question_text=question.text,
                question_type=question.type,
                order=assignment.order,
                answer_text=answer_text or NOT_ANSWERED,
                raw_score=raw,
                max_score=maximum,
                percentage=entry_percentage(raw, maximum),
                answered=answered,
            ))
            result.raw_total += raw
            result.max_score += maximum

        result.percentage = percentage(result.raw_total, result.max_score)
        return result

    async def score_application(self, application_id: int) -> ApplicationScore | None:
        """Load and score one application; ``None`` if it does not exist."""
        application = self.repository.get_application(application_id)
        if application is None:
            logger.warning("Application %d not found", application_id)
            return None
        return await self.score_answers(
            application.id,
            self.repository.assignments_for_position(application.position_id),
            self.repository.answers_for_application(application.id),
        )

    async def breakdown(self, application_id: int) -> list[ScoreBreakdownEntry]:
        scored = await self.score_application(application_id)
        return scored.entries if scored is not None else []
