"""Per-answer scoring: dispatch by question type, with the optional evaluator.

Choice, Rating, and Number answers are first offered to the external
evaluator when one is configured.  Its score is used only for that one
call; any failure falls through to the deterministic scorer for the
type.  Text answers always use :class:`TextHeuristicScorer`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from applicant_scoring.repository.base import QuestionType
from applicant_scoring.scoring.choice import score_choice
from applicant_scoring.scoring.evaluator import EvaluationRequest
from applicant_scoring.scoring.numeric import numeric_context, score_number, score_rating
from applicant_scoring.scoring.text_rules import TextHeuristicScorer

if TYPE_CHECKING:
    from collections.abc import Sequence

    from applicant_scoring.repository.base import Assignment, OptionOverride, Question
    from applicant_scoring.scoring.evaluator import ExternalEvaluatorClient

logger = logging.getLogger(__name__)

RATING_CONTEXT = "1-5 scale"


def is_blank(answer_text: str | None) -> bool:
    """Missing or empty.  Whitespace-only answers are still scored by type."""
    return answer_text is None or answer_text == ""


class QuestionAnswerScorer:
    """Scores one answer to one question.

    Usage::

        scorer = QuestionAnswerScorer(evaluator=evaluator)  # or None
        points = await scorer.score(question, "Remote", overrides)
    """

    def __init__(
        self,
        evaluator: ExternalEvaluatorClient | None = None,
        text_scorer: TextHeuristicScorer | None = None,
    ) -> None:
        self.evaluator = evaluator
        self.text_scorer = text_scorer or TextHeuristicScorer()

    async def score(
        self,
        question: Question,
        answer_text: str | None,
        overrides: Sequence[OptionOverride] = (),
    ) -> float:
        """Raw points for *answer_text*; never negative, never raises on bad input."""
        if answer_text is None or is_blank(answer_text):
            return 0.0

        qtype = question.question_type
        if qtype is None:
            logger.debug("Question %d has unknown type %r; scoring 0", question.id, question.type)
            return 0.0
        if qtype is QuestionType.TEXT:
            return self.text_scorer.score(question.text, answer_text)

        external = await self._evaluate(question, qtype, answer_text, overrides)
        if external is not None:
            return external

        if qtype is QuestionType.CHOICE:
            return score_choice(question, answer_text, overrides)
        if qtype is QuestionType.RATING:
            return score_rating(answer_text)
        return score_number(question.text, answer_text)

    async def score_assignment(self, assignment: Assignment, answer_text: str | None) -> float:
        return await self.score(assignment.question, answer_text, assignment.overrides)

    async def _evaluate(
        self,
        question: Question,
        qtype: QuestionType,
        answer_text: str,
        overrides: Sequence[OptionOverride],
    ) -> float | None:
        if self.evaluator is None:
            return None

        options: tuple[str, ...] = ()
        context: str | None = None
        if qtype is QuestionType.CHOICE:
            options = tuple(o.text for o in question.options)
            known = {o.casefold() for o in options}
            options += tuple(
                o.option_text
                for o in overrides
                if o.points is not None and o.option_text.casefold() not in known
            )
        elif qtype is QuestionType.RATING:
            context = RATING_CONTEXT
        else:
            context = numeric_context(question.text)

        return await self.evaluator.evaluate(EvaluationRequest(
            question_text=question.text,
            answer_text=answer_text,
            question_type=qtype,
            options=options,
            context=context,
        ))
