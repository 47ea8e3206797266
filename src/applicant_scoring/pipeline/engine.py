"""Scoring engine — the single entry point for scoring, ranking, and recalculation.

The engine wires a repository to the scoring components:

1. :class:`QuestionAnswerScorer` — raw points per answer (optionally
   consulting the external evaluator)
2. :class:`ScoreBreakdownReporter` — per-question entries and totals
3. :class:`CandidateRanker` — per-position ordering
4. :mod:`~applicant_scoring.scoring.normalizer` — position maxima and
   percentages

**Reproducibility.**  With the evaluator disabled (or consistently
unreachable) every operation is deterministic: scoring an unchanged
application twice yields the same percentage.  With the evaluator
enabled, Choice/Rating/Number points come from a model that may answer
differently, or time out, on each call, so repeated scores and
recalculations can differ.  Callers that compare scores across runs
should disable the evaluator.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from applicant_scoring.errors import ActionableError
from applicant_scoring.pipeline.analysis import (
    PositionStatistics,
    QuestionPerformance,
    analyze_question,
    position_statistics,
)
from applicant_scoring.pipeline.breakdown import ScoreBreakdownReporter
from applicant_scoring.pipeline.ranker import CandidateRanker
from applicant_scoring.repository.json_store import JsonFileRepository
from applicant_scoring.scoring.evaluator import ExternalEvaluatorClient
from applicant_scoring.scoring.normalizer import PositionScoreNormalizer
from applicant_scoring.scoring.question import QuestionAnswerScorer

if TYPE_CHECKING:
    from collections.abc import Sequence

    from applicant_scoring.config import Settings
    from applicant_scoring.pipeline.breakdown import ScoreBreakdownEntry
    from applicant_scoring.pipeline.ranker import CandidateRanking
    from applicant_scoring.repository.base import Application, Assignment, ScoringRepository

logger = logging.getLogger(__name__)


@dataclass
class RecalculateResult:
    """Outcome of a recalculation batch.

    ``updated`` counts applications whose stored score changed.
    ``unchanged`` were rescored to the value already stored.  ``failed``
    could not be scored or written; see the log for each.
    """

    total: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0


class ScoringEngine:
    """Façade over scoring, ranking, breakdown, and recalculation.

    Usage::

        engine = ScoringEngine(repository)                # deterministic
        engine = ScoringEngine.from_settings(settings)    # dataset + evaluator per config
        pct = await engine.compute_score(application_id=12)
        rankings = await engine.rank_candidates(position_id=3)
        result = await engine.recalculate(position_id=3)
    """

    def __init__(
        self,
        repository: ScoringRepository,
        *,
        evaluator: ExternalEvaluatorClient | None = None,
        scorer: QuestionAnswerScorer | None = None,
        max_concurrency: int = 8,
    ) -> None:
        self.repository = repository
        self.evaluator = evaluator
        self.scorer = scorer or QuestionAnswerScorer(evaluator=evaluator)
        self.max_concurrency = max_concurrency
        self.normalizer = PositionScoreNormalizer(repository)
        self.reporter = ScoreBreakdownReporter(repository, self.scorer)
        self.ranker = CandidateRanker(
            repository, self.reporter, max_concurrency=max_concurrency
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        repository: ScoringRepository | None = None,
    ) -> ScoringEngine:
        """Build an engine from validated settings.

        Opens the configured JSON dataset unless *repository* is given.
        The evaluator is created only when ``[evaluator].enabled`` is true.
        """
        evaluator: ExternalEvaluatorClient | None = None
        if settings.evaluator.enabled:
            evaluator = ExternalEvaluatorClient(
                base_url=settings.evaluator.base_url,
                model=settings.evaluator.model,
                choice_timeout=settings.evaluator.choice_timeout_seconds,
                numeric_timeout=settings.evaluator.numeric_timeout_seconds,
            )
        return cls(
            repository or JsonFileRepository(settings.data.dataset_path),
            evaluator=evaluator,
            max_concurrency=settings.scoring.max_concurrency,
        )

    # -- Scoring -------------------------------------------------------------

    async def compute_score(self, application_id: int) -> float:
        """Percentage in [0, 100] for one application; 0.0 if it does not exist."""
        scored = await self.reporter.score_application(application_id)
        return scored.percentage if scored is not None else 0.0

    async def score_preloaded(
        self,
        application: Application,
        assignments: Sequence[Assignment],
    ) -> float:
        """Percentage for an application whose answers are already loaded.

        Reads nothing from the repository; only ``application.answers``
        and *assignments* are used.
        """
        scored = await self.reporter.score_answers(
            application.id, assignments, application.answers
        )
        return scored.percentage

    async def get_score_breakdown(self, application_id: int) -> list[ScoreBreakdownEntry]:
        return await self.reporter.breakdown(application_id)

    def get_max_score_for_position(self, position_id: int) -> float:
        return self.normalizer.max_for_position(position_id)

    async def rank_candidates(self, position_id: int) -> list[CandidateRanking]:
        return await self.ranker.rank(position_id)

    # -- Recalculation -------------------------------------------------------

    async def recalculate(
        self,
        *,
        position_id: int | None = None,
        application_id: int | None = None,
    ) -> RecalculateResult:
        """Rescore and store the cached score for one application, one
        position, or (with neither argument) every application.

        Each application is scored and written independently.  A failure
        is logged and counted, and the rest of the batch continues.
        """
        if position_id is not None and application_id is not None:
            raise ActionableError.validation(
                field_name="recalculate scope",
                reason="pass position_id or application_id, not both",
            )

        if application_id is not None:
            application = self.repository.get_application(application_id)
            applications = [application] if application is not None else []
            scope = f"application {application_id}"
        elif position_id is not None:
            applications = self.repository.applications_for_position(position_id)
            scope = f"position {position_id}"
        else:
            applications = self.repository.all_applications()
            scope = "all applications"

        result = RecalculateResult(total=len(applications))
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _recalculate_one(application: Application) -> bool | None:
            """Returns True if stored, False if unchanged, None on failure."""
            try:
                async with semaphore:
                    percentage = await self.compute_score(application.id)
                if application.score == percentage:
                    return False
                self.repository.update_score(application.id, percentage)
                return True
            except ActionableError as exc:
                logger.error(
                    "Recalculation failed for application %d: %s", application.id, exc.error
                )
                return None
            except OSError as exc:
                err = ActionableError.from_exception(exc, "repository", "recalculate")
                logger.error(
                    "Recalculation failed for application %d: %s", application.id, err.error
                )
                return None

        outcomes = await asyncio.gather(*(_recalculate_one(a) for a in applications))
        for outcome in outcomes:
            if outcome is None:
                result.failed += 1
            elif outcome:
                result.updated += 1
            else:
                result.unchanged += 1

        logger.info(
            "Recalculated %s: %d total, %d updated, %d unchanged, %d failed",
            scope,
            result.total,
            result.updated,
            result.unchanged,
            result.failed,
        )
        return result

    # -- Reporting -----------------------------------------------------------

    async def analyze_question(self, question_id: int) -> QuestionPerformance | None:
        return await analyze_question(self.repository, self.scorer, question_id)

    async def position_statistics(self, position_id: int) -> PositionStatistics | None:
        """Statistics for one position; ``None`` if the position does not exist."""
        position = self.repository.get_position(position_id)
        if position is None:
            logger.warning("Position %d not found", position_id)
            return None
        rankings = await self.rank_candidates(position_id)
        return position_statistics(
            position, rankings, self.get_max_score_for_position(position_id)
        )

    async def all_position_statistics(self) -> list[PositionStatistics]:
        """Statistics for every open position, ordered by position id."""
        stats: list[PositionStatistics] = []
        for position in self.repository.open_positions():
            rankings = await self.rank_candidates(position.id)
            stats.append(position_statistics(
                position, rankings, self.get_max_score_for_position(position.id)
            ))
        return stats
