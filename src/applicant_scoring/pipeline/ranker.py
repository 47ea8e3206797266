"""Candidate ranking for one position.

Every application to the position is scored independently (bounded by
``max_concurrency``), decorated with applicant display fields, and
sorted:

1. **Percentage**, highest first.
2. **Application id**, lowest first, so equal scores rank in submission
   order and repeated runs return the same ordering.

Missing applicant records never abort a ranking.  The display name
falls back to ``"Unknown"``, the email to ``""``, and an unset status
to ``"Pending"``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from applicant_scoring.pipeline.breakdown import (
        ApplicationScore,
        ScoreBreakdownEntry,
        ScoreBreakdownReporter,
    )
    from applicant_scoring.repository.base import Application, ScoringRepository

logger = logging.getLogger(__name__)

UNKNOWN_APPLICANT = "Unknown"
DEFAULT_STATUS = "Pending"
NOMINAL_MAX = 100.0


@dataclass
class CandidateRanking:
    """One application's place in a position's ranking."""

    application_id: int
    display_name: str
    display_email: str
    percentage: float
    applied_on: datetime | None = None
    status: str = DEFAULT_STATUS
    breakdown: list[ScoreBreakdownEntry] = field(default_factory=list)
    nominal_max: float = NOMINAL_MAX


def ranking_key(ranking: CandidateRanking) -> tuple[float, int]:
    return (-ranking.percentage, ranking.application_id)


class CandidateRanker:
    """Scores all applications for a position and sorts them.

    Usage::

        ranker = CandidateRanker(repository, reporter, max_concurrency=8)
        rankings = await ranker.rank(position_id=3)
    """

    def __init__(
        self,
        repository: ScoringRepository,
        reporter: ScoreBreakdownReporter,
        *,
        max_concurrency: int = 8,
    ) -> None:
        self.repository = repository
        self.reporter = reporter
        self.max_concurrency = max_concurrency

    async def rank(self, position_id: int) -> list[CandidateRanking]:
        applications = self.repository.applications_for_position(position_id)
        if not applications:
            logger.info("No applications for position %d", position_id)
            return []

        # One snapshot of the configuration for the whole ranking
        assignments = self.repository.assignments_for_position(position_id)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _score(application: Application) -> CandidateRanking:
            async with semaphore:
                scored = await self.reporter.score_answers(
                    application.id, assignments, application.answers
                )
            return self._to_ranking(application, scored)

        rankings = list(await asyncio.gather(*(_score(a) for a in applications)))
        rankings.sort(key=ranking_key)

        logger.info(
            "Ranked %d applications for position %d (top %.1f%%)",
            len(rankings),
            position_id,
            rankings[0].percentage,
        )
        return rankings

    def _to_ranking(self, application: Application, scored: ApplicationScore) -> CandidateRanking:
        applicant = self.repository.get_applicant(application.applicant_id)
        return CandidateRanking(
            application_id=application.id,
            display_name=(applicant.full_name if applicant else None) or UNKNOWN_APPLICANT,
            display_email=(applicant.email if applicant else None) or "",
            percentage=scored.percentage,
            applied_on=application.applied_on,
            status=application.status or DEFAULT_STATUS,
            breakdown=scored.entries,
        )
