"""Scoring engine tests — compute, preload, recalculate, wiring.

Covers :class:`TestComputeScore`, :class:`TestScorePreloaded`,
:class:`TestRecalculate`, :class:`TestEvaluatorIntegration`, and
:class:`TestFromSettings`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from applicant_scoring.config import Settings
from applicant_scoring.errors import ActionableError, ErrorType
from applicant_scoring.pipeline.engine import ScoringEngine
from applicant_scoring.repository.base import (
    Answer,
    Application,
    Assignment,
    ScoringRepository,
)
from applicant_scoring.repository.json_store import JsonFileRepository
from applicant_scoring.scoring.evaluator import ExternalEvaluatorClient
from applicant_scoring.scoring.question import QuestionAnswerScorer
from applicant_scoring.scoring.text_rules import RuleContribution, TextHeuristicScorer
from conftest import CHOICE_Q, GRADED_ANSWERS, RATING_Q, TEXT_Q

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from applicant_scoring.repository.memory import InMemoryRepository


class TestComputeScore:
    """
    REQUIREMENT: compute_score returns an application's percentage of its position maximum.

    WHO: Any caller that needs one applicant's score
    WHAT: Percentage in [0, 100]; an unknown application scores 0.0;
          with the evaluator disabled the same inputs always give the same
          result; Text raw scores above 30 clamp the percentage at 100
    WHY: The stored score is compared across runs to detect changes, so it
         must be stable for unchanged answers
    """

    async def test_graded_application(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        engine = ScoringEngine(make_repository(answers=GRADED_ANSWERS))

        assert await engine.compute_score(1) == 95.0
        assert await engine.compute_score(4) == 40.0

    async def test_unknown_application_scores_zero(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        engine = ScoringEngine(make_repository(answers=GRADED_ANSWERS))

        assert await engine.compute_score(404) == 0.0

    async def test_repeated_scoring_is_identical(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        engine = ScoringEngine(make_repository(answers=GRADED_ANSWERS))

        first = [await engine.compute_score(i) for i in GRADED_ANSWERS]
        second = [await engine.compute_score(i) for i in GRADED_ANSWERS]

        assert first == second

    async def test_text_score_above_nominal_max_clamps_only_the_total(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        """
        Given a text scorer that awards 45 points to any answer
        When a Text-only position is scored
        Then the entry shows raw 45 of 30 (150%) and the application percentage is 100
        """
        generous = TextHeuristicScorer(rules=[lambda ctx: RuleContribution("fixed", 45.0)])
        repo = make_repository(questions=[TEXT_Q], answers={1: {TEXT_Q.id: "Anything"}})
        engine = ScoringEngine(repo, scorer=QuestionAnswerScorer(text_scorer=generous))

        entries = await engine.get_score_breakdown(1)

        assert entries[0].raw_score == 45.0
        assert entries[0].max_score == 30.0
        assert entries[0].percentage == 150.0
        assert await engine.compute_score(1) == 100.0

    def test_max_score_for_position(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        engine = ScoringEngine(make_repository())

        assert engine.get_max_score_for_position(1) == 40.0


class TestScorePreloaded:
    """
    REQUIREMENT: An application with answers already in hand is scored without repository reads.

    WHO: Batch callers that have loaded applications and configuration themselves
    WHAT: score_preloaded uses only application.answers and the given
          assignments, and matches compute_score for the same data
    WHY: Scoring N applications must not cost N extra round-trips
    """

    async def test_no_repository_access(self) -> None:
        repo = MagicMock(spec=ScoringRepository)
        engine = ScoringEngine(repo)
        application = Application(
            id=9,
            applicant_id=9,
            position_id=1,
            answers=[
                Answer(application_id=9, question_id=CHOICE_Q.id, text="Remote"),
                Answer(application_id=9, question_id=RATING_Q.id, text="3"),
            ],
        )
        assignments = [
            Assignment(position_id=1, question=CHOICE_Q, order=1),
            Assignment(position_id=1, question=RATING_Q, order=2),
        ]

        pct = await engine.score_preloaded(application, assignments)

        assert pct == 80.0
        assert repo.method_calls == []

    async def test_matches_compute_score(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        repo = make_repository(answers=GRADED_ANSWERS)
        engine = ScoringEngine(repo)
        application = repo.get_application(2)
        assert application is not None
        assert len(application.answers) == 4

        preloaded = await engine.score_preloaded(application, repo.assignments_for_position(1))

        assert preloaded == await engine.compute_score(2) == 80.0


class TestRecalculate:
    """
    REQUIREMENT: Recalculation rewrites only changed scores and isolates failures.

    WHO: Operators refreshing cached scores after a questionnaire edit
    WHAT: Every in-scope application is rescored; a changed score is
          written, an equal one is counted unchanged; a failure for one
          application is counted and the rest continue; scope is all,
          one position, or one application, never both
    WHY: One locked row must not leave a whole position with stale scores
    """

    async def test_first_run_updates_every_application(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        repo = make_repository(answers=GRADED_ANSWERS)
        engine = ScoringEngine(repo)

        result = await engine.recalculate()

        assert (result.total, result.updated, result.unchanged, result.failed) == (4, 4, 0, 0)
        assert repo.get_application(1).score == 95.0  # type: ignore[union-attr]
        assert repo.get_application(4).score == 40.0  # type: ignore[union-attr]

    async def test_second_run_changes_nothing(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        engine = ScoringEngine(make_repository(answers=GRADED_ANSWERS))
        await engine.recalculate()

        result = await engine.recalculate()

        assert result.updated == 0
        assert result.unchanged == 4

    async def test_stale_score_is_replaced(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        repo = make_repository(answers=GRADED_ANSWERS, scores={1: 95.0, 2: 12.5})
        engine = ScoringEngine(repo)

        result = await engine.recalculate()

        assert result.unchanged == 1
        assert result.updated == 3
        assert repo.get_application(2).score == 80.0  # type: ignore[union-attr]

    async def test_position_scope(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        engine = ScoringEngine(make_repository(answers=GRADED_ANSWERS))

        assert (await engine.recalculate(position_id=1)).total == 4
        assert (await engine.recalculate(position_id=2)).total == 0

    async def test_application_scope(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        repo = make_repository(answers=GRADED_ANSWERS)
        engine = ScoringEngine(repo)

        result = await engine.recalculate(application_id=3)

        assert (result.total, result.updated) == (1, 1)
        assert repo.get_application(3).score == 60.0  # type: ignore[union-attr]
        assert repo.get_application(1).score is None  # type: ignore[union-attr]

    async def test_unknown_application_scope_is_empty(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        engine = ScoringEngine(make_repository(answers=GRADED_ANSWERS))

        assert (await engine.recalculate(application_id=404)).total == 0

    async def test_both_scopes_is_a_validation_error(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        engine = ScoringEngine(make_repository(answers=GRADED_ANSWERS))

        with pytest.raises(ActionableError) as exc_info:
            await engine.recalculate(position_id=1, application_id=1)
        assert exc_info.value.error_type == ErrorType.VALIDATION

    async def test_write_failures_are_isolated(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        """
        Given application 2's write raises PERSISTENCE and application 3's raises PermissionError
        When everything is recalculated
        Then both are counted as failed and applications 1 and 4 are still stored
        """
        repo = make_repository(answers=GRADED_ANSWERS)
        store = repo.update_score

        def _update(application_id: int, score: float) -> None:
            if application_id == 2:
                raise ActionableError.persistence(application_id, "row is locked")
            if application_id == 3:
                raise PermissionError("read-only file system")
            store(application_id, score)

        repo.update_score = _update  # type: ignore[method-assign]
        engine = ScoringEngine(repo)

        result = await engine.recalculate()

        assert (result.total, result.updated, result.failed) == (4, 2, 2)
        assert repo.get_application(1).score == 95.0  # type: ignore[union-attr]
        assert repo.get_application(4).score == 40.0  # type: ignore[union-attr]
        assert repo.get_application(2).score is None  # type: ignore[union-attr]


class TestEvaluatorIntegration:
    """
    REQUIREMENT: With the evaluator enabled, its scores replace the deterministic ones.

    WHO: Deployments running a local Ollama model
    WHAT: An evaluator score is used for Choice/Rating/Number answers; a
          declined request falls back and the result equals the
          evaluator-free score
    WHY: The evaluator is an enhancement — turning it on must never make
         scoring fail
    """

    async def test_evaluator_scores_are_used(
        self,
        make_repository: Callable[..., InMemoryRepository],
        mock_evaluator: ExternalEvaluatorClient,
    ) -> None:
        mock_evaluator.evaluate.return_value = 10.0  # type: ignore[attr-defined]
        engine = ScoringEngine(make_repository(answers=GRADED_ANSWERS), evaluator=mock_evaluator)

        assert await engine.compute_score(4) == 100.0

    async def test_declining_evaluator_matches_deterministic_score(
        self,
        make_repository: Callable[..., InMemoryRepository],
        mock_evaluator: ExternalEvaluatorClient,
    ) -> None:
        repo = make_repository(answers=GRADED_ANSWERS)
        with_evaluator = ScoringEngine(repo, evaluator=mock_evaluator)

        assert await with_evaluator.compute_score(3) == await ScoringEngine(repo).compute_score(3)
        assert mock_evaluator.evaluate.await_count == 4  # type: ignore[attr-defined]


class TestFromSettings:
    """
    REQUIREMENT: The engine is assembled from validated settings.

    WHO: The CLI and any embedding application
    WHAT: The configured dataset is opened; the evaluator is created only
          when enabled; max_concurrency is taken from [scoring]
    WHY: A disabled evaluator must not open a connection to Ollama
    """

    def test_disabled_evaluator(self, dataset_file: Path) -> None:
        settings = Settings()
        settings.data.dataset_path = str(dataset_file)
        settings.scoring.max_concurrency = 3

        engine = ScoringEngine.from_settings(settings)

        assert engine.evaluator is None
        assert isinstance(engine.repository, JsonFileRepository)
        assert engine.max_concurrency == 3

    def test_enabled_evaluator(self, dataset_file: Path) -> None:
        settings = Settings()
        settings.data.dataset_path = str(dataset_file)
        settings.evaluator.enabled = True
        settings.evaluator.model = "llama3:8b"

        engine = ScoringEngine.from_settings(settings)

        assert isinstance(engine.evaluator, ExternalEvaluatorClient)
        assert engine.evaluator.model == "llama3:8b"
        assert engine.scorer.evaluator is engine.evaluator

    def test_explicit_repository_wins(
        self, make_repository: Callable[..., InMemoryRepository]
    ) -> None:
        repo = make_repository()

        assert ScoringEngine.from_settings(Settings(), repository=repo).repository is repo
