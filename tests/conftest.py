"""Global test configuration — shared fixtures.

This conftest provides:

1. **Question bank** — one question of each type plus a second Number
   question, reused across scorer, normalizer, and engine tests.

2. **Repository factory** — ``make_repository`` builds a real
   :class:`InMemoryRepository` from compact ``{application_id: {question_id:
   answer}}`` maps, so tests read like the scenario they describe.

3. **I/O-boundary fixture** — ``mock_evaluator`` is a real
   :class:`ExternalEvaluatorClient` with its network methods replaced by
   ``AsyncMock`` stubs.  By default it declines every request (returns
   ``None``), which exercises the deterministic fallback.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest

from applicant_scoring.repository.base import (
    Answer,
    Applicant,
    Application,
    Assignment,
    Option,
    OptionOverride,
    Position,
    Question,
)
from applicant_scoring.repository.memory import InMemoryRepository
from applicant_scoring.scoring.evaluator import ExternalEvaluatorClient

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

# ---------------------------------------------------------------------------
# Question bank
# ---------------------------------------------------------------------------

CHOICE_Q = Question(
    id=1,
    text="Preferred work arrangement?",
    type="Choice",
    options=(Option("Remote", 10), Option("Hybrid", 7), Option("On-site", 4)),
)
RATING_Q = Question(id=2, text="Rate your proficiency with Python", type="Rating")
EXPERIENCE_Q = Question(id=3, text="How many years of experience do you have?", type="Number")
TEAM_SIZE_Q = Question(id=4, text="Preferred team size", type="Number")
TEXT_Q = Question(
    id=5,
    text="Describe a challenging software problem you solved.",
    type="Text",
)

# Choice + Rating + two Numbers: position max 40
STRUCTURED_QUESTIONS: tuple[Question, ...] = (CHOICE_Q, RATING_Q, EXPERIENCE_Q, TEAM_SIZE_Q)

STRONG_TEXT_ANSWER = (
    "In my role as a backend developer I solved a slow reporting problem for our "
    "customer team. The approach was to profile the database queries, add indexes, "
    "and move heavy aggregation into a background worker written in Python.\n\n"
    "As a result, report latency decreased by 80 percent and we delivered the fix "
    "within budget. However, the bigger win was the monitoring we added, which "
    "improved reliability across 3 projects."
)


# ---------------------------------------------------------------------------
# Repository factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_repository() -> Callable[..., InMemoryRepository]:
    """Factory fixture — returns a callable that builds an InMemoryRepository.

    Every application targets ``position_id``; questions are assigned in
    the given sequence with ``order`` 1, 2, 3, ...

    Usage::

        def test_something(make_repository):
            repo = make_repository(answers={1: {1: "Remote", 2: "5"}})
            repo = make_repository(
                questions=[CHOICE_Q],
                overrides={CHOICE_Q.id: [OptionOverride("Remote", 2)]},
                answers={1: {1: "Remote"}},
                applicants={1: ("Ada Park", "ada@example.com")},
            )
    """

    def _factory(
        *,
        questions: Sequence[Question] = STRUCTURED_QUESTIONS,
        answers: Mapping[int, Mapping[int, str | None]] | None = None,
        overrides: Mapping[int, Sequence[OptionOverride]] | None = None,
        applicants: Mapping[int, tuple[str | None, str | None]] | None = None,
        statuses: Mapping[int, str] | None = None,
        scores: Mapping[int, float] | None = None,
        position_id: int = 1,
        extra_positions: Sequence[Position] = (),
    ) -> InMemoryRepository:
        answers = answers or {}
        overrides = overrides or {}
        applicants = applicants or {}
        statuses = statuses or {}
        scores = scores or {}
        return InMemoryRepository(
            questions=questions,
            assignments=[
                Assignment(
                    position_id=position_id,
                    question=q,
                    order=i,
                    overrides=tuple(overrides.get(q.id, ())),
                )
                for i, q in enumerate(questions, 1)
            ],
            positions=[Position(id=position_id, title="Backend Engineer"), *extra_positions],
            applicants=[
                Applicant(id=app_id, full_name=name, email=email)
                for app_id, (name, email) in applicants.items()
            ],
            applications=[
                Application(
                    id=app_id,
                    applicant_id=app_id,
                    position_id=position_id,
                    applied_on=datetime(2024, 3, app_id % 28 + 1),
                    status=statuses.get(app_id),
                    score=scores.get(app_id),
                )
                for app_id in answers
            ],
            answers=[
                Answer(application_id=app_id, question_id=qid, text=text)
                for app_id, by_question in answers.items()
                for qid, text in by_question.items()
            ],
        )

    return _factory


# ---------------------------------------------------------------------------
# Shared I/O-boundary fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_evaluator() -> ExternalEvaluatorClient:
    """ExternalEvaluatorClient with stubbed I/O — no Ollama connection needed.

    Uses ``ExternalEvaluatorClient.__new__`` to create a real instance
    without calling ``__init__`` (which would create an
    ``ollama.AsyncClient``).  ``evaluate`` returns ``None`` (fallback)
    unless a test sets ``return_value`` or ``side_effect``.
    """
    evaluator = ExternalEvaluatorClient.__new__(ExternalEvaluatorClient)
    evaluator.base_url = "http://localhost:11434"
    evaluator.model = "mistral:7b"
    evaluator.choice_timeout = 2.0
    evaluator.numeric_timeout = 1.5
    evaluator.evaluate = AsyncMock(return_value=None)  # type: ignore[method-assign]
    evaluator.health_check = AsyncMock()  # type: ignore[method-assign]
    return evaluator


# Percentages 95 / 80 / 60 / 40 against the 40-point structured position,
# keyed by application id and deliberately listed out of rank order.
GRADED_ANSWERS: dict[int, dict[int, str | None]] = {
    3: {1: "Hybrid", 2: "3", 3: "3", 4: "5"},
    1: {1: "Remote", 2: "5", 3: "5", 4: "8"},
    4: {1: "On-site", 2: "2", 3: "2", 4: "4"},
    2: {1: "Remote", 2: "3", 3: "4", 4: "8"},
}


@pytest.fixture
def dataset_file(tmp_path: Path) -> Path:
    """A JSON dataset on disk: the structured position, the four graded
    applications, and application 5 that answered only the Choice question.
    """
    answers = {**GRADED_ANSWERS, 5: {1: "Remote"}}
    data = {
        "questions": [
            {
                "id": q.id,
                "text": q.text,
                "type": q.type,
                "options": [{"text": o.text, "points": o.points} for o in q.options],
            }
            for q in STRUCTURED_QUESTIONS
        ],
        "positions": [
            {
                "id": 1,
                "title": "Backend Engineer",
                "is_open": True,
                "questions": [
                    {"question_id": q.id, "order": i}
                    for i, q in enumerate(STRUCTURED_QUESTIONS, 1)
                ],
            }
        ],
        "applicants": [
            {"id": app_id, "full_name": f"Applicant {app_id}", "email": f"a{app_id}@example.com"}
            for app_id in answers
        ],
        "applications": [
            {
                "id": app_id,
                "applicant_id": app_id,
                "position_id": 1,
                "applied_on": f"2024-03-0{app_id}T09:00:00",
                "status": None,
                "score": None,
                "answers": [{"question_id": qid, "text": text} for qid, text in by_q.items()],
            }
            for app_id, by_q in sorted(answers.items())
        ],
    }
    path = tmp_path / "dataset.json"
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def settings_file(tmp_path: Path, dataset_file: Path) -> Path:
    """settings.toml with the evaluator disabled, pointing at ``dataset_file``."""
    path = tmp_path / "settings.toml"
    path.write_text(
        f'[evaluator]\nenabled = false\n\n[data]\ndataset_path = "{dataset_file.as_posix()}"\n',
        encoding="utf-8",
    )
    return path
