"""In-memory repository.

Holds every entity in dicts keyed by id.  Reads return copies of the
stored lists so a scoring pass sees a consistent snapshot even while
another task writes a score, and applications come back with their
answers attached.  ``update_score`` takes a lock so each
write-back is a single atomic replacement.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import TYPE_CHECKING

from applicant_scoring.errors import ActionableError
from applicant_scoring.repository.base import ScoringRepository

if TYPE_CHECKING:
    from collections.abc import Iterable

    from applicant_scoring.repository.base import (
        Answer,
        Applicant,
        Application,
        Assignment,
        Position,
        Question,
    )

logger = logging.getLogger(__name__)


class InMemoryRepository(ScoringRepository):
    """Dict-backed :class:`ScoringRepository`.

    Usage::

        repo = InMemoryRepository(
            questions=[q1, q2],
            assignments=[Assignment(position_id=1, question=q1, order=1)],
            applications=[app],
            answers=[Answer(application_id=app.id, question_id=q1.id, text="5")],
        )
    """

    def __init__(
        self,
        *,
        questions: Iterable[Question] = (),
        assignments: Iterable[Assignment] = (),
        positions: Iterable[Position] = (),
        applicants: Iterable[Applicant] = (),
        applications: Iterable[Application] = (),
        answers: Iterable[Answer] = (),
    ) -> None:
        self._lock = threading.Lock()
        self._questions: dict[int, Question] = {q.id: q for q in questions}
        self._positions: dict[int, Position] = {p.id: p for p in positions}
        self._applicants: dict[int, Applicant] = {a.id: a for a in applicants}
        self._applications: dict[int, Application] = {a.id: a for a in applications}
        self._assignments: dict[int, list[Assignment]] = {}
        for assignment in assignments:
            self._assignments.setdefault(assignment.position_id, []).append(assignment)
        self._answers: dict[int, list[Answer]] = {}
        for answer in answers:
            self._answers.setdefault(answer.application_id, []).append(answer)

        self._validate_assignment_order()
        self._validate_single_answer_per_question()

    # -- configuration -------------------------------------------------------

    def assignments_for_position(self, position_id: int) -> list[Assignment]:
        return sorted(self._assignments.get(position_id, []), key=lambda a: a.order)

    def get_question(self, question_id: int) -> Question | None:
        return self._questions.get(question_id)

    def get_position(self, position_id: int) -> Position | None:
        return self._positions.get(position_id)

    def open_positions(self) -> list[Position]:
        return sorted(
            (p for p in self._positions.values() if p.is_open),
            key=lambda p: p.id,
        )

    # -- applications and answers --------------------------------------------

    def get_application(self, application_id: int) -> Application | None:
        with self._lock:
            application = self._applications.get(application_id)
            return self._with_answers(application) if application else None

    def applications_for_position(self, position_id: int) -> list[Application]:
        with self._lock:
            return [
                self._with_answers(a)
                for a in sorted(self._applications.values(), key=lambda a: a.id)
                if a.position_id == position_id
            ]

    def all_applications(self) -> list[Application]:
        with self._lock:
            return [
                self._with_answers(a)
                for a in sorted(self._applications.values(), key=lambda a: a.id)
            ]

    def _with_answers(self, application: Application) -> Application:
        """Copy of *application* carrying its own answers."""
        return dataclasses.replace(
            application, answers=list(self._answers.get(application.id, []))
        )

    def answers_for_application(self, application_id: int) -> list[Answer]:
        return list(self._answers.get(application_id, []))

    def answers_for_question(self, question_id: int) -> list[Answer]:
        return [
            answer
            for answers in self._answers.values()
            for answer in answers
            if answer.question_id == question_id
        ]

    def get_applicant(self, applicant_id: int) -> Applicant | None:
        return self._applicants.get(applicant_id)

    # -- write-back ----------------------------------------------------------

    def update_score(self, application_id: int, score: float) -> None:
        with self._lock:
            application = self._applications.get(application_id)
            if application is None:
                raise ActionableError.persistence(
                    application_id, "application does not exist"
                )
            self._applications[application_id] = dataclasses.replace(
                application, score=score
            )
        logger.debug("Stored score %.2f for application %d", score, application_id)

    # -- validation ----------------------------------------------------------

    def _validate_assignment_order(self) -> None:
        """Each position's assignment ``order`` values must be unique."""
        for position_id, assignments in self._assignments.items():
            orders = [a.order for a in assignments]
            if len(orders) != len(set(orders)):
                raise ActionableError.validation(
                    field_name=f"assignments[position={position_id}].order",
                    reason="order values must be unique per position",
                    suggestion="Renumber the position's questions so every order is distinct",
                )

    def _validate_single_answer_per_question(self) -> None:
        """At most one answer per (application, question)."""
        for application_id, answers in self._answers.items():
            question_ids = [a.question_id for a in answers]
            if len(question_ids) != len(set(question_ids)):
                raise ActionableError.validation(
                    field_name=f"answers[application={application_id}]",
                    reason="an application may answer each question at most once",
                )
