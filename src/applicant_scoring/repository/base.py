"""Shared data contracts and abstract base class for scoring repositories.

Questions, options, assignments, and answers are authored elsewhere and are
read-only here.  The only field this package ever writes is
:attr:`Application.score`, through :meth:`ScoringRepository.update_score`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


class QuestionType(StrEnum):
    """Answer formats a questionnaire question can take."""

    CHOICE = "choice"
    RATING = "rating"
    NUMBER = "number"
    TEXT = "text"

    @classmethod
    def parse(cls, raw: str | None) -> QuestionType | None:
        """Case-insensitive lookup; ``None`` for unknown or missing types."""
        if not raw:
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class Option:
    """One selectable answer of a Choice question with its default points."""

    text: str
    points: float


@dataclass(frozen=True)
class OptionOverride:
    """Position-specific replacement for one option's points.

    ``points`` may be ``None`` when an override row exists without a value;
    such rows never shadow the default.
    """

    option_text: str
    points: float | None = None


@dataclass(frozen=True)
class Question:
    """A question from the shared bank.

    ``type`` keeps the raw label so unknown types flow through and score 0.
    """

    id: int
    text: str
    type: str
    options: tuple[Option, ...] = ()
    is_active: bool = True

    @property
    def question_type(self) -> QuestionType | None:
        return QuestionType.parse(self.type)


@dataclass(frozen=True)
class Assignment:
    """A question assigned to a position, in display/scoring order."""

    position_id: int
    question: Question
    order: int
    overrides: tuple[OptionOverride, ...] = ()


@dataclass(frozen=True)
class Answer:
    """An applicant's raw answer to one question."""

    application_id: int
    question_id: int
    text: str | None


@dataclass
class Applicant:
    """The person behind an application (display fields only)."""

    id: int
    full_name: str | None = None
    email: str | None = None


@dataclass
class Position:
    """A job opening."""

    id: int
    title: str
    is_open: bool = True


@dataclass
class Application:
    """One applicant's submission to one position.

    ``score`` is the cached aggregate percentage.  It is output only and
    is never read back as an input to scoring.

    Repository reads return applications with ``answers`` filled in.
    """

    id: int
    applicant_id: int
    position_id: int
    applied_on: datetime | None = None
    status: str | None = None
    score: float | None = None
    answers: list[Answer] = field(default_factory=list)


class ScoringRepository(ABC):
    """Read access to questionnaire configuration and answers, plus the
    single score write-back.

    Implementations raise :class:`~applicant_scoring.errors.ActionableError`
    (REPOSITORY) when the underlying store is unreachable and
    (PERSISTENCE) when a score cannot be written.  Lookups of unknown ids
    return ``None`` or an empty list rather than raising.
    """

    # -- configuration -------------------------------------------------------

    @abstractmethod
    def assignments_for_position(self, position_id: int) -> list[Assignment]:
        """Assigned questions for *position_id*, sorted ascending by ``order``."""
        ...

    @abstractmethod
    def get_question(self, question_id: int) -> Question | None: ...

    @abstractmethod
    def get_position(self, position_id: int) -> Position | None: ...

    @abstractmethod
    def open_positions(self) -> list[Position]: ...

    # -- applications and answers --------------------------------------------

    @abstractmethod
    def get_application(self, application_id: int) -> Application | None: ...

    @abstractmethod
    def applications_for_position(self, position_id: int) -> list[Application]: ...

    @abstractmethod
    def all_applications(self) -> list[Application]: ...

    @abstractmethod
    def answers_for_application(self, application_id: int) -> list[Answer]: ...

    @abstractmethod
    def answers_for_question(self, question_id: int) -> list[Answer]: ...

    @abstractmethod
    def get_applicant(self, applicant_id: int) -> Applicant | None: ...

    # -- write-back ----------------------------------------------------------

    @abstractmethod
    def update_score(self, application_id: int, score: float) -> None:
        """Atomically replace the cached aggregate score of one application."""
        ...
