"""Repository package — data contracts plus in-memory and JSON-file stores."""

from applicant_scoring.repository.base import (
    Answer,
    Applicant,
    Application,
    Assignment,
    Option,
    OptionOverride,
    Position,
    Question,
    QuestionType,
    ScoringRepository,
)
from applicant_scoring.repository.json_store import JsonFileRepository
from applicant_scoring.repository.memory import InMemoryRepository

__all__ = [
    "Answer",
    "Applicant",
    "Application",
    "Assignment",
    "InMemoryRepository",
    "JsonFileRepository",
    "Option",
    "OptionOverride",
    "Position",
    "Question",
    "QuestionType",
    "ScoringRepository",
]
