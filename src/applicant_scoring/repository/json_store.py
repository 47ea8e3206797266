"""JSON dataset repository.

Loads a whole questionnaire dataset (questions, positions with their
assigned questions and option overrides, applicants, applications with
their answers) from one JSON file.  Score write-backs rewrite the file
through a temp file and ``os.replace`` so a crash mid-write never leaves a
half-written dataset.

Expected layout::

    {
      "questions": [
        {"id": 1, "text": "Preferred work mode?", "type": "Choice",
         "options": [{"text": "Remote", "points": 5}]}
      ],
      "positions": [
        {"id": 1, "title": "Backend Engineer", "is_open": true,
         "questions": [
           {"question_id": 1, "order": 1,
            "overrides": [{"option": "Remote", "points": 2}]}
         ]}
      ],
      "applicants": [{"id": 1, "full_name": "Ada Park", "email": "ada@example.com"}],
      "applications": [
        {"id": 1, "applicant_id": 1, "position_id": 1,
         "applied_on": "2024-03-01T09:00:00", "status": "Submitted",
         "score": null, "answers": [{"question_id": 1, "text": "Remote"}]}
      ]
    }
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from applicant_scoring.errors import ActionableError
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

logger = logging.getLogger(__name__)


class JsonFileRepository(InMemoryRepository):
    """:class:`InMemoryRepository` loaded from, and persisted to, a JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._raw = _read_dataset(self.path)
        self._file_lock = threading.Lock()
        try:
            questions = {q["id"]: _question(q) for q in self._raw.get("questions", [])}
            positions, assignments = _positions(self._raw.get("positions", []), questions)
            applicants = [_applicant(a) for a in self._raw.get("applicants", [])]
            applications, answers = _applications(self._raw.get("applications", []))
        except (KeyError, TypeError, ValueError) as exc:
            raise ActionableError.parse(
                source=str(self.path),
                location="dataset structure",
                raw_error=f"{type(exc).__name__}: {exc}",
                suggestion="Compare the dataset against the documented layout in json_store.py",
            ) from None

        super().__init__(
            questions=questions.values(),
            assignments=assignments,
            positions=positions,
            applicants=applicants,
            applications=applications,
            answers=answers,
        )
        logger.info(
            "Loaded dataset %s: %d questions, %d positions, %d applications",
            self.path,
            len(questions),
            len(positions),
            len(applications),
        )

    def update_score(self, application_id: int, score: float) -> None:
        """Persist *score* to disk, then to memory.

        The in-memory score changes only after the file has been replaced,
        so a failed write leaves both at the old value and the next
        recalculation retries it.
        """
        if self.get_application(application_id) is None:
            raise ActionableError.persistence(application_id, "application does not exist")
        with self._file_lock:
            updated = copy.deepcopy(self._raw)
            for raw_app in updated.get("applications", []):
                if str(raw_app.get("id")) == str(application_id):
                    raw_app["score"] = score
                    break
            try:
                self._write_atomic(updated)
            except OSError as exc:
                raise ActionableError.persistence(application_id, str(exc)) from None
            self._raw = updated
            super().update_score(application_id, score)

    def _write_atomic(self, data: dict[str, Any]) -> None:
        """Write *data* to a sibling temp file, then swap it into place."""
        directory = self.path.parent
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Rewrote dataset %s", self.path)


# ---------------------------------------------------------------------------
# Loading helpers
# ---------------------------------------------------------------------------


def _read_dataset(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ActionableError.repository(
            operation="load dataset",
            raw_error=f"Dataset file not found: {path}",
            suggestion=f"Create {path} or point [data].dataset_path at an existing dataset",
        )
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ActionableError.parse(
            source=str(path),
            location=f"line {exc.lineno} column {exc.colno}",
            raw_error=exc.msg,
        ) from None
    if not isinstance(data, dict):
        raise ActionableError.parse(
            source=str(path),
            location="top level",
            raw_error=f"expected a JSON object, got {type(data).__name__}",
        )
    return data


def _question(raw: dict[str, Any]) -> Question:
    return Question(
        id=int(raw["id"]),
        text=str(raw.get("text", "")),
        type=str(raw.get("type", "")),
        options=tuple(
            Option(text=str(o["text"]), points=float(o.get("points", 0)))
            for o in raw.get("options", [])
        ),
        is_active=bool(raw.get("is_active", True)),
    )


def _positions(
    raw_positions: list[dict[str, Any]],
    questions: dict[int, Question],
) -> tuple[list[Position], list[Assignment]]:
    positions: list[Position] = []
    assignments: list[Assignment] = []
    for raw in raw_positions:
        position = Position(
            id=int(raw["id"]),
            title=str(raw.get("title", "")),
            is_open=bool(raw.get("is_open", True)),
        )
        positions.append(position)
        for raw_assignment in raw.get("questions", []):
            question_id = int(raw_assignment["question_id"])
            question = questions.get(question_id)
            if question is None:
                raise ActionableError.validation(
                    field_name=f"positions[{position.id}].questions",
                    reason=f"question {question_id} is not defined in 'questions'",
                )
            overrides = tuple(
                OptionOverride(
                    option_text=str(o["option"]),
                    points=None if o.get("points") is None else float(o["points"]),
                )
                for o in raw_assignment.get("overrides", [])
            )
            assignments.append(Assignment(
                position_id=position.id,
                question=question,
                order=int(raw_assignment.get("order", 0)),
                overrides=overrides,
            ))
    return positions, assignments


def _applicant(raw: dict[str, Any]) -> Applicant:
    return Applicant(
        id=int(raw["id"]),
        full_name=raw.get("full_name"),
        email=raw.get("email"),
    )


def _applications(
    raw_applications: list[dict[str, Any]],
) -> tuple[list[Application], list[Answer]]:
    applications: list[Application] = []
    answers: list[Answer] = []
    for raw in raw_applications:
        application_id = int(raw["id"])
        applied_on = raw.get("applied_on")
        applications.append(Application(
            id=application_id,
            applicant_id=int(raw.get("applicant_id", 0)),
            position_id=int(raw["position_id"]),
            applied_on=datetime.fromisoformat(applied_on) if applied_on else None,
            status=raw.get("status"),
            score=None if raw.get("score") is None else float(raw["score"]),
        ))
        for raw_answer in raw.get("answers", []):
            text = raw_answer.get("text")
            answers.append(Answer(
                application_id=application_id,
                question_id=int(raw_answer["question_id"]),
                text=None if text is None else str(text),
            ))
    return applications, answers
