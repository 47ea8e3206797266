"""Optional external evaluator backed by an Ollama model.

Wraps the ``ollama`` Python SDK's :class:`AsyncClient` to provide:

- **Evaluation**: (question, answer, type, options/context) → score 0–10
- **Health check**: verify Ollama + the model are available at startup
- **Bounded wait**: each call is cancelled after a per-type timeout
  (2.0 s for Choice, 1.5 s for Rating and Number)

Scoring must never depend on the evaluator being up.  :meth:`evaluate`
returns ``None`` on timeout, transport error, malformed reply, or a score
outside ``[0, 10]``, and the caller falls back to the deterministic
scorer.  Only :meth:`health_check` raises, so a misconfigured evaluator
is reported once at startup rather than silently on every answer.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any

import ollama as ollama_sdk

from applicant_scoring.errors import ActionableError
from applicant_scoring.logging import logger
from applicant_scoring.repository.base import QuestionType
from applicant_scoring.scoring.numeric import NUMERIC_MAX_POINTS

DEFAULT_CHOICE_TIMEOUT = 2.0
DEFAULT_NUMERIC_TIMEOUT = 1.5

_SYSTEM_PROMPT = (
    "You evaluate one answer from a job application questionnaire. "
    "Judge how strong the answer is for the question asked, on a scale "
    "from 0 to maxPoints. Respond with a single JSON object with the keys "
    '"score" (number), "confidence" (number 0-1), "quality" (string), '
    'and "reasoning" (string).'
)


@dataclass(frozen=True)
class EvaluationRequest:
    """What the evaluator is shown for one answer."""

    question_text: str
    answer_text: str
    question_type: QuestionType
    options: tuple[str, ...] = ()
    context: str | None = None
    max_points: float = NUMERIC_MAX_POINTS

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "question": self.question_text,
            "answer": self.answer_text,
            "type": self.question_type.value.capitalize(),
            "maxPoints": self.max_points,
        }
        if self.options:
            payload["options"] = list(self.options)
        if self.context is not None:
            payload["context"] = self.context
        return payload


class ExternalEvaluatorClient:
    """Asks an Ollama chat model to score Choice, Rating, and Number answers.

    Usage::

        evaluator = ExternalEvaluatorClient(
            base_url="http://localhost:11434",
            model="mistral:7b",
        )
        await evaluator.health_check()     # fail fast if Ollama is down
        score = await evaluator.evaluate(request)  # → float | None
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        *,
        choice_timeout: float = DEFAULT_CHOICE_TIMEOUT,
        numeric_timeout: float = DEFAULT_NUMERIC_TIMEOUT,
    ) -> None:
        self.base_url = base_url
        self.model = model
        self.choice_timeout = choice_timeout
        self.numeric_timeout = numeric_timeout
        self._client = ollama_sdk.AsyncClient(host=base_url)

    # -- Public API ----------------------------------------------------------

    def timeout_for(self, question_type: QuestionType) -> float:
        if question_type is QuestionType.CHOICE:
            return self.choice_timeout
        return self.numeric_timeout

    async def evaluate(self, request: EvaluationRequest) -> float | None:
        """Return the evaluator's score, or ``None`` to fall back.

        The in-flight request is cancelled once the per-type timeout
        elapses.  Every failure is logged and absorbed here.
        """
        timeout = self.timeout_for(request.question_type)
        try:
            content = await asyncio.wait_for(self._ask(request), timeout=timeout)
        except TimeoutError:
            logger.warning(
                "Evaluator timed out after %.1fs on %s question; using fallback",
                timeout,
                request.question_type,
            )
            return None
        except Exception as exc:
            logger.warning(
                "Evaluator call failed on %s question (%s: %s); using fallback",
                request.question_type,
                type(exc).__name__,
                exc,
            )
            return None
        return parse_score(content, max_points=request.max_points)

    async def health_check(self) -> None:
        """Verify Ollama is reachable and the configured model is pulled.

        Raises :class:`~applicant_scoring.errors.ActionableError`:
          - CONNECTION if Ollama is unreachable
          - EVALUATOR if the model is not pulled
        """
        try:
            response = await self._client.list()
        except (ConnectionError, OSError) as exc:
            raise ActionableError.connection(
                service="Ollama",
                url=self.base_url,
                raw_error=str(exc),
            ) from None

        available = {m.model for m in response.models if m.model}
        # Ollama model names may include :latest suffix; normalise
        available |= {name.split(":")[0] for name in available}
        if self.model not in available and self.model.split(":")[0] not in available:
            raise ActionableError.evaluator(
                model=self.model,
                raw_error=f"Model '{self.model}' is not pulled in Ollama",
                suggestion=f"Run: ollama pull {self.model}",
            )

        logger.info("Evaluator health check passed — %s available", self.model)

    # -- Internals -----------------------------------------------------------

    async def _ask(self, request: EvaluationRequest) -> str:
        response = await self._client.chat(
            model=self.model,
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": json.dumps(request.to_payload())},
            ],
            format="json",
        )
        return response.message.content or ""


def parse_score(content: str, *, max_points: float = NUMERIC_MAX_POINTS) -> float | None:
    """Extract a usable score from the evaluator's JSON reply.

    Returns ``None`` (and logs why) when the reply is not a JSON object,
    lacks a numeric ``score``, or the score falls outside ``[0, max_points]``.

    >>> parse_score('{"score": 7.5, "reasoning": "solid"}')
    7.5
    >>> parse_score('{"score": 12}') is None
    True
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Evaluator reply is not valid JSON; using fallback")
        return None
    if not isinstance(data, dict):
        logger.warning("Evaluator reply is not a JSON object; using fallback")
        return None

    score = data.get("score")
    if isinstance(score, bool) or not isinstance(score, int | float):
        logger.warning("Evaluator reply has no numeric score (%r); using fallback", score)
        return None
    if not 0 <= score <= max_points:
        logger.warning(
            "Evaluator score %s outside [0, %s]; using fallback", score, max_points
        )
        return None

    logger.debug(
        "Evaluator score %s (confidence=%s, quality=%s)",
        score,
        data.get("confidence"),
        data.get("quality"),
    )
    return float(score)
