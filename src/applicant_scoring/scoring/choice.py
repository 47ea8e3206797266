"""Choice scoring and option-point resolution.

A Choice answer is the text of one option.  Its points come from the
question's default option list unless the position carries an override
for that option, in which case the override shadows the default.  Both
lookups are case-insensitive.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from applicant_scoring.repository.base import OptionOverride, Question


def _same_option(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def resolve_points(
    question: Question,
    answer_text: str,
    overrides: Sequence[OptionOverride] = (),
) -> float | None:
    """Points for *answer_text* on *question*, or ``None`` when nothing matches.

    An override with a value wins over the default option of the same
    text.  An override row without a value falls through to the default.
    """
    for override in overrides:
        if override.points is not None and _same_option(override.option_text, answer_text):
            return override.points

    for option in question.options:
        if _same_option(option.text, answer_text):
            return option.points

    return None


def score_choice(
    question: Question,
    answer_text: str,
    overrides: Sequence[OptionOverride] = (),
) -> float:
    """Matched option points, or 0 when the answer is not one of the options."""
    points = resolve_points(question, answer_text, overrides)
    return max(0.0, points) if points is not None else 0.0


def max_choice_points(
    question: Question,
    overrides: Sequence[OptionOverride] = (),
) -> float:
    """Greatest points attainable on *question* for this position.

    Taken over the effective option set: each default option with any
    override applied, plus valued overrides naming an option the
    defaults lack.  A question without options has a maximum of 0.
    """
    effective = [
        resolve_points(question, option.text, overrides) or 0.0
        for option in question.options
    ]
    effective.extend(
        override.points
        for override in overrides
        if override.points is not None
        and not any(_same_option(o.text, override.option_text) for o in question.options)
    )
    return max(max(effective, default=0.0), 0.0)
