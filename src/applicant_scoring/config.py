"""Configuration loading and validation.

Loads ``settings.toml`` and validates all fields at startup, before any
application is scored.  A bad evaluator URL discovered halfway through a
bulk recalculation would leave half the cached scores computed with one
strategy and half with another.

The validated config is exposed as a :class:`Settings` dataclass with
typed fields for each section: ``evaluator``, ``scoring``, and ``data``.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from applicant_scoring.errors import ActionableError

# ---------------------------------------------------------------------------
# Config dataclasses
# ---------------------------------------------------------------------------

# Upper bound on any evaluator wait, in seconds.
MAX_EVALUATOR_TIMEOUT = 10.0


@dataclass
class EvaluatorConfig:
    """External evaluator settings from ``[evaluator]``."""

    enabled: bool = False
    base_url: str = "http://localhost:11434"
    model: str = "mistral:7b"
    choice_timeout_seconds: float = 2.0
    numeric_timeout_seconds: float = 1.5


@dataclass
class ScoringConfig:
    """Batch scoring settings from ``[scoring]``."""

    max_concurrency: int = 8


@dataclass
class DataConfig:
    """Dataset location from ``[data]``."""

    dataset_path: str = "data/dataset.json"


@dataclass
class Settings:
    """Top-level validated configuration."""

    evaluator: EvaluatorConfig = field(default_factory=EvaluatorConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    data: DataConfig = field(default_factory=DataConfig)


DEFAULT_SETTINGS_PATH = Path("config/settings.toml")


# ---------------------------------------------------------------------------
# Loading and validation
# ---------------------------------------------------------------------------


def load_settings(path: str | Path = DEFAULT_SETTINGS_PATH) -> Settings:
    """Load and validate settings from a TOML file.

    Raises :class:`~applicant_scoring.errors.ActionableError`:
      - CONFIG if the file is missing or a section has the wrong shape
      - VALIDATION if field values are out of range
      - PARSE if the TOML is malformed

    Returns a fully validated :class:`Settings` instance.
    """
    filepath = Path(path)
    if not filepath.exists():
        raise ActionableError.config(
            field_name="settings_path",
            reason=f"Settings file not found: {filepath}",
            suggestion=f"Create {filepath} or copy from config/settings.toml",
        )

    raw_text = filepath.read_text(encoding="utf-8")
    try:
        data = tomllib.loads(raw_text)
    except tomllib.TOMLDecodeError as exc:
        raise ActionableError.parse(
            source=str(filepath),
            location="TOML syntax",
            raw_error=str(exc),
            suggestion=f"Fix TOML syntax in {filepath}",
        ) from None

    return _validate(data)


def _validate(data: dict[str, object]) -> Settings:
    """Validate raw TOML data and return a Settings instance."""

    # -- evaluator section ---------------------------------------------------
    evaluator_data = _optional_section(data, "evaluator")

    base_url = str(evaluator_data.get("base_url", "http://localhost:11434"))
    if not base_url.startswith(("http://", "https://")):
        raise ActionableError.validation(
            field_name="evaluator.base_url",
            reason=f"'{base_url}' is missing a scheme (http:// or https://)",
            suggestion="Set [evaluator].base_url to a URL starting with http:// or https://",
        )

    evaluator = EvaluatorConfig(
        enabled=bool(evaluator_data.get("enabled", False)),
        base_url=base_url,
        model=str(evaluator_data.get("model", "mistral:7b")),
        choice_timeout_seconds=float(evaluator_data.get("choice_timeout_seconds", 2.0)),
        numeric_timeout_seconds=float(evaluator_data.get("numeric_timeout_seconds", 1.5)),
    )

    for timeout_name in ("choice_timeout_seconds", "numeric_timeout_seconds"):
        value = getattr(evaluator, timeout_name)
        if value <= 0.0 or value > MAX_EVALUATOR_TIMEOUT:
            raise ActionableError.validation(
                field_name=f"evaluator.{timeout_name}",
                reason=f"is {value} — must be > 0 and <= {MAX_EVALUATOR_TIMEOUT}",
                suggestion=f"Set [evaluator].{timeout_name} to a value between 0.5 and 2.0",
            )

    # -- scoring section -----------------------------------------------------
    scoring_data = _optional_section(data, "scoring")
    scoring = ScoringConfig(
        max_concurrency=int(scoring_data.get("max_concurrency", 8)),
    )
    if scoring.max_concurrency < 1:
        raise ActionableError.validation(
            field_name="scoring.max_concurrency",
            reason=f"is {scoring.max_concurrency} — must be >= 1",
            suggestion="Set [scoring].max_concurrency to a positive integer",
        )

    # -- data section --------------------------------------------------------
    data_section = _optional_section(data, "data")
    data_config = DataConfig(
        dataset_path=str(data_section.get("dataset_path", "data/dataset.json")),
    )

    return Settings(evaluator=evaluator, scoring=scoring, data=data_config)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _optional_section(data: dict[str, object], name: str) -> dict[str, object]:
    """Return a top-level section, ``{}`` when absent, or raise CONFIG if not a table."""
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ActionableError.config(
            field_name=name,
            reason=f"[{name}] must be a table, not {type(section).__name__}",
            suggestion=f"Define [{name}] as a TOML table",
        )
    return section
