"""Logging for applicant-scoring.

Everything logs through the ``applicant_scoring`` logger, either directly
via :data:`logger` or through ``logging.getLogger(__name__)`` in a module
under the package.  Records go to stderr by default.

:func:`configure_file_logging` also keeps a per-run file under
``data/logs/``, named after the CLI command, so a failed recalculation
batch can be read back after the terminal is gone.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

DEFAULT_LOG_DIR = "data/logs"

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _formatter() -> logging.Formatter:
    return logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATEFMT)


logger = logging.getLogger("applicant_scoring")
logger.setLevel(logging.INFO)

handler = logging.StreamHandler(sys.stderr)
handler.setLevel(logging.INFO)
handler.setFormatter(_formatter())
logger.addHandler(handler)


def configure_file_logging(
    log_dir: str = DEFAULT_LOG_DIR,
    *,
    run_name: str = "scoring",
    level: int = logging.INFO,
) -> logging.FileHandler:
    """Write this run's records to ``<log_dir>/<run_name>_<timestamp>.log``.

    The directory is created on demand.  The handler is returned so the
    caller can detach and close it when the run ends.  A *level* below the
    logger's own lowers the logger too, otherwise DEBUG records would never
    reach the file.
    """
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    stamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
    file_handler = logging.FileHandler(
        str(directory / f"{run_name}_{stamp}.log"), encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(_formatter())

    if level < logger.level:
        logger.setLevel(level)
    logger.addHandler(file_handler)
    return file_handler


__all__ = ["configure_file_logging", "logger"]
