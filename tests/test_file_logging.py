"""File logging tests — persistent log files for post-run diagnosis.

Tests verify that batch logs are persisted to disk with timestamped
filenames, configurable log level, and without suppressing stderr output,
and that per-module loggers reach the file through the package logger.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from applicant_scoring.logging import configure_file_logging, logger

if TYPE_CHECKING:
    from pathlib import Path


class TestFileLogging:
    """
    REQUIREMENT: Recalculation and ranking runs can be diagnosed after the fact.

    WHO: The operator investigating why a batch left some scores stale
    WHAT: configure_file_logging() adds a file handler named after the run
          and timestamped under the given directory, creates it if needed,
          keeps stderr output, honours the requested level, and captures
          records from module loggers
    WHY: A batch that logged "3 failed" to a closed terminal leaves nothing
         to investigate
    """

    def test_log_file_name_includes_timestamp(self, tmp_path: Path) -> None:
        """
        When file logging is enabled and a message is logged
        Then exactly one file named scoring_YYYY-MM-DDTHH-MM-SS.log exists
        """
        log_dir = tmp_path / "logs"
        handler = configure_file_logging(log_dir=str(log_dir))
        try:
            logger.info("timestamp check")
            log_files = list(log_dir.glob("*.log"))
            assert len(log_files) == 1, f"Expected 1 log file, found {len(log_files)}"
            name = log_files[0].name
            assert re.match(
                r"scoring_\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}\.log$", name
            ), f"Log filename '{name}' does not match timestamp pattern"
        finally:
            logger.removeHandler(handler)
            handler.close()

    def test_run_name_prefixes_the_file(self, tmp_path: Path) -> None:
        """
        When the recalculate command enables file logging
        Then its log file is named after the command
        """
        log_dir = tmp_path / "logs"
        handler = configure_file_logging(log_dir=str(log_dir), run_name="recalculate")
        try:
            assert [p.name.split("_")[0] for p in log_dir.glob("*.log")] == ["recalculate"]
        finally:
            logger.removeHandler(handler)
            handler.close()

    def test_log_directory_is_created_if_absent(self, tmp_path: Path) -> None:
        """
        When the log directory does not exist yet
        Then it is created rather than failing the run
        """
        log_dir = tmp_path / "nested" / "deep" / "logs"
        handler = configure_file_logging(log_dir=str(log_dir))
        try:
            logger.info("auto-create dir")
            assert log_dir.exists()
        finally:
            logger.removeHandler(handler)
            handler.close()

    def test_stderr_output_is_not_suppressed(self, tmp_path: Path) -> None:
        """
        When file logging is enabled
        Then the stderr StreamHandler is still attached
        """
        handler = configure_file_logging(log_dir=str(tmp_path / "logs"))
        try:
            stream_handlers = [
                h for h in logger.handlers
                if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
            ]
            assert stream_handlers, "stderr StreamHandler was removed when file logging was enabled"
        finally:
            logger.removeHandler(handler)
            handler.close()

    def test_module_logger_records_reach_the_file(self, tmp_path: Path) -> None:
        """
        When a module logger under the package (e.g. the engine) logs a warning
        Then the message lands in the file with its level and module name
        """
        log_dir = tmp_path / "logs"
        handler = configure_file_logging(log_dir=str(log_dir))
        try:
            logging.getLogger("applicant_scoring.pipeline.engine").warning("batch check message")
            handler.flush()
            content = next(log_dir.glob("*.log")).read_text(encoding="utf-8")
            assert "batch check message" in content
            assert "WARNING" in content
            assert "applicant_scoring.pipeline.engine" in content
        finally:
            logger.removeHandler(handler)
            handler.close()

    def test_debug_level_captures_debug_records(self, tmp_path: Path) -> None:
        """
        When file logging is enabled at DEBUG
        Then DEBUG messages (such as per-rule text contributions) are written
        """
        log_dir = tmp_path / "logs"
        previous = logger.level
        handler = configure_file_logging(log_dir=str(log_dir), level=logging.DEBUG)
        try:
            logger.debug("debug-level message")
            handler.flush()
            content = next(log_dir.glob("*.log")).read_text(encoding="utf-8")
            assert "debug-level message" in content
            assert "DEBUG" in content
        finally:
            logger.removeHandler(handler)
            handler.close()
            logger.setLevel(previous)
