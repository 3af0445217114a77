"""Logging utilities for typeann runs.

Progress messages (``Processing file: ...``) go to stdout next to the show
output, while warnings and errors go to stderr so they survive redirection of
the annotated listing.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

_LOGGER_NAME = "typeann"
_CONSOLE_FORMAT = "[typeann] %(levelname)s %(message)s"


class _BelowLevel(logging.Filter):
    """Pass records strictly below ``level``."""

    def __init__(self, level: int) -> None:
        super().__init__()
        self._level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self._level


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the typeann hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> logging.Logger:
    """Configure the typeann logger: info to stdout, warnings to stderr."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_CONSOLE_FORMAT)

    progress_handler = logging.StreamHandler(stdout or sys.stdout)
    progress_handler.setLevel(level)
    progress_handler.addFilter(_BelowLevel(logging.WARNING))
    progress_handler.setFormatter(formatter)
    logger.addHandler(progress_handler)

    problem_handler = logging.StreamHandler(stderr or sys.stderr)
    problem_handler.setLevel(logging.WARNING)
    problem_handler.setFormatter(formatter)
    logger.addHandler(problem_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
