"""Logging configuration for the ``opskit`` logger hierarchy.

Console output is rendered by the CLI reporter; the stdlib logger only
feeds the optional ``--log`` file so a run can be audited afterwards.
"""

from __future__ import annotations

import logging
from pathlib import Path

from opskit.exceptions import PreconditionError

LOGGER_NAME: str = "opskit"
LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def setup_logging(level: str | int = "INFO", log_file: Path | None = None) -> logging.Logger:
    """Configure the ``opskit`` logger and return it.

    Calling this again replaces the handlers installed by a previous call.

    Raises
    ------
    PreconditionError
        When *log_file* cannot be opened for appending.
    """
    if isinstance(level, str):
        level = _LEVELS.get(level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(level)
    logger.propagate = False
    logger.addHandler(logging.NullHandler())

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as exc:
            raise PreconditionError(
                f"Cannot write to log file {log_file}: {exc}",
                hint="Choose a writable path for --log.",
            ) from exc
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger
