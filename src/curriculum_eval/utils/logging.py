"""Logging setup for the curriculum-eval commands.

Every module logs under the ``curriculum_eval`` namespace. Authoring
problems (parse diagnostics, duplicate ids, failing seed statements) are
warnings, so they stay visible at the quietest verbosity.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "curriculum_eval"

# HTTP client chatter, shown only at the highest verbosity
LIBRARY_LOGGERS = ("httpx", "httpcore")

LOG_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def verbosity_level(verbosity: int) -> int:
    """Map a -v count to a log level (0=WARNING, 1=INFO, 2+=DEBUG)."""
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    verbosity: int = 1,
    log_file: Optional[Path] = None,
    show_time: bool = False,
) -> logging.Logger:
    """Send curriculum_eval records to stderr, and optionally to a file.

    Calling it again replaces the handlers of a previous call.

    Args:
        verbosity: Verbosity level (0=quiet, 1=normal, 2=verbose, 3=debug
            including HTTP client logs).
        log_file: File that receives every record down to DEBUG,
            whatever the console verbosity.
        show_time: Timestamp console records, for long-running watch sessions.

    Returns:
        The curriculum_eval logger.
    """
    level = verbosity_level(verbosity)

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG if log_file else level)

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=show_time or verbosity >= 2,
        show_path=verbosity >= 2,
        rich_tracebacks=True,
        tracebacks_show_locals=verbosity >= 3,
    )
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT))
        logger.addHandler(file_handler)

    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbosity >= 3 else logging.WARNING)

    return logger
