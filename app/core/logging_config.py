"""
Application logging configuration.

- General app logs: {LOG_DIR}/app.log (+ stdout)
- Calendar mutations (create/update/status/delete/bulk): {LOG_DIR}/calendar_mutations.log only
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from app.core.config import get_settings


# Every backend mutation issued by the calendar is logged here (own file, no propagation)
CALENDAR_MUTATIONS_LOGGER_NAME = "calendar.mutations"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _replace_handlers(logger: logging.Logger, *handlers: logging.Handler) -> None:
    """Swap the logger's handlers for the given ones (avoids duplicates on reload)."""
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    for h in handlers:
        logger.addHandler(h)


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_dir: Optional[str] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Configure application logging at startup. Calling it again replaces the handlers.

    **Input (request):**
        - log_dir: Directory for log files. Default from settings LOG_DIR (default "logs").
        - log_level: Level name (DEBUG, INFO, WARNING, ERROR). Default from settings LOG_LEVEL (default "INFO").

    **Output (response):** None.
    """
    settings = get_settings()
    dir_path = Path(log_dir or settings.LOG_DIR)
    dir_path.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _replace_handlers(
        root_logger,
        _handler(logging.FileHandler(dir_path / "app.log", encoding="utf-8"), level, formatter),
        _handler(logging.StreamHandler(sys.stdout), level, formatter),
    )

    mutations_logger = logging.getLogger(CALENDAR_MUTATIONS_LOGGER_NAME)
    mutations_logger.setLevel(level)
    mutations_logger.propagate = False
    _replace_handlers(
        mutations_logger,
        _handler(
            logging.FileHandler(dir_path / "calendar_mutations.log", encoding="utf-8"),
            level,
            formatter,
        ),
    )
