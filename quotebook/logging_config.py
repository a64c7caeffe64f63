"""Logging setup for quotebook.

Two streams under ``<quotebook home>/logs``:
- ``local-YYYY-MM-DD.log``: the ``quotebook`` package logger
- ``collection-events-YYYY-MM-DD.log``: one line per collection event
  (sync cycles, imports, conflict resolutions) for later auditing
"""

import logging
from datetime import date, datetime, timezone
from pathlib import Path

from quotebook.utils import get_quotebook_home

LOGGER_NAME = "quotebook"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def get_log_dir() -> Path:
    log_dir = get_quotebook_home() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_quotebook_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``quotebook`` logger with a dated file handler.

    Safe to call more than once; handlers are only added the first time.
    DEBUG also echoes to stderr. Unknown levels fall back to INFO.
    """
    logger = logging.getLogger(LOGGER_NAME)
    resolved = _LEVELS.get(str(level).upper(), logging.INFO)
    logger.setLevel(resolved)

    formatter = logging.Formatter(LOG_FORMAT)
    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        log_file = get_log_dir() / f"local-{date.today().isoformat()}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    )
    if resolved == logging.DEBUG and not has_console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)

    return logger


def log_collection_event(event_type: str, details: str) -> None:
    """Append one line to the collection events log."""
    path = get_log_dir() / f"collection-events-{date.today().isoformat()}.log"
    timestamp = datetime.now(timezone.utc).isoformat()
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{timestamp} | {event_type} | {details}\n")


def log_sync(pulled: int, pushed: int, conflicts: int = 0, errors: int = 0) -> None:
    log_collection_event(
        "sync", f"pulled={pulled}, pushed={pushed}, conflicts={conflicts}, errors={errors}"
    )


def log_import(received: int, added: int) -> None:
    log_collection_event("import", f"received={received}, added={added}")


def log_resolve(conflict_id: str, strategy: str) -> None:
    log_collection_event("resolve", f"id={conflict_id}, strategy={strategy}")
