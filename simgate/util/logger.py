"""Unified logger for the whole project."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path


LOG_DIR = Path("logs")
LOG_FILE = LOG_DIR / "simgate.log"
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 10

logger = logging.getLogger("simgate")


def _normalize_level(raw: str) -> int:
    candidate = str(raw or "INFO").strip().upper()
    return {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARNING": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
    }.get(candidate, logging.INFO)


def configure_logging(level: str = "info", log_dir: Path | None = LOG_DIR) -> logging.Logger:
    """Attach handlers once; later calls only adjust the level."""

    resolved_level = _normalize_level(level)
    logger.setLevel(resolved_level)
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(resolved_level)
        return logger

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(resolved_level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            rotating_handler = RotatingFileHandler(
                log_dir / LOG_FILE.name,
                maxBytes=MAX_BYTES,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
            rotating_handler.setLevel(resolved_level)
            rotating_handler.setFormatter(formatter)
            logger.addHandler(rotating_handler)
        except (OSError, PermissionError):
            # read-only log dir (e.g. container mount): stderr only
            pass

    logger.propagate = False
    return logger

