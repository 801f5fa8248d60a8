"""Structured logging bridge: one line per completed request."""

from __future__ import annotations

from simgate.util.logger import logger


def log_event(event: str, route: str, **payload: object) -> None:
    logger.info("event=%s route=%s payload=%s", event, route, payload)
