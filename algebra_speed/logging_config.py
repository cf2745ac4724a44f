"""Logging configuration helpers for the quiz application."""

from __future__ import annotations

import logging
from logging import Logger

from .config import log_level_from_env


def configure_logging(level: int | None = None) -> Logger:
    """Configure basic logging for the application and return the package logger."""
    logging.basicConfig(
        level=log_level_from_env() if level is None else level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("algebra_speed")
