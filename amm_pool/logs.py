"""structlog setup for hosts embedding the pool."""

from __future__ import annotations

import logging
import os

import structlog

from amm_pool.constants import ENV_LOG_LEVEL


def configure_logging(level: int | str | None = None) -> None:
    """Configure structlog with console rendering and level filtering.

    Args:
        level: A logging level (int or name such as "DEBUG"). Defaults to
            AMM_POOL_LOG_LEVEL, then INFO.
    """
    if level is None:
        level = os.environ.get(ENV_LOG_LEVEL, "INFO")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
