# esgint/logs.py

from __future__ import annotations

import logging
from typing import Any

import structlog

DEFAULT_LOG_LEVEL = "INFO"


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """
    Set the structlog level filter for the process.

    Only the level is configured; loggers themselves are always handed down
    explicitly (see ESGAnalyzer.analyze), never kept in module state.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"unknown log level: {level!r}")
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(numeric))


def get_logger(name: str) -> Any:
    """
    Module logger for the engine.

    Library callers that never configure structlog get the INFO filter, so
    per-tier debug events stay quiet. An existing configuration is kept.
    """
    if not structlog.is_configured():
        configure_logging(DEFAULT_LOG_LEVEL)
    return structlog.get_logger(name)
