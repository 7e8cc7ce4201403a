"""Loguru setup for applications embedding the event bus."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

from loguru import logger

from relaybus.config import Config

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class InterceptHandler(logging.Handler):
    """Forward standard-library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        msg = record.getMessage().replace("{", "{{").replace("}", "}}")
        logger.patch(
            lambda r: r.update(
                name=record.name,
                function=record.funcName,
                line=record.lineno,
            ),
        ).opt(exception=record.exc_info).log(level, msg)


def _intercept_logging(level: str, names: list[str]) -> None:
    """Route the named stdlib loggers (asyncio reports failed deferred triggers) to loguru."""
    for name in names:
        lib_logger = logging.getLogger(name)
        lib_logger.handlers = [InterceptHandler()]
        lib_logger.propagate = False
        lib_logger.setLevel(level)


def _safe_message_filter(record: Any) -> bool:
    """Escape braces/angles in log messages to prevent format/tag errors."""
    if isinstance(record.get("message"), str):
        msg = record["message"]
        msg = msg.replace("{", "{{").replace("}", "}}").replace("<", "\\<")
        record["message"] = msg
    return True


def resolve_level(verbose: bool = False, config: Config | None = None) -> str:
    """verbose wins, then config log_level, then LOG_LEVEL; INFO otherwise."""
    if verbose:
        return "DEBUG"
    for candidate in (config.log_level if config else None, os.environ.get("LOG_LEVEL")):
        if candidate and candidate.upper() in LEVELS:
            return candidate.upper()
    return "INFO"


def setup_logging(verbose: bool = False, config: Config | None = None) -> None:
    """Configure loguru with a single stderr sink and intercept stdlib loggers."""
    level = resolve_level(verbose, config)

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=LOG_FORMAT,
        filter=_safe_message_filter,
    )
    _intercept_logging(level, config.intercepted_loggers if config else ["asyncio"])
