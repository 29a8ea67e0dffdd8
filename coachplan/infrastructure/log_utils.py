"""Logging helpers tagged by the calling module.

Keyword arguments other than ``tag`` and ``exc_info`` become record context,
so ``info("Plan reconciled", plan_id=plan.id, created=3)`` renders the plan
id and counts after the message.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from coachplan.logging_setup import get_logger, get_tag_for_module


def _caller_tag() -> str:
    frame = sys._getframe(1)
    while frame is not None and frame.f_globals.get("__name__") == __name__:
        frame = frame.f_back
    module_name = frame.f_globals.get("__name__", "") if frame is not None else ""
    return get_tag_for_module(module_name)


def log_message(
    msg: str,
    level: str = "INFO",
    tag: str | None = None,
    *,
    exc_info: Any = False,
    **context: Any,
) -> None:
    logger = get_logger(tag or _caller_tag())
    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        logger.warning("Unknown log level %r; logging at INFO.", level)
        numeric_level = logging.INFO
    logger.log(numeric_level, msg, exc_info=exc_info, extra=context)


def debug(msg: str, tag: str | None = None, **kwargs: Any) -> None:
    log_message(msg, "DEBUG", tag, **kwargs)


def info(msg: str, tag: str | None = None, **kwargs: Any) -> None:
    log_message(msg, "INFO", tag, **kwargs)


def warn(msg: str, tag: str | None = None, **kwargs: Any) -> None:
    log_message(msg, "WARNING", tag, **kwargs)


def error(msg: str, tag: str | None = None, **kwargs: Any) -> None:
    log_message(msg, "ERROR", tag, **kwargs)
