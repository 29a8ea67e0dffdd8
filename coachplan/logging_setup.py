"""Logging for the coachplan service.

All records go to the ``coachplan.history`` logger, which writes a rotating
file and, unless disabled, the console. Each line carries a short tag naming
the part of the service that wrote it, and reconciliation records also carry
their plan context::

    [2025-01-06T09:30:00Z] [INFO] [RECON] Plan reconciled (plan_id=..., created=4, deleted=1)

Context travels on the record through ``extra=`` and only the fields listed in
:data:`CONTEXT_FIELDS` are rendered.
"""

from __future__ import annotations

import logging
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from coachplan.config import settings

LOGGER_NAME = "coachplan.history"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 7
DEFAULT_TAG = "GEN"

_configured = False

CONTEXT_FIELDS = (
    "plan_id",
    "actor_id",
    "created",
    "updated",
    "deleted",
    "vetoed",
    "redated",
)

# Module-name fragment -> tag; first match wins.
TAG_MAP = {
    "deletion_guard": "GUARD",
    "reconcil": "RECON",
    "executor": "RECON",
    "postgres": "DB",
    "store": "DB",
    "api": "API",
    "cli": "CLI",
    "status": "SYS",
}


class TaggedLogger(logging.LoggerAdapter):
    """Adapter that stamps records with its tag and any fixed context.

    Context given per call through ``extra=`` wins over the fixed context.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]):
        extra = dict(self.extra)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


class ContextFormatter(logging.Formatter):
    """Formats ``[time] [LEVEL] [TAG] message (field=value, ...)`` in UTC."""

    converter = time.gmtime

    def __init__(self) -> None:
        super().__init__(
            "[%(asctime)s] [%(levelname)s] [%(tag)s] %(message)s%(context)s",
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "tag"):
            record.tag = DEFAULT_TAG
        record.context = render_context(record.__dict__)
        return super().format(record)


def render_context(values: Mapping[str, Any]) -> str:
    pairs = [
        f"{name}={values[name]}"
        for name in CONTEXT_FIELDS
        if values.get(name) is not None
    ]
    return f" ({', '.join(pairs)})" if pairs else ""


def _resolve_level(level: Optional[str]) -> int:
    candidate = str(level or settings.COACHPLAN_LOG_LEVEL).upper()
    numeric_level = logging.getLevelName(candidate)
    if isinstance(numeric_level, int):
        return numeric_level
    print(f"coachplan logger: unknown log level '{candidate}', using INFO.", file=sys.stderr)
    return logging.INFO


def configure_logging(
    *,
    log_path: Optional[Path] = None,
    level: Optional[str] = None,
    max_bytes: Optional[int] = None,
    backup_count: Optional[int] = None,
    console: Optional[bool] = None,
    force: bool = False,
) -> logging.Logger:
    """Attach the rotating file handler (and console handler) once.

    Later calls return the configured logger untouched unless ``force`` is
    set or a new ``log_path`` is given.
    """
    global _configured
    logger = logging.getLogger(LOGGER_NAME)
    if _configured and not force and log_path is None:
        return logger

    reset_logging()
    logger.setLevel(_resolve_level(level))
    formatter = ContextFormatter()

    path = Path(log_path) if log_path is not None else settings.log_path
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes or DEFAULT_MAX_BYTES,
            backupCount=backup_count or DEFAULT_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as exc:
        print(f"coachplan logger: cannot write {path}: {exc}", file=sys.stderr)
    else:
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console is None:
        console = settings.COACHPLAN_LOG_TO_CONSOLE
    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    logger.propagate = False
    _configured = True
    return logger


def get_tag_for_module(module_name: str) -> str:
    module_name = module_name.lower()
    for fragment, tag in TAG_MAP.items():
        if fragment in module_name:
            return tag
    return DEFAULT_TAG


def get_logger(tag: str = DEFAULT_TAG, **context: Any) -> TaggedLogger:
    """Return a tagged logger, configuring logging on first use."""
    return TaggedLogger(configure_logging(), {"tag": tag, **context})


def reset_logging() -> None:
    """Detach and close every handler so logging can be configured again."""
    global _configured
    _configured = False
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
