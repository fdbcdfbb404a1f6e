from __future__ import annotations

import logging
import os
import sys
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

from freshdesk_ticket_viewer.config.redact import redact_settings_dict

_FORMATS = frozenset({"json", "human"})
# Loggers that would otherwise print every upstream request URL at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore")
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _scrub_event_dict(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    return redact_settings_dict(event_dict)


def _pick_format(configured: str | None, json_logs: bool) -> str:
    """Explicit setting, then LOG_FORMAT, then the json_logs flag."""
    for candidate in (configured, os.environ.get("LOG_FORMAT")):
        normalized = (candidate or "").strip().lower()
        if normalized in _FORMATS:
            return normalized
    return "json" if json_logs else "human"


def _pick_level(configured: str) -> str:
    return ((os.environ.get("LOG_LEVEL") or "").strip() or configured).upper()


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _scrub_event_dict,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def configure_logging(
    *,
    log_level: str = "INFO",
    json_logs: bool = False,
    log_format: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Route structlog and stdlib logging through one handler on `stream` (stdout by default).

    Secrets are scrubbed from every event before rendering.
    """
    shared = _shared_processors()
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if _pick_format(log_format, json_logs) == "json"
        else structlog.dev.ConsoleRenderer()
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=shared))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(_pick_level(log_level))

    for name in _UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[*shared, ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
