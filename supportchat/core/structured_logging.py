"""
Logging setup for the support chat service.

structlog renders every record (structlog or plain `logging.getLogger`) as
one JSON object per line, to stderr and to a size-rotated file. Request and
correlation ids come from contextvars bound by CorrelationMiddleware, so
lines written while a chat stream is being relayed carry the ids of the
request that opened it. With `debug` enabled, stderr gets the
human-readable console renderer instead of JSON.
"""
from __future__ import annotations

import logging
import logging.handlers
import os
import sys
import time
from contextvars import ContextVar
from typing import TYPE_CHECKING, List, Optional

import structlog

if TYPE_CHECKING:
    from supportchat.config import Settings

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

APP_VERSION = "0.3.0"
SERVICE_NAME = "supportchat-backend"

NOISY_LOGGERS = ("httpcore", "httpx", "openai", "qdrant_client", "asyncio", "watchfiles")

_started_at = time.monotonic()


def get_uptime_s() -> float:
    return time.monotonic() - _started_at


def add_service_fields(logger_name: str, method_name: str, event_dict: dict) -> dict:
    """Stamp service identity and the current request's ids."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", APP_VERSION)
    for key, var in (("request_id", request_id_var), ("correlation_id", correlation_id_var)):
        value = var.get()
        if value:
            event_dict[key] = value
    return event_dict


def _lowercase_level(logger_name: str, method_name: str, event_dict: dict) -> dict:
    if "level" in event_dict:
        event_dict["level"] = str(event_dict["level"]).lower()
    return event_dict


def _pre_chain() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        _lowercase_level,
        structlog.stdlib.add_logger_name,
        add_service_fields,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def build_formatter(json_output: bool = True) -> structlog.stdlib.ProcessorFormatter:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    return structlog.stdlib.ProcessorFormatter(
        # ExtraAdder lifts `extra={...}` from stdlib calls into the event
        foreign_pre_chain=[*_pre_chain(), structlog.stdlib.ExtraAdder()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def _rotating_file_handler(
    log_dir: str, log_file: str, max_bytes: int, backup_count: int
) -> Optional[logging.Handler]:
    """None when the directory cannot be created or opened."""
    try:
        os.makedirs(log_dir, exist_ok=True)
        return logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, log_file),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"supportchat: file logging disabled ({e})\n")
        return None


def setup_logging(
    settings: Optional["Settings"] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """Configure structlog and the stdlib root logger from settings.

    Safe to call more than once; previous root handlers are replaced.
    """
    if settings is None:
        from supportchat.config import settings

    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(build_formatter(json_output=not settings.debug))
    handlers: List[logging.Handler] = [console]

    file_handler = _rotating_file_handler(settings.log_dir, settings.log_file, max_bytes, backup_count)
    if file_handler is not None:
        file_handler.setFormatter(build_formatter(json_output=True))
        handlers.append(file_handler)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(settings.log_level.upper())

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
