"""
Structured logging for the worker and the core services.

Every record carries event_type, level, logger and an ISO timestamp. Callers log
a snake_case event name plus keyword context (source_id, identity_id,
artifact_id). Wallet secrets, bearer tokens and RPC api keys are masked before
rendering.

Output goes to stderr so the worker's stdout stays free for its JSON report.
Only stdlib logging and structlog are imported here; other tweetonium modules
import this one.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from datetime import datetime, timezone
from typing import IO, Any

import structlog

REDACTED = "***"
SECRET_KEYS = frozenset(
    {
        "bearer_token",
        "encrypted_secret",
        "secret_key",
        "private_key",
        "wallet_encryption_key",
        "authorization",
    }
)
_API_KEY_RE = re.compile(r"(api-key=)[^&\s]+", re.IGNORECASE)


def _add_timestamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _normalize_event(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's 'event' becomes event_type; message defaults to the event name."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "logger_name" in event_dict:
        event_dict["logger"] = event_dict.pop("logger_name")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def _redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key, value in event_dict.items():
        if key.lower() in SECRET_KEYS and value:
            event_dict[key] = REDACTED
        elif isinstance(value, str) and "api-key=" in value.lower():
            event_dict[key] = _API_KEY_RE.sub(rf"\1{REDACTED}", value)
    return event_dict


def configure_logging(
    level: str | None = None,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """
    (Re)configure structlog. Defaults come from LOG_LEVEL (INFO) and LOG_FORMAT
    (json; anything else renders for the console).
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.getenv("LOG_FORMAT", "json")).strip().lower()
    out = stream or sys.stderr

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
        _redact_secrets,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=out.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=False,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Structured logger for a module:

        logger = get_logger(__name__)
        logger.info("artifact_lazy_minted", artifact_id=7, source_id="1789...")
    """
    # lazy proxy: resolves against the current configuration on each call.
    # "logger" is a wrap_logger parameter, so the name travels as logger_name.
    return structlog.get_logger(name, logger_name=name)


def bind_context(name: str, **context: Any) -> structlog.BoundLogger:
    """Logger with context bound to every subsequent call."""
    return get_logger(name).bind(**context)


def bind_artifact(artifact_id: int) -> structlog.BoundLogger:
    return bind_context("tweetonium.artifact", artifact_id=artifact_id)
