"""
Structured logging for the indexer, the RPC client and the API.

Every record is one JSON object (or a console line when LOG_FORMAT=console)
with event_type, level, logger, an ISO UTC timestamp and key/value context
such as cycle_id, wallet_id or checkpoint. Provider API keys embedded in RPC
URLs are redacted before rendering.

Imports nothing from interaction_indexer, so it is safe to import first.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

# Chatty third-party loggers; their per-request lines drown the cycle summary
_NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")

_API_KEY_RE = re.compile(r"(api[-_]?key=)[^&\s\"']+", re.IGNORECASE)


def _add_timestamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _normalize_event(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog 'event' -> event_type."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def _redact_api_keys(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key, value in event_dict.items():
        if isinstance(value, str) and "key=" in value.lower():
            event_dict[key] = _API_KEY_RE.sub(r"\1***", value)
    return event_dict


def _resolve_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    name = (level or os.getenv("LOG_LEVEL", "INFO")).strip().upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(level: str | int | None = None, fmt: str | None = None) -> None:
    """
    (Re)configure structlog. Defaults come from LOG_LEVEL and LOG_FORMAT.

    Also routes stdlib logging to stderr at the same level and raises the
    noisy HTTP and SQL loggers to WARNING.
    """
    level_value = _resolve_level(level)
    fmt = (fmt or os.getenv("LOG_FORMAT", "json")).strip().lower()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
        _redact_api_keys,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(level=level_value, stream=sys.stderr, format="%(levelname)s %(name)s %(message)s")
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level_value, logging.WARNING))


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Lazy module logger: it resolves the current configuration on every call,
    so a later configure_logging() reaches loggers created at import time.
    The event name goes first, context as kwargs:

        logger.info("indexer_wallet_incremented", wallet_id=addr, increment=3)
    """
    return structlog.get_logger(name, logger=name)


def bind_cycle(cycle_id: int) -> structlog.BoundLogger:
    """Logger carrying cycle_id on every record of one indexer cycle."""
    return get_logger("interaction_indexer.cycle").bind(cycle_id=cycle_id)
