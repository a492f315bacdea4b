# campaign_panel/core/logging.py
from __future__ import annotations

import logging
import uuid
from typing import Any

import structlog

from campaign_panel.config.settings import settings

_PII_KEYS = ("password", "secret", "token", "authorization", "email")


def bind_request_id(request_id: str | None = None) -> str:
    """Bind a request id to every log line emitted while handling this request."""
    rid = request_id or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=rid)
    return rid


def redact_email(email: str) -> str:
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


def _redact_pii(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in list(event_dict.keys()):
        if key == "event":
            continue
        value = event_dict[key]
        if not isinstance(value, str):
            continue
        lower_key = key.lower()
        if "email" in lower_key:
            event_dict[key] = redact_email(value)
        elif any(pii in lower_key for pii in _PII_KEYS):
            event_dict[key] = "***"
    return event_dict


def configure_logging(*, log_level: str = "INFO", json_output: bool = True) -> None:
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_pii,
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging(log_level=settings.log_level, json_output=settings.log_json)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
