"""Structured logging for the intake API and its background pipeline runs.

Every line, ours or from uvicorn/httpx/anthropic through the stdlib bridge,
goes through the same chain:
- pipeline context (task, round, nonce) from structlog contextvars
- correlation_id of the intake request that started the run
- credentials masked, oversized values (generated HTML, webhook bodies) clipped
- JSON in production, ConsoleRenderer when debugging
"""

import logging
import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

# Event keys whose values must never reach the log stream
REDACTED_KEYS = frozenset({
    "secret",
    "shared_secret",
    "github_token",
    "anthropic_api_key",
    "authorization",
    "token",
})
REDACTED = "[redacted]"

MAX_VALUE_LENGTH = 2000

# Third-party loggers that log every request at INFO
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "anthropic")


def add_correlation_id(logger, method, event_dict):
    """Tag the entry with the intake request's correlation_id."""
    cid = correlation_id.get(None)
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def redact_credentials(logger, method, event_dict):
    for key in event_dict.keys() & REDACTED_KEYS:
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def clip_long_values(logger, method, event_dict):
    for key, value in event_dict.items():
        if isinstance(value, str) and len(value) > MAX_VALUE_LENGTH:
            event_dict[key] = f"{value[:MAX_VALUE_LENGTH]}... [{len(value) - MAX_VALUE_LENGTH} chars clipped]"
    return event_dict


def shared_processors() -> list:
    """Processors applied to both structlog and stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_correlation_id,
        redact_credentials,
        clip_long_values,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def build_logging_config(log_level: str, json_logs: bool) -> dict:
    """dictConfig routing the root logger through structlog's ProcessorFormatter."""
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
        final_processors = [structlog.processors.format_exc_info, renderer]
    else:
        # ConsoleRenderer prints tracebacks itself
        final_processors = [structlog.dev.ConsoleRenderer()]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "pagesmith": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    *final_processors,
                ],
                "foreign_pre_chain": shared_processors(),
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "pagesmith",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["stdout"], "level": log_level},
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
    }


def configure_structlog(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Install the logging configuration.

    Must run before the other pagesmith modules call structlog.get_logger;
    loggers are cached on first use.
    """
    logging.config.dictConfig(build_logging_config(log_level, json_logs))

    structlog.configure(
        processors=[*shared_processors(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
