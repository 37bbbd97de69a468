"""Structured logging configuration using structlog."""

import logging
import sys

import structlog

from healthbridge.config import get_settings


def _redact_measurements_processor(
    logger: structlog.typing.WrappedLogger,
    method_name: str,
    event_dict: structlog.typing.EventDict,
) -> structlog.typing.EventDict:
    """
    Redact measurement payloads from log events.

    Health values are personal data and never belong in log output:
    - Only identifiers, data types, counts and time ranges are loggable
    - Any field carrying measured values or record bodies is replaced
    """
    # Fields that may contain measured values
    measurement_fields = [
        "value",
        "values",
        "records",
        "samples",
        "stages",
        "payload",
        "request_body",
    ]

    for field in measurement_fields:
        if field in event_dict:
            value = event_dict[field]
            if isinstance(value, (str, int, float)) and not isinstance(value, bool):
                event_dict[field] = "[REDACTED]"
            elif isinstance(value, (list, dict)):
                event_dict[field] = "[REDACTED]"

    return event_dict


def setup_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    if settings.is_production:
        # Production: JSON output for log aggregation
        processors: list[structlog.typing.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _redact_measurements_processor,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Development: pretty console output
        processors = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _redact_measurements_processor,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.getLevelName(settings.log_level),
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger instance with optional name binding."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger_name=name)
    return logger
