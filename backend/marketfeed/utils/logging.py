"""Structured logging configuration"""

import logging
import os
import sys
import structlog
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "marketfeed"


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging with JSON output

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = getattr(logging, log_level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance

    Args:
        name: Logger name (typically __name__)
    """
    return structlog.get_logger(name)


def bind_request_context(**values) -> None:
    """Attach key/values (request id, user id) to every log line of this request"""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter for stdlib loggers (uvicorn, celery)"""

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["service"] = SERVICE_NAME
        log_record["environment"] = os.getenv("ENVIRONMENT", "development")
        log_record["logger_name"] = record.name
        log_record["level"] = record.levelname.lower()

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def configure_uvicorn_logging() -> None:
    """Route uvicorn's access and error loggers through the JSON formatter"""

    formatter = ServiceJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s", timestamp=True)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    for name in ("uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).handlers = [handler]
