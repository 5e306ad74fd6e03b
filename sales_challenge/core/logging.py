"""structlog setup for the sales challenge service.

One event per line as JSON in production, ConsoleRenderer when debugging.
Stdlib loggers (uvicorn, SQLAlchemy, the database drivers) go through the
same formatter, and every event carries ``service`` plus the request's
correlation id when there is one.
"""

import logging
import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

SERVICE_NAME = "sales-challenge"

# Chatty below WARNING
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "asyncpg", "aiosqlite")


def add_correlation_id(logger, method, event_dict):
    cid = correlation_id.get(None)
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def add_service(service: str):
    def processor(logger, method, event_dict):
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def configure_structlog(
    log_level: str = "INFO",
    json_logs: bool = True,
    service: str = SERVICE_NAME,
) -> None:
    """Configure structlog and the stdlib bridge.

    Must run before other modules call ``structlog.get_logger``: the
    processor chain is cached on first use.

    Args:
        log_level: Root log level ("DEBUG", "INFO", ...)
        json_logs: JSON lines when True, ConsoleRenderer when False
        service: Value of the ``service`` field on every event
    """
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service(service),
        add_correlation_id,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        # Tracebacks as a string field; ConsoleRenderer prints them itself
        final_processors = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        final_processors = [structlog.dev.ConsoleRenderer()]

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    *final_processors,
                ],
                "foreign_pre_chain": shared_processors,
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["default"], "level": log_level},
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
    })

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
