"""
Logging Configuration for the Retail Analytics Pipeline

One structlog setup shared by the batch run and the API. Every record is
tagged with the service that emitted it so batch and API output can be
told apart when both write to the same sink.
"""

import logging
import sys
from typing import Dict, List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from retail_analytics.config.settings import get_settings

# Library loggers routed through the root handler, with a minimum level
# (None keeps the configured level). Prefect keeps its own handlers.
LIBRARY_LOGGERS: Dict[str, Optional[int]] = {
    "uvicorn": None,
    "uvicorn.error": None,
    "uvicorn.access": None,
    "sqlalchemy.engine": logging.WARNING,
}


def _static_fields(**fields):
    def processor(logger, method_name, event_dict):
        for key, value in fields.items():
            event_dict.setdefault(key, value)
        return event_dict
    return processor


def _shared_processors(**static_fields) -> List:
    return [
        _static_fields(**static_fields),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str):
    if log_format == "json":
        return JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(log_level: Optional[str] = None, service: str = "api") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        service: Tag bound to every record, e.g. "api" or "batch"
    """
    settings = get_settings()
    level = log_level or settings.monitoring.log_level
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    processors = _shared_processors(service=service, environment=settings.app_env)
    structlog.configure(
        processors=processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        ProcessorFormatter(
            processor=_renderer(settings.monitoring.log_format),
            foreign_pre_chain=processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)

    for name, floor in LIBRARY_LOGGERS.items():
        library_logger = logging.getLogger(name)
        library_logger.handlers = []
        library_logger.propagate = True
        library_logger.setLevel(max(numeric_level, floor) if floor else numeric_level)

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level,
        format=settings.monitoring.log_format,
    )
