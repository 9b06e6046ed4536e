"""
Centralized structlog configuration for price-detector.

Library code only calls structlog.get_logger(); applications (and the CLI)
call configure_structlog() once at startup.
"""

import logging
import os
import sys
from typing import Optional

import structlog
from structlog.types import EventDict, Processor


def add_app_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application context to log events."""
    event_dict["app"] = "price-detector"
    return event_dict


def configure_structlog(environment: Optional[str] = None, level: Optional[str] = None) -> None:
    """
    Configure structlog with environment-appropriate settings.

    Args:
        environment: 'development' (coloured console) or 'production' (JSON).
                    If None, uses PRICE_DETECTOR_ENV, defaulting to development.
        level: Log level name; defaults to PRICE_DETECTOR_LOG_LEVEL, then
               DEBUG in development and INFO otherwise
    """
    if environment is None:
        environment = os.getenv("PRICE_DETECTOR_ENV", "development")
    if level is None:
        level = os.getenv("PRICE_DETECTOR_LOG_LEVEL") or ("DEBUG" if environment == "development" else "INFO")

    # Common processors for all environments
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    if environment == "development":
        processors = shared_processors + [
            structlog.processors.ExceptionRenderer(),
            structlog.stdlib.render_to_log_kwargs,
        ]
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        # JSON output for log aggregation
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.stdlib.render_to_log_kwargs,
        ]
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Logs go to stderr so CLI output on stdout stays machine-readable
    root = logging.getLogger()
    root.handlers = []
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    ))
    root.addHandler(handler)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    logger = structlog.get_logger(__name__)
    logger.debug(
        "structlog_configured",
        environment=environment,
        renderer="console" if environment == "development" else "json",
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a configured structlog logger.

    Args:
        name: Optional logger name (typically __name__)

    Returns:
        Configured structlog BoundLogger
    """
    return structlog.get_logger(name)
