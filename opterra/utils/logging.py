"""
Structured logging for the Opterra API using structlog.

Every event carries the request ID bound by the tracing middleware plus the
service name and version. Collaborator credentials are masked before
rendering so guidance and pricing calls can log their context freely.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

from opterra import __version__
from opterra.config import get_settings

SERVICE_NAME = "opterra"

# Event keys whose values are never rendered
SECRET_KEYS = frozenset({"api_key", "authorization", "guidance_api_key", "token"})


def add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every event with the service name, version and severity."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    event_dict["severity"] = method_name.upper()
    return event_dict


def mask_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    for key in SECRET_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = "***"
    return event_dict


def build_processors(renderer: Processor) -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_service_context,
        mask_secrets,
        renderer,
    ]


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """
    Configure structlog on top of stdlib logging.

    JSON lines in production, colored console output in dev mode. ``level``
    and ``fmt`` override LOG_LEVEL and LOG_FORMAT.
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    fmt = fmt or settings.log_format

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO),
    )
    # uvicorn's access log duplicates request_started / request_completed
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    if fmt == "json" and not settings.dev_mode:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=build_processors(renderer),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def log_event(
    logger: structlog.BoundLogger,
    level: str,
    event: str,
    **kwargs: Any,
) -> None:
    """
    Log ``event`` at a level chosen at runtime.

    Used where the same event is a warning or an error depending on the
    caller (e.g. a guidance fallback). Unknown levels log at info.
    """
    log_func = getattr(logger, level.lower(), logger.info)
    log_func(event, **kwargs)
