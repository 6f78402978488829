from __future__ import annotations

import logging
import sys
from typing import Any, Callable, MutableMapping, cast

import structlog

from charity_hub.config import LOG_FORMAT, LOG_LEVEL, SERVICE_NAME

Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]

# Third-party loggers that only matter when something is wrong
QUIET_LOGGERS = ("urllib3", "requests", "multipart", "uvicorn.access", "sqlalchemy.engine")


def _add_service(_: Any, __: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _renderer() -> Processor:
    if LOG_FORMAT == "console":
        return cast(Processor, structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return cast(Processor, structlog.processors.JSONRenderer())


def setup_logging() -> None:
    """
    Configure stdlib logging and structlog for the API and the cron scripts.

    ``LOG_FORMAT=json`` emits one JSON object per line for log aggregation;
    ``console`` is the readable development format. Both carry the request id
    bound by ``RequestIDMiddleware`` and a ``service`` key.
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=LOG_LEVEL,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if LOG_FORMAT == "console":
        processors.append(structlog.dev.set_exc_info)
    else:
        processors.append(structlog.processors.format_exc_info)
    processors.append(_renderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(LOG_LEVEL)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
