"""
Logging configuration.

Every module logs through ``structlog.get_logger(__name__)``.  The
library does not configure logging on import; applications call
``configure_logging()`` once at start-up (or configure structlog
themselves).
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory
from structlog.types import Processor


def _add_library_name(logger: Any, name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("library", "ksa-fhir")
    return event_dict


def configure_logging(level: str = "INFO", *, json: bool = False) -> None:
    """Configure structlog on top of the standard library logger.

    Args:
        level: Standard logging level name.
        json:  Render events as JSON lines instead of the console format.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level.upper(),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_library_name,
        structlog.processors.format_exc_info,
    ]
    if json:
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
