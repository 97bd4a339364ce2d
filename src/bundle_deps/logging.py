"""Logging configuration."""
import datetime
import json
import logging
import sys
from typing import Any, List

import structlog
from structlog.types import EventDict, Processor

IGNORED_LOGGERS = [
    "aiohttp",
    "asyncio"
]

_min_level = logging.INFO


def add_timestamp(_, __, event_dict: EventDict) -> EventDict:
    """Add ISO timestamp to the event dict."""
    if 'timestamp' not in event_dict:
        event_dict['timestamp'] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return event_dict


def level_filter(logger: Any, name: str, event_dict: EventDict) -> EventDict:
    """Drop events from ignored loggers or below the configured level."""
    logger_name = getattr(logger, "name", "") or ""
    if any(logger_name.startswith(ignored) for ignored in IGNORED_LOGGERS):
        raise structlog.DropEvent
    level_no = logging.getLevelName(name.upper())
    if isinstance(level_no, int) and level_no < _min_level:
        raise structlog.DropEvent
    return event_dict


class CompactJSONRenderer:
    """Single-line JSON renderer with minimal output."""
    def __call__(self, _: Any, __: str, event_dict: EventDict) -> str:
        items = {
            "ts": event_dict.pop("timestamp", None),
            "lvl": event_dict.pop("level", "???"),
            "msg": event_dict.pop("event", ""),
        }
        if logger_name := event_dict.pop("logger", None):
            items["logger"] = logger_name
        if event_dict:
            items["data"] = event_dict
        return json.dumps(items, separators=(',', ':'), default=str)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured logging for the fetcher.

    Everything goes to stderr. Interactive terminals get the coloured
    console renderer, pipes and CI logs get one JSON object per line.
    """
    global _min_level
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        raise ValueError(f"Unknown log level: {level}")
    _min_level = level_no

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level_no
    )
    for name in IGNORED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    json_processors: List[Processor] = [
        level_filter,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_timestamp,
        structlog.processors.format_exc_info,
        CompactJSONRenderer()
    ]

    console_processors: List[Processor] = [
        level_filter,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=True)
    ]

    structlog.configure(
        processors=console_processors if sys.stderr.isatty() else json_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
