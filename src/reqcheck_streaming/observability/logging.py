"""Structured logging for analyses.

Log records go to stderr by default so they never interleave with the live
report the CLI draws on stdout. Every event logged while an analysis runs
carries its ``analysis_id`` and ``protocol``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, TextIO

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars

if TYPE_CHECKING:
    from reqcheck_core.config.settings import Settings

# Loggers that log every HTTP exchange at INFO
HTTP_LOGGERS = ("httpx", "httpcore", "anthropic")

# Model output and validation messages can run to kilobytes
MAX_VALUE_CHARS = 500


def configure_logging(settings: Settings, stream: TextIO | None = None) -> None:
    """Route structlog and stdlib records through one renderer on stream.

    ``settings.log_format`` picks JSON lines or the console renderer.
    Reconfiguring replaces the previous handler.
    """
    shared_processors: list[structlog.types.Processor] = [
        merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        clip_long_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    level = _resolve_level(settings.log_level)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings.log_format),
            ],
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    quiet_http_loggers(level)


def quiet_http_loggers(level: int) -> None:
    """Keep per-request HTTP chatter at WARNING unless level is stricter."""
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def clip_long_values(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Shorten string fields longer than MAX_VALUE_CHARS."""
    for key, value in event_dict.items():
        if key != "event" and isinstance(value, str) and len(value) > MAX_VALUE_CHARS:
            hidden = len(value) - MAX_VALUE_CHARS
            event_dict[key] = f"{value[:MAX_VALUE_CHARS]}... [{hidden} more chars]"
    return event_dict


def bind_analysis_context(analysis_id: str, protocol: str) -> None:
    """Bind the analysis id and protocol to all subsequent log entries."""
    bind_contextvars(analysis_id=analysis_id, protocol=protocol)


def clear_analysis_context() -> None:
    """Clear all bound context variables."""
    clear_contextvars()


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _resolve_level(level_name: str) -> int:
    """Convert a level name to a logging level, INFO when unknown."""
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO
