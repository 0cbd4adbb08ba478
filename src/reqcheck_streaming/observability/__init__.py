"""Observability: structured logging and token usage."""

from reqcheck_streaming.observability.cost_tracker import (
    StreamUsage,
    extract_stream_usage,
    log_stream_usage,
)
from reqcheck_streaming.observability.logging import (
    bind_analysis_context,
    clear_analysis_context,
    configure_logging,
)

__all__ = [
    "StreamUsage",
    "bind_analysis_context",
    "clear_analysis_context",
    "configure_logging",
    "extract_stream_usage",
    "log_stream_usage",
]
