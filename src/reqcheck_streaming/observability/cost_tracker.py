"""LLM token usage and cost estimation."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from reqcheck_core.constants import TOKEN_PRICES

logger = structlog.get_logger()


@dataclass(frozen=True)
class StreamUsage:
    """Token usage of one streamed completion."""

    model: str
    input_tokens: int
    output_tokens: int
    duration_seconds: float
    fragments: int

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def estimated_cost_usd(self) -> float:
        """Cost from the price table; 0.0 for unknown models."""
        prices = TOKEN_PRICES.get(self.model)
        if not prices:
            return 0.0
        return (
            self.input_tokens * prices["input"] / 1_000_000
            + self.output_tokens * prices["output"] / 1_000_000
        )


def extract_stream_usage(
    message: object, model: str, duration_seconds: float, fragments: int
) -> StreamUsage:
    """Read usage from a final message; missing attributes count as zero."""
    usage = getattr(message, "usage", None)
    input_tokens = getattr(usage, "input_tokens", 0) or 0
    output_tokens = getattr(usage, "output_tokens", 0) or 0
    return StreamUsage(
        model=model,
        input_tokens=int(input_tokens),
        output_tokens=int(output_tokens),
        duration_seconds=duration_seconds,
        fragments=fragments,
    )


def log_stream_usage(usage: StreamUsage) -> None:
    """Emit one structured usage record."""
    logger.info(
        "stream_usage",
        model=usage.model,
        input_tokens=usage.input_tokens,
        output_tokens=usage.output_tokens,
        fragments=usage.fragments,
        duration=round(usage.duration_seconds, 2),
        cost_usd=round(usage.estimated_cost_usd, 4),
    )
