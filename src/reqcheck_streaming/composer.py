"""Prompt composition from a validated request."""

from __future__ import annotations

from dataclasses import dataclass

from reqcheck_core.constants import (
    CURRENCY_SYMBOLS,
    FEASIBILITY_PROMPT_VERSION,
    RISK_PROMPT_VERSION,
)
from reqcheck_core.models.report import ProtocolVersion
from reqcheck_core.models.request import CompensationRange, StreamRequest
from reqcheck_streaming.prompts.feasibility import FEASIBILITY_SYSTEM, FEASIBILITY_USER
from reqcheck_streaming.prompts.risk import RISK_SYSTEM, RISK_USER

_TEMPLATES: dict[str, tuple[str, str, str]] = {
    "v1": (RISK_SYSTEM, RISK_USER, RISK_PROMPT_VERSION),
    "v2": (FEASIBILITY_SYSTEM, FEASIBILITY_USER, FEASIBILITY_PROMPT_VERSION),
}


@dataclass(frozen=True)
class ComposedPrompt:
    """Instruction text and user message for one completion request."""

    instructions: str
    content: str
    prompt_version: str


def compose(request: StreamRequest, protocol: ProtocolVersion = "v2") -> ComposedPrompt:
    """Build the completion payload for a validated request.

    Deterministic: the same request and protocol give byte-identical output.
    """
    system, user, version = _TEMPLATES[protocol]
    content = user.format(
        locations=", ".join(request.locations),
        work_setup=request.work_setup.label,
        shift=request.shift or "Not specified",
        compensation=format_compensation(request.compensation),
        requisition=request.free_text,
    )
    return ComposedPrompt(instructions=system, content=content, prompt_version=version)


def format_compensation(compensation: dict[str, CompensationRange]) -> str:
    """Render pay ranges as '₱40,000-₱60,000 PHP; $800-$1,200 USD'."""
    if not compensation:
        return "Not specified"
    parts: list[str] = []
    for currency, comp_range in compensation.items():
        symbol = _currency_symbol(currency)
        parts.append(f"{symbol}{comp_range.min:,}-{symbol}{comp_range.max:,} {currency}")
    return "; ".join(parts)


def _currency_symbol(currency: str) -> str:
    """Return the symbol for a currency code, or the code itself as prefix."""
    return CURRENCY_SYMBOLS.get(currency.upper(), f"{currency} ")
