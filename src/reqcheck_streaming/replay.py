"""Canned fragment source for demos and tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Sequence
from typing import TYPE_CHECKING

import structlog

from reqcheck_core.exceptions import TransportError

if TYPE_CHECKING:
    from reqcheck_streaming.composer import ComposedPrompt

logger = structlog.get_logger()

DEMO_RISK_FRAGMENTS: tuple[str, ...] = (
    '{"overallScore": 72',
    ', "overallVerdict": "High Risk due to',
    ' a niche software requirement"',
    ', "estimatedTimeToFill": "70-90 days"',
    ', "summary": "Brightree experience stacked on DME billing shrinks the pool."',
    ', "flags": [{"requirement": "2+ years Brightree", "riskLevel": "high"',
    ', "category": "Niche Software", "explanation": "Few PH billers use Brightree."',
    ', "suggestion": "Accept Brightree OR equivalent DME billing software"}]',
    ', "wellCalibratedRequirements": ["Medical billing experience, strong PH pool"]',
    ', "revisedScreeningCriteria": {"mustHave": ["Medical billing experience"]',
    ', "niceToHave": ["DME exposure"]',
    ', "trainable": [{"skill": "Brightree", "estimatedRampTime": "2-3 weeks"}]}',
    ', "recommendations": ["Move Brightree from screening to nice-to-have"]}',
)

DEMO_FEASIBILITY_FRAGMENTS: tuple[str, ...] = (
    '{"locationResults": [{"location": "Philip',
    'pines", "feasibilityScore": 42',
    ', "verdict": "Low Feasibility: DME billing with Brightree is a thin pool"',
    ', "baselineTimeToFill": "30-45 days", "estimatedTimeToFill": "60-80 days"',
    ', "talentPoolNote": "Deep RCM pool, thin DME sub-specialty."',
    ', "flags": [{"requirement": "2+ years Brightree", "riskLevel": "high"',
    ', "category": "Niche Software", "explanation": "Brightree users are rare in PH."',
    ', "suggestion": "Accept Brightree OR equivalent"}]}]',
    ', "sharedAnalysis": {"summary": "Niche software stacked on a DME',
    ' specialty compounds scarcity."',
    ', "flags": [{"requirement": "Stable employment history", "riskLevel": "low"',
    ', "category": "Vague/Subjective Criteria", "explanation": "Undefined threshold."',
    ', "suggestion": "Define it, e.g. no more than 3 roles in 3 years"}]',
    ', "alignmentNotes": [{"aspect": "Compensation", "note": "Offered range',
    ' sits at the market median for billers."}]',
    ', "wellCalibratedRequirements": ["Medical billing experience"]',
    ', "revisedScreeningCriteria": {"mustHave": ["Medical billing experience"]',
    ', "niceToHave": ["Brightree"], "trainable": [{"skill": "Brightree"',
    ', "estimatedRampTime": "2-3 weeks"}]}',
    ', "recommendations": ["Move Brightree to nice-to-have"]}}',
)

DEMO_FRAGMENTS: dict[str, tuple[str, ...]] = {
    "v1": DEMO_RISK_FRAGMENTS,
    "v2": DEMO_FEASIBILITY_FRAGMENTS,
}


class ReplayStreamer:
    """Replay a fixed fragment sequence as if it came from the API.

    ``fail_after`` raises TransportError once that many fragments have been
    yielded, which reproduces a connection dropped mid-stream.
    """

    def __init__(
        self,
        fragments: Sequence[str],
        delay_seconds: float = 0.0,
        fail_after: int | None = None,
    ) -> None:
        self.fragments = tuple(fragments)
        self.delay_seconds = delay_seconds
        self.fail_after = fail_after
        self.prompts: list[ComposedPrompt] = []
        self.closed = False

    def stream(self, prompt: ComposedPrompt) -> AsyncGenerator[str, None]:
        """Record the prompt and return the replay iterator."""
        self.prompts.append(prompt)
        return self._replay()

    async def _replay(self) -> AsyncGenerator[str, None]:
        try:
            for index, fragment in enumerate(self.fragments):
                if self.fail_after is not None and index >= self.fail_after:
                    msg = f"Replay interrupted after {index} fragments"
                    raise TransportError(msg)
                if self.delay_seconds:
                    await asyncio.sleep(self.delay_seconds)
                yield fragment
        finally:
            self.closed = True
            logger.debug("replay_closed", fragments=len(self.fragments))
