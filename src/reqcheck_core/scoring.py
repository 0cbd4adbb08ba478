"""Score bands and the qualitative labels for numeric scores."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

ScoreVariant = Literal["feasibility", "risk"]


@dataclass(frozen=True)
class ScoreBand:
    """A named, inclusive score range with its canonical label."""

    label: str
    low: int
    high: int
    guidance: str

    def contains(self, score: int) -> bool:
        """Return True if score falls inside this band."""
        return self.low <= score <= self.high


# Higher score = easier to fill
FEASIBILITY_BANDS: tuple[ScoreBand, ...] = (
    ScoreBand(
        "Near-Impossible",
        0,
        15,
        "Unicorn profile. Expect 90+ day fill times or an unfilled requisition.",
    ),
    ScoreBand(
        "Very Low Feasibility",
        16,
        24,
        "Several stacked niche requirements. Expect 75-90 day fill times.",
    ),
    ScoreBand(
        "Low Feasibility",
        25,
        54,
        "Restrictive requirements are stacking. Expect 56-75 day fill times.",
    ),
    ScoreBand(
        "Moderate Feasibility",
        55,
        79,
        "Some requirements could be relaxed. Expect 40-56 day fill times.",
    ),
    ScoreBand(
        "High Feasibility",
        80,
        100,
        "Requirements are well-calibrated for the market. Expect normal fill times.",
    ),
)

# Higher score = harder to fill
RISK_BANDS: tuple[ScoreBand, ...] = (
    ScoreBand(
        "Low Risk",
        0,
        30,
        "Requirements are well-calibrated for the role and market. Expect normal fill times.",
    ),
    ScoreBand(
        "Moderate Risk",
        31,
        55,
        "Some requirements could be relaxed. May see 40-56 day fill times.",
    ),
    ScoreBand(
        "High Risk",
        56,
        75,
        "Multiple restrictive requirements stacking. Expect 56-75+ day fill times.",
    ),
    ScoreBand(
        "Critical Risk",
        76,
        100,
        "Unicorn profile. Expect 75-90+ day fill times or an unfilled requisition.",
    ),
)

BAND_TABLES: dict[str, tuple[ScoreBand, ...]] = {
    "feasibility": FEASIBILITY_BANDS,
    "risk": RISK_BANDS,
}


def band_for(score: int, variant: ScoreVariant = "feasibility") -> ScoreBand:
    """Return the unique band containing score.

    Raises ValueError for non-integers and scores outside 0-100.
    """
    if isinstance(score, bool) or not isinstance(score, int):
        msg = f"Score must be an integer, got {score!r}"
        raise ValueError(msg)
    for band in _bands(variant):
        if band.contains(score):
            return band
    msg = f"Score {score} is outside 0-100"
    raise ValueError(msg)


def label_for(score: int, variant: ScoreVariant = "feasibility") -> str:
    """Return the canonical label for score."""
    return band_for(score, variant).label


def conflicting_labels(score: int, text: str, variant: ScoreVariant = "feasibility") -> list[str]:
    """Return band labels mentioned in text that disagree with score.

    Longer labels are matched first and masked so "Low Feasibility" is not
    found again inside "Very Low Feasibility".
    """
    own = label_for(score, variant)
    remaining = text
    found: list[str] = []
    for band in sorted(_bands(variant), key=lambda b: len(b.label), reverse=True):
        pattern = re.compile(rf"(?<![\w-]){re.escape(band.label)}(?![\w-])", re.IGNORECASE)
        if pattern.search(remaining):
            found.append(band.label)
            remaining = pattern.sub(" ", remaining)
    return [label for label in found if label != own]


def render_threshold_table(variant: ScoreVariant) -> str:
    """Render the band table as the scoring guide used in instructions."""
    return "\n".join(
        f"- **{band.low}-{band.high}** ({band.label}): {band.guidance}"
        for band in _bands(variant)
    )


def _bands(variant: str) -> tuple[ScoreBand, ...]:
    """Look up a band table by variant name."""
    try:
        return BAND_TABLES[variant]
    except KeyError:
        msg = f"Unknown score variant: {variant}"
        raise ValueError(msg) from None
