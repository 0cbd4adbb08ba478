"""Report models for both output protocols.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from reqcheck_core.scoring import ScoreVariant

NonEmptyText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
ProtocolVersion = Literal["v1", "v2"]


def _integral_float_to_int(value: object) -> object:
    """Accept 40.0 as 40; strict validation rejects strings, bools and fractions."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


Score = Annotated[int, BeforeValidator(_integral_float_to_int), Field(ge=0, le=100, strict=True)]


class _WireModel(BaseModel):
    """Base for models read from the model's camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RiskFlag(_WireModel):
    """A requirement likely to shrink the candidate pool."""

    requirement: NonEmptyText = Field(description="Requirement text quoted from the req")
    risk_level: Literal["high", "medium", "low"] = Field(description="Severity")
    category: str = Field(default="Other", description="Flag taxonomy category")
    explanation: str = Field(default="", description="Why this is a risk")
    suggestion: str = Field(default="", description="Actionable fix")


class TrainableSkill(_WireModel):
    """A skill that can be taught after hire."""

    skill: str
    estimated_ramp_time: str = ""


class RevisedScreeningCriteria(_WireModel):
    """Restructured screening rubric."""

    must_have: list[str] = Field(default_factory=list)
    nice_to_have: list[str] = Field(default_factory=list)
    trainable: list[TrainableSkill] = Field(default_factory=list)


class AlignmentNote(_WireModel):
    """Observation on how compensation, setup, shift or title fit the market."""

    aspect: str
    note: str


class RiskReport(_WireModel):
    """Flat single-market risk report (protocol v1)."""

    overall_score: Score = Field(description="Risk score, higher is harder to fill")
    overall_verdict: str
    estimated_time_to_fill: str
    summary: str
    flags: list[RiskFlag]
    well_calibrated_requirements: list[str] = Field(default_factory=list)
    revised_screening_criteria: RevisedScreeningCriteria
    recommendations: list[str]


class LocationResult(_WireModel):
    """Per-location feasibility verdict (protocol v2)."""

    location: NonEmptyText
    feasibility_score: Score = Field(description="Feasibility, higher is easier")
    verdict: str
    baseline_time_to_fill: str = ""
    estimated_time_to_fill: str
    talent_pool_note: str = ""
    flags: list[RiskFlag] = Field(default_factory=list)


class SharedAnalysis(_WireModel):
    """Analysis that applies to every location identically."""

    summary: str
    flags: list[RiskFlag]
    alignment_notes: list[AlignmentNote] = Field(default_factory=list)
    well_calibrated_requirements: list[str] = Field(default_factory=list)
    revised_screening_criteria: RevisedScreeningCriteria
    recommendations: list[str]


class FeasibilityReport(_WireModel):
    """Multi-location feasibility report (protocol v2)."""

    location_results: list[LocationResult] = Field(min_length=1)
    shared_analysis: SharedAnalysis

    @property
    def primary_result(self) -> LocationResult:
        """The first location, which the user selected first."""
        return self.location_results[0]


Report = RiskReport | FeasibilityReport

REPORT_MODELS: dict[str, type[RiskReport] | type[FeasibilityReport]] = {
    "v1": RiskReport,
    "v2": FeasibilityReport,
}

SCORE_VARIANTS: dict[str, ScoreVariant] = {
    "v1": "risk",
    "v2": "feasibility",
}
