"""Reviewer feedback models."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Literal

from pydantic import BaseModel, Field

Thumb = Literal["up", "down"]
Judgment = Literal["agree", "disagree"]


class FeedbackDraft(BaseModel):
    """Feedback a reviewer is collecting for one report."""

    report_id: str = Field(description="Analysis the feedback refers to")
    overall: Thumb | None = Field(default=None, description="Overall thumbs up/down")
    flag_judgments: dict[str, Judgment] = Field(
        default_factory=dict, description="Agree/disagree keyed by flag requirement text"
    )
    notes: str = Field(default="", description="Free-text reviewer notes")
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="When the draft was opened"
    )

    def rate(self, thumb: Thumb) -> None:
        """Record the overall verdict."""
        self.overall = thumb

    def judge_flag(self, requirement: str, judgment: Judgment) -> None:
        """Record agreement with one flagged requirement."""
        self.flag_judgments[requirement] = judgment

    @property
    def is_submittable(self) -> bool:
        """A draft needs an overall verdict before it can be stored."""
        return self.overall is not None


class FeedbackRecord(BaseModel):
    """Flat record written to the feedback store."""

    req_title: str = Field(default="Untitled", description="Requisition title")
    req_number: str = Field(default="", description="Requisition number, e.g. '1837'")
    locations: list[str] = Field(default_factory=list, description="Selected locations")
    work_setup: str = Field(default="", description="Work setup label")
    feasibility_score: int | None = Field(default=None, description="Primary report score")
    baseline_ttf: str = Field(default="", description="Baseline time-to-fill")
    estimated_ttf: str = Field(default="", description="Estimated time-to-fill")
    overall_feedback: Thumb = Field(description="Overall thumbs up/down")
    flag_feedback: dict[str, Judgment] = Field(
        default_factory=dict, description="Per-flag agree/disagree"
    )
    user_notes: str = Field(default="", description="Reviewer notes")
    req_text: str = Field(default="", description="Full requisition text")
    analysis_json: str = Field(default="", description="Final report serialized as JSON")
    submitted_on: date = Field(
        default_factory=lambda: datetime.now(UTC).date(), description="Submission date"
    )
