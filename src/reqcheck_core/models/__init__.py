"""Domain models for reqcheck."""

from reqcheck_core.models.feedback import FeedbackDraft, FeedbackRecord
from reqcheck_core.models.report import (
    REPORT_MODELS,
    SCORE_VARIANTS,
    AlignmentNote,
    FeasibilityReport,
    LocationResult,
    ProtocolVersion,
    Report,
    RevisedScreeningCriteria,
    RiskFlag,
    RiskReport,
    SharedAnalysis,
    TrainableSkill,
)
from reqcheck_core.models.request import CompensationRange, StreamRequest, build_request

__all__ = [
    "REPORT_MODELS",
    "SCORE_VARIANTS",
    "AlignmentNote",
    "CompensationRange",
    "FeasibilityReport",
    "FeedbackDraft",
    "FeedbackRecord",
    "LocationResult",
    "ProtocolVersion",
    "Report",
    "RevisedScreeningCriteria",
    "RiskFlag",
    "RiskReport",
    "SharedAnalysis",
    "StreamRequest",
    "TrainableSkill",
    "build_request",
]
