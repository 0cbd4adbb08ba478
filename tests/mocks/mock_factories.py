"""Factory functions returning valid requests and report payloads."""

from __future__ import annotations

import copy
import json
from typing import Any

from reqcheck_core.constants import WorkSetup
from reqcheck_core.models.request import CompensationRange, StreamRequest

REQUISITION_TEXT = """\
Senior DME Billing Specialist #1837
Handle claims, denials and appeals for U.S. DME suppliers.
Requirements: 3+ years DME billing, 2+ years Brightree.
"""

_FLAG_BRIGHTREE: dict[str, Any] = {
    "requirement": "2+ years Brightree",
    "riskLevel": "high",
    "category": "Niche Software",
    "explanation": "Brightree users are rare in this market.",
    "suggestion": "Accept Brightree OR equivalent",
}

_FLAG_HISTORY: dict[str, Any] = {
    "requirement": "Stable employment history",
    "riskLevel": "low",
    "category": "Vague/Subjective Criteria",
    "explanation": "No threshold is defined.",
    "suggestion": "Define a concrete threshold",
}

_SCREENING: dict[str, Any] = {
    "mustHave": ["Medical billing experience"],
    "niceToHave": ["Brightree"],
    "trainable": [{"skill": "Brightree", "estimatedRampTime": "2-3 weeks"}],
}

_RISK_REPORT: dict[str, Any] = {
    "overallScore": 72,
    "overallVerdict": "High Risk: niche software on a niche specialty",
    "estimatedTimeToFill": "70-90 days",
    "summary": "Stacked niche requirements shrink the pool.",
    "flags": [_FLAG_BRIGHTREE, _FLAG_HISTORY],
    "wellCalibratedRequirements": ["Medical billing experience"],
    "revisedScreeningCriteria": _SCREENING,
    "recommendations": ["Move Brightree to nice-to-have"],
}

_FEASIBILITY_REPORT: dict[str, Any] = {
    "locationResults": [
        {
            "location": "Philippines",
            "feasibilityScore": 42,
            "verdict": "Low Feasibility for this sub-specialty",
            "baselineTimeToFill": "30-45 days",
            "estimatedTimeToFill": "60-80 days",
            "talentPoolNote": "Deep RCM pool, thin DME pool.",
            "flags": [_FLAG_BRIGHTREE],
        }
    ],
    "sharedAnalysis": {
        "summary": "Niche software stacked on a specialty.",
        "flags": [_FLAG_HISTORY],
        "alignmentNotes": [{"aspect": "Compensation", "note": "At market median."}],
        "wellCalibratedRequirements": ["Medical billing experience"],
        "revisedScreeningCriteria": _SCREENING,
        "recommendations": ["Move Brightree to nice-to-have"],
    },
}


def make_request(**overrides: object) -> StreamRequest:
    """Create a valid single-location StreamRequest."""
    defaults: dict[str, object] = {
        "free_text": REQUISITION_TEXT,
        "locations": ["Philippines"],
        "work_setup": WorkSetup.WFH,
        "shift": "US Eastern night shift",
        "compensation": {"PHP": CompensationRange(min=40_000, max=60_000)},
    }
    defaults.update(overrides)
    return StreamRequest(**defaults)  # type: ignore[arg-type]


def make_risk_report(**overrides: object) -> dict[str, Any]:
    """Valid protocol v1 report as decoded JSON."""
    report = copy.deepcopy(_RISK_REPORT)
    report.update(overrides)
    return report


def make_feasibility_report(**overrides: object) -> dict[str, Any]:
    """Valid single-location protocol v2 report as decoded JSON."""
    report = copy.deepcopy(_FEASIBILITY_REPORT)
    report.update(overrides)
    return report


def make_location_result(
    location: str, score: int, flags: list[Any] | None = None
) -> dict[str, Any]:
    """One locationResults entry."""
    return {
        "location": location,
        "feasibilityScore": score,
        "verdict": f"Verdict for {location}",
        "baselineTimeToFill": "35-50 days",
        "estimatedTimeToFill": "50-70 days",
        "flags": flags if flags is not None else [],
    }


def make_flag(requirement: str, risk_level: str = "medium", **overrides: object) -> dict[str, Any]:
    """One flag object."""
    flag: dict[str, Any] = {
        "requirement": requirement,
        "riskLevel": risk_level,
        "category": "Other",
        "explanation": f"Why {requirement} is a risk",
        "suggestion": f"Relax {requirement}",
    }
    flag.update(overrides)
    return flag


def split_json(data: dict[str, Any], size: int = 7) -> list[str]:
    """Serialize data and cut it into fixed-size fragments."""
    text = json.dumps(data)
    return [text[i : i + size] for i in range(0, len(text), size)]
