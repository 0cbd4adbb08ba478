"""Shared constants and enums for reqcheck."""

from __future__ import annotations

from enum import StrEnum

# Prompt versions, bumped when an instruction template changes
RISK_PROMPT_VERSION = "v1.4"
FEASIBILITY_PROMPT_VERSION = "v2.4"

PROTOCOL_VERSIONS = ("v1", "v2")

# Location cardinality accepted per request
MIN_LOCATIONS = 1
MAX_LOCATIONS = 8

# LLM token pricing (USD per 1M tokens)
TOKEN_PRICES: dict[str, dict[str, float]] = {
    "claude-haiku-4-5-20251001": {"input": 0.80, "output": 4.00},
    "claude-sonnet-4-5-20250514": {"input": 3.00, "output": 15.00},
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "PHP": "₱",
    "INR": "₹",
    "EUR": "€",
    "GBP": "£",
    "MXN": "MX$",
    "COP": "COL$",
    "ZAR": "R",
    "CAD": "C$",
    "AUD": "A$",
}


class WorkSetup(StrEnum):
    """Work arrangement selected for the requisition."""

    WFH = "WFH"
    HYBRID = "Hybrid"
    ONSITE = "OnSite"

    @property
    def label(self) -> str:
        """Human-readable label used in prompts and feedback records."""
        return WORK_SETUP_LABELS[self]


WORK_SETUP_LABELS: dict[WorkSetup, str] = {
    WorkSetup.WFH: "Work From Home",
    WorkSetup.HYBRID: "Hybrid",
    WorkSetup.ONSITE: "On-site",
}


class RiskLevel(StrEnum):
    """Severity of a flagged requirement."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Sort rank for flag lists: high first
RISK_LEVEL_ORDER: dict[str, int] = {
    RiskLevel.HIGH.value: 0,
    RiskLevel.MEDIUM.value: 1,
    RiskLevel.LOW.value: 2,
}

FLAG_CATEGORIES = [
    "Niche Software",
    "Niche Skill",
    "Stacked Specificity",
    "Title/JD Mismatch",
    "Experience Threshold",
    "Geographic/Market",
    "Vague/Subjective Criteria",
    "Other",
]

ALIGNMENT_ASPECTS = [
    "Compensation",
    "Work Setup",
    "Shift",
    "Title/Level",
]

# Notion rich_text blocks reject content longer than this
NOTION_TEXT_LIMIT = 2000
NOTION_API_URL = "https://api.notion.com/v1/pages"
NOTION_API_VERSION = "2022-06-28"
