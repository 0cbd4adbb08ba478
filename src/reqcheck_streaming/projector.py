"""Projection of a (possibly partial) report onto ordered render sections."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum

import structlog

from reqcheck_core.constants import RISK_LEVEL_ORDER
from reqcheck_core.models.report import SCORE_VARIANTS, ProtocolVersion
from reqcheck_core.scoring import label_for
from reqcheck_streaming.document import PartialDocument

logger = structlog.get_logger()


class RenderSection(StrEnum):
    """Report regions, declared in display order."""

    SCORE = "score"
    FLAGS = "flags"
    ALIGNMENT_NOTES = "alignment_notes"
    WELL_CALIBRATED = "well_calibrated"
    SCREENING_CRITERIA = "screening_criteria"
    RECOMMENDATIONS = "recommendations"


SECTION_ORDER: tuple[RenderSection, ...] = tuple(RenderSection)

SECTION_TITLES: dict[RenderSection, str] = {
    RenderSection.SCORE: "Feasibility Analysis",
    RenderSection.FLAGS: "Flagged Requirements",
    RenderSection.ALIGNMENT_NOTES: "Alignment Notes",
    RenderSection.WELL_CALIBRATED: "Well-Calibrated Requirements",
    RenderSection.SCREENING_CRITERIA: "Recommended Screening Criteria",
    RenderSection.RECOMMENDATIONS: "Recommendations",
}


class SectionStatus(StrEnum):
    """Render state of one section."""

    SKELETON = "skeleton"
    READY = "ready"
    HIDDEN = "hidden"


@dataclass(frozen=True)
class ScoreEntry:
    """One scored location (or the overall score in the flat protocol)."""

    location: str | None
    score: int
    label: str
    verdict: str = ""
    baseline_time_to_fill: str = ""
    estimated_time_to_fill: str = ""
    talent_pool_note: str = ""


@dataclass(frozen=True)
class ScorePayload:
    entries: tuple[ScoreEntry, ...]
    comparison: bool
    summary: str = ""


@dataclass(frozen=True)
class FlagView:
    """A flag with enough fields to be shown with its severity."""

    requirement: str
    risk_level: str
    category: str = ""
    explanation: str = ""
    suggestion: str = ""
    location: str | None = None


@dataclass(frozen=True)
class FlagsPayload:
    """Flags merged for one location, or split shared/per-location for comparison."""

    comparison: bool
    flags: tuple[FlagView, ...] = ()
    shared: tuple[FlagView, ...] = ()
    by_location: tuple[tuple[str, tuple[FlagView, ...]], ...] = ()

    @property
    def count(self) -> int:
        """Number of flags shown."""
        return len(self.flags) + len(self.shared) + sum(len(f) for _, f in self.by_location)


@dataclass(frozen=True)
class AlignmentNoteView:
    aspect: str
    note: str


@dataclass(frozen=True)
class ScreeningPayload:
    must_have: tuple[str, ...] = ()
    nice_to_have: tuple[str, ...] = ()
    trainable: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class SectionView:
    """Projection of one section at one point in the stream."""

    section: RenderSection
    status: SectionStatus
    payload: object = None

    @property
    def title(self) -> str:
        return SECTION_TITLES[self.section]

    @property
    def position(self) -> int:
        return SECTION_ORDER.index(self.section)

    @property
    def ready(self) -> bool:
        return self.status is SectionStatus.READY


def project(
    document: PartialDocument | None,
    *,
    protocol: ProtocolVersion,
    streaming: bool,
) -> list[SectionView]:
    """Map a document onto every section in canonical order.

    Pure: the same document and flags always give the same views.
    """
    reader = _FlatReader(document) if protocol == "v1" else _LocationReader(document)
    payloads: dict[RenderSection, object] = {
        RenderSection.SCORE: reader.score(),
        RenderSection.FLAGS: reader.flags(),
        RenderSection.ALIGNMENT_NOTES: reader.alignment_notes(streaming=streaming),
        RenderSection.WELL_CALIBRATED: reader.string_list("wellCalibratedRequirements"),
        RenderSection.SCREENING_CRITERIA: reader.screening(),
        RenderSection.RECOMMENDATIONS: reader.string_list("recommendations"),
    }

    views: list[SectionView] = []
    for section in SECTION_ORDER:
        payload = payloads[section]
        if payload:
            views.append(SectionView(section, SectionStatus.READY, payload))
        elif streaming:
            views.append(SectionView(section, SectionStatus.SKELETON))
        else:
            views.append(SectionView(section, SectionStatus.HIDDEN))
    return views


@dataclass
class RenderTracker:
    """Stateful projector for one document lineage.

    A section that has been ready keeps its last ready view even if a later
    projection would withhold it, so reveal is monotonic.
    """

    protocol: ProtocolVersion
    transitions: list[RenderSection] = field(default_factory=list)
    _ready: dict[RenderSection, SectionView] = field(default_factory=dict)

    def update(self, document: PartialDocument | None, *, streaming: bool) -> list[SectionView]:
        """Project document and apply the monotonic reveal rule."""
        views: list[SectionView] = []
        for view in project(document, protocol=self.protocol, streaming=streaming):
            if view.ready:
                if view.section not in self._ready:
                    self.transitions.append(view.section)
                    logger.debug("section_ready", section=view.section.value)
                self._ready[view.section] = view
            elif view.section in self._ready:
                view = self._ready[view.section]
            views.append(view)
        return views

    def reset(self) -> None:
        """Start a new lineage."""
        self.transitions.clear()
        self._ready.clear()


# --- readers -----------------------------------------------------------------


def _text(value: object) -> str:
    return value if isinstance(value, str) else ""


def _items(value: object) -> list[object]:
    return value if isinstance(value, list) else []


def _whole_score(value: object) -> int | None:
    """Accept integral numbers in 0-100; anything else is not yet displayable."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if not 0 <= value <= 100:
        return None
    return value


def _flag_key(requirement: str) -> str:
    return " ".join(requirement.split()).casefold()


def _sort_flags(flags: list[FlagView]) -> tuple[FlagView, ...]:
    # sorted() is stable, so equal severities keep arrival order
    return tuple(sorted(flags, key=lambda f: RISK_LEVEL_ORDER[f.risk_level]))


class _Reader(ABC):
    """Shared extraction helpers over one document."""

    base: tuple[str, ...] = ()

    def __init__(self, document: PartialDocument | None) -> None:
        self.doc = document

    def get(self, *path: str | int) -> object:
        if self.doc is None:
            return None
        return self.doc.get(*path)

    def complete(self, *path: str | int) -> bool:
        return self.doc is not None and self.doc.is_complete(*path)

    def renderable_flags(self, path: tuple[str | int, ...], location: str | None) -> list[FlagView]:
        """Flags under path that have requirement text and a settled risk level."""
        views: list[FlagView] = []
        for index, raw in enumerate(_items(self.get(*path))):
            if not isinstance(raw, dict):
                continue
            requirement = _text(raw.get("requirement")).strip()
            level = raw.get("riskLevel")
            if not requirement or not isinstance(level, str) or level not in RISK_LEVEL_ORDER:
                continue
            if not self.complete(*path, index, "riskLevel"):
                continue
            views.append(
                FlagView(
                    requirement=requirement,
                    risk_level=str(level),
                    category=_text(raw.get("category")),
                    explanation=_text(raw.get("explanation")),
                    suggestion=_text(raw.get("suggestion")),
                    location=location,
                )
            )
        return views

    def string_list(self, key: str) -> tuple[str, ...]:
        return tuple(
            item.strip()
            for item in _items(self.get(*self.base, key))
            if isinstance(item, str) and item.strip()
        )

    def screening(self) -> ScreeningPayload | None:
        raw = self.get(*self.base, "revisedScreeningCriteria")
        if not isinstance(raw, dict):
            return None
        trainable = tuple(
            (_text(item.get("skill")).strip(), _text(item.get("estimatedRampTime")).strip())
            for item in _items(raw.get("trainable"))
            if isinstance(item, dict) and _text(item.get("skill")).strip()
        )
        payload = ScreeningPayload(
            must_have=tuple(s for s in _items(raw.get("mustHave")) if isinstance(s, str) and s),
            nice_to_have=tuple(
                s for s in _items(raw.get("niceToHave")) if isinstance(s, str) and s
            ),
            trainable=trainable,
        )
        if not (payload.must_have or payload.nice_to_have or payload.trainable):
            return None
        return payload

    def alignment_notes(self, *, streaming: bool) -> tuple[AlignmentNoteView, ...]:
        notes = tuple(
            AlignmentNoteView(aspect=_text(raw.get("aspect")), note=_text(raw.get("note")))
            for raw in _items(self.get(*self.base, "alignmentNotes"))
            if isinstance(raw, dict)
            and _text(raw.get("aspect")).strip()
            and _text(raw.get("note")).strip()
        )
        if streaming and notes and not self.flags_settled():
            return ()
        return notes

    @abstractmethod
    def flags_settled(self) -> bool:
        """Whether every flag list has been closed."""

    @abstractmethod
    def score(self) -> ScorePayload | None:
        """Score section payload, or None while nothing is scored."""

    @abstractmethod
    def flags(self) -> FlagsPayload | None:
        """Flags section payload, or None while no flag is renderable."""


class _FlatReader(_Reader):
    """Reader for the flat single-market risk report (v1)."""

    def score(self) -> ScorePayload | None:
        if not self.complete("overallScore"):
            return None
        score = _whole_score(self.get("overallScore"))
        if score is None:
            return None
        entry = ScoreEntry(
            location=None,
            score=score,
            label=label_for(score, SCORE_VARIANTS["v1"]),
            verdict=_text(self.get("overallVerdict")),
            estimated_time_to_fill=_text(self.get("estimatedTimeToFill")),
        )
        return ScorePayload(entries=(entry,), comparison=False, summary=_text(self.get("summary")))

    def flags(self) -> FlagsPayload | None:
        flags = self.renderable_flags(("flags",), None)
        if not flags:
            return None
        return FlagsPayload(comparison=False, flags=_sort_flags(flags))

    def flags_settled(self) -> bool:
        return self.complete("flags")


class _LocationReader(_Reader):
    """Reader for the multi-location feasibility report (v2)."""

    base = ("sharedAnalysis",)

    def _locations(self) -> list[tuple[int, str]]:
        results = _items(self.get("locationResults"))
        return [
            (index, _text(raw.get("location")).strip() or f"Location {index + 1}")
            for index, raw in enumerate(results)
            if isinstance(raw, dict)
        ]

    def score(self) -> ScorePayload | None:
        entries = self._score_entries()
        if not entries:
            return None
        return ScorePayload(
            entries=tuple(entries),
            comparison=self.comparison(entries),
            summary=_text(self.get("sharedAnalysis", "summary")),
        )

    @staticmethod
    def comparison(entries: list[ScoreEntry]) -> bool:
        """Comparison layout once more than one location has a score."""
        return len(entries) > 1

    def _score_entries(self) -> list[ScoreEntry]:
        entries: list[ScoreEntry] = []
        for index, location in self._locations():
            path = ("locationResults", index)
            if not self.complete(*path, "feasibilityScore"):
                continue
            score = _whole_score(self.get(*path, "feasibilityScore"))
            if score is None:
                continue
            entries.append(
                ScoreEntry(
                    location=location,
                    score=score,
                    label=label_for(score, SCORE_VARIANTS["v2"]),
                    verdict=_text(self.get(*path, "verdict")),
                    baseline_time_to_fill=_text(self.get(*path, "baselineTimeToFill")),
                    estimated_time_to_fill=_text(self.get(*path, "estimatedTimeToFill")),
                    talent_pool_note=_text(self.get(*path, "talentPoolNote")),
                )
            )
        return entries

    def flags(self) -> FlagsPayload | None:
        locations = self._locations()
        per_location = [
            (location, self.renderable_flags(("locationResults", index, "flags"), location))
            for index, location in locations
        ]
        shared = self.renderable_flags(("sharedAnalysis", "flags"), None)

        if self.comparison(self._score_entries()):
            by_location = tuple(
                (location, _sort_flags(flags)) for location, flags in per_location if flags
            )
            if not shared and not by_location:
                return None
            return FlagsPayload(
                comparison=True,
                shared=_sort_flags(shared),
                by_location=by_location,
            )

        merged: list[FlagView] = []
        seen: set[str] = set()
        for flag in [f for _, flags in per_location for f in flags] + shared:
            key = _flag_key(flag.requirement)
            if key in seen:
                continue
            seen.add(key)
            merged.append(flag)
        if not merged:
            return None
        return FlagsPayload(comparison=False, flags=_sort_flags(merged))

    def flags_settled(self) -> bool:
        if not self.complete("sharedAnalysis", "flags"):
            return False
        for index, _location in self._locations():
            path = ("locationResults", index, "flags")
            if self.doc is not None and self.doc.has(*path) and not self.complete(*path):
                return False
        return True
