"""Plain terminal rendering of report sections with rich."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from reqcheck_streaming.projector import (
    AlignmentNoteView,
    FlagsPayload,
    FlagView,
    RenderSection,
    ScorePayload,
    ScreeningPayload,
    SectionStatus,
    SectionView,
)

LEVEL_STYLES: dict[str, str] = {
    "high": "bold red",
    "medium": "yellow",
    "low": "green",
}


def render_sections(sections: Sequence[SectionView]) -> Group:
    """Stack ready sections as panels; skeletons show as dim placeholders."""
    parts: list[RenderableType] = []
    for view in sections:
        if view.status is SectionStatus.HIDDEN:
            continue
        if view.status is SectionStatus.SKELETON:
            parts.append(Panel(Text("...", style="dim"), title=view.title, border_style="dim"))
            continue
        parts.append(Panel(render_payload(view), title=section_title(view), border_style="cyan"))
    if not parts:
        parts.append(Text("Waiting for the analysis to start...", style="dim"))
    return Group(*parts)


def section_title(view: SectionView) -> str:
    """Panel title, switching to the comparison heading for several locations."""
    if view.section is RenderSection.SCORE and isinstance(view.payload, ScorePayload):
        if view.payload.comparison:
            return "Location Comparison"
    if view.section is RenderSection.FLAGS and isinstance(view.payload, FlagsPayload):
        return f"{view.title} ({view.payload.count})"
    return view.title


def render_payload(view: SectionView) -> RenderableType:
    payload = view.payload
    if isinstance(payload, ScorePayload):
        return _render_score(payload)
    if isinstance(payload, FlagsPayload):
        return _render_flags(payload)
    if isinstance(payload, ScreeningPayload):
        return _render_screening(payload)
    if view.section is RenderSection.ALIGNMENT_NOTES:
        notes: tuple[AlignmentNoteView, ...] = payload  # type: ignore[assignment]
        return Group(*(Text.assemble((f"{n.aspect}: ", "bold"), n.note) for n in notes))
    if view.section is RenderSection.RECOMMENDATIONS:
        items: tuple[str, ...] = payload  # type: ignore[assignment]
        return Group(*(Text(f"{i}. {item}") for i, item in enumerate(items, 1)))
    return Group(*(Text(f"- {item}") for item in payload))  # type: ignore[union-attr]


def _render_score(payload: ScorePayload) -> RenderableType:
    table = Table(show_edge=False, expand=False)
    if payload.comparison or payload.entries[0].location is not None:
        table.add_column("Location")
    table.add_column("Score", justify="right")
    table.add_column("Band")
    table.add_column("Est. time-to-fill")
    table.add_column("Baseline")
    for entry in payload.entries:
        row = [
            f"{entry.score}/100",
            entry.label,
            entry.estimated_time_to_fill,
            entry.baseline_time_to_fill,
        ]
        if entry.location is not None:
            row.insert(0, entry.location)
        table.add_row(*row)

    parts: list[RenderableType] = [table]
    for entry in payload.entries:
        if entry.verdict:
            prefix = f"{entry.location}: " if entry.location else ""
            parts.append(Text(f"{prefix}{entry.verdict}", style="italic"))
        if entry.talent_pool_note:
            parts.append(Text(f"  {entry.talent_pool_note}", style="dim"))
    if payload.summary:
        parts.append(Text(payload.summary))
    return Group(*parts)


def _flag_lines(flags: Sequence[FlagView]) -> list[RenderableType]:
    lines: list[RenderableType] = []
    for flag in flags:
        style = LEVEL_STYLES.get(flag.risk_level, "")
        lines.append(
            Text.assemble(
                (f"[{flag.risk_level.upper()}] ", style),
                (flag.requirement, "bold"),
                (f"  {flag.category}" if flag.category else "", "dim"),
            )
        )
        if flag.explanation:
            lines.append(Text(f"    {flag.explanation}"))
        if flag.suggestion:
            lines.append(Text(f"    Suggestion: {flag.suggestion}", style="green"))
    return lines


def _render_flags(payload: FlagsPayload) -> RenderableType:
    if not payload.comparison:
        return Group(*_flag_lines(payload.flags))
    parts: list[RenderableType] = []
    if payload.shared:
        parts.append(Text("All locations", style="bold underline"))
        parts.extend(_flag_lines(payload.shared))
    for location, flags in payload.by_location:
        parts.append(Text(location, style="bold underline"))
        parts.extend(_flag_lines(flags))
    return Group(*parts)


def _render_screening(payload: ScreeningPayload) -> RenderableType:
    parts: list[RenderableType] = []
    if payload.must_have:
        parts.append(Text("Must have", style="bold"))
        parts.extend(Text(f"- {item}") for item in payload.must_have)
    if payload.nice_to_have:
        parts.append(Text("Nice to have", style="bold"))
        parts.extend(Text(f"- {item}") for item in payload.nice_to_have)
    if payload.trainable:
        parts.append(Text("Trainable", style="bold"))
        parts.extend(
            Text(f"- {skill}" + (f" ({ramp})" if ramp else "")) for skill, ramp in payload.trainable
        )
    return Group(*parts)
