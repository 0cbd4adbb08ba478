"""CLI entrypoint using typer."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.live import Live
from rich.prompt import Prompt

from reqcheck_cli.render import render_sections
from reqcheck_core.config.settings import Settings
from reqcheck_core.constants import WorkSetup
from reqcheck_core.exceptions import (
    ConfigurationError,
    InvalidRequestError,
    ParseFailureError,
    ReqCheckError,
    SchemaViolationError,
    TransportError,
)
from reqcheck_core.models.report import FeasibilityReport, RiskFlag
from reqcheck_core.models.request import CompensationRange, StreamRequest, build_request
from reqcheck_core.scoring import label_for
from reqcheck_streaming.client import AnthropicStreamer, FragmentSource
from reqcheck_streaming.feedback import (
    FeedbackBook,
    FeedbackDispatcher,
    NotionFeedbackStore,
    build_feedback_record,
)
from reqcheck_streaming.finalizer import FinalDocument
from reqcheck_streaming.observability import configure_logging
from reqcheck_streaming.replay import DEMO_FRAGMENTS, ReplayStreamer
from reqcheck_streaming.session import AnalysisController, FeasibilityAnalysis, RenderUpdate

app = typer.Typer(
    name="reqcheck",
    help="Streamed hiring feasibility review of job requisitions",
)
console = Console()
logger = structlog.get_logger()

_COMP_RE = re.compile(r"^\s*([A-Za-z]{3})\s*:\s*([\d,]+)\s*-\s*([\d,]+)\s*$")

ERROR_MESSAGES: dict[type[ReqCheckError], str] = {
    InvalidRequestError: "Invalid request",
    ConfigurationError: "Configuration error",
    TransportError: "Stream interrupted (sections shown above are still valid)",
    ParseFailureError: "Could not parse the analysis response",
    SchemaViolationError: "The analysis response did not match the report schema",
}

DEMO_REQUISITION = """\
Senior DME Billing Specialist #1837
Work with U.S. DME suppliers on claims, denials and appeals.
Qualifications: 3+ years DME billing, 2+ years Brightree, stable employment history.
"""


def parse_compensation(values: list[str]) -> dict[str, CompensationRange]:
    """Parse ``CUR:min-max`` options such as ``PHP:40,000-60,000``."""
    compensation: dict[str, CompensationRange] = {}
    for value in values:
        match = _COMP_RE.match(value)
        if not match:
            msg = f"Expected CUR:min-max, got {value!r}"
            raise typer.BadParameter(msg, param_hint="--comp")
        code, low, high = match.groups()
        try:
            compensation[code.upper()] = CompensationRange(
                min=int(low.replace(",", "")),
                max=int(high.replace(",", "")),
            )
        except ValidationError as e:
            msg = f"Invalid range {value!r}: {e.errors()[0]['msg']}"
            raise typer.BadParameter(msg, param_hint="--comp") from e
    return compensation


@app.command()
def analyze(
    req_file: Path = typer.Argument(..., help="File with the requisition text", exists=True),
    location: list[str] = typer.Option(
        ..., "--location", "-l", help="Hiring location; repeat for up to 8"
    ),
    work_setup: WorkSetup = typer.Option(
        WorkSetup.WFH, "--work-setup", help="WFH, Hybrid or OnSite", case_sensitive=False
    ),
    shift: str = typer.Option("", "--shift", help="Shift descriptor"),
    comp: list[str] | None = typer.Option(
        None, "--comp", help="Pay range as CUR:min-max; repeat per currency"
    ),
    protocol: str | None = typer.Option(None, "--protocol", help="Report protocol: v1 or v2"),
    feedback: bool = typer.Option(False, "--feedback", help="Collect and submit feedback"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Stream a feasibility review of a requisition."""
    settings = _load_settings(protocol, verbose)
    compensation = parse_compensation(comp or [])

    try:
        request = build_request(
            free_text=req_file.read_text(),
            locations=location,
            work_setup=work_setup,
            shift=shift,
            compensation=compensation,
        )
        update = asyncio.run(_stream_report(settings, AnthropicStreamer(settings), request))
    except ReqCheckError as exc:
        _print_error(exc)
        raise typer.Exit(code=1) from exc

    _print_summary(update)
    if feedback:
        asyncio.run(_collect_feedback(settings, request, update))


@app.command()
def demo(
    protocol: str = typer.Option("v2", "--protocol", help="Report protocol: v1 or v2"),
    delay: float = typer.Option(0.3, "--delay", help="Seconds between replayed fragments"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Replay a canned stream; no API key needed."""
    settings = _load_settings(protocol, verbose)
    streamer = ReplayStreamer(DEMO_FRAGMENTS[settings.protocol_version], delay_seconds=delay)
    request = build_request(
        free_text=DEMO_REQUISITION,
        locations=["Philippines"],
        work_setup=WorkSetup.WFH,
        shift="US Eastern night shift",
        compensation={"PHP": CompensationRange(min=40_000, max=60_000)},
    )
    try:
        update = asyncio.run(_stream_report(settings, streamer, request))
    except ReqCheckError as exc:
        _print_error(exc)
        raise typer.Exit(code=1) from exc
    _print_summary(update)


@app.command()
def version() -> None:
    """Show version."""
    console.print("reqcheck v0.1.0")


def _load_settings(protocol: str | None, verbose: bool) -> Settings:
    settings = Settings()
    if protocol is not None:
        if protocol not in ("v1", "v2"):
            console.print(f"[red]Error:[/red] Unknown protocol {protocol!r}; use v1 or v2")
            raise typer.Exit(code=1)
        settings.protocol_version = protocol  # type: ignore[assignment]
    if verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)
    logger.debug("settings_loaded", protocol=settings.protocol_version, model=settings.model)
    return settings


async def _stream_report(
    settings: Settings, streamer: FragmentSource, request: StreamRequest
) -> RenderUpdate:
    """Run one analysis, redrawing the sections after every update.

    Returns the final update, which carries the validated report.
    """
    updates: list[RenderUpdate] = []
    controller = AnalysisController(FeasibilityAnalysis(settings, streamer))
    with Live(render_sections(()), console=console, refresh_per_second=8) as live:

        def redraw(update: RenderUpdate) -> None:
            updates[:] = [update]
            live.update(render_sections(update.sections))

        task = await controller.submit(request, redraw)
        await task
    if not updates or updates[-1].final is None:
        msg = "Stream ended without a final report"
        raise ParseFailureError(msg)
    return updates[-1]


def _print_error(exc: ReqCheckError) -> None:
    prefix = next(
        (text for cls, text in ERROR_MESSAGES.items() if isinstance(exc, cls)),
        "Analysis failed",
    )
    console.print(f"[red]Error:[/red] {prefix}: {exc}")
    if isinstance(exc, ConfigurationError):
        console.print("[dim]Set RC_ANTHROPIC_API_KEY in the environment or .env[/dim]")


def _print_summary(update: RenderUpdate) -> None:
    final = update.final
    assert final is not None
    report = final.report
    if isinstance(report, FeasibilityReport):
        scores = [(result.location, result.feasibility_score) for result in report.location_results]
    else:
        scores = [("Overall", report.overall_score)]
    for subject, score in scores:
        label = label_for(score, final.score_variant)
        console.print(f"[bold]{subject}:[/bold] {score}/100 ({label})")
    console.print(f"[bold green]Analysis complete[/bold green] [dim]{update.analysis_id}[/dim]")


def _report_flags(final: FinalDocument) -> list[RiskFlag]:
    report = final.report
    if isinstance(report, FeasibilityReport):
        flags = [flag for result in report.location_results for flag in result.flags]
        return flags + report.shared_analysis.flags
    return list(report.flags)


async def _collect_feedback(
    settings: Settings, request: StreamRequest, update: RenderUpdate
) -> None:
    """Ask for thumbs up/down, per-flag agreement and notes, then submit."""
    final = update.final
    assert final is not None
    draft = FeedbackBook().draft_for(update.analysis_id)
    overall = Prompt.ask("Overall verdict", choices=["up", "down"], console=console)
    draft.rate(overall)  # type: ignore[arg-type]
    for flag in _report_flags(final):
        answer = Prompt.ask(
            f"  {flag.requirement}",
            choices=["agree", "disagree", "skip"],
            default="skip",
            console=console,
        )
        if answer != "skip":
            draft.judge_flag(flag.requirement, answer)  # type: ignore[arg-type]
    draft.notes = Prompt.ask("Notes", default="", console=console)

    if not settings.feedback_configured:
        console.print("[yellow]Feedback store not configured; nothing submitted[/yellow]")
        return

    dispatcher = FeedbackDispatcher(NotionFeedbackStore(settings))
    dispatcher.dispatch(build_feedback_record(request, final, draft))
    results = await dispatcher.drain()
    if all(results):
        console.print("[green]Feedback submitted[/green]")
    else:
        console.print("[yellow]Feedback could not be submitted[/yellow]")


if __name__ == "__main__":
    app()
