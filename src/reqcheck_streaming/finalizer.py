"""Strict parsing and schema validation of a finished stream."""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass

import structlog
from pydantic import ValidationError

from reqcheck_core.exceptions import ParseFailureError, SchemaViolationError
from reqcheck_core.models.report import (
    REPORT_MODELS,
    SCORE_VARIANTS,
    FeasibilityReport,
    ProtocolVersion,
    Report,
    RiskReport,
)
from reqcheck_core.scoring import ScoreVariant, conflicting_labels
from reqcheck_streaming.document import PartialDocument

logger = structlog.get_logger()


@dataclass(frozen=True)
class FinalDocument:
    """Validated report that supersedes every partial document."""

    protocol: ProtocolVersion
    report: Report
    document: PartialDocument

    @property
    def score_variant(self) -> ScoreVariant:
        """Band table that labels this report's scores."""
        return SCORE_VARIANTS[self.protocol]

    def to_json(self) -> str:
        """Serialize the report exactly as the model produced it."""
        return json.dumps(self.document.value, ensure_ascii=False)


def finalize(text: str, protocol: ProtocolVersion) -> FinalDocument:
    """Turn the complete stream text into a validated FinalDocument.

    Raises ParseFailureError when no JSON object can be decoded and
    SchemaViolationError when the decoded object breaks the report schema.
    """
    data = extract_json_object(text)
    report = validate_report(data, protocol)
    _log_label_conflicts(report)
    return FinalDocument(
        protocol=protocol,
        report=report,
        document=PartialDocument.from_value(data),
    )


def extract_json_object(text: str) -> dict[str, object]:
    """Strict-parse text from its first ``{``, falling back to brace scanning."""
    start = text.find("{")
    if start < 0:
        msg = "Response contains no JSON object"
        raise ParseFailureError(msg)

    try:
        data = json.loads(text[start:])
    except json.JSONDecodeError as e:
        logger.info("finalize_fallback_extraction", error=str(e), text_length=len(text))
        for candidate in iter_balanced_objects(text, start):
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                return data
        msg = f"Failed to parse analysis response: {e.msg}"
        raise ParseFailureError(msg) from e

    if not isinstance(data, dict):
        msg = "Response JSON is not an object"
        raise ParseFailureError(msg)
    return data


def iter_balanced_objects(text: str, start: int = 0) -> Iterator[str]:
    """Yield each top-level depth-balanced ``{...}`` substring in order.

    Objects nested inside a candidate are never yielded on their own, and
    scanning stops at a ``{`` that is never closed: everything after it
    belongs to a truncated object. Braces inside string literals are ignored.
    """
    pos = text.find("{", start)
    while pos >= 0:
        end = _matching_brace(text, pos)
        if end is None:
            return
        yield text[pos : end + 1]
        pos = text.find("{", end + 1)


def _matching_brace(text: str, start: int) -> int | None:
    """Index of the ``}`` closing the ``{`` at start, or None."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def validate_report(data: dict[str, object], protocol: ProtocolVersion) -> Report:
    """Validate decoded JSON against the protocol's report model."""
    model = REPORT_MODELS[protocol]
    try:
        return model.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        logger.warning("schema_violation", protocol=protocol, problems=problems)
        msg = f"Report failed validation: {problems}"
        raise SchemaViolationError(msg) from e


def _log_label_conflicts(report: Report) -> None:
    """Warn when verdict prose names a band other than the score's own."""
    if isinstance(report, RiskReport):
        checks = [("overall", report.overall_score, report.overall_verdict, "risk")]
    elif isinstance(report, FeasibilityReport):
        checks = [
            (result.location, result.feasibility_score, result.verdict, "feasibility")
            for result in report.location_results
        ]
    else:
        return

    for subject, score, text, variant in checks:
        conflicts = conflicting_labels(score, text, variant)  # type: ignore[arg-type]
        if conflicts:
            logger.warning(
                "score_label_conflict",
                subject=subject,
                score=score,
                mentioned=conflicts,
            )
