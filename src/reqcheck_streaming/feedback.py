"""Reviewer feedback: record building and Notion submission."""

from __future__ import annotations

import asyncio
import json
import re
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from reqcheck_core.constants import NOTION_API_URL, NOTION_API_VERSION, NOTION_TEXT_LIMIT
from reqcheck_core.exceptions import InvalidRequestError
from reqcheck_core.models.feedback import FeedbackDraft, FeedbackRecord
from reqcheck_core.models.report import FeasibilityReport, RiskReport

if TYPE_CHECKING:
    from tenacity.wait import wait_base

    from reqcheck_core.config.settings import Settings
    from reqcheck_core.models.request import StreamRequest
    from reqcheck_streaming.finalizer import FinalDocument

logger = structlog.get_logger()

_REQ_NUMBER_RE = re.compile(r"#\s*(\d+)")


def extract_requisition_meta(text: str) -> tuple[str, str]:
    """Return (title, number) guessed from pasted requisition text.

    The title is the first non-empty line; the number is the first
    ``#<digits>`` anywhere in the text.
    """
    title = next((line.strip() for line in text.splitlines() if line.strip()), "")
    match = _REQ_NUMBER_RE.search(text)
    return title or "Untitled", match.group(1) if match else ""


def build_feedback_record(
    request: StreamRequest, final: FinalDocument, draft: FeedbackDraft
) -> FeedbackRecord:
    """Flatten a request, its final report and the reviewer's draft."""
    if draft.overall is None:
        msg = "Feedback needs an overall thumbs up or down"
        raise InvalidRequestError(msg)

    title, number = extract_requisition_meta(request.free_text)
    report = final.report
    score: int | None = None
    baseline = ""
    estimated = ""
    if isinstance(report, FeasibilityReport):
        primary = report.primary_result
        score = primary.feasibility_score
        baseline = primary.baseline_time_to_fill
        estimated = primary.estimated_time_to_fill
    elif isinstance(report, RiskReport):
        score = report.overall_score
        estimated = report.estimated_time_to_fill

    return FeedbackRecord(
        req_title=title,
        req_number=number,
        locations=list(request.locations),
        work_setup=request.work_setup.label,
        feasibility_score=score,
        baseline_ttf=baseline,
        estimated_ttf=estimated,
        overall_feedback=draft.overall,
        flag_feedback=dict(draft.flag_judgments),
        user_notes=draft.notes,
        req_text=request.free_text,
        analysis_json=final.to_json(),
    )


def chunk_text(text: str, limit: int = NOTION_TEXT_LIMIT) -> list[dict[str, Any]]:
    """Split text into Notion rich_text blocks of at most limit characters."""
    chunks = [
        {"type": "text", "text": {"content": text[i : i + limit]}}
        for i in range(0, len(text), limit)
    ]
    return chunks or [{"type": "text", "text": {"content": ""}}]


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, httpx.TransportError)


class NotionFeedbackStore:
    """Write feedback records as pages in a Notion database."""

    def __init__(self, settings: Settings, wait: wait_base | None = None) -> None:
        """Initialize with settings and an optional tenacity wait strategy."""
        self.settings = settings
        self._wait = wait or wait_exponential(multiplier=1, min=1, max=10)

    def build_page(self, record: FeedbackRecord) -> dict[str, Any]:
        """Notion page payload for one record."""
        return {
            "parent": {"database_id": self.settings.notion_feedback_db_id},
            "properties": {
                "Req Title": {"title": chunk_text(record.req_title or "Untitled")},
                "Req Number": {"rich_text": chunk_text(record.req_number)},
                "Locations": {"multi_select": [{"name": name} for name in record.locations]},
                "Work Setup": {
                    "select": {"name": record.work_setup} if record.work_setup else None
                },
                "Feasibility Score": {"number": record.feasibility_score},
                "Baseline TTF": {"rich_text": chunk_text(record.baseline_ttf)},
                "Estimated TTF": {"rich_text": chunk_text(record.estimated_ttf)},
                "Overall Feedback": {"select": {"name": record.overall_feedback}},
                "Flag Feedback": {"rich_text": chunk_text(json.dumps(record.flag_feedback))},
                "User Notes": {"rich_text": chunk_text(record.user_notes)},
                "Req Text": {"rich_text": chunk_text(record.req_text)},
                "Analysis JSON": {"rich_text": chunk_text(record.analysis_json)},
                "Date": {"date": {"start": record.submitted_on.isoformat()}},
            },
        }

    async def submit(self, record: FeedbackRecord) -> bool:
        """Post a record; returns False instead of raising on any failure."""
        if not self.settings.feedback_configured:
            logger.warning("feedback_not_configured")
            return False

        api_key = self.settings.notion_api_key
        assert api_key is not None
        headers = {
            "Authorization": f"Bearer {api_key.get_secret_value()}",
            "Notion-Version": NOTION_API_VERSION,
            "Content-Type": "application/json",
        }
        page = self.build_page(record)

        @retry(
            stop=stop_after_attempt(self.settings.feedback_retry_max),
            wait=self._wait,
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        async def _post() -> None:
            async with httpx.AsyncClient(
                timeout=self.settings.feedback_timeout_seconds
            ) as client:
                response = await client.post(NOTION_API_URL, headers=headers, json=page)
                response.raise_for_status()

        try:
            await _post()
        except httpx.HTTPStatusError as e:
            logger.error(
                "feedback_submit_failed",
                status=e.response.status_code,
                body=e.response.text[:500],
            )
            return False
        except httpx.HTTPError as e:
            logger.error("feedback_submit_failed", error=str(e), error_type=type(e).__name__)
            return False

        logger.info(
            "feedback_submitted",
            req_number=record.req_number,
            overall=record.overall_feedback,
            flags_judged=len(record.flag_feedback),
        )
        return True


class FeedbackBook:
    """Feedback drafts for the current session, keyed by report id."""

    def __init__(self) -> None:
        self._drafts: dict[str, FeedbackDraft] = {}

    def draft_for(self, report_id: str) -> FeedbackDraft:
        """Return the draft for a report, opening one if needed."""
        if report_id not in self._drafts:
            self._drafts[report_id] = FeedbackDraft(report_id=report_id)
        return self._drafts[report_id]

    def discard(self, report_id: str) -> None:
        self._drafts.pop(report_id, None)

    def __len__(self) -> int:
        return len(self._drafts)


class FeedbackDispatcher:
    """Submit records in the background without blocking the caller."""

    def __init__(self, store: NotionFeedbackStore) -> None:
        self.store = store
        self._tasks: set[asyncio.Task[bool]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, record: FeedbackRecord) -> asyncio.Task[bool]:
        """Schedule a submission and return its task."""
        task = asyncio.create_task(self.store.submit(record))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> list[bool]:
        """Wait for every outstanding submission."""
        if not self._tasks:
            return []
        return list(await asyncio.gather(*self._tasks))
