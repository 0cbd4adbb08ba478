"""Tests for feedback records, the Notion store and the dispatcher."""

from __future__ import annotations

import json
from datetime import date
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from tenacity import wait_none

from reqcheck_core.constants import NOTION_API_URL, NOTION_API_VERSION, WorkSetup
from reqcheck_core.exceptions import InvalidRequestError
from reqcheck_core.models.feedback import FeedbackDraft, FeedbackRecord
from reqcheck_core.models.request import StreamRequest
from reqcheck_streaming.feedback import (
    FeedbackBook,
    FeedbackDispatcher,
    NotionFeedbackStore,
    build_feedback_record,
    chunk_text,
    extract_requisition_meta,
)
from reqcheck_streaming.finalizer import finalize
from tests.mocks.mock_factories import make_request
from tests.mocks.mock_settings import make_notion_settings, make_settings


def _response(status: int) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("POST", NOTION_API_URL))


def _mock_http(*outcomes: httpx.Response | Exception) -> MagicMock:
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    client.post = AsyncMock(side_effect=list(outcomes))
    return client


def _record(**overrides: object) -> FeedbackRecord:
    defaults: dict[str, object] = {
        "req_title": "Senior DME Billing Specialist #1837",
        "req_number": "1837",
        "locations": ["Philippines", "India"],
        "work_setup": "Work From Home",
        "feasibility_score": 42,
        "overall_feedback": "up",
        "flag_feedback": {"2+ years Brightree": "agree"},
        "submitted_on": date(2026, 3, 2),
    }
    defaults.update(overrides)
    return FeedbackRecord(**defaults)  # type: ignore[arg-type]


@pytest.mark.unit
class TestExtractRequisitionMeta:
    """Title and number guessing."""

    def test_title_and_number(self) -> None:
        text = "\n\n  Senior DME Billing Specialist #1837\nDetails"
        assert extract_requisition_meta(text) == ("Senior DME Billing Specialist #1837", "1837")

    def test_number_with_space(self) -> None:
        assert extract_requisition_meta("Biller\nReq # 42")[1] == "42"

    def test_nothing_found(self) -> None:
        assert extract_requisition_meta("   \n") == ("Untitled", "")


@pytest.mark.unit
class TestBuildFeedbackRecord:
    """Flattening request, report and draft."""

    def test_feasibility_record(
        self, sample_request: StreamRequest, feasibility_report: dict[str, Any]
    ) -> None:
        final = finalize(json.dumps(feasibility_report), "v2")
        draft = FeedbackDraft(report_id="abc")
        draft.rate("down")
        draft.judge_flag("2+ years Brightree", "disagree")

        record = build_feedback_record(sample_request, final, draft)

        assert record.req_title == "Senior DME Billing Specialist #1837"
        assert record.req_number == "1837"
        assert record.locations == ["Philippines"]
        assert record.work_setup == "Work From Home"
        assert record.feasibility_score == 42
        assert record.baseline_ttf == "30-45 days"
        assert record.estimated_ttf == "60-80 days"
        assert record.overall_feedback == "down"
        assert record.flag_feedback == {"2+ years Brightree": "disagree"}
        assert json.loads(record.analysis_json) == feasibility_report

    def test_risk_record(self, risk_report: dict[str, Any]) -> None:
        request = make_request(work_setup=WorkSetup.HYBRID)
        final = finalize(json.dumps(risk_report), "v1")
        draft = FeedbackDraft(report_id="abc", overall="up", notes="Spot on")

        record = build_feedback_record(request, final, draft)

        assert record.feasibility_score == 72
        assert record.baseline_ttf == ""
        assert record.estimated_ttf == "70-90 days"
        assert record.work_setup == "Hybrid"
        assert record.user_notes == "Spot on"

    def test_draft_without_verdict_rejected(
        self, sample_request: StreamRequest, risk_report: dict[str, Any]
    ) -> None:
        final = finalize(json.dumps(risk_report), "v1")
        with pytest.raises(InvalidRequestError):
            build_feedback_record(sample_request, final, FeedbackDraft(report_id="abc"))


@pytest.mark.unit
class TestChunkText:
    """Notion rich_text size limit."""

    def test_splits_long_text(self) -> None:
        blocks = chunk_text("x" * 4001)
        assert [len(block["text"]["content"]) for block in blocks] == [2000, 2000, 1]

    def test_empty_text_gives_one_block(self) -> None:
        assert chunk_text("") == [{"type": "text", "text": {"content": ""}}]


@pytest.mark.unit
class TestNotionFeedbackStore:
    """Page payload and submission with retries."""

    def test_build_page(self) -> None:
        store = NotionFeedbackStore(make_notion_settings())
        page = store.build_page(_record())
        props = page["properties"]

        assert page["parent"] == {"database_id": "db-123"}
        assert props["Req Number"]["rich_text"][0]["text"]["content"] == "1837"
        assert props["Locations"]["multi_select"] == [{"name": "Philippines"}, {"name": "India"}]
        assert props["Feasibility Score"] == {"number": 42}
        assert props["Overall Feedback"] == {"select": {"name": "up"}}
        flags = json.loads(props["Flag Feedback"]["rich_text"][0]["text"]["content"])
        assert flags == {"2+ years Brightree": "agree"}
        assert props["Date"] == {"date": {"start": "2026-03-02"}}

    def test_build_page_without_work_setup(self) -> None:
        page = NotionFeedbackStore(make_notion_settings()).build_page(_record(work_setup=""))
        assert page["properties"]["Work Setup"] == {"select": None}

    @pytest.mark.asyncio
    async def test_not_configured_returns_false(self) -> None:
        store = NotionFeedbackStore(make_settings())
        with patch("httpx.AsyncClient") as mock_cls:
            assert await store.submit(_record()) is False
        mock_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_submit_success(self) -> None:
        store = NotionFeedbackStore(make_notion_settings(), wait=wait_none())
        mock_http = _mock_http(_response(200))
        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await store.submit(_record()) is True

        call = mock_http.post.await_args
        assert call.args[0] == NOTION_API_URL
        assert call.kwargs["headers"]["Authorization"] == "Bearer secret_notion"
        assert call.kwargs["headers"]["Notion-Version"] == NOTION_API_VERSION

    @pytest.mark.asyncio
    async def test_retries_server_error_then_succeeds(self) -> None:
        store = NotionFeedbackStore(make_notion_settings(), wait=wait_none())
        mock_http = _mock_http(_response(503), _response(429), _response(200))
        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await store.submit(_record()) is True
        assert mock_http.post.await_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self) -> None:
        store = NotionFeedbackStore(make_notion_settings(), wait=wait_none())
        mock_http = _mock_http(*[_response(502)] * 3)
        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await store.submit(_record()) is False
        assert mock_http.post.await_count == 3

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self) -> None:
        store = NotionFeedbackStore(make_notion_settings(), wait=wait_none())
        mock_http = _mock_http(_response(400))
        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await store.submit(_record()) is False
        assert mock_http.post.await_count == 1

    @pytest.mark.asyncio
    async def test_transport_error_retried(self) -> None:
        store = NotionFeedbackStore(
            make_notion_settings(feedback_retry_max=2), wait=wait_none()
        )
        mock_http = _mock_http(httpx.ConnectError("refused"), httpx.ConnectError("refused"))
        with (
            patch("httpx.AsyncClient", return_value=mock_http),
            patch("reqcheck_streaming.feedback.logger") as mock_logger,
        ):
            assert await store.submit(_record()) is False
        assert mock_http.post.await_count == 2
        assert mock_logger.error.call_args.args[0] == "feedback_submit_failed"


@pytest.mark.unit
class TestFeedbackBook:
    """Per-report drafts."""

    def test_draft_reused_per_report(self) -> None:
        book = FeedbackBook()
        draft = book.draft_for("a")
        draft.rate("up")
        assert book.draft_for("a") is draft
        assert book.draft_for("b") is not draft
        assert len(book) == 2

    def test_discard(self) -> None:
        book = FeedbackBook()
        book.draft_for("a")
        book.discard("a")
        book.discard("missing")
        assert len(book) == 0


@pytest.mark.unit
class TestFeedbackDispatcher:
    """Background submission."""

    @pytest.mark.asyncio
    async def test_dispatch_and_drain(self) -> None:
        store = MagicMock()
        store.submit = AsyncMock(side_effect=[True, False])
        dispatcher = FeedbackDispatcher(store)

        dispatcher.dispatch(_record())
        dispatcher.dispatch(_record(req_number="2"))
        assert dispatcher.pending == 2

        assert sorted(await dispatcher.drain()) == [False, True]
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_drain_with_nothing_pending(self) -> None:
        assert await FeedbackDispatcher(MagicMock()).drain() == []
