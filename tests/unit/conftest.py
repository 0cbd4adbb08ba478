"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from structlog.contextvars import clear_contextvars

from reqcheck_core.models.request import StreamRequest
from tests.mocks.mock_factories import (
    make_feasibility_report,
    make_request,
    make_risk_report,
)
from tests.mocks.mock_settings import make_settings


@pytest.fixture
def mock_settings() -> MagicMock:
    """Return a MagicMock Settings with sensible defaults."""
    return make_settings()


@pytest.fixture
def sample_request() -> StreamRequest:
    """Return a valid single-location request."""
    return make_request()


@pytest.fixture
def risk_report() -> dict[str, Any]:
    """Return a valid v1 report payload."""
    return make_risk_report()


@pytest.fixture
def feasibility_report() -> dict[str, Any]:
    """Return a valid v2 report payload."""
    return make_feasibility_report()


@pytest.fixture(autouse=True)
def _clear_log_context() -> None:
    """Keep bound log context from leaking between tests."""
    clear_contextvars()
