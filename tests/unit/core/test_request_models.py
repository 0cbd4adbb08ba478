"""Tests for StreamRequest validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from reqcheck_core.constants import WorkSetup
from reqcheck_core.exceptions import InvalidRequestError
from reqcheck_core.models.request import CompensationRange, StreamRequest, build_request
from tests.mocks.mock_factories import make_request


@pytest.mark.unit
class TestStreamRequest:
    """Request validation before any stream starts."""

    def test_valid_request(self) -> None:
        request = make_request(locations=[" Philippines ", "India"])
        assert request.locations == ["Philippines", "India"]
        assert request.work_setup is WorkSetup.WFH

    def test_free_text_is_trimmed(self) -> None:
        assert make_request(free_text="  Billing Specialist \n").free_text == "Billing Specialist"

    def test_blank_free_text_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Requisition text is empty"):
            make_request(free_text="   \n\t")

    def test_zero_locations_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_request(locations=[])

    def test_eight_locations_accepted(self) -> None:
        locations = [f"Market {i}" for i in range(8)]
        assert make_request(locations=locations).locations == locations

    def test_nine_locations_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_request(locations=[f"Market {i}" for i in range(9)])

    def test_blank_location_rejected(self) -> None:
        with pytest.raises(ValidationError, match="non-empty"):
            make_request(locations=["Philippines", "  "])

    def test_unknown_work_setup_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_request(work_setup="Remote-ish")

    def test_work_setup_label(self) -> None:
        assert WorkSetup("OnSite").label == "On-site"

    def test_currency_codes_normalized(self) -> None:
        request = make_request(compensation={"usd": {"min": 800, "max": 1200}})
        assert list(request.compensation) == ["USD"]

    def test_invalid_currency_code_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Invalid currency code"):
            make_request(compensation={"DOLLARS": {"min": 1, "max": 2}})

    def test_inverted_range_rejected(self) -> None:
        with pytest.raises(ValidationError, match="min"):
            CompensationRange(min=60_000, max=40_000)

    def test_negative_bound_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CompensationRange(min=-1, max=10)

    def test_equal_bounds_accepted(self) -> None:
        assert CompensationRange(min=500, max=500).max == 500

    def test_request_is_frozen(self) -> None:
        request = make_request()
        with pytest.raises(ValidationError):
            request.shift = "Day"  # type: ignore[misc]


@pytest.mark.unit
class TestBuildRequest:
    """build_request hides pydantic errors behind InvalidRequestError."""

    def test_returns_request(self) -> None:
        request = build_request(
            free_text="Billing Specialist", locations=["India"], work_setup="Hybrid"
        )
        assert isinstance(request, StreamRequest)
        assert request.compensation == {}

    def test_wraps_validation_error(self) -> None:
        with pytest.raises(InvalidRequestError, match="locations") as exc_info:
            build_request(free_text="Billing Specialist", locations=[], work_setup="WFH")
        assert isinstance(exc_info.value.__cause__, ValidationError)
