"""Analysis request models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from reqcheck_core.constants import MAX_LOCATIONS, MIN_LOCATIONS, WorkSetup
from reqcheck_core.exceptions import InvalidRequestError


class CompensationRange(BaseModel):
    """Offered pay range in one currency."""

    min: int = Field(ge=0, description="Lower bound of the range")
    max: int = Field(ge=0, description="Upper bound of the range")

    @model_validator(mode="after")
    def validate_order(self) -> CompensationRange:
        """Ensure min <= max."""
        if self.min > self.max:
            msg = f"min ({self.min}) > max ({self.max})"
            raise ValueError(msg)
        return self


class StreamRequest(BaseModel):
    """Validated input for one feasibility analysis."""

    model_config = ConfigDict(frozen=True)

    free_text: str = Field(description="Pasted requisition text")
    locations: list[str] = Field(
        min_length=MIN_LOCATIONS,
        max_length=MAX_LOCATIONS,
        description="Hiring locations, in the order the user selected them",
    )
    work_setup: WorkSetup = Field(description="Work arrangement")
    shift: str = Field(default="", description="Shift descriptor, e.g. 'US Eastern night shift'")
    compensation: dict[str, CompensationRange] = Field(
        default_factory=dict,
        description="Pay range keyed by ISO currency code",
    )

    @field_validator("free_text")
    @classmethod
    def validate_free_text(cls, value: str) -> str:
        """Trim and reject blank requisitions."""
        value = value.strip()
        if not value:
            msg = "Requisition text is empty"
            raise ValueError(msg)
        return value

    @field_validator("locations")
    @classmethod
    def validate_locations(cls, value: list[str]) -> list[str]:
        """Trim each label and reject blanks, keeping order."""
        cleaned = [label.strip() for label in value]
        if any(not label for label in cleaned):
            msg = "Location labels must be non-empty"
            raise ValueError(msg)
        return cleaned

    @field_validator("shift")
    @classmethod
    def validate_shift(cls, value: str) -> str:
        """Trim the shift descriptor."""
        return value.strip()

    @field_validator("compensation")
    @classmethod
    def validate_currency_codes(
        cls, value: dict[str, CompensationRange]
    ) -> dict[str, CompensationRange]:
        """Normalize currency codes to upper-case three-letter codes."""
        normalized: dict[str, CompensationRange] = {}
        for code, comp_range in value.items():
            key = code.strip().upper()
            if len(key) != 3 or not key.isalpha():
                msg = f"Invalid currency code: {code!r}"
                raise ValueError(msg)
            normalized[key] = comp_range
        return normalized


def build_request(**fields: object) -> StreamRequest:
    """Validate raw input into a StreamRequest.

    Raises InvalidRequestError so callers never see pydantic internals.
    """
    try:
        return StreamRequest(**fields)  # type: ignore[arg-type]
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidRequestError(problems) from e
