"""Application settings using pydantic-settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for reqcheck."""

    model_config = SettingsConfigDict(env_prefix="RC_", env_file=".env", extra="ignore")

    # --- LLM ---
    anthropic_api_key: SecretStr | None = Field(
        default=None,
        description="Anthropic API key; checked when a stream is opened",
    )
    model: str = Field(
        default="claude-sonnet-4-5-20250514",
        description="Model ID used for feasibility analysis",
    )
    max_output_tokens: int = Field(
        default=8192,
        description="Output token budget for one analysis",
    )
    request_timeout_seconds: float = Field(
        default=600.0,
        description="Upstream transport timeout, surfaced as a transport error",
    )

    # --- Report protocol ---
    protocol_version: Literal["v1", "v2"] = Field(
        default="v2",
        description="'v1' flat risk report, 'v2' multi-location feasibility report",
    )

    # --- Logging ---
    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="structlog renderer",
    )

    # --- Feedback store ---
    notion_api_key: SecretStr | None = Field(
        default=None,
        description="Notion integration token for the feedback database",
    )
    notion_feedback_db_id: str | None = Field(
        default=None,
        description="Notion database receiving feedback pages",
    )
    feedback_timeout_seconds: float = Field(
        default=10.0,
        description="HTTP timeout per feedback submission attempt",
    )
    feedback_retry_max: int = Field(
        default=3,
        description="Maximum attempts per feedback submission",
    )

    @model_validator(mode="after")
    def validate_budgets(self) -> Settings:
        """Reject non-positive token budgets and retry counts."""
        if self.max_output_tokens <= 0:
            msg = "max_output_tokens must be positive"
            raise ValueError(msg)
        if self.feedback_retry_max < 1:
            msg = "feedback_retry_max must be at least 1"
            raise ValueError(msg)
        return self

    @property
    def feedback_configured(self) -> bool:
        """Whether both Notion credentials are present."""
        return bool(self.notion_api_key and self.notion_feedback_db_id)
