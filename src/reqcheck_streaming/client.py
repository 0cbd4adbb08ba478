"""Completion stream sources."""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING, Protocol

import anthropic
import httpx
import structlog
from anthropic import AsyncAnthropic

from reqcheck_core.exceptions import ConfigurationError, TransportError
from reqcheck_streaming.observability.cost_tracker import extract_stream_usage, log_stream_usage

if TYPE_CHECKING:
    from reqcheck_core.config.settings import Settings
    from reqcheck_streaming.composer import ComposedPrompt

logger = structlog.get_logger()


class FragmentSource(Protocol):
    """Anything that turns a composed prompt into text fragments."""

    def stream(self, prompt: ComposedPrompt) -> AsyncGenerator[str, None]:
        """Open a stream; fragments arrive in order, then the iterator ends."""
        ...


class AnthropicStreamer:
    """Stream a completion from the Anthropic Messages API.

    One request per analysis, never retried: a dropped stream would restart
    the document from scratch and break monotonic rendering.
    """

    def __init__(self, settings: Settings, client: AsyncAnthropic | None = None) -> None:
        """Initialize with settings and an optional preconfigured client."""
        self.settings = settings
        self._client = client

    def _get_client(self) -> AsyncAnthropic:
        if self._client is None:
            key = self.settings.anthropic_api_key
            assert key is not None
            self._client = AsyncAnthropic(
                api_key=key.get_secret_value(),
                max_retries=0,
                timeout=self.settings.request_timeout_seconds,
            )
        return self._client

    def stream(self, prompt: ComposedPrompt) -> AsyncGenerator[str, None]:
        """Validate credentials, then return the fragment iterator.

        Raises ConfigurationError before any network call when the API key
        is missing.
        """
        if self._client is None and not self.settings.anthropic_api_key:
            msg = "RC_ANTHROPIC_API_KEY is not configured"
            raise ConfigurationError(msg)
        return self._iter_fragments(prompt)

    async def _iter_fragments(self, prompt: ComposedPrompt) -> AsyncGenerator[str, None]:
        client = self._get_client()
        model = self.settings.model
        start = time.monotonic()
        fragments = 0
        logger.info("stream_open", model=model, prompt_version=prompt.prompt_version)
        try:
            async with client.messages.stream(
                model=model,
                max_tokens=self.settings.max_output_tokens,
                system=prompt.instructions,
                messages=[{"role": "user", "content": prompt.content}],
            ) as stream:
                async for text in stream.text_stream:
                    if not text:
                        continue
                    fragments += 1
                    yield text
                message = await stream.get_final_message()
        except (anthropic.APIError, httpx.HTTPError) as e:
            logger.error(
                "stream_transport_error",
                error=str(e),
                error_type=type(e).__name__,
                fragments=fragments,
            )
            msg = f"Completion stream failed: {e}"
            raise TransportError(msg) from e

        if getattr(message, "stop_reason", None) == "max_tokens":
            logger.warning(
                "stream_truncated",
                max_output_tokens=self.settings.max_output_tokens,
            )
        log_stream_usage(
            extract_stream_usage(message, model, time.monotonic() - start, fragments)
        )
