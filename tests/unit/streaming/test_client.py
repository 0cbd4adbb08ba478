"""Tests for the Anthropic fragment source."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import anthropic
import httpx
import pytest
from pydantic import SecretStr

from reqcheck_core.exceptions import ConfigurationError, TransportError
from reqcheck_streaming.client import AnthropicStreamer
from reqcheck_streaming.composer import ComposedPrompt
from tests.mocks.mock_settings import make_settings
from tests.mocks.mock_streams import FakeMessageStream, make_anthropic_client

PROMPT = ComposedPrompt(instructions="system text", content="user text", prompt_version="v2.4")


async def _collect(streamer: AnthropicStreamer) -> list[str]:
    return [fragment async for fragment in streamer.stream(PROMPT)]


@pytest.mark.unit
class TestAnthropicStreamer:
    """Fragment streaming and error mapping."""

    def test_missing_key_fails_before_network(self) -> None:
        streamer = AnthropicStreamer(make_settings())
        with pytest.raises(ConfigurationError, match="RC_ANTHROPIC_API_KEY"):
            streamer.stream(PROMPT)

    @pytest.mark.asyncio
    async def test_yields_fragments_in_order(self) -> None:
        stream = FakeMessageStream(['{"a"', "", ": 1}"])
        client = make_anthropic_client(stream)
        streamer = AnthropicStreamer(make_settings(), client=client)

        assert await _collect(streamer) == ['{"a"', ": 1}"]
        assert stream.exited

    @pytest.mark.asyncio
    async def test_request_payload(self) -> None:
        client = make_anthropic_client(FakeMessageStream(["{}"]))
        settings = make_settings(max_output_tokens=4096)
        await _collect(AnthropicStreamer(settings, client=client))

        kwargs = client.messages.stream.call_args.kwargs
        assert kwargs["model"] == settings.model
        assert kwargs["max_tokens"] == 4096
        assert kwargs["system"] == "system text"
        assert kwargs["messages"] == [{"role": "user", "content": "user text"}]

    @pytest.mark.asyncio
    async def test_http_error_mid_stream_becomes_transport_error(self) -> None:
        stream = FakeMessageStream(['{"summary": "x'], error=httpx.ReadTimeout("timed out"))
        streamer = AnthropicStreamer(make_settings(), client=make_anthropic_client(stream))

        received: list[str] = []
        with pytest.raises(TransportError, match="timed out"):
            async for fragment in streamer.stream(PROMPT):
                received.append(fragment)
        assert received == ['{"summary": "x']
        assert stream.exited

    @pytest.mark.asyncio
    async def test_api_error_becomes_transport_error(self) -> None:
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        error = anthropic.APIConnectionError(request=request)
        stream = FakeMessageStream([], error=error)
        streamer = AnthropicStreamer(make_settings(), client=make_anthropic_client(stream))

        with pytest.raises(TransportError) as exc_info:
            await _collect(streamer)
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_truncated_stream_is_logged(self) -> None:
        stream = FakeMessageStream(['{"a": 1'], stop_reason="max_tokens")
        streamer = AnthropicStreamer(make_settings(), client=make_anthropic_client(stream))

        with patch("reqcheck_streaming.client.logger") as mock_logger:
            assert await _collect(streamer) == ['{"a": 1']
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.args[0] == "stream_truncated"

    @pytest.mark.asyncio
    async def test_usage_logged_after_stream(self) -> None:
        stream = FakeMessageStream(["{}"], input_tokens=100, output_tokens=50)
        streamer = AnthropicStreamer(make_settings(), client=make_anthropic_client(stream))

        with patch("reqcheck_streaming.client.log_stream_usage") as mock_log:
            await _collect(streamer)
        usage = mock_log.call_args.args[0]
        assert usage.input_tokens == 100
        assert usage.output_tokens == 50
        assert usage.fragments == 1

    @pytest.mark.asyncio
    async def test_client_built_from_settings(self) -> None:
        settings = make_settings(anthropic_api_key=SecretStr("sk-test"))
        fake_client = make_anthropic_client(FakeMessageStream(["{}"]))
        with patch(
            "reqcheck_streaming.client.AsyncAnthropic", return_value=fake_client
        ) as mock_cls:
            await _collect(AnthropicStreamer(settings))
        mock_cls.assert_called_once_with(
            api_key="sk-test",
            max_retries=0,
            timeout=settings.request_timeout_seconds,
        )

    def test_stream_does_not_connect_until_iterated(self) -> None:
        client = MagicMock()
        streamer = AnthropicStreamer(make_settings(), client=client)
        streamer.stream(PROMPT)
        client.messages.stream.assert_not_called()
