"""
Cloud Relay — Anthropic Chat Service Tests (Mocked)
=====================================================

What:  AnthropicChatService with the SDK client replaced by a mock.
       No network calls are made.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from anthropic import APIConnectionError, AsyncAnthropic, BadRequestError
from anthropic.types import TextBlock

from cloudrelay.exceptions import ChatServiceError
from cloudrelay.services.anthropic_service import PROBE_PROMPT, AnthropicChatService

MESSAGES_URL = "https://api.anthropic.com/v1/messages"


def _message(*texts):
    message = MagicMock()
    message.content = [TextBlock(type="text", text=t) for t in texts]
    message.stop_reason = "end_turn"
    return message


def _service(relay_settings, create):
    client = MagicMock()
    client.messages.create = create
    client.close = AsyncMock()
    return AnthropicChatService(relay_settings, client=client), client


class TestComplete:

    @pytest.mark.asyncio
    async def test_returns_content_blocks_verbatim(self, relay_settings):
        service, client = _service(relay_settings, AsyncMock(return_value=_message("Hi there")))

        blocks = await service.complete("Say hi")

        assert blocks == [{"type": "text", "text": "Hi there", "citations": None}]
        client.messages.create.assert_awaited_once_with(
            model="claude-3-5-sonnet-20241022",
            max_tokens=1024,
            messages=[{"role": "user", "content": "Say hi"}],
        )

    @pytest.mark.asyncio
    async def test_status_error_carries_code_and_type(self, relay_settings):
        error = BadRequestError(
            message="max_tokens: too large",
            response=httpx.Response(400, request=httpx.Request("POST", MESSAGES_URL)),
            body={"type": "error", "error": {"type": "invalid_request_error", "message": "max_tokens: too large"}},
        )
        service, _ = _service(relay_settings, AsyncMock(side_effect=error))

        with pytest.raises(ChatServiceError) as exc_info:
            await service.complete("hello")

        assert exc_info.value.message == "max_tokens: too large"
        assert exc_info.value.code == 400
        assert exc_info.value.error_type == "invalid_request_error"

    @pytest.mark.asyncio
    async def test_connection_error_has_no_code(self, relay_settings):
        error = APIConnectionError(request=httpx.Request("POST", MESSAGES_URL))
        service, _ = _service(relay_settings, AsyncMock(side_effect=error))

        with pytest.raises(ChatServiceError) as exc_info:
            await service.complete("hello")

        assert exc_info.value.code is None
        assert exc_info.value.error_type is None


class TestProbe:

    @pytest.mark.asyncio
    async def test_joins_text_blocks_and_times_call(self, relay_settings):
        service, client = _service(relay_settings, AsyncMock(return_value=_message("ok", "ready")))

        result = await service.probe()

        assert result.content == "ok ready"
        assert result.response_time_ms >= 0
        kwargs = client.messages.create.await_args.kwargs
        assert kwargs["max_tokens"] == 50
        assert kwargs["messages"] == [{"role": "user", "content": PROBE_PROMPT}]


class TestClientConstruction:

    def test_builds_client_with_timeout_and_no_retries(self, relay_settings):
        service = AnthropicChatService(relay_settings)
        assert isinstance(service.client, AsyncAnthropic)
        assert service.client.timeout == 60.0
        assert service.client.max_retries == 0

    def test_builds_client_behind_proxy(self, relay_settings):
        relay_settings.anthropic_proxy_url = "http://proxy.test:8080"
        service = AnthropicChatService(relay_settings)
        assert isinstance(service.client, AsyncAnthropic)

    @pytest.mark.asyncio
    async def test_aclose_closes_client(self, relay_settings):
        service, client = _service(relay_settings, AsyncMock())
        await service.aclose()
        client.close.assert_awaited_once()
