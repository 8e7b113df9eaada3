"""
Cloud Relay — Anthropic Chat Service Implementation
=====================================================

What:  ChatService backed by the Anthropic Messages API.
How:   One long-lived AsyncAnthropic client per process, created from
       settings with a fixed timeout and an optional outbound proxy.
Who:   Built once in the app lifespan; used by POST /ask and GET /test-api.

Failure model:
    The SDK's own retries are disabled (max_retries=0): a failed call is
    reported to the caller immediately as ChatServiceError.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from anthropic import APIError, APIStatusError, AsyncAnthropic, DefaultAsyncHttpxClient

from cloudrelay.config import Settings
from cloudrelay.exceptions import ChatServiceError
from cloudrelay.services.llm_base import ChatService, ProbeResult

logger = logging.getLogger(__name__)

PROBE_PROMPT = "test"


def _error_details(exc: APIError) -> Dict[str, Any]:
    """
    Pull code and type out of an SDK error.

    Status errors carry the HTTP status and an error body shaped like
    {"type": "error", "error": {"type": "...", "message": "..."}};
    connection errors carry neither.
    """
    code: Optional[Any] = getattr(exc, "status_code", None) if isinstance(exc, APIStatusError) else None
    error_type: Optional[str] = None
    body = exc.body
    if isinstance(body, dict):
        inner = body.get("error")
        if isinstance(inner, dict):
            error_type = inner.get("type")
        else:
            error_type = body.get("type")
    return {"code": code, "error_type": error_type}


class AnthropicChatService(ChatService):
    """Single-turn chat relay over AsyncAnthropic."""

    def __init__(self, config: Settings, client: Optional[AsyncAnthropic] = None):
        self.model = config.chat_model
        self.max_tokens = config.chat_max_tokens
        self.probe_max_tokens = config.probe_max_tokens

        if client is None:
            http_client = None
            if config.anthropic_proxy_url:
                http_client = DefaultAsyncHttpxClient(proxy=config.anthropic_proxy_url)
            client = AsyncAnthropic(
                api_key=config.anthropic_api_key,
                timeout=config.chat_timeout,
                max_retries=0,
                http_client=http_client,
            )
        self.client = client

        logger.info(
            "AnthropicChatService initialized with model=%s, timeout=%.0fs, proxy=%s",
            self.model,
            config.chat_timeout,
            "on" if config.anthropic_proxy_url else "off",
        )

    async def _create(self, prompt: str, max_tokens: int):
        try:
            return await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            details = _error_details(e)
            logger.error(
                "Anthropic call failed (code=%s, type=%s): %s",
                details["code"],
                details["error_type"],
                e.message,
            )
            raise ChatServiceError(
                message=e.message,
                code=details["code"],
                error_type=details["error_type"],
                context={"model": self.model},
            ) from e

    async def complete(self, prompt: str) -> List[Dict[str, Any]]:
        message = await self._create(prompt, self.max_tokens)
        blocks = [block.model_dump(mode="json") for block in message.content]
        logger.info(
            "Chat completion returned %d content block(s), stop_reason=%s",
            len(blocks),
            getattr(message, "stop_reason", None),
        )
        return blocks

    async def probe(self) -> ProbeResult:
        start_time = time.perf_counter()
        message = await self._create(PROBE_PROMPT, self.probe_max_tokens)
        elapsed_ms = int((time.perf_counter() - start_time) * 1000)

        text = " ".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )
        logger.info("Chat probe succeeded in %dms", elapsed_ms)
        return ProbeResult(response_time_ms=elapsed_ms, content=text)

    async def aclose(self) -> None:
        await self.client.close()
