"""
Cloud Relay — Abstract Chat Service Interface
===============================================

What:  The contract every chat-completion provider implements.
How:   Concrete implementations (AnthropicChatService) inherit from
       ChatService; routes depend only on this interface, and tests hand
       the routes an AsyncMock built from it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a connectivity probe against the chat provider."""

    response_time_ms: int
    content: str


class ChatService(ABC):
    """
    Abstract interface for single-turn chat completions.

    Contract:
        - One outbound call per method invocation, no retries, no streaming
        - Provider errors are wrapped in ChatServiceError carrying the
          provider's message, code and type when available
    """

    @abstractmethod
    async def complete(self, prompt: str) -> List[Dict[str, Any]]:
        """
        Send `prompt` as the only user message.

        Returns:
            The provider's content blocks, as plain dicts, unmodified.

        Raises:
            ChatServiceError: the provider call failed.
        """
        ...

    @abstractmethod
    async def probe(self) -> ProbeResult:
        """
        Send a tiny fixed prompt and time the round trip.

        Raises:
            ChatServiceError: the provider call failed.
        """
        ...

    async def aclose(self) -> None:
        """Release the underlying HTTP client. No-op by default."""
        return None
