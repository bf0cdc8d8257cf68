from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from ..history import HistoryEntry
from .cancellation import CancelToken
from .models import LLMResponse, StreamingResponse


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    This module hides the design decision of which LLM provider to use.
    Implementations must handle provider-specific details like:
    - API client setup and authentication
    - Conversion of history entries to the vendor request format
    - Formatting vendor errors for display

    Supports async context manager protocol for proper resource cleanup:
        async with provider:
            stream = await provider.chat_completion_stream(entries)
        # Automatically cleaned up
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Get the default model name."""

    @abstractmethod
    async def chat_completion_stream(
        self,
        entries: Sequence[HistoryEntry],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        cancel_token: CancelToken | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Generate a streaming chat completion.

        Args:
            entries: Conversation history, system entry first
            model: Model to use (None uses provider's default)
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate
            cancel_token: Token that stops the stream when fired
            **kwargs: Provider-specific parameters

        Returns:
            StreamingResponse that yields text chunks and captures usage info.
            After iteration, access usage via stream_response.usage

        Raises:
            Exception: Provider-specific errors during generation
        """

    @abstractmethod
    async def complete_with_tools(
        self,
        entries: Sequence[HistoryEntry],
        tools: list[dict[str, Any]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate one assistant turn that may request tool calls.

        Args:
            entries: Conversation history including earlier tool results
            tools: Tool specifications (name, description, parameters)
            model: Model to use (None uses provider's default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Provider-specific parameters

        Returns:
            LLMResponse with text content and requested tool calls
        """

    def format_error(self, error: BaseException) -> str:
        """Turn a provider exception into a message for the user."""
        return str(error) or type(error).__name__

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "LLMProvider":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
