import asyncio
import contextlib
from collections.abc import AsyncIterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..history import AIEntry, ToolCall
from .cancellation import CancelToken


class StreamingResponse:
    """Wrapper for streaming LLM responses that captures usage info.

    Acts as an async iterator for text chunks while storing token usage
    that becomes available at the end of the stream. When a cancel token
    is attached, a pending read is abandoned as soon as the token fires
    and the underlying iterator is closed.

    Usage:
        stream = await provider.chat_completion_stream(entries, cancel_token=token)
        async for chunk in stream:
            print(chunk, end="")
        # After iteration, usage is available
        print(stream.usage)  # {"prompt_tokens": 100, "completion_tokens": 50, ...}
    """

    def __init__(
        self,
        async_iter: AsyncIterator[str],
        cancel_token: CancelToken | None = None
    ):
        """Initialize with an async iterator of text chunks.

        Args:
            async_iter: Async iterator yielding text chunks
            cancel_token: Optional token that stops the stream early
        """
        self._iter = async_iter
        self._cancel_token = cancel_token
        self._usage: dict[str, Any] | None = None
        self._closed = False

    @property
    def usage(self) -> dict[str, Any] | None:
        """Get token usage info (available after iteration completes)."""
        return self._usage

    @property
    def cancelled(self) -> bool:
        """Whether iteration stopped because of the cancel token."""
        return self._cancel_token is not None and self._cancel_token.cancelled

    def set_usage(self, usage: dict[str, Any]) -> None:
        """Set token usage info (called by provider at end of stream)."""
        self._usage = usage

    def __aiter__(self) -> "StreamingResponse":
        """Return self as async iterator."""
        return self

    async def __anext__(self) -> str:
        """Get next chunk from the underlying iterator."""
        if self._closed:
            raise StopAsyncIteration
        if self._cancel_token is None:
            return await self._iter.__anext__()
        if self._cancel_token.cancelled:
            await self.aclose()
            raise StopAsyncIteration

        next_chunk = asyncio.ensure_future(self._iter.__anext__())
        cancelled = asyncio.ensure_future(self._cancel_token.wait())
        try:
            done, _ = await asyncio.wait(
                {next_chunk, cancelled},
                return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancelled.cancel()
            if not next_chunk.done():
                next_chunk.cancel()
                with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration):
                    await next_chunk

        if next_chunk in done and not next_chunk.cancelled():
            return next_chunk.result()

        await self.aclose()
        raise StopAsyncIteration

    async def aclose(self) -> None:
        """Close the underlying iterator, releasing the connection."""
        if self._closed:
            return
        self._closed = True
        close = getattr(self._iter, "aclose", None)
        if close is not None:
            with contextlib.suppress(RuntimeError, StopAsyncIteration):
                await close()


class LLMResponse(BaseModel):
    """Non-streamed response from an LLM provider."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Generated text content")
    model: str = Field(description="Model that generated the response")
    tool_calls: list[ToolCall] = Field(
        default_factory=list,
        description="Tool invocations requested by the model"
    )
    usage: dict[str, int] | None = Field(
        default=None,
        description="Token usage information"
    )

    def to_entry(self) -> AIEntry:
        """Convert to the history entry recorded for this assistant turn."""
        return AIEntry(text=self.content, tool_calls=list(self.tool_calls))
