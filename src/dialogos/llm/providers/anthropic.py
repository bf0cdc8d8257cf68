"""Anthropic Claude LLM provider implementation.

Uses the official Anthropic Python SDK for async chat completions.
Reference: https://github.com/anthropics/anthropic-sdk-python
"""

from collections.abc import AsyncIterator, Sequence
from typing import Any

from anthropic import AsyncAnthropic

from ...history import AIEntry, HistoryEntry, HumanEntry, SystemEntry, ToolCall, ToolEntry
from ..base import LLMProvider
from ..cancellation import CancelToken
from ..models import LLMResponse, StreamingResponse


def _append(messages: list[dict[str, Any]], role: str, blocks: list[dict[str, Any]]) -> None:
    """Append blocks, folding them into the previous message of the same role.

    The Messages API requires user and assistant turns to alternate.
    """
    if messages and messages[-1]["role"] == role:
        messages[-1]["content"].extend(blocks)
    else:
        messages.append({"role": role, "content": list(blocks)})


def entries_to_anthropic(
    entries: Sequence[HistoryEntry]
) -> tuple[str | None, list[dict[str, Any]]]:
    """Convert history entries to a system prompt and Messages API turns.

    Returns:
        Tuple of (system prompt or None, list of message dicts)
    """
    system_parts: list[str] = []
    messages: list[dict[str, Any]] = []

    for entry in entries:
        match entry:
            case SystemEntry():
                system_parts.append(entry.text)
            case HumanEntry():
                _append(messages, "user", [{"type": "text", "text": entry.text}])
            case AIEntry():
                blocks: list[dict[str, Any]] = []
                if entry.text:
                    blocks.append({"type": "text", "text": entry.text})
                blocks.extend(
                    {
                        "type": "tool_use",
                        "id": call.id,
                        "name": call.name,
                        "input": call.arguments,
                    }
                    for call in entry.tool_calls
                )
                if blocks:
                    _append(messages, "assistant", blocks)
            case ToolEntry():
                _append(messages, "user", [{
                    "type": "tool_result",
                    "tool_use_id": entry.tool_call_id or entry.name,
                    "content": entry.content,
                }])

    system = "\n".join(system_parts) if system_parts else None
    return system, messages


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider implementation.

    Hidden design decisions:
    - Anthropic API client initialization
    - Message format conversion (system message handling, tool_use blocks)
    - Error body unwrapping
    - Authentication mechanism
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            model: Default model to use (default: claude-sonnet-4-20250514)
            base_url: Optional custom API base URL
            **client_kwargs: Additional kwargs for AsyncAnthropic client
        """
        self._model = model
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    def _request_params(
        self,
        entries: Sequence[HistoryEntry],
        model: str | None,
        temperature: float,
        max_tokens: int | None,
        **kwargs: Any
    ) -> dict[str, Any]:
        system_message, anthropic_messages = entries_to_anthropic(entries)

        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": anthropic_messages,
            "temperature": temperature,
            "max_tokens": max_tokens or 4096,  # Anthropic requires max_tokens
            **kwargs
        }
        if system_message:
            request_params["system"] = system_message
        return request_params

    async def chat_completion_stream(
        self,
        entries: Sequence[HistoryEntry],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        cancel_token: CancelToken | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Generate a streaming chat completion using Anthropic Claude.

        Args:
            entries: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate (default: 4096)
            cancel_token: Token that stops the stream when fired
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            StreamingResponse that yields text chunks and captures usage info
        """
        request_params = self._request_params(
            entries, model, temperature, max_tokens, **kwargs
        )
        response = StreamingResponse(
            self._stream_generator(request_params),
            cancel_token=cancel_token,
        )
        self._current_stream_response = response
        return response

    async def _stream_generator(
        self,
        request_params: dict[str, Any],
    ) -> AsyncIterator[str]:
        """Internal generator that yields text and captures usage from events."""
        input_tokens = 0
        output_tokens = 0

        async with self._client.messages.stream(**request_params) as stream:
            async for event in stream:
                # message_start contains input_tokens
                if getattr(event, "type", None) == "message_start":
                    usage = getattr(getattr(event, "message", None), "usage", None)
                    if usage is not None:
                        input_tokens = usage.input_tokens
                # message_delta contains output_tokens (cumulative)
                elif getattr(event, "type", None) == "message_delta":
                    usage = getattr(event, "usage", None)
                    if usage is not None and hasattr(usage, "output_tokens"):
                        output_tokens = usage.output_tokens
                elif (
                    getattr(event, "type", None) == "content_block_delta"
                    and hasattr(event.delta, "text")
                ):
                    yield event.delta.text

            self._current_stream_response.set_usage({
                "prompt_tokens": input_tokens,
                "completion_tokens": output_tokens,
                "total_tokens": input_tokens + output_tokens,
            })

    async def complete_with_tools(
        self,
        entries: Sequence[HistoryEntry],
        tools: list[dict[str, Any]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate one assistant turn with tool_use blocks.

        Args:
            entries: Conversation history
            tools: Tool specifications
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate (default: 4096)
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            LLMResponse with content and requested tool calls
        """
        request_params = self._request_params(
            entries, model, temperature, max_tokens, **kwargs
        )
        if tools:
            request_params["tools"] = [
                {
                    "name": tool["name"],
                    "description": tool.get("description", ""),
                    "input_schema": tool.get(
                        "parameters", {"type": "object", "properties": {}}
                    ),
                }
                for tool in tools
            ]

        response = await self._client.messages.create(**request_params)

        content = ""
        tool_calls: list[ToolCall] = []
        for block in response.content:
            if block.type == "text":
                content += block.text
            elif block.type == "tool_use":
                tool_calls.append(ToolCall(
                    id=block.id,
                    name=block.name,
                    arguments=dict(block.input or {}),
                ))

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens
            }

        return LLMResponse(
            content=content,
            model=response.model,
            tool_calls=tool_calls,
            usage=usage
        )

    def format_error(self, error: BaseException) -> str:
        """Unwrap the ``{"error": {"message": ...}}`` body of API errors."""
        body = getattr(error, "body", None)
        if isinstance(body, dict):
            detail = body.get("error")
            if isinstance(detail, dict) and detail.get("message"):
                return str(detail["message"])
        return getattr(error, "message", None) or super().format_error(error)

    async def close(self) -> None:
        """Close the Anthropic client."""
        await self._client.close()
