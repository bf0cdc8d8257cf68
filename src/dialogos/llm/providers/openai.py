import json
from collections.abc import AsyncIterator, Sequence
from typing import Any

from openai import AsyncOpenAI

from ...history import AIEntry, HistoryEntry, HumanEntry, SystemEntry, ToolCall, ToolEntry
from ..base import LLMProvider
from ..cancellation import CancelToken
from ..models import LLMResponse, StreamingResponse


def entries_to_openai(entries: Sequence[HistoryEntry]) -> list[dict[str, Any]]:
    """Convert history entries to Chat Completions messages.

    - System entries become 'system' messages
    - Human entries become 'user' messages
    - AI entries become 'assistant' messages, carrying function tool calls
    - Tool entries become 'tool' messages keyed by tool_call_id

    Returns:
        List of message dicts accepted by chat.completions.create
    """
    messages: list[dict[str, Any]] = []

    for entry in entries:
        match entry:
            case SystemEntry():
                messages.append({"role": "system", "content": entry.text})
            case HumanEntry():
                messages.append({"role": "user", "content": entry.text})
            case AIEntry():
                message: dict[str, Any] = {
                    "role": "assistant",
                    "content": entry.text or None,
                }
                if entry.tool_calls:
                    message["tool_calls"] = [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.name,
                                "arguments": json.dumps(call.arguments),
                            },
                        }
                        for call in entry.tool_calls
                    ]
                messages.append(message)
            case ToolEntry():
                messages.append({
                    "role": "tool",
                    "tool_call_id": entry.tool_call_id or entry.name,
                    "content": entry.content,
                })

    return messages


def tools_to_openai(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Wrap tool specifications as function tools."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool["name"],
                "description": tool.get("description", ""),
                "parameters": tool.get("parameters", {"type": "object", "properties": {}}),
            },
        }
        for tool in tools
    ]


def _parse_arguments(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {"raw_arguments": raw}
    return parsed if isinstance(parsed, dict) else {"value": parsed}


class OpenAIProvider(LLMProvider):
    """OpenAI LLM provider implementation.

    Hidden design decisions:
    - OpenAI API client initialization
    - Message format conversion
    - Function tool calling format
    - Authentication mechanism
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            base_url: Optional custom API base URL
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    async def chat_completion_stream(
        self,
        entries: Sequence[HistoryEntry],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        cancel_token: CancelToken | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Generate a streaming chat completion using OpenAI.

        Args:
            entries: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            cancel_token: Token that stops the stream when fired
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            StreamingResponse that yields text chunks and captures usage info
        """
        model_to_use = model or self._model
        openai_messages = entries_to_openai(entries)
        response = StreamingResponse(
            self._chat_stream_generator(
                model_to_use, openai_messages, temperature, max_tokens, **kwargs
            ),
            cancel_token=cancel_token,
        )
        self._current_stream_response = response
        return response

    async def _chat_stream_generator(
        self,
        model: str,
        messages: list[dict[str, Any]],
        temperature: float,
        max_tokens: int | None,
        **kwargs: Any,
    ) -> AsyncIterator[str]:
        """Internal generator for Chat Completions streaming with usage capture."""
        request_params: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "stream": True,
            "stream_options": {"include_usage": True},
            **kwargs,
        }
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens

        stream = await self._client.chat.completions.create(**request_params)

        try:
            async for chunk in stream:
                if chunk.usage is not None:
                    self._current_stream_response.set_usage({
                        "prompt_tokens": chunk.usage.prompt_tokens,
                        "completion_tokens": chunk.usage.completion_tokens,
                        "total_tokens": chunk.usage.total_tokens,
                    })
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        finally:
            await stream.close()

    async def complete_with_tools(
        self,
        entries: Sequence[HistoryEntry],
        tools: list[dict[str, Any]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate one assistant turn with function calling.

        Args:
            entries: Conversation history
            tools: Tool specifications
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            LLMResponse with content and requested tool calls
        """
        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": entries_to_openai(entries),
            "temperature": temperature,
            **kwargs
        }
        if tools:
            request_params["tools"] = tools_to_openai(tools)
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens

        completion = await self._client.chat.completions.create(**request_params)
        message = completion.choices[0].message

        tool_calls = [
            ToolCall(
                id=call.id,
                name=call.function.name,
                arguments=_parse_arguments(call.function.arguments),
            )
            for call in (message.tool_calls or [])
        ]

        usage = None
        if completion.usage:
            usage = {
                "prompt_tokens": completion.usage.prompt_tokens,
                "completion_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens
            }

        return LLMResponse(
            content=message.content or "",
            model=completion.model,
            tool_calls=tool_calls,
            usage=usage
        )

    def format_error(self, error: BaseException) -> str:
        """OpenAI SDK errors carry a readable ``message`` attribute."""
        return getattr(error, "message", None) or super().format_error(error)

    async def close(self) -> None:
        """Close the OpenAI client.

        Note: Uses the OpenAI SDK's async context manager for proper cleanup.
        See: https://github.com/openai/openai-python#async-usage
        """
        await self._client.close()
