"""Pytest configuration and shared fixtures."""
import asyncio
import itertools
from collections.abc import AsyncGenerator, AsyncIterator, Sequence
from typing import Any

import pytest

from dialogos.agent import AgentModel, AgentStep, ToolStep
from dialogos.chat import Backend, ChatDisplay, ChatOrchestrator, Message, Sender
from dialogos.history import HistoryEntry
from dialogos.llm import CancelToken, LLMProvider, LLMResponse, StreamingResponse


class FakeChatProvider(LLMProvider):
    """Provider that streams scripted deltas.

    ``gate`` (when set) blocks the stream after ``pause_after`` deltas
    until the test releases it.
    """

    def __init__(
        self,
        deltas: Sequence[str] = ("Hi", " there"),
        error: Exception | None = None,
        pause_after: int | None = None,
    ):
        self.deltas = list(deltas)
        self.error = error
        self.pause_after = pause_after
        self.gate = asyncio.Event()
        self.started = asyncio.Event()
        self.requests: list[list[HistoryEntry]] = []
        self.closed = False

    @property
    def model(self) -> str:
        return "fake-model"

    async def chat_completion_stream(
        self,
        entries: Sequence[HistoryEntry],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        cancel_token: CancelToken | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        self.requests.append(list(entries))

        async def _generate() -> AsyncIterator[str]:
            for index, delta in enumerate(self.deltas):
                if self.pause_after is not None and index == self.pause_after:
                    self.started.set()
                    await self.gate.wait()
                yield delta
            if self.error is not None:
                raise self.error

        return StreamingResponse(_generate(), cancel_token=cancel_token)

    async def complete_with_tools(
        self,
        entries: Sequence[HistoryEntry],
        tools: list[dict[str, Any]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        self.requests.append(list(entries))
        return LLMResponse(content="".join(self.deltas), model=self.model)

    async def close(self) -> None:
        self.closed = True


class ScriptedLLM(FakeChatProvider):
    """Provider whose ``complete_with_tools`` replays a list of responses."""

    def __init__(self, responses: Sequence[LLMResponse]):
        super().__init__()
        self._responses = list(responses)

    async def complete_with_tools(
        self,
        entries: Sequence[HistoryEntry],
        tools: list[dict[str, Any]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        self.requests.append(list(entries))
        self.last_tools = tools
        return self._responses.pop(0)


class FakeAgent(AgentModel):
    """Agent that yields a fixed list of events, then optionally fails.

    With ``late_events`` the agent parks after ``events`` until the turn's
    cancel token fires, then yields ``late_events``. ``closed`` records
    whether the consumer closed the generator.
    """

    def __init__(
        self,
        events: Sequence[AgentStep | ToolStep],
        error: Exception | None = None,
        late_events: Sequence[AgentStep | ToolStep] | None = None,
    ):
        self.events = list(events)
        self.error = error
        self.late_events = None if late_events is None else list(late_events)
        self.requests: list[list[HistoryEntry]] = []
        self.started = asyncio.Event()
        self.closed = False

    async def stream(
        self,
        entries: Sequence[HistoryEntry],
        cancel_token: CancelToken | None = None
    ) -> AsyncGenerator[AgentStep | ToolStep, None]:
        self.requests.append(list(entries))
        try:
            for event in self.events:
                yield event
            if self.late_events is not None:
                self.started.set()
                await cancel_token.wait()
                for event in self.late_events:
                    yield event
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


class RecordingDisplay(ChatDisplay):
    """Display that records every callback it receives."""

    def __init__(self):
        self.messages: list[Message] = []
        self.snapshots: list[tuple[str, str, bool]] = []
        self.deletions: list[tuple[int, int]] = []
        self.writers: list[list[str]] = []

    def message_added(self, message: Message) -> None:
        self.snapshots.append((message.id, message.body, message.closed))
        copy = message.model_copy(deep=True)
        for index, existing in enumerate(self.messages):
            if existing.id == message.id:
                self.messages[index] = copy
                return
        self.messages.append(copy)

    def messages_deleted(self, start: int, count: int) -> None:
        self.deletions.append((start, count))
        del self.messages[start:start + count]

    def writers_changed(self, writers: list[Sender]) -> None:
        self.writers.append([writer.username for writer in writers])

    def bodies_of(self, message_id: str) -> list[str]:
        return [body for mid, body, _ in self.snapshots if mid == message_id]


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def fixed_clock():
    """Clock that always returns the same instant."""
    return lambda: 1000.0


@pytest.fixture
def ticking_clock():
    """Clock that advances one second per reading."""
    counter = itertools.count(1)
    return lambda: float(next(counter))


@pytest.fixture
def make_orchestrator(display):
    """Build an orchestrator wired to the recording display."""
    def _make(provider=None, agent=None, **kwargs):
        backend = None
        if provider is not None or agent is not None:
            backend = Backend(
                name="Fake",
                chat_model=provider or FakeChatProvider(),
                agent=agent,
            )
        return ChatOrchestrator(backend=backend, displays=[display], **kwargs)
    return _make
