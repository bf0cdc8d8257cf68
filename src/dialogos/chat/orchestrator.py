"""Turn orchestration.

Drives one user turn end to end: records the user's message, builds the
request from the history buffer, streams the backend response into a
single progressively updated Message and commits the outcome.

Hidden design decisions:
- Turn state machine and its single live StreamHandle
- Chat-mode vs agent-mode selection (backend driven)
- What reaches the history buffer on success, failure and cancellation
"""

import contextlib
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, assert_never

from ..agent import AgentStep, ToolStep
from ..errors import CancellationError, ConfigurationError, StreamError, TurnInProgressError
from ..history import (
    AIEntry,
    HistoryEntry,
    HumanEntry,
    InMemoryHistory,
    MessageHistory,
    SystemEntry,
    merge_message_runs,
)
from ..llm import CancelToken
from ..prompts import fill_provider_name, get_agent_prompt, get_chat_prompt
from .aggregator import ChronologicalAggregator
from .backend import Backend, BackendObserver
from .commands import is_clear_command
from .display import ChatDisplay
from .messages import USER, Message, Role, Sender, error_message

logger = logging.getLogger(__name__)

DEFAULT_PERSONA = "AI"
DEFAULT_ERROR_MESSAGE = "AI provider not configured"
TURN_IN_PROGRESS_MESSAGE = "A response is still being generated. Stop it or wait for it to finish."


class TurnState(str, Enum):
    IDLE = "idle"
    AWAITING_BACKEND = "awaiting_backend"
    STREAMING = "streaming"
    COMMITTING = "committing"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class StreamHandle:
    """The in-flight turn: its cancel token and working message."""

    cancel_token: CancelToken
    message: Message
    published: bool = False
    discarded: bool = False


class ChatOrchestrator:
    """Conversation controller bound to one backend at a time.

    All state is mutated from the event loop that runs ``send_message``.
    At most one turn is live; a second ``send_message`` while a turn is
    streaming is rejected with an error message.
    """

    def __init__(
        self,
        backend: Backend | None = None,
        history: MessageHistory | None = None,
        displays: Iterable[ChatDisplay] | None = None,
        persona_name: str = DEFAULT_PERSONA,
        avatar_url: str | None = None,
        diagnostic: str | None = None,
        clock: Callable[[], float] = time.time
    ):
        """Initialize the orchestrator.

        Args:
            backend: Backend turns are dispatched to (None until configured)
            history: History buffer (default: in-memory)
            displays: Surfaces that show the conversation
            persona_name: Display name of the assistant
            avatar_url: Optional avatar of the assistant
            diagnostic: Reason the backend is missing, shown on send
            clock: Time source for chronological ordering
        """
        self._backend = backend
        self._diagnostic = diagnostic
        self._history = history if history is not None else InMemoryHistory()
        self._displays: list[ChatDisplay] = list(displays or [])
        self._observers: list[BackendObserver] = []
        self._messages: list[Message] = []
        self._persona_name = persona_name
        self._avatar_url = avatar_url
        self._clock = clock
        self._handle: StreamHandle | None = None
        self._state = TurnState.IDLE
        self._debug_callback: Any | None = None

    # -- configuration ---------------------------------------------------

    @property
    def backend(self) -> Backend | None:
        return self._backend

    @property
    def diagnostic(self) -> str | None:
        return self._diagnostic

    def set_backend(self, backend: Backend | None, diagnostic: str | None = None) -> None:
        """Replace the backend and notify subscribers.

        Args:
            backend: New backend, or None when none is usable
            diagnostic: Why no backend is usable; shown on the next send
        """
        self._backend = backend
        self._diagnostic = diagnostic
        if backend is not None and backend.agent is not None and self._debug_callback:
            backend.agent.set_debug_callback(self._debug_callback)
        self._debug("info", "Chat", f"Backend changed: {backend.name if backend else 'none'}")
        for observer in list(self._observers):
            observer.backend_changed(backend, diagnostic)

    def subscribe(self, observer: BackendObserver) -> Callable[[], None]:
        """Register for backend changes.

        Returns:
            Callable that removes the subscription
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def attach(self, display: ChatDisplay) -> None:
        self._displays.append(display)

    def detach(self, display: ChatDisplay) -> None:
        if display in self._displays:
            self._displays.remove(display)

    def set_debug_callback(self, callback: Any) -> None:
        """Set debug callback for logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
        """
        self._debug_callback = callback
        if self._backend is not None and self._backend.agent is not None:
            self._backend.agent.set_debug_callback(callback)

    def _debug(self, level: str, component: str, message: str) -> None:
        logger.log(getattr(logging, level.upper(), logging.INFO), "[%s] %s", component, message)
        if self._debug_callback:
            self._debug_callback(level, component, message)

    # -- read-only views -------------------------------------------------

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def is_streaming(self) -> bool:
        return self._handle is not None

    @property
    def messages(self) -> tuple[Message, ...]:
        """Displayed transcript, oldest first."""
        return tuple(self._messages)

    @property
    def history(self) -> tuple[HistoryEntry, ...]:
        """Snapshot of the backend-facing history."""
        return self._history.entries()

    @property
    def persona_name(self) -> str:
        return self._persona_name

    @persona_name.setter
    def persona_name(self, value: str) -> None:
        """Rename the assistant and republish its existing messages."""
        for message in self._messages:
            if message.sender.username == self._persona_name:
                message.sender = Sender(username=value, avatar_url=message.sender.avatar_url)
                self._publish(message)
        if self._handle is not None and not self._handle.published:
            self._handle.message.sender = Sender(
                username=value, avatar_url=self._handle.message.sender.avatar_url
            )
        self._persona_name = value

    @property
    def system_prompt(self) -> str:
        """System prompt for the next request.

        The agent prompt is used when the backend can run tools, otherwise
        the backend's own prompt or the default chat prompt.
        """
        backend = self._backend
        if backend is None:
            return get_chat_prompt()
        if backend.agent is not None:
            prompt = get_agent_prompt()
        else:
            prompt = backend.system_prompt or get_chat_prompt()
        return fill_provider_name(prompt, backend.name)

    # -- inbound operations ----------------------------------------------

    async def send_message(self, body: str) -> bool:
        """Run one turn for ``body``.

        Returns:
            True when the backend answered and the answer was committed;
            False for ``/clear``, a missing backend, a failure or a
            cancellation
        """
        if is_clear_command(body):
            self.clear_history()
            return False

        try:
            self._check_idle()
        except TurnInProgressError as e:
            self._debug("warning", "Chat", str(e))
            self._publish(error_message(str(e)))
            return False

        self._publish(Message(role=Role.HUMAN, body=body, sender=USER, closed=True))

        self._state = TurnState.AWAITING_BACKEND
        try:
            backend = self._resolve_backend()
        except ConfigurationError as e:
            self._debug("warning", "Chat", f"No backend: {e}")
            self._publish(error_message(str(e)))
            self._state = TurnState.IDLE
            return False

        request = merge_message_runs([SystemEntry(text=self.system_prompt), *self._history.entries()])
        human = HumanEntry(text=body)
        request.append(human)
        self._history.append(human)

        sender = Sender(username=self._persona_name, avatar_url=self._avatar_url)
        handle = StreamHandle(
            cancel_token=CancelToken(),
            message=Message(role=Role.ASSISTANT, sender=sender),
        )
        self._handle = handle
        self._writers_changed([sender])
        self._state = TurnState.STREAMING
        mode = "agent" if backend.agent is not None else "chat"
        self._debug("info", "Chat", f"Turn started ({mode} mode, {len(request)} request entries)")

        try:
            if backend.agent is not None:
                ok = await self._run_agent(backend, request, handle)
            else:
                ok = await self._run_chat(backend, request, handle)
        except CancellationError:
            ok = self._cancelled(handle)
        except Exception as e:
            ok = self._failed(backend, handle, e)
        finally:
            if self._handle is handle:
                self._handle = None
            if self._handle is None:
                self._writers_changed([])
                self._state = TurnState.IDLE
        return ok

    def stop_streaming(self) -> None:
        """Ask the live turn to stop. No-op when idle."""
        if self._handle is not None:
            self._debug("info", "Chat", "Stop requested")
            self._handle.cancel_token.cancel()

    def clear_history(self) -> None:
        """Delete the displayed transcript and empty the history buffer.

        A live turn is cancelled and its message is dropped.
        """
        if self._handle is not None:
            self._handle.discarded = True
            self._handle.cancel_token.cancel()
            self._handle = None
        count = len(self._messages)
        self._messages = []
        for display in list(self._displays):
            display.messages_deleted(0, count)
        self._history.clear()
        self._debug("info", "Chat", f"Cleared {count} message(s)")

    # -- turn internals --------------------------------------------------

    def _check_idle(self) -> None:
        if self._handle is not None:
            raise TurnInProgressError(TURN_IN_PROGRESS_MESSAGE)

    def _resolve_backend(self) -> Backend:
        if self._backend is None:
            raise ConfigurationError(self._diagnostic or DEFAULT_ERROR_MESSAGE)
        return self._backend

    async def _run_chat(
        self,
        backend: Backend,
        request: list[HistoryEntry],
        handle: StreamHandle
    ) -> bool:
        token = handle.cancel_token
        stream = await backend.chat_model.chat_completion_stream(request, cancel_token=token)
        try:
            async for delta in stream:
                if token.cancelled:
                    break
                handle.message.append(delta)
                self._publish_handle(handle)
        finally:
            await stream.aclose()

        token.raise_if_cancelled()

        content = handle.message.body
        self._state = TurnState.COMMITTING
        self._history.append(AIEntry(text=content))
        if stream.usage:
            self._debug("debug", "LLM", f"Usage: {stream.usage}")
        self._settle(handle)
        self._debug("info", "Chat", f"Turn committed ({len(content)} chars)")
        return True

    async def _run_agent(
        self,
        backend: Backend,
        request: list[HistoryEntry],
        handle: StreamHandle
    ) -> bool:
        token = handle.cancel_token
        aggregator = ChronologicalAggregator(clock=self._clock)

        def update() -> None:
            handle.message.set_body(aggregator.render(active=True))
            self._publish_handle(handle)

        update()
        try:
            async with contextlib.aclosing(backend.agent.stream(request, token)) as events:
                async for event in events:
                    if token.cancelled:
                        break
                    match event:
                        case AgentStep():
                            for entry in event.entries:
                                self._history.append(entry)
                                for call in entry.tool_calls:
                                    self._debug("info", "Agent", f"Tool call: {call.name}")
                                    aggregator.add_tool_call(call)
                                    update()
                                if aggregator.add_text(entry.text):
                                    update()
                        case ToolStep():
                            for entry in event.entries:
                                self._history.append(entry)
                                self._debug("info", "Agent", f"Tool result: {entry.name}")
                                aggregator.add_tool_result(entry)
                                update()
                        case _:
                            assert_never(event)
        finally:
            # the placeholder only stands while the turn runs
            if not handle.discarded:
                handle.message.set_body(aggregator.render(active=False))

        token.raise_if_cancelled()
        self._state = TurnState.COMMITTING
        self._settle(handle)
        self._debug("info", "Chat", f"Agent turn committed ({len(aggregator.items)} item(s))")
        return True

    def _cancelled(self, handle: StreamHandle) -> bool:
        self._state = TurnState.CANCELLED
        self._debug("info", "Chat", "Turn cancelled")
        self._settle(handle)
        return False

    def _failed(self, backend: Backend, handle: StreamHandle, error: Exception) -> bool:
        self._state = TurnState.FAILED
        failure = StreamError(backend.format_error(error), cause=error)
        logger.warning("Turn failed", exc_info=error)
        self._debug("error", "Chat", f"Turn failed: {failure.formatted}")
        self._settle(handle)
        if not handle.discarded:
            self._publish(error_message(failure.formatted))
        return False

    def _settle(self, handle: StreamHandle) -> None:
        """Close the working message and publish it one last time.

        A message that ended up empty after being shown is removed.
        """
        message = handle.message
        message.close()
        if handle.discarded or not handle.published:
            return
        if message.body:
            self._publish(message)
            return
        index = self._index_of(message.id)
        if index is not None:
            del self._messages[index]
            for display in list(self._displays):
                display.messages_deleted(index, 1)

    # -- outbound --------------------------------------------------------

    def _publish_handle(self, handle: StreamHandle) -> None:
        if handle.discarded:
            return
        handle.published = True
        self._publish(handle.message)

    def _publish(self, message: Message) -> None:
        index = self._index_of(message.id)
        if index is None:
            self._messages.append(message)
        else:
            self._messages[index] = message
        for display in list(self._displays):
            display.message_added(message)

    def _index_of(self, message_id: str) -> int | None:
        for index, message in enumerate(self._messages):
            if message.id == message_id:
                return index
        return None

    def _writers_changed(self, writers: list[Sender]) -> None:
        for display in list(self._displays):
            display.writers_changed(writers)
