"""Unit tests for the chat orchestrator."""
import asyncio

import pytest
from conftest import FakeAgent, FakeChatProvider, RecordingDisplay
from hypothesis import given, settings
from hypothesis import strategies as st

from dialogos.agent import AgentStep, ToolStep
from dialogos.chat import (
    THINKING_PLACEHOLDER,
    Backend,
    ChatOrchestrator,
    Role,
    TurnState,
)
from dialogos.chat.orchestrator import TURN_IN_PROGRESS_MESSAGE
from dialogos.history import AIEntry, HumanEntry, SystemEntry, ToolCall, ToolEntry
from dialogos.prompts import get_agent_prompt, get_chat_prompt


def _assistant(display: RecordingDisplay):
    return [m for m in display.messages if m.role == Role.ASSISTANT]


def _errors(display: RecordingDisplay):
    return [m for m in display.messages if m.role == Role.ERROR]


class TestChatMode:
    """Tests for plain streaming turns."""

    @pytest.mark.asyncio
    async def test_streams_and_commits_answer(self, make_orchestrator, display):
        """Test the basic Hello / Hi there exchange."""
        provider = FakeChatProvider(deltas=("Hi", " there"))
        orchestrator = make_orchestrator(provider=provider)

        ok = await orchestrator.send_message("Hello")

        assert ok is True
        assert orchestrator.state == TurnState.IDLE
        assert [m.role for m in display.messages] == [Role.HUMAN, Role.ASSISTANT]
        user, answer = display.messages
        assert user.body == "Hello"
        assert user.closed
        assert answer.body == "Hi there"
        assert answer.closed
        assert answer.sender.username == "AI"
        assert display.bodies_of(answer.id) == ["Hi", "Hi there", "Hi there"]
        assert orchestrator.history == (
            HumanEntry(text="Hello"),
            AIEntry(text="Hi there"),
        )

    @pytest.mark.asyncio
    async def test_request_starts_with_system_prompt(self, make_orchestrator):
        """Test that the request is system prompt, history, then the new message."""
        provider = FakeChatProvider(deltas=("ok",))
        orchestrator = make_orchestrator(provider=provider)

        await orchestrator.send_message("first")
        await orchestrator.send_message("second")

        request = provider.requests[-1]
        assert request[0] == SystemEntry(text=get_chat_prompt().replace("$provider_name$", "Fake"))
        assert request[1:] == [
            HumanEntry(text="first"),
            AIEntry(text="ok"),
            HumanEntry(text="second"),
        ]

    @pytest.mark.asyncio
    async def test_writers_toggle_around_turn(self, make_orchestrator, display):
        """Test the typing indicator is turned on then off."""
        orchestrator = make_orchestrator(provider=FakeChatProvider())

        await orchestrator.send_message("Hello")

        assert display.writers == [["AI"], []]

    @given(st.lists(st.text(min_size=1, max_size=12), max_size=8))
    @settings(max_examples=50, deadline=None)
    def test_body_is_concatenation_of_deltas(self, deltas: list[str]):
        """Property test: the committed answer is exactly the joined deltas."""
        display = RecordingDisplay()
        orchestrator = ChatOrchestrator(
            backend=Backend(name="Fake", chat_model=FakeChatProvider(deltas=deltas)),
            displays=[display],
        )

        ok = asyncio.run(orchestrator.send_message("go"))

        assert ok is True
        assert orchestrator.history[-1] == AIEntry(text="".join(deltas))
        answers = _assistant(display)
        if deltas:
            assert answers[0].body == "".join(deltas)
            assert answers[0].closed
        else:
            assert answers == []

    @pytest.mark.asyncio
    async def test_custom_system_prompt(self, display):
        """Test that a backend prompt replaces the default chat prompt."""
        provider = FakeChatProvider()
        backend = Backend(
            name="Acme",
            chat_model=provider,
            system_prompt="You are $provider_name$'s helper.",
        )
        orchestrator = ChatOrchestrator(backend=backend, displays=[display])

        await orchestrator.send_message("Hello")

        assert provider.requests[0][0] == SystemEntry(text="You are Acme's helper.")


class TestMissingBackend:
    """Tests for sends without a configured backend."""

    @pytest.mark.asyncio
    async def test_reports_error_and_keeps_history(self, make_orchestrator, display):
        """Test that exactly one error is shown and nothing is recorded."""
        orchestrator = make_orchestrator()

        ok = await orchestrator.send_message("Hello")

        assert ok is False
        assert [m.role for m in display.messages] == [Role.HUMAN, Role.ERROR]
        assert display.messages[1].body == "**AI provider not configured**"
        assert display.messages[1].sender.username == "ERROR"
        assert orchestrator.history == ()
        assert orchestrator.state == TurnState.IDLE
        assert display.writers == []

    @pytest.mark.asyncio
    async def test_uses_diagnostic(self, display):
        """Test that the configured diagnostic is shown."""
        orchestrator = ChatOrchestrator(displays=[display], diagnostic="OPENAI_API_KEY is not set")

        await orchestrator.send_message("Hello")

        assert _errors(display)[0].body == "**OPENAI_API_KEY is not set**"

    @pytest.mark.asyncio
    async def test_set_backend_enables_chat(self, display):
        """Test that a backend set later is used by the next send."""
        orchestrator = ChatOrchestrator(displays=[display])
        seen = []
        unsubscribe = orchestrator.subscribe(
            type("Observer", (), {"backend_changed": lambda self, b, d: seen.append((b, d))})()
        )

        backend = Backend(name="Fake", chat_model=FakeChatProvider())
        orchestrator.set_backend(backend)
        unsubscribe()
        orchestrator.set_backend(None, "gone")

        assert seen == [(backend, None)]
        assert orchestrator.diagnostic == "gone"
        assert await orchestrator.send_message("Hello") is False
        assert _errors(display)[-1].body == "**gone**"


class TestClear:
    """Tests for the /clear command."""

    @pytest.mark.asyncio
    async def test_clear_wipes_transcript_and_history(self, make_orchestrator, display):
        """Test that /clear deletes every displayed message."""
        orchestrator = make_orchestrator(provider=FakeChatProvider())
        await orchestrator.send_message("Hello")

        ok = await orchestrator.send_message("/clear")

        assert ok is False
        assert display.deletions == [(0, 2)]
        assert display.messages == []
        assert orchestrator.messages == ()
        assert orchestrator.history == ()

    @pytest.mark.asyncio
    async def test_clear_prefix_matches(self, make_orchestrator, display):
        """Test that any message starting with /clear clears."""
        provider = FakeChatProvider()
        orchestrator = make_orchestrator(provider=provider)

        assert await orchestrator.send_message("/clear everything") is False
        assert provider.requests == []
        assert display.deletions == [(0, 0)]

    @pytest.mark.asyncio
    async def test_clear_during_turn_discards_it(self, make_orchestrator, display):
        """Test that clearing a live turn cancels it without republishing."""
        provider = FakeChatProvider(deltas=("Hi", " there"), pause_after=1)
        orchestrator = make_orchestrator(provider=provider)

        turn = asyncio.create_task(orchestrator.send_message("Hello"))
        await provider.started.wait()
        await orchestrator.send_message("/clear")
        ok = await turn

        assert ok is False
        assert display.messages == []
        assert orchestrator.history == ()
        assert orchestrator.state == TurnState.IDLE


class TestCancellation:
    """Tests for stopping a live turn."""

    @pytest.mark.asyncio
    async def test_stop_keeps_partial_message(self, make_orchestrator, display):
        """Test that the partial body is closed and history has no answer."""
        provider = FakeChatProvider(deltas=("Hi", " there"), pause_after=1)
        orchestrator = make_orchestrator(provider=provider)

        turn = asyncio.create_task(orchestrator.send_message("Hello"))
        await provider.started.wait()
        assert orchestrator.is_streaming
        orchestrator.stop_streaming()
        ok = await turn

        assert ok is False
        answer = _assistant(display)[0]
        assert answer.body == "Hi"
        assert answer.closed
        assert orchestrator.history == (HumanEntry(text="Hello"),)
        assert display.writers[-1] == []
        assert orchestrator.state == TurnState.IDLE

    @pytest.mark.asyncio
    async def test_stop_when_idle_is_noop(self, make_orchestrator):
        """Test that stopping without a live turn does nothing."""
        orchestrator = make_orchestrator(provider=FakeChatProvider())

        orchestrator.stop_streaming()

        assert orchestrator.state == TurnState.IDLE

    @pytest.mark.asyncio
    async def test_second_send_is_rejected(self, make_orchestrator, display):
        """Test that a send during a live turn is refused."""
        provider = FakeChatProvider(deltas=("Hi", " there"), pause_after=1)
        orchestrator = make_orchestrator(provider=provider)

        turn = asyncio.create_task(orchestrator.send_message("Hello"))
        await provider.started.wait()
        rejected = await orchestrator.send_message("Again")
        provider.gate.set()
        ok = await turn

        assert rejected is False
        assert ok is True
        assert _errors(display)[0].body == f"**{TURN_IN_PROGRESS_MESSAGE}**"
        assert len(provider.requests) == 1
        assert orchestrator.history == (
            HumanEntry(text="Hello"),
            AIEntry(text="Hi there"),
        )


    @pytest.mark.asyncio
    async def test_stop_during_agent_turn_keeps_tool_calls(self, make_orchestrator, display, ticking_clock):
        """Test that stopping an agent keeps the tool calls it already made."""
        call = ToolCall(id="c1", name="read_file", arguments={"file_path": "a.txt"})
        late = ToolStep(entries=[ToolEntry(name="read_file", content="text", tool_call_id="c1")])
        agent = FakeAgent([AgentStep(entries=[AIEntry(tool_calls=[call])])], late_events=[late])
        orchestrator = make_orchestrator(agent=agent, clock=ticking_clock)

        turn = asyncio.create_task(orchestrator.send_message("Read a.txt"))
        await agent.started.wait()
        orchestrator.stop_streaming()
        ok = await turn

        assert ok is False
        assert orchestrator.history == (
            HumanEntry(text="Read a.txt"),
            AIEntry(tool_calls=[call]),
        )
        answer = _assistant(display)[0]
        assert answer.closed
        assert "Using tool: read_file" in answer.body
        assert "📋" not in answer.body
        assert THINKING_PLACEHOLDER not in answer.body
        assert _errors(display) == []
        assert orchestrator.state == TurnState.IDLE

    @pytest.mark.asyncio
    async def test_stop_closes_agent_stream(self, make_orchestrator, ticking_clock):
        """Test that the agent generator is closed when the turn stops early."""
        call = ToolCall(id="c1", name="list_files")
        late = AgentStep(entries=[AIEntry(text="never shown")])
        agent = FakeAgent([AgentStep(entries=[AIEntry(tool_calls=[call])])], late_events=[late])
        orchestrator = make_orchestrator(agent=agent, clock=ticking_clock)

        turn = asyncio.create_task(orchestrator.send_message("List"))
        await agent.started.wait()
        orchestrator.stop_streaming()
        await turn

        assert agent.closed
        assert AIEntry(text="never shown") not in orchestrator.history

    @pytest.mark.asyncio
    async def test_stop_before_agent_output_removes_placeholder(self, make_orchestrator, display):
        """Test that a stopped agent turn with no output leaves no message."""
        agent = FakeAgent([], late_events=[])
        orchestrator = make_orchestrator(agent=agent)

        turn = asyncio.create_task(orchestrator.send_message("Go"))
        await agent.started.wait()
        orchestrator.stop_streaming()
        ok = await turn

        assert ok is False
        assert _assistant(display) == []
        assert display.deletions == [(1, 1)]
        assert _errors(display) == []


class TestFailures:
    """Tests for backend errors."""

    @pytest.mark.asyncio
    async def test_error_mid_stream(self, make_orchestrator, display):
        """Test that a failing stream closes the partial message and reports."""
        provider = FakeChatProvider(deltas=("Par",), error=RuntimeError("boom"))
        orchestrator = make_orchestrator(provider=provider)

        ok = await orchestrator.send_message("Hello")

        assert ok is False
        assert [m.role for m in display.messages] == [Role.HUMAN, Role.ASSISTANT, Role.ERROR]
        assert display.messages[1].body == "Par"
        assert display.messages[1].closed
        assert display.messages[2].body == "**boom**"
        assert orchestrator.history == (HumanEntry(text="Hello"),)
        assert orchestrator.state == TurnState.IDLE
        assert display.writers == [["AI"], []]

    @pytest.mark.asyncio
    async def test_error_before_first_delta(self, make_orchestrator, display):
        """Test that no empty assistant message is shown."""
        provider = FakeChatProvider(deltas=(), error=RuntimeError())
        orchestrator = make_orchestrator(provider=provider)

        await orchestrator.send_message("Hello")

        assert [m.role for m in display.messages] == [Role.HUMAN, Role.ERROR]
        assert display.messages[1].body == "**RuntimeError**"

    @pytest.mark.asyncio
    async def test_custom_error_formatter(self, display):
        """Test that the backend's formatter shapes the error text."""
        backend = Backend(
            name="Fake",
            chat_model=FakeChatProvider(deltas=(), error=ValueError("raw")),
            error_formatter=lambda e: f"Provider said: {e}",
        )
        orchestrator = ChatOrchestrator(backend=backend, displays=[display])

        await orchestrator.send_message("Hello")

        assert _errors(display)[0].body == "**Provider said: raw**"


class TestAgentMode:
    """Tests for agent turns rendered chronologically."""

    @pytest.mark.asyncio
    async def test_plain_answer(self, make_orchestrator, display):
        """Test an agent answering without tools."""
        agent = FakeAgent([AgentStep(entries=[AIEntry(text="Answer")])])
        orchestrator = make_orchestrator(agent=agent)

        ok = await orchestrator.send_message("Question")

        assert ok is True
        answer = _assistant(display)[0]
        assert display.bodies_of(answer.id)[0] == THINKING_PLACEHOLDER
        assert answer.body == "Answer"
        assert answer.closed
        assert orchestrator.history == (
            HumanEntry(text="Question"),
            AIEntry(text="Answer"),
        )

    @pytest.mark.asyncio
    async def test_agent_prompt_is_used(self, make_orchestrator):
        """Test that agent turns send the agent system prompt."""
        agent = FakeAgent([AgentStep(entries=[AIEntry(text="ok")])])
        orchestrator = make_orchestrator(agent=agent)

        await orchestrator.send_message("Question")

        expected = get_agent_prompt().replace("$provider_name$", "Fake")
        assert agent.requests[0][0] == SystemEntry(text=expected)

    @pytest.mark.asyncio
    async def test_tool_round_renders_in_order(self, make_orchestrator, display, ticking_clock):
        """Test tool call, tool result and narration ordering."""
        call = ToolCall(id="c1", name="read_file", arguments={"file_path": "a.txt"})
        result = ToolEntry(
            name="read_file",
            content='{"command": "read_file", "success": true}',
            tool_call_id="c1",
        )
        agent = FakeAgent([
            AgentStep(entries=[AIEntry(tool_calls=[call])]),
            ToolStep(entries=[result]),
            AgentStep(entries=[AIEntry(text="The file is short.")]),
        ])
        orchestrator = make_orchestrator(agent=agent, clock=ticking_clock)

        ok = await orchestrator.send_message("Read a.txt")

        assert ok is True
        body = _assistant(display)[0].body
        call_at = body.index("Using tool: read_file")
        result_at = body.index("📋 <strong>read_file</strong>")
        thinking_at = body.index("The file is short.")
        assert call_at < result_at < thinking_at
        assert '<details class="thinking" open>' in body
        assert orchestrator.history == (
            HumanEntry(text="Read a.txt"),
            AIEntry(tool_calls=[call]),
            result,
            AIEntry(text="The file is short."),
        )

    @pytest.mark.asyncio
    async def test_body_updates_after_each_event(self, make_orchestrator, display, ticking_clock):
        """Test that every tool event republishes the message."""
        call = ToolCall(id="c1", name="list_files")
        agent = FakeAgent([
            AgentStep(entries=[AIEntry(tool_calls=[call])]),
            ToolStep(entries=[ToolEntry(name="list_files", content="[]", tool_call_id="c1")]),
            AgentStep(entries=[AIEntry(text="Empty.")]),
        ])
        orchestrator = make_orchestrator(agent=agent, clock=ticking_clock)

        await orchestrator.send_message("List")

        bodies = display.bodies_of(_assistant(display)[0].id)
        # placeholder, call, result, narration, final republish
        assert len(bodies) == 5
        assert bodies[0] == THINKING_PLACEHOLDER
        assert bodies[-1] == bodies[-2]

    @pytest.mark.asyncio
    async def test_agent_error_keeps_partial_entries(self, make_orchestrator, display, ticking_clock):
        """Test that entries produced before a failure stay in history."""
        call = ToolCall(id="c1", name="read_file")
        result = ToolEntry(name="read_file", content="text", tool_call_id="c1")
        agent = FakeAgent(
            [AgentStep(entries=[AIEntry(tool_calls=[call])]), ToolStep(entries=[result])],
            error=RuntimeError("agent crashed"),
        )
        orchestrator = make_orchestrator(agent=agent, clock=ticking_clock)

        ok = await orchestrator.send_message("Go")

        assert ok is False
        assert orchestrator.history == (
            HumanEntry(text="Go"),
            AIEntry(tool_calls=[call]),
            result,
        )
        answer = _assistant(display)[0]
        assert answer.closed
        assert "Using tool: read_file" in answer.body
        assert _errors(display)[0].body == "**agent crashed**"

    @pytest.mark.asyncio
    async def test_empty_agent_turn_removes_placeholder(self, make_orchestrator, display):
        """Test that an agent producing nothing leaves no empty message."""
        agent = FakeAgent([AgentStep(entries=[AIEntry(text="   ")])])
        orchestrator = make_orchestrator(agent=agent)

        ok = await orchestrator.send_message("Go")

        assert ok is True
        assert _assistant(display) == []
        assert display.deletions == [(1, 1)]


    @pytest.mark.asyncio
    async def test_agent_error_before_first_event_removes_placeholder(self, make_orchestrator, display):
        """Test that a failed agent turn leaves no thinking placeholder behind."""
        agent = FakeAgent([], error=RuntimeError("boom"))
        orchestrator = make_orchestrator(agent=agent)

        ok = await orchestrator.send_message("Go")

        assert ok is False
        assert [m.role for m in display.messages] == [Role.HUMAN, Role.ERROR]
        assert display.messages[1].body == "**boom**"
        assert display.deletions == [(1, 1)]
        assert (THINKING_PLACEHOLDER, True) not in [(body, closed) for _, body, closed in display.snapshots]
        assert orchestrator.history == (HumanEntry(text="Go"),)
        assert agent.closed


class TestPersona:
    """Tests for renaming the assistant."""

    @pytest.mark.asyncio
    async def test_rename_republishes_messages(self, make_orchestrator, display):
        """Test that earlier assistant messages take the new name."""
        orchestrator = make_orchestrator(provider=FakeChatProvider())
        await orchestrator.send_message("Hello")

        orchestrator.persona_name = "Dialogos"

        assert orchestrator.persona_name == "Dialogos"
        assert _assistant(display)[0].sender.username == "Dialogos"
        assert display.messages[0].sender.username == "User"

        await orchestrator.send_message("Again")
        assert display.writers[-2] == ["Dialogos"]
