"""Unit tests for the tool-calling agent."""
import json

import pytest
from conftest import ScriptedLLM

from dialogos.agent import AgentModel, AgentStep, ToolCallingAgent, ToolStep
from dialogos.history import AIEntry, HumanEntry, SystemEntry, ToolCall
from dialogos.llm import CancelToken, LLMResponse
from dialogos.tools import ToolCatalog, create_workspace_tools

REQUEST = [SystemEntry(text="sys"), HumanEntry(text="What is in notes.txt?")]


async def _collect(agent, cancel_token=None):
    return [event async for event in agent.stream(REQUEST, cancel_token)]


class TestAgentModel:
    """Tests for AgentModel interface."""

    def test_agent_model_is_abstract(self):
        """Test that AgentModel cannot be instantiated directly."""
        with pytest.raises(TypeError):
            AgentModel()  # type: ignore


class TestToolCallingAgent:
    """Tests for the agent loop."""

    @pytest.mark.asyncio
    async def test_answer_without_tools(self):
        """Test that a plain answer ends the turn in one step."""
        llm = ScriptedLLM([LLMResponse(content="Nothing to do.", model="m")])
        agent = ToolCallingAgent(llm=llm)

        events = await _collect(agent)

        assert events == [AgentStep(entries=[AIEntry(text="Nothing to do.")])]
        assert llm.requests[0] == REQUEST

    @pytest.mark.asyncio
    async def test_tool_round_trip(self, tmp_path):
        """Test call, result and follow-up answer."""
        (tmp_path / "notes.txt").write_text("hello", encoding="utf-8")
        call = ToolCall(id="c1", name="read_file", arguments={"file_path": "notes.txt"})
        llm = ScriptedLLM([
            LLMResponse(content="", model="m", tool_calls=[call]),
            LLMResponse(content="It says hello.", model="m"),
        ])
        agent = ToolCallingAgent(llm=llm, catalog=ToolCatalog(create_workspace_tools(tmp_path)))

        events = await _collect(agent)

        assert [type(e) for e in events] == [AgentStep, ToolStep, AgentStep]
        result = events[1].entries[0]
        assert result.tool_call_id == "c1"
        assert json.loads(result.content)["result"] == "hello"
        assert llm.requests[1][-2:] == [AIEntry(tool_calls=[call]), result]
        assert [spec["name"] for spec in llm.last_tools] == [
            "list_files", "read_file", "write_file", "delete_file", "rename_file", "copy_file",
        ]

    @pytest.mark.asyncio
    async def test_step_limit(self):
        """Test that the loop stops after max_steps model calls."""
        call = ToolCall(name="missing_tool")
        llm = ScriptedLLM([
            LLMResponse(content="", model="m", tool_calls=[call]),
            LLMResponse(content="", model="m", tool_calls=[call]),
        ])
        agent = ToolCallingAgent(llm=llm, max_steps=2)

        events = await _collect(agent)

        assert len(llm.requests) == 2
        assert events[-1].entries[0].text == (
            "Maximum steps (2) reached. Unable to complete the task within the step limit."
        )

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self):
        """Test that a fired token produces no events."""
        llm = ScriptedLLM([LLMResponse(content="never", model="m")])
        token = CancelToken()
        token.cancel()

        events = await _collect(ToolCallingAgent(llm=llm), token)

        assert events == []
        assert llm.requests == []

    @pytest.mark.asyncio
    async def test_cancel_between_steps(self):
        """Test that cancelling after a tool step stops the loop."""
        call = ToolCall(name="list_files")
        llm = ScriptedLLM([
            LLMResponse(content="", model="m", tool_calls=[call]),
            LLMResponse(content="unused", model="m"),
        ])
        agent = ToolCallingAgent(llm=llm)
        token = CancelToken()

        events = []
        async for event in agent.stream(REQUEST, token):
            events.append(event)
            if isinstance(event, ToolStep):
                token.cancel()

        assert [type(e) for e in events] == [AgentStep, ToolStep]
        assert len(llm.requests) == 1

    @pytest.mark.asyncio
    async def test_close_closes_llm(self):
        """Test that closing the agent closes its provider."""
        llm = ScriptedLLM([])
        await ToolCallingAgent(llm=llm).close()

        assert llm.closed
