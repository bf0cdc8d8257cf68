"""Data models for the conversation history.

These models define the backend-facing shape of a conversation turn,
independent of how a given provider encodes it on the wire.
"""

import uuid
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ToolCall(BaseModel):
    """A tool invocation requested by the assistant.

    Attributes:
        id: Identifier used to correlate the later tool result
        name: Name of the tool to call
        arguments: Arguments for the tool call
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"call_{uuid.uuid4().hex[:24]}")
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class SystemEntry(BaseModel):
    """System instructions sent ahead of the conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system"] = "system"
    text: str


class HumanEntry(BaseModel):
    """A message typed by the user."""

    model_config = ConfigDict(frozen=True)

    role: Literal["human"] = "human"
    text: str


class AIEntry(BaseModel):
    """An assistant turn, optionally requesting tool calls."""

    model_config = ConfigDict(frozen=True)

    role: Literal["ai"] = "ai"
    text: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


class ToolEntry(BaseModel):
    """The result of executing one tool call."""

    model_config = ConfigDict(frozen=True)

    role: Literal["tool"] = "tool"
    name: str = Field(description="Name of the tool that produced the result")
    content: str = Field(description="Raw result text")
    tool_call_id: str | None = Field(
        default=None,
        description="Identifier of the ToolCall this result answers"
    )


HistoryEntry = Annotated[
    SystemEntry | HumanEntry | AIEntry | ToolEntry,
    Field(discriminator="role"),
]
