"""Events produced by an agent-capable backend.

An agent stream is a sequence of AgentEvent values. The union is closed:
consumers dispatch on it with an exhaustive ``match``.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ..history import AIEntry, ToolEntry


class AgentStep(BaseModel):
    """Assistant output: text segments and the tool calls they request."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["agent"] = "agent"
    entries: list[AIEntry] = Field(
        default_factory=list,
        description="Assistant entries produced by this step"
    )


class ToolStep(BaseModel):
    """Results of the tool calls requested by the preceding AgentStep."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tools"] = "tools"
    entries: list[ToolEntry] = Field(
        default_factory=list,
        description="Tool results in the order the calls were made"
    )


AgentEvent = Annotated[Union[AgentStep, ToolStep], Field(discriminator="kind")]
