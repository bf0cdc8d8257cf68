from .base import AgentModel
from .events import AgentEvent, AgentStep, ToolStep
from .tool_agent import ToolCallingAgent

__all__ = ["AgentModel", "AgentEvent", "AgentStep", "ToolStep", "ToolCallingAgent"]
