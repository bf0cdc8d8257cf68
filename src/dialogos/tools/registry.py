import json
import logging
from collections.abc import Iterable
from typing import Any

from ..errors import ToolExecutionError
from ..history import ToolCall, ToolEntry
from .base import BaseTool

logger = logging.getLogger(__name__)


class ToolCatalog:
    """Named collection of tools available to the agent.

    Hidden design decisions:
    - Name lookup and duplicate detection
    - Conversion of tool failures into failure results
    """

    def __init__(self, tools: Iterable[BaseTool] | None = None):
        self._tools: dict[str, BaseTool] = {}
        for tool in tools or ():
            self.add(tool)

    def add(self, tool: BaseTool) -> "ToolCatalog":
        """Register a tool.

        Returns:
            Self for method chaining

        Raises:
            ValueError: If a tool with the same name is registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name} already registered")
        self._tools[tool.name] = tool
        return self

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def set_debug_callback(self, callback: Any) -> None:
        for tool in self._tools.values():
            tool.set_debug_callback(callback)

    def specs(self) -> list[dict[str, Any]]:
        """Tool specifications in the provider-neutral format."""
        return [tool.to_llm_spec() for tool in self._tools.values()]

    async def execute(self, tool_call: ToolCall) -> ToolEntry:
        """Run one tool call.

        Never raises for tool failures: unknown tools, ToolExecutionError and
        unexpected exceptions all become a failure result for the model.
        """
        tool = self._tools.get(tool_call.name)
        if tool is None:
            return _failure(tool_call, f"Unknown tool: {tool_call.name}")

        try:
            return await tool.execute(tool_call)
        except ToolExecutionError as e:
            logger.info("Tool %s failed: %s", tool_call.name, e)
            return tool.failure(tool_call, str(e))
        except Exception as e:
            logger.exception("Tool %s raised", tool_call.name)
            return tool.failure(tool_call, f"Error executing {tool_call.name}: {e}")


def _failure(tool_call: ToolCall, error: str) -> ToolEntry:
    content = json.dumps(
        {
            "command": tool_call.name,
            "args": tool_call.arguments,
            "success": False,
            "error": error,
        },
        indent=2,
        default=str,
    )
    return ToolEntry(name=tool_call.name, content=content, tool_call_id=tool_call.id)
