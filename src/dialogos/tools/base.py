"""Tool infrastructure for the tool-calling agent."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from ..history import ToolCall, ToolEntry

logger = logging.getLogger(__name__)


class BaseTool(ABC):
    """Abstract base class for tools.

    A tool answers one ToolCall with one ToolEntry whose content is a JSON
    document. The document always carries a ``command`` field naming the
    tool, which the transcript renderer uses as the result title.
    """

    def __init__(self) -> None:
        self._debug_callback: Any | None = None

    def set_debug_callback(self, callback: Any) -> None:
        """Set debug callback for logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
        """
        self._debug_callback = callback

    def _debug(self, level: str, component: str, message: str) -> None:
        """Send debug message to the logger and the callback if set."""
        logger.log(getattr(logging, level.upper(), logging.INFO), "[%s] %s", component, message)
        if self._debug_callback:
            self._debug_callback(level, component, message)

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tool name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get the tool description for the LLM."""
        pass

    @property
    @abstractmethod
    def parameters_schema(self) -> dict[str, Any]:
        """Get the JSON schema for tool parameters."""
        pass

    @abstractmethod
    async def execute(self, tool_call: ToolCall) -> ToolEntry:
        """Execute the tool call.

        Args:
            tool_call: The tool call to execute

        Returns:
            ToolEntry with the JSON result

        Raises:
            ToolExecutionError: If the call cannot be carried out
        """
        pass

    def result(self, tool_call: ToolCall, **payload: Any) -> ToolEntry:
        """Build a successful ToolEntry for ``tool_call``."""
        return self._entry(tool_call, success=True, **payload)

    def failure(self, tool_call: ToolCall, error: str) -> ToolEntry:
        """Build a failure ToolEntry for ``tool_call``."""
        return self._entry(tool_call, success=False, error=error)

    def _entry(self, tool_call: ToolCall, **payload: Any) -> ToolEntry:
        content = json.dumps(
            {"command": self.name, "args": tool_call.arguments, **payload},
            indent=2,
            ensure_ascii=False,
            default=str,
        )
        return ToolEntry(name=self.name, content=content, tool_call_id=tool_call.id)

    def to_llm_spec(self) -> dict[str, Any]:
        """Convert tool to LLM-friendly specification.

        Returns:
            Dictionary describing the tool for the LLM
        """
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters_schema
        }
