"""Tool-calling agent.

Loops model call, tool execution, model call until the model answers
without requesting tools, reporting every step as an event.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator, Awaitable, Sequence
from typing import Any, TypeVar

from ..history import AIEntry, HistoryEntry
from ..llm import CancelToken, LLMProvider
from ..tools import ToolCatalog
from .base import AgentModel
from .events import AgentStep, ToolStep

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _until_cancelled(
    awaitable: Awaitable[T],
    cancel_token: CancelToken | None
) -> T | None:
    """Await ``awaitable`` unless the token fires first.

    Returns:
        The awaited result, or None when cancelled
    """
    if cancel_token is None:
        return await awaitable
    if cancel_token.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        return None

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel_token.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
    if task.cancelled():
        return None
    return task.result()


class ToolCallingAgent(AgentModel):
    """Agent that uses the provider's native tool calling.

    Hidden design decisions:
    - Processing loop structure and step limit
    - Tool dispatch through the catalog
    - Cancellation checks between steps
    """

    def __init__(
        self,
        llm: LLMProvider,
        catalog: ToolCatalog | None = None,
        max_steps: int = 10,
        temperature: float = 0.2
    ):
        """Initialize the agent.

        Args:
            llm: LLM provider used for every step
            catalog: Tools available to the model
            max_steps: Maximum number of model calls per turn
            temperature: Sampling temperature for model calls
        """
        self._llm = llm
        self._catalog = catalog or ToolCatalog()
        self._max_steps = max_steps
        self._temperature = temperature
        self._debug_callback: Any | None = None

    @property
    def llm(self) -> LLMProvider:
        return self._llm

    @property
    def catalog(self) -> ToolCatalog:
        return self._catalog

    @property
    def max_steps(self) -> int:
        return self._max_steps

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback for detailed execution logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
        """
        self._debug_callback = callback
        self._catalog.set_debug_callback(callback)

    def _debug(self, level: str, component: str, message: str) -> None:
        logger.log(getattr(logging, level.upper(), logging.INFO), "[%s] %s", component, message)
        if self._debug_callback:
            self._debug_callback(level, component, message)

    async def stream(
        self,
        entries: Sequence[HistoryEntry],
        cancel_token: CancelToken | None = None
    ) -> AsyncGenerator[AgentStep | ToolStep, None]:
        working: list[HistoryEntry] = list(entries)
        specs = self._catalog.specs()

        for step in range(1, self._max_steps + 1):
            self._debug("info", "Agent", f"Step {step}: calling {self._llm.model}")
            response = await _until_cancelled(
                self._llm.complete_with_tools(
                    working, specs, temperature=self._temperature
                ),
                cancel_token,
            )
            if response is None:
                self._debug("info", "Agent", "Cancelled while waiting for the model")
                return

            entry = response.to_entry()
            working.append(entry)
            yield AgentStep(entries=[entry])

            if not entry.has_tool_calls:
                self._debug("info", "Agent", f"Finished after {step} step(s)")
                return
            if cancel_token is not None and cancel_token.cancelled:
                return

            results = []
            for call in entry.tool_calls:
                self._debug("info", "Agent", f"Executing tool: {call.name}")
                self._debug("debug", "Agent", f"Arguments: {call.arguments}")
                result = await _until_cancelled(self._catalog.execute(call), cancel_token)
                if result is None:
                    self._debug("info", "Agent", f"Cancelled during {call.name}")
                    return
                results.append(result)
            working.extend(results)
            yield ToolStep(entries=results)

            if cancel_token is not None and cancel_token.cancelled:
                return

        self._debug("warning", "Agent", f"Maximum steps ({self._max_steps}) reached")
        yield AgentStep(entries=[AIEntry(
            text=(
                f"Maximum steps ({self._max_steps}) reached. "
                "Unable to complete the task within the step limit."
            )
        )])

    async def close(self) -> None:
        """Close resources."""
        await self._llm.close()
