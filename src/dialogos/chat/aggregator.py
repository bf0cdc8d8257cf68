"""Chronological rendering of agent-mode turns.

Tool calls, tool results and interstitial narration are collected as
timestamped items and re-rendered into one Markdown body after every
event. Text seen before any tool activity is the final answer and is
always rendered last.
"""

import json
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..history import ToolCall, ToolEntry

THINKING_PLACEHOLDER = "_AI is thinking..._"
DEFAULT_RESULT_TITLE = "Tool Result"


class ItemKind(str, Enum):
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    THINKING = "thinking"


@dataclass
class ChronologicalItem:
    """One unit of agent activity awaiting rendering.

    Attributes:
        kind: What the item represents
        timestamp: Clock reading when the item was first observed
        arrival: Arrival counter, breaks timestamp ties
        name: Tool name (tool calls and results)
        arguments: Tool arguments (tool calls)
        content: Result payload or thinking text
    """

    kind: ItemKind
    timestamp: float
    arrival: int
    name: str = ""
    arguments: dict[str, Any] = field(default_factory=dict)
    content: str = ""

    @property
    def sort_key(self) -> tuple[float, int]:
        return (self.timestamp, self.arrival)


def result_title(item: ChronologicalItem) -> str:
    """Title of a tool result block.

    The payload's own ``command`` field wins when the content is a JSON
    object, then the tool name, then a generic label.
    """
    try:
        data = json.loads(item.content)
    except (TypeError, ValueError):
        data = None
    if isinstance(data, dict) and data.get("command"):
        return str(data["command"])
    return item.name or DEFAULT_RESULT_TITLE


class ChronologicalAggregator:
    """Collects the events of one agent turn and renders them.

    The aggregator lives for exactly one turn. ``render`` is a pure
    function of the collected items: calling it twice without new events
    returns the same string.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._items: list[ChronologicalItem] = []
        self._arrivals = 0
        self._thinking: ChronologicalItem | None = None
        self._final_response = ""

    @property
    def items(self) -> tuple[ChronologicalItem, ...]:
        return tuple(self._items)

    @property
    def final_response(self) -> str:
        return self._final_response

    @property
    def has_tool_activity(self) -> bool:
        return any(
            item.kind in (ItemKind.TOOL_CALL, ItemKind.TOOL_RESULT)
            for item in self._items
        )

    def _push(self, kind: ItemKind, **fields: Any) -> ChronologicalItem:
        item = ChronologicalItem(
            kind=kind,
            timestamp=self._clock(),
            arrival=self._arrivals,
            **fields,
        )
        self._arrivals += 1
        self._items.append(item)
        return item

    def add_tool_call(self, call: ToolCall) -> None:
        self._push(ItemKind.TOOL_CALL, name=call.name, arguments=dict(call.arguments))

    def add_tool_result(self, entry: ToolEntry) -> None:
        self._push(ItemKind.TOOL_RESULT, name=entry.name, content=entry.content)

    def add_text(self, text: str) -> bool:
        """Classify a text segment as narration or final answer.

        Returns:
            False when the segment is blank and was ignored
        """
        if not text.strip():
            return False
        if not self.has_tool_activity:
            self._final_response += text
        elif self._thinking is None:
            self._thinking = self._push(ItemKind.THINKING, content=text)
        else:
            self._thinking.content += text
        return True

    def render(self, active: bool = False) -> str:
        """Render all items in chronological order, final answer last.

        Args:
            active: Whether the turn is still running; an empty body then
                becomes a placeholder
        """
        ordered = sorted(self._items, key=lambda item: item.sort_key)
        blocks = []
        for index, item in enumerate(ordered):
            match item.kind:
                case ItemKind.TOOL_CALL:
                    blocks.append(_render_tool_call(item))
                case ItemKind.TOOL_RESULT:
                    blocks.append(_render_tool_result(item))
                case ItemKind.THINKING:
                    if len(ordered) == 1:
                        blocks.append(item.content)
                    else:
                        blocks.append(_render_thinking(item, index == len(ordered) - 1))
        body = "".join(blocks) + self._final_response
        if not body and active:
            return THINKING_PLACEHOLDER
        return body


def _render_tool_call(item: ChronologicalItem) -> str:
    arguments = json.dumps(item.arguments, indent=2, ensure_ascii=False, default=str)
    return (
        '<details class="tool-call">\n'
        f"<summary>🔧 <strong>Using tool: {item.name}</strong></summary>\n\n"
        f"```json\n{arguments}\n```\n"
        "</details>\n\n"
    )


def _render_tool_result(item: ChronologicalItem) -> str:
    return (
        '<details class="tool-result">\n'
        f"<summary>📋 <strong>{result_title(item)}</strong></summary>\n\n"
        f"```\n{item.content}\n```\n"
        "</details>\n\n"
    )


def _render_thinking(item: ChronologicalItem, is_latest: bool) -> str:
    opened = " open" if is_latest else ""
    return (
        f'<details class="thinking"{opened}>\n'
        "<summary>💭 <strong>Thinking</strong></summary>\n\n"
        f"{item.content}\n"
        "</details>\n\n"
    )
