"""Request building helpers for history entries."""

from collections.abc import Iterable

from .models import AIEntry, HistoryEntry, HumanEntry, SystemEntry, ToolEntry


def _merge_pair(previous: HistoryEntry, current: HistoryEntry) -> HistoryEntry:
    match previous, current:
        case SystemEntry(), SystemEntry():
            return SystemEntry(text=f"{previous.text}\n{current.text}")
        case HumanEntry(), HumanEntry():
            return HumanEntry(text=f"{previous.text}\n{current.text}")
        case AIEntry(), AIEntry():
            text = "\n".join(t for t in (previous.text, current.text) if t)
            return AIEntry(
                text=text,
                tool_calls=[*previous.tool_calls, *current.tool_calls],
            )
    raise ValueError(f"Cannot merge {previous.role!r} with {current.role!r}")


def merge_message_runs(entries: Iterable[HistoryEntry]) -> list[HistoryEntry]:
    """Collapse consecutive entries of the same role into one.

    Keeps alternating-role protocols valid for backends that require
    strict alternation. Tool entries are never merged since each one
    answers a distinct tool call.

    Args:
        entries: Entries in conversation order

    Returns:
        New list with adjacent same-role runs concatenated
    """
    merged: list[HistoryEntry] = []
    for entry in entries:
        if (
            merged
            and merged[-1].role == entry.role
            and not isinstance(entry, ToolEntry)
        ):
            merged[-1] = _merge_pair(merged[-1], entry)
        else:
            merged.append(entry)
    return merged
