"""In-memory message history.

Simple list-based storage for process-lifetime history.
Data is lost when the application exits.
"""

from .base import MessageHistory
from .models import HistoryEntry


class InMemoryHistory(MessageHistory):
    """List-backed history buffer.

    ``clear()`` swaps in a fresh list in one assignment, so a reader on
    the event loop never observes a partially cleared buffer.
    """

    def __init__(self, entries: list[HistoryEntry] | None = None):
        self._entries: list[HistoryEntry] = list(entries or [])

    def append(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def clear(self) -> None:
        self._entries = []

    def __len__(self) -> int:
        return len(self._entries)
