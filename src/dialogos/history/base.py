"""Abstract base class for message history buffers.

This module defines the interface the orchestrator uses to record the
backend-facing conversation. The abstraction hides:
- Storage layout of the entries
- How snapshots are produced for readers
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator

from .models import HistoryEntry


class MessageHistory(ABC):
    """Append-only log of normalized conversation turns.

    Entries are never reordered or removed, except by ``clear()``,
    which truncates the whole buffer at once.
    """

    @abstractmethod
    def append(self, entry: HistoryEntry) -> None:
        """Append a single entry."""

    def extend(self, entries: Iterable[HistoryEntry]) -> None:
        """Append several entries in order."""
        for entry in entries:
            self.append(entry)

    @abstractmethod
    def entries(self) -> tuple[HistoryEntry, ...]:
        """Return an immutable snapshot of the entries, oldest first."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""

    def __len__(self) -> int:
        return len(self.entries())

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self.entries())
