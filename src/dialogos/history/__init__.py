"""Message history module for dialogos.

Provides the backend-facing conversation log used as context for
follow-up turns.
"""

from .base import MessageHistory
from .in_memory import InMemoryHistory
from .merge import merge_message_runs
from .models import AIEntry, HistoryEntry, HumanEntry, SystemEntry, ToolCall, ToolEntry

__all__ = [
    "AIEntry",
    "HistoryEntry",
    "HumanEntry",
    "InMemoryHistory",
    "MessageHistory",
    "SystemEntry",
    "ToolCall",
    "ToolEntry",
    "merge_message_runs",
]
