"""
Dialogos: a streaming conversational-agent orchestrator for the terminal.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .chat import (
    Backend,
    ChatDisplay,
    ChatOrchestrator,
    ClearCommandProvider,
    Message,
    Role,
    Sender,
    TurnState,
)
from .history import HistoryEntry, InMemoryHistory, MessageHistory

__all__ = [
    "Backend",
    "ChatDisplay",
    "ChatOrchestrator",
    "ClearCommandProvider",
    "Message",
    "Role",
    "Sender",
    "TurnState",
    "HistoryEntry",
    "InMemoryHistory",
    "MessageHistory",
]
