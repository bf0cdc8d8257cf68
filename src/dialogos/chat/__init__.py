"""Conversation core: turn orchestration, transcript rendering and commands."""

from .aggregator import (
    THINKING_PLACEHOLDER,
    ChronologicalAggregator,
    ChronologicalItem,
    ItemKind,
)
from .backend import Backend, BackendObserver
from .commands import CLEAR_COMMAND, ChatCommand, ClearCommandProvider, is_clear_command
from .display import ChatDisplay
from .messages import Message, Role, Sender, error_message
from .orchestrator import (
    DEFAULT_ERROR_MESSAGE,
    DEFAULT_PERSONA,
    ChatOrchestrator,
    StreamHandle,
    TurnState,
)

__all__ = [
    "THINKING_PLACEHOLDER",
    "ChronologicalAggregator",
    "ChronologicalItem",
    "ItemKind",
    "Backend",
    "BackendObserver",
    "CLEAR_COMMAND",
    "ChatCommand",
    "ClearCommandProvider",
    "is_clear_command",
    "ChatDisplay",
    "Message",
    "Role",
    "Sender",
    "error_message",
    "DEFAULT_ERROR_MESSAGE",
    "DEFAULT_PERSONA",
    "ChatOrchestrator",
    "StreamHandle",
    "TurnState",
]
