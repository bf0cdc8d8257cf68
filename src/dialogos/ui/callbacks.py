"""Display adapter between the orchestrator and the TUI.

Hides the details of how the TUI receives updates from the conversation.
Uses thread-safe methods so updates may come from worker threads.
"""

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ..chat import ChatDisplay, Message, Sender

if TYPE_CHECKING:
    from textual.app import App

    from .widgets import ChatHistoryWidget, DebugPanel


class TUIDisplay(ChatDisplay):
    """ChatDisplay that mirrors the conversation into a ChatHistoryWidget."""

    def __init__(self, chat: "ChatHistoryWidget", app: "App | None" = None) -> None:
        self.chat = chat
        self.app = app

    def _call_thread_safe(self, func: Any, *args: Any, **kwargs: Any) -> None:
        """Call a function in a thread-safe manner for UI updates."""
        if self.app is not None and self.app._thread_id != threading.get_ident():
            self.app.call_from_thread(func, *args, **kwargs)
        else:
            func(*args, **kwargs)

    def message_added(self, message: Message) -> None:
        self._call_thread_safe(self.chat.upsert_message, message.model_copy(deep=True))

    def messages_deleted(self, start: int, count: int) -> None:
        self._call_thread_safe(self.chat.delete_messages, start, count)

    def writers_changed(self, writers: list[Sender]) -> None:
        self._call_thread_safe(self.chat.set_writers, list(writers))


def make_debug_callback(panel: "DebugPanel") -> Callable[[str, str, str], None]:
    """Route ``(level, component, message)`` debug messages to the log panel."""

    def debug_callback(level: str, component: str, message: str) -> None:
        if level == "debug":
            panel.debug(component, message)
        elif level == "info":
            panel.info(component, message)
        elif level == "warning":
            panel.warning(component, message)
        elif level == "error":
            panel.error(component, message)

    return debug_callback
