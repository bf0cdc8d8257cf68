"""Terminal UI module for dialogos.

Provides a Textual-based TUI for the chat orchestrator.

Module structure (Parnas principle - each module hides a design decision):
- widgets.py: Custom widgets (transcript, input with command hints, log panel)
- styles.py: CSS styling (layout decisions)
- formatting.py: Rewriting transcript bodies for terminal Markdown
- callbacks.py: Orchestrator integration (how TUI receives updates)
- app.py: Application orchestration (user interaction flow)
"""

from .app import ChatTextualApp, run_textual_tui
from .callbacks import TUIDisplay, make_debug_callback
from .config import LogLevel
from .formatting import clean_latex, render_markdown, to_terminal_markdown
from .widgets import ChatHistoryWidget, ChatInputBar, ChatMessageView, DebugPanel

__all__ = [
    "ChatHistoryWidget",
    "ChatInputBar",
    "ChatMessageView",
    "ChatTextualApp",
    "DebugPanel",
    "LogLevel",
    "TUIDisplay",
    "clean_latex",
    "make_debug_callback",
    "render_markdown",
    "run_textual_tui",
    "to_terminal_markdown",
]
