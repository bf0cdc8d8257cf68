"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Input history and slash-command completion
- Chat message rendering and in-place updates
- Log rendering and scrolling
"""

from datetime import datetime

from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Click, Key
from textual.message import Message as TextualMessage
from textual.widgets import Button, Markdown, RichLog, Static, TextArea

from ..chat import ChatCommand, ClearCommandProvider, Message, Role, Sender
from .config import (
    INPUT_HISTORY_MAX_SIZE,
    LOG_MAX_MESSAGE_LENGTH,
    LOG_TIMESTAMP_FORMAT,
    MESSAGE_TIMESTAMP_FORMAT,
    TYPING_SUBTITLE,
    LogLevel,
)
from .formatting import to_terminal_markdown

_ROLE_CLASSES = {
    Role.HUMAN: "user-message",
    Role.ASSISTANT: "assistant-message",
    Role.ERROR: "error-message",
    Role.TOOL: "assistant-message",
    Role.SYSTEM: "assistant-message",
}

_ROLE_ICONS = {
    Role.HUMAN: ">",
    Role.ERROR: "!",
}


class ChatMessageView(Vertical):
    """One displayed message, updated in place while it streams.

    Clicking the message copies its raw body to the clipboard.
    """

    def __init__(self, message: Message, **kwargs) -> None:
        super().__init__(classes=f"chat-message {_ROLE_CLASSES[message.role]}", **kwargs)
        self._message_id = message.id
        self._body = message.body
        self._rendered_body = message.body
        self._header_view = Static(self._header_text(message), classes="message-header")
        self._body_view = Markdown(to_terminal_markdown(message.body), classes="message-content")

    @property
    def message_id(self) -> str:
        return self._message_id

    @property
    def body(self) -> str:
        return self._body

    def compose(self):
        yield self._header_view
        yield self._body_view

    def on_mount(self) -> None:
        self._render_body()

    def refresh_message(self, message: Message) -> None:
        """Show the latest state of ``message``."""
        self._header_view.update(self._header_text(message))
        self._body = message.body
        if self._body_view.is_mounted:
            self._render_body()

    def _render_body(self) -> None:
        if self._body != self._rendered_body:
            self._rendered_body = self._body
            self._body_view.update(to_terminal_markdown(self._body))

    @staticmethod
    def _header_text(message: Message) -> str:
        icon = _ROLE_ICONS.get(message.role, "<")
        timestamp = datetime.fromtimestamp(message.time).strftime(MESSAGE_TIMESTAMP_FORMAT)
        return f"{icon} {message.sender.username} [{timestamp}]"

    def on_click(self, event: Click) -> None:
        """Copy message body to clipboard when clicked."""
        event.stop()
        self.app.copy_to_clipboard(self._body)
        self.app.notify("Copied to clipboard", timeout=2)


class ChatHistoryWidget(VerticalScroll):
    """Scrollable transcript mirroring the orchestrator's message list."""

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "Conversation history"
    ALLOW_MAXIMIZE = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._views: list[ChatMessageView] = []
        self._writers: list[Sender] = []

    def show_welcome(self, markdown: str) -> None:
        """Show the welcome text above the transcript."""
        self.mount(Markdown(to_terminal_markdown(markdown), id="welcome"))

    def upsert_message(self, message: Message) -> None:
        """Insert a new message or update the one with the same id."""
        for view in self._views:
            if view.message_id == message.id:
                view.refresh_message(message)
                break
        else:
            view = ChatMessageView(message)
            self._views.append(view)
            self.mount(view)
            self._update_subtitle()
        self.scroll_end(animate=False)

    def delete_messages(self, start: int, count: int) -> None:
        """Remove ``count`` messages starting at index ``start``."""
        removed = self._views[start:start + count]
        del self._views[start:start + count]
        for view in removed:
            view.remove()
        self._update_subtitle()

    def set_writers(self, writers: list[Sender]) -> None:
        self._writers = list(writers)
        self._update_subtitle()

    def get_last_response(self) -> str | None:
        """Get the body of the last assistant message."""
        for view in reversed(self._views):
            if view.has_class("assistant-message") and view.body:
                return view.body
        return None

    @property
    def message_count(self) -> int:
        return len(self._views)

    def _update_subtitle(self) -> None:
        if self._writers:
            names = ", ".join(writer.username for writer in self._writers)
            self.border_subtitle = TYPING_SUBTITLE.format(name=names)
        elif self._views:
            self.border_subtitle = f"{len(self._views)} messages"
        else:
            self.border_subtitle = "Conversation history"


class ChatInputBar(Vertical):
    """Chat input with Send button, input history and slash-command hints.

    Typing ``/`` shows the matching commands; Tab completes the current
    word when exactly one command matches.
    """

    class Submitted(TextualMessage):
        """Message sent when user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, commands: ClearCommandProvider | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._commands = commands or ClearCommandProvider()
        self._history: list[str] = []
        self._history_index: int = -1

    def compose(self):
        yield Static("", id="command-hint")
        with Horizontal(id="input-row"):
            text_area = TextArea(id="chat-input", show_line_numbers=False)
            text_area.cursor_blink = False
            yield text_area
            yield Button("Send", id="send-btn", variant="success").with_tooltip(
                "Submit message (Ctrl+J)"
            )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.focus()
        # Disable cursor line highlighting to remove visual artifacts
        text_area.highlight_cursor_line = False
        self.query_one("#command-hint", Static).display = False

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self._submit()

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        """Refresh the command hint line."""
        hint = self.query_one("#command-hint", Static)
        matches = self.completions()
        if matches:
            hint.update("  ".join(f"[bold]{cmd.name}[/] [dim]{cmd.description}[/]" for cmd in matches))
            hint.display = True
        else:
            hint.display = False

    def on_key(self, event: Key) -> None:
        """Handle keyboard shortcuts.

        Note: ctrl+enter cannot work in terminals (terminal doesn't pass
        ctrl/shift modifiers with Enter). Use ctrl+j as the submit shortcut.
        """
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "tab" and self._complete():
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._is_cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()
        elif event.key == "down" and self._is_cursor_at_end():
            self._navigate_history(1)
            event.prevent_default()
            event.stop()

    def current_word(self) -> str:
        """Whitespace-delimited word ending at the cursor."""
        text_area = self.query_one("#chat-input", TextArea)
        row, col = text_area.cursor_location
        line = text_area.text.split("\n")[row][:col]
        if not line or line[-1].isspace():
            return ""
        return line.split()[-1]

    def completions(self) -> list[ChatCommand]:
        return self._commands.list_command_completions(self.current_word())

    def _complete(self) -> bool:
        matches = self.completions()
        if len(matches) != 1 or matches[0].replace_with is None:
            return False
        text_area = self.query_one("#chat-input", TextArea)
        word = self.current_word()
        row, col = text_area.cursor_location
        text_area.replace(matches[0].replace_with, (row, col - len(word)), (row, col))
        return True

    def _is_cursor_at_start(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        return text_area.cursor_location == (0, 0)

    def _is_cursor_at_end(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        lines = text_area.text.split("\n")
        last_row = len(lines) - 1
        last_col = len(lines[-1]) if lines else 0
        return text_area.cursor_location == (last_row, last_col)

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if direction < 0:  # Up
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        else:  # Down
            if self._history_index < len(self._history) - 1:
                self._history_index += 1
            else:
                self._history_index = -1
                text_area.text = ""
                return
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        value = text_area.text.strip()
        if value:
            if not self._history or self._history[-1] != value:
                self._history.append(value)
                del self._history[:-INPUT_HISTORY_MAX_SIZE]
            self._history_index = -1
            text_area.text = ""
            self.post_message(self.Submitted(value))

    def focus_input(self) -> None:
        """Focus the text input."""
        self.query_one("#chat-input", TextArea).focus()


class DebugPanel(RichLog):
    """Log panel for real-time execution tracing with level filtering.

    Shows timestamped log messages from all components.
    Supports standard log levels: DEBUG < INFO < WARNING < ERROR.
    Hidden by default, shown with --log-level flag or toggled with Ctrl+D.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Trace log"

    def __init__(self, *args, log_level: int = LogLevel.DEBUG, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=False,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        """Current log level threshold."""
        return self._log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        """Set log level threshold."""
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        """Update subtitle to show current log level."""
        if self.display:
            self.border_subtitle = f"Level: {LogLevel.name(self._log_level)}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        """Hide by default."""
        self.display = False

    def log(
        self,
        component: str,
        message: str,
        level: int = LogLevel.DEBUG
    ) -> None:
        """Add a log entry if it meets the current level threshold.

        Args:
            component: Component name (Chat, Agent, Tools, LLM, etc.)
            message: Log message
            level: Log level (LogLevel.DEBUG, INFO, WARNING, ERROR)
        """
        # Filter by level - only show if message level >= threshold
        if level < self._log_level:
            return

        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)

        level_colors = {
            LogLevel.DEBUG: "dim white",
            LogLevel.INFO: "cyan",
            LogLevel.WARNING: "yellow",
            LogLevel.ERROR: "red",
        }
        level_color = level_colors.get(level, "white")

        component_colors = {
            "TUI": "cyan",
            "Chat": "green",
            "Agent": "bright_blue",
            "Tools": "bright_cyan",
            "LLM": "magenta",
        }
        comp_color = component_colors.get(component, "white")

        if len(message) > LOG_MAX_MESSAGE_LENGTH:
            message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."

        self.write(
            f"[dim]{timestamp}[/] "
            f"[{level_color}]{LogLevel.name(level):<5}[/] "
            f"[{comp_color}]\\[{component}][/] {message}"
        )

    def debug(self, component: str, message: str) -> None:
        """Log a DEBUG level message."""
        self.log(component, message, LogLevel.DEBUG)

    def info(self, component: str, message: str) -> None:
        """Log an INFO level message."""
        self.log(component, message, LogLevel.INFO)

    def warning(self, component: str, message: str) -> None:
        """Log a WARNING level message."""
        self.log(component, message, LogLevel.WARNING)

    def error(self, component: str, message: str) -> None:
        """Log an ERROR level message."""
        self.log(component, message, LogLevel.ERROR)

    def show(self) -> None:
        """Show the log panel."""
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        """Hide the log panel."""
        self.display = False
        self.border_subtitle = "Hidden"

    def toggle(self) -> bool:
        """Toggle visibility. Returns new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True
