"""Main Textual TUI application.

Orchestrates the UI components and forwards user interaction to the
ChatOrchestrator.
"""

import asyncio

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header

from ..chat import Backend, ChatOrchestrator, ClearCommandProvider
from ..llm import SUPPORTED_PROVIDERS
from ..prompts import welcome_message
from .callbacks import TUIDisplay, make_debug_callback
from .config import LogLevel
from .styles import APP_CSS
from .widgets import ChatHistoryWidget, ChatInputBar, DebugPanel


class ChatTextualApp(App):
    """Textual TUI for chatting with a backend."""

    CSS = APP_CSS
    TITLE = "Dialogos"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("ctrl+k", "clear_chat", "Clear Chat"),
        Binding("ctrl+r", "copy_last_response", "Copy Response"),
        Binding("escape", "stop_streaming", "Stop"),
        Binding("ctrl+d", "toggle_debug", "Debug"),
    ]

    def __init__(
        self,
        orchestrator: ChatOrchestrator,
        log_level: str | None = None,
    ) -> None:
        super().__init__()
        self._orchestrator = orchestrator
        self._initial_log_level = log_level
        self._command_provider = ClearCommandProvider()
        self._chat_display: TUIDisplay | None = None
        self._unsubscribe = None

    @property
    def orchestrator(self) -> ChatOrchestrator:
        return self._orchestrator

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield ChatHistoryWidget(id="chat-history")
        yield DebugPanel(id="debug-panel")
        yield ChatInputBar(id="chat-input-bar", commands=self._command_provider)
        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.theme = "catppuccin-mocha"

        log_panel = self.query_one("#debug-panel", DebugPanel)
        if self._initial_log_level is not None:
            log_panel.log_level = LogLevel.from_string(self._initial_log_level)
            log_panel.show()
            log_panel.info("TUI", f"Log panel enabled with level: {self._initial_log_level.upper()}")
        self._orchestrator.set_debug_callback(make_debug_callback(log_panel))

        chat = self.query_one("#chat-history", ChatHistoryWidget)
        backend = self._orchestrator.backend
        self._update_subtitle(backend, self._orchestrator.diagnostic)
        chat.show_welcome(welcome_message(
            SUPPORTED_PROVIDERS,
            has_agent=backend is not None and backend.has_agent,
        ))
        self._chat_display = TUIDisplay(chat, app=self)
        self._orchestrator.attach(self._chat_display)
        for message in self._orchestrator.messages:
            self._chat_display.message_added(message)
        self._unsubscribe = self._orchestrator.subscribe(self)

        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def on_unmount(self) -> None:
        """Detach from the orchestrator when app exits."""
        self._orchestrator.stop_streaming()
        if self._chat_display is not None:
            self._orchestrator.detach(self._chat_display)
            self._chat_display = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._orchestrator.set_debug_callback(None)

    def backend_changed(self, backend: Backend | None, diagnostic: str | None) -> None:
        self._update_subtitle(backend, diagnostic)

    def _update_subtitle(self, backend: Backend | None, diagnostic: str | None) -> None:
        if backend is None:
            self.sub_title = f"not configured: {diagnostic or 'no provider'}"
            return
        mode = "agent" if backend.has_agent else "chat"
        self.sub_title = f"{backend.name} | {backend.chat_model.model} | {mode}"

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        """Handle user input submission."""
        if event.value:
            self._send(event.value)

    @work(group="turns")
    async def _send(self, body: str) -> None:
        """Run one turn as a background async worker."""
        log_panel = self.query_one("#debug-panel", DebugPanel)
        log_panel.info("TUI", f"Sending: '{body[:50]}'")
        ok = await self._orchestrator.send_message(body)
        if not ok and not self._orchestrator.is_streaming:
            log_panel.info("TUI", "Turn ended without a committed answer")

    def action_stop_streaming(self) -> None:
        """Stop the response that is being generated."""
        if self._orchestrator.is_streaming:
            self._orchestrator.stop_streaming()
            self.notify("Stopped", severity="warning", timeout=2)

    def action_clear_chat(self) -> None:
        """Clear the chat history."""
        self._orchestrator.clear_history()
        self.notify("Chat cleared", timeout=2)

    def action_toggle_debug(self) -> None:
        """Toggle the log panel visibility."""
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)

    def action_copy_last_response(self) -> None:
        """Copy last assistant response to clipboard."""
        chat = self.query_one("#chat-history", ChatHistoryWidget)
        response = chat.get_last_response()
        if response:
            self.copy_to_clipboard(response)
            self.notify("Response copied")
        else:
            self.notify("No response to copy", severity="warning")


async def run_textual_tui(
    backend: Backend | None,
    diagnostic: str | None = None,
    log_level: str | None = None,
    persona_name: str = "AI",
) -> None:
    """Run the Textual TUI.

    Args:
        backend: Backend to chat with (None shows the diagnostic on send)
        diagnostic: Why no backend is available
        log_level: Log level for panel (debug/info/warning/error), None to hide
        persona_name: Display name of the assistant
    """
    orchestrator = ChatOrchestrator(
        backend=backend,
        diagnostic=diagnostic,
        persona_name=persona_name,
    )
    app = ChatTextualApp(orchestrator, log_level=log_level)
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
