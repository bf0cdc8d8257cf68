"""Main CLI application using Typer."""
import asyncio
import os
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.live import Live
from rich.table import Table

from ..chat import Backend, ChatDisplay, ChatOrchestrator, Message, Role, Sender
from ..llm import SUPPORTED_PROVIDERS
from ..prompts import welcome_message
from ..ui.formatting import render_markdown, to_terminal_markdown
from .providers import get_backend, provider_name

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="dialogos",
    help="Streaming chat and tool-calling agent for the terminal",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

_API_KEY_VARIABLES = {
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


class LiveConsoleDisplay(ChatDisplay):
    """Shows the assistant message of the current turn with a Rich Live region.

    User messages are already on screen as typed input, so only assistant
    and error messages are rendered.
    """

    def __init__(self, console: Console) -> None:
        self._console = console
        self._live: Live | None = None
        self._current_id: str | None = None

    def message_added(self, message: Message) -> None:
        if message.role == Role.HUMAN:
            return
        if message.role == Role.ERROR:
            self.finish()
            self._console.print(f"[red]{message.body.strip('*')}[/red]")
            return
        if message.id != self._current_id:
            self.finish()
            self._current_id = message.id
            self._console.print(f"[bold green]{message.sender.username}:[/bold green]")
            self._live = Live(console=self._console, refresh_per_second=8)
            self._live.start()
        if self._live is not None:
            self._live.update(render_markdown(message.body))
        if message.closed:
            self.finish()

    def messages_deleted(self, start: int, count: int) -> None:
        self.finish()

    def writers_changed(self, writers: list[Sender]) -> None:
        if not writers:
            self.finish()

    def finish(self) -> None:
        """Freeze the live region."""
        if self._live is not None:
            self._live.stop()
            self._live = None
        self._current_id = None


def _resolve_backend(
    agent: bool | None,
    max_steps: int | None,
    workspace: Path | None
) -> tuple[Backend | None, str | None]:
    return get_backend(console, agent=agent, max_steps=max_steps, workspace=workspace)


async def _close(backend: Backend | None) -> None:
    if backend is not None:
        await backend.chat_model.close()


@app.command()
def chat(
    max_steps: int | None = typer.Option(
        None,
        "--max-steps",
        "-s",
        help="Maximum agent steps (default: DIALOGOS_MAX_STEPS or 10)"
    ),
    agent: bool | None = typer.Option(
        None,
        "--agent/--no-agent",
        help="Enable tool-calling agent mode (default: DIALOGOS_AGENT or on)"
    ),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Root directory the file tools may access"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
):
    """Launch interactive TUI chat interface."""
    async def _tui():
        from ..ui import run_textual_tui

        backend, diagnostic = _resolve_backend(agent, max_steps, workspace)
        try:
            await run_textual_tui(
                backend=backend,
                diagnostic=diagnostic,
                log_level=log_level,
            )
        finally:
            await _close(backend)
            console.print("\n[dim]Goodbye![/dim]")

    try:
        asyncio.run(_tui())
    except KeyboardInterrupt:
        pass


@app.command()
def repl(
    max_steps: int | None = typer.Option(
        None,
        "--max-steps",
        "-s",
        help="Maximum agent steps"
    ),
    agent: bool | None = typer.Option(
        None,
        "--agent/--no-agent",
        help="Enable tool-calling agent mode"
    ),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Root directory the file tools may access"
    ),
):
    """Interactive chat in the plain terminal."""
    async def _repl():
        backend, diagnostic = _resolve_backend(agent, max_steps, workspace)
        display = LiveConsoleDisplay(console)
        orchestrator = ChatOrchestrator(backend=backend, diagnostic=diagnostic, displays=[display])

        try:
            has_agent = backend is not None and backend.has_agent
            console.print(render_markdown(welcome_message(SUPPORTED_PROVIDERS, has_agent=has_agent)))
            console.print("[dim]Type 'exit', 'quit', or 'q' to leave[/dim]\n")

            while True:
                try:
                    user_input = console.input("[bold yellow]You:[/bold yellow] ")

                    if not user_input.strip():
                        continue

                    if user_input.strip().lower() in ('exit', 'quit', 'q'):
                        console.print("[dim]Goodbye![/dim]")
                        break

                    await orchestrator.send_message(user_input)
                    display.finish()
                    console.print()

                except KeyboardInterrupt:
                    console.print("\n[dim]Goodbye![/dim]")
                    break
                except EOFError:
                    console.print("\n[dim]Goodbye![/dim]")
                    break
        finally:
            display.finish()
            await _close(backend)

    asyncio.run(_repl())


@app.command()
def ask(
    question: str = typer.Argument(..., help="Message to send"),
    agent: bool | None = typer.Option(
        None,
        "--agent/--no-agent",
        help="Enable tool-calling agent mode"
    ),
    max_steps: int | None = typer.Option(
        None,
        "--max-steps",
        "-s",
        help="Maximum agent steps"
    ),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Root directory the file tools may access"
    ),
    plain: bool = typer.Option(
        False,
        "--plain",
        help="Print the final answer as terminal markdown text instead of a live view"
    ),
):
    """Send a single message and print the answer."""
    async def _ask() -> bool:
        backend, diagnostic = _resolve_backend(agent, max_steps, workspace)
        if backend is None:
            console.print(f"[red]Error: {diagnostic}[/red]")
            raise typer.Exit(code=1)

        displays = [] if plain else [LiveConsoleDisplay(console)]
        orchestrator = ChatOrchestrator(backend=backend, displays=displays)
        try:
            ok = await orchestrator.send_message(question)
        finally:
            for display in displays:
                display.finish()
            await _close(backend)

        if plain:
            for message in orchestrator.messages:
                if message.role in (Role.ASSISTANT, Role.ERROR):
                    console.print(to_terminal_markdown(message.body), markup=False)
        return ok

    if not asyncio.run(_ask()):
        raise typer.Exit(code=1)


@app.command()
def providers():
    """Show supported providers and which one is configured."""
    configured = os.getenv("LLM_PROVIDER", "openai").lower()
    if configured == "claude":
        configured = "anthropic"

    table = Table(show_header=True)
    table.add_column("Provider", style="bold cyan")
    table.add_column("API Key")
    table.add_column("Active")

    for name in SUPPORTED_PROVIDERS:
        variable = _API_KEY_VARIABLES[name]
        key_status = "[green]set[/green]" if os.getenv(variable) else f"[yellow]{variable} missing[/yellow]"
        active = "[green]yes[/green]" if name == configured else ""
        table.add_row(name, key_status, active)

    console.print(table)
    if configured not in SUPPORTED_PROVIDERS:
        console.print(f"[red]Error: Unknown LLM provider: {configured}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[dim]Active display name: {provider_name()}[/dim]")


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
