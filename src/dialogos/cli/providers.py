"""Backend factory functions for CLI.

Centralizes creation of LLM providers, agents and the chat backend from
environment variables. Hides configuration details from command
implementations.
"""

import os
from pathlib import Path

from rich.console import Console

from ..agent import ToolCallingAgent
from ..chat import Backend
from ..llm import LLMProvider, create_llm_provider
from ..tools import ToolCatalog, create_workspace_tools

# Default console for output
_console = Console()

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def get_llm(console: Console | None = None) -> tuple[LLMProvider | None, str | None]:
    """Create LLM provider from environment variables.

    Args:
        console: Optional Rich console for output

    Returns:
        Tuple of (LLM provider or None, diagnostic when not configured)

    Environment variables:
        LLM_PROVIDER: Provider type (openai, deepseek, anthropic; default: openai)
        OPENAI_API_KEY: OpenAI API key (for openai provider)
        OPENAI_CHAT_MODEL: OpenAI model (default: gpt-4o-mini)
        DEEPSEEK_API_KEY: DeepSeek API key (for deepseek provider)
        ANTHROPIC_API_KEY: Anthropic API key (for anthropic provider)
        ANTHROPIC_MODEL: Anthropic model (default: claude-sonnet-4-20250514)
    """
    con = console or _console
    llm_provider = os.getenv("LLM_PROVIDER", "openai").lower()

    if llm_provider == "openai":
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            return _missing(con, "OPENAI_API_KEY")
        model = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini")
        return create_llm_provider("openai", api_key=api_key, model=model), None

    elif llm_provider == "deepseek":
        api_key = os.getenv("DEEPSEEK_API_KEY")
        if not api_key:
            return _missing(con, "DEEPSEEK_API_KEY")
        return create_llm_provider("deepseek", api_key=api_key), None

    elif llm_provider in ("anthropic", "claude"):
        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            return _missing(con, "ANTHROPIC_API_KEY")
        model = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
        return create_llm_provider("anthropic", api_key=api_key, model=model), None

    else:
        diagnostic = f"Unknown LLM provider: {llm_provider}"
        con.print(f"[red]Error: {diagnostic}[/red]")
        return None, diagnostic


def _missing(console: Console, variable: str) -> tuple[None, str]:
    console.print(f"[yellow]Warning: {variable} not set, chat is disabled[/yellow]")
    return None, f"{variable} is not set"


def provider_name() -> str:
    """Display name of the configured provider."""
    names = {"openai": "OpenAI", "deepseek": "DeepSeek", "anthropic": "Anthropic", "claude": "Anthropic"}
    configured = os.getenv("LLM_PROVIDER", "openai").lower()
    return names.get(configured, configured)


def get_backend(
    console: Console | None = None,
    agent: bool | None = None,
    max_steps: int | None = None,
    workspace: Path | None = None
) -> tuple[Backend | None, str | None]:
    """Create the chat backend from environment variables.

    Command-line values win over the environment.

    Args:
        console: Optional Rich console for output
        agent: Enable tool-calling agent mode
        max_steps: Agent step limit
        workspace: Root directory for the file tools

    Returns:
        Tuple of (backend or None, diagnostic when no backend is usable)

    Environment variables:
        DIALOGOS_AGENT: Enable agent mode (default: true)
        DIALOGOS_MAX_STEPS: Agent step limit (default: 10)
        DIALOGOS_WORKSPACE: Root directory for file tools (default: cwd)
        DIALOGOS_SYSTEM_PROMPT: System prompt override for chat mode
    """
    steps = max_steps
    if steps is None:
        raw_steps = os.getenv("DIALOGOS_MAX_STEPS", "10")
        try:
            steps = int(raw_steps)
        except ValueError:
            diagnostic = f"DIALOGOS_MAX_STEPS must be an integer, got '{raw_steps}'"
            (console or _console).print(f"[red]Error: {diagnostic}[/red]")
            return None, diagnostic

    llm, diagnostic = get_llm(console)
    if llm is None:
        return None, diagnostic

    use_agent = _env_flag("DIALOGOS_AGENT", True) if agent is None else agent
    root = workspace or Path(os.getenv("DIALOGOS_WORKSPACE") or Path.cwd())

    tool_agent = None
    if use_agent:
        tool_agent = ToolCallingAgent(
            llm=llm,
            catalog=ToolCatalog(create_workspace_tools(root)),
            max_steps=steps,
        )

    backend = Backend(
        name=provider_name(),
        chat_model=llm,
        agent=tool_agent,
        system_prompt=os.getenv("DIALOGOS_SYSTEM_PROMPT") or None,
    )
    return backend, None
