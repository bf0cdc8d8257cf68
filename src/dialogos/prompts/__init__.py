"""Prompt management module.

Externalizes prompts to text files for easy customization.
Prompts can be overridden by placing files in the working directory.
"""

from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path

# Default prompts directory (package location)
_PROMPTS_DIR = Path(__file__).parent

PROVIDER_NAME_PLACEHOLDER = "$provider_name$"


@lru_cache(maxsize=16)
def load_prompt(name: str) -> str:
    """Load a prompt from file.

    Search order:
    1. Current working directory: ./prompts/{name}.txt
    2. Package prompts directory: dialogos/prompts/{name}.txt

    Args:
        name: Prompt name (without .txt extension)

    Returns:
        Prompt text content

    Raises:
        FileNotFoundError: If prompt file not found in any location
    """
    filename = f"{name}.txt"

    # Check working directory first (allows user overrides)
    local_path = Path.cwd() / "prompts" / filename
    if local_path.exists():
        return local_path.read_text(encoding="utf-8")

    # Fall back to package prompts
    package_path = _PROMPTS_DIR / filename
    if package_path.exists():
        return package_path.read_text(encoding="utf-8")

    raise FileNotFoundError(
        f"Prompt '{name}' not found. Searched:\n"
        f"  - {local_path}\n"
        f"  - {package_path}"
    )


def get_chat_prompt() -> str:
    """Get the default system prompt for plain chat."""
    return load_prompt("chat")


def get_agent_prompt() -> str:
    """Get the system prompt used when tools are available."""
    return load_prompt("agent")


def fill_provider_name(prompt: str, provider_name: str) -> str:
    """Replace every ``$provider_name$`` placeholder in ``prompt``."""
    return prompt.replace(PROVIDER_NAME_PLACEHOLDER, provider_name)


def welcome_message(providers: Iterable[str], has_agent: bool = False) -> str:
    """Markdown shown before the first turn.

    Args:
        providers: Names of the providers that can be configured
        has_agent: Whether the active backend can use tools
    """
    title = "🤖 Dialogos Agent" if has_agent else "Ask Dialogos"
    lines = [f"#### {title}", ""]
    if has_agent:
        lines += [
            "**✨ I'm your AI coding assistant with tool access!**",
            "",
            "I can actively help you with:",
            "- 📁 **File management** - List, read, write, delete, rename and copy workspace files",
            "- 🧠 **Code development** - Write, debug, and optimize code",
            "- 🔧 **Interactive assistance** - Carry out tasks directly in your project",
            "",
            "---",
            "",
        ]
    names = "_, _".join(sorted(providers))
    lines += [
        "The provider to use is selected with the `LLM_PROVIDER` environment variable "
        "(or a `.env` file).",
        "",
        f"The current providers that are available are _{names}_.",
        "",
        "To clear the chat, you can use the `/clear` command from the chat input.",
    ]
    return "\n".join(lines) + "\n"


def clear_cache() -> None:
    """Clear the prompt cache (useful after modifying prompt files)."""
    load_prompt.cache_clear()


__all__ = [
    "load_prompt",
    "get_chat_prompt",
    "get_agent_prompt",
    "fill_provider_name",
    "welcome_message",
    "clear_cache",
    "PROVIDER_NAME_PLACEHOLDER",
]
