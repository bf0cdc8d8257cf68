"""Explicit backend configuration for the orchestrator."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from ..agent import AgentModel
from ..llm import LLMProvider


@dataclass
class Backend:
    """The model a turn is dispatched to.

    A backend with an ``agent`` runs turns in agent mode; otherwise turns
    stream plain text from ``chat_model``.
    """

    name: str
    chat_model: LLMProvider
    agent: AgentModel | None = None
    system_prompt: str | None = None
    error_formatter: Callable[[BaseException], str] | None = None

    @property
    def has_agent(self) -> bool:
        return self.agent is not None

    def format_error(self, error: BaseException) -> str:
        """Turn a backend exception into text for the user."""
        if self.error_formatter is not None:
            return self.error_formatter(error)
        return self.chat_model.format_error(error)


class BackendObserver(Protocol):
    """Receives backend changes from the orchestrator."""

    def backend_changed(self, backend: Backend | None, diagnostic: str | None) -> None:
        ...
