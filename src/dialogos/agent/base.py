from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, Sequence

from ..history import HistoryEntry
from ..llm import CancelToken
from .events import AgentStep, ToolStep


class AgentModel(ABC):
    """Abstract base class for agent-capable backends.

    This module hides the design decision of how an agent plans, which
    tools it calls and how it talks to its model. The orchestrator only
    sees a stream of AgentStep and ToolStep events.
    """

    @abstractmethod
    def stream(
        self,
        entries: Sequence[HistoryEntry],
        cancel_token: CancelToken | None = None
    ) -> AsyncGenerator[AgentStep | ToolStep, None]:
        """Run the agent on a conversation.

        Args:
            entries: Request entries, system entry first and the new
                human entry last
            cancel_token: Token that stops the agent between steps

        Returns:
            Async generator of agent events in production order. Consumers
            that stop early close it with ``aclose()``
        """

    def set_debug_callback(self, callback: object) -> None:
        """Set debug callback for logging. No-op by default."""
