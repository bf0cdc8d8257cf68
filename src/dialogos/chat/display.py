from abc import ABC, abstractmethod

from .messages import Message, Sender


class ChatDisplay(ABC):
    """Abstract base class for surfaces that show the conversation.

    This module hides the design decision of how messages are rendered.
    A display receives every publication of a message, possibly many per
    turn with the same id, and must treat a repeated id as an update.
    """

    @abstractmethod
    def message_added(self, message: Message) -> None:
        """Insert ``message`` or replace the displayed one with the same id."""

    @abstractmethod
    def messages_deleted(self, start: int, count: int) -> None:
        """Remove ``count`` displayed messages starting at index ``start``."""

    @abstractmethod
    def writers_changed(self, writers: list[Sender]) -> None:
        """Update the "is typing" indicator. An empty list turns it off."""
