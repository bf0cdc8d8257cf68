"""Display-facing chat messages.

A Message is what the user sees. It is distinct from the HistoryEntry
sent to the backend.
"""

import time
import uuid
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from ..errors import MessageClosedError


class Role(str, Enum):
    """Author role of a displayed message."""

    SYSTEM = "system"
    HUMAN = "human"
    ASSISTANT = "assistant"
    TOOL = "tool"
    ERROR = "error"


class Sender(BaseModel):
    """Display identity of a message author."""

    username: str = Field(description="Name shown next to the message")
    avatar_url: str | None = Field(default=None, description="Optional avatar image URL")


USER = Sender(username="User")
ERROR = Sender(username="ERROR")


class Message(BaseModel):
    """A conversation turn as shown to the user.

    The body may change while the turn streams. Once ``close()`` is called
    the message is settled and any further mutation raises
    MessageClosedError; a new turn always gets a new Message.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: Role = Field(description="Author role")
    body: str = Field(default="", description="Markdown body")
    sender: Sender = Field(description="Display identity of the author")
    time: float = Field(default_factory=time.time, description="Creation time (epoch seconds)")
    type: Literal["msg"] = "msg"
    closed: bool = Field(default=False, description="Whether the turn has settled")

    def append(self, delta: str) -> None:
        """Append streamed text to the body."""
        self._check_open()
        self.body += delta

    def set_body(self, body: str) -> None:
        """Replace the whole body (used by full re-renders)."""
        self._check_open()
        self.body = body

    def close(self) -> None:
        """Mark the message as settled. Idempotent."""
        self.closed = True

    def _check_open(self) -> None:
        if self.closed:
            raise MessageClosedError(f"Message {self.id} is closed")


def error_message(text: str) -> Message:
    """Build a settled error message with a bold body."""
    return Message(
        role=Role.ERROR,
        body=f"**{text}**",
        sender=ERROR,
        closed=True,
    )
