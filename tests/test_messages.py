"""Unit tests for display messages."""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from dialogos.chat import Message, Role, Sender, error_message
from dialogos.errors import MessageClosedError

AI = Sender(username="AI")


class TestMessage:
    """Tests for the open/closed message lifecycle."""

    @given(st.lists(st.text(), max_size=8))
    def test_append_concatenates(self, deltas: list[str]):
        """Property test: appended deltas form the body in order."""
        message = Message(role=Role.ASSISTANT, sender=AI)

        for delta in deltas:
            message.append(delta)

        assert message.body == "".join(deltas)

    def test_set_body_replaces(self):
        """Test that a full re-render replaces the body."""
        message = Message(role=Role.ASSISTANT, body="old", sender=AI)

        message.set_body("new")

        assert message.body == "new"

    def test_closed_message_rejects_append(self):
        """Test that streaming into a settled message fails."""
        message = Message(role=Role.ASSISTANT, body="done", sender=AI)
        message.close()

        with pytest.raises(MessageClosedError):
            message.append(" more")

        assert message.body == "done"

    def test_closed_message_rejects_set_body(self):
        """Test that re-rendering a settled message fails."""
        message = Message(role=Role.ASSISTANT, body="done", sender=AI)
        message.close()

        with pytest.raises(MessageClosedError, match=message.id):
            message.set_body("other")

        assert message.body == "done"

    def test_close_is_idempotent(self):
        """Test that closing twice keeps the message closed."""
        message = Message(role=Role.ASSISTANT, sender=AI)

        message.close()
        message.close()

        assert message.closed

    def test_error_message_is_closed(self):
        """Test the error message shape."""
        message = error_message("boom")

        assert message.role == Role.ERROR
        assert message.body == "**boom**"
        assert message.closed
        with pytest.raises(MessageClosedError):
            message.append("!")
