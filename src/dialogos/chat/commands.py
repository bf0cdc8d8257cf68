import re

from pydantic import BaseModel, ConfigDict, Field

CLEAR_COMMAND = "/clear"

_COMMAND_PREFIX = re.compile(r"^/\w*")


def is_clear_command(body: str) -> bool:
    """Whether a submitted body asks to clear the conversation.

    Matches any body that starts with ``/clear`` (case-sensitive).
    """
    return body.startswith(CLEAR_COMMAND)


class ChatCommand(BaseModel):
    """A slash command offered by the input completer."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Command name including the leading slash")
    provider_id: str = Field(description="Id of the provider that owns the command")
    replace_with: str | None = Field(
        default=None,
        description="Text that replaces the current word when the command is chosen"
    )
    description: str = Field(default="", description="Help text shown in the completer")


class ClearCommandProvider:
    """Completion source for the ``/clear`` command.

    Submission needs no handling: the completer inserts ``replace_with``
    and the resulting body goes through ``send_message`` like any other.
    """

    id = "dialogos:clear-commands"

    def __init__(self) -> None:
        self._commands = [
            ChatCommand(
                name=CLEAR_COMMAND,
                provider_id=self.id,
                replace_with=CLEAR_COMMAND,
                description="Clear the chat",
            )
        ]

    @property
    def commands(self) -> list[ChatCommand]:
        return list(self._commands)

    def list_command_completions(self, current_word: str | None) -> list[ChatCommand]:
        """Return the commands whose name starts with the slash token of ``current_word``."""
        if not current_word:
            return []
        match = _COMMAND_PREFIX.match(current_word)
        if not match:
            return []
        prefix = match.group(0)
        return [cmd for cmd in self._commands if cmd.name.startswith(prefix)]

    def on_submit(self, text: str) -> None:
        pass
