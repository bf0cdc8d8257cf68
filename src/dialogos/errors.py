"""Error taxonomy shared by the orchestrator and its collaborators."""


class ChatError(Exception):
    """Base class for dialogos errors."""


class ConfigurationError(ChatError):
    """No backend is configured, or the configured one is unusable."""


class StreamError(ChatError):
    """A backend stream raised or aborted mid-flight.

    Attributes:
        cause: The original exception raised by the backend
        formatted: User-facing description produced by the backend formatter
    """

    def __init__(self, formatted: str, cause: BaseException | None = None):
        super().__init__(formatted)
        self.formatted = formatted
        self.cause = cause


class CancellationError(ChatError):
    """The user stopped the stream."""


class ToolExecutionError(ChatError):
    """A tool invocation failed.

    Tools convert this into a failure payload instead of letting it
    cross the tool-invocation boundary.
    """

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"{tool_name}: {message}")
        self.tool_name = tool_name


class MessageClosedError(ChatError):
    """A settled message was mutated."""


class TurnInProgressError(ChatError):
    """A turn was started while another one is still streaming."""
