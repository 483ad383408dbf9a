"""
Error taxonomy for the session bridge.

Every failure inside the bridge ends either as a client-visible ``error``
event or as a log line. These types let the transport tell them apart.
"""


class BridgeError(Exception):
    """Base class for all session bridge errors."""

    client_message: str = "Internal error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.client_message)
        self.client_message = message or self.client_message


class NoActiveSession(BridgeError):
    """A chat message arrived while no agent process is live."""

    client_message = "No active session. Start a new session first."


class MalformedMessage(BridgeError):
    """A wire payload could not be parsed or validated."""

    client_message = "Invalid message format"


class AgentStreamError(BridgeError):
    """Draining the agent's output stream raised."""

    client_message = "Agent stream error"


class CommitFailure(BridgeError):
    """Staging or committing content changes failed."""

    client_message = "Failed to commit session changes"


class PushFailure(BridgeError):
    """Pushing committed changes to the remote failed. Always soft."""

    client_message = "Failed to push session changes"


class FeederClosed(BridgeError):
    """Text was enqueued after the input feeder was closed."""

    client_message = "Session is closing"


class ToolCallTimeout(BridgeError):
    """A client tool call was not answered within the configured timeout."""

    client_message = "Tool call timed out"
