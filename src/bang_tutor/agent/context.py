"""
Session context - the explicit bundle of per-session runtime state.

Owned by the SessionManager and handed by reference to the feeder,
consumer and tool registry; there are no module-level singletons.
"""

import asyncio
from dataclasses import dataclass, field

from .feeder import InputFeeder
from .process import AgentProcessHandle
from .tool_calls import ToolCallRegistry


@dataclass
class SessionContext:
    """A live agent process bound to one Session record."""

    session_id: str
    topic: str
    handle: AgentProcessHandle
    inputs: InputFeeder
    calls: ToolCallRegistry
    consumer_task: asyncio.Task | None = field(default=None, repr=False)
    closed: bool = False
    # Set when the session is thrown away; the finaliser must not commit it
    discarded: bool = False

    def close(self) -> None:
        """Close the agent process and stop its input. Idempotent."""
        if self.closed:
            return
        self.closed = True
        self.inputs.close()
        self.handle.close()
        if self.consumer_task is not None and not self.consumer_task.done():
            self.consumer_task.cancel()
