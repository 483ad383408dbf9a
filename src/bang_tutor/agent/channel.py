"""
Client channel - the single outbound path from the bridge to the client.

The transport attaches a sink when a client connects and detaches it on
disconnect. Events sent while no client is attached are dropped; the
client re-synchronises from durable state on reconnect.
"""

from typing import Any, Awaitable, Callable

import structlog

logger = structlog.get_logger()

ClientSink = Callable[[dict[str, Any]], Awaitable[None]]


class ClientChannel:
    """Outbound events plus the client's "agent is thinking" indicator."""

    def __init__(self) -> None:
        self._sink: ClientSink | None = None
        self.thinking = False

    def attach(self, sink: ClientSink) -> None:
        if self._sink is not None and self._sink is not sink:
            logger.info("Replacing attached client")
        self._sink = sink

    def detach(self, sink: ClientSink | None = None) -> None:
        if sink is None or self._sink is sink:
            self._sink = None

    async def send(self, event: dict[str, Any]) -> None:
        sink = self._sink
        if sink is None:
            logger.debug("No client attached; dropping event", event_type=event.get("type"))
            return
        try:
            await sink(event)
        except Exception as e:
            logger.warning("Failed to send event to client", event_type=event.get("type"), error=str(e))

    async def set_thinking(self, thinking: bool, force: bool = False) -> None:
        if self.thinking == thinking and not force:
            return
        self.thinking = thinking
        await self.send({"type": "agent_thinking", "thinking": thinking})

    async def error(self, message: str) -> None:
        await self.send({"type": "error", "message": message})
