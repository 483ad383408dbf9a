"""
Tool call correlation - routes a client's answer back to the agent tool
invocation that is waiting for it.

A presentation tool (exercise, options, proposed file changes) registers a
pending call, sends its payload to the client keyed by the call id, and
suspends until the client answers. The client's ``tool_response`` resolves
the call and the answer becomes the tool's return value.

Contract:
- ids are never reused within a process lifetime
- a call resolves at most once; the entry is removed when it resolves
- resolving an unknown or stale id is a no-op, never an error
"""

import asyncio
import itertools
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

import structlog

from ..errors import ToolCallTimeout

logger = structlog.get_logger()

Presenter = Callable[[dict[str, Any]], Awaitable[None]]


class PresentationKind(str, Enum):
    """Client-side widgets a tool call can be rendered as."""
    EXERCISE = "exercise"
    OPTIONS = "options"
    PROPOSE_FILE_CHANGES = "propose_file_changes"


def _base36(n: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while True:
        n, r = divmod(n, 36)
        out = digits[r] + out
        if n == 0:
            return out


_counter = itertools.count(1)


def new_tool_call_id() -> str:
    """Process-unique id: a monotonic counter salted with the time in ms."""
    return f"tc_{next(_counter)}_{_base36(int(time.time() * 1000))}"


@dataclass
class PendingToolCall:
    """A tool invocation waiting for exactly one client answer."""
    id: str
    kind: PresentationKind
    payload: dict[str, Any]
    future: asyncio.Future = field(repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_event(self) -> dict[str, Any]:
        """Wire event presenting this call to the client."""
        return {"type": self.kind.value, **self.payload, "toolCallId": self.id}


class ToolCallRegistry:
    """Map of call id to a one-shot completion handle."""

    def __init__(self, presenter: Presenter | None = None):
        self._pending: dict[str, PendingToolCall] = {}
        self._presenter = presenter

    def set_presenter(self, presenter: Presenter | None) -> None:
        self._presenter = presenter

    @property
    def pending_ids(self) -> list[str]:
        return list(self._pending)

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def get(self, call_id: str) -> PendingToolCall | None:
        return self._pending.get(call_id)

    def register(self, kind: PresentationKind, payload: dict[str, Any]) -> PendingToolCall:
        """Create a pending call with a fresh id."""
        call = PendingToolCall(
            id=new_tool_call_id(),
            kind=kind,
            payload=payload,
            future=asyncio.get_running_loop().create_future(),
        )
        self._pending[call.id] = call
        logger.info("Tool call registered", tool_call_id=call.id, kind=kind.value)
        return call

    async def present(self, call: PendingToolCall) -> None:
        """Send the presentation payload to the client."""
        if self._presenter is None:
            logger.warning("No presenter attached; tool call not shown", tool_call_id=call.id)
            return
        await self._presenter(call.to_event())

    def resolve(self, call_id: str, answer: Any) -> bool:
        """Fulfil a pending call. Returns False for unknown or stale ids."""
        call = self._pending.pop(call_id, None)
        if call is None:
            logger.debug("Ignoring answer for unknown tool call", tool_call_id=call_id)
            return False
        if call.future.done():
            return False

        call.future.set_result(answer)
        logger.info("Tool call resolved", tool_call_id=call_id, kind=call.kind.value)
        return True

    async def wait(self, call: PendingToolCall, timeout: float | None = None) -> Any:
        """Suspend until ``call`` is resolved.

        With no timeout this can wait forever; a discard of the session is
        then the only way out.
        """
        try:
            if timeout is None:
                return await call.future
            return await asyncio.wait_for(asyncio.shield(call.future), timeout=timeout)
        except asyncio.TimeoutError:
            self._pending.pop(call.id, None)
            logger.info("Tool call timed out", tool_call_id=call.id, timeout=timeout)
            raise ToolCallTimeout() from None

    async def request(
        self,
        kind: PresentationKind,
        payload: dict[str, Any],
        timeout: float | None = None,
    ) -> Any:
        """Register, present and wait: the full round trip for one call."""
        call = self.register(kind, payload)
        await self.present(call)
        return await self.wait(call, timeout=timeout)

    def abandon(self) -> int:
        """Drop every pending call without resolving it."""
        count = len(self._pending)
        for call in self._pending.values():
            if not call.future.done():
                call.future.cancel()
        self._pending.clear()
        if count:
            logger.info("Abandoned pending tool calls", count=count)
        return count
