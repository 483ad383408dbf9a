"""
Input feeder: turns discrete client messages into one ordered stream.

The agent process iterates the feeder with ``async for``. Each step
yields the oldest queued text, or parks on a single waiter future until
``enqueue`` or ``close`` wakes it. Items come out in exact enqueue order.
"""

import asyncio
from collections import deque
from typing import AsyncIterator

from ..errors import FeederClosed


class InputFeeder:
    """FIFO queue of outbound texts with one parked-waiter slot."""

    def __init__(self) -> None:
        self._items: deque[str] = deque()
        self._waiter: asyncio.Future[None] | None = None
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._items)

    @property
    def closed(self) -> bool:
        return self._closed

    def enqueue(self, text: str) -> None:
        if self._closed:
            raise FeederClosed()
        self._items.append(text)
        self._wake()

    def close(self) -> None:
        """Stop the stream once the already-queued items are drained."""
        self._closed = True
        self._wake()

    def _wake(self) -> None:
        waiter, self._waiter = self._waiter, None
        if waiter is not None and not waiter.done():
            waiter.set_result(None)

    async def get(self) -> str | None:
        """Next item, or ``None`` once closed and drained."""
        while not self._items:
            if self._closed:
                return None
            if self._waiter is not None:
                raise RuntimeError("InputFeeder supports a single consumer")
            self._waiter = asyncio.get_running_loop().create_future()
            try:
                await self._waiter
            finally:
                self._waiter = None
        return self._items.popleft()

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        while True:
            item = await self.get()
            if item is None:
                return
            yield item
