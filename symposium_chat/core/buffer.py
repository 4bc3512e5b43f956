"""Outbound message buffer for a surface that can be hidden."""

from __future__ import annotations

from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any

from .events import OutboundEvent
from .log import logger

Deliver = Callable[[dict[str, Any]], Awaitable[None]]


class MessageBuffer:
    """Delivers events while the surface is visible and holds them otherwise.

    Held events are replayed in insertion order when the surface becomes
    visible again.  While a replay is running, newly sent events queue up
    behind it so nothing overtakes an older event.
    """

    def __init__(self, deliver: Deliver, *, visible: bool = True) -> None:
        self._deliver = deliver
        self._queue: deque[OutboundEvent] = deque()
        self._visible = visible
        self._draining = False
        self._closed = False

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def pending(self) -> list[OutboundEvent]:
        return list(self._queue)

    def __len__(self) -> int:
        return len(self._queue)

    async def send(self, event: OutboundEvent) -> None:
        if self._closed:
            logger.debug("buffer closed; dropping %s", type(event).__name__)
            return
        if self._visible and not self._queue and not self._draining:
            await self._deliver(event.to_message())
            return

        self._queue.append(event)
        if not self._visible:
            logger.debug(
                "buffering %s (surface hidden, %d queued)",
                type(event).__name__,
                len(self._queue),
            )
        elif not self._draining:
            await self.flush()

    def hold(self) -> None:
        """Surface went hidden: start queueing."""
        self._visible = False

    async def release(self) -> None:
        """Surface became visible: replay everything queued, then flow."""
        self._visible = True
        await self.flush()

    async def flush(self) -> None:
        """Replay queued events in order.  A no-op when the queue is empty.

        Stops early, keeping the rest queued, if the surface is hidden again
        mid-replay.
        """
        if self._draining or not self._queue:
            return

        self._draining = True
        replayed = 0
        try:
            while self._queue and self._visible:
                event = self._queue.popleft()
                try:
                    await self._deliver(event.to_message())
                except BaseException:
                    self._queue.appendleft(event)
                    raise
                replayed += 1
        finally:
            self._draining = False
        logger.debug("replayed %d buffered message(s)", replayed)

    def close(self) -> int:
        """Stop delivering for good.  Returns how many queued events were dropped."""
        self._closed = True
        self._visible = False
        dropped = len(self._queue)
        self._queue.clear()
        return dropped
