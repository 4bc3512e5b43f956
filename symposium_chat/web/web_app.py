"""WebSurface: adapts a browser websocket to the session coordinator.

The surface is a thin shim.  It turns socket connect/disconnect and the
client's page-visibility reports into coordinator visibility edges, hands
every other message to the coordinator in its own task, and delivers
outbound events over whichever socket is currently attached.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from symposium_chat.core.agent import AgentBackend
from symposium_chat.core.coordinator import SessionCoordinator
from symposium_chat.core.persistence import KeyValueStore

logger = logging.getLogger(__name__)


class WebSurface:
    """One rendering surface backed by at most one websocket at a time.

    The coordinator outlives individual connections: while no socket is
    attached (or the page reports itself hidden) outbound events are
    buffered and replayed on the next attach.
    """

    def __init__(
        self,
        agent: AgentBackend,
        store: KeyValueStore,
        *,
        state_key: str | None = None,
    ) -> None:
        self._ws: Any = None
        self._tasks: set[asyncio.Task[Any]] = set()
        kwargs: dict[str, Any] = {}
        if state_key:
            kwargs["state_key"] = state_key
        self.coordinator = SessionCoordinator(
            agent, store, self._deliver, visible=False, **kwargs
        )

    @property
    def connected(self) -> bool:
        return self._ws is not None

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def _deliver(self, event: dict[str, Any]) -> None:
        """Best-effort send on the attached socket."""
        ws = self._ws
        if ws is None:
            logger.debug("no websocket attached; dropping %s", event.get("type"))
            return
        try:
            await ws.send_json(event)
        except Exception:
            logger.debug("WebSocket send failed", exc_info=True)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def attach(self, ws: Any) -> None:
        """A client connected: it becomes the delivery target and is visible."""
        if self._ws is not None and self._ws is not ws:
            logger.info("replacing previously attached websocket")
        self._ws = ws
        await self.coordinator.on_visible()

    async def detach(self, ws: Any) -> None:
        """The client went away: start buffering."""
        if self._ws is not ws:
            return
        await self.coordinator.on_hidden()
        self._ws = None

    async def set_visible(self, visible: bool) -> None:
        if self._ws is None:
            return
        if visible:
            await self.coordinator.on_visible()
        else:
            await self.coordinator.on_hidden()

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def dispatch(self, message: dict[str, Any]) -> asyncio.Task[Any]:
        """Handle *message* in its own task so slow relays don't block others."""
        task = asyncio.create_task(self.coordinator.handle_inbound(message))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "inbound handler failed", exc_info=(type(exc), exc, exc.__traceback__)
            )

    async def shutdown(self) -> None:
        """Save a final snapshot.  Running relays are left to finish."""
        await self.coordinator.shutdown()
        self._ws = None
