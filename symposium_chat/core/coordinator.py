"""Session coordinator: the state machine between a chat surface and an agent.

One coordinator serves one rendering surface.  It owns the tab -> session
map and the outbound buffer, and is driven entirely from the outside:

* :meth:`SessionCoordinator.handle_inbound` for every message from the UI
* :meth:`SessionCoordinator.on_visible` / :meth:`SessionCoordinator.on_hidden`
  for visibility edges
* :meth:`SessionCoordinator.shutdown` when the surface goes away for good

Hosts spawn one task per inbound message, so handlers interleave at their
``await`` points.  Only events belonging to the same relay are ordered
relative to each other.
"""

from __future__ import annotations

from typing import Any

from .agent import AgentBackend
from .buffer import Deliver, MessageBuffer
from .constants import STATE_KEY, STATE_VERSION
from .errors import InvalidEventError, RelayError
from .events import (
    NewTab,
    Prompt,
    RequestSavedState,
    ResponseError,
    RestoreState,
    SaveState,
    parse_inbound,
)
from .log import logger
from .persistence.state import _UNSET, StatePersistence
from .persistence.store import KeyValueStore
from .relay import StreamRelay
from .results import (
    HandleResult,
    InvalidEvent,
    MissingMapping,
    RelayCompleted,
    RelayFailure,
    SaveResult,
    StateRestored,
    StateSaved,
    TabOpened,
)
from .sessions import TabSessionMap


class SessionCoordinator:
    """Maps tabs to agent sessions, relays responses and persists state."""

    def __init__(
        self,
        agent: AgentBackend,
        store: KeyValueStore,
        deliver: Deliver,
        *,
        visible: bool = True,
        state_key: str = STATE_KEY,
        state_version: int = STATE_VERSION,
    ) -> None:
        self.agent = agent
        self._deliver = deliver
        self._sessions = TabSessionMap()
        self.buffer = MessageBuffer(deliver, visible=visible)
        self.persistence = StatePersistence(
            store, agent, self._sessions, key=state_key, version=state_version
        )
        self._relay = StreamRelay(agent, self.buffer.send)
        self._closed = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def tabs(self) -> dict[str, str]:
        """Copy of the current tab -> session id map."""
        return self._sessions.as_dict()

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    async def handle_inbound(self, message: Any) -> HandleResult:
        """Handle one decoded message from the surface.

        Bad input never raises: malformed messages and messages that arrive
        after :meth:`shutdown` are logged and dropped as :class:`InvalidEvent`.
        Exceptions from the host's ``deliver`` callable do propagate.
        """
        if self._closed:
            logger.warning("coordinator is shut down; dropping inbound message")
            return InvalidEvent("coordinator is shut down")

        try:
            event = parse_inbound(message)
        except InvalidEventError as exc:
            logger.warning("dropping inbound message: %s", exc)
            return InvalidEvent(str(exc))

        if isinstance(event, NewTab):
            return await self._new_tab(event)
        if isinstance(event, Prompt):
            return await self._prompt(event)
        if isinstance(event, SaveState):
            return StateSaved(await self._persist(event.state))
        if isinstance(event, RequestSavedState):
            return await self._restore()
        raise AssertionError(f"unhandled event {event!r}")  # pragma: no cover

    async def _new_tab(self, event: NewTab) -> TabOpened:
        session_id = await self.agent.create_session()
        self._sessions.bind(event.tab, session_id)
        logger.info("created session %s for tab %s", session_id, event.tab)
        return TabOpened(event.tab, session_id, await self._persist())

    async def _prompt(self, event: Prompt) -> HandleResult:
        session_id = self._sessions.get(event.tab)
        if session_id is None:
            logger.warning(
                "no session for tab %s; dropping prompt %s", event.tab, event.message_id
            )
            return MissingMapping(event.tab, event.message_id)

        try:
            sent = await self._relay.run(
                event.tab, event.message_id, session_id, event.text
            )
        except RelayError as exc:
            cause = exc.__cause__ or exc
            logger.exception("response stream failed for tab %s", event.tab)
            await self.buffer.send(ResponseError(event.tab, event.message_id, str(cause)))
            await self._persist()
            return RelayFailure(event.tab, event.message_id, str(cause), exc.chunks_sent)

        return RelayCompleted(event.tab, event.message_id, sent, await self._persist())

    async def _restore(self) -> StateRestored:
        restored = await self.persistence.restore()
        # Sent directly: the surface only asks while it is initializing.
        await self._deliver(RestoreState(restored.ui_state).to_message())
        return StateRestored(restored)

    async def _persist(self, ui_state: Any = _UNSET) -> SaveResult:
        if self._closed:
            # A relay that outlived shutdown must not overwrite the final
            # snapshot with an emptied map.
            return SaveResult()
        return await self.persistence.save(ui_state)

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    async def on_hidden(self) -> SaveResult:
        """Start buffering and save a snapshot with refreshed session states."""
        self.buffer.hold()
        logger.debug("surface hidden; buffering outbound messages")
        return await self._persist()

    async def on_visible(self) -> None:
        """Replay everything buffered while hidden, in order.

        Does not resend ``restore-state``; restoring is driven only by the
        surface's ``request-saved-state``.
        """
        pending = len(self.buffer)
        if pending:
            logger.info("replaying %d buffered message(s)", pending)
        await self.buffer.release()

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def shutdown(self) -> SaveResult:
        """Save a final snapshot and release the map and buffer.

        Relays still running keep pulling their streams (there is no
        cancellation) but their events are dropped.
        """
        if self._closed:
            return SaveResult()

        self._closed = True
        saved = await self.persistence.save()
        dropped = self.buffer.close()
        if dropped:
            logger.warning("dropping %d undelivered message(s) at shutdown", dropped)
        self._sessions.clear()
        return saved
