"""Versioned snapshot of UI state and every tab's agent session.

The snapshot lives under a single key::

    {
      "version": 1,
      "uiState": <opaque, omitted when absent>,
      "sessions": {"<tab>": {"sessionId": "...", "state": <opaque>}}
    }

A snapshot stored under any other ``version`` is deleted on restore and
treated as if nothing had been saved.  There is no upgrade path.
"""

from __future__ import annotations

from typing import Any

from ..agent import AgentBackend
from ..constants import STATE_KEY, STATE_VERSION
from ..log import logger
from ..results import (
    NoState,
    Restored,
    RestoreResult,
    ResumeFailure,
    SaveResult,
    StateReadFailure,
    VersionMismatch,
)
from ..sessions import TabSessionMap
from .store import KeyValueStore

_UNSET: Any = object()


class StatePersistence:
    """Saves and restores the combined snapshot for one coordinator."""

    def __init__(
        self,
        store: KeyValueStore,
        agent: AgentBackend,
        sessions: TabSessionMap,
        *,
        key: str = STATE_KEY,
        version: int = STATE_VERSION,
    ) -> None:
        self.store = store
        self.agent = agent
        self.sessions = sessions
        self.key = key
        self.version = version

    async def inspect(self) -> Any:
        """Return the stored snapshot exactly as persisted (or ``None``)."""
        return await self.store.get(self.key)

    def _current(self, found: Any) -> bool:
        # bool and float compare equal to int; only an exact int matches
        return type(found) is int and found == self.version

    async def _stored_ui_state(self) -> Any:
        snapshot = await self.store.get(self.key)
        if isinstance(snapshot, dict) and self._current(snapshot.get("version")):
            return snapshot.get("uiState")
        return None

    async def save(self, ui_state: Any = _UNSET) -> SaveResult:
        """Write a fresh snapshot.

        Without *ui_state* the stored UI blob is carried forward, so hosts
        can save on hide without knowing what the UI last sent.  Every
        tracked session's state is re-read from the agent; a session whose
        state cannot be read is left out and reported in the result.
        """
        if ui_state is _UNSET:
            ui_state = await self._stored_ui_state()

        records: dict[str, dict[str, Any]] = {}
        failures: list[StateReadFailure] = []
        for tab, session_id in self.sessions.items():
            try:
                state = await self.agent.get_session_state(session_id)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "could not read state of session %s (tab %s); omitting it: %s",
                    session_id,
                    tab,
                    exc,
                )
                failures.append(StateReadFailure(tab, session_id, str(exc)))
                continue
            records[tab] = {"sessionId": session_id, "state": state}

        snapshot: dict[str, Any] = {"version": self.version, "sessions": records}
        if ui_state is not None:
            snapshot["uiState"] = ui_state

        await self.store.update(self.key, snapshot)
        logger.debug(
            "saved snapshot v%d with %d session(s), %d failure(s)",
            self.version,
            len(records),
            len(failures),
        )
        return SaveResult(saved_tabs=tuple(records), failures=tuple(failures))

    async def restore(self) -> RestoreResult:
        """Re-establish tab bindings and resume sessions from the snapshot.

        Tabs already bound in this process keep their live session and are
        not resumed again.  Returns the stored UI blob inside the result for
        the caller to forward to the surface.
        """
        snapshot = await self.store.get(self.key)
        if not isinstance(snapshot, dict):
            if snapshot is not None:
                logger.warning("stored snapshot is not an object; ignoring it")
            return NoState()

        found = snapshot.get("version")
        if not self._current(found):
            logger.warning(
                "discarding stored snapshot: version %r, expected %d",
                found,
                self.version,
            )
            await self.store.delete(self.key)
            return VersionMismatch(found=found, expected=self.version)

        records = snapshot.get("sessions")
        if not isinstance(records, dict):
            records = {}

        tabs: list[str] = []
        failures: list[ResumeFailure] = []
        for tab, record in records.items():
            session_id = record.get("sessionId") if isinstance(record, dict) else None
            if not isinstance(session_id, str):
                logger.warning("skipping malformed session record for tab %s", tab)
                failures.append(ResumeFailure(tab, None, "malformed session record"))
                continue
            live = self.sessions.get(tab)
            if live is not None:
                # The live session is newer than anything on disk.
                if live != session_id:
                    logger.info(
                        "tab %s is live on session %s; ignoring stored %s",
                        tab,
                        live,
                        session_id,
                    )
                tabs.append(tab)
                continue
            try:
                await self.agent.resume_session(session_id, record.get("state"))
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "could not resume session %s for tab %s: %s", session_id, tab, exc
                )
                failures.append(ResumeFailure(tab, session_id, str(exc)))
                continue
            self.sessions.bind(tab, session_id)
            tabs.append(tab)

        logger.info("restored %d tab(s) from snapshot", len(tabs))
        return Restored(
            ui_state=snapshot.get("uiState"),
            tabs=tuple(tabs),
            failures=tuple(failures),
        )
