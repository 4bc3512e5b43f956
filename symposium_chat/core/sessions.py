"""Tab to session mapping owned by one coordinator."""

from __future__ import annotations

from collections.abc import Iterator

from .log import logger


class TabSessionMap:
    """Maps each tab to exactly one agent session id.

    Binding a tab again replaces its previous session.  Entries are never
    removed while the coordinator runs; there is no close-tab event.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, str] = {}

    def bind(self, tab: str, session_id: str) -> None:
        for other_tab, other_session in self._sessions.items():
            if other_session == session_id and other_tab != tab:
                logger.warning(
                    "session %s is already bound to tab %s; binding to %s too",
                    session_id,
                    other_tab,
                    tab,
                )
                break
        previous = self._sessions.get(tab)
        if previous is not None and previous != session_id:
            logger.debug("tab %s rebound from %s to %s", tab, previous, session_id)
        self._sessions[tab] = session_id

    def get(self, tab: str) -> str | None:
        return self._sessions.get(tab)

    def items(self) -> list[tuple[str, str]]:
        """Snapshot of the current bindings, safe to iterate across awaits."""
        return list(self._sessions.items())

    def as_dict(self) -> dict[str, str]:
        return dict(self._sessions)

    def clear(self) -> None:
        self._sessions.clear()

    def __contains__(self, tab: object) -> bool:
        return tab in self._sessions

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sessions))

    def __len__(self) -> int:
        return len(self._sessions)
