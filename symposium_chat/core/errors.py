"""Exception types raised by the coordinator core."""

from __future__ import annotations


class SymposiumError(Exception):
    """Base class for symposium-chat errors."""


class InvalidEventError(SymposiumError):
    """An inbound message could not be parsed into a known event."""


class UnknownSessionError(SymposiumError, KeyError):
    """The agent backend has no session with the given id."""

    def __init__(self, session_id: str) -> None:
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"unknown session: {self.session_id}"


class AgentLoadError(SymposiumError):
    """An agent backend could not be resolved from its configured name."""


class RelayError(SymposiumError):
    """Pulling the agent's chunk sequence failed part-way through a relay.

    ``chunks_sent`` counts the chunk events emitted before the failure.
    The original exception is chained as ``__cause__``.
    """

    def __init__(self, tab: str, message_id: str, chunks_sent: int) -> None:
        super().__init__(
            f"relay {message_id} on tab {tab} failed after {chunks_sent} chunk(s)"
        )
        self.tab = tab
        self.message_id = message_id
        self.chunks_sent = chunks_sent
