"""Typed outcomes for coordinator operations.

Failures the coordinator logs and continues past are reported as values
rather than exceptions, so a host can decide to surface some of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


# -- failure classes ----------------------------------------------------------


@dataclass(frozen=True)
class MissingMapping:
    """A prompt arrived for a tab with no session."""

    tab: str
    message_id: str


@dataclass(frozen=True)
class StateReadFailure:
    """The agent could not report one session's state during a save."""

    tab: str
    session_id: str
    error: str


@dataclass(frozen=True)
class ResumeFailure:
    """A persisted session record could not be resumed."""

    tab: str
    session_id: str | None
    error: str


@dataclass(frozen=True)
class RelayFailure:
    """The agent's chunk stream failed part-way through a prompt."""

    tab: str
    message_id: str
    error: str
    chunks_sent: int = 0


@dataclass(frozen=True)
class InvalidEvent:
    """An inbound message was malformed or arrived after shutdown."""

    reason: str


# -- persistence --------------------------------------------------------------


@dataclass(frozen=True)
class SaveResult:
    saved_tabs: tuple[str, ...] = ()
    failures: tuple[StateReadFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class NoState:
    """Nothing was stored."""

    ui_state: Any = None


@dataclass(frozen=True)
class VersionMismatch:
    """A snapshot was stored under another format version and was discarded.

    Callers treat this exactly like :class:`NoState`.
    """

    found: Any
    expected: int
    ui_state: Any = None


@dataclass(frozen=True)
class Restored:
    ui_state: Any = None
    tabs: tuple[str, ...] = ()
    failures: tuple[ResumeFailure, ...] = ()


RestoreResult = Union[NoState, VersionMismatch, Restored]


# -- coordinator ---------------------------------------------------------------


@dataclass(frozen=True)
class TabOpened:
    tab: str
    session_id: str
    saved: SaveResult


@dataclass(frozen=True)
class RelayCompleted:
    tab: str
    message_id: str
    chunks_sent: int
    saved: SaveResult


@dataclass(frozen=True)
class StateSaved:
    saved: SaveResult


@dataclass(frozen=True)
class StateRestored:
    restored: RestoreResult


HandleResult = Union[
    TabOpened,
    RelayCompleted,
    RelayFailure,
    MissingMapping,
    StateSaved,
    StateRestored,
    InvalidEvent,
]
