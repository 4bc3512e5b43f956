"""Inbound and outbound surface events.

The surface speaks JSON objects with a ``type`` discriminator.  Inbound
messages are parsed into the frozen dataclasses below; outbound events
serialize back with :meth:`to_message`.  ``state`` payloads are opaque
blobs and are passed through untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from . import constants as c
from .errors import InvalidEventError

# Opaque, JSON-serializable value owned by the UI or the agent.
Blob = Any


# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NewTab:
    tab: str


@dataclass(frozen=True)
class Prompt:
    tab: str
    message_id: str
    text: str


@dataclass(frozen=True)
class SaveState:
    state: Blob


@dataclass(frozen=True)
class RequestSavedState:
    pass


InboundEvent = Union[NewTab, Prompt, SaveState, RequestSavedState]


def _require_str(message: dict[str, Any], key: str) -> str:
    value = message.get(key)
    if not isinstance(value, str):
        raise InvalidEventError(
            f"{message.get('type')!r} event needs a string {key!r}"
        )
    return value


def parse_inbound(message: Any) -> InboundEvent:
    """Turn a decoded JSON message into an inbound event.

    Raises :class:`InvalidEventError` for anything that is not a mapping,
    has an unknown ``type``, or lacks a required string field.
    """
    if not isinstance(message, dict):
        raise InvalidEventError(f"expected a JSON object, got {type(message).__name__}")

    kind = message.get("type")
    if kind == c.NEW_TAB:
        return NewTab(tab=_require_str(message, "tabId"))
    if kind == c.PROMPT:
        return Prompt(
            tab=_require_str(message, "tabId"),
            message_id=_require_str(message, "messageId"),
            text=_require_str(message, "prompt"),
        )
    if kind == c.SAVE_STATE:
        return SaveState(state=message.get("state"))
    if kind == c.REQUEST_SAVED_STATE:
        return RequestSavedState()
    raise InvalidEventError(f"unknown event type: {kind!r}")


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResponseChunk:
    tab: str
    message_id: str
    chunk: str

    def to_message(self) -> dict[str, Any]:
        return {
            "type": c.RESPONSE_CHUNK,
            "tabId": self.tab,
            "messageId": self.message_id,
            "chunk": self.chunk,
        }


@dataclass(frozen=True)
class ResponseComplete:
    tab: str
    message_id: str

    def to_message(self) -> dict[str, Any]:
        return {
            "type": c.RESPONSE_COMPLETE,
            "tabId": self.tab,
            "messageId": self.message_id,
        }


@dataclass(frozen=True)
class ResponseError:
    """Sent in place of ``response-complete`` when a relay fails."""

    tab: str
    message_id: str
    error: str

    def to_message(self) -> dict[str, Any]:
        return {
            "type": c.RESPONSE_ERROR,
            "tabId": self.tab,
            "messageId": self.message_id,
            "error": self.error,
        }


@dataclass(frozen=True)
class RestoreState:
    state: Blob = None

    def to_message(self) -> dict[str, Any]:
        return {"type": c.RESTORE_STATE, "state": self.state}


OutboundEvent = Union[ResponseChunk, ResponseComplete, ResponseError, RestoreState]
