"""Shared test fixtures for the symposium-chat test suite."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from symposium_chat.core.coordinator import SessionCoordinator
from symposium_chat.core.errors import UnknownSessionError
from symposium_chat.core.persistence import MemoryStore


class ScriptedAgent:
    """Agent double whose responses are queued up front.

    Each queued script is a list consumed by one ``process_prompt`` call:
    strings are yielded as chunks, exceptions are raised, and
    ``asyncio.Event`` entries are awaited (to hold a relay mid-stream).
    Session ids are ``s1``, ``s2``, ... unless given explicitly.
    """

    def __init__(self, session_ids: list[str] | None = None) -> None:
        self._ids = list(session_ids or [])
        self._counter = 0
        self.scripts: list[list[Any]] = []
        self.states: dict[str, Any] = {}
        self.unreadable: set[str] = set()
        self.resumed: list[tuple[str, Any]] = []
        self.prompts: list[tuple[str, str]] = []

    def script(self, *chunks: Any) -> None:
        self.scripts.append(list(chunks))

    async def create_session(self) -> str:
        self._counter += 1
        session_id = self._ids.pop(0) if self._ids else f"s{self._counter}"
        self.states[session_id] = {"turns": 0}
        return session_id

    async def process_prompt(self, session_id: str, text: str):
        self.prompts.append((session_id, text))
        script = self.scripts.pop(0) if self.scripts else []
        for item in script:
            if isinstance(item, BaseException):
                raise item
            if isinstance(item, asyncio.Event):
                await item.wait()
                continue
            yield item
        self.states[session_id] = {"turns": self.states[session_id]["turns"] + 1}

    async def get_session_state(self, session_id: str) -> Any:
        if session_id in self.unreadable or session_id not in self.states:
            raise UnknownSessionError(session_id)
        return dict(self.states[session_id])

    async def resume_session(self, session_id: str, state: Any) -> None:
        self.resumed.append((session_id, state))
        self.states[session_id] = state


class Recorder:
    """Collects delivered surface messages in order."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def types(self) -> list[str]:
        return [m["type"] for m in self.messages]

    def clear(self) -> None:
        self.messages.clear()


@pytest.fixture
def agent() -> ScriptedAgent:
    return ScriptedAgent()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def coordinator(agent, store, recorder) -> SessionCoordinator:
    """A visible coordinator wired to the scripted agent and in-memory store."""
    return SessionCoordinator(agent, store, recorder)


# -- message helpers ----------------------------------------------------------


def chunk(tab: str, message_id: str, text: str) -> dict[str, Any]:
    return {
        "type": "response-chunk",
        "tabId": tab,
        "messageId": message_id,
        "chunk": text,
    }


def complete(tab: str, message_id: str) -> dict[str, Any]:
    return {"type": "response-complete", "tabId": tab, "messageId": message_id}


def new_tab(tab: str) -> dict[str, Any]:
    return {"type": "new-tab", "tabId": tab}


def prompt(tab: str, message_id: str, text: str) -> dict[str, Any]:
    return {"type": "prompt", "tabId": tab, "messageId": message_id, "prompt": text}
