"""Agent backend contract and the built-in echo backend.

The coordinator only ever talks to an :class:`AgentBackend`.  Session ids
and session state are opaque to it: it stores and forwards them without
looking inside.
"""

from __future__ import annotations

import asyncio
import copy
import importlib
import uuid
from collections.abc import AsyncIterator
from typing import Any, Protocol, runtime_checkable

from .errors import AgentLoadError, UnknownSessionError
from .log import logger


@runtime_checkable
class AgentBackend(Protocol):
    """What the coordinator needs from a conversational agent."""

    async def create_session(self) -> str:
        """Mint a new session and return its id."""
        ...

    def process_prompt(self, session_id: str, text: str) -> AsyncIterator[str]:
        """Return a one-shot async iterator of response chunks."""
        ...

    async def get_session_state(self, session_id: str) -> Any:
        """Return the session's opaque state; raise UnknownSessionError if unknown."""
        ...

    async def resume_session(self, session_id: str, state: Any) -> None:
        """Rebuild a session from a previously reported state."""
        ...


class EchoAgent:
    """Reference backend that streams back a reply word by word.

    Each session's state is ``{"history": [{"prompt": ..., "reply": ...}]}``.
    A turn is only recorded once its stream has been fully consumed.
    """

    def __init__(self, chunk_delay: float = 0.0) -> None:
        self.chunk_delay = chunk_delay
        self._sessions: dict[str, list[dict[str, str]]] = {}

    @property
    def session_ids(self) -> list[str]:
        return list(self._sessions)

    async def create_session(self) -> str:
        session_id = str(uuid.uuid4())
        self._sessions[session_id] = []
        logger.debug("echo agent created session %s", session_id)
        return session_id

    def _history(self, session_id: str) -> list[dict[str, str]]:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise UnknownSessionError(session_id) from None

    def _reply_for(self, history: list[dict[str, str]], text: str) -> str:
        turn = len(history) + 1
        return f"[turn {turn}] You said: {text}"

    async def process_prompt(self, session_id: str, text: str) -> AsyncIterator[str]:
        history = self._history(session_id)
        reply = self._reply_for(history, text)
        words = reply.split(" ")
        for i, word in enumerate(words):
            if self.chunk_delay:
                await asyncio.sleep(self.chunk_delay)
            yield word if i == len(words) - 1 else word + " "
        history.append({"prompt": text, "reply": reply})

    async def get_session_state(self, session_id: str) -> dict[str, Any]:
        return {"history": copy.deepcopy(self._history(session_id))}

    async def resume_session(self, session_id: str, state: Any) -> None:
        turns = state.get("history", []) if isinstance(state, dict) else []
        # Replace in place so a stream already running on this session
        # records its turn in the list that is read back on save.
        history = self._sessions.setdefault(session_id, [])
        history[:] = copy.deepcopy(list(turns))
        logger.debug(
            "echo agent resumed session %s with %d turn(s)", session_id, len(turns)
        )


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

_BUILTIN_AGENTS = {
    "echo": EchoAgent,
}


def load_agent(name: str, **options: Any) -> AgentBackend:
    """Resolve an agent backend by name.

    *name* is either a built-in (``"echo"``) or an import path of the form
    ``"package.module:factory"``.  *options* are passed to the factory.
    """
    factory = _BUILTIN_AGENTS.get(name)
    if factory is None:
        module_name, sep, attr = name.partition(":")
        if not sep or not module_name or not attr:
            raise AgentLoadError(
                f"unknown agent {name!r} (expected one of "
                f"{sorted(_BUILTIN_AGENTS)} or 'package.module:factory')"
            )
        try:
            module = importlib.import_module(module_name)
            factory = getattr(module, attr)
        except (ImportError, AttributeError) as exc:
            raise AgentLoadError(f"cannot import agent {name!r}: {exc}") from exc

    try:
        agent = factory(**options)
    except TypeError as exc:
        raise AgentLoadError(f"cannot construct agent {name!r}: {exc}") from exc

    if not isinstance(agent, AgentBackend):
        raise AgentLoadError(f"{name!r} did not produce an agent backend")
    return agent
