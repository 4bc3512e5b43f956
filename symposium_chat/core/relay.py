"""Relay one agent response stream to the surface as ordered events."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from .agent import AgentBackend
from .errors import RelayError
from .events import OutboundEvent, ResponseChunk, ResponseComplete
from .log import logger

Emit = Callable[[OutboundEvent], Awaitable[None]]


class StreamRelay:
    """Turns ``agent.process_prompt`` into chunk events plus one complete event.

    The agent's iterator is pulled exactly once, to exhaustion.  Each chunk
    becomes one ``response-chunk``; ``response-complete`` follows only after
    the iterator is exhausted.  If pulling fails, :class:`RelayError` is
    raised and no complete event is emitted.
    """

    def __init__(self, agent: AgentBackend, emit: Emit) -> None:
        self.agent = agent
        self.emit = emit

    async def run(self, tab: str, message_id: str, session_id: str, text: str) -> int:
        """Relay one prompt and return the number of chunks emitted."""
        sent = 0
        try:
            iterator = self.agent.process_prompt(session_id, text).__aiter__()
        except Exception as exc:
            raise RelayError(tab, message_id, sent) from exc

        try:
            while True:
                try:
                    chunk = await iterator.__anext__()
                except StopAsyncIteration:
                    break
                except Exception as exc:
                    raise RelayError(tab, message_id, sent) from exc
                await self.emit(ResponseChunk(tab, message_id, chunk))
                sent += 1
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

        await self.emit(ResponseComplete(tab, message_id))
        logger.debug("relay %s on tab %s finished with %d chunk(s)", message_id, tab, sent)
        return sent
