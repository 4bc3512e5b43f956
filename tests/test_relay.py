"""Tests for StreamRelay: chunk events, the single complete event, failures."""

from __future__ import annotations

import pytest

from conftest import ScriptedAgent
from symposium_chat.core.errors import RelayError
from symposium_chat.core.events import ResponseChunk, ResponseComplete
from symposium_chat.core.relay import StreamRelay


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def relay(agent, emitted):
    async def emit(event):
        emitted.append(event)

    return StreamRelay(agent, emit)


class TestRelaySuccess:
    @pytest.mark.asyncio
    async def test_chunks_then_one_complete(self, agent, relay, emitted):
        sid = await agent.create_session()
        agent.script("Hel", "lo")

        sent = await relay.run("t1", "m1", sid, "hi")

        assert sent == 2
        assert emitted == [
            ResponseChunk("t1", "m1", "Hel"),
            ResponseChunk("t1", "m1", "lo"),
            ResponseComplete("t1", "m1"),
        ]
        assert agent.prompts == [(sid, "hi")]

    @pytest.mark.asyncio
    async def test_empty_stream_still_completes(self, agent, relay, emitted):
        sid = await agent.create_session()
        agent.script()

        assert await relay.run("t1", "m1", sid, "quiet") == 0
        assert emitted == [ResponseComplete("t1", "m1")]

    @pytest.mark.asyncio
    async def test_no_cap_on_chunk_count(self, agent, relay, emitted):
        sid = await agent.create_session()
        agent.script(*[f"c{i}" for i in range(500)])

        assert await relay.run("t1", "m1", sid, "long") == 500
        assert [e.chunk for e in emitted[:-1]] == [f"c{i}" for i in range(500)]
        assert emitted[-1] == ResponseComplete("t1", "m1")


class TestRelayFailure:
    @pytest.mark.asyncio
    async def test_failure_mid_stream_raises_relay_error(self, agent, relay, emitted):
        sid = await agent.create_session()
        agent.script("a", "b", RuntimeError("model fell over"))

        with pytest.raises(RelayError) as exc_info:
            await relay.run("t1", "m1", sid, "hi")

        err = exc_info.value
        assert err.tab == "t1"
        assert err.message_id == "m1"
        assert err.chunks_sent == 2
        assert isinstance(err.__cause__, RuntimeError)
        assert all(isinstance(e, ResponseChunk) for e in emitted)
        assert len(emitted) == 2

    @pytest.mark.asyncio
    async def test_failure_when_starting_stream(self, emitted):
        class BrokenAgent(ScriptedAgent):
            def process_prompt(self, session_id, text):
                raise ValueError("no stream for you")

        async def emit(event):
            emitted.append(event)

        relay = StreamRelay(BrokenAgent(), emit)
        with pytest.raises(RelayError) as exc_info:
            await relay.run("t1", "m1", "s1", "hi")

        assert exc_info.value.chunks_sent == 0
        assert emitted == []

    @pytest.mark.asyncio
    async def test_emit_failure_is_not_wrapped(self, agent):
        sid = await agent.create_session()
        agent.script("a", "b")

        async def emit(event):
            raise ConnectionError("surface gone")

        relay = StreamRelay(agent, emit)
        with pytest.raises(ConnectionError):
            await relay.run("t1", "m1", sid, "hi")
