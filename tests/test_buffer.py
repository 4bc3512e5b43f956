"""Tests for MessageBuffer: flowing vs held delivery and in-order replay."""

from __future__ import annotations

import asyncio

import pytest

from conftest import Recorder
from symposium_chat.core.buffer import MessageBuffer
from symposium_chat.core.events import ResponseChunk, ResponseComplete


def _chunks(n: int, tab: str = "t1", message_id: str = "m1") -> list[ResponseChunk]:
    return [ResponseChunk(tab, message_id, str(i)) for i in range(n)]


class TestFlowing:
    @pytest.mark.asyncio
    async def test_visible_delivers_immediately(self):
        rec = Recorder()
        buf = MessageBuffer(rec)
        await buf.send(ResponseChunk("t1", "m1", "hi"))
        assert rec.messages == [
            {"type": "response-chunk", "tabId": "t1", "messageId": "m1", "chunk": "hi"}
        ]
        assert len(buf) == 0

    @pytest.mark.asyncio
    async def test_hold_then_release_with_nothing_queued(self):
        rec = Recorder()
        buf = MessageBuffer(rec)
        buf.hold()
        await buf.release()
        assert rec.messages == []
        assert buf.visible is True


class TestHeld:
    @pytest.mark.asyncio
    async def test_hidden_queues_without_delivering(self):
        rec = Recorder()
        buf = MessageBuffer(rec, visible=False)
        for event in _chunks(3):
            await buf.send(event)
        assert rec.messages == []
        assert len(buf) == 3

    @pytest.mark.asyncio
    async def test_release_replays_in_order_and_clears(self):
        rec = Recorder()
        buf = MessageBuffer(rec, visible=False)
        events = _chunks(4) + [ResponseComplete("t1", "m1")]
        for event in events:
            await buf.send(event)

        await buf.release()

        assert rec.messages == [e.to_message() for e in events]
        assert len(buf) == 0
        assert buf.pending == []

    @pytest.mark.asyncio
    async def test_no_reordering_by_kind(self):
        rec = Recorder()
        buf = MessageBuffer(rec, visible=False)
        await buf.send(ResponseComplete("t2", "m9"))
        await buf.send(ResponseChunk("t1", "m1", "a"))
        await buf.release()
        assert rec.types == ["response-complete", "response-chunk"]

    @pytest.mark.asyncio
    async def test_flush_empty_buffer_is_noop(self):
        rec = Recorder()
        buf = MessageBuffer(rec)
        await buf.flush()
        await buf.flush()
        assert rec.messages == []

    @pytest.mark.asyncio
    async def test_second_release_delivers_nothing_new(self):
        rec = Recorder()
        buf = MessageBuffer(rec, visible=False)
        await buf.send(ResponseChunk("t1", "m1", "x"))
        await buf.release()
        await buf.release()
        assert len(rec.messages) == 1


class TestReplayOrdering:
    @pytest.mark.asyncio
    async def test_events_sent_during_replay_queue_behind_it(self):
        """A relay still running while the replay drains must not overtake it."""
        delivered: list[str] = []
        gate = asyncio.Event()
        buf: MessageBuffer

        async def slow_deliver(message):
            if message["chunk"] == "0":
                await gate.wait()
            delivered.append(message["chunk"])

        buf = MessageBuffer(slow_deliver, visible=False)
        await buf.send(ResponseChunk("t1", "m1", "0"))
        await buf.send(ResponseChunk("t1", "m1", "1"))

        replay = asyncio.create_task(buf.release())
        await asyncio.sleep(0)
        await buf.send(ResponseChunk("t1", "m1", "2"))
        gate.set()
        await replay

        assert delivered == ["0", "1", "2"]
        assert len(buf) == 0

    @pytest.mark.asyncio
    async def test_hidden_mid_replay_keeps_remainder(self):
        rec = Recorder()
        buf: MessageBuffer

        async def deliver_then_hide(message):
            await rec(message)
            buf.hold()

        buf = MessageBuffer(deliver_then_hide, visible=False)
        for event in _chunks(3):
            await buf.send(event)

        await buf.release()

        assert [m["chunk"] for m in rec.messages] == ["0"]
        assert [e.chunk for e in buf.pending] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_failed_delivery_keeps_event_at_front(self):
        calls = 0

        async def flaky(message):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise ConnectionError("socket closed")

        buf = MessageBuffer(flaky, visible=False)
        for event in _chunks(2):
            await buf.send(event)

        with pytest.raises(ConnectionError):
            await buf.release()
        assert [e.chunk for e in buf.pending] == ["0", "1"]


class TestClose:
    @pytest.mark.asyncio
    async def test_close_drops_queue_and_later_sends(self):
        rec = Recorder()
        buf = MessageBuffer(rec, visible=False)
        for event in _chunks(2):
            await buf.send(event)

        assert buf.close() == 2
        await buf.send(ResponseChunk("t1", "m1", "late"))
        await buf.release()

        assert rec.messages == []
        assert len(buf) == 0
