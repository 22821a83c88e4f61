"""Tests for tabby.reactive.broadcaster — non-blocking reload fan-out."""

import asyncio

import pytest

from tabby.observability import ReloadBroadcast, StackCollector
from tabby.reactive.broadcaster import Broadcaster, ReloadSession
from tabby.reactive.livereload import RELOAD_EVENT


class TestRegistry:
    def test_register(self) -> None:
        b = Broadcaster()
        session = b.register("c1")
        assert isinstance(session, ReloadSession)
        assert not session.closed
        assert b.session_count == 1
        assert b.get_session("c1") is session

    def test_reregister_replaces(self) -> None:
        b = Broadcaster()
        old = b.register("c1")
        new = b.register("c1")
        assert old.closed
        assert b.get_session("c1") is new
        assert b.session_count == 1

    def test_deregister_idempotent(self) -> None:
        b = Broadcaster()
        session = b.register("c1")
        b.deregister("c1")
        b.deregister("c1")
        assert session.closed
        assert b.session_count == 0

    def test_stale_session_cannot_evict_newer(self) -> None:
        b = Broadcaster()
        old = b.register("c1")
        new = b.register("c1")
        b.deregister("c1", old)
        assert b.get_session("c1") is new
        assert not new.closed


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_notifies_all(self) -> None:
        b = Broadcaster()
        sessions = [b.register(f"c{i}") for i in range(3)]
        assert b.broadcast() == 3
        for session in sessions:
            assert session.queue.get_nowait() == RELOAD_EVENT

    @pytest.mark.asyncio
    async def test_no_sessions(self) -> None:
        assert Broadcaster().broadcast() == 0

    @pytest.mark.asyncio
    async def test_full_session_dropped_others_notified(self) -> None:
        b = Broadcaster()
        stalled = b.register("stalled")
        healthy = b.register("healthy")
        b.broadcast()
        healthy.queue.get_nowait()

        assert b.broadcast() == 1

        assert stalled.closed
        assert b.get_session("stalled") is None
        assert b.get_session("healthy") is healthy
        assert healthy.queue.get_nowait() == RELOAD_EVENT

    @pytest.mark.asyncio
    async def test_closed_session_dropped(self) -> None:
        b = Broadcaster()
        session = b.register("c1")
        session.close()
        assert b.broadcast() == 0
        assert b.session_count == 0

    @pytest.mark.asyncio
    async def test_broadcast_records_event(self) -> None:
        collector = StackCollector()
        b = Broadcaster(collector)
        b.register("c1")
        b.broadcast(trigger_path="content/hello.md")

        (event,) = collector.log.query(event_type=ReloadBroadcast)
        assert event.clients_notified == 1
        assert event.clients_dropped == 0
        assert event.trigger_path == "content/hello.md"


class TestClientGenerator:
    @pytest.mark.asyncio
    async def test_dropped_session_still_gets_pending_reload(self) -> None:
        b = Broadcaster()
        session = b.register("c1")
        b.broadcast()
        b.broadcast()
        assert session.closed

        messages = [m async for m in b.client_generator(session)]

        assert messages == [RELOAD_EVENT]
        assert b.session_count == 0

    @pytest.mark.asyncio
    async def test_closed_empty_session_ends_immediately(self) -> None:
        b = Broadcaster()
        session = b.register("c1")
        b.deregister("c1")
        assert [m async for m in b.client_generator(session)] == []
    @pytest.mark.asyncio
    async def test_yields_reloads(self) -> None:
        b = Broadcaster()
        session = b.register("c1")
        gen = b.client_generator(session)

        b.broadcast()
        assert await asyncio.wait_for(gen.__anext__(), timeout=1) == RELOAD_EVENT

        b.broadcast()
        assert await asyncio.wait_for(gen.__anext__(), timeout=1) == RELOAD_EVENT
        await gen.aclose()

    @pytest.mark.asyncio
    async def test_close_deregisters(self) -> None:
        b = Broadcaster()
        session = b.register("c1")
        gen = b.client_generator(session)
        b.broadcast()
        await gen.__anext__()

        await gen.aclose()

        assert b.session_count == 0
        assert session.closed

    @pytest.mark.asyncio
    async def test_cancelled_stream_deregisters(self) -> None:
        b = Broadcaster()
        session = b.register("c1")

        async def consume() -> list[str]:
            return [m async for m in b.client_generator(session)]

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        task.cancel()
        result = await asyncio.gather(task, return_exceptions=True)

        assert result == [[]]
        assert b.session_count == 0

    @pytest.mark.asyncio
    async def test_slow_client_does_not_block(self) -> None:
        b = Broadcaster()
        b.register("slow")
        for _ in range(5):
            b.broadcast()
        assert b.session_count == 0
