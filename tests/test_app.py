"""Tests for tabby.app — entry points and Chirp wiring."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tabby.app import (
    STATS_ENDPOINT,
    _create_chirp_app,
    _make_livereload_handler,
    _mount_static_files,
    _register_livereload_endpoint,
    _register_stats_endpoint,
    _reload_events,
    _start_watcher,
    build,
)
from tabby.config import TabbyConfig
from tabby.observability import StackCollector
from tabby.reactive.broadcaster import Broadcaster
from tabby.reactive.livereload import RELOAD_EVENT


class TestBuildEntryPoint:
    """build() — load config, open cache, run one pass."""

    def test_build_writes_pages(self, tmp_site: Path) -> None:
        report = build(tmp_site)
        assert report.ok
        assert (tmp_site / "public" / "hello.html").is_file()
        assert (tmp_site / ".tabby" / "cache.json").is_file()

    def test_second_build_writes_nothing(self, tmp_site: Path) -> None:
        build(tmp_site)
        report = build(tmp_site)
        assert report.written == ()

    def test_force(self, tmp_site: Path) -> None:
        build(tmp_site)
        assert len(build(tmp_site, force=True).written) == 2

    def test_output_override(self, tmp_site: Path) -> None:
        build(tmp_site, output="dist")
        assert (tmp_site / "dist" / "hello.html").is_file()

    def test_config_file_respected(self, tmp_site: Path) -> None:
        (tmp_site / "tabby.yaml").write_text("live_reload: false\n")
        build(tmp_site)
        html = (tmp_site / "public" / "hello.html").read_text()
        assert "data-tabby-livereload" not in html


class TestChirpWiring:
    """Route and hook registration on the Chirp app."""

    def test_host_and_port_from_config(self, tmp_site: Path) -> None:
        app = _create_chirp_app(TabbyConfig(root=tmp_site, host="0.0.0.0", port=4000))
        assert app.config.host == "0.0.0.0"
        assert app.config.port == 4000

    def test_registers_livereload_route(self, config: TabbyConfig) -> None:
        app = _create_chirp_app(config)
        _register_livereload_endpoint(app, Broadcaster())
        route_names = [r.name for r in app._pending_routes if hasattr(r, "name")]
        assert "tabby:livereload" in route_names

    def test_registers_stats_route(self, config: TabbyConfig) -> None:
        app = _create_chirp_app(config)
        _register_stats_endpoint(app, StackCollector())
        route_names = [r.name for r in app._pending_routes if hasattr(r, "name")]
        assert "tabby:stats" in route_names

    def test_mount_creates_output_dir(self, config: TabbyConfig) -> None:
        app = _create_chirp_app(config)
        _mount_static_files(app, config)
        assert config.output_path.is_dir()

    def test_registers_startup_and_shutdown_hooks(self, config: TabbyConfig) -> None:
        app = _create_chirp_app(config)
        hooks_before = len(app._startup_hooks)
        shutdown_before = len(app._shutdown_hooks)

        _start_watcher(app, config, MagicMock(), Broadcaster(), StackCollector())

        assert len(app._startup_hooks) == hooks_before + 1
        assert len(app._shutdown_hooks) == shutdown_before + 1

    @pytest.mark.asyncio
    async def test_startup_and_shutdown_hooks(self, config: TabbyConfig) -> None:
        app = _create_chirp_app(config)
        builder = MagicMock()
        watcher = _start_watcher(app, config, builder, Broadcaster(), StackCollector())

        await app._startup_hooks[-1]()
        await asyncio.sleep(0)
        await app._shutdown_hooks[-1]()
        await asyncio.sleep(0)

        assert watcher.builds == 0
        builder.build.assert_not_called()


class TestStatsEndpoint:
    @pytest.mark.asyncio
    async def test_stats_reachable(self, config: TabbyConfig) -> None:
        from chirp.testing.client import TestClient

        collector = StackCollector()
        collector.record_build(total=2, changed=1, written=1)
        app = _create_chirp_app(config)
        _register_stats_endpoint(app, collector)

        async with TestClient(app) as client:
            response = await client.get(STATS_ENDPOINT)
            assert response.status == 200
            body = response.body.decode() if isinstance(response.body, bytes) else response.body
            payload = json.loads(body)
            assert payload["event_log"]["by_type"] == {"BuildCompleted": 1}
            assert payload["event_log"]["last_build"]["written"] == 1


class TestLivereloadEndpoint:
    """The /_livereload stream — sessions and reload events."""

    @pytest.mark.asyncio
    async def test_handler_opens_session(self) -> None:
        from chirp import EventStream

        broadcaster = Broadcaster()
        handler = _make_livereload_handler(broadcaster)

        response = await handler(MagicMock())

        assert isinstance(response, EventStream)
        assert broadcaster.session_count == 1

    @pytest.mark.asyncio
    async def test_each_connection_gets_own_session(self) -> None:
        broadcaster = Broadcaster()
        handler = _make_livereload_handler(broadcaster)
        await handler(MagicMock())
        await handler(MagicMock())
        assert broadcaster.session_count == 2

    @pytest.mark.asyncio
    async def test_broadcast_reaches_stream(self) -> None:
        broadcaster = Broadcaster()
        session = broadcaster.register("browser")
        stream = _reload_events(broadcaster, session)

        assert broadcaster.broadcast() == 1
        event = await asyncio.wait_for(stream.__anext__(), timeout=1)

        assert event.event == RELOAD_EVENT
        assert event.data == RELOAD_EVENT
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_disconnect_deregisters(self) -> None:
        broadcaster = Broadcaster()
        session = broadcaster.register("browser")
        stream = _reload_events(broadcaster, session)

        async def consume() -> None:
            async for _ in stream:
                pass

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        assert broadcaster.session_count == 1

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        assert broadcaster.session_count == 0
        assert session.closed
