"""Tabby application — incremental builds plus a live-reload dev server.

The two public functions (build, serve) are the primary entry points.
``serve`` wires the builder, the watcher and the broadcaster into a Chirp
app that serves the generated output.
"""

from __future__ import annotations

import sys
import time
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tabby.config import TabbyConfig
from tabby.config_loader import load_config
from tabby.export.builder import BuildReport, SiteBuilder
from tabby.export.cache import BuildCache

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from chirp import App, Request

    from tabby.content.watcher import RebuildWatcher
    from tabby.observability.collector import StackCollector
    from tabby.reactive.broadcaster import Broadcaster, ReloadSession


# Read-only JSON view of the event log
STATS_ENDPOINT = "/_tabby/stats"


def _open_cache(config: TabbyConfig) -> BuildCache:
    """Create the change-detection cache and load its side-car file."""
    cache = BuildCache(
        config.cache_path,
        strategy=config.fingerprint,  # type: ignore[arg-type]
        base=config.content_path,
    )
    cache.load()
    return cache


def _create_chirp_app(config: TabbyConfig) -> App:
    """Create a Chirp App for the dev server."""
    from chirp import App, AppConfig

    app_config = AppConfig(
        debug=True,
        host=config.host,
        port=config.port,
    )
    return App(config=app_config)


async def _reload_events(broadcaster: Broadcaster, session: ReloadSession) -> AsyncIterator[Any]:
    """SSE events for one live-reload connection.

    One ``reload`` event per notification.  The session is deregistered
    when the stream ends or the client disconnects.

    """
    from chirp import SSEEvent

    from tabby.reactive.livereload import RELOAD_EVENT

    try:
        async for message in broadcaster.client_generator(session):
            yield SSEEvent(data=message, event=RELOAD_EVENT)
    finally:
        broadcaster.deregister(session.client_id, session)


def _make_livereload_handler(broadcaster: Broadcaster) -> Callable[[Request], Awaitable[Any]]:
    """Build the ``/_livereload`` handler; each request opens a fresh session."""
    from chirp import EventStream

    async def livereload_handler(request: Request) -> Any:
        session = broadcaster.register(str(uuid.uuid4()))
        return EventStream(_reload_events(broadcaster, session))

    livereload_handler.__name__ = "tabby_livereload"
    livereload_handler.__qualname__ = "tabby_livereload"
    return livereload_handler


def _register_livereload_endpoint(app: App, broadcaster: Broadcaster) -> None:
    """Register the ``/_livereload`` SSE endpoint."""
    from tabby.reactive.livereload import LIVERELOAD_ENDPOINT

    livereload_handler = _make_livereload_handler(broadcaster)

    app.route(LIVERELOAD_ENDPOINT, name="tabby:livereload")(livereload_handler)


def _register_stats_endpoint(app: App, collector: StackCollector) -> None:
    """Register the ``/_tabby/stats`` JSON endpoint."""
    import json

    async def stats_handler(request: Request) -> Any:
        from chirp.http.response import Response

        payload = json.dumps({"event_log": collector.log.stats()}, indent=2)
        return Response(
            body=payload,
            status=200,
            content_type="application/json",
        )

    stats_handler.__name__ = "tabby_stats"
    stats_handler.__qualname__ = "tabby_stats"

    app.route(STATS_ENDPOINT, name="tabby:stats")(stats_handler)


def _mount_static_files(app: App, config: TabbyConfig) -> None:
    """Serve the generated output at the site root, uncached."""
    from chirp.middleware import StaticFiles

    output = config.output_path
    output.mkdir(parents=True, exist_ok=True)
    app.add_middleware(StaticFiles(directory=output, prefix="/", cache_control="no-cache"))


def _start_watcher(
    app: App,
    config: TabbyConfig,
    builder: SiteBuilder,
    broadcaster: Broadcaster,
    collector: StackCollector,
) -> RebuildWatcher:
    """Wire the RebuildWatcher to the builder via Chirp lifecycle hooks.

    Flow:
        on_startup  → spawn the watcher task (runs ``awatch`` internally)
        file change → build in a worker thread → broadcaster.broadcast()
        on_shutdown → stop the watch and cancel the task

    """
    import asyncio

    from tabby.content.watcher import RebuildWatcher

    def _rebuild() -> BuildReport:
        report = builder.build()
        _print_build_summary(report)
        return report

    watcher = RebuildWatcher(
        config.content_path,
        build=_rebuild,
        notify=broadcaster.broadcast,
        extension=config.extension,
        force_polling=config.force_polling,
        collector=collector,
    )
    _task: asyncio.Task[None] | None = None

    @app.on_startup
    async def _start_rebuild_watcher() -> None:
        nonlocal _task

        async def _watch() -> None:
            try:
                await watcher.run()
            except Exception as exc:
                print(f"  Watcher stopped: {exc}", file=sys.stderr)

        _task = asyncio.create_task(_watch())

    @app.on_shutdown
    async def _stop_rebuild_watcher() -> None:
        watcher.stop()
        if _task is not None and not _task.done():
            _task.cancel()

    return watcher


def _print_build_summary(report: BuildReport, config: TabbyConfig | None = None) -> None:
    """Print build completion summary to stderr."""
    written = len(report.written)
    lines = [f"  Wrote {written} page{'s' if written != 1 else ''}"]
    if report.skipped_drafts:
        lines.append(f"  Skipped {len(report.skipped_drafts)} draft(s)")
    if report.failures:
        lines.append(f"  {len(report.failures)} file(s) failed:")
        lines.extend(f"    {f.path.name}: {f.reason}" for f in report.failures)
    if config is not None:
        lines.append(f"  Output: {config.output_path}")
    lines.append(f"  Done in {report.duration_ms:.0f}ms")
    print("\n".join(lines), file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def build(root: str | Path = ".", *, force: bool = False, **kwargs: object) -> BuildReport:
    """Build changed content files into HTML.

    Args:
        root: Path to the site root directory.
        force: Ignore the change-detection cache and rebuild everything.
        **kwargs: Override TabbyConfig fields.

    Returns:
        The BuildReport of the pass.

    """
    from tabby.banner import print_banner

    config = load_config(Path(root), **kwargs)
    t0 = time.perf_counter()

    cache = _open_cache(config)
    builder = SiteBuilder(config, cache)
    load_ms = (time.perf_counter() - t0) * 1000

    print_banner(config, len(cache), mode="build", load_ms=load_ms)

    report = builder.build(force=force)
    _print_build_summary(report, config)
    return report


def serve(root: str | Path = ".", **kwargs: object) -> None:
    """Build once, then watch content and serve the output with live reload.

    Args:
        root: Path to the site root directory.
        **kwargs: Override TabbyConfig fields.

    """
    from tabby.banner import print_banner
    from tabby.observability import EventLog, StackCollector
    from tabby.reactive.broadcaster import Broadcaster

    config = load_config(Path(root), **kwargs)
    t0 = time.perf_counter()

    event_log = EventLog()
    collector = StackCollector(event_log)

    cache = _open_cache(config)
    builder = SiteBuilder(config, cache, collector=collector)
    report = builder.build()
    _print_build_summary(report, config)

    broadcaster = Broadcaster(collector)
    app = _create_chirp_app(config)
    _register_livereload_endpoint(app, broadcaster)
    _register_stats_endpoint(app, collector)
    _mount_static_files(app, config)
    _start_watcher(app, config, builder, broadcaster, collector)

    load_ms = (time.perf_counter() - t0) * 1000
    print_banner(config, report.total, mode="serve", reactive=True, load_ms=load_ms)

    app.run(host=config.host, port=config.port)
