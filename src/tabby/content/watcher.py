"""File watcher — rebuilds the site when content files are written.

Watches the content directory and, for every batch of filesystem events:

- Drops editor/VCS noise (swap files, backups, ``.git`` internals, ...)
- Keeps writes (created/modified) to files with the content extension
- Runs one build for the batch, then notifies live-reload clients

Builds run one at a time.  A trigger that arrives while a build is in
flight does not start a second build; it marks the site dirty and the
running trigger performs a single follow-up build when it finishes.

The event source is pluggable: anything that yields batches of
:class:`ChangeEvent` (and :class:`WatchError` for transient failures) works.
:func:`watchfiles_source` wraps ``watchfiles.awatch``, with optional
polling for filesystems without native change notification.
"""

from __future__ import annotations

import asyncio
import inspect
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from watchfiles import Change

from tabby._errors import WatchError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from tabby.observability.collector import StackCollector

    type WatchItem = tuple[ChangeEvent, ...] | WatchError


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A file change detected by the watcher.

    Attributes:
        path: Absolute path to the changed file.
        kind: Type of filesystem change.

    """

    path: Path
    kind: Literal["created", "modified", "deleted"]


# Mapping from watchfiles Change enum to our kind literals.
_CHANGE_KIND_MAP: dict[Change, Literal["created", "modified", "deleted"]] = {
    Change.added: "created",
    Change.modified: "modified",
    Change.deleted: "deleted",
}

_WRITE_KINDS = frozenset({"created", "modified"})

# Substrings marking editor, OS and version-control artifacts.
NOISE_MARKERS: tuple[str, ...] = (
    "~",          # backup suffix (vim, emacs, gedit)
    ".swp",       # vim swap files
    ".swx",
    ".swo",
    ".tmp",
    ".temp",
    ".bak",
    ".part",
    ".#",         # emacs lock files
    "___jb_",     # JetBrains safe-write
    ".DS_Store",
    "/.git/",
    "/.hg/",
    "/.svn/",
)

# Whole file names, never matched as substrings.
NOISE_NAMES: frozenset[str] = frozenset({
    "4913",       # vim's write-permission check file
})

_RETRY_DELAY = 1.0


def is_noise(path: Path | str) -> bool:
    """True if *path* looks like an editor/VCS temp artifact."""
    path = Path(path)
    if path.name in NOISE_NAMES:
        return True
    text = path.as_posix()
    return any(marker in text for marker in NOISE_MARKERS)


def to_change_events(raw_changes: set[tuple[Change, str]]) -> tuple[ChangeEvent, ...]:
    """Convert a ``watchfiles`` change set into sorted ChangeEvents."""
    events = [
        ChangeEvent(path=Path(path_str), kind=_CHANGE_KIND_MAP.get(change, "modified"))
        for change, path_str in raw_changes
    ]
    return tuple(sorted(events, key=lambda e: (str(e.path), e.kind)))


async def watchfiles_source(
    path: Path,
    stop_event: asyncio.Event,
    *,
    force_polling: bool = False,
    debounce_ms: int = 300,
) -> AsyncIterator[WatchItem]:
    """Yield batches of ChangeEvents for *path* until *stop_event* is set.

    Errors raised by the watch mechanism are yielded as :class:`WatchError`
    and the watch is restarted after a short pause.

    """
    from watchfiles import awatch

    while not stop_event.is_set():
        try:
            async for raw_changes in awatch(
                path,
                stop_event=stop_event,
                debounce=debounce_ms,
                step=100,
                force_polling=force_polling,
                recursive=False,
            ):
                yield to_change_events(raw_changes)
            return
        except (OSError, RuntimeError) as exc:
            yield WatchError(f"watching {path} failed: {exc}")
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=_RETRY_DELAY)
            except TimeoutError:
                pass


class RebuildWatcher:
    """Turns content change events into builds and reload broadcasts.

    Args:
        content_path: The single watched content directory.
        build: Synchronous build callable; run in a worker thread.
        notify: Called on the event loop, with a ``trigger_path`` keyword,
            after each build that returns.  Not called when the build raises.
        extension: Content file extension.
        source: Async iterator of event batches and WatchErrors.  Defaults
            to :func:`watchfiles_source` on *content_path*.
        force_polling: Poll instead of using native change notification
            (only for the default source).
        collector: Optional observability collector.

    """

    def __init__(
        self,
        content_path: Path,
        build: Callable[[], Any],
        notify: Callable[..., Any],
        *,
        extension: str = ".md",
        source: AsyncIterator[WatchItem] | None = None,
        force_polling: bool = False,
        collector: StackCollector | None = None,
    ) -> None:
        self._content_path = content_path
        self._build = build
        self._notify = notify
        self._extension = extension
        self._source = source
        self._force_polling = force_polling
        self._collector = collector
        self._stop_event = asyncio.Event()
        self._building = False
        self._pending = False
        self._builds = 0
        self._last_trigger = ""

    @property
    def builds(self) -> int:
        """Number of builds run by this watcher."""
        return self._builds

    @property
    def is_building(self) -> bool:
        return self._building

    def should_rebuild(self, event: ChangeEvent) -> bool:
        """Whether *event* is a write to a real content file."""
        if is_noise(event.path):
            return False
        if event.path.suffix != self._extension:
            return False
        return event.kind in _WRITE_KINDS

    def stop(self) -> None:
        """Stop the default watchfiles source."""
        self._stop_event.set()

    async def run(self) -> None:
        """Consume the event source until it is exhausted or stopped."""
        source = self._source
        if source is None:
            source = watchfiles_source(
                self._content_path,
                self._stop_event,
                force_polling=self._force_polling,
            )

        async for item in source:
            if isinstance(item, WatchError):
                print(f"  Watch error: {item}", file=sys.stderr)
                if self._collector is not None:
                    self._collector.record_watch_error(str(self._content_path), str(item))
                continue

            relevant = [event for event in item if self.should_rebuild(event)]
            if not relevant:
                continue

            names = ", ".join(event.path.name for event in relevant)
            print(f"  Changed: {names}", file=sys.stderr)
            await self.trigger(str(relevant[0].path))

    async def trigger(self, trigger_path: str = "") -> None:
        """Build now, or coalesce into the build already in flight."""
        self._last_trigger = trigger_path
        if self._building:
            self._pending = True
            return

        self._building = True
        try:
            while True:
                self._pending = False
                await self._build_once()
                if not self._pending:
                    break
        finally:
            self._building = False

    async def _build_once(self) -> None:
        self._builds += 1
        try:
            result = await asyncio.to_thread(self._build)
        except Exception as exc:  # noqa: BLE001
            print(f"  Build error: {exc}", file=sys.stderr)
            return

        if getattr(result, "ok", True) is False:
            print("  Build finished with per-file errors", file=sys.stderr)

        outcome = self._notify(trigger_path=self._last_trigger)
        if inspect.isawaitable(outcome):
            await outcome
