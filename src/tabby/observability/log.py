"""Event log — bounded history of builds and reloads.

Backs the ``/_tabby/stats`` endpoint and the tests.  Besides generic
filtering it answers the two questions asked while developing a site:
what did the last build do, and which files are currently failing.

Thread Safety:
    Events arrive from the build worker thread (file and build events)
    and from the event loop (broadcasts, watch errors).  Every method
    takes the same ``threading.Lock``; readers copy the buffer first.

"""

import threading
from collections import Counter, deque
from dataclasses import asdict
from typing import Any

from tabby.observability.events import BuildCompleted, FileBuilt, StackEvent


def _event_path(event: StackEvent) -> str:
    if isinstance(event, FileBuilt):
        return event.path
    return getattr(event, "trigger_path", "") or getattr(event, "path", "")


class EventLog:
    """Ring buffer of observability events, oldest dropped first.

    Args:
        max_events: Capacity of the buffer.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[StackEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: StackEvent) -> None:
        with self._lock:
            self._events.append(event)

    def _snapshot(self) -> list[StackEvent]:
        with self._lock:
            return list(self._events)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        path: str | None = None,
        limit: int = 100,
    ) -> list[StackEvent]:
        """Newest-first events matching every given filter.

        Args:
            event_type: Keep only instances of this event class.
            since_ns: Keep only events stamped at or after this time.
            path: Substring of the content path (or reload trigger path).
            limit: Maximum number of results.

        """
        results: list[StackEvent] = []
        for event in reversed(self._snapshot()):
            if len(results) >= limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if since_ns and event.timestamp_ns < since_ns:
                continue
            if path is not None and path not in _event_path(event):
                continue
            results.append(event)
        return results

    def recent(self, n: int = 20) -> list[StackEvent]:
        """The last *n* events, oldest first."""
        return self._snapshot()[-n:]

    def last_build(self) -> BuildCompleted | None:
        """The most recent completed build pass, if any."""
        builds = self.query(event_type=BuildCompleted, limit=1)
        return builds[0] if builds else None  # type: ignore[return-value]

    def failing_files(self) -> list[str]:
        """Content paths whose most recent outcome was a failure."""
        latest: dict[str, str] = {}
        for event in self._snapshot():
            if isinstance(event, FileBuilt):
                latest[event.path] = event.outcome
        return sorted(p for p, outcome in latest.items() if outcome == "failed")

    def clear(self) -> int:
        """Drop every event; returns how many were dropped."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, Any]:
        """JSON-ready summary served at ``/_tabby/stats``."""
        events = self._snapshot()
        last = self.last_build()
        return {
            "total": len(events),
            "max_events": self._max_events,
            "by_type": dict(Counter(type(e).__name__ for e in events)),
            "last_build": asdict(last) if last is not None else None,
            "failing": self.failing_files(),
        }
