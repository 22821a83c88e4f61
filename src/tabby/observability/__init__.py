"""Build and live-reload observability.

Aggregates events from:
- **Builder**: per-file outcomes and whole-pass summaries
- **Watcher**: transient watch failures
- **Broadcaster**: reload fan-outs

All events are frozen dataclasses with nanosecond timestamps, safe for
concurrent production from the build thread and the event loop.

Quick Start:
    >>> from tabby.observability import StackCollector, EventLog
    >>> log = EventLog()
    >>> collector = StackCollector(log)
    >>> collector.record_build(total=3, changed=1, written=1)

"""

from tabby.observability.collector import StackCollector
from tabby.observability.events import (
    BuildCompleted,
    FileBuilt,
    ReloadBroadcast,
    StackEvent,
    WatchFailed,
    now_ns,
)
from tabby.observability.log import EventLog

__all__ = [
    "BuildCompleted",
    "EventLog",
    "FileBuilt",
    "ReloadBroadcast",
    "StackCollector",
    "StackEvent",
    "WatchFailed",
    "now_ns",
]
