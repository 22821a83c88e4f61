"""Event model for build and live-reload observability.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Build events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileBuilt:
    """A single content file was processed by the builder.

    Attributes:
        path: Source content file path.
        target: Output file path (empty for skipped drafts and failures).
        outcome: What happened to the file.
        duration_ms: Time taken to render and write the file.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    target: str
    outcome: Literal["written", "draft", "failed"]
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class BuildCompleted:
    """A full scan/process pass finished.

    Attributes:
        total: Number of content files seen by the scan.
        changed: Number of files the cache flagged as changed.
        written: Number of output files written.
        failed: Number of files that failed in isolation.
        duration_ms: Wall-clock time of the pass.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    total: int
    changed: int
    written: int
    failed: int
    duration_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Live-reload events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReloadBroadcast:
    """A reload signal was fanned out to connected browsers.

    Attributes:
        clients_notified: Sessions that accepted the notification.
        clients_dropped: Sessions removed because delivery failed.
        trigger_path: Content file that triggered the rebuild.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    clients_notified: int
    clients_dropped: int
    trigger_path: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class WatchFailed:
    """The filesystem watcher surfaced an error and kept running.

    Attributes:
        path: Watched directory.
        message: Human-readable error description.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    message: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type StackEvent = FileBuilt | BuildCompleted | ReloadBroadcast | WatchFailed


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
