"""Stack collector — records build and live-reload events.

Thin façade over ``EventLog`` so the builder, watcher and broadcaster can
record events without constructing the dataclasses themselves.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

from tabby.observability.events import (
    BuildCompleted,
    FileBuilt,
    ReloadBroadcast,
    WatchFailed,
    now_ns,
)
from tabby.observability.log import EventLog


class StackCollector:
    """Unified event collector.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Build events -----

    def record_file(
        self,
        path: str,
        *,
        target: str = "",
        outcome: str = "written",
        duration_ms: float = 0.0,
    ) -> None:
        """Record the outcome of processing one content file."""
        self._log.append(
            FileBuilt(
                path=path,
                target=target,
                outcome=outcome,  # type: ignore[arg-type]
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_build(
        self,
        *,
        total: int,
        changed: int,
        written: int,
        failed: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        """Record a completed build pass."""
        self._log.append(
            BuildCompleted(
                total=total,
                changed=changed,
                written=written,
                failed=failed,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Live-reload events -----

    def record_broadcast(
        self,
        *,
        clients_notified: int,
        clients_dropped: int = 0,
        trigger_path: str = "",
    ) -> None:
        """Record a reload fan-out."""
        self._log.append(
            ReloadBroadcast(
                clients_notified=clients_notified,
                clients_dropped=clients_dropped,
                trigger_path=trigger_path,
                timestamp_ns=now_ns(),
            )
        )

    def record_watch_error(self, path: str, message: str) -> None:
        """Record a transient watcher failure."""
        self._log.append(
            WatchFailed(path=path, message=message, timestamp_ns=now_ns())
        )
