"""Live-reload broadcaster — fans reload signals out to connected browsers.

Each open ``/_livereload`` connection is a :class:`ReloadSession` with a
capacity-1 queue.  After a rebuild, :meth:`Broadcaster.broadcast` offers one
``reload`` message to every session without ever waiting:

- The message fits -> the session's stream delivers it.
- The queue is still full (the previous reload was never consumed) or the
  session is closed -> the session is dropped from the registry.

A burst of rebuilds therefore collapses into at least one reload per
client, and a stalled or vanished client never slows a broadcast down.
Browsers that lose their connection simply open a new session.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from tabby.reactive.livereload import RELOAD_EVENT

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from tabby._types import ClientID
    from tabby.observability.collector import StackCollector


def _reload_queue() -> asyncio.Queue[str]:
    return asyncio.Queue(maxsize=1)


@dataclass(slots=True, eq=False)
class ReloadSession:
    """A connected live-reload client.

    Attributes:
        client_id: Unique identifier for this connection.
        queue: Capacity-1 queue the client's stream reads from.
        state: ``"connected"`` until the client goes away or delivery fails.

    """

    client_id: ClientID
    queue: asyncio.Queue[str] = field(default_factory=_reload_queue)
    state: Literal["connected", "closed"] = "connected"

    @property
    def closed(self) -> bool:
        return self.state == "closed"

    def close(self) -> None:
        self.state = "closed"


class Broadcaster:
    """Registry of live-reload sessions with non-blocking fan-out.

    Thread-safe: the registry is protected by a lock, held only for
    register/deregister and for taking a snapshot, never across a send.

    Args:
        collector: Optional observability collector for broadcast events.

    """

    def __init__(self, collector: StackCollector | None = None) -> None:
        self._sessions: dict[ClientID, ReloadSession] = {}
        self._lock = threading.Lock()
        self._collector = collector

    @property
    def session_count(self) -> int:
        """Number of registered sessions."""
        with self._lock:
            return len(self._sessions)

    def register(self, client_id: ClientID) -> ReloadSession:
        """Open a session for *client_id* and return it.

        Re-registering an id closes and replaces the previous session.

        """
        session = ReloadSession(client_id=client_id)
        with self._lock:
            previous = self._sessions.get(client_id)
            self._sessions[client_id] = session
        if previous is not None:
            previous.close()
        return session

    def deregister(self, client_id: ClientID, session: ReloadSession | None = None) -> None:
        """Remove *client_id* from the registry.  Safe to call repeatedly.

        When *session* is given, only that exact session is removed, so a
        stale stream can't evict a newer session registered under the
        same id.

        """
        with self._lock:
            current = self._sessions.get(client_id)
            if current is None or (session is not None and current is not session):
                current = None
            else:
                del self._sessions[client_id]
        if current is not None:
            current.close()
        if session is not None:
            session.close()

    def get_session(self, client_id: ClientID) -> ReloadSession | None:
        with self._lock:
            return self._sessions.get(client_id)

    def broadcast(self, *, trigger_path: str = "") -> int:
        """Offer a reload to every session; drop those that can't take it.

        Must be called from the event loop thread that owns the session
        queues.

        Returns:
            Number of sessions notified.

        """
        with self._lock:
            sessions = list(self._sessions.values())

        notified = 0
        dropped: list[ReloadSession] = []
        for session in sessions:
            if session.closed:
                dropped.append(session)
                continue
            try:
                session.queue.put_nowait(RELOAD_EVENT)
                notified += 1
            except asyncio.QueueFull:
                dropped.append(session)

        for session in dropped:
            self.deregister(session.client_id, session)

        if self._collector is not None:
            self._collector.record_broadcast(
                clients_notified=notified,
                clients_dropped=len(dropped),
                trigger_path=trigger_path,
            )
        return notified

    async def client_generator(self, session: ReloadSession) -> AsyncIterator[str]:
        """Yield one message per reload delivered to *session*.

        Used as the source for the SSE stream.  Ends once the session is
        closed and its queue is empty, so a reload that was pending when
        the session got dropped is still delivered.  On client disconnect
        (cancellation or generator close) the session is deregistered.

        """
        try:
            while not session.closed or not session.queue.empty():
                yield await session.queue.get()
        except asyncio.CancelledError:
            return
        finally:
            self.deregister(session.client_id, session)
