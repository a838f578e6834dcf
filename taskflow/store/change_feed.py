"""In-process change feed.

Producers publish ChangeEvents; each subscriber gets its own asyncio.Queue
scoped to one user. ``None`` is pushed on close to end consumers.

Publishing is safe from any thread: a queue created inside an event loop is
only ever filled from that loop, via ``call_soon_threadsafe`` when the
producer runs elsewhere (e.g. a sync FastAPI endpoint in the threadpool).
"""

import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from taskflow.store.base import ChangeEvent

logger = logging.getLogger(__name__)


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def _deliver(queue: asyncio.Queue, loop: Optional[asyncio.AbstractEventLoop], item: Any) -> None:
    if loop is None or loop.is_closed() or _running_loop() is loop:
        queue.put_nowait(item)
    else:
        loop.call_soon_threadsafe(queue.put_nowait, item)


class ChangeFeed:
    """Fan-out of change events to per-user subscriber queues."""

    def __init__(self):
        self._subscribers: Dict[str, List[Tuple[asyncio.Queue, Optional[asyncio.AbstractEventLoop]]]] = {}
        self._lock = threading.Lock()

    def subscribe(self, user_id: str) -> asyncio.Queue:
        """Register a new subscriber queue for ``user_id``.

        The queue is bound to the event loop running at subscription time.
        """
        queue: asyncio.Queue = asyncio.Queue()
        with self._lock:
            self._subscribers.setdefault(user_id, []).append((queue, _running_loop()))
        logger.debug(f"New change feed subscriber for user {user_id}")
        return queue

    def unsubscribe(self, user_id: str, queue: asyncio.Queue) -> None:
        with self._lock:
            entries = [e for e in self._subscribers.get(user_id, []) if e[0] is not queue]
            if entries:
                self._subscribers[user_id] = entries
            else:
                self._subscribers.pop(user_id, None)

    def publish(self, event: ChangeEvent) -> int:
        """Deliver ``event`` to the owning user's subscribers.

        Returns:
            Number of queues the event was delivered to
        """
        if not event.user_id:
            return 0
        with self._lock:
            entries = list(self._subscribers.get(event.user_id, []))
        for queue, loop in entries:
            _deliver(queue, loop, event)
        return len(entries)

    def close(self, user_id: Optional[str] = None) -> None:
        """Signal end-of-stream to subscribers (all users when ``user_id`` is None)."""
        with self._lock:
            user_ids = [user_id] if user_id else list(self._subscribers)
            closing = [entry for uid in user_ids for entry in self._subscribers.pop(uid, [])]
        for queue, loop in closing:
            _deliver(queue, loop, None)
