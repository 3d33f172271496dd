"""
Pending-event buffer between producers and the dispatcher.

Many producers `put()`, exactly one consumer `drain()`s. A drain detaches
everything queued at that instant, so events arriving while a batch is
being processed wait for the next drain.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Iterable

from logpipe.records import LogEvent


class EventQueue:
    """Unbounded, lock-protected FIFO with blocking batch drain."""

    def __init__(self) -> None:
        self._items: deque[LogEvent] = deque()
        self._cond = threading.Condition(threading.Lock())
        self._unfinished = 0
        self._closed = False

    def put(self, event: LogEvent) -> None:
        """Append to the tail. Never blocks on the consumer."""
        with self._cond:
            self._items.append(event)
            self._unfinished += 1
            self._cond.notify_all()

    def push_front(self, events: Iterable[LogEvent]) -> None:
        """
        Return undelivered events ahead of newer arrivals, keeping their
        order. They are still counted as unfinished, so no accounting change.
        """
        events = list(events)
        if not events:
            return
        with self._cond:
            self._items.extendleft(reversed(events))
            self._cond.notify_all()

    def drain(self, timeout: float | None = None) -> list[LogEvent]:
        """
        Detach the whole backlog. Blocks until something is queued, the
        queue is closed, or `timeout` elapses; returns [] in the latter two.
        """
        with self._cond:
            if not self._items and not self._closed:
                self._cond.wait_for(lambda: self._items or self._closed, timeout)
            if not self._items:
                return []
            batch = list(self._items)
            self._items.clear()
            return batch

    def task_done(self, count: int = 1) -> None:
        """Mark `count` drained events as fully processed."""
        with self._cond:
            self._unfinished = max(0, self._unfinished - count)
            if self._unfinished == 0:
                self._cond.notify_all()

    def join(self, timeout: float | None = None) -> bool:
        """Wait until every queued event is processed. True if it was."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while self._unfinished:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True

    def close(self) -> None:
        """Wake a blocked consumer so it can observe shutdown."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def reopen(self) -> None:
        with self._cond:
            self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def unfinished(self) -> int:
        return self._unfinished

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)
