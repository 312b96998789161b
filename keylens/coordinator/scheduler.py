"""
PriorityScheduler — Bounded, coalescing event queue

Implements a 3-level priority queue system:
- HIGH: Editor buffer events
- NORMAL: File-system events
- BACKGROUND: Initial workspace load

Higher priority events are always processed first.
Within same priority, FIFO order is maintained.

Coalescing: at most one event per path is pending. A newer event for a
pending path supersedes the older one, which is dropped when reached.
The bound applies to distinct pending paths.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .task import ChangeEvent, Priority


class SchedulerFull(RuntimeError):
    """Raised when a bounded submit times out."""


@dataclass
class SchedulerStats:
    """Statistics for scheduler observability."""
    total_submitted: int = 0
    total_processed: int = 0
    total_coalesced: int = 0
    queue_depths: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_submitted": self.total_submitted,
            "total_processed": self.total_processed,
            "total_coalesced": self.total_coalesced,
            "queue_depths": self.queue_depths,
            "pending": self.total_submitted - self.total_processed - self.total_coalesced,
        }


class PriorityScheduler:
    """
    Event scheduler with 3 priority levels.

    Thread-safe. Higher priority = processed first.
    Tracks unfinished events so callers can wait for quiescence.
    """

    def __init__(self, max_pending: int = 1024):
        self.max_pending = max_pending

        # One queue per priority level
        self._queues: Dict[Priority, deque] = {p: deque() for p in Priority}

        # Latest pending event per path; queue entries not matching it are superseded
        self._pending: Dict[str, ChangeEvent] = {}

        # Thread safety
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)
        self._all_done = threading.Condition(self._lock)
        self._unfinished = 0

        # Statistics
        self._stats = SchedulerStats()

        # Shutdown flag
        self._shutdown = False

    def submit(self, event: ChangeEvent, timeout: Optional[float] = None) -> None:
        """
        Submit an event for scheduling.

        Blocks while max_pending distinct paths are queued.

        Raises:
            RuntimeError: If the scheduler is shut down
            SchedulerFull: If no room frees up within the timeout
        """
        with self._not_full:
            if self._shutdown:
                raise RuntimeError("Scheduler is shut down")

            if event.path not in self._pending:
                deadline = None if timeout is None else time.monotonic() + timeout
                while len(self._pending) >= self.max_pending and not self._shutdown:
                    remaining = None if deadline is None else deadline - time.monotonic()
                    if remaining is not None and remaining <= 0:
                        raise SchedulerFull(f"{len(self._pending)} paths pending")
                    self._not_full.wait(remaining)
                if self._shutdown:
                    raise RuntimeError("Scheduler is shut down")

            superseded = self._pending.get(event.path)
            if superseded is not None:
                self._stats.total_coalesced += 1
            else:
                self._unfinished += 1

            self._pending[event.path] = event
            self._queues[event.priority].append(event)
            self._stats.total_submitted += 1
            self._not_empty.notify()

    def get(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """
        Get the highest priority live event.

        Blocks until an event is available or timeout expires.
        Returns None on timeout or shutdown.
        """
        with self._not_empty:
            while True:
                event = self._pop_live()
                if event is not None:
                    return event
                if self._shutdown:
                    return None
                if not self._not_empty.wait(timeout):
                    return None

    def get_nowait(self) -> Optional[ChangeEvent]:
        """Get the highest priority live event without blocking."""
        with self._lock:
            return self._pop_live()

    def _pop_live(self) -> Optional[ChangeEvent]:
        """Pop the next non-superseded event. Must hold lock."""
        for priority in Priority:
            queue = self._queues[priority]
            while queue:
                event = queue.popleft()
                if self._pending.get(event.path) is not event:
                    continue
                del self._pending[event.path]
                self._stats.total_processed += 1
                self._not_full.notify()
                return event
        return None

    def task_done(self) -> None:
        """Mark one event returned by get() as fully processed."""
        with self._lock:
            self._unfinished -= 1
            if self._unfinished <= 0:
                self._unfinished = 0
                self._all_done.notify_all()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every submitted event has been processed.

        Returns:
            True if idle, False on timeout
        """
        with self._all_done:
            return self._all_done.wait_for(lambda: self._unfinished == 0, timeout)

    def pending_count(self) -> int:
        """Get number of distinct paths waiting."""
        with self._lock:
            return len(self._pending)

    def pending_by_priority(self) -> Dict[Priority, int]:
        with self._lock:
            return self._depths()

    def stats(self) -> SchedulerStats:
        """Get scheduler statistics."""
        with self._lock:
            return SchedulerStats(
                total_submitted=self._stats.total_submitted,
                total_processed=self._stats.total_processed,
                total_coalesced=self._stats.total_coalesced,
                queue_depths={p.name: n for p, n in self._depths().items()},
            )

    def _depths(self) -> Dict[Priority, int]:
        """Pending paths per priority. Must hold lock."""
        counts = {p: 0 for p in Priority}
        for event in self._pending.values():
            counts[event.priority] += 1
        return counts

    def shutdown(self, cancel_pending: bool = False) -> List[ChangeEvent]:
        """
        Shutdown the scheduler.

        Args:
            cancel_pending: If True, return and clear pending events

        Returns:
            List of cancelled events if cancel_pending=True, else empty list
        """
        cancelled = []

        with self._lock:
            self._shutdown = True

            if cancel_pending:
                cancelled = list(self._pending.values())
                self._pending.clear()
                for queue in self._queues.values():
                    queue.clear()
                self._unfinished = max(0, self._unfinished - len(cancelled))
                self._all_done.notify_all()

            # Wake all waiting threads
            self._not_empty.notify_all()
            self._not_full.notify_all()

        return cancelled
