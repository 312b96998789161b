"""
RescanPool — Worker threads for re-extraction and re-parsing

ThreadPoolExecutor-backed; work is dominated by file reads.

A semaphore caps in-flight work at the worker count. Events wait in the
priority scheduler, where a newer event can still supersede them, until
a worker is free.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable

from .config import CoordinatorConfig
from .task import ChangeEvent, TaskResult, TaskStatus

logger = logging.getLogger(__name__)


@dataclass
class PoolStats:
    """Statistics for pool observability."""
    active_tasks: int = 0
    completed_tasks: int = 0
    stale_tasks: int = 0
    failed_tasks: int = 0
    total_duration_ms: float = 0.0

    @property
    def avg_duration_ms(self) -> float:
        if self.completed_tasks == 0:
            return 0.0
        return self.total_duration_ms / self.completed_tasks

    def to_dict(self) -> dict:
        return {
            "active_tasks": self.active_tasks,
            "completed_tasks": self.completed_tasks,
            "stale_tasks": self.stale_tasks,
            "failed_tasks": self.failed_tasks,
            "avg_duration_ms": round(self.avg_duration_ms, 2),
        }


def execute_event(handler: Callable[[ChangeEvent], TaskResult], event: ChangeEvent) -> TaskResult:
    """Run a handler, turning an exception into a FAILED result."""
    started = time.perf_counter()
    try:
        result = handler(event)
    except Exception as e:
        logger.exception("Re-index of %s failed", event.path)
        result = TaskResult(event.id, event.path, TaskStatus.FAILED, error=str(e))
    result.duration_ms = (time.perf_counter() - started) * 1000
    return result


class RescanPool:
    """
    ThreadPool for re-indexing events.

    Failures never propagate to submitters; they are logged and counted.
    """

    def __init__(self, config: CoordinatorConfig, handler: Callable[[ChangeEvent], TaskResult]):
        self._config = config
        self._handler = handler
        self._executor = ThreadPoolExecutor(
            max_workers=config.workers,
            thread_name_prefix="keylens-rescan",
        )
        self._slots = threading.BoundedSemaphore(config.workers)
        self._stats = PoolStats()
        self._lock = threading.Lock()
        self._shutdown = False

    def acquire_slot(self, timeout: float) -> bool:
        """Wait for a free worker."""
        return self._slots.acquire(timeout=timeout)

    def release_slot(self) -> None:
        self._slots.release()

    def submit(self, event: ChangeEvent, on_done: Callable[[TaskResult], None]) -> Future:
        """
        Run an event on a worker. The caller must hold a slot; it is
        released when the event finishes.
        """
        if self._shutdown:
            raise RuntimeError("Pool is shut down")

        with self._lock:
            self._stats.active_tasks += 1

        future = self._executor.submit(execute_event, self._handler, event)
        future.add_done_callback(lambda f: self._on_complete(f, on_done))
        return future

    def _on_complete(self, future: Future, on_done: Callable[[TaskResult], None]) -> None:
        """Callback when an event completes."""
        try:
            result = future.result()
        except Exception as e:
            # Cancelled at shutdown
            result = TaskResult("", "", TaskStatus.FAILED, error=str(e))

        with self._lock:
            self._stats.active_tasks -= 1
            if result.status == TaskStatus.FAILED:
                self._stats.failed_tasks += 1
            elif result.status == TaskStatus.STALE:
                self._stats.stale_tasks += 1
            else:
                self._stats.completed_tasks += 1
                self._stats.total_duration_ms += result.duration_ms or 0

        try:
            on_done(result)
        finally:
            self._slots.release()

    def stats(self) -> PoolStats:
        """Get pool statistics."""
        with self._lock:
            return PoolStats(
                active_tasks=self._stats.active_tasks,
                completed_tasks=self._stats.completed_tasks,
                stale_tasks=self._stats.stale_tasks,
                failed_tasks=self._stats.failed_tasks,
                total_duration_ms=self._stats.total_duration_ms,
            )

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the pool."""
        self._shutdown = True
        self._executor.shutdown(wait=wait)
