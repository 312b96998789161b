"""
Change Coordinator — Event-driven incremental re-indexing

Turns lifecycle events into whole-file re-extraction (source files) or
re-parsing (catalog files) and folds the result into the index.

Usage:
    from keylens.coordinator import ChangeCoordinator, CoordinatorConfig

    coordinator = ChangeCoordinator(index, extractor, config=CoordinatorConfig.from_env())
    coordinator.document_opened("src/App.tsx", text)
    coordinator.fs_changed("locales/en/common.json", "modified")
    coordinator.wait_idle(timeout=5)
    coordinator.shutdown()

Ordering:
    Events are stamped with a per-path revision on arrival. Whatever
    order workers finish in, a result for an older revision never
    replaces the result of a newer one.

Configuration via environment variables:
    KEYLENS_PARALLEL_ENABLED=true  # False processes events inline
    KEYLENS_WORKERS=4              # Re-scan threads
    KEYLENS_MAX_PENDING=1024       # Queue bound (distinct paths)
    KEYLENS_SHUTDOWN_TIMEOUT=10    # Seconds
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set, Union

import xxhash

from ..core.index import WorkspaceIndex
from ..core.parsing.extractor import KeyExtractor
from .config import CoordinatorConfig
from .documents import Document, DocumentStore
from .pools import PoolStats, RescanPool, execute_event
from .revisions import RevisionTracker
from .scheduler import PriorityScheduler, SchedulerFull, SchedulerStats
from .task import ChangeEvent, ChangeKind, Priority, TaskResult, TaskStatus

logger = logging.getLogger(__name__)

ChangeListener = Callable[[Set[str]], None]


class ChangeCoordinator:
    """
    Central coordinator for background re-indexing.

    Manages:
    - Per-path revision stamping (recency decides, not completion order)
    - Priority scheduling (HIGH > NORMAL > BACKGROUND) with coalescing
    - A worker pool applying whole-file updates
    - Change listeners, told which source files need fresh diagnostics

    Thread Safety:
    - All public methods are thread-safe
    - Index and store updates are whole-file swaps
    """

    def __init__(
        self,
        index: WorkspaceIndex,
        extractor: KeyExtractor,
        documents: Optional[DocumentStore] = None,
        config: Optional[CoordinatorConfig] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            index: Index receiving source occurrences (its catalog store
                   receives catalog files)
            extractor: Extractor for source files; may be replaced on reload
            documents: Open editor buffers
            config: Configuration. If None, loads from environment.
        """
        self._config = config or CoordinatorConfig.from_env()
        self._config.validate()

        self.index = index
        self.extractor = extractor
        self.documents = documents or DocumentStore()
        self.revisions = RevisionTracker()

        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False
        self._stopping = threading.Event()
        self._listeners: List[ChangeListener] = []

        # Core components (lazy initialization)
        self._scheduler: Optional[PriorityScheduler] = None
        self._pool: Optional[RescanPool] = None
        self._dispatcher: Optional[threading.Thread] = None

    def _ensure_started(self) -> None:
        """Lazily start workers on first event."""
        if self._started:
            return

        with self._lock:
            if self._started:
                return

            if self._config.enabled:
                self._scheduler = PriorityScheduler(max_pending=self._config.max_pending)
                self._pool = RescanPool(self._config, self._process)
                self._dispatcher = threading.Thread(
                    target=self._dispatch_loop,
                    name="keylens-dispatch",
                    daemon=True,
                )
                self._dispatcher.start()

            self._started = True

    @property
    def enabled(self) -> bool:
        """Check if background workers are enabled."""
        return self._config.enabled

    @property
    def config(self) -> CoordinatorConfig:
        return self._config

    # =========================================================================
    # Inbound events
    # =========================================================================

    def document_opened(self, path: Union[str, Path], text: str) -> ChangeEvent:
        """Editor opened a document; index its buffer."""
        path = str(path)
        self.documents.open(path, text)
        return self.submit(path, ChangeKind.OPENED, text)

    def document_changed(self, path: Union[str, Path], text: str) -> ChangeEvent:
        """Editor buffer changed; index the new buffer (ahead of disk)."""
        path = str(path)
        self.documents.update(path, text)
        return self.submit(path, ChangeKind.CHANGED, text)

    def document_closed(self, path: Union[str, Path]) -> Optional[ChangeEvent]:
        """Editor closed a document; re-index from disk (or retract if gone)."""
        path = str(path)
        if not self.documents.close(path):
            return None
        return self.submit(path, ChangeKind.CLOSED)

    def fs_changed(
        self,
        path: Union[str, Path],
        kind: Union[str, ChangeKind],
    ) -> Optional[ChangeEvent]:
        """
        File created, modified or deleted on disk.

        Ignored while the file is open: the buffer is authoritative.
        """
        path = str(path)
        if not isinstance(kind, ChangeKind):
            kind = ChangeKind.from_fs(kind)
        if self.documents.is_open(path):
            logger.debug("Ignoring %s event for open document %s", kind.value, path)
            return None
        return self.submit(path, kind)

    def schedule_initial(self, paths: Iterable[Union[str, Path]]) -> int:
        """Queue paths for the initial (background) load."""
        count = 0
        for path in paths:
            path = str(path)
            if self.documents.is_open(path):
                continue
            self.submit(path, ChangeKind.INITIAL)
            count += 1
        return count

    def submit(
        self,
        path: str,
        kind: ChangeKind,
        text: Optional[str] = None,
    ) -> ChangeEvent:
        """
        Stamp and queue one event.

        Raises:
            RuntimeError: If the coordinator is shut down
        """
        if self._shutdown:
            raise RuntimeError("Coordinator is shut down")

        event = ChangeEvent(path, kind, self.revisions.next(path), text)

        if not self._config.enabled:
            # Sequential fallback
            result = execute_event(self._process, event)
            self._log_result(result)
            return event

        self._ensure_started()
        self._scheduler.submit(event)
        return event

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_listener(self, listener: ChangeListener) -> None:
        """Register a callback receiving source paths whose diagnostics may have changed."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> bool:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
                return True
            return False

    def _notify(self, paths: Set[str]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(set(paths))
            except Exception:
                logger.exception("Change listener failed")

    # =========================================================================
    # Processing
    # =========================================================================

    def _process(self, event: ChangeEvent) -> TaskResult:
        """Apply one event. Runs on a worker (or inline when disabled)."""
        path = event.path
        if not self.revisions.is_current(path, event.revision):
            logger.debug("Skipping superseded %s event for %s", event.kind.value, path)
            return TaskResult(event.id, path, TaskStatus.STALE)

        catalog = self.index.catalog
        if catalog.handles(path):
            affected = self._apply_catalog(event)
        elif self.extractor.registry.is_supported(path):
            affected = self._apply_source(event)
        else:
            return TaskResult(event.id, path, TaskStatus.IGNORED)

        if affected is None:
            return TaskResult(event.id, path, TaskStatus.STALE)

        if affected:
            self._notify(affected)
        return TaskResult(event.id, path, TaskStatus.COMPLETED, affected_paths=affected)

    def _apply_source(self, event: ChangeEvent) -> Optional[Set[str]]:
        """Re-extract one source file. Returns affected source paths, None if stale."""
        path = event.path

        if event.kind == ChangeKind.DELETED:
            self.index.remove_file(path, event.revision)
            return {path}

        text = event.text if event.text is not None else self.documents.text(path)
        if text is None:
            try:
                text = Path(path).read_text(encoding="utf-8", errors="replace")
            except FileNotFoundError:
                self.index.remove_file(path, event.revision)
                return {path}
            except OSError as e:
                logger.warning("Cannot read %s: %s", path, e)
                return set()

        digest = xxhash.xxh64_hexdigest(text.encode("utf-8", "replace"))
        if self.index.digest(path) == digest:
            return set() if self.index.touch(path, event.revision) else None

        occurrences = self.extractor.extract(Path(path), text)
        changed = self.index.replace_file(path, occurrences, event.revision, digest)
        if changed is None:
            return None
        return {path}

    def _apply_catalog(self, event: ChangeEvent) -> Optional[Set[str]]:
        """Re-parse one catalog file. Returns affected source paths, None if stale."""
        catalog = self.index.catalog
        path = event.path
        locales_before = catalog.locales

        if event.kind == ChangeKind.DELETED:
            keys = catalog.remove_file(path, event.revision)
        else:
            text = event.text if event.text is not None else self.documents.text(path)
            data = text.encode("utf-8") if text is not None else None
            keys = catalog.load_file(path, data, event.revision)
            if keys is None:
                return None

        if catalog.locales != locales_before:
            # A locale appeared or vanished: coverage of every key changed
            return set(self.index.files())
        return self.index.files_referencing(keys)

    # =========================================================================
    # Workers
    # =========================================================================

    def _dispatch_loop(self) -> None:
        """Move events from the scheduler to free workers."""
        poll = self._config.poll_interval
        while True:
            if not self._pool.acquire_slot(timeout=poll):
                if self._stopping.is_set() and self._scheduler.pending_count() == 0:
                    return
                continue

            event = self._scheduler.get(timeout=poll)
            if event is None:
                self._pool.release_slot()
                if self._stopping.is_set():
                    return
                continue

            try:
                self._pool.submit(event, self._on_done)
            except RuntimeError:
                self._pool.release_slot()
                self._scheduler.task_done()
                return

    def _on_done(self, result: TaskResult) -> None:
        self._log_result(result)
        self._scheduler.task_done()

    def _log_result(self, result: TaskResult) -> None:
        if result.failed:
            logger.warning("Re-index of %s failed: %s", result.path, result.error)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every submitted event has been applied.

        Returns:
            True if idle, False on timeout
        """
        if not self._config.enabled or self._scheduler is None:
            return True
        return self._scheduler.join(timeout)

    def pending_count(self) -> int:
        """Get number of paths waiting for a worker."""
        if not self._config.enabled or not self._scheduler:
            return 0
        return self._scheduler.pending_count()

    def stats(self) -> dict:
        """Coordinator statistics."""
        summary = {
            "enabled": self._config.enabled,
            "config": self._config.to_dict(),
            "open_documents": len(self.documents),
        }
        if self._scheduler:
            summary["scheduler"] = self._scheduler.stats().to_dict()
        if self._pool:
            summary["pool"] = self._pool.stats().to_dict()
        return summary

    def shutdown(self, wait: bool = True, cancel_pending: bool = False) -> None:
        """
        Shutdown the coordinator.

        Args:
            wait: If True, wait for running events to complete
            cancel_pending: If True, drop queued events instead of draining
        """
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True

        self._stopping.set()

        if self._scheduler:
            self._scheduler.shutdown(cancel_pending=cancel_pending)

        if self._dispatcher is not None:
            self._dispatcher.join(self._config.shutdown_timeout if wait else 0)

        if self._pool:
            self._pool.shutdown(wait=wait)


__all__ = [
    # Main class
    "ChangeCoordinator",

    # Events
    "ChangeEvent",
    "ChangeKind",
    "Priority",
    "TaskStatus",
    "TaskResult",

    # Configuration
    "CoordinatorConfig",

    # Components
    "Document",
    "DocumentStore",
    "PoolStats",
    "PriorityScheduler",
    "RescanPool",
    "RevisionTracker",
    "SchedulerFull",
    "SchedulerStats",
]
