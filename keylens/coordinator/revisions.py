"""
RevisionTracker — Per-path arrival order

Every event is stamped on arrival with the next revision of its path.
Work for an older revision than the latest stamped one is superseded:
it may be skipped before it starts, and its result is refused when it
finishes after newer work (the index and store check revisions too).
"""

import threading
from typing import Dict, Optional


class RevisionTracker:
    """Monotonic revision counter per path. Thread-safe."""

    def __init__(self):
        self._lock = threading.Lock()
        self._latest: Dict[str, int] = {}
        self._counter = 0

    def next(self, path: str) -> int:
        """Stamp a new event for a path."""
        with self._lock:
            # Global counter: revisions stay monotonic across forget()
            self._counter += 1
            self._latest[path] = self._counter
            return self._counter

    def latest(self, path: str) -> Optional[int]:
        with self._lock:
            return self._latest.get(path)

    def is_current(self, path: str, revision: int) -> bool:
        """True if no newer event has been stamped for the path."""
        with self._lock:
            return self._latest.get(path, revision) <= revision

    def forget(self, path: str) -> None:
        with self._lock:
            self._latest.pop(path, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._latest)
