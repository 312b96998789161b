"""
Task — Unit of re-indexing work

Defines the core abstractions for the coordinator:
- ChangeEvent: one lifecycle event for one path, stamped with a revision
- ChangeKind: document and file-system event kinds
- Priority: Scheduling priority levels
- TaskResult: Outcome of processing one event

Design principles:
- Events are immutable after creation
- Events carry all context needed for processing (buffer text included)
- A revision orders events of the same path by arrival, not completion
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Set

import xxhash


class ChangeKind(Enum):
    """Lifecycle event kinds."""
    OPENED = "opened"      # Editor opened a document (buffer text)
    CHANGED = "changed"    # Editor buffer edited (buffer text)
    CLOSED = "closed"      # Editor closed a document; disk is authoritative again
    CREATED = "created"    # File appeared on disk
    MODIFIED = "modified"  # File changed on disk
    DELETED = "deleted"    # File removed from disk
    INITIAL = "initial"    # Workspace load

    @classmethod
    def from_fs(cls, kind: str) -> 'ChangeKind':
        """Parse a file-system change kind (created, modified/changed, deleted/removed)."""
        normalized = kind.lower()
        aliases = {"changed": "modified", "removed": "deleted"}
        value = aliases.get(normalized, normalized)
        if value not in ("created", "modified", "deleted"):
            raise ValueError(f"Unknown file-system change kind: {kind}")
        return cls(value)


class Priority(Enum):
    """
    Event priority levels for scheduling.

    Lower value = higher priority (processed first).
    """
    HIGH = 1        # Editor buffers, the user is looking at them
    NORMAL = 2      # File-system changes
    BACKGROUND = 3  # Initial workspace load


_PRIORITIES = {
    ChangeKind.OPENED: Priority.HIGH,
    ChangeKind.CHANGED: Priority.HIGH,
    ChangeKind.CLOSED: Priority.HIGH,
    ChangeKind.CREATED: Priority.NORMAL,
    ChangeKind.MODIFIED: Priority.NORMAL,
    ChangeKind.DELETED: Priority.NORMAL,
    ChangeKind.INITIAL: Priority.BACKGROUND,
}


class TaskStatus(Enum):
    """Event processing outcomes."""
    COMPLETED = "completed"
    STALE = "stale"          # Superseded by a newer event for the same path
    IGNORED = "ignored"      # Not a source or catalog file
    FAILED = "failed"


@dataclass(frozen=True)
class ChangeEvent:
    """
    One change to one path.

    Immutable after creation. `text` holds the editor buffer for
    OPENED/CHANGED events; other kinds read the disk.
    """
    path: str
    kind: ChangeKind
    revision: int
    text: Optional[str] = field(default=None, repr=False)
    received_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def id(self) -> str:
        return _generate_event_id(self.path, self.revision)

    @property
    def priority(self) -> Priority:
        return _PRIORITIES[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "path": self.path,
            "kind": self.kind.value,
            "revision": self.revision,
            "priority": self.priority.name,
            "received_at": self.received_at,
        }


@dataclass
class TaskResult:
    """Outcome of processing one event."""
    event_id: str
    path: str
    status: TaskStatus
    affected_paths: Set[str] = field(default_factory=set)
    error: Optional[str] = None
    duration_ms: Optional[float] = None

    @property
    def success(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.STALE, TaskStatus.IGNORED)

    @property
    def failed(self) -> bool:
        return self.status == TaskStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "path": self.path,
            "status": self.status.value,
            "affected_paths": sorted(self.affected_paths),
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


def _generate_event_id(path: str, revision: int) -> str:
    """Stable event ID from path and revision using xxhash."""
    return xxhash.xxh64(f"{path}\0{revision}".encode()).hexdigest()[:12]
