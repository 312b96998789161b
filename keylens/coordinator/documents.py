"""
DocumentStore — Open editor buffers

While a document is open its buffer text, not the disk, is what gets
indexed. File-system events for open documents are ignored; closing a
document hands authority back to the disk.
"""

import threading
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Document:
    path: str
    text: str
    version: int = 0


class DocumentStore:
    """Thread-safe path -> open buffer map."""

    def __init__(self):
        self._lock = threading.Lock()
        self._documents: Dict[str, Document] = {}

    def open(self, path: str, text: str) -> Document:
        with self._lock:
            document = Document(path, text, 0)
            self._documents[path] = document
            return document

    def update(self, path: str, text: str) -> Document:
        """Replace a buffer's text; opens the document if it was not open."""
        with self._lock:
            previous = self._documents.get(path)
            document = Document(path, text, previous.version + 1 if previous else 0)
            self._documents[path] = document
            return document

    def close(self, path: str) -> bool:
        """Returns True if the document was open."""
        with self._lock:
            return self._documents.pop(path, None) is not None

    def get(self, path: str) -> Optional[Document]:
        with self._lock:
            return self._documents.get(path)

    def text(self, path: str) -> Optional[str]:
        document = self.get(path)
        return document.text if document else None

    def is_open(self, path: str) -> bool:
        with self._lock:
            return path in self._documents

    def paths(self) -> List[str]:
        with self._lock:
            return sorted(self._documents)

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
