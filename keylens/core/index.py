"""
WorkspaceIndex — Join of source occurrences and catalog entries

Holds, per source file, an immutable tuple of occurrences. A rescan
builds the new tuple off-lock and swaps it in under the lock together
with the key -> files reverse map, so a query sees either the old or
the new contribution of a file, never a mix.

KeyRecords are derived on request from the occurrence map and the
CatalogStore; the index keeps a reference to the store, never a copy.
"""

import logging
import threading
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from .catalog.store import CatalogStore
from .models import KeyRecord, SourceOccurrence

logger = logging.getLogger(__name__)


def dedupe(occurrences: Iterable[SourceOccurrence]) -> Tuple[SourceOccurrence, ...]:
    """
    Drop repeated (key, span) pairs, keeping the first pattern's match.

    Result is ordered by position.
    """
    seen = set()
    unique = []
    for occurrence in occurrences:
        if occurrence.identity in seen:
            continue
        seen.add(occurrence.identity)
        unique.append(occurrence)
    unique.sort(key=lambda o: (o.span.start_offset, o.span.end_offset, o.key))
    return tuple(unique)


class WorkspaceIndex:
    """
    Key -> occurrences across the workspace, joined with translations.

    Thread-safe. Single lock; every update is one whole-file swap.
    """

    def __init__(self, catalog: CatalogStore):
        self.catalog = catalog

        self._lock = threading.RLock()
        self._files: Dict[str, Tuple[SourceOccurrence, ...]] = {}
        self._key_files: Dict[str, Dict[str, int]] = {}  # key -> path -> count
        self._revisions: Dict[str, int] = {}
        self._digests: Dict[str, str] = {}

    # =========================================================================
    # Updates
    # =========================================================================

    def replace_file(
        self,
        path: str,
        occurrences: Iterable[SourceOccurrence],
        revision: Optional[int] = None,
        digest: Optional[str] = None,
    ) -> Optional[Set[str]]:
        """
        Swap in the occurrences of one file.

        Args:
            path: Source file path
            occurrences: Freshly extracted occurrences (may hold duplicates)
            revision: Event revision; an older revision than the last
                      applied one for this path is discarded
            digest: Content digest, for skipping unchanged rescans

        Returns:
            Keys the file referenced before or after the swap, or None if
            the result was stale
        """
        fresh = dedupe(occurrences)
        new_keys = {o.key for o in fresh}

        with self._lock:
            if revision is not None:
                if revision < self._revisions.get(path, -1):
                    logger.debug("Discarding stale scan of %s (rev %d)", path, revision)
                    return None
                self._revisions[path] = revision

            old = self._files.get(path, ())
            old_keys = {o.key for o in old}
            self._retract(path, old)

            if fresh:
                self._files[path] = fresh
                for occurrence in fresh:
                    counts = self._key_files.setdefault(occurrence.key, {})
                    counts[path] = counts.get(path, 0) + 1
            else:
                self._files.pop(path, None)

            if digest is not None:
                self._digests[path] = digest

        if old != fresh:
            logger.debug("Indexed %d occurrence(s) in %s", len(fresh), path)
        return old_keys | new_keys

    def remove_file(self, path: str, revision: Optional[int] = None) -> Set[str]:
        """
        Retract every occurrence of a file (file deleted).

        Returns:
            Keys the file referenced
        """
        with self._lock:
            if revision is not None:
                if revision < self._revisions.get(path, -1):
                    return set()
                self._revisions[path] = revision

            old = self._files.pop(path, ())
            self._retract(path, old)
            self._digests.pop(path, None)

        return {o.key for o in old}

    def _retract(self, path: str, occurrences: Tuple[SourceOccurrence, ...]) -> None:
        """Must hold lock."""
        for key in {o.key for o in occurrences}:
            counts = self._key_files.get(key)
            if counts is None:
                continue
            counts.pop(path, None)
            if not counts:
                del self._key_files[key]

    def touch(self, path: str, revision: int) -> bool:
        """
        Record a revision whose content matched the indexed digest.

        Returns:
            False if the revision is stale
        """
        with self._lock:
            if revision < self._revisions.get(path, -1):
                return False
            self._revisions[path] = revision
            return True

    def digest(self, path: str) -> Optional[str]:
        with self._lock:
            return self._digests.get(path)

    def forget_digests(self) -> None:
        """Force the next scan of every file (pattern set changed)."""
        with self._lock:
            self._digests.clear()

    # =========================================================================
    # Queries
    # =========================================================================

    def occurrences(self, key: str) -> List[SourceOccurrence]:
        """All occurrences of a key, by file path then position."""
        with self._lock:
            paths = list(self._key_files.get(key, {}))
            found = [
                o for path in paths for o in self._files.get(path, ()) if o.key == key
            ]
        return sorted(found, key=lambda o: o.sort_key)

    def occurrences_in_file(self, path: str) -> Tuple[SourceOccurrence, ...]:
        with self._lock:
            return self._files.get(path, ())

    def files(self) -> List[str]:
        with self._lock:
            return sorted(self._files)

    def referenced_keys(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._key_files)

    def files_referencing(self, keys: Iterable[str]) -> Set[str]:
        """Source files holding any of the keys."""
        with self._lock:
            found: Set[str] = set()
            for key in keys:
                found.update(self._key_files.get(key, {}))
            return found

    def all_keys(self) -> Set[str]:
        """Keys referenced in source or defined in any catalog."""
        return set(self.referenced_keys()) | set(self.catalog.keys())

    def record(self, key: str) -> KeyRecord:
        """Derive the joined view of one key."""
        entries, locales, source_locale = self.catalog.lookup(key)
        translations = {locale: entry.value for locale, entry in entries.items()}
        return KeyRecord(
            key=key,
            occurrences=self.occurrences(key),
            translations=translations,
            source_locale=source_locale,
            missing_locales=[locale for locale in locales if locale not in translations],
        )

    def missing_keys(self) -> List[str]:
        """Referenced keys with no source-locale value."""
        source_locale = self.catalog.source_locale
        return sorted(
            key for key in self.referenced_keys()
            if source_locale is None or self.catalog.entry(key, source_locale) is None
        )

    def stats(self) -> dict:
        with self._lock:
            return {
                "files": len(self._files),
                "occurrences": sum(len(o) for o in self._files.values()),
                "keys": len(self._key_files),
            }
