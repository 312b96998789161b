"""
CatalogStore — Per-locale union of catalog file contributions

Owns every CatalogEntry. Each catalog file contributes one immutable
mapping; a locale's merged view is rebuilt from its contributions
whenever one of them changes, then swapped in whole. Readers never see
a half-applied file.

Merge rule: contributions are applied in load order, so the most
recently loaded file wins a key it shares with another file of the same
locale. Differing values are recorded as collisions.

Thread-safe. Parsing happens outside the lock; only the swap is locked.
"""

import itertools
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, Union

import xxhash

from ...errors import CatalogParseError, ConfigurationError
from ..models import CatalogCollision, CatalogEntry, Location
from .formats import parse_catalog
from .layout import NESTED, CatalogFile, classify, detect_layout, list_catalog_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Contribution:
    """One file's parsed entries for one locale."""
    file: CatalogFile
    locale: str
    entries: Dict[str, CatalogEntry]
    digest: str
    seq: int

    @property
    def path(self) -> str:
        return str(self.file.path)


class CatalogStore:
    """
    Aggregated translations: key -> (locale -> value).

    Usage:
        store = CatalogStore([root / "locales"], source_locale="en")
        store.load_all()
        store.translations("common.actions.submit")  # {"en": "Submit"}
    """

    def __init__(
        self,
        roots: Iterable[Union[str, Path]],
        source_locale: Optional[str] = None,
        key_style: str = "auto",
        separator: str = ".",
        namespace_enabled: bool = False,
        required_roots: Iterable[Union[str, Path]] = (),
    ):
        """
        Args:
            roots: Locale root directories
            source_locale: Configured source locale (None = first discovered)
            key_style: nested, flat or auto
            separator: Key segment delimiter
            namespace_enabled: Prefix nested-layout keys with their namespace
            required_roots: Roots that must exist; a missing one is a
                            configuration error rather than skipped
        """
        self.roots = [Path(r) for r in roots]
        self.required_roots = {Path(r) for r in required_roots}
        self.configured_source_locale = source_locale
        self.key_style = key_style
        self.separator = separator
        self.namespace_enabled = namespace_enabled

        self._lock = threading.RLock()
        self._seq = itertools.count(1)

        self._contributions: Dict[str, Contribution] = {}  # path -> contribution
        self._merged: Dict[str, Dict[str, CatalogEntry]] = {}  # locale -> key -> entry
        self._collisions: Dict[str, Dict[str, CatalogCollision]] = {}  # locale -> key -> collision
        self._errors: Dict[str, CatalogParseError] = {}  # path -> error
        self._revisions: Dict[str, int] = {}  # path -> last applied revision
        self._all_keys: Optional[FrozenSet[str]] = None
        self._first_locale: Optional[str] = None

        self.root_errors: List[ConfigurationError] = []
        self.layouts: Dict[str, str] = {}

    # =========================================================================
    # Discovery
    # =========================================================================

    def discover(self) -> List[CatalogFile]:
        """
        Enumerate catalog files under every root.

        Unreadable roots are recorded in root_errors; missing optional
        roots are skipped.
        """
        self.root_errors = []
        files = []
        for root in self.roots:
            if not root.exists():
                if root in self.required_roots:
                    self.root_errors.append(
                        ConfigurationError("locale root does not exist", str(root))
                    )
                    logger.error("Locale root does not exist: %s", root)
                else:
                    logger.debug("Skipping missing locale root %s", root)
                continue
            if not root.is_dir():
                self.root_errors.append(ConfigurationError("locale root is not a directory", str(root)))
                logger.error("Locale root is not a directory: %s", root)
                continue
            try:
                self.layouts[str(root)] = detect_layout(root)
                files.extend(list_catalog_files(root))
            except OSError as e:
                self.root_errors.append(ConfigurationError(f"cannot read locale root: {e}", str(root)))
                logger.error("Cannot read locale root %s: %s", root, e)
        return files

    def classify(self, path: Union[str, Path]) -> Optional[CatalogFile]:
        """Catalog file descriptor for a path under any root, or None."""
        path = Path(path)
        for root in self.roots:
            found = classify(root, path)
            if found is not None:
                return found
        return None

    def handles(self, path: Union[str, Path]) -> bool:
        return self.classify(path) is not None

    def load_all(self) -> Set[str]:
        """
        Discover and load every catalog file.

        Returns:
            Keys whose translations changed
        """
        affected: Set[str] = set()
        files = self.discover()
        for catalog_file in files:
            changed = self.load_file(catalog_file.path)
            if changed:
                affected |= changed

        logger.info(
            "Loaded %d catalog file(s): %d locale(s), %d key(s)",
            len(self._contributions), len(self.locales), len(self.keys()),
        )
        return affected

    # =========================================================================
    # Updates
    # =========================================================================

    def load_file(
        self,
        path: Union[str, Path],
        data: Optional[bytes] = None,
        revision: Optional[int] = None,
    ) -> Optional[Set[str]]:
        """
        Parse one catalog file and swap in its contribution.

        Args:
            path: Catalog file path
            data: File content; read from disk if None
            revision: Event revision; results older than the last applied
                      revision for this path are discarded

        Returns:
            Keys whose translations changed (empty if nothing changed),
            or None if the path is not a catalog file or the result
            was stale
        """
        catalog_file = self.classify(path)
        if catalog_file is None:
            return None
        key = str(catalog_file.path)

        if data is None:
            try:
                data = catalog_file.path.read_bytes()
            except FileNotFoundError:
                return self.remove_file(path, revision)
            except OSError as e:
                error = CatalogParseError(key, f"cannot read file: {e}", catalog_file.locale)
                return self._record_error(catalog_file, error, revision)

        digest = xxhash.xxh64_hexdigest(data)
        with self._lock:
            previous = self._contributions.get(key)
            if previous is not None and previous.digest == digest and key not in self._errors:
                if revision is not None and not self._is_stale(key, revision):
                    self._revisions[key] = revision
                return set()

        try:
            parsed = parse_catalog(
                data, catalog_file.format, self.key_style, self.separator, catalog_file.path
            )
        except CatalogParseError as e:
            return self._record_error(catalog_file, e.with_locale(catalog_file.locale), revision)

        locale = parsed.declared_locale or catalog_file.locale
        if locale is None:
            logger.debug("No locale for %s, skipping", key)
            return set()
        if parsed.skipped:
            logger.debug("Skipped %d nested key(s) in flat catalog %s", len(parsed.skipped), key)

        prefix = self._namespace_prefix(catalog_file)
        entries = {}
        for entry_key, value in parsed.entries.items():
            full_key = prefix + entry_key
            position = parsed.positions.get(entry_key)
            entries[full_key] = CatalogEntry(
                key=full_key,
                locale=locale,
                value=value,
                location=Location(
                    key,
                    position.line if position else 0,
                    position.character if position else 0,
                ),
            )

        with self._lock:
            if revision is not None:
                if self._is_stale(key, revision):
                    logger.debug("Discarding stale catalog result for %s (rev %d)", key, revision)
                    return None
                self._revisions[key] = revision

            contribution = Contribution(catalog_file, locale, entries, digest, next(self._seq))
            previous = self._contributions.get(key)
            self._contributions[key] = contribution
            self._errors.pop(key, None)
            if self._first_locale is None:
                self._first_locale = locale

            affected = set(entries)
            touched = {locale}
            if previous is not None:
                affected |= set(previous.entries)
                touched.add(previous.locale)
            for touched_locale in touched:
                self._rebuild_locale(touched_locale)

        logger.debug("Loaded %d entr(ies) for locale %s from %s", len(entries), locale, key)
        return affected

    def remove_file(self, path: Union[str, Path], revision: Optional[int] = None) -> Set[str]:
        """
        Retract a file's contribution (file deleted).

        Returns:
            Keys whose translations changed
        """
        key = str(Path(path))
        with self._lock:
            if revision is not None:
                if self._is_stale(key, revision):
                    return set()
                self._revisions[key] = revision

            self._errors.pop(key, None)
            previous = self._contributions.pop(key, None)
            if previous is None:
                return set()
            self._rebuild_locale(previous.locale)

        logger.debug("Retracted %d entr(ies) from %s", len(previous.entries), key)
        return set(previous.entries)

    def _record_error(
        self,
        catalog_file: CatalogFile,
        error: CatalogParseError,
        revision: Optional[int],
    ) -> Optional[Set[str]]:
        key = str(catalog_file.path)
        with self._lock:
            if revision is not None:
                if self._is_stale(key, revision):
                    return None
                self._revisions[key] = revision
            self._errors[key] = error
        logger.warning("Failed to parse %s: %s", key, error.message)
        # Previous contribution stays live
        return set()

    def _is_stale(self, path: str, revision: int) -> bool:
        """Must hold lock."""
        return revision < self._revisions.get(path, -1)

    def _namespace_prefix(self, catalog_file: CatalogFile) -> str:
        if catalog_file.layout != NESTED or not catalog_file.namespace:
            return ""
        if self.namespace_enabled or catalog_file.format == "php":
            return catalog_file.namespace + self.separator
        return ""

    def _rebuild_locale(self, locale: str) -> None:
        """Recompute one locale's merged view from its contributions. Must hold lock."""
        contributions = sorted(
            (c for c in self._contributions.values() if c.locale == locale),
            key=lambda c: c.seq,
        )

        merged: Dict[str, CatalogEntry] = {}
        defined_by: Dict[str, List[CatalogEntry]] = {}
        for contribution in contributions:
            for entry_key, entry in contribution.entries.items():
                merged[entry_key] = entry
                defined_by.setdefault(entry_key, []).append(entry)

        collisions = {}
        for entry_key, entries in defined_by.items():
            if len(entries) < 2:
                continue
            winner = entries[-1]
            shadowed = tuple(e for e in entries[:-1] if e.value != winner.value)
            if shadowed:
                collisions[entry_key] = CatalogCollision(entry_key, locale, winner, shadowed)

        # A locale stays known while any of its files loads, even an empty one
        if contributions:
            self._merged[locale] = merged
        else:
            self._merged.pop(locale, None)
        if collisions:
            self._collisions[locale] = collisions
        else:
            self._collisions.pop(locale, None)
        self._all_keys = None

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def source_locale(self) -> Optional[str]:
        """Configured source locale, else the first locale discovered."""
        return self.configured_source_locale or self._first_locale

    @property
    def locales(self) -> List[str]:
        """Known locales: observed in catalogs plus the configured source locale."""
        with self._lock:
            known = {c.locale for c in self._contributions.values()}
        if self.configured_source_locale:
            known.add(self.configured_source_locale)
        return sorted(known)

    def translations(self, key: str) -> Dict[str, str]:
        """Lookup key -> {locale: value}."""
        with self._lock:
            return {
                locale: entries[key].value
                for locale, entries in self._merged.items()
                if key in entries
            }

    def entries(self, key: str) -> Dict[str, CatalogEntry]:
        """Lookup key -> {locale: CatalogEntry}."""
        with self._lock:
            return {
                locale: entries[key]
                for locale, entries in self._merged.items()
                if key in entries
            }

    def lookup(self, key: str) -> Tuple[Dict[str, CatalogEntry], List[str], Optional[str]]:
        """(locale -> entry, known locales, source locale) for one key, read under one lock."""
        with self._lock:
            return self.entries(key), self.locales, self.source_locale

    def entry(self, key: str, locale: str) -> Optional[CatalogEntry]:
        with self._lock:
            return self._merged.get(locale, {}).get(key)

    def provenance(self, key: str, locale: str) -> Optional[Location]:
        """Where (key, locale) is defined, for definition jumps."""
        found = self.entry(key, locale)
        return found.location if found else None

    def has_key(self, key: str) -> bool:
        return key in self.keys()

    def keys(self) -> FrozenSet[str]:
        """Every key defined in any locale."""
        with self._lock:
            if self._all_keys is None:
                all_keys: Set[str] = set()
                for entries in self._merged.values():
                    all_keys.update(entries)
                self._all_keys = frozenset(all_keys)
            return self._all_keys

    def locale_keys(self, locale: str) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._merged.get(locale, {}))

    def missing_locales(self, key: str) -> List[str]:
        """Known locales without a value for the key."""
        present = self.translations(key)
        return [locale for locale in self.locales if locale not in present]

    def collisions(self, locale: Optional[str] = None) -> List[CatalogCollision]:
        """Keys defined with differing values by several files of one locale."""
        with self._lock:
            if locale is not None:
                found = list(self._collisions.get(locale, {}).values())
            else:
                found = [c for by_key in self._collisions.values() for c in by_key.values()]
        return sorted(found, key=lambda c: (c.locale, c.key))

    def parse_errors(self) -> List[CatalogParseError]:
        with self._lock:
            return [self._errors[p] for p in sorted(self._errors)]

    def files(self) -> List[str]:
        """Paths currently contributing entries."""
        with self._lock:
            return sorted(self._contributions)

    def contribution(self, path: Union[str, Path]) -> Optional[Contribution]:
        with self._lock:
            return self._contributions.get(str(Path(path)))

    def snapshot(self) -> Tuple[List[str], Dict[str, FrozenSet[str]]]:
        """(locales, locale -> keys) captured under one lock, for reports."""
        with self._lock:
            return self.locales, {
                locale: frozenset(entries) for locale, entries in self._merged.items()
            }

    def stats(self) -> dict:
        with self._lock:
            return {
                "files": len(self._contributions),
                "locales": self.locales,
                "keys": len(self.keys()),
                "collisions": sum(len(c) for c in self._collisions.values()),
                "parse_errors": len(self._errors),
                "layouts": dict(self.layouts),
            }
