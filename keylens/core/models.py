"""
Models — Shared value types for the key index

All positions are 0-based (line, character) pairs, matching what editor
hosts expect. Offsets are character offsets into the decoded text.

Ownership:
- SourceOccurrence: produced by the extractor, owned by WorkspaceIndex
- CatalogEntry: produced by the catalog parser, owned by CatalogStore
- KeyRecord: derived on demand from both, never stored
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True, order=True)
class Position:
    """A 0-based line/character position."""
    line: int
    character: int

    def to_dict(self) -> dict:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True, order=True)
class Span:
    """Text range of a key inside a source file."""
    start: Position
    end: Position
    start_offset: int = 0
    end_offset: int = 0

    def contains(self, position: Position) -> bool:
        """Inclusive containment, so a cursor right after the key still hits."""
        return self.start <= position <= self.end

    def to_dict(self) -> dict:
        return {
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
        }


@dataclass(frozen=True)
class Location:
    """A point inside a file, used for definition jumps."""
    path: str
    line: int = 0
    column: int = 0

    def to_dict(self) -> dict:
        return {"path": self.path, "line": self.line, "column": self.column}


@dataclass(frozen=True)
class SourceOccurrence:
    """One textual reference to a key inside a source file."""
    path: str
    key: str
    span: Span
    pattern: str = ""  # name of the pattern that matched

    @property
    def identity(self) -> Tuple[str, int, int]:
        """Deduplication identity: the same key at the same span."""
        return (self.key, self.span.start_offset, self.span.end_offset)

    @property
    def sort_key(self) -> Tuple[str, Position]:
        return (self.path, self.span.start)

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "key": self.key,
            "span": self.span.to_dict(),
            "pattern": self.pattern,
        }


@dataclass(frozen=True)
class CatalogEntry:
    """A (key, locale) value with its provenance."""
    key: str
    locale: str
    value: str
    location: Location

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "locale": self.locale,
            "value": self.value,
            "location": self.location.to_dict(),
        }


@dataclass(frozen=True)
class CatalogCollision:
    """A key defined with differing values by several files of one locale."""
    key: str
    locale: str
    winner: CatalogEntry
    shadowed: Tuple[CatalogEntry, ...]

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "locale": self.locale,
            "winner": self.winner.to_dict(),
            "shadowed": [e.to_dict() for e in self.shadowed],
        }


@dataclass
class KeyRecord:
    """
    Joined view of one key: where it is used and what it translates to.

    Derived from WorkspaceIndex occurrences and CatalogStore entries.
    """
    key: str
    occurrences: List[SourceOccurrence] = field(default_factory=list)
    translations: Dict[str, str] = field(default_factory=dict)
    source_locale: Optional[str] = None
    missing_locales: List[str] = field(default_factory=list)

    @property
    def source_value(self) -> Optional[str]:
        if self.source_locale is None:
            return None
        return self.translations.get(self.source_locale)

    @property
    def is_missing(self) -> bool:
        """No value for the source locale."""
        return self.source_value is None

    @property
    def is_incomplete(self) -> bool:
        """Has some translations, but not for every known locale."""
        return bool(self.translations) and bool(self.missing_locales)

    @property
    def is_referenced(self) -> bool:
        return bool(self.occurrences)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "occurrences": [o.to_dict() for o in self.occurrences],
            "translations": dict(self.translations),
            "source_locale": self.source_locale,
            "source_value": self.source_value,
            "missing": self.is_missing,
            "missing_locales": list(self.missing_locales),
        }
