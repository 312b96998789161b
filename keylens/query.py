"""
Query Service — Read-only answers for editor features

Reads the WorkspaceIndex and CatalogStore; never parses anything. Every
answer is plain structured data (dataclasses with to_dict()), with no
transport framing.

Operations:
- hover(key): every known locale's value, missing ones flagged
- completion(prefix): known keys starting with the prefix
- definition(key, locale): where the value is defined
- diagnostics(path): missing / incomplete-coverage findings per occurrence
- catalog_diagnostics(): unparseable catalog files, key collisions
- inlay_hints(path): source-locale value after each occurrence
- coverage_report(): per-locale coverage of all known keys

Position variants (hover_at, definition_at, completion_at) resolve the
key under a cursor from the already-indexed occurrences of the file.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from rapidfuzz import fuzz, process

from .coordinator.documents import DocumentStore
from .core.catalog import CatalogStore
from .core.index import WorkspaceIndex
from .core.models import CatalogCollision, Location, Position, SourceOccurrence, Span
from .core.parsing import KeyPattern, PatternRegistry

_CLOSING_QUOTES = ("'", '"', "`")

# Stands in for the next key character when completing an open key string
_PLACEHOLDER = "a"

SUGGESTION_CUTOFF = 80
SUGGESTION_LIMIT = 3


class Severity(IntEnum):
    """Diagnostic severities, numbered as editors expect them."""
    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


class DiagnosticCode:
    MISSING = "missing-translation"
    INCOMPLETE = "incomplete-translation"
    CATALOG_PARSE_ERROR = "catalog-parse-error"
    LOCALE_ROOT_ERROR = "locale-root-error"
    DUPLICATE_KEY = "duplicate-key"


# =============================================================================
# Result types
# =============================================================================

@dataclass
class HoverEntry:
    """One locale's line in a hover."""
    locale: str
    value: Optional[str]
    is_source: bool = False
    location: Optional[Location] = None

    @property
    def missing(self) -> bool:
        return self.value is None

    def to_dict(self) -> dict:
        return {
            "locale": self.locale,
            "value": self.value,
            "missing": self.missing,
            "is_source": self.is_source,
            "location": self.location.to_dict() if self.location else None,
        }


@dataclass
class HoverResult:
    key: str
    entries: List[HoverEntry] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def values(self) -> Dict[str, Optional[str]]:
        """locale -> value (None = missing)."""
        return {e.locale: e.value for e in self.entries}

    def to_markdown(self) -> str:
        if self.is_empty:
            return ""
        lines = [f"### `{self.key}`", ""]
        for entry in self.entries:
            value = entry.value if not entry.missing else "_missing_"
            lines.append(f"**{entry.locale}**: {value}")
            lines.append("")
            if entry.is_source:
                lines.extend(["---", ""])
        return "\n".join(lines).rstrip() + "\n"

    def to_dict(self) -> dict:
        return {"key": self.key, "entries": [e.to_dict() for e in self.entries]}


@dataclass
class CompletionItem:
    key: str
    detail: Optional[str] = None  # source-locale value

    def to_dict(self) -> dict:
        return {"key": self.key, "detail": self.detail}


@dataclass
class Diagnostic:
    path: str
    span: Span
    severity: Severity
    code: str
    message: str
    key: Optional[str] = None
    locales: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "range": {"start": self.span.start.to_dict(), "end": self.span.end.to_dict()},
            "severity": int(self.severity),
            "code": self.code,
            "message": self.message,
            "key": self.key,
            "locales": list(self.locales),
            "suggestions": list(self.suggestions),
        }


@dataclass
class InlayHint:
    position: Position
    label: str
    key: str

    def to_dict(self) -> dict:
        return {"position": self.position.to_dict(), "label": self.label, "key": self.key}


@dataclass
class LocaleCoverage:
    locale: str
    defined: int
    total: int
    missing: List[str] = field(default_factory=list)

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 100.0
        return round(100.0 * self.defined / self.total, 1)

    def to_dict(self) -> dict:
        return {
            "locale": self.locale,
            "defined": self.defined,
            "total": self.total,
            "percentage": self.percentage,
            "missing": list(self.missing),
        }


@dataclass
class CoverageReport:
    source_locale: Optional[str]
    total_keys: int
    locales: List[LocaleCoverage] = field(default_factory=list)
    collisions: List[CatalogCollision] = field(default_factory=list)
    unreferenced: List[str] = field(default_factory=list)  # defined, never used in source

    def locale(self, name: str) -> Optional[LocaleCoverage]:
        for coverage in self.locales:
            if coverage.locale == name:
                return coverage
        return None

    def to_dict(self) -> dict:
        return {
            "source_locale": self.source_locale,
            "total_keys": self.total_keys,
            "locales": [c.to_dict() for c in self.locales],
            "collisions": [c.to_dict() for c in self.collisions],
            "unreferenced": list(self.unreferenced),
        }


def truncate(text: str, max_chars: int) -> str:
    """Shorten to max_chars, ending with '...' when cut."""
    if len(text) <= max_chars:
        return text
    return text[:max(max_chars - 3, 0)] + "..."


def extract_completion_prefix(
    line: str,
    character: int,
    patterns: Iterable[KeyPattern],
) -> Optional[str]:
    """
    Key prefix typed inside a key string literal at the cursor, or None.

    The line is completed with a placeholder key character and a closer
    (the rest of the line, else a closing quote); the cursor is inside a
    key when one of the patterns then captures a key ending right at the
    placeholder.
    """
    head = line[:character]
    opening = max(head.rfind(quote) for quote in _CLOSING_QUOTES)
    if opening < 0:
        return None

    quote = head[opening]
    end = character + len(_PLACEHOLDER)
    patterns = list(patterns)
    for closer in (line[character:], quote + ")", quote):
        completed = head + _PLACEHOLDER + closer
        for pattern in patterns:
            for match in pattern.regex.finditer(completed):
                start, stop = match.span(pattern.key_group)
                if stop == end and opening < start <= character:
                    return completed[start:character]
    return None


def _point_span(line: int, column: int) -> Span:
    position = Position(line, column)
    return Span(position, position)


# =============================================================================
# Service
# =============================================================================

class QueryService:
    """
    Read-only facade over the index.

    Safe to call from any thread while re-indexing runs; answers reflect
    the last applied state of each file.
    """

    def __init__(
        self,
        index: WorkspaceIndex,
        documents: Optional[DocumentStore] = None,
        completion_limit: int = 100,
        hint_max_chars: int = 30,
        registry: Optional[PatternRegistry] = None,
    ):
        self.index = index
        self.documents = documents or DocumentStore()
        self.registry = registry if registry is not None else PatternRegistry.with_builtins()
        self.completion_limit = completion_limit
        self.hint_max_chars = hint_max_chars

    @property
    def catalog(self) -> CatalogStore:
        """The store currently published by the index."""
        return self.index.catalog

    # =========================================================================
    # Key queries
    # =========================================================================

    def hover(self, key: str) -> HoverResult:
        """
        Values of a key for every known locale.

        Source locale first, then the other locales alphabetically.
        Locales without a value are listed with value None. A key with no
        value in any locale gives an empty result.
        """
        entries, locales, source_locale = self.catalog.lookup(key)
        if not entries:
            return HoverResult(key)

        ordered = sorted(locales, key=lambda loc: (loc != source_locale, loc))

        result = HoverResult(key)
        for locale in ordered:
            entry = entries.get(locale)
            result.entries.append(HoverEntry(
                locale=locale,
                value=entry.value if entry else None,
                is_source=locale == source_locale,
                location=entry.location if entry else None,
            ))
        return result

    def completion(self, prefix: str = "") -> List[CompletionItem]:
        """Known keys starting with prefix, sorted, capped at completion_limit."""
        source_locale = self.catalog.source_locale
        candidates = sorted(k for k in self.index.all_keys() if k.startswith(prefix))

        items = []
        for key in candidates[:self.completion_limit]:
            entry = self.catalog.entry(key, source_locale) if source_locale else None
            items.append(CompletionItem(key, entry.value if entry else None))
        return items

    def definition(self, key: str, locale: Optional[str] = None) -> Optional[Location]:
        """
        Where (key, locale) is defined.

        Without a locale: the source locale, else the first locale (by
        name) defining the key. None when not found.
        """
        if locale is not None:
            return self.catalog.provenance(key, locale)

        source_locale = self.catalog.source_locale
        if source_locale:
            found = self.catalog.provenance(key, source_locale)
            if found is not None:
                return found

        entries = self.catalog.entries(key)
        for name in sorted(entries):
            return entries[name].location
        return None

    def occurrences(self, key: str) -> List[SourceOccurrence]:
        """References to a key, by file path then position."""
        return self.index.occurrences(key)

    # =========================================================================
    # Position queries
    # =========================================================================

    def key_at(self, path: str, line: int, character: int) -> Optional[SourceOccurrence]:
        """Indexed occurrence under the cursor."""
        position = Position(line, character)
        for occurrence in self.index.occurrences_in_file(path):
            if occurrence.span.contains(position):
                return occurrence
        return None

    def hover_at(self, path: str, line: int, character: int) -> Optional[HoverResult]:
        occurrence = self.key_at(path, line, character)
        if occurrence is None:
            return None
        return self.hover(occurrence.key)

    def definition_at(
        self,
        path: str,
        line: int,
        character: int,
        locale: Optional[str] = None,
    ) -> Optional[Location]:
        occurrence = self.key_at(path, line, character)
        if occurrence is None:
            return None
        return self.definition(occurrence.key, locale)

    def completion_at(
        self,
        path: str,
        line: int,
        character: int,
        text: Optional[str] = None,
    ) -> List[CompletionItem]:
        """Completions for the key being typed at the cursor of an open document."""
        text = text if text is not None else self.documents.text(path)
        if text is None:
            return []

        lines = text.split("\n")
        if line < 0 or line >= len(lines):
            return []

        dialect = self.registry.resolve(Path(path), text)
        if dialect is None:
            return []

        patterns = self.registry.patterns_for(dialect.name)
        prefix = extract_completion_prefix(lines[line], character, patterns)
        if prefix is None:
            return []
        return self.completion(prefix)

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def diagnostics(self, path: str) -> List[Diagnostic]:
        """
        Findings for every occurrence in a source file.

        - missing-translation (WARNING): no source-locale value
        - incomplete-translation (HINT): source value present, some
          known locale lacks one
        """
        occurrences = self.index.occurrences_in_file(path)
        if not occurrences:
            return []

        catalog = self.catalog
        source_locale = catalog.source_locale
        locales = catalog.locales
        catalog_keys = None

        found = []
        for occurrence in occurrences:
            translations = catalog.translations(occurrence.key)

            if source_locale is None or source_locale not in translations:
                if catalog_keys is None:
                    catalog_keys = catalog.keys()
                found.append(self._missing(occurrence, translations, source_locale, catalog_keys))
                continue

            missing_locales = [loc for loc in locales if loc not in translations]
            if missing_locales:
                found.append(Diagnostic(
                    path=path,
                    span=occurrence.span,
                    severity=Severity.HINT,
                    code=DiagnosticCode.INCOMPLETE,
                    message=f"Translation '{occurrence.key}' missing in: {', '.join(missing_locales)}",
                    key=occurrence.key,
                    locales=missing_locales,
                ))
        return found

    def _missing(
        self,
        occurrence: SourceOccurrence,
        translations: Dict[str, str],
        source_locale: Optional[str],
        catalog_keys,
    ) -> Diagnostic:
        key = occurrence.key
        if translations:
            message = f"Translation key '{key}' missing in source locale '{source_locale}'"
            suggestions = []
        else:
            message = f"Translation key '{key}' not found"
            suggestions = self.suggest(key, catalog_keys)
        return Diagnostic(
            path=occurrence.path,
            span=occurrence.span,
            severity=Severity.WARNING,
            code=DiagnosticCode.MISSING,
            message=message,
            key=key,
            locales=[source_locale] if source_locale else [],
            suggestions=suggestions,
        )

    def suggest(self, key: str, candidates=None) -> List[str]:
        """Defined keys similar to an undefined one (did-you-mean)."""
        if candidates is None:
            candidates = self.catalog.keys()
        if not candidates:
            return []
        matches = process.extract(
            key,
            sorted(candidates),
            scorer=fuzz.ratio,
            limit=SUGGESTION_LIMIT,
            score_cutoff=SUGGESTION_CUTOFF,
        )
        return [match[0] for match in matches]

    def catalog_diagnostics(self) -> List[Diagnostic]:
        """Unreadable roots, unparseable catalog files and key collisions."""
        found = []

        for error in self.catalog.root_errors:
            found.append(Diagnostic(
                path=error.source or "",
                span=_point_span(0, 0),
                severity=Severity.ERROR,
                code=DiagnosticCode.LOCALE_ROOT_ERROR,
                message=error.message,
            ))

        for error in self.catalog.parse_errors():
            found.append(Diagnostic(
                path=error.path,
                span=_point_span(error.line or 0, error.column or 0),
                severity=Severity.ERROR,
                code=DiagnosticCode.CATALOG_PARSE_ERROR,
                message=error.message,
                locales=[error.locale] if error.locale else [],
            ))

        for collision in self.catalog.collisions():
            winner = collision.winner.location
            for shadowed in collision.shadowed:
                location = shadowed.location
                found.append(Diagnostic(
                    path=location.path,
                    span=_point_span(location.line, location.column),
                    severity=Severity.INFORMATION,
                    code=DiagnosticCode.DUPLICATE_KEY,
                    message=(
                        f"Key '{collision.key}' ({collision.locale}) is overridden by "
                        f"{winner.path}:{winner.line + 1}"
                    ),
                    key=collision.key,
                    locales=[collision.locale],
                ))
        return found

    # =========================================================================
    # Inlay hints
    # =========================================================================

    def inlay_hints(
        self,
        path: str,
        line_range: Optional[Tuple[int, int]] = None,
        text: Optional[str] = None,
    ) -> List[InlayHint]:
        """
        Source-locale value after each occurrence with one.

        Args:
            path: Source file
            line_range: Inclusive (start, end) lines; None = whole file
            text: Document text, used to place hints after a closing quote
                  (defaults to the open buffer)
        """
        source_locale = self.catalog.source_locale
        if source_locale is None:
            return []
        text = text if text is not None else self.documents.text(path)

        hints = []
        for occurrence in self.index.occurrences_in_file(path):
            span = occurrence.span
            if line_range is not None:
                start, end = line_range
                if span.end.line < start or span.start.line > end:
                    continue

            entry = self.catalog.entry(occurrence.key, source_locale)
            if entry is None:
                continue

            character = span.end.character
            if text is not None and span.end_offset < len(text) and text[span.end_offset] in _CLOSING_QUOTES:
                character += 1

            hints.append(InlayHint(
                position=Position(span.end.line, character),
                label=f"= {truncate(entry.value, self.hint_max_chars)}",
                key=occurrence.key,
            ))
        return hints

    # =========================================================================
    # Coverage
    # =========================================================================

    def coverage_report(self) -> CoverageReport:
        """Per-locale coverage of every known key, plus collisions."""
        catalog = self.catalog
        locales, locale_keys = catalog.snapshot()
        referenced = self.index.referenced_keys()
        all_keys = set(referenced)
        for keys in locale_keys.values():
            all_keys.update(keys)

        report = CoverageReport(
            source_locale=catalog.source_locale,
            total_keys=len(all_keys),
            collisions=catalog.collisions(),
            unreferenced=sorted(all_keys - set(referenced)),
        )
        for locale in locales:
            defined = locale_keys.get(locale, frozenset())
            report.locales.append(LocaleCoverage(
                locale=locale,
                defined=len(defined & all_keys),
                total=len(all_keys),
                missing=sorted(all_keys - defined),
            ))
        return report
