"""
KeyExtractor — Pattern-driven key reference extraction.

Locates translation key references in source text using the pattern set
the PatternRegistry resolves for the file's dialect. Works on raw text,
not on an AST: one engine covers JSX, templates, PHP and Dart.

Design principle: Locate keys, never validate them.

Usage:
    from keylens.core.parsing import PatternRegistry, KeyExtractor

    registry = PatternRegistry.with_builtins()
    extractor = KeyExtractor(registry)
    occurrences = extractor.extract(Path("src/App.tsx"), content)
"""

from bisect import bisect_right
from pathlib import Path
from typing import Iterator, List, Optional

from ..models import Position, SourceOccurrence, Span
from .config import DialectConfig
from .registry import PatternRegistry


class LineIndex:
    """Maps character offsets to 0-based line/character positions."""

    def __init__(self, text: str):
        self._starts = [0]
        for i, ch in enumerate(text):
            if ch == '\n':
                self._starts.append(i + 1)

    def position(self, offset: int) -> Position:
        line = bisect_right(self._starts, offset) - 1
        return Position(line, offset - self._starts[line])

    def offset(self, position: Position) -> int:
        line = min(max(position.line, 0), len(self._starts) - 1)
        return self._starts[line] + position.character

    @property
    def line_count(self) -> int:
        return len(self._starts)


class KeyExtractor:
    """
    Extracts key occurrences from source text.

    Every pattern in the resolved set is applied to the whole text; each
    pattern contributes its non-overlapping matches left to right. Matches
    of different patterns may overlap and are all kept; deduplication of
    identical (key, span) pairs belongs to the WorkspaceIndex.
    """

    def __init__(self, registry: PatternRegistry):
        """
        Initialize extractor with pattern registry.

        Args:
            registry: PatternRegistry providing dialects and patterns
        """
        self.registry = registry

    def iter_occurrences(
        self,
        file_path: Path,
        content: str,
        dialect: Optional[DialectConfig] = None,
    ) -> Iterator[SourceOccurrence]:
        """
        Lazily yield key occurrences from file content.

        Args:
            file_path: Path to file (for dialect resolution and provenance)
            content: File content to scan
            dialect: Pre-resolved dialect; resolved from path/content if None

        Yields:
            SourceOccurrence per match, pattern by pattern
        """
        if dialect is None:
            dialect = self.registry.resolve(file_path, content)
        if dialect is None:
            return

        if len(content) > dialect.max_file_size:
            return

        path = str(file_path)
        lines = LineIndex(content)

        for pattern in self.registry.patterns_for(dialect.name):
            for match in pattern.regex.finditer(content):
                key = match.group(pattern.key_group)
                if not key:
                    continue

                start, end = match.span(pattern.key_group)
                yield SourceOccurrence(
                    path=path,
                    key=key,
                    span=Span(
                        start=lines.position(start),
                        end=lines.position(end),
                        start_offset=start,
                        end_offset=end,
                    ),
                    pattern=pattern.name,
                )

    def extract(
        self,
        file_path: Path,
        content: str,
        dialect: Optional[DialectConfig] = None,
    ) -> List[SourceOccurrence]:
        """
        Extract all key occurrences from file content.

        Returns:
            List of occurrences in pattern order (may contain overlaps)
        """
        return list(self.iter_occurrences(file_path, content, dialect))

    def key_at(
        self,
        file_path: Path,
        content: str,
        line: int,
        character: int,
    ) -> Optional[SourceOccurrence]:
        """
        Find the key occurrence under a cursor position.

        Returns:
            The first occurrence whose span contains the position, or None
        """
        position = Position(line, character)
        for occurrence in self.iter_occurrences(file_path, content):
            if occurrence.span.contains(position):
                return occurrence
        return None
