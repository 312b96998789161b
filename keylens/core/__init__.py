"""
Core — Data layer for the key index

Contains the foundational data structures:
- Models: positions, occurrences, catalog entries, key records
- Parsing: pattern registry and key extraction from source text
- Catalog: locale file parsing and the per-locale catalog store
- Index: key -> occurrences, joined with the catalog store
"""

from .models import (
    Position, Span, Location,
    SourceOccurrence, CatalogEntry, CatalogCollision, KeyRecord,
)
from .catalog import CatalogStore, CatalogFile, ParsedCatalog, parse_catalog
from .index import WorkspaceIndex, dedupe
from .parsing import DialectConfig, KeyPattern, PatternRegistry, KeyExtractor, LineIndex, ExclusionConfig

__all__ = [
    # Models
    "Position", "Span", "Location",
    "SourceOccurrence", "CatalogEntry", "CatalogCollision", "KeyRecord",
    # Catalog
    "CatalogStore", "CatalogFile", "ParsedCatalog", "parse_catalog",
    # Index
    "WorkspaceIndex", "dedupe",
    # Parsing
    "DialectConfig", "KeyPattern", "PatternRegistry", "KeyExtractor", "LineIndex", "ExclusionConfig",
]
