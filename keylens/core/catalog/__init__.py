"""
Catalog module — Locale files to one key -> (locale -> value) structure.

- formats: pure per-file parsing (JSON, ARB, YAML, PHP) and key-style detection
- layout: nested/flat directory layouts and locale-code detection
- CatalogStore: thread-safe aggregation with per-file provenance
"""

from .formats import (
    KEY_STYLES,
    ParsedCatalog,
    apply_key_style,
    detect_format,
    detect_key_style,
    flatten,
    parse_catalog,
)
from .layout import CatalogFile, arb_stem_locale, classify, detect_layout, is_locale_code
from .store import CatalogStore, Contribution

__all__ = [
    'KEY_STYLES',
    'ParsedCatalog',
    'apply_key_style',
    'detect_format',
    'detect_key_style',
    'flatten',
    'parse_catalog',
    'CatalogFile',
    'arb_stem_locale',
    'classify',
    'detect_layout',
    'is_locale_code',
    'CatalogStore',
    'Contribution',
]
