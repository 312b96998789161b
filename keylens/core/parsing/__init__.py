"""
Parsing module — Dialect-agnostic key extraction via patterns.

This module provides the foundation for multi-framework key indexing:
- DialectConfig: Per-dialect extraction rules
- KeyPattern: Regex to key-capture mapping
- PatternRegistry: File-name routing and custom pattern merging
- KeyExtractor: Occurrence extraction from raw text

Design principle: Add new frameworks via data entries, not code types.

Usage:
    from keylens.core.parsing import DialectConfig, KeyPattern, PatternRegistry

    # Define a dialect
    config = DialectConfig(
        name="svelte",
        extensions={'.svelte'},
        patterns=[
            KeyPattern(name="svelte-i18n.$_", pattern=r"\\$_\\(\\s*['\\"]([^'\\"]+)['\\"]"),
        ],
    )

    # Register
    registry = PatternRegistry.with_builtins()
    registry.register(config)

    # Use
    dialect = registry.resolve(Path("App.svelte"))
"""

from .config import DialectConfig, KeyPattern
from .registry import PatternRegistry
from .extractor import KeyExtractor, LineIndex
from .exclusions import ExclusionConfig

__all__ = [
    'DialectConfig',
    'KeyPattern',
    'PatternRegistry',
    'KeyExtractor',
    'LineIndex',
    'ExclusionConfig',
]
