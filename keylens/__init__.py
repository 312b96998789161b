"""
KeyLens — Background i18n key index

Finds translation keys in source files, loads locale catalogs, and keeps
the two joined while files change, so editor features (hover, completion,
go-to-definition, diagnostics, inlay hints) answer from memory.

Usage:
    from keylens import I18nEngine

    engine = I18nEngine("/path/to/project")
    engine.start()
    engine.wait_idle(timeout=30)
    engine.hover("common.actions.submit")
"""

__version__ = "0.1.0"

# Core layer (data)
from .core.models import Position, Span, Location, SourceOccurrence, CatalogEntry, CatalogCollision, KeyRecord
from .core.parsing import DialectConfig, KeyPattern, PatternRegistry, KeyExtractor
from .core.catalog import CatalogStore, parse_catalog
from .core.index import WorkspaceIndex

# Coordination
from .coordinator import ChangeCoordinator, ChangeEvent, ChangeKind, CoordinatorConfig

# Queries
from .query import QueryService, Diagnostic, Severity, HoverResult, CompletionItem, InlayHint, CoverageReport

# Config and errors
from .config import EngineConfig, ConfigManager
from .errors import KeyLensError, ConfigurationError, CatalogParseError

from .engine import I18nEngine

__all__ = [
    # Core
    'Position', 'Span', 'Location', 'SourceOccurrence', 'CatalogEntry', 'CatalogCollision', 'KeyRecord',
    'DialectConfig', 'KeyPattern', 'PatternRegistry', 'KeyExtractor',
    'CatalogStore', 'parse_catalog',
    'WorkspaceIndex',
    # Coordination
    'ChangeCoordinator', 'ChangeEvent', 'ChangeKind', 'CoordinatorConfig',
    # Queries
    'QueryService', 'Diagnostic', 'Severity', 'HoverResult', 'CompletionItem', 'InlayHint', 'CoverageReport',
    # Config and errors
    'EngineConfig', 'ConfigManager',
    'KeyLensError', 'ConfigurationError', 'CatalogParseError',
    # Facade
    'I18nEngine',
]
