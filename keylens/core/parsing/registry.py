"""
Pattern Registry — Routes files to dialect-specific extraction patterns.

Central registry that maps file names to DialectConfig instances and
merges built-in patterns with user-declared custom patterns.
Enables adding new framework support without modifying core code.

Usage:
    registry = PatternRegistry.with_builtins()
    registry.add_custom_patterns([r"translate\\(['\"]([^'\"]+)['\"]"])

    dialect = registry.resolve(Path("src/app.tsx"))
    patterns = registry.patterns_for(dialect.name)
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from ...errors import ConfigurationError
from .config import DialectConfig, KeyPattern

logger = logging.getLogger(__name__)


class PatternRegistry:
    """
    Registry of dialect configurations and custom patterns.

    Maps file extensions to DialectConfig instances for routing.
    Several dialects may share an extension (PHP and Blade); content
    sniffing picks between them.
    """

    def __init__(self):
        """Initialize empty registry."""
        self._configs: Dict[str, DialectConfig] = {}  # name -> config
        self._extension_map: Dict[str, List[str]] = {}  # ext -> config names
        self._custom: List[KeyPattern] = []

    @classmethod
    def with_builtins(cls) -> 'PatternRegistry':
        """Create a registry holding every built-in dialect."""
        from .dialects import BUILTIN_DIALECTS

        registry = cls()
        for config in BUILTIN_DIALECTS:
            registry.register(config)
        return registry

    @classmethod
    def from_config(cls, function_patterns: Iterable[Any]) -> 'PatternRegistry':
        """
        Create a registry with built-ins plus user patterns.

        Raises:
            ConfigurationError: If any user pattern is malformed
        """
        registry = cls.with_builtins()
        registry.add_custom_patterns(function_patterns)
        return registry

    def register(self, config: DialectConfig) -> None:
        """
        Register a dialect configuration.

        Args:
            config: DialectConfig to register

        Raises:
            ValueError: If a dialect with the same name is already registered
        """
        if config.name in self._configs:
            raise ValueError(f"Dialect {config.name} already registered")

        self._configs[config.name] = config
        for ext in config.extensions:
            self._extension_map.setdefault(ext.lower(), []).append(config.name)

    def unregister(self, name: str) -> bool:
        """
        Unregister a dialect configuration by name.

        Returns:
            True if unregistered, False if not found
        """
        config = self._configs.pop(name, None)
        if config is None:
            return False

        for ext in config.extensions:
            names = self._extension_map.get(ext.lower(), [])
            if name in names:
                names.remove(name)
            if not names:
                self._extension_map.pop(ext.lower(), None)
        return True

    # =========================================================================
    # Custom Patterns
    # =========================================================================

    def add_custom_patterns(self, specs: Iterable[Any]) -> List[KeyPattern]:
        """
        Validate and append user-declared patterns.

        Each spec is either a regex string (group 1 yields the key) or a
        mapping with keys: pattern, group, name, dialects. All specs are
        validated before any is added, so a bad list changes nothing.

        Returns:
            The patterns added, in declaration order

        Raises:
            ConfigurationError: On the first malformed spec
        """
        parsed = []
        offset = len(self._custom)
        for index, spec in enumerate(specs or []):
            parsed.append(self._parse_spec(spec, offset + index))

        self._custom.extend(parsed)
        if parsed:
            logger.debug("Registered %d custom pattern(s)", len(parsed))
        return parsed

    def clear_custom_patterns(self) -> None:
        """Drop all user-declared patterns."""
        self._custom = []

    @property
    def custom_patterns(self) -> List[KeyPattern]:
        return list(self._custom)

    def _parse_spec(self, spec: Any, index: int) -> KeyPattern:
        """Build a KeyPattern from one pattern spec."""
        source = f"functionPatterns[{index}]"

        if isinstance(spec, str):
            pattern, group, name, dialects = spec, 1, None, None
        elif isinstance(spec, dict):
            pattern = spec.get("pattern") or spec.get("regex")
            group = spec.get("group", spec.get("keyGroup", spec.get("key_group", 1)))
            name = spec.get("name")
            dialects = spec.get("dialects")
            if not isinstance(pattern, str) or not pattern:
                raise ConfigurationError("pattern must be a non-empty string", source)
            if not isinstance(group, int) or isinstance(group, bool):
                raise ConfigurationError(f"group must be an integer, got {group!r}", source)
            if dialects is not None:
                if isinstance(dialects, str):
                    dialects = [dialects]
                unknown = [d for d in dialects if d not in self._configs]
                if unknown:
                    valid = ", ".join(sorted(self._configs))
                    raise ConfigurationError(
                        f"unknown dialect(s) {', '.join(unknown)}. Valid: {valid}", source
                    )
        else:
            raise ConfigurationError(
                f"expected a regex string or a mapping, got {type(spec).__name__}", source
            )

        try:
            return KeyPattern(
                name=name or f"custom-{index + 1}",
                pattern=pattern,
                key_group=group,
                dialects=frozenset(dialects) if dialects else None,
                builtin=False,
            )
        except re.error as e:
            raise ConfigurationError(f"invalid regular expression: {e}", source) from e
        except ValueError as e:
            raise ConfigurationError(str(e), source) from e

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve(self, file_path: Path, text: Optional[str] = None) -> Optional[DialectConfig]:
        """
        Resolve the dialect of a file.

        Order:
        1. Compound filename suffix (e.g., .blade.php)
        2. Extension; when shared, the first dialect whose sniffer
           accepts the text, else the first dialect without a sniffer

        Args:
            file_path: Path to file
            text: File content, used for sniffing ambiguous extensions

        Returns:
            DialectConfig if supported, None otherwise
        """
        file_path = Path(file_path)
        name = file_path.name

        for config in self._configs.values():
            if config.filename_suffixes and config.matches_filename(name):
                return config

        candidates = [
            self._configs[n] for n in self._extension_map.get(file_path.suffix.lower(), [])
        ]
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]

        if text is not None:
            for config in candidates:
                if config.sniffer is not None and config.sniffer(text):
                    return config

        for config in candidates:
            if config.sniffer is None:
                return config
        return candidates[0]

    def patterns_for(self, dialect: str) -> List[KeyPattern]:
        """
        Ordered pattern set for a dialect.

        Built-ins first, in declaration order. A user pattern whose name
        equals a built-in's replaces it in place; other user patterns are
        appended in declaration order.
        """
        config = self._configs.get(dialect)
        builtins = list(config.patterns) if config else []

        applicable = [p for p in self._custom if p.applies_to(dialect)]
        overrides = {p.name: p for p in applicable}
        builtin_names = {p.name for p in builtins}

        result = [overrides.get(p.name, p) for p in builtins]
        result.extend(p for p in applicable if p.name not in builtin_names)
        return result

    def get_config_by_name(self, name: str) -> Optional[DialectConfig]:
        """Get dialect config by name."""
        return self._configs.get(name)

    def supported_extensions(self) -> Set[str]:
        """All extensions claimed by some dialect (e.g., {'.ts', '.vue'})."""
        return set(self._extension_map.keys())

    def supported_dialects(self) -> List[str]:
        """Registered dialect names in registration order."""
        return list(self._configs.keys())

    def is_supported(self, file_path: Path) -> bool:
        """Check if a file could hold key references."""
        file_path = Path(file_path)
        if file_path.suffix.lower() in self._extension_map:
            return True
        return any(
            c.filename_suffixes and c.matches_filename(file_path.name)
            for c in self._configs.values()
        )

    def __len__(self) -> int:
        """Return number of registered dialects."""
        return len(self._configs)

    def __contains__(self, name: str) -> bool:
        """Check if a dialect name is registered."""
        return name in self._configs
