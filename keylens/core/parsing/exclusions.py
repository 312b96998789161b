"""
Centralized exclusion rules for workspace source discovery.

Single source of truth for what the initial workspace walk skips.
Extensible and accessible for configuration.

Usage:
    from keylens.core.parsing.exclusions import ExclusionConfig

    # Prune directories while walking
    if ExclusionConfig.is_excluded_dir("node_modules"): ...

    # Skip generated files
    if ExclusionConfig.is_excluded_file(Path("app.min.js"), "javascript"): ...

    # Add custom rules
    ExclusionConfig.add_common('*.generated.ts')
    ExclusionConfig.add_directory('storybook-static')

    # Reset to defaults
    ExclusionConfig.reset()
"""

import fnmatch
from pathlib import Path
from typing import Dict, List, Optional, Set


class ExclusionConfig:
    """
    Central configuration for exclusion rules.

    Manages:
    - Directory names pruned from the walk, at any depth
    - File name patterns applied to all dialects
    - Dialect-specific file name patterns
    """

    # =========================================================================
    # Default Rules (can be extended at runtime)
    # =========================================================================

    _DEFAULT_DIRECTORIES: List[str] = [
        # Version control
        '.git', '.svn', '.hg',

        # IDE/Editor
        '.idea', '.vscode',

        # Dependencies
        'node_modules', 'bower_components', 'vendor',

        # Build artifacts and framework caches
        'build', 'dist', 'out', 'coverage',
        '.next', '.nuxt', '.svelte-kit', '.angular', '.turbo', '.vercel',
        '.dart_tool', '.pub-cache',

        # Laravel runtime
        'storage', 'bootstrap/cache',

        # Python tooling that may share a monorepo
        '.venv', 'venv', '__pycache__',
    ]

    _DEFAULT_COMMON: List[str] = [
        '*.swp',
        '*.swo',
        '*.tmp',
        '*.log',
    ]

    _DEFAULT_DIALECT: Dict[str, List[str]] = {
        'javascript': [
            '*.min.js',
            '*.bundle.js',
            '*.chunk.js',
        ],
        'typescript': [
            '*.d.ts',
        ],
        'dart': [
            '*.g.dart',
            '*.freezed.dart',
            # gen_l10n output defines the getters, it does not use them
            'app_localizations*.dart',
        ],
        'angular-template': [
            '*.min.html',
        ],
    }

    # =========================================================================
    # Runtime State (mutable)
    # =========================================================================

    _directories: Set[str] = set()
    _common_patterns: List[str] = []
    _dialect_patterns: Dict[str, List[str]] = {}
    _initialized: bool = False

    @classmethod
    def _ensure_initialized(cls) -> None:
        """Initialize with defaults if not already done."""
        if not cls._initialized:
            cls.reset()

    @classmethod
    def reset(cls) -> None:
        """Reset to default rules."""
        cls._directories = set(cls._DEFAULT_DIRECTORIES)
        cls._common_patterns = list(cls._DEFAULT_COMMON)
        cls._dialect_patterns = {
            dialect: list(patterns)
            for dialect, patterns in cls._DEFAULT_DIALECT.items()
        }
        cls._initialized = True

    # =========================================================================
    # Query Methods
    # =========================================================================

    @classmethod
    def is_excluded_dir(cls, name: str, rel_path: Optional[str] = None) -> bool:
        """
        Check if a directory should be pruned.

        Args:
            name: Directory name
            rel_path: Workspace-relative POSIX path, for multi-segment rules
        """
        cls._ensure_initialized()
        if name in cls._directories:
            return True
        if rel_path:
            return any(rel_path.endswith(d) for d in cls._directories if '/' in d)
        return False

    @classmethod
    def get_patterns(cls, dialect: Optional[str] = None) -> List[str]:
        """
        Get file name patterns for a dialect (common patterns included).
        """
        cls._ensure_initialized()

        patterns: Set[str] = set(cls._common_patterns)
        if dialect:
            patterns.update(cls._dialect_patterns.get(dialect, []))
        return sorted(patterns)

    @classmethod
    def is_excluded_file(cls, file_path: Path, dialect: Optional[str] = None) -> bool:
        """Check if a file name matches an exclusion pattern."""
        name = Path(file_path).name
        return any(fnmatch.fnmatch(name, p) for p in cls.get_patterns(dialect))

    @classmethod
    def is_excluded_path(cls, rel_path: Path, dialect: Optional[str] = None) -> bool:
        """Check a workspace-relative path against directory and file rules."""
        rel_path = Path(rel_path)
        parts = rel_path.parts[:-1]
        for i, part in enumerate(parts):
            if cls.is_excluded_dir(part, "/".join(parts[:i + 1])):
                return True
        return cls.is_excluded_file(rel_path, dialect)

    # =========================================================================
    # Modification Methods
    # =========================================================================

    @classmethod
    def add_directory(cls, name: str) -> None:
        """Add a directory name to prune."""
        cls._ensure_initialized()
        cls._directories.add(name)

    @classmethod
    def remove_directory(cls, name: str) -> bool:
        """Stop pruning a directory name. Returns True if removed."""
        cls._ensure_initialized()
        if name in cls._directories:
            cls._directories.discard(name)
            return True
        return False

    @classmethod
    def add_common(cls, pattern: str) -> None:
        """Add a file name pattern to common exclusions."""
        cls._ensure_initialized()
        if pattern not in cls._common_patterns:
            cls._common_patterns.append(pattern)

    @classmethod
    def add_dialect(cls, dialect: str, pattern: str) -> None:
        """Add a file name pattern to dialect-specific exclusions."""
        cls._ensure_initialized()
        patterns = cls._dialect_patterns.setdefault(dialect, [])
        if pattern not in patterns:
            patterns.append(pattern)

    @classmethod
    def summary(cls) -> Dict[str, object]:
        """Get summary of current configuration."""
        cls._ensure_initialized()
        return {
            'directories': len(cls._directories),
            'common_count': len(cls._common_patterns),
            'dialects': {
                dialect: len(patterns)
                for dialect, patterns in cls._dialect_patterns.items()
            },
        }
