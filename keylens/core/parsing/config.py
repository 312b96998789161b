"""
Pattern configuration data structures.

Defines DialectConfig and KeyPattern — the foundation for
dialect-agnostic key extraction via regular expressions.

Design principle: New frameworks are added via data entries, not code types.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional, Set


@dataclass
class KeyPattern:
    """
    Defines one key-reference syntax.

    Matches raw source text and names the capture group holding the key.
    Compiled at construction so a malformed pattern fails at load time.

    Attributes:
        name: Stable identity (e.g., "i18next.t"). A user pattern with the
              same name as a built-in replaces it.
        pattern: Regular expression source
        key_group: Capture group yielding the key string (default: 1)
        dialects: Dialect names this pattern is restricted to (None = all).
                  Only meaningful for user patterns.
        builtin: Whether the pattern ships with the engine
    """
    name: str
    pattern: str
    key_group: int = 1
    dialects: Optional[FrozenSet[str]] = None
    builtin: bool = True
    regex: 're.Pattern' = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        # re.error propagates; the registry turns it into a ConfigurationError
        self.regex = re.compile(self.pattern, re.MULTILINE)
        if self.key_group < 0 or self.key_group > self.regex.groups:
            raise ValueError(
                f"key group {self.key_group} out of range, "
                f"pattern has {self.regex.groups} group(s)"
            )

    def applies_to(self, dialect: str) -> bool:
        """Check if this pattern is enabled for a dialect."""
        return self.dialects is None or dialect in self.dialects


@dataclass
class DialectConfig:
    """
    Configuration for extracting keys from one source dialect.

    A dialect is a language/framework variant: JSX with react-i18next,
    an Angular template, a Blade view, a Dart widget file.

    Attributes:
        name: Identifier (e.g., "typescript", "blade")
        extensions: File extensions this dialect handles (e.g., {'.ts'})
        patterns: Ordered built-in patterns
        filename_suffixes: Compound suffixes that claim a file outright
                           (e.g., {'.blade.php'}); checked before extensions
        sniffer: Content check used when several dialects share an extension.
                 Returns True when the text belongs to this dialect.
        max_file_size: Skip files larger than this (characters)
        frameworks: Human-readable framework names, for display
    """
    name: str
    extensions: Set[str]
    patterns: List[KeyPattern] = field(default_factory=list)
    filename_suffixes: Set[str] = field(default_factory=set)
    sniffer: Optional[Callable[[str], bool]] = None
    max_file_size: int = 1_000_000
    frameworks: List[str] = field(default_factory=list)

    def matches_extension(self, ext: str) -> bool:
        """Check if this dialect handles the given extension."""
        return ext.lower() in self.extensions

    def matches_filename(self, filename: str) -> bool:
        """Check if a compound suffix claims this file name."""
        lowered = filename.lower()
        return any(lowered.endswith(suffix) for suffix in self.filename_suffixes)
