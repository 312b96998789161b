"""
Errors — Failure taxonomy for the indexing engine

Two kinds of failure exist:
- ConfigurationError: a malformed custom pattern or an unreadable locale
  root. Fatal to the scope being (re)loaded, never to the process.
- CatalogParseError: one locale file failed to parse. Local to that file;
  the previous good contribution of the file stays live.

Missing keys and incomplete coverage are reported facts, not errors.
"""

from pathlib import Path
from typing import Optional, Union


class KeyLensError(Exception):
    """Base class for engine errors."""


class ConfigurationError(KeyLensError):
    """Invalid configuration detected at load time."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.message = message
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


class CatalogParseError(KeyLensError):
    """A locale catalog file could not be parsed."""

    def __init__(
        self,
        path: Union[str, Path],
        message: str,
        locale: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.path = str(path)
        self.message = message
        self.locale = locale
        self.line = line
        self.column = column
        super().__init__(f"{self.path}: {message}")

    def with_locale(self, locale: Optional[str]) -> 'CatalogParseError':
        """Return a copy attributed to a locale."""
        return CatalogParseError(self.path, self.message, locale, self.line, self.column)

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "message": self.message,
            "locale": self.locale,
            "line": self.line,
            "column": self.column,
        }
