"""
CoordinatorConfig — Configuration for background re-indexing

Loads parallelization settings from environment variables.
Provides sensible defaults that work on any machine.

Environment variables:
- KEYLENS_PARALLEL_ENABLED: Enable/disable background workers (default: true)
- KEYLENS_WORKERS: Re-scan worker threads (default: 4)
- KEYLENS_MAX_PENDING: Max distinct paths queued before submitters block (default: 1024)
- KEYLENS_SHUTDOWN_TIMEOUT: Seconds to wait for workers on shutdown (default: 10)
"""

import os
from dataclasses import dataclass


@dataclass
class CoordinatorConfig:
    """
    Configuration for the change coordinator.

    Loaded from environment variables with sensible defaults.
    """

    # Feature toggle; False processes every event inline on the caller's thread
    enabled: bool = True

    # Worker pool size
    workers: int = 4

    # Queue bound (distinct paths)
    max_pending: int = 1024

    # Timeouts
    poll_interval: float = 0.1             # Dispatcher wake-up (seconds)
    shutdown_timeout: float = 10.0         # Worker shutdown timeout (seconds)

    @classmethod
    def from_env(cls) -> 'CoordinatorConfig':
        """Load configuration from environment variables."""
        return cls(
            enabled=_get_bool_env("KEYLENS_PARALLEL_ENABLED", True),
            workers=_get_int_env("KEYLENS_WORKERS", 4),
            max_pending=_get_int_env("KEYLENS_MAX_PENDING", 1024),
            shutdown_timeout=_get_float_env("KEYLENS_SHUTDOWN_TIMEOUT", 10.0),
        )

    def validate(self) -> None:
        """Validate configuration values."""
        if self.workers < 1:
            raise ValueError("KEYLENS_WORKERS must be >= 1")
        if self.max_pending < 1:
            raise ValueError("KEYLENS_MAX_PENDING must be >= 1")
        if self.shutdown_timeout < 0:
            raise ValueError("KEYLENS_SHUTDOWN_TIMEOUT must be >= 0")

    def to_dict(self) -> dict:
        """Serialize for display/logging."""
        return {
            "enabled": self.enabled,
            "workers": self.workers,
            "max_pending": self.max_pending,
            "poll_interval": self.poll_interval,
            "shutdown_timeout": self.shutdown_timeout,
        }


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    value = os.environ.get(key, "").lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    return default


def _get_int_env(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key, "")
    if value:
        try:
            return int(value)
        except ValueError:
            pass
    return default


def _get_float_env(key: str, default: float) -> float:
    """Get float from environment variable."""
    value = os.environ.get(key, "")
    if value:
        try:
            return float(value)
        except ValueError:
            pass
    return default
