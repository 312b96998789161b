"""
Shared pytest fixtures for the KeyLens test suite.

Provides on-disk workspaces built with WorkspaceFactory, plus ready-made
components (registry, extractor, loaded index) for unit tests.

Usage in tests:
    def test_something(workspace):
        workspace.add_catalog("en", {"a": "A"})
        store = workspace.create_store()

    def test_with_data(sample_project):
        # sample_project comes with en/vi catalogs and src/App.tsx
        engine = sample_project.create_engine()
"""

import logging

import pytest

from keylens.core.parsing import ExclusionConfig, KeyExtractor, PatternRegistry
from tests.factories import WorkspaceFactory


@pytest.fixture
def workspace(tmp_path):
    """
    Create an empty WorkspaceFactory.

    Use this when you need fine-grained control over the files on disk.
    """
    return WorkspaceFactory(tmp_path)


@pytest.fixture
def sample_project(tmp_path):
    """
    Create a WorkspaceFactory with sample project data.

    Pre-populated with:
    - locales/en/translation.json (4 keys)
    - locales/vi/translation.json (3 keys, common.actions.cancel missing)
    - src/App.tsx referencing 4 keys, one of them undefined (nav.missing)
    """
    factory = WorkspaceFactory(tmp_path)
    factory.create_sample_project()
    return factory


@pytest.fixture
def registry():
    """Registry holding every built-in dialect."""
    return PatternRegistry.with_builtins()


@pytest.fixture
def extractor(registry):
    return KeyExtractor(registry)


@pytest.fixture(autouse=True)
def reset_exclusions():
    """Exclusion rules are class-level state; restore defaults around each test."""
    ExclusionConfig.reset()
    yield
    ExclusionConfig.reset()


@pytest.fixture(autouse=True)
def quiet_env(monkeypatch):
    """Keep developer environment overrides out of the tests."""
    for name in (
        "KEYLENS_SOURCE_LOCALE",
        "KEYLENS_KEY_STYLE",
        "KEYLENS_PARALLEL_ENABLED",
        "KEYLENS_WORKERS",
        "KEYLENS_MAX_PENDING",
        "KEYLENS_SHUTDOWN_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def keylens_logs(caplog):
    """Capture keylens log records at DEBUG."""
    caplog.set_level(logging.DEBUG, logger="keylens")
    return caplog
