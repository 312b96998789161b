"""
I18nEngine — Workspace-level facade

Builds the pattern registry, catalog store, workspace index, change
coordinator and query service for one workspace root, and runs the
initial load.

Usage:
    engine = I18nEngine("/path/to/project")
    engine.start()
    engine.wait_idle(timeout=30)

    engine.query.hover("common.actions.submit")
    engine.document_changed("src/App.tsx", new_text)
    engine.query.diagnostics("src/App.tsx")

    engine.shutdown()

Paths handed to the engine may be relative to the workspace root; they
are resolved to absolute paths before reaching the index.
"""

import logging
import os
import threading
import time
from pathlib import Path
from typing import List, Optional, Union

from .config import ConfigManager, EngineConfig, add_detected_locale_paths
from .coordinator import ChangeCoordinator, ChangeEvent, ChangeKind, CoordinatorConfig
from .coordinator.documents import DocumentStore
from .core.catalog import CatalogStore
from .core.index import WorkspaceIndex
from .core.parsing import ExclusionConfig, KeyExtractor, PatternRegistry
from .errors import ConfigurationError
from .query import QueryService

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class I18nEngine:
    """Background i18n key index for one workspace."""

    def __init__(
        self,
        workspace_root: PathLike,
        config: Optional[EngineConfig] = None,
        coordinator_config: Optional[CoordinatorConfig] = None,
    ):
        """
        Args:
            workspace_root: Project root directory
            config: Engine configuration. If None, loaded from the workspace
                    (.keylens/config.yaml, i18n-ally or Zed settings).
            coordinator_config: Worker settings. If None, loaded from environment.
        """
        self.workspace_root = Path(workspace_root).resolve()
        self.config_manager = ConfigManager(self.workspace_root)
        self.config_errors: List[ConfigurationError] = []
        self.documents = DocumentStore()

        self._explicit_config = config
        self._lock = threading.Lock()
        self._started = False
        self._reload_generation = 0
        self._reload_thread: Optional[threading.Thread] = None

        self.config = self._load_config()
        self.registry = self._build_registry(self.config, PatternRegistry.with_builtins())
        self.extractor = KeyExtractor(self.registry)
        self.catalog = self._build_catalog(self.config)
        self.index = WorkspaceIndex(self.catalog)
        self.coordinator = ChangeCoordinator(
            self.index,
            self.extractor,
            documents=self.documents,
            config=coordinator_config,
        )
        self.query = self._build_query(self.config)

    # =========================================================================
    # Construction
    # =========================================================================

    def _record_error(self, error: ConfigurationError) -> None:
        logger.error("Configuration error: %s", error)
        self.config_errors.append(error)

    def _load_config(self) -> EngineConfig:
        """Explicit config, else workspace config; defaults if invalid."""
        if self._explicit_config is not None:
            config = self._explicit_config
            error = config.validate()
            if error is None:
                return config
            self._record_error(ConfigurationError(error, "engine config"))
        else:
            try:
                return self.config_manager.load()
            except ConfigurationError as e:
                self._record_error(e)

        config = EngineConfig()
        add_detected_locale_paths(config, self.workspace_root)
        return config

    def _build_registry(self, config: EngineConfig, fallback: PatternRegistry) -> PatternRegistry:
        """Built-ins plus user patterns; the fallback when any is malformed."""
        try:
            return PatternRegistry.from_config(config.function_patterns)
        except ConfigurationError as e:
            self._record_error(e)
            return fallback

    def _build_catalog(self, config: EngineConfig) -> CatalogStore:
        roots = [self.resolve(p) for p in config.locale_paths]
        required = roots if config.locale_paths_declared else []
        return CatalogStore(
            roots,
            source_locale=config.source_locale,
            key_style=config.key_style,
            separator=config.key_separator,
            namespace_enabled=config.namespace_enabled,
            required_roots=required,
        )

    def _build_query(self, config: EngineConfig) -> QueryService:
        return QueryService(
            self.index,
            self.documents,
            completion_limit=config.completion_limit,
            hint_max_chars=config.hint_max_chars,
            registry=self.registry,
        )

    def resolve(self, path: PathLike) -> Path:
        """Absolute path for a workspace-relative or absolute path."""
        path = Path(path)
        if not path.is_absolute():
            path = self.workspace_root / path
        return path

    def _key(self, path: PathLike) -> str:
        return str(self.resolve(path))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> int:
        """
        Queue the initial load: every catalog file, then every source file.

        Returns:
            Number of files scheduled
        """
        with self._lock:
            if self._started:
                return 0
            self._started = True

        count = self._schedule_workspace()
        logger.info("Scheduled initial load of %d file(s) under %s", count, self.workspace_root)
        return count

    def _discover_catalogs(self, catalog: CatalogStore, record_errors: bool = True):
        files = catalog.discover()
        if record_errors:
            for error in catalog.root_errors:
                self._record_error(error)
        return files

    def _schedule_workspace(self, record_errors: bool = True) -> int:
        catalog_files = self._discover_catalogs(self.catalog, record_errors)
        count = self.coordinator.schedule_initial(str(f.path) for f in catalog_files)
        count += self.coordinator.schedule_initial(str(p) for p in self.iter_source_files())
        return count

    def iter_source_files(self):
        """Source files under the workspace root, excluded directories pruned."""
        root = self.workspace_root
        for dirpath, dirnames, filenames in os.walk(root):
            rel_dir = Path(dirpath).relative_to(root).as_posix()
            dirnames[:] = sorted(
                d for d in dirnames
                if not d.startswith(".")
                and not ExclusionConfig.is_excluded_dir(
                    d, d if rel_dir == "." else f"{rel_dir}/{d}"
                )
            )
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if not self.registry.is_supported(path):
                    continue
                if self.catalog.handles(path):
                    continue
                dialect = self.registry.resolve(path)
                if ExclusionConfig.is_excluded_file(path, dialect.name if dialect else None):
                    continue
                yield path

    def reload_config(self) -> List[ConfigurationError]:
        """
        Re-read configuration and rebuild the registry and catalog.

        The new catalog store is loaded off to the side (on a background
        thread when workers are enabled) and published only once every
        catalog file has been parsed; until then queries keep answering
        from the previous store. Every source file is then re-extracted.
        A malformed custom pattern keeps the previous registry.

        Returns:
            Configuration errors raised by this reload
        """
        self.config_errors = []
        config = self._load_config()
        registry = self._build_registry(config, self.registry)
        catalog = self._build_catalog(config)
        catalog_files = self._discover_catalogs(catalog)

        with self._lock:
            self._started = True
            self._reload_generation += 1
            generation = self._reload_generation

        args = (generation, config, registry, catalog, catalog_files)
        if self.coordinator.enabled:
            thread = threading.Thread(
                target=self._finish_reload,
                args=args,
                name="keylens-reload",
                daemon=True,
            )
            with self._lock:
                self._reload_thread = thread
            thread.start()
        else:
            self._finish_reload(*args)

        return list(self.config_errors)

    def _finish_reload(self, generation, config, registry, catalog, catalog_files) -> None:
        """Load the new store, then publish it with the new config and patterns."""
        try:
            for catalog_file in catalog_files:
                catalog.load_file(catalog_file.path)

            with self._lock:
                if generation != self._reload_generation:
                    logger.debug("Discarding superseded configuration reload")
                    return
                previously_indexed = self.index.files()
                self.config = config
                self.registry = registry
                self.extractor = KeyExtractor(registry)
                self.catalog = catalog
                self.index.forget_digests()
                self.index.catalog = catalog
                self.coordinator.extractor = self.extractor
                self.query = self._build_query(config)

            # Rediscovered so catalog files created during the load are queued;
            # unchanged ones are skipped by digest
            self._schedule_workspace(record_errors=False)
            for path in self.documents.paths():
                self.coordinator.submit(path, ChangeKind.CHANGED, self.documents.text(path))

            # Source files that no longer qualify (pattern or root changes)
            scheduled = {str(p) for p in self.iter_source_files()}
            for path in previously_indexed:
                if path not in scheduled and not self.documents.is_open(path):
                    self.index.remove_file(path, self.coordinator.revisions.next(path))
        except RuntimeError as e:
            logger.warning("Configuration reload interrupted: %s", e)
            return

        logger.info("Configuration reloaded")

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait until a pending reload and every queued change have been applied."""
        deadline = None if timeout is None else time.monotonic() + timeout
        thread = self._reload_thread
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                return False
        remaining = None if deadline is None else max(deadline - time.monotonic(), 0)
        return self.coordinator.wait_idle(remaining)

    def shutdown(self, wait: bool = True) -> None:
        thread = self._reload_thread
        if wait and thread is not None:
            thread.join(self.coordinator.config.shutdown_timeout)
        self.coordinator.shutdown(wait=wait)

    def __enter__(self) -> 'I18nEngine':
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # =========================================================================
    # Events
    # =========================================================================

    def document_opened(self, path: PathLike, text: str) -> ChangeEvent:
        return self.coordinator.document_opened(self._key(path), text)

    def document_changed(self, path: PathLike, text: str) -> ChangeEvent:
        return self.coordinator.document_changed(self._key(path), text)

    def document_closed(self, path: PathLike) -> Optional[ChangeEvent]:
        return self.coordinator.document_closed(self._key(path))

    def fs_changed(self, path: PathLike, kind: Union[str, ChangeKind]) -> Optional[ChangeEvent]:
        return self.coordinator.fs_changed(self._key(path), kind)

    def add_listener(self, listener) -> None:
        """Register a callback receiving source paths whose diagnostics may have changed."""
        self.coordinator.add_listener(listener)

    def remove_listener(self, listener) -> bool:
        return self.coordinator.remove_listener(listener)

    # =========================================================================
    # Queries (paths resolved against the workspace root)
    # =========================================================================

    def hover(self, key: str):
        return self.query.hover(key)

    def completion(self, prefix: str = ""):
        return self.query.completion(prefix)

    def definition(self, key: str, locale: Optional[str] = None):
        return self.query.definition(key, locale)

    def diagnostics(self, path: PathLike):
        return self.query.diagnostics(self._key(path))

    def inlay_hints(self, path: PathLike, line_range=None):
        return self.query.inlay_hints(self._key(path), line_range)

    def catalog_diagnostics(self):
        return self.query.catalog_diagnostics()

    def coverage_report(self):
        return self.query.coverage_report()

    def stats(self) -> dict:
        return {
            "workspace_root": str(self.workspace_root),
            "config": self.config.to_dict(),
            "config_errors": [str(e) for e in self.config_errors],
            "catalog": self.catalog.stats(),
            "index": self.index.stats(),
            "coordinator": self.coordinator.stats(),
        }
