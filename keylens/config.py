"""
Configuration — Engine settings

Config sources (first one that parses wins):
  1. Project config (.keylens/config.yaml)
  2. i18n-ally config (.i18n-ally.json, i18n-ally.config.json)
  3. Zed config (.zed/i18n.json)
  4. Defaults

Then environment overrides (KEYLENS_SOURCE_LOCALE, KEYLENS_KEY_STYLE).
When no source declares locale paths, framework locale directories that
exist in the workspace are appended to the defaults.

Option names are accepted in camelCase (as editors write them) or
snake_case. Unknown options are ignored.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import orjson
import yaml

from .core.catalog.formats import KEY_STYLES
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_LOCALE_PATHS = [
    "locales",
    "i18n",
    "translations",
    "public/locales",
    "src/locales",
    "src/i18n",
]

DEFAULT_SOURCE_LOCALE = "en"

# option name (either spelling) -> field
_OPTION_NAMES = {
    "localePaths": "locale_paths",
    "sourceLocale": "source_locale",
    "keyStyle": "key_style",
    "functionPatterns": "function_patterns",
    "namespaceEnabled": "namespace_enabled",
    "keySeparator": "key_separator",
    "completionLimit": "completion_limit",
    "hintMaxChars": "hint_max_chars",
}
_OPTION_NAMES.update({v: v for v in list(_OPTION_NAMES.values())})


@dataclass
class EngineConfig:
    """Indexing engine configuration."""
    locale_paths: List[str] = field(default_factory=lambda: list(DEFAULT_LOCALE_PATHS))
    source_locale: Optional[str] = DEFAULT_SOURCE_LOCALE  # None = first discovered
    key_style: str = "auto"  # "nested" | "flat" | "auto"
    function_patterns: List[Any] = field(default_factory=list)
    namespace_enabled: bool = False
    key_separator: str = "."
    completion_limit: int = 100
    hint_max_chars: int = 30

    # Provenance
    locale_paths_declared: bool = False  # True when a config source listed locale paths
    source: Optional[str] = None         # Config file the values came from

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if not isinstance(self.locale_paths, list) or not all(
            isinstance(p, str) for p in self.locale_paths
        ):
            return "localePaths must be a list of paths"

        if self.source_locale is not None and (
            not isinstance(self.source_locale, str) or not self.source_locale
        ):
            return "sourceLocale must be a non-empty string"

        if self.key_style not in KEY_STYLES:
            return f"Unknown keyStyle '{self.key_style}'. Valid: {', '.join(KEY_STYLES)}"

        if not isinstance(self.function_patterns, list):
            return "functionPatterns must be a list"

        if not isinstance(self.key_separator, str) or not self.key_separator:
            return "keySeparator must be a non-empty string"

        if not isinstance(self.completion_limit, int) or self.completion_limit < 1:
            return "completionLimit must be a positive integer"

        if not isinstance(self.hint_max_chars, int) or self.hint_max_chars < 4:
            return "hintMaxChars must be an integer >= 4"

        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization (camelCase, as editors write it)."""
        return {
            "localePaths": list(self.locale_paths),
            "sourceLocale": self.source_locale,
            "keyStyle": self.key_style,
            "functionPatterns": list(self.function_patterns),
            "namespaceEnabled": self.namespace_enabled,
            "keySeparator": self.key_separator,
            "completionLimit": self.completion_limit,
            "hintMaxChars": self.hint_max_chars,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EngineConfig':
        """Create from dictionary. Unknown options are ignored."""
        values: Dict[str, Any] = {}
        for name, value in (data or {}).items():
            field_name = _OPTION_NAMES.get(name)
            if field_name is None:
                continue
            values[field_name] = value

        if isinstance(values.get("locale_paths"), str):
            values["locale_paths"] = [values["locale_paths"]]
        if isinstance(values.get("function_patterns"), (str, dict)):
            values["function_patterns"] = [values["function_patterns"]]
        if isinstance(values.get("namespace_enabled"), str):
            values["namespace_enabled"] = values["namespace_enabled"].lower() in ("true", "1", "yes")

        config = cls(**values)
        config.locale_paths_declared = "locale_paths" in values
        return config


class ConfigManager:
    """
    Loads engine configuration for a workspace.

    Sources, highest priority first:
      1. .keylens/config.yaml
      2. .i18n-ally.json
      3. i18n-ally.config.json
      4. .zed/i18n.json
      5. Defaults
    """

    PROJECT_CONFIG_DIR = ".keylens"
    PROJECT_CONFIG_FILE = "config.yaml"
    JSON_CONFIG_FILES = (".i18n-ally.json", "i18n-ally.config.json", ".zed/i18n.json")

    def __init__(self, workspace_root: Optional[Path] = None):
        self.workspace_root = Path(workspace_root) if workspace_root else Path.cwd()

    @property
    def project_config_path(self) -> Path:
        return self.workspace_root / self.PROJECT_CONFIG_DIR / self.PROJECT_CONFIG_FILE

    def candidate_paths(self) -> List[Path]:
        return [self.project_config_path] + [
            self.workspace_root / name for name in self.JSON_CONFIG_FILES
        ]

    def load(self) -> EngineConfig:
        """
        Load configuration from the first readable source.

        Raises:
            ConfigurationError: If the winning source holds invalid values
        """
        data, source = self._read_first()

        # Environment overrides
        if os.environ.get("KEYLENS_SOURCE_LOCALE"):
            data["sourceLocale"] = os.environ["KEYLENS_SOURCE_LOCALE"]
        if os.environ.get("KEYLENS_KEY_STYLE"):
            data["keyStyle"] = os.environ["KEYLENS_KEY_STYLE"]

        config = EngineConfig.from_dict(data)
        config.source = source

        error = config.validate()
        if error:
            raise ConfigurationError(error, source or "environment")

        if not config.locale_paths_declared:
            add_detected_locale_paths(config, self.workspace_root)

        if source:
            logger.info("Loaded config from %s", source)
        else:
            logger.info("Using default config")
        return config

    def _read_first(self) -> Tuple[Dict[str, Any], Optional[str]]:
        """Return (data, path) of the first source that parses."""
        for path in self.candidate_paths():
            if not path.is_file():
                continue
            try:
                if path.suffix in (".yaml", ".yml"):
                    with open(path, encoding="utf-8") as f:
                        data = yaml.safe_load(f) or {}
                else:
                    data = orjson.loads(path.read_bytes())
            except (OSError, yaml.YAMLError, orjson.JSONDecodeError) as e:
                logger.warning("Skipping malformed config %s: %s", path, e)
                continue

            if not isinstance(data, dict):
                logger.warning("Skipping config %s: top level is not a mapping", path)
                continue
            return data, str(path)

        return {}, None

    def save_project(self, config: EngineConfig) -> None:
        """Save configuration to the project config file."""
        self.project_config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.project_config_path, 'w', encoding="utf-8") as f:
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)


# =============================================================================
# Framework locale path detection
# =============================================================================

def add_detected_locale_paths(config: EngineConfig, root: Path) -> List[str]:
    """Append existing framework locale directories not already listed."""
    existing = set(config.locale_paths)
    added = []
    for path in detect_framework_locale_paths(root):
        if path not in existing:
            existing.add(path)
            config.locale_paths.append(path)
            added.append(path)
    if added:
        logger.debug("Detected framework locale paths: %s", ", ".join(added))
    return added


def detect_framework_locale_paths(root: Path) -> List[str]:
    """Locale directories conventional for the frameworks the workspace uses."""
    root = Path(root)
    paths: List[str] = []

    if is_angular_project(root):
        paths.append("src/assets/i18n")

    if is_laravel_project(root):
        paths.extend(["resources/lang", "lang"])

    if is_flutter_project(root):
        arb_dir = read_arb_dir(root)
        if arb_dir:
            paths.append(arb_dir)
        paths.extend(["lib/l10n", "assets/translations", "assets/flutter_i18n", "assets/i18n"])

    if is_vue_project(root):
        paths.extend(["src/locales", "src/i18n", "locales", "i18n", "public/locales"])

    return [p for p in paths if (root / p).exists()]


def _read_json(path: Path) -> Optional[Dict[str, Any]]:
    try:
        value = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError):
        return None
    return value if isinstance(value, dict) else None


def _has_dependency(manifest: Dict[str, Any], name: str, sections: Tuple[str, ...]) -> bool:
    for section in sections:
        deps = manifest.get(section)
        if isinstance(deps, dict) and name in deps:
            return True
    return False


_NPM_SECTIONS = ("dependencies", "devDependencies")


def is_angular_project(root: Path) -> bool:
    manifest = _read_json(root / "package.json")
    if manifest is None:
        return False
    return any(_has_dependency(manifest, d, _NPM_SECTIONS) for d in ("@angular/core", "@angular/cli"))


def is_laravel_project(root: Path) -> bool:
    manifest = _read_json(root / "composer.json")
    if manifest is None:
        return False
    return (
        _has_dependency(manifest, "laravel/framework", ("require", "require-dev"))
        or manifest.get("name") == "laravel/laravel"
    )


def is_flutter_project(root: Path) -> bool:
    try:
        content = (root / "pubspec.yaml").read_text(encoding="utf-8")
    except OSError:
        return False
    return "flutter:" in content and "sdk: flutter" in content


def read_arb_dir(root: Path) -> Optional[str]:
    """The arb-dir declared in l10n.yaml, if any."""
    try:
        with open(root / "l10n.yaml", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return None
    if isinstance(data, dict) and isinstance(data.get("arb-dir"), str):
        return data["arb-dir"]
    return None


def is_vue_project(root: Path) -> bool:
    manifest = _read_json(root / "package.json")
    if manifest is not None and any(
        _has_dependency(manifest, d, _NPM_SECTIONS)
        for d in ("vue", "vue-i18n", "@intlify/vue-i18n", "@nuxtjs/i18n")
    ):
        return True
    return any(
        (root / name).exists()
        for name in ("vue.config.js", "vite.config.js", "vite.config.ts", "nuxt.config.js")
    )
