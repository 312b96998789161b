"""
Tests for Config — Engine settings from config files and environment.

These tests validate:
- Option names in camelCase or snake_case
- Validation of option values
- Source priority (.keylens/config.yaml > i18n-ally > Zed > defaults)
- Environment overrides
- Framework locale directory detection
"""

import pytest
import orjson
import yaml

from keylens.config import (
    DEFAULT_LOCALE_PATHS,
    ConfigManager,
    EngineConfig,
    detect_framework_locale_paths,
    read_arb_dir,
)
from keylens.errors import ConfigurationError


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps(data))


class TestEngineConfig:
    """EngineConfig values and validation."""

    def test_defaults(self):
        config = EngineConfig()
        assert config.locale_paths == DEFAULT_LOCALE_PATHS
        assert config.source_locale == "en"
        assert config.key_style == "auto"
        assert config.validate() is None

    def test_from_dict_camel_case(self):
        """Editor-style option names are accepted."""
        config = EngineConfig.from_dict({
            "localePaths": ["i18n"],
            "sourceLocale": "vi",
            "keyStyle": "flat",
            "namespaceEnabled": True,
        })
        assert config.locale_paths == ["i18n"]
        assert config.source_locale == "vi"
        assert config.key_style == "flat"
        assert config.namespace_enabled is True
        assert config.locale_paths_declared is True

    def test_from_dict_snake_case(self):
        config = EngineConfig.from_dict({"source_locale": "fr", "completion_limit": 5})
        assert config.source_locale == "fr"
        assert config.completion_limit == 5
        assert config.locale_paths_declared is False

    def test_unknown_options_ignored(self):
        config = EngineConfig.from_dict({"displayLanguage": "en", "sourceLocale": "de"})
        assert config.source_locale == "de"

    def test_scalars_become_lists(self):
        """A single path or pattern is accepted without a list."""
        config = EngineConfig.from_dict({"localePaths": "lang", "functionPatterns": r"x\('([^']+)'\)"})
        assert config.locale_paths == ["lang"]
        assert config.function_patterns == [r"x\('([^']+)'\)"]

    def test_string_boolean(self):
        assert EngineConfig.from_dict({"namespaceEnabled": "true"}).namespace_enabled is True
        assert EngineConfig.from_dict({"namespaceEnabled": "no"}).namespace_enabled is False

    @pytest.mark.parametrize("options,fragment", [
        ({"localePaths": [1]}, "localePaths"),
        ({"sourceLocale": ""}, "sourceLocale"),
        ({"keyStyle": "weird"}, "keyStyle"),
        ({"functionPatterns": 3}, "functionPatterns"),
        ({"keySeparator": ""}, "keySeparator"),
        ({"completionLimit": 0}, "completionLimit"),
        ({"hintMaxChars": 2}, "hintMaxChars"),
    ])
    def test_validate(self, options, fragment):
        error = EngineConfig.from_dict(options).validate()
        assert error is not None
        assert fragment in error

    def test_source_locale_none_is_valid(self):
        """No source locale means the first discovered one."""
        assert EngineConfig(source_locale=None).validate() is None

    def test_to_dict_round_trip(self):
        config = EngineConfig(locale_paths=["lang"], key_style="nested", hint_max_chars=12)
        again = EngineConfig.from_dict(config.to_dict())

        assert again.locale_paths == ["lang"]
        assert again.key_style == "nested"
        assert again.hint_max_chars == 12


class TestConfigManager:
    """Config source resolution."""

    def test_defaults_without_files(self, tmp_path):
        config = ConfigManager(tmp_path).load()

        assert config.source is None
        assert config.locale_paths == DEFAULT_LOCALE_PATHS

    def test_project_config(self, workspace):
        workspace.add_config({"sourceLocale": "ja", "localePaths": ["lang"]})
        config = ConfigManager(workspace.root).load()

        assert config.source_locale == "ja"
        assert config.locale_paths == ["lang"]
        assert config.source.endswith("config.yaml")

    def test_i18n_ally_config(self, tmp_path):
        write_json(tmp_path / ".i18n-ally.json", {"sourceLocale": "ko"})
        assert ConfigManager(tmp_path).load().source_locale == "ko"

    def test_zed_config(self, tmp_path):
        write_json(tmp_path / ".zed" / "i18n.json", {"keyStyle": "flat"})
        assert ConfigManager(tmp_path).load().key_style == "flat"

    def test_project_config_wins(self, workspace):
        """The first source that parses wins; later ones are not merged."""
        workspace.add_config({"sourceLocale": "ja"})
        write_json(workspace.root / ".i18n-ally.json", {"sourceLocale": "ko", "keyStyle": "flat"})

        config = ConfigManager(workspace.root).load()
        assert config.source_locale == "ja"
        assert config.key_style == "auto"

    def test_malformed_config_skipped(self, workspace):
        """A file that does not parse falls through to the next source."""
        workspace.write(".keylens/config.yaml", "sourceLocale: [unclosed")
        write_json(workspace.root / ".i18n-ally.json", {"sourceLocale": "ko"})

        assert ConfigManager(workspace.root).load().source_locale == "ko"

    def test_non_mapping_skipped(self, workspace):
        workspace.write(".keylens/config.yaml", "- a\n- b\n")
        assert ConfigManager(workspace.root).load().source is None

    def test_invalid_values_raise(self, workspace):
        workspace.add_config({"keyStyle": "weird"})

        with pytest.raises(ConfigurationError) as exc:
            ConfigManager(workspace.root).load()
        assert "keyStyle" in exc.value.message
        assert exc.value.source.endswith("config.yaml")

    def test_env_overrides(self, workspace, monkeypatch):
        workspace.add_config({"sourceLocale": "ja"})
        monkeypatch.setenv("KEYLENS_SOURCE_LOCALE", "de")
        monkeypatch.setenv("KEYLENS_KEY_STYLE", "nested")

        config = ConfigManager(workspace.root).load()
        assert config.source_locale == "de"
        assert config.key_style == "nested"

    def test_invalid_env_value(self, tmp_path, monkeypatch):
        monkeypatch.setenv("KEYLENS_KEY_STYLE", "weird")

        with pytest.raises(ConfigurationError) as exc:
            ConfigManager(tmp_path).load()
        assert exc.value.source == "environment"

    def test_detected_paths_added(self, workspace):
        """Framework directories are appended when no paths are declared."""
        write_json(workspace.root / "package.json", {"dependencies": {"@angular/core": "^17"}})
        (workspace.root / "src" / "assets" / "i18n").mkdir(parents=True)

        config = ConfigManager(workspace.root).load()
        assert config.locale_paths[-1] == "src/assets/i18n"

    def test_declared_paths_not_extended(self, workspace):
        workspace.add_config({"localePaths": ["lang"]})
        write_json(workspace.root / "package.json", {"dependencies": {"@angular/core": "^17"}})
        (workspace.root / "src" / "assets" / "i18n").mkdir(parents=True)

        assert ConfigManager(workspace.root).load().locale_paths == ["lang"]

    def test_save_project(self, tmp_path):
        manager = ConfigManager(tmp_path)
        manager.save_project(EngineConfig(source_locale="it", locale_paths=["lang"]))

        with open(manager.project_config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        assert data["sourceLocale"] == "it"
        assert manager.load().locale_paths == ["lang"]


class TestFrameworkDetection:
    """Conventional locale directories per framework."""

    def test_nothing_detected(self, tmp_path):
        assert detect_framework_locale_paths(tmp_path) == []

    def test_laravel(self, tmp_path):
        write_json(tmp_path / "composer.json", {"require": {"laravel/framework": "^11"}})
        (tmp_path / "lang").mkdir()

        assert detect_framework_locale_paths(tmp_path) == ["lang"]

    def test_flutter_arb_dir(self, tmp_path):
        (tmp_path / "pubspec.yaml").write_text(
            "dependencies:\n  flutter:\n    sdk: flutter\n", encoding="utf-8"
        )
        (tmp_path / "l10n.yaml").write_text("arb-dir: res/l10n\n", encoding="utf-8")
        (tmp_path / "res" / "l10n").mkdir(parents=True)

        assert detect_framework_locale_paths(tmp_path) == ["res/l10n"]
        assert read_arb_dir(tmp_path) == "res/l10n"

    def test_vue_by_config_file(self, tmp_path):
        (tmp_path / "vite.config.ts").write_text("export default {}", encoding="utf-8")
        (tmp_path / "src" / "locales").mkdir(parents=True)

        assert detect_framework_locale_paths(tmp_path) == ["src/locales"]

    def test_missing_directories_not_reported(self, tmp_path):
        write_json(tmp_path / "package.json", {"devDependencies": {"vue-i18n": "^9"}})
        assert detect_framework_locale_paths(tmp_path) == []
