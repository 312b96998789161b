"""
Tests for Parsing Module — Data-driven key pattern registry.

Tests validate:
- KeyPattern and DialectConfig dataclasses
- PatternRegistry file routing (extensions, compound suffixes, sniffing)
- Custom pattern merging and validation
- ExclusionConfig centralized discovery rules
"""

import pytest
from pathlib import Path

from keylens.core.parsing import DialectConfig, ExclusionConfig, KeyPattern, PatternRegistry
from keylens.errors import ConfigurationError


# =============================================================================
# KeyPattern Tests
# =============================================================================

class TestKeyPattern:
    """Test KeyPattern dataclass."""

    def test_compiles_on_creation(self):
        """Pattern is compiled at construction."""
        pattern = KeyPattern(name="x", pattern=r"tr\('([^']+)'\)")

        match = pattern.regex.search("tr('a.b')")
        assert match.group(1) == "a.b"

    def test_default_key_group(self):
        """Group 1 yields the key by default."""
        pattern = KeyPattern(name="x", pattern=r"(a)(b)")
        assert pattern.key_group == 1

    def test_group_out_of_range(self):
        """A key group beyond the regex's groups is rejected."""
        with pytest.raises(ValueError):
            KeyPattern(name="x", pattern=r"tr\('([^']+)'\)", key_group=2)

    def test_applies_to_all_dialects_by_default(self):
        """Unrestricted patterns apply everywhere."""
        pattern = KeyPattern(name="x", pattern=r"(a)")
        assert pattern.applies_to("typescript") is True
        assert pattern.applies_to("dart") is True

    def test_restricted_to_dialects(self):
        """Restricted patterns only apply to their dialects."""
        pattern = KeyPattern(name="x", pattern=r"(a)", dialects=frozenset({"vue"}))
        assert pattern.applies_to("vue") is True
        assert pattern.applies_to("typescript") is False


class TestDialectConfig:
    """Test DialectConfig dataclass."""

    def test_matches_extension(self):
        """Extension matching is case insensitive."""
        config = DialectConfig(name="test", extensions={'.tst'})

        assert config.matches_extension('.tst') is True
        assert config.matches_extension('.TST') is True
        assert config.matches_extension('.js') is False

    def test_matches_compound_suffix(self):
        """Compound suffixes match the end of the file name."""
        config = DialectConfig(name="blade", extensions={'.php'}, filename_suffixes={'.blade.php'})

        assert config.matches_filename("welcome.blade.php") is True
        assert config.matches_filename("Welcome.BLADE.php") is True
        assert config.matches_filename("Controller.php") is False

    def test_default_max_file_size(self):
        """Default max file size is 1M characters."""
        config = DialectConfig(name="test", extensions={'.tst'})
        assert config.max_file_size == 1_000_000


# =============================================================================
# PatternRegistry Tests
# =============================================================================

class TestPatternRegistry:
    """Test PatternRegistry routing."""

    def test_empty_registry(self):
        """New registry is empty."""
        registry = PatternRegistry()

        assert len(registry) == 0
        assert registry.resolve(Path("App.tsx")) is None

    def test_builtins(self, registry):
        """Built-in registry covers the supported frameworks."""
        for name in ("javascript", "typescript", "vue", "angular-template", "php", "blade", "dart"):
            assert name in registry

    def test_resolve_by_extension(self, registry):
        """Files route to their dialect by extension."""
        assert registry.resolve(Path("src/App.tsx")).name == "typescript"
        assert registry.resolve(Path("src/main.js")).name == "javascript"
        assert registry.resolve(Path("src/App.vue")).name == "vue"
        assert registry.resolve(Path("src/app.component.html")).name == "angular-template"
        assert registry.resolve(Path("lib/main.dart")).name == "dart"

    def test_resolve_unsupported(self, registry):
        """Unknown extensions resolve to None."""
        assert registry.resolve(Path("README.md")) is None
        assert registry.resolve(Path("locales/en.json")) is None

    def test_compound_suffix_wins(self, registry):
        """.blade.php is Blade even without Blade syntax."""
        assert registry.resolve(Path("views/welcome.blade.php"), "<?php echo 1;").name == "blade"

    def test_sniffing_shared_extension(self, registry):
        """Plain .php files with Blade syntax are sniffed as Blade."""
        assert registry.resolve(Path("views/legacy.php"), "<h1>{{ __('home.title') }}</h1>").name == "blade"
        assert registry.resolve(Path("app/Http/Controller.php"), "<?php class A {}").name == "php"

    def test_shared_extension_without_text(self, registry):
        """Without text, the dialect without a sniffer is chosen."""
        assert registry.resolve(Path("app/Models/User.php")).name == "php"

    def test_is_supported(self, registry):
        """is_supported reflects registered extensions."""
        assert registry.is_supported(Path("a.ts")) is True
        assert registry.is_supported(Path("a.blade.php")) is True
        assert registry.is_supported(Path("a.py")) is False

    def test_supported_extensions(self, registry):
        """All dialect extensions are listed."""
        extensions = registry.supported_extensions()
        assert {'.js', '.ts', '.tsx', '.vue', '.html', '.php', '.dart'} <= extensions

    def test_register_duplicate(self, registry):
        """Registering a dialect twice is an error."""
        with pytest.raises(ValueError):
            registry.register(DialectConfig(name="dart", extensions={'.dart'}))

    def test_register_new_dialect(self, registry):
        """New frameworks are added as data."""
        registry.register(DialectConfig(
            name="svelte",
            extensions={'.svelte'},
            patterns=[KeyPattern(name="svelte-i18n.$_", pattern=r"\$_\(\s*['\"]([^'\"]+)['\"]")],
        ))

        assert registry.resolve(Path("App.svelte")).name == "svelte"
        assert [p.name for p in registry.patterns_for("svelte")] == ["svelte-i18n.$_"]

    def test_unregister(self, registry):
        """Unregistering removes extension routing."""
        assert registry.unregister("dart") is True
        assert registry.resolve(Path("main.dart")) is None
        assert registry.unregister("dart") is False

    def test_unregister_shared_extension(self, registry):
        """Unregistering one of two dialects keeps the other's routing."""
        registry.unregister("blade")
        assert registry.resolve(Path("views/legacy.php"), "{{ x }}").name == "php"


# =============================================================================
# Custom Pattern Tests
# =============================================================================

class TestCustomPatterns:
    """Test user-declared pattern merging."""

    def test_string_spec(self, registry):
        """A regex string is appended to every dialect."""
        registry.add_custom_patterns([r"translate\(['\"]([^'\"]+)['\"]\)"])

        names = [p.name for p in registry.patterns_for("typescript")]
        assert names[-1] == "custom-1"
        assert [p.name for p in registry.patterns_for("dart")][-1] == "custom-1"

    def test_mapping_spec(self, registry):
        """A mapping spec sets name, group and dialects."""
        registry.add_custom_patterns([{
            "name": "my.tt",
            "pattern": r"tt\((['\"])([^'\"]+)\1\)",
            "group": 2,
            "dialects": ["vue"],
        }])

        vue_names = [p.name for p in registry.patterns_for("vue")]
        ts_names = [p.name for p in registry.patterns_for("typescript")]
        assert "my.tt" in vue_names
        assert "my.tt" not in ts_names
        assert registry.custom_patterns[0].key_group == 2

    def test_builtins_come_first(self, registry):
        """Built-ins keep declaration order; custom patterns follow."""
        builtin = [p.name for p in registry.patterns_for("javascript")]
        registry.add_custom_patterns([r"x\('([^']+)'\)"])

        merged = [p.name for p in registry.patterns_for("javascript")]
        assert merged[:len(builtin)] == builtin
        assert len(merged) == len(builtin) + 1

    def test_same_name_replaces_builtin(self, registry):
        """A custom pattern named like a built-in replaces it in place."""
        before = [p.name for p in registry.patterns_for("javascript")]
        registry.add_custom_patterns([{"name": "i18next.t", "pattern": r"\bt\(`([^`]+)`\)"}])

        after = registry.patterns_for("javascript")
        assert [p.name for p in after] == before
        replaced = after[before.index("i18next.t")]
        assert replaced.builtin is False

    def test_invalid_regex(self, registry):
        """Invalid regexes are configuration errors."""
        with pytest.raises(ConfigurationError) as exc:
            registry.add_custom_patterns([r"t\(("])
        assert "functionPatterns[0]" in str(exc.value)

    def test_group_beyond_regex(self, registry):
        """A group number the regex lacks is a configuration error."""
        with pytest.raises(ConfigurationError):
            registry.add_custom_patterns([{"pattern": r"t\('([^']+)'\)", "group": 3}])

    def test_unknown_dialect(self, registry):
        """Unknown dialect names are configuration errors."""
        with pytest.raises(ConfigurationError) as exc:
            registry.add_custom_patterns([{"pattern": r"(a)", "dialects": ["cobol"]}])
        assert "cobol" in exc.value.message

    def test_wrong_spec_type(self, registry):
        """Specs must be strings or mappings."""
        with pytest.raises(ConfigurationError):
            registry.add_custom_patterns([42])

    def test_bad_list_changes_nothing(self, registry):
        """One malformed spec rejects the whole list."""
        with pytest.raises(ConfigurationError):
            registry.add_custom_patterns([r"ok\('([^']+)'\)", r"bad(("])
        assert registry.custom_patterns == []

    def test_from_config(self):
        """from_config builds built-ins plus user patterns."""
        registry = PatternRegistry.from_config([r"x\('([^']+)'\)"])

        assert "typescript" in registry
        assert len(registry.custom_patterns) == 1

    def test_clear_custom_patterns(self, registry):
        """Custom patterns can be dropped."""
        registry.add_custom_patterns([r"x\('([^']+)'\)"])
        registry.clear_custom_patterns()
        assert registry.custom_patterns == []


# =============================================================================
# ExclusionConfig Tests
# =============================================================================

class TestExclusionConfig:
    """Test centralized exclusion rules."""

    def test_default_directories(self):
        """Dependency and build directories are pruned."""
        for name in ("node_modules", ".git", "build", "dist", "vendor", ".dart_tool"):
            assert ExclusionConfig.is_excluded_dir(name) is True
        assert ExclusionConfig.is_excluded_dir("src") is False

    def test_multi_segment_directory(self):
        """bootstrap/cache is pruned by relative path."""
        assert ExclusionConfig.is_excluded_dir("cache", "bootstrap/cache") is True
        assert ExclusionConfig.is_excluded_dir("cache", "src/cache") is False

    def test_dialect_file_patterns(self):
        """Generated files are excluded per dialect."""
        assert ExclusionConfig.is_excluded_file(Path("app.min.js"), "javascript") is True
        assert ExclusionConfig.is_excluded_file(Path("types.d.ts"), "typescript") is True
        assert ExclusionConfig.is_excluded_file(Path("model.g.dart"), "dart") is True
        assert ExclusionConfig.is_excluded_file(Path("app.min.js"), "typescript") is False

    def test_common_patterns(self):
        """Common patterns apply to every dialect."""
        assert ExclusionConfig.is_excluded_file(Path("debug.log")) is True

    def test_is_excluded_path(self):
        """Relative paths are checked segment by segment."""
        assert ExclusionConfig.is_excluded_path(Path("node_modules/lib/index.js"), "javascript") is True
        assert ExclusionConfig.is_excluded_path(Path("src/index.js"), "javascript") is False

    def test_add_and_remove_directory(self):
        """Directory rules are extensible."""
        ExclusionConfig.add_directory("storybook-static")
        assert ExclusionConfig.is_excluded_dir("storybook-static") is True

        assert ExclusionConfig.remove_directory("storybook-static") is True
        assert ExclusionConfig.is_excluded_dir("storybook-static") is False

    def test_add_common(self):
        """Common file patterns are extensible."""
        ExclusionConfig.add_common("*.generated.ts")
        assert ExclusionConfig.is_excluded_file(Path("api.generated.ts")) is True

    def test_reset(self):
        """Reset restores the defaults."""
        ExclusionConfig.add_directory("custom")
        ExclusionConfig.reset()
        assert ExclusionConfig.is_excluded_dir("custom") is False

    def test_summary(self):
        """Summary counts rules."""
        summary = ExclusionConfig.summary()
        assert summary["directories"] > 0
        assert "dart" in summary["dialects"]
