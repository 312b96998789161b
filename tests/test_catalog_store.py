"""
Tests for CatalogStore — Per-locale union of catalog file contributions.

Tests validate:
- Layout detection (nested, flat, mixed) per root
- Locale codes and ARB locales
- Whole-file contribution swaps on reload (no duplication)
- Parse failures keep the previous good contribution
- Collisions between files of one locale
- Revision-based discard of stale results
- Namespaces
"""

import pytest
from pathlib import Path

from keylens.core.catalog import CatalogStore, arb_stem_locale, classify, detect_layout, is_locale_code
from keylens.core.catalog.layout import EMPTY, FLAT, MIXED, NESTED
from keylens.errors import ConfigurationError


# =============================================================================
# Layout Tests
# =============================================================================

class TestLocaleCodes:
    """Locale code recognition."""

    @pytest.mark.parametrize("name", ["en", "vi", "pt-BR", "pt_BR", "zh-Hans", "zh_Hant_TW", "es-419", "en_us", "fil"])
    def test_valid(self, name):
        assert is_locale_code(name) is True

    @pytest.mark.parametrize("name", ["common", "translation", "EN", "e", "english", "messages"])
    def test_invalid(self, name):
        assert is_locale_code(name) is False

    def test_arb_stem(self):
        """ARB locale is the longest locale suffix of the stem."""
        assert arb_stem_locale("app_en") == "en"
        assert arb_stem_locale("app_pt_BR") == "pt_BR"
        assert arb_stem_locale("intl_messages_zh_Hant") == "zh_Hant"
        assert arb_stem_locale("de") == "de"
        assert arb_stem_locale("app") is None


class TestLayout:
    """Nested vs flat layouts, inferred per root."""

    def test_nested(self, workspace):
        workspace.add_catalog("en", {"a": "A"}, namespace="common")
        assert detect_layout(workspace.locale_path) == NESTED

    def test_flat(self, workspace):
        workspace.add_catalog("en", {"a": "A"})
        assert detect_layout(workspace.locale_path) == FLAT

    def test_mixed(self, workspace):
        workspace.add_catalog("en", {"a": "A"})
        workspace.add_catalog("vi", {"a": "A"}, namespace="common")
        assert detect_layout(workspace.locale_path) == MIXED

    def test_empty(self, workspace):
        workspace.locale_path.mkdir()
        assert detect_layout(workspace.locale_path) == EMPTY

    def test_classify_nested(self, tmp_path):
        """Nested files carry locale and namespace."""
        found = classify(tmp_path, tmp_path / "en" / "admin" / "users.json")

        assert found.locale == "en"
        assert found.namespace == "admin/users"
        assert found.layout == NESTED
        assert found.format == "json"

    def test_classify_flat(self, tmp_path):
        found = classify(tmp_path, tmp_path / "pt-BR.yaml")
        assert found.locale == "pt-BR"
        assert found.namespace is None
        assert found.layout == FLAT

    def test_classify_rejects(self, tmp_path):
        """Non-locale names, hidden files and foreign paths are not catalogs."""
        assert classify(tmp_path, tmp_path / "config.json") is None
        assert classify(tmp_path, tmp_path / "en" / ".draft.json") is None
        assert classify(tmp_path, tmp_path / "en" / "notes.txt") is None
        assert classify(tmp_path / "locales", tmp_path / "src" / "en.json") is None

    def test_classify_arb(self, tmp_path):
        """ARB files may carry the locale in the stem or only inside."""
        assert classify(tmp_path, tmp_path / "app_fr.arb").locale == "fr"
        assert classify(tmp_path, tmp_path / "app.arb").locale is None


# =============================================================================
# Loading
# =============================================================================

class TestLoading:
    """Initial load of a locale root."""

    def test_nested_load(self, sample_project):
        store = sample_project.create_store()
        store.load_all()

        assert store.locales == ["en", "vi"]
        assert store.translations("common.actions.submit") == {"en": "Submit", "vi": "Gửi"}
        assert store.translations("common.actions.cancel") == {"en": "Cancel"}

    def test_flat_load(self, workspace):
        workspace.add_catalog("en", {"hello": "Hello"})
        workspace.add_catalog("fr", {"hello": "Bonjour"})
        store = workspace.create_store()
        store.load_all()

        assert store.translations("hello") == {"en": "Hello", "fr": "Bonjour"}

    def test_yaml_and_json_together(self, workspace):
        """Several formats may serve one locale."""
        workspace.add_catalog("en", {"a": "A"}, namespace="one")
        workspace.add_catalog("en", {"b": "B"}, namespace="two", fmt="yaml")
        store = workspace.create_store()
        store.load_all()

        assert store.locale_keys("en") == frozenset({"a", "b"})

    def test_arb_declared_locale(self, workspace):
        """@@locale names an ARB file's locale."""
        workspace.write("lib/l10n/app.arb", '{"@@locale": "de", "title": "Titel"}')
        store = CatalogStore([workspace.root / "lib/l10n"])
        store.load_all()

        assert store.translations("title") == {"de": "Titel"}

    def test_arb_stem_locale(self, workspace):
        workspace.write("lib/l10n/app_en.arb", '{"title": "Title", "@title": {}}')
        store = CatalogStore([workspace.root / "lib/l10n"])
        store.load_all()

        assert store.translations("title") == {"en": "Title"}

    def test_provenance(self, workspace):
        """Entries know their file and value position."""
        path = workspace.write("locales/en.json", '{\n  "a": {\n    "b": "B"\n  }\n}')
        store = workspace.create_store()
        store.load_all()

        location = store.provenance("a.b", "en")
        assert location.path == str(path)
        assert (location.line, location.column) == (2, 9)

    def test_source_locale_configured(self, sample_project):
        store = sample_project.create_store(source_locale="vi")
        store.load_all()
        assert store.source_locale == "vi"

    def test_source_locale_first_discovered(self, workspace):
        """Without configuration the first loaded locale is the source."""
        workspace.add_catalog("de", {"a": "A"})
        workspace.add_catalog("fr", {"a": "A"})
        store = CatalogStore([workspace.locale_path])
        store.load_all()

        assert store.source_locale == "de"

    def test_configured_source_locale_is_known(self, workspace):
        """The configured source locale is a known locale even without files."""
        workspace.add_catalog("vi", {"a": "A"})
        store = workspace.create_store(source_locale="en")
        store.load_all()

        assert store.locales == ["en", "vi"]
        assert store.missing_locales("a") == ["en"]

    def test_flat_key_style(self, workspace):
        """Forced flat style keeps only top-level scalars."""
        workspace.add_catalog("en", {"a.b": "x", "c": {"d": "y"}})
        store = workspace.create_store(key_style="flat")
        store.load_all()

        assert store.keys() == frozenset({"a.b"})

    def test_multiple_roots(self, workspace):
        workspace.add_catalog("en", {"a": "A"}, root="i18n")
        workspace.add_catalog("en", {"b": "B"}, root="locales")
        store = CatalogStore([workspace.root / "i18n", workspace.root / "locales"], source_locale="en")
        store.load_all()

        assert store.keys() == frozenset({"a", "b"})


class TestRoots:
    """Missing and unreadable locale roots."""

    def test_missing_optional_root(self, workspace):
        """Missing roots that were not declared are skipped quietly."""
        store = CatalogStore([workspace.root / "nowhere"])
        assert store.discover() == []
        assert store.root_errors == []

    def test_missing_required_root(self, workspace):
        """A declared root that does not exist is a configuration error."""
        root = workspace.root / "nowhere"
        store = CatalogStore([root], required_roots=[root])
        store.discover()

        assert len(store.root_errors) == 1
        assert isinstance(store.root_errors[0], ConfigurationError)
        assert store.root_errors[0].source == str(root)

    def test_root_is_a_file(self, workspace):
        path = workspace.write("locales", "not a directory")
        store = CatalogStore([path])
        store.discover()

        assert "not a directory" in store.root_errors[0].message

    def test_layouts_recorded(self, sample_project):
        store = sample_project.create_store()
        store.discover()
        assert store.layouts == {str(sample_project.locale_path): NESTED}


# =============================================================================
# Reload
# =============================================================================

class TestReload:
    """Whole-file contribution swaps."""

    def test_reload_replaces_contribution(self, workspace):
        """Reloading a file retracts its old keys."""
        path = workspace.add_catalog("en", {"a": "A", "b": "B"})
        store = workspace.create_store()
        store.load_all()

        path.write_text('{"a": "A2", "c": "C"}', encoding="utf-8")
        affected = store.load_file(path)

        assert store.translations("a") == {"en": "A2"}
        assert store.translations("b") == {}
        assert store.translations("c") == {"en": "C"}
        assert affected == {"a", "b", "c"}

    def test_reload_does_not_duplicate(self, sample_project):
        """Loading the same file twice leaves one contribution."""
        store = sample_project.create_store()
        store.load_all()
        before = store.stats()

        store.load_all()

        assert store.stats() == before
        assert len(store.files()) == 2

    def test_unchanged_content_short_circuits(self, workspace):
        """Identical bytes are not re-parsed."""
        path = workspace.add_catalog("en", {"a": "A"})
        store = workspace.create_store()
        store.load_file(path)
        seq = store.contribution(path).seq

        assert store.load_file(path) == set()
        assert store.contribution(path).seq == seq

    def test_buffer_content(self, workspace):
        """Content may come from an editor buffer instead of disk."""
        path = workspace.add_catalog("en", {"a": "A"})
        store = workspace.create_store()
        store.load_file(path)

        store.load_file(path, b'{"a": "Unsaved"}')
        assert store.translations("a") == {"en": "Unsaved"}

    def test_remove_file(self, sample_project):
        """Deleting a file retracts its contribution only."""
        store = sample_project.create_store()
        store.load_all()
        vi_path = sample_project.locale_path / "vi" / "translation.json"

        affected = store.remove_file(vi_path)

        assert "common.actions.submit" in affected
        assert store.locales == ["en"]
        assert store.translations("common.actions.submit") == {"en": "Submit"}

    def test_deleted_file_on_reload(self, workspace):
        """Loading a vanished file removes it."""
        path = workspace.add_catalog("en", {"a": "A"})
        store = workspace.create_store()
        store.load_file(path)
        path.unlink()

        store.load_file(path)
        assert store.keys() == frozenset()

    def test_not_a_catalog(self, workspace):
        """Paths outside the roots are not handled."""
        store = workspace.create_store()
        assert store.load_file(workspace.root / "src" / "App.tsx") is None
        assert store.handles(workspace.root / "src" / "App.tsx") is False


class TestParseErrors:
    """A broken file keeps its previous good state."""

    def test_previous_contribution_kept(self, workspace, keylens_logs):
        path = workspace.add_catalog("en", {"a": "A"})
        store = workspace.create_store()
        store.load_file(path)

        path.write_text('{"a": "A2",', encoding="utf-8")
        affected = store.load_file(path)

        assert affected == set()
        assert store.translations("a") == {"en": "A"}
        errors = store.parse_errors()
        assert len(errors) == 1
        assert errors[0].path == str(path)
        assert errors[0].locale == "en"
        assert any("Failed to parse" in r.getMessage() for r in keylens_logs.records)

    def test_error_cleared_by_good_reload(self, workspace):
        path = workspace.add_catalog("en", {"a": "A"})
        store = workspace.create_store()
        path.write_text("{", encoding="utf-8")
        store.load_file(path)
        assert len(store.parse_errors()) == 1

        path.write_text('{"a": "fixed"}', encoding="utf-8")
        store.load_file(path)

        assert store.parse_errors() == []
        assert store.translations("a") == {"en": "fixed"}

    def test_other_files_unaffected(self, sample_project):
        """One broken locale file never blocks the others."""
        sample_project.write("locales/fr/translation.json", "{ not json")
        store = sample_project.create_store()
        store.load_all()

        assert store.locales == ["en", "vi"]
        assert len(store.parse_errors()) == 1

    def test_error_cleared_by_delete(self, workspace):
        path = workspace.write("locales/en.json", "{")
        store = workspace.create_store()
        store.load_file(path)

        store.remove_file(path)
        assert store.parse_errors() == []


class TestCollisions:
    """Several files of one locale defining the same key."""

    def test_last_loaded_wins(self, workspace):
        first = workspace.add_catalog("en", {"shared": "One"}, namespace="a")
        second = workspace.add_catalog("en", {"shared": "Two"}, namespace="b")
        store = workspace.create_store()
        store.load_file(first)
        store.load_file(second)

        assert store.translations("shared") == {"en": "Two"}
        collisions = store.collisions()
        assert len(collisions) == 1
        assert collisions[0].winner.value == "Two"
        assert [e.value for e in collisions[0].shadowed] == ["One"]

    def test_reload_moves_to_end(self, workspace):
        """A reloaded file becomes the most recent contribution."""
        first = workspace.add_catalog("en", {"shared": "One"}, namespace="a")
        second = workspace.add_catalog("en", {"shared": "Two"}, namespace="b")
        store = workspace.create_store()
        store.load_file(first)
        store.load_file(second)

        first.write_text('{"shared": "One again"}', encoding="utf-8")
        store.load_file(first)

        assert store.translations("shared") == {"en": "One again"}

    def test_equal_values_are_not_collisions(self, workspace):
        workspace.add_catalog("en", {"shared": "Same"}, namespace="a")
        workspace.add_catalog("en", {"shared": "Same"}, namespace="b")
        store = workspace.create_store()
        store.load_all()

        assert store.collisions() == []

    def test_removal_clears_collision(self, workspace):
        first = workspace.add_catalog("en", {"shared": "One"}, namespace="a")
        workspace.add_catalog("en", {"shared": "Two"}, namespace="b")
        store = workspace.create_store()
        store.load_all()

        store.remove_file(first)
        assert store.collisions() == []


class TestRevisions:
    """Results older than the last applied revision are discarded."""

    def test_stale_load_discarded(self, workspace):
        path = workspace.add_catalog("en", {"a": "A"})
        store = workspace.create_store()

        assert store.load_file(path, b'{"a": "new"}', revision=5) == {"a"}
        assert store.load_file(path, b'{"a": "old"}', revision=3) is None
        assert store.translations("a") == {"en": "new"}

    def test_stale_remove_ignored(self, workspace):
        path = workspace.add_catalog("en", {"a": "A"})
        store = workspace.create_store()
        store.load_file(path, revision=5)

        assert store.remove_file(path, revision=2) == set()
        assert store.translations("a") == {"en": "A"}


class TestNamespaces:
    """Namespace prefixes for nested layouts."""

    def test_disabled_by_default(self, workspace):
        workspace.add_catalog("en", {"title": "T"}, namespace="home")
        store = workspace.create_store()
        store.load_all()
        assert store.keys() == frozenset({"title"})

    def test_enabled(self, workspace):
        workspace.add_catalog("en", {"title": "T"}, namespace="home")
        store = workspace.create_store(namespace_enabled=True)
        store.load_all()
        assert store.keys() == frozenset({"home.title"})

    def test_laravel_php_always_prefixed(self, workspace):
        """lang/en/messages.php serves messages.* keys."""
        workspace.write("lang/en/messages.php", "<?php return ['welcome' => 'Welcome'];")
        store = CatalogStore([workspace.root / "lang"], source_locale="en")
        store.load_all()

        assert store.translations("messages.welcome") == {"en": "Welcome"}


class TestQueries:
    """Read accessors."""

    def test_entries(self, sample_project):
        store = sample_project.create_store()
        store.load_all()

        entries = store.entries("nav.home")
        assert set(entries) == {"en", "vi"}
        assert entries["vi"].value == "Trang chủ"

    def test_has_key(self, sample_project):
        store = sample_project.create_store()
        store.load_all()
        assert store.has_key("nav.home") is True
        assert store.has_key("nav.away") is False

    def test_empty_catalog_keeps_locale(self, sample_project):
        """A catalog that parses to no keys still makes its locale known."""
        sample_project.add_catalog("fr", {}, namespace="translation")
        store = sample_project.create_store()
        store.load_all()

        assert store.locales == ["en", "fr", "vi"]
        assert store.locale_keys("fr") == frozenset()
        assert store.missing_locales("nav.home") == ["fr"]

        locales, keys = store.snapshot()
        assert locales == ["en", "fr", "vi"]
        assert keys["fr"] == frozenset()

    def test_emptied_catalog_keeps_locale(self, sample_project):
        """Clearing a file's keys leaves the locale known; deleting it does not."""
        store = sample_project.create_store()
        store.load_all()
        vi_path = sample_project.locale_path / "vi" / "translation.json"

        store.load_file(vi_path, b"{}")
        assert store.locales == ["en", "vi"]
        assert store.translations("nav.home") == {"en": "Home"}

        store.remove_file(vi_path)
        assert store.locales == ["en"]

    def test_lookup(self, sample_project):
        store = sample_project.create_store()
        store.load_all()
        entries, locales, source_locale = store.lookup("common.actions.cancel")

        assert list(entries) == ["en"]
        assert entries["en"].value == "Cancel"
        assert locales == ["en", "vi"]
        assert source_locale == "en"

    def test_snapshot(self, sample_project):
        store = sample_project.create_store()
        store.load_all()
        locales, keys = store.snapshot()

        assert locales == ["en", "vi"]
        assert "common.actions.cancel" in keys["en"]
        assert "common.actions.cancel" not in keys["vi"]

    def test_stats(self, sample_project):
        store = sample_project.create_store()
        store.load_all()
        stats = store.stats()

        assert stats["files"] == 2
        assert stats["keys"] == 4
        assert stats["parse_errors"] == 0
