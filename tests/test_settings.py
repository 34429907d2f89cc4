"""Tests for the JSON settings store."""

from __future__ import annotations

import json

import pytest

from dirscope.core.scanner import ScanOptions
from dirscope.settings import Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings.instance()
        assert settings.get("scan.progress_interval_ms") == 200
        assert settings.get("scan.force_progress_on_items") is True
        assert settings.get("cache.enabled") is True
        assert settings.get("missing.key", "fallback") == "fallback"

    def test_set_persists(self, isolate_settings):
        Settings.instance().set("scan.progress_interval_ms", 50)
        data = json.loads(isolate_settings.read_text(encoding="utf-8"))
        assert data == {"scan": {"progress_interval_ms": 50}}

        reloaded = Settings(isolate_settings)
        assert reloaded.get("scan.progress_interval_ms") == 50
        # untouched siblings still come from the defaults
        assert reloaded.get("scan.force_progress_on_items") is True

    def test_singleton(self):
        assert Settings.instance() is Settings.instance()

    def test_corrupt_file_ignored(self, isolate_settings):
        isolate_settings.parent.mkdir(parents=True)
        isolate_settings.write_text("{not json", encoding="utf-8")
        assert Settings(isolate_settings).get("cache.enabled") is True

    def test_non_object_ignored(self, isolate_settings):
        isolate_settings.parent.mkdir(parents=True)
        isolate_settings.write_text("[1, 2]", encoding="utf-8")
        assert Settings(isolate_settings).get("scan.progress_interval_ms") == 200


class TestScanOptionsFromSettings:
    def test_defaults(self):
        options = ScanOptions.from_settings(Settings.instance())
        assert options.progress_interval == 0.2
        assert options.force_progress_on_items is True

    def test_overrides(self):
        settings = Settings.instance()
        settings.set("scan.progress_interval_ms", 1500)
        settings.set("scan.force_progress_on_items", False)
        options = ScanOptions.from_settings(settings)
        assert options.progress_interval == 1.5
        assert options.force_progress_on_items is False

    def test_negative_interval_clamped(self):
        settings = Settings.instance()
        settings.set("scan.progress_interval_ms", -10)
        assert ScanOptions.from_settings(settings).progress_interval == 0.0


class TestTypedAccessors:
    def test_get_float_parses_numeric_strings(self):
        settings = Settings.instance()
        settings.set("scan.progress_interval_ms", "150")
        assert settings.get_float("scan.progress_interval_ms") == 150.0

    def test_get_float_rejects_garbage(self, caplog):
        settings = Settings.instance()
        settings.set("scan.progress_interval_ms", "fast")
        assert settings.get_float("scan.progress_interval_ms") == 200.0
        assert "Invalid number for scan.progress_interval_ms" in caplog.text

    def test_get_float_rejects_null_unless_optional(self):
        settings = Settings.instance()
        settings.set("scan.progress_interval_ms", None)
        assert settings.get_float("scan.progress_interval_ms") == 200.0
        assert settings.get_float("cache.max_age_seconds", optional=True) is None

    def test_get_float_rejects_booleans(self):
        settings = Settings.instance()
        settings.set("cache.max_age_seconds", True)
        assert settings.get_float("cache.max_age_seconds", optional=True) is None

    def test_get_bool(self):
        settings = Settings.instance()
        settings.set("cache.enabled", "no")
        assert settings.get_bool("cache.enabled") is True
        settings.set("cache.enabled", False)
        assert settings.get_bool("cache.enabled") is False


class TestOptionsFromInvalidSettings:
    @pytest.mark.parametrize("value", ["fast", None, [1, 2]])
    def test_interval_falls_back_to_default(self, value):
        settings = Settings.instance()
        settings.set("scan.progress_interval_ms", value)
        assert ScanOptions.from_settings(settings).progress_interval == 0.2

    def test_force_items_falls_back_to_default(self):
        settings = Settings.instance()
        settings.set("scan.force_progress_on_items", "false")
        assert ScanOptions.from_settings(settings).force_progress_on_items is True
