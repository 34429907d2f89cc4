"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from dirscope import cli
from dirscope.core import engine as engine_mod
from dirscope.core.reveal import RevealError
from dirscope.models.item import ItemType
from dirscope.settings import Settings


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestScanCommand:
    def test_json_output(self, runner, sample_tree):
        result = runner.invoke(cli.main, ["scan", str(sample_tree), "--json"])
        assert result.exit_code == 0, result.output

        data = json.loads(result.stdout)
        assert data["root_path"] == str(sample_tree)
        assert data["status"] == "ok"
        assert data["scanned_bytes"] == 160
        assert data["cancelled"] is False
        # largest first
        assert [item["name"] for item in data["items"]] == ["a.txt", "c", "b.bin"]
        c = data["items"][1]
        assert c["type"] == "dir"
        assert c["child_count"] == 1
        assert c["size"] == 50

    def test_table_output(self, runner, sample_tree):
        result = runner.invoke(cli.main, ["scan", str(sample_tree)])
        assert result.exit_code == 0, result.output
        assert "a.txt" in result.stdout
        assert "c/" in result.stdout
        assert "3 files" in result.stdout
        assert "160 B" in result.stdout

    def test_filter_and_limit(self, runner, sample_tree):
        result = runner.invoke(cli.main, ["scan", str(sample_tree), "--json", "--filter", "B", "-n", "1"])
        data = json.loads(result.stdout)
        assert [item["name"] for item in data["items"]] == ["b.bin"]

    def test_limit(self, runner, sample_tree):
        result = runner.invoke(cli.main, ["scan", str(sample_tree), "--json", "--limit", "2"])
        data = json.loads(result.stdout)
        assert [item["name"] for item in data["items"]] == ["a.txt", "c"]

    def test_missing_root_exits_nonzero(self, runner, tmp_path):
        result = runner.invoke(cli.main, ["scan", str(tmp_path / "missing")])
        assert result.exit_code == 1
        assert "vanished" in result.output

    def test_missing_root_json(self, runner, tmp_path):
        result = runner.invoke(cli.main, ["scan", str(tmp_path / "missing"), "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["status"] == "not_found"

    def test_crash_exits_nonzero(self, runner, sample_tree, monkeypatch):
        def exploding(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(engine_mod, "scan_directory", exploding)
        result = runner.invoke(cli.main, ["scan", str(sample_tree)])
        assert result.exit_code == 1
        assert "Scan failed: boom" in result.output


class TestBuildOptions:
    def test_uses_settings(self):
        Settings.instance().set("scan.progress_interval_ms", 1000)
        options = cli._build_options(None, False)
        assert options.progress_interval == 1.0
        assert options.force_progress_on_items is True

    def test_flags_override_settings(self):
        options = cli._build_options(50, True)
        assert options.progress_interval == 0.05
        assert options.force_progress_on_items is False


class TestOtherCommands:
    def test_drives(self, runner, monkeypatch):
        monkeypatch.setattr(cli, "list_drives", lambda: ["/", "/mnt/data"])
        result = runner.invoke(cli.main, ["drives", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == ["/", "/mnt/data"]

        result = runner.invoke(cli.main, ["drives"])
        assert "/mnt/data" in result.stdout

    def test_reveal(self, runner, sample_tree, monkeypatch):
        calls = []
        monkeypatch.setattr(cli, "reveal", lambda path, item_type: calls.append((path, item_type)))
        result = runner.invoke(cli.main, ["reveal", str(sample_tree / "c")])
        assert result.exit_code == 0
        assert calls == [(str(sample_tree / "c"), ItemType.DIR)]

    def test_reveal_failure(self, runner, sample_tree, monkeypatch):
        def failing(path, item_type):
            raise RevealError("no file manager")

        monkeypatch.setattr(cli, "reveal", failing)
        result = runner.invoke(cli.main, ["reveal", str(sample_tree / "a.txt")])
        assert result.exit_code == 1
        assert "no file manager" in result.output

    def test_config_roundtrip(self, runner):
        result = runner.invoke(cli.main, ["config", "set", "scan.progress_interval_ms", "75"])
        assert result.exit_code == 0
        Settings._instance = None
        result = runner.invoke(cli.main, ["config", "get", "scan.progress_interval_ms"])
        assert result.stdout.strip() == "75"

    def test_config_set_plain_string(self, runner):
        runner.invoke(cli.main, ["config", "set", "ui.theme", "dark"])
        assert Settings.instance().get("ui.theme") == "dark"


class TestInvalidSettings:
    @pytest.mark.parametrize("value", ["fast", "null"])
    def test_scan_survives_bad_interval(self, runner, sample_tree, value):
        result = runner.invoke(cli.main, ["config", "set", "scan.progress_interval_ms", value])
        assert result.exit_code == 0

        result = runner.invoke(cli.main, ["scan", str(sample_tree), "--json"])
        assert result.exit_code == 0, result.output
        assert '"scanned_bytes": 160' in result.output
