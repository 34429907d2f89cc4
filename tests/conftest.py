"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest

from dirscope.settings import Settings


@pytest.fixture(autouse=True)
def isolate_settings(tmp_path, monkeypatch):
    """Point the settings store at a temp directory."""
    config_home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setattr(Settings, "_instance", None)
    return config_home / "dirscope" / "settings.json"


@pytest.fixture
def sample_tree(tmp_path):
    """Root with two files, a directory holding one file, and a symlink out.

    root/
        a.txt       100 bytes
        b.bin        10 bytes
        c/
            d.txt    50 bytes
            e -> elsewhere/  (1000 bytes that must never be counted)
    """
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    (elsewhere / "big.bin").write_bytes(b"x" * 1000)

    root = tmp_path / "root"
    root.mkdir()
    (root / "a.txt").write_bytes(b"a" * 100)
    (root / "b.bin").write_bytes(b"b" * 10)
    c = root / "c"
    c.mkdir()
    (c / "d.txt").write_bytes(b"d" * 50)
    os.symlink(elsewhere, c / "e")
    return root


class FakeClock:
    """Monotonic clock that advances by *step* on every call."""

    def __init__(self, step: float = 0.01) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


@pytest.fixture
def fake_clock():
    return FakeClock()
