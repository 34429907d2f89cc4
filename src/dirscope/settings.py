"""JSON-backed settings store.

Values written with ``dirscope config set`` are not validated, so readers
go through the typed accessors, which log and fall back to :data:`DEFAULTS`
when a stored value has the wrong shape.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from dirscope.utils import xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "dirscope"
_SETTINGS_FILE = "settings.json"

DEFAULTS: dict[str, Any] = {
    "scan": {
        "progress_interval_ms": 200,
        "force_progress_on_items": True,
    },
    "cache": {
        "enabled": True,
        "max_age_seconds": None,
    },
}

_MISSING = object()


class Settings:
    """Persistent settings backed by a JSON file.

    Keys use dot notation and anything absent from the file resolves
    against :data:`DEFAULTS`:
        settings.get("scan.progress_interval_ms")  # 200 unless overridden
        settings.get_float("cache.max_age_seconds", optional=True)  # None
        settings.set("cache.enabled", False)  # writes + saves
    """

    _instance: Settings | None = None

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or (xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE)
        self._data: dict[str, Any] = {}
        self._load()

    @classmethod
    def instance(cls) -> Settings:
        """Return the singleton settings instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Stored value for *key*, else its built-in default, else *default*."""
        value = _walk(self._data, key)
        if value is _MISSING:
            value = _walk(DEFAULTS, key)
        return default if value is _MISSING else value

    def get_float(self, key: str, *, optional: bool = False) -> float | None:
        """Read *key* as a number.

        ``None`` is accepted only when *optional* is set.  Anything that is
        not a number is reported and replaced by the built-in default.
        """
        value = self.get(key)
        if value is None and optional:
            return None
        if not isinstance(value, bool):
            try:
                return float(value)
            except (TypeError, ValueError):
                pass
        fallback = _walk(DEFAULTS, key)
        log.warning("Invalid number for %s: %r, using %r", key, value, fallback)
        return None if fallback in (None, _MISSING) else float(fallback)

    def get_bool(self, key: str) -> bool:
        """Read *key* as a boolean, falling back to the built-in default."""
        value = self.get(key)
        if isinstance(value, bool):
            return value
        fallback = _walk(DEFAULTS, key)
        log.warning("Invalid boolean for %s: %r, using %r", key, value, fallback)
        return bool(fallback) if fallback is not _MISSING else False

    def set(self, key: str, value: Any) -> None:
        """Set a value by dot-notation key and persist to disk."""
        *parents, leaf = key.split(".")
        node = self._data
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value
        self._save()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return
        if not isinstance(data, dict):
            log.warning("Ignoring settings in %s: expected a JSON object", self._path)
            return
        self._data = data

    def _save(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            log.warning("Could not save settings to %s: %s", self._path, e)


def _walk(data: dict[str, Any], key: str) -> Any:
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node
