"""In-memory cache of scan results keyed by root path."""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import TYPE_CHECKING, Callable

from dirscope.models.item import ItemStatus
from dirscope.models.scan_result import ScanResult

if TYPE_CHECKING:
    from dirscope.settings import Settings

log = logging.getLogger(__name__)


def _key(root_path: str | os.PathLike[str]) -> str:
    return os.path.normcase(os.path.abspath(os.fspath(root_path)))


class ScanCache:
    """Completed scan results, consulted before starting a new traversal.

    Only complete results are kept: cancelled scans and scans whose root
    could not be listed are never stored.  ``max_age`` (seconds) bounds how
    long an entry stays fresh; ``None`` keeps entries until invalidated.
    """

    def __init__(self, max_age: float | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_age = max_age
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[ScanResult, float]] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> ScanCache | None:
        """Build the cache described by *settings*, or None when disabled."""
        if not settings.get_bool("cache.enabled"):
            return None
        return cls(max_age=settings.get_float("cache.max_age_seconds", optional=True))

    def get(self, root_path: str | os.PathLike[str]) -> ScanResult | None:
        """Return a copy of the fresh cached result for *root_path*, if any."""
        key = _key(root_path)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            result, stored_at = entry
            if self.max_age is not None and self._clock() - stored_at > self.max_age:
                log.debug("Cached scan of %s expired", key)
                del self._entries[key]
                return None
            return result.copy()

    def put(self, root_path: str | os.PathLike[str], result: ScanResult) -> bool:
        """Store *result* if it is complete. Returns True when stored."""
        if result.cancelled or result.status is not ItemStatus.OK:
            return False
        with self._lock:
            self._entries[_key(root_path)] = (result.copy(), self._clock())
        return True

    def invalidate(self, root_path: str | os.PathLike[str] | None = None) -> None:
        """Drop the entry for *root_path*, or every entry when omitted."""
        with self._lock:
            if root_path is None:
                self._entries.clear()
            else:
                self._entries.pop(_key(root_path), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, root_path: str | os.PathLike[str]) -> bool:
        return self.get(root_path) is not None
