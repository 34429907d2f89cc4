"""Scan counters and rate-limited progress reporting."""

from __future__ import annotations

import threading
import time
from typing import Callable

from dirscope.models.scan_result import ScanProgress

# Minimum spacing between two unforced progress emissions (seconds).
DEFAULT_INTERVAL = 0.2

ProgressSink = Callable[[ScanProgress], None]


class ScanCounters:
    """Global counters of one scan, shared by the driver and the accumulator."""

    def __init__(self, total: int = 0) -> None:
        self._lock = threading.Lock()
        self.total = total
        self.completed = 0
        self.scanned_files = 0
        self.scanned_bytes = 0

    def add_file(self, size: int) -> None:
        with self._lock:
            self.scanned_files += 1
            self.scanned_bytes += size

    def complete_item(self) -> None:
        with self._lock:
            self.completed += 1

    def snapshot(self, current_path: str) -> ScanProgress:
        with self._lock:
            return ScanProgress(
                completed=self.completed,
                total=self.total,
                scanned_files=self.scanned_files,
                scanned_bytes=self.scanned_bytes,
                current_path=current_path,
            )


class ProgressThrottle:
    """Forward progress snapshots to *sink* at most once per *interval*.

    The first report always goes through, as does any report made with
    ``force=True``.
    """

    def __init__(
        self,
        sink: ProgressSink | None,
        counters: ScanCounters,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sink = sink
        self._counters = counters
        self._interval = interval
        self._clock = clock
        self._last_emit: float | None = None
        self.emitted = 0

    @property
    def interval(self) -> float:
        return self._interval

    def report(self, current_path: str, force: bool = False) -> bool:
        """Emit a progress snapshot unless throttled. Returns True if emitted."""
        now = self._clock()
        if not force and self._last_emit is not None and now - self._last_emit < self._interval:
            return False
        self._last_emit = now
        self.emitted += 1
        if self._sink is not None:
            self._sink(self._counters.snapshot(current_path))
        return True
