"""Scan orchestration engine."""

from __future__ import annotations

import itertools
import logging
import os
import queue
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator

from dirscope.core.cache import ScanCache
from dirscope.core.cancel import CancellationToken
from dirscope.core.scanner import ScanOptions, ScanSinks, scan_directory
from dirscope.models.events import (
    TERMINAL_EVENTS,
    InitialSnapshot,
    ItemUpdated,
    ProgressUpdated,
    ScanEvent,
    ScanFailed,
    ScanFinished,
    ScanStarted,
)
from dirscope.models.scan_result import ScanProgress, ScanResult

log = logging.getLogger(__name__)

EventListener = Callable[[ScanEvent], None]

_generation = itertools.count(1)


class ScanError(Exception):
    """Raised when a scan ends without producing a result."""


def _new_scan_id() -> str:
    return f"{next(_generation)}-{uuid.uuid4().hex[:12]}"


class ScanSession:
    """One scan generation: its id, cancel token and event stream."""

    def __init__(self, scan_id: str, root_path: str) -> None:
        self.scan_id = scan_id
        self.root_path = root_path
        self.token = CancellationToken()
        self.cached = False
        self.error: str | None = None
        self._result: ScanResult | None = None
        self._events: queue.Queue[ScanEvent] = queue.Queue()
        self._done = threading.Event()

    def __repr__(self) -> str:
        return f"ScanSession(scan_id={self.scan_id!r}, root_path={self.root_path!r})"

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def result(self) -> ScanResult | None:
        return self._result

    def cancel(self) -> None:
        self.token.cancel()

    def wait(self, timeout: float | None = None) -> ScanResult | None:
        """Block until the scan ends and return its result (None on failure or timeout)."""
        self._done.wait(timeout)
        return self._result

    def events(self, timeout: float | None = None) -> Iterator[ScanEvent]:
        """Yield this session's events in order, ending with its terminal event.

        Raises:
            queue.Empty: If no event arrives within *timeout* seconds.
        """
        while True:
            event = self._events.get(timeout=timeout)
            yield event
            if isinstance(event, TERMINAL_EVENTS):
                return

    def _publish(self, event: ScanEvent) -> None:
        self._events.put(event)

    def _finish(self, result: ScanResult | None, error: str | None = None) -> None:
        self._result = result
        self.error = error
        self._done.set()


class ScanEngine:
    """Runs one scan at a time and streams its events.

    Starting a scan cancels whatever scan is still running.  Traversals run
    on a single background worker, so a superseded scan always stops before
    the next one touches the disk.
    """

    def __init__(self, cache: ScanCache | None = None, options: ScanOptions | None = None) -> None:
        self.cache = cache
        self.options = options or ScanOptions()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dirscope-scan")
        self._lock = threading.Lock()
        self._current: ScanSession | None = None
        self._latest_id: str | None = None

    @property
    def current(self) -> ScanSession | None:
        """The session still in flight, if any."""
        with self._lock:
            return self._current

    def is_current(self, scan_id: str) -> bool:
        """Whether *scan_id* belongs to the most recently started scan."""
        with self._lock:
            return scan_id == self._latest_id

    def start(
        self,
        root_path: str | os.PathLike[str],
        *,
        force: bool = False,
        listener: EventListener | None = None,
    ) -> ScanSession:
        """Start scanning *root_path* and return its session immediately.

        Unless *force* is set, a fresh cached result is replayed instead of
        touching the filesystem.

        Args:
            root_path: Directory to scan.
            force: Ignore the cache and rescan.
            listener: Optional callback receiving every event of this
                session.  Called from the worker thread for live scans.
        """
        root = os.path.abspath(os.fspath(root_path))
        session = ScanSession(_new_scan_id(), root)

        with self._lock:
            if self._current is not None:
                log.debug("Superseding scan %s", self._current.scan_id)
                self._current.cancel()
            self._current = session
            self._latest_id = session.scan_id

        emit = self._emitter(session, listener)

        cached = None
        if self.cache is not None and not force:
            cached = self.cache.get(root)
        if cached is not None:
            log.info("Using cached scan of %s", root)
            self._replay(session, cached, emit)
            return session

        emit(ScanStarted(session.scan_id, root))
        self._executor.submit(self._run, session, emit)
        return session

    def scan(
        self,
        root_path: str | os.PathLike[str],
        *,
        force: bool = False,
        listener: EventListener | None = None,
    ) -> ScanResult:
        """Scan *root_path* and block until the result is available.

        Raises:
            ScanError: If the traversal crashed.
        """
        session = self.start(root_path, force=force, listener=listener)
        result = session.wait()
        if result is None:
            raise ScanError(session.error or f"Scan of '{session.root_path}' failed")
        return result

    def cancel(self) -> None:
        """Cancel the scan in flight, if any."""
        with self._lock:
            if self._current is not None:
                self._current.cancel()

    def shutdown(self) -> None:
        """Cancel the current scan and wait for the worker to stop."""
        self.cancel()
        self._executor.shutdown(wait=True)

    def _run(self, session: ScanSession, emit: EventListener) -> None:
        sinks = ScanSinks(
            on_initial=lambda root, items: emit(InitialSnapshot(session.scan_id, root, items)),
            on_item_update=lambda item: emit(ItemUpdated(session.scan_id, item)),
            on_progress=lambda progress: emit(ProgressUpdated(session.scan_id, progress)),
        )
        try:
            result = scan_directory(session.root_path, session.token, sinks, self.options)
        except Exception as exc:
            log.exception("Scan of '%s' failed", session.root_path)
            message = str(exc) or "scan failed"
            self._retire(session)
            emit(ScanFailed(session.scan_id, session.root_path, message))
            session._finish(None, message)
            return

        if self.cache is not None and self.cache.put(session.root_path, result):
            log.debug("Cached scan of %s", session.root_path)

        log.info(
            "Scan of %s %s: %d files, %d bytes",
            session.root_path,
            "cancelled" if result.cancelled else "finished",
            result.scanned_files,
            result.scanned_bytes,
        )
        self._retire(session)
        emit(ScanFinished(session.scan_id, result))
        session._finish(result)

    def _replay(self, session: ScanSession, result: ScanResult, emit: EventListener) -> None:
        """Publish a cached result as if it had just been scanned."""
        session.cached = True
        count = len(result.items)
        emit(ScanStarted(session.scan_id, result.root_path, cached=True))
        emit(InitialSnapshot(session.scan_id, result.root_path, [item.copy() for item in result.items]))
        emit(
            ProgressUpdated(
                session.scan_id,
                ScanProgress(
                    completed=count,
                    total=count,
                    scanned_files=result.scanned_files,
                    scanned_bytes=result.scanned_bytes,
                    current_path=result.root_path,
                ),
            )
        )
        self._retire(session)
        emit(ScanFinished(session.scan_id, result, cached=True))
        session._finish(result)

    def _retire(self, session: ScanSession) -> None:
        with self._lock:
            if self._current is session:
                self._current = None

    @staticmethod
    def _emitter(session: ScanSession, listener: EventListener | None) -> EventListener:
        def emit(event: ScanEvent) -> None:
            session._publish(event)
            if listener is None:
                return
            try:
                listener(event)
            except Exception:
                log.exception("Listener failed on %s for scan %s", type(event).__name__, session.scan_id)

        return emit
