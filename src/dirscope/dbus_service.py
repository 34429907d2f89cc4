"""D-Bus service for GUI communication.

D-Bus methods use PascalCase per D-Bus convention, and type signatures
like "s" and "(ss)" are D-Bus protocol types, not Python syntax.

Scan events arrive on the engine's worker thread and are handed to the
asyncio loop before being emitted as signals.  Every signal carries the
scan id so clients can drop signals from a superseded scan.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from dbus_next.aio import MessageBus
from dbus_next.service import ServiceInterface, method, signal
from dbus_next import BusType

from dirscope.core.cache import ScanCache
from dirscope.core.drives import list_drives
from dirscope.core.engine import ScanEngine
from dirscope.core.reveal import RevealError, reveal_async
from dirscope.core.scanner import ScanOptions
from dirscope.models import events
from dirscope.models.events import ScanEvent
from dirscope.models.item import ItemType
from dirscope.settings import Settings

log = logging.getLogger(__name__)

_BUS_NAME = "io.github.dirscope"
_OBJECT_PATH = "/io/github/dirscope"
_INTERFACE = "io.github.dirscope.Scanner"


def event_to_signal(event: ScanEvent) -> tuple[str, list[Any]]:
    """Map a scan event onto the name and arguments of its D-Bus signal."""
    match event:
        case events.ScanStarted(scan_id=scan_id, root_path=root_path, cached=cached):
            return "ScanStarted", [scan_id, root_path, cached]
        case events.InitialSnapshot(scan_id=scan_id, root_path=root_path, items=items):
            return "ScanInitial", [scan_id, root_path, json.dumps([i.to_dict() for i in items])]
        case events.ItemUpdated(scan_id=scan_id, item=item):
            return "ScanItemUpdate", [scan_id, json.dumps(item.to_dict())]
        case events.ProgressUpdated(scan_id=scan_id, progress=progress):
            return "ScanProgress", [scan_id, json.dumps(progress.to_dict())]
        case events.ScanFinished(scan_id=scan_id, result=result, cached=cached):
            data = result.to_dict()
            data["cached"] = cached
            return "ScanDone", [scan_id, json.dumps(data)]
        case events.ScanFailed(scan_id=scan_id, root_path=root_path, message=message):
            return "ScanError", [scan_id, root_path, message]
    raise TypeError(f"Unknown scan event: {event!r}")


# noinspection PyPep8Naming
class DirscopeDBusService(ServiceInterface):
    """D-Bus service interface for Dirscope."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        engine: ScanEngine | None = None,
    ) -> None:
        super().__init__(_INTERFACE)
        self._loop = loop
        if engine is None:
            settings = Settings.instance()
            engine = ScanEngine(
                cache=ScanCache.from_settings(settings),
                options=ScanOptions.from_settings(settings),
            )
        self._engine = engine

    @method()
    def ListDrives(self) -> "s":  # type: ignore[override]
        """List candidate scan roots as JSON."""
        return json.dumps(list_drives())

    @method()
    def Scan(self, path: "s", force: "b") -> "s":  # type: ignore[override]
        """Start scanning *path*, returning the new scan id."""
        return self.start_scan(path, force)

    @method()
    def CancelScan(self) -> "b":  # type: ignore[override]
        """Cancel the scan in flight."""
        self._engine.cancel()
        return True

    @method()
    def InvalidateCache(self, path: "s") -> "b":  # type: ignore[override]
        """Forget the cached result for *path*, or everything when empty."""
        if self._engine.cache is None:
            return False
        self._engine.cache.invalidate(path or None)
        return True

    @method()
    async def OpenLocation(self, path: "s", item_type: "s") -> "b":  # type: ignore[override]
        """Reveal an item in the desktop file manager."""
        return await self.open_location(path, item_type)

    def start_scan(self, path: str, force: bool = False) -> str:
        if not path:
            return ""
        session = self._engine.start(path, force=force, listener=self._forward)
        return session.scan_id

    async def open_location(self, path: str, item_type: str) -> bool:
        try:
            await reveal_async(path, ItemType(item_type))
        except (RevealError, ValueError) as exc:
            log.warning("Cannot open %s: %s", path, exc)
            return False
        return True

    def shutdown(self) -> None:
        self._engine.shutdown()

    def _forward(self, event: ScanEvent) -> None:
        if self._loop is None:
            self._dispatch(event)
        else:
            self._loop.call_soon_threadsafe(self._dispatch, event)

    def _dispatch(self, event: ScanEvent) -> None:
        name, args = event_to_signal(event)
        getattr(self, name)(*args)

    @signal()
    def ScanStarted(self, scan_id: str, root_path: str, cached: bool) -> "ssb":  # type: ignore[override]
        return [scan_id, root_path, cached]

    @signal()
    def ScanInitial(self, scan_id: str, root_path: str, items: str) -> "sss":  # type: ignore[override]
        return [scan_id, root_path, items]

    @signal()
    def ScanItemUpdate(self, scan_id: str, item: str) -> "ss":  # type: ignore[override]
        return [scan_id, item]

    @signal()
    def ScanProgress(self, scan_id: str, progress: str) -> "ss":  # type: ignore[override]
        return [scan_id, progress]

    @signal()
    def ScanDone(self, scan_id: str, result: str) -> "ss":  # type: ignore[override]
        return [scan_id, result]

    @signal()
    def ScanError(self, scan_id: str, root_path: str, message: str) -> "sss":  # type: ignore[override]
        return [scan_id, root_path, message]


async def run_service() -> None:
    """Start the D-Bus service."""
    bus = await MessageBus(bus_type=BusType.SESSION).connect()
    service = DirscopeDBusService(loop=asyncio.get_running_loop())
    bus.export(_OBJECT_PATH, service)
    await bus.request_name(_BUS_NAME)
    log.info("D-Bus service started on %s", _BUS_NAME)
    try:
        await bus.wait_for_disconnect()
    finally:
        service.shutdown()


def start_service() -> None:
    """Entry point to start the D-Bus service."""
    asyncio.run(run_service())
