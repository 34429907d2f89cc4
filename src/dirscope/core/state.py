"""Consumer-side view of a scan built from its event stream."""

from __future__ import annotations

import logging

from dirscope.models.events import (
    InitialSnapshot,
    ItemUpdated,
    ProgressUpdated,
    ScanEvent,
    ScanFailed,
    ScanFinished,
    ScanStarted,
)
from dirscope.models.item import Item
from dirscope.models.scan_result import ScanProgress, ScanResult

log = logging.getLogger(__name__)


class ScanState:
    """Merges scan events into a table of items keyed by path.

    A :class:`ScanStarted` event adopts a new generation; afterwards any
    event carrying another ``scan_id`` is ignored.  Item updates are merged
    by path and never move an item out of a terminal status back to
    ``pending``.
    """

    def __init__(self) -> None:
        self.scan_id: str | None = None
        self.root_path: str | None = None
        self.cached = False
        self.progress: ScanProgress | None = None
        self.result: ScanResult | None = None
        self.error: str | None = None
        self._items: dict[str, Item] = {}

    @property
    def items(self) -> list[Item]:
        """Items in root listing order."""
        return list(self._items.values())

    @property
    def finished(self) -> bool:
        return self.result is not None or self.error is not None

    def get(self, path: str) -> Item | None:
        return self._items.get(path)

    def apply(self, event: ScanEvent) -> bool:
        """Fold *event* into the state. Returns False if it was ignored."""
        if isinstance(event, ScanStarted):
            self._reset(event)
            return True
        if event.scan_id != self.scan_id:
            log.debug("Ignoring %s from stale scan %s", type(event).__name__, event.scan_id)
            return False

        match event:
            case InitialSnapshot(items=items):
                self._items = {item.path: item for item in items}
            case ItemUpdated(item=item):
                return self._merge(item)
            case ProgressUpdated(progress=progress):
                self.progress = progress
            case ScanFinished(result=result):
                self.result = result
                for item in result.items:
                    self._merge(item)
            case ScanFailed(message=message):
                self.error = message
        return True

    def _merge(self, item: Item) -> bool:
        existing = self._items.get(item.path)
        if existing is not None and existing.status.is_terminal and not item.status.is_terminal:
            return False
        self._items[item.path] = item
        return True

    def _reset(self, event: ScanStarted) -> None:
        self.scan_id = event.scan_id
        self.root_path = event.root_path
        self.cached = event.cached
        self.progress = None
        self.result = None
        self.error = None
        self._items = {}
