"""Dirscope data models."""

from dirscope.models.events import (
    InitialSnapshot,
    ItemUpdated,
    ProgressUpdated,
    ScanEvent,
    ScanFailed,
    ScanFinished,
    ScanStarted,
)
from dirscope.models.item import Item, ItemStatus, ItemType
from dirscope.models.scan_result import ScanProgress, ScanResult

__all__ = [
    "InitialSnapshot",
    "Item",
    "ItemStatus",
    "ItemType",
    "ItemUpdated",
    "ProgressUpdated",
    "ScanEvent",
    "ScanFailed",
    "ScanFinished",
    "ScanProgress",
    "ScanResult",
    "ScanStarted",
]
