"""Typed events streamed by the scan engine.

Every event carries the ``scan_id`` of the session that produced it so a
consumer can drop events from a superseded scan.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from dirscope.models.item import Item
from dirscope.models.scan_result import ScanProgress, ScanResult


@dataclass(frozen=True, slots=True)
class ScanStarted:
    scan_id: str
    root_path: str
    cached: bool = False


@dataclass(frozen=True, slots=True)
class InitialSnapshot:
    scan_id: str
    root_path: str
    items: list[Item]


@dataclass(frozen=True, slots=True)
class ItemUpdated:
    scan_id: str
    item: Item


@dataclass(frozen=True, slots=True)
class ProgressUpdated:
    scan_id: str
    progress: ScanProgress


@dataclass(frozen=True, slots=True)
class ScanFinished:
    scan_id: str
    result: ScanResult
    cached: bool = False


@dataclass(frozen=True, slots=True)
class ScanFailed:
    scan_id: str
    root_path: str
    message: str


ScanEvent = Union[ScanStarted, InitialSnapshot, ItemUpdated, ProgressUpdated, ScanFinished, ScanFailed]

TERMINAL_EVENTS = (ScanFinished, ScanFailed)
