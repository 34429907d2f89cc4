"""Scan result and progress dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from dirscope.models.item import Item, ItemStatus


@dataclass(frozen=True, slots=True)
class ScanProgress:
    """Progress snapshot.

    ``completed`` and ``total`` count root entries only.  ``current_path``
    is a best-effort hint and may point inside a nested directory.
    """

    completed: int
    total: int
    scanned_files: int
    scanned_bytes: int
    current_path: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "completed": self.completed,
            "total": self.total,
            "scanned_files": self.scanned_files,
            "scanned_bytes": self.scanned_bytes,
            "current_path": self.current_path,
        }


@dataclass(slots=True)
class ScanResult:
    """Terminal output of one traversal of a root directory."""

    root_path: str
    items: list[Item] = field(default_factory=list)
    scanned_files: int = 0
    scanned_bytes: int = 0
    cancelled: bool = False
    status: ItemStatus = ItemStatus.OK

    @property
    def total_bytes(self) -> int:
        """Sum of the known item sizes."""
        return sum(item.size for item in self.items if item.size is not None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "root_path": self.root_path,
            "items": [item.to_dict() for item in self.items],
            "scanned_files": self.scanned_files,
            "scanned_bytes": self.scanned_bytes,
            "cancelled": self.cancelled,
            "status": self.status.value,
        }

    def copy(self) -> ScanResult:
        """Return a copy whose items can be mutated independently."""
        return replace(self, items=[item.copy() for item in self.items])
