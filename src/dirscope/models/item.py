"""Scanned item dataclass."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any


class ItemType(str, Enum):
    """Kind of entry shown as a top-level item."""

    FILE = "file"
    DIR = "dir"


class ItemStatus(str, Enum):
    """Lifecycle state of an item within one scan."""

    PENDING = "pending"
    OK = "ok"
    ERROR = "error"
    NO_ACCESS = "no_access"
    NOT_FOUND = "not_found"
    PARTIAL = "partial"
    UNSUPPORTED = "unsupported"

    @property
    def is_terminal(self) -> bool:
        return self is not ItemStatus.PENDING


@dataclass(slots=True)
class Item:
    """One entry directly under a scanned root.

    ``size`` stays ``None`` while the item is pending or when it could not
    be determined.  For directories it is the sum of every regular file in
    the subtree.
    """

    name: str
    path: str
    type: ItemType
    size: int | None = None
    child_count: int | None = None
    mtime: datetime | None = None
    status: ItemStatus = ItemStatus.PENDING

    def copy(self) -> Item:
        """Return a detached snapshot safe to hand to another thread."""
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "type": self.type.value,
            "size": self.size,
            "child_count": self.child_count,
            "mtime": self.mtime.date().isoformat() if self.mtime else None,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        mtime = data.get("mtime")
        return cls(
            name=data["name"],
            path=data["path"],
            type=ItemType(data["type"]),
            size=data.get("size"),
            child_count=data.get("child_count"),
            mtime=datetime.fromisoformat(mtime) if mtime else None,
            status=ItemStatus(data.get("status", ItemStatus.PENDING.value)),
        )
