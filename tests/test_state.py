"""Tests for merging scan events into consumer state."""

from __future__ import annotations

from dirscope.core.state import ScanState
from dirscope.models.events import (
    InitialSnapshot,
    ItemUpdated,
    ProgressUpdated,
    ScanFailed,
    ScanFinished,
    ScanStarted,
)
from dirscope.models.item import Item, ItemStatus, ItemType
from dirscope.models.scan_result import ScanProgress, ScanResult


def _item(name: str, status: ItemStatus = ItemStatus.PENDING, size: int | None = None) -> Item:
    return Item(name=name, path=f"/root/{name}", type=ItemType.FILE, size=size, status=status)


def _started(state: ScanState, scan_id: str = "1-a") -> None:
    state.apply(ScanStarted(scan_id, "/root"))
    state.apply(InitialSnapshot(scan_id, "/root", [_item("a"), _item("b")]))


class TestScanState:
    def test_initial_snapshot(self):
        state = ScanState()
        _started(state)
        assert [i.name for i in state.items] == ["a", "b"]
        assert state.root_path == "/root"
        assert not state.finished

    def test_update_merges_by_path(self):
        state = ScanState()
        _started(state)
        assert state.apply(ItemUpdated("1-a", _item("b", ItemStatus.OK, 10)))
        assert state.get("/root/b").size == 10
        # order is preserved
        assert [i.name for i in state.items] == ["a", "b"]

    def test_terminal_status_never_regresses(self):
        state = ScanState()
        _started(state)
        state.apply(ItemUpdated("1-a", _item("a", ItemStatus.OK, 5)))
        assert not state.apply(ItemUpdated("1-a", _item("a")))
        assert state.get("/root/a").status is ItemStatus.OK

    def test_terminal_can_replace_terminal(self):
        state = ScanState()
        _started(state)
        state.apply(ItemUpdated("1-a", _item("a", ItemStatus.PARTIAL, 5)))
        state.apply(ItemUpdated("1-a", _item("a", ItemStatus.OK, 8)))
        assert state.get("/root/a").size == 8

    def test_stale_generation_ignored(self):
        state = ScanState()
        _started(state, "1-a")
        state.apply(ScanStarted("2-b", "/other"))

        assert not state.apply(ItemUpdated("1-a", _item("a", ItemStatus.OK, 1)))
        assert not state.apply(ScanFinished("1-a", ScanResult(root_path="/root")))
        assert state.items == []
        assert state.root_path == "/other"
        assert not state.finished

    def test_progress_and_finish(self):
        state = ScanState()
        _started(state)
        progress = ScanProgress(1, 2, 1, 10, "/root/a")
        state.apply(ProgressUpdated("1-a", progress))
        assert state.progress == progress

        result = ScanResult(root_path="/root", items=[_item("a", ItemStatus.OK, 10), _item("b")])
        state.apply(ScanFinished("1-a", result))
        assert state.finished
        assert state.result is result
        assert state.get("/root/a").status is ItemStatus.OK

    def test_failure(self):
        state = ScanState()
        _started(state)
        state.apply(ScanFailed("1-a", "/root", "boom"))
        assert state.finished
        assert state.error == "boom"

    def test_new_scan_resets(self):
        state = ScanState()
        _started(state)
        state.apply(ScanFailed("1-a", "/root", "boom"))
        state.apply(ScanStarted("2-b", "/root", cached=True))
        assert state.error is None
        assert state.cached is True
        assert state.items == []
