"""Root scan driver.

Lists a root directory, publishes every child as a pending item, then
works through the children in listing order: files are stat'd, directories
are summed with :func:`~dirscope.core.accumulator.accumulate`.  Callers
observe the scan through the optional callbacks in :class:`ScanSinks`.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from dirscope.core.accumulator import accumulate
from dirscope.core.cancel import CancellationToken
from dirscope.core.classifier import EntryKind, classify
from dirscope.core.fsops import list_dir, stat_file, status_for_error
from dirscope.core.throttle import DEFAULT_INTERVAL, ProgressSink, ProgressThrottle, ScanCounters
from dirscope.models.item import Item, ItemStatus, ItemType
from dirscope.models.scan_result import ScanResult

if TYPE_CHECKING:
    from dirscope.settings import Settings

log = logging.getLogger(__name__)

InitialCallback = Callable[[str, list[Item]], None]  # (root_path, items)
ItemUpdateCallback = Callable[[Item], None]


@dataclass(slots=True)
class ScanSinks:
    """Optional callbacks, invoked synchronously on the scanning thread."""

    on_initial: InitialCallback | None = None
    on_item_update: ItemUpdateCallback | None = None
    on_progress: ProgressSink | None = None


@dataclass(frozen=True, slots=True)
class ScanOptions:
    """Tuning knobs for a scan.

    ``force_progress_on_items`` makes the driver emit progress after every
    finished root entry regardless of the throttle.  With it disabled, only
    the final emission is forced and every other one honours
    ``progress_interval``.
    """

    progress_interval: float = DEFAULT_INTERVAL
    force_progress_on_items: bool = True
    clock: Callable[[], float] = field(default=time.monotonic, compare=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> ScanOptions:
        interval_ms = settings.get_float("scan.progress_interval_ms")
        return cls(
            progress_interval=max(0.0, interval_ms / 1000),
            force_progress_on_items=settings.get_bool("scan.force_progress_on_items"),
        )


def scan_directory(
    root_path: str | os.PathLike[str],
    cancel_token: CancellationToken | None = None,
    sinks: ScanSinks | None = None,
    options: ScanOptions | None = None,
) -> ScanResult:
    """Scan *root_path* and return the aggregated result.

    A root that cannot be listed is not an exception: the result is empty
    and its ``status`` carries the classified failure.
    """
    root = os.path.abspath(os.fspath(root_path))
    token = cancel_token or CancellationToken()
    sinks = sinks or ScanSinks()
    options = options or ScanOptions()

    counters = ScanCounters()
    throttle = ProgressThrottle(sinks.on_progress, counters, options.progress_interval, options.clock)

    try:
        root_entries = list_dir(root)
    except OSError as e:
        status = status_for_error(e)
        log.info("Cannot list scan root %s: %s", root, e)
        if sinks.on_initial:
            sinks.on_initial(root, [])
        if sinks.on_progress:
            sinks.on_progress(counters.snapshot(root))
        return ScanResult(root_path=root, status=status, cancelled=token.cancelled)

    counters.total = len(root_entries)
    items = [_pending_item(entry) for entry in root_entries]
    log.debug("Scanning %s: %d root entries, progress every %.3fs", root, len(items), throttle.interval)

    if sinks.on_initial:
        sinks.on_initial(root, [item.copy() for item in items])
    throttle.report(root, force=options.force_progress_on_items)

    def publish(item: Item) -> None:
        if sinks.on_item_update:
            sinks.on_item_update(item.copy())

    def finish(item: Item) -> None:
        publish(item)
        counters.complete_item()
        throttle.report(item.path, force=options.force_progress_on_items)

    for entry, item in zip(root_entries, items):
        if token.cancelled:
            break

        match classify(entry):
            case EntryKind.FILE:
                _scan_file(item, counters)
                finish(item)
            case EntryKind.DIR:
                try:
                    children = list_dir(item.path)
                except OSError as e:
                    log.debug("Cannot list %s: %s", item.path, e)
                    item.status = status_for_error(e)
                    item.child_count = 0
                    item.size = None
                    finish(item)
                    continue

                item.child_count = len(children)
                publish(item)

                summed = accumulate(item.path, children, token, counters, throttle)
                item.size = summed.size
                if token.cancelled:
                    item.status = ItemStatus.PARTIAL
                    publish(item)
                    break
                item.status = ItemStatus.PARTIAL if summed.cancelled_early else ItemStatus.OK
                finish(item)
            case _:
                item.status = ItemStatus.UNSUPPORTED
                finish(item)

    throttle.report(root, force=True)

    return ScanResult(
        root_path=root,
        items=items,
        scanned_files=counters.scanned_files,
        scanned_bytes=counters.scanned_bytes,
        cancelled=token.cancelled,
    )


def _pending_item(entry: os.DirEntry) -> Item:
    item_type = ItemType.DIR if classify(entry) is EntryKind.DIR else ItemType.FILE
    return Item(name=entry.name, path=entry.path, type=item_type)


def _scan_file(item: Item, counters: ScanCounters) -> None:
    st = stat_file(item.path)
    if st is None:
        item.status = ItemStatus.ERROR
        return
    item.size = st.st_size
    item.mtime = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
    item.status = ItemStatus.OK
    counters.add_file(st.st_size)
