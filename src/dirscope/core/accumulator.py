"""Subtree size accumulation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable

from dirscope.core.cancel import CancellationToken
from dirscope.core.classifier import EntryKind, classify
from dirscope.core.fsops import list_dir, stat_file
from dirscope.core.throttle import ProgressThrottle, ScanCounters

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Accumulation:
    """Bytes summed under a directory and whether the walk stopped early."""

    size: int
    cancelled_early: bool = False


def accumulate(
    dir_path: str,
    initial_children: Iterable[os.DirEntry],
    cancel_token: CancellationToken,
    counters: ScanCounters,
    throttle: ProgressThrottle | None = None,
) -> Accumulation:
    """Sum the size of every regular file below *dir_path*.

    Walks the tree with an explicit stack so arbitrarily deep trees never
    hit the recursion limit.  *initial_children* is the already-known
    listing of *dir_path* itself.  Unreadable subdirectories and files that
    fail to stat are skipped; they only make the total smaller.

    Every file counted here is also added to the scan-wide *counters*.
    The token is checked before each popped directory is expanded and
    before each child is handled.
    """
    size = 0
    stack: list[str] = []
    current = dir_path
    children: Iterable[os.DirEntry] = initial_children

    while True:
        for entry in children:
            if cancel_token.cancelled:
                return Accumulation(size, cancelled_early=True)

            kind = classify(entry)
            if kind is EntryKind.DIR:
                stack.append(entry.path)
            elif kind is EntryKind.FILE:
                st = stat_file(entry.path)
                if st is not None:
                    size += st.st_size
                    counters.add_file(st.st_size)

            if throttle is not None:
                throttle.report(current)

        if not stack:
            return Accumulation(size)
        if cancel_token.cancelled:
            return Accumulation(size, cancelled_early=True)

        current = stack.pop()
        try:
            children = list_dir(current)
        except OSError as e:
            log.debug("Skipping unreadable directory %s: %s", current, e)
            children = ()
