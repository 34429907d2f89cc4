"""Directory entry classification."""

from __future__ import annotations

import logging
import os
from enum import Enum

log = logging.getLogger(__name__)


class EntryKind(str, Enum):
    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    OTHER = "other"


def classify(entry: os.DirEntry) -> EntryKind:
    """Decide what a directory entry is without following symlinks.

    Symlinks are recognised first so a link to a directory is never
    reported as a directory.  Devices, sockets and FIFOs are ``OTHER``.
    """
    try:
        if entry.is_symlink():
            return EntryKind.SYMLINK
        if entry.is_file(follow_symlinks=False):
            return EntryKind.FILE
        if entry.is_dir(follow_symlinks=False):
            return EntryKind.DIR
    except OSError as e:
        log.debug("Cannot inspect %s: %s", entry.path, e)
    return EntryKind.OTHER
