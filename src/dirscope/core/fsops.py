"""Filesystem primitives used by the scanner."""

from __future__ import annotations

import errno
import logging
import os

from dirscope.core.classifier import EntryKind, classify
from dirscope.models.item import ItemStatus

log = logging.getLogger(__name__)

_ACCESS_ERRNOS = frozenset({errno.EACCES, errno.EPERM})


def list_dir(path: str) -> list[os.DirEntry]:
    """Return the immediate children of *path*, symlinks excluded.

    Raises:
        OSError: If the directory cannot be listed.
    """
    with os.scandir(path) as it:
        return [entry for entry in it if classify(entry) is not EntryKind.SYMLINK]


def stat_file(path: str) -> os.stat_result | None:
    """Stat a file without following symlinks, or None if that fails."""
    try:
        return os.stat(path, follow_symlinks=False)
    except OSError as e:
        log.debug("Cannot stat %s: %s", path, e)
        return None


def status_for_error(exc: OSError) -> ItemStatus:
    """Map an I/O failure onto the item status taxonomy."""
    if isinstance(exc, PermissionError) or exc.errno in _ACCESS_ERRNOS:
        return ItemStatus.NO_ACCESS
    if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
        return ItemStatus.NOT_FOUND
    return ItemStatus.ERROR
