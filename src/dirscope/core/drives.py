"""Enumerate candidate scan roots for the current platform."""

from __future__ import annotations

import logging
import os
import string
import sys
from pathlib import Path

log = logging.getLogger(__name__)

_VOLUMES_DIR = Path("/Volumes")
_MOUNTS_FILE = Path("/proc/self/mounts")

# Block devices that never hold user data worth scanning.
_IGNORED_DEVICE_PREFIXES = ("/dev/loop", "/dev/ram", "/dev/zram")


def list_drives() -> list[str]:
    """Return scan-root candidates, most useful first."""
    if sys.platform == "win32":
        return _windows_drives()
    if sys.platform == "darwin":
        return _macos_drives()
    return _linux_drives()


def _windows_drives() -> list[str]:
    return [f"{letter}:\\" for letter in string.ascii_uppercase if os.path.exists(f"{letter}:\\")]


def _macos_drives() -> list[str]:
    drives = ["/"]
    try:
        for entry in sorted(_VOLUMES_DIR.iterdir()):
            if entry.is_dir() and not entry.is_symlink():
                drives.append(str(entry))
    except OSError as e:
        log.debug("Cannot read %s: %s", _VOLUMES_DIR, e)
    return drives


def _linux_drives() -> list[str]:
    drives = ["/"]
    try:
        lines = _MOUNTS_FILE.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        log.debug("Cannot read %s: %s", _MOUNTS_FILE, e)
        return drives

    for line in lines:
        fields = line.split()
        if len(fields) < 2:
            continue
        device, mount_point = fields[0], _unescape_mount(fields[1])
        if not device.startswith("/dev/") or device.startswith(_IGNORED_DEVICE_PREFIXES):
            continue
        if mount_point not in drives:
            drives.append(mount_point)
    return drives


def _unescape_mount(field: str) -> str:
    """Decode the octal escapes (``\\040`` for space) used in the mounts table."""
    if "\\" not in field:
        return field
    out: list[str] = []
    i = 0
    while i < len(field):
        chunk = field[i + 1 : i + 4]
        if field[i] == "\\" and len(chunk) == 3 and all(c in "01234567" for c in chunk):
            out.append(chr(int(chunk, 8)))
            i += 4
        else:
            out.append(field[i])
            i += 1
    return "".join(out)
