"""Reveal a scanned item in the host's file manager."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path

from dbus_next import BusType, Message, MessageType
from dbus_next.aio import MessageBus

from dirscope.models.item import ItemType

log = logging.getLogger(__name__)

_FM_BUS_NAME = "org.freedesktop.FileManager1"
_FM_OBJECT_PATH = "/org/freedesktop/FileManager1"
_FM_INTERFACE = "org.freedesktop.FileManager1"


class RevealError(Exception):
    """Raised when an item cannot be shown in a file manager."""


def reveal(path: str, item_type: ItemType = ItemType.FILE) -> None:
    """Show *path* in the file manager; files are selected in their folder.

    Raises:
        RevealError: If no file manager could be launched.
    """
    asyncio.run(reveal_async(path, item_type))


async def reveal_async(path: str, item_type: ItemType = ItemType.FILE) -> None:
    """Coroutine form of :func:`reveal` for callers already inside a loop."""
    if not os.path.exists(path):
        raise RevealError(f"Path does not exist: {path}")

    if sys.platform == "darwin":
        _launch(["open", "-R", path] if item_type is ItemType.FILE else ["open", path])
        return
    if sys.platform == "win32":
        _launch(["explorer", f"/select,{path}"] if item_type is ItemType.FILE else ["explorer", path])
        return

    try:
        await _show_via_dbus(path, item_type)
        return
    except Exception as e:
        log.debug("FileManager1 unavailable (%s), falling back to xdg-open", e)

    if shutil.which("xdg-open") is None:
        raise RevealError("No file manager available (FileManager1 and xdg-open both missing)")
    target = path if item_type is ItemType.DIR else os.path.dirname(path)
    _launch(["xdg-open", target])


async def _show_via_dbus(path: str, item_type: ItemType) -> None:
    """Ask the desktop's FileManager1 service to show *path*."""
    member = "ShowItems" if item_type is ItemType.FILE else "ShowFolders"
    bus = await MessageBus(bus_type=BusType.SESSION).connect()
    try:
        reply = await bus.call(
            Message(
                destination=_FM_BUS_NAME,
                path=_FM_OBJECT_PATH,
                interface=_FM_INTERFACE,
                member=member,
                signature="ass",
                body=[[Path(path).as_uri()], ""],
            )
        )
    finally:
        bus.disconnect()

    if reply.message_type == MessageType.ERROR:
        detail = reply.body[0] if reply.body else reply.error_name
        raise RevealError(f"{member} failed: {detail}")


def _launch(cmd: list[str]) -> None:
    """Start *cmd* detached from this process."""
    log.debug("Launching %s", cmd)
    try:
        subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        raise RevealError(f"Could not launch {cmd[0]}: {e}") from e
