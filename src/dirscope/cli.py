"""CLI interface for Dirscope."""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from dataclasses import replace

import click

from dirscope.core.drives import list_drives
from dirscope.core.engine import ScanEngine, ScanSession
from dirscope.core.reveal import RevealError, reveal
from dirscope.core.scanner import ScanOptions
from dirscope.core.state import ScanState
from dirscope.models.events import ProgressUpdated
from dirscope.models.item import Item, ItemStatus, ItemType
from dirscope.models.scan_result import ScanProgress
from dirscope.settings import Settings
from dirscope.utils import bytes_to_human, format_elapsed, shorten_path

_STATUS_MARKS = {
    ItemStatus.OK: ("✓", "green"),
    ItemStatus.PARTIAL: ("~", "yellow"),
    ItemStatus.PENDING: ("·", "bright_black"),
    ItemStatus.UNSUPPORTED: ("·", "bright_black"),
    ItemStatus.NO_ACCESS: ("✗", "red"),
    ItemStatus.NOT_FOUND: ("✗", "red"),
    ItemStatus.ERROR: ("✗", "red"),
}

_STATUS_NOTES = {
    ItemStatus.PARTIAL: "partial",
    ItemStatus.PENDING: "not scanned",
    ItemStatus.UNSUPPORTED: "unsupported",
    ItemStatus.NO_ACCESS: "no access",
    ItemStatus.NOT_FOUND: "vanished",
    ItemStatus.ERROR: "error",
}


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_options(interval: int | None, no_force_items: bool) -> ScanOptions:
    options = ScanOptions.from_settings(Settings.instance())
    if interval is not None:
        options = replace(options, progress_interval=interval / 1000)
    if no_force_items:
        options = replace(options, force_progress_on_items=False)
    return options


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """Dirscope - see what is taking up space while it is being counted."""
    _setup_logging(verbose)


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", default=".")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--interval", type=click.IntRange(min=0), default=None, help="Progress interval in milliseconds")
@click.option("--no-force-items", is_flag=True, help="Throttle progress after each top-level entry too")
@click.option("--filter", "query", default=None, help="Only show entries whose name contains this text")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=None, help="Show at most N entries")
def scan(
    path: str,
    as_json: bool,
    interval: int | None,
    no_force_items: bool,
    query: str | None,
    limit: int | None,
) -> None:
    """Scan PATH and list its entries by size. Ctrl-C stops early."""
    engine = ScanEngine(options=_build_options(interval, no_force_items))
    show_progress = not as_json and sys.stderr.isatty()
    state = ScanState()

    started = time.monotonic()
    session = engine.start(path)
    try:
        _consume(session, state, show_progress)
    except KeyboardInterrupt:
        session.cancel()
        click.echo("\nCancelling...", err=True)
        _consume(session, state, show_progress=False)
    finally:
        engine.shutdown()
    elapsed = time.monotonic() - started

    if show_progress:
        click.echo("\r\033[K", nl=False, err=True)

    if state.error is not None:
        click.echo(f"Scan failed: {state.error}", err=True)
        sys.exit(1)

    result = state.result
    items = _visible_items(result.items, query, limit)

    if as_json:
        data = result.to_dict()
        data["items"] = [item.to_dict() for item in items]
        data["elapsed_seconds"] = round(elapsed, 3)
        click.echo(json.dumps(data, indent=2))
        if result.status is not ItemStatus.OK:
            sys.exit(1)
        return

    if result.status is not ItemStatus.OK:
        click.echo(
            f"{click.style('✗', fg='red')} Cannot scan {result.root_path}: "
            f"{_STATUS_NOTES.get(result.status, result.status.value)}",
            err=True,
        )
        sys.exit(1)

    click.echo(f"\n{click.style(result.root_path, bold=True)}\n")
    if not items:
        click.echo("  Nothing to show.")
    for item in items:
        click.echo(_format_item(item))

    summary = (
        f"\n{result.scanned_files:,} files, "
        f"{click.style(bytes_to_human(result.scanned_bytes), fg='green', bold=True)} "
        f"in {format_elapsed(elapsed)}"
    )
    if result.cancelled:
        summary += click.style(" (cancelled)", fg="yellow")
    click.echo(summary + "\n")


def _consume(session: ScanSession, state: ScanState, show_progress: bool) -> None:
    for event in session.events():
        state.apply(event)
        if show_progress and isinstance(event, ProgressUpdated):
            _render_progress(event.progress)


def _render_progress(progress: ScanProgress) -> None:
    head = (
        f"  Scanning {progress.completed}/{progress.total} · "
        f"{progress.scanned_files:,} files · {bytes_to_human(progress.scanned_bytes)} · "
    )
    try:
        columns = os.get_terminal_size(sys.stderr.fileno()).columns
    except OSError:
        columns = 80
    tail = shorten_path(progress.current_path, max(10, columns - len(head) - 1))
    click.echo(f"\r\033[K{head}{tail}", nl=False, err=True)


def _visible_items(items: list[Item], query: str | None, limit: int | None) -> list[Item]:
    """Filter by name and order largest first; unknown sizes sink to the bottom."""
    if query:
        needle = query.strip().lower()
        items = [item for item in items if needle in item.name.lower()]
    ordered = sorted(items, key=lambda item: item.size if item.size is not None else -1, reverse=True)
    return ordered[:limit] if limit else ordered


def _format_item(item: Item) -> str:
    mark, color = _STATUS_MARKS[item.status]
    name = item.name + ("/" if item.type is ItemType.DIR else "")
    line = f"  {click.style(mark, fg=color)} {bytes_to_human(item.size):>10s}  {name}"
    if item.type is ItemType.DIR and item.child_count:
        line += click.style(f"  ({item.child_count:,} items)", fg="bright_black")
    note = _STATUS_NOTES.get(item.status)
    if note:
        line += click.style(f"  [{note}]", fg=color)
    return line


# ── drives ───────────────────────────────────────────────────────────────

@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def drives(as_json: bool) -> None:
    """List drives and volumes that can be scanned."""
    found = list_drives()
    if as_json:
        click.echo(json.dumps(found, indent=2))
        return
    for drive in found:
        click.echo(f"  {drive}")


# ── reveal ───────────────────────────────────────────────────────────────

@main.command("reveal")
@click.argument("path")
def reveal_cmd(path: str) -> None:
    """Show PATH in the system file manager."""
    item_type = ItemType.DIR if os.path.isdir(path) else ItemType.FILE
    try:
        reveal(os.path.abspath(path), item_type)
    except RevealError as exc:
        click.echo(f"Cannot reveal {path}: {exc}", err=True)
        sys.exit(1)


# ── config ───────────────────────────────────────────────────────────────

@main.group()
def config() -> None:
    """Read and change settings."""


@config.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Print the value of KEY (dot notation, e.g. scan.progress_interval_ms)."""
    click.echo(json.dumps(Settings.instance().get(key)))


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set KEY to VALUE, parsed as JSON when possible."""
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    Settings.instance().set(key, parsed)


# ── service ──────────────────────────────────────────────────────────────

@main.group()
def service() -> None:
    """D-Bus service management."""


@service.command("start")
def service_start() -> None:
    """Start the D-Bus service in foreground."""
    from dirscope.dbus_service import start_service

    click.echo("Starting Dirscope D-Bus service...")
    start_service()
