"""Cooperative cancellation flag shared between a caller and a scan."""

from __future__ import annotations

import threading


class CancellationToken:
    """Write-once cancel flag.

    The owner calls :meth:`cancel`; the engine only reads :attr:`cancelled`
    at its checkpoints.  In-flight syscalls are never interrupted.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or *timeout* elapses. Returns the flag."""
        return self._event.wait(timeout)
