"""Incremental disk usage scanner."""

__version__ = "0.1.0"
