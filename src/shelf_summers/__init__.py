"""Austral-summer alignment and windowed statistics for Antarctic ice shelves."""

__version__ = "0.1.0"
