"""Deferred SMS scheduling: task store, due-task selection, delivery and stats."""

__version__ = "0.1.0"
