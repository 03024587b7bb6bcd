"""Fridge Tracker inventory core: cookability checks, FIFO cooking and shopping lists."""

__version__ = "0.1.0"
