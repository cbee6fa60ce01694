"""Persistence backends."""

from .sqlite import SqliteInventoryRepository

__all__ = ["SqliteInventoryRepository"]
