"""Offline support for the Trickipedia client."""

from .cache import OfflineCache
from .sync import SyncManager, SyncConfig

__all__ = [
    "OfflineCache",
    "SyncManager",
    "SyncConfig",
]
