"""Trick catalog: SQLite storage and the HTTP routes over it."""
from .store import CatalogStore, get_store

__all__ = ["CatalogStore", "get_store"]
