"""Trickipedia catalog backend."""
