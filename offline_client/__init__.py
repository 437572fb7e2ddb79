"""Trickipedia offline client: local catalog cache kept in sync with the backend."""
