"""Core components for the offline client."""

from .connectivity import ConnectivityMonitor

__all__ = [
    "ConnectivityMonitor",
]
