"""API client for backend communication."""

from .client import APIClient, APIConfig, APIError

__all__ = [
    "APIClient",
    "APIConfig",
    "APIError",
]
