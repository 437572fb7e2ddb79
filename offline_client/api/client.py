"""
REST API Client

HTTP client for the Trickipedia catalog backend.
"""

import asyncio
import logging
from typing import Optional, Dict, Any, List
from dataclasses import dataclass
import aiohttp

logger = logging.getLogger(__name__)


@dataclass
class APIConfig:
    """API client configuration."""
    base_url: str = "http://localhost:8000"
    timeout_seconds: float = 30.0
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0


class APIClient:
    """
    REST API client for the Trickipedia backend.

    Features:
    - Async HTTP requests
    - Automatic retries with backoff
    - Connection pooling
    - Bulk catalog reads for offline sync
    """

    def __init__(self, config: Optional[APIConfig] = None):
        self.config = config or APIConfig()
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(
                base_url=self.config.base_url,
                timeout=timeout
            )
        return self._session

    async def close(self):
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Make a GET request.

        Args:
            path: API path (e.g., "/health")
            params: Query parameters

        Returns:
            Decoded response JSON
        """
        return await self._request("GET", path, params=params)

    async def post(
        self,
        path: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Make a POST request.

        Args:
            path: API path
            data: Request body

        Returns:
            Decoded response JSON
        """
        return await self._request("POST", path, json=data)

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs
    ) -> Any:
        """
        Make an HTTP request with retries.

        Client errors (4xx) are not retried.

        Raises:
            APIError: On request failure
        """
        session = await self._get_session()
        last_error = None

        for attempt in range(self.config.retry_attempts):
            try:
                async with session.request(method, path, **kwargs) as response:
                    if response.status >= 400:
                        error_text = await response.text()
                        raise APIError(
                            f"API error {response.status}: {error_text}",
                            status=response.status
                        )

                    return await response.json()

            except APIError as e:
                if e.status < 500:
                    raise
                last_error = e
                logger.warning(f"Server error on {method} {path} (attempt {attempt + 1}): {e}")

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning(f"Request failed on {method} {path} (attempt {attempt + 1}): {e}")

            if attempt < self.config.retry_attempts - 1:
                await asyncio.sleep(
                    self.config.retry_delay_seconds * (attempt + 1)
                )

        status = last_error.status if isinstance(last_error, APIError) else 0
        raise APIError(
            f"Request failed after {self.config.retry_attempts} attempts: {last_error}",
            status=status
        )

    async def _get_list(self, path: str) -> List[Dict[str, Any]]:
        payload = await self.get(path)
        if not isinstance(payload, list):
            raise APIError(f"Expected a JSON array from {path}, got {type(payload).__name__}")
        return payload

    # Convenience methods for specific endpoints

    async def health_check(self) -> bool:
        """Check if the backend is healthy."""
        try:
            result = await self.get("/health")
            return result.get("status") == "ok"
        except Exception:
            return False

    async def get_all_tricks(self) -> List[Dict[str, Any]]:
        """Bulk read of every published trick, denormalized."""
        return await self._get_list("/api/tricks/all")

    async def get_all_categories(self) -> List[Dict[str, Any]]:
        """Bulk read of every active master category."""
        return await self._get_list("/api/categories/all")

    async def get_navigation(self) -> List[Dict[str, Any]]:
        """Category -> subcategory -> published trick tree."""
        return await self._get_list("/api/navigation")

    async def increment_views(self, trick_id: str) -> int:
        """Count a view of a trick; returns the new view count."""
        result = await self.post(f"/api/tricks/{trick_id}/increment-views")
        return result.get("view_count", 0)

    async def toggle_can_do(self, user_id: str, trick_id: str, can_do: bool) -> Dict[str, Any]:
        """Mark or unmark a trick as landed by a user."""
        return await self.post("/api/tricks/toggle-can-do", {
            "user_id": user_id,
            "trick_id": trick_id,
            "can_do": can_do
        })

    async def get_user_xp(self, user_id: str) -> Dict[str, Any]:
        """Get a user's XP total and level progression."""
        return await self.get(f"/api/users/{user_id}/xp")


class APIError(Exception):
    """API request error."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status
