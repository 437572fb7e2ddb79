"""
Sync Manager

Keeps the offline catalog cache fresh. A full refresh of tricks and
categories runs at most once per sync interval, and only while online.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set

from offline_client.core.connectivity import ConnectivityMonitor
from .cache import OfflineCache

logger = logging.getLogger(__name__)

SYNC_INTERVAL_SECONDS = 24 * 60 * 60


@dataclass
class SyncConfig:
    """Sync manager configuration."""
    interval_seconds: float = SYNC_INTERVAL_SECONDS
    single_flight: bool = False


class SyncManager:
    """
    Timestamp-gated synchronization between the backend and the offline cache.

    Features:
    - 24h refresh gate stored in cache metadata
    - Connectivity gate via ConnectivityMonitor
    - Concurrent bulk fetch of tricks and categories
    - All-or-nothing timestamp update; failures are logged, not raised
    """

    def __init__(
        self,
        cache: OfflineCache,
        api,
        connectivity: ConnectivityMonitor,
        config: Optional[SyncConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the sync manager.

        Args:
            cache: Connected offline cache
            api: Client exposing async get_all_tricks() / get_all_categories()
            connectivity: Online/offline flag source
            config: Interval and single-flight settings
            clock: Epoch-seconds time source
        """
        self.cache = cache
        self.api = api
        self.connectivity = connectivity
        self.config = config or SyncConfig()
        self._clock = clock
        self._in_flight: Optional[asyncio.Task] = None
        self._reconnect_listener: Optional[Callable[[bool], None]] = None
        self._reconnect_tasks: Set[asyncio.Task] = set()

    async def should_sync(self) -> bool:
        """True when online and the last sync is missing or older than the interval."""
        if not self.connectivity.is_online:
            return False

        last_sync = await self.cache.get_last_sync()
        if last_sync is None:
            return True

        return self._clock() - last_sync >= self.config.interval_seconds

    async def sync(self, force: bool = False) -> bool:
        """
        Refresh the cached tricks and categories if due.

        Args:
            force: Skip the interval check; connectivity is still required

        Returns:
            True if a refresh was written, False if skipped or failed
        """
        if not self.config.single_flight:
            return await self._sync(force)

        if self._in_flight is None or self._in_flight.done():
            self._in_flight = asyncio.ensure_future(self._sync(force))
        return await asyncio.shield(self._in_flight)

    async def _sync(self, force: bool = False) -> bool:
        try:
            if not self.connectivity.is_online:
                logger.debug("Offline, skipping sync")
                return False
            if not force and not await self.should_sync():
                logger.debug("Sync not due, skipping")
                return False

            tricks, categories = await asyncio.gather(
                self.api.get_all_tricks(),
                self.api.get_all_categories(),
            )

            await self.cache.cache_tricks(tricks)
            await self.cache.cache_categories(categories)
            await self.cache.set_last_sync(self._clock())

            logger.info(f"Data synced successfully ({len(tricks)} tricks, {len(categories)} categories)")
            return True

        except Exception as e:
            logger.error(f"Sync failed: {e}")
            return False

    async def sync_navigation(self) -> int:
        """
        Refresh the cached subcategories from the navigation tree.

        Runs regardless of the sync interval and never touches the sync
        timestamp. Failures are logged and return 0.

        Returns:
            Number of subcategories cached
        """
        if not self.connectivity.is_online:
            return 0

        try:
            tree = await self.api.get_navigation()
            subcategories = [
                {
                    "id": sub["id"],
                    "name": sub["name"],
                    "slug": sub["slug"],
                    "sort_order": sub.get("sort_order", 0),
                    "trick_count": len(sub.get("tricks", [])),
                    "master_category": {
                        "id": category["id"],
                        "name": category["name"],
                        "slug": category["slug"],
                    },
                }
                for category in tree
                for sub in category.get("subcategories", [])
            ]
            await self.cache.cache_subcategories(subcategories)
            logger.info(f"Cached {len(subcategories)} subcategories")
            return len(subcategories)

        except Exception as e:
            logger.error(f"Navigation sync failed: {e}")
            return 0

    async def read_cached(
        self,
        collection: str,
        category_slug: Optional[str] = None,
        subcategory_slug: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Read a cached collection without touching the network.

        Args:
            collection: Collection name (tricks, categories, ...)
            category_slug: Only tricks under this master category
            subcategory_slug: Only tricks under this subcategory (wins over category)
        """
        if collection == "tricks":
            return await self.cache.get_cached_tricks(category_slug, subcategory_slug)

        if category_slug or subcategory_slug:
            raise ValueError(f"Slug filters only apply to tricks, not {collection}")

        return await self.cache.get_all(collection)

    def sync_on_reconnect(self):
        """Schedule a sync each time connectivity comes back."""
        if self._reconnect_listener is not None:
            return

        def _on_change(is_online: bool):
            if is_online:
                task = asyncio.ensure_future(self.sync())
                self._reconnect_tasks.add(task)
                task.add_done_callback(self._reconnect_tasks.discard)

        self._reconnect_listener = _on_change
        self.connectivity.add_listener(_on_change)

    # Status

    async def get_sync_status(self) -> Dict[str, Any]:
        """Get sync status."""
        last_sync = await self.cache.get_last_sync()
        return {
            "is_online": self.connectivity.is_online,
            "last_sync": last_sync,
            "sync_due": await self.should_sync(),
            "cache_stats": await self.cache.get_cache_stats()
        }
