"""
Trickipedia Offline Client - Main Entry Point

Keeps a local copy of the trick catalog for offline browsing and
lets you read it back from the command line.
"""

import asyncio
import json
import logging
import sys
from typing import Optional

from offline_client.api.client import APIClient, APIConfig
from offline_client.core.connectivity import ConnectivityMonitor
from offline_client.offline.cache import OfflineCache
from offline_client.offline.sync import SyncManager, SyncConfig, SYNC_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class OfflineApp:
    """
    Offline catalog application.

    Manages:
    - Backend connectivity
    - Local cache lifecycle
    - Sync runs
    """

    def __init__(
        self,
        api_base_url: str = "http://localhost:8000",
        db_path: Optional[str] = None,
        interval_hours: float = SYNC_INTERVAL_SECONDS / 3600
    ):
        self.api_config = APIConfig(base_url=api_base_url)
        self.sync_config = SyncConfig(interval_seconds=interval_hours * 3600)
        self.db_path = db_path

        # Initialized in setup
        self.api: Optional[APIClient] = None
        self.cache: Optional[OfflineCache] = None
        self.connectivity: Optional[ConnectivityMonitor] = None
        self.sync_manager: Optional[SyncManager] = None

    async def setup(self):
        """Open the cache and probe the backend once."""
        self.api = APIClient(self.api_config)
        self.cache = await OfflineCache.open(self.db_path)
        self.connectivity = ConnectivityMonitor(initially_online=False)
        self.sync_manager = SyncManager(
            cache=self.cache,
            api=self.api,
            connectivity=self.connectivity,
            config=self.sync_config
        )

        if await self.connectivity.probe_once(self.api):
            logger.info("Backend connected!")
        else:
            logger.warning("Backend not available. Offline mode.")

    async def shutdown(self):
        """Clean up and shut down."""
        if self.api:
            await self.api.close()
        if self.cache:
            await self.cache.close()

    async def run_sync(self, force: bool = False) -> bool:
        synced = await self.sync_manager.sync(force=force)
        if synced:
            await self.sync_manager.sync_navigation()
        return synced

    async def run_list(
        self,
        collection: str,
        category: Optional[str] = None,
        subcategory: Optional[str] = None
    ):
        return await self.sync_manager.read_cached(
            collection,
            category_slug=category,
            subcategory_slug=subcategory
        )


async def main(argv=None) -> int:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Trickipedia offline catalog client")
    parser.add_argument(
        "--api-url",
        default="http://localhost:8000",
        help="Backend API URL"
    )
    parser.add_argument(
        "--db-path",
        default=None,
        help="Offline cache database (default: ~/.trickipedia_offline.db)"
    )
    parser.add_argument(
        "--interval-hours",
        type=float,
        default=24.0,
        help="Minimum hours between full syncs"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Refresh the cache if due")
    sync_parser.add_argument("--force", action="store_true", help="Ignore the sync interval")

    list_parser = subparsers.add_parser("list", help="Print cached records as JSON")
    list_parser.add_argument(
        "collection",
        choices=["tricks", "categories", "subcategories", "user_progress"]
    )
    list_parser.add_argument("--category", help="Filter tricks by master category slug")
    list_parser.add_argument("--subcategory", help="Filter tricks by subcategory slug")

    subparsers.add_parser("status", help="Show sync status and cache statistics")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    app = OfflineApp(
        api_base_url=args.api_url,
        db_path=args.db_path,
        interval_hours=args.interval_hours
    )

    try:
        await app.setup()

        if args.command == "sync":
            if not app.connectivity.is_online:
                logger.error("Cannot sync while offline")
                return 1
            synced = await app.run_sync(force=args.force)
            if synced:
                return 0
            # Not synced but still due (or forced) means the sync failed
            return 1 if args.force or await app.sync_manager.should_sync() else 0

        if args.command == "list":
            records = await app.run_list(args.collection, args.category, args.subcategory)
            print(json.dumps(records, indent=2))
            return 0

        status = await app.sync_manager.get_sync_status()
        print(json.dumps(status, indent=2))
        return 0

    finally:
        await app.shutdown()


def cli():
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
