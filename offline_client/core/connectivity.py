"""
Connectivity Monitor

Tracks whether the client is online. The flag is flipped by online/offline
notifications; readers consult it synchronously.
"""

import asyncio
import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    """
    Online/offline state for the offline client.

    Provides:
    - Synchronous `is_online` flag
    - Notification handlers for online/offline events
    - Listener callbacks fired on transitions
    - Optional background probe against the backend health endpoint
    """

    def __init__(self, initially_online: bool = True):
        self._is_online = initially_online
        self._listeners: List[Callable[[bool], None]] = []
        self._probe_task: Optional[asyncio.Task] = None

    @property
    def is_online(self) -> bool:
        return self._is_online

    def set_online(self, is_online: bool):
        """Set online status, notifying listeners when it changes."""
        if is_online == self._is_online:
            return

        self._is_online = is_online
        logger.info(f"Connectivity changed: {'online' if is_online else 'offline'}")

        for listener in list(self._listeners):
            try:
                listener(is_online)
            except Exception as e:
                logger.error(f"Connectivity listener failed: {e}")

    def handle_online(self):
        """Handler for a platform 'online' notification."""
        self.set_online(True)

    def handle_offline(self):
        """Handler for a platform 'offline' notification."""
        self.set_online(False)

    def add_listener(self, callback: Callable[[bool], None]):
        """Register a callback invoked with the new state on each transition."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[bool], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    # Background probe

    async def start_probe(self, api, interval: float = 30.0):
        """
        Start polling the backend and turn the result into notifications.

        Args:
            api: Object with an async `health_check() -> bool`
            interval: Seconds between probes
        """
        if self._probe_task and not self._probe_task.done():
            return
        self._probe_task = asyncio.create_task(self._probe_loop(api, interval))
        logger.info("Started connectivity probe")

    async def stop_probe(self):
        """Stop the background probe."""
        if self._probe_task:
            self._probe_task.cancel()
            try:
                await self._probe_task
            except asyncio.CancelledError:
                pass
            self._probe_task = None
        logger.info("Stopped connectivity probe")

    async def probe_once(self, api) -> bool:
        """Run a single health check and update the flag."""
        try:
            healthy = await api.health_check()
        except Exception as e:
            logger.debug(f"Health probe failed: {e}")
            healthy = False

        self.set_online(healthy)
        return healthy

    async def _probe_loop(self, api, interval: float):
        while True:
            await self.probe_once(api)
            await asyncio.sleep(interval)
