"""Tests for the connectivity monitor."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from offline_client.core.connectivity import ConnectivityMonitor

pytestmark = pytest.mark.asyncio


class TestConnectivityFlag:
    """Online/offline notifications."""

    async def test_initial_state(self):
        assert ConnectivityMonitor().is_online
        assert not ConnectivityMonitor(initially_online=False).is_online

    async def test_handlers_flip_flag(self):
        monitor = ConnectivityMonitor()
        monitor.handle_offline()
        assert not monitor.is_online
        monitor.handle_online()
        assert monitor.is_online

    async def test_listeners_fire_on_transitions_only(self):
        monitor = ConnectivityMonitor()
        listener = MagicMock()
        monitor.add_listener(listener)

        monitor.set_online(True)
        listener.assert_not_called()

        monitor.set_online(False)
        monitor.set_online(False)
        monitor.set_online(True)
        assert [c.args for c in listener.call_args_list] == [(False,), (True,)]

    async def test_failing_listener_does_not_block_others(self):
        monitor = ConnectivityMonitor()
        broken = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        monitor.add_listener(broken)
        monitor.add_listener(healthy)

        monitor.handle_offline()

        healthy.assert_called_once_with(False)
        assert not monitor.is_online

    async def test_remove_listener(self):
        monitor = ConnectivityMonitor()
        listener = MagicMock()
        monitor.add_listener(listener)
        monitor.remove_listener(listener)
        monitor.handle_offline()
        listener.assert_not_called()


class TestProbe:
    """Health-check probing."""

    async def test_probe_once_healthy(self):
        monitor = ConnectivityMonitor(initially_online=False)
        api = MagicMock(health_check=AsyncMock(return_value=True))
        assert await monitor.probe_once(api)
        assert monitor.is_online

    async def test_probe_once_error_means_offline(self):
        monitor = ConnectivityMonitor()
        api = MagicMock(health_check=AsyncMock(side_effect=OSError("unreachable")))
        assert not await monitor.probe_once(api)
        assert not monitor.is_online

    async def test_background_probe(self):
        monitor = ConnectivityMonitor(initially_online=False)
        api = MagicMock(health_check=AsyncMock(return_value=True))

        await monitor.start_probe(api, interval=0.01)
        await asyncio.sleep(0.05)
        await monitor.stop_probe()

        assert monitor.is_online
        assert api.health_check.await_count >= 1
