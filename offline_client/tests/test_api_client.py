"""
Tests for the aiohttp API client against a local test server.

Run with:
    pytest offline_client/tests/test_api_client.py -v
"""

import pytest
from aiohttp import web
from aiohttp import test_utils

from offline_client.api.client import APIClient, APIConfig, APIError

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def backend(sample_tricks, sample_categories, sample_navigation):
    """Fake catalog backend; `state` lets tests change responses."""
    state = {"tricks_status": 200, "tricks_calls": 0, "categories_payload": sample_categories}

    async def health(request):
        return web.json_response({"status": "ok"})

    async def all_tricks(request):
        state["tricks_calls"] += 1
        if state["tricks_status"] != 200:
            return web.json_response({"detail": "unavailable"}, status=state["tricks_status"])
        return web.json_response(sample_tricks)

    async def all_categories(request):
        return web.json_response(state["categories_payload"])

    async def navigation(request):
        return web.json_response(sample_navigation)

    async def increment_views(request):
        return web.json_response({"success": True, "view_count": 7})

    async def toggle_can_do(request):
        body = await request.json()
        if not body.get("trick_id"):
            return web.json_response({"detail": "trick_id is required"}, status=400)
        return web.json_response({"success": True, "can_do": body["can_do"], "can_do_count": 1})

    async def user_xp(request):
        return web.json_response({"user_id": request.match_info["user_id"], "xp": 600})

    app = web.Application()
    app.router.add_get("/health", health)
    app.router.add_get("/api/tricks/all", all_tricks)
    app.router.add_get("/api/categories/all", all_categories)
    app.router.add_get("/api/navigation", navigation)
    app.router.add_post("/api/tricks/{trick_id}/increment-views", increment_views)
    app.router.add_post("/api/tricks/toggle-can-do", toggle_can_do)
    app.router.add_get("/api/users/{user_id}/xp", user_xp)

    server = test_utils.TestServer(app)
    await server.start_server()
    yield server, state
    await server.close()


@pytest.fixture
async def api(backend):
    server, _ = backend
    client = APIClient(APIConfig(
        base_url=f"http://{server.host}:{server.port}",
        retry_attempts=2,
        retry_delay_seconds=0.01,
    ))
    yield client
    await client.close()


class TestBulkReads:
    """Endpoints used by the sync."""

    async def test_get_all_tricks(self, api, sample_tricks):
        assert await api.get_all_tricks() == sample_tricks

    async def test_get_all_categories(self, api, sample_categories):
        assert await api.get_all_categories() == sample_categories

    async def test_get_navigation(self, api, sample_navigation):
        assert await api.get_navigation() == sample_navigation

    async def test_non_array_rejected(self, api, backend):
        _, state = backend
        state["categories_payload"] = {"categories": []}
        with pytest.raises(APIError):
            await api.get_all_categories()


class TestRetries:

    async def test_server_error_retried_then_raised(self, api, backend):
        _, state = backend
        state["tricks_status"] = 503

        with pytest.raises(APIError) as exc_info:
            await api.get_all_tricks()

        assert exc_info.value.status == 503
        assert state["tricks_calls"] == 2

    async def test_client_error_not_retried(self, api):
        with pytest.raises(APIError) as exc_info:
            await api.toggle_can_do("alice", "", True)
        assert exc_info.value.status == 400

    async def test_unreachable_server(self):
        client = APIClient(APIConfig(
            base_url="http://127.0.0.1:1",
            retry_attempts=1,
            timeout_seconds=2.0,
        ))
        try:
            with pytest.raises(APIError):
                await client.get_all_tricks()
            assert not await client.health_check()
        finally:
            await client.close()


class TestEndpoints:

    async def test_health_check(self, api):
        assert await api.health_check()

    async def test_increment_views(self, api):
        assert await api.increment_views("kong-vault") == 7

    async def test_get_user_xp(self, api):
        result = await api.get_user_xp("alice")
        assert result == {"user_id": "alice", "xp": 600}

    async def test_toggle_can_do(self, api):
        result = await api.toggle_can_do("alice", "kong-vault", True)
        assert result["can_do_count"] == 1

    async def test_context_manager_closes_session(self, backend):
        server, _ = backend
        async with APIClient(APIConfig(base_url=f"http://{server.host}:{server.port}")) as client:
            await client.health_check()
            session = client._session
        assert session.closed
