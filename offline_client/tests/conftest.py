"""
Shared test fixtures for the offline client.

Provides:
- A connected OfflineCache on a temp SQLite file
- Canned denormalized tricks, categories and navigation tree
- A mock API client returning them
- A controllable clock
"""

import pytest
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

from offline_client.core.connectivity import ConnectivityMonitor
from offline_client.offline.cache import OfflineCache


def make_trick(trick_id: str, category: str, subcategory: str, **extra) -> Dict[str, Any]:
    trick = {
        "id": trick_id,
        "name": trick_id.replace("-", " ").title(),
        "slug": trick_id,
        "subcategory": {
            "name": subcategory.title(),
            "slug": subcategory,
            "master_category": {"name": category.title(), "slug": category, "color": None},
        },
    }
    trick.update(extra)
    return trick


@pytest.fixture
def sample_tricks() -> List[Dict[str, Any]]:
    return [
        make_trick("kong-vault", "parkour", "vaults"),
        make_trick("backflip", "parkour", "flips"),
        make_trick("tornado-kick", "tricking", "kicks"),
    ]


@pytest.fixture
def sample_categories() -> List[Dict[str, Any]]:
    return [
        {"id": "cat-parkour", "name": "Parkour", "slug": "parkour", "trick_count": 2},
        {"id": "cat-tricking", "name": "Tricking", "slug": "tricking", "trick_count": 1},
    ]


@pytest.fixture
def sample_navigation() -> List[Dict[str, Any]]:
    return [
        {
            "id": "cat-parkour", "name": "Parkour", "slug": "parkour", "sort_order": 1,
            "subcategories": [
                {"id": "sub-flips", "name": "Flips", "slug": "flips", "sort_order": 0,
                 "tricks": [{"id": "backflip", "name": "Backflip", "slug": "backflip"}]},
                {"id": "sub-vaults", "name": "Vaults", "slug": "vaults", "sort_order": 0,
                 "tricks": [{"id": "kong-vault", "name": "Kong Vault", "slug": "kong-vault"}]},
            ],
        },
        {
            "id": "cat-tricking", "name": "Tricking", "slug": "tricking", "sort_order": 2,
            "subcategories": [
                {"id": "sub-kicks", "name": "Kicks", "slug": "kicks", "sort_order": 0, "tricks": []},
            ],
        },
    ]


@pytest.fixture
async def cache(tmp_path):
    """Connected offline cache, closed after the test."""
    offline_cache = await OfflineCache.open(str(tmp_path / "offline.db"))
    yield offline_cache
    await offline_cache.close()


@pytest.fixture
def mock_api(sample_tricks, sample_categories, sample_navigation):
    """API client stand-in serving the sample catalog."""
    api = MagicMock()
    api.get_all_tricks = AsyncMock(return_value=sample_tricks)
    api.get_all_categories = AsyncMock(return_value=sample_categories)
    api.get_navigation = AsyncMock(return_value=sample_navigation)
    api.health_check = AsyncMock(return_value=True)
    return api


@pytest.fixture
def connectivity() -> ConnectivityMonitor:
    return ConnectivityMonitor(initially_online=True)


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def trick_factory():
    """Build a denormalized trick record."""
    return make_trick
