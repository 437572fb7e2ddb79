"""
Shared test fixtures for the catalog backend.

Provides:
- A CatalogStore on a throwaway SQLite file
- An in-memory response cache (Redis disabled)
- A seeded catalog (two sports, three published tricks and a draft)
- A FastAPI TestClient wired to the above
"""

import os
import tempfile

# Keep tests off any local Redis and the default database file
os.environ["REDIS_URL"] = ""
os.environ.setdefault("DATABASE_PATH", os.path.join(tempfile.gettempdir(), "trickipedia_test.db"))

import pytest
from typing import Any, Dict
from fastapi.testclient import TestClient

from backend.cache.redis_cache import CacheManager, get_cache
from backend.catalog.store import CatalogStore, get_store


@pytest.fixture
def store(tmp_path) -> CatalogStore:
    """Empty catalog store on a temp database."""
    return CatalogStore(db_path=str(tmp_path / "catalog.db"))


@pytest.fixture
def cache() -> CacheManager:
    """Memory-only response cache."""
    return CacheManager(redis_url="", default_ttl=300)


@pytest.fixture
def seeded(store: CatalogStore) -> Dict[str, Any]:
    """Catalog with parkour and tricking, three published tricks and one draft."""
    parkour = store.create_category("Parkour", "parkour", color="#ff6600", sort_order=1)
    tricking = store.create_category("Tricking", "tricking", sort_order=2)

    vaults = store.create_subcategory(parkour["id"], "Vaults", "vaults")
    flips = store.create_subcategory(parkour["id"], "Flips", "flips")
    kicks = store.create_subcategory(tricking["id"], "Kicks", "kicks")

    kong = store.create_trick({
        "subcategory_id": vaults["id"],
        "name": "Kong Vault",
        "slug": "kong-vault",
        "description": "Dive over an obstacle pushing off with both hands.",
        "difficulty_level": 3,
        "tags": ["vault", "basic"],
    })
    backflip = store.create_trick({
        "subcategory_id": flips["id"],
        "name": "Backflip",
        "slug": "backflip",
        "difficulty_level": 5,
    })
    tornado = store.create_trick({
        "subcategory_id": kicks["id"],
        "name": "Tornado Kick",
        "slug": "tornado-kick",
        "difficulty_level": 4,
    })
    draft = store.create_trick({
        "subcategory_id": flips["id"],
        "name": "Double Cork",
        "slug": "double-cork",
        "is_published": False,
    })

    return {
        "categories": {"parkour": parkour, "tricking": tricking},
        "subcategories": {"vaults": vaults, "flips": flips, "kicks": kicks},
        "tricks": {"kong": kong, "backflip": backflip, "tornado": tornado, "draft": draft},
    }


@pytest.fixture
def client(store: CatalogStore, cache: CacheManager):
    """TestClient with the store and cache dependencies overridden."""
    from backend.server import app

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_cache] = lambda: cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
