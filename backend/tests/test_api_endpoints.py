"""
HTTP tests for the catalog and XP endpoints.

Run with:
    pytest backend/tests/test_api_endpoints.py -v
"""

from backend.catalog.api import TRICKS_ALL_KEY


class TestHealth:

    def test_health_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "X-Duration-Ms" in response.headers

    def test_health_purges_expired_cache_entries(self, client, cache):
        cache.set(cache.make_key("stale"), [], ttl=-1)
        body = client.get("/health").json()
        assert body["cache"]["size"] == 0


class TestBulkEndpoints:
    """Endpoints consumed by the offline sync."""

    def test_all_tricks_is_array(self, client, seeded):
        response = client.get("/api/tricks/all")
        assert response.status_code == 200
        tricks = response.json()
        assert isinstance(tricks, list)
        assert len(tricks) == 3
        assert all("master_category" in t["subcategory"] for t in tricks)

    def test_all_tricks_is_cached(self, client, seeded, cache):
        client.get("/api/tricks/all")
        assert cache.get(TRICKS_ALL_KEY) is not None

    def test_all_categories_is_array(self, client, seeded):
        categories = client.get("/api/categories/all").json()
        assert [c["slug"] for c in categories] == ["parkour", "tricking"]
        assert categories[0]["trick_count"] == 2

    def test_trick_write_invalidates_bulk_cache(self, client, seeded):
        assert len(client.get("/api/tricks/all").json()) == 3

        response = client.post("/api/tricks", json={
            "subcategory_id": seeded["subcategories"]["vaults"]["id"],
            "name": "Speed Vault",
            "slug": "speed-vault",
        })
        assert response.status_code == 201

        assert len(client.get("/api/tricks/all").json()) == 4


class TestCategoryEndpoints:

    def test_get_category(self, client, seeded):
        response = client.get("/api/categories/parkour")
        assert response.status_code == 200
        assert response.json()["trick_count"] == 2

    def test_missing_category(self, client, seeded):
        assert client.get("/api/categories/skiing").status_code == 404


class TestNavigation:
    """Category, subcategory and trick browsing tree."""

    def test_tree_shape_and_order(self, client, seeded):
        tree = client.get("/api/navigation").json()

        assert [c["slug"] for c in tree] == ["parkour", "tricking"]
        parkour = tree[0]
        assert parkour["color"] == "#ff6600"
        assert [s["slug"] for s in parkour["subcategories"]] == ["flips", "vaults"]
        vaults = parkour["subcategories"][1]
        assert vaults["tricks"] == [{
            "id": seeded["tricks"]["kong"]["id"],
            "name": "Kong Vault",
            "slug": "kong-vault",
            "difficulty_level": 3,
        }]

    def test_drafts_filtered_out(self, client, seeded):
        tree = client.get("/api/navigation").json()
        flips = tree[0]["subcategories"][0]
        assert [t["slug"] for t in flips["tricks"]] == ["backflip"]

    def test_inactive_category_hidden(self, client, store, seeded):
        store.create_category("Skiing", "skiing", is_active=False)
        tree = client.get("/api/navigation").json()
        assert "skiing" not in [c["slug"] for c in tree]

    def test_empty_catalog(self, client):
        assert client.get("/api/navigation").json() == []


class TestTrickEndpoints:
    """Trick listing, writes and view counting."""

    def test_list_with_filters(self, client, seeded):
        data = client.get("/api/tricks", params={"category": "parkour"}).json()
        assert data["total"] == 2
        assert {t["slug"] for t in data["tricks"]} == {"kong-vault", "backflip"}

    def test_list_pagination(self, client, seeded):
        data = client.get("/api/tricks", params={"limit": 2, "offset": 0}).json()
        assert len(data["tricks"]) == 2
        assert data["total"] == 3

    def test_list_rejects_bad_limit(self, client, seeded):
        assert client.get("/api/tricks", params={"limit": 0}).status_code == 422

    def test_create_awards_xp(self, client, seeded, store):
        response = client.post("/api/tricks", json={
            "subcategory_id": seeded["subcategories"]["flips"]["id"],
            "name": "Front Flip",
            "slug": "front-flip",
            "description": "A forward rotating flip from standing, landing on both feet.",
            "created_by": "alice",
        })
        assert response.status_code == 201
        body = response.json()
        assert body["trick"]["slug"] == "front-flip"
        assert body["xp_awarded"] == 70
        assert store.get_user("alice")["xp"] == 70

    def test_create_without_author_awards_nothing(self, client, seeded):
        response = client.post("/api/tricks", json={
            "subcategory_id": seeded["subcategories"]["flips"]["id"],
            "name": "Side Flip",
            "slug": "side-flip",
        })
        assert response.json()["xp_awarded"] == 0

    def test_create_duplicate_conflicts(self, client, seeded):
        response = client.post("/api/tricks", json={
            "subcategory_id": seeded["subcategories"]["flips"]["id"],
            "name": "Backflip",
            "slug": "backflip",
        })
        assert response.status_code == 409

    def test_create_rejects_bad_slug(self, client, seeded):
        response = client.post("/api/tricks", json={
            "subcategory_id": seeded["subcategories"]["flips"]["id"],
            "name": "Bad",
            "slug": "Not A Slug",
        })
        assert response.status_code == 422

    def test_update_awards_edit_xp(self, client, seeded, store):
        trick_id = seeded["tricks"]["backflip"]["id"]
        response = client.put(f"/api/tricks/{trick_id}", json={
            "difficulty_level": 6,
            "edited_by": "bob",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["trick"]["difficulty_level"] == 6
        assert body["xp_awarded"] == 15
        assert store.get_user("bob")["xp"] == 15

    def test_update_missing(self, client, seeded):
        assert client.put("/api/tricks/missing", json={"name": "X"}).status_code == 404

    def test_update_null_name_keeps_name(self, client, seeded):
        trick_id = seeded["tricks"]["backflip"]["id"]
        response = client.put(f"/api/tricks/{trick_id}", json={"name": None, "difficulty_level": 6})
        assert response.status_code == 200
        assert response.json()["trick"]["name"] == "Backflip"
        assert response.json()["trick"]["difficulty_level"] == 6

    def test_update_null_flags_keep_trick_published(self, client, seeded):
        trick_id = seeded["tricks"]["backflip"]["id"]
        response = client.put(f"/api/tricks/{trick_id}", json={"is_published": None, "is_combo": None})
        assert response.status_code == 200
        trick = response.json()["trick"]
        assert trick["is_published"] is True
        assert trick["is_combo"] is False
        assert trick_id in [t["id"] for t in client.get("/api/tricks/all").json()]

    def test_list_by_inventor(self, client, seeded):
        trick_id = seeded["tricks"]["tornado"]["id"]
        client.put(f"/api/tricks/{trick_id}", json={"inventor_name": "Jeff Tsang"})
        data = client.get("/api/tricks", params={"inventor_name": "Jeff Tsang"}).json()
        assert data["total"] == 1
        assert data["tricks"][0]["id"] == trick_id

    def test_increment_views(self, client, seeded):
        trick_id = seeded["tricks"]["kong"]["id"]
        response = client.post(f"/api/tricks/{trick_id}/increment-views")
        assert response.json() == {"success": True, "view_count": 1}

    def test_increment_views_missing(self, client, seeded):
        assert client.post("/api/tricks/missing/increment-views").status_code == 404


class TestToggleCanDo:

    def test_toggle(self, client, seeded):
        trick_id = seeded["tricks"]["kong"]["id"]
        response = client.post("/api/tricks/toggle-can-do", json={
            "user_id": "alice", "trick_id": trick_id, "can_do": True
        })
        assert response.json() == {"success": True, "can_do": True, "can_do_count": 1}

        response = client.post("/api/tricks/toggle-can-do", json={
            "user_id": "alice", "trick_id": trick_id, "can_do": False
        })
        assert response.json()["can_do_count"] == 0

    def test_missing_trick_id(self, client, seeded):
        response = client.post("/api/tricks/toggle-can-do", json={
            "user_id": "alice", "can_do": True
        })
        assert response.status_code == 400

    def test_unknown_trick(self, client, seeded):
        response = client.post("/api/tricks/toggle-can-do", json={
            "user_id": "alice", "trick_id": "missing", "can_do": True
        })
        assert response.status_code == 404

    def test_user_tricks(self, client, seeded):
        trick_id = seeded["tricks"]["kong"]["id"]
        client.post("/api/tricks/toggle-can-do", json={
            "user_id": "alice", "trick_id": trick_id, "can_do": True
        })
        records = client.get("/api/users/alice/tricks").json()
        assert [r["trick_id"] for r in records] == [trick_id]


class TestXPEndpoints:
    """Tier table, progress and user XP."""

    def test_levels(self, client):
        levels = client.get("/api/xp/levels").json()
        assert len(levels) == 5
        assert levels[0] == {
            "level": 1, "name": "Newcomer", "threshold": 0,
            "unlocks": ["Access to basic features"]
        }

    def test_progress(self, client):
        data = client.get("/api/xp/progress", params={"xp": 750}).json()
        assert data["current_level"]["name"] == "Contributor"
        assert data["progress_pct"] == 25.0
        assert data["xp_to_next"] == 750

    def test_progress_rejects_negative(self, client):
        assert client.get("/api/xp/progress", params={"xp": -5}).status_code == 422

    def test_unknown_user(self, client):
        assert client.get("/api/users/nobody/xp").status_code == 404

    def test_award_then_read(self, client):
        response = client.post("/api/users/alice/xp", json={"amount": 600, "reason": "event"})
        assert response.status_code == 200
        body = response.json()
        assert body["xp"] == 600
        assert body["role"] == "user"
        assert body["progress"]["current_level"]["name"] == "Contributor"

        assert client.get("/api/users/alice/xp").json()["xp"] == 600

    def test_award_rejects_non_positive(self, client):
        response = client.post("/api/users/alice/xp", json={"amount": 0})
        assert response.status_code == 422
