"""
RequestGraph Backend — HTTP API Tests
=======================================

What:  End-to-end requests through the FastAPI app (middleware, routers,
       exception handlers) against the per-test SQLite database.

What we test:
    ✅ POST returns 201 with Location, ETag and system attributes
    ✅ GET/PUT/PATCH/DELETE status codes (200, 204, 404, 409)
    ✅ If-Match and _rev optimistic concurrency
    ✅ /api/requests/paginated headers, filter and bad cursor
    ✅ edge endpoints, hidden lowercase aliases, health
"""

import re

import pytest


def _link(response, rel):
    match = re.search(r'<([^>]+)>; rel="' + rel + '"', response.headers["Link"])
    return match.group(1) if match else None


class TestItemsCrud:

    @pytest.mark.asyncio
    async def test_create_item(self, test_client):
        response = await test_client.post(
            "/api/items", json={"name": "Sword", "description": "Sharp"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Sword"
        assert body["description"] == "Sharp"
        assert body["_id"] == f"items/{body['_key']}"
        assert body["_rev"]
        assert response.headers["Location"].endswith(f"/api/items/{body['_key']}")
        assert response.headers["ETag"] == f'"{body["_rev"]}"'

    @pytest.mark.asyncio
    async def test_create_without_name_is_422(self, test_client):
        response = await test_client.post("/api/items", json={"description": "no name"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_duplicate_key_is_409(self, test_client):
        await test_client.post("/api/items", json={"_key": "sword", "name": "Sword"})
        response = await test_client.post("/api/items", json={"_key": "sword", "name": "Sword"})

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "conflict"
        assert "sword" in body["message"]
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_create_invalid_key_is_400(self, test_client):
        response = await test_client.post("/api/items", json={"_key": "a b", "name": "x"})
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_extra_attributes_are_returned(self, test_client):
        response = await test_client.post(
            "/api/items", json={"name": "Bow", "range": 30, "tags": ["ranged"]}
        )
        key = response.json()["_key"]

        fetched = (await test_client.get(f"/api/items/{key}")).json()
        assert fetched["range"] == 30
        assert fetched["tags"] == ["ranged"]

    @pytest.mark.asyncio
    async def test_list_items(self, test_client):
        for name in ("a", "b"):
            await test_client.post("/api/items", json={"name": name})

        response = await test_client.get("/api/items")

        assert response.status_code == 200
        assert [e["name"] for e in response.json()] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_get_missing_is_404(self, test_client):
        response = await test_client.get("/api/items/nope")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_replace(self, test_client):
        await test_client.post("/api/items", json={"_key": "k", "name": "old", "color": "red"})

        response = await test_client.put("/api/items/k", json={"name": "new"})

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "new"
        assert "color" not in body

    @pytest.mark.asyncio
    async def test_replace_missing_is_404(self, test_client):
        response = await test_client.put("/api/items/ghost", json={"name": "x"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_patch(self, test_client):
        await test_client.post("/api/items", json={"_key": "k", "name": "n", "description": "d"})

        response = await test_client.patch("/api/items/k", json={"description": "patched"})

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "n"
        assert body["description"] == "patched"

    @pytest.mark.asyncio
    async def test_stale_if_match_is_409(self, test_client):
        created = (await test_client.post("/api/items", json={"_key": "k", "name": "v1"})).json()
        await test_client.patch("/api/items/k", json={"name": "v2"})

        response = await test_client.patch(
            "/api/items/k",
            json={"name": "v3"},
            headers={"If-Match": f'"{created["_rev"]}"'},
        )

        assert response.status_code == 409
        assert response.json()["details"]["expected_rev"] == created["_rev"]

    @pytest.mark.asyncio
    async def test_current_if_match_succeeds(self, test_client):
        created = await test_client.post("/api/items", json={"_key": "k", "name": "v1"})

        response = await test_client.put(
            "/api/items/k",
            json={"name": "v2"},
            headers={"If-Match": created.headers["ETag"]},
        )

        assert response.status_code == 200
        assert response.headers["ETag"] != created.headers["ETag"]

    @pytest.mark.asyncio
    async def test_stale_rev_in_body_is_409(self, test_client):
        created = (await test_client.post("/api/items", json={"_key": "k", "name": "v1"})).json()
        await test_client.put("/api/items/k", json={"name": "v2"})

        response = await test_client.put(
            "/api/items/k", json={"name": "v3", "_rev": created["_rev"]}
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_delete(self, test_client):
        await test_client.post("/api/items", json={"_key": "k", "name": "n"})

        response = await test_client.delete("/api/items/k")
        assert response.status_code == 204
        assert response.content == b""

        assert (await test_client.get("/api/items/k")).status_code == 404
        assert (await test_client.delete("/api/items/k")).status_code == 404


class TestUserAttributesNamedLikeSystemFields:
    """Only the underscore wire names are system attributes."""

    @pytest.mark.asyncio
    async def test_key_and_id_attributes_are_kept(self, test_client):
        response = await test_client.post(
            "/api/items", json={"name": "Sword", "key": "abc", "id": 7}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["_key"] != "abc"
        assert body["key"] == "abc"
        assert body["id"] == 7
        assert body["_id"] == f"items/{body['_key']}"

        fetched = (await test_client.get(f"/api/items/{body['_key']}")).json()
        assert fetched["key"] == "abc"
        assert fetched["id"] == 7

    @pytest.mark.asyncio
    async def test_rev_attribute_is_not_a_revision_check(self, test_client):
        await test_client.post("/api/items", json={"_key": "k", "name": "n"})

        response = await test_client.put("/api/items/k", json={"name": "n2", "rev": "v2"})

        assert response.status_code == 200
        assert response.json()["rev"] == "v2"
        assert response.json()["_rev"] != "v2"

    @pytest.mark.asyncio
    async def test_to_attribute_does_not_move_edge(self, test_client):
        await test_client.post(
            "/api/hasItem", json={"_key": "e", "_from": "requests/1", "_to": "items/1"}
        )

        response = await test_client.patch("/api/hasItem/e", json={"to": "items/9"})

        assert response.status_code == 200
        body = response.json()
        assert body["_to"] == "items/1"
        assert body["to"] == "items/9"


class TestEdges:

    @pytest.mark.asyncio
    async def test_create_augment(self, test_client):
        response = await test_client.post(
            "/api/augments", json={"_from": "requests/1", "_to": "augmentedRequests/2"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["_from"] == "requests/1"
        assert body["_to"] == "augmentedRequests/2"
        assert body["_id"].startswith("augments/")

    @pytest.mark.asyncio
    async def test_edge_without_endpoints_is_422(self, test_client):
        response = await test_client.post("/api/hasItem", json={"_from": "requests/1"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_malformed_handle_is_400(self, test_client):
        response = await test_client.post(
            "/api/hasItem", json={"_from": "requests/1", "_to": "items"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_patch_edge_endpoint(self, test_client):
        created = (
            await test_client.post(
                "/api/hasItem", json={"_key": "e", "_from": "requests/1", "_to": "items/1"}
            )
        ).json()

        response = await test_client.patch("/api/hasItem/e", json={"_to": "items/2"})

        assert response.status_code == 200
        assert response.json()["_to"] == "items/2"
        assert response.json()["_from"] == created["_from"]


class TestAugmentedRequests:

    @pytest.mark.asyncio
    async def test_augmentation_is_merged_on_patch(self, test_client):
        await test_client.post(
            "/api/augmentedRequests",
            json={"_key": "a", "name": "n", "augmentation": {"model": "m", "score": 1}},
        )

        response = await test_client.patch(
            "/api/augmentedRequests/a", json={"augmentation": {"score": 2}}
        )

        assert response.json()["augmentation"] == {"model": "m", "score": 2}

    @pytest.mark.asyncio
    async def test_lowercase_alias_serves_same_collection(self, test_client):
        created = await test_client.post("/api/augmentedrequests", json={"name": "via alias"})
        key = created.json()["_key"]

        assert created.status_code == 201
        assert created.headers["Location"].endswith(f"/api/augmentedRequests/{key}")
        assert (await test_client.get(f"/api/augmentedRequests/{key}")).status_code == 200

    @pytest.mark.asyncio
    async def test_aliases_hidden_from_openapi(self, test_client):
        paths = (await test_client.get("/openapi.json")).json()["paths"]
        assert "/api/augmentedRequests" in paths
        assert "/api/augmentedrequests" not in paths
        assert "/api/hasitem" not in paths


class TestRequestsPaginated:

    @pytest.mark.asyncio
    async def test_paginated_headers(self, test_client):
        for i in range(5):
            await test_client.post("/api/requests", json={"name": f"r{i}"})

        response = await test_client.get("/api/requests/paginated?perPage=2&page=1")

        assert response.status_code == 200
        assert [e["name"] for e in response.json()] == ["r0", "r1"]
        assert response.headers["X-Total-Count"] == "5"
        assert response.headers["X-Total-Pages"] == "3"
        assert response.headers["X-Per-Page"] == "2"
        assert response.headers["X-Page"] == "1"
        assert 'rel="next"' in response.headers["Link"]

    @pytest.mark.asyncio
    async def test_paginated_follow_cursor(self, test_client):
        for i in range(3):
            await test_client.post("/api/requests", json={"name": f"r{i}"})

        first = await test_client.get("/api/requests/paginated?perPage=2")
        cursor = first.headers["X-Next-Cursor"]
        second = await test_client.get(f"/api/requests/paginated?perPage=2&cursor={cursor}")

        assert [e["name"] for e in second.json()] == ["r2"]
        assert "X-Next-Cursor" not in second.headers

    @pytest.mark.asyncio
    async def test_paginated_name_filter(self, test_client):
        for name in ("x", "y", "x"):
            await test_client.post("/api/requests", json={"name": name})

        response = await test_client.get("/api/requests/paginated?name=x")

        assert [e["name"] for e in response.json()] == ["x", "x"]
        assert response.headers["X-Total-Count"] == "2"

    @pytest.mark.asyncio
    async def test_next_link_from_unaligned_offset(self, test_client):
        for i in range(6):
            await test_client.post("/api/requests", json={"name": f"r{i}"})

        first = await test_client.get("/api/requests/paginated?perPage=2&offset=1")
        second = await test_client.get(_link(first, "next"))

        assert [e["name"] for e in first.json()] == ["r1", "r2"]
        assert [e["name"] for e in second.json()] == ["r3", "r4"]

    @pytest.mark.asyncio
    async def test_paginated_key_is_reserved(self, test_client):
        response = await test_client.post(
            "/api/requests", json={"_key": "paginated", "name": "x"}
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "_key"

        # Other collections have no /paginated route and accept the key
        response = await test_client.post("/api/items", json={"_key": "paginated", "name": "x"})
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_paginated_bad_cursor_is_400(self, test_client):
        response = await test_client.get("/api/requests/paginated?cursor=garbage")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_per_page_above_max_is_422(self, test_client):
        response = await test_client.get("/api/requests/paginated?perPage=1000")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_only_requests_are_paginated(self, test_client):
        response = await test_client.get("/api/items/paginated")
        # Falls through to GET /{key} with key "paginated"
        assert response.status_code == 404


class TestHealthAndMiddleware:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get("/api/items", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, test_client):
        response = await test_client.get("/api/items")
        assert len(response.headers["X-Request-ID"]) == 8
