"""
tests/test_catalog_routes.py -- Integration tests for channels, categories and their relations.

All routes are admin-only; one test pins the 403 for other actors, the rest
run as "admin".
"""

from __future__ import annotations

import pytest

BASE = "/shoppingMall/adminUser"


def _create(mall, path: str, **body) -> dict:
    resp = mall.call("POST", f"{BASE}/{path}", who="admin", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.parametrize("who", [None, "member", "seller", "guest"])
def test_catalog_is_admin_only(mall, who):
    resp = mall.call("PATCH", f"{BASE}/channels", who=who, json={})
    assert resp.status_code == (401 if who is None else 403)


class TestChannels:
    def test_create_and_get(self, mall):
        channel = _create(mall, "channels", code="web-main", name="Main web store")
        assert channel["status"] == "active"
        resp = mall.call("GET", f"{BASE}/channels/{channel['id']}", who="admin")
        assert resp.status_code == 200
        assert resp.json()["code"] == "web-main"

    def test_duplicate_code_is_conflict(self, mall):
        _create(mall, "channels", code="dupe-channel", name="One")
        resp = mall.call("POST", f"{BASE}/channels", who="admin", json={"code": "dupe-channel", "name": "Two"})
        assert resp.status_code == 409

    def test_search_by_status_and_text(self, mall):
        _create(mall, "channels", code="search-a", name="Searchable outlet", status="paused")
        _create(mall, "channels", code="search-b", name="Searchable mall")
        resp = mall.call("PATCH", f"{BASE}/channels", who="admin", json={"search": "Searchable", "status": "paused"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["pagination"]["records"] == 1
        assert body["data"][0]["code"] == "search-a"

    def test_partial_update_keeps_other_fields(self, mall):
        channel = _create(mall, "channels", code="upd-ch", name="Before", description="kept")
        resp = mall.call("PUT", f"{BASE}/channels/{channel['id']}", who="admin", json={"name": "After"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "After"
        assert resp.json()["description"] == "kept"

    def test_soft_delete_then_404(self, mall):
        channel = _create(mall, "channels", code="gone-ch", name="Gone")
        assert mall.call("DELETE", f"{BASE}/channels/{channel['id']}", who="admin").status_code == 204
        resp = mall.call("GET", f"{BASE}/channels/{channel['id']}", who="admin")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "channel_not_found"
        assert mall.call("DELETE", f"{BASE}/channels/{channel['id']}", who="admin").status_code == 404


class TestCategoryRelations:
    def test_child_and_parent_views(self, mall):
        parent = _create(mall, "categories", code="tops", name="Tops")
        child = _create(mall, "categories", code="shirts", name="Shirts")

        relation = _create(
            mall, f"categories/{parent['id']}/categoryRelations/child", child_shopping_mall_category_id=child["id"]
        )
        assert relation["parent_shopping_mall_category_id"] == parent["id"]

        children = mall.call("PATCH", f"{BASE}/categories/{parent['id']}/categoryRelations/child", who="admin", json={})
        assert [r["id"] for r in children.json()["data"]] == [relation["id"]]

        parents = mall.call("PATCH", f"{BASE}/categories/{child['id']}/categoryRelations/parent", who="admin", json={})
        assert [r["id"] for r in parents.json()["data"]] == [relation["id"]]

        # The relation is reachable from the child side only through /parent.
        path = f"{BASE}/categories/{child['id']}/categoryRelations/child/{relation['id']}"
        assert mall.call("GET", path, who="admin").status_code == 404

    def test_self_relation_rejected(self, mall):
        cat = _create(mall, "categories", code="loop", name="Loop")
        resp = mall.call(
            "POST",
            f"{BASE}/categories/{cat['id']}/categoryRelations/child",
            who="admin",
            json={"child_shopping_mall_category_id": cat["id"]},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "self_relation"

    def test_duplicate_relation_is_conflict(self, mall):
        parent = _create(mall, "categories", code="bottoms", name="Bottoms")
        child = _create(mall, "categories", code="jeans", name="Jeans")
        path = f"categories/{parent['id']}/categoryRelations/child"
        _create(mall, path, child_shopping_mall_category_id=child["id"])
        resp = mall.call("POST", f"{BASE}/{path}", who="admin", json={"child_shopping_mall_category_id": child["id"]})
        assert resp.status_code == 409

    def test_missing_child_is_404(self, mall):
        parent = _create(mall, "categories", code="shoes", name="Shoes")
        resp = mall.call(
            "POST",
            f"{BASE}/categories/{parent['id']}/categoryRelations/child",
            who="admin",
            json={"child_shopping_mall_category_id": "no-such-category"},
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "category_not_found"


class TestChannelCategories:
    def test_link_embeds_channel_and_category(self, mall):
        channel = _create(mall, "channels", code="link-ch", name="Linked channel")
        category = _create(mall, "categories", code="link-cat", name="Linked category")
        link = _create(
            mall,
            "channelCategories",
            shopping_mall_channel_id=channel["id"],
            shopping_mall_category_id=category["id"],
        )
        assert link["channel"]["code"] == "link-ch"
        assert link["category"]["code"] == "link-cat"

        resp = mall.call(
            "PATCH", f"{BASE}/channelCategories", who="admin", json={"shopping_mall_channel_id": channel["id"]}
        )
        assert resp.json()["pagination"]["records"] == 1

    def test_link_to_missing_channel_is_404(self, mall):
        category = _create(mall, "categories", code="orphan-cat", name="Orphan")
        resp = mall.call(
            "POST",
            f"{BASE}/channelCategories",
            who="admin",
            json={"shopping_mall_channel_id": "missing", "shopping_mall_category_id": category["id"]},
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "channel_not_found"
