"""
tests/test_sales_routes.py -- Integration tests for sales, snapshots, units and options.

Sellers manage only their own listings (another seller gets 403); admins
can read and delete any listing. Inventory rows follow the same ownership
rules through their sale.
"""

from __future__ import annotations

import uuid

SELLER = "/shoppingMall/sellerUser"
ADMIN = "/shoppingMall/adminUser"


def _new_sale(mall, who: str = "seller", **overrides) -> dict:
    body = {
        "shopping_mall_channel_id": mall.channel().id,
        "code": f"sale-{uuid.uuid4().hex[:8]}",
        "name": "Wool scarf",
        "price": 30.0,
    } | overrides
    resp = mall.call("POST", f"{SELLER}/sales", who=who, json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestSellerSales:
    def test_create_captures_first_snapshot(self, mall):
        sale = _new_sale(mall)
        assert sale["shopping_mall_seller_user_id"] == mall.id_of("seller")
        assert sale["status"] == "draft"

        snapshots = mall.call("PATCH", f"{SELLER}/sales/{sale['id']}/snapshots", who="seller", json={})
        data = snapshots.json()["data"]
        assert len(data) == 1
        assert data[0]["price"] == 30.0

    def test_create_on_missing_channel_is_404(self, mall):
        resp = mall.call(
            "POST",
            f"{SELLER}/sales",
            who="seller",
            json={"shopping_mall_channel_id": "nope", "code": "x-1", "name": "X", "price": 1},
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "channel_not_found"

    def test_negative_price_is_rejected(self, mall):
        resp = mall.call(
            "POST",
            f"{SELLER}/sales",
            who="seller",
            json={"shopping_mall_channel_id": mall.channel().id, "code": "neg", "name": "Neg", "price": -1},
        )
        assert resp.status_code == 422

    def test_search_returns_only_own_sales(self, mall):
        mine = _new_sale(mall, name="Only mine")
        _new_sale(mall, who="seller2", name="Only theirs")
        resp = mall.call("PATCH", f"{SELLER}/sales", who="seller", json={"search": "Only", "limit": 100})
        ids = [s["id"] for s in resp.json()["data"]]
        assert ids == [mine["id"]]

    def test_other_seller_is_forbidden(self, mall):
        sale = _new_sale(mall)
        assert mall.call("GET", f"{SELLER}/sales/{sale['id']}", who="seller2").status_code == 403
        resp = mall.call("PUT", f"{SELLER}/sales/{sale['id']}", who="seller2", json={"price": 1})
        assert resp.status_code == 403

    def test_update_then_snapshot_freezes_new_price(self, mall):
        sale = _new_sale(mall)
        resp = mall.call("PUT", f"{SELLER}/sales/{sale['id']}", who="seller", json={"price": 45.5})
        assert resp.json()["price"] == 45.5

        snap = mall.call("POST", f"{SELLER}/sales/{sale['id']}/snapshots", who="seller")
        assert snap.status_code == 201
        assert snap.json()["price"] == 45.5
        got = mall.call("GET", f"{SELLER}/sales/{sale['id']}/snapshots/{snap.json()['id']}", who="seller")
        assert got.status_code == 200

    def test_soft_delete(self, mall):
        sale = _new_sale(mall)
        assert mall.call("DELETE", f"{SELLER}/sales/{sale['id']}", who="seller").status_code == 204
        assert mall.call("GET", f"{SELLER}/sales/{sale['id']}", who="seller").status_code == 404

    def test_members_cannot_use_seller_routes(self, mall):
        assert mall.call("PATCH", f"{SELLER}/sales", who="member", json={}).status_code == 403


class TestUnitsAndOptions:
    def test_unit_and_unit_option_lifecycle(self, mall):
        sale = _new_sale(mall)
        base = f"{SELLER}/sales/{sale['id']}/saleUnits"

        unit = mall.call("POST", base, who="seller", json={"code": "u-1", "name": "Size"}).json()
        option = mall.call(
            "POST",
            f"{base}/{unit['id']}/saleUnitOptions",
            who="seller",
            json={"name": "Size", "value": "M", "stock_quantity": 5},
        )
        assert option.status_code == 201
        option_id = option.json()["id"]

        updated = mall.call(
            "PUT", f"{base}/{unit['id']}/saleUnitOptions/{option_id}", who="seller", json={"stock_quantity": 2}
        )
        assert updated.json()["stock_quantity"] == 2
        assert updated.json()["value"] == "M"

        search = mall.call("PATCH", f"{base}/{unit['id']}/saleUnitOptions", who="seller", json={"search": "M"})
        assert search.json()["pagination"]["records"] == 1

        gone = mall.call("DELETE", f"{base}/{unit['id']}/saleUnitOptions/{option_id}", who="seller")
        assert gone.status_code == 204
        assert mall.call("GET", f"{base}/{unit['id']}/saleUnitOptions/{option_id}", who="seller").status_code == 404

    def test_unit_of_another_sale_is_404(self, mall):
        first = _new_sale(mall)
        second = _new_sale(mall)
        unit = mall.call(
            "POST", f"{SELLER}/sales/{first['id']}/saleUnits", who="seller", json={"code": "u-2", "name": "Colour"}
        ).json()
        resp = mall.call("GET", f"{SELLER}/sales/{second['id']}/saleUnits/{unit['id']}", who="seller")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "sale_unit_not_found"

    def test_option_groups_and_options(self, mall):
        sale = _new_sale(mall)
        base = f"{SELLER}/sales/{sale['id']}/optionGroups"
        group = mall.call("POST", base, who="seller", json={"name": "Gift wrap"}).json()
        option = mall.call(
            "POST", f"{base}/{group['id']}/options", who="seller", json={"name": "Ribbon", "additional_price": 2}
        )
        assert option.status_code == 201
        listed = mall.call("PATCH", f"{base}/{group['id']}/options", who="seller", json={})
        assert [o["name"] for o in listed.json()["data"]] == ["Ribbon"]


class TestAdminSales:
    def test_admin_filters_by_seller(self, mall):
        sale = _new_sale(mall, who="seller2")
        resp = mall.call(
            "PATCH",
            f"{ADMIN}/sales",
            who="admin",
            json={"shopping_mall_seller_user_id": mall.id_of("seller2"), "limit": 100},
        )
        assert resp.status_code == 200
        ids = {s["id"] for s in resp.json()["data"]}
        assert sale["id"] in ids
        assert all(s["shopping_mall_seller_user_id"] == mall.id_of("seller2") for s in resp.json()["data"])

    def test_admin_can_delete_any_sale(self, mall):
        sale = _new_sale(mall)
        assert mall.call("DELETE", f"{ADMIN}/sales/{sale['id']}", who="admin").status_code == 204
        assert mall.call("GET", f"{ADMIN}/sales/{sale['id']}", who="admin").status_code == 404


def _stock(mall, sale_id: str, code: str, quantity: int, who: str = "seller"):
    path = f"{SELLER if who != 'admin' else ADMIN}/inventory"
    return mall.call(
        "POST",
        path,
        who=who,
        json={"shopping_mall_sale_id": sale_id, "option_combination_code": code, "stock_quantity": quantity},
    )


class TestInventory:
    def test_seller_inventory_lifecycle(self, mall):
        sale = _new_sale(mall)
        created = _stock(mall, sale["id"], "RED-M", 12)
        assert created.status_code == 201, created.text
        item = created.json()
        path = f"{SELLER}/inventory/{item['id']}"

        assert mall.call("GET", path, who="seller").json()["stock_quantity"] == 12
        updated = mall.call("PUT", path, who="seller", json={"stock_quantity": 4})
        assert updated.json()["stock_quantity"] == 4
        assert mall.call("DELETE", path, who="seller").status_code == 204
        assert mall.call("GET", path, who="seller").status_code == 404

    def test_duplicate_combination_is_conflict(self, mall):
        sale = _new_sale(mall)
        _stock(mall, sale["id"], "BLUE-L", 1)
        assert _stock(mall, sale["id"], "BLUE-L", 2).status_code == 409
        other = _stock(mall, sale["id"], "BLUE-XL", 2).json()
        resp = mall.call(
            "PUT", f"{SELLER}/inventory/{other['id']}", who="seller", json={"option_combination_code": "BLUE-L"}
        )
        assert resp.status_code == 409

    def test_search_filters_by_code_and_quantity(self, mall):
        sale = _new_sale(mall)
        _stock(mall, sale["id"], "GREEN-S", 3)
        _stock(mall, sale["id"], "GREEN-M", 30)
        _stock(mall, sale["id"], "GREY-M", 50)
        resp = mall.call(
            "PATCH",
            f"{SELLER}/inventory",
            who="seller",
            json={
                "shopping_mall_sale_id": sale["id"],
                "option_combination_code": "GREEN",
                "min_quantity": 10,
                "sort": "stock_quantity asc",
            },
        )
        assert resp.status_code == 200
        assert [i["option_combination_code"] for i in resp.json()["data"]] == ["GREEN-M"]

    def test_seller_sees_only_own_inventory(self, mall):
        theirs = _new_sale(mall, who="seller2")
        item = _stock(mall, theirs["id"], "ONLY-THEIRS", 5, who="seller2").json()

        assert _stock(mall, theirs["id"], "SNEAKY", 1).status_code == 403
        assert mall.call("GET", f"{SELLER}/inventory/{item['id']}", who="seller").status_code == 403
        assert mall.call("DELETE", f"{SELLER}/inventory/{item['id']}", who="seller").status_code == 403
        filtered = mall.call("PATCH", f"{SELLER}/inventory", who="seller", json={"shopping_mall_sale_id": theirs["id"]})
        assert filtered.status_code == 403
        everything = mall.call("PATCH", f"{SELLER}/inventory", who="seller", json={"limit": 100})
        assert all(i["id"] != item["id"] for i in everything.json()["data"])

    def test_missing_sale_is_404(self, mall):
        resp = _stock(mall, "nope", "ANY", 1, who="admin")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "sale_not_found"

    def test_admin_manages_any_inventory(self, mall):
        sale = _new_sale(mall, who="seller2")
        item = _stock(mall, sale["id"], "ADMIN-1", 8, who="admin").json()
        path = f"{ADMIN}/inventory/{item['id']}"
        assert mall.call("PUT", path, who="admin", json={"stock_quantity": 9}).json()["stock_quantity"] == 9
        listed = mall.call("PATCH", f"{ADMIN}/inventory", who="admin", json={"shopping_mall_sale_id": sale["id"]})
        assert [i["id"] for i in listed.json()["data"]] == [item["id"]]
        assert mall.call("DELETE", path, who="admin").status_code == 204
        assert mall.call("DELETE", path, who="admin").status_code == 404

    def test_members_cannot_touch_inventory(self, mall):
        assert mall.call("PATCH", f"{SELLER}/inventory", who="member", json={}).status_code == 403
        assert mall.call("PATCH", f"{ADMIN}/inventory", who="seller", json={}).status_code == 403
