"""
tests/test_cart_routes.py -- Integration tests for carts, cart items and cart item options.

Covers the ownership chain (option -> item -> cart -> member/guest), price
defaulting from the snapshot, option/group consistency and the admin views.
"""

from __future__ import annotations

import pytest

from mall.models import SaleOption, SaleOptionGroup

MEMBER = "/shoppingMall/memberUser"
GUEST = "/shoppingMall/guestUser"
ADMIN = "/shoppingMall/adminUser"


@pytest.fixture(scope="module")
def snapshot(mall):
    _, _, snapshot = mall.sale(price=12.5)
    return snapshot


def _cart(mall, who: str = "member", base: str = MEMBER) -> dict:
    resp = mall.call("POST", f"{base}/carts", who=who, json={})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _item(mall, cart_id: str, snapshot_id: str, who: str = "member", base: str = MEMBER, **extra) -> dict:
    body = {"shopping_sale_snapshot_id": snapshot_id, "quantity": 2} | extra
    resp = mall.call("POST", f"{base}/carts/{cart_id}/cartItems", who=who, json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestMemberCarts:
    def test_create_cart_is_owned_by_caller(self, mall):
        cart = _cart(mall)
        assert cart["member_user_id"] == mall.id_of("member")
        assert cart["guest_user_id"] is None
        assert cart["status"] == "active"

    def test_other_member_is_forbidden(self, mall):
        cart = _cart(mall)
        resp = mall.call("GET", f"{MEMBER}/carts/{cart['id']}", who="member2")
        assert resp.status_code == 403

    def test_search_lists_only_own_carts(self, mall):
        mine = _cart(mall)
        _cart(mall, who="member2")
        resp = mall.call("PATCH", f"{MEMBER}/carts", who="member", json={"limit": 100})
        ids = {c["id"] for c in resp.json()["data"]}
        assert mine["id"] in ids
        assert all(c["member_user_id"] == mall.id_of("member") for c in resp.json()["data"])

    def test_bare_sign_sort_uses_default_order(self, mall):
        _cart(mall)
        resp = mall.call("PATCH", f"{MEMBER}/carts", who="member", json={"sort": "-"})
        assert resp.status_code == 200
        assert resp.json()["pagination"]["records"] >= 1

    def test_soft_deleted_cart_is_404(self, mall):
        cart = _cart(mall)
        assert mall.call("DELETE", f"{MEMBER}/carts/{cart['id']}", who="member").status_code == 204
        assert mall.call("GET", f"{MEMBER}/carts/{cart['id']}", who="member").status_code == 404


class TestCartItems:
    def test_unit_price_defaults_to_snapshot_price(self, mall, snapshot):
        cart = _cart(mall)
        item = _item(mall, cart["id"], snapshot.id)
        assert item["unit_price"] == 12.5
        assert item["quantity"] == 2

    def test_explicit_unit_price_is_kept(self, mall, snapshot):
        cart = _cart(mall)
        assert _item(mall, cart["id"], snapshot.id, unit_price=10.0)["unit_price"] == 10.0

    def test_missing_snapshot_is_404(self, mall):
        cart = _cart(mall)
        resp = mall.call(
            "POST",
            f"{MEMBER}/carts/{cart['id']}/cartItems",
            who="member",
            json={"shopping_sale_snapshot_id": "missing", "quantity": 1},
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "sale_snapshot_not_found"

    def test_zero_quantity_is_rejected(self, mall, snapshot):
        cart = _cart(mall)
        resp = mall.call(
            "POST",
            f"{MEMBER}/carts/{cart['id']}/cartItems",
            who="member",
            json={"shopping_sale_snapshot_id": snapshot.id, "quantity": 0},
        )
        assert resp.status_code == 422

    def test_update_and_delete(self, mall, snapshot):
        cart = _cart(mall)
        item = _item(mall, cart["id"], snapshot.id)
        path = f"{MEMBER}/carts/{cart['id']}/cartItems/{item['id']}"
        updated = mall.call("PUT", path, who="member", json={"quantity": 5})
        assert updated.json()["quantity"] == 5
        assert updated.json()["unit_price"] == 12.5

        assert mall.call("DELETE", path, who="member").status_code == 204
        assert mall.call("GET", path, who="member").status_code == 404

    def test_item_addressed_through_wrong_cart_is_404(self, mall, snapshot):
        first = _cart(mall)
        second = _cart(mall)
        item = _item(mall, first["id"], snapshot.id)
        resp = mall.call("GET", f"{MEMBER}/carts/{second['id']}/cartItems/{item['id']}", who="member")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "cart_item_not_found"


class TestCartItemOptions:
    @pytest.fixture(scope="class")
    def choices(self, mall, snapshot):
        group = mall.store.create(SaleOptionGroup(shopping_mall_sale_id=snapshot.shopping_mall_sale_id, name="Colour"))
        red = mall.store.create(SaleOption(shopping_mall_sale_option_group_id=group.id, name="Red"))
        other = mall.store.create(SaleOptionGroup(shopping_mall_sale_id=snapshot.shopping_mall_sale_id, name="Size"))
        large = mall.store.create(SaleOption(shopping_mall_sale_option_group_id=other.id, name="L"))
        return group, red, other, large

    def test_add_option_and_list(self, mall, snapshot, choices):
        group, red, _, _ = choices
        item = _item(mall, _cart(mall)["id"], snapshot.id)
        base = f"{MEMBER}/cartItems/{item['id']}/cartItemOptions"
        resp = mall.call(
            "POST",
            base,
            who="member",
            json={"shopping_sale_option_group_id": group.id, "shopping_sale_option_id": red.id},
        )
        assert resp.status_code == 201, resp.text
        listed = mall.call("PATCH", base, who="member", json={})
        assert [o["shopping_sale_option_id"] for o in listed.json()["data"]] == [red.id]

    def test_option_from_another_group_is_rejected(self, mall, snapshot, choices):
        group, _, _, large = choices
        item = _item(mall, _cart(mall)["id"], snapshot.id)
        resp = mall.call(
            "POST",
            f"{MEMBER}/cartItems/{item['id']}/cartItemOptions",
            who="member",
            json={"shopping_sale_option_group_id": group.id, "shopping_sale_option_id": large.id},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "option_group_mismatch"

    def test_other_member_cannot_touch_options(self, mall, snapshot, choices):
        group, red, _, _ = choices
        item = _item(mall, _cart(mall)["id"], snapshot.id)
        resp = mall.call(
            "POST",
            f"{MEMBER}/cartItems/{item['id']}/cartItemOptions",
            who="member2",
            json={"shopping_sale_option_group_id": group.id, "shopping_sale_option_id": red.id},
        )
        assert resp.status_code == 403

    def test_admin_lists_and_removes_options(self, mall, snapshot, choices):
        group, red, _, _ = choices
        item = _item(mall, _cart(mall)["id"], snapshot.id)
        option = mall.call(
            "POST",
            f"{MEMBER}/cartItems/{item['id']}/cartItemOptions",
            who="member",
            json={"shopping_sale_option_group_id": group.id, "shopping_sale_option_id": red.id},
        ).json()
        base = f"{ADMIN}/cartItems/{item['id']}/cartItemOptions"
        assert mall.call("PATCH", base, who="admin", json={}).json()["pagination"]["records"] == 1
        assert mall.call("DELETE", f"{base}/{option['id']}", who="admin").status_code == 204
        assert mall.call("PATCH", base, who="admin", json={}).json()["pagination"]["records"] == 0


class TestGuestCarts:
    def test_guest_cart_flow(self, mall, snapshot):
        cart = _cart(mall, who="guest", base=GUEST)
        assert cart["guest_user_id"] == mall.id_of("guest")
        item = _item(mall, cart["id"], snapshot.id, who="guest", base=GUEST)
        listed = mall.call("PATCH", f"{GUEST}/carts/{cart['id']}/cartItems", who="guest", json={})
        assert [i["id"] for i in listed.json()["data"]] == [item["id"]]

    def test_other_guest_is_forbidden(self, mall):
        cart = _cart(mall, who="guest", base=GUEST)
        assert mall.call("GET", f"{GUEST}/carts/{cart['id']}", who="guest2").status_code == 403

    def test_member_cannot_use_guest_routes(self, mall):
        assert mall.call("POST", f"{GUEST}/carts", who="member", json={}).status_code == 403


class TestAdminCarts:
    def test_admin_filters_by_guest(self, mall):
        cart = _cart(mall, who="guest2", base=GUEST)
        resp = mall.call("PATCH", f"{ADMIN}/carts", who="admin", json={"guest_user_id": mall.id_of("guest2")})
        assert [c["id"] for c in resp.json()["data"]] == [cart["id"]]
        assert mall.call("GET", f"{ADMIN}/carts/{cart['id']}", who="admin").status_code == 200
