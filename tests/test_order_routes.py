"""
tests/test_order_routes.py -- Integration tests for orders, items, payments, deliveries and history.

Covers:
  - placing an order copies snapshot prices and computes the total
  - members see and cancel only their own pending orders
  - sellers reach an order only through an item cut from their own sale
  - payment amount rules, cancelled_at stamping and paid propagation
  - admin status changes append to the status history
  - members read the audit trail of their own orders only
"""

from __future__ import annotations

import pytest

MEMBER = "/shoppingMall/memberUser"
SELLER = "/shoppingMall/sellerUser"
ADMIN = "/shoppingMall/adminUser"


@pytest.fixture(scope="module")
def listing(mall):
    """(channel, sale, snapshot) for a 20.0 sale by "seller"."""
    return mall.sale(price=20.0)


def _place(mall, listing, quantity: int = 3, who: str = "member") -> dict:
    channel, _, snapshot = listing
    resp = mall.call(
        "POST",
        f"{MEMBER}/orders",
        who=who,
        json={
            "shopping_mall_channel_id": channel.id,
            "items": [{"shopping_mall_sale_snapshot_id": snapshot.id, "quantity": quantity}],
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestMemberOrders:
    def test_place_order_prices_from_snapshot(self, mall, listing):
        order = _place(mall, listing)
        assert order["total_price"] == 60.0
        assert order["order_status"] == "pending"
        assert order["payment_status"] == "pending"
        assert order["order_code"].startswith("ORD-")

        items = mall.call("PATCH", f"{MEMBER}/orders/{order['id']}/items", who="member", json={})
        data = items.json()["data"]
        assert len(data) == 1
        assert data[0]["price"] == 20.0 and data[0]["quantity"] == 3

    def test_empty_order_is_rejected(self, mall, listing):
        channel, _, _ = listing
        resp = mall.call(
            "POST", f"{MEMBER}/orders", who="member", json={"shopping_mall_channel_id": channel.id, "items": []}
        )
        assert resp.status_code == 422

    def test_unknown_snapshot_is_404(self, mall, listing):
        channel, _, _ = listing
        resp = mall.call(
            "POST",
            f"{MEMBER}/orders",
            who="member",
            json={
                "shopping_mall_channel_id": channel.id,
                "items": [{"shopping_mall_sale_snapshot_id": "missing", "quantity": 1}],
            },
        )
        assert resp.status_code == 404

    def test_other_member_is_forbidden(self, mall, listing):
        order = _place(mall, listing)
        assert mall.call("GET", f"{MEMBER}/orders/{order['id']}", who="member2").status_code == 403

    def test_search_by_status(self, mall, listing):
        order = _place(mall, listing, who="member2")
        resp = mall.call("PATCH", f"{MEMBER}/orders", who="member2", json={"order_status": "pending"})
        assert order["id"] in {o["id"] for o in resp.json()["data"]}
        resp = mall.call("PATCH", f"{MEMBER}/orders", who="member2", json={"order_status": "delivered"})
        assert resp.json()["pagination"]["records"] == 0

    def test_cancel_pending_order(self, mall, listing):
        order = _place(mall, listing)
        resp = mall.call("PUT", f"{MEMBER}/orders/{order['id']}", who="member", json={"order_status": "cancelled"})
        assert resp.status_code == 200
        assert resp.json()["order_status"] == "cancelled"

    def test_members_cannot_confirm(self, mall, listing):
        order = _place(mall, listing)
        resp = mall.call("PUT", f"{MEMBER}/orders/{order['id']}", who="member", json={"order_status": "confirmed"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_status"

    def test_shipped_order_cannot_be_cancelled(self, mall, listing):
        channel, _, snapshot = listing
        order = mall.order(snapshot, channel, order_status="shipped")
        resp = mall.call("PUT", f"{MEMBER}/orders/{order.id}", who="member", json={"order_status": "cancelled"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "order_not_cancellable"


class TestPayments:
    def test_non_positive_amount_is_400(self, mall, listing):
        order = _place(mall, listing)
        resp = mall.call(
            "POST",
            f"{MEMBER}/orders/{order['id']}/payments",
            who="member",
            json={"payment_method": "card", "payment_amount": 0},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_amount"

    def test_paid_payment_marks_order_paid(self, mall, listing):
        order = _place(mall, listing)
        resp = mall.call(
            "POST",
            f"{MEMBER}/orders/{order['id']}/payments",
            who="member",
            json={"payment_method": "card", "payment_amount": 60, "payment_status": "paid"},
        )
        assert resp.status_code == 201, resp.text
        got = mall.call("GET", f"{MEMBER}/orders/{order['id']}", who="member")
        assert got.json()["payment_status"] == "paid"

    def test_cancelling_a_payment_stamps_cancelled_at(self, mall, listing):
        order = _place(mall, listing)
        payment = mall.call(
            "POST",
            f"{MEMBER}/orders/{order['id']}/payments",
            who="member",
            json={"payment_method": "card", "payment_amount": 60},
        ).json()
        assert payment["cancelled_at"] is None
        resp = mall.call(
            "PUT",
            f"{MEMBER}/orders/{order['id']}/payments/{payment['id']}",
            who="member",
            json={"payment_status": "cancelled"},
        )
        assert resp.json()["payment_status"] == "cancelled"
        assert resp.json()["cancelled_at"] is not None

    def test_admin_lists_payments(self, mall, listing):
        order = _place(mall, listing)
        mall.call(
            "POST",
            f"{MEMBER}/orders/{order['id']}/payments",
            who="member",
            json={"payment_method": "bank", "payment_amount": 60},
        )
        resp = mall.call(
            "PATCH", f"{ADMIN}/orders/{order['id']}/payments", who="admin", json={"payment_method": "bank"}
        )
        assert resp.json()["pagination"]["records"] == 1


class TestSellerAccess:
    def test_seller_sees_items_of_own_sales(self, mall, listing):
        order = _place(mall, listing)
        resp = mall.call("PATCH", f"{SELLER}/orders/{order['id']}/items", who="seller", json={})
        assert resp.status_code == 200
        assert resp.json()["pagination"]["records"] == 1

    def test_other_seller_is_forbidden(self, mall, listing):
        order = _place(mall, listing)
        resp = mall.call("PATCH", f"{SELLER}/orders/{order['id']}/items", who="seller2", json={})
        assert resp.status_code == 403

    def test_seller_updates_item_status(self, mall, listing):
        order = _place(mall, listing)
        item = mall.call("PATCH", f"{SELLER}/orders/{order['id']}/items", who="seller", json={}).json()["data"][0]
        path = f"{SELLER}/orders/{order['id']}/items/{item['id']}"
        resp = mall.call("PUT", path, who="seller", json={"order_item_status": "packed"})
        assert resp.status_code == 200
        assert resp.json()["order_item_status"] == "packed"
        assert mall.call("PUT", path, who="seller2", json={"order_item_status": "x"}).status_code == 403

    def test_seller_creates_and_updates_delivery(self, mall, listing):
        order = _place(mall, listing)
        base = f"{SELLER}/orders/{order['id']}/deliveries"
        delivery = mall.call(
            "POST",
            base,
            who="seller",
            json={
                "delivery_status": "preparing",
                "delivery_stage": "warehouse",
                "expected_delivery_date": "2030-05-01T12:00:00Z",
            },
        )
        assert delivery.status_code == 201, delivery.text
        delivery_id = delivery.json()["id"]

        updated = mall.call("PUT", f"{base}/{delivery_id}", who="seller", json={"delivery_status": "shipping"})
        assert updated.json()["delivery_status"] == "shipping"
        assert updated.json()["delivery_stage"] == "warehouse"

        member_view = mall.call("PATCH", f"{MEMBER}/orders/{order['id']}/deliveries", who="member", json={})
        assert [d["id"] for d in member_view.json()["data"]] == [delivery_id]


class TestAdminOrders:
    def test_status_change_appends_history(self, mall, listing):
        order = _place(mall, listing)
        resp = mall.call("PUT", f"{ADMIN}/orders/{order['id']}", who="admin", json={"order_status": "confirmed"})
        assert resp.status_code == 200
        assert resp.json()["order_status"] == "confirmed"

        history = mall.call(
            "PATCH",
            f"{ADMIN}/orderStatusHistories",
            who="admin",
            json={"shopping_mall_order_id": order["id"], "sort": "created_at asc"},
        )
        assert [h["new_status"] for h in history.json()["data"]] == ["pending", "confirmed"]

    def test_invalid_status_is_422(self, mall, listing):
        order = _place(mall, listing)
        resp = mall.call("PUT", f"{ADMIN}/orders/{order['id']}", who="admin", json={"order_status": "lost"})
        assert resp.status_code == 422

    def test_admin_filters_by_member(self, mall, listing):
        order = _place(mall, listing, who="member2")
        resp = mall.call(
            "PATCH",
            f"{ADMIN}/orders",
            who="admin",
            json={"shopping_mall_memberuser_id": mall.id_of("member2"), "limit": 100},
        )
        assert order["id"] in {o["id"] for o in resp.json()["data"]}
        assert all(o["shopping_mall_memberuser_id"] == mall.id_of("member2") for o in resp.json()["data"])

    def test_missing_order_is_404(self, mall):
        resp = mall.call("GET", f"{ADMIN}/orders/nope", who="admin")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "order_not_found"


class TestOrderAuditLogs:
    def test_member_sees_own_order_trail(self, mall, listing):
        order = _place(mall, listing)
        mall.call(
            "POST",
            f"{MEMBER}/orders/{order['id']}/payments",
            who="member",
            json={"payment_method": "card", "payment_amount": 60, "payment_status": "paid"},
        )
        resp = mall.call(
            "PATCH",
            f"{MEMBER}/orderAuditLogs",
            who="member",
            json={"shopping_mall_order_id": order["id"], "limit": 100},
        )
        assert resp.status_code == 200
        logs = resp.json()["data"]
        assert {log["action"] for log in logs} == {"order_placed", "payment_recorded", "payment_status_changed"}
        assert all(log["actor_user_id"] == mall.id_of("member") for log in logs)

    def test_admin_status_change_names_the_admin(self, mall, listing):
        order = _place(mall, listing)
        mall.call("PUT", f"{ADMIN}/orders/{order['id']}", who="admin", json={"order_status": "confirmed"})
        resp = mall.call(
            "PATCH",
            f"{MEMBER}/orderAuditLogs",
            who="member",
            json={"shopping_mall_order_id": order["id"], "action": "status_changed"},
        )
        assert [log["actor_user_id"] for log in resp.json()["data"]] == [mall.id_of("admin")]

    def test_other_members_orders_are_hidden(self, mall, listing):
        order = _place(mall, listing)
        resp = mall.call(
            "PATCH", f"{MEMBER}/orderAuditLogs", who="member2", json={"shopping_mall_order_id": order["id"]}
        )
        assert resp.status_code == 200
        assert resp.json()["pagination"]["records"] == 0
        everything = mall.call("PATCH", f"{MEMBER}/orderAuditLogs", who="member2", json={"limit": 100})
        assert all(log["shopping_mall_order_id"] != order["id"] for log in everything.json()["data"])
