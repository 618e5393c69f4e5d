"""
tests/test_wallet_routes.py -- Integration tests for deposit charges, the deposit ledger and saved addresses.

Covers:
  - charge amounts must be positive (400 invalid_amount)
  - paying a charge stamps paid_at and appends a ledger entry with a running balance
  - a paid charge is final: no erase, no new amount, no status change
  - one primary address per member
  - members never see each other's wallet records
"""

from __future__ import annotations

BASE = "/shoppingMall/memberUser"


def _charge(mall, amount: float, who: str = "member") -> dict:
    resp = mall.call(
        "POST",
        f"{BASE}/depositCharges",
        who=who,
        json={"charge_amount": amount, "payment_provider": "card", "payment_account": "**** 4242"},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _pay(mall, charge_id: str, who: str = "member"):
    return mall.call("PUT", f"{BASE}/depositCharges/{charge_id}", who=who, json={"charge_status": "paid"})


def _address(mall, title: str, who: str = "member", **extra) -> dict:
    body = {
        "title": title,
        "recipient_name": "Max Member",
        "phone_number": "010-1234-5678",
        "address": "12 Harbour Road",
        "zip_code": "04524",
    } | extra
    resp = mall.call("POST", f"{BASE}/favoriteAddresses", who=who, json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestDepositCharges:
    def test_new_charge_is_pending(self, mall):
        charge = _charge(mall, 30)
        assert charge["charge_status"] == "pending"
        assert charge["paid_at"] is None

    def test_non_positive_amount_is_400(self, mall):
        resp = mall.call(
            "POST",
            f"{BASE}/depositCharges",
            who="member",
            json={"charge_amount": -5, "payment_provider": "card", "payment_account": "x"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_amount"

    def test_paying_builds_the_ledger(self, mall):
        first = _pay(mall, _charge(mall, 100, who="member2")["id"], who="member2")
        assert first.status_code == 200
        assert first.json()["charge_status"] == "paid"
        assert first.json()["paid_at"] is not None
        _pay(mall, _charge(mall, 25, who="member2")["id"], who="member2")

        ledger = mall.call("PATCH", f"{BASE}/deposits", who="member2", json={"sort": "created_at asc"})
        assert [d["usable_balance"] for d in ledger.json()["data"]] == [100, 125]

        big = mall.call("PATCH", f"{BASE}/deposits", who="member2", json={"deposit_amount_min": 50})
        assert [d["deposit_amount"] for d in big.json()["data"]] == [100]

    def test_paid_charge_is_locked(self, mall):
        charge = _charge(mall, 40)
        _pay(mall, charge["id"])
        resp = mall.call("PUT", f"{BASE}/depositCharges/{charge['id']}", who="member", json={"charge_amount": 90})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "charge_paid"
        resp = mall.call("DELETE", f"{BASE}/depositCharges/{charge['id']}", who="member")
        assert resp.status_code == 400

    def test_paid_charge_status_is_final(self, mall):
        """Un-paying and re-paying must not credit the ledger twice or unlock erase."""
        charge = _charge(mall, 70)
        before = mall.call("PATCH", f"{BASE}/deposits", who="member", json={}).json()["pagination"]["records"]
        assert _pay(mall, charge["id"]).status_code == 200

        path = f"{BASE}/depositCharges/{charge['id']}"
        for status in ("pending", "cancelled"):
            resp = mall.call("PUT", path, who="member", json={"charge_status": status})
            assert resp.status_code == 400
            assert resp.json()["error"]["code"] == "charge_paid"
        assert _pay(mall, charge["id"]).status_code == 200
        assert mall.call("DELETE", path, who="member").status_code == 400

        after = mall.call("PATCH", f"{BASE}/deposits", who="member", json={}).json()["pagination"]["records"]
        assert after == before + 1
        assert mall.call("GET", path, who="member").json()["charge_status"] == "paid"

    def test_pending_charge_can_be_erased(self, mall):
        charge = _charge(mall, 10)
        assert mall.call("DELETE", f"{BASE}/depositCharges/{charge['id']}", who="member").status_code == 204
        assert mall.call("GET", f"{BASE}/depositCharges/{charge['id']}", who="member").status_code == 404

    def test_other_member_is_forbidden(self, mall):
        charge = _charge(mall, 10)
        assert mall.call("GET", f"{BASE}/depositCharges/{charge['id']}", who="member2").status_code == 403

    def test_search_by_status(self, mall):
        _charge(mall, 15)
        resp = mall.call("PATCH", f"{BASE}/depositCharges", who="member", json={"charge_status": "pending"})
        assert resp.status_code == 200
        assert all(c["charge_status"] == "pending" for c in resp.json()["data"])
        assert all(c["memberuser_id"] == mall.id_of("member") for c in resp.json()["data"])


class TestFavoriteAddresses:
    def test_single_primary_address(self, mall):
        home = _address(mall, "Home", is_primary=True)
        office = _address(mall, "Office", is_primary=True)
        assert mall.call("GET", f"{BASE}/favoriteAddresses/{home['id']}", who="member").json()["is_primary"] is False
        assert mall.call("GET", f"{BASE}/favoriteAddresses/{office['id']}", who="member").json()["is_primary"] is True

        resp = mall.call("PUT", f"{BASE}/favoriteAddresses/{home['id']}", who="member", json={"is_primary": True})
        assert resp.json()["is_primary"] is True
        assert mall.call("GET", f"{BASE}/favoriteAddresses/{office['id']}", who="member").json()["is_primary"] is False

    def test_search_by_text(self, mall):
        _address(mall, "Beach cottage", who="member2")
        resp = mall.call("PATCH", f"{BASE}/favoriteAddresses", who="member2", json={"search": "cottage"})
        assert [a["title"] for a in resp.json()["data"]] == ["Beach cottage"]

    def test_other_member_is_forbidden(self, mall):
        address = _address(mall, "Private")
        resp = mall.call("PUT", f"{BASE}/favoriteAddresses/{address['id']}", who="member2", json={"title": "Mine"})
        assert resp.status_code == 403

    def test_delete(self, mall):
        address = _address(mall, "Temporary")
        assert mall.call("DELETE", f"{BASE}/favoriteAddresses/{address['id']}", who="member").status_code == 204
        assert mall.call("GET", f"{BASE}/favoriteAddresses/{address['id']}", who="member").status_code == 404

    def test_guests_have_no_wallet(self, mall):
        assert mall.call("PATCH", f"{BASE}/favoriteAddresses", who="guest", json={}).status_code == 403
