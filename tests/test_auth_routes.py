"""
tests/test_auth_routes.py -- Integration tests for the auth and user-management routes.

These tests exercise the full stack: FastAPI routing -> rate limiter ->
UserStore -> token issuance -> response model serialization.

Coverage:
  - join: 201, token pair attached, password hash never serialised, 409 on duplicate email
  - login: 200 with no-store, 401 bad_credentials on wrong password or unknown email
  - refresh: works with a refresh token, rejects an access token
  - sellers start pending and can still log in
  - guest sessions
  - bearer resolution: 401 without/with a bad token, 403 for the wrong actor kind
  - admin user search/detail and seller approval
"""

from __future__ import annotations

from conftest import PASSWORD


def _member_body(email: str) -> dict:
    return {"email": email, "password": PASSWORD, "nickname": "newbie", "full_name": "New Member"}


class TestJoinAndLogin:
    def test_member_join_returns_tokens_without_hash(self, mall):
        resp = mall.call("POST", "/auth/memberUser/join", json=_member_body("join@mall.test"))
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["email"] == "join@mall.test"
        assert data["status"] == "active"
        assert data["token"]["access"] and data["token"]["refresh"]
        assert "password_hash" not in data
        assert "password" not in data
        assert resp.headers["Cache-Control"] == "no-store"

    def test_duplicate_email_is_conflict(self, mall):
        mall.call("POST", "/auth/memberUser/join", json=_member_body("dupe@mall.test"))
        resp = mall.call("POST", "/auth/memberUser/join", json=_member_body("dupe@mall.test"))
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "conflict"

    def test_join_rejects_short_password(self, mall):
        body = _member_body("short@mall.test") | {"password": "short"}
        assert mall.call("POST", "/auth/memberUser/join", json=body).status_code == 422

    def test_login_valid_credentials(self, mall):
        email = mall.actors["member"].email
        resp = mall.call("POST", "/auth/memberUser/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 200, resp.text
        assert resp.json()["id"] == mall.id_of("member")
        assert resp.headers["Cache-Control"] == "no-store"

    def test_login_wrong_password(self, mall):
        email = mall.actors["member"].email
        resp = mall.call("POST", "/auth/memberUser/login", json={"email": email, "password": "wrong-password"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "bad_credentials"
        assert resp.headers["Cache-Control"] == "no-store"

    def test_login_unknown_email(self, mall):
        resp = mall.call("POST", "/auth/adminUser/login", json={"email": "ghost@mall.test", "password": PASSWORD})
        assert resp.status_code == 401

    def test_member_credentials_do_not_log_into_admin(self, mall):
        email = mall.actors["member"].email
        resp = mall.call("POST", "/auth/adminUser/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 401

    def test_refresh_issues_new_pair(self, mall):
        joined = mall.call("POST", "/auth/memberUser/join", json=_member_body("refresh@mall.test")).json()
        resp = mall.call("POST", "/auth/memberUser/refresh", json={"refresh_token": joined["token"]["refresh"]})
        assert resp.status_code == 200, resp.text
        assert resp.json()["id"] == joined["id"]

    def test_refresh_rejects_access_token(self, mall):
        joined = mall.call("POST", "/auth/memberUser/join", json=_member_body("refresh2@mall.test")).json()
        resp = mall.call("POST", "/auth/memberUser/refresh", json={"refresh_token": joined["token"]["access"]})
        assert resp.status_code == 401

    def test_refresh_rejects_other_actor_kind(self, mall):
        joined = mall.call("POST", "/auth/memberUser/join", json=_member_body("refresh3@mall.test")).json()
        resp = mall.call("POST", "/auth/sellerUser/refresh", json={"refresh_token": joined["token"]["refresh"]})
        assert resp.status_code == 401


class TestSellersAndGuests:
    def test_seller_joins_pending_and_can_log_in(self, mall):
        body = {
            "email": "newshop@mall.test",
            "password": PASSWORD,
            "nickname": "newshop",
            "full_name": "New Shop",
            "business_registration_number": "BRN-NEW-1",
        }
        joined = mall.call("POST", "/auth/sellerUser/join", json=body)
        assert joined.status_code == 201, joined.text
        assert joined.json()["status"] == "pending"

        login = mall.call("POST", "/auth/sellerUser/login", json={"email": body["email"], "password": PASSWORD})
        assert login.status_code == 200

    def test_guest_join_records_session(self, mall):
        resp = mall.call(
            "POST",
            "/auth/guestUser/join",
            json={"access_url": "https://mall.test/landing", "referrer": "https://search.test/"},
            headers={"User-Agent": "pytest-agent"},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["user_agent"] == "pytest-agent"
        assert data["session_start_at"]
        assert data["session_end_at"] is None

        refreshed = mall.call("POST", "/auth/guestUser/refresh", json={"refresh_token": data["token"]["refresh"]})
        assert refreshed.status_code == 200


class TestBearerResolution:
    def test_me_without_token(self, mall):
        resp = mall.call("GET", "/auth/me")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_me_with_garbage_token(self, mall):
        resp = mall.client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
        assert resp.status_code == 401

    def test_me_reports_actor_kind(self, mall):
        resp = mall.call("GET", "/auth/me", who="seller")
        assert resp.status_code == 200
        assert resp.json() == {"id": mall.id_of("seller"), "type": "selleruser"}

    def test_wrong_actor_kind_is_forbidden(self, mall):
        resp = mall.call("PATCH", "/shoppingMall/adminUser/memberUsers", who="member", json={})
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "forbidden"

    def test_suspended_actor_loses_access(self, mall):
        joined = mall.call("POST", "/auth/memberUser/join", json=_member_body("suspend@mall.test")).json()
        headers = {"Authorization": f"Bearer {joined['token']['access']}"}
        assert mall.client.get("/api/v1/auth/me", headers=headers).status_code == 200
        mall.users.update("memberuser", joined["id"], status="suspended")
        assert mall.client.get("/api/v1/auth/me", headers=headers).status_code == 401


class TestUserManagement:
    def test_admin_searches_members(self, mall):
        resp = mall.call("PATCH", "/shoppingMall/adminUser/memberUsers", who="admin", json={"limit": 100})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["pagination"]["current"] == 1
        ids = {m["id"] for m in data["data"]}
        assert mall.id_of("member") in ids
        assert all("password_hash" not in m for m in data["data"])

    def test_admin_member_detail_and_404(self, mall):
        ok = mall.call("GET", f"/shoppingMall/adminUser/memberUsers/{mall.id_of('member')}", who="admin")
        assert ok.status_code == 200
        missing = mall.call("GET", "/shoppingMall/adminUser/memberUsers/no-such-id", who="admin")
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "member_user_not_found"

    def test_admin_approves_seller(self, mall):
        body = {
            "email": "approve@mall.test",
            "password": PASSWORD,
            "nickname": "approve",
            "full_name": "Approve Me",
            "business_registration_number": "BRN-APPROVE",
        }
        seller_id = mall.call("POST", "/auth/sellerUser/join", json=body).json()["id"]
        resp = mall.call(
            "PUT", f"/shoppingMall/adminUser/sellerUsers/{seller_id}", who="admin", json={"status": "active"}
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["status"] == "active"

    def test_admin_searches_guests(self, mall):
        resp = mall.call("PATCH", "/shoppingMall/adminUser/guestUsers", who="admin", json={})
        assert resp.status_code == 200
        assert resp.json()["pagination"]["records"] >= 2
