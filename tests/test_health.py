"""
tests/test_health.py -- Integration tests for GET /api/v1/health and the app shell.

Covers:
  - 200 response with status and version, no authentication required
  - Unknown routes and bad bodies come back in the error envelope
  - API docs require a bearer token
"""

from __future__ import annotations


def test_health_returns_ok(mall):
    resp = mall.call("GET", "/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["version"]


def test_health_ignores_bad_token(mall):
    """Health is public; a garbage Authorization header must not matter."""
    resp = mall.client.get("/api/v1/health", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 200


def test_validation_error_envelope(mall):
    resp = mall.call("PATCH", "/shoppingMall/adminUser/channels", who="admin", json={"page": 0})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "validation_error"


def test_docs_require_authentication(mall):
    assert mall.client.get("/docs").status_code == 401
    assert mall.client.get("/docs", headers=mall.headers("member")).status_code == 200
