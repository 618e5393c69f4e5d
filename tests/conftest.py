"""
tests/conftest.py -- Shared test fixtures for the shopping mall integration tests.

This module provides:
  - make_test_stores(): isolated in-memory DBs for the mall and user stores
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - mall: a MallHarness (TestClient + stores + bearer tokens per actor)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

DEBUG and LOGIN_RATE_LIMIT must be set before any api/auth/core import:
get_settings() is cached on first use and the auth routes read the rate
limit at import time.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Optional

# CRITICAL: set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ["LOGIN_RATE_LIMIT"] = "1000/minute"

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import ADMIN, GUEST, MEMBER, SELLER, AdminUser, GuestUser, MemberUser, SellerUser
from auth.store import UserStore
from auth.tokens import hash_password, issue_tokens
from mall.models import Channel, Order, OrderItem, Sale, SaleSnapshot
from mall.store import MallStore

PASSWORD = "correct-horse-battery"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _db_url(name: str) -> str:
    return f"sqlite:///file:test_mall_{name}?mode=memory&cache=shared&uri=true"


def make_test_stores(db_suffix: str) -> tuple[MallStore, UserStore]:
    """Create both stores on one isolated named shared-memory database.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    url = _db_url(db_suffix)
    return MallStore(db_url=url), UserStore(db_url=url)


def _patch_lifespan(mall_store: MallStore, user_store: UserStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.mall = mall_store
        app.state.user_store = user_store
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Harness
# ---------------------------------------------------------------------------


@dataclass
class MallHarness:
    """Everything a route test needs: the client, both stores and one token per actor.

    Actor names: admin, member, member2, seller, seller2, guest, guest2.
    """

    client: TestClient
    store: MallStore
    users: UserStore
    tokens: dict[str, str] = field(default_factory=dict)
    actors: dict[str, Any] = field(default_factory=dict)

    def headers(self, who: Optional[str]) -> dict[str, str]:
        if who is None:
            return {}
        return {"Authorization": f"Bearer {self.tokens[who]}"}

    def call(self, method: str, path: str, who: Optional[str] = None, **kwargs):
        """Send a request to /api/v1{path} as the named actor (anonymous when who is None)."""
        headers = {**self.headers(who), **kwargs.pop("headers", {})}
        return self.client.request(method, f"/api/v1{path}", headers=headers, **kwargs)

    def id_of(self, who: str) -> str:
        return self.actors[who].id

    # -- data seeding, straight through the stores --------------------------

    def channel(self) -> Channel:
        return self.store.create(Channel(code=f"ch-{uuid.uuid4().hex[:8]}", name="Web store"))

    def sale(self, seller: str = "seller", price: float = 100.0, channel: Optional[Channel] = None):
        """Create a sale with its first snapshot. Returns (channel, sale, snapshot)."""
        channel = channel or self.channel()
        sale = self.store.create(
            Sale(
                shopping_mall_channel_id=channel.id,
                shopping_mall_seller_user_id=self.id_of(seller),
                code=f"sale-{uuid.uuid4().hex[:8]}",
                name="Linen shirt",
                price=price,
                status="active",
            )
        )
        return channel, sale, self.store.capture_snapshot(sale)

    def order(
        self,
        snapshot: SaleSnapshot,
        channel: Channel,
        member: str = "member",
        quantity: int = 1,
        **status: str,
    ) -> Order:
        """Place an order for one snapshot, optionally moving it to the given statuses."""
        order = self.store.place_order(
            Order(
                shopping_mall_memberuser_id=self.id_of(member),
                shopping_mall_channel_id=channel.id,
                order_code="",
                total_price=snapshot.price * quantity,
            ),
            [
                OrderItem(
                    shopping_mall_order_id="",
                    shopping_mall_sale_snapshot_id=snapshot.id,
                    quantity=quantity,
                    price=snapshot.price,
                )
            ],
        )
        if status:
            order = self.store.change_order(order.id, **status)
        return order


def _seed_actors(users: UserStore, suffix: str) -> dict[str, Any]:
    hashed = hash_password(PASSWORD)
    return {
        "admin": users.create(
            AdminUser(email=f"admin-{suffix}@mall.test", password_hash=hashed, nickname="admin", full_name="Ada Admin")
        ),
        "member": users.create(
            MemberUser(email=f"member-{suffix}@mall.test", password_hash=hashed, nickname="mem", full_name="Max Member")
        ),
        "member2": users.create(
            MemberUser(email=f"member2-{suffix}@mall.test", password_hash=hashed, nickname="mem2", full_name="Mia Member")
        ),
        "seller": users.create(
            SellerUser(
                email=f"seller-{suffix}@mall.test",
                password_hash=hashed,
                nickname="shop",
                full_name="Sam Seller",
                business_registration_number=f"BRN-{suffix}-1",
                status="active",
            )
        ),
        "seller2": users.create(
            SellerUser(
                email=f"seller2-{suffix}@mall.test",
                password_hash=hashed,
                nickname="shop2",
                full_name="Sue Seller",
                business_registration_number=f"BRN-{suffix}-2",
                status="active",
            )
        ),
        "guest": users.create(GuestUser(ip_address="127.0.0.1", access_url="https://mall.test/")),
        "guest2": users.create(GuestUser(ip_address="127.0.0.2", access_url="https://mall.test/")),
    }


_KIND_OF = {
    "admin": ADMIN,
    "member": MEMBER,
    "member2": MEMBER,
    "seller": SELLER,
    "seller2": SELLER,
    "guest": GUEST,
    "guest2": GUEST,
}


# ---------------------------------------------------------------------------
# Module-scoped fixture -- one TestClient and one database per test module
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def mall(request) -> Generator[MallHarness, None, None]:
    """Yield a MallHarness bound to a fresh database for the calling module.

    Actors are written straight to the user store and tokens are issued with
    auth.tokens.issue_tokens, so route tests don't depend on the join
    endpoints (those have their own tests).
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    mall_store, user_store = make_test_stores(suffix)
    actors = _seed_actors(user_store, suffix)
    tokens = {who: issue_tokens(actor.id, _KIND_OF[who]).access for who, actor in actors.items()}

    app.router.lifespan_context = _patch_lifespan(mall_store, user_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield MallHarness(client=client, store=mall_store, users=user_store, tokens=tokens, actors=actors)

    mall_store.close()
    user_store.close()
