"""
auth/models.py -- Domain dataclasses for the four actor kinds.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in mall/models.py -- dataclasses own domain shape; stores and routes do the
work.

Every actor lives in its own table. Tokens carry the actor kind in the
"type" claim so the dependency layer knows which table to reload from.

Layer rule: no imports from api/ or mall/.
"""

from __future__ import annotations

from dataclasses import dataclass

ADMIN = "adminuser"
MEMBER = "memberuser"
SELLER = "selleruser"
GUEST = "guestuser"

ACTOR_KINDS = (ADMIN, MEMBER, SELLER, GUEST)


@dataclass
class AdminUser:
    """A back-office operator. Only admins manage catalog, coupons and other actors."""

    email: str
    password_hash: str
    nickname: str
    full_name: str
    status: str = "active"
    id: str | None = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: str | None = None


@dataclass
class MemberUser:
    """A registered customer. Owns carts, orders, reviews, inquiries and a wallet."""

    email: str
    password_hash: str
    nickname: str
    full_name: str
    phone_number: str | None = None
    status: str = "active"
    id: str | None = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: str | None = None


@dataclass
class SellerUser:
    """A merchant account. Starts "pending" until an admin approves it.

    business_registration_number is unique among live sellers, like email.
    """

    email: str
    password_hash: str
    nickname: str
    full_name: str
    business_registration_number: str
    phone_number: str | None = None
    status: str = "pending"
    id: str | None = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: str | None = None


@dataclass
class GuestUser:
    """An anonymous browsing session. No credentials -- the refresh token is the identity."""

    ip_address: str
    access_url: str
    referrer: str | None = None
    user_agent: str | None = None
    session_start_at: str = ""
    session_end_at: str | None = None
    id: str | None = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: str | None = None


@dataclass
class Actor:
    """The authenticated caller resolved from a bearer token.

    kind is one of ACTOR_KINDS; record is the freshly loaded actor row so
    handlers can read profile fields without a second query.
    """

    id: str
    kind: str
    record: AdminUser | MemberUser | SellerUser | GuestUser | None = None
