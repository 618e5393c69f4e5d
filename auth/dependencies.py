"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Access tokens are accepted only from the Authorization: Bearer header. The
token's "type" claim names the actor table the sub claim is reloaded from,
so a suspended or deleted actor loses access immediately even while its
token is still unexpired.

try_get_current_actor() is the soft variant (returns None on failure).
get_current_actor() wraps it and raises HTTP 401 if unauthenticated.
require_admin_user() / require_member_user() / require_seller_user() /
require_guest_user() additionally raise HTTP 403 when the caller is a
different kind of actor.

Layer rule: no imports from mall/.
  auth/dependencies.py may import from fastapi (for Depends/HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.models import ADMIN, GUEST, MEMBER, SELLER, Actor, AdminUser, GuestUser, MemberUser, SellerUser
from auth.tokens import decode_token

logger = logging.getLogger("shoppingmall.auth")

# Statuses that may still act. Pending sellers can manage their own listings
# while they wait for approval.
_LIVE_STATUSES = {
    ADMIN: ("active",),
    MEMBER: ("active",),
    SELLER: ("active", "pending"),
}


def _unauthorized(message: str = "Authentication required.") -> HTTPException:
    return HTTPException(status_code=401, detail={"code": "unauthorized", "message": message})


def is_live(kind: str, record) -> bool:
    """True if the actor row may still authenticate."""
    if record is None or record.deleted_at is not None:
        return False
    if kind == GUEST:
        return record.session_end_at is None
    return record.status in _LIVE_STATUSES[kind]


def try_get_current_actor(request: Request) -> Actor | None:
    """Attempt to authenticate the request via its Bearer token.

    Returns the Actor on success, None on any failure. Never raises.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    payload = decode_token(auth_header[7:])
    if payload is None:
        return None

    kind = payload["type"]
    if kind not in (ADMIN, MEMBER, SELLER, GUEST):
        return None
    record = request.app.state.user_store.get(kind, payload["sub"])
    if not is_live(kind, record):
        logger.warning("Token for %s %s rejected: actor gone or inactive", kind, payload["sub"])
        return None
    return Actor(id=record.id, kind=kind, record=record)


def get_current_actor(request: Request) -> Actor:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(actor: Actor = Depends(get_current_actor)): ...
    """
    actor = try_get_current_actor(request)
    if actor is None:
        raise _unauthorized()
    return actor


def _require(request: Request, kind: str, label: str):
    actor = get_current_actor(request)
    if actor.kind != kind:
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": f"{label} access required."},
        )
    return actor.record


def require_admin_user(request: Request) -> AdminUser:
    """Require an administrator. 401 if unauthenticated, 403 for any other actor kind."""
    return _require(request, ADMIN, "Administrator")


def require_member_user(request: Request) -> MemberUser:
    return _require(request, MEMBER, "Member")


def require_seller_user(request: Request) -> SellerUser:
    return _require(request, SELLER, "Seller")


def require_guest_user(request: Request) -> GuestUser:
    return _require(request, GUEST, "Guest")
