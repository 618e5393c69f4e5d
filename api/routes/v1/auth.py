"""
api/routes/v1/auth.py -- Actor registration, login and token refresh.

Routes:
  POST /api/v1/auth/adminUser/join       -- register an administrator
  POST /api/v1/auth/adminUser/login      -- email/password login
  POST /api/v1/auth/adminUser/refresh    -- exchange a refresh token
  POST /api/v1/auth/memberUser/join|login|refresh
  POST /api/v1/auth/sellerUser/join|login|refresh   -- sellers start "pending"
  POST /api/v1/auth/guestUser/join       -- open an anonymous session
  POST /api/v1/auth/guestUser/refresh
  GET  /api/v1/auth/me                   -- actor kind + id of the caller

Every successful join/login/refresh answers with the actor DTO plus
token {access, refresh, expired_at, refreshable_until}. password_hash is
never serialized.

Security:
  join/login/refresh are rate-limited per IP (Settings.login_rate_limit).
  authenticate() provides timing equalization -- use it, never inline.
  Login failures all return the same 401 bad_credentials.
  Cache-Control: no-store on every response that carries tokens.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.exc import IntegrityError

from api.errors import conflict
from api.limiter import limiter
from api.models import (
    AdminAuthorized,
    AdminJoin,
    ErrorDetail,
    GuestAuthorized,
    GuestJoin,
    LoginRequest,
    MeResponse,
    MemberAuthorized,
    MemberJoin,
    RefreshRequest,
    SellerAuthorized,
    SellerJoin,
    TokenResponse,
)
from auth.dependencies import get_current_actor, is_live
from auth.models import ADMIN, GUEST, MEMBER, SELLER, Actor, AdminUser, GuestUser, MemberUser, SellerUser
from auth.store import UserStore
from auth.tokens import REFRESH, authenticate, decode_token, hash_password, issue_tokens
from core.config import get_settings

logger = logging.getLogger("shoppingmall.auth")

_LIMIT = get_settings().login_rate_limit

# Auth policy: everything here is public except GET /auth/me.
router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _bad_credentials() -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=ErrorDetail(code="bad_credentials", message="Invalid email or password.").model_dump(),
        headers={"Cache-Control": "no-store"},
    )


def _invalid_refresh() -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=ErrorDetail(code="unauthorized", message="Invalid or expired refresh token.").model_dump(),
        headers={"Cache-Control": "no-store"},
    )


def _authorized(model, kind: str, record, response: Response):
    """Attach a fresh token pair to the actor DTO."""
    response.headers["Cache-Control"] = "no-store"
    token = TokenResponse.model_validate(issue_tokens(record.id, kind))
    return model.model_validate({**_fields(record), "token": token})


def _fields(record) -> dict:
    data = dict(vars(record))
    data.pop("password_hash", None)
    return data


def _create(store: UserStore, record):
    try:
        return store.create(record)
    except IntegrityError:
        raise conflict("An account with this email already exists.")


def _login(request: Request, kind: str, body: LoginRequest):
    store: UserStore = request.app.state.user_store
    user = authenticate(store, kind, body.email, body.password)
    if user is None:
        logger.warning("Failed %s login from %s", kind, request.client.host if request.client else "unknown")
        raise _bad_credentials()
    logger.info("%s %s logged in", kind, user.id)
    return user


def _refresh(request: Request, kind: str, body: RefreshRequest):
    payload = decode_token(body.refresh_token, token_type=REFRESH)
    if payload is None or payload["type"] != kind:
        raise _invalid_refresh()
    record = request.app.state.user_store.get(kind, payload["sub"])
    if not is_live(kind, record):
        raise _invalid_refresh()
    return record


# ---------------------------------------------------------------------------
# Administrators
# ---------------------------------------------------------------------------


@limiter.limit(_LIMIT)
@router.post("/auth/adminUser/join", response_model=AdminAuthorized, status_code=201)
def join_admin(request: Request, response: Response, body: AdminJoin) -> AdminAuthorized:
    """Register an administrator account (status "active")."""
    store: UserStore = request.app.state.user_store
    if store.get_by_email(ADMIN, body.email) is not None:
        raise conflict("An account with this email already exists.")
    admin = _create(
        store,
        AdminUser(
            email=body.email,
            password_hash=hash_password(body.password),
            nickname=body.nickname,
            full_name=body.full_name,
        ),
    )
    logger.info("Administrator %s registered", admin.id)
    return _authorized(AdminAuthorized, ADMIN, admin, response)


@limiter.limit(_LIMIT)
@router.post("/auth/adminUser/login", response_model=AdminAuthorized)
def login_admin(request: Request, response: Response, body: LoginRequest) -> AdminAuthorized:
    admin = _login(request, ADMIN, body)
    return _authorized(AdminAuthorized, ADMIN, admin, response)


@limiter.limit(_LIMIT)
@router.post("/auth/adminUser/refresh", response_model=AdminAuthorized)
def refresh_admin(request: Request, response: Response, body: RefreshRequest) -> AdminAuthorized:
    admin = _refresh(request, ADMIN, body)
    return _authorized(AdminAuthorized, ADMIN, admin, response)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@limiter.limit(_LIMIT)
@router.post("/auth/memberUser/join", response_model=MemberAuthorized, status_code=201)
def join_member(request: Request, response: Response, body: MemberJoin) -> MemberAuthorized:
    """Register a customer account (status "active")."""
    store: UserStore = request.app.state.user_store
    if store.get_by_email(MEMBER, body.email) is not None:
        raise conflict("An account with this email already exists.")
    member = _create(
        store,
        MemberUser(
            email=body.email,
            password_hash=hash_password(body.password),
            nickname=body.nickname,
            full_name=body.full_name,
            phone_number=body.phone_number,
        ),
    )
    logger.info("Member %s registered", member.id)
    return _authorized(MemberAuthorized, MEMBER, member, response)


@limiter.limit(_LIMIT)
@router.post("/auth/memberUser/login", response_model=MemberAuthorized)
def login_member(request: Request, response: Response, body: LoginRequest) -> MemberAuthorized:
    member = _login(request, MEMBER, body)
    return _authorized(MemberAuthorized, MEMBER, member, response)


@limiter.limit(_LIMIT)
@router.post("/auth/memberUser/refresh", response_model=MemberAuthorized)
def refresh_member(request: Request, response: Response, body: RefreshRequest) -> MemberAuthorized:
    member = _refresh(request, MEMBER, body)
    return _authorized(MemberAuthorized, MEMBER, member, response)


# ---------------------------------------------------------------------------
# Sellers
# ---------------------------------------------------------------------------


@limiter.limit(_LIMIT)
@router.post("/auth/sellerUser/join", response_model=SellerAuthorized, status_code=201)
def join_seller(request: Request, response: Response, body: SellerJoin) -> SellerAuthorized:
    """Register a merchant account.

    The account always starts "pending"; an administrator approves it via
    PUT /shoppingMall/adminUser/sellerUsers/{id}. Duplicate email or business
    registration number is a 409.
    """
    store: UserStore = request.app.state.user_store
    if store.get_by_email(SELLER, body.email) is not None:
        raise conflict("An account with this email already exists.")
    seller = _create(
        store,
        SellerUser(
            email=body.email,
            password_hash=hash_password(body.password),
            nickname=body.nickname,
            full_name=body.full_name,
            business_registration_number=body.business_registration_number,
            phone_number=body.phone_number,
            status="pending",
        ),
    )
    logger.info("Seller %s registered (pending approval)", seller.id)
    return _authorized(SellerAuthorized, SELLER, seller, response)


@limiter.limit(_LIMIT)
@router.post("/auth/sellerUser/login", response_model=SellerAuthorized)
def login_seller(request: Request, response: Response, body: LoginRequest) -> SellerAuthorized:
    seller = _login(request, SELLER, body)
    return _authorized(SellerAuthorized, SELLER, seller, response)


@limiter.limit(_LIMIT)
@router.post("/auth/sellerUser/refresh", response_model=SellerAuthorized)
def refresh_seller(request: Request, response: Response, body: RefreshRequest) -> SellerAuthorized:
    seller = _refresh(request, SELLER, body)
    return _authorized(SellerAuthorized, SELLER, seller, response)


# ---------------------------------------------------------------------------
# Guests
# ---------------------------------------------------------------------------


@limiter.limit(_LIMIT)
@router.post("/auth/guestUser/join", response_model=GuestAuthorized, status_code=201)
def join_guest(request: Request, response: Response, body: GuestJoin) -> GuestAuthorized:
    """Open an anonymous session. IP address and user agent are taken from the request."""
    store: UserStore = request.app.state.user_store
    guest = store.create(
        GuestUser(
            ip_address=request.client.host if request.client else "unknown",
            access_url=body.access_url,
            referrer=body.referrer,
            user_agent=request.headers.get("User-Agent"),
        )
    )
    return _authorized(GuestAuthorized, GUEST, guest, response)


@limiter.limit(_LIMIT)
@router.post("/auth/guestUser/refresh", response_model=GuestAuthorized)
def refresh_guest(request: Request, response: Response, body: RefreshRequest) -> GuestAuthorized:
    guest = _refresh(request, GUEST, body)
    return _authorized(GuestAuthorized, GUEST, guest, response)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
async def me(actor: Actor = Depends(get_current_actor)) -> MeResponse:
    """Return the actor kind and id behind the bearer token."""
    return MeResponse(id=actor.id, type=actor.kind)
