"""
auth/tokens.py -- JWT issuance/verification and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Every login issues a pair of tokens signed with
       SECRET_KEY:
         access  -- short lived (ACCESS_TOKEN_EXPIRE_SECONDS, 1 h by default)
         refresh -- long lived (REFRESH_TOKEN_EXPIRE_SECONDS, 7 d by default)
       Both carry sub (actor id), type (actor kind), token_type and iss.
       Verification returns None on any failure -- the dependency layer turns
       that into a 401. A refresh token is never accepted as an access token
       and vice versa.

  Passwords: bcrypt used directly. The _DUMMY_HASH constant enables timing
       equalization in authenticate() so response time does not reveal
       whether an email is registered.

  SECRET_KEY: sourced from core.config.get_settings(). Settings validates the
       key at startup (generated in debug, required otherwise, >= 32 chars).

Layer rule: no imports from api/ or mall/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import AdminUser, MemberUser, SellerUser
    from auth.store import UserStore

logger = logging.getLogger("shoppingmall.auth")

_ALGORITHM = "HS256"

ACCESS = "access"
REFRESH = "refresh"


# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt ignores bytes past 72. The API layer caps passwords at 72
    characters of input so nothing a client sends is silently dropped.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the DB
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("shoppingmall_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


@dataclass
class TokenPair:
    """The token block of every authorized response."""

    access: str
    refresh: str
    expired_at: str
    refreshable_until: str


def _encode(actor_id: str, kind: str, token_type: str, expires: datetime) -> str:
    settings = get_settings()
    payload = {
        "sub": actor_id,
        "type": kind,
        "token_type": token_type,
        "iss": settings.jwt_issuer,
        "exp": expires,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=_ALGORITHM)


def issue_tokens(actor_id: str, kind: str) -> TokenPair:
    """Sign a fresh access + refresh pair for the actor.

    Args:
        actor_id: UUID of the actor row (becomes the sub claim).
        kind:     One of auth.models.ACTOR_KINDS (becomes the type claim).
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    access_exp = now + timedelta(seconds=settings.access_token_expire_seconds)
    refresh_exp = now + timedelta(seconds=settings.refresh_token_expire_seconds)
    return TokenPair(
        access=_encode(actor_id, kind, ACCESS, access_exp),
        refresh=_encode(actor_id, kind, REFRESH, refresh_exp),
        expired_at=access_exp.isoformat(),
        refreshable_until=refresh_exp.isoformat(),
    )


def decode_token(token: str, token_type: str = ACCESS) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure.

    Checks signature, expiry, issuer, the token_type claim and that sub/type
    are present. Returning None (rather than raising) keeps callers simple.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[_ALGORITHM],
            issuer=settings.jwt_issuer,
        )
    except JWTError:
        return None
    if payload.get("token_type") != token_type:
        return None
    if not payload.get("sub") or not payload.get("type"):
        return None
    return payload


# ---------------------------------------------------------------------------
# Credential authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate(
    store: UserStore, kind: str, email: str, password: str
) -> AdminUser | MemberUser | SellerUser | None:
    """Authenticate an email/password login for one actor kind with timing equalization.

    Always runs bcrypt whether or not the account exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as a real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Pending sellers may log in; every other non-active status is refused.
    Returns the actor record on success, None on any failure.
    """
    user = store.get_by_email(kind, email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.password_hash):
        return None
    allowed = ("active", "pending") if kind == "selleruser" else ("active",)
    if user.status not in allowed:
        logger.warning("Login refused for %s %s: status=%s", kind, user.id, user.status)
        return None
    return user
