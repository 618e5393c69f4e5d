"""
auth/store.py -- SQLAlchemy Core persistence layer for the four actor kinds.

Pattern: Repository + Data Mapper (same as mall/store.py).
UserStore is the repository; _row_to_actor is the mapper. Route and
dependency code never touches SQL directly.

Each actor kind has its own table. Methods take the actor kind
(auth.models.ADMIN / MEMBER / SELLER / GUEST) and resolve the table and
dataclass from _KINDS, so there is one code path for all four.

Security:
  All queries use bound parameters. No f-strings in SQL.
  email is UNIQUE per actor table; business_registration_number is UNIQUE
  for sellers. Violations surface as IntegrityError, routes map them to 409.

Layer rule: no imports from api/. The only mall/ import is the shared
pagination helper, which has no dependencies of its own.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, fields, replace
from typing import Any, Optional, Union

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, func, or_, select
from sqlalchemy.engine import Engine

from auth.models import ADMIN, GUEST, MEMBER, SELLER, AdminUser, GuestUser, MemberUser, SellerUser
from core.config import get_settings, now_iso
from mall.pagination import Page, offset, parse_sort

ActorRecord = Union[AdminUser, MemberUser, SellerUser, GuestUser]

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()


def _credential_columns() -> list[Column]:
    return [
        Column("email", String(255), nullable=False, unique=True),
        Column("password_hash", Text, nullable=False),
        Column("nickname", String(100), nullable=False),
        Column("full_name", String(100), nullable=False),
    ]


def _timestamp_columns() -> list[Column]:
    return [
        Column("created_at", String(32), nullable=False),
        Column("updated_at", String(32), nullable=False),
        Column("deleted_at", String(32)),
    ]


_admin_users = Table(
    "admin_users",
    _metadata,
    Column("id", String(36), primary_key=True),
    *_credential_columns(),
    Column("status", String(30), nullable=False, server_default="active"),
    *_timestamp_columns(),
)

_member_users = Table(
    "member_users",
    _metadata,
    Column("id", String(36), primary_key=True),
    *_credential_columns(),
    Column("phone_number", String(50)),
    Column("status", String(30), nullable=False, server_default="active"),
    *_timestamp_columns(),
)

_seller_users = Table(
    "seller_users",
    _metadata,
    Column("id", String(36), primary_key=True),
    *_credential_columns(),
    Column("business_registration_number", String(100), nullable=False, unique=True),
    Column("phone_number", String(50)),
    Column("status", String(30), nullable=False, server_default="pending"),
    *_timestamp_columns(),
)

_guest_users = Table(
    "guest_users",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("ip_address", String(64), nullable=False),
    Column("access_url", Text, nullable=False),
    Column("referrer", Text),
    Column("user_agent", Text),
    Column("session_start_at", String(32), nullable=False),
    Column("session_end_at", String(32)),
    *_timestamp_columns(),
)

_KINDS: dict[str, tuple[Table, type]] = {
    ADMIN: (_admin_users, AdminUser),
    MEMBER: (_member_users, MemberUser),
    SELLER: (_seller_users, SellerUser),
    GUEST: (_guest_users, GuestUser),
}

# Columns the admin "search" filter matches against, per kind.
SEARCH_COLUMNS: dict[str, tuple[str, ...]] = {
    ADMIN: ("email", "nickname", "full_name"),
    MEMBER: ("email", "nickname", "full_name"),
    SELLER: ("email", "nickname", "full_name"),
    GUEST: ("ip_address", "access_url", "user_agent"),
}


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _kind_of(record: ActorRecord) -> str:
    for kind, (_, cls) in _KINDS.items():
        if isinstance(record, cls):
            return kind
    raise TypeError(f"not an actor record: {type(record).__name__}")


def _row_to_actor(cls: type, row) -> ActorRecord:
    mapping = row._mapping
    return cls(**{f.name: mapping.get(f.name) for f in fields(cls)})


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for AdminUser, MemberUser, SellerUser and GuestUser.

    Usage:
        store = UserStore()
        member = store.create(MemberUser(email="a@b.c", password_hash=hash_password("pw"), ...))
        member = store.get_by_email(MEMBER, "a@b.c")
        store.close()
    """

    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def create(self, record: ActorRecord) -> ActorRecord:
        """Insert a new actor and return it with id and timestamps assigned.

        Raises sqlalchemy.exc.IntegrityError on duplicate email (or duplicate
        business registration number for sellers).
        """
        table, _ = _KINDS[_kind_of(record)]
        now = now_iso()
        created = replace(record, id=record.id or str(uuid.uuid4()), created_at=now, updated_at=now)
        if isinstance(created, GuestUser) and not created.session_start_at:
            created = replace(created, session_start_at=now)
        with self.engine.connect() as conn:
            conn.execute(table.insert().values(**asdict(created)))
            conn.commit()
        return created

    def get(self, kind: str, actor_id: str, include_deleted: bool = False) -> ActorRecord | None:
        """Look up an actor by id. Soft-deleted rows are hidden unless asked for."""
        table, cls = _KINDS[kind]
        stmt = select(table).where(table.c.id == actor_id)
        if not include_deleted:
            stmt = stmt.where(table.c.deleted_at.is_(None))
        with self.engine.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return _row_to_actor(cls, row) if row is not None else None

    def get_by_email(self, kind: str, email: str) -> AdminUser | MemberUser | SellerUser | None:
        """Look up a live credentialed actor by exact email. Not valid for guests."""
        table, cls = _KINDS[kind]
        with self.engine.connect() as conn:
            row = conn.execute(
                select(table).where(table.c.email == email, table.c.deleted_at.is_(None))
            ).fetchone()
        return _row_to_actor(cls, row) if row is not None else None

    def update(self, kind: str, actor_id: str, **values: Any) -> ActorRecord | None:
        """Update mutable columns and return the refreshed record (None if not found)."""
        table, _ = _KINDS[kind]
        clean = {k: v for k, v in values.items() if k in table.c and k not in ("id", "created_at")}
        clean["updated_at"] = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(table.update().where(table.c.id == actor_id).values(**clean))
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get(kind, actor_id, include_deleted=True)

    def find_page(
        self,
        kind: str,
        *,
        page: int = 1,
        limit: int = 10,
        sort: Optional[str] = None,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Page[ActorRecord]:
        """Page through live actors of one kind for the admin search endpoints."""
        table, cls = _KINDS[kind]
        conditions = [table.c.deleted_at.is_(None)]
        if search:
            conditions.append(or_(*(table.c[c].contains(search, autoescape=True) for c in SEARCH_COLUMNS[kind])))
        if status and "status" in table.c:
            conditions.append(table.c.status == status)

        sortable = ("created_at", "updated_at") + (
            ("email", "nickname", "full_name", "status") if kind != GUEST else ("session_start_at", "ip_address")
        )
        field_name, direction = parse_sort(sort, sortable)
        order_col = table.c[field_name]

        stmt = (
            select(table)
            .where(*conditions)
            .order_by(order_col.asc() if direction == "asc" else order_col.desc(), table.c.id)
            .offset(offset(page, limit))
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
            total = conn.execute(select(func.count()).select_from(table).where(*conditions)).scalar() or 0
        return Page(items=[_row_to_actor(cls, r) for r in rows], records=total, current=page, limit=limit)

    def close(self) -> None:
        self.engine.dispose()
