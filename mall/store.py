"""
mall/store.py -- SQLAlchemy-backed persistence layer for the shopping mall.

Uses SQLAlchemy Core (not ORM) so the dataclasses in mall/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. MallStore is the repository. Because every
table's columns mirror its dataclass (see mall/schema.py), one generic mapper
(_row_to) translates rows for every entity, and the CRUD surface is shared:

    store.create(Cart(member_user_id=uid))          -> Cart with id/timestamps
    store.get(Cart, cart_id, member_user_id=uid)    -> Cart | None (ownership in WHERE)
    store.update(Cart, cart_id, status="closed")    -> Cart | None
    store.soft_delete(Cart, cart_id)                -> bool
    store.find_page(CartItem, filters={...}, page=2, limit=10, sort="quantity asc")

Multi-table operations (placing an order, recording a payment, using a
coupon ticket, settling a deposit charge) get their own methods and run in a
single transaction.

Security: all queries use bound parameters. Sort columns come from per-route
whitelists via mall.pagination.parse_sort, never from raw input.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import asdict, fields, replace
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, TypeVar

from sqlalchemy import and_, create_engine, event, func, or_, select
from sqlalchemy.engine import Connection, Engine

from core.config import get_settings, now_iso
from mall import schema
from mall.models import (
    CouponLog,
    CouponTicket,
    Deposit,
    DepositCharge,
    FavoriteAddress,
    Order,
    OrderAuditLog,
    OrderItem,
    OrderStatusHistory,
    Payment,
    Sale,
    SaleSnapshot,
)
from mall.pagination import Page, offset, parse_sort

logger = logging.getLogger("shoppingmall.store")

T = TypeVar("T")

# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _new_id() -> str:
    return str(uuid.uuid4())


def _row_to(cls: type[T], row) -> T:
    mapping = row._mapping
    return cls(**{f.name: mapping.get(f.name) for f in fields(cls)})


def _new_order_code() -> str:
    return f"ORD-{datetime.now(timezone.utc):%Y%m%d}-{secrets.token_hex(4).upper()}"


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MallStore:
    """Repository for every shopping mall entity except the actors (see auth/store.py).

    Usage:
        store = MallStore()                                 # SQLite default
        store = MallStore("postgresql://user:pw@host/db")   # PostgreSQL
        channel = store.create(Channel(code="web", name="Web"))
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
        schema.metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Generic CRUD
    # ------------------------------------------------------------------

    def create(self, record: T) -> T:
        """Insert a new record and return it with id and timestamps filled in.

        Raises sqlalchemy.exc.IntegrityError on unique violations. Callers
        translate that into HTTP 409.
        """
        with self.engine.connect() as conn:
            created = self._insert(conn, record)
            conn.commit()
        return created

    def get(self, cls: type[T], record_id: str, *, include_deleted: bool = False, **where: Any) -> Optional[T]:
        """Fetch one record by id.

        Extra keyword arguments become equality conditions, which is how
        ownership is checked in the same query:
            store.get(Cart, cart_id, member_user_id=member.id)
        Soft-deleted rows are invisible unless include_deleted=True.
        """
        return self.find_one(cls, include_deleted=include_deleted, id=record_id, **where)

    def find_one(self, cls: type[T], *, include_deleted: bool = False, **where: Any) -> Optional[T]:
        table = schema.TABLES[cls]
        stmt = select(table).where(*self._conditions(table, where, include_deleted))
        with self.engine.connect() as conn:
            row = conn.execute(stmt.limit(1)).fetchone()
        return _row_to(cls, row) if row is not None else None

    def list(self, cls: type[T], *, include_deleted: bool = False, **where: Any) -> list[T]:
        """Return every matching record, oldest first. For small child collections only."""
        table = schema.TABLES[cls]
        stmt = select(table).where(*self._conditions(table, where, include_deleted)).order_by(table.c.created_at)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to(cls, r) for r in rows]

    def update(self, cls: type[T], record_id: str, **values: Any) -> Optional[T]:
        """Write the given columns and return the refreshed record (None if not found).

        Only keys that are real columns are written; id and created_at are
        never overwritten. A value of None is written as NULL, so callers pass
        only the fields the client actually sent (model_dump(exclude_unset=True)).
        """
        table = schema.TABLES[cls]
        with self.engine.connect() as conn:
            ok = self._update(conn, table, record_id, values)
            conn.commit()
        if not ok:
            return None
        return self.get(cls, record_id, include_deleted=True)

    def soft_delete(self, cls: type, record_id: str) -> bool:
        """Stamp deleted_at. Returns False if the record is missing or already deleted."""
        table = schema.TABLES[cls]
        now = now_iso()
        values = {"deleted_at": now}
        if "updated_at" in table.c:
            values["updated_at"] = now
        with self.engine.connect() as conn:
            result = conn.execute(
                table.update().where(and_(table.c.id == record_id, table.c.deleted_at.is_(None))).values(**values)
            )
            conn.commit()
        return result.rowcount > 0

    def delete(self, cls: type, record_id: str) -> bool:
        """Permanently remove a record. Returns True if a row was deleted."""
        table = schema.TABLES[cls]
        with self.engine.connect() as conn:
            result = conn.execute(table.delete().where(table.c.id == record_id))
            conn.commit()
        return result.rowcount > 0

    def find_page(
        self,
        cls: type[T],
        *,
        page: int = 1,
        limit: int = 10,
        sort: Optional[str] = None,
        sortable: Iterable[str] = ("created_at", "updated_at"),
        filters: Optional[dict[str, Any]] = None,
        search: Optional[tuple[tuple[str, ...], Optional[str]]] = None,
        ranges: Optional[dict[str, tuple[Any, Any]]] = None,
        include_deleted: bool = False,
    ) -> Page[T]:
        """Run the find-many + count pair behind every search endpoint.

        filters  -- column -> value equality; None values are skipped, lists become IN
        search   -- ((col, col, ...), term): OR of case-insensitive "contains"
        ranges   -- column -> (lower, upper) inclusive bounds; either side may be None
        sort     -- client sort string, validated against sortable
        """
        table = schema.TABLES[cls]
        conditions = self._conditions(table, filters or {}, include_deleted)

        if search is not None:
            columns, term = search
            if term:
                conditions.append(or_(*(table.c[c].contains(term, autoescape=True) for c in columns)))

        for column, (lower, upper) in (ranges or {}).items():
            if lower is not None:
                conditions.append(table.c[column] >= lower)
            if upper is not None:
                conditions.append(table.c[column] <= upper)

        field_name, direction = parse_sort(sort, tuple(sortable))
        order_col = table.c[field_name]
        order_by = order_col.asc() if direction == "asc" else order_col.desc()

        stmt = (
            select(table)
            .where(*conditions)
            .order_by(order_by, table.c.id)
            .offset(offset(page, limit))
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(table).where(*conditions)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
            total = conn.execute(count_stmt).scalar() or 0
        return Page(items=[_row_to(cls, r) for r in rows], records=total, current=page, limit=limit)

    # ------------------------------------------------------------------
    # Sales
    # ------------------------------------------------------------------

    def capture_snapshot(self, sale: Sale) -> SaleSnapshot:
        """Freeze the sale's current commercial fields into a new snapshot."""
        return self.create(
            SaleSnapshot(
                shopping_mall_sale_id=sale.id,
                code=sale.code,
                name=sale.name,
                price=sale.price,
                status=sale.status,
                description=sale.description,
            )
        )

    def sale_for_snapshot(self, snapshot_id: str) -> Optional[Sale]:
        """Resolve the live sale behind a snapshot (including soft-deleted sales)."""
        snap = self.get(SaleSnapshot, snapshot_id)
        if snap is None:
            return None
        return self.get(Sale, snap.shopping_mall_sale_id, include_deleted=True)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def place_order(self, order: Order, items: list[OrderItem], actor_id: Optional[str] = None) -> Order:
        """Insert an order, its items, the initial status history row and an audit entry atomically."""
        order = replace(order, order_code=order.order_code or _new_order_code())
        with self.engine.begin() as conn:
            created = self._insert(conn, order)
            for item in items:
                self._insert(conn, replace(item, shopping_mall_order_id=created.id))
            self._insert(
                conn,
                OrderStatusHistory(shopping_mall_order_id=created.id, old_status=None, new_status=created.order_status),
            )
            self._audit(
                conn,
                created.id,
                actor_id or created.shopping_mall_memberuser_id,
                "order_placed",
                f"{len(items)} items, total {created.total_price:.2f}",
            )
        logger.info("Order %s placed (%d items, total=%.2f)", created.order_code, len(items), created.total_price)
        return created

    def change_order(self, order_id: str, actor_id: Optional[str] = None, **values: Any) -> Optional[Order]:
        """Update an order; an order_status change appends an OrderStatusHistory row.

        Status and payment status changes are also written to the audit log.
        """
        with self.engine.begin() as conn:
            current = self._order_row(conn, order_id)
            if current is None:
                return None
            self._update(conn, schema.orders, order_id, values)
            new_status = values.get("order_status")
            if new_status is not None and new_status != current.order_status:
                self._insert(
                    conn,
                    OrderStatusHistory(
                        shopping_mall_order_id=order_id,
                        old_status=current.order_status,
                        new_status=new_status,
                    ),
                )
                self._audit(
                    conn, order_id, actor_id, "order_status_changed", f"{current.order_status} -> {new_status}"
                )
                logger.info("Order %s status %s -> %s", current.order_code, current.order_status, new_status)
            new_payment_status = values.get("payment_status")
            if new_payment_status is not None and new_payment_status != current.payment_status:
                self._audit(
                    conn,
                    order_id,
                    actor_id,
                    "payment_status_changed",
                    f"{current.payment_status} -> {new_payment_status}",
                )
        return self.get(Order, order_id, include_deleted=True)

    def record_payment(self, payment: Payment, actor_id: Optional[str] = None) -> Payment:
        """Insert a payment. A "paid" payment marks its order paid in the same transaction."""
        with self.engine.begin() as conn:
            created = self._insert(conn, payment)
            self._audit(
                conn,
                created.shopping_mall_order_id,
                actor_id,
                "payment_recorded",
                f"{created.payment_method} {created.payment_amount:.2f} ({created.payment_status})",
            )
            if created.payment_status == "paid":
                self._mark_order_paid(conn, created.shopping_mall_order_id, actor_id)
        return created

    def change_payment(self, payment: Payment, actor_id: Optional[str] = None, **values: Any) -> Payment:
        """Update a payment. Moving it to "paid" marks its order paid in the same transaction."""
        becomes_paid = values.get("payment_status") == "paid" and payment.payment_status != "paid"
        with self.engine.begin() as conn:
            self._update(conn, schema.payments, payment.id, values)
            new_status = values.get("payment_status")
            if new_status is not None and new_status != payment.payment_status:
                self._audit(
                    conn,
                    payment.shopping_mall_order_id,
                    actor_id,
                    "payment_updated",
                    f"payment {payment.id}: {payment.payment_status} -> {new_status}",
                )
            if becomes_paid:
                self._mark_order_paid(conn, payment.shopping_mall_order_id, actor_id)
        return self.get(Payment, payment.id)

    def _mark_order_paid(self, conn: Connection, order_id: str, actor_id: Optional[str]) -> None:
        current = self._order_row(conn, order_id)
        if current is None or current.payment_status == "paid":
            return
        self._update(conn, schema.orders, order_id, {"payment_status": "paid"})
        self._audit(conn, order_id, actor_id, "payment_status_changed", f"{current.payment_status} -> paid")
        logger.info("Order %s marked paid", current.order_code)

    @staticmethod
    def _order_row(conn: Connection, order_id: str) -> Optional[Order]:
        row = conn.execute(select(schema.orders).where(schema.orders.c.id == order_id)).fetchone()
        return _row_to(Order, row) if row is not None else None

    def _audit(
        self, conn: Connection, order_id: str, actor_id: Optional[str], action: str, details: Optional[str] = None
    ) -> None:
        self._insert(
            conn,
            OrderAuditLog(
                shopping_mall_order_id=order_id,
                actor_user_id=actor_id,
                action=action,
                action_details=details,
                performed_at=now_iso(),
            ),
        )

    def member_order_ids(self, member_id: str) -> list[str]:
        return [order.id for order in self.list(Order, include_deleted=True, shopping_mall_memberuser_id=member_id)]

    def seller_owns_order_item(self, item: OrderItem, seller_id: str) -> bool:
        """True if the item's snapshot was taken from one of the seller's sales."""
        sale = self.sale_for_snapshot(item.shopping_mall_sale_snapshot_id)
        return sale is not None and sale.shopping_mall_seller_user_id == seller_id

    def seller_owns_order(self, order_id: str, seller_id: str) -> bool:
        """True if at least one item of the order comes from one of the seller's sales.

        Resolved with a single join: order_items -> sale_snapshots -> sales.
        """
        oi, snap, sale = schema.order_items, schema.sale_snapshots, schema.sales
        stmt = (
            select(func.count())
            .select_from(
                oi.join(snap, snap.c.id == oi.c.shopping_mall_sale_snapshot_id).join(
                    sale, sale.c.id == snap.c.shopping_mall_sale_id
                )
            )
            .where(oi.c.shopping_mall_order_id == order_id, sale.c.shopping_mall_seller_user_id == seller_id)
        )
        with self.engine.connect() as conn:
            return (conn.execute(stmt).scalar() or 0) > 0

    def purchased_order(self, member_id: str, snapshot_id: str) -> Optional[Order]:
        """Most recent confirmed + paid order of the member that contains the snapshot."""
        o, oi = schema.orders, schema.order_items
        stmt = (
            select(o)
            .select_from(o.join(oi, oi.c.shopping_mall_order_id == o.c.id))
            .where(
                o.c.shopping_mall_memberuser_id == member_id,
                o.c.order_status == "confirmed",
                o.c.payment_status == "paid",
                o.c.deleted_at.is_(None),
                oi.c.shopping_mall_sale_snapshot_id == snapshot_id,
            )
            .order_by(o.c.created_at.desc())
            .limit(1)
        )
        with self.engine.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return _row_to(Order, row) if row is not None else None

    # ------------------------------------------------------------------
    # Coupons
    # ------------------------------------------------------------------

    def update_coupon_ticket(self, ticket: CouponTicket, **values: Any) -> CouponTicket:
        """Update a ticket; moving it to "used" stamps used_at and appends a CouponLog."""
        becomes_used = values.get("usage_status") == "used" and ticket.usage_status != "used"
        if becomes_used and not values.get("used_at"):
            values["used_at"] = now_iso()
        with self.engine.begin() as conn:
            self._update(conn, schema.coupon_tickets, ticket.id, values)
            if becomes_used:
                self._insert(
                    conn,
                    CouponLog(
                        shopping_mall_coupon_ticket_id=ticket.id,
                        used_by_customer_id=ticket.memberuser_id,
                        log_type="used",
                        log_data=f"ticket {ticket.ticket_code} used",
                    ),
                )
        if becomes_used:
            logger.info("Coupon ticket %s used by member %s", ticket.ticket_code, ticket.memberuser_id)
        return self.get(CouponTicket, ticket.id)

    def issue_coupon_ticket(self, ticket: CouponTicket) -> CouponTicket:
        """Insert a ticket and its "issued" log row together."""
        with self.engine.begin() as conn:
            created = self._insert(conn, ticket)
            self._insert(
                conn,
                CouponLog(
                    shopping_mall_coupon_ticket_id=created.id,
                    used_by_customer_id=created.memberuser_id,
                    log_type="issued",
                ),
            )
        return created

    # ------------------------------------------------------------------
    # Wallet
    # ------------------------------------------------------------------

    def deposit_balance(self, member_id: str, conn: Optional[Connection] = None) -> float:
        """Sum of all ledger entries for the member."""
        stmt = select(func.coalesce(func.sum(schema.deposits.c.deposit_amount), 0)).where(
            schema.deposits.c.memberuser_id == member_id
        )
        if conn is not None:
            return float(conn.execute(stmt).scalar() or 0)
        with self.engine.connect() as own:
            return float(own.execute(stmt).scalar() or 0)

    def update_deposit_charge(self, charge: DepositCharge, **values: Any) -> DepositCharge:
        """Update a charge; moving it to "paid" stamps paid_at and credits the ledger."""
        becomes_paid = values.get("charge_status") == "paid" and charge.charge_status != "paid"
        if becomes_paid and not values.get("paid_at"):
            values["paid_at"] = now_iso()
        with self.engine.begin() as conn:
            self._update(conn, schema.deposit_charges, charge.id, values)
            if becomes_paid:
                amount = float(values.get("charge_amount", charge.charge_amount))
                balance = self.deposit_balance(charge.memberuser_id, conn) + amount
                self._insert(
                    conn,
                    Deposit(
                        memberuser_id=charge.memberuser_id,
                        deposit_amount=amount,
                        usable_balance=balance,
                        deposit_start_at=values["paid_at"],
                    ),
                )
        if becomes_paid:
            logger.info("Deposit charge %s settled for member %s", charge.id, charge.memberuser_id)
        return self.get(DepositCharge, charge.id)

    def make_primary_address(self, address: FavoriteAddress) -> None:
        """Clear is_primary on the member's other addresses."""
        table = schema.favorite_addresses
        with self.engine.connect() as conn:
            conn.execute(
                table.update()
                .where(
                    table.c.shopping_mall_memberuser_id == address.shopping_mall_memberuser_id,
                    table.c.id != address.id,
                )
                .values(is_primary=False)
            )
            conn.commit()

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _conditions(table, where: dict[str, Any], include_deleted: bool) -> list:
        conditions = []
        for column, value in where.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple, set, frozenset)):
                conditions.append(table.c[column].in_(list(value)))
            else:
                conditions.append(table.c[column] == value)
        if not include_deleted and "deleted_at" in table.c:
            conditions.append(table.c.deleted_at.is_(None))
        return conditions

    @staticmethod
    def _insert(conn: Connection, record: T) -> T:
        table = schema.TABLES[type(record)]
        now = now_iso()
        stamps: dict[str, Any] = {"id": record.id or _new_id(), "created_at": now}
        if "updated_at" in table.c:
            stamps["updated_at"] = now
        created = replace(record, **stamps)
        conn.execute(table.insert().values(**{k: v for k, v in asdict(created).items() if k in table.c}))
        return created

    @staticmethod
    def _update(conn: Connection, table, record_id: str, values: dict[str, Any]) -> bool:
        clean = {k: v for k, v in values.items() if k in table.c and k not in ("id", "created_at")}
        if "updated_at" in table.c:
            clean["updated_at"] = now_iso()
        if not clean:
            return conn.execute(select(table.c.id).where(table.c.id == record_id)).fetchone() is not None
        result = conn.execute(table.update().where(table.c.id == record_id).values(**clean))
        return result.rowcount > 0
