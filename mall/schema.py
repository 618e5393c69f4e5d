"""
mall/schema.py -- SQLAlchemy Core table definitions for the shopping mall.

Column names match the dataclass field names in mall/models.py one to one.
That is what lets the store map rows to dataclasses generically instead of
carrying a hand-written mapper per entity.

Timestamps are ISO 8601 strings (String(40)), ids are UUID4 strings
(String(36)). Only uniqueness is enforced in SQL; referential checks happen
in the route layer, where a missing parent becomes a 404 with a useful code.
"""

from sqlalchemy import Boolean, Column, Float, Integer, MetaData, String, Table, Text

from mall import models

metadata = MetaData()


def _id() -> Column:
    return Column("id", String(36), primary_key=True)


def _ref(name: str, nullable: bool = False) -> Column:
    return Column(name, String(36), nullable=nullable, index=True)


def _timestamps(updated: bool = True, deleted: bool = False) -> list[Column]:
    cols = [Column("created_at", String(40), nullable=False)]
    if updated:
        cols.append(Column("updated_at", String(40), nullable=False))
    if deleted:
        cols.append(Column("deleted_at", String(40)))
    return cols


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

channels = Table(
    "channels",
    metadata,
    _id(),
    Column("code", String(100), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("description", Text),
    Column("status", String(30), nullable=False),
    *_timestamps(deleted=True),
)

categories = Table(
    "categories",
    metadata,
    _id(),
    Column("code", String(100), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("description", Text),
    Column("status", String(30), nullable=False),
    *_timestamps(deleted=True),
)

category_relations = Table(
    "category_relations",
    metadata,
    _id(),
    _ref("parent_shopping_mall_category_id"),
    _ref("child_shopping_mall_category_id"),
    *_timestamps(deleted=True),
)

channel_categories = Table(
    "channel_categories",
    metadata,
    _id(),
    _ref("shopping_mall_channel_id"),
    _ref("shopping_mall_category_id"),
    *_timestamps(deleted=True),
)

# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------

sales = Table(
    "sales",
    metadata,
    _id(),
    _ref("shopping_mall_channel_id"),
    _ref("shopping_mall_section_id", nullable=True),
    _ref("shopping_mall_seller_user_id"),
    Column("code", String(100), nullable=False, unique=True),
    Column("status", String(30), nullable=False),
    Column("name", String(255), nullable=False),
    Column("description", Text),
    Column("price", Float, nullable=False),
    *_timestamps(deleted=True),
)

sale_snapshots = Table(
    "sale_snapshots",
    metadata,
    _id(),
    _ref("shopping_mall_sale_id"),
    Column("code", String(100), nullable=False),
    Column("status", String(30), nullable=False),
    Column("name", String(255), nullable=False),
    Column("description", Text),
    Column("price", Float, nullable=False),
    *_timestamps(updated=False),
)

sale_units = Table(
    "sale_units",
    metadata,
    _id(),
    _ref("shopping_mall_sale_id"),
    Column("code", String(100), nullable=False),
    Column("name", String(255), nullable=False),
    Column("description", Text),
    *_timestamps(deleted=True),
)

sale_unit_options = Table(
    "sale_unit_options",
    metadata,
    _id(),
    _ref("shopping_mall_sale_unit_id"),
    Column("name", String(255), nullable=False),
    Column("value", String(255), nullable=False),
    Column("additional_price", Float, nullable=False, server_default="0"),
    Column("stock_quantity", Integer, nullable=False, server_default="0"),
    *_timestamps(),
)

sale_option_groups = Table(
    "sale_option_groups",
    metadata,
    _id(),
    _ref("shopping_mall_sale_id"),
    Column("name", String(255), nullable=False),
    *_timestamps(),
)

sale_options = Table(
    "sale_options",
    metadata,
    _id(),
    _ref("shopping_mall_sale_option_group_id"),
    Column("name", String(255), nullable=False),
    Column("additional_price", Float, nullable=False, server_default="0"),
    *_timestamps(),
)

inventory = Table(
    "inventory",
    metadata,
    _id(),
    _ref("shopping_mall_sale_id"),
    Column("option_combination_code", String(100), nullable=False),
    Column("stock_quantity", Integer, nullable=False, server_default="0"),
    *_timestamps(deleted=True),
)

# ---------------------------------------------------------------------------
# Carts
# ---------------------------------------------------------------------------

carts = Table(
    "carts",
    metadata,
    _id(),
    _ref("member_user_id", nullable=True),
    _ref("guest_user_id", nullable=True),
    Column("status", String(30), nullable=False),
    *_timestamps(deleted=True),
)

cart_items = Table(
    "cart_items",
    metadata,
    _id(),
    _ref("shopping_cart_id"),
    _ref("shopping_sale_snapshot_id"),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", Float, nullable=False),
    Column("status", String(30), nullable=False),
    *_timestamps(deleted=True),
)

cart_item_options = Table(
    "cart_item_options",
    metadata,
    _id(),
    _ref("shopping_cart_item_id"),
    _ref("shopping_sale_option_group_id"),
    _ref("shopping_sale_option_id"),
    *_timestamps(),
)

# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

orders = Table(
    "orders",
    metadata,
    _id(),
    _ref("shopping_mall_memberuser_id"),
    _ref("shopping_mall_channel_id"),
    Column("order_code", String(40), nullable=False, unique=True),
    Column("order_status", String(30), nullable=False),
    Column("payment_status", String(30), nullable=False),
    Column("total_price", Float, nullable=False),
    *_timestamps(deleted=True),
)

order_items = Table(
    "order_items",
    metadata,
    _id(),
    _ref("shopping_mall_order_id"),
    _ref("shopping_mall_sale_snapshot_id"),
    Column("quantity", Integer, nullable=False),
    Column("price", Float, nullable=False),
    Column("order_item_status", String(30), nullable=False),
    *_timestamps(),
)

payments = Table(
    "payments",
    metadata,
    _id(),
    _ref("shopping_mall_order_id"),
    Column("payment_method", String(50), nullable=False),
    Column("payment_status", String(30), nullable=False),
    Column("payment_amount", Float, nullable=False),
    Column("transaction_id", String(255)),
    Column("cancelled_at", String(40)),
    *_timestamps(),
)

deliveries = Table(
    "deliveries",
    metadata,
    _id(),
    _ref("shopping_mall_order_id"),
    Column("delivery_status", String(30), nullable=False),
    Column("delivery_stage", String(50), nullable=False),
    Column("expected_delivery_date", String(40)),
    Column("start_time", String(40)),
    Column("end_time", String(40)),
    *_timestamps(),
)

order_status_histories = Table(
    "order_status_histories",
    metadata,
    _id(),
    _ref("shopping_mall_order_id"),
    Column("old_status", String(30)),
    Column("new_status", String(30), nullable=False),
    *_timestamps(updated=False),
)

order_audit_logs = Table(
    "order_audit_logs",
    metadata,
    _id(),
    _ref("shopping_mall_order_id"),
    _ref("actor_user_id", nullable=True),
    Column("action", String(50), nullable=False),
    Column("action_details", Text),
    Column("performed_at", String(40), nullable=False),
    *_timestamps(updated=False),
)

# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------

coupons = Table(
    "coupons",
    metadata,
    _id(),
    Column("coupon_code", String(100), nullable=False, unique=True),
    Column("coupon_name", String(255), nullable=False),
    Column("discount_type", String(20), nullable=False),
    Column("discount_value", Float, nullable=False),
    Column("status", String(30), nullable=False),
    Column("start_date", String(40), nullable=False),
    Column("end_date", String(40), nullable=False),
    *_timestamps(deleted=True),
)

coupon_conditions = Table(
    "coupon_conditions",
    metadata,
    _id(),
    _ref("shopping_mall_coupon_id"),
    Column("condition_type", String(50), nullable=False),
    Column("condition_value", String(255), nullable=False),
    *_timestamps(),
)

coupon_tickets = Table(
    "coupon_tickets",
    metadata,
    _id(),
    _ref("shopping_mall_coupon_id"),
    _ref("memberuser_id"),
    Column("ticket_code", String(100), nullable=False, unique=True),
    Column("valid_from", String(40), nullable=False),
    Column("valid_until", String(40), nullable=False),
    Column("usage_status", String(20), nullable=False),
    Column("used_at", String(40)),
    *_timestamps(),
)

coupon_logs = Table(
    "coupon_logs",
    metadata,
    _id(),
    _ref("shopping_mall_coupon_ticket_id"),
    _ref("used_by_customer_id", nullable=True),
    Column("log_type", String(30), nullable=False),
    Column("log_data", Text),
    *_timestamps(updated=False),
)

# ---------------------------------------------------------------------------
# Reviews, inquiries, comments
# ---------------------------------------------------------------------------

reviews = Table(
    "reviews",
    metadata,
    _id(),
    _ref("shopping_mall_channel_id"),
    _ref("shopping_mall_category_id", nullable=True),
    _ref("shopping_mall_memberuserid"),
    _ref("shopping_mall_sale_snapshot_id"),
    Column("review_title", String(255), nullable=False),
    Column("review_body", Text, nullable=False),
    Column("rating", Integer, nullable=False),
    Column("is_private", Boolean, nullable=False, default=False),
    Column("status", String(30), nullable=False),
    *_timestamps(deleted=True),
)

inquiries = Table(
    "inquiries",
    metadata,
    _id(),
    _ref("shopping_mall_channel_id"),
    _ref("shopping_mall_memberuserid"),
    Column("inquiry_title", String(255), nullable=False),
    Column("inquiry_body", Text, nullable=False),
    Column("is_private", Boolean, nullable=False, default=False),
    Column("is_answered", Boolean, nullable=False, default=False),
    Column("status", String(30), nullable=False),
    *_timestamps(deleted=True),
)

comments = Table(
    "comments",
    metadata,
    _id(),
    _ref("shopping_mall_review_id", nullable=True),
    _ref("shopping_mall_inquiry_id", nullable=True),
    _ref("shopping_mall_memberuserid", nullable=True),
    _ref("shopping_mall_selleruserid", nullable=True),
    _ref("shopping_mall_adminuserid", nullable=True),
    _ref("parent_comment_id", nullable=True),
    Column("comment_body", Text, nullable=False),
    Column("is_private", Boolean, nullable=False, default=False),
    Column("status", String(30), nullable=False),
    *_timestamps(deleted=True),
)

seller_responses = Table(
    "seller_responses",
    metadata,
    _id(),
    _ref("shopping_mall_review_id", nullable=True),
    _ref("shopping_mall_inquiry_id", nullable=True),
    _ref("shopping_mall_selleruserid"),
    Column("response_body", Text, nullable=False),
    Column("is_private", Boolean, nullable=False, default=False),
    Column("status", String(30), nullable=False),
    *_timestamps(deleted=True),
)

# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------

deposit_charges = Table(
    "deposit_charges",
    metadata,
    _id(),
    _ref("memberuser_id"),
    Column("charge_amount", Float, nullable=False),
    Column("charge_status", String(20), nullable=False),
    Column("payment_provider", String(100), nullable=False),
    Column("payment_account", String(255), nullable=False),
    Column("paid_at", String(40)),
    *_timestamps(),
)

deposits = Table(
    "deposits",
    metadata,
    _id(),
    _ref("memberuser_id"),
    Column("deposit_amount", Float, nullable=False),
    Column("usable_balance", Float, nullable=False),
    Column("deposit_start_at", String(40), nullable=False),
    Column("deposit_end_at", String(40)),
    *_timestamps(updated=False),
)

favorite_addresses = Table(
    "favorite_addresses",
    metadata,
    _id(),
    _ref("shopping_mall_memberuser_id"),
    Column("title", String(100), nullable=False),
    Column("recipient_name", String(255), nullable=False),
    Column("phone_number", String(50), nullable=False),
    Column("address", Text, nullable=False),
    Column("zip_code", String(20), nullable=False),
    Column("is_primary", Boolean, nullable=False, default=False),
    *_timestamps(),
)

# ---------------------------------------------------------------------------
# Dataclass -> table registry (drives the generic row mapper in store.py)
# ---------------------------------------------------------------------------

TABLES: dict[type, Table] = {
    models.Channel: channels,
    models.Category: categories,
    models.CategoryRelation: category_relations,
    models.ChannelCategory: channel_categories,
    models.Sale: sales,
    models.SaleSnapshot: sale_snapshots,
    models.SaleUnit: sale_units,
    models.SaleUnitOption: sale_unit_options,
    models.SaleOptionGroup: sale_option_groups,
    models.SaleOption: sale_options,
    models.Inventory: inventory,
    models.Cart: carts,
    models.CartItem: cart_items,
    models.CartItemOption: cart_item_options,
    models.Order: orders,
    models.OrderItem: order_items,
    models.Payment: payments,
    models.Delivery: deliveries,
    models.OrderStatusHistory: order_status_histories,
    models.OrderAuditLog: order_audit_logs,
    models.Coupon: coupons,
    models.CouponCondition: coupon_conditions,
    models.CouponTicket: coupon_tickets,
    models.CouponLog: coupon_logs,
    models.Review: reviews,
    models.Inquiry: inquiries,
    models.Comment: comments,
    models.SellerResponse: seller_responses,
    models.DepositCharge: deposit_charges,
    models.Deposit: deposits,
    models.FavoriteAddress: favorite_addresses,
}
