"""
mall/models.py -- Domain dataclasses for the shopping mall.

These are pure data containers with zero logic. Ownership checks live in the
route layer, persistence in mall/store.py.

Conventions shared by every class:
  id          -- UUID4 string, None before the record is written
  created_at  -- ISO 8601 UTC string, set by the store on insert
  updated_at  -- ISO 8601 UTC string, refreshed by the store on every update
  deleted_at  -- ISO 8601 UTC string for soft-deleted rows, else None

Field names follow the wire format clients already use, which is why some of
them carry the shopping_mall_ prefix.
"""

from dataclasses import dataclass
from typing import Optional

# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@dataclass
class Channel:
    """A storefront (web, mobile app, partner mall). Sales and orders belong to one."""

    code: str
    name: str
    description: Optional[str] = None
    status: str = "active"
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


@dataclass
class Category:
    code: str
    name: str
    description: Optional[str] = None
    status: str = "active"
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


@dataclass
class CategoryRelation:
    """A parent -> child edge between two categories."""

    parent_shopping_mall_category_id: str
    child_shopping_mall_category_id: str
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


@dataclass
class ChannelCategory:
    """Exposes a category on a channel."""

    shopping_mall_channel_id: str
    shopping_mall_category_id: str
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------


@dataclass
class Sale:
    """A product listing owned by one seller on one channel."""

    shopping_mall_channel_id: str
    shopping_mall_seller_user_id: str
    code: str
    name: str
    price: float
    shopping_mall_section_id: Optional[str] = None
    description: Optional[str] = None
    status: str = "draft"
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


@dataclass
class SaleSnapshot:
    """Immutable copy of a Sale. Carts, orders and reviews point here, never at the live sale."""

    shopping_mall_sale_id: str
    code: str
    name: str
    price: float
    status: str
    description: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""


@dataclass
class SaleUnit:
    shopping_mall_sale_id: str
    code: str
    name: str
    description: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


@dataclass
class SaleUnitOption:
    shopping_mall_sale_unit_id: str
    name: str
    value: str
    additional_price: float = 0
    stock_quantity: int = 0
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class SaleOptionGroup:
    shopping_mall_sale_id: str
    name: str
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class SaleOption:
    shopping_mall_sale_option_group_id: str
    name: str
    additional_price: float = 0
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Inventory:
    """Stock on hand for one option combination of a sale."""

    shopping_mall_sale_id: str
    option_combination_code: str
    stock_quantity: int = 0
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Carts
# ---------------------------------------------------------------------------


@dataclass
class Cart:
    """A cart owned by exactly one member or one guest session."""

    member_user_id: Optional[str] = None
    guest_user_id: Optional[str] = None
    status: str = "active"
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


@dataclass
class CartItem:
    shopping_cart_id: str
    shopping_sale_snapshot_id: str
    quantity: int
    unit_price: float
    status: str = "active"
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


@dataclass
class CartItemOption:
    shopping_cart_item_id: str
    shopping_sale_option_group_id: str
    shopping_sale_option_id: str
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@dataclass
class Order:
    shopping_mall_memberuser_id: str
    shopping_mall_channel_id: str
    order_code: str
    total_price: float
    order_status: str = "pending"  # pending | confirmed | shipped | delivered | cancelled
    payment_status: str = "pending"  # pending | paid | refunded
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


@dataclass
class OrderItem:
    shopping_mall_order_id: str
    shopping_mall_sale_snapshot_id: str
    quantity: int
    price: float
    order_item_status: str = "pending"
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Payment:
    shopping_mall_order_id: str
    payment_method: str
    payment_status: str
    payment_amount: float
    transaction_id: Optional[str] = None
    cancelled_at: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Delivery:
    shopping_mall_order_id: str
    delivery_status: str
    delivery_stage: str
    expected_delivery_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class OrderStatusHistory:
    """Append-only audit entry written whenever an order's status changes."""

    shopping_mall_order_id: str
    new_status: str
    old_status: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""


@dataclass
class OrderAuditLog:
    """Who did what to an order. Written by the store next to the change itself."""

    shopping_mall_order_id: str
    action: str  # order_placed | order_status_changed | payment_status_changed | payment_recorded | payment_updated
    actor_user_id: Optional[str] = None
    action_details: Optional[str] = None
    performed_at: str = ""
    id: Optional[str] = None
    created_at: str = ""


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------


@dataclass
class Coupon:
    coupon_code: str
    coupon_name: str
    discount_type: str  # amount | percentage
    discount_value: float
    start_date: str
    end_date: str
    status: str = "active"
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


@dataclass
class CouponCondition:
    shopping_mall_coupon_id: str
    condition_type: str
    condition_value: str
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class CouponTicket:
    shopping_mall_coupon_id: str
    memberuser_id: str
    ticket_code: str
    valid_from: str
    valid_until: str
    usage_status: str = "unused"  # unused | used | expired
    used_at: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class CouponLog:
    shopping_mall_coupon_ticket_id: str
    log_type: str
    used_by_customer_id: Optional[str] = None
    log_data: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""


# ---------------------------------------------------------------------------
# Reviews, inquiries, comments
# ---------------------------------------------------------------------------


@dataclass
class Review:
    shopping_mall_channel_id: str
    shopping_mall_memberuserid: str
    shopping_mall_sale_snapshot_id: str
    review_title: str
    review_body: str
    rating: int
    shopping_mall_category_id: Optional[str] = None
    is_private: bool = False
    status: str = "pending"
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


@dataclass
class Inquiry:
    shopping_mall_channel_id: str
    shopping_mall_memberuserid: str
    inquiry_title: str
    inquiry_body: str
    is_private: bool = False
    is_answered: bool = False
    status: str = "open"
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


@dataclass
class Comment:
    """A comment on either a review or an inquiry, written by exactly one actor."""

    comment_body: str
    shopping_mall_review_id: Optional[str] = None
    shopping_mall_inquiry_id: Optional[str] = None
    shopping_mall_memberuserid: Optional[str] = None
    shopping_mall_selleruserid: Optional[str] = None
    shopping_mall_adminuserid: Optional[str] = None
    parent_comment_id: Optional[str] = None
    is_private: bool = False
    status: str = "active"
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


@dataclass
class SellerResponse:
    """A seller's official answer to a review or an inquiry (exactly one of the two)."""

    shopping_mall_selleruserid: str
    response_body: str
    shopping_mall_review_id: Optional[str] = None
    shopping_mall_inquiry_id: Optional[str] = None
    is_private: bool = False
    status: str = "published"
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------


@dataclass
class DepositCharge:
    memberuser_id: str
    charge_amount: float
    payment_provider: str
    payment_account: str
    charge_status: str = "pending"  # pending | paid | cancelled
    paid_at: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Deposit:
    """Ledger entry. usable_balance is the member's running balance after this entry."""

    memberuser_id: str
    deposit_amount: float
    usable_balance: float
    deposit_start_at: str
    deposit_end_at: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""


@dataclass
class FavoriteAddress:
    shopping_mall_memberuser_id: str
    title: str
    recipient_name: str
    phone_number: str
    address: str
    zip_code: str
    is_primary: bool = False
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
