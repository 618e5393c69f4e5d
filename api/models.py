"""
API request and response models for the shopping mall REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in mall/models.py and
auth/models.py, which own the internal domain representation. Route handlers
map between the two.

Conventions:
  *Create   -- POST body. Required fields are required.
  *Update   -- PUT body. Every field optional; UpdateModel.changes() returns
               only the fields the client sent. An explicit null clears a
               nullable column and is ignored for a non-nullable one.
  *Search   -- PATCH body for collection search. Extends PageRequest.
  *Response -- built with Model.model_validate(dataclass) (from_attributes).

Separation of concerns: mall/ models = domain truth; api/ models = API contract.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, ClassVar, Generic, Optional, TypeVar

from pydantic import AfterValidator, AliasChoices, BaseModel, ConfigDict, Field

from mall.pagination import Page

T = TypeVar("T")

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so stored ISO strings compare consistently."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]

# Short free-text fields share one length policy.
_Name = Annotated[str, Field(min_length=1, max_length=255)]
_Code = Annotated[str, Field(min_length=1, max_length=100)]
_Body = Annotated[str, Field(min_length=1, max_length=10000)]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SellerStatusEnum(str, Enum):
    pending = "pending"
    active = "active"
    suspended = "suspended"
    rejected = "rejected"


class OrderStatusEnum(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"


class OrderPaymentStatusEnum(str, Enum):
    pending = "pending"
    paid = "paid"
    refunded = "refunded"


class PaymentStatusEnum(str, Enum):
    pending = "pending"
    paid = "paid"
    cancelled = "cancelled"
    refunded = "refunded"


class DiscountTypeEnum(str, Enum):
    amount = "amount"
    percentage = "percentage"


class TicketStatusEnum(str, Enum):
    unused = "unused"
    used = "used"
    expired = "expired"


class ChargeStatusEnum(str, Enum):
    pending = "pending"
    paid = "paid"
    cancelled = "cancelled"


# ---------------------------------------------------------------------------
# Shared bases
# ---------------------------------------------------------------------------


class PageRequest(BaseModel):
    """Common body of every PATCH search endpoint."""

    model_config = ConfigDict(str_strip_whitespace=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort: Optional[str] = Field(default=None, max_length=100)


class UpdateModel(BaseModel):
    """Base for PUT bodies. Subclasses list the columns that accept null."""

    model_config = ConfigDict(str_strip_whitespace=True)

    nullable: ClassVar[frozenset[str]] = frozenset()

    def changes(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude_unset=True)
        return {k: v for k, v in data.items() if v is not None or k in self.nullable}


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)


class Pagination(BaseModel):
    model_config = ConfigDict(frozen=True)

    current: int
    limit: int
    records: int
    pages: int


class PageResponse(BaseModel, Generic[T]):
    """{pagination, data} envelope returned by every search endpoint."""

    pagination: Pagination
    data: list[T]

    @classmethod
    def build(cls, page: Page, item_model: type[BaseModel], convert=None) -> "PageResponse":
        """Factory: map a store Page onto the response envelope.

        convert, when given, turns each domain record into an item_model
        instance (used when the DTO embeds related records); otherwise
        item_model.model_validate is used.
        """
        to_item = convert or item_model.model_validate
        return cls(
            pagination=Pagination(current=page.current, limit=page.limit, records=page.records, pages=page.pages),
            data=[to_item(record) for record in page.items],
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class _JoinBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    # bcrypt ignores bytes past 72
    password: str = Field(min_length=8, max_length=72)
    nickname: _Name
    full_name: _Name


class AdminJoin(_JoinBase):
    """Request body for POST /auth/adminUser/join."""


class MemberJoin(_JoinBase):
    """Request body for POST /auth/memberUser/join."""

    phone_number: Optional[str] = Field(default=None, max_length=50)


class SellerJoin(_JoinBase):
    """Request body for POST /auth/sellerUser/join."""

    business_registration_number: _Code
    phone_number: Optional[str] = Field(default=None, max_length=50)


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=72)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1, max_length=4096)


class GuestJoin(BaseModel):
    """Request body for POST /auth/guestUser/join. IP and user agent come from the request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    access_url: str = Field(min_length=1, max_length=2048)
    referrer: Optional[str] = Field(default=None, max_length=2048)


class TokenResponse(_Record):
    access: str
    refresh: str
    expired_at: str
    refreshable_until: str


class AdminUserResponse(_Record):
    id: str
    email: str
    nickname: str
    full_name: str
    status: str
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class MemberUserResponse(AdminUserResponse):
    phone_number: Optional[str] = None


class SellerUserResponse(AdminUserResponse):
    business_registration_number: str
    phone_number: Optional[str] = None


class GuestUserResponse(_Record):
    id: str
    ip_address: str
    access_url: str
    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    session_start_at: str
    session_end_at: Optional[str] = None
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class AdminAuthorized(AdminUserResponse):
    """Actor DTO plus the issued token pair. Never carries password_hash."""

    token: TokenResponse


class MemberAuthorized(MemberUserResponse):
    token: TokenResponse


class SellerAuthorized(SellerUserResponse):
    token: TokenResponse


class GuestAuthorized(GuestUserResponse):
    token: TokenResponse


class MeResponse(BaseModel):
    """Response for GET /auth/me."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: str


class ActorSearch(PageRequest):
    search: Optional[str] = Field(default=None, max_length=255)
    status: Optional[str] = Field(default=None, max_length=30)


class SellerStatusUpdate(BaseModel):
    """Request body for PUT /shoppingMall/adminUser/sellerUsers/{id}."""

    status: SellerStatusEnum


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ChannelCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    code: _Code
    name: _Name
    description: Optional[str] = Field(default=None, max_length=10000)
    status: str = Field(default="active", max_length=30)


class ChannelUpdate(UpdateModel):
    nullable = frozenset({"description"})

    code: Optional[_Code] = None
    name: Optional[_Name] = None
    description: Optional[str] = Field(default=None, max_length=10000)
    status: Optional[str] = Field(default=None, max_length=30)


class ChannelSearch(PageRequest):
    search: Optional[str] = Field(default=None, max_length=255)
    status: Optional[str] = Field(default=None, max_length=30)


class ChannelResponse(_Record):
    id: str
    code: str
    name: str
    description: Optional[str] = None
    status: str
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class CategoryCreate(ChannelCreate):
    pass


class CategoryUpdate(ChannelUpdate):
    pass


class CategorySearch(ChannelSearch):
    pass


class CategoryResponse(ChannelResponse):
    pass


class CategoryRelationCreate(BaseModel):
    """Request body for POST .../categoryRelations/child. The path category is the parent."""

    child_shopping_mall_category_id: str = Field(min_length=1, max_length=36)


class CategoryRelationUpdate(UpdateModel):
    parent_shopping_mall_category_id: Optional[str] = Field(default=None, max_length=36)
    child_shopping_mall_category_id: Optional[str] = Field(default=None, max_length=36)


class CategoryRelationResponse(_Record):
    id: str
    parent_shopping_mall_category_id: str
    child_shopping_mall_category_id: str
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class ChannelCategoryCreate(BaseModel):
    shopping_mall_channel_id: str = Field(min_length=1, max_length=36)
    shopping_mall_category_id: str = Field(min_length=1, max_length=36)


class ChannelCategoryUpdate(UpdateModel):
    shopping_mall_channel_id: Optional[str] = Field(default=None, max_length=36)
    shopping_mall_category_id: Optional[str] = Field(default=None, max_length=36)


class ChannelCategorySearch(PageRequest):
    shopping_mall_channel_id: Optional[str] = None
    shopping_mall_category_id: Optional[str] = None


class ChannelCategoryResponse(_Record):
    id: str
    shopping_mall_channel_id: str
    shopping_mall_category_id: str
    channel: Optional[ChannelResponse] = None
    category: Optional[CategoryResponse] = None
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------


class SaleCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    shopping_mall_channel_id: str = Field(min_length=1, max_length=36)
    shopping_mall_section_id: Optional[str] = Field(default=None, max_length=36)
    code: _Code
    name: _Name
    description: Optional[str] = Field(default=None, max_length=10000)
    price: float = Field(ge=0)
    status: str = Field(default="draft", max_length=30)


class SaleUpdate(UpdateModel):
    nullable = frozenset({"description", "shopping_mall_section_id"})

    shopping_mall_channel_id: Optional[str] = Field(default=None, max_length=36)
    shopping_mall_section_id: Optional[str] = Field(default=None, max_length=36)
    code: Optional[_Code] = None
    name: Optional[_Name] = None
    description: Optional[str] = Field(default=None, max_length=10000)
    price: Optional[float] = Field(default=None, ge=0)
    status: Optional[str] = Field(default=None, max_length=30)


class SaleSearch(PageRequest):
    limit: int = Field(default=20, ge=1, le=100)
    search: Optional[str] = Field(default=None, max_length=255)
    status: Optional[str] = Field(default=None, max_length=30)
    shopping_mall_channel_id: Optional[str] = None
    shopping_mall_section_id: Optional[str] = None
    # Admin only; ignored on seller routes, where it is always the caller.
    shopping_mall_seller_user_id: Optional[str] = None


class SaleResponse(_Record):
    id: str
    shopping_mall_channel_id: str
    shopping_mall_section_id: Optional[str] = None
    shopping_mall_seller_user_id: str
    code: str
    name: str
    description: Optional[str] = None
    price: float
    status: str
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class SaleSnapshotResponse(_Record):
    id: str
    shopping_mall_sale_id: str
    code: str
    name: str
    description: Optional[str] = None
    price: float
    status: str
    created_at: str


class SaleUnitCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    code: _Code
    name: _Name
    description: Optional[str] = Field(default=None, max_length=10000)


class SaleUnitUpdate(UpdateModel):
    nullable = frozenset({"description"})

    code: Optional[_Code] = None
    name: Optional[_Name] = None
    description: Optional[str] = Field(default=None, max_length=10000)


class SaleUnitSearch(PageRequest):
    search: Optional[str] = Field(default=None, max_length=255)


class SaleUnitResponse(_Record):
    id: str
    shopping_mall_sale_id: str
    code: str
    name: str
    description: Optional[str] = None
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class SaleUnitOptionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: _Name
    value: _Name
    additional_price: float = Field(default=0, ge=0)
    stock_quantity: int = Field(default=0, ge=0)


class SaleUnitOptionUpdate(UpdateModel):
    name: Optional[_Name] = None
    value: Optional[_Name] = None
    additional_price: Optional[float] = Field(default=None, ge=0)
    stock_quantity: Optional[int] = Field(default=None, ge=0)


class SaleUnitOptionSearch(PageRequest):
    search: Optional[str] = Field(default=None, max_length=255)


class SaleUnitOptionResponse(_Record):
    id: str
    shopping_mall_sale_unit_id: str
    name: str
    value: str
    additional_price: float
    stock_quantity: int
    created_at: str
    updated_at: str


class SaleOptionGroupCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: _Name


class SaleOptionGroupResponse(_Record):
    id: str
    shopping_mall_sale_id: str
    name: str
    created_at: str
    updated_at: str


class SaleOptionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: _Name
    additional_price: float = Field(default=0, ge=0)


class SaleOptionResponse(_Record):
    id: str
    shopping_mall_sale_option_group_id: str
    name: str
    additional_price: float
    created_at: str
    updated_at: str


class InventoryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    shopping_mall_sale_id: str = Field(min_length=1, max_length=36)
    option_combination_code: _Code
    stock_quantity: int = Field(default=0, ge=0)


class InventoryUpdate(UpdateModel):
    option_combination_code: Optional[_Code] = None
    stock_quantity: Optional[int] = Field(default=None, ge=0)


class InventorySearch(PageRequest):
    shopping_mall_sale_id: Optional[str] = None
    option_combination_code: Optional[str] = Field(default=None, max_length=100)
    min_quantity: Optional[int] = Field(default=None, ge=0)
    max_quantity: Optional[int] = Field(default=None, ge=0)


class InventoryResponse(_Record):
    id: str
    shopping_mall_sale_id: str
    option_combination_code: str
    stock_quantity: int
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Carts
# ---------------------------------------------------------------------------


class CartCreate(BaseModel):
    status: str = Field(default="active", max_length=30)


class CartSearch(PageRequest):
    status: Optional[str] = Field(default=None, max_length=30)
    # Admin only
    member_user_id: Optional[str] = None
    guest_user_id: Optional[str] = None


class CartResponse(_Record):
    id: str
    member_user_id: Optional[str] = None
    guest_user_id: Optional[str] = None
    status: str
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class CartItemCreate(BaseModel):
    shopping_sale_snapshot_id: str = Field(min_length=1, max_length=36)
    quantity: int = Field(ge=1)
    # Defaults to the snapshot price when omitted.
    unit_price: Optional[float] = Field(default=None, ge=0)


class CartItemUpdate(UpdateModel):
    quantity: Optional[int] = Field(default=None, ge=1)
    unit_price: Optional[float] = Field(default=None, ge=0)
    status: Optional[str] = Field(default=None, max_length=30)


class CartItemSearch(PageRequest):
    status: Optional[str] = Field(default=None, max_length=30)


class CartItemResponse(_Record):
    id: str
    shopping_cart_id: str
    shopping_sale_snapshot_id: str
    quantity: int
    unit_price: float
    status: str
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class CartItemOptionCreate(BaseModel):
    shopping_sale_option_group_id: str = Field(min_length=1, max_length=36)
    shopping_sale_option_id: str = Field(min_length=1, max_length=36)


class CartItemOptionUpdate(UpdateModel):
    shopping_sale_option_group_id: Optional[str] = Field(default=None, max_length=36)
    shopping_sale_option_id: Optional[str] = Field(default=None, max_length=36)


class CartItemOptionResponse(_Record):
    id: str
    shopping_cart_item_id: str
    shopping_sale_option_group_id: str
    shopping_sale_option_id: str
    created_at: str
    updated_at: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderItemInput(BaseModel):
    shopping_mall_sale_snapshot_id: str = Field(min_length=1, max_length=36)
    quantity: int = Field(ge=1)


class OrderCreate(BaseModel):
    """Request body for POST /shoppingMall/memberUser/orders. Prices come from the snapshots."""

    shopping_mall_channel_id: str = Field(min_length=1, max_length=36)
    items: list[OrderItemInput] = Field(min_length=1, max_length=100)


class MemberOrderUpdate(BaseModel):
    """Members can only cancel."""

    order_status: OrderStatusEnum


class AdminOrderUpdate(UpdateModel):
    order_status: Optional[OrderStatusEnum] = None
    payment_status: Optional[OrderPaymentStatusEnum] = None


class OrderSearch(PageRequest):
    order_status: Optional[OrderStatusEnum] = None
    payment_status: Optional[OrderPaymentStatusEnum] = None
    shopping_mall_channel_id: Optional[str] = None
    # Admin only
    shopping_mall_memberuser_id: Optional[str] = None
    created_at_from: Optional[UtcDatetime] = None
    created_at_to: Optional[UtcDatetime] = None


class OrderResponse(_Record):
    id: str
    shopping_mall_memberuser_id: str
    shopping_mall_channel_id: str
    order_code: str
    order_status: str
    payment_status: str
    total_price: float
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class OrderItemUpdate(UpdateModel):
    quantity: Optional[int] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    order_item_status: Optional[str] = Field(default=None, max_length=30)


class OrderItemSearch(PageRequest):
    order_item_status: Optional[str] = Field(default=None, max_length=30)


class OrderItemResponse(_Record):
    id: str
    shopping_mall_order_id: str
    shopping_mall_sale_snapshot_id: str
    quantity: int
    price: float
    order_item_status: str
    created_at: str
    updated_at: str


class PaymentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    payment_method: _Code
    payment_status: PaymentStatusEnum = PaymentStatusEnum.pending
    # Positivity is a business rule (400), not a shape rule (422).
    payment_amount: float
    transaction_id: Optional[str] = Field(default=None, max_length=255)


class PaymentUpdate(UpdateModel):
    nullable = frozenset({"transaction_id"})

    payment_method: Optional[_Code] = None
    payment_status: Optional[PaymentStatusEnum] = None
    payment_amount: Optional[float] = None
    transaction_id: Optional[str] = Field(default=None, max_length=255)


class PaymentSearch(PageRequest):
    payment_status: Optional[PaymentStatusEnum] = None
    payment_method: Optional[str] = Field(default=None, max_length=100)


class PaymentResponse(_Record):
    id: str
    shopping_mall_order_id: str
    payment_method: str
    payment_status: str
    payment_amount: float
    transaction_id: Optional[str] = None
    cancelled_at: Optional[str] = None
    created_at: str
    updated_at: str


class DeliveryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    delivery_status: _Code
    delivery_stage: _Code
    expected_delivery_date: Optional[UtcDatetime] = None
    start_time: Optional[UtcDatetime] = None
    end_time: Optional[UtcDatetime] = None


class DeliveryUpdate(UpdateModel):
    nullable = frozenset({"expected_delivery_date", "start_time", "end_time"})

    delivery_status: Optional[_Code] = None
    delivery_stage: Optional[_Code] = None
    expected_delivery_date: Optional[UtcDatetime] = None
    start_time: Optional[UtcDatetime] = None
    end_time: Optional[UtcDatetime] = None


class DeliverySearch(PageRequest):
    delivery_status: Optional[str] = Field(default=None, max_length=100)


class DeliveryResponse(_Record):
    id: str
    shopping_mall_order_id: str
    delivery_status: str
    delivery_stage: str
    expected_delivery_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    created_at: str
    updated_at: str


class OrderStatusHistorySearch(PageRequest):
    shopping_mall_order_id: Optional[str] = None


class OrderStatusHistoryResponse(_Record):
    id: str
    shopping_mall_order_id: str
    old_status: Optional[str] = None
    new_status: str
    # Stored as created_at; exposed under the name clients know.
    changed_at: str = Field(validation_alias=AliasChoices("created_at", "changed_at"))


class OrderAuditLogSearch(PageRequest):
    shopping_mall_order_id: Optional[str] = None
    actor_user_id: Optional[str] = None
    action: Optional[str] = Field(default=None, max_length=50)
    performed_at_from: Optional[UtcDatetime] = None
    performed_at_to: Optional[UtcDatetime] = None


class OrderAuditLogResponse(_Record):
    id: str
    shopping_mall_order_id: str
    actor_user_id: Optional[str] = None
    action: str
    action_details: Optional[str] = None
    performed_at: str


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------


class CouponCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    coupon_code: _Code
    coupon_name: _Name
    discount_type: DiscountTypeEnum
    discount_value: float = Field(ge=0)
    start_date: UtcDatetime
    end_date: UtcDatetime
    status: str = Field(default="active", max_length=30)


class CouponUpdate(UpdateModel):
    coupon_code: Optional[_Code] = None
    coupon_name: Optional[_Name] = None
    discount_type: Optional[DiscountTypeEnum] = None
    discount_value: Optional[float] = Field(default=None, ge=0)
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    status: Optional[str] = Field(default=None, max_length=30)


class CouponSearch(PageRequest):
    coupon_code: Optional[str] = Field(default=None, max_length=100)
    coupon_name: Optional[str] = Field(default=None, max_length=255)
    status: Optional[str] = Field(default=None, max_length=30)
    start_date_from: Optional[UtcDatetime] = None
    end_date_to: Optional[UtcDatetime] = None


class CouponResponse(_Record):
    id: str
    coupon_code: str
    coupon_name: str
    discount_type: str
    discount_value: float
    start_date: str
    end_date: str
    status: str
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class CouponConditionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    condition_type: _Code
    condition_value: _Name


class CouponConditionUpdate(UpdateModel):
    condition_type: Optional[_Code] = None
    condition_value: Optional[_Name] = None


class CouponConditionSearch(PageRequest):
    condition_type: Optional[str] = Field(default=None, max_length=100)


class CouponConditionResponse(_Record):
    id: str
    shopping_mall_coupon_id: str
    condition_type: str
    condition_value: str
    created_at: str
    updated_at: str


class CouponTicketCreate(BaseModel):
    """Issue a ticket to the calling member. Validity defaults to the coupon's window."""

    shopping_mall_coupon_id: str = Field(min_length=1, max_length=36)
    valid_from: Optional[UtcDatetime] = None
    valid_until: Optional[UtcDatetime] = None


class CouponTicketUpdate(UpdateModel):
    usage_status: Optional[TicketStatusEnum] = None
    valid_until: Optional[UtcDatetime] = None


class CouponTicketSearch(PageRequest):
    usage_status: Optional[TicketStatusEnum] = None
    shopping_mall_coupon_id: Optional[str] = None


class CouponTicketResponse(_Record):
    id: str
    shopping_mall_coupon_id: str
    memberuser_id: str
    ticket_code: str
    valid_from: str
    valid_until: str
    usage_status: str
    used_at: Optional[str] = None
    created_at: str
    updated_at: str


class CouponLogSearch(PageRequest):
    log_type: Optional[str] = Field(default=None, max_length=30)


class CouponLogResponse(_Record):
    id: str
    shopping_mall_coupon_ticket_id: str
    used_by_customer_id: Optional[str] = None
    log_type: str
    log_data: Optional[str] = None
    created_at: str


# ---------------------------------------------------------------------------
# Reviews, inquiries, comments
# ---------------------------------------------------------------------------


class ReviewCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    shopping_mall_sale_snapshot_id: str = Field(min_length=1, max_length=36)
    shopping_mall_category_id: Optional[str] = Field(default=None, max_length=36)
    review_title: _Name
    review_body: _Body
    rating: int = Field(ge=1, le=5)
    is_private: bool = False


class ReviewUpdate(UpdateModel):
    nullable = frozenset({"shopping_mall_category_id"})

    shopping_mall_category_id: Optional[str] = Field(default=None, max_length=36)
    review_title: Optional[_Name] = None
    review_body: Optional[_Body] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    is_private: Optional[bool] = None


class ReviewSearch(PageRequest):
    search: Optional[str] = Field(default=None, max_length=255)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    status: Optional[str] = Field(default=None, max_length=30)
    shopping_mall_sale_snapshot_id: Optional[str] = None


class ReviewResponse(_Record):
    id: str
    shopping_mall_channel_id: str
    shopping_mall_category_id: Optional[str] = None
    shopping_mall_memberuserid: str
    shopping_mall_sale_snapshot_id: str
    review_title: str
    review_body: str
    rating: int
    is_private: bool
    status: str
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class InquiryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    shopping_mall_channel_id: str = Field(min_length=1, max_length=36)
    inquiry_title: _Name
    inquiry_body: _Body
    is_private: bool = False


class InquiryUpdate(UpdateModel):
    inquiry_title: Optional[_Name] = None
    inquiry_body: Optional[_Body] = None
    is_private: Optional[bool] = None
    status: Optional[str] = Field(default=None, max_length=30)


class InquirySearch(PageRequest):
    search: Optional[str] = Field(default=None, max_length=255)
    status: Optional[str] = Field(default=None, max_length=30)
    is_answered: Optional[bool] = None


class InquiryResponse(_Record):
    id: str
    shopping_mall_channel_id: str
    shopping_mall_memberuserid: str
    inquiry_title: str
    inquiry_body: str
    is_private: bool
    is_answered: bool
    status: str
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class CommentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    comment_body: _Body
    parent_comment_id: Optional[str] = Field(default=None, max_length=36)
    is_private: bool = False


class CommentUpdate(UpdateModel):
    comment_body: Optional[_Body] = None
    is_private: Optional[bool] = None
    status: Optional[str] = Field(default=None, max_length=30)


class CommentSearch(PageRequest):
    search: Optional[str] = Field(default=None, max_length=255)


class CommentResponse(_Record):
    id: str
    shopping_mall_review_id: Optional[str] = None
    shopping_mall_inquiry_id: Optional[str] = None
    shopping_mall_memberuserid: Optional[str] = None
    shopping_mall_selleruserid: Optional[str] = None
    shopping_mall_adminuserid: Optional[str] = None
    parent_comment_id: Optional[str] = None
    comment_body: str
    is_private: bool
    status: str
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


class SellerResponseCreate(BaseModel):
    """Answer to exactly one review or inquiry."""

    model_config = ConfigDict(str_strip_whitespace=True)

    shopping_mall_review_id: Optional[str] = Field(default=None, max_length=36)
    shopping_mall_inquiry_id: Optional[str] = Field(default=None, max_length=36)
    response_body: _Body
    is_private: bool = False


class SellerResponseUpdate(UpdateModel):
    response_body: Optional[_Body] = None
    is_private: Optional[bool] = None
    status: Optional[str] = Field(default=None, max_length=30)


class SellerResponseSearch(PageRequest):
    search: Optional[str] = Field(default=None, max_length=255)
    is_private: Optional[bool] = None
    status: Optional[str] = Field(default=None, max_length=30)
    shopping_mall_review_id: Optional[str] = None
    shopping_mall_inquiry_id: Optional[str] = None


class SellerResponseResponse(_Record):
    id: str
    shopping_mall_review_id: Optional[str] = None
    shopping_mall_inquiry_id: Optional[str] = None
    shopping_mall_selleruserid: str
    response_body: str
    is_private: bool
    status: str
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------


class DepositChargeCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    # Positivity is a business rule (400), not a shape rule (422).
    charge_amount: float
    payment_provider: _Code
    payment_account: _Name


class DepositChargeUpdate(UpdateModel):
    charge_status: Optional[ChargeStatusEnum] = None
    charge_amount: Optional[float] = None
    payment_provider: Optional[_Code] = None
    payment_account: Optional[_Name] = None


class DepositChargeSearch(PageRequest):
    charge_status: Optional[ChargeStatusEnum] = None


class DepositChargeResponse(_Record):
    id: str
    memberuser_id: str
    charge_amount: float
    charge_status: str
    payment_provider: str
    payment_account: str
    paid_at: Optional[str] = None
    created_at: str
    updated_at: str


class DepositSearch(PageRequest):
    deposit_amount_min: Optional[float] = None
    deposit_amount_max: Optional[float] = None


class DepositResponse(_Record):
    id: str
    memberuser_id: str
    deposit_amount: float
    usable_balance: float
    deposit_start_at: str
    deposit_end_at: Optional[str] = None
    created_at: str


class FavoriteAddressCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: _Name
    recipient_name: _Name
    phone_number: str = Field(min_length=1, max_length=50)
    address: str = Field(min_length=1, max_length=1000)
    zip_code: str = Field(min_length=1, max_length=20)
    is_primary: bool = False


class FavoriteAddressUpdate(UpdateModel):
    title: Optional[_Name] = None
    recipient_name: Optional[_Name] = None
    phone_number: Optional[str] = Field(default=None, min_length=1, max_length=50)
    address: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    zip_code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    is_primary: Optional[bool] = None


class FavoriteAddressSearch(PageRequest):
    search: Optional[str] = Field(default=None, max_length=255)
    created_at_from: Optional[UtcDatetime] = None
    created_at_to: Optional[UtcDatetime] = None


class FavoriteAddressResponse(_Record):
    id: str
    shopping_mall_memberuser_id: str
    title: str
    recipient_name: str
    phone_number: str
    address: str
    zip_code: str
    is_primary: bool
    created_at: str
    updated_at: str
