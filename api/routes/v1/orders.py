"""
api/routes/v1/orders.py -- Orders, order items, payments, deliveries and status history.

Member routes (/api/v1/shoppingMall/memberUser):
  POST  /orders                      -- place an order from snapshots
  PATCH /orders                      GET /orders/{orderId}
  PUT   /orders/{orderId}            -- cancel a pending order
  PATCH /orders/{orderId}/items      GET /orders/{orderId}/items/{itemId}
  POST  /orders/{orderId}/payments   PATCH (search)
  GET|PUT /orders/{orderId}/payments/{paymentId}
  PATCH /orders/{orderId}/deliveries
  PATCH /orderAuditLogs              -- audit trail of own orders

Seller routes (/api/v1/shoppingMall/sellerUser), orders that contain one of
the seller's sales:
  PATCH /orders/{orderId}/items      GET|PUT /orders/{orderId}/items/{itemId}
  POST  /orders/{orderId}/payments   PATCH (search)   PUT /payments/{paymentId}
  POST  /orders/{orderId}/deliveries PATCH (search)
  GET|PUT /orders/{orderId}/deliveries/{deliveryId}

Admin routes (/api/v1/shoppingMall/adminUser):
  PATCH /orders   GET|PUT /orders/{orderId}
  PATCH /orderStatusHistories
  PATCH /orders/{orderId}/payments   GET|PUT /orders/{orderId}/payments/{paymentId}

Rules:
  Prices are copied from the snapshots; total = sum(price * quantity).
  Every order_status change appends an OrderStatusHistory row (store-side).
  payment_amount must be positive (400 invalid_amount).
  A payment moving to "cancelled" stamps cancelled_at; one moving to "paid"
  marks the order payment_status "paid" in the same transaction.
  Placing an order, status changes and payment writes append an
  OrderAuditLog row naming the acting user.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request

from api.errors import bad_request, forbidden, not_found
from api.models import (
    AdminOrderUpdate,
    DeliveryCreate,
    DeliveryResponse,
    DeliverySearch,
    DeliveryUpdate,
    MemberOrderUpdate,
    OrderAuditLogResponse,
    OrderAuditLogSearch,
    OrderCreate,
    OrderItemResponse,
    OrderItemSearch,
    OrderItemUpdate,
    OrderResponse,
    OrderSearch,
    OrderStatusHistoryResponse,
    OrderStatusHistorySearch,
    PageResponse,
    PaymentCreate,
    PaymentResponse,
    PaymentSearch,
    PaymentUpdate,
)
from auth.dependencies import require_admin_user, require_member_user, require_seller_user
from auth.models import AdminUser, MemberUser, SellerUser
from core.config import now_iso
from mall.models import Channel, Delivery, Order, OrderAuditLog, OrderItem, OrderStatusHistory, Payment, SaleSnapshot
from mall.store import MallStore

logger = logging.getLogger("shoppingmall.api")

member_router = APIRouter(prefix="/shoppingMall/memberUser")
seller_router = APIRouter(prefix="/shoppingMall/sellerUser")
admin_router = APIRouter(prefix="/shoppingMall/adminUser", dependencies=[Depends(require_admin_user)])

_ORDER_SORT = ("created_at", "updated_at", "total_price", "order_status", "payment_status", "order_code")
_ITEM_SORT = ("created_at", "updated_at", "quantity", "price", "order_item_status")
_PAYMENT_SORT = ("created_at", "updated_at", "payment_amount", "payment_status")
_DELIVERY_SORT = ("created_at", "updated_at", "delivery_status", "expected_delivery_date")


# ---------------------------------------------------------------------------
# Ownership helpers
# ---------------------------------------------------------------------------


def _order(store: MallStore, order_id: str) -> Order:
    order = store.get(Order, order_id)
    if order is None:
        raise not_found("order")
    return order


def _member_order(store: MallStore, order_id: str, member: MemberUser) -> Order:
    order = _order(store, order_id)
    if order.shopping_mall_memberuser_id != member.id:
        raise forbidden("This order belongs to another member.")
    return order


def _seller_order(store: MallStore, order_id: str, seller: SellerUser) -> Order:
    order = _order(store, order_id)
    if not store.seller_owns_order(order_id, seller.id):
        raise forbidden("This order contains none of your sales.")
    return order


def _order_item(store: MallStore, order_id: str, item_id: str) -> OrderItem:
    item = store.get(OrderItem, item_id, shopping_mall_order_id=order_id)
    if item is None:
        raise not_found("order_item")
    return item


def _payment(store: MallStore, order_id: str, payment_id: str) -> Payment:
    payment = store.get(Payment, payment_id, shopping_mall_order_id=order_id)
    if payment is None:
        raise not_found("payment")
    return payment


def _delivery(store: MallStore, order_id: str, delivery_id: str) -> Delivery:
    delivery = store.get(Delivery, delivery_id, shopping_mall_order_id=order_id)
    if delivery is None:
        raise not_found("delivery")
    return delivery


# ---------------------------------------------------------------------------
# Shared handlers
# ---------------------------------------------------------------------------


def _search_orders(store: MallStore, body: OrderSearch, member_id: Optional[str]):
    page = store.find_page(
        Order,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_ORDER_SORT,
        filters={
            "shopping_mall_memberuser_id": member_id,
            "shopping_mall_channel_id": body.shopping_mall_channel_id,
            "order_status": body.order_status.value if body.order_status else None,
            "payment_status": body.payment_status.value if body.payment_status else None,
        },
        ranges={
            "created_at": (
                body.created_at_from.isoformat() if body.created_at_from else None,
                body.created_at_to.isoformat() if body.created_at_to else None,
            )
        },
    )
    return PageResponse[OrderResponse].build(page, OrderResponse)


def _search_items(store: MallStore, order_id: str, body: OrderItemSearch):
    page = store.find_page(
        OrderItem,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_ITEM_SORT,
        filters={"shopping_mall_order_id": order_id, "order_item_status": body.order_item_status},
    )
    return PageResponse[OrderItemResponse].build(page, OrderItemResponse)


def _search_payments(store: MallStore, order_id: str, body: PaymentSearch):
    page = store.find_page(
        Payment,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_PAYMENT_SORT,
        filters={
            "shopping_mall_order_id": order_id,
            "payment_status": body.payment_status.value if body.payment_status else None,
            "payment_method": body.payment_method,
        },
    )
    return PageResponse[PaymentResponse].build(page, PaymentResponse)


def _search_deliveries(store: MallStore, order_id: str, body: DeliverySearch):
    page = store.find_page(
        Delivery,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_DELIVERY_SORT,
        filters={"shopping_mall_order_id": order_id, "delivery_status": body.delivery_status},
    )
    return PageResponse[DeliveryResponse].build(page, DeliveryResponse)


def _check_amount(amount: Optional[float]) -> None:
    if amount is not None and amount <= 0:
        raise bad_request("invalid_amount", "payment_amount must be greater than zero.")


def _payment_values(values: dict[str, Any], previous: Optional[str]) -> dict[str, Any]:
    """Stamp cancelled_at when the payment moves to "cancelled"."""
    if values.get("payment_status") == "cancelled" and previous != "cancelled":
        values["cancelled_at"] = now_iso()
    return values


def _create_payment(store: MallStore, order_id: str, body: PaymentCreate, actor_id: str) -> PaymentResponse:
    _check_amount(body.payment_amount)
    values = _payment_values(body.model_dump(mode="json"), None)
    payment = store.record_payment(Payment(shopping_mall_order_id=order_id, **values), actor_id=actor_id)
    return PaymentResponse.model_validate(payment)


def _update_payment(store: MallStore, payment: Payment, body: PaymentUpdate, actor_id: str) -> PaymentResponse:
    changes = body.changes()
    _check_amount(changes.get("payment_amount"))
    changes = _payment_values(changes, payment.payment_status)
    return PaymentResponse.model_validate(store.change_payment(payment, actor_id=actor_id, **changes))


# ---------------------------------------------------------------------------
# Member -- orders
# ---------------------------------------------------------------------------


@member_router.post("/orders", response_model=OrderResponse, status_code=201)
def create_order(request: Request, body: OrderCreate, member: MemberUser = Depends(require_member_user)):
    """Place an order. Item prices are copied from the referenced snapshots."""
    store: MallStore = request.app.state.mall
    if store.get(Channel, body.shopping_mall_channel_id) is None:
        raise not_found("channel")

    items: list[OrderItem] = []
    total = 0.0
    for line in body.items:
        snapshot = store.get(SaleSnapshot, line.shopping_mall_sale_snapshot_id)
        if snapshot is None:
            raise not_found("sale_snapshot")
        items.append(
            OrderItem(
                shopping_mall_order_id="",
                shopping_mall_sale_snapshot_id=snapshot.id,
                quantity=line.quantity,
                price=snapshot.price,
            )
        )
        total += snapshot.price * line.quantity

    order = store.place_order(
        Order(
            shopping_mall_memberuser_id=member.id,
            shopping_mall_channel_id=body.shopping_mall_channel_id,
            order_code="",
            total_price=total,
        ),
        items,
        actor_id=member.id,
    )
    return OrderResponse.model_validate(order)


@member_router.patch("/orders", response_model=PageResponse[OrderResponse])
def search_member_orders(request: Request, body: OrderSearch, member: MemberUser = Depends(require_member_user)):
    return _search_orders(request.app.state.mall, body, member.id)


@member_router.get("/orders/{order_id}", response_model=OrderResponse)
def get_member_order(request: Request, order_id: str, member: MemberUser = Depends(require_member_user)):
    return OrderResponse.model_validate(_member_order(request.app.state.mall, order_id, member))


@member_router.put("/orders/{order_id}", response_model=OrderResponse)
def cancel_member_order(
    request: Request, order_id: str, body: MemberOrderUpdate, member: MemberUser = Depends(require_member_user)
):
    """Members may only cancel, and only while the order is still pending."""
    store: MallStore = request.app.state.mall
    order = _member_order(store, order_id, member)
    if body.order_status.value != "cancelled":
        raise bad_request("invalid_status", "Members can only cancel orders.")
    if order.order_status != "pending":
        raise bad_request("order_not_cancellable", "Only pending orders can be cancelled.")
    return OrderResponse.model_validate(store.change_order(order_id, actor_id=member.id, order_status="cancelled"))


@member_router.patch("/orders/{order_id}/items", response_model=PageResponse[OrderItemResponse])
def search_member_order_items(
    request: Request, order_id: str, body: OrderItemSearch, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _member_order(store, order_id, member)
    return _search_items(store, order_id, body)


@member_router.get("/orders/{order_id}/items/{item_id}", response_model=OrderItemResponse)
def get_member_order_item(
    request: Request, order_id: str, item_id: str, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _member_order(store, order_id, member)
    return OrderItemResponse.model_validate(_order_item(store, order_id, item_id))


# ---------------------------------------------------------------------------
# Member -- payments and deliveries
# ---------------------------------------------------------------------------


@member_router.post("/orders/{order_id}/payments", response_model=PaymentResponse, status_code=201)
def create_member_payment(
    request: Request, order_id: str, body: PaymentCreate, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _member_order(store, order_id, member)
    return _create_payment(store, order_id, body, member.id)


@member_router.patch("/orders/{order_id}/payments", response_model=PageResponse[PaymentResponse])
def search_member_payments(
    request: Request, order_id: str, body: PaymentSearch, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _member_order(store, order_id, member)
    return _search_payments(store, order_id, body)


@member_router.get("/orders/{order_id}/payments/{payment_id}", response_model=PaymentResponse)
def get_member_payment(
    request: Request, order_id: str, payment_id: str, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _member_order(store, order_id, member)
    return PaymentResponse.model_validate(_payment(store, order_id, payment_id))


@member_router.put("/orders/{order_id}/payments/{payment_id}", response_model=PaymentResponse)
def update_member_payment(
    request: Request,
    order_id: str,
    payment_id: str,
    body: PaymentUpdate,
    member: MemberUser = Depends(require_member_user),
):
    store: MallStore = request.app.state.mall
    _member_order(store, order_id, member)
    return _update_payment(store, _payment(store, order_id, payment_id), body, member.id)


@member_router.patch("/orders/{order_id}/deliveries", response_model=PageResponse[DeliveryResponse])
def search_member_deliveries(
    request: Request, order_id: str, body: DeliverySearch, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _member_order(store, order_id, member)
    return _search_deliveries(store, order_id, body)


@member_router.patch("/orderAuditLogs", response_model=PageResponse[OrderAuditLogResponse])
def search_order_audit_logs(
    request: Request, body: OrderAuditLogSearch, member: MemberUser = Depends(require_member_user)
):
    """Audit trail of the caller's own orders."""
    store: MallStore = request.app.state.mall
    order_ids = store.member_order_ids(member.id)
    if body.shopping_mall_order_id is not None:
        order_ids = [oid for oid in order_ids if oid == body.shopping_mall_order_id]
    page = store.find_page(
        OrderAuditLog,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=("created_at", "performed_at", "action"),
        filters={"shopping_mall_order_id": order_ids, "actor_user_id": body.actor_user_id},
        search=(("action",), body.action),
        ranges={
            "performed_at": (
                body.performed_at_from.isoformat() if body.performed_at_from else None,
                body.performed_at_to.isoformat() if body.performed_at_to else None,
            )
        },
    )
    return PageResponse[OrderAuditLogResponse].build(page, OrderAuditLogResponse)


# ---------------------------------------------------------------------------
# Seller
# ---------------------------------------------------------------------------


@seller_router.patch("/orders/{order_id}/items", response_model=PageResponse[OrderItemResponse])
def search_seller_order_items(
    request: Request, order_id: str, body: OrderItemSearch, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _seller_order(store, order_id, seller)
    return _search_items(store, order_id, body)


@seller_router.get("/orders/{order_id}/items/{item_id}", response_model=OrderItemResponse)
def get_seller_order_item(
    request: Request, order_id: str, item_id: str, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _seller_order(store, order_id, seller)
    return OrderItemResponse.model_validate(_order_item(store, order_id, item_id))


@seller_router.put("/orders/{order_id}/items/{item_id}", response_model=OrderItemResponse)
def update_seller_order_item(
    request: Request,
    order_id: str,
    item_id: str,
    body: OrderItemUpdate,
    seller: SellerUser = Depends(require_seller_user),
):
    """Sellers may only touch items cut from their own sales."""
    store: MallStore = request.app.state.mall
    _order(store, order_id)
    item = _order_item(store, order_id, item_id)
    if not store.seller_owns_order_item(item, seller.id):
        raise forbidden("This item belongs to another seller's sale.")
    return OrderItemResponse.model_validate(store.update(OrderItem, item_id, **body.changes()))


@seller_router.post("/orders/{order_id}/payments", response_model=PaymentResponse, status_code=201)
def create_seller_payment(
    request: Request, order_id: str, body: PaymentCreate, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _seller_order(store, order_id, seller)
    return _create_payment(store, order_id, body, seller.id)


@seller_router.patch("/orders/{order_id}/payments", response_model=PageResponse[PaymentResponse])
def search_seller_payments(
    request: Request, order_id: str, body: PaymentSearch, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _seller_order(store, order_id, seller)
    return _search_payments(store, order_id, body)


@seller_router.put("/orders/{order_id}/payments/{payment_id}", response_model=PaymentResponse)
def update_seller_payment(
    request: Request,
    order_id: str,
    payment_id: str,
    body: PaymentUpdate,
    seller: SellerUser = Depends(require_seller_user),
):
    store: MallStore = request.app.state.mall
    _seller_order(store, order_id, seller)
    return _update_payment(store, _payment(store, order_id, payment_id), body, seller.id)


@seller_router.post("/orders/{order_id}/deliveries", response_model=DeliveryResponse, status_code=201)
def create_delivery(
    request: Request, order_id: str, body: DeliveryCreate, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _seller_order(store, order_id, seller)
    delivery = store.create(Delivery(shopping_mall_order_id=order_id, **body.model_dump(mode="json")))
    return DeliveryResponse.model_validate(delivery)


@seller_router.patch("/orders/{order_id}/deliveries", response_model=PageResponse[DeliveryResponse])
def search_seller_deliveries(
    request: Request, order_id: str, body: DeliverySearch, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _seller_order(store, order_id, seller)
    return _search_deliveries(store, order_id, body)


@seller_router.get("/orders/{order_id}/deliveries/{delivery_id}", response_model=DeliveryResponse)
def get_delivery(
    request: Request, order_id: str, delivery_id: str, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _seller_order(store, order_id, seller)
    return DeliveryResponse.model_validate(_delivery(store, order_id, delivery_id))


@seller_router.put("/orders/{order_id}/deliveries/{delivery_id}", response_model=DeliveryResponse)
def update_delivery(
    request: Request,
    order_id: str,
    delivery_id: str,
    body: DeliveryUpdate,
    seller: SellerUser = Depends(require_seller_user),
):
    store: MallStore = request.app.state.mall
    _seller_order(store, order_id, seller)
    _delivery(store, order_id, delivery_id)
    return DeliveryResponse.model_validate(store.update(Delivery, delivery_id, **body.changes()))


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@admin_router.patch("/orders", response_model=PageResponse[OrderResponse])
def search_orders(request: Request, body: OrderSearch):
    return _search_orders(request.app.state.mall, body, body.shopping_mall_memberuser_id)


@admin_router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(request: Request, order_id: str):
    return OrderResponse.model_validate(_order(request.app.state.mall, order_id))


@admin_router.put("/orders/{order_id}", response_model=OrderResponse)
def update_order(
    request: Request, order_id: str, body: AdminOrderUpdate, admin: AdminUser = Depends(require_admin_user)
):
    store: MallStore = request.app.state.mall
    _order(store, order_id)
    updated = store.change_order(order_id, actor_id=admin.id, **body.changes())
    logger.info("Order %s updated by admin %s", order_id, admin.id)
    return OrderResponse.model_validate(updated)


@admin_router.patch("/orderStatusHistories", response_model=PageResponse[OrderStatusHistoryResponse])
def search_order_status_histories(request: Request, body: OrderStatusHistorySearch):
    store: MallStore = request.app.state.mall
    page = store.find_page(
        OrderStatusHistory,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=("created_at", "new_status"),
        filters={"shopping_mall_order_id": body.shopping_mall_order_id},
    )
    return PageResponse[OrderStatusHistoryResponse].build(page, OrderStatusHistoryResponse)


@admin_router.patch("/orders/{order_id}/payments", response_model=PageResponse[PaymentResponse])
def search_payments(request: Request, order_id: str, body: PaymentSearch):
    store: MallStore = request.app.state.mall
    _order(store, order_id)
    return _search_payments(store, order_id, body)


@admin_router.get("/orders/{order_id}/payments/{payment_id}", response_model=PaymentResponse)
def get_payment(request: Request, order_id: str, payment_id: str):
    return PaymentResponse.model_validate(_payment(request.app.state.mall, order_id, payment_id))


@admin_router.put("/orders/{order_id}/payments/{payment_id}", response_model=PaymentResponse)
def update_payment(
    request: Request,
    order_id: str,
    payment_id: str,
    body: PaymentUpdate,
    admin: AdminUser = Depends(require_admin_user),
):
    store: MallStore = request.app.state.mall
    return _update_payment(store, _payment(store, order_id, payment_id), body, admin.id)


router = APIRouter()
router.include_router(member_router)
router.include_router(seller_router)
router.include_router(admin_router)
