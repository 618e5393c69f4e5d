"""
api/routes/v1/coupons.py -- Coupons, coupon conditions, tickets and ticket logs.

Admin routes (/api/v1/shoppingMall/adminUser):
  POST /coupons   PATCH /coupons   GET|PUT|DELETE /coupons/{couponId}
  POST /coupons/{couponId}/conditions   PATCH (search)
  GET|PUT|DELETE /coupons/{couponId}/conditions/{conditionId}

Seller and member routes (read only):
  PATCH /shoppingMall/{sellerUser|memberUser}/coupons
  GET   /shoppingMall/{sellerUser|memberUser}/coupons/{couponId}

Member routes (/api/v1/shoppingMall/memberUser), own tickets only:
  POST /couponTickets   PATCH /couponTickets
  GET|PUT|DELETE /couponTickets/{ticketId}
  PATCH /couponLogs

Rules:
  end_date must not precede start_date (400 invalid_period).
  Tickets can only be issued for an active coupon (400 coupon_inactive).
  Marking a ticket "used" stamps used_at and appends a CouponLog.
  A used ticket stays used (400 ticket_used).
  Coupons are soft-deleted; conditions and tickets hard-deleted.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError

from api.errors import bad_request, conflict, forbidden, not_found
from api.models import (
    CouponConditionCreate,
    CouponConditionResponse,
    CouponConditionSearch,
    CouponConditionUpdate,
    CouponCreate,
    CouponLogResponse,
    CouponLogSearch,
    CouponResponse,
    CouponSearch,
    CouponTicketCreate,
    CouponTicketResponse,
    CouponTicketSearch,
    CouponTicketUpdate,
    CouponUpdate,
    PageResponse,
)
from auth.dependencies import require_admin_user, require_member_user, require_seller_user
from auth.models import MemberUser
from mall.models import Coupon, CouponCondition, CouponLog, CouponTicket
from mall.store import MallStore

logger = logging.getLogger("shoppingmall.api")

admin_router = APIRouter(prefix="/shoppingMall/adminUser", dependencies=[Depends(require_admin_user)])
seller_router = APIRouter(prefix="/shoppingMall/sellerUser", dependencies=[Depends(require_seller_user)])
member_router = APIRouter(prefix="/shoppingMall/memberUser")

_COUPON_SORT = ("created_at", "updated_at", "coupon_code", "coupon_name", "start_date", "end_date", "discount_value")
_TICKET_SORT = ("created_at", "updated_at", "valid_from", "valid_until", "usage_status")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _coupon(store: MallStore, coupon_id: str) -> Coupon:
    coupon = store.get(Coupon, coupon_id)
    if coupon is None:
        raise not_found("coupon")
    return coupon


def _condition(store: MallStore, coupon_id: str, condition_id: str) -> CouponCondition:
    condition = store.get(CouponCondition, condition_id, shopping_mall_coupon_id=coupon_id)
    if condition is None:
        raise not_found("coupon_condition")
    return condition


def _own_ticket(store: MallStore, ticket_id: str, member: MemberUser) -> CouponTicket:
    ticket = store.get(CouponTicket, ticket_id)
    if ticket is None:
        raise not_found("coupon_ticket")
    if ticket.memberuser_id != member.id:
        raise forbidden("This coupon ticket belongs to another member.")
    return ticket


def _check_period(start: str, end: str) -> None:
    if datetime.fromisoformat(end) < datetime.fromisoformat(start):
        raise bad_request("invalid_period", "end_date must not precede start_date.")


def _new_ticket_code() -> str:
    return f"TCK-{secrets.token_hex(6).upper()}"


def _search_coupons(store: MallStore, body: CouponSearch):
    page = store.find_page(
        Coupon,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_COUPON_SORT,
        filters={"coupon_code": body.coupon_code, "status": body.status},
        search=(("coupon_name",), body.coupon_name),
        ranges={
            "start_date": (body.start_date_from.isoformat() if body.start_date_from else None, None),
            "end_date": (None, body.end_date_to.isoformat() if body.end_date_to else None),
        },
    )
    return PageResponse[CouponResponse].build(page, CouponResponse)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ---------------------------------------------------------------------------
# Admin -- coupons
# ---------------------------------------------------------------------------


@admin_router.post("/coupons", response_model=CouponResponse, status_code=201)
def create_coupon(request: Request, body: CouponCreate) -> CouponResponse:
    store: MallStore = request.app.state.mall
    if body.end_date < body.start_date:
        raise bad_request("invalid_period", "end_date must not precede start_date.")
    values = body.model_dump()
    values.update(
        discount_type=body.discount_type.value,
        start_date=body.start_date.isoformat(),
        end_date=body.end_date.isoformat(),
    )
    try:
        coupon = store.create(Coupon(**values))
    except IntegrityError:
        raise conflict("A coupon with this code already exists.")
    return CouponResponse.model_validate(coupon)


@admin_router.patch("/coupons", response_model=PageResponse[CouponResponse])
def search_coupons(request: Request, body: CouponSearch):
    return _search_coupons(request.app.state.mall, body)


@admin_router.get("/coupons/{coupon_id}", response_model=CouponResponse)
def get_coupon(request: Request, coupon_id: str) -> CouponResponse:
    return CouponResponse.model_validate(_coupon(request.app.state.mall, coupon_id))


@admin_router.put("/coupons/{coupon_id}", response_model=CouponResponse)
def update_coupon(request: Request, coupon_id: str, body: CouponUpdate) -> CouponResponse:
    store: MallStore = request.app.state.mall
    coupon = _coupon(store, coupon_id)
    changes = body.changes()
    for key in ("start_date", "end_date"):
        if key in changes:
            changes[key] = getattr(body, key).isoformat()
    _check_period(changes.get("start_date", coupon.start_date), changes.get("end_date", coupon.end_date))
    try:
        updated = store.update(Coupon, coupon_id, **changes)
    except IntegrityError:
        raise conflict("A coupon with this code already exists.")
    return CouponResponse.model_validate(updated)


@admin_router.delete("/coupons/{coupon_id}", status_code=204)
def erase_coupon(request: Request, coupon_id: str) -> Response:
    store: MallStore = request.app.state.mall
    if not store.soft_delete(Coupon, coupon_id):
        raise not_found("coupon")
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Admin -- coupon conditions
# ---------------------------------------------------------------------------


@admin_router.post("/coupons/{coupon_id}/conditions", response_model=CouponConditionResponse, status_code=201)
def create_coupon_condition(request: Request, coupon_id: str, body: CouponConditionCreate):
    store: MallStore = request.app.state.mall
    _coupon(store, coupon_id)
    condition = store.create(CouponCondition(shopping_mall_coupon_id=coupon_id, **body.model_dump()))
    return CouponConditionResponse.model_validate(condition)


@admin_router.patch("/coupons/{coupon_id}/conditions", response_model=PageResponse[CouponConditionResponse])
def search_coupon_conditions(request: Request, coupon_id: str, body: CouponConditionSearch):
    store: MallStore = request.app.state.mall
    _coupon(store, coupon_id)
    page = store.find_page(
        CouponCondition,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=("created_at", "updated_at", "condition_type"),
        filters={"shopping_mall_coupon_id": coupon_id, "condition_type": body.condition_type},
    )
    return PageResponse[CouponConditionResponse].build(page, CouponConditionResponse)


@admin_router.get("/coupons/{coupon_id}/conditions/{condition_id}", response_model=CouponConditionResponse)
def get_coupon_condition(request: Request, coupon_id: str, condition_id: str):
    return CouponConditionResponse.model_validate(_condition(request.app.state.mall, coupon_id, condition_id))


@admin_router.put("/coupons/{coupon_id}/conditions/{condition_id}", response_model=CouponConditionResponse)
def update_coupon_condition(request: Request, coupon_id: str, condition_id: str, body: CouponConditionUpdate):
    store: MallStore = request.app.state.mall
    _condition(store, coupon_id, condition_id)
    return CouponConditionResponse.model_validate(store.update(CouponCondition, condition_id, **body.changes()))


@admin_router.delete("/coupons/{coupon_id}/conditions/{condition_id}", status_code=204)
def erase_coupon_condition(request: Request, coupon_id: str, condition_id: str) -> Response:
    store: MallStore = request.app.state.mall
    _condition(store, coupon_id, condition_id)
    store.delete(CouponCondition, condition_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Seller -- read only
# ---------------------------------------------------------------------------


@seller_router.patch("/coupons", response_model=PageResponse[CouponResponse])
def seller_search_coupons(request: Request, body: CouponSearch):
    return _search_coupons(request.app.state.mall, body)


@seller_router.get("/coupons/{coupon_id}", response_model=CouponResponse)
def seller_get_coupon(request: Request, coupon_id: str) -> CouponResponse:
    return CouponResponse.model_validate(_coupon(request.app.state.mall, coupon_id))


# ---------------------------------------------------------------------------
# Member -- coupons (read only)
# ---------------------------------------------------------------------------


@member_router.patch("/coupons", response_model=PageResponse[CouponResponse])
def member_search_coupons(request: Request, body: CouponSearch, member: MemberUser = Depends(require_member_user)):
    return _search_coupons(request.app.state.mall, body)


@member_router.get("/coupons/{coupon_id}", response_model=CouponResponse)
def member_get_coupon(request: Request, coupon_id: str, member: MemberUser = Depends(require_member_user)):
    return CouponResponse.model_validate(_coupon(request.app.state.mall, coupon_id))


# ---------------------------------------------------------------------------
# Member -- tickets and logs
# ---------------------------------------------------------------------------


@member_router.post("/couponTickets", response_model=CouponTicketResponse, status_code=201)
def issue_coupon_ticket(
    request: Request, body: CouponTicketCreate, member: MemberUser = Depends(require_member_user)
):
    """Issue a ticket for an active coupon to the calling member."""
    store: MallStore = request.app.state.mall
    coupon = _coupon(store, body.shopping_mall_coupon_id)
    if coupon.status != "active":
        raise bad_request("coupon_inactive", "Tickets can only be issued for active coupons.")
    ticket = store.issue_coupon_ticket(
        CouponTicket(
            shopping_mall_coupon_id=coupon.id,
            memberuser_id=member.id,
            ticket_code=_new_ticket_code(),
            valid_from=_iso(body.valid_from) or coupon.start_date,
            valid_until=_iso(body.valid_until) or coupon.end_date,
        )
    )
    logger.info("Coupon ticket %s issued to member %s", ticket.ticket_code, member.id)
    return CouponTicketResponse.model_validate(ticket)


@member_router.patch("/couponTickets", response_model=PageResponse[CouponTicketResponse])
def search_coupon_tickets(
    request: Request, body: CouponTicketSearch, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    page = store.find_page(
        CouponTicket,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_TICKET_SORT,
        filters={
            "memberuser_id": member.id,
            "usage_status": body.usage_status.value if body.usage_status else None,
            "shopping_mall_coupon_id": body.shopping_mall_coupon_id,
        },
    )
    return PageResponse[CouponTicketResponse].build(page, CouponTicketResponse)


@member_router.get("/couponTickets/{ticket_id}", response_model=CouponTicketResponse)
def get_coupon_ticket(request: Request, ticket_id: str, member: MemberUser = Depends(require_member_user)):
    return CouponTicketResponse.model_validate(_own_ticket(request.app.state.mall, ticket_id, member))


@member_router.put("/couponTickets/{ticket_id}", response_model=CouponTicketResponse)
def update_coupon_ticket(
    request: Request, ticket_id: str, body: CouponTicketUpdate, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    ticket = _own_ticket(store, ticket_id, member)
    changes = body.changes()
    if ticket.usage_status == "used" and changes.get("usage_status", "used") != "used":
        raise bad_request("ticket_used", "A used ticket cannot be reopened.")
    if "valid_until" in changes:
        changes["valid_until"] = body.valid_until.isoformat()
    return CouponTicketResponse.model_validate(store.update_coupon_ticket(ticket, **changes))


@member_router.delete("/couponTickets/{ticket_id}", status_code=204)
def erase_coupon_ticket(request: Request, ticket_id: str, member: MemberUser = Depends(require_member_user)) -> Response:
    store: MallStore = request.app.state.mall
    _own_ticket(store, ticket_id, member)
    store.delete(CouponTicket, ticket_id)
    return Response(status_code=204)


@member_router.patch("/couponLogs", response_model=PageResponse[CouponLogResponse])
def search_coupon_logs(request: Request, body: CouponLogSearch, member: MemberUser = Depends(require_member_user)):
    store: MallStore = request.app.state.mall
    page = store.find_page(
        CouponLog,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=("created_at", "log_type"),
        filters={"used_by_customer_id": member.id, "log_type": body.log_type},
    )
    return PageResponse[CouponLogResponse].build(page, CouponLogResponse)


router = APIRouter()
router.include_router(admin_router)
router.include_router(seller_router)
router.include_router(member_router)
