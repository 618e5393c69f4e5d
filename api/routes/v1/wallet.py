"""
api/routes/v1/wallet.py -- Deposit charges, the deposit ledger and saved addresses.

Member routes only (/api/v1/shoppingMall/memberUser), own records only:
  POST /depositCharges     PATCH /depositCharges
  GET|PUT|DELETE /depositCharges/{chargeId}
  PATCH /deposits
  POST /favoriteAddresses  PATCH /favoriteAddresses
  GET|PUT|DELETE /favoriteAddresses/{addressId}

Rules:
  charge_amount must be positive (400 invalid_amount).
  A charge moving to "paid" stamps paid_at and appends a Deposit whose
  usable_balance is the running balance (store-side, one transaction).
  A paid charge is final: its amount and status are locked and it cannot
  be erased (400 charge_paid).
  Only one address per member is primary at a time.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from api.errors import bad_request, forbidden, not_found
from api.models import (
    DepositChargeCreate,
    DepositChargeResponse,
    DepositChargeSearch,
    DepositChargeUpdate,
    DepositResponse,
    DepositSearch,
    FavoriteAddressCreate,
    FavoriteAddressResponse,
    FavoriteAddressSearch,
    FavoriteAddressUpdate,
    PageResponse,
)
from auth.dependencies import require_member_user
from auth.models import MemberUser
from mall.models import Deposit, DepositCharge, FavoriteAddress
from mall.store import MallStore

logger = logging.getLogger("shoppingmall.api")

router = APIRouter(prefix="/shoppingMall/memberUser")


def _charge(store: MallStore, charge_id: str, member: MemberUser) -> DepositCharge:
    charge = store.get(DepositCharge, charge_id)
    if charge is None:
        raise not_found("deposit_charge")
    if charge.memberuser_id != member.id:
        raise forbidden("This deposit charge belongs to another member.")
    return charge


def _address(store: MallStore, address_id: str, member: MemberUser) -> FavoriteAddress:
    address = store.get(FavoriteAddress, address_id)
    if address is None:
        raise not_found("favorite_address")
    if address.shopping_mall_memberuser_id != member.id:
        raise forbidden("This address belongs to another member.")
    return address


def _check_amount(amount: float) -> None:
    if amount <= 0:
        raise bad_request("invalid_amount", "charge_amount must be greater than zero.")


# ---------------------------------------------------------------------------
# Deposit charges
# ---------------------------------------------------------------------------


@router.post("/depositCharges", response_model=DepositChargeResponse, status_code=201)
def create_deposit_charge(
    request: Request, body: DepositChargeCreate, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _check_amount(body.charge_amount)
    charge = store.create(DepositCharge(memberuser_id=member.id, **body.model_dump()))
    return DepositChargeResponse.model_validate(charge)


@router.patch("/depositCharges", response_model=PageResponse[DepositChargeResponse])
def search_deposit_charges(
    request: Request, body: DepositChargeSearch, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    page = store.find_page(
        DepositCharge,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=("created_at", "updated_at", "charge_amount", "paid_at"),
        filters={
            "memberuser_id": member.id,
            "charge_status": body.charge_status.value if body.charge_status else None,
        },
    )
    return PageResponse[DepositChargeResponse].build(page, DepositChargeResponse)


@router.get("/depositCharges/{charge_id}", response_model=DepositChargeResponse)
def get_deposit_charge(request: Request, charge_id: str, member: MemberUser = Depends(require_member_user)):
    return DepositChargeResponse.model_validate(_charge(request.app.state.mall, charge_id, member))


@router.put("/depositCharges/{charge_id}", response_model=DepositChargeResponse)
def update_deposit_charge(
    request: Request, charge_id: str, body: DepositChargeUpdate, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    charge = _charge(store, charge_id, member)
    changes = body.changes()
    if "charge_amount" in changes:
        _check_amount(changes["charge_amount"])
    if charge.charge_status == "paid" and (
        changes.get("charge_amount", charge.charge_amount) != charge.charge_amount
        or changes.get("charge_status", "paid") != "paid"
    ):
        raise bad_request("charge_paid", "A paid charge keeps its amount and status.")
    return DepositChargeResponse.model_validate(store.update_deposit_charge(charge, **changes))


@router.delete("/depositCharges/{charge_id}", status_code=204)
def erase_deposit_charge(request: Request, charge_id: str, member: MemberUser = Depends(require_member_user)) -> Response:
    store: MallStore = request.app.state.mall
    charge = _charge(store, charge_id, member)
    if charge.charge_status == "paid":
        raise bad_request("charge_paid", "Paid charges cannot be erased.")
    store.delete(DepositCharge, charge.id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Deposit ledger
# ---------------------------------------------------------------------------


@router.patch("/deposits", response_model=PageResponse[DepositResponse])
def search_deposits(request: Request, body: DepositSearch, member: MemberUser = Depends(require_member_user)):
    store: MallStore = request.app.state.mall
    page = store.find_page(
        Deposit,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=("created_at", "deposit_amount", "usable_balance", "deposit_start_at"),
        filters={"memberuser_id": member.id},
        ranges={"deposit_amount": (body.deposit_amount_min, body.deposit_amount_max)},
    )
    return PageResponse[DepositResponse].build(page, DepositResponse)


# ---------------------------------------------------------------------------
# Favorite addresses
# ---------------------------------------------------------------------------


@router.post("/favoriteAddresses", response_model=FavoriteAddressResponse, status_code=201)
def create_favorite_address(
    request: Request, body: FavoriteAddressCreate, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    address = store.create(FavoriteAddress(shopping_mall_memberuser_id=member.id, **body.model_dump()))
    if address.is_primary:
        store.make_primary_address(address)
    return FavoriteAddressResponse.model_validate(address)


@router.patch("/favoriteAddresses", response_model=PageResponse[FavoriteAddressResponse])
def search_favorite_addresses(
    request: Request, body: FavoriteAddressSearch, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    page = store.find_page(
        FavoriteAddress,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=("created_at", "updated_at", "title", "is_primary"),
        filters={"shopping_mall_memberuser_id": member.id},
        search=(("title", "recipient_name", "address"), body.search),
        ranges={
            "created_at": (
                body.created_at_from.isoformat() if body.created_at_from else None,
                body.created_at_to.isoformat() if body.created_at_to else None,
            )
        },
    )
    return PageResponse[FavoriteAddressResponse].build(page, FavoriteAddressResponse)


@router.get("/favoriteAddresses/{address_id}", response_model=FavoriteAddressResponse)
def get_favorite_address(request: Request, address_id: str, member: MemberUser = Depends(require_member_user)):
    return FavoriteAddressResponse.model_validate(_address(request.app.state.mall, address_id, member))


@router.put("/favoriteAddresses/{address_id}", response_model=FavoriteAddressResponse)
def update_favorite_address(
    request: Request,
    address_id: str,
    body: FavoriteAddressUpdate,
    member: MemberUser = Depends(require_member_user),
):
    store: MallStore = request.app.state.mall
    address = _address(store, address_id, member)
    updated = store.update(FavoriteAddress, address.id, **body.changes())
    if updated.is_primary and not address.is_primary:
        store.make_primary_address(updated)
    return FavoriteAddressResponse.model_validate(updated)


@router.delete("/favoriteAddresses/{address_id}", status_code=204)
def erase_favorite_address(
    request: Request, address_id: str, member: MemberUser = Depends(require_member_user)
) -> Response:
    store: MallStore = request.app.state.mall
    _address(store, address_id, member)
    store.delete(FavoriteAddress, address_id)
    return Response(status_code=204)
