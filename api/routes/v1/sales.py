"""
api/routes/v1/sales.py -- Sales (product listings), snapshots, units and options.

Seller routes (/api/v1/shoppingMall/sellerUser, own sales only):
  POST   /sales                     PATCH /sales (search own)
  GET    /sales/{saleId}            PUT / DELETE /sales/{saleId}
  POST   /sales/{saleId}/snapshots  PATCH /sales/{saleId}/snapshots
  GET    /sales/{saleId}/snapshots/{snapshotId}
  POST   /sales/{saleId}/saleUnits  PATCH /sales/{saleId}/saleUnits
  GET|PUT|DELETE /sales/{saleId}/saleUnits/{saleUnitId}
  POST   /sales/{saleId}/saleUnits/{saleUnitId}/saleUnitOptions   PATCH (search)
  GET|PUT|DELETE .../saleUnitOptions/{saleUnitOptionId}
  POST   /sales/{saleId}/optionGroups                  PATCH (search)
  POST   /sales/{saleId}/optionGroups/{groupId}/options PATCH (search)
  POST   /inventory                 PATCH /inventory (own sales)
  GET|PUT|DELETE /inventory/{inventoryId}

Admin routes (/api/v1/shoppingMall/adminUser):
  PATCH  /sales                     GET / DELETE /sales/{saleId}
  PATCH  /sales/{saleId}/snapshots  GET /sales/{saleId}/snapshots/{snapshotId}
  PATCH  /sales/{saleId}/saleUnits  GET /sales/{saleId}/saleUnits/{saleUnitId}
  PATCH  /sales/{saleId}/saleUnits/{saleUnitId}/saleUnitOptions
  POST   /inventory                 PATCH /inventory
  GET|PUT|DELETE /inventory/{inventoryId}

Ownership: sale.shopping_mall_seller_user_id == seller.id, else 403.
Creating a sale also captures its first snapshot so it can be carted and
ordered immediately. Sales and sale units are soft-deleted; sale unit
options are hard-deleted.
Inventory rows track stock per option combination code of a sale; one live
row per (sale, code) pair (409 otherwise), soft-deleted.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError

from api.errors import conflict, forbidden, not_found
from api.models import (
    InventoryCreate,
    InventoryResponse,
    InventorySearch,
    InventoryUpdate,
    PageRequest,
    PageResponse,
    SaleCreate,
    SaleOptionCreate,
    SaleOptionGroupCreate,
    SaleOptionGroupResponse,
    SaleOptionResponse,
    SaleResponse,
    SaleSearch,
    SaleSnapshotResponse,
    SaleUnitCreate,
    SaleUnitOptionCreate,
    SaleUnitOptionResponse,
    SaleUnitOptionSearch,
    SaleUnitOptionUpdate,
    SaleUnitResponse,
    SaleUnitSearch,
    SaleUnitUpdate,
    SaleUpdate,
)
from auth.dependencies import require_admin_user, require_seller_user
from auth.models import SellerUser
from mall.models import Channel, Inventory, Sale, SaleOption, SaleOptionGroup, SaleSnapshot, SaleUnit, SaleUnitOption
from mall.store import MallStore

logger = logging.getLogger("shoppingmall.api")

seller_router = APIRouter(prefix="/shoppingMall/sellerUser")
admin_router = APIRouter(prefix="/shoppingMall/adminUser", dependencies=[Depends(require_admin_user)])

_SALE_SORT = ("created_at", "updated_at", "code", "name", "price", "status")
_UNIT_SORT = ("created_at", "updated_at", "code", "name")
_OPTION_SORT = ("created_at", "updated_at", "name", "additional_price", "stock_quantity")
_INVENTORY_SORT = ("created_at", "updated_at", "stock_quantity", "option_combination_code")


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def _sale(store: MallStore, sale_id: str) -> Sale:
    sale = store.get(Sale, sale_id)
    if sale is None:
        raise not_found("sale")
    return sale


def _own_sale(store: MallStore, sale_id: str, seller: SellerUser) -> Sale:
    sale = _sale(store, sale_id)
    if sale.shopping_mall_seller_user_id != seller.id:
        raise forbidden("This sale belongs to another seller.")
    return sale


def _unit(store: MallStore, sale_id: str, unit_id: str) -> SaleUnit:
    unit = store.get(SaleUnit, unit_id, shopping_mall_sale_id=sale_id)
    if unit is None:
        raise not_found("sale_unit")
    return unit


def _unit_option(store: MallStore, unit_id: str, option_id: str) -> SaleUnitOption:
    option = store.get(SaleUnitOption, option_id, shopping_mall_sale_unit_id=unit_id)
    if option is None:
        raise not_found("sale_unit_option")
    return option


def _search_sales(store: MallStore, body: SaleSearch, seller_id: str | None):
    page = store.find_page(
        Sale,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_SALE_SORT,
        filters={
            "status": body.status,
            "shopping_mall_channel_id": body.shopping_mall_channel_id,
            "shopping_mall_section_id": body.shopping_mall_section_id,
            "shopping_mall_seller_user_id": seller_id,
        },
        search=(("name", "code"), body.search),
    )
    return PageResponse[SaleResponse].build(page, SaleResponse)


def _search_snapshots(store: MallStore, sale_id: str, body: PageRequest):
    page = store.find_page(
        SaleSnapshot,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=("created_at", "price", "name"),
        filters={"shopping_mall_sale_id": sale_id},
    )
    return PageResponse[SaleSnapshotResponse].build(page, SaleSnapshotResponse)


def _snapshot(store: MallStore, sale_id: str, snapshot_id: str) -> SaleSnapshotResponse:
    snapshot = store.get(SaleSnapshot, snapshot_id, shopping_mall_sale_id=sale_id)
    if snapshot is None:
        raise not_found("sale_snapshot")
    return SaleSnapshotResponse.model_validate(snapshot)


def _search_units(store: MallStore, sale_id: str, body: SaleUnitSearch):
    page = store.find_page(
        SaleUnit,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_UNIT_SORT,
        filters={"shopping_mall_sale_id": sale_id},
        search=(("code", "name"), body.search),
    )
    return PageResponse[SaleUnitResponse].build(page, SaleUnitResponse)


def _search_unit_options(store: MallStore, unit_id: str, body: SaleUnitOptionSearch):
    page = store.find_page(
        SaleUnitOption,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_OPTION_SORT,
        filters={"shopping_mall_sale_unit_id": unit_id},
        search=(("name", "value"), body.search),
    )
    return PageResponse[SaleUnitOptionResponse].build(page, SaleUnitOptionResponse)


def _inventory(store: MallStore, inventory_id: str) -> Inventory:
    item = store.get(Inventory, inventory_id)
    if item is None:
        raise not_found("inventory")
    return item


def _own_inventory(store: MallStore, inventory_id: str, seller: SellerUser) -> Inventory:
    item = _inventory(store, inventory_id)
    _own_sale(store, item.shopping_mall_sale_id, seller)
    return item


def _check_combination(store: MallStore, sale_id: str, code: str, current_id: str | None = None) -> None:
    existing = store.find_one(Inventory, shopping_mall_sale_id=sale_id, option_combination_code=code)
    if existing is not None and existing.id != current_id:
        raise conflict("This sale already tracks that option combination.")


def _search_inventory(store: MallStore, body: InventorySearch, sale_ids):
    page = store.find_page(
        Inventory,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_INVENTORY_SORT,
        filters={"shopping_mall_sale_id": sale_ids},
        search=(("option_combination_code",), body.option_combination_code),
        ranges={"stock_quantity": (body.min_quantity, body.max_quantity)},
    )
    return PageResponse[InventoryResponse].build(page, InventoryResponse)


def _update_inventory(store: MallStore, item: Inventory, body: InventoryUpdate) -> InventoryResponse:
    changes = body.changes()
    if "option_combination_code" in changes:
        _check_combination(store, item.shopping_mall_sale_id, changes["option_combination_code"], item.id)
    return InventoryResponse.model_validate(store.update(Inventory, item.id, **changes))

# ---------------------------------------------------------------------------
# Seller -- sales
# ---------------------------------------------------------------------------


@seller_router.post("/sales", response_model=SaleResponse, status_code=201)
def create_sale(
    request: Request, body: SaleCreate, seller: SellerUser = Depends(require_seller_user)
) -> SaleResponse:
    """Create a listing on a channel and capture its first snapshot."""
    store: MallStore = request.app.state.mall
    if store.get(Channel, body.shopping_mall_channel_id) is None:
        raise not_found("channel")
    try:
        sale = store.create(Sale(shopping_mall_seller_user_id=seller.id, **body.model_dump()))
    except IntegrityError:
        raise conflict("A sale with this code already exists.")
    store.capture_snapshot(sale)
    logger.info("Seller %s created sale %s", seller.id, sale.code)
    return SaleResponse.model_validate(sale)


@seller_router.patch("/sales", response_model=PageResponse[SaleResponse])
def search_own_sales(request: Request, body: SaleSearch, seller: SellerUser = Depends(require_seller_user)):
    return _search_sales(request.app.state.mall, body, seller.id)


@seller_router.get("/sales/{sale_id}", response_model=SaleResponse)
def get_own_sale(request: Request, sale_id: str, seller: SellerUser = Depends(require_seller_user)):
    return SaleResponse.model_validate(_own_sale(request.app.state.mall, sale_id, seller))


@seller_router.put("/sales/{sale_id}", response_model=SaleResponse)
def update_own_sale(
    request: Request, sale_id: str, body: SaleUpdate, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    changes = body.changes()
    if "shopping_mall_channel_id" in changes and store.get(Channel, changes["shopping_mall_channel_id"]) is None:
        raise not_found("channel")
    try:
        updated = store.update(Sale, sale_id, **changes)
    except IntegrityError:
        raise conflict("A sale with this code already exists.")
    return SaleResponse.model_validate(updated)


@seller_router.delete("/sales/{sale_id}", status_code=204)
def erase_own_sale(request: Request, sale_id: str, seller: SellerUser = Depends(require_seller_user)) -> Response:
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    store.soft_delete(Sale, sale_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Seller -- snapshots
# ---------------------------------------------------------------------------


@seller_router.post("/sales/{sale_id}/snapshots", response_model=SaleSnapshotResponse, status_code=201)
def capture_snapshot(request: Request, sale_id: str, seller: SellerUser = Depends(require_seller_user)):
    """Freeze the sale's current name, price, status and description."""
    store: MallStore = request.app.state.mall
    sale = _own_sale(store, sale_id, seller)
    return SaleSnapshotResponse.model_validate(store.capture_snapshot(sale))


@seller_router.patch("/sales/{sale_id}/snapshots", response_model=PageResponse[SaleSnapshotResponse])
def search_own_snapshots(
    request: Request, sale_id: str, body: PageRequest, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    return _search_snapshots(store, sale_id, body)


@seller_router.get("/sales/{sale_id}/snapshots/{snapshot_id}", response_model=SaleSnapshotResponse)
def get_own_snapshot(
    request: Request, sale_id: str, snapshot_id: str, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    return _snapshot(store, sale_id, snapshot_id)


# ---------------------------------------------------------------------------
# Seller -- sale units
# ---------------------------------------------------------------------------


@seller_router.post("/sales/{sale_id}/saleUnits", response_model=SaleUnitResponse, status_code=201)
def create_sale_unit(
    request: Request, sale_id: str, body: SaleUnitCreate, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    unit = store.create(SaleUnit(shopping_mall_sale_id=sale_id, **body.model_dump()))
    return SaleUnitResponse.model_validate(unit)


@seller_router.patch("/sales/{sale_id}/saleUnits", response_model=PageResponse[SaleUnitResponse])
def search_own_sale_units(
    request: Request, sale_id: str, body: SaleUnitSearch, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    return _search_units(store, sale_id, body)


@seller_router.get("/sales/{sale_id}/saleUnits/{sale_unit_id}", response_model=SaleUnitResponse)
def get_own_sale_unit(
    request: Request, sale_id: str, sale_unit_id: str, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    return SaleUnitResponse.model_validate(_unit(store, sale_id, sale_unit_id))


@seller_router.put("/sales/{sale_id}/saleUnits/{sale_unit_id}", response_model=SaleUnitResponse)
def update_own_sale_unit(
    request: Request,
    sale_id: str,
    sale_unit_id: str,
    body: SaleUnitUpdate,
    seller: SellerUser = Depends(require_seller_user),
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    _unit(store, sale_id, sale_unit_id)
    return SaleUnitResponse.model_validate(store.update(SaleUnit, sale_unit_id, **body.changes()))


@seller_router.delete("/sales/{sale_id}/saleUnits/{sale_unit_id}", status_code=204)
def erase_own_sale_unit(
    request: Request, sale_id: str, sale_unit_id: str, seller: SellerUser = Depends(require_seller_user)
) -> Response:
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    _unit(store, sale_id, sale_unit_id)
    store.soft_delete(SaleUnit, sale_unit_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Seller -- sale unit options
# ---------------------------------------------------------------------------


@seller_router.post(
    "/sales/{sale_id}/saleUnits/{sale_unit_id}/saleUnitOptions",
    response_model=SaleUnitOptionResponse,
    status_code=201,
)
def create_sale_unit_option(
    request: Request,
    sale_id: str,
    sale_unit_id: str,
    body: SaleUnitOptionCreate,
    seller: SellerUser = Depends(require_seller_user),
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    _unit(store, sale_id, sale_unit_id)
    option = store.create(SaleUnitOption(shopping_mall_sale_unit_id=sale_unit_id, **body.model_dump()))
    return SaleUnitOptionResponse.model_validate(option)


@seller_router.patch(
    "/sales/{sale_id}/saleUnits/{sale_unit_id}/saleUnitOptions",
    response_model=PageResponse[SaleUnitOptionResponse],
)
def search_own_sale_unit_options(
    request: Request,
    sale_id: str,
    sale_unit_id: str,
    body: SaleUnitOptionSearch,
    seller: SellerUser = Depends(require_seller_user),
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    _unit(store, sale_id, sale_unit_id)
    return _search_unit_options(store, sale_unit_id, body)


@seller_router.get(
    "/sales/{sale_id}/saleUnits/{sale_unit_id}/saleUnitOptions/{option_id}",
    response_model=SaleUnitOptionResponse,
)
def get_own_sale_unit_option(
    request: Request,
    sale_id: str,
    sale_unit_id: str,
    option_id: str,
    seller: SellerUser = Depends(require_seller_user),
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    _unit(store, sale_id, sale_unit_id)
    return SaleUnitOptionResponse.model_validate(_unit_option(store, sale_unit_id, option_id))


@seller_router.put(
    "/sales/{sale_id}/saleUnits/{sale_unit_id}/saleUnitOptions/{option_id}",
    response_model=SaleUnitOptionResponse,
)
def update_own_sale_unit_option(
    request: Request,
    sale_id: str,
    sale_unit_id: str,
    option_id: str,
    body: SaleUnitOptionUpdate,
    seller: SellerUser = Depends(require_seller_user),
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    _unit(store, sale_id, sale_unit_id)
    _unit_option(store, sale_unit_id, option_id)
    return SaleUnitOptionResponse.model_validate(store.update(SaleUnitOption, option_id, **body.changes()))


@seller_router.delete("/sales/{sale_id}/saleUnits/{sale_unit_id}/saleUnitOptions/{option_id}", status_code=204)
def erase_own_sale_unit_option(
    request: Request,
    sale_id: str,
    sale_unit_id: str,
    option_id: str,
    seller: SellerUser = Depends(require_seller_user),
) -> Response:
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    _unit(store, sale_id, sale_unit_id)
    _unit_option(store, sale_unit_id, option_id)
    store.delete(SaleUnitOption, option_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Seller -- option groups and options
# ---------------------------------------------------------------------------


@seller_router.post("/sales/{sale_id}/optionGroups", response_model=SaleOptionGroupResponse, status_code=201)
def create_option_group(
    request: Request, sale_id: str, body: SaleOptionGroupCreate, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    group = store.create(SaleOptionGroup(shopping_mall_sale_id=sale_id, name=body.name))
    return SaleOptionGroupResponse.model_validate(group)


@seller_router.patch("/sales/{sale_id}/optionGroups", response_model=PageResponse[SaleOptionGroupResponse])
def search_option_groups(
    request: Request, sale_id: str, body: PageRequest, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    page = store.find_page(
        SaleOptionGroup,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=("created_at", "updated_at", "name"),
        filters={"shopping_mall_sale_id": sale_id},
    )
    return PageResponse[SaleOptionGroupResponse].build(page, SaleOptionGroupResponse)


def _option_group(store: MallStore, sale_id: str, group_id: str) -> SaleOptionGroup:
    group = store.get(SaleOptionGroup, group_id, shopping_mall_sale_id=sale_id)
    if group is None:
        raise not_found("sale_option_group")
    return group


@seller_router.post(
    "/sales/{sale_id}/optionGroups/{group_id}/options",
    response_model=SaleOptionResponse,
    status_code=201,
)
def create_option(
    request: Request,
    sale_id: str,
    group_id: str,
    body: SaleOptionCreate,
    seller: SellerUser = Depends(require_seller_user),
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    _option_group(store, sale_id, group_id)
    option = store.create(SaleOption(shopping_mall_sale_option_group_id=group_id, **body.model_dump()))
    return SaleOptionResponse.model_validate(option)


@seller_router.patch(
    "/sales/{sale_id}/optionGroups/{group_id}/options",
    response_model=PageResponse[SaleOptionResponse],
)
def search_options(
    request: Request,
    sale_id: str,
    group_id: str,
    body: PageRequest,
    seller: SellerUser = Depends(require_seller_user),
):
    store: MallStore = request.app.state.mall
    _own_sale(store, sale_id, seller)
    _option_group(store, sale_id, group_id)
    page = store.find_page(
        SaleOption,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=("created_at", "updated_at", "name", "additional_price"),
        filters={"shopping_mall_sale_option_group_id": group_id},
    )
    return PageResponse[SaleOptionResponse].build(page, SaleOptionResponse)


# ---------------------------------------------------------------------------
# Seller -- inventory
# ---------------------------------------------------------------------------


@seller_router.post("/inventory", response_model=InventoryResponse, status_code=201)
def create_own_inventory(request: Request, body: InventoryCreate, seller: SellerUser = Depends(require_seller_user)):
    store: MallStore = request.app.state.mall
    _own_sale(store, body.shopping_mall_sale_id, seller)
    _check_combination(store, body.shopping_mall_sale_id, body.option_combination_code)
    item = store.create(Inventory(**body.model_dump()))
    logger.info("Seller %s tracks %s on sale %s", seller.id, item.option_combination_code, item.shopping_mall_sale_id)
    return InventoryResponse.model_validate(item)


@seller_router.patch("/inventory", response_model=PageResponse[InventoryResponse])
def search_own_inventory(request: Request, body: InventorySearch, seller: SellerUser = Depends(require_seller_user)):
    store: MallStore = request.app.state.mall
    if body.shopping_mall_sale_id:
        sale_ids = [_own_sale(store, body.shopping_mall_sale_id, seller).id]
    else:
        sale_ids = [sale.id for sale in store.list(Sale, shopping_mall_seller_user_id=seller.id)]
    return _search_inventory(store, body, sale_ids)


@seller_router.get("/inventory/{inventory_id}", response_model=InventoryResponse)
def get_own_inventory(request: Request, inventory_id: str, seller: SellerUser = Depends(require_seller_user)):
    return InventoryResponse.model_validate(_own_inventory(request.app.state.mall, inventory_id, seller))


@seller_router.put("/inventory/{inventory_id}", response_model=InventoryResponse)
def update_own_inventory(
    request: Request, inventory_id: str, body: InventoryUpdate, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    item = _own_inventory(store, inventory_id, seller)
    return _update_inventory(store, item, body)


@seller_router.delete("/inventory/{inventory_id}", status_code=204)
def erase_own_inventory(
    request: Request, inventory_id: str, seller: SellerUser = Depends(require_seller_user)
) -> Response:
    store: MallStore = request.app.state.mall
    item = _own_inventory(store, inventory_id, seller)
    store.soft_delete(Inventory, item.id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@admin_router.patch("/sales", response_model=PageResponse[SaleResponse])
def search_sales(request: Request, body: SaleSearch):
    return _search_sales(request.app.state.mall, body, body.shopping_mall_seller_user_id)


@admin_router.get("/sales/{sale_id}", response_model=SaleResponse)
def get_sale(request: Request, sale_id: str):
    return SaleResponse.model_validate(_sale(request.app.state.mall, sale_id))


@admin_router.delete("/sales/{sale_id}", status_code=204)
def erase_sale(request: Request, sale_id: str) -> Response:
    store: MallStore = request.app.state.mall
    if not store.soft_delete(Sale, sale_id):
        raise not_found("sale")
    return Response(status_code=204)


@admin_router.patch("/sales/{sale_id}/snapshots", response_model=PageResponse[SaleSnapshotResponse])
def search_snapshots(request: Request, sale_id: str, body: PageRequest):
    store: MallStore = request.app.state.mall
    _sale(store, sale_id)
    return _search_snapshots(store, sale_id, body)


@admin_router.get("/sales/{sale_id}/snapshots/{snapshot_id}", response_model=SaleSnapshotResponse)
def get_snapshot(request: Request, sale_id: str, snapshot_id: str):
    return _snapshot(request.app.state.mall, sale_id, snapshot_id)


@admin_router.patch("/sales/{sale_id}/saleUnits", response_model=PageResponse[SaleUnitResponse])
def search_sale_units(request: Request, sale_id: str, body: SaleUnitSearch):
    store: MallStore = request.app.state.mall
    _sale(store, sale_id)
    return _search_units(store, sale_id, body)


@admin_router.get("/sales/{sale_id}/saleUnits/{sale_unit_id}", response_model=SaleUnitResponse)
def get_sale_unit(request: Request, sale_id: str, sale_unit_id: str):
    return SaleUnitResponse.model_validate(_unit(request.app.state.mall, sale_id, sale_unit_id))


@admin_router.patch(
    "/sales/{sale_id}/saleUnits/{sale_unit_id}/saleUnitOptions",
    response_model=PageResponse[SaleUnitOptionResponse],
)
def search_sale_unit_options(request: Request, sale_id: str, sale_unit_id: str, body: SaleUnitOptionSearch):
    store: MallStore = request.app.state.mall
    _unit(store, sale_id, sale_unit_id)
    return _search_unit_options(store, sale_unit_id, body)


@admin_router.post("/inventory", response_model=InventoryResponse, status_code=201)
def create_inventory(request: Request, body: InventoryCreate):
    store: MallStore = request.app.state.mall
    _sale(store, body.shopping_mall_sale_id)
    _check_combination(store, body.shopping_mall_sale_id, body.option_combination_code)
    return InventoryResponse.model_validate(store.create(Inventory(**body.model_dump())))


@admin_router.patch("/inventory", response_model=PageResponse[InventoryResponse])
def search_inventory(request: Request, body: InventorySearch):
    return _search_inventory(request.app.state.mall, body, body.shopping_mall_sale_id)


@admin_router.get("/inventory/{inventory_id}", response_model=InventoryResponse)
def get_inventory(request: Request, inventory_id: str):
    return InventoryResponse.model_validate(_inventory(request.app.state.mall, inventory_id))


@admin_router.put("/inventory/{inventory_id}", response_model=InventoryResponse)
def update_inventory(request: Request, inventory_id: str, body: InventoryUpdate):
    store: MallStore = request.app.state.mall
    return _update_inventory(store, _inventory(store, inventory_id), body)


@admin_router.delete("/inventory/{inventory_id}", status_code=204)
def erase_inventory(request: Request, inventory_id: str) -> Response:
    store: MallStore = request.app.state.mall
    if not store.soft_delete(Inventory, inventory_id):
        raise not_found("inventory")
    return Response(status_code=204)


router = APIRouter()
router.include_router(seller_router)
router.include_router(admin_router)
