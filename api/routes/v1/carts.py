"""
api/routes/v1/carts.py -- Carts, cart items and cart item options.

Member routes (/api/v1/shoppingMall/memberUser):
  POST /carts   PATCH /carts   GET /carts/{cartId}   DELETE /carts/{cartId}
  POST /carts/{cartId}/cartItems         PATCH (search)
  GET|PUT|DELETE /carts/{cartId}/cartItems/{cartItemId}
  POST /cartItems/{cartItemId}/cartItemOptions   PATCH (search)
  GET|PUT|DELETE /cartItems/{cartItemId}/cartItemOptions/{optionId}

Guest routes (/api/v1/shoppingMall/guestUser):
  POST /carts   GET /carts/{cartId}
  POST /carts/{cartId}/cartItems   PATCH (search)
  PUT|DELETE /carts/{cartId}/cartItems/{cartItemId}
  POST /cartItems/{cartItemId}/cartItemOptions
  PUT|DELETE /cartItems/{cartItemId}/cartItemOptions/{optionId}

Admin routes (/api/v1/shoppingMall/adminUser):
  PATCH /carts   GET /carts/{cartId}
  PATCH /cartItems/{cartItemId}/cartItemOptions
  DELETE /cartItems/{cartItemId}/cartItemOptions/{optionId}

Ownership chain: option -> item -> cart -> member/guest. A cart owned by
someone else is a 403; a child that does not hang off the parent in the path
is a 404. Carts and items are soft-deleted, item options hard-deleted.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from api.errors import bad_request, forbidden, not_found
from api.models import (
    CartCreate,
    CartItemCreate,
    CartItemOptionCreate,
    CartItemOptionResponse,
    CartItemOptionUpdate,
    CartItemResponse,
    CartItemSearch,
    CartItemUpdate,
    CartResponse,
    CartSearch,
    PageRequest,
    PageResponse,
)
from auth.dependencies import require_admin_user, require_guest_user, require_member_user
from auth.models import GuestUser, MemberUser
from mall.models import Cart, CartItem, CartItemOption, SaleOption, SaleOptionGroup, SaleSnapshot
from mall.store import MallStore

logger = logging.getLogger("shoppingmall.api")

member_router = APIRouter(prefix="/shoppingMall/memberUser")
guest_router = APIRouter(prefix="/shoppingMall/guestUser")
admin_router = APIRouter(prefix="/shoppingMall/adminUser", dependencies=[Depends(require_admin_user)])

MEMBER_OWNER = "member_user_id"
GUEST_OWNER = "guest_user_id"

_CART_SORT = ("created_at", "updated_at", "status")
_ITEM_SORT = ("created_at", "updated_at", "quantity", "unit_price", "status")


# ---------------------------------------------------------------------------
# Ownership helpers
# ---------------------------------------------------------------------------


def _cart(store: MallStore, cart_id: str, owner_field: str | None = None, owner_id: str | None = None) -> Cart:
    cart = store.get(Cart, cart_id)
    if cart is None:
        raise not_found("cart")
    if owner_field is not None and getattr(cart, owner_field) != owner_id:
        raise forbidden("This cart belongs to someone else.")
    return cart


def _item(store: MallStore, cart_id: str, item_id: str) -> CartItem:
    item = store.get(CartItem, item_id, shopping_cart_id=cart_id)
    if item is None:
        raise not_found("cart_item")
    return item


def _owned_item(store: MallStore, item_id: str, owner_field: str | None, owner_id: str | None) -> CartItem:
    """Resolve a cart item addressed without its cart and check the cart's owner."""
    item = store.get(CartItem, item_id)
    if item is None:
        raise not_found("cart_item")
    _cart(store, item.shopping_cart_id, owner_field, owner_id)
    return item


def _item_option(store: MallStore, item_id: str, option_id: str) -> CartItemOption:
    option = store.get(CartItemOption, option_id, shopping_cart_item_id=item_id)
    if option is None:
        raise not_found("cart_item_option")
    return option


def _check_option_choice(store: MallStore, group_id: str, option_id: str) -> None:
    """The option group and option must exist and the option must belong to the group."""
    if store.get(SaleOptionGroup, group_id) is None:
        raise not_found("sale_option_group")
    option = store.get(SaleOption, option_id)
    if option is None:
        raise not_found("sale_option")
    if option.shopping_mall_sale_option_group_id != group_id:
        raise bad_request("option_group_mismatch", "The option does not belong to the option group.")


# ---------------------------------------------------------------------------
# Shared handlers -- member and guest routes differ only in the owner column
# ---------------------------------------------------------------------------


def _create_cart(store: MallStore, owner_field: str, owner_id: str, body: CartCreate) -> CartResponse:
    cart = store.create(Cart(status=body.status, **{owner_field: owner_id}))
    return CartResponse.model_validate(cart)


def _create_item(store: MallStore, cart_id: str, body: CartItemCreate) -> CartItemResponse:
    snapshot = store.get(SaleSnapshot, body.shopping_sale_snapshot_id)
    if snapshot is None:
        raise not_found("sale_snapshot")
    item = store.create(
        CartItem(
            shopping_cart_id=cart_id,
            shopping_sale_snapshot_id=snapshot.id,
            quantity=body.quantity,
            unit_price=body.unit_price if body.unit_price is not None else snapshot.price,
        )
    )
    return CartItemResponse.model_validate(item)


def _search_items(store: MallStore, cart_id: str, body: CartItemSearch):
    page = store.find_page(
        CartItem,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_ITEM_SORT,
        filters={"shopping_cart_id": cart_id, "status": body.status},
    )
    return PageResponse[CartItemResponse].build(page, CartItemResponse)


def _create_item_option(store: MallStore, item_id: str, body: CartItemOptionCreate) -> CartItemOptionResponse:
    _check_option_choice(store, body.shopping_sale_option_group_id, body.shopping_sale_option_id)
    option = store.create(CartItemOption(shopping_cart_item_id=item_id, **body.model_dump()))
    return CartItemOptionResponse.model_validate(option)


def _update_item_option(
    store: MallStore, option: CartItemOption, body: CartItemOptionUpdate
) -> CartItemOptionResponse:
    changes = body.changes()
    _check_option_choice(
        store,
        changes.get("shopping_sale_option_group_id", option.shopping_sale_option_group_id),
        changes.get("shopping_sale_option_id", option.shopping_sale_option_id),
    )
    return CartItemOptionResponse.model_validate(store.update(CartItemOption, option.id, **changes))


def _search_item_options(store: MallStore, item_id: str, body: PageRequest):
    page = store.find_page(
        CartItemOption,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        filters={"shopping_cart_item_id": item_id},
    )
    return PageResponse[CartItemOptionResponse].build(page, CartItemOptionResponse)


# ---------------------------------------------------------------------------
# Member -- carts
# ---------------------------------------------------------------------------


@member_router.post("/carts", response_model=CartResponse, status_code=201)
def create_member_cart(request: Request, body: CartCreate, member: MemberUser = Depends(require_member_user)):
    return _create_cart(request.app.state.mall, MEMBER_OWNER, member.id, body)


@member_router.patch("/carts", response_model=PageResponse[CartResponse])
def search_member_carts(request: Request, body: CartSearch, member: MemberUser = Depends(require_member_user)):
    store: MallStore = request.app.state.mall
    page = store.find_page(
        Cart,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_CART_SORT,
        filters={MEMBER_OWNER: member.id, "status": body.status},
    )
    return PageResponse[CartResponse].build(page, CartResponse)


@member_router.get("/carts/{cart_id}", response_model=CartResponse)
def get_member_cart(request: Request, cart_id: str, member: MemberUser = Depends(require_member_user)):
    return CartResponse.model_validate(_cart(request.app.state.mall, cart_id, MEMBER_OWNER, member.id))


@member_router.delete("/carts/{cart_id}", status_code=204)
def erase_member_cart(request: Request, cart_id: str, member: MemberUser = Depends(require_member_user)) -> Response:
    store: MallStore = request.app.state.mall
    _cart(store, cart_id, MEMBER_OWNER, member.id)
    store.soft_delete(Cart, cart_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Member -- cart items
# ---------------------------------------------------------------------------


@member_router.post("/carts/{cart_id}/cartItems", response_model=CartItemResponse, status_code=201)
def create_member_cart_item(
    request: Request, cart_id: str, body: CartItemCreate, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _cart(store, cart_id, MEMBER_OWNER, member.id)
    return _create_item(store, cart_id, body)


@member_router.patch("/carts/{cart_id}/cartItems", response_model=PageResponse[CartItemResponse])
def search_member_cart_items(
    request: Request, cart_id: str, body: CartItemSearch, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _cart(store, cart_id, MEMBER_OWNER, member.id)
    return _search_items(store, cart_id, body)


@member_router.get("/carts/{cart_id}/cartItems/{cart_item_id}", response_model=CartItemResponse)
def get_member_cart_item(
    request: Request, cart_id: str, cart_item_id: str, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _cart(store, cart_id, MEMBER_OWNER, member.id)
    return CartItemResponse.model_validate(_item(store, cart_id, cart_item_id))


@member_router.put("/carts/{cart_id}/cartItems/{cart_item_id}", response_model=CartItemResponse)
def update_member_cart_item(
    request: Request,
    cart_id: str,
    cart_item_id: str,
    body: CartItemUpdate,
    member: MemberUser = Depends(require_member_user),
):
    store: MallStore = request.app.state.mall
    _cart(store, cart_id, MEMBER_OWNER, member.id)
    _item(store, cart_id, cart_item_id)
    return CartItemResponse.model_validate(store.update(CartItem, cart_item_id, **body.changes()))


@member_router.delete("/carts/{cart_id}/cartItems/{cart_item_id}", status_code=204)
def erase_member_cart_item(
    request: Request, cart_id: str, cart_item_id: str, member: MemberUser = Depends(require_member_user)
) -> Response:
    store: MallStore = request.app.state.mall
    _cart(store, cart_id, MEMBER_OWNER, member.id)
    _item(store, cart_id, cart_item_id)
    store.soft_delete(CartItem, cart_item_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Member -- cart item options
# ---------------------------------------------------------------------------


@member_router.post(
    "/cartItems/{cart_item_id}/cartItemOptions", response_model=CartItemOptionResponse, status_code=201
)
def create_member_cart_item_option(
    request: Request, cart_item_id: str, body: CartItemOptionCreate, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _owned_item(store, cart_item_id, MEMBER_OWNER, member.id)
    return _create_item_option(store, cart_item_id, body)


@member_router.patch(
    "/cartItems/{cart_item_id}/cartItemOptions", response_model=PageResponse[CartItemOptionResponse]
)
def search_member_cart_item_options(
    request: Request, cart_item_id: str, body: PageRequest, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _owned_item(store, cart_item_id, MEMBER_OWNER, member.id)
    return _search_item_options(store, cart_item_id, body)


@member_router.get(
    "/cartItems/{cart_item_id}/cartItemOptions/{option_id}", response_model=CartItemOptionResponse
)
def get_member_cart_item_option(
    request: Request, cart_item_id: str, option_id: str, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _owned_item(store, cart_item_id, MEMBER_OWNER, member.id)
    return CartItemOptionResponse.model_validate(_item_option(store, cart_item_id, option_id))


@member_router.put(
    "/cartItems/{cart_item_id}/cartItemOptions/{option_id}", response_model=CartItemOptionResponse
)
def update_member_cart_item_option(
    request: Request,
    cart_item_id: str,
    option_id: str,
    body: CartItemOptionUpdate,
    member: MemberUser = Depends(require_member_user),
):
    store: MallStore = request.app.state.mall
    _owned_item(store, cart_item_id, MEMBER_OWNER, member.id)
    return _update_item_option(store, _item_option(store, cart_item_id, option_id), body)


@member_router.delete("/cartItems/{cart_item_id}/cartItemOptions/{option_id}", status_code=204)
def erase_member_cart_item_option(
    request: Request, cart_item_id: str, option_id: str, member: MemberUser = Depends(require_member_user)
) -> Response:
    store: MallStore = request.app.state.mall
    _owned_item(store, cart_item_id, MEMBER_OWNER, member.id)
    _item_option(store, cart_item_id, option_id)
    store.delete(CartItemOption, option_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Guest
# ---------------------------------------------------------------------------


@guest_router.post("/carts", response_model=CartResponse, status_code=201)
def create_guest_cart(request: Request, body: CartCreate, guest: GuestUser = Depends(require_guest_user)):
    return _create_cart(request.app.state.mall, GUEST_OWNER, guest.id, body)


@guest_router.get("/carts/{cart_id}", response_model=CartResponse)
def get_guest_cart(request: Request, cart_id: str, guest: GuestUser = Depends(require_guest_user)):
    return CartResponse.model_validate(_cart(request.app.state.mall, cart_id, GUEST_OWNER, guest.id))


@guest_router.post("/carts/{cart_id}/cartItems", response_model=CartItemResponse, status_code=201)
def create_guest_cart_item(
    request: Request, cart_id: str, body: CartItemCreate, guest: GuestUser = Depends(require_guest_user)
):
    store: MallStore = request.app.state.mall
    _cart(store, cart_id, GUEST_OWNER, guest.id)
    return _create_item(store, cart_id, body)


@guest_router.patch("/carts/{cart_id}/cartItems", response_model=PageResponse[CartItemResponse])
def search_guest_cart_items(
    request: Request, cart_id: str, body: CartItemSearch, guest: GuestUser = Depends(require_guest_user)
):
    store: MallStore = request.app.state.mall
    _cart(store, cart_id, GUEST_OWNER, guest.id)
    return _search_items(store, cart_id, body)


@guest_router.put("/carts/{cart_id}/cartItems/{cart_item_id}", response_model=CartItemResponse)
def update_guest_cart_item(
    request: Request,
    cart_id: str,
    cart_item_id: str,
    body: CartItemUpdate,
    guest: GuestUser = Depends(require_guest_user),
):
    store: MallStore = request.app.state.mall
    _cart(store, cart_id, GUEST_OWNER, guest.id)
    _item(store, cart_id, cart_item_id)
    return CartItemResponse.model_validate(store.update(CartItem, cart_item_id, **body.changes()))


@guest_router.delete("/carts/{cart_id}/cartItems/{cart_item_id}", status_code=204)
def erase_guest_cart_item(
    request: Request, cart_id: str, cart_item_id: str, guest: GuestUser = Depends(require_guest_user)
) -> Response:
    store: MallStore = request.app.state.mall
    _cart(store, cart_id, GUEST_OWNER, guest.id)
    _item(store, cart_id, cart_item_id)
    store.soft_delete(CartItem, cart_item_id)
    return Response(status_code=204)


@guest_router.post(
    "/cartItems/{cart_item_id}/cartItemOptions", response_model=CartItemOptionResponse, status_code=201
)
def create_guest_cart_item_option(
    request: Request, cart_item_id: str, body: CartItemOptionCreate, guest: GuestUser = Depends(require_guest_user)
):
    store: MallStore = request.app.state.mall
    _owned_item(store, cart_item_id, GUEST_OWNER, guest.id)
    return _create_item_option(store, cart_item_id, body)


@guest_router.put("/cartItems/{cart_item_id}/cartItemOptions/{option_id}", response_model=CartItemOptionResponse)
def update_guest_cart_item_option(
    request: Request,
    cart_item_id: str,
    option_id: str,
    body: CartItemOptionUpdate,
    guest: GuestUser = Depends(require_guest_user),
):
    store: MallStore = request.app.state.mall
    _owned_item(store, cart_item_id, GUEST_OWNER, guest.id)
    return _update_item_option(store, _item_option(store, cart_item_id, option_id), body)


@guest_router.delete("/cartItems/{cart_item_id}/cartItemOptions/{option_id}", status_code=204)
def erase_guest_cart_item_option(
    request: Request, cart_item_id: str, option_id: str, guest: GuestUser = Depends(require_guest_user)
) -> Response:
    store: MallStore = request.app.state.mall
    _owned_item(store, cart_item_id, GUEST_OWNER, guest.id)
    _item_option(store, cart_item_id, option_id)
    store.delete(CartItemOption, option_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@admin_router.patch("/carts", response_model=PageResponse[CartResponse])
def search_carts(request: Request, body: CartSearch):
    store: MallStore = request.app.state.mall
    page = store.find_page(
        Cart,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_CART_SORT,
        filters={"status": body.status, MEMBER_OWNER: body.member_user_id, GUEST_OWNER: body.guest_user_id},
    )
    return PageResponse[CartResponse].build(page, CartResponse)


@admin_router.get("/carts/{cart_id}", response_model=CartResponse)
def get_cart(request: Request, cart_id: str):
    return CartResponse.model_validate(_cart(request.app.state.mall, cart_id))


@admin_router.patch(
    "/cartItems/{cart_item_id}/cartItemOptions", response_model=PageResponse[CartItemOptionResponse]
)
def search_cart_item_options(request: Request, cart_item_id: str, body: PageRequest):
    store: MallStore = request.app.state.mall
    _owned_item(store, cart_item_id, None, None)
    return _search_item_options(store, cart_item_id, body)


@admin_router.delete("/cartItems/{cart_item_id}/cartItemOptions/{option_id}", status_code=204)
def erase_cart_item_option(request: Request, cart_item_id: str, option_id: str) -> Response:
    store: MallStore = request.app.state.mall
    _item_option(store, cart_item_id, option_id)
    store.delete(CartItemOption, option_id)
    logger.info("Cart item option %s removed by an administrator", option_id)
    return Response(status_code=204)


router = APIRouter()
router.include_router(member_router)
router.include_router(guest_router)
router.include_router(admin_router)
