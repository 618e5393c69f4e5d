"""
api/routes/v1/users.py -- Administrator views of the four actor tables.

Routes (all under /api/v1/shoppingMall/adminUser, admin only):
  PATCH /adminUsers                 -- search administrators
  GET   /adminUsers/{id}
  PATCH /memberUsers                -- search members
  GET   /memberUsers/{id}
  PATCH /sellerUsers                -- search sellers
  GET   /sellerUsers/{id}
  PUT   /sellerUsers/{id}           -- change seller status (approve a pending seller)
  PATCH /guestUsers                 -- search guest sessions
  GET   /guestUsers/{id}

Search filters: search (contains on email/nickname/full_name, or
ip_address/access_url/user_agent for guests) and status.
"""

import logging

from fastapi import APIRouter, Depends, Request

from api.errors import not_found
from api.models import (
    ActorSearch,
    AdminUserResponse,
    GuestUserResponse,
    MemberUserResponse,
    PageResponse,
    SellerStatusUpdate,
    SellerUserResponse,
)
from auth.dependencies import require_admin_user
from auth.models import ADMIN, GUEST, MEMBER, SELLER, AdminUser
from auth.store import UserStore

logger = logging.getLogger("shoppingmall.api")

router = APIRouter(prefix="/shoppingMall/adminUser", dependencies=[Depends(require_admin_user)])


def _search(request: Request, kind: str, body: ActorSearch):
    store: UserStore = request.app.state.user_store
    return store.find_page(
        kind, page=body.page, limit=body.limit, sort=body.sort, search=body.search, status=body.status
    )


def _detail(request: Request, kind: str, actor_id: str, entity: str):
    record = request.app.state.user_store.get(kind, actor_id)
    if record is None:
        raise not_found(entity)
    return record


@router.patch("/adminUsers", response_model=PageResponse[AdminUserResponse])
def search_admin_users(request: Request, body: ActorSearch):
    return PageResponse[AdminUserResponse].build(_search(request, ADMIN, body), AdminUserResponse)


@router.get("/adminUsers/{admin_user_id}", response_model=AdminUserResponse)
def get_admin_user(request: Request, admin_user_id: str):
    return AdminUserResponse.model_validate(_detail(request, ADMIN, admin_user_id, "admin_user"))


@router.patch("/memberUsers", response_model=PageResponse[MemberUserResponse])
def search_member_users(request: Request, body: ActorSearch):
    return PageResponse[MemberUserResponse].build(_search(request, MEMBER, body), MemberUserResponse)


@router.get("/memberUsers/{member_user_id}", response_model=MemberUserResponse)
def get_member_user(request: Request, member_user_id: str):
    return MemberUserResponse.model_validate(_detail(request, MEMBER, member_user_id, "member_user"))


@router.patch("/sellerUsers", response_model=PageResponse[SellerUserResponse])
def search_seller_users(request: Request, body: ActorSearch):
    return PageResponse[SellerUserResponse].build(_search(request, SELLER, body), SellerUserResponse)


@router.get("/sellerUsers/{seller_user_id}", response_model=SellerUserResponse)
def get_seller_user(request: Request, seller_user_id: str):
    return SellerUserResponse.model_validate(_detail(request, SELLER, seller_user_id, "seller_user"))


@router.put("/sellerUsers/{seller_user_id}", response_model=SellerUserResponse)
def update_seller_status(
    request: Request,
    seller_user_id: str,
    body: SellerStatusUpdate,
    admin: AdminUser = Depends(require_admin_user),
):
    """Approve, suspend or reject a seller account."""
    _detail(request, SELLER, seller_user_id, "seller_user")
    updated = request.app.state.user_store.update(SELLER, seller_user_id, status=body.status.value)
    logger.info("Seller %s status set to %s by admin %s", seller_user_id, body.status.value, admin.id)
    return SellerUserResponse.model_validate(updated)


@router.patch("/guestUsers", response_model=PageResponse[GuestUserResponse])
def search_guest_users(request: Request, body: ActorSearch):
    return PageResponse[GuestUserResponse].build(_search(request, GUEST, body), GuestUserResponse)


@router.get("/guestUsers/{guest_user_id}", response_model=GuestUserResponse)
def get_guest_user(request: Request, guest_user_id: str):
    return GuestUserResponse.model_validate(_detail(request, GUEST, guest_user_id, "guest_user"))
