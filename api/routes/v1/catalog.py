"""
api/routes/v1/catalog.py -- Channels, categories and how they relate.

Routes (all under /api/v1/shoppingMall/adminUser, admin only):
  POST   /channels                          PATCH /channels (search)
  GET    /channels/{channelId}              PUT / DELETE /channels/{channelId}
  POST   /categories                        PATCH /categories (search)
  GET    /categories/{categoryId}           PUT / DELETE /categories/{categoryId}

  POST   /categories/{categoryId}/categoryRelations/child    -- add a child
  PATCH  /categories/{categoryId}/categoryRelations/child    -- relations where categoryId is parent
  PATCH  /categories/{categoryId}/categoryRelations/parent   -- relations where categoryId is child
  GET|PUT|DELETE .../categoryRelations/child/{relationId}
  GET|PUT        .../categoryRelations/parent/{relationId}

  POST   /channelCategories                 PATCH /channelCategories (search)
  GET    /channelCategories/{id}            PUT / DELETE /channelCategories/{id}

Channel, category, relation and channel-category deletes are soft.
Unique codes and duplicate live relations are 409.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError

from api.errors import bad_request, conflict, not_found
from api.models import (
    CategoryCreate,
    CategoryRelationCreate,
    CategoryRelationResponse,
    CategoryRelationUpdate,
    CategoryResponse,
    CategorySearch,
    CategoryUpdate,
    ChannelCategoryCreate,
    ChannelCategoryResponse,
    ChannelCategorySearch,
    ChannelCategoryUpdate,
    ChannelCreate,
    ChannelResponse,
    ChannelSearch,
    ChannelUpdate,
    PageRequest,
    PageResponse,
)
from auth.dependencies import require_admin_user
from mall.models import Category, CategoryRelation, Channel, ChannelCategory
from mall.store import MallStore

logger = logging.getLogger("shoppingmall.api")

router = APIRouter(prefix="/shoppingMall/adminUser", dependencies=[Depends(require_admin_user)])

_CATALOG_SORT = ("created_at", "updated_at", "code", "name", "status")


def _get_or_404(store: MallStore, cls, record_id: str, entity: str):
    record = store.get(cls, record_id)
    if record is None:
        raise not_found(entity)
    return record


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------


@router.post("/channels", response_model=ChannelResponse, status_code=201)
def create_channel(request: Request, body: ChannelCreate) -> ChannelResponse:
    store: MallStore = request.app.state.mall
    try:
        channel = store.create(Channel(**body.model_dump()))
    except IntegrityError:
        raise conflict("A channel with this code already exists.")
    return ChannelResponse.model_validate(channel)


@router.patch("/channels", response_model=PageResponse[ChannelResponse])
def search_channels(request: Request, body: ChannelSearch):
    store: MallStore = request.app.state.mall
    page = store.find_page(
        Channel,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_CATALOG_SORT,
        filters={"status": body.status},
        search=(("code", "name"), body.search),
    )
    return PageResponse[ChannelResponse].build(page, ChannelResponse)


@router.get("/channels/{channel_id}", response_model=ChannelResponse)
def get_channel(request: Request, channel_id: str) -> ChannelResponse:
    return ChannelResponse.model_validate(_get_or_404(request.app.state.mall, Channel, channel_id, "channel"))


@router.put("/channels/{channel_id}", response_model=ChannelResponse)
def update_channel(request: Request, channel_id: str, body: ChannelUpdate) -> ChannelResponse:
    store: MallStore = request.app.state.mall
    _get_or_404(store, Channel, channel_id, "channel")
    try:
        updated = store.update(Channel, channel_id, **body.changes())
    except IntegrityError:
        raise conflict("A channel with this code already exists.")
    return ChannelResponse.model_validate(updated)


@router.delete("/channels/{channel_id}", status_code=204)
def erase_channel(request: Request, channel_id: str) -> Response:
    store: MallStore = request.app.state.mall
    if not store.soft_delete(Channel, channel_id):
        raise not_found("channel")
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


@router.post("/categories", response_model=CategoryResponse, status_code=201)
def create_category(request: Request, body: CategoryCreate) -> CategoryResponse:
    store: MallStore = request.app.state.mall
    try:
        category = store.create(Category(**body.model_dump()))
    except IntegrityError:
        raise conflict("A category with this code already exists.")
    return CategoryResponse.model_validate(category)


@router.patch("/categories", response_model=PageResponse[CategoryResponse])
def search_categories(request: Request, body: CategorySearch):
    store: MallStore = request.app.state.mall
    page = store.find_page(
        Category,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_CATALOG_SORT,
        filters={"status": body.status},
        search=(("code", "name"), body.search),
    )
    return PageResponse[CategoryResponse].build(page, CategoryResponse)


@router.get("/categories/{category_id}", response_model=CategoryResponse)
def get_category(request: Request, category_id: str) -> CategoryResponse:
    return CategoryResponse.model_validate(_get_or_404(request.app.state.mall, Category, category_id, "category"))


@router.put("/categories/{category_id}", response_model=CategoryResponse)
def update_category(request: Request, category_id: str, body: CategoryUpdate) -> CategoryResponse:
    store: MallStore = request.app.state.mall
    _get_or_404(store, Category, category_id, "category")
    try:
        updated = store.update(Category, category_id, **body.changes())
    except IntegrityError:
        raise conflict("A category with this code already exists.")
    return CategoryResponse.model_validate(updated)


@router.delete("/categories/{category_id}", status_code=204)
def erase_category(request: Request, category_id: str) -> Response:
    store: MallStore = request.app.state.mall
    if not store.soft_delete(Category, category_id):
        raise not_found("category")
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Category relations
#
# "child" routes see relations where the path category is the parent;
# "parent" routes see relations where the path category is the child.
# ---------------------------------------------------------------------------


def _check_relation(store: MallStore, parent_id: str, child_id: str, exclude_id: str | None = None) -> None:
    """Both ends must exist, differ, and not already be linked."""
    _get_or_404(store, Category, parent_id, "category")
    _get_or_404(store, Category, child_id, "category")
    if parent_id == child_id:
        raise bad_request("self_relation", "A category cannot be its own child.")
    existing = store.find_one(
        CategoryRelation,
        parent_shopping_mall_category_id=parent_id,
        child_shopping_mall_category_id=child_id,
    )
    if existing is not None and existing.id != exclude_id:
        raise conflict("These categories are already related.")


def _relation_or_404(store: MallStore, relation_id: str, side: str, category_id: str) -> CategoryRelation:
    relation = store.get(CategoryRelation, relation_id, **{f"{side}_shopping_mall_category_id": category_id})
    if relation is None:
        raise not_found("category_relation")
    return relation


def _search_relations(store: MallStore, side: str, category_id: str, body: PageRequest):
    _get_or_404(store, Category, category_id, "category")
    page = store.find_page(
        CategoryRelation,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        filters={f"{side}_shopping_mall_category_id": category_id},
    )
    return PageResponse[CategoryRelationResponse].build(page, CategoryRelationResponse)


def _update_relation(store: MallStore, relation: CategoryRelation, body: CategoryRelationUpdate):
    changes = body.changes()
    parent_id = changes.get("parent_shopping_mall_category_id", relation.parent_shopping_mall_category_id)
    child_id = changes.get("child_shopping_mall_category_id", relation.child_shopping_mall_category_id)
    _check_relation(store, parent_id, child_id, exclude_id=relation.id)
    return CategoryRelationResponse.model_validate(store.update(CategoryRelation, relation.id, **changes))


@router.post(
    "/categories/{category_id}/categoryRelations/child",
    response_model=CategoryRelationResponse,
    status_code=201,
)
def create_child_relation(request: Request, category_id: str, body: CategoryRelationCreate):
    store: MallStore = request.app.state.mall
    _check_relation(store, category_id, body.child_shopping_mall_category_id)
    relation = store.create(
        CategoryRelation(
            parent_shopping_mall_category_id=category_id,
            child_shopping_mall_category_id=body.child_shopping_mall_category_id,
        )
    )
    return CategoryRelationResponse.model_validate(relation)


@router.patch(
    "/categories/{category_id}/categoryRelations/child",
    response_model=PageResponse[CategoryRelationResponse],
)
def search_child_relations(request: Request, category_id: str, body: PageRequest):
    return _search_relations(request.app.state.mall, "parent", category_id, body)


@router.patch(
    "/categories/{category_id}/categoryRelations/parent",
    response_model=PageResponse[CategoryRelationResponse],
)
def search_parent_relations(request: Request, category_id: str, body: PageRequest):
    return _search_relations(request.app.state.mall, "child", category_id, body)


@router.get(
    "/categories/{category_id}/categoryRelations/child/{relation_id}",
    response_model=CategoryRelationResponse,
)
def get_child_relation(request: Request, category_id: str, relation_id: str):
    relation = _relation_or_404(request.app.state.mall, relation_id, "parent", category_id)
    return CategoryRelationResponse.model_validate(relation)


@router.put(
    "/categories/{category_id}/categoryRelations/child/{relation_id}",
    response_model=CategoryRelationResponse,
)
def update_child_relation(request: Request, category_id: str, relation_id: str, body: CategoryRelationUpdate):
    store: MallStore = request.app.state.mall
    relation = _relation_or_404(store, relation_id, "parent", category_id)
    return _update_relation(store, relation, body)


@router.delete("/categories/{category_id}/categoryRelations/child/{relation_id}", status_code=204)
def erase_child_relation(request: Request, category_id: str, relation_id: str) -> Response:
    store: MallStore = request.app.state.mall
    _relation_or_404(store, relation_id, "parent", category_id)
    store.soft_delete(CategoryRelation, relation_id)
    return Response(status_code=204)


@router.get(
    "/categories/{category_id}/categoryRelations/parent/{relation_id}",
    response_model=CategoryRelationResponse,
)
def get_parent_relation(request: Request, category_id: str, relation_id: str):
    relation = _relation_or_404(request.app.state.mall, relation_id, "child", category_id)
    return CategoryRelationResponse.model_validate(relation)


@router.put(
    "/categories/{category_id}/categoryRelations/parent/{relation_id}",
    response_model=CategoryRelationResponse,
)
def update_parent_relation(request: Request, category_id: str, relation_id: str, body: CategoryRelationUpdate):
    store: MallStore = request.app.state.mall
    relation = _relation_or_404(store, relation_id, "child", category_id)
    return _update_relation(store, relation, body)


# ---------------------------------------------------------------------------
# Channel categories
# ---------------------------------------------------------------------------


def _channel_category_dto(store: MallStore, link: ChannelCategory) -> ChannelCategoryResponse:
    """Embed the referenced channel and category (null when they are gone)."""
    channel = store.get(Channel, link.shopping_mall_channel_id)
    category = store.get(Category, link.shopping_mall_category_id)
    return ChannelCategoryResponse(
        id=link.id,
        shopping_mall_channel_id=link.shopping_mall_channel_id,
        shopping_mall_category_id=link.shopping_mall_category_id,
        channel=ChannelResponse.model_validate(channel) if channel else None,
        category=CategoryResponse.model_validate(category) if category else None,
        created_at=link.created_at,
        updated_at=link.updated_at,
        deleted_at=link.deleted_at,
    )


@router.post("/channelCategories", response_model=ChannelCategoryResponse, status_code=201)
def create_channel_category(request: Request, body: ChannelCategoryCreate):
    store: MallStore = request.app.state.mall
    _get_or_404(store, Channel, body.shopping_mall_channel_id, "channel")
    _get_or_404(store, Category, body.shopping_mall_category_id, "category")
    link = store.create(ChannelCategory(**body.model_dump()))
    return _channel_category_dto(store, link)


@router.patch("/channelCategories", response_model=PageResponse[ChannelCategoryResponse])
def search_channel_categories(request: Request, body: ChannelCategorySearch):
    store: MallStore = request.app.state.mall
    page = store.find_page(
        ChannelCategory,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        filters={
            "shopping_mall_channel_id": body.shopping_mall_channel_id,
            "shopping_mall_category_id": body.shopping_mall_category_id,
        },
    )
    return PageResponse[ChannelCategoryResponse].build(
        page, ChannelCategoryResponse, convert=lambda link: _channel_category_dto(store, link)
    )


@router.get("/channelCategories/{channel_category_id}", response_model=ChannelCategoryResponse)
def get_channel_category(request: Request, channel_category_id: str):
    store: MallStore = request.app.state.mall
    link = _get_or_404(store, ChannelCategory, channel_category_id, "channel_category")
    return _channel_category_dto(store, link)


@router.put("/channelCategories/{channel_category_id}", response_model=ChannelCategoryResponse)
def update_channel_category(request: Request, channel_category_id: str, body: ChannelCategoryUpdate):
    store: MallStore = request.app.state.mall
    _get_or_404(store, ChannelCategory, channel_category_id, "channel_category")
    changes = body.changes()
    if "shopping_mall_channel_id" in changes:
        _get_or_404(store, Channel, changes["shopping_mall_channel_id"], "channel")
    if "shopping_mall_category_id" in changes:
        _get_or_404(store, Category, changes["shopping_mall_category_id"], "category")
    return _channel_category_dto(store, store.update(ChannelCategory, channel_category_id, **changes))


@router.delete("/channelCategories/{channel_category_id}", status_code=204)
def erase_channel_category(request: Request, channel_category_id: str) -> Response:
    store: MallStore = request.app.state.mall
    if not store.soft_delete(ChannelCategory, channel_category_id):
        raise not_found("channel_category")
    return Response(status_code=204)
