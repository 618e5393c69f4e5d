"""
api/routes/v1/reviews.py -- Reviews, inquiries, the comments under them and seller responses.

Member routes (/api/v1/shoppingMall/memberUser):
  POST /reviews    PATCH /reviews    GET|PUT|DELETE /reviews/{reviewId}
  POST /inquiries  PATCH /inquiries  GET|PUT|DELETE /inquiries/{inquiryId}
  POST|PATCH /reviews/{reviewId}/comments
  PUT|DELETE /reviews/{reviewId}/comments/{commentId}
  POST|PATCH /inquiries/{inquiryId}/comments
  PUT  /inquiries/{inquiryId}/comments/{commentId}

Seller routes (/api/v1/shoppingMall/sellerUser):
  POST|PATCH /reviews/{reviewId}/comments
  PUT  /reviews/{reviewId}/comments/{commentId}
  POST /sellerResponses  PATCH /sellerResponses (own)
  GET|PUT|DELETE /sellerResponses/{responseId}

Admin routes (/api/v1/shoppingMall/adminUser):
  PATCH /inquiries
  PATCH /reviews/{reviewId}/comments
  PUT|DELETE /reviews/{reviewId}/comments/{commentId}
  POST|PATCH /inquiries/{inquiryId}/comments
  PATCH /sellerResponses  GET|DELETE /sellerResponses/{responseId}

Rules:
  A review needs a confirmed + paid order of the member containing the
  snapshot (400 not_purchased); the review inherits that order's channel.
  Members and sellers edit only comments they wrote; admins edit any.
  An admin comment or a seller response on an inquiry marks it answered.
  A seller response targets exactly one review or inquiry (400
  invalid_target); sellers change only their own responses.
  Reviews, inquiries, comments and seller responses are soft-deleted.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response

from api.errors import bad_request, forbidden, not_found
from api.models import (
    CommentCreate,
    CommentResponse,
    CommentSearch,
    CommentUpdate,
    InquiryCreate,
    InquiryResponse,
    InquirySearch,
    InquiryUpdate,
    PageResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewSearch,
    ReviewUpdate,
    SellerResponseCreate,
    SellerResponseResponse,
    SellerResponseSearch,
    SellerResponseUpdate,
)
from auth.dependencies import require_admin_user, require_member_user, require_seller_user
from auth.models import ADMIN, MEMBER, SELLER, AdminUser, MemberUser, SellerUser
from mall.models import Category, Channel, Comment, Inquiry, Review, SaleSnapshot, SellerResponse
from mall.store import MallStore

logger = logging.getLogger("shoppingmall.api")

member_router = APIRouter(prefix="/shoppingMall/memberUser")
seller_router = APIRouter(prefix="/shoppingMall/sellerUser")
admin_router = APIRouter(prefix="/shoppingMall/adminUser")

_REVIEW_SORT = ("created_at", "updated_at", "rating", "review_title")
_INQUIRY_SORT = ("created_at", "updated_at", "inquiry_title", "status")
_COMMENT_SORT = ("created_at", "updated_at")
_RESPONSE_SORT = ("created_at", "updated_at", "status")

# Which Comment column records the author, per actor kind.
_AUTHOR_COLUMN = {
    MEMBER: "shopping_mall_memberuserid",
    SELLER: "shopping_mall_selleruserid",
    ADMIN: "shopping_mall_adminuserid",
}


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------


def _review(store: MallStore, review_id: str) -> Review:
    review = store.get(Review, review_id)
    if review is None:
        raise not_found("review")
    return review


def _own_review(store: MallStore, review_id: str, member: MemberUser) -> Review:
    review = _review(store, review_id)
    if review.shopping_mall_memberuserid != member.id:
        raise forbidden("This review belongs to another member.")
    return review


def _inquiry(store: MallStore, inquiry_id: str) -> Inquiry:
    inquiry = store.get(Inquiry, inquiry_id)
    if inquiry is None:
        raise not_found("inquiry")
    return inquiry


def _own_inquiry(store: MallStore, inquiry_id: str, member: MemberUser) -> Inquiry:
    inquiry = _inquiry(store, inquiry_id)
    if inquiry.shopping_mall_memberuserid != member.id:
        raise forbidden("This inquiry belongs to another member.")
    return inquiry


def _comment(store: MallStore, comment_id: str, **parent: str) -> Comment:
    """Fetch a comment that hangs off the review or inquiry named in parent."""
    comment = store.get(Comment, comment_id, **parent)
    if comment is None:
        raise not_found("comment")
    return comment


def _check_author(comment: Comment, kind: str, actor_id: str) -> None:
    if kind != ADMIN and getattr(comment, _AUTHOR_COLUMN[kind]) != actor_id:
        raise forbidden("You can only change your own comments.")


def _check_parent_comment(store: MallStore, parent_comment_id: Optional[str], **parent: str) -> None:
    if parent_comment_id is not None:
        _comment(store, parent_comment_id, **parent)


# ---------------------------------------------------------------------------
# Comment handlers shared by every actor
# ---------------------------------------------------------------------------


def _create_comment(store: MallStore, body: CommentCreate, kind: str, actor_id: str, **parent: str) -> Comment:
    _check_parent_comment(store, body.parent_comment_id, **parent)
    values: dict[str, Any] = body.model_dump()
    values[_AUTHOR_COLUMN[kind]] = actor_id
    return store.create(Comment(**values, **parent))


def _search_comments(store: MallStore, body: CommentSearch, **parent: str):
    page = store.find_page(
        Comment,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_COMMENT_SORT,
        filters=dict(parent),
        search=(("comment_body",), body.search),
    )
    return PageResponse[CommentResponse].build(page, CommentResponse)


def _update_comment(
    store: MallStore, comment_id: str, body: CommentUpdate, kind: str, actor_id: str, **parent: str
) -> CommentResponse:
    comment = _comment(store, comment_id, **parent)
    _check_author(comment, kind, actor_id)
    return CommentResponse.model_validate(store.update(Comment, comment.id, **body.changes()))


def _erase_comment(store: MallStore, comment_id: str, kind: str, actor_id: str, **parent: str) -> Response:
    comment = _comment(store, comment_id, **parent)
    _check_author(comment, kind, actor_id)
    store.soft_delete(Comment, comment.id)
    return Response(status_code=204)


def _search_inquiries(store: MallStore, body: InquirySearch, member_id: Optional[str]):
    page = store.find_page(
        Inquiry,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_INQUIRY_SORT,
        filters={
            "shopping_mall_memberuserid": member_id,
            "status": body.status,
            "is_answered": body.is_answered,
        },
        search=(("inquiry_title", "inquiry_body"), body.search),
    )
    return PageResponse[InquiryResponse].build(page, InquiryResponse)


def _seller_response(store: MallStore, response_id: str) -> SellerResponse:
    response = store.get(SellerResponse, response_id)
    if response is None:
        raise not_found("seller_response")
    return response


def _own_seller_response(store: MallStore, response_id: str, seller: SellerUser) -> SellerResponse:
    response = _seller_response(store, response_id)
    if response.shopping_mall_selleruserid != seller.id:
        raise forbidden("This response belongs to another seller.")
    return response


def _search_seller_responses(store: MallStore, body: SellerResponseSearch, seller_id: Optional[str]):
    page = store.find_page(
        SellerResponse,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_RESPONSE_SORT,
        filters={
            "shopping_mall_selleruserid": seller_id,
            "shopping_mall_review_id": body.shopping_mall_review_id,
            "shopping_mall_inquiry_id": body.shopping_mall_inquiry_id,
            "is_private": body.is_private,
            "status": body.status,
        },
        search=(("response_body",), body.search),
    )
    return PageResponse[SellerResponseResponse].build(page, SellerResponseResponse)


# ---------------------------------------------------------------------------
# Member -- reviews
# ---------------------------------------------------------------------------


@member_router.post("/reviews", response_model=ReviewResponse, status_code=201)
def create_review(request: Request, body: ReviewCreate, member: MemberUser = Depends(require_member_user)):
    """Review a purchased snapshot. The channel comes from the qualifying order."""
    store: MallStore = request.app.state.mall
    if store.get(SaleSnapshot, body.shopping_mall_sale_snapshot_id) is None:
        raise not_found("sale_snapshot")
    if body.shopping_mall_category_id and store.get(Category, body.shopping_mall_category_id) is None:
        raise not_found("category")
    order = store.purchased_order(member.id, body.shopping_mall_sale_snapshot_id)
    if order is None:
        raise bad_request("not_purchased", "Only confirmed, paid purchases can be reviewed.")
    review = store.create(
        Review(
            shopping_mall_channel_id=order.shopping_mall_channel_id,
            shopping_mall_memberuserid=member.id,
            **body.model_dump(),
        )
    )
    logger.info("Review %s created by member %s", review.id, member.id)
    return ReviewResponse.model_validate(review)


@member_router.patch("/reviews", response_model=PageResponse[ReviewResponse])
def search_reviews(request: Request, body: ReviewSearch, member: MemberUser = Depends(require_member_user)):
    store: MallStore = request.app.state.mall
    page = store.find_page(
        Review,
        page=body.page,
        limit=body.limit,
        sort=body.sort,
        sortable=_REVIEW_SORT,
        filters={
            "shopping_mall_memberuserid": member.id,
            "rating": body.rating,
            "status": body.status,
            "shopping_mall_sale_snapshot_id": body.shopping_mall_sale_snapshot_id,
        },
        search=(("review_title", "review_body"), body.search),
    )
    return PageResponse[ReviewResponse].build(page, ReviewResponse)


@member_router.get("/reviews/{review_id}", response_model=ReviewResponse)
def get_review(request: Request, review_id: str, member: MemberUser = Depends(require_member_user)):
    return ReviewResponse.model_validate(_own_review(request.app.state.mall, review_id, member))


@member_router.put("/reviews/{review_id}", response_model=ReviewResponse)
def update_review(
    request: Request, review_id: str, body: ReviewUpdate, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _own_review(store, review_id, member)
    changes = body.changes()
    if changes.get("shopping_mall_category_id") and store.get(Category, changes["shopping_mall_category_id"]) is None:
        raise not_found("category")
    return ReviewResponse.model_validate(store.update(Review, review_id, **changes))


@member_router.delete("/reviews/{review_id}", status_code=204)
def erase_review(request: Request, review_id: str, member: MemberUser = Depends(require_member_user)) -> Response:
    store: MallStore = request.app.state.mall
    _own_review(store, review_id, member)
    store.soft_delete(Review, review_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Member -- inquiries
# ---------------------------------------------------------------------------


@member_router.post("/inquiries", response_model=InquiryResponse, status_code=201)
def create_inquiry(request: Request, body: InquiryCreate, member: MemberUser = Depends(require_member_user)):
    store: MallStore = request.app.state.mall
    if store.get(Channel, body.shopping_mall_channel_id) is None:
        raise not_found("channel")
    inquiry = store.create(Inquiry(shopping_mall_memberuserid=member.id, **body.model_dump()))
    return InquiryResponse.model_validate(inquiry)


@member_router.patch("/inquiries", response_model=PageResponse[InquiryResponse])
def search_inquiries(request: Request, body: InquirySearch, member: MemberUser = Depends(require_member_user)):
    return _search_inquiries(request.app.state.mall, body, member.id)


@member_router.get("/inquiries/{inquiry_id}", response_model=InquiryResponse)
def get_inquiry(request: Request, inquiry_id: str, member: MemberUser = Depends(require_member_user)):
    return InquiryResponse.model_validate(_own_inquiry(request.app.state.mall, inquiry_id, member))


@member_router.put("/inquiries/{inquiry_id}", response_model=InquiryResponse)
def update_inquiry(
    request: Request, inquiry_id: str, body: InquiryUpdate, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _own_inquiry(store, inquiry_id, member)
    return InquiryResponse.model_validate(store.update(Inquiry, inquiry_id, **body.changes()))


@member_router.delete("/inquiries/{inquiry_id}", status_code=204)
def erase_inquiry(request: Request, inquiry_id: str, member: MemberUser = Depends(require_member_user)) -> Response:
    store: MallStore = request.app.state.mall
    _own_inquiry(store, inquiry_id, member)
    store.soft_delete(Inquiry, inquiry_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Member -- comments
# ---------------------------------------------------------------------------


@member_router.post("/reviews/{review_id}/comments", response_model=CommentResponse, status_code=201)
def member_comment_review(
    request: Request, review_id: str, body: CommentCreate, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _review(store, review_id)
    comment = _create_comment(store, body, MEMBER, member.id, shopping_mall_review_id=review_id)
    return CommentResponse.model_validate(comment)


@member_router.patch("/reviews/{review_id}/comments", response_model=PageResponse[CommentResponse])
def member_search_review_comments(
    request: Request, review_id: str, body: CommentSearch, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _review(store, review_id)
    return _search_comments(store, body, shopping_mall_review_id=review_id)


@member_router.put("/reviews/{review_id}/comments/{comment_id}", response_model=CommentResponse)
def member_update_review_comment(
    request: Request,
    review_id: str,
    comment_id: str,
    body: CommentUpdate,
    member: MemberUser = Depends(require_member_user),
):
    store: MallStore = request.app.state.mall
    return _update_comment(store, comment_id, body, MEMBER, member.id, shopping_mall_review_id=review_id)


@member_router.delete("/reviews/{review_id}/comments/{comment_id}", status_code=204)
def member_erase_review_comment(
    request: Request, review_id: str, comment_id: str, member: MemberUser = Depends(require_member_user)
) -> Response:
    store: MallStore = request.app.state.mall
    return _erase_comment(store, comment_id, MEMBER, member.id, shopping_mall_review_id=review_id)


@member_router.post("/inquiries/{inquiry_id}/comments", response_model=CommentResponse, status_code=201)
def member_comment_inquiry(
    request: Request, inquiry_id: str, body: CommentCreate, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _own_inquiry(store, inquiry_id, member)
    comment = _create_comment(store, body, MEMBER, member.id, shopping_mall_inquiry_id=inquiry_id)
    return CommentResponse.model_validate(comment)


@member_router.patch("/inquiries/{inquiry_id}/comments", response_model=PageResponse[CommentResponse])
def member_search_inquiry_comments(
    request: Request, inquiry_id: str, body: CommentSearch, member: MemberUser = Depends(require_member_user)
):
    store: MallStore = request.app.state.mall
    _own_inquiry(store, inquiry_id, member)
    return _search_comments(store, body, shopping_mall_inquiry_id=inquiry_id)


@member_router.put("/inquiries/{inquiry_id}/comments/{comment_id}", response_model=CommentResponse)
def member_update_inquiry_comment(
    request: Request,
    inquiry_id: str,
    comment_id: str,
    body: CommentUpdate,
    member: MemberUser = Depends(require_member_user),
):
    store: MallStore = request.app.state.mall
    return _update_comment(store, comment_id, body, MEMBER, member.id, shopping_mall_inquiry_id=inquiry_id)


# ---------------------------------------------------------------------------
# Seller -- review comments
# ---------------------------------------------------------------------------


@seller_router.post("/reviews/{review_id}/comments", response_model=CommentResponse, status_code=201)
def seller_comment_review(
    request: Request, review_id: str, body: CommentCreate, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _review(store, review_id)
    comment = _create_comment(store, body, SELLER, seller.id, shopping_mall_review_id=review_id)
    return CommentResponse.model_validate(comment)


@seller_router.patch("/reviews/{review_id}/comments", response_model=PageResponse[CommentResponse])
def seller_search_review_comments(
    request: Request, review_id: str, body: CommentSearch, seller: SellerUser = Depends(require_seller_user)
):
    store: MallStore = request.app.state.mall
    _review(store, review_id)
    return _search_comments(store, body, shopping_mall_review_id=review_id)


@seller_router.put("/reviews/{review_id}/comments/{comment_id}", response_model=CommentResponse)
def seller_update_review_comment(
    request: Request,
    review_id: str,
    comment_id: str,
    body: CommentUpdate,
    seller: SellerUser = Depends(require_seller_user),
):
    store: MallStore = request.app.state.mall
    return _update_comment(store, comment_id, body, SELLER, seller.id, shopping_mall_review_id=review_id)


# ---------------------------------------------------------------------------
# Seller -- responses to reviews and inquiries
# ---------------------------------------------------------------------------


@seller_router.post("/sellerResponses", response_model=SellerResponseResponse, status_code=201)
def create_seller_response(
    request: Request, body: SellerResponseCreate, seller: SellerUser = Depends(require_seller_user)
):
    """Answer one review or one inquiry. Answering an inquiry flags it is_answered."""
    store: MallStore = request.app.state.mall
    if (body.shopping_mall_review_id is None) == (body.shopping_mall_inquiry_id is None):
        raise bad_request("invalid_target", "Respond to exactly one review or one inquiry.")
    inquiry = None
    if body.shopping_mall_review_id is not None:
        _review(store, body.shopping_mall_review_id)
    else:
        inquiry = _inquiry(store, body.shopping_mall_inquiry_id)
    response = store.create(SellerResponse(shopping_mall_selleruserid=seller.id, **body.model_dump()))
    if inquiry is not None and not inquiry.is_answered:
        store.update(Inquiry, inquiry.id, is_answered=True)
        logger.info("Inquiry %s answered by seller %s", inquiry.id, seller.id)
    return SellerResponseResponse.model_validate(response)


@seller_router.patch("/sellerResponses", response_model=PageResponse[SellerResponseResponse])
def search_own_seller_responses(
    request: Request, body: SellerResponseSearch, seller: SellerUser = Depends(require_seller_user)
):
    return _search_seller_responses(request.app.state.mall, body, seller.id)


@seller_router.get("/sellerResponses/{response_id}", response_model=SellerResponseResponse)
def get_own_seller_response(
    request: Request, response_id: str, seller: SellerUser = Depends(require_seller_user)
):
    return SellerResponseResponse.model_validate(_own_seller_response(request.app.state.mall, response_id, seller))


@seller_router.put("/sellerResponses/{response_id}", response_model=SellerResponseResponse)
def update_own_seller_response(
    request: Request,
    response_id: str,
    body: SellerResponseUpdate,
    seller: SellerUser = Depends(require_seller_user),
):
    store: MallStore = request.app.state.mall
    response = _own_seller_response(store, response_id, seller)
    return SellerResponseResponse.model_validate(store.update(SellerResponse, response.id, **body.changes()))


@seller_router.delete("/sellerResponses/{response_id}", status_code=204)
def erase_own_seller_response(
    request: Request, response_id: str, seller: SellerUser = Depends(require_seller_user)
) -> Response:
    store: MallStore = request.app.state.mall
    response = _own_seller_response(store, response_id, seller)
    store.soft_delete(SellerResponse, response.id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Admin -- inquiries and comments
# ---------------------------------------------------------------------------


@admin_router.patch("/inquiries", response_model=PageResponse[InquiryResponse])
def admin_search_inquiries(request: Request, body: InquirySearch, admin: AdminUser = Depends(require_admin_user)):
    return _search_inquiries(request.app.state.mall, body, None)


@admin_router.patch("/reviews/{review_id}/comments", response_model=PageResponse[CommentResponse])
def admin_search_review_comments(
    request: Request, review_id: str, body: CommentSearch, admin: AdminUser = Depends(require_admin_user)
):
    store: MallStore = request.app.state.mall
    _review(store, review_id)
    return _search_comments(store, body, shopping_mall_review_id=review_id)


@admin_router.put("/reviews/{review_id}/comments/{comment_id}", response_model=CommentResponse)
def admin_update_review_comment(
    request: Request,
    review_id: str,
    comment_id: str,
    body: CommentUpdate,
    admin: AdminUser = Depends(require_admin_user),
):
    store: MallStore = request.app.state.mall
    return _update_comment(store, comment_id, body, ADMIN, admin.id, shopping_mall_review_id=review_id)


@admin_router.delete("/reviews/{review_id}/comments/{comment_id}", status_code=204)
def admin_erase_review_comment(
    request: Request, review_id: str, comment_id: str, admin: AdminUser = Depends(require_admin_user)
) -> Response:
    store: MallStore = request.app.state.mall
    return _erase_comment(store, comment_id, ADMIN, admin.id, shopping_mall_review_id=review_id)


@admin_router.post("/inquiries/{inquiry_id}/comments", response_model=CommentResponse, status_code=201)
def admin_answer_inquiry(
    request: Request, inquiry_id: str, body: CommentCreate, admin: AdminUser = Depends(require_admin_user)
):
    """Answer an inquiry. The inquiry is flagged is_answered."""
    store: MallStore = request.app.state.mall
    inquiry = _inquiry(store, inquiry_id)
    comment = _create_comment(store, body, ADMIN, admin.id, shopping_mall_inquiry_id=inquiry_id)
    if not inquiry.is_answered:
        store.update(Inquiry, inquiry_id, is_answered=True)
        logger.info("Inquiry %s answered by admin %s", inquiry_id, admin.id)
    return CommentResponse.model_validate(comment)


@admin_router.patch("/inquiries/{inquiry_id}/comments", response_model=PageResponse[CommentResponse])
def admin_search_inquiry_comments(
    request: Request, inquiry_id: str, body: CommentSearch, admin: AdminUser = Depends(require_admin_user)
):
    store: MallStore = request.app.state.mall
    _inquiry(store, inquiry_id)
    return _search_comments(store, body, shopping_mall_inquiry_id=inquiry_id)


@admin_router.patch("/sellerResponses", response_model=PageResponse[SellerResponseResponse])
def admin_search_seller_responses(
    request: Request, body: SellerResponseSearch, admin: AdminUser = Depends(require_admin_user)
):
    return _search_seller_responses(request.app.state.mall, body, None)


@admin_router.get("/sellerResponses/{response_id}", response_model=SellerResponseResponse)
def admin_get_seller_response(request: Request, response_id: str, admin: AdminUser = Depends(require_admin_user)):
    return SellerResponseResponse.model_validate(_seller_response(request.app.state.mall, response_id))


@admin_router.delete("/sellerResponses/{response_id}", status_code=204)
def admin_erase_seller_response(
    request: Request, response_id: str, admin: AdminUser = Depends(require_admin_user)
) -> Response:
    store: MallStore = request.app.state.mall
    if not store.soft_delete(SellerResponse, response_id):
        raise not_found("seller_response")
    logger.info("Admin %s removed seller response %s", admin.id, response_id)
    return Response(status_code=204)


router = APIRouter()
router.include_router(member_router)
router.include_router(seller_router)
router.include_router(admin_router)
