"""
Post and feed routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from liberty_api.application.services import FeedPage, FeedService
from liberty_api.api.dependencies import (
    get_current_account,
    get_current_account_optional,
    get_feed_service,
    parse_post_create,
)
from liberty_api.domain.models import Account
from liberty_api.schemas import AuthorSummary, FeedItem, FeedResponse, PostCreate, PostResponse


router = APIRouter(tags=["Feed"])


def to_feed_response(page: FeedPage) -> FeedResponse:
    items = []
    for post, relation in page.entries:
        fields = {
            "id": post.id,
            "user_id": post.user_id,
            "content": post.content,
            "created_at": post.created_at,
            "author": AuthorSummary(
                id=post.user_id,
                username=post.author_username,
                first_name=post.author_first_name,
                last_name=post.author_last_name,
            ),
        }
        if relation is not None:
            fields["relation"] = relation
        items.append(FeedItem(**fields))
    return FeedResponse(items=items, next_cursor=page.next_cursor)


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate = Depends(parse_post_create),
    current_account: Account = Depends(get_current_account),
    feed_service: FeedService = Depends(get_feed_service)
):
    """
    Create a post

    - **content**: 1 to 1000 characters after trimming
    - **groupId**: Optional group the author belongs to
    """
    post = await feed_service.create_post(
        current_account,
        content=post_data.content,
        group_id=post_data.group_id
    )
    return PostResponse.model_validate(post)


@router.get(
    "/feed/public-square",
    response_model=FeedResponse,
    response_model_exclude_unset=True,
)
async def get_public_square(
    cursor: Optional[str] = Query(None, description="Opaque cursor from a previous page"),
    take: Optional[int] = Query(None, description="Page size, 1 to 100"),
    current_account: Optional[Account] = Depends(get_current_account_optional),
    feed_service: FeedService = Depends(get_feed_service)
):
    """
    Public square feed, newest first

    Authentication is optional; authenticated callers get a relation tag
    on every item.
    """
    page = await feed_service.get_public_feed(current_account, cursor=cursor, take=take)
    return to_feed_response(page)


@router.get("/feed", response_model=FeedResponse, response_model_exclude_unset=True)
async def get_relation_feed(
    cursor: Optional[str] = Query(None, description="Opaque cursor from a previous page"),
    take: Optional[int] = Query(None, description="Page size, 1 to 100"),
    current_account: Account = Depends(get_current_account),
    feed_service: FeedService = Depends(get_feed_service)
):
    """
    Posts by the caller and their connections

    Requires authentication.
    """
    page = await feed_service.get_relation_feed(current_account, cursor=cursor, take=take)
    return to_feed_response(page)
