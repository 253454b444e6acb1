"""Post, like and post-comment endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import (
    get_current_user_id,
    get_db,
    get_optional_user_id,
    parse_post_id,
)
from core import EntityId, InvalidEntityIdError, parse_entity_id
from models import Post
from services.comments import add_comment, list_comments
from services.errors import ForbiddenError, NotFoundError, ValidationError
from services.likes import (
    LikeToggleResult,
    get_like_status,
    like_post,
    list_likers,
    toggle_like,
    unlike_post,
)
from services.posts import (
    POST_NOT_FOUND_MESSAGE,
    PostView,
    create_post,
    delete_post,
    get_post,
    list_posts,
    load_post,
    update_post,
)
from services.users import load_author_summaries

from .pagination import (
    DEFAULT_COMMENTS_PAGE_SIZE,
    DEFAULT_LIKERS_PAGE_SIZE,
    DEFAULT_PAGE,
    DEFAULT_POSTS_PAGE_SIZE,
    build_pagination,
)
from .schemas import (
    AuthorResponse,
    CommentListResponse,
    CommentMutationResponse,
    CommentRequest,
    CommentResponse,
    LikerListResponse,
    LikeStatusResponse,
    LikeToggleResponse,
    MessageResponse,
    PostCreateRequest,
    PostDetailResponse,
    PostListResponse,
    PostMutationResponse,
    PostResponse,
    PostUpdateRequest,
)

router = APIRouter(prefix="/posts", tags=["posts"])


def _normalize_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip()


def _normalize_images(images: list[str] | None) -> list[str] | None:
    if images is None:
        return None
    return [image.strip() for image in images if image and image.strip()]


def _parse_author_filter(raw_author_id: str | None) -> EntityId | None:
    if raw_author_id is None or raw_author_id.strip() == "":
        return None
    try:
        return parse_entity_id(raw_author_id)
    except InvalidEntityIdError as exc:
        raise ValidationError("Invalid author ID") from exc


async def _post_response(
    session: AsyncSession,
    post_id: str,
    *,
    viewer_id: str | None,
) -> PostResponse:
    view = await get_post(session, post_id)
    if view is None:
        raise NotFoundError(POST_NOT_FOUND_MESSAGE)
    return PostResponse.from_view(view, viewer_id=viewer_id)


async def _require_owned_post(session: AsyncSession, post_id: str, user_id: str, action: str) -> Post:
    post = await load_post(session, post_id)
    if post is None:
        raise NotFoundError(POST_NOT_FOUND_MESSAGE)
    if post.user_id != user_id:
        raise ForbiddenError(f"You do not have permission to {action} this post")
    return post


def _like_response(result: LikeToggleResult) -> LikeToggleResponse:
    message = "Post liked successfully" if result.liked else "Post unliked successfully"
    return LikeToggleResponse(message=message, liked=result.liked, like_count=result.like_count)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PostMutationResponse)
async def create_post_endpoint(
    payload: PostCreateRequest,
    session: AsyncSession = Depends(get_db),
    user_id: EntityId = Depends(get_current_user_id),
) -> PostMutationResponse:
    content = _normalize_text(payload.content) or ""
    caption = _normalize_text(payload.caption) or None
    if not content and not caption:
        raise ValidationError("Content is required")

    post = await create_post(
        session,
        user_id=user_id,
        content=content,
        caption=caption,
        images=_normalize_images(payload.images) or [],
    )
    authors = await load_author_summaries(session, [user_id])
    return PostMutationResponse(
        message="Post created successfully",
        post=PostResponse.from_view(PostView(post=post, author=authors.get(user_id))),
    )


@router.get("", response_model=PostListResponse)
async def list_posts_endpoint(
    page: int = Query(default=DEFAULT_PAGE),
    limit: int = Query(default=DEFAULT_POSTS_PAGE_SIZE),
    author_id: str | None = Query(default=None, alias="authorId"),
    session: AsyncSession = Depends(get_db),
    viewer_id: EntityId | None = Depends(get_optional_user_id),
) -> PostListResponse:
    result = await list_posts(
        session,
        page=page,
        limit=limit,
        user_id=_parse_author_filter(author_id),
    )
    return PostListResponse(
        posts=[PostResponse.from_view(view, viewer_id=viewer_id) for view in result.items],
        pagination=build_pagination(result),
    )


@router.get("/user", response_model=PostListResponse)
async def list_own_posts(
    page: int = Query(default=DEFAULT_PAGE),
    limit: int = Query(default=DEFAULT_POSTS_PAGE_SIZE),
    session: AsyncSession = Depends(get_db),
    user_id: EntityId = Depends(get_current_user_id),
) -> PostListResponse:
    result = await list_posts(session, page=page, limit=limit, user_id=user_id)
    return PostListResponse(
        posts=[PostResponse.from_view(view, viewer_id=user_id) for view in result.items],
        pagination=build_pagination(result),
    )


@router.get("/{post_id}", response_model=PostDetailResponse)
async def get_post_endpoint(
    post_id: EntityId = Depends(parse_post_id),
    session: AsyncSession = Depends(get_db),
    viewer_id: EntityId | None = Depends(get_optional_user_id),
) -> PostDetailResponse:
    return PostDetailResponse(post=await _post_response(session, post_id, viewer_id=viewer_id))


@router.put("/{post_id}", response_model=PostMutationResponse)
async def update_post_endpoint(
    payload: PostUpdateRequest,
    post_id: EntityId = Depends(parse_post_id),
    session: AsyncSession = Depends(get_db),
    user_id: EntityId = Depends(get_current_user_id),
) -> PostMutationResponse:
    post = await _require_owned_post(session, post_id, user_id, "update")

    content = _normalize_text(payload.content)
    caption = _normalize_text(payload.caption)
    final_content = post.content if content is None else content
    final_caption = post.caption if caption is None else caption
    if not final_content and not final_caption:
        raise ValidationError("Content is required")

    updated = await update_post(
        session,
        post_id,
        content=content,
        caption=caption,
        images=_normalize_images(payload.images),
    )
    if updated is None:
        raise NotFoundError(POST_NOT_FOUND_MESSAGE)
    return PostMutationResponse(
        message="Post updated successfully",
        post=await _post_response(session, post_id, viewer_id=user_id),
    )


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post_endpoint(
    post_id: EntityId = Depends(parse_post_id),
    session: AsyncSession = Depends(get_db),
    user_id: EntityId = Depends(get_current_user_id),
) -> MessageResponse:
    await _require_owned_post(session, post_id, user_id, "delete")
    if not await delete_post(session, post_id):
        raise NotFoundError(POST_NOT_FOUND_MESSAGE)
    return MessageResponse(message="Post deleted successfully")


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
async def toggle_like_endpoint(
    post_id: EntityId = Depends(parse_post_id),
    session: AsyncSession = Depends(get_db),
    user_id: EntityId = Depends(get_current_user_id),
) -> LikeToggleResponse:
    return _like_response(await toggle_like(session, post_id=post_id, user_id=user_id))


@router.get("/{post_id}/like", response_model=LikeStatusResponse)
async def like_status_endpoint(
    post_id: EntityId = Depends(parse_post_id),
    session: AsyncSession = Depends(get_db),
    viewer_id: EntityId | None = Depends(get_optional_user_id),
) -> LikeStatusResponse:
    like_status = await get_like_status(session, post_id=post_id, user_id=viewer_id)
    return LikeStatusResponse(
        like_count=like_status.like_count,
        user_liked=like_status.user_liked,
    )


@router.get("/{post_id}/likes", response_model=LikerListResponse)
async def list_likers_endpoint(
    post_id: EntityId = Depends(parse_post_id),
    page: int = Query(default=DEFAULT_PAGE),
    limit: int = Query(default=DEFAULT_LIKERS_PAGE_SIZE),
    session: AsyncSession = Depends(get_db),
) -> LikerListResponse:
    result = await list_likers(session, post_id=post_id, page=page, limit=limit)
    return LikerListResponse(
        users=[
            author
            for author in (AuthorResponse.from_summary(summary) for summary in result.items)
            if author is not None
        ],
        pagination=build_pagination(result),
    )


@router.post("/{post_id}/likes", response_model=LikeToggleResponse)
async def like_post_endpoint(
    post_id: EntityId = Depends(parse_post_id),
    session: AsyncSession = Depends(get_db),
    user_id: EntityId = Depends(get_current_user_id),
) -> LikeToggleResponse:
    return _like_response(await like_post(session, post_id=post_id, user_id=user_id))


@router.delete("/{post_id}/likes", response_model=LikeToggleResponse)
async def unlike_post_endpoint(
    post_id: EntityId = Depends(parse_post_id),
    session: AsyncSession = Depends(get_db),
    user_id: EntityId = Depends(get_current_user_id),
) -> LikeToggleResponse:
    return _like_response(await unlike_post(session, post_id=post_id, user_id=user_id))


@router.post(
    "/{post_id}/comments",
    status_code=status.HTTP_201_CREATED,
    response_model=CommentMutationResponse,
)
async def create_comment_endpoint(
    payload: CommentRequest,
    post_id: EntityId = Depends(parse_post_id),
    session: AsyncSession = Depends(get_db),
    user_id: EntityId = Depends(get_current_user_id),
) -> CommentMutationResponse:
    comment = await add_comment(
        session,
        post_id=post_id,
        user_id=user_id,
        content=payload.content,
    )
    authors = await load_author_summaries(session, [user_id])
    return CommentMutationResponse(
        message="Comment added successfully",
        comment=CommentResponse.from_comment(comment, authors.get(user_id)),
    )


@router.get("/{post_id}/comments", response_model=CommentListResponse)
async def list_comments_endpoint(
    post_id: EntityId = Depends(parse_post_id),
    page: int = Query(default=DEFAULT_PAGE),
    limit: int = Query(default=DEFAULT_COMMENTS_PAGE_SIZE),
    session: AsyncSession = Depends(get_db),
) -> CommentListResponse:
    result = await list_comments(session, post_id=post_id, page=page, limit=limit)
    return CommentListResponse(
        comments=[CommentResponse.from_view(view) for view in result.items],
        pagination=build_pagination(result),
    )
