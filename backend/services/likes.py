"""Like ledger: per-(post, user) like records and the post's liker array."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Like

from .pagination import MAX_LIKERS_PAGE_SIZE, Page, validate_page
from .posts import load_post, require_post, sync_liker_array
from .users import AuthorSummary, load_author_summaries


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


@dataclass(frozen=True)
class LikeToggleResult:
    liked: bool
    like_count: int


@dataclass(frozen=True)
class LikeStatus:
    like_count: int
    user_liked: bool


async def count_likes(session: AsyncSession, post_id: str) -> int:
    """Authoritative like count taken from the like records."""
    result = await session.execute(
        select(func.count()).select_from(Like).where(_eq(Like.post_id, post_id))
    )
    return int(result.scalar_one() or 0)


async def _find_like(session: AsyncSession, post_id: str, user_id: str) -> Like | None:
    result = await session.execute(
        select(cast(Any, Like))
        .where(_eq(Like.post_id, post_id), _eq(Like.user_id, user_id))
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _add_like(session: AsyncSession, post_id: str, user_id: str) -> None:
    # The liker array is rebuilt from the records under the post row lock,
    # so concurrent likers never overwrite each other.
    await load_post(session, post_id, for_update=True)
    session.add(Like(post_id=post_id, user_id=user_id))
    await session.flush()
    await sync_liker_array(session, post_id)
    await session.commit()


async def _remove_like(session: AsyncSession, post_id: str, user_id: str) -> None:
    # Removes every record for the pair so earlier double inserts heal here.
    await load_post(session, post_id, for_update=True)
    await session.execute(
        delete(Like).where(_eq(Like.post_id, post_id), _eq(Like.user_id, user_id))
    )
    await sync_liker_array(session, post_id)
    await session.commit()


async def toggle_like(
    session: AsyncSession,
    *,
    post_id: str,
    user_id: str,
) -> LikeToggleResult:
    """Flip the caller's like on a post.

    Check-then-act without isolation: two concurrent toggles by one user can
    both take the same branch. The count returned is always re-read from the
    like records rather than the post's array.
    """
    await require_post(session, post_id)
    existing = await _find_like(session, post_id, user_id)
    if existing is not None:
        await _remove_like(session, post_id, user_id)
        liked = False
    else:
        await _add_like(session, post_id, user_id)
        liked = True
    return LikeToggleResult(liked=liked, like_count=await count_likes(session, post_id))


async def like_post(session: AsyncSession, *, post_id: str, user_id: str) -> LikeToggleResult:
    await require_post(session, post_id)
    if await _find_like(session, post_id, user_id) is None:
        await _add_like(session, post_id, user_id)
    return LikeToggleResult(liked=True, like_count=await count_likes(session, post_id))


async def unlike_post(session: AsyncSession, *, post_id: str, user_id: str) -> LikeToggleResult:
    await require_post(session, post_id)
    await _remove_like(session, post_id, user_id)
    return LikeToggleResult(liked=False, like_count=await count_likes(session, post_id))


async def get_like_status(
    session: AsyncSession,
    *,
    post_id: str,
    user_id: str | None = None,
) -> LikeStatus:
    like_count = await count_likes(session, post_id)
    user_liked = False
    if user_id is not None:
        user_liked = await _find_like(session, post_id, user_id) is not None
    return LikeStatus(like_count=like_count, user_liked=user_liked)


async def list_likers(
    session: AsyncSession,
    *,
    post_id: str,
    page: int,
    limit: int,
) -> Page[AuthorSummary]:
    """Page through the post's liker array.

    ``total`` is the array length, which can lag the like records slightly.
    """
    offset = validate_page(page, limit, max_limit=MAX_LIKERS_PAGE_SIZE)
    post = await load_post(session, post_id)
    if post is None or not post.likes:
        return Page(items=[], total=0, page=page, limit=limit)

    liker_ids = list(post.likes)
    window = liker_ids[offset:offset + limit]
    summaries = await load_author_summaries(session, window)
    return Page(
        items=[summaries[user_id] for user_id in window if user_id in summaries],
        total=len(liker_ids),
        page=page,
        limit=limit,
    )
