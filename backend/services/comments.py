"""Comment store with the post's comment counter kept alongside."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Comment, Post
from models.timestamps import utcnow

from .errors import ValidationError
from .pagination import MAX_PAGE_SIZE, Page, validate_page
from .posts import require_post
from .users import AuthorSummary, load_author_summaries

EMPTY_COMMENT_MESSAGE = "Comment content is required"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _gt(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column > value)


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


@dataclass(frozen=True)
class CommentView:
    comment: Comment
    author: AuthorSummary | None = None


def _normalize_content(content: str | None) -> str:
    normalized = (content or "").strip()
    if not normalized:
        raise ValidationError(EMPTY_COMMENT_MESSAGE)
    return normalized


async def _adjust_comment_counter(session: AsyncSession, post_id: str, delta: int) -> None:
    counter = cast(Any, Post.comments_count)
    stmt = (
        update(Post)
        .where(_eq(Post.id, post_id))
        .values(comments_count=counter + delta)
    )
    if delta < 0:
        stmt = stmt.where(_gt(counter, 0))
    await session.execute(stmt)
    await session.commit()


async def add_comment(
    session: AsyncSession,
    *,
    post_id: str,
    user_id: str,
    content: str,
) -> Comment:
    """Insert a comment, then bump the post's counter.

    The two writes commit separately; a failure between them leaves the
    counter one short until reconciled.
    """
    normalized = _normalize_content(content)
    await require_post(session, post_id)

    comment = Comment(post_id=post_id, user_id=user_id, content=normalized)
    session.add(comment)
    await session.commit()

    await _adjust_comment_counter(session, post_id, 1)
    return comment


async def count_comments(session: AsyncSession, post_id: str) -> int:
    result = await session.execute(
        select(func.count()).select_from(Comment).where(_eq(Comment.post_id, post_id))
    )
    return int(result.scalar_one() or 0)


async def list_comments(
    session: AsyncSession,
    *,
    post_id: str,
    page: int,
    limit: int,
) -> Page[CommentView]:
    offset = validate_page(page, limit, max_limit=MAX_PAGE_SIZE)

    result = await session.execute(
        select(cast(Any, Comment))
        .where(_eq(Comment.post_id, post_id))
        .order_by(_desc(Comment.created_at), _desc(Comment.id))
        .offset(offset)
        .limit(limit)
    )
    comments = list(result.scalars().all())
    total = await count_comments(session, post_id)

    authors = await load_author_summaries(session, (comment.user_id for comment in comments))
    return Page(
        items=[
            CommentView(comment=comment, author=authors.get(comment.user_id))
            for comment in comments
        ],
        total=total,
        page=page,
        limit=limit,
    )


async def get_comment(session: AsyncSession, comment_id: str) -> Comment | None:
    result = await session.execute(
        select(cast(Any, Comment))
        .where(_eq(Comment.id, comment_id))
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def update_comment(
    session: AsyncSession,
    *,
    comment_id: str,
    user_id: str,
    content: str,
) -> Comment | None:
    """Rewrite a comment the caller authored.

    Returns None both when the comment is missing and when the caller is not
    its author.
    """
    normalized = _normalize_content(content)
    result = cast(
        CursorResult[Any],
        await session.execute(
            update(Comment)
            .where(_eq(Comment.id, comment_id), _eq(Comment.user_id, user_id))
            .values(content=normalized, updated_at=utcnow())
        ),
    )
    await session.commit()
    if result.rowcount != 1:
        return None
    return await get_comment(session, comment_id)


async def delete_comment(
    session: AsyncSession,
    *,
    comment_id: str,
    user_id: str,
) -> bool:
    result = await session.execute(
        select(cast(ColumnElement[str], Comment.post_id))
        .where(_eq(Comment.id, comment_id), _eq(Comment.user_id, user_id))
        .limit(1)
    )
    post_id = result.scalar_one_or_none()
    if post_id is None:
        return False

    deleted = cast(
        CursorResult[Any],
        await session.execute(
            delete(Comment).where(_eq(Comment.id, comment_id), _eq(Comment.user_id, user_id))
        ),
    )
    await session.commit()
    if deleted.rowcount != 1:
        return False

    await _adjust_comment_counter(session, post_id, -1)
    return True
