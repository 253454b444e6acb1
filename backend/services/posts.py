"""Post store: CRUD over posts plus cascade and counter upkeep."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, cast

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from db.expressions import json_array_agg
from models import Comment, Like, Post, User
from models.timestamps import utcnow

from .errors import NotFoundError
from .pagination import MAX_PAGE_SIZE, Page, validate_page
from .users import AuthorSummary

logger = logging.getLogger(__name__)

POST_NOT_FOUND_MESSAGE = "Post not found"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _gt(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column > value)


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


def _asc(column: Any) -> Any:
    return cast(Any, column).asc()


@dataclass(frozen=True)
class PostView:
    post: Post
    author: AuthorSummary | None = None


@dataclass(frozen=True)
class CounterReconciliation:
    post_id: str
    comments_before: int
    comments_after: int
    likes_before: list[str]
    likes_after: list[str]

    @property
    def changed(self) -> bool:
        return (
            self.comments_before != self.comments_after
            or self.likes_before != self.likes_after
        )


def _author_from_row(user_id: str | None, name: str | None, email: str | None) -> AuthorSummary | None:
    if user_id is None or name is None or email is None:
        return None
    return AuthorSummary(id=user_id, name=name, email=email)


def _joined_post_query() -> Any:
    post_entity = cast(Any, Post)
    author_id_column = cast(ColumnElement[str | None], User.id)
    author_name_column = cast(ColumnElement[str | None], User.name)
    author_email_column = cast(ColumnElement[str | None], User.email)
    return select(
        post_entity,
        author_id_column,
        author_name_column,
        author_email_column,
    ).outerjoin(User, _eq(User.id, Post.user_id))


async def create_post(
    session: AsyncSession,
    *,
    user_id: str,
    content: str,
    caption: str | None = None,
    images: Sequence[str] = (),
) -> Post:
    post = Post(
        user_id=user_id,
        content=content,
        caption=caption or None,
        images=list(images),
        likes=[],
        comments_count=0,
    )
    session.add(post)
    await session.commit()
    return post


async def load_post(
    session: AsyncSession,
    post_id: str,
    *,
    for_update: bool = False,
) -> Post | None:
    """Load a post, always refreshing it from the current row.

    ``for_update`` locks the row until the caller's transaction ends on
    backends that support row locks.
    """
    query = (
        select(cast(Any, Post))
        .where(_eq(Post.id, post_id))
        .limit(1)
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


def liker_ids_expression(post_id: str) -> Any:
    """Scalar subquery yielding the post's distinct liker ids as a JSON array.

    Likers are ordered by their first like, so the array reads in like order.
    """
    like_user_column = cast(ColumnElement[str], Like.user_id)
    first_liked_at = cast(Any, func.min(Like.created_at)).label("first_liked_at")
    likers = (
        select(like_user_column.label("user_id"), first_liked_at)
        .where(_eq(Like.post_id, post_id))
        .group_by(like_user_column)
        .order_by(first_liked_at.asc(), _asc(like_user_column))
        .subquery()
    )
    return select(json_array_agg(likers.c.user_id)).scalar_subquery()


async def sync_liker_array(session: AsyncSession, post_id: str) -> None:
    """Rewrite ``post.likes`` from the like records in one statement.

    Does not commit; callers hold the post row lock for the same transaction.
    """
    await session.execute(
        update(Post)
        .where(_eq(Post.id, post_id))
        .values(likes=liker_ids_expression(post_id))
        .execution_options(synchronize_session=False)
    )


async def require_post(session: AsyncSession, post_id: str) -> Post:
    """Return the post or raise NotFoundError."""
    post = await load_post(session, post_id)
    if post is None:
        raise NotFoundError(POST_NOT_FOUND_MESSAGE)
    return post


async def get_post(session: AsyncSession, post_id: str) -> PostView | None:
    result = await session.execute(
        _joined_post_query().where(_eq(Post.id, post_id)).limit(1)
    )
    row = result.first()
    if row is None:
        return None
    post, author_id, author_name, author_email = row
    return PostView(post=post, author=_author_from_row(author_id, author_name, author_email))


async def list_posts(
    session: AsyncSession,
    *,
    page: int,
    limit: int,
    user_id: str | None = None,
) -> Page[PostView]:
    """Return one page of posts, newest first, each with its author."""
    offset = validate_page(page, limit, max_limit=MAX_PAGE_SIZE)

    query = _joined_post_query()
    count_query = select(func.count()).select_from(Post)
    if user_id is not None:
        query = query.where(_eq(Post.user_id, user_id))
        count_query = count_query.where(_eq(Post.user_id, user_id))

    query = (
        query.order_by(
            _desc(Post.created_at),
            _desc(Post.id),
        )
        .offset(offset)
        .limit(limit)
    )
    result = await session.execute(query)
    items = [
        PostView(post=post, author=_author_from_row(author_id, author_name, author_email))
        for post, author_id, author_name, author_email in result.all()
    ]

    total_result = await session.execute(count_query)
    total = int(total_result.scalar_one() or 0)
    return Page(items=items, total=total, page=page, limit=limit)


async def update_post(
    session: AsyncSession,
    post_id: str,
    *,
    content: str | None = None,
    caption: str | None = None,
    images: Sequence[str] | None = None,
) -> Post | None:
    """Apply the supplied fields to a post.

    Ownership is not checked here; callers compare ``post.user_id`` with the
    acting user before calling.
    """
    post = await load_post(session, post_id)
    if post is None:
        return None

    if content is not None:
        post.content = content
    if caption is not None:
        # A blank caption clears the field, matching create.
        post.caption = caption or None
    if images is not None:
        post.images = list(images)
    post.updated_at = utcnow()
    session.add(post)
    await session.commit()
    return post


async def _delete_children(session: AsyncSession, model: Any, post_id: str) -> int | None:
    table_name = model.__tablename__
    try:
        result = cast(
            CursorResult[Any],
            await session.execute(delete(model).where(_eq(model.post_id, post_id))),
        )
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Cascade delete of %s failed for post %s", table_name, post_id)
        return None
    return result.rowcount


async def delete_post(session: AsyncSession, post_id: str) -> bool:
    """Delete a post, then best-effort delete its comments and likes.

    Returns True when the post row itself was removed; cascade failures are
    logged and leave orphans for the reconciliation job.
    """
    result = cast(
        CursorResult[Any],
        await session.execute(delete(Post).where(_eq(Post.id, post_id))),
    )
    await session.commit()
    if result.rowcount != 1:
        return False

    deleted_comments = await _delete_children(session, Comment, post_id)
    deleted_likes = await _delete_children(session, Like, post_id)
    logger.info(
        "Deleted post %s (comments=%s, likes=%s)",
        post_id,
        deleted_comments,
        deleted_likes,
    )
    return True


async def list_post_ids(
    session: AsyncSession,
    *,
    after_id: str | None,
    batch_size: int,
) -> list[str]:
    post_id_column = cast(ColumnElement[str], Post.id)
    query = select(post_id_column).order_by(_asc(post_id_column)).limit(batch_size)
    if after_id is not None:
        query = query.where(_gt(post_id_column, after_id))
    result = await session.execute(query)
    return list(result.scalars().all())


async def reconcile_post_counters(
    session: AsyncSession,
    post_id: str,
) -> CounterReconciliation | None:
    """Recompute a post's denormalized counters from its child records.

    Both counters are rebuilt inside a single UPDATE while the post row is
    locked, so likes and comments written concurrently are never overwritten
    with a stale value.
    """
    post = await load_post(session, post_id, for_update=True)
    if post is None:
        await session.rollback()
        return None
    comments_before = post.comments_count
    likes_before = list(post.likes or [])

    comment_count = (
        select(func.count())
        .select_from(Comment)
        .where(_eq(Comment.post_id, post_id))
        .scalar_subquery()
    )
    await session.execute(
        update(Post)
        .where(_eq(Post.id, post_id))
        .values(comments_count=comment_count, likes=liker_ids_expression(post_id))
        .execution_options(synchronize_session=False)
    )
    post = await load_post(session, post_id)
    await session.commit()
    if post is None:
        return None

    return CounterReconciliation(
        post_id=post_id,
        comments_before=comments_before,
        comments_after=post.comments_count,
        likes_before=likes_before,
        likes_after=list(post.likes or []),
    )
