"""Tests for the like ledger and like endpoints."""

import asyncio
from typing import Any, cast
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Like
from services.likes import get_like_status, toggle_like
from services.posts import create_post as store_create_post
from services.posts import load_post


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


async def _like_rows(session: AsyncSession, post_id: str, user_id: str) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(Like)
        .where(_eq(Like.post_id, post_id), _eq(Like.user_id, user_id))
    )
    return int(result.scalar_one())


@pytest.mark.asyncio
async def test_like_then_unlike_round_trip(async_client: AsyncClient, register_user):
    alice = await register_user("alice")
    created = await async_client.post(
        "/api/posts",
        json={"caption": "hello"},
        headers=alice["headers"],
    )
    post_id = created.json()["post"]["id"]

    liked = await async_client.post(f"/api/posts/{post_id}/like", headers=alice["headers"])
    assert liked.status_code == 200
    assert liked.json() == {"message": "Post liked successfully", "liked": True, "likeCount": 1}

    status_after_like = await async_client.get(f"/api/posts/{post_id}/like", headers=alice["headers"])
    assert status_after_like.json() == {"likeCount": 1, "userLiked": True}

    unliked = await async_client.post(f"/api/posts/{post_id}/like", headers=alice["headers"])
    assert unliked.json() == {"message": "Post unliked successfully", "liked": False, "likeCount": 0}

    status_after_unlike = await async_client.get(f"/api/posts/{post_id}/like", headers=alice["headers"])
    assert status_after_unlike.json() == {"likeCount": 0, "userLiked": False}


@pytest.mark.asyncio
async def test_post_projection_reflects_likers(async_client: AsyncClient, register_user, create_post):
    alice = await register_user("alice")
    bob = await register_user("bob")
    post = await create_post(alice)

    await async_client.post(f"/api/posts/{post['id']}/like", headers=bob["headers"])

    as_bob = await async_client.get(f"/api/posts/{post['id']}", headers=bob["headers"])
    as_alice = await async_client.get(f"/api/posts/{post['id']}", headers=alice["headers"])
    anonymous = await async_client.get(f"/api/posts/{post['id']}")

    assert as_bob.json()["post"]["likes"] == [bob["user"]["id"]]
    assert as_bob.json()["post"]["likeCount"] == 1
    assert as_bob.json()["post"]["userLiked"] is True
    assert as_alice.json()["post"]["userLiked"] is False
    assert anonymous.json()["post"]["userLiked"] is False


@pytest.mark.asyncio
async def test_toggle_twice_restores_state(db_session: AsyncSession):
    post = await store_create_post(db_session, user_id=str(uuid4()), content="toggle me")
    user_id = str(uuid4())

    first = await toggle_like(db_session, post_id=post.id, user_id=user_id)
    second = await toggle_like(db_session, post_id=post.id, user_id=user_id)

    assert first.liked is True
    assert first.like_count == 1
    assert second.liked is False
    assert second.like_count == 0
    status = await get_like_status(db_session, post_id=post.id, user_id=user_id)
    assert status.like_count == 0
    assert status.user_liked is False


@pytest.mark.asyncio
async def test_sequential_toggles_never_duplicate_records(db_session: AsyncSession):
    post = await store_create_post(db_session, user_id=str(uuid4()), content="busy post")
    user_id = str(uuid4())

    for _ in range(5):
        await toggle_like(db_session, post_id=post.id, user_id=user_id)
        assert await _like_rows(db_session, post.id, user_id) <= 1

    assert await _like_rows(db_session, post.id, user_id) == 1
    stored = await load_post(db_session, post.id)
    assert stored is not None
    assert stored.likes == [user_id]


@pytest.mark.asyncio
async def test_concurrent_likes_from_different_users_keep_every_liker(
    db_session: AsyncSession,
    session_maker,
):
    post = await store_create_post(db_session, user_id=str(uuid4()), content="popular")
    user_ids = [str(uuid4()) for _ in range(5)]

    async def like_as(user_id: str) -> None:
        async with session_maker() as session:
            await toggle_like(session, post_id=post.id, user_id=user_id)

    await asyncio.gather(*(like_as(user_id) for user_id in user_ids))

    stored = await load_post(db_session, post.id)
    assert stored is not None
    assert sorted(stored.likes) == sorted(user_ids)
    status = await get_like_status(db_session, post_id=post.id)
    assert status.like_count == len(user_ids)


@pytest.mark.asyncio
async def test_unlike_heals_duplicate_records(db_session: AsyncSession):
    post = await store_create_post(db_session, user_id=str(uuid4()), content="raced")
    user_id = str(uuid4())
    # Simulate two concurrent likes that both inserted.
    db_session.add_all([Like(post_id=post.id, user_id=user_id), Like(post_id=post.id, user_id=user_id)])
    await db_session.commit()

    result = await toggle_like(db_session, post_id=post.id, user_id=user_id)

    assert result.liked is False
    assert result.like_count == 0
    assert await _like_rows(db_session, post.id, user_id) == 0


@pytest.mark.asyncio
async def test_like_missing_post_returns_404(async_client: AsyncClient, register_user):
    alice = await register_user("alice")

    response = await async_client.post(f"/api/posts/{uuid4()}/like", headers=alice["headers"])

    assert response.status_code == 404
    assert response.json() == {"message": "Post not found"}


@pytest.mark.asyncio
async def test_like_requires_authentication(async_client: AsyncClient, register_user, create_post):
    alice = await register_user("alice")
    post = await create_post(alice)

    response = await async_client.post(f"/api/posts/{post['id']}/like")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_like_status_treats_invalid_token_as_anonymous(
    async_client: AsyncClient,
    register_user,
    create_post,
):
    alice = await register_user("alice")
    post = await create_post(alice)
    await async_client.post(f"/api/posts/{post['id']}/like", headers=alice["headers"])

    response = await async_client.get(
        f"/api/posts/{post['id']}/like",
        headers={"Authorization": "Bearer garbage"},
    )

    assert response.status_code == 200
    assert response.json() == {"likeCount": 1, "userLiked": False}


@pytest.mark.asyncio
async def test_idempotent_like_and_unlike_endpoints(
    async_client: AsyncClient,
    register_user,
    create_post,
):
    alice = await register_user("alice")
    post = await create_post(alice)
    url = f"/api/posts/{post['id']}/likes"

    first = await async_client.post(url, headers=alice["headers"])
    second = await async_client.post(url, headers=alice["headers"])
    assert first.json()["liked"] is True
    assert second.json() == first.json()
    assert second.json()["likeCount"] == 1

    removed = await async_client.delete(url, headers=alice["headers"])
    removed_again = await async_client.delete(url, headers=alice["headers"])
    assert removed.json()["liked"] is False
    assert removed.json()["likeCount"] == 0
    assert removed_again.json() == removed.json()


@pytest.mark.asyncio
async def test_list_likers_in_like_order(async_client: AsyncClient, register_user, create_post):
    author = await register_user("author")
    likers = [await register_user(f"fan{index}") for index in range(3)]
    post = await create_post(author)
    for account in likers:
        await async_client.post(f"/api/posts/{post['id']}/like", headers=account["headers"])

    response = await async_client.get(
        f"/api/posts/{post['id']}/likes",
        params={"page": 1, "limit": 2},
    )

    assert response.status_code == 200
    body = response.json()
    assert [user["id"] for user in body["users"]] == [
        likers[0]["user"]["id"],
        likers[1]["user"]["id"],
    ]
    assert set(body["users"][0]) == {"id", "name", "email"}
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}

    second_page = await async_client.get(
        f"/api/posts/{post['id']}/likes",
        params={"page": 2, "limit": 2},
    )
    assert [user["id"] for user in second_page.json()["users"]] == [likers[2]["user"]["id"]]


@pytest.mark.asyncio
async def test_list_likers_validates_pagination(async_client: AsyncClient, register_user, create_post):
    author = await register_user("author")
    post = await create_post(author)

    allowed = await async_client.get(f"/api/posts/{post['id']}/likes", params={"limit": 100})
    rejected = await async_client.get(f"/api/posts/{post['id']}/likes", params={"limit": 101})

    assert allowed.status_code == 200
    assert rejected.status_code == 400


@pytest.mark.asyncio
async def test_list_likers_of_missing_post_is_empty(async_client: AsyncClient):
    response = await async_client.get(f"/api/posts/{uuid4()}/likes")

    assert response.status_code == 200
    assert response.json() == {
        "users": [],
        "pagination": {"page": 1, "limit": 20, "total": 0, "totalPages": 0},
    }
