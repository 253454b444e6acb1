"""Tests for the comment store and comment endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from services.comments import add_comment, count_comments, delete_comment
from services.errors import NotFoundError, ValidationError
from services.posts import create_post as store_create_post


@pytest.mark.asyncio
async def test_add_comment_bumps_post_counter(async_client: AsyncClient, register_user, create_post):
    alice = await register_user("alice")
    post = await create_post(alice)
    assert post["commentsCount"] == 0

    response = await async_client.post(
        f"/api/posts/{post['id']}/comments",
        json={"content": "  nice!  "},
        headers=alice["headers"],
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Comment added successfully"
    assert body["comment"]["content"] == "nice!"
    assert body["comment"]["postId"] == post["id"]
    assert body["comment"]["author"]["id"] == alice["user"]["id"]

    fetched = await async_client.get(f"/api/posts/{post['id']}")
    assert fetched.json()["post"]["commentsCount"] == 1


@pytest.mark.asyncio
async def test_add_comment_rejects_blank_content(async_client: AsyncClient, register_user, create_post):
    alice = await register_user("alice")
    post = await create_post(alice)

    blank = await async_client.post(
        f"/api/posts/{post['id']}/comments",
        json={"content": "   "},
        headers=alice["headers"],
    )
    missing = await async_client.post(
        f"/api/posts/{post['id']}/comments",
        json={},
        headers=alice["headers"],
    )

    assert blank.status_code == 400
    assert blank.json() == {"message": "Comment content is required"}
    assert missing.status_code == 400


@pytest.mark.asyncio
async def test_add_comment_to_missing_post_returns_404(async_client: AsyncClient, register_user):
    alice = await register_user("alice")

    response = await async_client.post(
        f"/api/posts/{uuid4()}/comments",
        json={"content": "hello?"},
        headers=alice["headers"],
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_comments_newest_first(async_client: AsyncClient, register_user, create_post):
    alice = await register_user("alice")
    bob = await register_user("bob")
    post = await create_post(alice)
    for account, text in ((alice, "first"), (bob, "second"), (alice, "third")):
        await async_client.post(
            f"/api/posts/{post['id']}/comments",
            json={"content": text},
            headers=account["headers"],
        )

    response = await async_client.get(
        f"/api/posts/{post['id']}/comments",
        params={"page": 1, "limit": 2},
    )

    assert response.status_code == 200
    body = response.json()
    assert [comment["content"] for comment in body["comments"]] == ["third", "second"]
    assert body["comments"][1]["author"]["id"] == bob["user"]["id"]
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}

    invalid = await async_client.get(f"/api/posts/{post['id']}/comments", params={"limit": 51})
    assert invalid.status_code == 400


@pytest.mark.asyncio
async def test_update_comment_by_author(async_client: AsyncClient, register_user, create_post):
    alice = await register_user("alice")
    post = await create_post(alice)
    created = await async_client.post(
        f"/api/posts/{post['id']}/comments",
        json={"content": "typo"},
        headers=alice["headers"],
    )
    comment_id = created.json()["comment"]["id"]

    response = await async_client.put(
        f"/api/comments/{comment_id}",
        json={"content": "fixed"},
        headers=alice["headers"],
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Comment updated successfully"
    assert response.json()["comment"]["content"] == "fixed"


@pytest.mark.asyncio
async def test_foreign_and_missing_comments_look_the_same(
    async_client: AsyncClient,
    register_user,
    create_post,
):
    alice = await register_user("alice")
    bob = await register_user("bob")
    post = await create_post(alice)
    created = await async_client.post(
        f"/api/posts/{post['id']}/comments",
        json={"content": "alice says hi"},
        headers=alice["headers"],
    )
    comment_id = created.json()["comment"]["id"]

    foreign_edit = await async_client.put(
        f"/api/comments/{comment_id}",
        json={"content": "bob was here"},
        headers=bob["headers"],
    )
    missing_edit = await async_client.put(
        f"/api/comments/{uuid4()}",
        json={"content": "bob was here"},
        headers=bob["headers"],
    )
    foreign_delete = await async_client.delete(f"/api/comments/{comment_id}", headers=bob["headers"])
    missing_delete = await async_client.delete(f"/api/comments/{uuid4()}", headers=bob["headers"])

    assert foreign_edit.status_code == missing_edit.status_code == 404
    assert foreign_edit.json() == missing_edit.json() == {
        "message": "Comment not found or you are not authorized to edit it"
    }
    assert foreign_delete.status_code == missing_delete.status_code == 404
    assert foreign_delete.json() == missing_delete.json() == {
        "message": "Comment not found or you are not authorized to delete it"
    }

    listing = await async_client.get(f"/api/posts/{post['id']}/comments")
    assert [comment["content"] for comment in listing.json()["comments"]] == ["alice says hi"]
    fetched = await async_client.get(f"/api/posts/{post['id']}")
    assert fetched.json()["post"]["commentsCount"] == 1


@pytest.mark.asyncio
async def test_delete_comment_decrements_counter(async_client: AsyncClient, register_user, create_post):
    alice = await register_user("alice")
    post = await create_post(alice)
    created = await async_client.post(
        f"/api/posts/{post['id']}/comments",
        json={"content": "short lived"},
        headers=alice["headers"],
    )
    comment_id = created.json()["comment"]["id"]

    response = await async_client.delete(f"/api/comments/{comment_id}", headers=alice["headers"])

    assert response.status_code == 200
    assert response.json() == {"message": "Comment deleted successfully"}
    fetched = await async_client.get(f"/api/posts/{post['id']}")
    assert fetched.json()["post"]["commentsCount"] == 0


@pytest.mark.asyncio
async def test_malformed_comment_id_returns_400(async_client: AsyncClient, register_user):
    alice = await register_user("alice")

    response = await async_client.delete("/api/comments/123", headers=alice["headers"])

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid comment ID"}


@pytest.mark.asyncio
async def test_counter_tracks_live_comments(db_session: AsyncSession):
    post = await store_create_post(db_session, user_id=str(uuid4()), content="threaded")
    authors = [str(uuid4()) for _ in range(3)]

    comments = [
        await add_comment(db_session, post_id=post.id, user_id=author, content=f"from {author}")
        for author in authors
    ]
    await db_session.refresh(post)
    assert post.comments_count == await count_comments(db_session, post.id) == 3

    assert await delete_comment(db_session, comment_id=comments[0].id, user_id=authors[0])
    await db_session.refresh(post)
    assert post.comments_count == await count_comments(db_session, post.id) == 2

    # A non-author cannot delete, and the counter is untouched.
    assert not await delete_comment(db_session, comment_id=comments[1].id, user_id=authors[0])
    await db_session.refresh(post)
    assert post.comments_count == 2


@pytest.mark.asyncio
async def test_store_rejects_invalid_comments(db_session: AsyncSession):
    post = await store_create_post(db_session, user_id=str(uuid4()), content="strict")

    with pytest.raises(ValidationError):
        await add_comment(db_session, post_id=post.id, user_id=str(uuid4()), content="")
    with pytest.raises(NotFoundError):
        await add_comment(db_session, post_id=str(uuid4()), user_id=str(uuid4()), content="orphan")
