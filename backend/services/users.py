"""User directory: lookups, registration and author summaries."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import CredentialService, try_parse_entity_id
from db.errors import is_unique_violation
from models import User

from .errors import ConflictError

DUPLICATE_EMAIL_MESSAGE = "User already exists"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def normalize_email(value: str) -> str:
    return value.strip().lower()


@dataclass(frozen=True)
class AuthorSummary:
    id: str
    name: str
    email: str


@dataclass(frozen=True)
class UserPublic:
    """User projection safe to hand outside the directory."""

    id: str
    name: str
    email: str
    google_id: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            google_id=user.google_id,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


async def find_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(
        select(User).where(_eq(User.email, normalize_email(email))).limit(1)
    )
    return result.scalar_one_or_none()


async def find_user_by_id(session: AsyncSession, user_id: str) -> User | None:
    """Return the user for ``user_id``.

    Non-canonical spellings of an id are normalized first; values that are
    not ids at all resolve to None instead of raising.
    """
    canonical_id = try_parse_entity_id(user_id)
    if canonical_id is None:
        return None
    result = await session.execute(
        select(User).where(_eq(User.id, canonical_id)).limit(1)
    )
    return result.scalar_one_or_none()


async def find_user_by_google_id(session: AsyncSession, google_id: str) -> User | None:
    result = await session.execute(
        select(User).where(_eq(User.google_id, google_id)).limit(1)
    )
    return result.scalar_one_or_none()


async def create_user(
    session: AsyncSession,
    credentials: CredentialService,
    *,
    name: str,
    email: str,
    password: str,
) -> User:
    normalized_email = normalize_email(email)
    if await find_user_by_email(session, normalized_email) is not None:
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

    user = User(
        name=name.strip(),
        email=normalized_email,
        password_hash=credentials.hash_password(password),
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        # Two registrations can both pass the read above; the index decides.
        if is_unique_violation(exc, target="email"):
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from exc
        raise
    return user


async def load_author_summaries(
    session: AsyncSession,
    user_ids: Iterable[str],
) -> dict[str, AuthorSummary]:
    """Resolve distinct ``user_ids`` to summaries with a single query."""
    distinct_ids = list(dict.fromkeys(user_ids))
    if not distinct_ids:
        return {}

    id_column = cast(ColumnElement[str], User.id)
    name_column = cast(ColumnElement[str], User.name)
    email_column = cast(ColumnElement[str], User.email)
    result = await session.execute(
        select(id_column, name_column, email_column).where(id_column.in_(distinct_ids))
    )
    return {
        user_id: AuthorSummary(id=user_id, name=name, email=email)
        for user_id, name, email in result.all()
    }
