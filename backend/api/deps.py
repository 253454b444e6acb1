"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core import (
    CredentialService,
    EntityId,
    InvalidEntityIdError,
    get_credential_service,
    parse_entity_id,
)
from db.session import AsyncSessionMaker
from models import User
from services.errors import NotFoundError, UnauthorizedError, ValidationError
from services.users import find_user_by_id

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionMaker() as session:
        yield session


def get_credentials() -> CredentialService:
    return get_credential_service()


def get_current_user_id(
    authorization: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    credentials: CredentialService = Depends(get_credentials),
) -> EntityId:
    if authorization is None or not authorization.credentials:
        raise UnauthorizedError("Unauthorized")
    claims = credentials.verify_token(authorization.credentials)
    if claims is None:
        raise UnauthorizedError("Invalid token")
    return claims.user_id


def get_optional_user_id(
    authorization: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    credentials: CredentialService = Depends(get_credentials),
) -> EntityId | None:
    """Return the caller's id, or None for anonymous or unverifiable callers."""
    if authorization is None or not authorization.credentials:
        return None
    claims = credentials.verify_token(authorization.credentials)
    return claims.user_id if claims is not None else None


async def get_current_user(
    user_id: EntityId = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
) -> User:
    user = await find_user_by_id(session, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _parse_path_id(raw_value: str, kind: str) -> EntityId:
    try:
        return parse_entity_id(raw_value)
    except InvalidEntityIdError as exc:
        raise ValidationError(f"Invalid {kind} ID") from exc


def parse_post_id(post_id: str) -> EntityId:
    return _parse_path_id(post_id, "post")


def parse_comment_id(comment_id: str) -> EntityId:
    return _parse_path_id(comment_id, "comment")
