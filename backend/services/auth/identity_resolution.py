"""Credential login and external-identity resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from core import CredentialService
from models import User
from models.timestamps import utcnow
from services.users import (
    find_user_by_email,
    find_user_by_google_id,
    normalize_email,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalProfile:
    """Verified identity returned by an external provider."""

    name: str
    email: str
    subject: str


async def resolve_login_user(
    session: AsyncSession,
    credentials: CredentialService,
    *,
    email: str,
    password: str,
) -> User | None:
    user = await find_user_by_email(session, email)
    if user is None:
        return None
    # Google-only accounts have no password hash and can never log in here.
    if not credentials.verify_password(password, user.password_hash):
        return None
    return user


async def resolve_external_identity(
    session: AsyncSession,
    profile: ExternalProfile,
) -> User:
    """Find or create the local user for ``profile``.

    Lookup order: provider subject, then email (linking the subject to the
    existing account), then a new password-less account.
    """
    user = await find_user_by_google_id(session, profile.subject)
    if user is not None:
        return user

    user = await find_user_by_email(session, profile.email)
    if user is not None:
        logger.info("Linking Google identity to existing user %s", user.id)
        user.google_id = profile.subject
        user.updated_at = utcnow()
        session.add(user)
        await session.commit()
        return user

    logger.info("Creating user from Google profile")
    user = User(
        name=profile.name or profile.email,
        email=normalize_email(profile.email),
        google_id=profile.subject,
    )
    session.add(user)
    await session.commit()
    return user
