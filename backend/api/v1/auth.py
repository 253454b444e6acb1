"""Authentication endpoints."""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_credentials, get_current_user, get_db
from core import CredentialService, TokenConfigurationError, settings
from models import User
from services.auth import (
    GoogleOAuthError,
    build_authorization_url,
    exchange_code_for_profile,
    resolve_external_identity,
    resolve_login_user,
)
from services.errors import ApiError, ConflictError, UnauthorizedError
from services.users import create_user

from .schemas import (
    AuthResponse,
    CurrentUserResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


class GoogleSignInNotConfiguredError(ApiError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def _frontend_redirect(path: str, **params: str) -> RedirectResponse:
    url = f"{settings.frontend_url}{path}"
    if params:
        url = f"{url}?{urlencode(params)}"
    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


def _google_credentials() -> tuple[str, str]:
    client_id = settings.google_client_id
    client_secret = settings.google_client_secret
    if not client_id or not client_secret:
        raise GoogleSignInNotConfiguredError("Google sign-in is not configured")
    return client_id, client_secret


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db),
    credentials: CredentialService = Depends(get_credentials),
) -> AuthResponse:
    user = await create_user(
        session,
        credentials,
        name=payload.name,
        email=str(payload.email),
        password=payload.password,
    )
    return AuthResponse(
        message="User created successfully",
        user=UserResponse.from_user(user),
        token=credentials.issue_token(user.id),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db),
    credentials: CredentialService = Depends(get_credentials),
) -> AuthResponse:
    user = await resolve_login_user(
        session,
        credentials,
        email=payload.email,
        password=payload.password,
    )
    if user is None:
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

    if credentials.needs_rehash(user.password_hash):
        user.password_hash = credentials.hash_password(payload.password)
        session.add(user)
        await session.commit()

    return AuthResponse(
        message="Login successful",
        user=UserResponse.from_user(user),
        token=credentials.issue_token(user.id),
    )


@router.get("/user", response_model=CurrentUserResponse)
async def read_current_user(
    current_user: User = Depends(get_current_user),
) -> CurrentUserResponse:
    return CurrentUserResponse(user=UserResponse.from_user(current_user))


@router.get("/google")
async def google_sign_in() -> RedirectResponse:
    client_id, _client_secret = _google_credentials()
    authorization_url = build_authorization_url(
        client_id=client_id,
        redirect_uri=settings.google_redirect_uri,
    )
    return RedirectResponse(authorization_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/google/callback")
async def google_callback(
    code: str | None = None,
    session: AsyncSession = Depends(get_db),
    credentials: CredentialService = Depends(get_credentials),
) -> RedirectResponse:
    if not code:
        return _frontend_redirect("/auth/login", error="OAuthSignin")

    client_id, client_secret = _google_credentials()
    try:
        profile = await exchange_code_for_profile(
            code,
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=settings.google_redirect_uri,
        )
    except GoogleOAuthError as exc:
        logger.warning("Google sign-in failed: %s", exc)
        return _frontend_redirect("/auth/login", error="OAuthCallback")

    try:
        user = await resolve_external_identity(session, profile)
        token = credentials.issue_token(user.id)
    except (ConflictError, SQLAlchemyError, TokenConfigurationError):
        # The browser is mid-redirect; it gets the login page, never a JSON body.
        logger.exception("Google sign-in could not complete for subject %s", profile.subject)
        await session.rollback()
        return _frontend_redirect("/auth/login", error="OAuthCallback")
    return _frontend_redirect("/auth/callback", token=token)
