"""Password hashing and bearer-token signing."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from .config import settings
from .ids import EntityId, try_parse_entity_id

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL = timedelta(days=7)


class TokenConfigurationError(RuntimeError):
    """Raised when tokens are used before a signing secret is configured."""


class TokenClaims(BaseModel):
    user_id: EntityId


class CredentialService:
    """Hashes passwords and issues/verifies signed session tokens.

    The signing secret is passed in explicitly so callers (and tests) control
    it; nothing here reads ambient configuration.
    """

    def __init__(
        self,
        secret_key: str | None,
        *,
        algorithm: str = "HS256",
        token_ttl: timedelta = DEFAULT_TOKEN_TTL,
        bcrypt_rounds: int = 12,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._token_ttl = token_ttl
        self._pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds,
            # Hashes below the configured cost are upgraded on next login.
            bcrypt__min_rounds=bcrypt_rounds,
        )

    @property
    def token_ttl(self) -> timedelta:
        return self._token_ttl

    def _require_secret(self) -> str:
        if not self._secret_key:
            raise TokenConfigurationError("JWT secret is not configured")
        return self._secret_key

    def hash_password(self, password: str) -> str:
        return self._pwd_context.hash(password)

    def verify_password(self, password: str, password_hash: str | None) -> bool:
        if not password_hash:
            return False
        try:
            return self._pwd_context.verify(password, password_hash)
        except (ValueError, TypeError):
            # Unknown or corrupted hash formats count as a mismatch.
            return False

    def needs_rehash(self, password_hash: str | None) -> bool:
        if not password_hash:
            return False
        try:
            return self._pwd_context.needs_update(password_hash)
        except (ValueError, TypeError):
            return False

    def issue_token(self, user_id: str, *, now: datetime | None = None) -> str:
        secret = self._require_secret()
        issued_at = now or datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._token_ttl).timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def verify_token(self, token: str) -> TokenClaims | None:
        secret = self._require_secret()
        try:
            payload = jwt.decode(token, secret, algorithms=[self._algorithm])
        except JWTError as exc:
            logger.debug("Rejected bearer token: %s", exc)
            return None

        user_id = try_parse_entity_id(payload.get("sub"))
        if user_id is None:
            return None
        return TokenClaims(user_id=user_id)


def build_credential_service() -> CredentialService:
    return CredentialService(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        token_ttl=timedelta(minutes=settings.access_token_expire_minutes),
        bcrypt_rounds=settings.bcrypt_rounds,
    )


@lru_cache
def get_credential_service() -> CredentialService:
    """Return the process-wide credential service built from settings."""
    return build_credential_service()
