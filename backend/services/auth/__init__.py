"""Authentication domain services."""

from .google_oauth import (
    GoogleOAuthError,
    build_authorization_url,
    exchange_code_for_profile,
)
from .identity_resolution import (
    ExternalProfile,
    resolve_external_identity,
    resolve_login_user,
)

__all__ = [
    "ExternalProfile",
    "GoogleOAuthError",
    "build_authorization_url",
    "exchange_code_for_profile",
    "resolve_external_identity",
    "resolve_login_user",
]
