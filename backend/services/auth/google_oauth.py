"""Google OAuth code exchange and ID-token verification."""

from __future__ import annotations

from urllib.parse import urlencode

import httpx

from .identity_resolution import ExternalProfile

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
GOOGLE_SCOPES = ("openid", "email", "profile")
GOOGLE_ISSUERS = frozenset({"accounts.google.com", "https://accounts.google.com"})
HTTP_TIMEOUT_SECONDS = 10.0


class GoogleOAuthError(Exception):
    """Raised when a Google sign-in cannot be completed."""


def build_authorization_url(*, client_id: str, redirect_uri: str) -> str:
    query = urlencode(
        {
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
        }
    )
    return f"{GOOGLE_AUTH_URL}?{query}"


def _profile_from_claims(claims: dict[str, object], *, client_id: str) -> ExternalProfile:
    if claims.get("aud") != client_id:
        raise GoogleOAuthError("ID token audience mismatch")
    if claims.get("iss") not in GOOGLE_ISSUERS:
        raise GoogleOAuthError("ID token issuer mismatch")

    email = claims.get("email")
    subject = claims.get("sub")
    if not isinstance(email, str) or not email:
        raise GoogleOAuthError("Invalid Google credentials")
    if not isinstance(subject, str) or not subject:
        raise GoogleOAuthError("Invalid Google credentials")

    name = claims.get("name")
    return ExternalProfile(
        name=name if isinstance(name, str) and name else email,
        email=email,
        subject=subject,
    )


async def exchange_code_for_profile(
    code: str,
    *,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    http_client: httpx.AsyncClient | None = None,
) -> ExternalProfile:
    """Trade an authorization ``code`` for the verified Google profile."""
    owns_client = http_client is None
    client = http_client or httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)
    try:
        token_response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": client_id,
                "client_secret": client_secret,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        if token_response.status_code != httpx.codes.OK:
            raise GoogleOAuthError(
                f"Token exchange failed with status {token_response.status_code}"
            )
        id_token = token_response.json().get("id_token")
        if not id_token:
            raise GoogleOAuthError("Token response did not include an ID token")

        # Google validates signature and expiry server-side for tokeninfo.
        info_response = await client.get(GOOGLE_TOKENINFO_URL, params={"id_token": id_token})
        if info_response.status_code != httpx.codes.OK:
            raise GoogleOAuthError("ID token verification failed")
        return _profile_from_claims(info_response.json(), client_id=client_id)
    except httpx.HTTPError as exc:
        raise GoogleOAuthError(f"Google request failed: {exc}") from exc
    except ValueError as exc:
        raise GoogleOAuthError("Google returned a malformed response") from exc
    finally:
        if owns_client:
            await client.aclose()
