"""
Session + OAuth access-token handling for authenticated routes.

Flow for a request:
  1. `Authorization: Bearer <session jwt>` -> Supabase user id
  2. user id -> stored Google tokens (`user_auth`)
  3. refresh when the access token expires within 5 minutes
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

import anyio
import httpx

from api.supabase_client import SupabaseTokenStore, TokenInfo

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
REFRESH_MARGIN_SEC = 300

GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/calendar.app.created",
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/presentations",
    "https://www.googleapis.com/auth/presentations.readonly",
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/gmail.compose",
]

AUTH_REQUIRED = "Authentication required"
TOKEN_UNAVAILABLE = "Failed to get valid access token"


class AuthError(Exception):
    """Rendered as HTTP 401 `{error}` by the app."""


def bearer_token(authorization: Optional[str]) -> str:
    raw = (authorization or "").strip()
    if raw[:7].lower() == "bearer ":
        return raw[7:].strip()
    return ""


async def refresh_google_token(refresh_token: str, *, client: Optional[httpx.AsyncClient] = None) -> Optional[TokenInfo]:
    data = {
        "client_id": os.getenv("GOOGLE_ID") or os.getenv("GOOGLE_CLIENT_ID") or "",
        "client_secret": os.getenv("GOOGLE_SECRET") or os.getenv("GOOGLE_CLIENT_SECRET") or "",
        "grant_type": "refresh_token",
        "refresh_token": refresh_token,
        "scope": " ".join(GOOGLE_SCOPES),
    }
    try:
        if client is not None:
            resp = await client.post(GOOGLE_TOKEN_URL, data=data)
        else:
            async with httpx.AsyncClient(timeout=20.0) as owned:
                resp = await owned.post(GOOGLE_TOKEN_URL, data=data)
    except httpx.RequestError as e:
        logger.error("token refresh request failed: %s", e)
        return None

    if resp.status_code != 200:
        logger.error("token refresh failed status=%s body=%s", resp.status_code, resp.text[:500])
        return None

    try:
        body = resp.json()
        expires_at = int(time.time()) + int(body.get("expires_in") or 0)
    except (ValueError, TypeError, AttributeError) as e:
        logger.error("token refresh returned an unreadable body: %s body=%s", e, resp.text[:500])
        return None
    if not body.get("access_token"):
        logger.error("token refresh response has no access_token")
        return None
    return TokenInfo(
        access_token=str(body.get("access_token") or ""),
        # Google only returns a new refresh token occasionally.
        refresh_token=str(body.get("refresh_token") or refresh_token),
        expires_at=expires_at,
    )


async def get_valid_access_token(
    store: SupabaseTokenStore,
    user_id: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[str]:
    tokens = await anyio.to_thread.run_sync(store.get_tokens, user_id)
    if tokens is None:
        return None

    now = int(time.time())
    if tokens.expires_at - REFRESH_MARGIN_SEC < now and tokens.refresh_token:
        logger.info("access token for user %s expires at %s, refreshing", user_id, tokens.expires_at)
        refreshed = await refresh_google_token(tokens.refresh_token, client=client)
        if refreshed is not None:
            updated = await anyio.to_thread.run_sync(store.update_tokens, user_id, refreshed)
            if not updated:
                return None
            return refreshed.access_token
        logger.warning("refresh failed for user %s, using stored token", user_id)

    return tokens.access_token or None


async def resolve_access_token(
    store: SupabaseTokenStore,
    authorization: Optional[str],
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """Session header -> usable OAuth access token, or AuthError."""
    session = bearer_token(authorization)
    if not session:
        raise AuthError(AUTH_REQUIRED)
    user_id = await anyio.to_thread.run_sync(store.session_user_id, session)
    if not user_id:
        raise AuthError(AUTH_REQUIRED)
    token = await get_valid_access_token(store, user_id, client=client)
    if not token:
        raise AuthError(TOKEN_UNAVAILABLE)
    return token
