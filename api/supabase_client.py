"""
Supabase access for OAuth credential storage.

Tokens live in the `user_auth` table, one row per user (`user_id` unique):
`access_token`, `refresh_token`, `expires_at` (unix seconds), `provider`.
Session tokens sent by the frontend are verified with Supabase Auth.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

logger = logging.getLogger(__name__)

USER_AUTH_TABLE = "user_auth"

_client: Optional[Client] = None


@dataclass
class TokenInfo:
    access_token: str
    refresh_token: str
    expires_at: int


def get_supabase_client() -> Optional[Client]:
    """Get or create Supabase client (singleton)."""
    global _client

    if _client is not None:
        return _client

    # NEXT_PUBLIC_* names are shared with the Next.js frontend.
    url = os.getenv("NEXT_PUBLIC_SUPABASE_URL") or os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY")

    if not url or not key:
        return None

    try:
        _client = create_client(url, key)
        return _client
    except Exception as e:
        logger.error("failed to create Supabase client: %s", e)
        return None


class SupabaseTokenStore:
    def __init__(self, client: Optional[Client] = None) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        client = self._client or get_supabase_client()
        if client is None:
            raise RuntimeError("Supabase is not configured (set NEXT_PUBLIC_SUPABASE_URL and a key)")
        return client

    def session_user_id(self, session_token: str) -> Optional[str]:
        """Resolve a frontend session JWT to its user id, or None if invalid."""
        if not session_token:
            return None
        try:
            resp = self.client.auth.get_user(session_token)
        except Exception as e:
            logger.warning("session lookup failed: %s", e)
            return None
        user = getattr(resp, "user", None)
        user_id = getattr(user, "id", None)
        return str(user_id) if user_id else None

    def get_tokens(self, user_id: str) -> Optional[TokenInfo]:
        try:
            result = (
                self.client.table(USER_AUTH_TABLE)
                .select("access_token, refresh_token, expires_at")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("error fetching tokens for user %s: %s", user_id, e)
            return None
        rows = result.data or []
        if not rows:
            logger.error("no tokens stored for user %s", user_id)
            return None
        row = rows[0]
        return TokenInfo(
            access_token=str(row.get("access_token") or ""),
            refresh_token=str(row.get("refresh_token") or ""),
            expires_at=int(row.get("expires_at") or 0),
        )

    def update_tokens(self, user_id: str, tokens: TokenInfo) -> bool:
        """Upsert refreshed tokens, keeping the row's existing provider."""
        try:
            existing = (
                self.client.table(USER_AUTH_TABLE)
                .select("provider")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("error fetching auth record for user %s: %s", user_id, e)
            return False
        rows = existing.data or []
        provider = rows[0].get("provider") if rows else None
        if not provider:
            logger.error("no provider on auth record for user %s", user_id)
            return False

        row = {
            "user_id": user_id,
            "access_token": tokens.access_token,
            "refresh_token": tokens.refresh_token,
            "expires_at": tokens.expires_at,
            "provider": provider,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.client.table(USER_AUTH_TABLE).upsert(row, on_conflict="user_id").execute()
        except Exception as e:
            logger.error("error updating tokens for user %s: %s", user_id, e)
            return False
        logger.info("updated tokens for user %s (expires_at=%s)", user_id, tokens.expires_at)
        return True

    def list_token_rows(self) -> List[Dict[str, Any]]:
        result = self.client.table(USER_AUTH_TABLE).select("user_id, provider, updated_at").execute()
        return list(result.data or [])
