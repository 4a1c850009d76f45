from __future__ import annotations

from typing import AsyncIterator, Optional

import httpx
from fastapi import Depends, Header

from api.auth import resolve_access_token
from api.supabase_client import SupabaseTokenStore
from chain_fetch.runner import default_timeout


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """One outbound client per inbound request."""
    async with httpx.AsyncClient(timeout=default_timeout()) as client:
        yield client


def get_token_store() -> SupabaseTokenStore:
    return SupabaseTokenStore()


async def require_access_token(
    authorization: Optional[str] = Header(default=None),
    store: SupabaseTokenStore = Depends(get_token_store),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> str:
    return await resolve_access_token(store, authorization, client=client)
