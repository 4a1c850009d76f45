from __future__ import annotations

import logging
from typing import Any, Dict

import anyio
from fastapi import APIRouter, Depends

from api.dependencies import get_token_store
from api.supabase_client import SupabaseTokenStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["debug"])


@router.get("/noauth-test")
async def noauth_test(store: SupabaseTokenStore = Depends(get_token_store)) -> Dict[str, Any]:
    """
    Supabase connectivity probe.

    Lists which users have stored credentials; token values are never returned.
    """
    try:
        rows = await anyio.to_thread.run_sync(store.list_token_rows)
    except Exception as e:
        logger.warning("supabase probe failed: %s", e)
        return {"supabaseConnection": False, "tokenCount": 0, "error": str(e), "tokens": []}

    return {
        "supabaseConnection": True,
        "tokenCount": len(rows),
        "error": None,
        "tokens": [
            {"user_id": r.get("user_id"), "provider": r.get("provider"), "updated_at": r.get("updated_at")}
            for r in rows
        ],
    }
