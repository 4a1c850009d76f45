from __future__ import annotations

import os
import traceback
from typing import Any, Dict, List


def env_bool(name: str, default: bool = False) -> bool:
    v = (os.getenv(name) or "").strip().lower()
    if not v:
        return default
    return v in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_csv(name: str, default: List[str] | None = None) -> List[str]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return list(default or [])
    return [t.strip() for t in raw.split(",") if t.strip()]


def error_body(exc: BaseException, *, with_stack: bool = False) -> Dict[str, Any]:
    """Uniform `{error, stack?}` envelope for failed fetch routes."""
    out: Dict[str, Any] = {"error": str(exc) or type(exc).__name__}
    if with_stack:
        out["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return out
