from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC = _REPO_ROOT / "src"
for _p in (_REPO_ROOT, _SRC):
    if _p.exists() and str(_p) not in sys.path:
        sys.path.insert(0, str(_p))


class Upstream:
    """
    Scripted fake upstream: maps URL (without query) to a response factory and
    records every request it sees.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, url: str, response: httpx.Response | Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[url] = response if callable(response) else (lambda _req, r=response: r)

    def json_body(self, index: int) -> Any:
        content = self.requests[index].content
        return json.loads(content) if content else None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = str(request.url).split("?", 1)[0]
        factory = self.routes.get(key)
        if factory is None:
            return httpx.Response(404, json={"error": f"no route for {key}"})
        return factory(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


class FakeTokenStore:
    """In-memory stand-in for SupabaseTokenStore."""

    def __init__(self, sessions: Optional[Dict[str, str]] = None, tokens: Optional[Dict[str, Any]] = None) -> None:
        self.sessions = dict(sessions or {})
        self.tokens = dict(tokens or {})
        self.updates: List[Any] = []
        self.update_ok = True

    def session_user_id(self, session_token: str) -> Optional[str]:
        return self.sessions.get(session_token)

    def get_tokens(self, user_id: str):
        return self.tokens.get(user_id)

    def update_tokens(self, user_id: str, tokens) -> bool:
        self.updates.append((user_id, tokens))
        if self.update_ok:
            self.tokens[user_id] = tokens
        return self.update_ok

    def list_token_rows(self) -> List[Dict[str, Any]]:
        return [{"user_id": uid, "provider": "google", "updated_at": None} for uid in self.tokens]


@pytest.fixture
def make_store() -> Callable[..., FakeTokenStore]:
    return FakeTokenStore
