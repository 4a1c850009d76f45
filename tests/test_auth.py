import asyncio
import time
from urllib.parse import parse_qs

import httpx
import pytest

from api.auth import (
    AUTH_REQUIRED,
    GOOGLE_TOKEN_URL,
    TOKEN_UNAVAILABLE,
    AuthError,
    bearer_token,
    get_valid_access_token,
    resolve_access_token,
)
from api.supabase_client import TokenInfo


def _fresh(token: str = "fresh-token") -> TokenInfo:
    return TokenInfo(access_token=token, refresh_token="r1", expires_at=int(time.time()) + 3600)


def _expiring() -> TokenInfo:
    return TokenInfo(access_token="old-token", refresh_token="r1", expires_at=int(time.time()) + 60)


def test_bearer_token_parsing():
    assert bearer_token("Bearer abc") == "abc"
    assert bearer_token("bearer  abc ") == "abc"
    assert bearer_token("Basic abc") == ""
    assert bearer_token(None) == ""


def test_valid_token_is_used_as_is(upstream, make_store):
    store = make_store(tokens={"u1": _fresh()})
    token = asyncio.run(get_valid_access_token(store, "u1", client=upstream.client()))
    assert token == "fresh-token"
    assert upstream.requests == []


def test_expiring_token_is_refreshed_and_stored(upstream, make_store, monkeypatch):
    monkeypatch.setenv("GOOGLE_ID", "cid")
    monkeypatch.setenv("GOOGLE_SECRET", "csecret")
    upstream.add(GOOGLE_TOKEN_URL, httpx.Response(200, json={"access_token": "new-token", "expires_in": 3599}))
    store = make_store(tokens={"u1": _expiring()})

    token = asyncio.run(get_valid_access_token(store, "u1", client=upstream.client()))

    assert token == "new-token"
    form = parse_qs(upstream.requests[0].content.decode())
    assert form["grant_type"] == ["refresh_token"]
    assert form["refresh_token"] == ["r1"]
    assert form["client_id"] == ["cid"]
    user_id, saved = store.updates[0]
    assert user_id == "u1"
    assert saved.refresh_token == "r1"
    assert saved.expires_at > int(time.time()) + 3000


def test_failed_refresh_keeps_stored_token(upstream, make_store):
    upstream.add(GOOGLE_TOKEN_URL, httpx.Response(400, json={"error": "invalid_grant"}))
    store = make_store(tokens={"u1": _expiring()})
    token = asyncio.run(get_valid_access_token(store, "u1", client=upstream.client()))
    assert token == "old-token"
    assert store.updates == []


def test_unreadable_refresh_response_keeps_stored_token(upstream, make_store):
    upstream.add(GOOGLE_TOKEN_URL, httpx.Response(200, text="<html>oops</html>"))
    store = make_store(tokens={"u1": _expiring()})
    token = asyncio.run(get_valid_access_token(store, "u1", client=upstream.client()))
    assert token == "old-token"
    assert store.updates == []


def test_malformed_refresh_payload_keeps_stored_token(upstream, make_store):
    store = make_store(tokens={"u1": _expiring()})
    for payload in ({"access_token": "new-token", "expires_in": "soon"}, ["not", "a", "dict"], {"expires_in": 3599}):
        upstream.add(GOOGLE_TOKEN_URL, httpx.Response(200, json=payload))
        assert asyncio.run(get_valid_access_token(store, "u1", client=upstream.client())) == "old-token"
    assert store.updates == []


def test_failed_store_update_yields_no_token(upstream, make_store):
    upstream.add(GOOGLE_TOKEN_URL, httpx.Response(200, json={"access_token": "new-token", "expires_in": 3599}))
    store = make_store(tokens={"u1": _expiring()})
    store.update_ok = False
    assert asyncio.run(get_valid_access_token(store, "u1", client=upstream.client())) is None


def test_resolve_access_token_errors(upstream, make_store):
    store = make_store(sessions={"s1": "u1"})
    with pytest.raises(AuthError, match=AUTH_REQUIRED):
        asyncio.run(resolve_access_token(store, None, client=upstream.client()))
    with pytest.raises(AuthError, match=AUTH_REQUIRED):
        asyncio.run(resolve_access_token(store, "Bearer unknown", client=upstream.client()))
    with pytest.raises(AuthError, match=TOKEN_UNAVAILABLE):
        asyncio.run(resolve_access_token(store, "Bearer s1", client=upstream.client()))


def test_resolve_access_token_success(upstream, make_store):
    store = make_store(sessions={"s1": "u1"}, tokens={"u1": _fresh("tok")})
    assert asyncio.run(resolve_access_token(store, "Bearer s1", client=upstream.client())) == "tok"
