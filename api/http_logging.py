from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any, Dict, Iterable, Optional, Tuple

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from api.utils import env_bool, env_int

logger = logging.getLogger("api.http")

RawHeaders = Iterable[Tuple[bytes, bytes]]

SENSITIVE_KEYS = {
    "authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "api_key",
    "apikey",
    "access_token",
    "refresh_token",
    "token",
    "secret",
    "password",
    "client_secret",
}


def redact(value: Any) -> Any:
    """Replace values of sensitive keys (any depth) with `***`."""
    if isinstance(value, dict):
        return {k: ("***" if str(k).lower() in SENSITIVE_KEYS else redact(v)) for k, v in value.items()}
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


def _headers_dict(headers: Optional[RawHeaders]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for k, v in headers or []:
        name = k.decode("latin-1").lower()
        out[name] = v.decode("latin-1", errors="replace")
    return out


def _summarize_body(content_type: str, body: bytes) -> Any:
    if not body:
        return ""
    ct = content_type.lower()
    if "application/json" in ct:
        try:
            return redact(json.loads(body.decode("utf-8", errors="replace")))
        except ValueError:
            return body.decode("utf-8", errors="replace")
    if ct.startswith("text/"):
        return body.decode("utf-8", errors="replace")
    return f"<{len(body)} bytes>"


class _Capture:
    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.buf = bytearray()
        self.truncated = False

    def add(self, chunk: bytes) -> None:
        if not chunk or self.limit <= 0 or self.truncated:
            return
        room = self.limit - len(self.buf)
        self.buf.extend(chunk[: max(0, room)])
        if len(chunk) > room:
            self.truncated = True


class HttpLoggingMiddleware:
    """Logs one JSON line per inbound HTTP request."""

    def __init__(self, app: ASGIApp, *, log_headers: bool, max_body_bytes: int) -> None:
        self.app = app
        self.log_headers = log_headers
        self.max_body_bytes = max(0, max_body_bytes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        req_headers = _headers_dict(scope.get("headers"))
        request_id = req_headers.get("x-request-id") or uuid.uuid4().hex[:12]
        req_body = _Capture(self.max_body_bytes)
        res_body = _Capture(self.max_body_bytes)
        res_headers: Dict[str, str] = {}
        status: Optional[int] = None

        async def receive_wrapped() -> Message:
            message = await receive()
            if message.get("type") == "http.request":
                req_body.add(message.get("body") or b"")
            return message

        async def send_wrapped(message: Message) -> None:
            nonlocal status, res_headers
            if message.get("type") == "http.response.start":
                status = int(message.get("status") or 0)
                res_headers = _headers_dict(message.get("headers"))
            elif message.get("type") == "http.response.body":
                res_body.add(message.get("body") or b"")
            await send(message)

        err: Optional[BaseException] = None
        try:
            await self.app(scope, receive_wrapped, send_wrapped)
        except BaseException as e:  # noqa: BLE001 - logged then re-raised
            err = e
            raise
        finally:
            record: Dict[str, Any] = {
                "id": request_id,
                "method": str(scope.get("method") or "").upper(),
                "path": str(scope.get("path") or ""),
                "status": status,
                "dur_ms": int((time.perf_counter() - started) * 1000),
                "request": {
                    "body": _summarize_body(req_headers.get("content-type", ""), bytes(req_body.buf)),
                    "body_truncated": req_body.truncated,
                },
                "response": {
                    "body": _summarize_body(res_headers.get("content-type", ""), bytes(res_body.buf)),
                    "body_truncated": res_body.truncated,
                },
            }
            if self.log_headers:
                record["request"]["headers"] = redact(req_headers)
                record["response"]["headers"] = redact(res_headers)
            if err is not None:
                record["error"] = {"type": type(err).__name__, "message": str(err)}
            logger.info(json.dumps(record, ensure_ascii=False, default=str, separators=(",", ":")))


def install_http_logging(app: Any) -> bool:
    """
    Enable request/response logging via env vars.

    - `CHAIN_FETCH_HTTP_LOG=1` enables middleware
    - `CHAIN_FETCH_HTTP_LOG_HEADERS=1` logs request/response headers (redacted)
    - `CHAIN_FETCH_HTTP_LOG_BODY_MAX_BYTES=4096` caps body bytes captured per request/response
    """
    if not env_bool("CHAIN_FETCH_HTTP_LOG", default=False):
        return False
    app.add_middleware(
        HttpLoggingMiddleware,
        log_headers=env_bool("CHAIN_FETCH_HTTP_LOG_HEADERS", default=False),
        max_body_bytes=env_int("CHAIN_FETCH_HTTP_LOG_BODY_MAX_BYTES", default=4096),
    )
    return True
