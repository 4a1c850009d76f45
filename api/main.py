from __future__ import annotations

import logging
import time
import uuid
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.auth import AuthError
from api.http_logging import install_http_logging
from api.routes.debug import router as debug_router
from api.routes.fetch import router as fetch_router

logger = logging.getLogger("api")


def _repo_root() -> Path:
    # `api/main.py` lives at `<repo>/api/main.py`
    return Path(__file__).resolve().parents[1]


def create_app() -> FastAPI:
    # Load `.env` + `.env.local` when present (local dev convenience).
    load_dotenv(_repo_root() / ".env", override=False)
    load_dotenv(_repo_root() / ".env.local", override=False)

    app = FastAPI(title="chain-fetch-service", version="0.1.0")
    install_http_logging(app)

    @app.exception_handler(AuthError)
    async def _auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        logger.info("401 %s path=%s", exc, request.url.path)
        return JSONResponse(status_code=401, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        request_id = f"val_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
        logger.warning("422 validation_error requestId=%s path=%s errors=%s", request_id, request.url.path, exc.errors())
        return JSONResponse(
            status_code=422,
            content={
                "error": "validation_error",
                "message": "Request body did not match expected schema.",
                "requestId": request_id,
                "details": jsonable_errors(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = f"err_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
        logger.exception("500 internal_error requestId=%s path=%s", request_id, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": str(exc) or "internal_error", "requestId": request_id},
        )

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"ok": True, "service": "chain-fetch-service", "ts": int(time.time() * 1000)}

    app.include_router(fetch_router)
    app.include_router(debug_router)
    return app


def jsonable_errors(errors: Any) -> Any:
    # pydantic error contexts may carry exception objects.
    out = []
    for err in errors or []:
        item = dict(err)
        if "ctx" in item:
            item["ctx"] = {k: str(v) for k, v in dict(item["ctx"]).items()}
        item.pop("input", None)
        out.append(item)
    return out


app = create_app()
