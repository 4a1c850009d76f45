from __future__ import annotations

import logging
from typing import Any, Dict, List
from urllib.parse import urlparse

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_http_client, require_access_token
from api.models import ChainedFetchRequest, OpenFetchRequest
from api.utils import env_bool, env_csv, error_body
from chain_fetch import RequestStep, UnknownTransformError, run_chain, run_single_hop

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["fetch"])

DEFAULT_LLM_HOSTS = ["api.openai.com"]


def _strict_transforms() -> bool:
    return env_bool("CHAIN_FETCH_STRICT_TRANSFORMS", default=False)


def _is_llm_host(url: str, hosts: List[str]) -> bool:
    host = (urlparse(url).hostname or "").lower()
    return any(host == h or host.endswith("." + h) for h in hosts)


def with_bearer(step: RequestStep, token: str) -> RequestStep:
    headers = {k: v for k, v in step.headers.items() if k.lower() != "authorization"}
    headers["Authorization"] = f"Bearer {token}"
    return step.model_copy(update={"headers": headers})


def authorize_llm_steps(steps: List[RequestStep], token: str) -> List[RequestStep]:
    hosts = [h.lower() for h in env_csv("CHAIN_FETCH_LLM_HOSTS", DEFAULT_LLM_HOSTS)]
    return [with_bearer(s, token) if _is_llm_host(s.url, hosts) else s for s in steps]


@router.post("/chainFetch")
async def chained_fetch(
    request: ChainedFetchRequest,
    access_token: str = Depends(require_access_token),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> JSONResponse:
    """
    Run a chained pipeline; `transforms[i]` feeds `steps[i]` into `steps[i+1]`.

    All-or-nothing: any failing step turns the whole call into a 500.
    """
    steps = authorize_llm_steps(list(request.steps), access_token)
    logger.info("chainFetch: %d step(s), %d link(s)", len(steps), len(request.transforms))
    try:
        results = await run_chain(
            steps,
            request.transforms,
            client=client,
            strict_transforms=_strict_transforms(),
            include_error_body=True,
        )
    except UnknownTransformError as e:
        return JSONResponse(error_body(e), status_code=400)
    except Exception as e:
        logger.exception("chain execution error")
        with_stack = env_bool("CHAIN_FETCH_EXPOSE_STACK", default=True)
        return JSONResponse(error_body(e, with_stack=with_stack), status_code=500)

    payload: Dict[str, Any] = {"steps": [r.to_payload() for r in results]}
    return JSONResponse(payload)


@router.post("/openFetch")
async def open_fetch(
    request: OpenFetchRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
) -> JSONResponse:
    """One call, optionally followed by a second fed from the first."""
    try:
        result = await run_single_hop(
            request.as_step(),
            request.chain_config,
            client=client,
            strict_transforms=_strict_transforms(),
        )
    except UnknownTransformError as e:
        return JSONResponse(error_body(e), status_code=400)
    except Exception as e:
        logger.exception("openFetch error")
        return JSONResponse(error_body(e), status_code=500)
    return JSONResponse(result.to_payload())
