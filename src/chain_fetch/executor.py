from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

import httpx

from .classify import classify
from .errors import ResponseParseError, TransportError, UpstreamHTTPError
from .extract import extract_simplified
from .models import RequestStep, ResponseMode, StepResult, jsonable

logger = logging.getLogger(__name__)

_SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key", "api-key"}


def build_url(url: str, params: Optional[Mapping[str, str]]) -> str:
    if not params:
        return url
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{urlencode(params)}"


def merge_headers(headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """
    Caller headers plus a forced JSON content type.

    Any case-variant of `Content-Type` supplied by the caller is dropped so
    the outgoing request carries exactly one.
    """
    out = {k: v for k, v in (headers or {}).items() if str(k).lower() != "content-type"}
    out["Content-Type"] = "application/json"
    return out


def redact_headers(headers: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: ("***" if str(k).lower() in _SENSITIVE_HEADERS else v) for k, v in headers.items()}


def decode_body(response: httpx.Response, mode: ResponseMode) -> Any:
    try:
        if mode is ResponseMode.JSON:
            return response.json()
        if mode is ResponseMode.TEXT:
            return response.text
        return response.content
    except (ValueError, UnicodeDecodeError) as e:
        raise ResponseParseError(mode.value, str(e)) from e


async def execute_step(
    client: httpx.AsyncClient,
    step: RequestStep,
    *,
    include_error_body: bool = False,
) -> StepResult:
    """
    Issue one request and build its StepResult.

    Raises TransportError, UpstreamHTTPError (non-2xx) or ResponseParseError.
    """
    url = build_url(step.url, step.params)
    headers = merge_headers(step.headers)
    content = json.dumps(jsonable(step.body)) if step.body is not None else None

    logger.info("-> %s %s headers=%s", step.method, url, redact_headers(headers))
    try:
        response = await client.request(step.method, url, headers=headers, content=content)
    except httpx.RequestError as e:
        raise TransportError(str(e) or type(e).__name__) from e

    response_headers = {k.lower(): v for k, v in response.headers.items()}
    logger.info("<- %s %s status=%s", step.method, url, response.status_code)

    if not response.is_success:
        error_text = response.text
        logger.error("upstream error status=%s body=%s", response.status_code, error_text[:2000])
        raise UpstreamHTTPError(
            response.status_code,
            response.reason_phrase,
            error_text,
            include_body=include_error_body,
        )

    classification = classify(response_headers)
    data = decode_body(response, step.response_type)

    return StepResult(
        data=data,
        status=response.status_code,
        status_text=response.reason_phrase,
        headers=response_headers,
        classification=classification,
        simplified_content=extract_simplified(data, classification.kind, classification.format),
    )
