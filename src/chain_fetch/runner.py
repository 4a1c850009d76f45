"""
Pipeline runner.

Two entrypoints share the same step execution and transform/inject logic:

- `run_chain`: N steps, flat list of results (`links[i]` feeds step i+1).
- `run_single_hop`: one step plus an optional follow-up whose result is
  nested under the first result's `chained_response`.

Steps run strictly in order. The first failure aborts the run; results
collected so far are logged but never returned.
"""

from __future__ import annotations

import copy
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Sequence

import httpx

from .errors import ChainFetchError
from .executor import execute_step
from .models import ChainLink, RequestStep, StepResult
from .paths import extract_by_path, inject_at_path
from .transforms import Transform, resolve_transform

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 60.0


def default_timeout() -> float:
    raw = (os.getenv("CHAIN_FETCH_TIMEOUT_SEC") or "").strip()
    if not raw:
        return DEFAULT_TIMEOUT_SEC
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT_SEC


@asynccontextmanager
async def _client_scope(client: Optional[httpx.AsyncClient]) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=default_timeout()) as owned:
        yield owned


def prepare_step(
    step: RequestStep,
    link: ChainLink,
    previous: StepResult,
    transform: Optional[Transform] = None,
) -> RequestStep:
    """
    Derive the request for `step` from the previous result.

    Returns a new RequestStep; neither `step` nor its body is modified.
    """
    if link.extract_path:
        value = extract_by_path(previous.data, link.extract_path)
    else:
        value = previous.simplified_content

    fn = transform or resolve_transform(link.transform_fn)
    value = fn(value)

    if link.inject_path:
        base = copy.deepcopy(step.body) if isinstance(step.body, (dict, list)) else {}
        body = inject_at_path(base, link.inject_path, value)
    else:
        body = value
    return step.model_copy(update={"body": body})


def _resolve_links(
    links: Sequence[Optional[ChainLink]],
    *,
    strict: bool,
) -> List[Optional[Transform]]:
    return [resolve_transform(link.transform_fn, strict=strict) if link else None for link in links]


async def run_chain(
    steps: Sequence[RequestStep],
    links: Optional[Sequence[Optional[ChainLink]]] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    strict_transforms: bool = False,
    include_error_body: bool = True,
) -> List[StepResult]:
    links = list(links or [])
    transforms = _resolve_links(links, strict=strict_transforms)
    results: List[StepResult] = []

    async with _client_scope(client) as http:
        for i, step in enumerate(steps):
            logger.info("executing step %d/%d", i + 1, len(steps))
            link = links[i - 1] if 0 < i <= len(links) else None
            if link is not None:
                step = prepare_step(step, link, results[-1], transforms[i - 1])
            try:
                result = await execute_step(http, step, include_error_body=include_error_body)
            except ChainFetchError:
                logger.error(
                    "chain aborted at step %d/%d; discarding %d completed result(s): %s",
                    i + 1,
                    len(steps),
                    len(results),
                    [r.status for r in results],
                )
                raise
            results.append(result)

    logger.info("chain completed: %d step(s)", len(results))
    return results


async def run_single_hop(
    step: RequestStep,
    chain: Optional[ChainLink] = None,
    next_step: Optional[RequestStep] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    strict_transforms: bool = False,
) -> StepResult:
    """
    Execute `step`, then `next_step` (or `chain.next`) when configured.

    The follow-up result is attached as `chained_response` on the first.
    """
    follow_up = next_step if next_step is not None else getattr(chain, "next", None)
    transform: Optional[Transform] = None
    if follow_up is not None and chain is not None:
        transform = resolve_transform(chain.transform_fn or "identity", strict=strict_transforms)

    async with _client_scope(client) as http:
        first = await execute_step(http, step)
        if follow_up is None:
            return first
        link = chain if chain is not None else ChainLink()
        derived = prepare_step(follow_up, link, first, transform)
        first.chained_response = await execute_step(http, derived)
    return first
