#!/usr/bin/env python3
"""
Run a chained pipeline locally, without the API or auth layer.

Input is the same JSON shape `POST /api/chainFetch` accepts:

    {"steps": [...], "transforms": [...]}

Example:
    python scripts/run_chain.py pipeline.json --header "Authorization=Bearer sk-..."
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List

# Ensure repo-root and src imports work when running as `python scripts/run_chain.py`
REPO_ROOT = Path(__file__).resolve().parents[1]
for p in (REPO_ROOT, REPO_ROOT / "src"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from api.models import ChainedFetchRequest  # noqa: E402
from chain_fetch import ChainFetchError, run_chain  # noqa: E402


def _parse_headers(raw: List[str]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for item in raw:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise SystemExit(f"Invalid --header {item!r}; expected NAME=VALUE")
        out[key.strip()] = value
    return out


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Execute a chainFetch pipeline file.")
    ap.add_argument("pipeline", type=Path, help="Path to pipeline JSON ({steps, transforms})")
    ap.add_argument("--header", action="append", default=[], help="Extra header for every step (NAME=VALUE)")
    ap.add_argument("--strict", action="store_true", help="Reject unknown transform names")
    ap.add_argument("--simplified", action="store_true", help="Print only each step's simplified content")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    config = ChainedFetchRequest.model_validate(json.loads(args.pipeline.read_text(encoding="utf-8")))
    extra = _parse_headers(args.header)
    steps = [s.model_copy(update={"headers": {**s.headers, **extra}}) for s in config.steps] if extra else config.steps

    try:
        results = asyncio.run(run_chain(steps, config.transforms, strict_transforms=args.strict))
    except ChainFetchError as e:
        print(f"Chain failed: {e}", file=sys.stderr)
        return 1

    if args.simplified:
        out = [r.to_payload()["simplifiedContent"] for r in results]
    else:
        out = {"steps": [r.to_payload() for r in results]}
    print(json.dumps(out, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
