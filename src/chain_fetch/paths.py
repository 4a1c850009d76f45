from __future__ import annotations

from typing import Any, Iterable, Optional


def _index(key: str) -> Optional[int]:
    try:
        idx = int(key)
    except (TypeError, ValueError):
        return None
    return idx if idx >= 0 else None


def _step(value: Any, key: str) -> Optional[Any]:
    if isinstance(value, dict):
        return value.get(key)
    if isinstance(value, (list, tuple)):
        idx = _index(key)
        if idx is None or idx >= len(value):
            return None
        return value[idx]
    return None


def _put(node: Any, key: str, value: Any) -> None:
    if isinstance(node, list):
        idx = _index(key)
        if idx is None:
            raise ValueError(f"cannot index a list with {key!r}")
        if idx >= len(node):
            node.extend([None] * (idx + 1 - len(node)))
        node[idx] = value
        return
    node[key] = value


def extract_by_path(value: Any, path: Iterable[Any]) -> Any:
    """
    Walk `path` into `value`. Returns None as soon as a segment is missing.

    Mappings are indexed by key, sequences by integer position.
    """
    current = value
    for key in path:
        if current is None:
            return None
        current = _step(current, str(key))
    return current


def inject_at_path(target: Any, path: str, value: Any) -> Any:
    """
    Write `value` at the dot-separated `path` inside `target`. Mutates and
    returns `target`.

    Existing dicts and lists are walked into (lists by integer segment).
    Missing or empty segments get a new empty dict.
    """
    parts = path.split(".")
    last = parts.pop()
    node = target
    for part in parts:
        child = _step(node, part)
        if not child or not isinstance(child, (dict, list)):
            child = {}
            _put(node, part, child)
        node = child
    _put(node, last, value)
    return target
