from __future__ import annotations

from typing import Any, Optional

from .models import ContentKind


def openai_message_content(body: Any) -> Any:
    """Return `choices[0].message.content` of a chat completion, or None."""
    if not isinstance(body, dict):
        return None
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    return message.get("content")


def _simplify_json(body: Any) -> Any:
    # Best-effort heuristics, tried in order; callers must accept the untouched body.
    content = openai_message_content(body)
    if content:
        return content
    if isinstance(body, dict):
        if body.get("content"):
            return body["content"]
        if body.get("data"):
            return body["data"]
    return body


def _size_of(body: Any) -> Optional[int]:
    try:
        return len(body)
    except TypeError:
        return None


def extract_simplified(body: Any, kind: ContentKind, fmt: Optional[str] = None) -> Any:
    """
    Reduce a decoded response body to its meaningful payload.

    Media kinds are wrapped in a descriptor (`type`, `data`, `size`, `format`)
    since raw bytes have nothing to simplify.
    """
    match kind:
        case ContentKind.JSON:
            return _simplify_json(body)
        case ContentKind.TEXT:
            return body
        case ContentKind.IMAGE | ContentKind.AUDIO | ContentKind.VIDEO | ContentKind.BINARY:
            return {"type": kind.value, "data": body, "size": _size_of(body), "format": fmt}
        case ContentKind.STREAM:
            return {"type": ContentKind.STREAM.value, "stream": body}
        case ContentKind.UNKNOWN:
            return body
    return body
