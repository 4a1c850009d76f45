from __future__ import annotations

from typing import Any, Mapping, Optional

from .models import ContentClassification, ContentKind

# Order matters: first match wins.
_MEDIA_PREFIXES = (
    ("image/", ContentKind.IMAGE),
    ("audio/", ContentKind.AUDIO),
    ("video/", ContentKind.VIDEO),
)


def header_value(headers: Optional[Mapping[str, Any]], name: str) -> str:
    if not headers:
        return ""
    want = name.lower()
    for k, v in headers.items():
        if str(k).lower() == want:
            return "" if v is None else str(v)
    return ""


def _subtype(content_type: str, prefix: str) -> Optional[str]:
    start = content_type.find(prefix)
    rest = content_type[start + len(prefix):]
    fmt = rest.split(";", 1)[0].strip()
    return fmt or None


def classify(headers: Optional[Mapping[str, Any]]) -> ContentClassification:
    """
    Assign a coarse content kind from the `content-type` header.

    Total: unknown or missing media types classify as `unknown`.
    """
    ct = header_value(headers, "content-type").lower()

    if "application/json" in ct:
        return ContentClassification(ContentKind.JSON)
    if "text/" in ct:
        return ContentClassification(ContentKind.TEXT)
    for prefix, kind in _MEDIA_PREFIXES:
        if prefix in ct:
            return ContentClassification(kind, _subtype(ct, prefix))
    if "application/octet-stream" in ct:
        return ContentClassification(ContentKind.BINARY)
    return ContentClassification(ContentKind.UNKNOWN)
