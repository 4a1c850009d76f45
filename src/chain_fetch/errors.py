from __future__ import annotations

from typing import Optional


class ChainFetchError(Exception):
    """Base class for failures that terminate a pipeline run."""


class TransportError(ChainFetchError):
    """The outbound call could not complete (DNS, connect, read...)."""


class UpstreamHTTPError(ChainFetchError):
    def __init__(self, status: int, status_text: str, body: Optional[str] = None, *, include_body: bool = False) -> None:
        self.status = status
        self.status_text = status_text
        self.body = body
        message = f"HTTP Error: {status} - {status_text}"
        if include_body:
            message += f"\nDetails: {body or ''}"
        super().__init__(message)


class ResponseParseError(ChainFetchError):
    def __init__(self, mode: str, detail: str) -> None:
        self.mode = mode
        super().__init__(f"Failed to parse {mode} response: {detail}")


class UnknownTransformError(ChainFetchError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown transform function: {name!r}")
