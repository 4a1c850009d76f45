from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContentKind(str, Enum):
    TEXT = "text"
    JSON = "json"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    BINARY = "binary"
    STREAM = "stream"
    UNKNOWN = "unknown"


class ResponseMode(str, Enum):
    """How a step's response body is decoded."""

    JSON = "json"
    TEXT = "text"
    BINARY = "binary"
    RAW_BYTES = "raw-bytes"


# Names used by existing browser callers (fetch's Response.blob / arrayBuffer).
_RESPONSE_MODE_ALIASES = {
    "blob": ResponseMode.BINARY,
    "arraybuffer": ResponseMode.RAW_BYTES,
    "raw_bytes": ResponseMode.RAW_BYTES,
    "bytes": ResponseMode.RAW_BYTES,
}


@dataclass(frozen=True)
class ContentClassification:
    kind: ContentKind
    format: Optional[str] = None


class RequestStep(BaseModel):
    """One outbound HTTP call."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    url: str
    method: str = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Any = None
    params: Optional[Dict[str, str]] = None
    response_type: ResponseMode = Field(default=ResponseMode.JSON, alias="responseType")

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper() or "GET"
        return v

    @field_validator("headers", mode="before")
    @classmethod
    def _stringify_headers(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, dict):
            return {str(k): str(val) for k, val in v.items()}
        return v

    @field_validator("params", mode="before")
    @classmethod
    def _stringify_params(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(k): str(val) for k, val in v.items()}
        return v

    @field_validator("response_type", mode="before")
    @classmethod
    def _response_type_aliases(cls, v: Any) -> Any:
        if v is None:
            return ResponseMode.JSON
        if isinstance(v, str):
            return _RESPONSE_MODE_ALIASES.get(v.strip().lower(), v.strip().lower())
        return v


class ChainLink(BaseModel):
    """Data-flow rule between two consecutive steps."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    extract_path: Optional[List[str]] = Field(default=None, alias="extractPath")
    inject_path: Optional[str] = Field(default=None, alias="injectPath")
    transform_fn: Optional[str] = Field(default=None, alias="transformFn")

    @field_validator("extract_path", mode="before")
    @classmethod
    def _stringify_path(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return [str(p) for p in v]
        return v


class ChainConfig(ChainLink):
    """Single-hop follow-up: a ChainLink plus the step it feeds."""

    next: Optional[RequestStep] = None


def jsonable(value: Any) -> Any:
    """Make a decoded body JSON-safe; bytes become base64 text."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, dict):
        return {str(k): jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    return value


@dataclass
class StepResult:
    data: Any
    status: int
    status_text: str
    headers: Dict[str, str]
    classification: ContentClassification
    simplified_content: Any = None
    chained_response: Optional["StepResult"] = None

    @property
    def content_type(self) -> ContentKind:
        return self.classification.kind

    @property
    def content_format(self) -> Optional[str]:
        return self.classification.format

    def to_payload(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "data": jsonable(self.data),
            "status": self.status,
            "statusText": self.status_text,
            "headers": dict(self.headers),
            "simplifiedContent": jsonable(self.simplified_content),
            "contentType": self.content_type.value,
        }
        if self.content_format is not None:
            out["contentFormat"] = self.content_format
        if self.chained_response is not None:
            out["chainedResponse"] = self.chained_response.to_payload()
        return out
