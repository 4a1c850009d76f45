"""
Declarative chaining of outbound HTTP calls.

A pipeline is an ordered list of `RequestStep`s; `ChainLink`s describe how a
value is pulled out of one response, transformed, and placed into the next
request body.
"""

__all__ = [
    "ChainConfig",
    "ChainFetchError",
    "ChainLink",
    "ContentClassification",
    "ContentKind",
    "RequestStep",
    "ResponseMode",
    "ResponseParseError",
    "StepResult",
    "TRANSFORMS",
    "TransportError",
    "UnknownTransformError",
    "UpstreamHTTPError",
    "apply_transform",
    "classify",
    "execute_step",
    "extract_by_path",
    "extract_simplified",
    "inject_at_path",
    "resolve_transform",
    "run_chain",
    "run_single_hop",
]

from .classify import classify
from .errors import ChainFetchError, ResponseParseError, TransportError, UnknownTransformError, UpstreamHTTPError
from .executor import execute_step
from .extract import extract_simplified
from .models import ChainConfig, ChainLink, ContentClassification, ContentKind, RequestStep, ResponseMode, StepResult
from .paths import extract_by_path, inject_at_path
from .runner import run_chain, run_single_hop
from .transforms import TRANSFORMS, apply_transform, resolve_transform
