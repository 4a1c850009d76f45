"""
Named transforms applied to data flowing between two chained steps.

Callers refer to transforms by name (`transformFn`). Unknown names resolve to
`identity` unless strict resolution is requested, in which case they raise
`UnknownTransformError` before any request is sent.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .errors import UnknownTransformError
from .extract import openai_message_content

logger = logging.getLogger(__name__)

Transform = Callable[[Any], Any]

TTS_MODEL = "tts-1"
TTS_VOICE = "alloy"


def identity(data: Any) -> Any:
    return data


def extract_openai_text(data: Any) -> Any:
    return openai_message_content(data) or data


def text_to_speech_payload(text: Any) -> Dict[str, Any]:
    # Request body for OpenAI's /v1/audio/speech.
    return {"model": TTS_MODEL, "voice": TTS_VOICE, "input": text}


TRANSFORMS: Mapping[str, Transform] = {
    "identity": identity,
    "extractOpenAIText": extract_openai_text,
    "textToSpeechPayload": text_to_speech_payload,
}


def resolve_transform(name: Optional[str], *, strict: bool = False) -> Transform:
    if not name:
        return identity
    fn = TRANSFORMS.get(name)
    if fn is not None:
        return fn
    if strict:
        raise UnknownTransformError(name)
    logger.warning("unknown transform %r, using identity", name)
    return identity


def apply_transform(name: Optional[str], data: Any) -> Any:
    return resolve_transform(name)(data)
