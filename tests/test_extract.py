from chain_fetch.extract import extract_simplified
from chain_fetch.models import ContentKind


def test_json_without_matching_shape_is_unchanged():
    body = {"foo": 1}
    assert extract_simplified(body, ContentKind.JSON) == {"foo": 1}


def test_json_chat_completion_returns_message_text():
    assert extract_simplified({"choices": [{"message": {"content": "hi"}}]}, ContentKind.JSON) == "hi"


def test_json_heuristics_in_order():
    assert extract_simplified({"content": "c", "data": [1]}, ContentKind.JSON) == "c"
    assert extract_simplified({"data": [1, 2]}, ContentKind.JSON) == [1, 2]
    assert extract_simplified([1, 2, 3], ContentKind.JSON) == [1, 2, 3]


def test_json_empty_fields_fall_through():
    body = {"choices": [{"message": {"content": ""}}], "content": "", "data": None}
    assert extract_simplified(body, ContentKind.JSON) is body


def test_json_scalars_are_returned_as_is():
    assert extract_simplified("plain", ContentKind.JSON) == "plain"
    assert extract_simplified(None, ContentKind.JSON) is None


def test_text_is_unchanged():
    assert extract_simplified("hello", ContentKind.TEXT) == "hello"


def test_media_is_wrapped_in_descriptor():
    out = extract_simplified(b"\x89PNG", ContentKind.IMAGE, "png")
    assert out == {"type": "image", "data": b"\x89PNG", "size": 4, "format": "png"}


def test_binary_descriptor_without_length():
    out = extract_simplified(12, ContentKind.BINARY)
    assert out["size"] is None
    assert out["type"] == "binary"


def test_stream_and_unknown():
    assert extract_simplified("s", ContentKind.STREAM) == {"type": "stream", "stream": "s"}
    assert extract_simplified({"a": 1}, ContentKind.UNKNOWN) == {"a": 1}
