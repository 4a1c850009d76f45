import copy

import pytest

from chain_fetch.paths import extract_by_path, inject_at_path


def test_extract_nested_and_indexed():
    data = {"data": {"items": [{"id": "a"}, {"id": "b"}]}}
    assert extract_by_path(data, ["data", "items", "1", "id"]) == "b"
    assert extract_by_path(data, ["data", "items", 0, "id"]) == "a"


def test_extract_missing_returns_none():
    assert extract_by_path({"a": {"b": 1}}, ["a", "c"]) is None
    assert extract_by_path({"a": {"b": 1}}, ["a", "b", "c"]) is None
    assert extract_by_path({"a": [1]}, ["a", "5"]) is None
    assert extract_by_path({"a": [1]}, ["a", "x"]) is None
    assert extract_by_path(None, ["a"]) is None


def test_extract_empty_path_is_the_value():
    assert extract_by_path({"a": 1}, []) == {"a": 1}


def test_inject_creates_intermediate_nodes_and_returns_target():
    target = {"keep": True}
    out = inject_at_path(target, "a.b.c", 5)
    assert out is target
    assert target == {"keep": True, "a": {"b": {"c": 5}}}


def test_inject_top_level_key():
    assert inject_at_path({}, "relatedId", "x1") == {"relatedId": "x1"}


def test_inject_then_extract_round_trip():
    cases = [
        ({}, "a", 1),
        ({"a": {"x": 1}}, "a.b", [1, 2]),
        ({"a": "scalar"}, "a.b.c", {"deep": True}),
        ({"a": {"b": {"c": 0}}}, "a.b.c", "new"),
    ]
    for m, p, v in cases:
        original = copy.deepcopy(m)
        injected = inject_at_path(copy.deepcopy(m), p, v)
        assert extract_by_path(injected, p.split(".")) == v
        assert m == original


def test_inject_walks_into_existing_lists():
    body = {"model": "m", "messages": [{"role": "system", "content": "sys"}, {"role": "user"}]}
    inject_at_path(body, "messages.1.content", "hello")
    assert body == {
        "model": "m",
        "messages": [{"role": "system", "content": "sys"}, {"role": "user", "content": "hello"}],
    }


def test_inject_into_list_by_index():
    target = {"items": ["a", "b"]}
    inject_at_path(target, "items.0", "z")
    inject_at_path(target, "items.3", "d")
    assert target == {"items": ["z", "b", None, "d"]}
    assert inject_at_path([{}], "0.id", 1) == [{"id": 1}]


def test_inject_rejects_non_integer_list_segment():
    with pytest.raises(ValueError):
        inject_at_path({"items": [1]}, "items.name", "x")
