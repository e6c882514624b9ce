from __future__ import annotations

import json

import pytest

from setexpr import (
    Diff,
    Inter,
    Key,
    OperatorNotFoundError,
    SetExpressionFactory,
    Union,
    ValidationError,
)


def test_from_dict_builds_tree():
    data = {
        "op": "diff",
        "sets": [
            {
                "op": "inter",
                "sets": [{"op": "key", "key": "foo"}, {"op": "key", "key": "bar"}],
            },
            {"op": "key", "key": "baz"},
        ],
    }
    tree = SetExpressionFactory.from_dict(data)
    assert tree == Diff(Inter(Key("foo"), Key("bar")), Key("baz"))


def test_round_trip_through_json():
    tree = Union(Key("users:active"), Diff(Key("users:all"), Key("users:banned")))
    assert SetExpressionFactory.from_json(json.dumps(tree.to_dict())) == tree


def test_round_trip_non_utf8_key():
    tree = Inter(Key(b"\xff\xferaw"), Key("plain"))
    assert SetExpressionFactory.from_dict(tree.to_dict()) == tree


def test_operator_names_are_case_insensitive_with_aliases():
    data = {
        "op": "INTERSECTION",
        "sets": [
            {"op": "Key", "key": "a"},
            {"op": "difference", "sets": [{"op": "key", "key": "b"}]},
        ],
    }
    assert SetExpressionFactory.from_dict(data) == Inter(Key("a"), Diff(Key("b")))


def test_unknown_operator_suggests_alternatives():
    with pytest.raises(OperatorNotFoundError) as exc_info:
        SetExpressionFactory.from_dict(
            {"op": "unoin", "sets": [{"op": "key", "key": "a"}]}
        )
    assert "union" in exc_info.value.suggestions
    assert exc_info.value.path == "<root>"


def test_empty_sets_rejected_with_path():
    data = {"op": "union", "sets": [{"op": "key", "key": "a"}, {"op": "inter"}]}
    with pytest.raises(ValidationError) as exc_info:
        SetExpressionFactory.from_dict(data)
    assert exc_info.value.path == "<root>.sets[1]"


def test_key_requires_string():
    with pytest.raises(ValidationError, match="requires a string 'key'"):
        SetExpressionFactory.from_dict({"op": "key", "key": 3})


def test_missing_op():
    with pytest.raises(ValidationError, match="Missing or empty 'op'"):
        SetExpressionFactory.from_dict({"sets": []})


def test_from_json_invalid():
    with pytest.raises(ValidationError, match="Invalid JSON"):
        SetExpressionFactory.from_json("{not json")

    with pytest.raises(ValidationError, match="must be an object"):
        SetExpressionFactory.from_json("[1, 2]")


def test_validate_collects_all_errors():
    data = {
        "op": "union",
        "sets": [
            {"op": "key"},
            {"op": "xor", "sets": [{"op": "key", "key": "a"}]},
            "oops",
            {"op": "diff", "sets": []},
        ],
    }
    errors = SetExpressionFactory.validate(data)
    assert errors == [
        "<root>.sets[0]: missing 'key'",
        "<root>.sets[1]: unknown operator 'xor'",
        "<root>.sets[2]: expected dict, got str",
        "<root>.sets[3]: 'diff' requires a non-empty 'sets' list",
    ]


def test_validate_valid_tree():
    tree = Union(Key("a"), Key("b"))
    assert SetExpressionFactory.validate(tree.to_dict()) == []


def test_lone_surrogate_key_is_rejected_with_path():
    sets = [{"op": "key", "key": "a"}, {"op": "key", "key": "\ud800"}]
    text = json.dumps({"op": "union", "sets": sets})
    with pytest.raises(ValidationError, match="not encodable") as exc_info:
        SetExpressionFactory.from_json(text)
    assert exc_info.value.path == "<root>.sets[1]"


def test_validate_reports_lone_surrogate_key():
    data = json.loads('{"op": "key", "key": "\\ud800"}')
    errors = SetExpressionFactory.validate(data)
    assert len(errors) == 1
    assert errors[0].startswith("<root>: key is not encodable as UTF-8")
