from __future__ import annotations

import pydantic
import pytest

from setexpr import (
    Diff,
    Inter,
    Key,
    SetExpression,
    SetOperation,
    SetOperator,
    Union,
    UnreachableNodeError,
)


def test_key_accepts_str_and_bytes():
    assert Key("hello").name == b"hello"
    assert Key(b"hello").name == b"hello"
    assert Key(bytearray(b"hello")).name == b"hello"
    assert Key("héllo").name == "héllo".encode()


def test_key_rejects_non_buffer():
    with pytest.raises(pydantic.ValidationError):
        Key(42)


def test_operator_nodes_accept_positional_or_sequence():
    foo, bar = Key("foo"), Key("bar")
    assert Union(foo, bar) == Union([foo, bar])
    assert Union(foo, bar).children == (foo, bar)


def test_operator_node_requires_children():
    with pytest.raises(pydantic.ValidationError):
        Union()
    with pytest.raises(pydantic.ValidationError):
        Inter([])


def test_operator_node_rejects_non_expressions():
    with pytest.raises(pydantic.ValidationError):
        Diff(Key("foo"), {"op": "key", "key": "bar"})


def test_base_expression_is_abstract():
    with pytest.raises(TypeError, match="abstract"):
        SetExpression()


def test_bare_operation_is_rejected():
    with pytest.raises(TypeError, match="build a Union, Inter or Diff"):
        SetOperation(Key("a"), Key("b"))


def test_only_concrete_nodes_can_be_nested():
    with pytest.raises(TypeError):
        Union(SetExpression(), Key("a"))
    with pytest.raises(TypeError):
        Union(SetOperation(Key("a")), Key("b"))


def test_single_child_is_allowed():
    node = Inter(Key("only"))
    assert node.children == (Key("only"),)


def test_nodes_are_immutable():
    key = Key("foo")
    with pytest.raises(pydantic.ValidationError):
        key.name = b"bar"

    node = Union(key, Key("bar"))
    with pytest.raises(pydantic.ValidationError):
        node.children = (key,)


def test_structural_equality_and_hashing():
    a = Diff(Inter(Key("foo"), Key("bar")), Key("baz"))
    b = Diff(Inter(Key("foo"), Key("bar")), Key("baz"))
    assert a == b
    assert hash(a) == hash(b)
    assert Union(Key("foo"), Key("bar")) != Inter(Key("foo"), Key("bar"))
    assert len({a, b}) == 1


def test_python_operators_build_tree():
    foo, bar, baz = Key("foo"), Key("bar"), Key("baz")

    assert foo | bar == Union(foo, bar)
    assert foo & bar == Inter(foo, bar)
    assert foo - bar == Diff(foo, bar)
    # No flattening: nested nodes are kept as written
    assert (foo | bar) | baz == Union(Union(foo, bar), baz)
    assert (foo & bar) - baz == Diff(Inter(foo, bar), baz)


@pytest.mark.parametrize(
    ("node_type", "store", "plain", "operator"),
    [
        (Union, b"SUNIONSTORE", b"SUNION", SetOperator.UNION),
        (Inter, b"SINTERSTORE", b"SINTER", SetOperator.INTER),
        (Diff, b"SDIFFSTORE", b"SDIFF", SetOperator.DIFF),
    ],
)
def test_operator_commands(node_type, store, plain, operator):
    node = node_type(Key("a"), Key("b"))
    assert node.operator is operator
    assert node.command() == store
    assert node.command(store=True) == store
    assert node.command(store=False) == plain


def test_key_has_no_command():
    with pytest.raises(UnreachableNodeError, match="has no store command"):
        Key("foo").command()


def test_to_dict():
    tree = Diff(Inter(Key("foo"), Key("bar")), Key("baz"))
    assert tree.to_dict() == {
        "op": "diff",
        "sets": [
            {
                "op": "inter",
                "sets": [
                    {"op": "key", "key": "foo"},
                    {"op": "key", "key": "bar"},
                ],
            },
            {"op": "key", "key": "baz"},
        ],
    }
