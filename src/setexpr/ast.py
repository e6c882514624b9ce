from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .commands import to_bytes
from .exceptions import OperatorNotFoundError, UnreachableNodeError, ValidationError
from .operators import OPERATOR_ALIASES, SetOperator

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .config import CompilerConfig
    from .query import MembersQuery

KEY_OP = "key"

# Pre-compute valid operator names for validation
_OPERATORS: dict[str, SetOperator] = {
    **{m.value: m for m in SetOperator},
    **OPERATOR_ALIASES,
}
_VALID_OPS: list[str] = [KEY_OP, *_OPERATORS]


def _encode_key(key: str) -> bytes:
    """Inverse of the ``surrogateescape`` decoding used by ``Key.to_dict``."""
    return key.encode("utf-8", errors="surrogateescape")


class SetExpression(BaseModel, ABC):
    """
    Immutable node of a set-algebra expression tree.

    Trees are composed with the Python set operators::

        (Key("foo") & Key("bar")) - Key("baz")
        # → Diff(Inter(foo, bar), baz)

    No flattening or reordering is applied: the tree is compiled exactly
    as it is built.
    """

    model_config = ConfigDict(frozen=True)

    def __or__(self, other: SetExpression) -> Union:
        return Union(self, other)

    def __and__(self, other: SetExpression) -> Inter:
        return Inter(self, other)

    def __sub__(self, other: SetExpression) -> Diff:
        return Diff(self, other)

    @abstractmethod
    def command(self, *, store: bool = True) -> bytes:
        """Return the store command combining this node's children."""
        ...

    def members(self, *, config: CompilerConfig | None = None) -> MembersQuery:
        """Query listing the members of this set, with the root optimisation."""
        from .query import MembersQuery

        return MembersQuery(self, config=config)

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        ...


class Key(SetExpression):
    """Leaf referencing an existing set by its raw key."""

    name: bytes

    def __init__(self, name: bytes | str | None = None, /, **data: Any) -> None:
        if name is not None:
            data["name"] = name
        super().__init__(**data)

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> bytes:
        try:
            return to_bytes(value)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc

    def command(self, *, store: bool = True) -> bytes:
        raise UnreachableNodeError(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": KEY_OP,
            "key": self.name.decode("utf-8", errors="surrogateescape"),
        }


class SetOperation(SetExpression):
    """Internal node combining one or more child expressions."""

    operator: ClassVar[SetOperator]

    children: tuple[SetExpression, ...] = Field(min_length=1)

    def __init__(
        self,
        *children: SetExpression | Sequence[SetExpression],
        **data: Any,
    ) -> None:
        if not hasattr(type(self), "operator"):
            raise TypeError(
                f"{type(self).__name__} is abstract; build a Union, Inter or Diff"
            )
        if len(children) == 1 and isinstance(children[0], list | tuple):
            children = tuple(children[0])
        if children:
            data["children"] = tuple(children)
        super().__init__(**data)

    @field_validator("children", mode="before")
    @classmethod
    def _check_children(cls, value: Any) -> Any:
        if not isinstance(value, list | tuple):
            return value
        for child in value:
            if not isinstance(child, SetExpression):
                raise ValueError(
                    f"children must be set expressions, got {type(child).__name__}"
                )
        return value

    def command(self, *, store: bool = True) -> bytes:
        return self.operator.store_command if store else self.operator.command

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": self.operator.value,
            "sets": [child.to_dict() for child in self.children],
        }


class Union(SetOperation):
    """Union of all children."""

    operator: ClassVar[SetOperator] = SetOperator.UNION


class Inter(SetOperation):
    """Intersection of all children."""

    operator: ClassVar[SetOperator] = SetOperator.INTER


class Diff(SetOperation):
    """First child minus the union of the remaining children."""

    operator: ClassVar[SetOperator] = SetOperator.DIFF


_NODE_TYPES: dict[SetOperator, type[SetOperation]] = {
    SetOperator.UNION: Union,
    SetOperator.INTER: Inter,
    SetOperator.DIFF: Diff,
}


class SetExpressionFactory:
    """
    Factory for creating expression trees from dictionary / JSON representations.

    Supports:
    - ``from_dict(data)`` — parse a nested dict tree
    - ``from_json(text)`` — parse a JSON string
    - ``validate(data)``  — validate without constructing

    Leaves are ``{"op": "key", "key": "<name>"}``; operator nodes are
    ``{"op": "union" | "inter" | "diff", "sets": [...]}``.
    """

    # ------------------------------------------------------------------ #
    # Public API                                                          #
    # ------------------------------------------------------------------ #

    @staticmethod
    def from_dict(data: dict[str, Any]) -> SetExpression:
        """Create an expression tree from a dictionary (fail-fast)."""
        SetExpressionFactory._validate_node(data)
        return SetExpressionFactory._build(data)

    @staticmethod
    def from_json(text: str) -> SetExpression:
        """Parse a JSON string and build an expression tree."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValidationError(
                f"Invalid JSON: {exc}",
                path="<root>",
            ) from exc

        if not isinstance(data, dict):
            raise ValidationError(
                "Top-level JSON value must be an object",
                path="<root>",
            )

        return SetExpressionFactory.from_dict(data)

    @staticmethod
    def validate(data: Any) -> list[str]:
        """
        Validate an expression dict and return a list of error messages.

        Returns an empty list when the structure is valid.
        """
        errors: list[str] = []
        SetExpressionFactory._collect_errors(data, errors, path="<root>")
        return errors

    # ------------------------------------------------------------------ #
    # Internal — recursive build                                          #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build(data: dict[str, Any]) -> SetExpression:
        op_str = data["op"].lower()
        if op_str == KEY_OP:
            return Key(_encode_key(data["key"]))

        node_type = _NODE_TYPES[_OPERATORS[op_str]]
        return node_type(*(SetExpressionFactory._build(c) for c in data["sets"]))

    # ------------------------------------------------------------------ #
    # Internal — validation                                               #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _validate_node(data: Any, *, path: str = "<root>") -> None:
        """Raise on first validation error."""
        if not isinstance(data, dict):
            raise ValidationError(
                f"Expected a dict, got {type(data).__name__}",
                path=path,
            )

        op_str = data.get("op")
        if not op_str or not isinstance(op_str, str):
            raise ValidationError("Missing or empty 'op' key", path=path)

        op_lower = op_str.lower()
        if op_lower == KEY_OP:
            if not isinstance(data.get("key"), str):
                raise ValidationError(
                    f"Key node requires a string 'key': {data}",
                    path=path,
                )
            try:
                _encode_key(data["key"])
            except UnicodeEncodeError as exc:
                raise ValidationError(
                    f"Key is not encodable as UTF-8: {exc.reason}",
                    path=path,
                ) from exc
            return

        if op_lower not in _OPERATORS:
            raise OperatorNotFoundError(op_lower, _VALID_OPS, path=path)

        sets = data.get("sets")
        if not isinstance(sets, list) or not sets:
            raise ValidationError(
                f"Operator '{op_str}' requires a non-empty 'sets' list",
                path=path,
            )
        for idx, child in enumerate(sets):
            SetExpressionFactory._validate_node(child, path=f"{path}.sets[{idx}]")

    @staticmethod
    def _collect_errors(data: Any, errors: list[str], *, path: str) -> None:
        """Recursive error collection (non-throwing)."""
        if not isinstance(data, dict):
            errors.append(f"{path}: expected dict, got {type(data).__name__}")
            return

        op_str = data.get("op")
        if not op_str or not isinstance(op_str, str):
            errors.append(f"{path}: missing or empty 'op' key")
            return

        op_lower = op_str.lower()
        if op_lower == KEY_OP:
            key = data.get("key")
            if not isinstance(key, str):
                errors.append(f"{path}: missing 'key'")
                return
            try:
                _encode_key(key)
            except UnicodeEncodeError as exc:
                errors.append(f"{path}: key is not encodable as UTF-8 ({exc.reason})")
            return

        if op_lower not in _OPERATORS:
            errors.append(f"{path}: unknown operator '{op_lower}'")

        sets = data.get("sets")
        if not isinstance(sets, list) or not sets:
            errors.append(f"{path}: '{op_str}' requires a non-empty 'sets' list")
            return
        for idx, child in enumerate(sets):
            SetExpressionFactory._collect_errors(
                child, errors, path=f"{path}.sets[{idx}]"
            )
