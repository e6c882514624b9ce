"""
Set-expression exception hierarchy with fuzzy-match suggestions.

All exceptions inherit from ``SetExpressionError`` and provide
``to_dict()`` for API-friendly error responses.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class SetExpressionError(Exception):
    """Base exception for all set-expression errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class ValidationError(SetExpressionError):
    """Serialised expression tree failed structural validation."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "VALIDATION_ERROR",
            "message": self.message,
            "path": self.path,
        }


class OperatorNotFoundError(SetExpressionError):
    """
    Unknown set operator specified.

    Provides fuzzy-matched suggestions for likely intended operators.
    """

    def __init__(
        self,
        operator: str,
        valid_operators: list[str],
        path: str | None = None,
    ) -> None:
        self.operator = operator
        self.valid_operators = valid_operators
        self.path = path
        self.suggestions = get_close_matches(operator, valid_operators, n=3, cutoff=0.6)

        message = f"Unknown set operator: '{operator}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        message += f" Valid operators: {', '.join(sorted(valid_operators))}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "OPERATOR_NOT_FOUND",
            "operator": self.operator,
            "path": self.path,
            "suggestions": self.suggestions,
            "valid_operators": sorted(self.valid_operators),
        }


class TemplateError(SetExpressionError):
    """Command template does not line up with the sets it is given."""


class ConfigurationError(SetExpressionError):
    """Invalid compiler configuration."""


class UnreachableNodeError(SetExpressionError):
    """
    Invariant violation: a leaf was asked for a store command.

    Leaves are returned as-is by the compiler and never translated into a
    store call, so reaching this is a defect in the caller, not a runtime
    condition to recover from.
    """

    def __init__(self, node: Any) -> None:
        self.node = node
        super().__init__(f"{node!r} has no store command")


class ProgramError(SetExpressionError):
    """Compiled program is not shaped as a MULTI ... EXEC transaction."""


class QueryExecutionError(SetExpressionError):
    """The store rejected or failed a compiled program."""

    def __init__(self, message: str, answer_index: int | None = None) -> None:
        self.answer_index = answer_index
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "QUERY_EXECUTION_ERROR",
            "message": str(self),
            "answer_index": self.answer_index,
        }
