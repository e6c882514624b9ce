from __future__ import annotations

from enum import Enum


class SetOperator(str, Enum):
    """Set-combination operators understood by the compiler."""

    UNION = "union"
    INTER = "inter"
    DIFF = "diff"

    @property
    def command(self) -> bytes:
        """Non-storing form, replies with the resulting members."""
        return _COMMANDS[self]

    @property
    def store_command(self) -> bytes:
        """Storing form, writes the result into a destination key."""
        return _COMMANDS[self] + b"STORE"


_COMMANDS: dict[SetOperator, bytes] = {
    SetOperator.UNION: b"SUNION",
    SetOperator.INTER: b"SINTER",
    SetOperator.DIFF: b"SDIFF",
}

# Alternate spellings accepted when parsing serialised trees
OPERATOR_ALIASES: dict[str, SetOperator] = {
    "intersection": SetOperator.INTER,
    "difference": SetOperator.DIFF,
}
