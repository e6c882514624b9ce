"""
Output assembly: turn an expression tree plus a terminal command into a
replayable op list.

Two query shapes are provided:

``SetQuery``
    Canonical template mode. The terminal command is a
    :class:`CommandTemplate` whose :class:`Slot` placeholders are filled
    with the result keys of the given sets. Every set, root included, is
    compiled uniformly into a temporary key::

        query = SetQuery.members(Diff(Inter(Key("foo"), Key("bar")), Key("baz")))
        ops, answer_index = query.solve()

``MembersQuery``
    Root-optimised listing of members. The root operator emits its
    non-storing form (``SUNION`` / ``SINTER`` / ``SDIFF``) as the answer
    itself, saving one temporary key.

``explain()`` returns the raw commands for inspection; ``solve()`` wraps
them in ``MULTI`` / ``EXEC`` and removes every temporary with one ``DEL``
before committing.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .ast import SetExpression
from .commands import DEL, EXEC, MULTI, SCARD, SMEMBERS, Command, to_bytes
from .compiler import CompileContext, compile_inner, compile_root
from .config import CompilerConfig
from .exceptions import TemplateError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger = logging.getLogger("setexpr.query")


@dataclass(frozen=True)
class Slot:
    """Placeholder for the result key of the ``index``-th set of a query."""

    index: int = 0

    def __post_init__(self) -> None:
        if self.index < 0:
            raise TemplateError(f"Slot index must be non-negative, got {self.index}")


@dataclass(frozen=True, init=False)
class CommandTemplate:
    """
    Command skeleton with literal arguments and :class:`Slot` placeholders.

    Example::

        CommandTemplate("SRANDMEMBER", Slot(0), "10")
    """

    parts: tuple[bytes | Slot, ...]

    def __init__(self, *parts: bytes | str | Slot) -> None:
        if not parts:
            raise TemplateError("Command template must not be empty")
        if isinstance(parts[0], Slot):
            raise TemplateError("Command template must start with a command name")
        normalised: list[bytes | Slot] = []
        for part in parts:
            if isinstance(part, Slot):
                normalised.append(part)
                continue
            try:
                normalised.append(to_bytes(part))
            except TypeError as exc:
                raise TemplateError(str(exc)) from exc
        object.__setattr__(self, "parts", tuple(normalised))

    @property
    def slots(self) -> tuple[int, ...]:
        """Distinct slot indexes referenced by the template, ascending."""
        return tuple(sorted({p.index for p in self.parts if isinstance(p, Slot)}))

    def render(self, refs: Sequence[bytes]) -> Command:
        """Substitute each slot with the matching result key."""
        command: Command = []
        for part in self.parts:
            if isinstance(part, Slot):
                if part.index >= len(refs):
                    raise TemplateError(
                        f"Slot {part.index} has no result; only {len(refs)} given"
                    )
                command.append(refs[part.index])
            else:
                command.append(part)
        return command


@dataclass(frozen=True)
class CompiledProgram:
    """
    Transaction-wrapped op list and the position of the caller's answer.

    Unpacks as ``ops, answer_index = program``.
    """

    ops: list[Command]
    answer_index: int
    temporaries: list[str] = field(default_factory=list)

    @property
    def answer(self) -> Command:
        """The command whose reply is the result."""
        return self.ops[self.answer_index]

    def __iter__(self) -> Iterator[Any]:
        yield self.ops
        yield self.answer_index


class BaseSetQuery(ABC):
    """Common ``explain`` / ``solve`` assembly over a fresh compile context."""

    def __init__(self, *, config: CompilerConfig | None = None) -> None:
        self.config = config if config is not None else CompilerConfig()

    @abstractmethod
    def _compile(self, ctx: CompileContext) -> Command:
        """Emit generating commands into *ctx* and return the answer command."""
        ...

    def _context(self) -> CompileContext:
        return CompileContext(namespace=self.config.namespace)

    def explain(self) -> list[Command]:
        """Commands computing the answer, without transaction or cleanup."""
        ctx = self._context()
        answer = self._compile(ctx)
        return [*ctx.ops, answer]

    def solve(self) -> CompiledProgram:
        """Commands wrapped in ``MULTI`` / ``EXEC`` with temporaries deleted."""
        ctx = self._context()
        ctx.ops.append([MULTI])
        answer = self._compile(ctx)
        ctx.ops.append(answer)
        answer_index = len(ctx.ops) - 1
        if ctx.ids:
            ctx.ops.append([DEL, *ctx.temporaries])
        ctx.ops.append([EXEC])

        logger.debug(
            "Compiled %r into %d commands (%d temporaries, answer at %d)",
            self,
            len(ctx.ops),
            len(ctx.ids),
            answer_index,
        )
        return CompiledProgram(
            ops=ctx.ops,
            answer_index=answer_index,
            temporaries=list(ctx.ids),
        )


class SetQuery(BaseSetQuery):
    """Terminal command template applied to one or more compiled sets."""

    def __init__(
        self,
        template: CommandTemplate | Sequence[bytes | str | Slot],
        sets: Sequence[SetExpression],
        *,
        config: CompilerConfig | None = None,
    ) -> None:
        super().__init__(config=config)
        if not isinstance(template, CommandTemplate):
            template = CommandTemplate(*template)
        self.template = template
        self.sets = tuple(sets)
        self._check_slots()

    def _check_slots(self) -> None:
        for expr in self.sets:
            if not isinstance(expr, SetExpression):
                raise TemplateError(
                    f"Expected a set expression, got {type(expr).__name__}"
                )
        slots = self.template.slots
        out_of_range = [i for i in slots if i >= len(self.sets)]
        if out_of_range:
            raise TemplateError(
                f"Template references slot(s) {out_of_range} "
                f"but only {len(self.sets)} set(s) were given"
            )
        unused = sorted(set(range(len(self.sets))) - set(slots))
        if unused:
            raise TemplateError(f"Set(s) {unused} are not referenced by the template")

    @classmethod
    def command(
        cls,
        name: bytes | str,
        expression: SetExpression,
        *,
        config: CompilerConfig | None = None,
    ) -> SetQuery:
        """``<name> <result>`` applied to a single expression."""
        return cls(CommandTemplate(name, Slot(0)), [expression], config=config)

    @classmethod
    def members(
        cls,
        expression: SetExpression,
        *,
        config: CompilerConfig | None = None,
    ) -> SetQuery:
        return cls.command(SMEMBERS, expression, config=config)

    @classmethod
    def count(
        cls,
        expression: SetExpression,
        *,
        config: CompilerConfig | None = None,
    ) -> SetQuery:
        return cls.command(SCARD, expression, config=config)

    def _compile(self, ctx: CompileContext) -> Command:
        refs = [compile_inner(expr, ctx) for expr in self.sets]
        return self.template.render(refs)

    def __repr__(self) -> str:
        return f"SetQuery(template={self.template!r}, sets={len(self.sets)})"


class MembersQuery(BaseSetQuery):
    """Members of an expression, answered by the root's non-storing command."""

    def __init__(
        self,
        expression: SetExpression,
        *,
        config: CompilerConfig | None = None,
    ) -> None:
        super().__init__(config=config)
        self.expression = expression

    def _compile(self, ctx: CompileContext) -> Command:
        return compile_root(self.expression, ctx, SMEMBERS)

    def __repr__(self) -> str:
        return f"MembersQuery({self.expression!r})"
