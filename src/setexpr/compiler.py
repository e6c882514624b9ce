"""
Depth-first flattening of expression trees into store commands.

Every operator node compiled in inner position is assigned a temporary
key and emits one storing command (``SUNIONSTORE`` / ``SINTERSTORE`` /
``SDIFFSTORE``) whose operands are the results of its children. A node
takes its temporary before its children are visited, but its command is
appended only after all of its children's commands, so replaying the
list in order always finds every operand in place.

The root may instead be compiled with :func:`compile_root`, which emits
the non-storing form and allocates nothing for the root itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .ast import Key, SetExpression, SetOperation
from .commands import SMEMBERS, Command
from .config import DEFAULT_NAMESPACE
from .exceptions import UnreachableNodeError

logger = logging.getLogger("setexpr.compiler")


@dataclass
class CompileContext:
    """Accumulators for a single compilation run."""

    namespace: str = DEFAULT_NAMESPACE
    ids: list[str] = field(default_factory=list)
    ops: list[Command] = field(default_factory=list)

    def allocate(self) -> bytes:
        """Reserve the next temporary key."""
        temp = f"{self.namespace}:{len(self.ids)}"
        self.ids.append(temp)
        return temp.encode("utf-8")

    @property
    def temporaries(self) -> list[bytes]:
        """Allocated temporary keys as raw bytes, in allocation order."""
        return [temp.encode("utf-8") for temp in self.ids]


def _operation(node: SetExpression) -> SetOperation:
    if not isinstance(node, SetOperation):
        raise UnreachableNodeError(node)
    return node


def compile_inner(node: SetExpression, ctx: CompileContext) -> bytes:
    """Compile *node* in non-root position and return the key holding its result."""
    if isinstance(node, Key):
        return node.name

    op = _operation(node)
    dest = ctx.allocate()
    command: Command = [op.command(store=True), dest]
    command.extend(compile_inner(child, ctx) for child in op.children)
    ctx.ops.append(command)
    return dest


def compile_root(
    node: SetExpression,
    ctx: CompileContext,
    operation: bytes = SMEMBERS,
) -> Command:
    """
    Compile *node* as the root and return the command whose reply is the answer.

    The returned command is not appended to ``ctx.ops``. A bare key is
    wrapped in *operation*; an operator node uses its non-storing form,
    which replies with the members directly.
    """
    if isinstance(node, Key):
        return [operation, node.name]

    op = _operation(node)
    command: Command = [op.command(store=False)]
    command.extend(compile_inner(child, ctx) for child in op.children)
    return command


def compile_expression(
    node: SetExpression,
    ctx: CompileContext,
    *,
    is_root: bool = False,
    operation: bytes = SMEMBERS,
) -> bytes | Command:
    """
    Compile *node*, delegating on the traversal flag.

    *operation* wraps a bare key compiled as the root; it is ignored for
    inner nodes.
    """
    if is_root:
        return compile_root(node, ctx, operation)
    return compile_inner(node, ctx)
