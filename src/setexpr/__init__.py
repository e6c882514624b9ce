"""Compile nested set-algebra expressions into transactional Redis commands."""

from .ast import (
    Diff,
    Inter,
    Key,
    SetExpression,
    SetExpressionFactory,
    SetOperation,
    Union,
)
from .commands import DEL, EXEC, MULTI, SCARD, SMEMBERS, Command, to_bytes
from .compiler import CompileContext, compile_expression, compile_inner, compile_root
from .config import DEFAULT_NAMESPACE, CompilerConfig
from .exceptions import (
    ConfigurationError,
    OperatorNotFoundError,
    ProgramError,
    QueryExecutionError,
    SetExpressionError,
    TemplateError,
    UnreachableNodeError,
    ValidationError,
)
from .executor import RedisSetQueryExecutor
from .operators import SetOperator
from .query import (
    BaseSetQuery,
    CommandTemplate,
    CompiledProgram,
    MembersQuery,
    SetQuery,
    Slot,
)

__all__ = [
    # Expression tree
    "SetExpression",
    "SetOperation",
    "Key",
    "Union",
    "Inter",
    "Diff",
    "SetOperator",
    "SetExpressionFactory",
    # Compiler
    "CompileContext",
    "CompilerConfig",
    "DEFAULT_NAMESPACE",
    "compile_expression",
    "compile_inner",
    "compile_root",
    # Queries
    "BaseSetQuery",
    "SetQuery",
    "MembersQuery",
    "CommandTemplate",
    "Slot",
    "CompiledProgram",
    # Execution
    "RedisSetQueryExecutor",
    # Wire
    "Command",
    "MULTI",
    "EXEC",
    "DEL",
    "SMEMBERS",
    "SCARD",
    "to_bytes",
    # Exceptions
    "SetExpressionError",
    "ValidationError",
    "OperatorNotFoundError",
    "TemplateError",
    "ConfigurationError",
    "UnreachableNodeError",
    "ProgramError",
    "QueryExecutionError",
]
