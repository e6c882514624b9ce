"""
Wire-level command constants and buffer helpers.

A command is an ordered list of raw byte strings: the command name
followed by its arguments, ready to be transmitted verbatim.
"""

from __future__ import annotations

from typing import TypeAlias

Command: TypeAlias = list[bytes]

MULTI = b"MULTI"
EXEC = b"EXEC"
DEL = b"DEL"
SMEMBERS = b"SMEMBERS"
SCARD = b"SCARD"


def to_bytes(value: bytes | bytearray | memoryview | str) -> bytes:
    """Coerce a key or command name into raw bytes (``str`` is UTF-8 encoded)."""
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, bytearray | memoryview):
        return bytes(value)
    raise TypeError(f"Expected bytes or str, got {type(value).__name__}")


def format_command(command: Command) -> str:
    """Render a command for log messages, e.g. ``SINTERSTORE setexpr:0 foo bar``."""
    return " ".join(part.decode("utf-8", errors="backslashreplace") for part in command)
