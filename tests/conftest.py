"""Shared fixtures for setexpr tests."""

from __future__ import annotations

import pytest

from setexpr import CompileContext, CompilerConfig, Diff, Inter, Key


@pytest.fixture
def ctx() -> CompileContext:
    """Empty compile context using the ``ns`` namespace."""
    return CompileContext(namespace="ns")


@pytest.fixture
def config() -> CompilerConfig:
    return CompilerConfig(namespace="ns")


@pytest.fixture
def nested() -> Diff:
    """``(foo ∩ bar) - baz``"""
    return Diff(Inter(Key(b"foo"), Key(b"bar")), Key(b"baz"))
