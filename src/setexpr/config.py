from __future__ import annotations

from dataclasses import dataclass

from .exceptions import ConfigurationError

DEFAULT_NAMESPACE = "setexpr"


@dataclass(frozen=True)
class CompilerConfig:
    """Compiler configuration.

    Attributes:
        namespace: Prefix of temporary keys (``<namespace>:<index>``).
            Reserved for the compiler; caller set names must not use it.
    """

    namespace: str = DEFAULT_NAMESPACE

    def __post_init__(self) -> None:
        if not self.namespace:
            raise ConfigurationError("namespace must not be empty")
        if any(ch.isspace() for ch in self.namespace):
            raise ConfigurationError(
                f"namespace must not contain whitespace: {self.namespace!r}"
            )
