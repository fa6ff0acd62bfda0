"""Compilation context value object.

Packages the ``(compiler, encryption key, key binding mode)`` data clump
that every clause-level builder needs into a single cohesive object.
"""
from __future__ import annotations

from dataclasses import dataclass

from pydantic import SecretStr

from chainql.compile.base import SQLCompiler


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context for a single compilation run.

    Attributes:
        compiler: Dialect-specific SQL compiler instance.
        encryption_key: Key of the resolved connection.
        bind_encryption_key: When ``True`` the key is sent as a bound
            parameter instead of being inlined as a string literal.
    """

    compiler: SQLCompiler
    encryption_key: SecretStr = SecretStr("")
    bind_encryption_key: bool = False
