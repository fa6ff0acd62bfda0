"""Custom exception hierarchy for chainql.

All public errors inherit from ChainQLError so callers can catch the base
class for any chainql-specific failure.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class ChainQLError(Exception):
    """Base exception for all chainql errors."""


class UnknownConnectionError(ChainQLError):
    """Raised when a connection name is not present in the registry.

    Args:
        name: The connection name that failed to resolve.
        known: The connection names the registry does know about.
    """

    def __init__(self, name: str, known: Sequence[str] = ()) -> None:
        super().__init__(
            f"Unknown connection '{name}'. Registered connections: {sorted(known)}."
        )
        self.name = name
        self.known: list[str] = list(known)


class ConfigurationError(ChainQLError):
    """Raised when the ORM cannot be constructed from its descriptors.

    Detected while the connection registry is being built, before any query
    is executed. Not retried.

    Args:
        message: Human-readable description.
        connection: Name of the offending connection descriptor, if any.
    """

    def __init__(self, message: str, connection: str | None = None) -> None:
        super().__init__(message)
        self.connection = connection


class ExecutionError(ChainQLError):
    """Raised when the database driver rejects or fails a statement.

    The original driver exception is chained as ``__cause__``.

    Args:
        message: Human-readable description.
        sql: The compiled SQL text that was executed.
        bindings: The bindings sent along with ``sql``.
    """

    def __init__(
        self,
        message: str,
        sql: str | None = None,
        bindings: Sequence[Any] = (),
    ) -> None:
        super().__init__(message)
        self.sql = sql
        self.bindings: tuple[Any, ...] = tuple(bindings)


class NoRowsError(ExecutionError):
    """Raised when a single-row fetch (``first``) finds nothing."""
