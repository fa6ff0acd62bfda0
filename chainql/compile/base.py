"""Compiler abstractions: CompiledQuery and the SQLCompiler ABC.

The Template Method pattern (GoF) is used:
- ``SQLCompiler`` defines the dialect-specific steps the clause builders need
  (placeholder style, encryption functions, key literal quoting).
- ``SQLiteCompiler``, ``MySQLCompiler`` and ``PostgresCompiler`` override
  them.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from pydantic import SecretStr


@dataclass(frozen=True)
class CompiledQuery:
    """The output of a successful compilation.

    Attributes:
        sql: The compiled SQL string with positional placeholders.
        bindings: Values for the placeholders, in textual order.  Encryption
            keys bound as parameters appear as :class:`~pydantic.SecretStr`
            so they are masked wherever the query is printed.
        dialect: The target dialect name.
    """

    sql: str
    bindings: tuple[Any, ...] = ()
    dialect: str = "sqlite"

    def driver_bindings(self) -> tuple[Any, ...]:
        """Return the bindings with secrets unwrapped, ready for the driver."""
        return tuple(
            b.get_secret_value() if isinstance(b, SecretStr) else b for b in self.bindings
        )

    def with_suffix(self, suffix: str) -> CompiledQuery:
        """Return a copy with ``suffix`` appended to the SQL text."""
        return CompiledQuery(
            sql=f"{self.sql} {suffix}", bindings=self.bindings, dialect=self.dialect
        )


class SQLCompiler(ABC):
    """Abstract base for dialect-specific SQL compilers.

    Subclasses implement the dialect-specific methods; the ``QueryCompiler``
    uses this interface via the Strategy / Template Method patterns.
    """

    @abstractmethod
    def param_placeholder(self) -> str:
        """Return the positional placeholder for this dialect's DBAPI driver."""

    @abstractmethod
    def encrypt_expression(self, value_sql: str, key_sql: str) -> str:
        """Wrap a value placeholder in the dialect's symmetric-encrypt call.

        Args:
            value_sql: The placeholder (or expression) being stored.
            key_sql: The key, either a quoted literal or a placeholder.

        Returns:
            SQL expression producing the ciphertext.
        """

    @abstractmethod
    def decrypt_expression(self, column: str, key_sql: str) -> str:
        """Wrap a column reference in the dialect's symmetric-decrypt call.

        Args:
            column: Column reference, interpolated verbatim.
            key_sql: The key, either a quoted literal or a placeholder.

        Returns:
            SQL expression producing the plaintext.
        """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name (e.g. ``'mysql'``)."""

    def key_literal(self, key: str) -> str:
        """Return ``key`` as a single-quoted SQL string literal."""
        escaped = key.replace("'", "''")
        return f"'{escaped}'"
