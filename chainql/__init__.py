"""chainql – fluent, parameterized SQL over named connections.

Chain Clauses. Don't Concatenate Them.

Public API
----------
``ORM``
    Owns the named connections and hands out builders via ``table()``.

``QueryBuilder``
    Fluent clause accumulator with ``get``, ``first``, ``insert``,
    ``update``, ``delete`` and ``paginate`` terminals.

Re-exported types
-----------------
``ConnectionDescriptor``, ``Paginated``, ``CompiledQuery``, ``QueryState``
and all error classes.

Extensibility
-------------
New dialect compilers can be registered via::

    from chainql.compile.registry import CompilerFactory

    @CompilerFactory.register("mssql")
    class MSSQLCompiler(SQLCompiler):
        ...

After registration, any connection whose SQLAlchemy dialect name is
``"mssql"`` compiles with it.
"""

from __future__ import annotations

from chainql.compile.base import CompiledQuery, SQLCompiler
from chainql.compile.builder import QueryCompiler
from chainql.compile.mysql import MySQLCompiler
from chainql.compile.postgres import PostgresCompiler
from chainql.compile.registry import CompilerFactory
from chainql.compile.sqlite import SQLiteCompiler
from chainql.connection.registry import ConnectionRegistry
from chainql.errors import (
    ChainQLError,
    ConfigurationError,
    ExecutionError,
    NoRowsError,
    UnknownConnectionError,
)
from chainql.orm import ORM
from chainql.query import QueryBuilder
from chainql.schema.connection import ConnectionDescriptor
from chainql.schema.paginated import Paginated
from chainql.schema.state import QueryState

# ---------------------------------------------------------------------------
# Register built-in compilers with CompilerFactory, keyed by SQLAlchemy
# dialect name.
# ---------------------------------------------------------------------------

CompilerFactory.register_class(SQLiteCompiler, "sqlite")
CompilerFactory.register_class(MySQLCompiler, "mysql", "mariadb")
CompilerFactory.register_class(PostgresCompiler, "postgresql")

__all__ = [
    # Core
    "ORM",
    "QueryBuilder",
    "ConnectionRegistry",
    "ConnectionDescriptor",
    # Results
    "Paginated",
    "QueryState",
    # Compilation
    "CompiledQuery",
    "CompilerFactory",
    "QueryCompiler",
    "SQLCompiler",
    "MySQLCompiler",
    "PostgresCompiler",
    "SQLiteCompiler",
    # Errors
    "ChainQLError",
    "ConfigurationError",
    "ExecutionError",
    "NoRowsError",
    "UnknownConnectionError",
]
