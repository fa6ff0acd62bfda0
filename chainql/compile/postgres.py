"""PostgreSQL dialect compiler."""

from __future__ import annotations

from chainql.compile.base import SQLCompiler


class PostgresCompiler(SQLCompiler):
    """Compiles builder state to PostgreSQL-flavoured parameterized SQL.

    Parameter style: ``%s`` – compatible with ``psycopg2`` and ``psycopg``
    positional execution.

    Encryption relies on the ``pgcrypto`` extension
    (``CREATE EXTENSION pgcrypto``).  Ciphertext is stored as ``bytea``;
    the decrypt expression casts the column so text-typed storage works too.
    """

    @property
    def dialect_name(self) -> str:
        return "postgres"

    def param_placeholder(self) -> str:
        return "%s"

    def encrypt_expression(self, value_sql: str, key_sql: str) -> str:
        return f"pgp_sym_encrypt(CAST({value_sql} AS TEXT), {key_sql})"

    def decrypt_expression(self, column: str, key_sql: str) -> str:
        return f"pgp_sym_decrypt(CAST({column} AS BYTEA), {key_sql})"

    def key_literal(self, key: str) -> str:
        # psycopg formats the statement with %, so a literal % is doubled.
        return super().key_literal(key).replace("%", "%%")
