"""MySQL dialect compiler."""

from __future__ import annotations

from chainql.compile.base import SQLCompiler


class MySQLCompiler(SQLCompiler):
    """Compiles builder state to MySQL-flavoured parameterized SQL.

    Parameter style: ``%s`` – compatible with ``PyMySQL`` and
    ``mysql-connector-python`` positional execution.

    Encryption uses the built-in ``AES_ENCRYPT`` / ``AES_DECRYPT`` functions.
    """

    @property
    def dialect_name(self) -> str:
        return "mysql"

    def param_placeholder(self) -> str:
        return "%s"

    def encrypt_expression(self, value_sql: str, key_sql: str) -> str:
        return f"AES_ENCRYPT({value_sql}, {key_sql})"

    def decrypt_expression(self, column: str, key_sql: str) -> str:
        return f"AES_DECRYPT({column}, {key_sql})"

    def key_literal(self, key: str) -> str:
        # MySQL also treats backslash as an escape inside string literals;
        # the driver formats the statement with %, so a literal % is doubled.
        escaped = key.replace("\\", "\\\\").replace("'", "''").replace("%", "%%")
        return f"'{escaped}'"
