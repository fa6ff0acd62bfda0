"""SQLite dialect compiler."""
from __future__ import annotations

from chainql.compile.base import SQLCompiler


class SQLiteCompiler(SQLCompiler):
    """Compiles builder state to SQLite-flavoured parameterized SQL.

    Parameter style: ``?`` – Python's built-in ``sqlite3`` qmark style.

    Note: SQLite ships no encryption functions.  ``AES_ENCRYPT`` and
    ``AES_DECRYPT`` must be registered on each DBAPI connection
    (``sqlite3.Connection.create_function``), typically from a SQLAlchemy
    ``"connect"`` event listener.
    """

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    def param_placeholder(self) -> str:
        return "?"

    def encrypt_expression(self, value_sql: str, key_sql: str) -> str:
        return f"AES_ENCRYPT({value_sql}, {key_sql})"

    def decrypt_expression(self, column: str, key_sql: str) -> str:
        return f"AES_DECRYPT({column}, {key_sql})"
