"""chainql compilation layer: QueryState → parameterized SQL."""
from chainql.compile.base import CompiledQuery, SQLCompiler
from chainql.compile.builder import QueryCompiler
from chainql.compile.context import CompilationContext
from chainql.compile.mysql import MySQLCompiler
from chainql.compile.postgres import PostgresCompiler
from chainql.compile.sqlite import SQLiteCompiler

__all__ = [
    "CompiledQuery",
    "SQLCompiler",
    "QueryCompiler",
    "CompilationContext",
    "MySQLCompiler",
    "PostgresCompiler",
    "SQLiteCompiler",
]
