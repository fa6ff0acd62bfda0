"""Dialect compiler lookup.

``CompilerFactory`` maps SQLAlchemy dialect names (``engine.dialect.name``)
to :class:`~chainql.compile.base.SQLCompiler` classes.  One class may serve
several dialects, e.g. MySQL and MariaDB::

    from chainql.compile.registry import CompilerFactory

    @CompilerFactory.register("mssql")
    class MSSQLCompiler(SQLCompiler):
        ...

Every engine created by the connection registry is matched against this
table, so a new dialect only needs a registration.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from sqlalchemy.engine import Engine

from chainql.compile.base import SQLCompiler
from chainql.errors import ConfigurationError


class CompilerFactory:
    """Class-level table of dialect name -> :class:`SQLCompiler` class."""

    _compilers: ClassVar[dict[str, type[SQLCompiler]]] = {}

    @classmethod
    def register(cls, *dialects: str) -> Callable[[type[SQLCompiler]], type[SQLCompiler]]:
        """Decorator registering a compiler class for one or more dialects.

        Args:
            *dialects: SQLAlchemy dialect names (e.g. ``"mysql"``, ``"mariadb"``).

        Returns:
            A decorator that registers and returns the compiler class.
        """

        def decorator(compiler_cls: type[SQLCompiler]) -> type[SQLCompiler]:
            cls.register_class(compiler_cls, *dialects)
            return compiler_cls

        return decorator

    @classmethod
    def register_class(cls, compiler_cls: type[SQLCompiler], *dialects: str) -> None:
        """Non-decorator form of :meth:`register`."""
        for dialect in dialects:
            cls._compilers[dialect] = compiler_cls

    @classmethod
    def unregister(cls, dialect: str) -> None:
        """Forget ``dialect``; unknown names are ignored."""
        cls._compilers.pop(dialect, None)

    @classmethod
    def create(cls, dialect: str) -> SQLCompiler:
        """Return a fresh compiler for ``dialect``.

        Raises:
            ConfigurationError: If no compiler is registered for ``dialect``.
        """
        compiler_cls = cls._compilers.get(dialect)
        if compiler_cls is None:
            raise ConfigurationError(
                f"Unsupported dialect: '{dialect}'. Registered dialects: {cls.dialects()}."
            )
        return compiler_cls()

    @classmethod
    def for_engine(cls, engine: Engine) -> SQLCompiler:
        """Return a fresh compiler matching ``engine``'s dialect."""
        return cls.create(engine.dialect.name)

    @classmethod
    def dialects(cls) -> list[str]:
        """Sorted registered dialect names."""
        return sorted(cls._compilers)
