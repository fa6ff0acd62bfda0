"""Named database connections and their encryption keys.

``ConnectionRegistry`` owns one SQLAlchemy :class:`~sqlalchemy.engine.Engine`
per :class:`~chainql.schema.connection.ConnectionDescriptor`.  The first
descriptor ever registered is the default connection.  Engines are created
eagerly; a descriptor that cannot produce an engine aborts construction with
:class:`~chainql.errors.ConfigurationError`.

Lookups of unknown names always raise
:class:`~chainql.errors.UnknownConnectionError`; an empty name resolves to
the default, but an unknown name never does.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import SecretStr
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from chainql.compile.base import SQLCompiler
from chainql.compile.registry import CompilerFactory
from chainql.errors import ConfigurationError, UnknownConnectionError
from chainql.schema.connection import ConnectionDescriptor

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Maps connection names to engines, keys and dialect compilers.

    Args:
        descriptors: Connections to register, in order.  The first becomes
            the default.
    """

    def __init__(self, descriptors: Iterable[ConnectionDescriptor] = ()) -> None:
        self._engines: dict[str, Engine] = {}
        self._keys: dict[str, SecretStr] = {}
        self._compilers: dict[str, SQLCompiler] = {}
        self._names: list[str] = []
        self._default: str | None = None
        try:
            for descriptor in descriptors:
                self.register(descriptor)
        except ConfigurationError:
            self.dispose()
            raise

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, descriptor: ConnectionDescriptor) -> Engine:
        """Create the engine for ``descriptor`` and register it.

        Args:
            descriptor: The connection to open.

        Returns:
            The newly created engine.

        Raises:
            ConfigurationError: If the name is already registered, the URL
                or driver is invalid, or no compiler exists for the dialect.
        """
        name = descriptor.name
        if name in self._engines:
            raise ConfigurationError(f"Connection '{name}' is already registered.", connection=name)

        try:
            engine = create_engine(descriptor.sqlalchemy_url(), **descriptor.options)
        except (SQLAlchemyError, ImportError, TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"Cannot open connection '{name}': {exc}", connection=name
            ) from exc

        try:
            compiler = CompilerFactory.for_engine(engine)
        except ConfigurationError as exc:
            engine.dispose()
            raise ConfigurationError(str(exc), connection=name) from exc

        if self._default is None:
            self._default = name
        self._names.append(name)
        self._engines[name] = engine
        self._keys[name] = descriptor.encryption_key
        self._compilers[name] = compiler

        logger.info("Registered connection '%s' (dialect=%s)", name, engine.dialect.name)
        return engine

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, name: str | None = None) -> Engine:
        """Return the engine for ``name``, or the default for an empty name.

        Raises:
            UnknownConnectionError: If ``name`` is non-empty and unknown.
        """
        return self._engines[self.resolve_name(name)]

    def encryption_key(self, name: str | None = None) -> SecretStr:
        """Return the encryption key for ``name``; mirrors :meth:`resolve`."""
        return self._keys[self.resolve_name(name)]

    def compiler(self, name: str | None = None) -> SQLCompiler:
        """Return the dialect compiler for ``name``; mirrors :meth:`resolve`."""
        return self._compilers[self.resolve_name(name)]

    def resolve_name(self, name: str | None = None) -> str:
        """Return the concrete connection name ``name`` refers to.

        Raises:
            UnknownConnectionError: If ``name`` is non-empty and unknown, or
                if ``name`` is empty and nothing is registered.
        """
        if not name:
            if self._default is None:
                raise UnknownConnectionError("", self._names)
            return self._default
        if name not in self._engines:
            raise UnknownConnectionError(name, self._names)
        return name

    # ------------------------------------------------------------------
    # Introspection / teardown
    # ------------------------------------------------------------------

    def __contains__(self, name: object) -> bool:
        return name in self._engines

    def __len__(self) -> int:
        return len(self._names)

    @property
    def names(self) -> list[str]:
        """Registered connection names, in registration order."""
        return list(self._names)

    @property
    def default_name(self) -> str | None:
        """Name of the default connection (the first registered)."""
        return self._default

    def dispose(self) -> None:
        """Dispose every engine's connection pool."""
        for name, engine in self._engines.items():
            logger.debug("Disposing connection '%s'", name)
            engine.dispose()
