"""The ORM facade: owns the connection registry and hands out builders.

Example::

    orm = ORM(
        ConnectionDescriptor(name="main", url="sqlite:///app.db", encryption_key="k3y"),
    )
    orm.enable_query_logger(sys.stderr)

    user_id = orm.table("users").encrypted_columns("ssn").insert(
        {"name": "Ada", "ssn": "123-45-6789"}
    )
    user = (
        orm.table("users")
        .select("id", "name", "ssn")
        .encrypted_columns("ssn")
        .where("id", "=", user_id)
        .first()
    )
"""
from __future__ import annotations

import logging
from types import TracebackType
from typing import TextIO

from sqlalchemy.engine import Engine

from chainql.connection.registry import ConnectionRegistry
from chainql.errors import ConfigurationError, UnknownConnectionError
from chainql.execute.gateway import ExecutionGateway
from chainql.execute.query_log import QueryLog
from chainql.query import QueryBuilder
from chainql.schema.connection import ConnectionDescriptor

logger = logging.getLogger(__name__)


class ORM:
    """Entry point: one instance per process, passed explicitly to callers.

    Args:
        *descriptors: Connections to open.  The first is the default.
        bind_encryption_keys: Send encryption keys as bound parameters
            instead of inlining them as SQL string literals.

    Raises:
        ConfigurationError: If no descriptor is given or one cannot be
            opened.
    """

    def __init__(
        self,
        *descriptors: ConnectionDescriptor,
        bind_encryption_keys: bool = False,
    ) -> None:
        if not descriptors:
            raise ConfigurationError("At least one connection descriptor is required.")
        self.registry = ConnectionRegistry(descriptors)
        self.gateway = ExecutionGateway(self.registry, QueryLog())
        self.bind_encryption_keys = bind_encryption_keys

    def table(self, name: str) -> QueryBuilder:
        """Start a new statement against table ``name``."""
        return QueryBuilder(self, name)

    # ------------------------------------------------------------------
    # Test mode
    # ------------------------------------------------------------------

    @property
    def test_mode(self) -> bool:
        """``True`` while writes are rolled back instead of committed."""
        return self.gateway.test_mode

    def enable_test_mode(self) -> None:
        logger.info("Test mode enabled: writes will be rolled back")
        self.gateway.test_mode = True

    def disable_test_mode(self) -> None:
        self.gateway.test_mode = False

    # ------------------------------------------------------------------
    # Query logger
    # ------------------------------------------------------------------

    def enable_query_logger(self, stream: TextIO) -> None:
        """Write every executed statement and its bindings to ``stream``."""
        self.gateway.query_log.enable(stream)

    def disable_query_logger(self) -> None:
        self.gateway.query_log.disable()

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def get_connection(self, name: str) -> Engine:
        """Return the engine registered under ``name``.

        Unlike builder resolution, an empty name is not a shortcut for the
        default connection.

        Raises:
            UnknownConnectionError: If ``name`` is not registered.
        """
        if name not in self.registry:
            raise UnknownConnectionError(name, self.registry.names)
        return self.registry.resolve(name)

    def close(self) -> None:
        """Dispose every connection pool."""
        self.registry.dispose()

    def __enter__(self) -> ORM:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
