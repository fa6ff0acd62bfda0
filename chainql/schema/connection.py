"""Pydantic model describing one named database connection.

A list of :class:`ConnectionDescriptor` objects is the only construction input
of :class:`~chainql.orm.ORM`; the first descriptor becomes the default
connection.

Example::

    from chainql import ConnectionDescriptor, ORM

    orm = ORM(
        ConnectionDescriptor(
            name="main",
            driver="mysql+pymysql",
            username="app",
            password="secret",
            address="db.internal:3306",
            database="shop",
            encryption_key="k3y",
        ),
        ConnectionDescriptor(name="reports", url="sqlite:///reports.db"),
    )
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from sqlalchemy.engine import URL, make_url


class ConnectionDescriptor(BaseModel):
    """Immutable description of a named connection.

    Attributes:
        name: Logical connection name used by ``QueryBuilder.connection()``.
        driver: SQLAlchemy driver name (e.g. ``'mysql+pymysql'``,
            ``'postgresql+psycopg'``, ``'sqlite'``).
        username: Database user.
        password: Database password.
        protocol: Transport, kept for descriptors written against a
            ``user:pass@tcp(host)/db`` style DSN.  Only ``'unix'`` changes
            the generated URL (the address becomes the socket path).
        address: ``host`` or ``host:port``.
        database: Database / schema name.
        encryption_key: Symmetric key used by the encrypt/decrypt
            expressions for this connection.
        url: Full SQLAlchemy URL.  When set, the individual fields above are
            ignored (except ``name`` and ``encryption_key``).
        options: Extra keyword arguments for ``sqlalchemy.create_engine``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    driver: str = "sqlite"
    username: str | None = None
    password: SecretStr | None = None
    protocol: str = "tcp"
    address: str | None = None
    database: str | None = None
    encryption_key: SecretStr = SecretStr("")
    url: str | None = None
    options: dict[str, Any] = Field(default_factory=dict)

    def sqlalchemy_url(self) -> URL:
        """Build the SQLAlchemy URL for this descriptor."""
        if self.url:
            return make_url(self.url)

        host: str | None = None
        port: int | None = None
        query: dict[str, str] = {}
        if self.address:
            if self.protocol == "unix":
                query["unix_socket"] = self.address
            elif ":" in self.address:
                host, _, raw_port = self.address.rpartition(":")
                port = int(raw_port)
            else:
                host = self.address

        return URL.create(
            drivername=self.driver,
            username=self.username,
            password=self.password.get_secret_value() if self.password else None,
            host=host,
            port=port,
            database=self.database,
            query=query,
        )
