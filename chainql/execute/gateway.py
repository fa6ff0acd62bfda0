"""Execution gateway: binds compiled SQL to a resolved engine and runs it.

Every statement goes through :meth:`ExecutionGateway._run`, which

1. resolves the engine through the connection registry,
2. reports the statement to the :class:`~chainql.execute.query_log.QueryLog`,
3. executes it with the DBAPI paramstyle of the dialect
   (``Connection.exec_driver_sql``), and
4. wraps any SQLAlchemy / driver failure in
   :class:`~chainql.errors.ExecutionError`, keeping the original as
   ``__cause__``.

Writes are committed, except in test mode where they are rolled back.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.exc import SQLAlchemyError

from chainql.compile.base import CompiledQuery
from chainql.connection.registry import ConnectionRegistry
from chainql.errors import ExecutionError, NoRowsError
from chainql.execute.query_log import QueryLog

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ExecResult:
    """Outcome of a write statement.

    Attributes:
        last_insert_id: Driver-reported generated id, when available.
        rows_affected: Number of rows the statement touched.
    """

    last_insert_id: int | None
    rows_affected: int


class ExecutionGateway:
    """Runs compiled statements against registry connections.

    Args:
        registry: Source of engines.
        query_log: Observability hook called before every execution.
        test_mode: Roll back writes instead of committing them.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        query_log: QueryLog | None = None,
        test_mode: bool = False,
    ) -> None:
        self.registry = registry
        self.query_log = query_log or QueryLog()
        self.test_mode = test_mode

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_all(self, connection: str | None, compiled: CompiledQuery) -> list[dict[str, Any]]:
        """Execute ``compiled`` and return every row as a dict."""
        return self._run(
            connection,
            compiled,
            lambda result, _conn: [dict(row) for row in result.mappings()],
        )

    def fetch_one(self, connection: str | None, compiled: CompiledQuery) -> dict[str, Any]:
        """Execute ``compiled`` and return its first row.

        Raises:
            NoRowsError: If the statement returned no rows.
        """
        row = self._run(connection, compiled, lambda result, _conn: result.mappings().first())
        if row is None:
            raise NoRowsError(
                "Query returned no rows.", sql=compiled.sql, bindings=compiled.bindings
            )
        return dict(row)

    def fetch_scalar(self, connection: str | None, compiled: CompiledQuery) -> Any:
        """Execute ``compiled`` and return the first column of the first row.

        Returns ``None`` when the statement returned no rows.
        """
        return self._run(connection, compiled, lambda result, _conn: result.scalar())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def execute(self, connection: str | None, compiled: CompiledQuery) -> ExecResult:
        """Execute a write statement and commit (or roll back in test mode).

        A statement with a ``RETURNING`` clause reports the first column of
        its first returned row as ``last_insert_id``.
        """

        def finish(result: CursorResult, conn: Connection) -> ExecResult:
            if result.returns_rows:
                returned = result.fetchall()
                outcome = ExecResult(
                    last_insert_id=returned[0][0] if returned else None,
                    rows_affected=len(returned),
                )
            else:
                outcome = ExecResult(
                    last_insert_id=_last_insert_id(result),
                    rows_affected=result.rowcount,
                )
            if self.test_mode:
                logger.debug("Test mode: rolling back %s", compiled.sql)
                conn.rollback()
            else:
                conn.commit()
            return outcome

        return self._run(connection, compiled, finish)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(
        self,
        connection: str | None,
        compiled: CompiledQuery,
        handle: Callable[[CursorResult, Connection], T],
    ) -> T:
        engine = self.registry.resolve(connection)
        self.query_log.write(compiled.sql, compiled.bindings)
        try:
            with engine.connect() as conn:
                result = conn.exec_driver_sql(compiled.sql, compiled.driver_bindings())
                return handle(result, conn)
        except SQLAlchemyError as exc:
            raise ExecutionError(
                f"Statement failed: {exc}", sql=compiled.sql, bindings=compiled.bindings
            ) from exc


def _last_insert_id(result: CursorResult) -> int | None:
    # psycopg 3 cursors have no lastrowid attribute.
    try:
        return result.lastrowid
    except AttributeError:
        return None
