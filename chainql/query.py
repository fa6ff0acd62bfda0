"""Fluent query builder bound to one table and one ORM instance.

Clause-setting methods append to the builder's
:class:`~chainql.schema.state.QueryState` and return the same builder, so
calls chain::

    users = (
        orm.table("users")
        .select("users.id", "users.email", "projects.name")
        .encrypted_columns("users.email")
        .left_join("projects", "users.id", "=", "projects.user_id")
        .where("users.active", "=", 1)
        .where_in("users.role", "admin", "owner")
        .order_by("users.id DESC")
        .get()
    )

Terminal methods (``get``, ``first``, ``insert``, ``update``, ``delete``,
``paginate``) compile the state with
:class:`~chainql.compile.builder.QueryCompiler` and run it through the ORM's
:class:`~chainql.execute.gateway.ExecutionGateway`.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel

from chainql.compile.base import CompiledQuery
from chainql.compile.builder import QueryCompiler
from chainql.compile.context import CompilationContext
from chainql.schema.paginated import Paginated, total_pages
from chainql.schema.state import (
    InPredicate,
    JoinKind,
    JoinSpec,
    Predicate,
    QueryState,
    RawPredicate,
)

if TYPE_CHECKING:
    from chainql.orm import ORM

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class QueryBuilder:
    """Accumulates one statement's clauses and executes it.

    A builder is meant for a single statement: create it with
    ``orm.table(name)``, chain clauses, then call one terminal method.

    Args:
        orm: The ORM providing connections, keys and the execution gateway.
        table: Target table name, interpolated verbatim.
    """

    def __init__(self, orm: ORM, table: str) -> None:
        self._orm = orm
        self._state = QueryState(table=table)

    @property
    def state(self) -> QueryState:
        """A deep copy of the accumulated state."""
        return self._state.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Columns / connection
    # ------------------------------------------------------------------

    def select(self, *columns: str) -> QueryBuilder:
        """Add columns to the select list."""
        self._state.select_columns.extend(columns)
        return self

    def encrypted_columns(self, *columns: str) -> QueryBuilder:
        """Declare columns that are stored encrypted.

        Selected encrypted columns are decrypted; inserted or updated values
        for them are encrypted.
        """
        self._state.encrypted_columns.extend(columns)
        return self

    def connection(self, name: str) -> QueryBuilder:
        """Run this statement on connection ``name`` instead of the default.

        Raises:
            UnknownConnectionError: If ``name`` is not registered.
        """
        self._orm.registry.resolve_name(name)
        self._state.connection = name or None
        return self

    # ------------------------------------------------------------------
    # Joins
    # ------------------------------------------------------------------

    def left_join(
        self, table: str, left_column: str, operator: str, right_column: str
    ) -> QueryBuilder:
        return self._join(JoinKind.LEFT, table, left_column, operator, right_column)

    def right_join(
        self, table: str, left_column: str, operator: str, right_column: str
    ) -> QueryBuilder:
        return self._join(JoinKind.RIGHT, table, left_column, operator, right_column)

    def inner_join(
        self, table: str, left_column: str, operator: str, right_column: str
    ) -> QueryBuilder:
        return self._join(JoinKind.INNER, table, left_column, operator, right_column)

    def full_join(
        self, table: str, left_column: str, operator: str, right_column: str
    ) -> QueryBuilder:
        return self._join(JoinKind.FULL, table, left_column, operator, right_column)

    def _join(
        self,
        kind: JoinKind,
        table: str,
        left_column: str,
        operator: str,
        right_column: str,
    ) -> QueryBuilder:
        self._state.add_join(
            kind,
            JoinSpec(
                table=table,
                left_column=left_column,
                operator=operator,
                right_column=right_column,
            ),
        )
        return self

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def where(self, column: str, operator: str, value: Any) -> QueryBuilder:
        """Add ``column operator ?`` (e.g. ``=``, ``LIKE``, ``!=``, ``>``)."""
        self._state.wheres.append(Predicate(column=column, operator=operator, value=value))
        return self

    def where_encrypted(self, column: str, operator: str, value: Any) -> QueryBuilder:
        """Add a predicate comparing the *decrypted* column to ``value``."""
        self._state.encrypted_wheres.append(
            Predicate(column=column, operator=operator, value=value)
        )
        return self

    def where_in(self, column: str, *values: Any) -> QueryBuilder:
        """Add ``column IN (?, …)``.  With no values the predicate is inert."""
        self._state.where_ins.append(InPredicate(column=column, values=values))
        return self

    def where_raw(self, sql: str, *bindings: Any) -> QueryBuilder:
        """Add a verbatim fragment; ``bindings`` fill its placeholders."""
        self._state.raw_wheres.append(RawPredicate(sql=sql, bindings=bindings))
        return self

    # ------------------------------------------------------------------
    # Grouping / ordering
    # ------------------------------------------------------------------

    def group_by(self, *columns: str) -> QueryBuilder:
        self._state.group_by.extend(columns)
        return self

    def order_by(self, *columns: str) -> QueryBuilder:
        """Add ORDER BY columns; a direction may be included (``'id DESC'``)."""
        self._state.order_by.extend(columns)
        return self

    # ------------------------------------------------------------------
    # Terminal operations
    # ------------------------------------------------------------------

    def to_sql(self) -> CompiledQuery:
        """Compile the SELECT statement without executing it."""
        return self._compiler().build_select(self._state)

    def get(self, model: type[ModelT] | None = None) -> list[Any]:
        """Execute the SELECT and return every row.

        Args:
            model: Optional pydantic model; each row is validated into it.

        Returns:
            Rows as dicts, or as ``model`` instances.

        Raises:
            ExecutionError: If the database rejects the statement.
        """
        compiled = self._compiler().build_select(self._state)
        rows = self._orm.gateway.fetch_all(self._state.connection, compiled)
        return _decode_rows(rows, model)

    def first(self, model: type[ModelT] | None = None) -> Any:
        """Execute the SELECT with ``LIMIT 1`` and return the row.

        Raises:
            NoRowsError: If nothing matched.
            ExecutionError: If the database rejects the statement.
        """
        compiled = self._compiler().build_first(self._state)
        row = self._orm.gateway.fetch_one(self._state.connection, compiled)
        return model.model_validate(row) if model is not None else row

    def insert(self, payload: Mapping[str, Any], returning: str | None = None) -> int | None:
        """Insert one row and return the generated id.

        Columns are written in the mapping's iteration order.  Values for
        columns declared with :meth:`encrypted_columns` are encrypted.

        Args:
            payload: Column -> value mapping.
            returning: Column to read back through ``RETURNING``, usually
                the primary key.  Without it the id is the driver's
                ``lastrowid``, which psycopg (PostgreSQL) does not provide:
                there ``insert`` returns ``None`` unless ``returning`` is set.
                MySQL has no ``RETURNING``; leave it unset there.
        """
        compiled = self._compiler().build_insert(self._state, payload, returning)
        return self._orm.gateway.execute(self._state.connection, compiled).last_insert_id

    def update(self, payload: Mapping[str, Any]) -> int:
        """Update matching rows and return how many were affected."""
        compiled = self._compiler().build_update(self._state, payload)
        return self._orm.gateway.execute(self._state.connection, compiled).rows_affected

    def delete(self) -> int:
        """Delete matching rows and return how many were affected."""
        compiled = self._compiler().build_delete(self._state)
        return self._orm.gateway.execute(self._state.connection, compiled).rows_affected

    def paginate(
        self,
        page: int,
        per_page: int,
        model: type[ModelT] | None = None,
    ) -> Paginated[Any]:
        """Return one page of results plus totals.

        The count query and the data query are both compiled from snapshots
        of the current state before either runs, then executed concurrently.
        The builder itself is left untouched.

        Args:
            page: 1-based page number.
            per_page: Page size.
            model: Optional pydantic model for the rows.

        Raises:
            ValueError: If ``page`` or ``per_page`` is less than 1.
            ExecutionError: If either query fails.  When both fail, the
                count error is raised with the data error attached as a note.
        """
        if page < 1 or per_page < 1:
            raise ValueError(
                f"page and per_page must be >= 1, got page={page}, per_page={per_page}"
            )

        offset = (page - 1) * per_page
        compiler = self._compiler()
        data_query = compiler.build_page(self._state, per_page, offset)
        count_query = compiler.build_count(self._state)

        gateway = self._orm.gateway
        connection = self._state.connection
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="chainql-paginate") as pool:
            count_future = pool.submit(gateway.fetch_scalar, connection, count_query)
            data_future = pool.submit(gateway.fetch_all, connection, data_query)

        errors = [
            exc for exc in (count_future.exception(), data_future.exception()) if exc is not None
        ]
        if errors:
            first, *others = errors
            for other in others:
                first.add_note(f"The concurrent pagination query also failed: {other}")
            raise first

        total = int(count_future.result() or 0)
        return Paginated(
            total=total,
            total_pages=total_pages(total, per_page),
            page=page,
            per_page=per_page,
            data=_decode_rows(data_future.result(), model),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _compiler(self) -> QueryCompiler:
        registry = self._orm.registry
        name = self._state.connection
        ctx = CompilationContext(
            compiler=registry.compiler(name),
            encryption_key=registry.encryption_key(name),
            bind_encryption_key=self._orm.bind_encryption_keys,
        )
        return QueryCompiler(ctx)


def _decode_rows(rows: list[dict[str, Any]], model: type[ModelT] | None) -> list[Any]:
    if model is None:
        return rows
    return [model.model_validate(row) for row in rows]
