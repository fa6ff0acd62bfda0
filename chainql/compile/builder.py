"""Core builder state → SQL compilation logic.

``QueryCompiler`` is the top-level orchestrator.  It wires together the
clause-level sub-builders, then assembles the statement.  All
dialect-specific behaviour is delegated to the ``SQLCompiler`` carried by the
injected :class:`~chainql.compile.context.CompilationContext`.

Sub-builder hierarchy
---------------------
QueryCompiler
  ├── SelectClauseBuilder  (clause_builders.py)
  ├── JoinClauseBuilder    (clause_builders.py)
  └── WhereClauseBuilder   (clause_builders.py)

Runtime context sharing
-----------------------
A single :class:`~chainql.compile.clause_builders.RuntimeContext` is
created per ``build_*()`` call and threaded through every sub-builder.  The
bindings list therefore always lines up with the placeholders in the text,
including key placeholders when encryption keys are bound.

Compilation never raises: every accumulated state compiles to some SQL.
Whether the database accepts it is decided at execution time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from chainql.compile.base import CompiledQuery
from chainql.compile.clause_builders import (
    JoinClauseBuilder,
    RuntimeContext,
    SelectClauseBuilder,
    WhereClauseBuilder,
    key_sql,
)
from chainql.compile.context import CompilationContext
from chainql.schema.state import QueryState

#: Window count used by pagination to get the total without a second scan.
WINDOW_COUNT_COLUMN = "COUNT(*) OVER() AS total"


class QueryCompiler:
    """Compiles accumulated :class:`QueryState` to parameterized SQL.

    Args:
        ctx: Compilation context (compiler, key, key binding mode).
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    @property
    def dialect(self) -> str:
        return self._ctx.compiler.dialect_name

    # ------------------------------------------------------------------
    # SELECT family
    # ------------------------------------------------------------------

    def build_select(self, state: QueryState) -> CompiledQuery:
        """Compile the SELECT statement described by ``state``.

        Clause order: SELECT, FROM, JOINs, WHERE, GROUP BY, ORDER BY.

        Args:
            state: Accumulated builder state.

        Returns:
            :class:`~chainql.compile.base.CompiledQuery` with ``sql`` and
            ordered ``bindings``.
        """
        runtime = self._runtime()
        parts: list[str] = [
            SelectClauseBuilder(self._ctx, runtime).build(state),
            f"FROM {state.table}",
            JoinClauseBuilder().build(state),
            WhereClauseBuilder(self._ctx, runtime).build(state),
        ]

        if state.group_by:
            parts.append(f"group by {', '.join(state.group_by)}")

        if state.order_by:
            parts.append(f"order by {', '.join(state.order_by)}")

        return self._compiled(parts, runtime)

    def build_first(self, state: QueryState) -> CompiledQuery:
        """Compile the SELECT with ``LIMIT 1`` appended."""
        return self.build_select(state).with_suffix("LIMIT 1")

    def build_page(self, state: QueryState, per_page: int, offset: int) -> CompiledQuery:
        """Compile the data leg of a pagination: ``LIMIT per_page OFFSET offset``."""
        return self.build_select(state).with_suffix(f"LIMIT {int(per_page)} OFFSET {int(offset)}")

    def build_count(self, state: QueryState) -> CompiledQuery:
        """Compile the count leg of a pagination.

        The select list of a *copy* of ``state`` is replaced by a window
        count, so every row of the result carries the total.  ``LIMIT 1`` is
        safe because the window is evaluated before the limit.  ORDER BY is
        dropped: it cannot change the count and may name a select alias that
        the count query no longer has.
        """
        count_state = state.model_copy(
            update={"select_columns": [WINDOW_COUNT_COLUMN], "order_by": []}, deep=True
        )
        return self.build_select(count_state).with_suffix("LIMIT 1")

    # ------------------------------------------------------------------
    # Write statements
    # ------------------------------------------------------------------

    def build_insert(
        self,
        state: QueryState,
        payload: Mapping[str, Any],
        returning: str | None = None,
    ) -> CompiledQuery:
        """Compile ``INSERT INTO table (cols) VALUES (placeholders)``.

        Columns follow the payload's iteration order.  Encrypted columns get
        an encrypt expression around their placeholder.  With ``returning``
        a ``RETURNING <column>`` clause is appended (SQLite 3.35+,
        PostgreSQL, MariaDB; not MySQL).
        """
        runtime = self._runtime()
        columns: list[str] = []
        placeholders: list[str] = []
        for column, value in payload.items():
            columns.append(column)
            placeholders.append(self._value_sql(state, column, value, runtime))

        sql = (
            f"INSERT INTO {state.table} ({', '.join(columns)}) "
            f"VALUES ({','.join(placeholders)})"
        )
        if returning:
            sql = f"{sql} RETURNING {returning}"
        return CompiledQuery(sql=sql, bindings=tuple(runtime.bindings), dialect=self.dialect)

    def build_update(self, state: QueryState, payload: Mapping[str, Any]) -> CompiledQuery:
        """Compile ``UPDATE table SET col = ?, … <where>``.

        SET bindings precede WHERE bindings.
        """
        runtime = self._runtime()
        assignments = [
            f"{column} = {self._value_sql(state, column, value, runtime)}"
            for column, value in payload.items()
        ]
        parts = [
            f"UPDATE {state.table} SET {', '.join(assignments)}",
            WhereClauseBuilder(self._ctx, runtime).build(state),
        ]
        return self._compiled(parts, runtime)

    def build_delete(self, state: QueryState) -> CompiledQuery:
        """Compile ``DELETE FROM table <where>``."""
        runtime = self._runtime()
        parts = [
            f"DELETE FROM {state.table}",
            WhereClauseBuilder(self._ctx, runtime).build(state),
        ]
        return self._compiled(parts, runtime)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _runtime(self) -> RuntimeContext:
        return RuntimeContext(placeholder=self._ctx.compiler.param_placeholder())

    def _value_sql(
        self,
        state: QueryState,
        column: str,
        value: Any,
        runtime: RuntimeContext,
    ) -> str:
        placeholder = runtime.add_value(value)
        if not state.is_encrypted(column):
            return placeholder
        return self._ctx.compiler.encrypt_expression(placeholder, key_sql(self._ctx, runtime))

    def _compiled(self, parts: list[str], runtime: RuntimeContext) -> CompiledQuery:
        sql = " ".join(p for p in parts if p)
        return CompiledQuery(sql=sql, bindings=tuple(runtime.bindings), dialect=self.dialect)
