"""Clause-level SQL builders.

Each class handles exactly one SQL clause.  Builders that emit placeholders
share a :class:`RuntimeContext`, so bindings are collected in the exact
textual order of their placeholders no matter which clause produced them.

Classes
-------
RuntimeContext        — ordered binding accumulator for one compilation run
SelectClauseBuilder   — ``SELECT <columns>`` with decrypt rewriting
JoinClauseBuilder     — ``LEFT/RIGHT/INNER/FULL OUTER JOIN … ON …``
WhereClauseBuilder    — ``WHERE <plain> AND <encrypted> AND <in> AND <raw>``
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chainql.compile.context import CompilationContext
from chainql.schema.state import JOIN_ORDER, QueryState


# ---------------------------------------------------------------------------
# Runtime binding accumulator (shared across all sub-builders in one run)
# ---------------------------------------------------------------------------


@dataclass
class RuntimeContext:
    """Accumulates positional bindings during a single compilation run.

    Attributes:
        placeholder: The dialect's positional placeholder (``?`` or ``%s``).
        bindings: Values collected so far, in placeholder order.
    """

    placeholder: str
    bindings: list[Any] = field(default_factory=list)

    def add_value(self, value: Any) -> str:
        """Store a value and return the placeholder that stands for it."""
        self.bindings.append(value)
        return self.placeholder

    def extend(self, values: tuple[Any, ...]) -> None:
        """Store values whose placeholders were written by the caller."""
        self.bindings.extend(values)


def key_sql(ctx: CompilationContext, runtime: RuntimeContext) -> str:
    """Render the encryption key as a literal or as a bound placeholder."""
    if ctx.bind_encryption_key:
        return runtime.add_value(ctx.encryption_key)
    return ctx.compiler.key_literal(ctx.encryption_key.get_secret_value())


# ---------------------------------------------------------------------------
# Clause builders
# ---------------------------------------------------------------------------


class SelectClauseBuilder:
    """Builds the ``SELECT …`` clause."""

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    def build(self, state: QueryState) -> str:
        if not state.select_columns:
            return "SELECT *"
        items = [self._build_item(state, col) for col in state.select_columns]
        return f"SELECT {', '.join(items)}"

    def _build_item(self, state: QueryState, column: str) -> str:
        if not state.is_encrypted(column):
            return column
        key = key_sql(self._ctx, self._runtime)
        alias = column.rsplit(".", 1)[-1]
        return f"{self._ctx.compiler.decrypt_expression(column, key)} AS {alias}"


class JoinClauseBuilder:
    """Builds every JOIN fragment, kinds in LEFT, RIGHT, INNER, FULL OUTER order."""

    def build(self, state: QueryState) -> str:
        parts: list[str] = []
        for kind in JOIN_ORDER:
            for join in state.joins_of(kind):
                parts.append(
                    f"{kind.value} JOIN {join.table} ON "
                    f"{join.left_column} {join.operator} {join.right_column}"
                )
        return " ".join(parts)


class WhereClauseBuilder:
    """Builds the ``WHERE …`` clause.

    Fragments are emitted in a fixed category order regardless of how the
    predicates were interleaved on the builder: plain, encrypted, ``IN``,
    raw.  Within a category, registration order is kept.  An ``IN`` with no
    values contributes nothing.
    """

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    def build(self, state: QueryState) -> str:
        if not state.has_predicates:
            return ""
        fragments = [f for f in self._fragments(state) if f]
        if not fragments:
            return ""
        return f"WHERE {' AND '.join(fragments)}"

    def _fragments(self, state: QueryState) -> list[str]:
        add = self._runtime.add_value
        fragments: list[str] = []

        for pred in state.wheres:
            fragments.append(f"{pred.column} {pred.operator} {add(pred.value)}")

        for pred in state.encrypted_wheres:
            key = key_sql(self._ctx, self._runtime)
            column = self._ctx.compiler.decrypt_expression(pred.column, key)
            fragments.append(f"{column} {pred.operator} {add(pred.value)}")

        for pred in state.where_ins:
            if not pred.values:
                continue
            marks = ",".join(add(v) for v in pred.values)
            fragments.append(f"{pred.column} IN ({marks})")

        for raw in state.raw_wheres:
            if not raw.sql.strip():
                continue
            fragments.append(raw.sql)
            self._runtime.extend(raw.bindings)

        return fragments
