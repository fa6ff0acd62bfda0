"""Pydantic models for the clause state accumulated by a query builder.

A :class:`QueryState` is the inert data behind one fluent chain.  It knows
nothing about SQL syntax; the compiler in :mod:`chainql.compile` turns it
into text and bindings.  Every list is insertion-ordered and that order is
carried into the generated SQL.

Snapshots are taken with ``state.model_copy(deep=True)`` so that two
compilations never observe each other's mutations.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JoinKind(str, Enum):
    """Supported join kinds, in the order they are rendered."""

    LEFT = "LEFT"
    RIGHT = "RIGHT"
    INNER = "INNER"
    FULL = "FULL OUTER"


#: Fixed rendering order for JOIN clauses.
JOIN_ORDER: tuple[JoinKind, ...] = (
    JoinKind.LEFT,
    JoinKind.RIGHT,
    JoinKind.INNER,
    JoinKind.FULL,
)


class JoinSpec(BaseModel):
    """A single ``<KIND> JOIN table ON left op right`` specification.

    Attributes:
        table: Table being joined.
        left_column: Left-hand column of the ON condition.
        operator: Comparison operator (e.g. ``'='``).
        right_column: Right-hand column of the ON condition.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    table: str
    left_column: str
    operator: str
    right_column: str


class Predicate(BaseModel):
    """A ``column operator value`` predicate.

    Used both for plain predicates and for predicates on encrypted columns;
    the latter are kept in a separate list and decrypted at compile time.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    column: str
    operator: str
    value: Any = None


class InPredicate(BaseModel):
    """A ``column IN (...)`` predicate.  ``values`` may be empty."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    column: str
    values: tuple[Any, ...] = ()


class RawPredicate(BaseModel):
    """A verbatim SQL fragment with its own positional bindings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    sql: str
    bindings: tuple[Any, ...] = ()


def _empty_joins() -> dict[JoinKind, list[JoinSpec]]:
    return {kind: [] for kind in JOIN_ORDER}


class QueryState(BaseModel):
    """Everything a fluent chain has accumulated for one statement.

    Attributes:
        table: Target table.
        connection: Connection override; ``None`` means the default.
        select_columns: Columns to select; empty means ``*``.
        encrypted_columns: Columns stored encrypted in the database.
        joins: Join specs keyed by kind.
        wheres: Plain predicates.
        encrypted_wheres: Predicates whose column is decrypted first.
        where_ins: ``IN`` predicates.
        raw_wheres: Verbatim predicate fragments.
        group_by: GROUP BY columns.
        order_by: ORDER BY columns (direction may be embedded, e.g.
            ``'created_at DESC'``).
    """

    model_config = ConfigDict(extra="forbid")

    table: str
    connection: str | None = None
    select_columns: list[str] = Field(default_factory=list)
    encrypted_columns: list[str] = Field(default_factory=list)
    joins: dict[JoinKind, list[JoinSpec]] = Field(default_factory=_empty_joins)
    wheres: list[Predicate] = Field(default_factory=list)
    encrypted_wheres: list[Predicate] = Field(default_factory=list)
    where_ins: list[InPredicate] = Field(default_factory=list)
    raw_wheres: list[RawPredicate] = Field(default_factory=list)
    group_by: list[str] = Field(default_factory=list)
    order_by: list[str] = Field(default_factory=list)

    def is_encrypted(self, column: str) -> bool:
        """Returns ``True`` if ``column`` was declared as encrypted."""
        return column in self.encrypted_columns

    def add_join(self, kind: JoinKind, join: JoinSpec) -> None:
        """Append ``join`` to the list for ``kind``."""
        self.joins.setdefault(kind, []).append(join)

    def joins_of(self, kind: JoinKind) -> list[JoinSpec]:
        """Returns the joins registered for ``kind`` in registration order."""
        return self.joins.get(kind, [])

    @property
    def has_predicates(self) -> bool:
        """Returns ``True`` if any predicate category is non-empty."""
        return bool(self.wheres or self.encrypted_wheres or self.where_ins or self.raw_wheres)
