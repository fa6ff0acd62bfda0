"""Test doubles for code that depends on chainql.

:class:`MockQueryBuilder` satisfies
:class:`~chainql.protocols.QueryBuilderProtocol`: chain calls are no-ops
returning the mock, and every terminal call delegates to a caller-supplied
function.  :class:`MockOrm` satisfies :class:`~chainql.protocols.OrmProtocol`
and returns the same mock builder from every ``table()`` call.

Example::

    builder = MockQueryBuilder(first_fn=lambda model: {"id": 1, "name": "Ada"})
    orm = generate_orm_mock(builder)
    assert service.load_user(orm, 1).name == "Ada"
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TextIO

from pydantic import BaseModel
from sqlalchemy.engine import Engine

from chainql.compile.base import CompiledQuery
from chainql.schema.paginated import Paginated


def _missing(operation: str) -> NotImplementedError:
    return NotImplementedError(f"MockQueryBuilder.{operation} has no function configured.")


@dataclass
class MockQueryBuilder:
    """Builder double whose terminal operations call the supplied functions.

    Attributes:
        insert_fn: Called as ``insert_fn(payload, returning)``.
        update_fn: Called as ``update_fn(payload)``.
        delete_fn: Called as ``delete_fn()``.
        paginate_fn: Called as ``paginate_fn(page, per_page, model)``.
        first_fn: Called as ``first_fn(model)``.
        get_fn: Called as ``get_fn(model)``.
        to_sql_fn: Called as ``to_sql_fn()``.
    """

    insert_fn: Callable[[Mapping[str, Any], str | None], int | None] | None = None
    update_fn: Callable[[Mapping[str, Any]], int] | None = None
    delete_fn: Callable[[], int] | None = None
    paginate_fn: Callable[[int, int, type[BaseModel] | None], Paginated[Any]] | None = None
    first_fn: Callable[[type[BaseModel] | None], Any] | None = None
    get_fn: Callable[[type[BaseModel] | None], list[Any]] | None = None
    to_sql_fn: Callable[[], CompiledQuery] | None = None

    # ------------------------------------------------------------------
    # Chain calls: no-ops
    # ------------------------------------------------------------------

    def select(self, *columns: str) -> MockQueryBuilder:
        return self

    def encrypted_columns(self, *columns: str) -> MockQueryBuilder:
        return self

    def connection(self, name: str) -> MockQueryBuilder:
        return self

    def left_join(
        self, table: str, left_column: str, operator: str, right_column: str
    ) -> MockQueryBuilder:
        return self

    def right_join(
        self, table: str, left_column: str, operator: str, right_column: str
    ) -> MockQueryBuilder:
        return self

    def inner_join(
        self, table: str, left_column: str, operator: str, right_column: str
    ) -> MockQueryBuilder:
        return self

    def full_join(
        self, table: str, left_column: str, operator: str, right_column: str
    ) -> MockQueryBuilder:
        return self

    def where(self, column: str, operator: str, value: Any) -> MockQueryBuilder:
        return self

    def where_encrypted(self, column: str, operator: str, value: Any) -> MockQueryBuilder:
        return self

    def where_in(self, column: str, *values: Any) -> MockQueryBuilder:
        return self

    def where_raw(self, sql: str, *bindings: Any) -> MockQueryBuilder:
        return self

    def group_by(self, *columns: str) -> MockQueryBuilder:
        return self

    def order_by(self, *columns: str) -> MockQueryBuilder:
        return self

    # ------------------------------------------------------------------
    # Terminal calls: delegate
    # ------------------------------------------------------------------

    def to_sql(self) -> CompiledQuery:
        if self.to_sql_fn is None:
            raise _missing("to_sql")
        return self.to_sql_fn()

    def get(self, model: type[BaseModel] | None = None) -> list[Any]:
        if self.get_fn is None:
            raise _missing("get")
        return self.get_fn(model)

    def first(self, model: type[BaseModel] | None = None) -> Any:
        if self.first_fn is None:
            raise _missing("first")
        return self.first_fn(model)

    def insert(self, payload: Mapping[str, Any], returning: str | None = None) -> int | None:
        if self.insert_fn is None:
            raise _missing("insert")
        return self.insert_fn(payload, returning)

    def update(self, payload: Mapping[str, Any]) -> int:
        if self.update_fn is None:
            raise _missing("update")
        return self.update_fn(payload)

    def delete(self) -> int:
        if self.delete_fn is None:
            raise _missing("delete")
        return self.delete_fn()

    def paginate(
        self, page: int, per_page: int, model: type[BaseModel] | None = None
    ) -> Paginated[Any]:
        if self.paginate_fn is None:
            raise _missing("paginate")
        return self.paginate_fn(page, per_page, model)


@dataclass
class MockOrm:
    """ORM double returning ``builder`` from every ``table()`` call.

    Attributes:
        builder: The builder handed out by :meth:`table`.
        get_connection_fn: Called as ``get_connection_fn(name)``.
        tables: Table names requested so far, in order.
        test_mode: Toggled by ``enable_test_mode`` / ``disable_test_mode``.
        query_stream: Stream passed to ``enable_query_logger``, if enabled.
    """

    builder: MockQueryBuilder = field(default_factory=MockQueryBuilder)
    get_connection_fn: Callable[[str], Engine] | None = None
    tables: list[str] = field(default_factory=list)
    test_mode: bool = False
    query_stream: TextIO | None = None

    def table(self, name: str) -> MockQueryBuilder:
        self.tables.append(name)
        return self.builder

    def enable_test_mode(self) -> None:
        self.test_mode = True

    def disable_test_mode(self) -> None:
        self.test_mode = False

    def enable_query_logger(self, stream: TextIO) -> None:
        self.query_stream = stream

    def disable_query_logger(self) -> None:
        self.query_stream = None

    def get_connection(self, name: str) -> Engine:
        if self.get_connection_fn is None:
            raise NotImplementedError("MockOrm.get_connection has no function configured.")
        return self.get_connection_fn(name)


def generate_orm_mock(builder: MockQueryBuilder) -> MockOrm:
    """Return a :class:`MockOrm` that hands out ``builder``."""
    return MockOrm(builder=builder)
