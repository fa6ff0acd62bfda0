"""Protocol interfaces for the fluent surface.

These protocols enable dependency injection for testability.  The real
implementations are :class:`~chainql.orm.ORM` and
:class:`~chainql.query.QueryBuilder`; :mod:`chainql.testing` provides
doubles that satisfy the same protocols with zero database access.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, TextIO, runtime_checkable

from pydantic import BaseModel
from sqlalchemy.engine import Engine

from chainql.compile.base import CompiledQuery
from chainql.schema.paginated import Paginated


@runtime_checkable
class QueryBuilderProtocol(Protocol):
    """Chainable statement builder plus its terminal operations."""

    def select(self, *columns: str) -> QueryBuilderProtocol: ...

    def encrypted_columns(self, *columns: str) -> QueryBuilderProtocol: ...

    def connection(self, name: str) -> QueryBuilderProtocol: ...

    def left_join(
        self, table: str, left_column: str, operator: str, right_column: str
    ) -> QueryBuilderProtocol: ...

    def right_join(
        self, table: str, left_column: str, operator: str, right_column: str
    ) -> QueryBuilderProtocol: ...

    def inner_join(
        self, table: str, left_column: str, operator: str, right_column: str
    ) -> QueryBuilderProtocol: ...

    def full_join(
        self, table: str, left_column: str, operator: str, right_column: str
    ) -> QueryBuilderProtocol: ...

    def where(self, column: str, operator: str, value: Any) -> QueryBuilderProtocol: ...

    def where_encrypted(self, column: str, operator: str, value: Any) -> QueryBuilderProtocol: ...

    def where_in(self, column: str, *values: Any) -> QueryBuilderProtocol: ...

    def where_raw(self, sql: str, *bindings: Any) -> QueryBuilderProtocol: ...

    def group_by(self, *columns: str) -> QueryBuilderProtocol: ...

    def order_by(self, *columns: str) -> QueryBuilderProtocol: ...

    def to_sql(self) -> CompiledQuery: ...

    def get(self, model: type[BaseModel] | None = None) -> list[Any]: ...

    def first(self, model: type[BaseModel] | None = None) -> Any: ...

    def insert(
        self, payload: Mapping[str, Any], returning: str | None = None
    ) -> int | None: ...

    def update(self, payload: Mapping[str, Any]) -> int: ...

    def delete(self) -> int: ...

    def paginate(
        self, page: int, per_page: int, model: type[BaseModel] | None = None
    ) -> Paginated[Any]: ...


@runtime_checkable
class OrmProtocol(Protocol):
    """Hands out builders and controls logging / test mode."""

    def table(self, name: str) -> QueryBuilderProtocol: ...

    def enable_test_mode(self) -> None: ...

    def disable_test_mode(self) -> None: ...

    def enable_query_logger(self, stream: TextIO) -> None: ...

    def disable_query_logger(self) -> None: ...

    def get_connection(self, name: str) -> Engine: ...
