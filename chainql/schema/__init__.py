"""chainql schema layer: builder state, connection descriptors, page envelope."""
from chainql.schema.connection import ConnectionDescriptor
from chainql.schema.paginated import Paginated
from chainql.schema.state import (
    JOIN_ORDER,
    InPredicate,
    JoinKind,
    JoinSpec,
    Predicate,
    QueryState,
    RawPredicate,
)

__all__ = [
    "ConnectionDescriptor",
    "Paginated",
    "JOIN_ORDER",
    "InPredicate",
    "JoinKind",
    "JoinSpec",
    "Predicate",
    "QueryState",
    "RawPredicate",
]
