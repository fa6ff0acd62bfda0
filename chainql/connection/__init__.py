"""chainql connection layer: named engines and per-connection keys."""
from chainql.connection.registry import ConnectionRegistry

__all__ = ["ConnectionRegistry"]
