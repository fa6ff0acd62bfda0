"""Test fixtures: sample DDL, seed data and SQLite encryption functions."""

from __future__ import annotations

import sqlite3
from itertools import cycle
from pathlib import Path
from typing import Any

_FIXTURES_DIR = Path(__file__).parent

ENCRYPTION_KEY = "s3cr3t-k3y"


def load_ddl(target: str = "sqlite") -> str:
    """Return the sample DDL SQL string for the given backend."""
    return (_FIXTURES_DIR / f"ddl_{target}.sql").read_text()


# ---------------------------------------------------------------------------
# SQLite stand-ins for MySQL's AES_ENCRYPT / AES_DECRYPT
# ---------------------------------------------------------------------------


def _xor(data: bytes, key: str) -> bytes:
    key_bytes = key.encode() or b"\0"
    return bytes(b ^ k for b, k in zip(data, cycle(key_bytes)))


def _aes_encrypt(value: Any, key: str) -> bytes | None:
    if value is None:
        return None
    return _xor(str(value).encode(), key)


def _aes_decrypt(value: Any, key: str) -> str | None:
    if value is None:
        return None
    return _xor(bytes(value), key).decode()


def register_encryption_functions(dbapi_connection: sqlite3.Connection, _record: Any) -> None:
    """SQLAlchemy ``connect`` listener adding AES_ENCRYPT / AES_DECRYPT.

    The functions XOR with the key; they are reversible and key-dependent,
    which is all the round-trip tests need.
    """
    dbapi_connection.create_function("AES_ENCRYPT", 2, _aes_encrypt, deterministic=True)
    dbapi_connection.create_function("AES_DECRYPT", 2, _aes_decrypt, deterministic=True)


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

TEAMS: list[tuple[int, str]] = [
    (1, "Platform"),
    (2, "Payments"),
    (3, "Growth"),
]

#: (id, team_id, name, role, active)
USERS: list[tuple[int, int | None, str, str, int]] = [
    (1, 1, "Alice", "admin", 1),
    (2, 1, "Bob", "member", 1),
    (3, 2, "Charlie", "member", 0),
    (4, 2, "Diana", "owner", 1),
    (5, None, "Eve", "guest", 1),
]

#: 25 articles, ids 1..25, spread over the three teams.
ARTICLES: list[tuple[int, int, str]] = [
    (i, (i % 3) + 1, f"Article {i:02d}") for i in range(1, 26)
]
