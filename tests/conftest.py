"""Shared pytest fixtures for chainql unit and integration tests."""
from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from pydantic import SecretStr
from sqlalchemy import event
from sqlalchemy.engine import Engine

from chainql import ORM, ConnectionDescriptor
from chainql.compile.builder import QueryCompiler
from chainql.compile.context import CompilationContext
from chainql.compile.sqlite import SQLiteCompiler
from tests.fixtures import (
    ARTICLES,
    ENCRYPTION_KEY,
    TEAMS,
    USERS,
    load_ddl,
    register_encryption_functions,
)

ARCHIVE_KEY = "archive-key"


def sqlite_descriptor(name: str, path: Path, key: str = ENCRYPTION_KEY) -> ConnectionDescriptor:
    """Descriptor for a file-backed SQLite database usable from many threads."""
    return ConnectionDescriptor(
        name=name,
        url=f"sqlite:///{path}",
        encryption_key=key,
        options={"connect_args": {"check_same_thread": False}},
    )


def _prepare(engine: Engine, seed: bool) -> None:
    event.listen(engine, "connect", register_encryption_functions)
    raw = engine.raw_connection()
    try:
        dbapi = raw.driver_connection
        dbapi.executescript(load_ddl("sqlite"))
        if seed:
            dbapi.executemany("INSERT INTO teams (id, name) VALUES (?, ?)", TEAMS)
            dbapi.executemany(
                "INSERT INTO users (id, team_id, name, role, active) VALUES (?, ?, ?, ?, ?)",
                USERS,
            )
            dbapi.executemany("INSERT INTO articles (id, team_id, title) VALUES (?, ?, ?)", ARTICLES)
        dbapi.commit()
    finally:
        raw.close()


@pytest.fixture()
def orm(tmp_path: Path) -> Iterator[ORM]:
    """ORM with a seeded ``main`` database and an empty ``archive`` one."""
    instance = ORM(
        sqlite_descriptor("main", tmp_path / "main.db"),
        sqlite_descriptor("archive", tmp_path / "archive.db", key=ARCHIVE_KEY),
    )
    _prepare(instance.get_connection("main"), seed=True)
    _prepare(instance.get_connection("archive"), seed=False)
    yield instance
    instance.close()


@pytest.fixture()
def compiler() -> QueryCompiler:
    """SQLite compiler with the fixture key inlined as a literal."""
    return QueryCompiler(
        CompilationContext(compiler=SQLiteCompiler(), encryption_key=SecretStr(ENCRYPTION_KEY))
    )


@pytest.fixture()
def bound_key_compiler() -> QueryCompiler:
    """SQLite compiler sending the fixture key as a bound parameter."""
    return QueryCompiler(
        CompilationContext(
            compiler=SQLiteCompiler(),
            encryption_key=SecretStr(ENCRYPTION_KEY),
            bind_encryption_key=True,
        )
    )


@pytest.fixture()
def bound_orm(tmp_path: Path) -> Iterator[ORM]:
    """Seeded single-connection ORM that binds encryption keys as parameters."""
    instance = ORM(sqlite_descriptor("main", tmp_path / "bound.db"), bind_encryption_keys=True)
    _prepare(instance.get_connection("main"), seed=True)
    yield instance
    instance.close()
