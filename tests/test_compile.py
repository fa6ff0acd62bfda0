"""Unit tests for QueryCompiler (SQLite dialect, no database)."""

from __future__ import annotations

import pytest
from pydantic import SecretStr

from chainql.compile.builder import QueryCompiler
from chainql.schema.paginated import total_pages
from chainql.schema.state import (
    InPredicate,
    JoinKind,
    JoinSpec,
    Predicate,
    QueryState,
    RawPredicate,
)
from tests.fixtures import ENCRYPTION_KEY

KEY = f"'{ENCRYPTION_KEY}'"


def _state(**kwargs) -> QueryState:
    return QueryState(table="users", **kwargs)


# ---------------------------------------------------------------------------
# SELECT / FROM
# ---------------------------------------------------------------------------


def test_no_columns_selects_star(compiler: QueryCompiler):
    r = compiler.build_select(_state())
    assert r.sql == "SELECT * FROM users"
    assert r.bindings == ()


def test_columns_join_with_comma(compiler: QueryCompiler):
    r = compiler.build_select(_state(select_columns=["id", "name"]))
    assert r.sql == "SELECT id, name FROM users"


def test_encrypted_column_is_decrypted_and_aliased(compiler: QueryCompiler):
    r = compiler.build_select(
        _state(select_columns=["id", "email"], encrypted_columns=["email"])
    )
    assert r.sql == f"SELECT id, AES_DECRYPT(email, {KEY}) AS email FROM users"
    assert r.bindings == ()


def test_encrypted_list_does_not_add_unselected_columns(compiler: QueryCompiler):
    r = compiler.build_select(_state(select_columns=["name"], encrypted_columns=["email"]))
    assert r.sql == "SELECT name FROM users"


def test_qualified_encrypted_column_aliases_bare_name(compiler: QueryCompiler):
    r = compiler.build_select(
        _state(select_columns=["users.email"], encrypted_columns=["users.email"])
    )
    assert f"AES_DECRYPT(users.email, {KEY}) AS email" in r.sql


def test_key_literal_quotes_are_escaped():
    from chainql.compile.context import CompilationContext
    from chainql.compile.sqlite import SQLiteCompiler

    c = QueryCompiler(
        CompilationContext(compiler=SQLiteCompiler(), encryption_key=SecretStr("it's"))
    )
    r = c.build_select(_state(select_columns=["email"], encrypted_columns=["email"]))
    assert "AES_DECRYPT(email, 'it''s') AS email" in r.sql


# ---------------------------------------------------------------------------
# JOIN
# ---------------------------------------------------------------------------


def test_joins_render_in_fixed_kind_order(compiler: QueryCompiler):
    state = _state()
    state.add_join(JoinKind.FULL, JoinSpec(table="d", left_column="users.id", operator="=", right_column="d.user_id"))
    state.add_join(JoinKind.INNER, JoinSpec(table="c", left_column="users.id", operator="=", right_column="c.user_id"))
    state.add_join(JoinKind.RIGHT, JoinSpec(table="b", left_column="users.id", operator="=", right_column="b.user_id"))
    state.add_join(JoinKind.LEFT, JoinSpec(table="a", left_column="users.id", operator="=", right_column="a.user_id"))

    r = compiler.build_select(state)
    assert r.sql == (
        "SELECT * FROM users "
        "LEFT JOIN a ON users.id = a.user_id "
        "RIGHT JOIN b ON users.id = b.user_id "
        "INNER JOIN c ON users.id = c.user_id "
        "FULL OUTER JOIN d ON users.id = d.user_id"
    )


def test_joins_of_one_kind_keep_registration_order(compiler: QueryCompiler):
    state = _state()
    state.add_join(JoinKind.LEFT, JoinSpec(table="teams", left_column="users.team_id", operator="=", right_column="teams.id"))
    state.add_join(JoinKind.LEFT, JoinSpec(table="articles", left_column="teams.id", operator="=", right_column="articles.team_id"))

    r = compiler.build_select(state)
    assert r.sql.index("LEFT JOIN teams") < r.sql.index("LEFT JOIN articles")


# ---------------------------------------------------------------------------
# WHERE
# ---------------------------------------------------------------------------


def test_single_plain_predicate(compiler: QueryCompiler):
    r = compiler.build_select(_state(wheres=[Predicate(column="id", operator="=", value=7)]))
    assert r.sql == "SELECT * FROM users WHERE id = ?"
    assert r.bindings == (7,)


def test_plain_predicates_join_with_and(compiler: QueryCompiler):
    r = compiler.build_select(
        _state(
            wheres=[
                Predicate(column="active", operator="=", value=1),
                Predicate(column="name", operator="LIKE", value="A%"),
            ]
        )
    )
    assert r.sql.endswith("WHERE active = ? AND name LIKE ?")
    assert r.bindings == (1, "A%")


def test_encrypted_predicate_decrypts_column(compiler: QueryCompiler):
    r = compiler.build_select(
        _state(encrypted_wheres=[Predicate(column="email", operator="=", value="a@x.io")])
    )
    assert r.sql == f"SELECT * FROM users WHERE AES_DECRYPT(email, {KEY}) = ?"
    assert r.bindings == ("a@x.io",)


def test_in_predicate_has_one_placeholder_per_value(compiler: QueryCompiler):
    r = compiler.build_select(_state(where_ins=[InPredicate(column="role", values=("admin", "owner", "guest"))]))
    assert r.sql == "SELECT * FROM users WHERE role IN (?,?,?)"
    assert r.bindings == ("admin", "owner", "guest")


def test_empty_in_alone_omits_where(compiler: QueryCompiler):
    r = compiler.build_select(_state(where_ins=[InPredicate(column="role")]))
    assert r.sql == "SELECT * FROM users"
    assert r.bindings == ()


def test_empty_in_between_predicates_leaves_no_dangling_and(compiler: QueryCompiler):
    r = compiler.build_select(
        _state(
            wheres=[Predicate(column="active", operator="=", value=1)],
            where_ins=[
                InPredicate(column="id", values=(1, 2)),
                InPredicate(column="role"),
                InPredicate(column="team_id", values=(3,)),
            ],
            raw_wheres=[RawPredicate(sql="name <> ?", bindings=("Eve",))],
        )
    )
    assert r.sql == (
        "SELECT * FROM users WHERE active = ? AND id IN (?,?) AND team_id IN (?) AND name <> ?"
    )
    assert "AND  AND" not in r.sql
    assert r.bindings == (1, 1, 2, 3, "Eve")


def test_raw_predicate_is_verbatim_with_its_bindings(compiler: QueryCompiler):
    r = compiler.build_select(
        _state(raw_wheres=[RawPredicate(sql="(id = ? OR id = ?)", bindings=(1, 2))])
    )
    assert r.sql == "SELECT * FROM users WHERE (id = ? OR id = ?)"
    assert r.bindings == (1, 2)


def test_raw_predicate_without_bindings_is_kept(compiler: QueryCompiler):
    r = compiler.build_select(_state(raw_wheres=[RawPredicate(sql="team_id IS NULL")]))
    assert r.sql == "SELECT * FROM users WHERE team_id IS NULL"
    assert r.bindings == ()


def test_mixed_predicates_bind_in_category_order(compiler: QueryCompiler):
    # Registration interleaving does not matter; only category order does.
    state = _state()
    state.raw_wheres.append(RawPredicate(sql="created_at > ?", bindings=("2025-01-01",)))
    state.where_ins.append(InPredicate(column="role", values=("admin", "owner")))
    state.encrypted_wheres.append(Predicate(column="email", operator="=", value="a@x.io"))
    state.wheres.append(Predicate(column="active", operator="=", value=1))

    r = compiler.build_select(state)
    assert r.sql == (
        "SELECT * FROM users WHERE active = ? "
        f"AND AES_DECRYPT(email, {KEY}) = ? "
        "AND role IN (?,?) "
        "AND created_at > ?"
    )
    assert r.bindings == (1, "a@x.io", "admin", "owner", "2025-01-01")


# ---------------------------------------------------------------------------
# GROUP BY / ORDER BY / full clause order
# ---------------------------------------------------------------------------


def test_group_by_and_order_by(compiler: QueryCompiler):
    r = compiler.build_select(
        _state(select_columns=["role", "COUNT(*) AS n"], group_by=["role"], order_by=["n DESC", "role"])
    )
    assert r.sql == "SELECT role, COUNT(*) AS n FROM users group by role order by n DESC, role"


def test_full_clause_order(compiler: QueryCompiler):
    state = _state(
        select_columns=["users.role"],
        wheres=[Predicate(column="users.active", operator="=", value=1)],
        group_by=["users.role"],
        order_by=["users.role"],
    )
    state.add_join(JoinKind.INNER, JoinSpec(table="teams", left_column="users.team_id", operator="=", right_column="teams.id"))
    sql = compiler.build_select(state).sql
    positions = [sql.index(k) for k in ("SELECT", "FROM", "INNER JOIN", "WHERE", "group by", "order by")]
    assert positions == sorted(positions)


# ---------------------------------------------------------------------------
# Derived statements
# ---------------------------------------------------------------------------


def test_first_appends_limit_one(compiler: QueryCompiler):
    r = compiler.build_first(_state(wheres=[Predicate(column="id", operator="=", value=1)]))
    assert r.sql == "SELECT * FROM users WHERE id = ? LIMIT 1"
    assert r.bindings == (1,)


def test_page_appends_limit_and_offset(compiler: QueryCompiler):
    r = compiler.build_page(_state(), per_page=10, offset=20)
    assert r.sql == "SELECT * FROM users LIMIT 10 OFFSET 20"


def test_count_query_does_not_touch_original_state(compiler: QueryCompiler):
    state = _state(
        select_columns=["id", "email"],
        encrypted_columns=["email"],
        wheres=[Predicate(column="active", operator="=", value=1)],
    )
    r = compiler.build_count(state)
    assert r.sql == "SELECT COUNT(*) OVER() AS total FROM users WHERE active = ? LIMIT 1"
    assert r.bindings == (1,)
    assert state.select_columns == ["id", "email"]


def test_count_query_drops_order_by(compiler: QueryCompiler):
    state = _state(
        select_columns=["role", "COUNT(*) AS n"],
        group_by=["role"],
        order_by=["n DESC", "role"],
    )
    r = compiler.build_count(state)
    assert r.sql == "SELECT COUNT(*) OVER() AS total FROM users group by role LIMIT 1"
    assert state.order_by == ["n DESC", "role"]


def test_insert_with_returning(compiler: QueryCompiler):
    r = compiler.build_insert(_state(), {"name": "Ada"}, returning="id")
    assert r.sql == "INSERT INTO users (name) VALUES (?) RETURNING id"
    assert r.bindings == ("Ada",)


def test_insert_in_payload_order_with_encryption(compiler: QueryCompiler):
    r = compiler.build_insert(
        _state(encrypted_columns=["email"]),
        {"name": "Ada", "email": "ada@x.io", "role": "admin"},
    )
    assert r.sql == (
        f"INSERT INTO users (name, email, role) VALUES (?,AES_ENCRYPT(?, {KEY}),?)"
    )
    assert r.bindings == ("Ada", "ada@x.io", "admin")


def test_update_set_bindings_precede_where_bindings(compiler: QueryCompiler):
    r = compiler.build_update(
        _state(
            wheres=[Predicate(column="id", operator="=", value=3)],
            where_ins=[InPredicate(column="role", values=("member",))],
        ),
        {"name": "Charles", "active": 1},
    )
    assert r.sql == "UPDATE users SET name = ?, active = ? WHERE id = ? AND role IN (?)"
    assert r.bindings == ("Charles", 1, 3, "member")


def test_update_encrypts_encrypted_columns(compiler: QueryCompiler):
    r = compiler.build_update(_state(encrypted_columns=["email"]), {"email": "new@x.io"})
    assert r.sql == f"UPDATE users SET email = AES_ENCRYPT(?, {KEY})"
    assert r.bindings == ("new@x.io",)


def test_delete_with_and_without_where(compiler: QueryCompiler):
    assert compiler.build_delete(_state()).sql == "DELETE FROM users"
    r = compiler.build_delete(_state(wheres=[Predicate(column="id", operator="<", value=3)]))
    assert r.sql == "DELETE FROM users WHERE id < ?"
    assert r.bindings == (3,)


# ---------------------------------------------------------------------------
# Bound encryption keys
# ---------------------------------------------------------------------------


class TestBoundEncryptionKey:
    def test_key_never_appears_in_sql(self, bound_key_compiler: QueryCompiler):
        r = bound_key_compiler.build_select(
            _state(
                select_columns=["email"],
                encrypted_columns=["email"],
                encrypted_wheres=[Predicate(column="email", operator="=", value="a@x.io")],
            )
        )
        assert ENCRYPTION_KEY not in r.sql
        assert r.sql == (
            "SELECT AES_DECRYPT(email, ?) AS email FROM users WHERE AES_DECRYPT(email, ?) = ?"
        )

    def test_key_bindings_follow_placeholder_order(self, bound_key_compiler: QueryCompiler):
        r = bound_key_compiler.build_select(
            _state(
                select_columns=["email"],
                encrypted_columns=["email"],
                wheres=[Predicate(column="id", operator="=", value=1)],
                encrypted_wheres=[Predicate(column="email", operator="=", value="a@x.io")],
            )
        )
        assert r.driver_bindings() == (ENCRYPTION_KEY, 1, ENCRYPTION_KEY, "a@x.io")

    def test_key_is_masked_in_bindings(self, bound_key_compiler: QueryCompiler):
        r = bound_key_compiler.build_insert(_state(encrypted_columns=["email"]), {"email": "a@x.io"})
        assert r.sql == "INSERT INTO users (email) VALUES (AES_ENCRYPT(?, ?))"
        assert r.bindings[0] == "a@x.io"
        assert isinstance(r.bindings[1], SecretStr)
        assert str(r.bindings[1]) == "**********"
        assert r.driver_bindings() == ("a@x.io", ENCRYPTION_KEY)


# ---------------------------------------------------------------------------
# Page arithmetic
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("total", "per_page", "expected"),
    [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 10, 3)],
)
def test_total_pages(total: int, per_page: int, expected: int):
    assert total_pages(total, per_page) == expected


def test_blank_raw_fragment_is_skipped(compiler: QueryCompiler):
    r = compiler.build_select(_state(raw_wheres=[RawPredicate(sql="  ", bindings=(1,))]))
    assert r.sql == "SELECT * FROM users"
    assert r.bindings == ()
