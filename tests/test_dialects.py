"""
tests/test_dialects.py
Dialect registry, per-engine string bounds, key predicates and query text.
"""

from __future__ import annotations

from typing import Optional

import pytest

from modelgen.diagnostics import ConfigurationError
from modelgen.dialects import (
    MssqlOptions,
    MysqlOptions,
    PostgresOptions,
    SqliteOptions,
    get_dialect_options,
    require_dialect_options,
    supported_dialects,
)
from modelgen.dialects.base import (
    StringBounds,
    add_ticks,
    base_type_name,
    has_max_length,
    parse_declared_length,
    row_value,
)
from modelgen.dialects.mssql import mssql_options
from modelgen.dialects.mysql import mysql_options
from modelgen.dialects.postgres import postgres_options
from modelgen.dialects.sqlite import sqlite_options


# ===========================================================================
# Registry
# ===========================================================================


class TestRegistry:
    """get_dialect_options / require_dialect_options."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("sqlite", SqliteOptions),
            ("postgres", PostgresOptions),
            ("postgresql", PostgresOptions),
            ("mysql", MysqlOptions),
            ("mariadb", MysqlOptions),
            ("mssql", MssqlOptions),
        ],
    )
    def test_known_providers(self, name: str, expected: type) -> None:
        assert isinstance(get_dialect_options(name), expected)

    @pytest.mark.parametrize("name", ["db2", "oracle", "snowflake"])
    def test_recognised_without_provider(self, name: str) -> None:
        assert get_dialect_options(name) is None

    @pytest.mark.parametrize("name", ["foo", "", None])
    def test_unknown(self, name: Optional[str]) -> None:
        assert get_dialect_options(name) is None

    def test_case_insensitive(self) -> None:
        assert get_dialect_options("SQLite") is sqlite_options
        assert get_dialect_options("  Postgres ") is postgres_options

    def test_mariadb_shares_mysql_provider(self) -> None:
        assert get_dialect_options("mariadb") is get_dialect_options("mysql")

    def test_require_unimplemented(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            require_dialect_options("oracle")
        assert exc_info.value.code == "UNSUPPORTED_DIALECT"
        assert "has no provider yet" in exc_info.value.message

    def test_require_unknown(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            require_dialect_options("foo")
        assert exc_info.value.code == "UNSUPPORTED_DIALECT"
        assert "is unknown" in exc_info.value.message

    def test_require_known(self) -> None:
        assert require_dialect_options("mysql") is mysql_options

    def test_supported_dialects(self) -> None:
        names = supported_dialects()
        assert names == sorted(names)
        assert {"sqlite", "postgres", "mysql", "mssql"} <= set(names)
        assert "oracle" not in names


# ===========================================================================
# Helpers
# ===========================================================================


class TestHelpers:
    """Shared parsing helpers in dialects.base."""

    @pytest.mark.parametrize(
        "declared, expected",
        [
            ("VARCHAR(100)", 100),
            ("CHAR( 2 )", 2),
            ("NUMERIC(10, 2)", 10),
            ("character varying(255)", 255),
            ("TEXT", None),
            ("nvarchar(max)", None),
        ],
    )
    def test_parse_declared_length(self, declared: str, expected: Optional[int]) -> None:
        assert parse_declared_length(declared) == expected

    def test_has_max_length(self) -> None:
        assert has_max_length("NVARCHAR(MAX)")
        assert not has_max_length("NVARCHAR(40)")

    @pytest.mark.parametrize(
        "declared, expected",
        [
            ("VARCHAR(100)", "varchar"),
            ("character varying(255)", "character varying"),
            ("VARCHAR(100) CHARACTER SET utf8", "varchar"),
            ("int unsigned", "int"),
            ("  TEXT  ", "text"),
        ],
    )
    def test_base_type_name(self, declared: str, expected: str) -> None:
        assert base_type_name(declared) == expected

    def test_add_ticks(self) -> None:
        assert add_ticks("users") == "'users'"
        assert add_ticks("o'brien") == "'o''brien'"
        assert add_ticks(None) == "NULL"

    def test_row_value_upper_case_labels(self) -> None:
        row = {"CONSTRAINT_NAME": "fk_a", "target_table": "b"}
        assert row_value(row, "constraint_name") == "fk_a"
        assert row_value(row, "target_table") == "b"
        assert row_value(row, "missing", "target_table") == "b"
        assert row_value(row, "missing") is None


# ===========================================================================
# String bounds
# ===========================================================================


class TestStringBounds:
    """Each provider's view of which declared types are bounded strings."""

    @pytest.mark.parametrize(
        "declared, expected",
        [
            ("VARCHAR(100)", StringBounds(0, 100)),
            ("CHAR(2)", StringBounds(0, 2)),
            ("NVARCHAR(40)", StringBounds(0, 40)),
            ("VARCHAR", StringBounds(0, None)),
            ("TEXT", StringBounds(0, None)),
            ("CLOB", StringBounds(0, None)),
            ("INTEGER", None),
            ("REAL", None),
            ("", None),
            (None, None),
        ],
    )
    def test_sqlite(self, declared: Optional[str], expected: Optional[StringBounds]) -> None:
        assert sqlite_options.get_string_bounds(declared) == expected

    @pytest.mark.parametrize(
        "declared, expected",
        [
            ("character varying(255)", StringBounds(0, 255)),
            ("varchar(30)", StringBounds(0, 30)),
            ("character(2)", StringBounds(0, 2)),
            ("bpchar(4)", StringBounds(0, 4)),
            ("character varying", StringBounds(0, None)),
            ("text", StringBounds(0, None)),
            ("citext", StringBounds(0, None)),
            ("text[]", None),
            ("VARCHAR(255)[]", None),
            ("character varying(40)[]", None),
            ("char(2)[][]", None),
            ("integer", None),
            ("uuid", None),
        ],
    )
    def test_postgres(self, declared: str, expected: Optional[StringBounds]) -> None:
        assert postgres_options.get_string_bounds(declared) == expected

    @pytest.mark.parametrize(
        "declared, expected",
        [
            ("varchar(100)", StringBounds(0, 100)),
            ("VARCHAR(64) CHARACTER SET utf8mb4", StringBounds(0, 64)),
            ("char(36)", StringBounds(0, 36)),
            ("text", StringBounds(0, None)),
            ("mediumtext", StringBounds(0, None)),
            ("longtext", StringBounds(0, None)),
            ("int(11)", None),
            ("enum('a','b')", None),
        ],
    )
    def test_mysql(self, declared: str, expected: Optional[StringBounds]) -> None:
        assert mysql_options.get_string_bounds(declared) == expected

    @pytest.mark.parametrize(
        "declared, expected",
        [
            ("nvarchar(50)", StringBounds(0, 50)),
            ("varchar(10)", StringBounds(0, 10)),
            ("nchar(3)", StringBounds(0, 3)),
            ("nvarchar(max)", StringBounds(0, None)),
            ("VARCHAR(MAX)", StringBounds(0, None)),
            ("ntext", StringBounds(0, None)),
            ("int", None),
            ("datetime2", None),
        ],
    )
    def test_mssql(self, declared: str, expected: Optional[StringBounds]) -> None:
        assert mssql_options.get_string_bounds(declared) == expected


# ===========================================================================
# Key predicates
# ===========================================================================


class TestKeyPredicates:
    """is_primary_key / is_serial_key across providers."""

    def test_primary_key_flag(self) -> None:
        assert sqlite_options.is_primary_key({"primary_key": True})
        assert not sqlite_options.is_primary_key({"primary_key": False})

    def test_primary_key_constraint_type(self) -> None:
        assert postgres_options.is_primary_key({"constraint_type": "primary key"})
        assert not postgres_options.is_primary_key({"constraint_type": "UNIQUE"})

    def test_primary_key_non_mapping(self) -> None:
        assert not mysql_options.is_primary_key(None)
        assert not mysql_options.is_primary_key("id")

    def test_sqlite_serial(self) -> None:
        assert sqlite_options.is_serial_key({"primary_key": True, "type": "INTEGER"})
        assert not sqlite_options.is_serial_key({"primary_key": True, "type": "BIGINT"})
        assert not sqlite_options.is_serial_key({"primary_key": False, "type": "INTEGER"})

    def test_postgres_serial(self) -> None:
        assert postgres_options.is_serial_key(
            {"primary_key": True, "default_value": "nextval('users_id_seq'::regclass)"}
        )
        assert postgres_options.is_serial_key({"primary_key": True, "is_identity": True})
        assert not postgres_options.is_serial_key({"primary_key": True, "default_value": "0"})
        assert not postgres_options.is_serial_key(
            {"primary_key": False, "default_value": "nextval('x')"}
        )

    def test_mysql_serial(self) -> None:
        assert mysql_options.is_serial_key({"primary_key": True, "extra": "auto_increment"})
        assert mysql_options.is_serial_key({"primary_key": True, "extra": "AUTO_INCREMENT"})
        assert not mysql_options.is_serial_key({"primary_key": True, "extra": ""})

    def test_mssql_serial(self) -> None:
        assert mssql_options.is_serial_key({"primary_key": True, "is_identity": True})
        assert not mssql_options.is_serial_key({"primary_key": True})


# ===========================================================================
# Foreign-key rows and query text
# ===========================================================================


class TestForeignKeyRemap:
    """Raw engine rows → canonical ForeignKeyRow."""

    def test_sqlite_pragma_row(self) -> None:
        row = {"id": 0, "seq": 0, "table": "authors", "from": "author_id", "to": "id"}
        fk = sqlite_options.remap_foreign_key_row("posts", row)
        assert fk.constraint_name == "posts_0"
        assert fk.source_table == "posts"
        assert fk.source_column == "author_id"
        assert fk.target_table == "authors"
        assert fk.target_column == "id"
        assert fk.source_schema is None and fk.target_schema is None

    def test_sqlite_implied_target_column(self) -> None:
        row = {"id": 1, "seq": 0, "table": "authors", "from": "author_id", "to": None}
        assert sqlite_options.remap_foreign_key_row("posts", row).target_column == "id"

    def test_default_remap_canonical_labels(self) -> None:
        row = {
            "constraint_name": "fk_orders_customer",
            "source_schema": "sales",
            "source_table": "orders",
            "source_column": "customer_id",
            "target_schema": "crm",
            "target_table": "customers",
            "target_column": "id",
        }
        fk = postgres_options.remap_foreign_key_row("orders", row)
        assert fk.target_key(True) == "crm.customers"
        assert fk.target_key(False) == "customers"

    def test_default_remap_upper_case_labels(self) -> None:
        row = {
            "CONSTRAINT_NAME": "fk_1",
            "SOURCE_TABLE": "orders",
            "SOURCE_COLUMN": "customer_id",
            "TARGET_TABLE": "customers",
            "TARGET_COLUMN": "id",
        }
        fk = mysql_options.remap_foreign_key_row("orders", row)
        assert fk.constraint_name == "fk_1"
        assert fk.target_table == "customers"


class TestQueries:
    """Query builders only build text; a few properties are worth pinning."""

    def test_sqlite_pragma_escapes_backticks(self) -> None:
        assert sqlite_options.get_foreign_keys_query("we`ird", None) == (
            "PRAGMA foreign_key_list(`we``ird`);"
        )

    def test_sqlite_trigger_query_quotes(self) -> None:
        query = sqlite_options.count_trigger_query("o'brien", None)
        assert "trigger_count" in query
        assert "'o''brien'" in query

    def test_postgres_schema_filter(self) -> None:
        assert "'sales'" in postgres_options.get_foreign_keys_query("orders", "sales")
        assert "current_schema()" in postgres_options.get_foreign_keys_query("orders", None)

    def test_postgres_queries_are_bind_safe(self) -> None:
        # exec_driver_sql would treat these as parameter markers.
        query = postgres_options.get_foreign_keys_query("orders", "sales")
        assert "%" not in query
        assert "::" not in query

    def test_mysql_defaults_to_current_database(self) -> None:
        assert "DATABASE()" in mysql_options.count_trigger_query("orders", None)
        assert "'shop'" in mysql_options.show_views_query("shop")

    def test_mssql_trigger_query_qualifies_name(self) -> None:
        assert "OBJECT_ID('dbo.orders')" in mssql_options.count_trigger_query("orders", "dbo")

    @pytest.mark.parametrize(
        "provider", [sqlite_options, postgres_options, mysql_options, mssql_options]
    )
    def test_view_queries_select_table_name(self, provider) -> None:
        assert "table_name" in provider.show_views_query(None)
