"""MySQL / MariaDB dialect provider."""

from __future__ import annotations

from typing import Any, FrozenSet, Optional

from modelgen.dialects.base import (
    DialectOptions,
    StringBounds,
    add_ticks,
    base_type_name,
    parse_declared_length,
)

_BOUNDED_TYPES: FrozenSet[str] = frozenset({
    "varchar",
    "char",
    "national varchar",
    "national char",
    "nvarchar",
    "nchar",
})

_TEXT_TYPES: FrozenSet[str] = frozenset({"tinytext", "text", "mediumtext", "longtext"})


class MysqlOptions(DialectOptions):
    """
    MySQL and MariaDB.

    A MySQL "schema" is a database, so table keys are never schema
    qualified; the schema name only narrows the ``information_schema``
    lookups. Without one, the connection's current database is used.
    """

    name = "mysql"
    has_schema = False

    @staticmethod
    def _database_filter(column: str, schema_name: Optional[str]) -> str:
        if schema_name:
            return f"{column} = {add_ticks(schema_name)}"
        return f"{column} = DATABASE()"

    def get_foreign_keys_query(self, table_name: str, schema_name: Optional[str]) -> str:
        return f"""
            SELECT K.CONSTRAINT_NAME AS constraint_name,
                   K.TABLE_SCHEMA AS source_schema,
                   K.TABLE_NAME AS source_table,
                   K.COLUMN_NAME AS source_column,
                   K.REFERENCED_TABLE_SCHEMA AS target_schema,
                   K.REFERENCED_TABLE_NAME AS target_table,
                   K.REFERENCED_COLUMN_NAME AS target_column
              FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE AS K
             WHERE K.TABLE_NAME = {add_ticks(table_name)}
               AND {self._database_filter("K.TABLE_SCHEMA", schema_name)}
               AND K.REFERENCED_TABLE_NAME IS NOT NULL
             ORDER BY K.CONSTRAINT_NAME, K.ORDINAL_POSITION"""

    def count_trigger_query(self, table_name: str, schema_name: Optional[str]) -> str:
        return (
            "SELECT COUNT(0) AS trigger_count "
            "FROM INFORMATION_SCHEMA.TRIGGERS "
            f"WHERE EVENT_OBJECT_TABLE = {add_ticks(table_name)} "
            f"AND {self._database_filter('EVENT_OBJECT_SCHEMA', schema_name)}"
        )

    def show_views_query(self, schema_name: Optional[str] = None) -> str:
        return (
            "SELECT TABLE_NAME AS table_name "
            "FROM INFORMATION_SCHEMA.VIEWS "
            f"WHERE {self._database_filter('TABLE_SCHEMA', schema_name)} "
            "ORDER BY TABLE_NAME"
        )

    def is_serial_key(self, record: Any) -> bool:
        if not self.is_primary_key(record):
            return False
        extra: Any = record.get("extra")
        if isinstance(extra, str) and "auto_increment" in extra.lower():
            return True
        return record.get("is_identity") is True

    def get_string_bounds(self, declared_type: Optional[str]) -> Optional[StringBounds]:
        if not declared_type:
            return None
        name: str = base_type_name(declared_type)
        if name in _BOUNDED_TYPES:
            return StringBounds(0, parse_declared_length(declared_type))
        if name in _TEXT_TYPES:
            # TEXT(n) only picks the storage class; treat the family as unbounded.
            return StringBounds(0, None)
        return None


mysql_options: MysqlOptions = MysqlOptions()
