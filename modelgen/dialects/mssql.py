"""Microsoft SQL Server dialect provider."""

from __future__ import annotations

from typing import Any, FrozenSet, Optional

from modelgen.dialects.base import (
    DialectOptions,
    StringBounds,
    add_ticks,
    base_type_name,
    has_max_length,
    parse_declared_length,
)

_BOUNDED_TYPES: FrozenSet[str] = frozenset({"varchar", "nvarchar", "char", "nchar"})
_UNBOUNDED_TYPES: FrozenSet[str] = frozenset({"text", "ntext"})


class MssqlOptions(DialectOptions):
    """SQL Server: schema-qualified tables, identity columns, ``(max)`` lengths."""

    name = "mssql"
    has_schema = True

    def get_foreign_keys_query(self, table_name: str, schema_name: Optional[str]) -> str:
        schema_filter: str = (
            f"AND SCHEMA_NAME(src.schema_id) = {add_ticks(schema_name)}"
            if schema_name
            else "AND src.schema_id = SCHEMA_ID()"
        )
        return f"""
            SELECT fk.name AS constraint_name,
                   SCHEMA_NAME(src.schema_id) AS source_schema,
                   src.name AS source_table,
                   src_col.name AS source_column,
                   SCHEMA_NAME(tgt.schema_id) AS target_schema,
                   tgt.name AS target_table,
                   tgt_col.name AS target_column
              FROM sys.foreign_keys AS fk
             INNER JOIN sys.foreign_key_columns AS fkc
                ON fkc.constraint_object_id = fk.object_id
             INNER JOIN sys.tables AS src ON src.object_id = fkc.parent_object_id
             INNER JOIN sys.columns AS src_col
                ON src_col.object_id = fkc.parent_object_id
               AND src_col.column_id = fkc.parent_column_id
             INNER JOIN sys.tables AS tgt ON tgt.object_id = fkc.referenced_object_id
             INNER JOIN sys.columns AS tgt_col
                ON tgt_col.object_id = fkc.referenced_object_id
               AND tgt_col.column_id = fkc.referenced_column_id
             WHERE src.name = {add_ticks(table_name)}
               {schema_filter}
             ORDER BY fk.name, fkc.constraint_column_id"""

    def count_trigger_query(self, table_name: str, schema_name: Optional[str]) -> str:
        qualified: str = f"{schema_name}.{table_name}" if schema_name else table_name
        return (
            "SELECT COUNT(0) AS trigger_count "
            "FROM sys.triggers AS tr "
            f"WHERE tr.parent_id = OBJECT_ID({add_ticks(qualified)})"
        )

    def show_views_query(self, schema_name: Optional[str] = None) -> str:
        schema_filter: str = (
            f"WHERE TABLE_SCHEMA = {add_ticks(schema_name)} " if schema_name else ""
        )
        return (
            "SELECT TABLE_NAME AS table_name, TABLE_SCHEMA AS table_schema "
            "FROM INFORMATION_SCHEMA.VIEWS "
            f"{schema_filter}"
            "ORDER BY TABLE_SCHEMA, TABLE_NAME"
        )

    def is_serial_key(self, record: Any) -> bool:
        if not self.is_primary_key(record):
            return False
        return record.get("is_identity") is True

    def get_string_bounds(self, declared_type: Optional[str]) -> Optional[StringBounds]:
        if not declared_type:
            return None
        name: str = base_type_name(declared_type)
        if name in _BOUNDED_TYPES:
            if has_max_length(declared_type):
                return StringBounds(0, None)
            return StringBounds(0, parse_declared_length(declared_type))
        if name in _UNBOUNDED_TYPES:
            return StringBounds(0, None)
        return None


mssql_options: MssqlOptions = MssqlOptions()
