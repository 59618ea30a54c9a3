"""PostgreSQL dialect provider."""

from __future__ import annotations

from typing import Any, FrozenSet, Optional

from modelgen.dialects.base import (
    DialectOptions,
    StringBounds,
    add_ticks,
    array_element_type,
    base_type_name,
    parse_declared_length,
)

_BOUNDED_TYPES: FrozenSet[str] = frozenset({
    "character varying",
    "varchar",
    "character",
    "char",
    "bpchar",
    "nchar",
    "national character",
    "national character varying",
})

_UNBOUNDED_TYPES: FrozenSet[str] = frozenset({"text", "citext", "name"})


class PostgresOptions(DialectOptions):
    """PostgreSQL: schema-qualified tables, sequences and identity columns."""

    name = "postgres"
    has_schema = True

    def get_foreign_keys_query(self, table_name: str, schema_name: Optional[str]) -> str:
        schema_filter: str = (
            f"AND src_ns.nspname = {add_ticks(schema_name)}"
            if schema_name
            else "AND src_ns.nspname = current_schema()"
        )
        return f"""
            SELECT con.conname AS constraint_name,
                   src_ns.nspname AS source_schema,
                   src.relname AS source_table,
                   src_att.attname AS source_column,
                   tgt_ns.nspname AS target_schema,
                   tgt.relname AS target_table,
                   tgt_att.attname AS target_column
              FROM pg_catalog.pg_constraint con
              JOIN LATERAL unnest(con.conkey, con.confkey)
                   WITH ORDINALITY AS cols(src_attnum, tgt_attnum, position) ON TRUE
              JOIN pg_catalog.pg_class src ON src.oid = con.conrelid
              JOIN pg_catalog.pg_namespace src_ns ON src_ns.oid = src.relnamespace
              JOIN pg_catalog.pg_attribute src_att
                ON src_att.attrelid = con.conrelid AND src_att.attnum = cols.src_attnum
              JOIN pg_catalog.pg_class tgt ON tgt.oid = con.confrelid
              JOIN pg_catalog.pg_namespace tgt_ns ON tgt_ns.oid = tgt.relnamespace
              JOIN pg_catalog.pg_attribute tgt_att
                ON tgt_att.attrelid = con.confrelid AND tgt_att.attnum = cols.tgt_attnum
             WHERE con.contype = 'f'
               AND src.relname = {add_ticks(table_name)}
               {schema_filter}
             ORDER BY con.conname, cols.position"""

    def count_trigger_query(self, table_name: str, schema_name: Optional[str]) -> str:
        schema_filter: str = (
            f"AND event_object_schema = {add_ticks(schema_name)}"
            if schema_name
            else "AND event_object_schema = current_schema()"
        )
        return (
            "SELECT COUNT(0) AS trigger_count "
            "FROM information_schema.triggers "
            f"WHERE event_object_table = {add_ticks(table_name)} "
            f"{schema_filter}"
        )

    def show_views_query(self, schema_name: Optional[str] = None) -> str:
        schema_filter: str = (
            f"table_schema = {add_ticks(schema_name)}"
            if schema_name
            else "table_schema NOT IN ('pg_catalog', 'information_schema')"
        )
        return (
            "SELECT table_name, table_schema "
            "FROM information_schema.views "
            f"WHERE {schema_filter} "
            "ORDER BY table_schema, table_name"
        )

    def is_serial_key(self, record: Any) -> bool:
        """``serial`` columns default to ``nextval(...)``; identity columns are flagged."""
        if not self.is_primary_key(record):
            return False
        if record.get("is_identity") is True:
            return True
        default: Any = record.get("default_value")
        return isinstance(default, str) and default.strip().lower().startswith("nextval(")

    def get_string_bounds(self, declared_type: Optional[str]) -> Optional[StringBounds]:
        if not declared_type:
            return None
        if array_element_type(declared_type) is not None:
            return None
        name: str = base_type_name(declared_type)
        if name in _BOUNDED_TYPES:
            return StringBounds(0, parse_declared_length(declared_type))
        if name in _UNBOUNDED_TYPES:
            return StringBounds(0, None)
        return None


postgres_options: PostgresOptions = PostgresOptions()
