"""SQLite dialect provider."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from modelgen.dialects.base import (
    DialectOptions,
    StringBounds,
    add_ticks,
    parse_declared_length,
)
from modelgen.models import ForeignKeyRow

# SQLite type affinity: any declared type containing CHAR, CLOB or TEXT is text.
_CHAR_AFFINITY_RE: re.Pattern[str] = re.compile(r"CHAR|STRING", re.IGNORECASE)
_TEXT_AFFINITY_RE: re.Pattern[str] = re.compile(r"CLOB|TEXT", re.IGNORECASE)


class SqliteOptions(DialectOptions):
    """
    SQLite has no schemas and a dynamic type system.

    ``VARCHAR(n)`` / ``CHAR(n)`` lengths are not enforced by SQLite, but the
    declared length is still reported so the validation layer can apply it
    at the application level.
    """

    name = "sqlite"
    has_schema = False

    def get_foreign_keys_query(self, table_name: str, schema_name: Optional[str]) -> str:
        # PRAGMAs cannot be used as subqueries on older SQLite versions, so
        # the raw pragma rows are normalized in remap_foreign_key_row().
        escaped: str = table_name.replace("`", "``")
        return f"PRAGMA foreign_key_list(`{escaped}`);"

    def remap_foreign_key_row(
        self, table_name: str, row: Mapping[str, Any]
    ) -> ForeignKeyRow:
        """
        Pragma rows carry ``id``, ``seq``, ``table``, ``from``, ``to``;
        ``to`` is NULL when the parent's primary key is implied.
        """
        target_column: Any = row.get("to") or "id"
        return ForeignKeyRow(
            constraint_name=f"{table_name}_{row.get('id')}",
            source_schema=None,
            source_table=table_name,
            source_column=row.get("from"),
            target_schema=None,
            target_table=row.get("table"),
            target_column=target_column,
        )

    def count_trigger_query(self, table_name: str, schema_name: Optional[str]) -> str:
        return (
            "SELECT COUNT(0) AS trigger_count "
            "FROM sqlite_master "
            "WHERE type = 'trigger' "
            f"AND tbl_name = {add_ticks(table_name)}"
        )

    def show_views_query(self, schema_name: Optional[str] = None) -> str:
        return "SELECT name AS table_name FROM sqlite_master WHERE type = 'view'"

    def is_serial_key(self, record: Any) -> bool:
        """An ``INTEGER PRIMARY KEY`` column is an alias of the rowid."""
        if not self.is_primary_key(record):
            return False
        declared: Any = record.get("type")
        return isinstance(declared, str) and declared.strip().upper() == "INTEGER"

    def get_string_bounds(self, declared_type: Optional[str]) -> Optional[StringBounds]:
        if not declared_type:
            return None
        if _CHAR_AFFINITY_RE.search(declared_type):
            return StringBounds(0, parse_declared_length(declared_type))
        if _TEXT_AFFINITY_RE.search(declared_type):
            return StringBounds(0, None)
        return None


sqlite_options: SqliteOptions = SqliteOptions()
