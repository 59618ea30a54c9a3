"""
Dialect provider base class.

Each supported engine implements the same fixed capability set, so the
generator and the validation resolver never branch on the engine name.
Providers are stateless: query builders only *build* SQL text, and the
predicates are pure functions of their inputs.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Mapping, NamedTuple, Optional

from modelgen.models import ForeignKeyRow

_LENGTH_RE: re.Pattern[str] = re.compile(r"\(\s*(\d+)\s*(?:,\s*\d+\s*)?\)")
_MAX_LENGTH_RE: re.Pattern[str] = re.compile(r"\(\s*max\s*\)", re.IGNORECASE)
_ARRAY_SUFFIX_RE: re.Pattern[str] = re.compile(r"(?:\[\s*\d*\s*\])+\s*$")


class StringBounds(NamedTuple):
    """Character-length bounds; ``max`` is None when the type is unbounded."""

    min: int
    max: Optional[int]


def add_ticks(value: Optional[str]) -> str:
    """Render *value* as a single-quoted SQL literal (``NULL`` for None)."""
    if value is None:
        return "NULL"
    return "'" + value.replace("'", "''") + "'"


def parse_declared_length(declared_type: str) -> Optional[int]:
    """``VARCHAR(100)`` → 100, ``nvarchar(max)`` / ``TEXT`` → None."""
    match: Optional[re.Match[str]] = _LENGTH_RE.search(declared_type)
    if match is None:
        return None
    return int(match.group(1))


def has_max_length(declared_type: str) -> bool:
    """True for MSSQL-style ``(max)`` lengths."""
    return _MAX_LENGTH_RE.search(declared_type) is not None


def array_element_type(declared_type: str) -> Optional[str]:
    """
    Element type of an array declaration, or None for scalar types.

    ``VARCHAR(255)[]`` → ``VARCHAR(255)``, ``integer[][]`` → ``integer``.
    """
    stripped: str = declared_type.strip()
    match: Optional[re.Match[str]] = _ARRAY_SUFFIX_RE.search(stripped)
    if match is None:
        return None
    return stripped[: match.start()].strip()


def base_type_name(declared_type: str) -> str:
    """
    Lower-cased type name without length or modifiers.

    ``character varying(255)`` → ``character varying``,
    ``VARCHAR(100) CHARACTER SET utf8`` → ``varchar``.
    """
    name: str = declared_type.strip().lower()
    name = name.split("(", 1)[0]
    name = re.split(r"\s+(?:character set|charset|collate|unsigned|zerofill)\b", name)[0]
    return " ".join(name.split())


def row_value(row: Mapping[str, Any], *names: str) -> Any:
    """First present value among *names*, tolerant of upper-case column labels."""
    for name in names:
        if name in row:
            return row[name]
        upper: str = name.upper()
        if upper in row:
            return row[upper]
    return None


class DialectOptions(ABC):
    """
    Engine-specific introspection queries and type semantics.

    Every provider implements all operations, even where one is a no-op
    for the engine (schemaless engines report ``None`` schema names).
    """

    #: Engine name, as used in the registry.
    name: str = ""
    #: Whether the engine namespaces tables in schemas.
    has_schema: bool = False

    # -- Query builders -------------------------------------------------------

    @abstractmethod
    def get_foreign_keys_query(self, table_name: str, schema_name: Optional[str]) -> str:
        """SQL returning the foreign keys of a table."""

    @abstractmethod
    def count_trigger_query(self, table_name: str, schema_name: Optional[str]) -> str:
        """SQL returning a single ``trigger_count`` value for a table."""

    @abstractmethod
    def show_views_query(self, schema_name: Optional[str] = None) -> str:
        """SQL returning the names of all views (column ``table_name``)."""

    # -- Row transforms / predicates ------------------------------------------

    def remap_foreign_key_row(
        self, table_name: str, row: Mapping[str, Any]
    ) -> ForeignKeyRow:
        """
        Normalize one row of :meth:`get_foreign_keys_query` into the
        canonical shape. Engines whose query already selects canonical
        column labels can rely on this default.
        """
        return ForeignKeyRow(
            constraint_name=row_value(row, "constraint_name"),
            source_schema=row_value(row, "source_schema"),
            source_table=row_value(row, "source_table") or table_name,
            source_column=row_value(row, "source_column"),
            target_schema=row_value(row, "target_schema"),
            target_table=row_value(row, "target_table"),
            target_column=row_value(row, "target_column"),
        )

    def is_primary_key(self, record: Any) -> bool:
        """True when *record* describes a primary-key column or constraint."""
        if not isinstance(record, Mapping):
            return False
        if record.get("primary_key") is True:
            return True
        constraint_type: Any = record.get("constraint_type")
        return isinstance(constraint_type, str) and constraint_type.upper() == "PRIMARY KEY"

    @abstractmethod
    def is_serial_key(self, record: Any) -> bool:
        """True for a primary key whose values the engine generates on insert."""

    # -- Type semantics ---------------------------------------------------------

    @abstractmethod
    def get_string_bounds(self, declared_type: Optional[str]) -> Optional[StringBounds]:
        """Character bounds of *declared_type*, or None when not a string type."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
