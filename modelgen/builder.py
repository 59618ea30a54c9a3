"""
modelgen - Introspection Driver
================================
Reads a live database through one SQLAlchemy connection and populates a
fresh ``TableData``.

    table names / columns / PK / unique / indexes   → sqlalchemy.inspect()
    views                                           → dialect.show_views_query()
    foreign keys                                    → dialect.get_foreign_keys_query()
                                                      + dialect.remap_foreign_key_row()
    trigger flags                                   → dialect.count_trigger_query()
    relations                                       → relater.derive_relations()

The dialect queries are the ones a provider is responsible for; everything
the inspector already normalises across engines is taken from it.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

from sqlalchemy import inspect
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.engine.interfaces import Dialect
from sqlalchemy.engine.reflection import Inspector
from sqlalchemy.exc import CompileError, SAWarning, SQLAlchemyError

from modelgen.diagnostics import Diagnostics, IntrospectionError
from modelgen.dialects import get_dialect_options_for_engine, require_dialect_options
from modelgen.dialects.base import DialectOptions, row_value
from modelgen.models import (
    ColumnDescriptor,
    ForeignKeyRow,
    IndexDescriptor,
    TableData,
    make_table_key,
)
from modelgen.relater import derive_relations
from modelgen.utils import Timer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.builder")


def declared_type_string(column_type: Any, dialect: Dialect) -> str:
    """
    Render a reflected column type back to its engine spelling
    (``VARCHAR(100)``, ``CHARACTER VARYING(255)``).
    """
    try:
        return str(column_type.compile(dialect=dialect))
    except (CompileError, NotImplementedError):
        # NullType and some engine-specific types cannot be compiled.
        logger.debug("Could not compile reflected type %r.", column_type)
        return type(column_type).__name__.upper()


class TableDataBuilder:
    """
    Builds ``TableData`` from a SQLAlchemy engine.

    Usage::

        engine = create_engine("sqlite:///app.db")
        table_data = TableDataBuilder(engine, "sqlite").build()
    """

    def __init__(
        self,
        engine: Engine,
        dialect: Union[DialectOptions, str, None] = None,
        *,
        schema: Optional[str] = None,
        tables: Optional[Sequence[str]] = None,
        skip_tables: Optional[Sequence[str]] = None,
        include_views: bool = False,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        self._engine: Engine = engine
        if isinstance(dialect, DialectOptions):
            self._dialect: DialectOptions = dialect
        elif dialect is not None:
            self._dialect = require_dialect_options(dialect)
        else:
            detected: Optional[DialectOptions] = get_dialect_options_for_engine(engine)
            self._dialect = detected or require_dialect_options(engine.dialect.name)
        self._schema: Optional[str] = schema
        self._tables: Optional[Set[str]] = set(tables) if tables else None
        self._skip_tables: Set[str] = set(skip_tables or ())
        self._include_views: bool = include_views
        self.diagnostics: Diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    # ===================================================================
    # Public API
    # ===================================================================

    def build(self) -> TableData:
        """
        Introspect the database.

        Raises:
            IntrospectionError: the database could not be read.
        """
        with Timer("introspection"):
            try:
                with self._engine.connect() as conn:
                    table_data: TableData = self._build(conn)
            except SQLAlchemyError as exc:
                raise IntrospectionError(
                    "INTROSPECTION_FAILED",
                    f"Could not read database schema: {exc}",
                    {"dialect": self._dialect.name, "schema": self._schema},
                ) from exc

        logger.info("Introspected %r.", table_data)
        return table_data

    # ===================================================================
    # Steps
    # ===================================================================

    def _build(self, conn: Connection) -> TableData:
        inspector: Inspector = inspect(conn)
        schema: Optional[str] = self._schema
        if schema is None and self._dialect.has_schema:
            schema = inspector.default_schema_name

        names: List[str] = list(inspector.get_table_names(schema=schema))
        if self._include_views:
            for view in self._view_names(conn, schema):
                if view not in names:
                    names.append(view)

        table_data: TableData = TableData()
        key_schema: Optional[str] = schema if self._dialect.has_schema else None

        with warnings.catch_warnings():
            warnings.filterwarnings("ignore", category=SAWarning, message="Did not recognize type")
            for name in names:
                key: str = make_table_key(name, key_schema)
                if not self._is_selected(name, key):
                    logger.debug("Skipping table %s.", key)
                    continue
                table_data.tables[key] = self._read_columns(inspector, conn, name, schema)
                table_data.indexes[key] = self._read_indexes(inspector, name, schema)
                table_data.foreign_keys[key] = self._read_foreign_keys(conn, name, schema)
                table_data.has_trigger_tables[key] = self._has_triggers(conn, name, schema)

        self._resolve_implied_targets(table_data)
        for key, fks in table_data.foreign_keys.items():
            columns: Dict[str, ColumnDescriptor] = table_data.tables[key]
            for fk in fks:
                if fk.source_column in columns:
                    columns[fk.source_column].is_foreign_key = True

        table_data.relations = derive_relations(
            table_data, self._dialect.has_schema, self.diagnostics
        )
        return table_data

    def _is_selected(self, name: str, key: str) -> bool:
        if name in self._skip_tables or key in self._skip_tables:
            return False
        if self._tables is None:
            return True
        return name in self._tables or key in self._tables

    def _view_names(self, conn: Connection, schema: Optional[str]) -> List[str]:
        rows: Iterable[Mapping[str, Any]] = conn.exec_driver_sql(
            self._dialect.show_views_query(schema)
        ).mappings()
        return [row_value(row, "table_name") for row in rows]

    def _read_columns(
        self, inspector: Inspector, conn: Connection, name: str, schema: Optional[str]
    ) -> Dict[str, ColumnDescriptor]:
        primary: List[str] = list(
            (inspector.get_pk_constraint(name, schema=schema) or {}).get(
                "constrained_columns"
            )
            or []
        )
        unique: Set[str] = set()
        try:
            for constraint in inspector.get_unique_constraints(name, schema=schema):
                if len(constraint.get("column_names") or []) == 1:
                    unique.add(constraint["column_names"][0])
        except NotImplementedError:
            pass

        columns: Dict[str, ColumnDescriptor] = {}
        for column in inspector.get_columns(name, schema=schema):
            column_name: str = column["name"]
            default: Any = column.get("default")
            columns[column_name] = ColumnDescriptor(
                type=declared_type_string(column["type"], conn.dialect),
                allow_null=bool(column.get("nullable", True)),
                primary_key=column_name in primary,
                unique=column_name in unique,
                default_value=str(default) if default is not None else None,
                extra="auto_increment" if column.get("autoincrement") is True else None,
                is_identity=bool(column.get("identity")),
                comment=column.get("comment"),
            )
        return columns

    @staticmethod
    def _read_indexes(
        inspector: Inspector, name: str, schema: Optional[str]
    ) -> List[IndexDescriptor]:
        indexes: List[IndexDescriptor] = []
        try:
            reflected: List[Dict[str, Any]] = list(inspector.get_indexes(name, schema=schema))
        except NotImplementedError:
            return indexes
        for index in reflected:
            # Expression indexes report None for their computed columns.
            column_names: List[str] = [c for c in index.get("column_names") or [] if c]
            if not index.get("name") or not column_names:
                continue
            indexes.append(
                IndexDescriptor(
                    name=index["name"],
                    columns=column_names,
                    unique=bool(index.get("unique")),
                )
            )
        return indexes

    def _read_foreign_keys(
        self, conn: Connection, name: str, schema: Optional[str]
    ) -> List[ForeignKeyRow]:
        query: str = self._dialect.get_foreign_keys_query(name, schema)
        rows: List[Mapping[str, Any]] = list(conn.exec_driver_sql(query).mappings())
        return [self._dialect.remap_foreign_key_row(name, dict(row)) for row in rows]

    def _has_triggers(self, conn: Connection, name: str, schema: Optional[str]) -> bool:
        count: Any = conn.exec_driver_sql(
            self._dialect.count_trigger_query(name, schema)
        ).scalar()
        return bool(count) and int(count) > 0

    def _resolve_implied_targets(self, table_data: TableData) -> None:
        """
        Point foreign keys that name no existing target column at the
        target's single-column primary key (SQLite reports NULL there).
        """
        for key, fks in table_data.foreign_keys.items():
            for position, fk in enumerate(fks):
                target: Optional[Dict[str, ColumnDescriptor]] = table_data.tables.get(
                    fk.target_key(self._dialect.has_schema)
                )
                if target is None or fk.target_column in target:
                    continue
                primary: List[str] = [n for n, c in target.items() if c.primary_key]
                if len(primary) == 1:
                    fks[position] = fk.model_copy(update={"target_column": primary[0]})


__all__: List[str] = ["TableDataBuilder", "declared_type_string"]
