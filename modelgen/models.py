"""
modelgen - Core Data Models
============================
Pydantic V2 models for the engine-agnostic schema metadata produced by
introspection, and for the configuration of a generation run.

Pipeline: Introspection (builder) → ``TableData`` → Synthesis (generator)
→ ``Dict[table_key, text]`` → Export.

``TableData`` is built fresh for every run, fully populated before the
generator starts, and treated as a read-only snapshot from then on.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from modelgen.diagnostics import ConfigurationError
from modelgen.utils import format_literal
from modelgen.validation import ValidationRule, parse_validation_rule

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class NamingConvention(str, Enum):
    """Naming transforms for class, attribute, and file names."""

    ORIGINAL = "o"
    SNAKE_CASE = "snake_case"
    CAMEL_CASE = "camelCase"
    PASCAL_CASE = "PascalCase"
    LOWER = "lower"
    UPPER = "UPPER"


class RelationType(str, Enum):
    """Association kinds derived from foreign keys."""

    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    BELONGS_TO_MANY = "belongs_to_many"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Table-key helpers
# ---------------------------------------------------------------------------


def make_table_key(table_name: str, schema_name: Optional[str] = None) -> str:
    """``schema.table`` when a schema is given, else the bare table name."""
    if schema_name:
        return f"{schema_name}.{table_name}"
    return table_name


def split_table_key(key: str, has_schema: bool) -> Tuple[Optional[str], str]:
    """
    Split a TableData key into ``(schema, table)``.

    Only dialects with schema namespacing treat a dot as a separator; for
    the others the whole key is the table name.
    """
    if has_schema and "." in key:
        schema, _, table = key.partition(".")
        return schema, table
    return None, key


# ---------------------------------------------------------------------------
# Column / key / index primitives
# ---------------------------------------------------------------------------


class ColumnDescriptor(BaseModel):
    """
    One introspected column.

    ``type`` is the declared engine type string (``VARCHAR(100)``,
    ``character varying``, ``nvarchar(max)``). It is the only source of
    truth for length bounds; no separate numeric length is tracked.
    """

    model_config = _SHARED_CONFIG

    type: str = Field(..., description="Declared engine type string.")
    allow_null: bool = Field(default=True, description="Column accepts NULL.")
    primary_key: bool = Field(default=False, description="Part of the primary key.")
    is_foreign_key: bool = Field(
        default=False, description="Participates in a foreign key."
    )
    unique: bool = Field(default=False, description="Single-column UNIQUE constraint.")
    default_value: Optional[str] = Field(
        default=None, description="Server default expression as reported by the engine."
    )
    extra: Optional[str] = Field(
        default=None, description="Engine extra info, e.g. MySQL 'auto_increment'."
    )
    is_identity: bool = Field(
        default=False, description="Engine-generated identity column."
    )
    comment: Optional[str] = Field(default=None, description="Column comment.")

    def as_record(self) -> Dict[str, Any]:
        """Key-metadata record consumed by ``DialectOptions`` predicates."""
        return {
            "type": self.type,
            "primary_key": self.primary_key,
            "default_value": self.default_value,
            "extra": self.extra,
            "is_identity": self.is_identity,
        }

    def __repr__(self) -> str:
        pk_flag: str = " PK" if self.primary_key else ""
        null_flag: str = " NULL" if self.allow_null else " NOT NULL"
        return f"<Column {self.type}{pk_flag}{null_flag}>"


class ForeignKeyRow(BaseModel):
    """Canonical, engine-agnostic foreign-key row (output of ``remap``)."""

    model_config = _SHARED_CONFIG

    constraint_name: Optional[str] = Field(default=None)
    source_schema: Optional[str] = Field(default=None)
    source_table: str = Field(..., min_length=1)
    source_column: str = Field(..., min_length=1)
    target_schema: Optional[str] = Field(default=None)
    target_table: str = Field(..., min_length=1)
    target_column: str = Field(..., min_length=1)

    def target_key(self, has_schema: bool) -> str:
        """TableData key of the referenced table."""
        return make_table_key(
            self.target_table, self.target_schema if has_schema else None
        )

    def __repr__(self) -> str:
        return (
            f"<FK {self.source_table}.{self.source_column} → "
            f"{self.target_table}.{self.target_column}>"
        )


class IndexDescriptor(BaseModel):
    """An index as reported by the engine."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1)
    columns: List[str] = Field(..., min_length=1)
    unique: bool = Field(default=False)
    primary: bool = Field(default=False)


class Relation(BaseModel):
    """
    One association edge, declared on ``source_table``.

    ``foreign_key`` is the FK column name on the child side. For
    ``belongs_to_many``, ``through`` is the junction table key.
    """

    model_config = _SHARED_CONFIG

    source_table: str = Field(..., min_length=1)
    target_table: str = Field(..., min_length=1)
    source_column: str = Field(..., min_length=1)
    target_column: str = Field(..., min_length=1)
    foreign_key: str = Field(..., min_length=1)
    relation_type: RelationType
    alias: str = Field(..., min_length=1)
    back_populates: Optional[str] = Field(default=None)
    through: Optional[str] = Field(default=None)

    @property
    def is_collection(self) -> bool:
        return self.relation_type in (
            RelationType.HAS_MANY.value,
            RelationType.BELONGS_TO_MANY.value,
        )

    def __repr__(self) -> str:
        return (
            f"<Relation {self.source_table}.{self.alias} "
            f"({self.relation_type}) → {self.target_table}>"
        )


# ---------------------------------------------------------------------------
# TableData: the normalized aggregate
# ---------------------------------------------------------------------------


class TableData(BaseModel):
    """
    Everything introspection discovered, keyed by raw table key.

    Keys are case- and schema-sensitive (``public.users`` and
    ``audit.users`` are distinct). Dict insertion order is the generation
    order.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=False)

    tables: Dict[str, Dict[str, ColumnDescriptor]] = Field(default_factory=dict)
    foreign_keys: Dict[str, List[ForeignKeyRow]] = Field(default_factory=dict)
    has_trigger_tables: Dict[str, bool] = Field(default_factory=dict)
    indexes: Dict[str, List[IndexDescriptor]] = Field(default_factory=dict)
    relations: List[Relation] = Field(default_factory=list)

    @property
    def table_keys(self) -> List[str]:
        return list(self.tables.keys())

    def foreign_key_for(self, table_key: str, column: str) -> Optional[ForeignKeyRow]:
        """First canonical FK whose source column is *column*."""
        for fk in self.foreign_keys.get(table_key, []):
            if fk.source_column == column:
                return fk
        return None

    def relations_for(self, table_key: str) -> List[Relation]:
        """Relations declared on *table_key*, in recorded order."""
        return [r for r in self.relations if r.source_table == table_key]

    def __repr__(self) -> str:
        return (
            f"<TableData {len(self.tables)} tables, "
            f"{sum(len(v) for v in self.foreign_keys.values())} FKs, "
            f"{len(self.relations)} relations>"
        )


# ---------------------------------------------------------------------------
# Generation configuration
# ---------------------------------------------------------------------------


class GenerationOptions(BaseModel):
    """
    Configuration for one generation run.

    An empty or absent ``validation_rules`` list disables validation
    injection entirely.
    """

    model_config = _SHARED_CONFIG

    # -- Dialect / introspection scope ----------------------------------------
    dialect: Optional[str] = Field(default=None, description="Engine name.")
    schema_name: Optional[str] = Field(
        default=None, alias="schema", description="Schema to introspect."
    )
    tables: Optional[List[str]] = Field(
        default=None, description="Only introspect these tables."
    )
    skip_tables: List[str] = Field(
        default_factory=list, description="Tables to leave out."
    )
    include_views: bool = Field(default=False, description="Also generate views.")

    # -- Naming -----------------------------------------------------------------
    singularize: bool = Field(
        default=False, description="Singularize table names for class names."
    )
    case_model: NamingConvention = Field(default=NamingConvention.PASCAL_CASE)
    case_property: NamingConvention = Field(default=NamingConvention.ORIGINAL)
    case_file: NamingConvention = Field(default=NamingConvention.SNAKE_CASE)

    # -- Rendering --------------------------------------------------------------
    indent_size: int = Field(default=4, ge=2, le=8)
    base_module: str = Field(
        default=".base", min_length=1, description="Module that provides ``Base``."
    )
    additional: Dict[str, Any] = Field(
        default_factory=dict, description="Extra __table_args__ entries."
    )
    include_relations: bool = Field(default=True)

    # -- Validation injection -----------------------------------------------------
    validation_rules: List[ValidationRule] = Field(default_factory=list)

    # -- Output -------------------------------------------------------------------
    directory: str = Field(default="./models")

    @field_validator("validation_rules", mode="before")
    @classmethod
    def _parse_rules(cls, value: Any) -> List[ValidationRule]:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise ConfigurationError(
                "INVALID_VALIDATION_RULE",
                f"validation_rules must be a list, got {type(value).__name__}.",
            )
        return [parse_validation_rule(item) for item in value]

    @field_validator("additional")
    @classmethod
    def _check_additional(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        for name, entry in value.items():
            try:
                format_literal(entry)
            except TypeError as exc:
                raise ConfigurationError(
                    "INVALID_OPTIONS",
                    f"additional[{name!r}] cannot be rendered as a literal: {exc}",
                    {"option": "additional", "key": name},
                ) from exc
        return value

    @property
    def validation_enabled(self) -> bool:
        return bool(self.validation_rules)

    @classmethod
    def load(
        cls, data: Union["GenerationOptions", Mapping[str, Any], None]
    ) -> "GenerationOptions":
        """
        Build options from a mapping, raising ``ConfigurationError`` instead
        of pydantic's ``ValidationError``.
        """
        if isinstance(data, GenerationOptions):
            return data
        try:
            return cls.model_validate(dict(data or {}))
        except ValidationError as exc:
            raise ConfigurationError(
                "INVALID_OPTIONS",
                f"Generation options are invalid: {exc}",
            ) from exc


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "NamingConvention",
    "RelationType",
    "make_table_key",
    "split_table_key",
    "ColumnDescriptor",
    "ForeignKeyRow",
    "IndexDescriptor",
    "Relation",
    "TableData",
    "GenerationOptions",
]

logger.debug("modelgen.models loaded — %d public symbols.", len(__all__))
