"""
modelgen - Code Synthesis Engine
=================================
Transforms a fully populated ``TableData`` into one SQLAlchemy 2.0
declarative model module per table.

    TableData + DialectOptions + GenerationOptions → Dict[table_key, text]

Per table the emitted module holds, in order:
    1. a module docstring naming the raw table key
    2. a sorted import block
    3. one ``class X(Base)`` with ``__tablename__`` / ``__table_args__``
    4. one ``mapped_column()`` per column, in declared order
    5. one ``relationship()`` per recorded relation of the table

String-length validation is attached through the column's ``info``
mapping: ``info={"validate": {"len": {"args": [min, max], "msg": ...}}}``.

**Determinism:** the same inputs always produce byte-identical output.
Names are computed once up front; iteration follows ``TableData``
insertion order; import blocks are sorted.

The input ``TableData`` is never mutated. Per-table problems (unclassified
types, dangling foreign keys, unknown message placeholders) are recorded as
diagnostics and generation continues.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Set, Tuple, Union

from modelgen.diagnostics import Diagnostics
from modelgen.dialects import require_dialect_options
from modelgen.dialects.base import DialectOptions
from modelgen.models import (
    ColumnDescriptor,
    ForeignKeyRow,
    GenerationOptions,
    IndexDescriptor,
    Relation,
    RelationType,
    TableData,
    make_table_key,
    split_table_key,
)
from modelgen.typemap import FieldType, resolve_field_type
from modelgen.utils import (
    apply_naming,
    build_import_block,
    count_lines,
    format_literal,
    quote_string,
    safe_class_name,
    safe_identifier,
    to_singular,
)
from modelgen.validation import ColumnContext, ValidationConstraint, resolve_constraints

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.generator")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_MAX_LINE_LENGTH: int = 99

# Names every generated module may import; a model class must not shadow them.
_IMPORTED_NAMES: FrozenSet[str] = frozenset({
    "Any", "Base", "BigInteger", "Boolean", "CHAR", "Date", "DateTime",
    "Decimal", "Dict", "Enum", "Float", "ForeignKey", "Index", "Integer",
    "Interval", "JSON", "LargeBinary", "List", "Mapped", "Numeric",
    "Optional", "SmallInteger", "String", "Text", "Time", "UUID", "Uuid",
    "date", "datetime", "mapped_column", "relationship", "text", "time",
    "timedelta",
})

OptionsLike = Union[GenerationOptions, Mapping[str, Any], None]
DialectLike = Union[DialectOptions, str]


class ModelGenerator:
    """
    Renders model source text for every table in a ``TableData``.

    Usage::

        generator = ModelGenerator(table_data, sqlite_options, {"validation_rules": [...]})
        texts = generator.generate_text()
        for code in generator.diagnostics.codes():
            ...
    """

    def __init__(
        self,
        table_data: TableData,
        dialect: DialectLike,
        options: OptionsLike = None,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        self._table_data: TableData = table_data
        self._dialect: DialectOptions = (
            dialect if isinstance(dialect, DialectOptions) else require_dialect_options(dialect)
        )
        self._options: GenerationOptions = GenerationOptions.load(options)
        self.diagnostics: Diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self._indent: str = " " * self._options.indent_size

        self._class_names: Dict[str, str] = {}
        self._column_attrs: Dict[str, Dict[str, str]] = {}
        self._relation_attrs: Dict[Tuple[str, str], str] = {}

        logger.debug(
            "ModelGenerator initialised (dialect=%s, tables=%d, validation=%s).",
            self._dialect.name,
            len(table_data.tables),
            self._options.validation_enabled,
        )

    # ===================================================================
    # Public API
    # ===================================================================

    def generate_text(self) -> Dict[str, str]:
        """Return ``{raw table key: model source}`` in ``TableData`` order."""
        self._assign_names()

        texts: Dict[str, str] = {}
        for key in self._table_data.tables:
            texts[key] = self._render_table(key)
            logger.debug(
                "Generated model for '%s': %d lines.", key, count_lines(texts[key])
            )

        logger.info(
            "Generated %d model(s); %s",
            len(texts),
            self.diagnostics.summary(),
        )
        return texts

    @property
    def class_names(self) -> Dict[str, str]:
        """``{table key: model class name}`` from the last ``generate_text()``."""
        return dict(self._class_names)

    # ===================================================================
    # Naming
    # ===================================================================

    def _split(self, key: str) -> Tuple[Optional[str], str]:
        return split_table_key(key, self._dialect.has_schema)

    def _model_name(self, table_name: str) -> str:
        base: str = to_singular(table_name) if self._options.singularize else table_name
        return safe_class_name(apply_naming(base, self._options.case_model))

    def _attribute_name(self, name: str) -> str:
        return safe_identifier(apply_naming(name, self._options.case_property))

    @staticmethod
    def _unique(base: str, taken: Set[str]) -> str:
        candidate: str = base
        counter: int = 2
        while candidate in taken:
            candidate = f"{base}{counter}"
            counter += 1
        taken.add(candidate)
        return candidate

    def _assign_names(self) -> None:
        """Compute every class and attribute name before rendering anything."""
        self._class_names.clear()
        self._column_attrs.clear()
        self._relation_attrs.clear()

        used_classes: Set[str] = set(_IMPORTED_NAMES)
        for key in self._table_data.tables:
            schema, table = self._split(key)
            name: str = self._model_name(table)
            if name in used_classes and schema:
                name = self._model_name(f"{schema}_{table}")
            if name in _IMPORTED_NAMES:
                name = f"{name}Model"
            self._class_names[key] = self._unique(name, used_classes)

        taken_per_table: Dict[str, Set[str]] = {}
        for key, columns in self._table_data.tables.items():
            taken: Set[str] = taken_per_table.setdefault(key, set())
            self._column_attrs[key] = {
                column: self._unique(self._attribute_name(column), taken)
                for column in columns
            }

        for relation in self._table_data.relations:
            if relation.source_table not in self._table_data.tables:
                if self._options.include_relations:
                    self.diagnostics.add_warning(
                        "DANGLING_RELATION",
                        f"Relation {relation.source_table}.{relation.alias} starts at a table "
                        f"that is not being generated; skipped.",
                        {
                            "table": relation.source_table,
                            "alias": relation.alias,
                            "target": relation.target_table,
                            "through": relation.through,
                        },
                    )
                continue
            taken = taken_per_table[relation.source_table]
            self._relation_attrs[(relation.source_table, relation.alias)] = self._unique(
                self._attribute_name(relation.alias), taken
            )

    # ===================================================================
    # Rendering
    # ===================================================================

    def _render_table(self, key: str) -> str:
        columns: Dict[str, ColumnDescriptor] = self._table_data.tables[key]
        schema, table = self._split(key)
        class_name: str = self._class_names[key]
        imports: Dict[str, Set[str]] = {
            "sqlalchemy.orm": {"Mapped", "mapped_column"},
            self._options.base_module: {"Base"},
        }

        if not any(self._dialect.is_primary_key(c.as_record()) for c in columns.values()):
            self.diagnostics.add_warning(
                "NO_PRIMARY_KEY",
                f"Table {key} has no primary key; SQLAlchemy cannot map it as is.",
                {"table": key},
            )

        body: List[str] = []
        body.append(f"{self._indent}__tablename__ = {quote_string(table)}")
        body.extend(self._render_table_args(key, schema, imports))
        body.append("")

        for column_name, column in columns.items():
            body.extend(self._render_column(key, column_name, column, imports))

        relation_lines: List[str] = []
        if self._options.include_relations:
            for relation in self._table_data.relations_for(key):
                relation_lines.extend(self._render_relation(key, relation, imports))
        if relation_lines:
            body.append("")
            body.extend(relation_lines)

        lines: List[str] = [
            '"""',
            f"SQLAlchemy model for table: {key}",
            "Generated by modelgen; manual edits will be overwritten.",
            '"""',
            "",
            "from __future__ import annotations",
            "",
            build_import_block(imports),
            "",
            "",
            f"class {class_name}(Base):",
        ]
        lines.extend(body)
        lines.append("")
        return "\n".join(lines)

    def _render_table_args(
        self, key: str, schema: Optional[str], imports: Dict[str, Set[str]]
    ) -> List[str]:
        positional: List[str] = []
        for index in self._table_data.indexes.get(key, []):
            if index.primary:
                continue
            positional.append(self._render_index(index))
            imports.setdefault("sqlalchemy", set()).add("Index")

        keywords: Dict[str, Any] = {}
        if schema:
            keywords["schema"] = schema
        if self._table_data.has_trigger_tables.get(key, False):
            # RETURNING is unreliable on tables with triggers.
            keywords["implicit_returning"] = False
        for name, value in self._options.additional.items():
            keywords.setdefault(name, value)

        if not positional and not keywords:
            return []
        if not positional:
            return [f"{self._indent}__table_args__ = {format_literal(keywords)}"]

        lines: List[str] = [f"{self._indent}__table_args__ = ("]
        for entry in positional:
            lines.append(f"{self._indent * 2}{entry},")
        if keywords:
            lines.append(f"{self._indent * 2}{format_literal(keywords)},")
        lines.append(f"{self._indent})")
        return lines

    @staticmethod
    def _render_index(index: IndexDescriptor) -> str:
        parts: List[str] = [quote_string(index.name)]
        parts.extend(quote_string(c) for c in index.columns)
        if index.unique:
            parts.append("unique=True")
        return f"Index({', '.join(parts)})"

    # -- Columns ----------------------------------------------------------

    def _render_column(
        self,
        key: str,
        column_name: str,
        column: ColumnDescriptor,
        imports: Dict[str, Set[str]],
    ) -> List[str]:
        attr: str = self._column_attrs[key][column_name]
        field_type: FieldType = resolve_field_type(column.type)
        if not field_type.classified:
            self.diagnostics.add_warning(
                "UNCLASSIFIED_TYPE",
                f"{key}.{column_name}: declared type {column.type!r} is not recognised; "
                f"rendered as {field_type.sa_type}.",
                {"table": key, "column": column_name, "type": column.type},
            )
        for module, names in field_type.imports.items():
            imports.setdefault(module, set()).update(names)

        record: Dict[str, Any] = column.as_record()
        is_pk: bool = self._dialect.is_primary_key(record)
        # Only a single-column key can be generated by the engine.
        is_serial: bool = self._dialect.is_serial_key(record) and self._pk_count(key) == 1

        args: List[str] = []
        if attr != column_name:
            args.append(quote_string(column_name))
        args.append(field_type.sa_type)

        foreign_key: Optional[str] = self._foreign_key_target(key, column_name)
        if foreign_key is not None:
            args.append(f"ForeignKey({quote_string(foreign_key)})")
            imports.setdefault("sqlalchemy", set()).add("ForeignKey")

        if is_pk:
            args.append("primary_key=True")
        if is_serial:
            args.append("autoincrement=True")
        if not is_pk:
            args.append(f"nullable={column.allow_null}")
        if column.unique and not is_pk:
            args.append("unique=True")
        if column.default_value is not None and not is_serial:
            args.append(f"server_default=text({quote_string(column.default_value)})")
            imports.setdefault("sqlalchemy", set()).add("text")
        if column.comment:
            args.append(f"comment={quote_string(column.comment)}")

        constraints: List[ValidationConstraint] = self._resolve_validation(
            key, column_name, column
        )
        if constraints:
            info: Dict[str, Any] = {"validate": {c.kind: c.as_dict() for c in constraints}}
            args.append(f"info={format_literal(info)}")

        python_type: str = field_type.python_type
        if column.allow_null and not is_pk:
            python_type = f"Optional[{python_type}]"
            imports.setdefault("typing", set()).add("Optional")

        head: str = f"{self._indent}{attr}: Mapped[{python_type}] = mapped_column("
        return self._wrap_call(head, args, force_multiline=bool(constraints))

    def _column_attr(self, key: str, column_name: str) -> str:
        return self._column_attrs[key].get(column_name) or self._attribute_name(column_name)

    def _pk_count(self, key: str) -> int:
        return sum(
            1
            for c in self._table_data.tables[key].values()
            if self._dialect.is_primary_key(c.as_record())
        )

    def _foreign_key_target(self, key: str, column_name: str) -> Optional[str]:
        fk: Optional[ForeignKeyRow] = self._table_data.foreign_key_for(key, column_name)
        if fk is None:
            return None
        target_key: str = fk.target_key(self._dialect.has_schema)
        if target_key not in self._table_data.tables:
            context: Dict[str, Any] = {"table": key, "column": column_name, "target": target_key}
            # Introspection may already have reported this key while deriving relations.
            if not self.diagnostics.contains("DANGLING_FOREIGN_KEY", context):
                self.diagnostics.add_warning(
                    "DANGLING_FOREIGN_KEY",
                    f"{key}.{column_name} references {target_key}, which is not being "
                    f"generated; ForeignKey omitted.",
                    context,
                )
            return None
        target_schema, target_table = self._split(target_key)
        return f"{make_table_key(target_table, target_schema)}.{fk.target_column}"

    def _resolve_validation(
        self, key: str, column_name: str, column: ColumnDescriptor
    ) -> List[ValidationConstraint]:
        if not self._options.validation_enabled:
            return []
        context: ColumnContext = ColumnContext(
            table_name=key,
            field_name=column_name,
            declared_type=column.type,
            dialect=self._dialect,
        )
        return resolve_constraints(self._options.validation_rules, context, self.diagnostics)

    # -- Relationships ------------------------------------------------------

    def _render_relation(
        self, key: str, relation: Relation, imports: Dict[str, Set[str]]
    ) -> List[str]:
        tables: Dict[str, Dict[str, ColumnDescriptor]] = self._table_data.tables
        if relation.target_table not in tables or (
            relation.through is not None and relation.through not in tables
        ):
            self.diagnostics.add_warning(
                "DANGLING_RELATION",
                f"Relation {key}.{relation.alias} points at a table that is not "
                f"being generated; skipped.",
                {
                    "table": key,
                    "alias": relation.alias,
                    "target": relation.target_table,
                    "through": relation.through,
                },
            )
            return []

        target_class: str = self._class_names[relation.target_table]
        attr: str = self._relation_attrs[(key, relation.alias)]
        args: List[str] = [quote_string(target_class)]

        if relation.relation_type == RelationType.BELONGS_TO_MANY.value:
            args.append(f"secondary={quote_string(relation.through)}")
            args.append("viewonly=True")
        else:
            child_key: str = (
                key if relation.relation_type == RelationType.BELONGS_TO.value
                else relation.target_table
            )
            child_attr: str = self._column_attr(child_key, relation.foreign_key)
            args.append(
                f"foreign_keys={quote_string(self._class_names[child_key] + '.' + child_attr)}"
            )
            if (
                relation.relation_type == RelationType.BELONGS_TO.value
                and relation.target_table == key
            ):
                remote_attr: str = self._column_attr(key, relation.target_column)
                args.append(f"remote_side={quote_string(target_class + '.' + remote_attr)}")

        back: Optional[str] = (
            self._relation_attrs.get((relation.target_table, relation.back_populates))
            if relation.back_populates
            else None
        )
        if back is not None:
            args.append(f"back_populates={quote_string(back)}")
        if relation.relation_type == RelationType.HAS_ONE.value:
            args.append("uselist=False")

        imports.setdefault("sqlalchemy.orm", set()).add("relationship")
        if relation.is_collection:
            imports.setdefault("typing", set()).add("List")
            hint: str = f'Mapped[List["{target_class}"]]'
        else:
            imports.setdefault("typing", set()).add("Optional")
            hint = f'Mapped[Optional["{target_class}"]]'

        head: str = f"{self._indent}{attr}: {hint} = relationship("
        return self._wrap_call(head, args)

    # -- Layout -------------------------------------------------------------

    def _wrap_call(self, head: str, args: List[str], force_multiline: bool = False) -> List[str]:
        """One line when it fits, else one argument per line with trailing commas."""
        single: str = f"{head}{', '.join(args)})"
        if not force_multiline and len(single) <= _MAX_LINE_LENGTH:
            return [single]
        lines: List[str] = [head]
        for arg in args:
            lines.append(f"{self._indent * 2}{arg},")
        lines.append(f"{self._indent})")
        return lines


# ---------------------------------------------------------------------------
# Module-level entry point
# ---------------------------------------------------------------------------


def generate(
    table_data: TableData,
    dialect: DialectLike,
    options: OptionsLike = None,
    diagnostics: Optional[Diagnostics] = None,
) -> Dict[str, str]:
    """
    Generate model source for every table in *table_data*.

    Raises:
        ConfigurationError: unsupported dialect, malformed validation rule
            or invalid options. Raised before any table is rendered.
    """
    generator: ModelGenerator = ModelGenerator(table_data, dialect, options, diagnostics)
    return generator.generate_text()


__all__: List[str] = ["ModelGenerator", "generate"]

logger.debug("modelgen.generator loaded — %d public symbols.", len(__all__))
