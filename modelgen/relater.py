"""
modelgen - Relation Derivation
===============================
Turns the canonical foreign keys in a ``TableData`` into an ordered list of
association edges, one per generated ``relationship()``.

For every foreign key ``child.col → parent.pk``:

    child  gets belongs_to  (alias from the FK column: ``author_id`` → ``author``)
    parent gets has_many    (alias = plural of the child name)
            or has_one      (when the FK column is unique or the sole PK)

A junction table (exactly two foreign keys, both inside its primary key,
pointing at two distinct tables) additionally yields a ``belongs_to_many``
pair between the two targets.

Order is deterministic: tables in ``TableData`` order, then foreign keys in
recorded order, then junction pairs.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Set

from modelgen.diagnostics import Diagnostics
from modelgen.models import (
    ColumnDescriptor,
    ForeignKeyRow,
    Relation,
    RelationType,
    TableData,
    split_table_key,
)
from modelgen.utils import to_plural, to_singular

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.relater")

_FK_SUFFIX_RE: re.Pattern[str] = re.compile(r"(?:_id|Id|ID|_fk)$")


class _AliasBook:
    """Per-table registry of attribute names already in use."""

    __slots__ = ("_taken",)

    def __init__(self, table_data: TableData) -> None:
        self._taken: Dict[str, Set[str]] = {
            key: set(columns) for key, columns in table_data.tables.items()
        }

    def claim(self, table_key: str, base: str) -> str:
        taken: Set[str] = self._taken.setdefault(table_key, set())
        alias: str = base
        counter: int = 2
        while alias in taken:
            alias = f"{base}{counter}"
            counter += 1
        taken.add(alias)
        return alias


def _table_name(key: str, has_schema: bool) -> str:
    return split_table_key(key, has_schema)[1]


def _belongs_to_alias(fk: ForeignKeyRow) -> str:
    stripped: str = _FK_SUFFIX_RE.sub("", fk.source_column)
    if stripped and stripped != fk.source_column:
        return stripped
    return to_singular(fk.target_table)


def _is_one_to_one(child_columns: Dict[str, ColumnDescriptor], fk: ForeignKeyRow) -> bool:
    column: Optional[ColumnDescriptor] = child_columns.get(fk.source_column)
    if column is None:
        return False
    if column.unique:
        return True
    pk_columns: List[str] = [name for name, c in child_columns.items() if c.primary_key]
    return pk_columns == [fk.source_column]


def _junction_pair(
    table_data: TableData, key: str, fks: List[ForeignKeyRow], has_schema: bool
) -> Optional[List[ForeignKeyRow]]:
    if len(fks) != 2:
        return None
    columns: Dict[str, ColumnDescriptor] = table_data.tables[key]
    for fk in fks:
        column: Optional[ColumnDescriptor] = columns.get(fk.source_column)
        if column is None or not column.primary_key:
            return None
    if fks[0].target_key(has_schema) == fks[1].target_key(has_schema):
        return None
    return fks


def derive_relations(
    table_data: TableData,
    has_schema: bool,
    diagnostics: Optional[Diagnostics] = None,
) -> List[Relation]:
    """
    Derive the ordered relation list for *table_data*.

    Foreign keys whose target table is not part of *table_data* are skipped
    and reported as ``DANGLING_FOREIGN_KEY``. *table_data* is not modified.
    """
    book: _AliasBook = _AliasBook(table_data)
    relations: List[Relation] = []
    junctions: List[tuple] = []

    for key, fks in table_data.foreign_keys.items():
        if key not in table_data.tables:
            continue
        child_columns: Dict[str, ColumnDescriptor] = table_data.tables[key]
        child_name: str = _table_name(key, has_schema)
        live: List[ForeignKeyRow] = []

        for fk in fks:
            target_key: str = fk.target_key(has_schema)
            if target_key not in table_data.tables:
                if diagnostics is not None:
                    diagnostics.add_warning(
                        "DANGLING_FOREIGN_KEY",
                        f"{key}.{fk.source_column} references {target_key}, "
                        f"which is not being generated; relation skipped.",
                        {"table": key, "column": fk.source_column, "target": target_key},
                    )
                continue
            live.append(fk)

            one_to_one: bool = _is_one_to_one(child_columns, fk)
            child_alias: str = book.claim(key, _belongs_to_alias(fk))
            parent_alias: str = book.claim(
                target_key,
                to_singular(child_name) if one_to_one else to_plural(to_singular(child_name)),
            )
            relations.append(
                Relation(
                    source_table=key,
                    target_table=target_key,
                    source_column=fk.source_column,
                    target_column=fk.target_column,
                    foreign_key=fk.source_column,
                    relation_type=RelationType.BELONGS_TO,
                    alias=child_alias,
                    back_populates=parent_alias,
                )
            )
            relations.append(
                Relation(
                    source_table=target_key,
                    target_table=key,
                    source_column=fk.target_column,
                    target_column=fk.source_column,
                    foreign_key=fk.source_column,
                    relation_type=(
                        RelationType.HAS_ONE if one_to_one else RelationType.HAS_MANY
                    ),
                    alias=parent_alias,
                    back_populates=child_alias,
                )
            )

        pair: Optional[List[ForeignKeyRow]] = _junction_pair(
            table_data, key, live, has_schema
        )
        if pair is not None:
            junctions.append((key, pair))

    for key, (left, right) in junctions:
        left_key: str = left.target_key(has_schema)
        right_key: str = right.target_key(has_schema)
        left_alias: str = book.claim(
            left_key, to_plural(to_singular(_table_name(right_key, has_schema)))
        )
        right_alias: str = book.claim(
            right_key, to_plural(to_singular(_table_name(left_key, has_schema)))
        )
        relations.append(
            Relation(
                source_table=left_key,
                target_table=right_key,
                source_column=left.target_column,
                target_column=right.target_column,
                foreign_key=left.source_column,
                relation_type=RelationType.BELONGS_TO_MANY,
                alias=left_alias,
                back_populates=right_alias,
                through=key,
            )
        )
        relations.append(
            Relation(
                source_table=right_key,
                target_table=left_key,
                source_column=right.target_column,
                target_column=left.target_column,
                foreign_key=right.source_column,
                relation_type=RelationType.BELONGS_TO_MANY,
                alias=right_alias,
                back_populates=left_alias,
                through=key,
            )
        )

    logger.debug(
        "Derived %d relation(s) (%d junction table(s)).", len(relations), len(junctions)
    )
    return relations


__all__: List[str] = ["derive_relations"]
