"""
modelgen - Declared Type Mapping
=================================
Maps a declared engine type string (``VARCHAR(100)``, ``int(11) unsigned``,
``timestamp with time zone``) onto the SQLAlchemy type constructor and the
``Mapped[...]`` Python annotation used in generated code.

Classification is an ordered table of full-match patterns over the bare
type name; the first match wins. Anything unmatched falls back to
``String`` / ``str`` and is flagged as unclassified so the caller can warn.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from modelgen.dialects.base import array_element_type, base_type_name, parse_declared_length

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.typemap")

_PRECISION_RE: re.Pattern[str] = re.compile(r"\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\)")
_ENUM_VALUE_RE: re.Pattern[str] = re.compile(r"'((?:[^']|'')*)'")
_TIMEZONE_RE: re.Pattern[str] = re.compile(r"with time zone|timestamptz|datetimeoffset")


@dataclass(frozen=True, slots=True)
class FieldType:
    """Rendered type information for one column."""

    sa_type: str
    python_type: str
    imports: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    classified: bool = True


def _sa(name: str, rendered: Optional[str] = None, python_type: str = "str",
        extra: Optional[Dict[str, FrozenSet[str]]] = None) -> FieldType:
    imports: Dict[str, FrozenSet[str]] = {"sqlalchemy": frozenset({name})}
    if extra:
        imports.update(extra)
    return FieldType(rendered or name, python_type, imports)


# ---------------------------------------------------------------------------
# Builders, one per type family
# ---------------------------------------------------------------------------


def _string(declared: str) -> FieldType:
    length: Optional[int] = parse_declared_length(declared)
    return _sa("String", f"String({length})" if length else "String")


def _char(declared: str) -> FieldType:
    length: Optional[int] = parse_declared_length(declared)
    return _sa("CHAR", f"CHAR({length})" if length else "CHAR")


def _text(declared: str) -> FieldType:
    return _sa("Text")


def _tinyint(declared: str) -> FieldType:
    # MySQL's conventional boolean.
    if parse_declared_length(declared) == 1:
        return _sa("Boolean", python_type="bool")
    return _sa("SmallInteger", python_type="int")


def _numeric(declared: str) -> FieldType:
    match: Optional[re.Match[str]] = _PRECISION_RE.search(declared)
    rendered: str = "Numeric"
    if match is not None:
        precision, scale = match.group(1), match.group(2)
        rendered = f"Numeric({precision}, {scale})" if scale else f"Numeric({precision})"
    return _sa("Numeric", rendered, "Decimal", {"decimal": frozenset({"Decimal"})})


def _datetime(declared: str) -> FieldType:
    rendered: str = (
        "DateTime(timezone=True)"
        if _TIMEZONE_RE.search(declared.lower())
        else "DateTime"
    )
    return _sa("DateTime", rendered, "datetime", {"datetime": frozenset({"datetime"})})


def _enum(declared: str) -> FieldType:
    values: List[str] = [v.replace("''", "'") for v in _ENUM_VALUE_RE.findall(declared)]
    if not values:
        return _sa("String")
    rendered: str = "Enum(" + ", ".join(repr(v) for v in values) + ")"
    return _sa("Enum", rendered)


def _array(element: FieldType) -> FieldType:
    imports: Dict[str, FrozenSet[str]] = dict(element.imports)
    imports["sqlalchemy"] = imports.get("sqlalchemy", frozenset()) | {"ARRAY"}
    imports["typing"] = imports.get("typing", frozenset()) | {"List"}
    return FieldType(
        f"ARRAY({element.sa_type})",
        f"List[{element.python_type}]",
        imports,
        classified=element.classified,
    )


def _simple(sa_name: str, python_type: str = "str",
            extra: Optional[Dict[str, FrozenSet[str]]] = None) -> Callable[[str], FieldType]:
    def build(declared: str) -> FieldType:
        return _sa(sa_name, python_type=python_type, extra=extra)

    return build


_TYPE_RULES: Tuple[Tuple[re.Pattern[str], Callable[[str], FieldType]], ...] = tuple(
    (re.compile(pattern), builder)
    for pattern, builder in (
        (r"(?:national )?(?:character varying|varchar2?|nvarchar2?)|string", _string),
        (r"(?:national )?(?:character|char|nchar)|bpchar", _char),
        (r"(?:tiny|medium|long)?text|ntext|clob|citext", _text),
        (r"tinyint", _tinyint),
        (r"bigint|int8|bigserial", _simple("BigInteger", "int")),
        (r"smallint|int2|smallserial", _simple("SmallInteger", "int")),
        (r"int|integer|int4|mediumint|serial", _simple("Integer", "int")),
        (r"bool|boolean|bit", _simple("Boolean", "bool")),
        (r"float[48]?|real|double(?: precision)?", _simple("Float", "float")),
        (r"decimal|numeric|number|money|smallmoney", _numeric),
        (
            r"datetime2?|smalldatetime|datetimeoffset|timestamptz"
            r"|timestamp(?: with(?:out)? time zone)?",
            _datetime,
        ),
        (r"date", _simple("Date", "date", {"datetime": frozenset({"date"})})),
        (
            r"time(?: with(?:out)? time zone)?|timetz",
            _simple("Time", "time", {"datetime": frozenset({"time"})}),
        ),
        (r"interval", _simple("Interval", "timedelta", {"datetime": frozenset({"timedelta"})})),
        (r"uuid|uniqueidentifier", _simple("Uuid", "UUID", {"uuid": frozenset({"UUID"})})),
        (
            r"jsonb?",
            _simple("JSON", "Dict[str, Any]", {"typing": frozenset({"Any", "Dict"})}),
        ),
        (
            r"(?:tiny|medium|long)?blob|bytea|(?:var)?binary|image",
            _simple("LargeBinary", "bytes"),
        ),
        (r"enum", _enum),
    )
)


def resolve_field_type(declared_type: Optional[str]) -> FieldType:
    """
    Classify *declared_type*.

    Examples:
        >>> resolve_field_type("VARCHAR(100)").sa_type
        'String(100)'
        >>> resolve_field_type("tinyint(1)").python_type
        'bool'
        >>> resolve_field_type("geometry").classified
        False
    """
    if declared_type:
        element: Optional[str] = array_element_type(declared_type)
        if element is not None:
            return _array(resolve_field_type(element))
        name: str = base_type_name(declared_type)
        for pattern, builder in _TYPE_RULES:
            if pattern.fullmatch(name):
                return builder(declared_type)

    logger.debug("Unclassified declared type %r; falling back to String.", declared_type)
    return FieldType(
        "String", "str", {"sqlalchemy": frozenset({"String"})}, classified=False
    )


__all__: List[str] = ["FieldType", "resolve_field_type"]
