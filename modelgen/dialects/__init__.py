"""Dialect providers, looked up by engine name."""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy.engine import Engine

from modelgen.diagnostics import ConfigurationError
from modelgen.dialects.base import DialectOptions, StringBounds
from modelgen.dialects.mssql import MssqlOptions, mssql_options
from modelgen.dialects.mysql import MysqlOptions, mysql_options
from modelgen.dialects.postgres import PostgresOptions, postgres_options
from modelgen.dialects.sqlite import SqliteOptions, sqlite_options

# Known engine names. ``None`` marks engines that are recognised but have
# no provider yet.
_DIALECTS: Dict[str, Optional[DialectOptions]] = {
    "db2": None,
    "mariadb": mysql_options,
    "mssql": mssql_options,
    "mysql": mysql_options,
    "oracle": None,
    "postgres": postgres_options,
    "postgresql": postgres_options,
    "snowflake": None,
    "sqlite": sqlite_options,
}


def get_dialect_options(name: Optional[str]) -> Optional[DialectOptions]:
    """
    Provider for the engine *name* (case-insensitive), or None when the
    engine is unknown or not implemented.
    """
    if not name:
        return None
    return _DIALECTS.get(name.strip().lower())


def get_dialect_options_for_engine(engine: Engine) -> Optional[DialectOptions]:
    """Provider matching a SQLAlchemy engine's dialect name."""
    return get_dialect_options(engine.dialect.name)


def require_dialect_options(name: Optional[str]) -> DialectOptions:
    """
    Like :func:`get_dialect_options`, but fail fast.

    Raises:
        ConfigurationError: ``UNSUPPORTED_DIALECT`` for unknown or
            unimplemented engines.
    """
    options: Optional[DialectOptions] = get_dialect_options(name)
    if options is None:
        known: bool = bool(name) and name.strip().lower() in _DIALECTS
        reason: str = "has no provider yet" if known else "is unknown"
        raise ConfigurationError(
            "UNSUPPORTED_DIALECT",
            f"Dialect {name!r} {reason}. "
            f"Supported: {', '.join(supported_dialects())}.",
            {"dialect": name},
        )
    return options


def supported_dialects() -> List[str]:
    """Names that resolve to a provider."""
    return sorted(key for key, value in _DIALECTS.items() if value is not None)


__all__: List[str] = [
    "DialectOptions",
    "StringBounds",
    "MssqlOptions",
    "MysqlOptions",
    "PostgresOptions",
    "SqliteOptions",
    "get_dialect_options",
    "get_dialect_options_for_engine",
    "require_dialect_options",
    "supported_dialects",
]
