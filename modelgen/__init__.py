"""
modelgen — SQLAlchemy Model Generator
======================================

Reads the schema of a live database and generates one SQLAlchemy 2.0
declarative model module per table, optionally annotating string columns
with length-validation metadata derived from their declared types.

Architecture overview::

    ┌──────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ TableDataBuilder │────▶│  ModelGenerator  │
    │   (cli.py)   │     │   (builder.py)   │     │  (generator.py)  │
    └──────────────┘     └────────┬─────────┘     └────────┬─────────┘
                                  │                        │
                   ┌──────────────┼──────────┐    ┌────────┼──────────┐
                   ▼              ▼          ▼    ▼        ▼          ▼
             ┌──────────┐  ┌──────────┐ ┌───────────┐ ┌─────────┐ ┌───────────┐
             │ dialects │  │ relater  │ │  models   │ │ typemap │ │ exporters │
             └──────────┘  └──────────┘ └───────────┘ └─────────┘ └───────────┘
                                              validation

Usage::

    from sqlalchemy import create_engine
    from modelgen import TableDataBuilder, generate

    engine = create_engine("sqlite:///app.db")
    table_data = TableDataBuilder(engine, "sqlite").build()
    texts = generate(table_data, "sqlite", {"validation_rules": [{"type": "string_length_check"}]})
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from modelgen.diagnostics import (
    ConfigurationError,
    Diagnostic,
    Diagnostics,
    IntrospectionError,
    ModelgenError,
)
from modelgen.models import (
    ColumnDescriptor,
    ForeignKeyRow,
    GenerationOptions,
    IndexDescriptor,
    NamingConvention,
    Relation,
    RelationType,
    TableData,
)
from modelgen.validation import (
    DEFAULT_LENGTH_MESSAGE,
    StringLengthCheckRule,
    ValidationRule,
    register_rule,
)
from modelgen.dialects import (
    DialectOptions,
    StringBounds,
    get_dialect_options,
    require_dialect_options,
    supported_dialects,
)
from modelgen.relater import derive_relations
from modelgen.generator import ModelGenerator, generate
from modelgen.builder import TableDataBuilder
from modelgen.exporters import ExportResult, ModelExporter
from modelgen.config import load_config_file

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    "__license__",
    # Errors / diagnostics
    "ModelgenError",
    "ConfigurationError",
    "IntrospectionError",
    "Diagnostic",
    "Diagnostics",
    # Models
    "ColumnDescriptor",
    "ForeignKeyRow",
    "GenerationOptions",
    "IndexDescriptor",
    "NamingConvention",
    "Relation",
    "RelationType",
    "TableData",
    # Validation
    "DEFAULT_LENGTH_MESSAGE",
    "StringLengthCheckRule",
    "ValidationRule",
    "register_rule",
    # Dialects
    "DialectOptions",
    "StringBounds",
    "get_dialect_options",
    "require_dialect_options",
    "supported_dialects",
    # Pipeline
    "derive_relations",
    "ModelGenerator",
    "generate",
    "TableDataBuilder",
    "ModelExporter",
    "ExportResult",
    "load_config_file",
]
