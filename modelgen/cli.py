"""
modelgen - Command-Line Interface
==================================

Usage examples::

    # Generate models for every table of a SQLite database
    modelgen -u sqlite:///app.db -o ./models

    # PostgreSQL, one schema, with length validation from a config file
    modelgen -u postgresql://user@localhost/shop -s sales -c modelgen.yaml -o ./models

    # Print the generated code instead of writing it
    modelgen -u sqlite:///app.db --dry-run

Exit codes:
    0 — success
    1 — configuration error
    2 — introspection error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError

from modelgen.builder import TableDataBuilder
from modelgen.config import build_options
from modelgen.diagnostics import ConfigurationError, Diagnostics, IntrospectionError
from modelgen.dialects import require_dialect_options, supported_dialects
from modelgen.dialects.base import DialectOptions
from modelgen.exporters import ExportResult, ModelExporter
from modelgen.generator import ModelGenerator
from modelgen.models import GenerationOptions, NamingConvention, TableData

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_CONFIG_ERROR: int = 1
EXIT_INTROSPECTION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the ``modelgen`` logger.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    root_logger: logging.Logger = logging.getLogger("modelgen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    from modelgen import __version__

    naming_choices: List[str] = [c.value for c in NamingConvention]

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="modelgen",
        description=(
            "Generate SQLAlchemy 2.0 declarative models from a live database, "
            "optionally with string-length validation metadata."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -u sqlite:///app.db -o ./models\n"
            "  %(prog)s -u postgresql://localhost/shop -s sales -c modelgen.yaml\n"
            "  %(prog)s -u sqlite:///app.db --dry-run\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"modelgen v{__version__}")

    parser.add_argument(
        "-u", "--url",
        type=str,
        required=True,
        metavar="URL",
        help="SQLAlchemy database URL.",
    )
    parser.add_argument(
        "-d", "--dialect",
        type=str,
        default=None,
        help=(
            "Dialect provider to use (default: taken from the URL). "
            f"Supported: {', '.join(supported_dialects())}."
        ),
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Output directory (default: ./models, or 'directory' from the config).",
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="YAML or JSON file with generation options.",
    )

    scope_group = parser.add_argument_group("introspection scope")
    scope_group.add_argument("-s", "--schema", type=str, default=None, help="Schema to read.")
    scope_group.add_argument(
        "-t", "--tables", nargs="+", default=None, metavar="TABLE",
        help="Only generate these tables.",
    )
    scope_group.add_argument(
        "-T", "--skip-tables", nargs="+", default=None, metavar="TABLE",
        help="Leave these tables out.",
    )
    scope_group.add_argument(
        "--views", action="store_true", default=None, help="Also generate views."
    )

    naming_group = parser.add_argument_group("naming")
    naming_group.add_argument(
        "--singularize", action="store_true", default=None,
        help="Singularize table names for class names.",
    )
    naming_group.add_argument("--case-model", choices=naming_choices, default=None)
    naming_group.add_argument("--case-property", choices=naming_choices, default=None)
    naming_group.add_argument("--case-file", choices=naming_choices, default=None)

    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        "--no-relations", action="store_true", default=False,
        help="Do not emit relationship() attributes.",
    )
    output_group.add_argument(
        "--dry-run", action="store_true", default=False,
        help="Print the generated code instead of writing files.",
    )

    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet", action="store_true", default=False,
        help="Suppress all output except errors.",
    )
    return parser


def _build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Options given on the command line; ``None`` means "not given"."""
    return {
        "dialect": args.dialect,
        "schema": args.schema,
        "tables": args.tables,
        "skip_tables": args.skip_tables,
        "include_views": args.views,
        "singularize": args.singularize,
        "case_model": args.case_model,
        "case_property": args.case_property,
        "case_file": args.case_file,
        "include_relations": False if args.no_relations else None,
        "directory": args.output,
    }


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def _run(engine: Engine, options: GenerationOptions, dry_run: bool) -> int:
    diagnostics: Diagnostics = Diagnostics()

    try:
        dialect: DialectOptions = require_dialect_options(
            options.dialect or engine.dialect.name
        )
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    try:
        table_data: TableData = TableDataBuilder(
            engine,
            dialect,
            schema=options.schema_name,
            tables=options.tables,
            skip_tables=options.skip_tables,
            include_views=options.include_views,
            diagnostics=diagnostics,
        ).build()
    except IntrospectionError as exc:
        logger.error("%s", exc)
        return EXIT_INTROSPECTION_ERROR

    generator: ModelGenerator = ModelGenerator(table_data, dialect, options, diagnostics)
    texts: Dict[str, str] = generator.generate_text()

    if diagnostics.has_warnings:
        print(diagnostics.format_report(), file=sys.stderr)

    if dry_run:
        for key, text in texts.items():
            print(f"# ---- {key} " + "-" * max(0, 66 - len(key)))
            print(text)
        return EXIT_SUCCESS

    result: ExportResult = ModelExporter(options.directory, options).export(
        texts, generator.class_names
    )
    if not result.success:
        for error in result.errors:
            logger.error("%s", error)
        return EXIT_EXPORT_ERROR

    print(f"Wrote {len(result.files)} file(s) to {result.directory}.")
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbose
    _setup_logging(verbosity)

    if args.config is not None and not Path(args.config).is_file():
        logger.error("Configuration file not found: %s", args.config)
        sys.exit(EXIT_INPUT_ERROR)

    try:
        options: GenerationOptions = build_options(args.config, _build_overrides(args))
    except ConfigurationError as exc:
        logger.error("%s", exc)
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        engine: Engine = create_engine(args.url)
    except ArgumentError as exc:
        logger.error("Invalid database URL %r: %s", args.url, exc)
        sys.exit(EXIT_INPUT_ERROR)

    try:
        exit_code: int = _run(engine, options, args.dry_run)
    finally:
        engine.dispose()

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)
    sys.exit(exit_code)


__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_CONFIG_ERROR",
    "EXIT_INTROSPECTION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]
