# File: schemagen/cli.py
"""
SchemaGen - Command-Line Interface
===================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # SQL DDL for every entity (postgres), printed to stdout
    python -m schemagen --schema entities.yaml

    # Prisma schema written to a file
    python -m schemagen -s entities.yaml --dialect prisma -o schema.prisma

    # MySQL migration batch (up script + sibling .down.sql)
    python -m schemagen -s entities.yaml --sql-variant mysql \\
        --migration --version-tag 2024_01 -o migrations/2024_01.sql

    # Validate only (no output)
    python -m schemagen -s entities.yaml --validate-only

Exit codes:
    0 — success
    1 — validation error
    2 — compilation error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence, Tuple

from schemagen.models import CompilerConfig, Dialect, Entity, SqlVariant

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_COMPILATION_ERROR: int = 2
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root schemagen logger based on verbosity level.

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

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("schemagen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from schemagen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="schemagen",
        description=(
            "SchemaGen — Database Schema Compiler.\n\n"
            "Compiles entity documents (JSON/YAML) into SQL DDL, Drizzle, "
            "Prisma and Convex schemas, relationship DDL and migrations."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s entities.yaml\n"
            "  %(prog)s -s entities.yaml --dialect prisma -o schema.prisma\n"
            "  %(prog)s -s entities.yaml --migration --version-tag 2024_01\n"
            "  %(prog)s -s entities.yaml --validate-only\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"SchemaGen v{__version__}",
    )

    # --- Required arguments ---
    parser.add_argument(
        "-s", "--schema",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the entity document (JSON or YAML).",
    )

    # --- Output ---
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="FILE",
        help="Write the result to FILE instead of stdout.",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the entities without compiling.",
    )
    mode_group.add_argument(
        "--migration",
        action="store_true",
        default=False,
        help="Emit the migration batch instead of the dialect schema.",
    )

    # --- Config overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--dialect",
        type=str,
        default=None,
        choices=[d.value for d in Dialect],
        help="Target dialect (default: sql).",
    )
    config_group.add_argument(
        "--sql-variant",
        type=str,
        default=None,
        choices=[v.value for v in SqlVariant],
        help="Override the relational DDL flavour.",
    )
    config_group.add_argument(
        "--version-tag",
        type=str,
        default="1",
        metavar="V",
        help="Version tag for the migration batch (default: 1).",
    )
    config_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Treat coverage warnings as entity failures.",
    )
    config_group.add_argument(
        "--timestamp",
        action="store_true",
        default=False,
        help="Add a 'Generated:' line to migration headers.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _apply_overrides(config: CompilerConfig, args: argparse.Namespace) -> CompilerConfig:
    """Return *config* with the CLI flags applied."""
    updated: CompilerConfig = config.model_copy()
    updated.dialects = (Dialect(args.dialect or Dialect.SQL.value),)
    if args.sql_variant is not None:
        updated.sql_variant = SqlVariant(args.sql_variant)
    if args.fail_on_warnings:
        updated.fail_on_warnings = True
    if args.timestamp:
        updated.include_timestamp = True
    return updated


def _load(schema_path: Path) -> Optional[Tuple[List[Entity], CompilerConfig]]:
    from schemagen.compiler import load_entities

    try:
        return load_entities(schema_path)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load entities: %s", exc)
        return None


def _emit(text: str, output: Optional[str]) -> None:
    from schemagen.utils import write_file

    if output is None:
        sys.stdout.write(text)
        return
    path: Path = Path(output).resolve()
    write_file(path, text)
    logger.info("Wrote %s", path)


# ---------------------------------------------------------------------------
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(schema_path: Path, quiet: bool) -> int:
    """
    Run validation only (no compilation).

    Returns the appropriate exit code.
    """
    from schemagen.utils import Timer
    from schemagen.validators import validate_batch

    logger.info("Running validation-only mode for: %s", schema_path)

    loaded = _load(schema_path)
    if loaded is None:
        return EXIT_INPUT_ERROR
    entities, _config = loaded

    with Timer("validation") as t:
        result = validate_batch(entities)

    if not quiet:
        print(f"\n{'='*50}")
        print("  Entity Validation Report")
        print(f"{'='*50}")
        print(f"  File:     {schema_path.name}")
        print(f"  Entities: {len(entities)}")
        print(f"  Time:     {t.elapsed:.3f}s")
        print(f"  Valid:    {'Yes' if result.is_valid else 'No'}")

        if result.errors:
            print(f"\n  Errors ({len(result.errors)}):")
            for err in result.errors:
                print(f"    ✗ {err}")

        if result.warnings:
            print(f"\n  Warnings ({len(result.warnings)}):")
            for warn in result.warnings:
                print(f"    ⚠ {warn}")

        if result.is_valid and not result.warnings:
            print("\n  ✅ All validations passed!")

        print(f"{'='*50}\n")

    return EXIT_SUCCESS if result.is_valid else EXIT_VALIDATION_ERROR


# ---------------------------------------------------------------------------
# Compilation mode
# ---------------------------------------------------------------------------


def _render_schema(report, entities: Sequence[Entity], config: CompilerConfig) -> str:
    """One dialect file for every compiled entity."""
    from schemagen.emitters import bundle_schemas

    dialect: Dialect = config.dialects[0]
    compiled: List[Entity] = [e for e in entities if e.id in report.schemas]
    rendered: List[str] = [report.schemas[e.id].for_dialect(dialect) or "" for e in compiled]
    text: str = bundle_schemas(compiled, rendered, dialect, config.dialect_options())

    if dialect == Dialect.SQL:
        trailing: List[str] = []
        for entity in compiled:
            schema = report.schemas[entity.id]
            trailing.extend(schema.constraints)
            trailing.extend(schema.relationships)
        if trailing:
            text += "\n\n" + "\n\n".join(trailing)
    return text + "\n"


def _run_compilation(schema_path: Path, args: argparse.Namespace) -> int:
    """
    Run the full compilation pipeline.

    Returns the appropriate exit code.
    """
    from schemagen.compiler import CompilationReport, SchemaCompiler

    loaded = _load(schema_path)
    if loaded is None:
        return EXIT_INPUT_ERROR
    entities, config = loaded
    config = _apply_overrides(config, args)

    compiler: SchemaCompiler = SchemaCompiler(config)
    report: CompilationReport = compiler.compile_batch(entities, version=args.version_tag)

    if not args.quiet:
        print(report.summary(), file=sys.stderr)

    if report.validation_errors:
        return EXIT_VALIDATION_ERROR
    if not report.success:
        return EXIT_COMPILATION_ERROR

    if args.migration:
        batch = report.batch
        _emit(batch.up_script(), args.output)
        if args.output is not None:
            up_path: Path = Path(args.output)
            _emit(batch.down_script(), str(up_path.with_suffix(".down" + up_path.suffix)))
    else:
        _emit(_render_schema(report, entities, config), args.output)

    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
    else:
        verbosity = args.verbose

    _setup_logging(verbosity)
    if args.quiet:
        logger.setLevel(logging.ERROR)

    schema_path: Path = Path(args.schema).resolve()

    if not schema_path.exists():
        logger.error("Entity document not found: %s", schema_path)
        sys.exit(EXIT_INPUT_ERROR)

    if not schema_path.is_file():
        logger.error("Entity document path is not a file: %s", schema_path)
        sys.exit(EXIT_INPUT_ERROR)

    if args.validate_only:
        sys.exit(_run_validate_only(schema_path, args.quiet))

    logger.info("Schema:   %s", schema_path)
    logger.info("Dialect:  %s", args.dialect or Dialect.SQL.value)
    logger.info("Output:   %s", args.output or "<stdout>")

    exit_code: int = _run_compilation(schema_path, args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Compilation completed successfully.")
    else:
        logger.error("Compilation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_COMPILATION_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("schemagen.cli loaded.")
