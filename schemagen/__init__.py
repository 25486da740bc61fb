# File: schemagen/__init__.py
"""
SchemaGen — Database Schema Compiler
=====================================

Compiles abstract entity descriptions into SQL DDL (postgres, mysql,
sqlite), Drizzle, Prisma and Convex schema text, relationship DDL and
migration scripts.

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ SchemaCompiler │────▶│     emitters     │
    │   (cli.py)   │     │ (compiler.py)  │     │ (4 dialects)     │
    └──────────────┘     └───────┬────────┘     └────────┬─────────┘
                                 │                       │
                    ┌────────────┼────────────┐          ▼
                    ▼            ▼            ▼   ┌──────────────┐
             ┌──────────┐ ┌────────────┐ ┌──────┐ │ column_types │
             │validators│ │relationships│ │migra-│ │  modifiers   │
             │  (.py)   │ │   (.py)    │ │tions │ └──────────────┘
             └──────────┘ └────────────┘ └──────┘

Usage::

    # As a library
    from schemagen import EntityBuilder, SchemaCompiler
    user = EntityBuilder.create("user", "User").id_field().email_field("email").build()
    print(SchemaCompiler().compile_schema(user, "sql"))

    # From the command line
    python -m schemagen --schema entities.yaml --dialect prisma

Public API:
    - SchemaCompiler      — Pipeline orchestrator
    - EntityBuilder       — Fluent entity construction
    - emit_schema         — One entity, one dialect
    - emit_relationship   — Relationship DDL
    - emit_migration      — Migration script for one entity
    - validate_entity     — Pre-flight checks
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from schemagen.errors import (
    CodecError,
    InvalidColumnTypeError,
    JunctionColumnCollisionError,
    MissingJunctionTableError,
    MissingPrimaryKeyError,
    PrimaryKeyConflictError,
    SchemaGenError,
    SchemaStructuralError,
    UnknownDialectError,
    UnknownRelationTypeError,
    UnresolvedReferenceError,
)
from schemagen.models import (
    CheckConstraint,
    Column,
    ColumnModifier,
    ColumnType,
    CompilerConfig,
    Constraint,
    ConstraintType,
    Dialect,
    DialectOptions,
    Entity,
    EntityName,
    ForeignKeySpec,
    GeneratedKind,
    Index,
    IndexType,
    JunctionTableSpec,
    ModifierKind,
    ReferentialAction,
    Relationship,
    RelationType,
    SqlVariant,
    Table,
)
from schemagen.column_types import make_column_type, registered_kinds
from schemagen.modifiers import (
    with_auto_increment,
    with_default,
    with_nullable,
    with_primary_key,
    with_unique,
)
from schemagen.validators import Diagnostic, DiagnosticLog, validate_batch, validate_entity
from schemagen.emitters import (
    column_emitter,
    emit_constraints,
    emit_indexes,
    emit_schema,
    emit_table,
    emit_tables,
)
from schemagen.relationships import emit_relationship, emit_relationships
from schemagen.migrations import EntityFailure, MigrationBatch, emit_migration, emit_migration_batch
from schemagen.builders import ColumnBuilder, EntityBuilder, RelationshipBuilder
from schemagen.compiler import (
    CompilationReport,
    GeneratedSchema,
    SchemaCompiler,
    load_entities,
    load_entities_file,
    parse_entity_documents,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Orchestrator
    "SchemaCompiler",
    "CompilationReport",
    "GeneratedSchema",
    "load_entities",
    "load_entities_file",
    "parse_entity_documents",
    # Errors
    "SchemaGenError",
    "SchemaStructuralError",
    "MissingPrimaryKeyError",
    "PrimaryKeyConflictError",
    "UnresolvedReferenceError",
    "MissingJunctionTableError",
    "JunctionColumnCollisionError",
    "UnknownRelationTypeError",
    "UnknownDialectError",
    "InvalidColumnTypeError",
    "CodecError",
    # Models
    "CheckConstraint",
    "Column",
    "ColumnModifier",
    "ColumnType",
    "CompilerConfig",
    "Constraint",
    "ConstraintType",
    "Dialect",
    "DialectOptions",
    "Entity",
    "EntityName",
    "ForeignKeySpec",
    "GeneratedKind",
    "Index",
    "IndexType",
    "JunctionTableSpec",
    "ModifierKind",
    "ReferentialAction",
    "Relationship",
    "RelationType",
    "SqlVariant",
    "Table",
    # Column types & modifiers
    "make_column_type",
    "registered_kinds",
    "with_nullable",
    "with_unique",
    "with_primary_key",
    "with_default",
    "with_auto_increment",
    # Validation
    "Diagnostic",
    "DiagnosticLog",
    "validate_entity",
    "validate_batch",
    # Emitters
    "column_emitter",
    "emit_table",
    "emit_tables",
    "emit_indexes",
    "emit_constraints",
    "emit_schema",
    "emit_relationship",
    "emit_relationships",
    "emit_migration",
    "emit_migration_batch",
    "EntityFailure",
    "MigrationBatch",
    # Builders
    "ColumnBuilder",
    "EntityBuilder",
    "RelationshipBuilder",
]
