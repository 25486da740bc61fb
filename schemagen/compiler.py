# File: schemagen/compiler.py
"""
SchemaGen - Compilation Pipeline (Orchestrator)
================================================

Connects every phase together:

    Entity document → Entities → Validation → Dialect schemas
                    → Relationship DDL → Migration batch

The ``SchemaCompiler`` class is the programmatic API and the backend of the
CLI.

Workflow::

    1. Load an entity document from JSON/YAML (or accept Entity values).
    2. Parse it into ``Entity`` models + ``CompilerConfig``.
    3. Run the pre-flight validators (validators.py).
    4. Emit every configured dialect per entity (emitters.py).
    5. Emit relationship, index and constraint DDL.
    6. Assemble the migration batch (migrations.py).
    7. Return a ``CompilationReport`` with metrics and status.

Error handling strategy:
    - Validation errors are collected and surfaced, not swallowed.
    - Structural errors are isolated per entity; one bad entity does not
      stop the others.
    - The final report gives a clear pass/fail verdict.
"""

from __future__ import annotations

import datetime as _dt
import json
import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from schemagen import column_types
from schemagen.emitters import emit_constraints, emit_indexes, emit_schema, parse_dialect
from schemagen.errors import SchemaStructuralError
from schemagen.migrations import EntityFailure, MigrationBatch, emit_migration, emit_migration_batch
from schemagen.models import (
    CheckConstraint,
    Column,
    ColumnType,
    CompilerConfig,
    Constraint,
    Dialect,
    DialectOptions,
    Entity,
    EntityName,
    ForeignKeySpec,
    GeneratedKind,
    Index,
    IndexType,
    JunctionTableSpec,
    ReferentialAction,
    Relationship,
    Table,
)
from schemagen.relationships import emit_relationships
from schemagen.utils import Timer, count_lines, to_plural
from schemagen.validators import DiagnosticLog, validate_batch, validate_entity

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.compiler")

WARNINGS_AS_ERRORS: str = "DB_WARNINGS_AS_ERRORS"


# ---------------------------------------------------------------------------
# Compilation results
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GeneratedSchema:
    """Everything compiled for one entity."""

    entity_id: str = ""
    sql: Optional[str] = None
    drizzle: Optional[str] = None
    prisma: Optional[str] = None
    convex: Optional[str] = None
    relationships: List[str] = field(default_factory=list)
    indexes: List[str] = field(default_factory=list)
    constraints: List[str] = field(default_factory=list)
    migrations: List[str] = field(default_factory=list)
    diagnostics: DiagnosticLog = field(default_factory=DiagnosticLog)

    def for_dialect(self, dialect: Union[Dialect, str]) -> Optional[str]:
        return getattr(self, parse_dialect(dialect).value)

    @property
    def total_lines(self) -> int:
        texts: List[str] = [t for t in (self.sql, self.drizzle, self.prisma, self.convex) if t]
        texts.extend(self.relationships + self.indexes + self.constraints + self.migrations)
        return sum(count_lines(text) for text in texts)


@dataclass(frozen=False, slots=True)
class CompilationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class CompilationReport:
    """
    Report produced by ``SchemaCompiler.compile_batch()``.

    Contains timing information, per-entity outputs, the migration batch and
    every error and warning encountered.
    """

    success: bool = False
    version: str = ""

    # Metrics
    total_entities: int = 0
    compiled_entities: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[CompilationStepMetric] = field(default_factory=list)
    schemas: Dict[str, GeneratedSchema] = field(default_factory=dict)
    batch: Optional[MigrationBatch] = None
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    failures: List[EntityFailure] = field(default_factory=list)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append("=" * 60)
        lines.append("  SchemaGen — Compilation Report")
        lines.append("=" * 60)
        lines.append(f"  Status:           {status}")
        lines.append(f"  Version:          {self.version}")
        lines.append(f"  Entities:         {self.compiled_entities}/{self.total_entities} compiled")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append("─" * 60)

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        if self.validation_errors:
            lines.append("─" * 60)
            lines.append(f"  Validation Errors ({len(self.validation_errors)}):")
            lines.extend(f"    ✗ {err}" for err in self.validation_errors)

        if self.validation_warnings:
            lines.append("─" * 60)
            lines.append(f"  Validation Warnings ({len(self.validation_warnings)}):")
            lines.extend(f"    ⚠ {warn}" for warn in self.validation_warnings)

        if self.failures:
            lines.append("─" * 60)
            lines.append(f"  Failed Entities ({len(self.failures)}):")
            lines.extend(f"    ✗ {failure}" for failure in self.failures)

        lines.append("=" * 60)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Entity document models
# ---------------------------------------------------------------------------

_DOC_CONFIG: ConfigDict = ConfigDict(extra="forbid", populate_by_name=True)

# Kinds whose documents carry the serialized (text) form of a default
_TEXT_DEFAULT_KINDS: Tuple[str, ...] = ("decimal", "date", "timestamp", "datetime", "numeric")


class ColumnDocument(BaseModel):
    """One column as written in an entity document."""

    model_config = _DOC_CONFIG

    type: str = Field(..., min_length=1, description="Column kind, e.g. 'string'.")
    length: Optional[int] = Field(default=None, description="string max length.")
    precision: Optional[int] = Field(default=None)
    scale: Optional[int] = Field(default=None)
    values: Optional[List[str]] = Field(default=None, description="enum members.")
    of: Optional[str] = Field(default=None, description="array element kind.")
    nullable: bool = False
    unique: bool = False
    primary: bool = False
    auto_increment: bool = False
    indexed: bool = False
    generated: Optional[GeneratedKind] = None
    generated_as: Optional[str] = None
    default: Any = None
    default_generated: bool = Field(
        default=False, description="Database-generated default (uuid / now)."
    )
    comment: Optional[str] = None

    def to_column_type(self) -> ColumnType:
        kind: str = self.type.strip().lower()
        if kind in ("string", "varchar", "text"):
            return column_types.make_column_type(kind, self.length)
        if kind in ("decimal", "numeric"):
            return column_types.make_column_type(kind, self.precision, self.scale)
        if kind == "enum":
            return column_types.make_column_type(kind, self.values or [])
        if kind == "array":
            return column_types.make_column_type(kind, self.of or "string")
        return column_types.make_column_type(kind)

    def to_column(self) -> Column:
        column_type: ColumnType = self.to_column_type()
        default: Any = self.default
        if self.default_generated:
            default = _database_generated
        elif isinstance(default, str) and column_type.type_name in _TEXT_DEFAULT_KINDS:
            default = column_type.deserialize(default)
        elif isinstance(default, float) and column_type.type_name == "decimal":
            default = Decimal(str(default))
        return Column(
            column_type=column_type,
            nullable=self.nullable,
            unique=self.unique,
            primary=self.primary,
            auto_increment=self.auto_increment,
            indexed=self.indexed,
            generated=self.generated,
            generated_as=self.generated_as,
            default=default,
            comment=self.comment,
        )


def _database_generated() -> None:
    """Callable default loaded from documents; rendered, never called."""
    return None


class IndexDocument(BaseModel):
    model_config = _DOC_CONFIG

    name: str
    columns: List[str] = Field(..., min_length=1)
    unique: bool = False
    where: Optional[str] = None
    type: Optional[IndexType] = None


class ConstraintDocument(BaseModel):
    model_config = _DOC_CONFIG

    name: str
    type: str
    definition: str


class CheckDocument(BaseModel):
    model_config = _DOC_CONFIG

    name: str
    expression: str


class ForeignKeyDocument(BaseModel):
    model_config = _DOC_CONFIG

    local_column: str
    foreign_column: str = "id"
    on_delete: ReferentialAction = ReferentialAction.CASCADE
    on_update: ReferentialAction = ReferentialAction.CASCADE
    indexed: bool = True
    deferrable: bool = False
    constraint_name: Optional[str] = None


class JunctionDocument(BaseModel):
    model_config = _DOC_CONFIG

    name: str
    local_column: str
    foreign_column: str
    extra_columns: Dict[str, ColumnDocument] = Field(default_factory=dict)


class RelationshipDocument(BaseModel):
    model_config = _DOC_CONFIG

    name: str
    type: str = Field(..., description="one-to-one | one-to-many | many-to-one | many-to-many")
    local: Optional[str] = Field(default=None, description="Defaults to the entity's table.")
    foreign: str
    foreign_key: ForeignKeyDocument
    junction: Optional[JunctionDocument] = None
    description: Optional[str] = None


class EntityDocument(BaseModel):
    """One entity as written in an entity document."""

    model_config = _DOC_CONFIG

    id: str = Field(..., min_length=1)
    singular: Optional[str] = None
    plural: Optional[str] = None
    display: Optional[str] = None
    table: Optional[str] = Field(default=None, description="Table name override.")
    version: Union[str, int] = "1"
    description: Optional[str] = None
    comment: Optional[str] = None
    primary_key: List[str] = Field(default_factory=lambda: ["id"])
    columns: Dict[str, ColumnDocument] = Field(..., min_length=1)
    unique: List[List[str]] = Field(default_factory=list)
    checks: List[CheckDocument] = Field(default_factory=list)
    indexes: List[IndexDocument] = Field(default_factory=list)
    constraints: List[ConstraintDocument] = Field(default_factory=list)
    relationships: List[RelationshipDocument] = Field(default_factory=list)
    fields: Dict[str, Any] = Field(default_factory=dict)

    def entity_name(self) -> EntityName:
        singular: str = self.singular or self.id
        return EntityName(
            singular=singular,
            plural=self.plural or to_plural(singular),
            display=self.display,
            db=self.table,
        )

    def to_table(self) -> Table:
        name: EntityName = self.entity_name()
        return Table(
            name=self.table or name.plural.lower(),
            columns={col: doc.to_column() for col, doc in self.columns.items()},
            primary_key=tuple(self.primary_key),
            unique_constraints=tuple(tuple(group) for group in self.unique),
            check_constraints=tuple(
                CheckConstraint(name=c.name, expression=c.expression) for c in self.checks
            ),
            comment=self.comment,
        )

    def to_entity(self, tables: Dict[str, Table]) -> Entity:
        """Build the Entity; relationship targets found in *tables* are linked as full tables."""
        table: Table = tables.get(self.id) or self.to_table()
        by_name: Dict[str, Table] = {t.name: t for t in tables.values()}

        def ref(name: str) -> Union[str, Table]:
            return by_name.get(name, name)

        relationships: List[Relationship] = []
        for rel in self.relationships:
            junction: Optional[JunctionTableSpec] = None
            if rel.junction is not None:
                junction = JunctionTableSpec(
                    name=rel.junction.name,
                    local_column=rel.junction.local_column,
                    foreign_column=rel.junction.foreign_column,
                    extra_columns={
                        col: doc.to_column() for col, doc in rel.junction.extra_columns.items()
                    },
                )
            relationships.append(
                Relationship(
                    name=rel.name,
                    relation_type=rel.type,
                    local_entity=ref(rel.local or table.name),
                    foreign_entity=ref(rel.foreign),
                    foreign_key=ForeignKeySpec(**rel.foreign_key.model_dump()),
                    junction_table=junction,
                    description=rel.description,
                )
            )

        return Entity(
            id=self.id,
            name=self.entity_name(),
            version=str(self.version),
            description=self.description,
            table=table,
            fields=self.fields,
            relationships=tuple(relationships),
            indexes=tuple(
                Index(
                    name=idx.name,
                    table_name=table.name,
                    columns=tuple(idx.columns),
                    unique=idx.unique,
                    where=idx.where,
                    index_type=idx.type,
                )
                for idx in self.indexes
            ),
            constraints=tuple(
                Constraint(
                    name=c.name,
                    table_name=table.name,
                    constraint_type=c.type,
                    definition=c.definition,
                )
                for c in self.constraints
            ),
        )


class EntitiesDocument(BaseModel):
    model_config = _DOC_CONFIG

    entities: List[EntityDocument] = Field(..., min_length=1)
    config: CompilerConfig = Field(default_factory=CompilerConfig)


# ---------------------------------------------------------------------------
# Document loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def load_entities_file(path: Path) -> Dict[str, Any]:
    """
    Load an entity document (JSON or YAML), dispatching on the extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Entity document not found: {path}")
    if not path.is_file():
        raise ValueError(f"Entity document path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


def parse_entity_documents(raw: Dict[str, Any]) -> Tuple[List[Entity], CompilerConfig]:
    """
    Parse a raw mapping (from JSON/YAML) into Entity models.

    Expected top-level keys:
        - "entities": list of entity documents
        - "config" (optional): ``CompilerConfig`` fields

    Relationship targets that name another entity's table are linked to that
    table, so column references can be checked.

    Raises:
        ValueError: If the document does not validate.
    """
    try:
        document: EntitiesDocument = EntitiesDocument.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Entity document validation failed: {exc}") from exc

    tables: Dict[str, Table] = {}
    for entity_doc in document.entities:
        if entity_doc.id in tables:
            raise ValueError(f"Duplicate entity id '{entity_doc.id}' in document.")
        try:
            tables[entity_doc.id] = entity_doc.to_table()
        except ValidationError as exc:
            raise ValueError(f"Entity '{entity_doc.id}' is invalid: {exc}") from exc

    entities: List[Entity] = []
    for entity_doc in document.entities:
        try:
            entities.append(entity_doc.to_entity(tables))
        except ValidationError as exc:
            raise ValueError(f"Entity '{entity_doc.id}' is invalid: {exc}") from exc

    logger.info("Parsed %d entities from document.", len(entities))
    return entities, document.config


def load_entities(path: Path) -> Tuple[List[Entity], CompilerConfig]:
    """``load_entities_file`` + ``parse_entity_documents``."""
    return parse_entity_documents(load_entities_file(path))


# ---------------------------------------------------------------------------
# SchemaCompiler (orchestrator)
# ---------------------------------------------------------------------------


class SchemaCompiler:
    """
    Compiles entities into dialect schemas and migrations.

    Usage::

        compiler = SchemaCompiler(CompilerConfig(sql_variant="mysql"))
        generated = compiler.compile_entity(user)
        print(generated.sql)

        report = compiler.compile_batch([user, post, tag], version="2024_01")
        print(report.summary())

    The compiler holds no per-call state; reuse it freely.
    """

    def __init__(self, config: Optional[CompilerConfig] = None) -> None:
        self._config: CompilerConfig = config or CompilerConfig()
        logger.debug(
            "SchemaCompiler initialised: dialects=%s, sql_variant=%s.",
            [d.value for d in self._config.dialects],
            self._config.sql_variant.value,
        )

    @property
    def config(self) -> CompilerConfig:
        return self._config

    @property
    def options(self) -> DialectOptions:
        return self._config.dialect_options()

    def _generated_at(self) -> Optional[_dt.datetime]:
        if self._config.include_timestamp:
            return _dt.datetime.now(_dt.timezone.utc).replace(microsecond=0)
        return None

    # -----------------------------------------------------------------
    # Public: single entity
    # -----------------------------------------------------------------

    def compile_schema(self, entity: Entity, dialect: Union[Dialect, str]) -> str:
        """Schema text of *entity* for one dialect."""
        return emit_schema(entity, parse_dialect(dialect), self.options)

    def compile_entity(
        self,
        entity: Entity,
        generated_at: Optional[_dt.datetime] = None,
    ) -> GeneratedSchema:
        """
        Compile every configured dialect plus relationship, index,
        constraint and migration DDL for *entity*.

        Raises:
            SchemaStructuralError: the entity cannot be compiled.
        """
        result: GeneratedSchema = GeneratedSchema(entity_id=entity.id)
        diagnostics: DiagnosticLog = result.diagnostics
        options: DialectOptions = self.options

        if self._config.validate_before_compile:
            diagnostics.merge(validate_entity(entity))

        for dialect in self._config.dialects:
            setattr(result, dialect.value, emit_schema(entity, dialect, options, diagnostics))
        result.relationships = emit_relationships(entity, options, diagnostics)
        # the sql schema above already logged index warnings
        index_log: Optional[DiagnosticLog] = (
            None if Dialect.SQL in self._config.dialects else diagnostics
        )
        result.indexes = emit_indexes(entity, options, index_log)
        result.constraints = emit_constraints(entity)
        result.migrations = [
            emit_migration(
                entity,
                options=options,
                generated_at=generated_at or self._generated_at(),
            )
        ]
        logger.info(
            "Compiled entity '%s': %d dialect(s), %d relationship(s), %d warning(s).",
            entity.id,
            len(self._config.dialects),
            len(result.relationships),
            diagnostics.warning_count,
        )
        return result

    # -----------------------------------------------------------------
    # Public: batch
    # -----------------------------------------------------------------

    def compile_batch(self, entities: Sequence[Entity], version: str = "1") -> CompilationReport:
        """
        Full pipeline over many entities: validate → compile → migrations.
        """
        report: CompilationReport = CompilationReport(version=version, total_entities=len(entities))
        pipeline_start: float = time.perf_counter()
        generated_at: Optional[_dt.datetime] = self._generated_at()

        if self._config.validate_before_compile:
            self._step_validate(entities, report)

        compiled: List[Entity] = self._step_compile(entities, report, generated_at)
        self._step_migrations(compiled, version, report, generated_at)

        report.total_elapsed_seconds = time.perf_counter() - pipeline_start
        report.success = not report.failures and not report.validation_errors
        return report

    # -----------------------------------------------------------------
    # Pipeline steps
    # -----------------------------------------------------------------

    def _step_validate(self, entities: Sequence[Entity], report: CompilationReport) -> None:
        with Timer("validation") as t:
            log: DiagnosticLog = validate_batch(entities)

        report.validation_errors.extend(str(d) for d in log.errors)
        report.validation_warnings.extend(str(d) for d in log.warnings)

        if log.has_errors:
            detail: str = f"{log.error_count} error(s)"
        elif log.has_warnings:
            detail = f"{log.warning_count} warning(s)"
        else:
            detail = "all checks passed"

        report.step_metrics.append(
            CompilationStepMetric(
                step_name="Validate Entities",
                success=log.is_valid,
                elapsed_seconds=t.elapsed,
                detail=detail,
            )
        )
        for item in log.errors:
            logger.error("  ✗ %s", item)

    def _step_compile(
        self,
        entities: Sequence[Entity],
        report: CompilationReport,
        generated_at: Optional[_dt.datetime],
    ) -> List[Entity]:
        """Compile each entity in isolation; return the ones that succeeded."""
        compiled: List[Entity] = []
        with Timer("compilation") as t:
            for entity in entities:
                try:
                    schema: GeneratedSchema = self.compile_entity(entity, generated_at)
                except SchemaStructuralError as exc:
                    logger.error("Entity '%s' failed: %s", entity.id, exc)
                    report.failures.append(
                        EntityFailure(entity.id, exc.code, exc.subject, exc.message)
                    )
                    continue
                if self._config.fail_on_warnings and schema.diagnostics.has_warnings:
                    report.failures.append(
                        EntityFailure(
                            entity.id,
                            WARNINGS_AS_ERRORS,
                            None,
                            f"{schema.diagnostics.warning_count} warning(s) treated as errors.",
                        )
                    )
                    continue
                report.schemas[entity.id] = schema
                compiled.append(entity)

        report.compiled_entities = len(compiled)
        report.total_lines = sum(s.total_lines for s in report.schemas.values())
        report.step_metrics.append(
            CompilationStepMetric(
                step_name="Compile Schemas",
                success=len(compiled) == len(entities),
                elapsed_seconds=t.elapsed,
                detail=f"{len(compiled)}/{len(entities)} entities, ~{report.total_lines:,} lines",
            )
        )
        return compiled

    def _step_migrations(
        self,
        entities: Sequence[Entity],
        version: str,
        report: CompilationReport,
        generated_at: Optional[_dt.datetime],
    ) -> None:
        with Timer("migrations") as t:
            batch: MigrationBatch = emit_migration_batch(entities, version, self.options, generated_at)
        report.batch = batch
        report.failures.extend(batch.failures)
        report.step_metrics.append(
            CompilationStepMetric(
                step_name="Assemble Migrations",
                success=batch.success,
                elapsed_seconds=t.elapsed,
                detail=f"{len(batch.up)} up / {len(batch.down)} down",
            )
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "WARNINGS_AS_ERRORS",
    "GeneratedSchema",
    "CompilationStepMetric",
    "CompilationReport",
    "ColumnDocument",
    "EntityDocument",
    "EntitiesDocument",
    "load_entities_file",
    "parse_entity_documents",
    "load_entities",
    "SchemaCompiler",
]

logger.debug("schemagen.compiler loaded — %d public symbols.", len(__all__))
