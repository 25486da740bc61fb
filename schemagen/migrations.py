# File: schemagen/migrations.py
"""
SchemaGen - Migration Assembler
================================
Stitches the SQL table DDL, index DDL, constraint DDL and relationship DDL
of an entity into one migration script, and builds up/down batches over
many entities.

Within one script the order is fixed: table before indexes before
constraints before relationships, so every statement only references
objects created above it.

A batch isolates entities: a structural error in one entity is recorded as
an ``EntityFailure`` and the remaining entities still compile.
"""

from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from schemagen.emitters import emit_constraints, emit_indexes, emit_table
from schemagen.errors import SchemaStructuralError
from schemagen.models import Dialect, DialectOptions, Entity
from schemagen.relationships import emit_relationships
from schemagen.validators import Diagnostic, DiagnosticLog

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.migrations")


@dataclass(frozen=True, slots=True)
class EntityFailure:
    """Why one entity of a batch produced no migration."""

    entity_id: str
    code: str
    subject: Optional[str]
    message: str

    def __str__(self) -> str:
        subject: str = f" ({self.subject})" if self.subject else ""
        return f"{self.entity_id}: [{self.code}]{subject} {self.message}"


@dataclass(frozen=False, slots=True)
class MigrationBatch:
    """
    Result of ``emit_migration_batch``.

    ``down`` lists one ``DROP TABLE`` per successful entity in the same
    order as ``up``; callers that need reverse dependency order must
    reverse it themselves.
    """

    up: List[str] = field(default_factory=list)
    down: List[str] = field(default_factory=list)
    version: str = ""
    description: str = ""
    failures: List[EntityFailure] = field(default_factory=list)
    warnings: List[Diagnostic] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures

    def up_script(self) -> str:
        return "\n\n".join(self.up) + ("\n" if self.up else "")

    def down_script(self) -> str:
        return "\n".join(self.down) + ("\n" if self.down else "")

    def summary(self) -> str:
        lines: List[str] = [
            f"Migration batch {self.version}: {len(self.up)} migration(s), "
            f"{len(self.failures)} failure(s), {len(self.warnings)} warning(s).",
        ]
        lines.extend(f"  ✗ {failure}" for failure in self.failures)
        return "\n".join(lines)


def _section(title: str, entity: Entity, statements: Sequence[str]) -> List[str]:
    if not statements:
        return []
    return ["", f"-- {title} for {entity.id}", *statements]


def emit_migration(
    entity: Entity,
    version: Optional[str] = None,
    options: Optional[DialectOptions] = None,
    diagnostics: Optional[DiagnosticLog] = None,
    generated_at: Optional[Union[_dt.datetime, str]] = None,
) -> str:
    """
    One migration script for *entity*.

    *version* defaults to the entity's own version.  The ``-- Generated:``
    header line is only written when *generated_at* is given, which keeps
    output byte-identical across runs by default.

    Raises:
        SchemaStructuralError: from the table, index or relationship emitters.
    """
    table_name: str = entity.table.name
    header: List[str] = [
        f"-- Migration: Create {table_name} table",
        f"-- Entity: {entity.id}",
        f"-- Version: {version if version is not None else entity.version}",
        f"-- Description: {entity.description or f'Create {entity.name.singular} entity table'}",
    ]
    if generated_at is not None:
        stamp: str = generated_at.isoformat() if isinstance(generated_at, _dt.datetime) else str(generated_at)
        header.append(f"-- Generated: {stamp}")

    lines: List[str] = header + ["", emit_table(entity.table, Dialect.SQL, options, diagnostics)]
    lines += _section("Create indexes", entity, emit_indexes(entity, options, diagnostics))
    lines += _section("Create constraints", entity, emit_constraints(entity))
    lines += _section("Create relationships", entity, emit_relationships(entity, options, diagnostics))
    logger.debug("Assembled migration for entity '%s'", entity.id)
    return "\n".join(lines) + "\n"


def emit_migration_batch(
    entities: Sequence[Entity],
    version: str,
    options: Optional[DialectOptions] = None,
    generated_at: Optional[Union[_dt.datetime, str]] = None,
) -> MigrationBatch:
    """
    Migrations for many entities, in caller order.

    Every entity that compiles contributes exactly one ``up`` script and one
    ``down`` statement; every entity that fails contributes one
    ``EntityFailure``.
    """
    batch: MigrationBatch = MigrationBatch(version=version)
    compiled: List[str] = []

    for entity in entities:
        log: DiagnosticLog = DiagnosticLog()
        try:
            script: str = emit_migration(entity, version, options, log, generated_at)
        except SchemaStructuralError as exc:
            logger.error("Entity '%s' failed to compile: %s", entity.id, exc)
            batch.failures.append(
                EntityFailure(
                    entity_id=entity.id,
                    code=exc.code,
                    subject=exc.subject,
                    message=exc.message,
                )
            )
            continue
        batch.up.append(script)
        batch.down.append(f"DROP TABLE IF EXISTS {entity.table.name} CASCADE;")
        batch.warnings.extend(log.warnings)
        compiled.append(entity.id)

    batch.description = f"Create tables for entities: {', '.join(compiled)}"
    logger.info(
        "Migration batch %s: %d compiled, %d failed",
        version,
        len(batch.up),
        len(batch.failures),
    )
    return batch


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "EntityFailure",
    "MigrationBatch",
    "emit_migration",
    "emit_migration_batch",
]

logger.debug("schemagen.migrations loaded — %d public symbols.", len(__all__))
