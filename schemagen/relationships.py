# File: schemagen/relationships.py
"""
SchemaGen - Relationship Compiler
==================================
Renders relationship DDL, independent of the table emitters.

* one-to-one   → FK constraint on the local table + UNIQUE index
* one-to-many  → FK constraint on the local table + index
* many-to-one  → FK constraint on the local table + index
* many-to-many → junction table with two FK columns, composite primary key
  and one index per FK column

Every fragment opens with a ``-- <Kind> relationship: ...`` comment line.
Dispatch is a closed table over ``RelationType``; anything else raises
``UnknownRelationTypeError`` instead of producing a placeholder.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Set, Tuple

from schemagen import column_types
from schemagen.emitters import MODIFIER_UNSUPPORTED, sql_base_type, sql_column_definition
from schemagen.errors import (
    JunctionColumnCollisionError,
    MissingJunctionTableError,
    UnknownRelationTypeError,
    UnresolvedReferenceError,
)
from schemagen.models import (
    DEFAULT_OPTIONS,
    DialectOptions,
    Entity,
    JunctionTableSpec,
    Relationship,
    RelationType,
    SqlVariant,
    Table,
)
from schemagen.validators import DiagnosticLog

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.relationships")

_KIND_LABELS: Dict[RelationType, str] = {
    RelationType.ONE_TO_ONE: "One-to-one",
    RelationType.ONE_TO_MANY: "One-to-many",
    RelationType.MANY_TO_ONE: "Many-to-one",
    RelationType.MANY_TO_MANY: "Many-to-many",
}


def _require_column(table: Optional[Table], column: str, rel: Relationship) -> None:
    if table is not None and column not in table.columns:
        raise UnresolvedReferenceError(
            f"Relationship '{rel.name}' references column '{column}', which does not "
            f"exist in table '{table.name}'.",
            entity=table.name,
            subject=column,
            context={"relationship": rel.name},
        )


def _sides(rel: Relationship, context: Optional[Table]) -> Tuple[Optional[Table], Optional[Table]]:
    """Full tables for both sides, using *context* for a side named by string."""
    local: Optional[Table] = rel.local_table
    foreign: Optional[Table] = rel.foreign_table
    if context is not None:
        if local is None and rel.local_table_name == context.name:
            local = context
        if foreign is None and rel.foreign_table_name == context.name:
            foreign = context
    return local, foreign


def _foreign_key(
    rel: Relationship,
    options: Optional[DialectOptions],
    diagnostics: Optional[DiagnosticLog],
) -> str:
    fk = rel.foreign_key
    local: str = rel.local_table_name
    foreign: str = rel.foreign_table_name
    name: str = fk.constraint_name or f"fk_{local}_{foreign}"
    statement: str = (
        f"ALTER TABLE {local} ADD CONSTRAINT {name} FOREIGN KEY ({fk.local_column}) "
        f"REFERENCES {foreign}({fk.foreign_column}) "
        f"ON DELETE {fk.on_delete.sql} ON UPDATE {fk.on_update.sql}"
    )
    variant: SqlVariant = (options or DEFAULT_OPTIONS).sql_variant
    if variant == SqlVariant.SQLITE:
        message: str = (
            f"Relationship '{rel.name}': sqlite cannot add a foreign key with ALTER TABLE; "
            f"declare it inline on '{local}.{fk.local_column}' instead."
        )
        logger.warning("%s: %s", MODIFIER_UNSUPPORTED, message)
        if diagnostics is not None:
            diagnostics.add_warning(MODIFIER_UNSUPPORTED, message, {"relationship": rel.name})
    if fk.deferrable:
        if variant == SqlVariant.MYSQL:
            message = (
                f"Relationship '{rel.name}': mysql has no deferrable constraints; "
                f"DEFERRABLE dropped."
            )
            logger.warning("%s: %s", MODIFIER_UNSUPPORTED, message)
            if diagnostics is not None:
                diagnostics.add_warning(MODIFIER_UNSUPPORTED, message, {"relationship": rel.name})
        else:
            statement += " DEFERRABLE INITIALLY DEFERRED"
    return statement + ";"


def _emit_direct(
    rel: Relationship,
    options: Optional[DialectOptions],
    diagnostics: Optional[DiagnosticLog],
    context: Optional[Table],
) -> str:
    """one-to-one, one-to-many, many-to-one: FK on the local table."""
    local_table, foreign_table = _sides(rel, context)
    fk = rel.foreign_key
    _require_column(local_table, fk.local_column, rel)
    _require_column(foreign_table, fk.foreign_column, rel)

    local: str = rel.local_table_name
    lines: List[str] = [
        f"-- {_KIND_LABELS[rel.relation_type]} relationship: {local} -> {rel.foreign_table_name}",
        _foreign_key(rel, options, diagnostics),
    ]
    if fk.indexed:
        unique: str = "UNIQUE " if rel.relation_type == RelationType.ONE_TO_ONE else ""
        lines.append(
            f"CREATE {unique}INDEX idx_{local}_{fk.local_column} ON {local}({fk.local_column});"
        )
    return "\n".join(lines)


def _check_junction(rel: Relationship, junction: JunctionTableSpec) -> None:
    if junction.local_column == junction.foreign_column:
        raise JunctionColumnCollisionError(
            f"Junction table '{junction.name}' uses '{junction.local_column}' for both "
            f"foreign keys.",
            entity=junction.name,
            subject=junction.local_column,
            context={"relationship": rel.name},
        )
    reserved: Set[str] = {junction.local_column, junction.foreign_column}
    for name in junction.extra_columns:
        if name in reserved:
            raise JunctionColumnCollisionError(
                f"Extra column '{name}' of junction table '{junction.name}' collides "
                f"with a foreign-key column.",
                entity=junction.name,
                subject=name,
                context={"relationship": rel.name},
            )


def _key_type(
    table: Optional[Table],
    column: str,
    options: Optional[DialectOptions],
    diagnostics: Optional[DiagnosticLog],
) -> str:
    """Key type of a junction column; a side named only by string is taken as a uuid key."""
    if table is None:
        return sql_base_type(column_types.uuid(), options, diagnostics)
    return sql_base_type(table.columns[column].column_type, options, diagnostics)


def _emit_many_to_many(
    rel: Relationship,
    options: Optional[DialectOptions],
    diagnostics: Optional[DiagnosticLog],
    context: Optional[Table],
) -> str:
    junction: Optional[JunctionTableSpec] = rel.junction_table
    if junction is None:
        raise MissingJunctionTableError(
            f"Many-to-many relationship '{rel.name}' has no junction table.",
            entity=rel.local_table_name,
            subject=rel.name,
        )
    _check_junction(rel, junction)

    local_table, foreign_table = _sides(rel, context)
    fk = rel.foreign_key
    _require_column(local_table, fk.local_column, rel)
    _require_column(foreign_table, fk.foreign_column, rel)

    local: str = rel.local_table_name
    foreign: str = rel.foreign_table_name
    local_type: str = _key_type(local_table, fk.local_column, options, diagnostics)
    foreign_type: str = _key_type(foreign_table, fk.foreign_column, options, diagnostics)

    body: List[str] = [
        f"{junction.local_column} {local_type} NOT NULL "
        f"REFERENCES {local}({fk.local_column}) ON DELETE CASCADE",
        f"{junction.foreign_column} {foreign_type} NOT NULL "
        f"REFERENCES {foreign}({fk.foreign_column}) ON DELETE CASCADE",
    ]
    body.extend(
        sql_column_definition(name, column, options, diagnostics)
        for name, column in junction.extra_columns.items()
    )
    body.append(f"PRIMARY KEY ({junction.local_column}, {junction.foreign_column})")

    lines: List[str] = [
        f"-- Many-to-many relationship: {local} <-> {foreign} via {junction.name}",
        f"CREATE TABLE {junction.name} (",
        ",\n".join(f"  {item}" for item in body),
        ");",
        "",
        "-- Indexes for performance",
    ]
    for column in (junction.local_column, junction.foreign_column):
        lines.append(f"CREATE INDEX idx_{junction.name}_{column} ON {junction.name}({column});")
    return "\n".join(lines)


_Handler = Callable[
    [Relationship, Optional[DialectOptions], Optional[DiagnosticLog], Optional[Table]], str
]

_HANDLERS: Dict[RelationType, _Handler] = {
    RelationType.ONE_TO_ONE: _emit_direct,
    RelationType.ONE_TO_MANY: _emit_direct,
    RelationType.MANY_TO_ONE: _emit_direct,
    RelationType.MANY_TO_MANY: _emit_many_to_many,
}

if set(_HANDLERS) != set(RelationType):
    raise RuntimeError("Relationship dispatch table does not cover every RelationType.")


def emit_relationship(
    rel: Relationship,
    options: Optional[DialectOptions] = None,
    diagnostics: Optional[DiagnosticLog] = None,
    context: Optional[Table] = None,
) -> str:
    """
    Render the DDL for one relationship.

    *context* is the owning entity's table; a side named by string that
    matches it is resolved against it for column checks.

    Raises:
        UnknownRelationTypeError: ``relation_type`` is not a known kind.
        MissingJunctionTableError: many-to-many without a junction spec.
        JunctionColumnCollisionError: junction columns reuse a name.
        UnresolvedReferenceError: a referenced column is missing from a
            supplied table.
    """
    if not isinstance(rel.relation_type, RelationType):
        raise UnknownRelationTypeError(
            f"Relationship '{rel.name}' has unknown type '{rel.relation_type}'.",
            entity=rel.local_table_name,
            subject=str(rel.relation_type),
        )
    logger.debug("Emitting relationship %r", rel)
    return _HANDLERS[rel.relation_type](rel, options, diagnostics, context)


def emit_relationships(
    entity: Entity,
    options: Optional[DialectOptions] = None,
    diagnostics: Optional[DiagnosticLog] = None,
) -> List[str]:
    """All of the entity's relationships, in declaration order."""
    return [
        emit_relationship(rel, options, diagnostics, context=entity.table)
        for rel in entity.relationships
    ]


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "emit_relationship",
    "emit_relationships",
]

logger.debug("schemagen.relationships loaded — %d public symbols.", len(__all__))
