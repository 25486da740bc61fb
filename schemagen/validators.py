# File: schemagen/validators.py
"""
SchemaGen - Diagnostics & Pre-flight Validators
================================================
Pydantic handles per-field structural correctness of the models.  This
module adds the **semantic** checks the emitters rely on (primary-key
agreement, referenced columns, junction specs, cross-entity targets) and the
``DiagnosticLog`` accumulator that emitters append coverage warnings to.

Validators never raise; they return a ``DiagnosticLog``.  The compiler decides
what to do with errors (see ``schemagen.compiler``).

Usage:
    from schemagen.validators import validate_batch
    log = validate_batch(entities)
    if not log.is_valid:
        print(log.format_report())
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from schemagen.models import Entity, Relationship, RelationType, Table
from schemagen.utils import is_identifier, is_reserved_word

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.validators")

# ---------------------------------------------------------------------------
# Diagnostic container
# ---------------------------------------------------------------------------


class Diagnostic:
    """Lightweight diagnostic record (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class DiagnosticLog:
    """
    Accumulates ``Diagnostic`` instances produced by validators and emitters.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(Diagnostic("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(Diagnostic("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(Diagnostic("info", code, message, context))

    def merge(self, other: "DiagnosticLog") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self._items if d.is_error]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self._items if d.is_warning]

    @property
    def all_items(self) -> List[Diagnostic]:
        return list(self._items)

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(d.is_warning for d in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for d in self._items if d.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self._items if d.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> List[str]:
        return [d.code for d in self._items]

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<DiagnosticLog {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "❌",
                "warning": "⚠️",
                "info": "ℹ️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for key, value in item.context.items():
                lines.append(f"       {key}: {value}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Table-level validators
# ---------------------------------------------------------------------------


def validate_table_name(table: Table) -> DiagnosticLog:
    log: DiagnosticLog = DiagnosticLog()
    ctx: Dict[str, Any] = {"table": table.name}
    if not is_identifier(table.name):
        log.add_error(
            "INVALID_TABLE_NAME",
            f"Table name '{table.name}' is not a valid identifier.",
            ctx,
        )
    elif is_reserved_word(table.name):
        log.add_warning(
            "TABLE_NAME_SQL_RESERVED",
            f"Table name '{table.name}' is a SQL reserved word; some variants "
            f"require it to be quoted.",
            ctx,
        )
    return log


def validate_column_names(table: Table) -> DiagnosticLog:
    """
    Every column name must be an identifier; reserved words are warnings.

    Complexity: O(C).
    """
    log: DiagnosticLog = DiagnosticLog()
    for name in table.columns:
        ctx: Dict[str, Any] = {"table": table.name, "column": name}
        if not is_identifier(name):
            log.add_error(
                "INVALID_COLUMN_NAME",
                f"Column '{name}' in table '{table.name}' is not a valid identifier.",
                ctx,
            )
            continue
        if is_reserved_word(name):
            log.add_warning(
                "COLUMN_NAME_SQL_RESERVED",
                f"Column '{name}' in table '{table.name}' is a SQL reserved word.",
                ctx,
            )
    return log


def validate_primary_key(table: Table) -> DiagnosticLog:
    """
    Check the table-level key against the per-column ``primary`` flags and
    the column set.
    """
    log: DiagnosticLog = DiagnosticLog()
    declared: Tuple[str, ...] = table.primary_key
    flagged: List[str] = table.flagged_primary_columns
    ctx: Dict[str, Any] = {"table": table.name}

    if not declared and not flagged:
        log.add_error(
            "DB_MISSING_PRIMARY_KEY",
            f"Table '{table.name}' has no primary key.",
            ctx,
        )
        return log

    for pk in declared:
        if pk not in table.columns:
            log.add_error(
                "PK_COLUMN_NOT_FOUND",
                f"Primary key column '{pk}' of table '{table.name}' does not exist.",
                {"table": table.name, "column": pk},
            )

    if not declared and len(flagged) > 1:
        log.add_error(
            "DB_PRIMARY_KEY_CONFLICT",
            f"Table '{table.name}' flags {len(flagged)} primary columns; declare "
            f"composite keys at table level.",
            {"table": table.name, "columns": flagged},
        )
    if declared and flagged and set(declared) != set(flagged):
        log.add_error(
            "DB_PRIMARY_KEY_CONFLICT",
            f"Table '{table.name}' declares primary key {list(declared)} but "
            f"flags {flagged}.",
            {"table": table.name, "declared": list(declared), "flagged": flagged},
        )
    if not declared:
        log.add_info(
            "SQL_PRIMARY_KEY_UNDECLARED",
            f"Table '{table.name}' has no table-level primary key; the SQL "
            f"dialect requires one.",
            ctx,
        )

    for name in declared or flagged:
        column = table.get_column(name)
        if column is not None and column.nullable:
            log.add_warning(
                "NULLABLE_PRIMARY_KEY",
                f"Primary key column '{name}' in table '{table.name}' is nullable.",
                {"table": table.name, "column": name},
            )

    for group in table.unique_constraints:
        for name in group:
            if name not in table.columns:
                log.add_error(
                    "UNIQUE_COLUMN_NOT_FOUND",
                    f"Unique constraint column '{name}' of table '{table.name}' "
                    f"does not exist.",
                    {"table": table.name, "column": name},
                )
    return log


# ---------------------------------------------------------------------------
# Entity-level validators
# ---------------------------------------------------------------------------


def validate_indexes(entity: Entity) -> DiagnosticLog:
    log: DiagnosticLog = DiagnosticLog()
    table: Table = entity.table
    names: Counter = Counter(index.name for index in entity.indexes)
    for name, count in names.items():
        if count > 1:
            log.add_error(
                "DUPLICATE_INDEX_NAME",
                f"Index '{name}' is defined {count} times on entity '{entity.id}'.",
                {"entity": entity.id, "index": name},
            )
    for index in entity.indexes:
        ctx: Dict[str, Any] = {"entity": entity.id, "index": index.name}
        if index.table_name != table.name:
            log.add_warning(
                "INDEX_TABLE_MISMATCH",
                f"Index '{index.name}' targets table '{index.table_name}', not "
                f"'{table.name}'.",
                ctx,
            )
            continue
        for column in index.columns:
            if column not in table.columns:
                log.add_error(
                    "INDEX_COLUMN_NOT_FOUND",
                    f"Index '{index.name}' references missing column '{column}'.",
                    {**ctx, "column": column},
                )
    return log


def _check_column(
    log: DiagnosticLog,
    table: Optional[Table],
    column: str,
    rel: Relationship,
    side: str,
) -> None:
    if table is not None and column not in table.columns:
        log.add_error(
            "DB_UNRESOLVED_REFERENCE",
            f"Relationship '{rel.name}': {side} column '{column}' does not exist "
            f"in table '{table.name}'.",
            {"relationship": rel.name, "table": table.name, "column": column},
        )


def validate_relationships(entity: Entity) -> DiagnosticLog:
    """
    Check relationship kinds, referenced columns and junction specs.

    A local entity given by name is resolved against the entity's own table.
    """
    log: DiagnosticLog = DiagnosticLog()

    for rel in entity.relationships:
        ctx: Dict[str, Any] = {"entity": entity.id, "relationship": rel.name}

        if not isinstance(rel.relation_type, RelationType):
            log.add_error(
                "DB_UNKNOWN_RELATION_TYPE",
                f"Relationship '{rel.name}' has unknown type '{rel.relation_type}'.",
                ctx,
            )
            continue

        local_table: Optional[Table] = rel.local_table
        if local_table is None and rel.local_table_name == entity.table.name:
            local_table = entity.table
        foreign_table: Optional[Table] = rel.foreign_table
        if foreign_table is None and rel.foreign_table_name == entity.table.name:
            foreign_table = entity.table

        _check_column(log, local_table, rel.foreign_key.local_column, rel, "local")
        _check_column(log, foreign_table, rel.foreign_key.foreign_column, rel, "foreign")

        if rel.relation_type != RelationType.MANY_TO_MANY:
            continue

        junction = rel.junction_table
        if junction is None:
            log.add_error(
                "DB_MISSING_JUNCTION_TABLE",
                f"Many-to-many relationship '{rel.name}' has no junction table.",
                ctx,
            )
            continue
        reused: List[str] = [
            name
            for name in junction.extra_columns
            if name in (junction.local_column, junction.foreign_column)
        ]
        if junction.local_column == junction.foreign_column or reused:
            log.add_error(
                "DB_JUNCTION_COLUMN_COLLISION",
                f"Junction table '{junction.name}' reuses a column name.",
                {**ctx, "junction": junction.name},
            )
    return log


def validate_entity(entity: Entity) -> DiagnosticLog:
    """Run every single-entity validator and merge the results."""
    log: DiagnosticLog = DiagnosticLog()
    table_checks: List[Callable[[Table], DiagnosticLog]] = [
        validate_table_name,
        validate_column_names,
        validate_primary_key,
    ]
    entity_checks: List[Callable[[Entity], DiagnosticLog]] = [
        validate_indexes,
        validate_relationships,
    ]
    for check in table_checks:
        log.merge(check(entity.table))
    for entity_check in entity_checks:
        log.merge(entity_check(entity))
    logger.debug("validate_entity(%s): %s", entity.id, log.summary())
    return log


# ---------------------------------------------------------------------------
# Batch validators
# ---------------------------------------------------------------------------


def _find_cycles(edges: Dict[str, Set[str]]) -> List[List[str]]:
    """Return every FK dependency cycle, each starting from its smallest node."""
    cycles: List[List[str]] = []
    seen: Set[Tuple[str, ...]] = set()

    def walk(node: str, path: List[str]) -> None:
        for nxt in sorted(edges.get(node, ())):
            if nxt == path[0]:
                key: Tuple[str, ...] = tuple(sorted(path))
                if key not in seen:
                    seen.add(key)
                    cycles.append(path + [nxt])
            elif nxt not in path and nxt > path[0]:
                walk(nxt, path + [nxt])

    for start in sorted(edges):
        walk(start, [start])
    return cycles


def validate_batch(entities: Sequence[Entity]) -> DiagnosticLog:
    """
    Validate a batch: every entity individually, then cross-entity checks
    (duplicate tables, relationship targets, FK cycles).
    """
    log: DiagnosticLog = DiagnosticLog()
    for entity in entities:
        log.merge(validate_entity(entity))

    tables: Counter = Counter(entity.table.name for entity in entities)
    for name, count in tables.items():
        if count > 1:
            log.add_error(
                "DUPLICATE_TABLE_NAME",
                f"Table '{name}' is produced by {count} entities.",
                {"table": name},
            )

    known: Set[str] = set(tables)
    edges: Dict[str, Set[str]] = {}
    for entity in entities:
        for rel in entity.relationships:
            for target in (rel.local_table_name, rel.foreign_table_name):
                if target not in known:
                    log.add_warning(
                        "UNRESOLVED_RELATIONSHIP_TARGET",
                        f"Relationship '{rel.name}' of entity '{entity.id}' targets "
                        f"table '{target}', which is not part of this batch.",
                        {"entity": entity.id, "table": target},
                    )
            if rel.relation_type == RelationType.MANY_TO_MANY:
                continue
            if rel.local_table_name != rel.foreign_table_name:
                edges.setdefault(rel.local_table_name, set()).add(rel.foreign_table_name)

    for cycle in _find_cycles(edges):
        log.add_warning(
            "CIRCULAR_FK_DEPENDENCY",
            f"Circular foreign-key dependency detected: {' → '.join(cycle)}.",
            {"cycle": cycle},
        )

    if log.has_errors:
        logger.error("Batch validation FAILED: %s", log.summary())
    else:
        logger.info("Batch validation passed: %s", log.summary())
    return log


def merge_logs(logs: Iterable[DiagnosticLog]) -> DiagnosticLog:
    merged: DiagnosticLog = DiagnosticLog()
    for item in logs:
        merged.merge(item)
    return merged


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Diagnostic",
    "DiagnosticLog",
    "validate_table_name",
    "validate_column_names",
    "validate_primary_key",
    "validate_indexes",
    "validate_relationships",
    "validate_entity",
    "validate_batch",
    "merge_logs",
]

logger.debug("schemagen.validators loaded — %d public symbols.", len(__all__))
