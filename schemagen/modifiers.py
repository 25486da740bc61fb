# File: schemagen/modifiers.py
"""
SchemaGen - Column Modifier Builder
====================================
Pure functions layering modifiers onto a ``ColumnType``.

Each builder returns a *new* ColumnType whose ``modifiers`` chain has the
modifier appended.  Applying a kind that is already present replaces its
value in place, so chains never hold duplicates and the shared base type is
never touched.

    ct = with_unique(with_nullable(string(255), False))
    ct.modifiers  # (nullable=False, unique=True)
"""

from __future__ import annotations

import logging
from typing import Any, List, Tuple

from schemagen.models import Column, ColumnModifier, ColumnType, GeneratedKind, ModifierKind

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.modifiers")


def _with_modifier(column_type: ColumnType, kind: ModifierKind, value: Any) -> ColumnType:
    new_mod: ColumnModifier = ColumnModifier(kind=kind, value=value)
    chain: List[ColumnModifier] = list(column_type.modifiers)
    for position, existing in enumerate(chain):
        if existing.kind == kind:
            chain[position] = new_mod
            break
    else:
        chain.append(new_mod)
    return column_type.model_copy(update={"modifiers": tuple(chain)})


def with_nullable(column_type: ColumnType, nullable: bool = True) -> ColumnType:
    return _with_modifier(column_type, ModifierKind.NULLABLE, bool(nullable))


def with_unique(column_type: ColumnType, unique: bool = True) -> ColumnType:
    return _with_modifier(column_type, ModifierKind.UNIQUE, bool(unique))


def with_primary_key(column_type: ColumnType, primary: bool = True) -> ColumnType:
    return _with_modifier(column_type, ModifierKind.PRIMARY_KEY, bool(primary))


def with_default(column_type: ColumnType, value: Any) -> ColumnType:
    """
    Attach a default.  *value* is either a literal in the type's domain or a
    zero-argument callable; callables are rendered as type-generated
    expressions and never invoked.
    """
    if value is None:
        raise ValueError("with_default() requires a value; omit the modifier for no default.")
    return _with_modifier(column_type, ModifierKind.DEFAULT, value)


def with_auto_increment(
    column_type: ColumnType,
    generated: GeneratedKind = GeneratedKind.BY_DEFAULT,
) -> ColumnType:
    return _with_modifier(column_type, ModifierKind.AUTO_INCREMENT, GeneratedKind(generated))


def apply_column_flags(column: Column) -> ColumnType:
    """
    Resolve a Column's flags into a modifier chain on its shared type, in the
    order nullable → unique → primary_key → default → auto_increment.

    Nullability is always recorded so every dialect sees an explicit choice.
    """
    resolved: ColumnType = with_nullable(column.column_type, column.nullable)
    if column.unique:
        resolved = with_unique(resolved)
    if column.primary:
        resolved = with_primary_key(resolved)
    if column.has_default:
        resolved = with_default(resolved, column.default)
    if column.auto_increment:
        resolved = with_auto_increment(resolved, column.generated or GeneratedKind.BY_DEFAULT)
    return resolved


def modifier_kinds(column_type: ColumnType) -> Tuple[ModifierKind, ...]:
    return tuple(mod.kind for mod in column_type.modifiers)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "with_nullable",
    "with_unique",
    "with_primary_key",
    "with_default",
    "with_auto_increment",
    "apply_column_flags",
    "modifier_kinds",
]

logger.debug("schemagen.modifiers loaded — %d public symbols.", len(__all__))
