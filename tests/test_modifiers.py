"""
tests/test_modifiers.py
Unit tests for schemagen.modifiers.

Tests cover:
- Immutability of the shared base type
- Chain ordering and in-place replacement of a repeated kind
- Column flag resolution (apply_column_flags)
- Composition through column_emitter for every dialect
"""

from __future__ import annotations

import pytest

from schemagen import column_types
from schemagen.emitters import column_emitter
from schemagen.models import Column, Dialect, GeneratedKind, ModifierKind
from schemagen.modifiers import (
    apply_column_flags,
    modifier_kinds,
    with_auto_increment,
    with_default,
    with_nullable,
    with_primary_key,
    with_unique,
)


class TestModifierChain:
    """Builders return new values and keep chains free of duplicates."""

    def test_base_type_untouched(self) -> None:
        base = column_types.string(255)
        modified = with_unique(with_nullable(base, False))
        assert base.modifiers == ()
        assert modifier_kinds(modified) == (ModifierKind.NULLABLE, ModifierKind.UNIQUE)

    def test_emitters_are_read_only(self) -> None:
        base = column_types.string(255)
        modified = with_unique(base)
        with pytest.raises(TypeError):
            modified.emitters[Dialect.SQL] = lambda name, options=None: f"{name} BLOB"
        assert base.emitter_for(Dialect.SQL)("email", None) == "email VARCHAR(255)"

    def test_application_order_is_kept(self) -> None:
        ct = with_nullable(with_unique(column_types.integer()), False)
        assert modifier_kinds(ct) == (ModifierKind.UNIQUE, ModifierKind.NULLABLE)

    def test_repeated_kind_replaced_in_place(self) -> None:
        ct = with_nullable(with_unique(with_nullable(column_types.integer(), True)), False)
        assert modifier_kinds(ct) == (ModifierKind.NULLABLE, ModifierKind.UNIQUE)
        assert ct.modifier(ModifierKind.NULLABLE).value is False

    def test_default_requires_value(self) -> None:
        with pytest.raises(ValueError):
            with_default(column_types.integer(), None)

    def test_auto_increment_kind(self) -> None:
        ct = with_auto_increment(column_types.integer(), GeneratedKind.ALWAYS)
        assert ct.modifier(ModifierKind.AUTO_INCREMENT).value == GeneratedKind.ALWAYS

    def test_base_strips_modifiers(self) -> None:
        ct = with_primary_key(with_unique(column_types.uuid()))
        assert ct.base.modifiers == ()
        assert ct.base.type_name == "uuid"


class TestApplyColumnFlags:

    def test_nullability_always_recorded(self) -> None:
        ct = apply_column_flags(Column(column_type=column_types.integer()))
        assert ct.modifier(ModifierKind.NULLABLE).value is False

    def test_canonical_flag_order(self) -> None:
        column = Column(
            column_type=column_types.integer(),
            unique=True,
            primary=True,
            default=1,
            auto_increment=True,
            generated=GeneratedKind.ALWAYS,
        )
        assert modifier_kinds(apply_column_flags(column)) == (
            ModifierKind.NULLABLE,
            ModifierKind.UNIQUE,
            ModifierKind.PRIMARY_KEY,
            ModifierKind.DEFAULT,
            ModifierKind.AUTO_INCREMENT,
        )

    def test_shared_type_is_not_mutated(self) -> None:
        shared = column_types.string(40)
        Column(column_type=shared, unique=True)
        apply_column_flags(Column(column_type=shared, unique=True))
        assert shared.modifiers == ()


class TestComposition:
    """Composing two modifiers on one base renders both in every dialect."""

    def test_sql(self) -> None:
        ct = with_unique(with_nullable(column_types.string(255), False))
        assert column_emitter(ct, "sql")("email") == "email VARCHAR(255) NOT NULL UNIQUE"

    def test_sql_order_is_canonical(self) -> None:
        ct = with_nullable(with_unique(column_types.string(255)), False)
        assert column_emitter(ct, "sql")("email") == "email VARCHAR(255) NOT NULL UNIQUE"

    def test_drizzle_follows_application_order(self) -> None:
        ct = with_nullable(with_unique(column_types.string(255)), False)
        assert column_emitter(ct, "drizzle")("email") == (
            "varchar('email', { length: 255 }).unique().notNull()"
        )

    def test_prisma(self) -> None:
        ct = with_unique(with_nullable(column_types.string(255), True))
        assert column_emitter(ct, "prisma")("email") == "email String? @db.VarChar(255) @unique"

    def test_convex_optional(self) -> None:
        ct = with_nullable(column_types.string(255), True)
        assert column_emitter(ct, "convex")("email") == "email: v.optional(v.string())"
