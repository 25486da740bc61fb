"""
tests/test_validators.py
Unit tests for schemagen.validators.

Tests cover:
- DiagnosticLog accumulation and reporting
- Table name / column name checks
- Primary key agreement
- Index and relationship references
- Batch checks: duplicate tables, unresolved targets, FK cycles
"""

from __future__ import annotations

from typing import List

from schemagen import column_types
from schemagen.builders import EntityBuilder, RelationshipBuilder
from schemagen.models import (
    Column,
    Entity,
    EntityName,
    ForeignKeySpec,
    Index,
    JunctionTableSpec,
    Relationship,
    Table,
)
from schemagen.validators import (
    DiagnosticLog,
    merge_logs,
    validate_batch,
    validate_column_names,
    validate_entity,
    validate_indexes,
    validate_primary_key,
    validate_relationships,
    validate_table_name,
)


def _table(name: str = "things", primary_key=("id",), **columns: Column) -> Table:
    return Table(
        name=name,
        columns=columns or {"id": Column(column_type=column_types.integer())},
        primary_key=primary_key,
    )


def _entity(table: Table, **extra) -> Entity:
    return Entity(
        id=table.name,
        name=EntityName(singular=table.name, plural=table.name),
        table=table,
        **extra,
    )


# ===========================================================================
# DiagnosticLog
# ===========================================================================


class TestDiagnosticLog:

    def test_accumulates_levels(self) -> None:
        log = DiagnosticLog()
        log.add_error("E1", "broken")
        log.add_warning("W1", "odd", {"table": "t"})
        log.add_info("I1", "fyi")
        assert len(log) == 3
        assert log.error_count == 1
        assert log.warning_count == 1
        assert not log.is_valid
        assert not log
        assert log.codes() == ["E1", "W1", "I1"]

    def test_empty_log_is_valid(self) -> None:
        log = DiagnosticLog()
        assert log.is_valid
        assert bool(log)
        assert log.summary() == "Validation: 0 error(s), 0 warning(s), 0 total item(s)."

    def test_merge_and_report(self) -> None:
        first, second = DiagnosticLog(), DiagnosticLog()
        first.add_warning("W1", "odd", {"table": "t"})
        second.add_info("I1", "fyi")
        merged = merge_logs([first, second])
        assert merged.codes() == ["W1", "I1"]
        report = merged.format_report()
        assert "[W1] odd" in report
        assert "table: t" in report
        assert "I1" not in report
        assert "[I1] fyi" in merged.format_report(include_info=True)

    def test_diagnostic_str(self) -> None:
        log = DiagnosticLog()
        log.add_error("E1", "broken")
        assert str(log.errors[0]) == "[ERROR] E1: broken"
        assert log.errors[0].to_dict()["code"] == "E1"


# ===========================================================================
# Table-level validators
# ===========================================================================


class TestTableValidators:

    def test_valid_table(self) -> None:
        assert validate_table_name(_table()).is_valid
        assert validate_column_names(_table()).is_valid

    def test_invalid_table_name(self) -> None:
        log = validate_table_name(_table(name="my table"))
        assert "INVALID_TABLE_NAME" in log.codes()

    def test_reserved_table_name_is_warning(self, user_entity: Entity) -> None:
        log = validate_table_name(user_entity.table)
        assert log.is_valid
        assert log.codes() == ["TABLE_NAME_SQL_RESERVED"]

    def test_column_names(self) -> None:
        table = _table(
            id=Column(column_type=column_types.integer()),
            order=Column(column_type=column_types.integer()),
            **{"2fast": Column(column_type=column_types.integer())},
        )
        log = validate_column_names(table)
        assert log.codes() == ["COLUMN_NAME_SQL_RESERVED", "INVALID_COLUMN_NAME"]

    def test_primary_key_ok(self) -> None:
        assert validate_primary_key(_table()).is_valid

    def test_missing_primary_key(self) -> None:
        log = validate_primary_key(_table(primary_key=()))
        assert log.codes() == ["DB_MISSING_PRIMARY_KEY"]

    def test_primary_key_column_missing(self) -> None:
        log = validate_primary_key(_table(primary_key=("uuid",)))
        assert "PK_COLUMN_NOT_FOUND" in log.codes()

    def test_flag_only_key_is_info(self) -> None:
        table = _table(primary_key=(), id=Column(column_type=column_types.integer(), primary=True))
        log = validate_primary_key(table)
        assert log.is_valid
        assert log.codes() == ["SQL_PRIMARY_KEY_UNDECLARED"]

    def test_primary_key_conflict(self) -> None:
        table = _table(
            primary_key=("id",),
            id=Column(column_type=column_types.integer()),
            other=Column(column_type=column_types.integer(), primary=True),
        )
        assert "DB_PRIMARY_KEY_CONFLICT" in validate_primary_key(table).codes()

    def test_nullable_primary_key_warns(self) -> None:
        table = _table(id=Column(column_type=column_types.integer(), nullable=True))
        log = validate_primary_key(table)
        assert log.is_valid
        assert "NULLABLE_PRIMARY_KEY" in log.codes()

    def test_unique_group_column_missing(self) -> None:
        table = Table(
            name="t",
            columns={"id": Column(column_type=column_types.integer())},
            primary_key=("id",),
            unique_constraints=(("id", "ghost"),),
        )
        assert "UNIQUE_COLUMN_NOT_FOUND" in validate_primary_key(table).codes()


# ===========================================================================
# Entity-level validators
# ===========================================================================


class TestEntityValidators:

    def test_fixture_entities_are_valid(self, blog_entities: List[Entity]) -> None:
        for entity in blog_entities:
            assert validate_entity(entity).is_valid, validate_entity(entity).format_report()

    def test_index_checks(self) -> None:
        table = _table()
        entity = _entity(
            table,
            indexes=(
                Index(name="idx", table_name="things", columns=("id",)),
                Index(name="idx", table_name="things", columns=("ghost",)),
                Index(name="other", table_name="elsewhere", columns=("id",)),
            ),
        )
        log = validate_indexes(entity)
        assert sorted(log.codes()) == [
            "DUPLICATE_INDEX_NAME",
            "INDEX_COLUMN_NOT_FOUND",
            "INDEX_TABLE_MISMATCH",
        ]
        assert log.warning_count == 1

    def test_relationship_checks(self, user_entity: Entity) -> None:
        table = _table()
        relationships = (
            Relationship(
                name="owner",
                relation_type="many-to-one",
                local_entity="things",
                foreign_entity=user_entity.table,
                foreign_key=ForeignKeySpec(local_column="ownerId", foreign_column="id"),
            ),
            Relationship(
                name="weird",
                relation_type="sideways",
                local_entity="things",
                foreign_entity="user",
                foreign_key=ForeignKeySpec(local_column="id", foreign_column="id"),
            ),
            Relationship(
                name="friends",
                relation_type="many-to-many",
                local_entity="things",
                foreign_entity="user",
                foreign_key=ForeignKeySpec(local_column="id", foreign_column="id"),
            ),
            Relationship(
                name="pairs",
                relation_type="many-to-many",
                local_entity="things",
                foreign_entity="things",
                foreign_key=ForeignKeySpec(local_column="id", foreign_column="id"),
                junction_table=JunctionTableSpec(name="pairs", local_column="a", foreign_column="a"),
            ),
        )
        log = validate_relationships(_entity(table, relationships=relationships))
        assert log.codes() == [
            "DB_UNRESOLVED_REFERENCE",
            "DB_UNKNOWN_RELATION_TYPE",
            "DB_MISSING_JUNCTION_TABLE",
            "DB_JUNCTION_COLUMN_COLLISION",
        ]


# ===========================================================================
# Batch validators
# ===========================================================================


class TestBatchValidation:

    def test_blog_batch(self, blog_entities: List[Entity]) -> None:
        log = validate_batch(blog_entities)
        assert log.is_valid
        # only the reserved table name 'user'
        assert log.codes() == ["TABLE_NAME_SQL_RESERVED"]

    def test_duplicate_table_names(self, user_entity: Entity) -> None:
        clone = user_entity.model_copy(update={"id": "account"})
        log = validate_batch([user_entity, clone])
        assert "DUPLICATE_TABLE_NAME" in log.codes()

    def test_unresolved_target_is_warning(self, post_entity: Entity) -> None:
        log = validate_batch([post_entity])
        assert log.is_valid
        assert log.codes().count("UNRESOLVED_RELATIONSHIP_TARGET") == 2

    def test_fk_cycle_warning(self) -> None:
        def build(name: str, target: str) -> Entity:
            return (
                EntityBuilder.create(name, name)
                .table_name(name)
                .id_field("integer")
                .number_field(f"{target}Id", integer=True)
                .relationship(
                    RelationshipBuilder.create(f"{name}_{target}")
                    .many_to_one()
                    .entities(name, target)
                    .foreign_key(f"{target}Id", "id")
                )
                .build()
            )

        log = validate_batch([build("a", "b"), build("b", "a")])
        assert log.is_valid
        cycles = [d for d in log.warnings if d.code == "CIRCULAR_FK_DEPENDENCY"]
        assert len(cycles) == 1
        assert cycles[0].context["cycle"] == ["a", "b", "a"]
