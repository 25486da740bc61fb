"""
tests/test_migrations.py
Unit tests for schemagen.migrations.

Tests cover:
- Migration header and section ordering
- Optional 'Generated:' timestamp line
- Batch assembly: up/down cardinality, order and failure isolation
"""

from __future__ import annotations

import datetime as dt
from typing import List

from schemagen import column_types
from schemagen.builders import EntityBuilder
from schemagen.migrations import EntityFailure, MigrationBatch, emit_migration, emit_migration_batch
from schemagen.models import Column, DialectOptions, Entity, EntityName, Table


def _broken_entity() -> Entity:
    """An entity without any primary key."""
    return Entity(
        id="orphan",
        name=EntityName(singular="orphan", plural="orphans"),
        table=Table(name="orphans", columns={"note": Column(column_type=column_types.string())}),
    )


class TestEmitMigration:
    """Single-entity migration scripts."""

    def test_header(self, user_entity: Entity) -> None:
        script = emit_migration(user_entity)
        assert script.startswith("\n".join([
            "-- Migration: Create user table",
            "-- Entity: user",
            "-- Version: 1",
            "-- Description: Create user entity table",
            "",
            "CREATE TABLE user (",
        ]))
        assert "-- Generated:" not in script
        assert script.endswith(");\n")

    def test_version_override_and_description(self, user_entity: Entity) -> None:
        entity = user_entity.model_copy(update={"description": "Accounts"})
        script = emit_migration(entity, version="2024_01")
        assert "-- Version: 2024_01\n" in script
        assert "-- Description: Accounts\n" in script

    def test_generated_timestamp(self, user_entity: Entity) -> None:
        stamp = dt.datetime(2024, 1, 2, 3, 4, 5, tzinfo=dt.timezone.utc)
        script = emit_migration(user_entity, generated_at=stamp)
        assert "-- Generated: 2024-01-02T03:04:05+00:00\n" in script

    def test_section_order(self, post_entity: Entity) -> None:
        entity = post_entity.model_copy(
            update={
                "table": post_entity.table.model_copy(
                    update={
                        "columns": {
                            **post_entity.table.columns,
                            "slug": Column(column_type=column_types.string(80), indexed=True),
                        }
                    }
                )
            }
        )
        script = emit_migration(entity)
        table_at = script.index("CREATE TABLE post (")
        index_at = script.index("-- Create indexes for post")
        rel_at = script.index("-- Create relationships for post")
        assert table_at < index_at < rel_at
        assert "CREATE INDEX idx_post_slug ON post (slug);" in script
        assert "-- Create constraints for post" not in script

    def test_relationship_section_contents(self, post_entity: Entity) -> None:
        script = emit_migration(post_entity)
        assert "ON DELETE CASCADE" in script
        assert "CREATE INDEX idx_post_authorId ON post(authorId);" in script
        assert "CREATE TABLE post_tags (" in script
        assert "  PRIMARY KEY (postId, tagId)" in script

    def test_deterministic(self, post_entity: Entity) -> None:
        assert emit_migration(post_entity) == emit_migration(post_entity)


class TestMigrationBatch:
    """Batch assembly over many entities."""

    def test_cardinality_and_order(self, blog_entities: List[Entity]) -> None:
        batch = emit_migration_batch(blog_entities, "2024_01")
        assert isinstance(batch, MigrationBatch)
        assert batch.success
        assert len(batch.up) == len(batch.down) == 3
        assert batch.down == [
            "DROP TABLE IF EXISTS user CASCADE;",
            "DROP TABLE IF EXISTS tag CASCADE;",
            "DROP TABLE IF EXISTS post CASCADE;",
        ]
        assert batch.description == "Create tables for entities: user, tag, post"
        assert all("-- Version: 2024_01" in script for script in batch.up)

    def test_failure_is_isolated(self, user_entity: Entity, tag_entity: Entity) -> None:
        batch = emit_migration_batch([user_entity, _broken_entity(), tag_entity], "v2")
        assert not batch.success
        assert len(batch.up) == len(batch.down) == 2
        assert batch.failures == [
            EntityFailure(
                entity_id="orphan",
                code="DB_MISSING_PRIMARY_KEY",
                subject=None,
                message="Table 'orphans' has no table-level primary key.",
            )
        ]
        assert batch.description == "Create tables for entities: user, tag"
        assert "orphan: [DB_MISSING_PRIMARY_KEY]" in batch.summary()

    def test_warnings_are_collected(self, user_entity: Entity, sqlite: DialectOptions) -> None:
        batch = emit_migration_batch([user_entity], "1", sqlite)
        assert batch.success
        assert [w.code for w in batch.warnings] == ["MODIFIER_UNSUPPORTED"]

    def test_scripts(self, user_entity: Entity, tag_entity: Entity) -> None:
        batch = emit_migration_batch([user_entity, tag_entity], "1")
        assert batch.up_script() == batch.up[0] + "\n\n" + batch.up[1] + "\n"
        assert batch.down_script() == (
            "DROP TABLE IF EXISTS user CASCADE;\nDROP TABLE IF EXISTS tag CASCADE;\n"
        )

    def test_empty_batch(self) -> None:
        batch = emit_migration_batch([], "0")
        assert batch.success
        assert batch.up == [] and batch.down == []
        assert batch.up_script() == ""
