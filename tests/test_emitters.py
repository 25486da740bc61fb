"""
tests/test_emitters.py
Unit tests for schemagen.emitters.

Tests cover:
- SQL CREATE TABLE output for postgres, mysql and sqlite
- Drizzle, Prisma and Convex table output
- Primary-key resolution and structural errors
- Index and constraint statements
- Coverage warnings (fallbacks, unsupported modifiers)
- Determinism and multi-table bundles
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from schemagen import column_types
from schemagen.builders import ColumnBuilder, EntityBuilder
from schemagen.emitters import (
    EMITTER_FALLBACK,
    INDEX_OPTION_DROPPED,
    MODIFIER_UNSUPPORTED,
    bundle_schemas,
    emit_constraints,
    emit_indexes,
    emit_schema,
    emit_table,
    emit_tables,
    parse_dialect,
    resolve_primary_key,
)
from schemagen.errors import (
    MissingPrimaryKeyError,
    PrimaryKeyConflictError,
    UnknownDialectError,
    UnresolvedReferenceError,
)
from schemagen.models import CheckConstraint, Column, Dialect, DialectOptions, Entity, SqlVariant, Table
from schemagen.validators import DiagnosticLog


USER_POSTGRES: str = "\n".join([
    "CREATE TABLE user (",
    "  id UUID NOT NULL DEFAULT gen_random_uuid(),",
    "  email VARCHAR(255) NOT NULL UNIQUE,",
    "  name VARCHAR(100) NOT NULL,",
    "  createdAt TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,",
    "  updatedAt TIMESTAMP NULL,",
    "  PRIMARY KEY (id)",
    ");",
])


def _table(**columns: Column) -> Table:
    return Table(name="t", columns=columns, primary_key=("id",))


# ===========================================================================
# SQL
# ===========================================================================


class TestSqlTables:
    """CREATE TABLE rendering."""

    def test_user_table_postgres(self, user_entity: Entity, postgres: DialectOptions) -> None:
        assert emit_table(user_entity.table, "sql", postgres) == USER_POSTGRES

    def test_user_table_mysql(self, user_entity: Entity, mysql: DialectOptions) -> None:
        ddl = emit_table(user_entity.table, Dialect.SQL, mysql)
        assert "  id CHAR(36) NOT NULL DEFAULT (UUID())," in ddl
        assert "  createdAt DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP," in ddl

    def test_user_table_sqlite_warns_on_uuid_default(
        self, user_entity: Entity, sqlite: DialectOptions
    ) -> None:
        log = DiagnosticLog()
        ddl = emit_table(user_entity.table, "sql", sqlite, log)
        assert "  id TEXT NOT NULL," in ddl
        assert MODIFIER_UNSUPPORTED in log.codes()

    def test_column_order_is_preserved(self, user_entity: Entity) -> None:
        ddl = emit_table(user_entity.table, "sql")
        positions = [ddl.index(f"  {name} ") for name in user_entity.table.columns]
        assert positions == sorted(positions)

    @pytest.mark.parametrize("variant, expected", [
        (SqlVariant.POSTGRES, "  id INTEGER NOT NULL GENERATED BY DEFAULT AS IDENTITY,"),
        (SqlVariant.MYSQL, "  id INTEGER NOT NULL AUTO_INCREMENT,"),
        (SqlVariant.SQLITE, "  id INTEGER NOT NULL,"),
    ])
    def test_identity_per_variant(
        self, counter_entity: Entity, variant: SqlVariant, expected: str
    ) -> None:
        ddl = emit_table(counter_entity.table, "sql", DialectOptions(sql_variant=variant))
        assert expected in ddl
        assert "  hits INTEGER NOT NULL DEFAULT 0," in ddl

    def test_literal_defaults(self) -> None:
        table = _table(
            id=Column(column_type=column_types.integer()),
            price=Column(column_type=column_types.decimal(10, 2), default=Decimal("9.90")),
            live=Column(column_type=column_types.boolean(), default=False),
            label=Column(column_type=column_types.string(20), default="it's"),
            meta=Column(column_type=column_types.json_(), default={"b": 1, "a": 2}),
        )
        ddl = emit_table(table, "sql")
        assert "price DECIMAL(10,2) NOT NULL DEFAULT 9.90" in ddl
        assert "live BOOLEAN NOT NULL DEFAULT FALSE" in ddl
        assert "label VARCHAR(20) NOT NULL DEFAULT 'it''s'" in ddl
        assert """meta JSONB NOT NULL DEFAULT '{"a":2,"b":1}'""" in ddl

    def test_out_of_domain_default_warns(self) -> None:
        log = DiagnosticLog()
        table = _table(
            id=Column(column_type=column_types.integer()),
            code=Column(column_type=column_types.string(2), default="toolong"),
        )
        emit_table(table, "sql", diagnostics=log)
        assert "DEFAULT_OUT_OF_DOMAIN" in log.codes()

    def test_composite_unique_and_check(self) -> None:
        table = Table(
            name="seat",
            columns={
                "id": Column(column_type=column_types.integer()),
                "row": Column(column_type=column_types.integer()),
                "num": Column(column_type=column_types.integer()),
            },
            primary_key=("id",),
            unique_constraints=(("row", "num"),),
            check_constraints=(),
        )
        ddl = emit_table(table, "sql")
        assert ddl.endswith("  PRIMARY KEY (id),\n  UNIQUE (row, num)\n);")

    def test_generated_column(self) -> None:
        table = _table(
            id=Column(column_type=column_types.integer()),
            total=Column(column_type=column_types.integer(), generated_as="id * 2"),
        )
        assert "total INTEGER NOT NULL GENERATED ALWAYS AS (id * 2) STORED" in emit_table(table, "sql")

    def test_comments_per_variant(self, mysql: DialectOptions, sqlite: DialectOptions) -> None:
        table = Table(
            name="t",
            columns={"id": Column(column_type=column_types.integer(), comment="key")},
            primary_key=("id",),
            comment="things",
        )
        pg = emit_table(table, "sql")
        assert "COMMENT ON TABLE t IS 'things';" in pg
        assert "COMMENT ON COLUMN t.id IS 'key';" in pg
        my = emit_table(table, "sql", mysql)
        assert "id INTEGER NOT NULL COMMENT 'key'" in my
        assert my.endswith(") COMMENT='things';")
        lite = emit_table(table, "sql", sqlite)
        assert lite.startswith("-- things\nCREATE TABLE t (")
        assert "  -- key\n  id INTEGER NOT NULL" in lite


class TestPrimaryKeys:

    def test_sql_requires_table_level_key(self) -> None:
        table = Table(
            name="t",
            columns={"id": Column(column_type=column_types.integer(), primary=True)},
        )
        with pytest.raises(MissingPrimaryKeyError):
            emit_table(table, "sql")
        # ORM dialects accept a single flagged column
        assert "@id" in emit_table(table, "prisma")

    def test_missing_key_everywhere(self) -> None:
        table = Table(name="t", columns={"id": Column(column_type=column_types.integer())})
        for dialect in Dialect:
            with pytest.raises(MissingPrimaryKeyError) as exc_info:
                emit_table(table, dialect)
            assert exc_info.value.code == "DB_MISSING_PRIMARY_KEY"

    def test_several_flagged_columns_conflict(self) -> None:
        table = Table(
            name="t",
            columns={
                "a": Column(column_type=column_types.integer(), primary=True),
                "b": Column(column_type=column_types.integer(), primary=True),
            },
        )
        with pytest.raises(PrimaryKeyConflictError):
            resolve_primary_key(table)

    def test_declared_and_flagged_disagree(self) -> None:
        table = Table(
            name="t",
            columns={
                "a": Column(column_type=column_types.integer(), primary=True),
                "b": Column(column_type=column_types.integer()),
            },
            primary_key=("b",),
        )
        with pytest.raises(PrimaryKeyConflictError):
            resolve_primary_key(table)

    def test_sql_rejects_disagreeing_flag(self) -> None:
        table = Table(
            name="t",
            columns={
                "a": Column(column_type=column_types.integer(), primary=True),
                "b": Column(column_type=column_types.integer()),
            },
            primary_key=("b",),
        )
        with pytest.raises(PrimaryKeyConflictError) as exc_info:
            emit_table(table, "sql")
        assert exc_info.value.context["flagged"] == ["a"]

    def test_unknown_key_column(self) -> None:
        table = Table(
            name="t",
            columns={"a": Column(column_type=column_types.integer())},
            primary_key=("id",),
        )
        with pytest.raises(UnresolvedReferenceError):
            emit_table(table, "sql")

    def test_composite_key_is_table_level_in_orms(self) -> None:
        table = Table(
            name="post_tags",
            columns={
                "postId": Column(column_type=column_types.uuid()),
                "tagId": Column(column_type=column_types.uuid()),
            },
            primary_key=("postId", "tagId"),
        )
        prisma = emit_table(table, "prisma")
        assert "  @@id([postId, tagId])" in prisma
        assert "@id " not in prisma
        drizzle = emit_table(table, "drizzle")
        assert "primaryKey({ columns: [table.postId, table.tagId] })" in drizzle
        assert ".primaryKey()" not in drizzle


# ===========================================================================
# ORM dialects
# ===========================================================================


class TestDrizzle:

    def test_user_table(self, user_entity: Entity) -> None:
        ts = emit_schema(user_entity, "drizzle")
        assert ts.startswith("export const user = pgTable('user', {")
        assert "  id: uuid('id').notNull().primaryKey().defaultRandom()," in ts
        assert "  email: varchar('email', { length: 255 }).notNull().unique()," in ts
        assert "  createdAt: timestamp('createdAt').notNull().defaultNow()," in ts
        assert "  updatedAt: timestamp('updatedAt')," in ts
        assert ts.endswith("});")

    def test_indexes_in_table_callback(self) -> None:
        entity = (
            EntityBuilder.create("post", "post")
            .id_field()
            .string_field("slug", 80)
            .index("idx_posts_slug", ["slug"], unique=True, where="slug <> ''")
            .build()
        )
        ts = emit_schema(entity, "drizzle")
        assert "}, (table) => [" in ts
        assert "  uniqueIndex('idx_posts_slug').on(table.slug).where(sql`slug <> ''`)," in ts
        assert ts.endswith("]);")

    def test_bundle_imports(self, user_entity: Entity) -> None:
        bundle = emit_tables([user_entity.table], "drizzle")
        assert bundle.startswith(
            "import { pgTable, timestamp, uuid, varchar } from 'drizzle-orm/pg-core';\n\n"
        )

    def test_bundle_imports_skip_sql_text_and_comments(self) -> None:
        table = Table(
            name="label",
            columns={
                "id": Column(column_type=column_types.integer()),
                "name": Column(
                    column_type=column_types.string(40),
                    comment="lower(name) is indexed",
                    default="upper(x)",
                ),
            },
            primary_key=("id",),
            check_constraints=(CheckConstraint(name="name_len", expression="length(name) > 0"),),
        )
        lines = emit_tables([table], "drizzle").splitlines()
        assert lines[0] == "import { sql } from 'drizzle-orm';"
        assert lines[1].endswith(" } from 'drizzle-orm/pg-core';")
        names = lines[1][len("import { "):lines[1].index(" }")].split(", ")
        assert "check" in names and "pgTable" in names
        assert "length" not in names
        assert "lower" not in names
        assert "upper" not in names
        assert "  check('name_len', sql`length(name) > 0`)," in lines


class TestPrisma:

    def test_user_model(self, user_entity: Entity) -> None:
        model = emit_schema(user_entity, "prisma")
        assert model.startswith("model User {")
        assert "  id String @db.Uuid @id @default(uuid())" in model
        assert "  email String @db.VarChar(255) @unique" in model
        assert "  createdAt DateTime @default(now())" in model
        assert "  updatedAt DateTime?" in model
        assert model.endswith('  @@map("user")\n}')

    def test_identity_and_literal_default(self, counter_entity: Entity) -> None:
        model = emit_schema(counter_entity, "prisma")
        assert "  id Int @id @default(autoincrement())" in model
        assert "  hits Int @default(0)" in model

    def test_bundle_provider(self, user_entity: Entity, mysql: DialectOptions) -> None:
        bundle = emit_tables([user_entity.table], "prisma", mysql)
        assert 'provider = "mysql"' in bundle
        assert bundle.startswith("generator client {")

    def test_check_constraint_becomes_comment(self) -> None:
        entity = (
            EntityBuilder.create("item", "item")
            .id_field("integer")
            .number_field("qty", integer=True)
            .check("chk_qty", "qty > 0")
            .build()
        )
        log = DiagnosticLog()
        model = emit_schema(entity, "prisma", diagnostics=log)
        assert "  // CHECK chk_qty: qty > 0" in model
        assert MODIFIER_UNSUPPORTED in log.codes()


class TestConvex:

    def test_user_table_and_warnings(self, user_entity: Entity) -> None:
        log = DiagnosticLog()
        ts = emit_schema(user_entity, "convex", diagnostics=log)
        assert ts.startswith("export const user = defineTable({")
        assert "  email: v.string()," in ts
        assert "  updatedAt: v.optional(v.number())," in ts
        assert ts.endswith("})")
        # unique email, id default and createdAt default cannot be expressed
        assert log.codes().count(MODIFIER_UNSUPPORTED) == 3

    def test_indexes(self) -> None:
        entity = (
            EntityBuilder.create("post", "post")
            .id_field()
            .string_field("slug", 80)
            .index("by_slug", ["slug"], unique=True)
            .build()
        )
        log = DiagnosticLog()
        ts = emit_schema(entity, "convex", diagnostics=log)
        assert ts.endswith("})\n  .index('by_slug', ['slug'])")
        assert INDEX_OPTION_DROPPED in log.codes()

    def test_bundle_footer(self, user_entity: Entity, tag_entity: Entity) -> None:
        rendered = [emit_schema(e, "convex") for e in (user_entity, tag_entity)]
        bundle = bundle_schemas([user_entity, tag_entity], rendered, "convex")
        assert bundle.startswith(
            "import { defineSchema, defineTable } from 'convex/server';\n"
            "import { v } from 'convex/values';"
        )
        assert bundle.endswith("export default defineSchema({\n  user: user,\n  tag: tag,\n});")


# ===========================================================================
# Coverage fallbacks
# ===========================================================================


class TestFallbacks:

    def test_missing_emitter_falls_back_with_warning(self) -> None:
        money = column_types.custom("money", emitters={"sql": lambda n, o=None: f"{n} MONEY"})
        table = _table(
            id=Column(column_type=column_types.integer()),
            amount=Column(column_type=money),
        )
        log = DiagnosticLog()
        assert "  amount String" in emit_table(table, "prisma", diagnostics=log)
        assert "  amount: text('amount').notNull()," in emit_table(table, "drizzle", diagnostics=log)
        assert "  amount: v.string()," in emit_table(table, "convex", diagnostics=log)
        assert log.codes().count(EMITTER_FALLBACK) == 3
        assert log.is_valid


# ===========================================================================
# Indexes & constraints
# ===========================================================================


class TestIndexesAndConstraints:

    @pytest.fixture()
    def indexed_entity(self) -> Entity:
        return (
            EntityBuilder.create("post", "post")
            .id_field()
            .string_field("slug", 80)
            .column("views", ColumnBuilder.create("integer").indexed())
            .index("idx_posts_slug", ["slug"], unique=True, where="slug <> ''", index_type="btree")
            .constraint("chk_views", "check", "views >= 0")
            .constraint("uq_slug", "unique", "slug")
            .table_name("posts")
            .build()
        )

    def test_postgres_indexes(self, indexed_entity: Entity) -> None:
        assert emit_indexes(indexed_entity) == [
            "CREATE UNIQUE INDEX idx_posts_slug ON posts USING btree (slug) WHERE slug <> '';",
            "CREATE INDEX idx_posts_views ON posts (views);",
        ]

    def test_mysql_drops_partial_predicate(
        self, indexed_entity: Entity, mysql: DialectOptions
    ) -> None:
        log = DiagnosticLog()
        statements = emit_indexes(indexed_entity, mysql, log)
        assert statements[0] == "CREATE UNIQUE INDEX idx_posts_slug ON posts (slug) USING BTREE;"
        assert INDEX_OPTION_DROPPED in log.codes()

    def test_constraints(self, indexed_entity: Entity) -> None:
        assert emit_constraints(indexed_entity) == [
            "ALTER TABLE posts ADD CONSTRAINT chk_views CHECK (views >= 0);",
            "ALTER TABLE posts ADD CONSTRAINT uq_slug UNIQUE (slug);",
        ]

    def test_sql_schema_includes_indexes(self, indexed_entity: Entity) -> None:
        schema = emit_schema(indexed_entity, "sql")
        assert schema.startswith("CREATE TABLE posts (")
        assert schema.endswith("CREATE INDEX idx_posts_views ON posts (views);")


# ===========================================================================
# Dialect tags & determinism
# ===========================================================================


class TestDialects:

    def test_parse_dialect(self) -> None:
        assert parse_dialect(" Prisma ") == Dialect.PRISMA
        with pytest.raises(UnknownDialectError) as exc_info:
            parse_dialect("oracle")
        assert exc_info.value.subject == "oracle"

    def test_unknown_dialect_on_emit(self, user_entity: Entity) -> None:
        with pytest.raises(UnknownDialectError):
            emit_table(user_entity.table, "mongodb")

    @pytest.mark.parametrize("dialect", list(Dialect))
    def test_output_is_deterministic(self, post_entity: Entity, dialect: Dialect) -> None:
        assert emit_schema(post_entity, dialect) == emit_schema(post_entity, dialect)
