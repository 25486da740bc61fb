# File: schemagen/models.py
"""
SchemaGen - Core Data Models
=============================
Pydantic V2 models describing entities, tables, columns, relationships and
the compiler configuration.  These models are the single input format of the
pipeline: Entity → Dialect Emitters / Relationship Compiler → Migration
Assembler → text.

Every schema model is **frozen**.  A ``ColumnType`` in particular is shared
between many columns and entities, so modifier application never touches it
in place; ``schemagen.modifiers`` always returns a fresh value.
"""

from __future__ import annotations

import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from schemagen.errors import CodecError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.models")

# ---------------------------------------------------------------------------
# Enums: closed sets used across the compiler
# ---------------------------------------------------------------------------


class Dialect(str, Enum):
    """Schema-text targets the compiler can emit for."""

    SQL = "sql"
    DRIZZLE = "drizzle"
    PRISMA = "prisma"
    CONVEX = "convex"


class SqlVariant(str, Enum):
    """Flavours of the relational DDL dialect."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"


class RelationType(str, Enum):
    """Relationship cardinalities."""

    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


class ReferentialAction(str, Enum):
    """Foreign-key ON DELETE / ON UPDATE behaviour."""

    CASCADE = "cascade"
    SET_NULL = "set-null"
    RESTRICT = "restrict"
    NO_ACTION = "no-action"

    @property
    def sql(self) -> str:
        return self.value.replace("-", " ").upper()


class IndexType(str, Enum):
    """Index access methods (honoured only where the SQL variant has them)."""

    BTREE = "btree"
    HASH = "hash"
    GIST = "gist"
    GIN = "gin"


class ConstraintType(str, Enum):
    CHECK = "check"
    FOREIGN_KEY = "foreign-key"
    UNIQUE = "unique"
    PRIMARY_KEY = "primary-key"


class GeneratedKind(str, Enum):
    """Identity generation mode for auto-increment columns."""

    ALWAYS = "always"
    BY_DEFAULT = "by-default"


class ModifierKind(str, Enum):
    """Column modifiers, listed in the conventional application order."""

    NULLABLE = "nullable"
    UNIQUE = "unique"
    PRIMARY_KEY = "primary_key"
    DEFAULT = "default"
    AUTO_INCREMENT = "auto_increment"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    frozen=True,
    extra="forbid",
    populate_by_name=True,
    arbitrary_types_allowed=True,
)

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    frozen=False,
    extra="forbid",
)


def _identity(value: Any) -> Any:
    return value


def _normalise_tag(value: Any) -> Any:
    """'ONE_TO_MANY' / 'one_to_many' / 'one-to-many' → 'one-to-many'."""
    if isinstance(value, str):
        return value.strip().lower().replace("_", "-")
    return value


# ---------------------------------------------------------------------------
# Dialect options
# ---------------------------------------------------------------------------


class DialectOptions(BaseModel):
    """Hints passed to every emitter (currently only the SQL variant)."""

    model_config = _FROZEN_CONFIG

    sql_variant: SqlVariant = Field(
        default=SqlVariant.POSTGRES, description="Relational DDL flavour."
    )


DEFAULT_OPTIONS: DialectOptions = DialectOptions()

# Signature shared by every per-dialect emitter:
#   (column_name, dialect_options) -> fragment
Emitter = Callable[[str, Optional[DialectOptions]], str]


# ---------------------------------------------------------------------------
# Column types & modifiers
# ---------------------------------------------------------------------------


class ColumnModifier(BaseModel):
    """One modifier applied on top of a base column type."""

    model_config = _FROZEN_CONFIG

    kind: ModifierKind
    value: Any = Field(default=True, description="Flag, default value or GeneratedKind.")

    def __repr__(self) -> str:
        return f"<ColumnModifier {self.kind.value}={self.value!r}>"


class ColumnType(BaseModel):
    """
    Immutable descriptor of a column kind.

    ``emitters`` holds the *base* per-dialect renderers; ``modifiers`` holds
    the modifier chain in application order.  Dialect emitters compose the
    two (see ``schemagen.emitters.column_emitter``).
    """

    model_config = _FROZEN_CONFIG

    type_name: str = Field(..., min_length=1, description="Type tag, e.g. 'varchar'.")
    type_params: Tuple[Any, ...] = Field(
        default=(), description="Type parameters (length, precision, element type...)."
    )
    serializer: Callable[[Any], Any] = Field(default=_identity, repr=False)
    deserializer: Callable[[Any], Any] = Field(default=_identity, repr=False)
    validator: Optional[Callable[[Any], bool]] = Field(default=None, repr=False)
    emitters: Mapping[Dialect, Callable[..., str]] = Field(
        default_factory=lambda: MappingProxyType({}),
        repr=False,
        description="Base emitter per dialect.",
    )
    modifiers: Tuple[ColumnModifier, ...] = Field(
        default=(), description="Modifier chain, application order."
    )

    @field_validator("emitters", mode="after")
    @classmethod
    def _freeze_emitters(
        cls, v: Mapping[Dialect, Callable[..., str]]
    ) -> Mapping[Dialect, Callable[..., str]]:
        # copies made by model_copy share this mapping
        return MappingProxyType(dict(v))

    # -- Codec --------------------------------------------------------------

    def serialize(self, value: Any) -> Any:
        return self.serializer(value)

    def deserialize(self, raw: Any) -> Any:
        return self.deserializer(raw)

    def validate_value(self, value: Any) -> bool:
        """True when *value* lies in the domain ``serialize`` expects."""
        if self.validator is None:
            return True
        try:
            return bool(self.validator(value))
        except (TypeError, ValueError):
            return False

    def check_value(self, value: Any) -> Any:
        """Raise ``CodecError`` unless *value* is valid; return it otherwise."""
        if not self.validate_value(value):
            raise CodecError(
                f"Value {value!r} is not valid for column type '{self.type_name}'.",
                subject=self.type_name,
                context={"value": repr(value), "type_params": repr(self.type_params)},
            )
        return value

    def round_trip(self, value: Any) -> Any:
        """Validate, serialize and deserialize *value*."""
        self.check_value(value)
        return self.deserialize(self.serialize(value))

    # -- Emitter lookup -----------------------------------------------------

    def emitter_for(self, dialect: Union[Dialect, str]) -> Optional[Emitter]:
        """Return the base emitter for *dialect*, or ``None`` when the kind has none."""
        return self.emitters.get(Dialect(dialect))

    def modifier(self, kind: ModifierKind) -> Optional[ColumnModifier]:
        for mod in self.modifiers:
            if mod.kind == kind:
                return mod
        return None

    @property
    def base(self) -> "ColumnType":
        """The same type with every modifier stripped."""
        if not self.modifiers:
            return self
        return self.model_copy(update={"modifiers": ()})

    def __repr__(self) -> str:
        params: str = ", ".join(
            p.type_name if isinstance(p, ColumnType) else repr(p)
            for p in self.type_params
            if p is not None
        )
        mods: str = "".join(f" +{m.kind.value}" for m in self.modifiers)
        return f"<ColumnType {self.type_name}({params}){mods}>"


class Column(BaseModel):
    """A column: a shared ``ColumnType`` plus per-column flags."""

    model_config = _FROZEN_CONFIG

    column_type: ColumnType = Field(..., description="Shared column type.")
    nullable: bool = Field(default=False, description="Allows NULL.")
    unique: bool = Field(default=False, description="UNIQUE constraint.")
    primary: bool = Field(default=False, description="Primary-key column.")
    auto_increment: bool = Field(default=False, description="Identity column.")
    indexed: bool = Field(default=False, description="Wants a single-column index.")
    generated: Optional[GeneratedKind] = Field(
        default=None, description="Identity mode (always / by-default)."
    )
    generated_as: Optional[str] = Field(
        default=None, description="Computed-column SQL expression."
    )
    default: Any = Field(
        default=None,
        description="Literal default or zero-argument generator (None = no default).",
    )
    comment: Optional[str] = Field(default=None, description="Column comment.")

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @property
    def default_is_generated(self) -> bool:
        return callable(self.default)

    @model_validator(mode="after")
    def _validate_generation(self) -> "Column":
        if self.generated_as and (self.has_default or self.auto_increment):
            raise ValueError(
                "A computed column (generated_as) cannot also carry a default "
                "or be auto-increment."
            )
        return self

    def __repr__(self) -> str:
        flags: str = "".join(
            f" {name.upper()}"
            for name in ("primary", "unique", "nullable", "auto_increment")
            if getattr(self, name)
        )
        return f"<Column {self.column_type.type_name}{flags}>"


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------


class CheckConstraint(BaseModel):
    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1)
    expression: str = Field(..., min_length=1, description="Boolean SQL expression.")


class Table(BaseModel):
    """
    One table.  ``columns`` keeps insertion order, which is reproduced
    verbatim in every emitted schema.
    """

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Table name.")
    columns: Dict[str, Column] = Field(..., min_length=1, description="Ordered columns.")
    primary_key: Tuple[str, ...] = Field(
        default=(), description="Table-level primary key column names."
    )
    unique_constraints: Tuple[Tuple[str, ...], ...] = Field(
        default=(), description="Multi-column unique groups."
    )
    check_constraints: Tuple[CheckConstraint, ...] = Field(default=())
    comment: Optional[str] = Field(default=None, description="Table comment.")

    @computed_field  # type: ignore[misc]
    @property
    def column_names(self) -> List[str]:
        return list(self.columns)

    @property
    def flagged_primary_columns(self) -> List[str]:
        """Columns that carry the per-column ``primary`` flag."""
        return [name for name, col in self.columns.items() if col.primary]

    def get_column(self, name: str) -> Optional[Column]:
        return self.columns.get(name)

    def __repr__(self) -> str:
        return f"<Table {self.name} ({len(self.columns)} cols, pk={list(self.primary_key)})>"


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------


class ForeignKeySpec(BaseModel):
    model_config = _FROZEN_CONFIG

    local_column: str = Field(..., min_length=1)
    foreign_column: str = Field(..., min_length=1)
    on_delete: ReferentialAction = Field(default=ReferentialAction.CASCADE)
    on_update: ReferentialAction = Field(default=ReferentialAction.CASCADE)
    indexed: bool = Field(default=True, description="Emit a supporting index.")
    deferrable: bool = Field(default=False, description="DEFERRABLE INITIALLY DEFERRED.")
    constraint_name: Optional[str] = Field(default=None)

    @field_validator("on_delete", "on_update", mode="before")
    @classmethod
    def _normalise_action(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower().replace("_", "-").replace(" ", "-")
        return v


class JunctionTableSpec(BaseModel):
    """Synthesized table realizing a many-to-many relationship."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1)
    local_column: str = Field(..., min_length=1)
    foreign_column: str = Field(..., min_length=1)
    extra_columns: Dict[str, Column] = Field(default_factory=dict)


class Relationship(BaseModel):
    """
    A relationship between a local and a foreign entity.

    Entities are referenced by table name or by full ``Table``.  Unknown
    ``relation_type`` strings are kept as-is so the relationship compiler can
    reject them with a proper error.
    """

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1)
    relation_type: Union[RelationType, str] = Field(...)
    local_entity: Union[str, Table] = Field(...)
    foreign_entity: Union[str, Table] = Field(...)
    foreign_key: ForeignKeySpec = Field(...)
    junction_table: Optional[JunctionTableSpec] = Field(default=None)
    description: Optional[str] = Field(default=None)

    @field_validator("relation_type", mode="before")
    @classmethod
    def _coerce_relation_type(cls, v: Any) -> Any:
        tag: Any = _normalise_tag(v)
        try:
            return RelationType(tag)
        except ValueError:
            return v

    @property
    def local_table_name(self) -> str:
        return self.local_entity if isinstance(self.local_entity, str) else self.local_entity.name

    @property
    def foreign_table_name(self) -> str:
        return (
            self.foreign_entity
            if isinstance(self.foreign_entity, str)
            else self.foreign_entity.name
        )

    @property
    def local_table(self) -> Optional[Table]:
        return self.local_entity if isinstance(self.local_entity, Table) else None

    @property
    def foreign_table(self) -> Optional[Table]:
        return self.foreign_entity if isinstance(self.foreign_entity, Table) else None

    def __repr__(self) -> str:
        kind: str = getattr(self.relation_type, "value", self.relation_type)
        return (
            f"<Relationship {self.name} ({kind}) "
            f"{self.local_table_name} → {self.foreign_table_name}>"
        )


# ---------------------------------------------------------------------------
# Index & constraint
# ---------------------------------------------------------------------------


class Index(BaseModel):
    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1)
    table_name: str = Field(..., min_length=1)
    columns: Tuple[str, ...] = Field(..., min_length=1)
    unique: bool = Field(default=False)
    where: Optional[str] = Field(default=None, description="Partial-index predicate.")
    index_type: Optional[IndexType] = Field(default=None)

    @field_validator("columns")
    @classmethod
    def _no_duplicate_columns(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if len(v) != len(set(v)):
            raise ValueError(f"Duplicate columns in index: {list(v)}")
        return v


class Constraint(BaseModel):
    """A named table constraint rendered as ``ALTER TABLE ... ADD CONSTRAINT``."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1)
    table_name: str = Field(..., min_length=1)
    constraint_type: ConstraintType = Field(...)
    definition: str = Field(..., min_length=1)

    @field_validator("constraint_type", mode="before")
    @classmethod
    def _normalise_type(cls, v: Any) -> Any:
        return _normalise_tag(v)


# ---------------------------------------------------------------------------
# Entity (aggregate root)
# ---------------------------------------------------------------------------


class EntityName(BaseModel):
    model_config = _FROZEN_CONFIG

    singular: str = Field(..., min_length=1)
    plural: str = Field(..., min_length=1)
    display: Optional[str] = Field(default=None)
    db: Optional[str] = Field(default=None, description="Override for the table name.")


class Entity(BaseModel):
    """
    The aggregate root handed to the compiler.

    ``fields`` carries field-level metadata for other generators; the schema
    compiler ignores it.
    """

    model_config = _FROZEN_CONFIG

    id: str = Field(..., min_length=1)
    name: EntityName = Field(...)
    version: str = Field(default="1", description="Opaque version tag.")
    description: Optional[str] = Field(default=None)
    table: Table = Field(...)
    fields: Dict[str, Any] = Field(default_factory=dict)
    relationships: Tuple[Relationship, ...] = Field(default=())
    indexes: Tuple[Index, ...] = Field(default=())
    constraints: Tuple[Constraint, ...] = Field(default=())

    @field_validator("version", mode="before")
    @classmethod
    def _stringify_version(cls, v: Any) -> Any:
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @property
    def table_name(self) -> str:
        return self.table.name

    def __repr__(self) -> str:
        return (
            f"<Entity {self.id} table={self.table.name} "
            f"({len(self.relationships)} rels, {len(self.indexes)} idx)>"
        )


# ---------------------------------------------------------------------------
# Compiler configuration
# ---------------------------------------------------------------------------


class CompilerConfig(BaseModel):
    """Settings for ``schemagen.compiler.SchemaCompiler``."""

    model_config = _SHARED_CONFIG

    dialects: Tuple[Dialect, ...] = Field(
        default=(Dialect.SQL, Dialect.DRIZZLE, Dialect.PRISMA, Dialect.CONVEX),
        min_length=1,
        description="Targets compiled by compile_entity().",
    )
    sql_variant: SqlVariant = Field(
        default=SqlVariant.POSTGRES, description="Relational DDL flavour."
    )
    fail_on_warnings: bool = Field(
        default=False, description="Treat coverage warnings as entity failures."
    )
    validate_before_compile: bool = Field(
        default=True, description="Run pre-flight validators before emitting."
    )
    include_timestamp: bool = Field(
        default=False, description="Add a 'Generated:' line to migration headers."
    )

    @field_validator("dialects", mode="before")
    @classmethod
    def _split_dialects(cls, v: Any) -> Any:
        if isinstance(v, str):
            return tuple(part.strip() for part in v.split(",") if part.strip())
        return v

    @field_validator("dialects")
    @classmethod
    def _unique_dialects(cls, v: Tuple[Dialect, ...]) -> Tuple[Dialect, ...]:
        if len(v) != len(set(v)):
            raise ValueError(f"Duplicate dialects: {[d.value for d in v]}")
        return v

    def dialect_options(self) -> DialectOptions:
        return DialectOptions(sql_variant=self.sql_variant)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Dialect",
    "SqlVariant",
    "RelationType",
    "ReferentialAction",
    "IndexType",
    "ConstraintType",
    "GeneratedKind",
    "ModifierKind",
    "DialectOptions",
    "DEFAULT_OPTIONS",
    "Emitter",
    "ColumnModifier",
    "ColumnType",
    "Column",
    "CheckConstraint",
    "Table",
    "ForeignKeySpec",
    "JunctionTableSpec",
    "Relationship",
    "Index",
    "Constraint",
    "EntityName",
    "Entity",
    "CompilerConfig",
]

logger.debug("schemagen.models loaded — %d public symbols.", len(__all__))
