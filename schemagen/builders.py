# File: schemagen/builders.py
"""
SchemaGen - Fluent Builders
============================
Chainable builders for columns, entities and relationships, for callers
that prefer code over entity documents:

    user = (
        EntityBuilder.create("user", "user", "users")
        .table_name("user")
        .id_field()
        .email_field("email")
        .timestamps()
        .build()
    )

Builders hold plain mutable state and produce frozen models on ``build()``.
"""

from __future__ import annotations

import datetime as _dt
import logging
import uuid as _uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from schemagen import column_types
from schemagen.models import (
    CheckConstraint,
    Column,
    ColumnType,
    Constraint,
    ConstraintType,
    Entity,
    EntityName,
    ForeignKeySpec,
    GeneratedKind,
    Index,
    IndexType,
    JunctionTableSpec,
    ReferentialAction,
    Relationship,
    RelationType,
    Table,
)
from schemagen.utils import to_camel_case, to_plural

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.builders")

EntityRef = Union[str, Table, Entity]


def _as_table_ref(ref: EntityRef) -> Union[str, Table]:
    if isinstance(ref, Entity):
        return ref.table
    return ref


# ---------------------------------------------------------------------------
# Column builder
# ---------------------------------------------------------------------------


class ColumnBuilder:
    """Builds a ``Column`` around a shared ``ColumnType``."""

    def __init__(self, column_type: ColumnType) -> None:
        self._options: Dict[str, Any] = {"column_type": column_type}

    @classmethod
    def create(cls, column_type: Union[ColumnType, str], *params: Any) -> "ColumnBuilder":
        if isinstance(column_type, str):
            column_type = column_types.make_column_type(column_type, *params)
        return cls(column_type)

    def nullable(self, nullable: bool = True) -> "ColumnBuilder":
        self._options["nullable"] = nullable
        return self

    def default(self, value: Union[Any, Callable[[], Any]]) -> "ColumnBuilder":
        self._options["default"] = value
        return self

    def unique(self, unique: bool = True) -> "ColumnBuilder":
        self._options["unique"] = unique
        return self

    def indexed(self, indexed: bool = True) -> "ColumnBuilder":
        self._options["indexed"] = indexed
        return self

    def primary(self, primary: bool = True) -> "ColumnBuilder":
        self._options["primary"] = primary
        return self

    def auto_increment(self, auto_increment: bool = True) -> "ColumnBuilder":
        self._options["auto_increment"] = auto_increment
        return self

    def generated(self, kind: Union[GeneratedKind, str]) -> "ColumnBuilder":
        self._options["generated"] = GeneratedKind(kind)
        return self

    def generated_as(self, expression: str) -> "ColumnBuilder":
        self._options["generated_as"] = expression
        return self

    def comment(self, comment: str) -> "ColumnBuilder":
        self._options["comment"] = comment
        return self

    def build(self) -> Column:
        return Column(**self._options)


def _generate_uuid() -> str:
    return str(_uuid.uuid4())


def _generate_now() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


# ---------------------------------------------------------------------------
# Entity builder
# ---------------------------------------------------------------------------


class EntityBuilder:
    """
    Fluent construction of an ``Entity``.

    The table name defaults to ``name.db`` or the lower-cased plural; the
    primary key defaults to ``("id",)``.
    """

    def __init__(
        self,
        entity_id: str,
        singular: str,
        plural: Optional[str] = None,
        display: Optional[str] = None,
        db: Optional[str] = None,
    ) -> None:
        self._name: EntityName = EntityName(
            singular=singular,
            plural=plural or to_plural(singular),
            display=display or singular,
            db=db,
        )
        self._id: str = entity_id
        self._version: str = "1"
        self._description: Optional[str] = None
        self._table_name: str = db or self._name.plural.lower()
        self._table_comment: Optional[str] = None
        self._primary_key: Tuple[str, ...] = ("id",)
        self._columns: Dict[str, Column] = {}
        self._fields: Dict[str, Any] = {}
        self._unique: List[Tuple[str, ...]] = []
        self._checks: List[CheckConstraint] = []
        self._indexes: List[Dict[str, Any]] = []
        self._constraints: List[Dict[str, Any]] = []
        self._relationships: List[Relationship] = []

    @classmethod
    def create(cls, entity_id: str, singular: str, plural: Optional[str] = None) -> "EntityBuilder":
        return cls(entity_id, singular, plural or f"{singular}s")

    # -- Metadata -----------------------------------------------------------

    def description(self, description: str) -> "EntityBuilder":
        self._description = description
        return self

    def version(self, version: Union[str, int]) -> "EntityBuilder":
        self._version = str(version)
        return self

    def table_name(self, name: str) -> "EntityBuilder":
        self._table_name = name
        return self

    def table_comment(self, comment: str) -> "EntityBuilder":
        self._table_comment = comment
        return self

    def primary_key(self, *columns: str) -> "EntityBuilder":
        self._primary_key = tuple(columns)
        return self

    # -- Columns ------------------------------------------------------------

    def column(
        self,
        name: str,
        column: Union[Column, ColumnBuilder],
        field: Optional[Dict[str, Any]] = None,
    ) -> "EntityBuilder":
        self._columns[name] = column.build() if isinstance(column, ColumnBuilder) else column
        if field is not None:
            self._fields[name] = field
        return self

    def id_field(self, kind: str = "uuid") -> "EntityBuilder":
        """
        ``id`` primary-key column: a database-generated UUID, or an identity
        integer when *kind* is ``"integer"``.
        """
        builder: ColumnBuilder = ColumnBuilder.create(kind)
        if kind == "integer":
            builder.auto_increment()
        else:
            builder.default(_generate_uuid)
        return self.column("id", builder, {"js_type": "string", "editable": False})

    def string_field(
        self,
        name: str,
        max_length: Optional[int] = None,
        nullable: bool = False,
        unique: bool = False,
        default: Optional[str] = None,
    ) -> "EntityBuilder":
        builder: ColumnBuilder = (
            ColumnBuilder.create(column_types.string(max_length)).nullable(nullable).unique(unique)
        )
        if default is not None:
            builder.default(default)
        return self.column(name, builder, {"js_type": "string", "input": "TextField"})

    def number_field(
        self,
        name: str,
        nullable: bool = False,
        default: Optional[Union[int, float]] = None,
        integer: bool = False,
    ) -> "EntityBuilder":
        kind: ColumnType = column_types.integer() if integer else column_types.float_()
        builder: ColumnBuilder = ColumnBuilder.create(kind).nullable(nullable)
        if default is not None:
            builder.default(default)
        return self.column(name, builder, {"js_type": "number", "input": "NumberField"})

    def boolean_field(self, name: str, default: Optional[bool] = None) -> "EntityBuilder":
        builder: ColumnBuilder = ColumnBuilder.create(column_types.boolean()).nullable(False)
        if default is not None:
            builder.default(default)
        return self.column(name, builder, {"js_type": "boolean", "input": "Checkbox"})

    def email_field(self, name: str) -> "EntityBuilder":
        builder: ColumnBuilder = ColumnBuilder.create(column_types.string(255)).unique()
        return self.column(name, builder, {"js_type": "string", "display": "Email"})

    def url_field(self, name: str, optional: bool = False) -> "EntityBuilder":
        builder: ColumnBuilder = ColumnBuilder.create(column_types.string(2048)).nullable(optional)
        return self.column(name, builder, {"js_type": "string", "display": "Link"})

    def timestamps(self) -> "EntityBuilder":
        """``createdAt`` (required, defaults to now) and nullable ``updatedAt``."""
        created: ColumnBuilder = ColumnBuilder.create(column_types.timestamp()).default(_generate_now)
        updated: ColumnBuilder = ColumnBuilder.create(column_types.timestamp()).nullable()
        self.column("createdAt", created, {"js_type": "date", "editable": False})
        return self.column("updatedAt", updated, {"js_type": "date", "editable": False})

    # -- Constraints, indexes, relationships --------------------------------

    def unique(self, *columns: str) -> "EntityBuilder":
        self._unique.append(tuple(columns))
        return self

    def check(self, name: str, expression: str) -> "EntityBuilder":
        self._checks.append(CheckConstraint(name=name, expression=expression))
        return self

    def index(
        self,
        name: str,
        columns: Sequence[str],
        unique: bool = False,
        where: Optional[str] = None,
        index_type: Optional[Union[IndexType, str]] = None,
    ) -> "EntityBuilder":
        self._indexes.append(
            {
                "name": name,
                "columns": tuple(columns),
                "unique": unique,
                "where": where,
                "index_type": IndexType(index_type) if index_type else None,
            }
        )
        return self

    def constraint(
        self,
        name: str,
        constraint_type: Union[ConstraintType, str],
        definition: str,
    ) -> "EntityBuilder":
        self._constraints.append(
            {"name": name, "constraint_type": constraint_type, "definition": definition}
        )
        return self

    def relationship(self, relationship: Union[Relationship, "RelationshipBuilder"]) -> "EntityBuilder":
        if isinstance(relationship, RelationshipBuilder):
            relationship = relationship.build()
        self._relationships.append(relationship)
        return self

    # -- Build --------------------------------------------------------------

    def build_table(self) -> Table:
        return Table(
            name=self._table_name,
            columns=dict(self._columns),
            primary_key=self._primary_key,
            unique_constraints=tuple(self._unique),
            check_constraints=tuple(self._checks),
            comment=self._table_comment,
        )

    def build(self) -> Entity:
        entity: Entity = Entity(
            id=self._id,
            name=self._name,
            version=self._version,
            description=self._description,
            table=self.build_table(),
            fields=dict(self._fields),
            relationships=tuple(self._relationships),
            indexes=tuple(Index(table_name=self._table_name, **kw) for kw in self._indexes),
            constraints=tuple(
                Constraint(table_name=self._table_name, **kw) for kw in self._constraints
            ),
        )
        logger.debug("Built %r", entity)
        return entity


# ---------------------------------------------------------------------------
# Relationship builder
# ---------------------------------------------------------------------------


class RelationshipBuilder:
    """
    Fluent construction of a ``Relationship``.  Foreign keys default to
    cascading deletes and updates with a supporting index.
    """

    def __init__(self, name: str) -> None:
        self._name: str = name
        self._description: Optional[str] = None
        self._relation_type: Optional[RelationType] = None
        self._local: Optional[Union[str, Table]] = None
        self._foreign: Optional[Union[str, Table]] = None
        self._foreign_key: Optional[ForeignKeySpec] = None
        self._junction: Optional[Dict[str, Any]] = None

    @classmethod
    def create(cls, name: str) -> "RelationshipBuilder":
        return cls(name)

    def description(self, description: str) -> "RelationshipBuilder":
        self._description = description
        return self

    def entities(self, local: EntityRef, foreign: EntityRef) -> "RelationshipBuilder":
        self._local = _as_table_ref(local)
        self._foreign = _as_table_ref(foreign)
        return self

    def one_to_one(self) -> "RelationshipBuilder":
        self._relation_type = RelationType.ONE_TO_ONE
        return self

    def one_to_many(self) -> "RelationshipBuilder":
        self._relation_type = RelationType.ONE_TO_MANY
        return self

    def many_to_one(self) -> "RelationshipBuilder":
        self._relation_type = RelationType.MANY_TO_ONE
        return self

    def many_to_many(
        self,
        junction_table: str,
        local_column: Optional[str] = None,
        foreign_column: Optional[str] = None,
        extra_columns: Optional[Dict[str, Column]] = None,
    ) -> "RelationshipBuilder":
        """
        Junction columns default to ``<localTable>Id`` / ``<foreignTable>Id``
        (camel-cased) once the entities are known.
        """
        self._relation_type = RelationType.MANY_TO_MANY
        self._junction = {
            "name": junction_table,
            "local_column": local_column,
            "foreign_column": foreign_column,
            "extra_columns": dict(extra_columns or {}),
        }
        return self

    def foreign_key(
        self,
        local_column: str,
        foreign_column: str,
        on_delete: Union[ReferentialAction, str] = ReferentialAction.CASCADE,
        on_update: Union[ReferentialAction, str] = ReferentialAction.CASCADE,
        indexed: bool = True,
        deferrable: bool = False,
        constraint_name: Optional[str] = None,
    ) -> "RelationshipBuilder":
        self._foreign_key = ForeignKeySpec(
            local_column=local_column,
            foreign_column=foreign_column,
            on_delete=on_delete,
            on_update=on_update,
            indexed=indexed,
            deferrable=deferrable,
            constraint_name=constraint_name,
        )
        return self

    @staticmethod
    def _ref_name(ref: Union[str, Table]) -> str:
        return ref if isinstance(ref, str) else ref.name

    def build(self) -> Relationship:
        if self._relation_type is None:
            raise ValueError(f"Relationship '{self._name}' has no relation type.")
        if self._local is None or self._foreign is None:
            raise ValueError(f"Relationship '{self._name}' needs both entities.")
        if self._foreign_key is None:
            raise ValueError(f"Relationship '{self._name}' needs a foreign key.")

        junction: Optional[JunctionTableSpec] = None
        if self._junction is not None:
            junction = JunctionTableSpec(
                name=self._junction["name"],
                local_column=self._junction["local_column"]
                or f"{to_camel_case(self._ref_name(self._local))}Id",
                foreign_column=self._junction["foreign_column"]
                or f"{to_camel_case(self._ref_name(self._foreign))}Id",
                extra_columns=self._junction["extra_columns"],
            )

        return Relationship(
            name=self._name,
            relation_type=self._relation_type,
            local_entity=self._local,
            foreign_entity=self._foreign,
            foreign_key=self._foreign_key,
            junction_table=junction,
            description=self._description,
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ColumnBuilder",
    "EntityBuilder",
    "RelationshipBuilder",
]

logger.debug("schemagen.builders loaded — %d public symbols.", len(__all__))
