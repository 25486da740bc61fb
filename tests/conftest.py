"""
tests/conftest.py
Shared fixtures for the schemagen test suite.

Entities are built with the fluent builders; the entity document fixtures
read the reference schema_example.yaml.  Real file I/O happens inside
pytest's tmp_path directories.
"""

from __future__ import annotations

import copy
import pathlib
from typing import Any, Dict, List

import pytest
import yaml

from schemagen.builders import ColumnBuilder, EntityBuilder, RelationshipBuilder
from schemagen.models import DialectOptions, Entity, SqlVariant


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
SCHEMA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "schema_example.yaml"


# ---------------------------------------------------------------------------
# Dialect options
# ---------------------------------------------------------------------------


@pytest.fixture()
def postgres() -> DialectOptions:
    return DialectOptions(sql_variant=SqlVariant.POSTGRES)


@pytest.fixture()
def mysql() -> DialectOptions:
    return DialectOptions(sql_variant=SqlVariant.MYSQL)


@pytest.fixture()
def sqlite() -> DialectOptions:
    return DialectOptions(sql_variant=SqlVariant.SQLITE)


# ---------------------------------------------------------------------------
# Entity fixtures (user / tag / post)
# ---------------------------------------------------------------------------


@pytest.fixture()
def user_entity() -> Entity:
    """``user`` table: uuid id, unique email, timestamps."""
    return (
        EntityBuilder.create("user", "user", "users")
        .table_name("user")
        .id_field()
        .email_field("email")
        .string_field("name", 100)
        .timestamps()
        .build()
    )


@pytest.fixture()
def tag_entity() -> Entity:
    return (
        EntityBuilder.create("tag", "tag", "tags")
        .table_name("tag")
        .id_field()
        .string_field("label", 50, unique=True)
        .build()
    )


@pytest.fixture()
def post_entity(user_entity: Entity, tag_entity: Entity) -> Entity:
    """``post`` table with a many-to-one author and a many-to-many tag set."""
    author = (
        RelationshipBuilder.create("author")
        .many_to_one()
        .entities("post", user_entity)
        .foreign_key("authorId", "id")
    )
    tags = (
        RelationshipBuilder.create("tags")
        .many_to_many("post_tags", "postId", "tagId")
        .entities("post", tag_entity)
        .foreign_key("id", "id")
    )
    return (
        EntityBuilder.create("post", "post", "posts")
        .table_name("post")
        .id_field()
        .string_field("title", 200)
        .column("authorId", ColumnBuilder.create("uuid"))
        .relationship(author)
        .relationship(tags)
        .build()
    )


@pytest.fixture()
def blog_entities(user_entity: Entity, tag_entity: Entity, post_entity: Entity) -> List[Entity]:
    return [user_entity, tag_entity, post_entity]


@pytest.fixture()
def counter_entity() -> Entity:
    """Integer identity key, no relationships."""
    return (
        EntityBuilder.create("counter", "counter")
        .id_field("integer")
        .number_field("hits", integer=True, default=0)
        .build()
    )


# ---------------------------------------------------------------------------
# Entity document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_document() -> Dict[str, Any]:
    """Load the reference schema_example.yaml once per session and return as dict."""
    assert SCHEMA_EXAMPLE_PATH.exists(), (
        f"Reference document not found at {SCHEMA_EXAMPLE_PATH}. "
        "Make sure schema_example.yaml is in the project root."
    )
    with open(SCHEMA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def document(raw_document: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_document)


@pytest.fixture()
def document_yaml_path(document: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the document to a temporary YAML file and return its path."""
    path = tmp_path / "entities.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(document, fh, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return path


@pytest.fixture()
def minimal_document() -> Dict[str, Any]:
    """Smallest valid document: one entity with a single key column."""
    return {
        "entities": [
            {
                "id": "note",
                "columns": {"id": {"type": "integer", "auto_increment": True}},
            }
        ]
    }
