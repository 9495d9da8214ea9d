"""Shared pytest fixtures for dazzle-crud tests."""

from __future__ import annotations

import pytest

from dazzle_crud.runtime.registry import EntityRegistry
from dazzle_crud.runtime.resolvers import ResolverContext
from dazzle_crud.runtime.store import InMemoryStore
from dazzle_crud.specs import EntitySpec, FieldSpec, FieldType, ScalarType, SchemaSpec

from recording_store import RecordingStore


def _str(name: str, required: bool = False) -> FieldSpec:
    return FieldSpec(
        name=name,
        type=FieldType(kind="scalar", scalar_type=ScalarType.STR),
        required=required,
    )


def _ref(name: str, entity: str, many: bool = False) -> FieldSpec:
    return FieldSpec(name=name, type=FieldType(kind="ref", ref_entity=entity, many=many))


@pytest.fixture
def author_entity() -> EntitySpec:
    return EntitySpec(name="Author", fields=[_str("name", required=True)])


@pytest.fixture
def tag_entity() -> EntitySpec:
    return EntitySpec(name="Tag", fields=[_str("label")])


@pytest.fixture
def book_entity() -> EntitySpec:
    return EntitySpec(
        name="Book",
        fields=[
            _str("title", required=True),
            _ref("author", "Author"),
            _ref("tags", "Tag", many=True),
        ],
    )


@pytest.fixture
def schema(author_entity: EntitySpec, tag_entity: EntitySpec, book_entity: EntitySpec) -> SchemaSpec:
    return SchemaSpec(name="library", entities=[author_entity, tag_entity, book_entity])


@pytest.fixture
def registry(schema: SchemaSpec) -> EntityRegistry:
    return EntityRegistry.from_entities(schema.entities)


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def store(memory_store: InMemoryStore) -> RecordingStore:
    return RecordingStore(memory_store)


@pytest.fixture
def ctx(store: RecordingStore, registry: EntityRegistry) -> ResolverContext:
    return ResolverContext.create(store, registry)
