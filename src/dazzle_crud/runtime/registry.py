"""
Entity registry - answers field and relation questions for entity types.

The registry is built once from a list of EntitySpec. Each entity is
augmented with an ``id`` field by a pure builder step: the caller's specs are
left untouched and the registry only ever holds new, frozen copies.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from dazzle_crud.runtime.exceptions import UnknownEntityError
from dazzle_crud.specs.entity import EntitySpec, FieldSpec, FieldType, ScalarType

IDENTIFIER_FIELD = "id"

_IDENTIFIER_TYPES = {ScalarType.STR, ScalarType.UUID}


@dataclass(frozen=True)
class FieldDescriptor:
    """Flattened view of a field as seen by the nested resolver."""

    name: str
    is_relation: bool
    is_list: bool
    related_type_name: str | None = None


def identifier_field_spec() -> FieldSpec:
    """The field every registered entity carries."""
    return FieldSpec(
        name=IDENTIFIER_FIELD,
        type=FieldType(kind="scalar", scalar_type=ScalarType.STR),
        description="Unique ID",
    )


def with_identifier(entity: EntitySpec) -> EntitySpec:
    """
    Return a copy of ``entity`` with an ``id`` field first.

    An entity that already declares ``id`` keeps its declaration, provided it
    is a plain string or uuid scalar.

    Raises:
        ValueError: If the declared ``id`` field cannot hold an identifier
    """
    existing = entity.get_field(IDENTIFIER_FIELD)
    if existing is not None:
        if existing.type.kind != "scalar" or existing.type.scalar_type not in _IDENTIFIER_TYPES:
            raise ValueError(
                f"Entity '{entity.name}' declares an '{IDENTIFIER_FIELD}' field "
                "that is not a string identifier"
            )
        others = [f for f in entity.fields if f.name != IDENTIFIER_FIELD]
        return entity.model_copy(update={"fields": [existing, *others]})

    return entity.model_copy(update={"fields": [identifier_field_spec(), *entity.fields]})


class EntityRegistry:
    """
    Registry of entity types by name.

    Example:
        >>> registry = EntityRegistry.from_entities([author, book])
        >>> registry.related_entity("Book", "author").name
        'Author'
    """

    identifier_field = IDENTIFIER_FIELD

    def __init__(self, entities: dict[str, EntitySpec]):
        self._entities = entities

    @classmethod
    def from_entities(cls, entities: Iterable[EntitySpec]) -> EntityRegistry:
        """
        Build a registry from entity specs.

        Raises:
            ValueError: On duplicate entity names or refs to undeclared entities
        """
        built: dict[str, EntitySpec] = {}
        for entity in entities:
            if entity.name in built:
                raise ValueError(f"Duplicate entity '{entity.name}'")
            built[entity.name] = with_identifier(entity)

        for entity in built.values():
            for field in entity.relation_fields:
                if field.type.ref_entity not in built:
                    raise ValueError(
                        f"Field '{entity.name}.{field.name}' references unknown "
                        f"entity '{field.type.ref_entity}'"
                    )

        return cls(built)

    def __contains__(self, name: object) -> bool:
        return name in self._entities

    def __iter__(self) -> Iterator[EntitySpec]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    @property
    def names(self) -> list[str]:
        return list(self._entities)

    def get(self, name: str) -> EntitySpec:
        """Get an entity by name, raising UnknownEntityError if absent."""
        try:
            return self._entities[name]
        except KeyError:
            raise UnknownEntityError(name) from None

    def field_descriptors(self, name: str) -> list[FieldDescriptor]:
        return [
            FieldDescriptor(
                name=f.name,
                is_relation=f.type.is_relation,
                is_list=f.type.many,
                related_type_name=f.type.ref_entity,
            )
            for f in self.get(name).fields
        ]

    def relation_fields(self, name: str) -> list[FieldSpec]:
        return self.get(name).relation_fields

    def related_entity(self, name: str, field_name: str) -> EntitySpec | None:
        """Get the entity targeted by a relation field, or None for non-relations."""
        field = self.get(name).get_field(field_name)
        if field is None or not field.type.is_relation or field.type.ref_entity is None:
            return None
        return self.get(field.type.ref_entity)
