"""
Input validation - generates pydantic input models from EntitySpec.

Each entity gets a flat input model in which every field is optional and
nullable. Relation fields accept a mapping (or a list of mappings); their
contents are validated recursively against the related entity's model.
Validation never rewrites data: callers keep working with the original
payload.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from dazzle_crud.runtime.exceptions import InvalidInputError
from dazzle_crud.runtime.registry import IDENTIFIER_FIELD, EntityRegistry
from dazzle_crud.specs.entity import EntitySpec, FieldSpec, ScalarType

_SCALAR_TYPES: dict[ScalarType, Any] = {
    ScalarType.STR: str,
    ScalarType.TEXT: str,
    ScalarType.INT: int,
    ScalarType.FLOAT: float,
    ScalarType.DECIMAL: Decimal,
    ScalarType.BOOL: bool,
    ScalarType.DATE: date,
    ScalarType.DATETIME: datetime,
    ScalarType.UUID: UUID,
    ScalarType.JSON: Any,
}


class _InputBase(BaseModel):
    model_config = ConfigDict(extra="forbid")


def _python_type(field: FieldSpec) -> Any:
    field_type = field.type
    if field_type.kind == "ref":
        return list[dict[str, Any]] if field_type.many else dict[str, Any]
    if field_type.kind == "enum":
        return Literal[tuple(field_type.enum_values or ())]  # type: ignore[misc]
    return _SCALAR_TYPES.get(field_type.scalar_type, Any)  # type: ignore[arg-type]


def generate_input_model(entity: EntitySpec) -> type[BaseModel]:
    """
    Generate the input model for an entity.

    Example:
        >>> BookInput = generate_input_model(book)
        >>> BookInput.model_validate({"title": "T", "author": {"name": "A"}})
    """
    fields: dict[str, Any] = {f.name: (_python_type(f) | None, None) for f in entity.fields}
    return create_model(f"{entity.name}Input", __base__=_InputBase, **fields)


class InputValidator:
    """
    Validates request payloads against generated input models.

    Models are generated lazily and cached per entity.
    """

    def __init__(self, registry: EntityRegistry):
        self.registry = registry
        self._models: dict[str, type[BaseModel]] = {}

    def input_model(self, entity_name: str) -> type[BaseModel]:
        if entity_name not in self._models:
            self._models[entity_name] = generate_input_model(self.registry.get(entity_name))
        return self._models[entity_name]

    def validate(
        self,
        data: Any,
        entity_name: str,
        *,
        for_create: bool = False,
    ) -> None:
        """
        Validate ``data`` for an entity.

        Args:
            data: Request payload
            entity_name: Target entity
            for_create: Enforce required fields and reject a root ``id``

        Raises:
            InvalidInputError: With the collected error list
        """
        errors: list[dict[str, Any]] = []

        if not isinstance(data, dict):
            errors.append(
                {"loc": [], "msg": f"{entity_name} data must be an object", "type": "dict_type"}
            )
        else:
            if for_create and data.get(IDENTIFIER_FIELD) is not None:
                errors.append(
                    {
                        "loc": [IDENTIFIER_FIELD],
                        "msg": "id is assigned by storage and cannot be supplied on create",
                        "type": "forbidden",
                    }
                )
            self._collect_errors(data, entity_name, (), errors, for_create=for_create)

        if errors:
            raise InvalidInputError(f"Invalid input for {entity_name}", errors=errors)

    def _collect_errors(
        self,
        data: dict[str, Any],
        entity_name: str,
        loc: tuple[Any, ...],
        errors: list[dict[str, Any]],
        *,
        for_create: bool,
    ) -> None:
        entity = self.registry.get(entity_name)
        model = self.input_model(entity_name)

        try:
            model.model_validate(data)
        except ValidationError as exc:
            for err in exc.errors():
                errors.append(
                    {
                        "loc": [*loc, *err["loc"]],
                        "msg": err["msg"],
                        "type": err["type"],
                    }
                )
            return

        # Nested values that link an existing entity are not held to the
        # required-field rule.
        if for_create and data.get(IDENTIFIER_FIELD) is None:
            for field in entity.fields:
                if field.required and data.get(field.name) is None:
                    errors.append(
                        {"loc": [*loc, field.name], "msg": "Field required", "type": "missing"}
                    )

        for field in entity.relation_fields:
            value = data.get(field.name)
            related = field.type.ref_entity
            if value is None or related is None:
                continue
            if isinstance(value, list):
                for index, item in enumerate(value):
                    self._collect_errors(
                        item, related, (*loc, field.name, index), errors, for_create=for_create
                    )
            else:
                self._collect_errors(
                    value, related, (*loc, field.name), errors, for_create=for_create
                )


def validate_input_data(
    data: Any,
    entity_name: str,
    registry: EntityRegistry,
    *,
    for_create: bool = False,
) -> None:
    """Validate ``data`` with a one-off validator. See InputValidator.validate."""
    InputValidator(registry).validate(data, entity_name, for_create=for_create)
