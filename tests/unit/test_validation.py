"""Tests for generated input models and payload validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dazzle_crud.runtime.exceptions import InvalidInputError
from dazzle_crud.runtime.registry import EntityRegistry
from dazzle_crud.runtime.validation import (
    InputValidator,
    generate_input_model,
    validate_input_data,
)
from dazzle_crud.specs import EntitySpec, FieldSpec, FieldType, ScalarType


@pytest.fixture
def validator(registry: EntityRegistry) -> InputValidator:
    return InputValidator(registry)


class TestGenerateInputModel:
    def test_model_name_and_fields(self, registry: EntityRegistry) -> None:
        model = generate_input_model(registry.get("Book"))

        assert model.__name__ == "BookInput"
        assert set(model.model_fields) == {"id", "title", "author", "tags"}

    def test_all_fields_optional(self, registry: EntityRegistry) -> None:
        model = generate_input_model(registry.get("Book"))

        assert model.model_validate({}).model_dump() == {
            "id": None,
            "title": None,
            "author": None,
            "tags": None,
        }

    def test_rejects_unknown_fields(self, registry: EntityRegistry) -> None:
        model = generate_input_model(registry.get("Author"))

        with pytest.raises(ValidationError):
            model.model_validate({"name": "A", "nickname": "B"})

    def test_enum_field(self) -> None:
        entity = EntitySpec(
            name="Post",
            fields=[
                FieldSpec(
                    name="status",
                    type=FieldType(kind="enum", enum_values=["draft", "published"]),
                )
            ],
        )
        model = generate_input_model(entity)

        assert model.model_validate({"status": "draft"}).status == "draft"
        with pytest.raises(ValidationError):
            model.model_validate({"status": "archived"})

    def test_scalar_types(self) -> None:
        entity = EntitySpec(
            name="Reading",
            fields=[
                FieldSpec(name="count", type=FieldType(kind="scalar", scalar_type=ScalarType.INT)),
                FieldSpec(name="ok", type=FieldType(kind="scalar", scalar_type=ScalarType.BOOL)),
            ],
        )
        model = generate_input_model(entity)

        with pytest.raises(ValidationError):
            model.model_validate({"count": "many"})
        assert model.model_validate({"count": 3, "ok": True}).count == 3


class TestInputValidator:
    def test_valid_create(self, validator: InputValidator) -> None:
        validator.validate(
            {"title": "T", "author": {"name": "A"}, "tags": [{"label": "x"}]},
            "Book",
            for_create=True,
        )

    def test_non_mapping_payload(self, validator: InputValidator) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            validator.validate(["not", "a", "record"], "Book")

        assert exc_info.value.errors[0]["type"] == "dict_type"

    def test_required_fields_only_on_create(self, validator: InputValidator) -> None:
        validator.validate({"author": {"name": "A"}}, "Book")

        with pytest.raises(InvalidInputError) as exc_info:
            validator.validate({"author": {"name": "A"}}, "Book", for_create=True)

        assert str(exc_info.value) == "Invalid input for Book"
        assert exc_info.value.errors == [
            {"loc": ["title"], "msg": "Field required", "type": "missing"}
        ]

    def test_nested_required_fields(self, validator: InputValidator) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            validator.validate({"title": "T", "author": {}}, "Book", for_create=True)

        assert [e["loc"] for e in exc_info.value.errors] == [["author", "name"]]

    def test_link_values_skip_required_fields(self, validator: InputValidator) -> None:
        validator.validate({"title": "T", "author": {"id": "a1"}}, "Book", for_create=True)

    def test_root_id_rejected_on_create(self, validator: InputValidator) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            validator.validate({"id": "x", "name": "A"}, "Author", for_create=True)

        assert exc_info.value.errors[0]["loc"] == ["id"]
        assert exc_info.value.errors[0]["type"] == "forbidden"

    def test_list_errors_carry_index(self, validator: InputValidator) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            validator.validate(
                {"tags": [{"label": "ok"}, {"colour": "red"}]},
                "Book",
            )

        assert exc_info.value.errors[0]["loc"] == ["tags", 1, "colour"]

    def test_relation_must_be_mapping(self, validator: InputValidator) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            validator.validate({"author": "a1"}, "Book")

        assert exc_info.value.errors[0]["loc"] == ["author"]

    def test_models_are_cached(self, validator: InputValidator) -> None:
        assert validator.input_model("Book") is validator.input_model("Book")

    def test_validate_input_data(self, registry: EntityRegistry) -> None:
        with pytest.raises(InvalidInputError):
            validate_input_data({"title": 1}, "Book", registry)
