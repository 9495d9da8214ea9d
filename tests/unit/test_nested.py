"""Unit tests for nested traversal: classification, visiting, id plucking, merging."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from dazzle_crud.runtime.nested import (
    FieldKind,
    ValueKind,
    classify_field,
    classify_value,
    deep_merge,
    foreign_key_data,
    pluck_model_object_ids,
    visit_nested_models,
)
from dazzle_crud.runtime.registry import EntityRegistry


class TestClassification:
    def test_scalar_field(self, registry: EntityRegistry) -> None:
        assert classify_field(registry.get("Book").get_field("title")) is FieldKind.SCALAR

    def test_single_relation(self, registry: EntityRegistry) -> None:
        field = registry.get("Book").get_field("author")
        assert classify_field(field) is FieldKind.SINGLE_RELATION

    def test_list_relation(self, registry: EntityRegistry) -> None:
        field = registry.get("Book").get_field("tags")
        assert classify_field(field) is FieldKind.LIST_RELATION

    def test_unknown_field_is_scalar(self) -> None:
        assert classify_field(None) is FieldKind.SCALAR

    def test_value_with_id_is_link(self) -> None:
        assert classify_value({"id": "a1"}) is ValueKind.LINK_REFERENCE
        assert classify_value({"id": "a1", "name": "A"}) is ValueKind.LINK_REFERENCE

    def test_value_without_id_is_inline_create(self) -> None:
        assert classify_value({"name": "A"}) is ValueKind.INLINE_CREATE
        assert classify_value({"id": None, "name": "A"}) is ValueKind.INLINE_CREATE


class TestVisitNestedModels:
    @pytest.fixture
    def calls(self) -> list[tuple[str, dict[str, Any]]]:
        return []

    @pytest.fixture
    def echo(self, calls: list[tuple[str, dict[str, Any]]]) -> Any:
        async def model_function(related: str, value: dict[str, Any]) -> dict[str, Any]:
            calls.append((related, value))
            return {"resolved": related, **value}

        return model_function

    @pytest.mark.asyncio
    async def test_only_relation_keys_are_returned(
        self, registry: EntityRegistry, echo: Any, calls: list
    ) -> None:
        data = {"title": "T", "author": {"name": "A"}}

        result = await visit_nested_models(data, registry.get("Book"), echo)

        assert result == {"author": {"resolved": "Author", "name": "A"}}
        assert calls == [("Author", {"name": "A"})]

    @pytest.mark.asyncio
    async def test_list_relation_preserves_order(
        self, registry: EntityRegistry, echo: Any, calls: list
    ) -> None:
        data = {"tags": [{"id": "a"}, {"id": "b"}, {"id": "c"}]}

        result = await visit_nested_models(data, registry.get("Book"), echo)

        assert [t["id"] for t in result["tags"]] == ["a", "b", "c"]
        assert [c[1]["id"] for c in calls] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_empty_list_resolves_to_empty_list(
        self, registry: EntityRegistry, echo: Any
    ) -> None:
        result = await visit_nested_models({"tags": []}, registry.get("Book"), echo)
        assert result == {"tags": []}

    @pytest.mark.asyncio
    async def test_none_list_elements_keep_their_position(
        self, registry: EntityRegistry, echo: Any, calls: list
    ) -> None:
        result = await visit_nested_models(
            {"tags": [None, {"id": "b"}]}, registry.get("Book"), echo
        )

        assert result == {"tags": [None, {"resolved": "Tag", "id": "b"}]}
        assert calls == [("Tag", {"id": "b"})]

    @pytest.mark.asyncio
    async def test_none_and_raw_values_are_skipped(
        self, registry: EntityRegistry, echo: Any, calls: list
    ) -> None:
        data = {"author": None, "tags": ["t1", "t2"], "title": {"not": "a relation"}}

        result = await visit_nested_models(data, registry.get("Book"), echo)

        assert result == {}
        assert calls == []

    @pytest.mark.asyncio
    async def test_list_elements_resolve_sequentially(self, registry: EntityRegistry) -> None:
        active = 0
        peak = 0

        async def model_function(related: str, value: dict[str, Any]) -> dict[str, Any]:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)

            await asyncio.sleep(0)
            active -= 1
            return value

        await visit_nested_models(
            {"tags": [{"label": "x"}, {"label": "y"}]}, registry.get("Book"), model_function
        )
        assert peak == 1


class TestPluckModelObjectIds:
    def test_keeps_ids_at_every_relation_position(self) -> None:
        resolved = {
            "author": {"id": "a1", "name": "A"},
            "tags": [{"id": "t1", "label": "x"}, {"id": "t2", "label": "y"}],
        }

        assert pluck_model_object_ids(resolved) == {
            "author": {"id": "a1"},
            "tags": [{"id": "t1"}, {"id": "t2"}],
        }

    def test_nested_relations_are_kept(self) -> None:
        resolved = {"author": {"id": "a1", "agent": {"id": "g1", "name": "G"}}}

        assert pluck_model_object_ids(resolved) == {
            "author": {"id": "a1", "agent": {"id": "g1"}},
        }

    def test_records_without_ids_are_dropped(self) -> None:
        assert pluck_model_object_ids({"author": {"name": "A"}, "count": 3}) == {}

    def test_empty_and_missing_input(self) -> None:
        assert pluck_model_object_ids({}) == {}
        assert pluck_model_object_ids(None) == {}

    def test_list_keeps_length_and_positions(self) -> None:
        assert pluck_model_object_ids({"tags": [None, {"id": "t2", "label": "x"}]}) == {
            "tags": [{}, {"id": "t2"}],
        }
        assert pluck_model_object_ids({"tags": [{"name": "x"}, {"id": "a"}]}) == {
            "tags": [{}, {"id": "a"}],
        }

    def test_foreign_key_data_writes_unresolved_links_as_none(self) -> None:
        resolved = {"author": None, "tags": [{"id": "t1", "label": "x"}]}

        assert foreign_key_data(resolved) == {"author": None, "tags": [{"id": "t1"}]}

    def test_foreign_key_data_keeps_unresolved_list_positions(self) -> None:
        resolved = {"tags": [None, {"id": "t2", "label": "x"}, None]}

        assert foreign_key_data(resolved) == {"tags": [None, {"id": "t2"}, None]}

    def test_foreign_key_data_keeps_records_without_ids_in_place(self) -> None:
        resolved = {"tags": [{"name": "x"}, {"id": "a"}]}

        assert foreign_key_data(resolved) == {"tags": [{}, {"id": "a"}]}


class TestDeepMerge:
    def test_overlay_wins(self) -> None:
        assert deep_merge({"author": {"id": "a1"}}, {"author": None}) == {"author": None}

    def test_nested_mappings_merge(self) -> None:
        base = {"title": "T", "author": {"id": "a1", "stale": True}}
        overlay = {"author": {"id": "a1", "name": "A"}}

        assert deep_merge(base, overlay) == {
            "title": "T",
            "author": {"id": "a1", "stale": True, "name": "A"},
        }

    def test_lists_merge_element_wise_with_overlay_length(self) -> None:
        base = {"tags": [{"id": "t1"}, {"id": "t2"}, {"id": "t3"}]}
        overlay = {"tags": [{"id": "t1", "label": "x"}, {"id": "t2", "label": "y"}]}

        assert deep_merge(base, overlay) == {
            "tags": [{"id": "t1", "label": "x"}, {"id": "t2", "label": "y"}],
        }

    def test_inputs_are_not_mutated(self) -> None:
        base = {"author": {"id": "a1"}}
        overlay = {"author": {"name": "A"}}

        deep_merge(base, overlay)

        assert base == {"author": {"id": "a1"}}
        assert overlay == {"author": {"name": "A"}}

    def test_none_inputs(self) -> None:
        assert deep_merge(None, {"a": 1}) == {"a": 1}
        assert deep_merge({"a": 1}, None) == {"a": 1}
