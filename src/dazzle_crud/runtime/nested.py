"""
Nested model traversal.

Provides the building blocks the resolvers combine:

- classify_field / classify_value: pure classification of fields and values
- visit_nested_models: apply a per-entity function to every relation value
- pluck_model_object_ids: reduce a resolved structure to its ids
- deep_merge: the one merge used everywhere (overlay wins)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

from dazzle_crud.runtime.registry import IDENTIFIER_FIELD
from dazzle_crud.specs.entity import EntitySpec, FieldSpec

# (related entity name, nested value) -> resolved value
ModelFunction = Callable[[str, dict[str, Any]], Awaitable[Any]]


class FieldKind(StrEnum):
    """How a field participates in nested resolution."""

    SCALAR = "scalar"
    SINGLE_RELATION = "single_relation"
    LIST_RELATION = "list_relation"


class ValueKind(StrEnum):
    """What a nested relation value asks for."""

    LINK_REFERENCE = "link_reference"
    INLINE_CREATE = "inline_create"


def classify_field(field: FieldSpec | None) -> FieldKind:
    """Classify a field; unknown fields are scalars."""
    if field is None or not field.type.is_relation:
        return FieldKind.SCALAR
    return FieldKind.LIST_RELATION if field.type.many else FieldKind.SINGLE_RELATION


def classify_value(value: dict[str, Any]) -> ValueKind:
    """A value carrying an id links an existing entity; anything else is new."""
    if value.get(IDENTIFIER_FIELD) is not None:
        return ValueKind.LINK_REFERENCE
    return ValueKind.INLINE_CREATE


def _is_record_list(value: Any) -> bool:
    # None marks an unresolved link and keeps its position
    return isinstance(value, list) and all(v is None or isinstance(v, dict) for v in value)


async def visit_nested_models(
    data: dict[str, Any],
    entity: EntitySpec,
    model_function: ModelFunction,
) -> dict[str, Any]:
    """
    Resolve every relation value in ``data``.

    Only relation keys appear in the result; callers merge it onto the
    original record. List elements are resolved one at a time, in order;
    None elements stay None at their position.

    Args:
        data: Record to traverse
        entity: Entity the record belongs to
        model_function: Called as ``model_function(related_name, value)``

    Returns:
        Mapping of relation field name to resolved value (or list of values)
    """
    resolved: dict[str, Any] = {}

    for key, value in data.items():
        field = entity.get_field(key)
        kind = classify_field(field)
        if kind is FieldKind.SCALAR:
            continue
        related = field.type.ref_entity  # type: ignore[union-attr]

        if isinstance(value, dict):
            resolved[key] = await model_function(related, value)
        elif _is_record_list(value):
            items = []
            for item in value:
                items.append(None if item is None else await model_function(related, item))
            resolved[key] = items

    return resolved


def pluck_model_object_ids(data: Any) -> dict[str, Any]:
    """
    Reduce a nested structure to its identifiers.

    Lists keep their length: each element maps to its own plucked ids, and
    non-mapping elements map to ``{}``.

    Example:
        >>> pluck_model_object_ids({"author": {"id": "a1", "name": "A"}, "tags": [{"id": "t1"}]})
        {'author': {'id': 'a1'}, 'tags': [{'id': 't1'}]}
    """
    if not isinstance(data, dict):
        return {}

    result: dict[str, Any] = {}
    for key, value in data.items():
        if key == IDENTIFIER_FIELD:
            result[key] = value
        elif isinstance(value, dict):
            plucked = pluck_model_object_ids(value)
            if plucked:
                result[key] = plucked
        elif isinstance(value, list):
            result[key] = [pluck_model_object_ids(item) for item in value]
    return result


def foreign_key_data(resolved: dict[str, Any]) -> dict[str, Any]:
    """
    Foreign-key payload for a parent write.

    The plucked ids of ``resolved``, plus None for relations, or list
    positions, that resolved to nothing (a link to a missing entity is
    written as absent). List lengths and positions are kept.
    """
    keys = pluck_model_object_ids(resolved)
    for key, value in resolved.items():
        if value is None:
            keys[key] = None
        elif isinstance(value, list):
            keys[key] = [
                None if item is None else plucked for item, plucked in zip(value, keys[key])
            ]
    return keys


def deep_merge(base: dict[str, Any] | None, overlay: dict[str, Any] | None) -> dict[str, Any]:
    """
    Merge ``overlay`` onto ``base`` without mutating either.

    Precedence: the overlay wins for every key it holds. Two mappings are
    merged recursively; two lists are merged element-wise and take the
    overlay's length; any other overlay value replaces the base value.
    """
    result = dict(base or {})
    for key, value in (overlay or {}).items():
        result[key] = _merge_value(result.get(key), value) if key in result else value
    return result


def _merge_value(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        return deep_merge(base, overlay)
    if isinstance(base, list) and isinstance(overlay, list):
        return [
            _merge_value(base[i], item) if i < len(base) else item
            for i, item in enumerate(overlay)
        ]
    return overlay
