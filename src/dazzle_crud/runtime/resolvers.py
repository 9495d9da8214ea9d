"""
Resolvers - read and write coordination over nested entity graphs.

Each operation is a plain async function taking the entity name, its
arguments and a ResolverContext carrying the store, the registry and the
validator. Nested values are handled by calling the same functions again
with ``ctx.nested()``, so recursion depth is explicit.

Read path:
    find_one / find look the root up in the store, then resolve every
    stored relation value with find_one on the related entity. A record
    already expanded on the same path (a cycle) is returned as stored.

Write path:
    create links values that carry an id and creates the rest; update
    updates values that carry an id and passes the rest through. The ids of
    the resolved values become the parent's foreign keys.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any

from dazzle_crud.runtime.exceptions import InvalidInputError, UpdateFailedError
from dazzle_crud.runtime.logging import get_crud_logger, log_with_context
from dazzle_crud.runtime.nested import (
    ValueKind,
    classify_value,
    deep_merge,
    foreign_key_data,
    visit_nested_models,
)
from dazzle_crud.runtime.registry import IDENTIFIER_FIELD, EntityRegistry
from dazzle_crud.runtime.store import Record, Store
from dazzle_crud.runtime.validation import InputValidator

logger = get_crud_logger()

DEFAULT_MAX_DEPTH = 32


@dataclass(frozen=True)
class ResolverContext:
    """
    Everything a resolver needs, passed explicitly down the recursion.

    Attributes:
        store: Storage backend
        registry: Entity registry
        validator: Input validator (None disables validation)
        max_depth: Deepest nesting level that is resolved
        depth: Current nesting level (0 for the root operation)
        visited: (entity name, id) pairs already expanded on the current
            read path; a record met again is returned as stored
    """

    store: Store
    registry: EntityRegistry
    validator: InputValidator | None = None
    max_depth: int = DEFAULT_MAX_DEPTH
    depth: int = 0
    visited: frozenset[tuple[str, Any]] = frozenset()

    @classmethod
    def create(
        cls,
        store: Store,
        registry: EntityRegistry,
        *,
        validate: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> ResolverContext:
        return cls(
            store=store,
            registry=registry,
            validator=InputValidator(registry) if validate else None,
            max_depth=max_depth,
        )

    def nested(self) -> ResolverContext:
        """Context for one level further down."""
        return replace(self, depth=self.depth + 1)

    def expanding(self, entity_name: str, record: Record) -> ResolverContext:
        """Context for the relations of ``record``, marking it as visited."""
        key = (entity_name, record.get(IDENTIFIER_FIELD))
        return replace(self, depth=self.depth + 1, visited=self.visited | {key})

    def has_visited(self, entity_name: str, record: Record) -> bool:
        return (entity_name, record.get(IDENTIFIER_FIELD)) in self.visited

    @property
    def at_limit(self) -> bool:
        return self.depth >= self.max_depth


def _validate(ctx: ResolverContext, entity_name: str, data: Any, *, for_create: bool) -> None:
    if ctx.depth > ctx.max_depth:
        raise InvalidInputError(
            f"Nesting under {entity_name} exceeds the maximum depth of {ctx.max_depth}"
        )
    if ctx.validator is not None:
        ctx.validator.validate(data, entity_name, for_create=for_create)


# =============================================================================
# Read Coordinator
# =============================================================================


async def _resolve_stored(entity_name: str, record: Record, ctx: ResolverContext) -> Record:
    """Expand the stored relation values of ``record``."""
    if ctx.at_limit or ctx.has_visited(entity_name, record):
        return record

    child = ctx.expanding(entity_name, record)

    async def load_related(related: str, value: dict[str, Any]) -> Record | None:
        return await find_one(related, value, child)

    nested = await visit_nested_models(record, ctx.registry.get(entity_name), load_related)
    return deep_merge(record, nested)


async def find_one(
    entity_name: str,
    where: Record | None,
    ctx: ResolverContext,
) -> Record | None:
    """
    Find a single entity and expand its relations.

    Returns:
        The merged record, or None if nothing matches
    """
    root = await ctx.store.find_one(entity_name, where)
    log_with_context(
        logger, logging.DEBUG, f"find_one {entity_name}", where=where, found=root is not None
    )
    if not root:
        return None

    return await _resolve_stored(entity_name, root, ctx)


async def find(
    entity_name: str,
    where: Record | None,
    ctx: ResolverContext,
) -> list[Record] | None:
    """
    Find all matching entities and expand their relations.

    Records are expanded concurrently; the result keeps the store's order.
    """
    records = await ctx.store.find(entity_name, where)
    if records is None:
        log_with_context(logger, logging.DEBUG, f"find {entity_name}", where=where, found=None)
        return None
    log_with_context(logger, logging.DEBUG, f"find {entity_name}", where=where, found=len(records))

    return list(
        await asyncio.gather(*(_resolve_stored(entity_name, record, ctx) for record in records))
    )


# =============================================================================
# Write Coordinator
# =============================================================================


async def create(entity_name: str, data: Record, ctx: ResolverContext) -> Record:
    """
    Create an entity together with any inline related entities.

    Nested values carrying an id are linked (looked up, never created; a
    missing entity resolves to None). Nested values without an id are
    created first with this same function.

    Returns:
        The stored root merged with the fully resolved related entities

    Raises:
        InvalidInputError: If ``data`` does not match the entity's input shape
    """
    _validate(ctx, entity_name, data, for_create=True)
    child = ctx.nested()

    async def link_or_create(related: str, value: dict[str, Any]) -> Record | None:
        if classify_value(value) is ValueKind.LINK_REFERENCE:
            log_with_context(
                logger, logging.DEBUG, f"link {related}", parent=entity_name, id=value["id"]
            )
            return await find_one(related, {IDENTIFIER_FIELD: value[IDENTIFIER_FIELD]}, child)
        log_with_context(logger, logging.DEBUG, f"create nested {related}", parent=entity_name)
        return await create(related, value, child)

    related_objects = await visit_nested_models(
        data, ctx.registry.get(entity_name), link_or_create
    )

    root = await ctx.store.create(entity_name, {**data, **foreign_key_data(related_objects)})
    log_with_context(logger, logging.DEBUG, f"created {entity_name}", id=root.get("id"))

    return deep_merge(root, related_objects)


async def update(
    entity_name: str,
    data: Record,
    where: Record | None,
    ctx: ResolverContext,
    upsert: bool = False,
) -> Record | None:
    """
    Update matching entities, updating linked related entities first.

    Nested values carrying an id are updated in place (never upserted) and
    re-read. Nested values without an id are passed through unchanged:
    update never creates related entities.

    Returns:
        The re-read root merged with the resolved related entities

    Raises:
        InvalidInputError: If ``data`` does not match the entity's input shape
        UpdateFailedError: If the store reports that the update did not apply
    """
    _validate(ctx, entity_name, data, for_create=False)
    child = ctx.nested()

    async def update_linked(related: str, value: dict[str, Any]) -> Any:
        if classify_value(value) is ValueKind.LINK_REFERENCE:
            criteria = {IDENTIFIER_FIELD: value[IDENTIFIER_FIELD]}
            updated = await update(related, value, criteria, child, upsert=False)
            if updated:
                return await find_one(related, criteria, child)
        return value

    related_objects = await visit_nested_models(
        data, ctx.registry.get(entity_name), update_linked
    )

    ok = await ctx.store.update(
        entity_name,
        where,
        {**data, **foreign_key_data(related_objects)},
        upsert,
    )
    if not ok:
        log_with_context(
            logger, logging.WARNING, f"update {entity_name} failed", where=where, upsert=upsert
        )
        raise UpdateFailedError(entity_name)

    root = await ctx.store.find_one(entity_name, where)
    log_with_context(logger, logging.DEBUG, f"updated {entity_name}", where=where)

    return deep_merge(root, related_objects)


async def remove(entity_name: str, where: Record | None, ctx: ResolverContext) -> bool:
    """Remove matching entities. Returns the store's result unchanged."""
    removed = await ctx.store.remove(entity_name, where)
    log_with_context(logger, logging.DEBUG, f"remove {entity_name}", where=where, removed=removed)
    return removed
