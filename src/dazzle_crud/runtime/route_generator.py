"""
Route generator - exposes each entity's operations over HTTP.

Every entity gets a router under ``/<plural>``:

    POST /books            {"data": {...}}                       create
    POST /books/find       {"where": {...}}                      find
    POST /books/find-one   {"where": {...}}                      find_one
    POST /books/update     {"data": {...}, "where": {...}, "upsert": false}
    POST /books/remove     {"where": {...}}                      remove

Lookups that match nothing answer ``null`` with status 200.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from dazzle_crud.runtime.logging import get_api_logger, log_with_context
from dazzle_crud.runtime.naming import to_api_plural
from dazzle_crud.runtime.operations import ModelService

logger = get_api_logger()


# =============================================================================
# Request Bodies
# =============================================================================


class WhereBody(BaseModel):
    where: dict[str, Any] | None = Field(default=None, description="Equality criterion")


class CreateBody(BaseModel):
    data: dict[str, Any] = Field(description="Entity data, may nest related entities")


class UpdateBody(BaseModel):
    data: dict[str, Any] = Field(description="Fields to change, may nest related entities")
    where: dict[str, Any] | None = Field(default=None, description="Equality criterion")
    upsert: bool = Field(default=False, description="Create the entity if nothing matches")


class RemoveResult(BaseModel):
    removed: bool


# =============================================================================
# Routes
# =============================================================================


def generate_model_routes(
    service: ModelService,
    prefix: str | None = None,
    tags: list[str | Enum] | None = None,
) -> APIRouter:
    """
    Generate the CRUD routes for one entity.

    Args:
        service: The entity's ModelService
        prefix: Optional URL prefix (defaults to /<plural entity name>)
        tags: Optional tags for grouping in OpenAPI docs

    Returns:
        FastAPI router with the entity's routes
    """
    entity_name = service.entity_name
    names = service.names
    router = APIRouter()
    prefix = prefix or f"/{to_api_plural(entity_name)}"
    tags = tags or [entity_name]

    def _log(operation: str, **context: Any) -> None:
        log_with_context(logger, logging.INFO, f"{operation} {entity_name}", context)

    @router.post(prefix, tags=tags, summary=f"Create a {entity_name}", name=names.create)
    async def create_item(body: CreateBody) -> Any:
        _log(names.create)
        return await service.create(body.data)

    @router.post(
        f"{prefix}/find", tags=tags, summary=f"Find multiple {entity_name}", name=names.query_many
    )
    async def find_items(body: WhereBody) -> Any:
        _log(names.query_many, where=body.where)
        return await service.find(body.where)

    @router.post(
        f"{prefix}/find-one", tags=tags, summary=f"Find one {entity_name}", name=names.query_one
    )
    async def find_item(body: WhereBody) -> Any:
        _log(names.query_one, where=body.where)
        return await service.find_one(body.where)

    @router.post(f"{prefix}/update", tags=tags, summary=f"Update a {entity_name}", name=names.update)
    async def update_item(body: UpdateBody) -> Any:
        _log(names.update, where=body.where, upsert=body.upsert)
        return await service.update(body.data, where=body.where, upsert=body.upsert)

    @router.post(
        f"{prefix}/remove",
        tags=tags,
        summary=f"Remove a {entity_name}",
        name=names.remove,
        response_model=RemoveResult,
    )
    async def remove_item(body: WhereBody) -> RemoveResult:
        _log(names.remove, where=body.where)
        return RemoveResult(removed=await service.remove(body.where))

    return router
