"""
Operation generation - the CRUD surface derived for each entity.

ModelService binds the resolvers to one entity. OperationGenerator builds
the query and mutation tables for every registered entity, keyed by the
generated operation names (book, books, createBook, updateBook, removeBook).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from dazzle_crud.runtime import resolvers
from dazzle_crud.runtime.naming import FieldNames, generate_field_names
from dazzle_crud.runtime.resolvers import ResolverContext
from dazzle_crud.runtime.store import Record

Operation = Callable[..., Awaitable[Any]]


class ModelService:
    """
    CRUD operations for a single entity.

    Example:
        >>> books = ModelService("Book", ctx)
        >>> await books.create({"title": "T", "author": {"name": "A"}})
    """

    def __init__(self, entity_name: str, ctx: ResolverContext):
        ctx.registry.get(entity_name)
        self.entity_name = entity_name
        self.ctx = ctx
        self.names: FieldNames = generate_field_names(entity_name)

    async def execute(self, operation: str, **kwargs: Any) -> Any:
        """Route to the appropriate operation."""
        operations: dict[str, Operation] = {
            "find_one": self.find_one,
            "find": self.find,
            "create": self.create,
            "update": self.update,
            "remove": self.remove,
        }
        if operation not in operations:
            raise ValueError(f"Unknown operation: {operation}")
        return await operations[operation](**kwargs)

    async def find_one(self, where: Record | None = None) -> Record | None:
        return await resolvers.find_one(self.entity_name, where, self.ctx)

    async def find(self, where: Record | None = None) -> list[Record] | None:
        return await resolvers.find(self.entity_name, where, self.ctx)

    async def create(self, data: Record) -> Record:
        return await resolvers.create(self.entity_name, data, self.ctx)

    async def update(
        self,
        data: Record,
        where: Record | None = None,
        upsert: bool = False,
    ) -> Record | None:
        return await resolvers.update(self.entity_name, data, where, self.ctx, upsert=upsert)

    async def remove(self, where: Record | None = None) -> bool:
        return await resolvers.remove(self.entity_name, where, self.ctx)


class OperationGenerator:
    """
    Generate the query and mutation tables for every registered entity.
    """

    def __init__(self, ctx: ResolverContext):
        self.ctx = ctx
        self.services: dict[str, ModelService] = {}
        self._queries: dict[str, Operation] = {}
        self._mutations: dict[str, Operation] = {}

    def generate(self) -> tuple[dict[str, Operation], dict[str, Operation]]:
        """
        Generate all operations.

        Returns:
            Tuple of (queries, mutations)

        Raises:
            ValueError: If two entities derive the same operation name
        """
        for entity in self.ctx.registry:
            self._generate_entity_operations(ModelService(entity.name, self.ctx))
        return self._queries, self._mutations

    def _generate_entity_operations(self, service: ModelService) -> None:
        names = service.names
        self.services[service.entity_name] = service

        self._register(self._queries, names.query_one, service.find_one)
        self._register(self._queries, names.query_many, service.find)
        self._register(self._mutations, names.create, service.create)
        self._register(self._mutations, names.update, service.update)
        self._register(self._mutations, names.remove, service.remove)

    @staticmethod
    def _register(table: dict[str, Operation], name: str, operation: Operation) -> None:
        if name in table:
            raise ValueError(f"Operation name '{name}' is generated twice")
        table[name] = operation


def generate_operations(
    ctx: ResolverContext,
) -> tuple[dict[str, Operation], dict[str, Operation]]:
    """Convenience wrapper around OperationGenerator.generate()."""
    return OperationGenerator(ctx).generate()
