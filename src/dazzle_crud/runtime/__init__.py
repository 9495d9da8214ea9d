"""
CRUD Runtime

Generated CRUD operations with nested entity resolution.

This module provides:
- Entity registry and input validation
- Nested resolution (link existing entities, create inline ones)
- Read and write resolvers over a pluggable Store
- FastAPI routes for every entity

Example usage:
    >>> from dazzle_crud.runtime import EntityRegistry, InMemoryStore, ModelService, ResolverContext
    >>>
    >>> registry = EntityRegistry.from_entities([author, book])
    >>> ctx = ResolverContext.create(InMemoryStore(), registry)
    >>> books = ModelService("Book", ctx)
    >>> await books.create({"title": "T", "author": {"name": "A"}})
"""

from dazzle_crud.runtime.exceptions import (
    ConstraintViolationError,
    CrudError,
    InvalidInputError,
    UnknownEntityError,
    UpdateFailedError,
)
from dazzle_crud.runtime.nested import (
    FieldKind,
    ValueKind,
    classify_field,
    classify_value,
    deep_merge,
    pluck_model_object_ids,
    visit_nested_models,
)
from dazzle_crud.runtime.operations import ModelService, OperationGenerator, generate_operations
from dazzle_crud.runtime.registry import EntityRegistry, FieldDescriptor, with_identifier
from dazzle_crud.runtime.resolvers import (
    ResolverContext,
    create,
    find,
    find_one,
    remove,
    update,
)
from dazzle_crud.runtime.store import InMemoryStore, Store
from dazzle_crud.runtime.validation import InputValidator, validate_input_data

__all__ = [
    # Errors
    "CrudError",
    "InvalidInputError",
    "UpdateFailedError",
    "UnknownEntityError",
    "ConstraintViolationError",
    # Registry and validation
    "EntityRegistry",
    "FieldDescriptor",
    "with_identifier",
    "InputValidator",
    "validate_input_data",
    # Nested resolution
    "FieldKind",
    "ValueKind",
    "classify_field",
    "classify_value",
    "visit_nested_models",
    "pluck_model_object_ids",
    "deep_merge",
    # Resolvers
    "ResolverContext",
    "find",
    "find_one",
    "create",
    "update",
    "remove",
    # Operations
    "ModelService",
    "OperationGenerator",
    "generate_operations",
    # Storage
    "Store",
    "InMemoryStore",
]
