"""
Specification type definitions.

This module exports all entity and schema specification types.
"""

from dazzle_crud.specs.entity import (
    EntitySpec,
    FieldSpec,
    FieldType,
    ScalarType,
)
from dazzle_crud.specs.schema_spec import SchemaSpec, load_schema

__all__ = [
    "EntitySpec",
    "FieldSpec",
    "FieldType",
    "ScalarType",
    "SchemaSpec",
    "load_schema",
]
