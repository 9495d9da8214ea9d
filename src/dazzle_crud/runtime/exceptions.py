"""
Error types raised by the CRUD runtime.

Not-found results are never errors: lookups that match nothing return None.
"""

from __future__ import annotations

from typing import Any


class CrudError(Exception):
    """Base class for all runtime errors."""


class InvalidInputError(CrudError):
    """Raised when request data does not match the entity's input shape."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        self.errors = errors or []
        super().__init__(message)


class UpdateFailedError(CrudError):
    """Raised when the store reports that an update did not apply."""

    def __init__(self, entity_name: str):
        self.entity_name = entity_name
        super().__init__(f"Failed to update {entity_name}")


class UnknownEntityError(CrudError):
    """Raised when an entity name is not registered."""

    def __init__(self, entity_name: str):
        self.entity_name = entity_name
        super().__init__(f"Unknown entity: {entity_name}")


class ConstraintViolationError(CrudError):
    """Raised when a database constraint (unique, FK) is violated."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        constraint_type: str = "integrity",
    ):
        self.field = field
        self.constraint_type = constraint_type  # "unique" | "foreign_key" | "integrity"
        super().__init__(message)
