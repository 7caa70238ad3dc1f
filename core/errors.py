# ============================================================================
# REPOSITORY ERRORS
# ============================================================================
# STATUS: Foundation - Error taxonomy for query building and execution
# PURPOSE: Typed failures that abort an operation and reach the caller
# EXPORTS: RepositoryError, InvalidMetadataError, UnknownParameterError,
#          TypeConversionError, ExecutionError
# ============================================================================
"""
Error taxonomy.

All errors derive from RepositoryError so callers can catch the whole family.
Database collaborator failures are wrapped into ExecutionError with the
original exception kept as __cause__.
"""

from typing import Any, Optional


class RepositoryError(Exception):
    """Base exception for repository operations."""

    def __init__(self, message: str, operation: str = None, entity_id: str = None):
        self.operation = operation
        self.entity_id = entity_id
        super().__init__(message)


class InvalidMetadataError(RepositoryError):
    """Raised when table metadata cannot support the requested operation."""

    def __init__(self, message: str, table: str = None, operation: str = None):
        self.table = table
        super().__init__(message, operation=operation, entity_id=table)


class UnknownParameterError(RepositoryError):
    """Raised when a filter or write parameter matches no column or predicate."""

    def __init__(self, parameter: str, table: str = None, operation: str = None):
        self.parameter = parameter
        self.table = table
        super().__init__(
            f"Unknown parameter '{parameter}' for table '{table}'",
            operation=operation,
            entity_id=table,
        )


class TypeConversionError(RepositoryError):
    """Raised when a scalar result cannot be coerced to the expected type."""

    def __init__(self, value: Any, target_type: type, operation: str = None):
        self.value = value
        self.target_type = target_type
        super().__init__(
            f"Cannot convert {value!r} ({type(value).__name__}) to {target_type.__name__}",
            operation=operation,
        )


class ExecutionError(RepositoryError):
    """Raised when the database collaborator fails to execute a statement."""

    def __init__(self, message: str, operation: str = None, entity_id: Optional[str] = None):
        super().__init__(message, operation=operation, entity_id=entity_id)


__all__ = [
    "RepositoryError",
    "InvalidMetadataError",
    "UnknownParameterError",
    "TypeConversionError",
    "ExecutionError",
]
