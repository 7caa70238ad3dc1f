# ============================================================================
# CORE MODULE
# ============================================================================
# STATUS: Core module initialization
# PURPOSE: Export contracts, metadata models and the query builder
# ============================================================================

from core.contracts import QueryType, DB_NULL, Record
from core.errors import (
    RepositoryError,
    InvalidMetadataError,
    UnknownParameterError,
    TypeConversionError,
    ExecutionError,
)
from core.models import Column, Filter, Reference, Table
from core.schema import QueryBuilder

__all__ = [
    # Contracts
    "QueryType",
    "DB_NULL",
    "Record",
    # Errors
    "RepositoryError",
    "InvalidMetadataError",
    "UnknownParameterError",
    "TypeConversionError",
    "ExecutionError",
    # Models
    "Column",
    "Filter",
    "Reference",
    "Table",
    # Schema
    "QueryBuilder",
]
