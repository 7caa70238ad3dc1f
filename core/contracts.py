# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# STATUS: Foundation - Core enums and shared value contracts
# PURPOSE: Query kinds, SQL NULL marker and the open Record shape
# EXPORTS: QueryType, DBNull, DB_NULL, Record, is_db_null
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the scaffolding data layer.

These values cross every boundary of the data core:
- Query Builder (which statement to render)
- Repository (parameter derivation and row mapping)
- Database collaborator (SQL NULL binding)
"""

from enum import Enum
from typing import Any, Dict


# ============================================================================
# QUERY KINDS
# ============================================================================

class QueryType(str, Enum):
    """Statement kinds the Query Builder can render."""
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

    def is_write(self) -> bool:
        """Check if the statement modifies rows."""
        return self in (QueryType.INSERT, QueryType.UPDATE, QueryType.DELETE)


# ============================================================================
# SQL NULL MARKER
# ============================================================================

class DBNull:
    """
    Explicit SQL NULL parameter value.

    Distinct from None so that "bind NULL" and "parameter absent" can be
    told apart by the execution layer. There is exactly one instance.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "DB_NULL"

    def __reduce__(self):
        return (DBNull, ())


DB_NULL = DBNull()


def is_db_null(value: Any) -> bool:
    """True for the SQL NULL marker."""
    return value is DB_NULL


# Open, ordered mapping of column/alias name -> scalar value.
Record = Dict[str, Any]


__all__ = [
    "QueryType",
    "DBNull",
    "DB_NULL",
    "is_db_null",
    "Record",
]
