# ============================================================================
# DATABASE COLLABORATOR CONTRACT
# ============================================================================
# STATUS: Core - Execution boundary consumed by the Repository
# PURPOSE: Abstract statement execution with per-row mapping
# ============================================================================
"""
Database Collaborator Contract

The Repository never talks to a driver directly. It hands a rendered
statement, a row mapper and a bind-parameter mapping to a Database and
receives materialized records back.

Parameter values may be the DB_NULL marker; implementations bind it as SQL
NULL. Connection lifecycle, transactions, pooling and timeouts all belong to
the implementation.

Usage:
    from infrastructure.postgresql import PostgreSQLDatabase

    db = PostgreSQLDatabase()
    rows = db.execute(stmt, lambda row: dict(row), {"p_id": 1})
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Mapping, Optional

from psycopg import sql

from core.contracts import Record

# One result row (column/alias name -> value) in, one Record out
RowMapper = Callable[[Mapping[str, Any]], Record]


class Database(ABC):
    """Executes parameterized statements on behalf of a Repository."""

    @abstractmethod
    def execute(
        self,
        query: sql.Composable,
        row_mapper: RowMapper,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> List[Record]:
        """
        Execute a statement and map every returned row.

        Returns:
            Materialized list of mapped rows; empty when the statement
            returns no rows or no result set.
        """

    @abstractmethod
    def execute_scalar(
        self,
        query: sql.Composable,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Execute a statement returning one value; None when no row."""


__all__ = ["Database", "RowMapper"]
