# ============================================================================
# POSTGRESQL DATABASE COLLABORATOR
# ============================================================================
# STATUS: Infrastructure - PostgreSQL statement execution
# PURPOSE: psycopg 3 implementation of the Database contract
# ============================================================================
"""
PostgreSQL Database Collaborator

Executes statements rendered by the QueryBuilder:
- Connection per call (commit on success, rollback on error) by default
- Caller-owned connection for transactions (no commit, no close)
- DB_NULL parameters bound as SQL NULL
- Server-side statement timeout from DatabaseDefaults

Read-after-write holds in both modes: owned connections commit before the
call returns, and a caller-owned connection sees its own uncommitted writes.

Usage:
    db = PostgreSQLDatabase()
    rows = db.execute(stmt, mapper, {"p_id": 1})

    with psycopg.connect(dsn) as conn:
        db = PostgreSQLDatabase(connection=conn)
        ...  # caller commits
"""

from contextlib import contextmanager
from typing import Any, Dict, List, Mapping, Optional

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from core.config import DatabaseDefaults, get_defaults
from core.contracts import Record, is_db_null
from core.logging import ComponentType, get_logger
from repositories.database import Database, RowMapper

logger = get_logger(__name__, ComponentType.DATABASE)


def _mask(conninfo: str) -> str:
    """Strip credentials from a connection string for logging."""
    if "@" in conninfo:
        return conninfo.split("@")[-1]
    if "password=" in conninfo:
        return conninfo.split("password=")[0] + "password=***"
    return conninfo


class PostgreSQLDatabase(Database):
    """
    Database collaborator backed by psycopg 3.

    Rows reach the row mapper as dicts (dict_row).
    """

    def __init__(
        self,
        connection_string: Optional[str] = None,
        connection: Optional[psycopg.Connection] = None,
        defaults: Optional[DatabaseDefaults] = None,
    ):
        """
        Initialize the collaborator.

        Args:
            connection_string: Explicit DSN (defaults to environment)
            connection: Existing connection; the caller owns its transaction
            defaults: Database defaults (timeouts, DSN)
        """
        self.defaults = defaults or get_defaults().database
        self._conn_string = connection_string or self.defaults.connection_string
        self._connection = connection

    @property
    def conn_string(self) -> str:
        return self._conn_string

    def _connect_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "row_factory": dict_row,
            "connect_timeout": self.defaults.connect_timeout_seconds,
        }
        if self.defaults.statement_timeout_ms:
            kwargs["options"] = f"-c statement_timeout={self.defaults.statement_timeout_ms}"
        return kwargs

    @contextmanager
    def get_connection(self):
        """
        Context manager for PostgreSQL connections.

        Yields the caller-owned connection untouched, or opens a new one that
        is committed on success, rolled back on error and always closed.
        """
        if self._connection is not None:
            yield self._connection
            return

        logger.debug(f"Connecting to PostgreSQL: {_mask(self.conn_string)}")
        conn = psycopg.connect(self.conn_string, **self._connect_kwargs())
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def get_cursor(self):
        """Context manager for a dict_row cursor."""
        with self.get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                yield cur

    @staticmethod
    def _adapt_parameters(parameters: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
        if not parameters:
            return None
        return {
            name: None if is_db_null(value) else value
            for name, value in parameters.items()
        }

    # =========================================================================
    # DATABASE CONTRACT
    # =========================================================================

    def execute(
        self,
        query: sql.Composable,
        row_mapper: RowMapper,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> List[Record]:
        """Execute a statement and map every returned row."""
        with self.get_cursor() as cur:
            cur.execute(query, self._adapt_parameters(parameters))
            if cur.description is None:
                return []
            return [row_mapper(row) for row in cur.fetchall()]

    def execute_scalar(
        self,
        query: sql.Composable,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Execute a statement and return the first column of the first row."""
        with self.get_cursor() as cur:
            cur.execute(query, self._adapt_parameters(parameters))
            if cur.description is None:
                return None
            row = cur.fetchone()
            if row is None:
                return None
            return next(iter(row.values()))

    # =========================================================================
    # RAW ACCESS
    # =========================================================================

    def fetch_all(self, query: sql.Composable, params: Optional[Mapping[str, Any]] = None) -> list:
        """Execute query and fetch all results as dicts."""
        with self.get_cursor() as cur:
            cur.execute(query, self._adapt_parameters(params))
            return cur.fetchall()


__all__ = ["PostgreSQLDatabase"]
