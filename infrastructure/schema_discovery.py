# ============================================================================
# SCHEMA DISCOVERY
# ============================================================================
# STATUS: Infrastructure - Table metadata from information_schema
# PURPOSE: Build Table models for an existing PostgreSQL schema
# ============================================================================
"""
Schema Discovery

Reads information_schema and returns one Table per base table:

- identity / serial columns   -> auto_increment
- generated columns           -> readonly
- primary key constraint      -> is_key
- foreign key constraint      -> Reference (display column = first non-key
                                 character column of the target, if any)

Keys, character columns and references are shown in the grid by default;
everything else is detail-only. References are resolved one level deep, so
self references and cycles need no special handling.

Usage:
    discovery = SchemaDiscovery(PostgreSQLDatabase())
    tables = discovery.discover("public")
    repo = Repository(db, QueryBuilder(), tables["users"])
"""

from collections import defaultdict
from typing import Any, Dict, List, Optional, Set, Tuple

from psycopg import sql

from core.config import get_defaults
from core.logging import ComponentType, get_logger
from core.models.table import Column, Reference, Table

logger = get_logger(__name__, ComponentType.SCHEMA)


CHARACTER_TYPES = frozenset({"text", "character varying", "character", "citext"})


COLUMNS_QUERY = sql.SQL("""
    SELECT c.table_name, c.column_name, c.data_type,
           c.is_identity, c.is_generated, c.column_default
    FROM information_schema.columns c
    JOIN information_schema.tables t
      ON t.table_schema = c.table_schema AND t.table_name = c.table_name
    WHERE c.table_schema = %(schema)s AND t.table_type = 'BASE TABLE'
    ORDER BY c.table_name, c.ordinal_position
""")

PRIMARY_KEYS_QUERY = sql.SQL("""
    SELECT kcu.table_name, kcu.column_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
      ON kcu.constraint_name = tc.constraint_name
     AND kcu.table_schema = tc.table_schema
    WHERE tc.constraint_type = 'PRIMARY KEY' AND tc.table_schema = %(schema)s
    ORDER BY kcu.table_name, kcu.ordinal_position
""")

FOREIGN_KEYS_QUERY = sql.SQL("""
    SELECT kcu.table_name, kcu.column_name,
           ccu.table_schema AS foreign_schema,
           ccu.table_name AS foreign_table,
           ccu.column_name AS foreign_column
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
      ON kcu.constraint_name = tc.constraint_name
     AND kcu.table_schema = tc.table_schema
    JOIN information_schema.constraint_column_usage ccu
      ON ccu.constraint_name = tc.constraint_name
     AND ccu.constraint_schema = tc.constraint_schema
    WHERE tc.constraint_type = 'FOREIGN KEY' AND tc.table_schema = %(schema)s
    ORDER BY kcu.table_name, kcu.ordinal_position
""")


def _is_auto_increment(row: Dict[str, Any]) -> bool:
    if row.get("is_identity") == "YES":
        return True
    default = row.get("column_default") or ""
    return default.startswith("nextval(")


def _is_generated(row: Dict[str, Any]) -> bool:
    return row.get("is_generated") == "ALWAYS"


class SchemaDiscovery:
    """Build Table metadata from a live PostgreSQL schema."""

    def __init__(self, database):
        """
        Args:
            database: Object with fetch_all(query, params) -> list of dicts
                (PostgreSQLDatabase)
        """
        self.database = database

    def discover(self, schema_name: Optional[str] = None) -> Dict[str, Table]:
        """
        Return tables of the schema keyed by table name.

        schema_name defaults to DatabaseDefaults.schema_name (POSTGRES_SCHEMA).
        """
        if schema_name is None:
            schema_name = get_defaults().database.schema_name
        params = {"schema": schema_name}
        column_rows = self.database.fetch_all(COLUMNS_QUERY, params)
        key_rows = self.database.fetch_all(PRIMARY_KEYS_QUERY, params)
        fk_rows = self.database.fetch_all(FOREIGN_KEYS_QUERY, params)

        columns_by_table: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        for row in column_rows:
            columns_by_table[row["table_name"]].append(row)

        keys: Set[Tuple[str, str]] = {(r["table_name"], r["column_name"]) for r in key_rows}
        foreign_keys = {(r["table_name"], r["column_name"]): r for r in fk_rows}

        tables: Dict[str, Table] = {}
        for table_name, rows in columns_by_table.items():
            columns = []
            for row in rows:
                column_name = row["column_name"]
                is_key = (table_name, column_name) in keys
                reference = self._build_reference(
                    foreign_keys.get((table_name, column_name)),
                    schema_name,
                    columns_by_table,
                    keys,
                )
                columns.append(
                    Column(
                        name=column_name,
                        is_key=is_key,
                        auto_increment=_is_auto_increment(row),
                        readonly=_is_generated(row),
                        show_in_grid=(
                            is_key
                            or reference is not None
                            or row.get("data_type") in CHARACTER_TYPES
                        ),
                        reference=reference,
                        data_type=row.get("data_type"),
                    )
                )

            tables[table_name] = Table(name=table_name, schema_name=schema_name, columns=columns)

        logger.info(f"Discovered {len(tables)} tables in schema {schema_name}")
        return tables

    @staticmethod
    def _build_reference(
        fk_row: Optional[Dict[str, Any]],
        schema_name: str,
        columns_by_table: Dict[str, List[Dict[str, Any]]],
        keys: Set[Tuple[str, str]],
    ) -> Optional[Reference]:
        if fk_row is None:
            return None

        target = fk_row["foreign_table"]
        target_schema = fk_row.get("foreign_schema") or schema_name

        text_column = None
        if target_schema == schema_name:
            for row in columns_by_table.get(target, []):
                if (target, row["column_name"]) in keys:
                    continue
                if row.get("data_type") in CHARACTER_TYPES:
                    text_column = row["column_name"]
                    break

        if text_column is None:
            logger.debug(f"No display column found on {target} for {fk_row['column_name']}")

        return Reference(
            table=target,
            schema_name=target_schema,
            key_column=fk_row["foreign_column"],
            text_column=text_column,
        )


__all__ = ["SchemaDiscovery"]
