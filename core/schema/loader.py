# ============================================================================
# TABLE METADATA LOADER
# ============================================================================
# STATUS: Core - Load, validate and save table metadata files
# PURPOSE: Catch malformed metadata at configuration time
# ============================================================================
"""
Table Metadata Loader.

Metadata files are JSON, either a list of tables or {"tables": [...]}:

    {"tables": [
        {"name": "users", "columns": [
            {"name": "id", "isKey": true, "autoIncrement": true},
            {"name": "login", "showInGrid": true},
            {"name": "manager_id",
             "reference": {"table": "users", "textColumn": "login"}}
        ]}
    ]}

Query building and repositories assume validated metadata; validation
happens here, once, when metadata is loaded.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Union

from pydantic import TypeAdapter

from core.errors import InvalidMetadataError
from core.logging import ComponentType, get_logger
from core.models.table import Table

logger = get_logger(__name__, ComponentType.SCHEMA)

_TABLES_ADAPTER = TypeAdapter(List[Table])


def validate_table(table: Table) -> Table:
    """
    Check a table for configuration faults.

    Raises:
        InvalidMetadataError: no primary key, duplicate column names, or a
            reference alias shadowing a column
    """
    if not table.primary_keys():
        raise InvalidMetadataError(
            f"Table '{table.name}' has no primary key column", table=table.name
        )

    seen = set()
    for column in table.columns:
        lowered = column.name.lower()
        if lowered in seen:
            raise InvalidMetadataError(
                f"Table '{table.name}' declares column '{column.name}' twice",
                table=table.name,
            )
        seen.add(lowered)

    for alias in table.reference_aliases():
        if alias.lower() in seen:
            raise InvalidMetadataError(
                f"Reference alias '{alias}' collides with a column of '{table.name}'",
                table=table.name,
            )
        seen.add(alias.lower())

    return table


def parse_tables(data: Union[list, dict]) -> Dict[str, Table]:
    """Validate raw metadata (already parsed JSON) into tables keyed by name."""
    if isinstance(data, dict):
        data = data.get("tables", [])

    tables: Dict[str, Table] = {}
    for table in _TABLES_ADAPTER.validate_python(data):
        validate_table(table)
        if table.name in tables:
            raise InvalidMetadataError(f"Table '{table.name}' declared twice", table=table.name)
        tables[table.name] = table
    return tables


def load_tables(path: Union[str, Path]) -> Dict[str, Table]:
    """Load and validate a metadata file."""
    path = Path(path)
    with open(path) as f:
        data = json.load(f)

    tables = parse_tables(data)
    logger.info(f"Loaded {len(tables)} tables from {path}")
    return tables


def dump_tables(tables: Iterable[Table], path: Union[str, Path]) -> None:
    """Write tables to a metadata file (camelCase keys, indented)."""
    payload = {
        "tables": [
            t.model_dump(mode="json", by_alias=True, exclude_none=True) for t in tables
        ]
    }
    Path(path).write_text(json.dumps(payload, indent=2))


__all__ = ["validate_table", "parse_tables", "load_tables", "dump_tables"]
