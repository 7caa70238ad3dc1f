# ============================================================================
# SCHEMA MODULE
# ============================================================================
# STATUS: Core - SQL generation from table metadata
# PURPOSE: Query building and metadata loading
# ============================================================================

from core.schema.query_builder import QueryBuilder
from core.schema.loader import dump_tables, load_tables, parse_tables, validate_table

__all__ = [
    # Builder
    "QueryBuilder",
    # Metadata files
    "load_tables",
    "dump_tables",
    "parse_tables",
    "validate_table",
]
