# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# STATUS: Core - Database access layer
# PURPOSE: Generic CRUD over metadata-described tables
# ============================================================================
"""
Repositories Module

Provides the generic Repository and the Database collaborator contract.

Usage:
    from repositories import Repository
    from infrastructure import PostgreSQLDatabase
    from core import QueryBuilder, Filter

    repo = Repository(PostgreSQLDatabase(), QueryBuilder(), table)
    rows = repo.select(Filter(page_size=25))
"""

from .database import Database, RowMapper
from .repository import Repository, SupportsFields, enumerate_fields, get_parameters

__all__ = [
    "Database",
    "RowMapper",
    "Repository",
    "SupportsFields",
    "enumerate_fields",
    "get_parameters",
]
