# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# STATUS: Infrastructure - Database operations
# PURPOSE: PostgreSQL execution, schema discovery, repository base class
# ============================================================================
"""
Infrastructure module.

Provides:
- BaseRepository: error wrapping and operation logging
- PostgreSQLDatabase: psycopg 3 Database collaborator
- SchemaDiscovery: Table metadata from information_schema

Usage:
    from infrastructure import PostgreSQLDatabase, SchemaDiscovery

    db = PostgreSQLDatabase()
    tables = SchemaDiscovery(db).discover("public")
"""

from infrastructure.base_repository import BaseRepository
from infrastructure.postgresql import PostgreSQLDatabase
from infrastructure.schema_discovery import SchemaDiscovery

__all__ = [
    "BaseRepository",
    "PostgreSQLDatabase",
    "SchemaDiscovery",
]
