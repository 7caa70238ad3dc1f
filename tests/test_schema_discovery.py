# ============================================================================
# SCHEMA DISCOVERY TESTS
# ============================================================================
# STATUS: Tests - Table metadata from information_schema rows
# PURPOSE: Verify flag inference and reference wiring from canned rows
# ============================================================================
"""
Schema Discovery Tests

Run with:
    pytest tests/test_schema_discovery.py -v
"""

from unittest.mock import MagicMock

import pytest

from core.config import reset_defaults
from core.schema.loader import validate_table
from infrastructure.schema_discovery import (
    COLUMNS_QUERY,
    FOREIGN_KEYS_QUERY,
    PRIMARY_KEYS_QUERY,
    SchemaDiscovery,
)


# ============================================================================
# HELPERS
# ============================================================================

def _column(table, name, data_type="integer", identity="NO", generated="NEVER", default=None):
    return {
        "table_name": table,
        "column_name": name,
        "data_type": data_type,
        "is_identity": identity,
        "is_generated": generated,
        "column_default": default,
    }


COLUMN_ROWS = [
    _column("departments", "id", identity="YES"),
    _column("departments", "title", "character varying"),
    _column("users", "id", default="nextval('users_id_seq'::regclass)"),
    _column("users", "login", "text"),
    _column("users", "manager_id"),
    _column("users", "department_id"),
    _column("users", "region_id"),
    _column("users", "login_upper", "text", generated="ALWAYS"),
    _column("users", "created_at", "timestamp with time zone"),
]

KEY_ROWS = [
    {"table_name": "departments", "column_name": "id"},
    {"table_name": "users", "column_name": "id"},
]

FK_ROWS = [
    {
        "table_name": "users", "column_name": "manager_id",
        "foreign_schema": "public", "foreign_table": "users", "foreign_column": "id",
    },
    {
        "table_name": "users", "column_name": "department_id",
        "foreign_schema": "public", "foreign_table": "departments", "foreign_column": "id",
    },
    {
        "table_name": "users", "column_name": "region_id",
        "foreign_schema": "geo", "foreign_table": "regions", "foreign_column": "code",
    },
]


def _make_database():
    database = MagicMock()
    database.fetch_all.side_effect = [COLUMN_ROWS, KEY_ROWS, FK_ROWS]
    return database


@pytest.fixture
def tables():
    return SchemaDiscovery(_make_database()).discover("public")


# ============================================================================
# TESTS
# ============================================================================

class TestDiscover:
    def test_queries_run_for_schema(self):
        database = _make_database()
        SchemaDiscovery(database).discover("public")
        queries = [c.args[0] for c in database.fetch_all.call_args_list]
        assert queries == [COLUMNS_QUERY, PRIMARY_KEYS_QUERY, FOREIGN_KEYS_QUERY]
        for call in database.fetch_all.call_args_list:
            assert call.args[1] == {"schema": "public"}

    def test_tables_and_column_order(self, tables):
        assert set(tables) == {"departments", "users"}
        assert tables["users"].column_names() == [
            "id", "login", "manager_id", "department_id", "region_id",
            "login_upper", "created_at",
        ]
        assert tables["users"].schema_name == "public"

    def test_auto_increment_from_identity_and_serial(self, tables):
        assert tables["departments"].get_column("id").auto_increment
        assert tables["users"].get_column("id").auto_increment
        assert not tables["users"].get_column("login").auto_increment

    def test_generated_column_is_readonly(self, tables):
        assert tables["users"].get_column("login_upper").readonly
        assert not tables["users"].get_column("login").readonly

    def test_primary_keys(self, tables):
        assert [c.name for c in tables["users"].primary_keys()] == ["id"]

    def test_grid_visibility(self, tables):
        users = tables["users"]
        assert users.get_column("id").show_in_grid
        assert users.get_column("login").show_in_grid
        assert users.get_column("manager_id").show_in_grid
        assert not users.get_column("created_at").show_in_grid

    def test_self_reference_uses_first_text_column(self, tables):
        ref = tables["users"].get_column("manager_id").reference
        assert ref.table == "users"
        assert ref.key_column == "id"
        assert ref.text_column == "login"
        assert ref.get_column_alias() == "manager_login"

    def test_reference_to_other_table(self, tables):
        ref = tables["users"].get_column("department_id").reference
        assert ref.table == "departments"
        assert ref.get_column_alias() == "department_title"

    def test_cross_schema_reference_is_unresolvable(self, tables):
        ref = tables["users"].get_column("region_id").reference
        assert ref.schema_name == "geo"
        assert ref.key_column == "code"
        assert not ref.is_resolvable

    def test_discovered_tables_validate(self, tables):
        for table in tables.values():
            validate_table(table)

    def test_empty_schema(self):
        database = MagicMock()
        database.fetch_all.side_effect = [[], [], []]
        assert SchemaDiscovery(database).discover("empty") == {}

    def test_schema_defaults_to_configuration(self, monkeypatch):
        monkeypatch.setenv("POSTGRES_SCHEMA", "app")
        reset_defaults()
        try:
            database = _make_database()
            tables = SchemaDiscovery(database).discover()
        finally:
            reset_defaults()

        for call in database.fetch_all.call_args_list:
            assert call.args[1] == {"schema": "app"}
        assert tables["users"].schema_name == "app"
