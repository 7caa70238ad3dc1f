# ============================================================================
# METADATA MODEL TESTS
# ============================================================================
# STATUS: Tests - Table/Column/Reference/Filter unit tests
# PURPOSE: Verify alias derivation, column flags, lookups and file loading
# ============================================================================
"""
Metadata Model Tests

Unit tests for the metadata layer:
- Reference alias derivation and resolvability
- Column flag helpers and reference binding
- Table lookups
- Filter pagination
- Loader validation and round-trip through a file

Run with:
    pytest tests/test_metadata.py -v
"""

import json

import pytest
from pydantic import ValidationError

from core.errors import InvalidMetadataError
from core.models import Column, Filter, Reference, Table
from core.schema.loader import dump_tables, load_tables, parse_tables, validate_table


# ============================================================================
# HELPERS
# ============================================================================

def _make_users_table():
    """users(id key+serial, login, manager_id -> users.login)."""
    return Table(
        name="users",
        columns=[
            Column(name="id", is_key=True, auto_increment=True),
            Column(name="login", show_in_grid=True),
            Column(
                name="manager_id",
                reference=Reference(table="users", text_column="login"),
            ),
        ],
    )


# ============================================================================
# REFERENCE
# ============================================================================

class TestReference:
    def test_alias_from_source_column(self):
        table = _make_users_table()
        ref = table.get_column("manager_id").reference
        assert ref.source_column == "manager_id"
        assert ref.get_column_alias() == "manager_login"

    def test_alias_without_id_suffix(self):
        column = Column(name="owner", reference=Reference(table="users", text_column="login"))
        assert column.reference.get_column_alias() == "owner_login"

    def test_alias_without_source(self):
        ref = Reference(table="users", text_column="login")
        assert ref.get_column_alias() == "users_login"

    def test_explicit_alias_wins(self):
        column = Column(
            name="manager_id",
            reference=Reference(table="users", text_column="login", alias="boss"),
        )
        assert column.reference.get_column_alias() == "boss"

    def test_two_columns_same_target_do_not_collide(self):
        table = Table(
            name="tickets",
            columns=[
                Column(name="id", is_key=True),
                Column(name="author_id", reference=Reference(table="users", text_column="login")),
                Column(name="assignee_id", reference=Reference(table="users", text_column="login")),
            ],
        )
        assert table.reference_aliases() == ["author_login", "assignee_login"]

    def test_unwired_reference_is_not_resolvable(self):
        ref = Reference(table="users")
        assert ref.get_column_alias() is None
        assert not ref.is_resolvable

    def test_alias_is_stable(self):
        a = Column(name="manager_id", reference=Reference(table="users", text_column="login"))
        b = Column(name="manager_id", reference=Reference(table="users", text_column="login"))
        assert a.reference.get_column_alias() == b.reference.get_column_alias()

    def test_explicit_source_column_kept(self):
        column = Column(
            name="manager_id",
            reference={"table": "users", "textColumn": "login", "sourceColumn": "boss_id"},
        )
        assert column.reference.get_column_alias() == "boss_login"


# ============================================================================
# COLUMN
# ============================================================================

class TestColumn:
    def test_defaults(self):
        c = Column(name="login")
        assert c.is_key is False
        assert c.auto_increment is False
        assert c.readonly is False
        assert c.show_in_grid is False
        assert c.reference is None

    @pytest.mark.parametrize("is_key,auto_increment,readonly,insertable,updatable", [
        (False, False, False, True, True),
        (True, True, False, False, False),   # serial key
        (False, True, False, False, True),   # serial non-key stays updatable
        (False, False, True, False, False),  # readonly
        (True, False, False, True, True),    # natural key
    ])
    def test_write_flags(self, is_key, auto_increment, readonly, insertable, updatable):
        c = Column(name="c", is_key=is_key, auto_increment=auto_increment, readonly=readonly)
        assert c.is_insertable is insertable
        assert c.is_updatable is updatable

    def test_camel_case_fields(self):
        c = Column.model_validate(
            {"name": "id", "isKey": True, "autoIncrement": True, "showInGrid": True}
        )
        assert c.is_key and c.auto_increment and c.show_in_grid

    def test_frozen(self):
        c = Column(name="login")
        with pytest.raises(ValidationError):
            c.name = "other"

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            Column(name="")


# ============================================================================
# TABLE
# ============================================================================

class TestTable:
    def test_primary_keys_preserve_order(self):
        table = Table(
            name="order_lines",
            columns=[
                Column(name="line_no", is_key=True),
                Column(name="qty"),
                Column(name="order_id", is_key=True),
            ],
        )
        assert [c.name for c in table.primary_keys()] == ["line_no", "order_id"]

    def test_get_column_case_insensitive(self):
        table = _make_users_table()
        assert table.get_column("LOGIN").name == "login"
        assert table.get_column("missing") is None

    def test_column_names_in_declaration_order(self):
        assert _make_users_table().column_names() == ["id", "login", "manager_id"]

    def test_self_reference_is_plain_data(self):
        # Cycles are just names; nothing is followed
        table = _make_users_table()
        assert table.get_column("manager_id").reference.table == table.name


# ============================================================================
# FILTER
# ============================================================================

class TestFilter:
    def test_defaults(self):
        f = Filter()
        assert f.parameters == {}
        assert f.current_page == 1
        assert f.page_size is None
        assert f.detail_mode is False
        assert not f.is_paginated
        assert f.offset == 0

    @pytest.mark.parametrize("page,size,offset", [(1, 10, 0), (2, 10, 10), (5, 25, 100)])
    def test_offset(self, page, size, offset):
        assert Filter(current_page=page, page_size=size).offset == offset

    def test_page_must_be_positive(self):
        with pytest.raises(ValidationError):
            Filter(current_page=0)

    def test_camel_case_fields(self):
        f = Filter.model_validate({"pageSize": 5, "currentPage": 2, "detailMode": True})
        assert f.page_size == 5 and f.current_page == 2 and f.detail_mode


# ============================================================================
# LOADER
# ============================================================================

class TestValidateTable:
    def test_valid_table(self):
        table = _make_users_table()
        assert validate_table(table) is table

    def test_missing_primary_key(self):
        table = Table(name="logs", columns=[Column(name="message")])
        with pytest.raises(InvalidMetadataError) as exc:
            validate_table(table)
        assert exc.value.table == "logs"

    def test_duplicate_columns(self):
        table = Table(
            name="users",
            columns=[Column(name="id", is_key=True), Column(name="ID")],
        )
        with pytest.raises(InvalidMetadataError):
            validate_table(table)

    def test_alias_collides_with_column(self):
        table = Table(
            name="users",
            columns=[
                Column(name="id", is_key=True),
                Column(name="manager_id", reference=Reference(table="users", text_column="login")),
                Column(name="manager_login"),
            ],
        )
        with pytest.raises(InvalidMetadataError):
            validate_table(table)


class TestLoadTables:
    def test_parse_list_and_wrapped(self):
        raw = [{"name": "users", "columns": [{"name": "id", "isKey": True}]}]
        assert list(parse_tables(raw)) == ["users"]
        assert list(parse_tables({"tables": raw})) == ["users"]

    def test_parse_rejects_invalid(self):
        with pytest.raises(InvalidMetadataError):
            parse_tables([{"name": "logs", "columns": [{"name": "message"}]}])

    def test_parse_rejects_duplicate_tables(self):
        raw = [{"name": "users", "columns": [{"name": "id", "isKey": True}]}] * 2
        with pytest.raises(InvalidMetadataError):
            parse_tables(raw)

    def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "tables.json"
        dump_tables([_make_users_table()], path)

        stored = json.loads(path.read_text())
        assert stored["tables"][0]["columns"][0]["isKey"] is True

        tables = load_tables(path)
        assert tables["users"] == _make_users_table()
        assert tables["users"].reference_aliases() == ["manager_login"]
