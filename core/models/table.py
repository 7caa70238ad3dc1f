# ============================================================================
# TABLE METADATA MODEL
# ============================================================================
# STATUS: Domain model - Declarative table description
# PURPOSE: Columns, behavioural flags and foreign-key references of a table
# ============================================================================
"""
Table Metadata Model

Immutable description of one relational table. Everything the Query Builder
renders and everything the Repository maps is derived from these models, so
no table-specific code has to be written.

Field names are accepted in snake_case and in camelCase, which is how the
scaffolding layer stores metadata files:

    {"name": "manager_id", "showInGrid": true,
     "reference": {"table": "users", "textColumn": "login"}}

References resolve one level deep only. A table may reference itself, or two
tables may reference each other; nothing here follows a reference further
than its display column.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel


_METADATA_CONFIG = {
    "frozen": True,
    "populate_by_name": True,
    "alias_generator": to_camel,
}


class Reference(BaseModel):
    """
    Foreign-key relationship from a column to another table.

    The referenced row is joined on `key_column` and its `text_column` is
    projected under `get_column_alias()`.
    """

    table: str = Field(..., min_length=1, description="Referenced table name")
    schema_name: Optional[str] = Field(default=None, description="Referenced table schema")
    key_column: str = Field(default="id", description="Target column the foreign key points at")
    text_column: Optional[str] = Field(
        default=None, description="Target column used as display value"
    )
    alias: Optional[str] = Field(default=None, description="Explicit display alias")
    source_column: Optional[str] = Field(
        default=None, description="Owning column, bound by Column"
    )

    model_config = _METADATA_CONFIG

    def get_column_alias(self) -> Optional[str]:
        """
        Name of the display value in query results.

        Derived from (source column, text column) so two columns referencing
        the same table never collide: `manager_id` -> `manager_login`.
        None when no display column is wired up.
        """
        if not self.text_column:
            return None
        if self.alias:
            return self.alias
        if self.source_column:
            stem = self.source_column
            if stem.lower().endswith("_id") and len(stem) > 3:
                stem = stem[:-3]
            return f"{stem}_{self.text_column}"
        return f"{self.table}_{self.text_column}"

    @property
    def is_resolvable(self) -> bool:
        """True when the reference can be joined and projected."""
        return bool(self.table and self.key_column and self.get_column_alias())


class Column(BaseModel):
    """One table column and its behavioural flags."""

    name: str = Field(..., min_length=1)
    is_key: bool = False
    auto_increment: bool = False
    readonly: bool = False
    show_in_grid: bool = False
    reference: Optional[Reference] = None
    data_type: Optional[str] = Field(default=None, description="Informational SQL type")

    model_config = _METADATA_CONFIG

    @model_validator(mode="before")
    @classmethod
    def _bind_reference_source(cls, data):
        """Tell the reference which column owns it (alias derivation)."""
        if not isinstance(data, dict):
            return data

        name = data.get("name")
        ref = data.get("reference")
        if name is None or ref is None:
            return data

        if isinstance(ref, Reference):
            if ref.source_column is None:
                return {**data, "reference": ref.model_copy(update={"source_column": name})}
        elif isinstance(ref, dict):
            if not ref.get("source_column") and not ref.get("sourceColumn"):
                return {**data, "reference": {**ref, "source_column": name}}
        return data

    @property
    def is_insertable(self) -> bool:
        """Column receives a value on INSERT."""
        return not self.auto_increment and not self.readonly

    @property
    def is_updatable(self) -> bool:
        """Column may appear in an UPDATE (auto-increment keys never do)."""
        return not self.readonly and not (self.auto_increment and self.is_key)


class Table(BaseModel):
    """
    The schema unit a Repository operates on.

    Column order is preserved; generated column lists and mapped records
    follow it.
    """

    name: str = Field(..., min_length=1)
    schema_name: Optional[str] = None
    columns: Tuple[Column, ...] = Field(default_factory=tuple)

    model_config = _METADATA_CONFIG

    def primary_keys(self) -> List[Column]:
        """Key columns in declaration order."""
        return [c for c in self.columns if c.is_key]

    def get_column(self, name: str) -> Optional[Column]:
        """Look up a column by name, exact match first, then case-insensitive."""
        for column in self.columns:
            if column.name == name:
                return column
        lowered = name.lower()
        for column in self.columns:
            if column.name.lower() == lowered:
                return column
        return None

    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def reference_aliases(self) -> List[str]:
        """Display aliases of all resolvable references."""
        return [
            c.reference.get_column_alias()
            for c in self.columns
            if c.reference is not None and c.reference.is_resolvable
        ]


__all__ = ["Reference", "Column", "Table"]
