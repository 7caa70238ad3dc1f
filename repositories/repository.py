# ============================================================================
# GENERIC TABLE REPOSITORY
# ============================================================================
# STATUS: Core - Metadata-driven CRUD orchestration
# PURPOSE: Parameter derivation, execution, row projection, re-fetch after write
# ============================================================================
"""
Generic Table Repository

One Repository is bound to one Table, a Database collaborator and a
QueryBuilder. It is the only component callers use directly.

Records are plain ordered dicts keyed by column name or reference alias.
Which keys appear depends on the projection policy:

    - column with a reference whose alias is in the row and whose value is
      not NULL -> column value and display alias
    - show_in_grid or key column -> column value
    - detail mode (load all columns) -> every column

Every insert and update is followed by a detail-mode select on the written
row's primary key. The write statement's own RETURNING row lacks the joined
reference aliases, so the re-fetched record is what the caller receives.

Usage:
    repo = Repository(PostgreSQLDatabase(), QueryBuilder(), users_table)
    user = repo.insert({"login": "alice"})
    page = repo.select(Filter(page_size=20))
"""

import dataclasses
from decimal import Decimal
from typing import (
    Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, runtime_checkable,
)

from pydantic import BaseModel

from core.contracts import DB_NULL, QueryType, Record, is_db_null
from core.errors import InvalidMetadataError, TypeConversionError
from core.logging import log_context
from core.models.filter import Filter
from core.models.table import Column, Table
from core.schema.query_builder import QueryBuilder
from infrastructure.base_repository import BaseRepository
from .database import Database


# ============================================================================
# PARAMETER DERIVATION
# ============================================================================

@runtime_checkable
class SupportsFields(Protocol):
    """Input objects that enumerate their own fields."""

    def fields(self) -> Mapping[str, Any]:
        ...


def enumerate_fields(obj: Any) -> Dict[str, Any]:
    """
    Read an input object's fields as a name -> value dict.

    Supported, in order: mappings (parsed JSON), pydantic models, dataclass
    instances, objects with a callable fields() (SupportsFields), plain
    objects (public instance attributes). A column may itself be named
    "fields", so the capability is only used when it is callable.

    Raises:
        TypeError: object exposes no fields
    """
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    if isinstance(obj, SupportsFields) and callable(getattr(obj, "fields", None)):
        return dict(obj.fields())
    if hasattr(obj, "__dict__"):
        return {k: v for k, v in vars(obj).items() if not k.startswith("_")}
    raise TypeError(f"Cannot enumerate fields of {type(obj).__name__}")


def get_parameters(obj: Any, columns: Optional[Iterable[Column]] = None) -> Dict[str, Any]:
    """
    Derive a parameter map from an input object.

    Args:
        obj: Input object (see enumerate_fields)
        columns: Optional target column set; columns the object lacks are
            added with a NULL value so the map covers the whole set

    Returns:
        Field name -> value, with every None replaced by DB_NULL
    """
    parameters = enumerate_fields(obj)

    if columns is not None:
        present = {name.lower() for name in parameters}
        for column in columns:
            if column.name.lower() not in present:
                parameters[column.name] = None

    return {name: DB_NULL if value is None else value for name, value in parameters.items()}


def _from_db(value: Any) -> Any:
    return None if is_db_null(value) else value


def _to_int(value: Any, operation: str) -> int:
    """Coerce a scalar result to int without losing information."""
    if value is None or is_db_null(value) or isinstance(value, bool):
        raise TypeConversionError(value, int, operation=operation)
    if isinstance(value, int):
        return value
    try:
        if isinstance(value, (float, Decimal)):
            converted = int(value)
            if converted != value:
                raise ValueError("fractional value")
            return converted
        if isinstance(value, (str, bytes)):
            return int(value.strip())
    except (ValueError, OverflowError) as e:
        raise TypeConversionError(value, int, operation=operation) from e
    raise TypeConversionError(value, int, operation=operation)


# ============================================================================
# REPOSITORY
# ============================================================================

class Repository(BaseRepository):
    """CRUD for one table, driven entirely by its metadata."""

    def __init__(self, db: Database, query_builder: QueryBuilder, table: Table):
        super().__init__()
        self.db = db
        self.query_builder = query_builder
        self.table = table

    # =========================================================================
    # READ
    # =========================================================================

    def select(self, filter: Filter) -> List[Record]:
        """Rows matching the filter, projected for its mode."""
        with log_context(table=self.table.name, operation="select"):
            query = self.query_builder.build(QueryType.SELECT, self.table, filter)
            parameters = self.query_builder.bind(self._filter_values(filter))

            with self._error_context("select", self.table.name):
                rows = self.db.execute(
                    query, lambda r: self._map(r, filter.detail_mode), parameters
                )
                result = list(rows)

            self.logger.debug(f"select on {self.table.name} returned {len(result)} rows")
            return result

    def get_record_count(self, filter: Filter) -> int:
        """Number of rows matching the filter, ignoring pagination."""
        with log_context(table=self.table.name, operation="count"):
            query = self.query_builder.build_record_count_query(self.table, filter)
            parameters = self.query_builder.bind(self._filter_values(filter))

            with self._error_context("count", self.table.name):
                scalar = self.db.execute_scalar(query, parameters)

            return _to_int(scalar, "count")

    # =========================================================================
    # WRITE
    # =========================================================================

    def insert(self, obj: Any) -> Optional[Record]:
        """
        Insert a row built from obj and return it fully projected.

        Auto-increment and readonly columns are never written. Returns None
        when the statement produced no row.
        """
        with log_context(table=self.table.name, operation="insert"):
            self._require_keys("insert")

            editable = [c for c in self.table.columns if c.is_insertable]
            parameters = self._restrict(
                self._get_parameters(obj, editable), lambda c: c.is_insertable
            )

            query = self.query_builder.build(QueryType.INSERT, self.table, parameters=parameters)

            with self._error_context("insert", self.table.name):
                rows = self.db.execute(
                    query, lambda r: self._map(r, True), self.query_builder.bind(parameters)
                )

            result = rows[0] if rows else None
            self._log_operation(result is not None, "insert", self.table.name)
            return self._get_full_object(result)

    def update(self, obj: Any) -> Optional[Record]:
        """
        Update the row identified by obj's primary key and return it fully
        projected.

        Readonly columns and auto-increment keys are never rewritten. Editable
        (non-readonly, non-auto-increment) columns missing from obj are set to
        NULL. Returns None when no row matched.
        """
        with log_context(table=self.table.name, operation="update"):
            keys = self._require_keys("update")

            # Auto-increment non-key columns are only set when obj supplies them
            editable = [c for c in self.table.columns if c.is_insertable]
            target = editable + [k for k in keys if k not in editable]
            parameters = self._restrict(
                self._get_parameters(obj, target), lambda c: c.is_updatable or c.is_key
            )

            query = self.query_builder.build(
                QueryType.UPDATE, self.table, parameters=parameters
            )

            with self._error_context("update", self.table.name):
                rows = self.db.execute(
                    query, lambda r: self._map(r, True), self.query_builder.bind(parameters)
                )

            result = rows[0] if rows else None
            self._log_operation(result is not None, "update", self.table.name)
            return self._get_full_object(result)

    def delete(self, obj: Any) -> bool:
        """Delete the row identified by obj's primary key; True if one was removed."""
        with log_context(table=self.table.name, operation="delete"):
            query = self.query_builder.build(QueryType.DELETE, self.table)

            keys = self.table.primary_keys()
            key_names = {k.name.lower() for k in keys}
            parameters = {
                name: value
                for name, value in self._get_parameters(obj, keys).items()
                if name.lower() in key_names
            }

            with self._error_context("delete", self.table.name):
                rows = self.db.execute(
                    query, lambda r: self._map(r, True), self.query_builder.bind(parameters)
                )

            deleted = len(rows) > 0
            self._log_operation(deleted, "delete", self.table.name)
            return deleted

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _require_keys(self, operation: str) -> List[Column]:
        keys = self.table.primary_keys()
        if not keys:
            raise InvalidMetadataError(
                f"Table '{self.table.name}' has no primary key; {operation} requires one",
                table=self.table.name,
                operation=operation,
            )
        return keys

    @staticmethod
    def _filter_values(filter: Filter) -> Dict[str, Any]:
        # None filters render IS NULL or drop a range bound; neither binds
        return {
            name: value
            for name, value in filter.parameters.items()
            if value is not None and not is_db_null(value)
        }

    def _get_parameters(self, obj: Any, columns: Iterable[Column]) -> Dict[str, Any]:
        """
        get_parameters() normalized to this table.

        Field names matching a column case-insensitively take the column's
        spelling; reference display aliases (present on records read back
        from select) are dropped.
        """
        aliases = {alias.lower() for alias in self.table.reference_aliases()}
        parameters: Dict[str, Any] = {}
        for name, value in get_parameters(obj, columns).items():
            column = self.table.get_column(name)
            if column is not None:
                parameters[column.name] = value
            elif name.lower() not in aliases:
                parameters[name] = value
        return parameters

    def _restrict(
        self, parameters: Dict[str, Any], writable: Callable[[Column], bool]
    ) -> Dict[str, Any]:
        """Drop fields of columns the statement must not write; unknown names stay."""
        restricted = {}
        for name, value in parameters.items():
            column = self.table.get_column(name)
            if column is None or writable(column):
                restricted[name] = value
        return restricted

    def _map(self, row: Mapping[str, Any], load_all_columns: bool) -> Record:
        """Project one result row into a record, in column declaration order."""
        record: Record = {}
        names = {name.lower(): name for name in row.keys()}

        for column in self.table.columns:
            raw_name = names.get(column.name.lower())
            if raw_name is None:
                continue
            value = _from_db(row[raw_name])

            alias = column.reference.get_column_alias() if column.reference else None
            if alias and alias.lower() in names and value is not None:
                record[column.name] = value
                record[alias] = _from_db(row[names[alias.lower()]])
            elif column.show_in_grid or column.is_key or load_all_columns:
                record[column.name] = value

        return record

    def _get_full_object(self, result: Optional[Record]) -> Optional[Record]:
        """Re-select a written row by primary key in detail mode."""
        if result is None:
            return None

        keys = {k.name.lower(): k.name for k in self.table.primary_keys()}
        parameters = {
            keys[name.lower()]: value
            for name, value in result.items()
            if name.lower() in keys
        }

        filter = Filter(
            parameters=parameters,
            table_name=self.table.name,
            current_page=1,
            detail_mode=True,
        )
        records = self.select(filter)
        return records[0] if records else None


__all__ = ["Repository", "SupportsFields", "enumerate_fields", "get_parameters"]
