# ============================================================================
# METADATA-DRIVEN QUERY BUILDER
# ============================================================================
# STATUS: Core - DML generation from table metadata
# PURPOSE: Render parameterized SELECT/INSERT/UPDATE/DELETE and COUNT statements
# EXPORTS: QueryBuilder
# DEPENDENCIES: psycopg
# ============================================================================
"""
Metadata-Driven Query Builder.

Turns (query type, Table, optional Filter, optional parameter map) into a
psycopg `sql.Composed` statement. Pure: no I/O, no state beyond defaults.

Conventions:
    - The queried table is aliased `t0`; the table behind the reference of the
      column at position N (1-based) is aliased `t0_N` and LEFT JOINed, so a
      table may reference itself.
    - Every bound value is a named placeholder `%(p_<name>)s`. The prefix comes
      from QueryDefaults; `bind()` converts a plain mapping to that convention.
    - Filter keys are column names (equality, `IS NULL` for None) or range
      predicates `<column>__from` (>=) and `<column>__to` (<=). A None range
      bound leaves that side of the range open.

Projection (SELECT):
    - column with a resolvable reference -> raw column + display alias (joined)
    - show_in_grid or key column          -> raw column
    - detail mode                         -> every column

Usage:
    builder = QueryBuilder()
    stmt = builder.build(QueryType.SELECT, table, Filter(parameters={"id": 1}))
    cur.execute(stmt, builder.bind({"id": 1}))
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from psycopg import sql

from core.config import QueryDefaults, get_defaults
from core.contracts import QueryType, is_db_null
from core.errors import InvalidMetadataError, UnknownParameterError
from core.logging import ComponentType, get_logger
from core.models.filter import Filter
from core.models.table import Column, Table

logger = get_logger(__name__, ComponentType.QUERY_BUILDER)


class QueryBuilder:
    """
    Render DML statements from table metadata.

    One builder can serve any number of tables and threads.
    """

    def __init__(self, defaults: Optional[QueryDefaults] = None):
        self.defaults = defaults or get_defaults().query

    # =========================================================================
    # PARAMETER NAMING
    # =========================================================================

    @property
    def parameter_prefix(self) -> str:
        return self.defaults.parameter_prefix

    def parameter_name(self, name: str) -> str:
        """Bind-parameter name for a column or predicate name."""
        return f"{self.parameter_prefix}{name}"

    def bind(self, parameters: Mapping[str, Any]) -> Dict[str, Any]:
        """Rename a plain mapping to the bind-parameter convention."""
        return {self.parameter_name(key): value for key, value in parameters.items()}

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def build(
        self,
        query_type: QueryType,
        table: Table,
        filter: Optional[Filter] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> sql.Composed:
        """
        Render a statement.

        Args:
            query_type: Statement kind
            table: Table metadata
            filter: Predicates, pagination and mode (SELECT)
            parameters: Column-named values being written (INSERT/UPDATE);
                restricts the UPDATE SET list to the columns present

        Returns:
            psycopg sql.Composed statement

        Raises:
            InvalidMetadataError: UPDATE/DELETE on a table without primary keys
            UnknownParameterError: filter or write parameter matches no column
        """
        statement, _ = self._render(QueryType(query_type), table, filter, parameters)
        return statement

    def expected_parameters(
        self,
        query_type: QueryType,
        table: Table,
        filter: Optional[Filter] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> List[str]:
        """Bind-parameter names the statement from build() expects."""
        _, names = self._render(QueryType(query_type), table, filter, parameters)
        return names

    def build_record_count_query(
        self, table: Table, filter: Optional[Filter] = None
    ) -> sql.Composed:
        """
        Render a COUNT(*) over the filtered rows.

        Uses the same predicates as SELECT; pagination and projection are
        ignored.
        """
        names: List[str] = []
        where = self._filter_clause(table, filter, names)

        statement = sql.SQL("SELECT COUNT(*) FROM {} AS {}{}").format(
            self._table_identifier(table.schema_name, table.name),
            self._base_alias(),
            where,
        )
        self._log_statement("count", table, statement)
        return statement

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def _render(
        self,
        query_type: QueryType,
        table: Table,
        filter: Optional[Filter],
        parameters: Optional[Mapping[str, Any]],
    ) -> Tuple[sql.Composed, List[str]]:
        names: List[str] = []

        if query_type == QueryType.SELECT:
            statement = self._select(table, filter, names)
        elif query_type == QueryType.INSERT:
            statement = self._insert(table, parameters, names)
        elif query_type == QueryType.UPDATE:
            statement = self._update(table, parameters, names)
        else:
            statement = self._delete(table, names)

        self._log_statement(query_type.value, table, statement)
        return statement, names

    # =========================================================================
    # SELECT
    # =========================================================================

    def _select(
        self, table: Table, filter: Optional[Filter], names: List[str]
    ) -> sql.Composed:
        detail_mode = bool(filter and filter.detail_mode)
        base = self._base_alias()

        fields: List[sql.Composable] = []
        joins: List[sql.Composable] = []

        for position, column in enumerate(table.columns, start=1):
            ref = column.reference
            if ref is not None and ref.is_resolvable:
                join_alias = sql.Identifier(f"{self.defaults.base_alias}_{position}")
                fields.append(self._column_ref(base, column.name))
                fields.append(
                    sql.SQL("{}.{} AS {}").format(
                        join_alias,
                        sql.Identifier(ref.text_column),
                        sql.Identifier(ref.get_column_alias()),
                    )
                )
                joins.append(
                    sql.SQL(" LEFT JOIN {} AS {} ON {}.{} = {}.{}").format(
                        self._table_identifier(ref.schema_name, ref.table),
                        join_alias,
                        join_alias,
                        sql.Identifier(ref.key_column),
                        base,
                        sql.Identifier(column.name),
                    )
                )
            elif detail_mode or column.show_in_grid or column.is_key:
                fields.append(self._column_ref(base, column.name))

        if not fields:
            # Nothing visible and no keys; keep the statement valid
            fields = [sql.SQL("{}.*").format(base)]

        where = self._filter_clause(table, filter, names)
        order_by = self._order_clause(table)

        statement = sql.SQL("SELECT {} FROM {} AS {}{}{}{}").format(
            sql.SQL(", ").join(fields),
            self._table_identifier(table.schema_name, table.name),
            base,
            sql.Composed(joins),
            where,
            order_by,
        )

        if filter is not None and filter.is_paginated:
            statement = statement + sql.SQL(" LIMIT {} OFFSET {}").format(
                sql.Literal(filter.page_size),
                sql.Literal(filter.offset),
            )

        return statement

    def _order_clause(self, table: Table) -> sql.Composable:
        """Primary key ascending; first column when the table has no key."""
        keys = table.primary_keys()
        if not keys and table.columns:
            keys = [table.columns[0]]
        if not keys:
            return sql.SQL("")
        base = self._base_alias()
        return sql.SQL(" ORDER BY {}").format(
            sql.SQL(", ").join(
                sql.SQL("{} ASC").format(self._column_ref(base, c.name)) for c in keys
            )
        )

    # =========================================================================
    # PREDICATES
    # =========================================================================

    def _resolve_predicate(self, table: Table, name: str) -> Tuple[Column, str]:
        """Map a filter key to (column, operator)."""
        column = table.get_column(name)
        if column is not None:
            return column, "="

        for suffix, operator in (
            (self.defaults.range_from_suffix, ">="),
            (self.defaults.range_to_suffix, "<="),
        ):
            if name.endswith(suffix) and len(name) > len(suffix):
                column = table.get_column(name[: -len(suffix)])
                if column is not None:
                    return column, operator

        raise UnknownParameterError(name, table=table.name, operation="select")

    def _filter_clause(
        self, table: Table, filter: Optional[Filter], names: List[str]
    ) -> sql.Composable:
        if filter is None or not filter.parameters:
            return sql.SQL("")

        base = self._base_alias()
        predicates = []
        for name, value in filter.parameters.items():
            column, operator = self._resolve_predicate(table, name)
            column_ref = self._column_ref(base, column.name)

            if value is None or is_db_null(value):
                # A None range bound adds no predicate
                if operator == "=":
                    predicates.append(sql.SQL("{} IS NULL").format(column_ref))
                continue

            parameter = self.parameter_name(name)
            names.append(parameter)
            predicates.append(
                sql.SQL("{} {} {}").format(
                    column_ref, sql.SQL(operator), sql.Placeholder(parameter)
                )
            )

        if not predicates:
            return sql.SQL("")
        return sql.SQL(" WHERE {}").format(sql.SQL(" AND ").join(predicates))

    def _key_clause(self, keys: List[Column], names: List[str]) -> sql.Composable:
        """WHERE restricted to primary-key equality."""
        predicates = []
        for column in keys:
            parameter = self.parameter_name(column.name)
            names.append(parameter)
            predicates.append(
                sql.SQL("{} = {}").format(
                    sql.Identifier(column.name), sql.Placeholder(parameter)
                )
            )
        return sql.SQL(" WHERE {}").format(sql.SQL(" AND ").join(predicates))

    def _check_parameters(
        self, table: Table, parameters: Optional[Mapping[str, Any]], operation: str
    ) -> None:
        if not parameters:
            return
        for name in parameters:
            if table.get_column(name) is None:
                raise UnknownParameterError(name, table=table.name, operation=operation)

    def _require_keys(self, table: Table, operation: str) -> List[Column]:
        keys = table.primary_keys()
        if not keys:
            raise InvalidMetadataError(
                f"Table '{table.name}' has no primary key; {operation} requires one",
                table=table.name,
                operation=operation,
            )
        return keys

    # =========================================================================
    # INSERT / UPDATE / DELETE
    # =========================================================================

    def _insert(
        self, table: Table, parameters: Optional[Mapping[str, Any]], names: List[str]
    ) -> sql.Composed:
        self._check_parameters(table, parameters, "insert")

        columns = [c for c in table.columns if c.is_insertable]
        target = self._table_identifier(table.schema_name, table.name)

        if not columns:
            return sql.SQL("INSERT INTO {} DEFAULT VALUES RETURNING *").format(target)

        placeholders = []
        for column in columns:
            parameter = self.parameter_name(column.name)
            names.append(parameter)
            placeholders.append(sql.Placeholder(parameter))

        return sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            target,
            sql.SQL(", ").join(sql.Identifier(c.name) for c in columns),
            sql.SQL(", ").join(placeholders),
        )

    def _update(
        self, table: Table, parameters: Optional[Mapping[str, Any]], names: List[str]
    ) -> sql.Composed:
        keys = self._require_keys(table, "update")
        self._check_parameters(table, parameters, "update")

        supplied = None
        if parameters is not None:
            supplied = {name.lower() for name in parameters}

        # Keys identify the row and are never rewritten
        columns = [
            c for c in table.columns
            if c.is_updatable
            and not c.is_key
            and (supplied is None or c.name.lower() in supplied)
        ]
        if not columns:
            raise InvalidMetadataError(
                f"Table '{table.name}' has no updatable columns in this update",
                table=table.name,
                operation="update",
            )

        assignments = []
        for column in columns:
            parameter = self.parameter_name(column.name)
            names.append(parameter)
            assignments.append(
                sql.SQL("{} = {}").format(
                    sql.Identifier(column.name), sql.Placeholder(parameter)
                )
            )

        return sql.SQL("UPDATE {} SET {}{} RETURNING *").format(
            self._table_identifier(table.schema_name, table.name),
            sql.SQL(", ").join(assignments),
            self._key_clause(keys, names),
        )

    def _delete(self, table: Table, names: List[str]) -> sql.Composed:
        keys = self._require_keys(table, "delete")

        return sql.SQL("DELETE FROM {}{} RETURNING {}").format(
            self._table_identifier(table.schema_name, table.name),
            self._key_clause(keys, names),
            sql.SQL(", ").join(sql.Identifier(c.name) for c in keys),
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _base_alias(self) -> sql.Identifier:
        return sql.Identifier(self.defaults.base_alias)

    @staticmethod
    def _table_identifier(schema_name: Optional[str], table_name: str) -> sql.Identifier:
        if schema_name:
            return sql.Identifier(schema_name, table_name)
        return sql.Identifier(table_name)

    @staticmethod
    def _column_ref(alias: sql.Identifier, column_name: str) -> sql.Composed:
        return sql.SQL("{}.{}").format(alias, sql.Identifier(column_name))

    @staticmethod
    def _log_statement(kind: str, table: Table, statement: sql.Composable) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Built {kind} for {table.name}: {statement.as_string(None)}")


__all__ = ["QueryBuilder"]
