"""SELECT statements over one table, with optional joins along relationships."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .exceptions import DatabaseException, ErrorType
from .expr import Expr
from .query import Query, SqlQuery
from .result_set import ResultSet, ResultTuple
from .schema_types import (
    IdLike,
    PrimaryForeignKeyColumnIdMap,
    RelationshipTableId,
    RelationshipType,
    Table,
    TableColumnId,
    TupleValues,
    id_value,
    table_column_ref,
)

_ALIAS_PREFIX = "t_alias_"


@dataclass
class _ColumnInfo:
    column_id: int
    index_in_query: int = -1


@dataclass
class _Selection:
    """Columns selected from one table and where their values sit in a result row."""

    table_id: int
    columns: List[_ColumnInfo] = field(default_factory=list)
    table_alias: str = ""
    primary_key_indices: List[int] = field(default_factory=list)
    foreign_key_indices: List[int] = field(default_factory=list)


def _column_infos(requested: Sequence[int], table: Table) -> List[_ColumnInfo]:
    column_ids = list(requested) if requested else sorted(table.columns)
    return [_ColumnInfo(column_id) for column_id in column_ids]


def _corrupted() -> DatabaseException:
    return DatabaseException(
        ErrorType.UNEXPECTED_ERROR, "Foreign keys configuration seems to be corrupted."
    )


class _Plan:
    """The resolved layout of one SELECT: selections, aliases and selected columns."""

    def __init__(self, main: _Selection, joins: Dict[int, _Selection], aliases_needed: bool) -> None:
        self.main = main
        self.joins = joins
        self.aliases_needed = aliases_needed
        self.selected: List[Tuple[str, TableColumnId]] = []

    def _alias(self, alias: str) -> str:
        return alias if self.aliases_needed and alias else ""

    def add_selection(self, schema: Any, table: Table, selection: _Selection) -> None:
        for info in selection.columns:
            schema.sanity_checker.check_column_exists(table, info.column_id)
            info.index_in_query = len(self.selected)
            if info.column_id in table.primary_keys:
                selection.primary_key_indices.append(info.index_in_query)
            self.selected.append(
                (selection.table_alias, TableColumnId(selection.table_id, info.column_id))
            )

        chosen = {info.column_id for info in selection.columns}
        for key in sorted(table.primary_keys):
            if key not in chosen:
                selection.primary_key_indices.append(len(self.selected))
                self.selected.append((selection.table_alias, TableColumnId(selection.table_id, key)))

    def add_foreign_key_columns(
        self,
        key_map: PrimaryForeignKeyColumnIdMap,
        foreign_key_indices: List[int],
        child_table_id: int,
        child_alias: str,
    ) -> None:
        for _, child_col in sorted(key_map.items()):
            foreign_key_indices.append(len(self.selected))
            self.selected.append((child_alias, TableColumnId(child_table_id, child_col)))

    def select_sql(self, schema: Any) -> str:
        parts = []
        for alias, column in self.selected:
            table = schema.tables[column.table_id]
            name = self._alias(alias) or table.name
            parts.append(f"'{name}'.'{table.columns[column.column_id].name}'")
        return ", ".join(parts)

    def join_sql(
        self,
        schema: Any,
        relationship_id: int,
        parent: Tuple[int, str],
        child: Tuple[int, str],
        join_table: Table,
        join_alias: str,
        references: Dict[RelationshipTableId, list],
        reference_index: int,
        foreign_key_indices: List[int],
    ) -> str:
        parent_id, parent_alias = parent
        child_id, child_alias = child

        reference_list = references.get(RelationshipTableId(relationship_id, parent_id))
        if reference_list is None or len(reference_list) <= reference_index:
            raise _corrupted()
        reference = reference_list[reference_index]

        self.add_foreign_key_columns(
            reference.primary_foreign_key_col_id_map, foreign_key_indices, child_id, child_alias
        )

        on_expr = Expr()
        for position, (parent_key, child_col) in enumerate(
            sorted(reference.primary_foreign_key_col_id_map.items())
        ):
            if position > 0:
                on_expr.op_and()
            on_expr.equal(
                table_column_ref(parent_id, parent_key.column_id, self._alias(parent_alias)),
                table_column_ref(child_id, child_col, self._alias(child_alias)),
            )

        sql = f" LEFT JOIN '{join_table.name}'"
        if self._alias(join_alias):
            sql += f" AS '{join_alias}'"
        return sql + f" ON {on_expr.to_sql(schema)}"


class FromTable(Query):
    """Selects columns of a table, optionally joining related tables and filtering rows."""

    def __init__(self, table_id: IdLike) -> None:
        self._table_id = id_value(table_id)
        self._columns: List[int] = []
        self._columns_selected = False
        self._joins: Dict[int, List[int]] = {}
        self._where: Optional[Expr] = None
        self._plan: Optional[_Plan] = None

    def select_all(self) -> "FromTable":
        self._check_single_select()
        self._columns_selected = True
        return self

    def select(self, column_ids: Iterable[IdLike]) -> "FromTable":
        self._check_single_select()
        ids = [id_value(column_id) for column_id in column_ids]
        if not ids:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX, "At least one column must be selected"
            )
        self._columns = ids
        self._columns_selected = True
        return self

    def join_all(self, relationship_id: IdLike) -> "FromTable":
        rel_id = id_value(relationship_id)
        self._check_single_join(rel_id)
        self._joins[rel_id] = []
        return self

    def join(self, relationship_id: IdLike, column_ids: Iterable[IdLike]) -> "FromTable":
        rel_id = id_value(relationship_id)
        self._check_single_join(rel_id)
        ids = [id_value(column_id) for column_id in column_ids]
        if not ids:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX, "At least one column must be selected"
            )
        self._joins[rel_id] = ids
        return self

    def where(self, expr: Expr) -> "FromTable":
        if self._where is not None:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "where() should only be called once.")
        self._where = expr
        return self

    def sql_query(self, schema: Any, previous_results: ResultSet) -> SqlQuery:
        schema.sanity_checker.check_table_exists(self._table_id)
        table = schema.tables[self._table_id]

        main = _Selection(self._table_id, _column_infos(self._columns, table))
        joins, aliases_needed = self._resolve_joins(schema)
        if aliases_needed:
            main.table_alias = f"{_ALIAS_PREFIX}0"
            for number, selection in enumerate(joins.values(), start=1):
                selection.table_alias = f"{_ALIAS_PREFIX}{number}"

        plan = _Plan(main, joins, aliases_needed)
        plan.add_selection(schema, table, main)

        join_parts = []
        for relationship_id, selection in joins.items():
            join_parts.append(self._join_sql(schema, plan, table, relationship_id, selection))

        sql = f"SELECT {plan.select_sql(schema)} FROM '{table.name}'"
        if aliases_needed:
            sql += f" as '{main.table_alias}'"
        sql += "".join(join_parts)
        if self._where is not None:
            sql += f" WHERE {self._where.to_sql(schema, self._table_id)}"

        self._plan = plan
        return SqlQuery(sql + ";")

    def query_results(self, schema: Any, rows: Iterable[Sequence[Any]]) -> ResultSet:
        """Group rows by primary key, collecting distinct joined tuples per relationship."""
        plan = self._plan
        if plan is None:
            raise DatabaseException(
                ErrorType.UNEXPECTED_ERROR, "sql_query() must be called before query_results()."
            )

        main = plan.main
        results: List[ResultTuple] = []
        positions: Dict[Tuple[Any, ...], int] = {}
        seen_joined: Dict[Tuple[int, Tuple[Any, ...]], Set[Tuple[Any, ...]]] = {}

        for row in rows:
            key = tuple(row[i] for i in main.primary_key_indices)
            if key not in positions:
                values: TupleValues = {
                    TableColumnId(main.table_id, info.column_id): row[info.index_in_query]
                    for info in main.columns
                }
                positions[key] = len(results)
                results.append(ResultTuple(values))

            current = results[positions[key]]
            for relationship_id, selection in plan.joins.items():
                joined = current.joined_tuples.setdefault(relationship_id, [])

                foreign_key = tuple(row[i] for i in selection.foreign_key_indices)
                if all(value is None for value in foreign_key):
                    continue

                join_key = tuple(row[i] for i in selection.primary_key_indices)
                seen = seen_joined.setdefault((relationship_id, key), set())
                if join_key in seen:
                    continue
                seen.add(join_key)
                joined.append(
                    {
                        TableColumnId(selection.table_id, info.column_id): row[info.index_in_query]
                        for info in selection.columns
                    }
                )

        return ResultSet(results)

    def _check_single_select(self) -> None:
        if self._columns_selected:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX, "select() or selectAll() should only be called once."
            )

    def _check_single_join(self, relationship_id: int) -> None:
        if relationship_id in self._joins:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX, "join() or joinAll() should only be called once."
            )

    def _resolve_joins(self, schema: Any) -> Tuple[Dict[int, _Selection], bool]:
        joins: Dict[int, _Selection] = {}
        table_ids = {self._table_id}
        aliases_needed = False

        for relationship_id in sorted(self._joins):
            schema.sanity_checker.check_relationship_exists(relationship_id)
            relationship = schema.relationships[relationship_id]

            if self._table_id == relationship.table_from_id:
                join_table_id = relationship.table_to_id
            elif self._table_id == relationship.table_to_id:
                join_table_id = relationship.table_from_id
            else:
                raise DatabaseException(
                    ErrorType.INVALID_ID,
                    f"Invalid relationship id {relationship_id} for join with table "
                    f"with id {self._table_id}.",
                )

            schema.sanity_checker.check_table_exists(join_table_id)
            if join_table_id in table_ids:
                aliases_needed = True
            table_ids.add(join_table_id)
            joins[relationship_id] = _Selection(join_table_id)

        return joins, aliases_needed

    def _join_sql(
        self,
        schema: Any,
        plan: _Plan,
        table: Table,
        relationship_id: int,
        selection: _Selection,
    ) -> str:
        main = plan.main
        relationship = schema.relationships[relationship_id]
        join_table = schema.tables[selection.table_id]

        selection.columns = _column_infos(self._joins[relationship_id], join_table)
        plan.add_selection(schema, join_table, selection)

        if relationship.type is RelationshipType.MANY_TO_MANY:
            link_table_id = schema.many_to_many_link_table_id(relationship_id)
            schema.sanity_checker.check_table_exists(link_table_id)
            link_table = schema.tables[link_table_id]
            references = link_table.relationship_to_foreign_key_references_map
            second_index = 1 if main.table_id == selection.table_id else 0

            return plan.join_sql(
                schema,
                relationship_id,
                (main.table_id, main.table_alias),
                (link_table_id, ""),
                link_table,
                "",
                references,
                0,
                selection.foreign_key_indices,
            ) + plan.join_sql(
                schema,
                relationship_id,
                (selection.table_id, selection.table_alias),
                (link_table_id, ""),
                join_table,
                selection.table_alias,
                references,
                second_index,
                selection.foreign_key_indices,
            )

        swap = (
            relationship.type is RelationshipType.ONE_TO_MANY
            and relationship.table_from_id == main.table_id
        ) or (
            relationship.type is RelationshipType.MANY_TO_ONE
            and relationship.table_to_id == main.table_id
        )
        references = (
            join_table.relationship_to_foreign_key_references_map
            if swap
            else table.relationship_to_foreign_key_references_map
        )
        parent, child = (main, selection) if swap else (selection, main)

        return plan.join_sql(
            schema,
            relationship_id,
            (parent.table_id, parent.table_alias),
            (child.table_id, child.table_alias),
            join_table,
            selection.table_alias,
            references,
            0,
            selection.foreign_key_indices,
        )