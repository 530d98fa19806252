"""CREATE TABLE and CREATE INDEX statements built from the schema."""

from __future__ import annotations

from typing import Any, Iterable

from .exceptions import DatabaseException, ErrorType
from .query import Query, SqlQuery
from .result_set import ResultSet
from .schema_types import DataType, ForeignKeyAction, Index, Table

_ACTION_SQL = {
    ForeignKeyAction.NO_ACTION: "NO ACTION",
    ForeignKeyAction.RESTRICT: "RESTRICT",
    ForeignKeyAction.SET_NULL: "SET NULL",
    ForeignKeyAction.SET_DEFAULT: "SET DEFAULT",
    ForeignKeyAction.CASCADE: "CASCADE",
}

_TYPE_SQL = {
    DataType.INTEGER: "INTEGER",
    DataType.REAL: "REAL",
    DataType.TEXT: "TEXT",
    DataType.BLOB: "BLOB",
}


def _data_type_sql(data_type: DataType, varchar_length: int) -> str:
    if data_type is DataType.VARCHAR:
        return f"VARCHAR({varchar_length})"
    try:
        return _TYPE_SQL[data_type]
    except KeyError:
        raise DatabaseException(ErrorType.UNABLE_TO_LOAD, "Unknown data type.") from None


class CreateTable(Query):
    """Creates a table with its keys, unique constraints and foreign keys."""

    def __init__(self, table: Table) -> None:
        self._table = table

    def _quoted_names(self, column_ids: Iterable[int]) -> str:
        return ", ".join(f"'{self._table.columns[cid].name}'" for cid in sorted(column_ids))

    def sql_query(self, schema: Any, previous_results: ResultSet) -> SqlQuery:
        table = self._table
        single_primary_key = len(table.primary_keys) == 1

        parts = []
        for col_id, column in sorted(table.columns.items()):
            definition = f"'{column.name}' {_data_type_sql(column.type, column.varchar_length)}"
            if single_primary_key and col_id in table.primary_keys:
                definition += " PRIMARY KEY"
            if column.auto_increment:
                definition += " AUTOINCREMENT"
            if column.not_null:
                definition += " NOT NULL"
            if column.unique:
                definition += " UNIQUE"
            parts.append(definition)

        if len(table.primary_keys) > 1:
            parts.append(f"PRIMARY KEY({self._quoted_names(table.primary_keys)})")

        if len(table.unique_col_ids) > 1:
            parts.append(f"UNIQUE({self._quoted_names(table.unique_col_ids)})")

        for _, references in sorted(table.relationship_to_foreign_key_references_map.items()):
            for reference in references:
                parent = schema.tables[reference.reference_table_id]
                key_map = sorted(reference.primary_foreign_key_col_id_map.items())
                foreign_names = ", ".join(table.columns[child_col].name for _, child_col in key_map)
                parent_names = ", ".join(
                    parent.columns[parent_key.column_id].name for parent_key, _ in key_map
                )

                on_delete = ""
                if reference.on_delete_action is not ForeignKeyAction.NO_ACTION:
                    on_delete = f" ON DELETE {_ACTION_SQL[reference.on_delete_action]}"
                on_update = ""
                if reference.on_update_action is not ForeignKeyAction.NO_ACTION:
                    on_update = f" ON UPDATE {_ACTION_SQL[reference.on_update_action]}"

                parts.append(
                    f"FOREIGN KEY ({foreign_names}) REFERENCES '{parent.name}'"
                    f"({parent_names}){on_delete}{on_update}"
                )

        columns = " ".join(", ".join(parts).split())
        return SqlQuery(f"CREATE TABLE '{table.name}' ({columns});")


class CreateIndex(Query):
    """Creates an index on columns of a table."""

    def __init__(self, index: Index) -> None:
        self._index = index

    def sql_query(self, schema: Any, previous_results: ResultSet) -> SqlQuery:
        index = self._index
        table = schema.tables[index.table_id]
        columns = ", ".join(f"'{table.columns[cid].name}'" for cid in index.column_ids)
        unique = "UNIQUE " if index.is_unique else ""
        return SqlQuery(f"CREATE {unique}INDEX '{index.name}' ON '{table.name}'({columns});")