"""Query for the primary keys of the row inserted last."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from .exceptions import DatabaseException, ErrorType
from .query import Query, SqlQuery
from .result_set import ResultSet, ResultTuple
from .schema_types import IdLike, TableColumnId, id_value


class QueryInsertedIds(Query):
    """Selects the primary key values of the last inserted row of a table."""

    def __init__(self, table_id: IdLike) -> None:
        self._table_id = id_value(table_id)

    def sql_query(self, schema: Any, previous_results: ResultSet) -> SqlQuery:
        schema.sanity_checker.check_table_exists(self._table_id)
        table = schema.tables[self._table_id]
        key_columns = ", ".join(
            f"'{table.name}'.'{table.columns[key].name}'" for key in sorted(table.primary_keys)
        )
        return SqlQuery(
            f"SELECT rowid, {key_columns} FROM '{table.name}' WHERE rowid = last_insert_rowid();"
        )

    def query_results(self, schema: Any, rows: Iterable[Sequence[Any]]) -> ResultSet:
        table = schema.tables[self._table_id]
        row = next(iter(rows), None)
        if row is None:
            raise DatabaseException(
                ErrorType.QUERY_ERROR,
                f"Could not query last inserted id from table '{table.name}'.",
            )
        values = {
            TableColumnId(self._table_id, key): row[position]
            for position, key in enumerate(sorted(table.primary_keys), start=1)
        }
        return ResultSet([ResultTuple(values)])