"""DELETE statements with an optional WHERE expression."""

from __future__ import annotations

from typing import Any, Optional

from .exceptions import DatabaseException, ErrorType
from .expr import Expr
from .query import Query, SqlQuery
from .result_set import ResultSet
from .schema_types import IdLike, id_value


class DeleteFrom(Query):
    """Deletes the rows of a table, optionally only those matching an expression."""

    def __init__(self, table_id: IdLike) -> None:
        self._table_id = id_value(table_id)
        self._where: Optional[Expr] = None

    def where(self, expr: Expr) -> "DeleteFrom":
        if self._where is not None:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "where() should only be called once.")
        self._where = expr
        return self

    def sql_query(self, schema: Any, previous_results: ResultSet) -> SqlQuery:
        schema.sanity_checker.check_table_exists(self._table_id)
        table = schema.tables[self._table_id]

        sql = f"DELETE FROM '{table.name}'"
        if self._where is not None:
            sql += f" WHERE {self._where.to_sql(schema, self._table_id)}"
        return SqlQuery(sql + ";")