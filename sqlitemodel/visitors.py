"""Visitors that prepare query sequences and run queries against a connection."""

from __future__ import annotations

import sqlite3
from typing import Any, List, Sequence

from .exceptions import DatabaseException, ErrorType
from .query import Query, QueryMode, QuerySequence, QueryVisitor
from .result_set import ResultSet, invalid_results


class QueryPrepareVisitor(QueryVisitor):
    """Lets every sequence add its queries before anything is executed."""

    def __init__(self, schema: Any) -> None:
        self._schema = schema

    def visit_query(self, query: Query) -> None:
        """Single queries need no preparation."""

    def visit_sequence(self, sequence: QuerySequence) -> None:
        sequence.prepare(self._schema)
        sequence.traverse(self)


def _batch_rows(columns: Sequence[Sequence[Any]]) -> List[tuple]:
    lengths = {len(column) for column in columns}
    if len(lengths) > 1:
        raise DatabaseException(
            ErrorType.QUERY_ERROR,
            "Could not execute query: batch columns differ in length.",
        )
    return list(zip(*columns))


class QueryExecuteVisitor(QueryVisitor):
    """Executes queries in order, passing each the last valid results."""

    def __init__(self, connection: sqlite3.Connection, schema: Any) -> None:
        self._connection = connection
        self._schema = schema
        self._last_results: ResultSet = invalid_results()

    def visit_query(self, query: Query) -> None:
        statement = query.sql_query(self._schema, self._last_results)
        try:
            if statement.mode is QueryMode.BATCH:
                cursor = self._connection.executemany(
                    statement.sql, _batch_rows(statement.parameters)
                )
            else:
                cursor = self._connection.execute(statement.sql, statement.parameters)
            rows = cursor.fetchall()
        except sqlite3.Error as error:
            raise DatabaseException(
                ErrorType.QUERY_ERROR, f"Could not execute query: {error}"
            ) from error

        results = query.query_results(self._schema, rows)
        if results.is_valid():
            self._last_results = results

    def visit_sequence(self, sequence: QuerySequence) -> None:
        sequence.traverse(self)

    def last_results(self) -> ResultSet:
        return self._last_results