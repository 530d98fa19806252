import sqlite3

import pytest

from sqlitemodel.exceptions import DatabaseException, ErrorType
from sqlitemodel.query import Query, QueryMode, QuerySequence, SqlQuery
from sqlitemodel.result_set import ResultSet, ResultTuple, invalid_results
from sqlitemodel.visitors import QueryExecuteVisitor, QueryPrepareVisitor


class _Statement(Query):
    def __init__(self, sql, parameters=(), mode=QueryMode.SINGLE, collect=False):
        self.sql = sql
        self.parameters = list(parameters)
        self.mode = mode
        self.collect = collect
        self.seen_previous = None

    def sql_query(self, schema, previous_results):
        self.seen_previous = previous_results
        return SqlQuery(self.sql, self.parameters, self.mode)

    def query_results(self, schema, rows):
        if not self.collect:
            return invalid_results()
        return ResultSet([ResultTuple({"row": tuple(row)}) for row in rows])


class _GrowingSequence(QuerySequence):
    def __init__(self, child):
        super().__init__()
        self.child = child
        self.prepared_with = None

    def prepare(self, schema):
        self.prepared_with = schema
        self.add_query(self.child)


@pytest.fixture
def connection():
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE t (a INTEGER, b INTEGER)")
    yield conn
    conn.close()


def test_prepare_visitor_prepares_nested_sequences():
    inner = _GrowingSequence(_Statement("SELECT 1"))
    outer = _GrowingSequence(inner)
    schema = object()

    outer.accept(QueryPrepareVisitor(schema))

    assert outer.prepared_with is schema
    assert inner.prepared_with is schema
    assert len(outer) == 1 and outer[0] is inner
    assert len(inner) == 1


def test_batch_insert_transposes_columns(connection):
    visitor = QueryExecuteVisitor(connection, None)
    _Statement("INSERT INTO t (a, b) VALUES (?, ?)", [[1, 2], [3, 4]], QueryMode.BATCH).accept(
        visitor
    )
    rows = connection.execute("SELECT a, b FROM t ORDER BY a").fetchall()
    assert rows == [(1, 3), (2, 4)]


def test_batch_columns_of_different_length_fail(connection):
    visitor = QueryExecuteVisitor(connection, None)
    query = _Statement("INSERT INTO t (a, b) VALUES (?, ?)", [[1, 2], [3]], QueryMode.BATCH)
    with pytest.raises(DatabaseException) as info:
        query.accept(visitor)
    assert info.value.error_type is ErrorType.QUERY_ERROR


def test_failing_statement_raises_query_error(connection):
    visitor = QueryExecuteVisitor(connection, None)
    with pytest.raises(DatabaseException) as info:
        _Statement("SELECT * FROM missing_table").accept(visitor)
    assert info.value.error_type is ErrorType.QUERY_ERROR
    assert info.value.message.startswith("Could not execute query:")


def test_results_pass_to_following_queries(connection):
    visitor = QueryExecuteVisitor(connection, None)
    sequence = QuerySequence()
    sequence.add_query(_Statement("INSERT INTO t (a, b) VALUES (?, ?)", [5, 6]))
    select = _Statement("SELECT a, b FROM t", collect=True)
    sequence.add_query(select)
    after = _Statement("DELETE FROM t")
    sequence.add_query(after)

    sequence.accept(visitor)

    assert after.seen_previous is visitor.last_results()
    results = visitor.last_results()
    assert results.is_valid()
    assert results.next() == {"row": (5, 6)}


def test_initial_results_are_invalid(connection):
    visitor = QueryExecuteVisitor(connection, None)
    first = _Statement("SELECT 1")
    first.accept(visitor)
    assert first.seen_previous.is_valid() is False
    assert visitor.last_results().is_valid() is False