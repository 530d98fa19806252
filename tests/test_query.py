import pytest

from sqlitemodel.query import Query, QueryMode, QuerySequence, QueryVisitor, SqlQuery


class _Statement(Query):
    def __init__(self, sql):
        self.sql = sql

    def sql_query(self, schema, previous_results):
        return SqlQuery(self.sql)


class _Recorder(QueryVisitor):
    def __init__(self):
        self.events = []

    def visit_query(self, query):
        self.events.append(("query", query.sql))

    def visit_sequence(self, sequence):
        self.events.append(("sequence", len(sequence)))
        sequence.traverse(self)


def test_query_accept_visits_query():
    visitor = _Recorder()
    Query.accept(_Statement("SELECT 1;"), visitor)
    assert visitor.events == [("query", "SELECT 1;")]


def test_sequence_traverses_in_order_including_nested():
    inner = QuerySequence()
    inner.add_query(_Statement("b"))
    outer = QuerySequence()
    outer.add_query(_Statement("a"))
    outer.add_query(inner)
    outer.add_query(_Statement("c"))

    visitor = _Recorder()
    outer.accept(visitor)
    assert visitor.events == [
        ("sequence", 3),
        ("query", "a"),
        ("sequence", 1),
        ("query", "b"),
        ("query", "c"),
    ]


def test_sequence_len_and_getitem():
    sequence = QuerySequence()
    first = _Statement("x")
    second = _Statement("y")
    sequence.add_query(first)
    sequence.add_query(second)
    assert len(sequence) == 2
    assert sequence[0] is first
    assert sequence[1] is second
    assert list(sequence) == [first, second]


def test_getitem_out_of_range_raises():
    with pytest.raises(IndexError):
        QuerySequence()[0]


def test_prepare_adds_nothing():
    sequence = QuerySequence()
    sequence.add_query(_Statement("x"))
    sequence.prepare(schema=None)
    assert len(sequence) == 1


def test_default_query_results_are_invalid():
    results = Query.query_results(_Statement("x"), None, [])
    assert results.is_valid() is False
    assert results.num_results() == 0
    assert results.has_next() is False


def test_sql_query_defaults_to_single_mode():
    query = SqlQuery("DELETE FROM 't';")
    assert query.mode is QueryMode.SINGLE
    assert query.parameters == []
    assert query.sql == "DELETE FROM 't';"


def test_query_is_abstract():
    with pytest.raises(TypeError):
        Query()


def test_visitor_is_abstract():
    with pytest.raises(TypeError):
        QueryVisitor()