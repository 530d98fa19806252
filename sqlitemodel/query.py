"""Query elements, query sequences and the visitor interface that walks them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Iterable, Iterator, List, Sequence, Union

from .result_set import ResultSet, invalid_results


class QueryMode(Enum):
    SINGLE = auto()
    BATCH = auto()


@dataclass
class SqlQuery:
    """SQL text with its bound parameters and how to execute it.

    In batch mode ``parameters`` holds one list of values per column.
    """

    sql: str
    parameters: List[Any] = field(default_factory=list)
    mode: QueryMode = QueryMode.SINGLE


class QueryVisitor(ABC):
    """Visitor over single queries and query sequences."""

    @abstractmethod
    def visit_query(self, query: "Query") -> None:
        ...

    @abstractmethod
    def visit_sequence(self, sequence: "QuerySequence") -> None:
        ...


class Query(ABC):
    """A single SQL statement."""

    def accept(self, visitor: QueryVisitor) -> None:
        visitor.visit_query(self)

    @abstractmethod
    def sql_query(self, schema: Any, previous_results: ResultSet) -> SqlQuery:
        """Build the statement for the given schema and the results of earlier queries."""

    def query_results(self, schema: Any, rows: Iterable[Sequence[Any]]) -> ResultSet:
        """Turn the fetched rows into results; statements without results return an invalid set."""
        return invalid_results()


QueryElement = Union[Query, "QuerySequence"]


class QuerySequence:
    """An ordered list of queries and nested sequences run one after another."""

    def __init__(self) -> None:
        self._elements: List[QueryElement] = []

    def accept(self, visitor: QueryVisitor) -> None:
        visitor.visit_sequence(self)

    def add_query(self, query: QueryElement) -> None:
        self._elements.append(query)

    def prepare(self, schema: Any) -> None:
        """Add the queries this sequence needs; a plain sequence needs none."""

    def traverse(self, visitor: QueryVisitor) -> None:
        for element in self._elements:
            element.accept(visitor)

    def __len__(self) -> int:
        return len(self._elements)

    def __getitem__(self, index: int) -> QueryElement:
        return self._elements[index]

    def __iter__(self) -> Iterator[QueryElement]:
        return iter(self._elements)