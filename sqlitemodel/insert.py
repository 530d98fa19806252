"""INSERT statements: single rows, batches and rows carrying foreign keys."""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Iterable, List

from .exceptions import DatabaseException, ErrorType
from .query import Query, QueryMode, SqlQuery
from .result_set import ResultSet
from .schema_types import IdLike, PrimaryForeignKeyColumnIdMap, id_value


class BaseInsert(Query):
    """An INSERT into one table with a list of distinct columns bound to placeholders."""

    def __init__(self, table_id: IdLike) -> None:
        self._table_id = id_value(table_id)
        self._column_ids: List[int] = []

    def add_column_id(self, column_id: IdLike) -> None:
        """Add a column to the statement; each column may be given once."""
        cid = id_value(column_id)
        if cid in self._column_ids:
            raise DatabaseException(
                ErrorType.INVALID_ID, f"More than one column with id {cid} specified."
            )
        self._column_ids.append(cid)

    def _build_sql(self, schema: Any) -> str:
        schema.sanity_checker.check_table_exists(self._table_id)
        table = schema.tables[self._table_id]

        names = []
        for cid in self._column_ids:
            schema.sanity_checker.check_column_exists(table, cid)
            names.append(f"'{table.columns[cid].name}'")

        columns = ", ".join(names)
        placeholders = ", ".join("?" for _ in names)
        return f"INSERT INTO '{table.name}' ({columns}) VALUES ({placeholders});"

    @abstractmethod
    def _parameters(self) -> List[Any]:
        """Values bound to the placeholders, in column order."""


class InsertInto(BaseInsert):
    """Inserts a single row."""

    def __init__(self, table_id: IdLike) -> None:
        super().__init__(table_id)
        self._values: List[Any] = []

    def value(self, column_id: IdLike, value: Any) -> "InsertInto":
        self.add_column_id(column_id)
        self._values.append(value)
        return self

    def _parameters(self) -> List[Any]:
        return list(self._values)

    def sql_query(self, schema: Any, previous_results: ResultSet) -> SqlQuery:
        return SqlQuery(self._build_sql(schema), self._parameters(), QueryMode.SINGLE)


class BatchInsertInto(BaseInsert):
    """Inserts many rows at once; each column gets a list of values."""

    def __init__(self, table_id: IdLike) -> None:
        super().__init__(table_id)
        self._values: List[List[Any]] = []

    def values(self, column_id: IdLike, values: Iterable[Any]) -> "BatchInsertInto":
        self.add_column_id(column_id)
        self._values.append(list(values))
        return self

    def _parameters(self) -> List[Any]:
        return [list(column_values) for column_values in self._values]

    def sql_query(self, schema: Any, previous_results: ResultSet) -> SqlQuery:
        return SqlQuery(self._build_sql(schema), self._parameters(), QueryMode.BATCH)


class InsertIntoReferences(InsertInto):
    """A single-row insert whose foreign key values are bound after the plain values."""

    def __init__(self, table_id: IdLike) -> None:
        super().__init__(table_id)
        self._foreign_key_values: List[Any] = []

    def add_foreign_key_value(self, value: Any) -> None:
        self._foreign_key_values.append(value)

    def _parameters(self) -> List[Any]:
        return super()._parameters() + list(self._foreign_key_values)


class BatchInsertRemainingKeys(BatchInsertInto):
    """A batch insert that takes its foreign key values from the previous query's results."""

    def __init__(
        self,
        table_id: IdLike,
        num_relations: int,
        primary_foreign_key_map: PrimaryForeignKeyColumnIdMap,
    ) -> None:
        super().__init__(table_id)
        self._num_relations = num_relations
        self._primary_foreign_key_map = primary_foreign_key_map

    def sql_query(self, schema: Any, previous_results: ResultSet) -> SqlQuery:
        if not previous_results.is_valid() or not previous_results.has_next():
            raise DatabaseException(
                ErrorType.UNEXPECTED_ERROR, "Expected previous query results."
            )

        previous_values = previous_results.next()
        for key in sorted(previous_values):
            if key not in self._primary_foreign_key_map:
                raise DatabaseException(ErrorType.UNEXPECTED_ERROR, "Missing foreign key ref.")
            self.values(
                self._primary_foreign_key_map[key],
                [previous_values[key]] * self._num_relations,
            )

        previous_results.reset_iteration()
        return super().sql_query(schema, previous_results)