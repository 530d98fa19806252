"""A SQLite database whose tables are created from a configured schema."""

from __future__ import annotations

import sqlite3
from typing import Any, Optional, Union

from .ddl import CreateIndex, CreateTable
from .exceptions import DatabaseException, ErrorType
from .expr import Expr
from .from_table import FromTable
from .insert import InsertInto
from .query import Query, QuerySequence
from .result_set import ResultSet
from .schema import Schema
from .schema_configurator import SchemaConfigurator
from .schema_types import Column, DataType, Table, TableColumnId
from .visitors import QueryExecuteVisitor, QueryPrepareVisitor

SCHEMA_VERSION = 1

VERSION_TABLE_ID = 2**31 - 1
VERSION_COLUMN_ID = 0
VERSION_TABLE_NAME = "database_version"

DEFAULT_DATABASE_NAME = "default"

_MASTER_TABLE_ID = 0
_MASTER_TYPE_COLUMN_ID = 0
_MASTER_NAME_COLUMN_ID = 1

QueryElement = Union[Query, QuerySequence]


def _verify_primary_keys(table: Table) -> None:
    for key in table.primary_keys:
        if key not in table.columns:
            raise DatabaseException(
                ErrorType.INVALID_ID,
                f"Invalid primary key specified for table '{table.name}'",
            )


class Database:
    """Opens a SQLite file, creates the schema's tables once and runs queries in transactions."""

    def __init__(self) -> None:
        self._connection: Optional[sqlite3.Connection] = None
        self._schema: Optional[Schema] = None
        self.database_name = DEFAULT_DATABASE_NAME

    def initialize(
        self,
        schema_configurator: SchemaConfigurator,
        file_name: str,
        database_name: str = DEFAULT_DATABASE_NAME,
    ) -> None:
        """Finish the schema, open the file and create the tables if they do not exist yet."""
        if self._connection is not None:
            raise DatabaseException(ErrorType.UNABLE_TO_LOAD, "Database is already initialized.")

        self.database_name = database_name

        schema_configurator.add_table(
            VERSION_TABLE_ID,
            Table(
                name=VERSION_TABLE_NAME,
                columns={VERSION_COLUMN_ID: Column("version", DataType.INTEGER, not_null=True)},
                primary_keys={VERSION_COLUMN_ID},
            ),
        )

        schema = schema_configurator.take_schema()
        schema.configure_relationships()
        schema.validate_and_prepare_indices()
        self._schema = schema

        self._load_database_file(file_name)

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def exec_query(self, query: QueryElement) -> ResultSet:
        """Run a query or sequence in one transaction and return the last valid results."""
        if self._schema is None:
            raise DatabaseException(
                ErrorType.UNEXPECTED_ERROR, "Database is not yet initialized."
            )
        return self._exec_query_for_schema(self._schema, query)

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _load_database_file(self, file_name: str) -> None:
        try:
            self._connection = sqlite3.connect(file_name, isolation_level=None)
        except sqlite3.Error as error:
            raise DatabaseException(
                ErrorType.UNABLE_TO_LOAD, f"Could not load database file: {file_name}."
            ) from error

        if not self._is_version_table_existing():
            self._create_or_migrate_tables(0)
            return

        current_version = self._query_database_version()
        if current_version <= 0:
            raise DatabaseException(ErrorType.UNABLE_TO_LOAD, "Could not query version.")
        if current_version < SCHEMA_VERSION:
            self._create_or_migrate_tables(current_version)
        elif current_version > SCHEMA_VERSION:
            raise DatabaseException(ErrorType.UNABLE_TO_LOAD, "DB version newer than expected.")

    def _query_database_version(self) -> int:
        results = self.exec_query(FromTable(VERSION_TABLE_ID).select([VERSION_COLUMN_ID]))
        if not results.has_next():
            return -1
        return int(results.next()[TableColumnId(VERSION_TABLE_ID, VERSION_COLUMN_ID)])

    def _create_or_migrate_tables(self, current_version: int) -> None:
        assert self._schema is not None
        for version in range(current_version + 1, SCHEMA_VERSION + 1):
            if version == 1:
                sequence = QuerySequence()
                for _, table in sorted(self._schema.tables.items()):
                    _verify_primary_keys(table)
                    sequence.add_query(CreateTable(table))
                for index in self._schema.indices:
                    sequence.add_query(CreateIndex(index))
                sequence.add_query(
                    InsertInto(VERSION_TABLE_ID).value(VERSION_COLUMN_ID, SCHEMA_VERSION)
                )
                self.exec_query(sequence)

    def _exec_query_for_schema(self, schema: Any, query: QueryElement) -> ResultSet:
        if self._connection is None or self._schema is None:
            raise DatabaseException(
                ErrorType.UNEXPECTED_ERROR, "Database is not yet initialized."
            )

        query.accept(QueryPrepareVisitor(schema))
        execute_visitor = QueryExecuteVisitor(self._connection, schema)

        self._connection.execute("BEGIN")
        try:
            query.accept(execute_visitor)
        except Exception:
            self._connection.execute("ROLLBACK")
            raise
        self._connection.execute("COMMIT")

        return execute_visitor.last_results()

    def _is_version_table_existing(self) -> bool:
        master_schema = Schema()
        master_schema.tables[_MASTER_TABLE_ID] = Table(
            name="sqlite_master",
            columns={
                _MASTER_TYPE_COLUMN_ID: Column("type"),
                _MASTER_NAME_COLUMN_ID: Column("name"),
            },
        )
        query = (
            FromTable(_MASTER_TABLE_ID)
            .select([_MASTER_NAME_COLUMN_ID])
            .where(
                Expr()
                .equal(_MASTER_TYPE_COLUMN_ID, "table")
                .op_and()
                .equal(_MASTER_NAME_COLUMN_ID, VERSION_TABLE_NAME)
            )
        )
        return self._exec_query_for_schema(master_schema, query).has_next()