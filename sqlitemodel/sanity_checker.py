"""Checks that table, relationship and column ids exist in a schema."""

from __future__ import annotations

from typing import Mapping

from .exceptions import DatabaseException, ErrorType
from .schema_types import Relationship, Table


class SanityChecker:
    """Raises when an id is unknown; works on live references to the schema maps."""

    def __init__(self, tables: Mapping[int, Table], relationships: Mapping[int, Relationship]) -> None:
        self._tables = tables
        self._relationships = relationships

    def check_table_exists(self, table_id: int) -> None:
        if table_id not in self._tables:
            raise DatabaseException(ErrorType.INVALID_ID, f"Unknown table id: {table_id}.")

    def check_relationship_exists(self, relationship_id: int) -> None:
        if relationship_id not in self._relationships:
            raise DatabaseException(
                ErrorType.INVALID_ID, f"Unknown relationship id: {relationship_id}."
            )

    def check_column_exists(self, table: Table, column_id: int) -> None:
        if column_id not in table.columns:
            raise DatabaseException(
                ErrorType.INVALID_ID,
                f"Unknown column id {column_id} in table '{table.name}'.",
            )