"""Builds a schema from tables, relationships and indices."""

from __future__ import annotations

from typing import Optional

from .configurators import IndexConfigurator, RelationshipConfigurator
from .exceptions import DatabaseException, ErrorType
from .schema import Schema
from .schema_types import IdLike, Index, Relationship, RelationshipType, Table, id_value


class SchemaConfigurator:
    """Collects the parts of a schema until it is taken."""

    def __init__(self) -> None:
        self._schema: Optional[Schema] = Schema()

    def _require_schema(self) -> Schema:
        if self._schema is None:
            raise DatabaseException(
                ErrorType.UNEXPECTED_ERROR, "The schema has already been taken."
            )
        return self._schema

    def add_table(self, table_id: IdLike, table: Table) -> Table:
        """Add a table under an id; names must be unique regardless of case."""
        schema = self._require_schema()
        tid = id_value(table_id)
        if tid in schema.tables:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, f"Table with id {tid} already exists.")
        if not table.name:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX, f"Table name with id {tid} must not be empty."
            )
        lowered = table.name.lower()
        if any(existing.name.lower() == lowered for existing in schema.tables.values()):
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX, f"Table with name '{table.name}' already exists."
            )
        if table.name.startswith("sqlite_"):
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX, "Table name must not start with 'sqlite_'."
            )
        schema.tables[tid] = table
        return table

    def configure_relationship(
        self,
        relationship_id: IdLike,
        table_from_id: IdLike,
        table_to_id: IdLike,
        relationship_type: RelationshipType,
    ) -> RelationshipConfigurator:
        """Add a relationship between two tables and return its configurator."""
        schema = self._require_schema()
        rel_id = id_value(relationship_id)
        from_id = id_value(table_from_id)
        to_id = id_value(table_to_id)
        if rel_id in schema.relationships:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX, f"Relationship with id {rel_id} already exists."
            )
        if from_id == to_id and relationship_type is RelationshipType.MANY_TO_ONE:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX,
                "The relationship type ManyToOne is not allowed for a relationship of a table "
                "that references itself due to possible ambiguity. Please use OneToMany instead.",
            )
        relationship = Relationship(from_id, to_id, relationship_type)
        schema.relationships[rel_id] = relationship
        return RelationshipConfigurator(relationship)

    def configure_index(self, table_id: IdLike) -> IndexConfigurator:
        """Add an index on a table and return its configurator."""
        schema = self._require_schema()
        index = Index(table_id=id_value(table_id))
        schema.indices.append(index)
        return IndexConfigurator(index)

    def take_schema(self) -> Schema:
        """Hand over the schema; the configurator cannot be used afterwards."""
        schema = self._require_schema()
        self._schema = None
        return schema