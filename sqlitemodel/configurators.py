"""Fluent configurators for indices and relationships."""

from __future__ import annotations

from typing import Iterable

from .exceptions import DatabaseException, ErrorType
from .schema_types import ForeignKeyAction, Index, Relationship


class IndexConfigurator:
    """Configures an index; each setting may be given once."""

    def __init__(self, index: Index) -> None:
        self._index = index
        self._columns_configured = False
        self._unique_configured = False

    def columns(self, column_ids: Iterable[int]) -> "IndexConfigurator":
        if self._columns_configured:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "columns() should only be called once.")
        ids = list(column_ids)
        if not ids:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX, "columns() must specify at least one column id."
            )
        self._index.column_ids = ids
        self._columns_configured = True
        return self

    def unique(self) -> "IndexConfigurator":
        if self._unique_configured:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "unique() should only be called once.")
        self._index.is_unique = True
        self._unique_configured = True
        return self


class RelationshipConfigurator:
    """Configures foreign key actions and indexing of a relationship."""

    def __init__(self, relationship: Relationship) -> None:
        self._relationship = relationship
        self._on_delete_called = False
        self._on_update_called = False
        self._indexing_called = False

    def on_delete(self, action: ForeignKeyAction) -> "RelationshipConfigurator":
        if self._on_delete_called:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX,
                "onDelete() should only be called once for a relationship.",
            )
        self._relationship.on_delete_action = action
        self._on_delete_called = True
        return self

    def on_update(self, action: ForeignKeyAction) -> "RelationshipConfigurator":
        if self._on_update_called:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX,
                "onUpdate() should only be called once for a relationship.",
            )
        self._relationship.on_update_action = action
        self._on_update_called = True
        return self

    def enable_foreign_key_indexing(self) -> "RelationshipConfigurator":
        if self._indexing_called:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX,
                "enableForeignKeyIndexing() should only be called once for a relationship.",
            )
        self._relationship.foreign_key_indexing_enabled = True
        self._indexing_called = True
        return self