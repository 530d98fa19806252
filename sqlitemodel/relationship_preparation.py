"""Works out which rows and columns change when tuples of a relationship are linked."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, List, Sequence

from .exceptions import DatabaseException, ErrorType
from .schema_types import (
    ForeignKeyReference,
    IdLike,
    PrimaryForeignKeyColumnIdMap,
    Relationship,
    RelationshipTableId,
    RelationshipType,
    TableColumnId,
    TupleValues,
    id_value,
)


class RemainingKeysMode(Enum):
    """Which key values come from the results of the previous query."""

    NO_REMAINING_KEYS = auto()
    REMAINING_PRIMARY_KEYS = auto()
    REMAINING_FOREIGN_KEYS = auto()


@dataclass
class AffectedTuple:
    """Foreign key values to write and the key values of the row that receives them."""

    foreign_key_values: TupleValues = field(default_factory=dict)
    child_key_values: TupleValues = field(default_factory=dict)


@dataclass
class AffectedData:
    """The table that changes when linking tuples, and the tuples that change in it."""

    table_id: int
    is_link_table: bool
    remaining_keys_mode: RemainingKeysMode
    primary_foreign_key_col_id_map: PrimaryForeignKeyColumnIdMap
    affected_tuples: List[AffectedTuple] = field(default_factory=list)


class _ExpectedCall(Enum):
    FROM = auto()
    TO = auto()
    COMPLETE = auto()


def _corrupted() -> DatabaseException:
    return DatabaseException(
        ErrorType.UNEXPECTED_ERROR, "Foreign key references table seems to be corrupted."
    )


class RelationshipPreparationData:
    """Collects the tuples to link over a relationship: one "from" tuple, one or many "to"."""

    def __init__(self, relationship_id: IdLike) -> None:
        self._relationship_id = id_value(relationship_id)
        self._to_many = False
        self._expected = _ExpectedCall.FROM
        self._remaining_from_keys = False
        self._from_key_values: TupleValues = {}
        self._to_key_values_list: List[TupleValues] = []

    def from_one(self, tuple_key_values: TupleValues) -> None:
        if self._expected is not _ExpectedCall.FROM:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "fromOne() call not expected.")
        self._from_key_values = dict(tuple_key_values)
        self._expected = _ExpectedCall.TO

    def from_remaining_key(self) -> None:
        """Take the "from" keys from the results of the previous query."""
        if self._expected is not _ExpectedCall.FROM:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "fromOne() call not expected.")
        self._remaining_from_keys = True
        self._expected = _ExpectedCall.TO

    def to_one(self, tuple_key_values: TupleValues) -> None:
        if self._expected is not _ExpectedCall.TO:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "toOne() call not expected.")
        self._to_many = False
        self._to_key_values_list.append(dict(tuple_key_values))
        self._expected = _ExpectedCall.COMPLETE

    def to_many(self, tuple_key_values_list: Sequence[TupleValues]) -> None:
        if self._expected is not _ExpectedCall.TO:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "toMany() call not expected.")
        self._to_many = True
        self._to_key_values_list = [dict(values) for values in tuple_key_values_list]
        self._expected = _ExpectedCall.COMPLETE

    def resolve_affected_table_data(self, schema: Any) -> AffectedData:
        """Validate the collected keys against the schema and return what has to change."""
        if self._expected is not _ExpectedCall.COMPLETE:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "LinkTuples query incomplete.")
        if not self._remaining_from_keys and not self._from_key_values:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "From key must not be empty.")

        schema.sanity_checker.check_relationship_exists(self._relationship_id)
        relationship = schema.relationships[self._relationship_id]

        if self._to_many:
            from_id, to_id = schema.verify_one_to_many_relationship(
                self._relationship_id, self._from_key_values, self._to_key_values_list
            )
        else:
            from_id, to_id = schema.verify_one_to_one_relationship(
                self._relationship_id, self._from_key_values, self._to_key_values_list[0]
            )

        if relationship.type is RelationshipType.MANY_TO_MANY:
            return self._link_table_data(schema, from_id, to_id)
        return self._child_table_data(schema, relationship, from_id, to_id)

    def _child_table_data(
        self, schema: Any, relationship: Relationship, from_id: int, to_id: int
    ) -> AffectedData:
        parent_id, child_id = relationship.table_from_id, relationship.table_to_id
        if relationship.type is RelationshipType.MANY_TO_ONE:
            parent_id, child_id = child_id, parent_id

        correct_direction = parent_id == from_id or from_id == to_id
        key_values_to_insert = (
            self._from_key_values if correct_direction else self._to_key_values_list[0]
        )
        affected_child_keys = (
            self._to_key_values_list if correct_direction else [self._from_key_values]
        )

        child_table = schema.tables[child_id]
        references = child_table.relationship_to_foreign_key_references_map.get(
            RelationshipTableId(self._relationship_id, parent_id), []
        )

        remaining_foreign = self._remaining_from_keys and (
            parent_id == from_id or to_id == from_id
        )
        remaining_child = self._remaining_from_keys and child_id == from_id and to_id != from_id

        if len(references) != 1:
            raise _corrupted()

        if remaining_foreign:
            mode = RemainingKeysMode.REMAINING_FOREIGN_KEYS
        elif remaining_child:
            mode = RemainingKeysMode.REMAINING_PRIMARY_KEYS
        else:
            mode = RemainingKeysMode.NO_REMAINING_KEYS

        data = AffectedData(child_id, False, mode, references[0].primary_foreign_key_col_id_map)
        for child_keys in affected_child_keys:
            affected = AffectedTuple()
            if not remaining_foreign:
                affected.foreign_key_values = dict(key_values_to_insert)
            if not remaining_child:
                affected.child_key_values = dict(child_keys)
            data.affected_tuples.append(affected)
        return data

    def _link_table_data(self, schema: Any, from_id: int, to_id: int) -> AffectedData:
        link_table_id = schema.many_to_many_link_table_id(self._relationship_id)
        link_table = schema.tables[link_table_id]
        references = link_table.relationship_to_foreign_key_references_map
        self_relationship = from_id == to_id

        refs_from = references.get(RelationshipTableId(self._relationship_id, from_id), [])
        refs_to = references.get(RelationshipTableId(self._relationship_id, to_id), [])

        if (self_relationship and len(refs_from) != 2) or (
            not self_relationship and (len(refs_from) != 1 or len(refs_to) != 1)
        ):
            raise _corrupted()

        ref_from = refs_from[0]
        ref_to = refs_to[1] if self_relationship else refs_to[0]

        def link_values(values: TupleValues, reference: ForeignKeyReference) -> TupleValues:
            key_map = reference.primary_foreign_key_col_id_map
            return {
                TableColumnId(link_table_id, key_map[key]): value
                for key, value in values.items()
                if key in key_map
            }

        mode = (
            RemainingKeysMode.REMAINING_FOREIGN_KEYS
            if self._remaining_from_keys
            else RemainingKeysMode.NO_REMAINING_KEYS
        )
        data = AffectedData(link_table_id, True, mode, ref_from.primary_foreign_key_col_id_map)
        for to_values in self._to_key_values_list:
            child_values = link_values(self._from_key_values, ref_from)
            child_values.update(link_values(to_values, ref_to))
            data.affected_tuples.append(AffectedTuple(child_key_values=child_values))
        return data