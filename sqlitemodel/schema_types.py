"""Plain data types describing tables, columns, relationships and indices."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Set, Union


@dataclass(frozen=True, order=True)
class TableColumnId:
    """A column identified by its table id and column id."""

    table_id: int = 0
    column_id: int = 0


@dataclass(frozen=True, order=True)
class RelationshipTableId:
    """A table taking part in a relationship."""

    relationship_id: int = 0
    table_id: int = 0


PrimaryForeignKeyColumnIdMap = Dict[TableColumnId, int]
TupleValues = Dict[TableColumnId, Any]


class ForeignKeyAction(Enum):
    NO_ACTION = auto()
    RESTRICT = auto()
    SET_NULL = auto()
    SET_DEFAULT = auto()
    CASCADE = auto()


class DataType(Enum):
    INTEGER = auto()
    REAL = auto()
    VARCHAR = auto()
    TEXT = auto()
    BLOB = auto()


class RelationshipType(Enum):
    ONE_TO_MANY = auto()
    MANY_TO_ONE = auto()
    MANY_TO_MANY = auto()


class ComparisonOperator(Enum):
    EQUAL = auto()
    UNEQUAL = auto()
    LESS_EQUAL = auto()
    LESS = auto()
    GREATER_EQUAL = auto()
    GREATER = auto()
    IS_NULL = auto()


class LogicalOperator(Enum):
    AND = auto()
    OR = auto()


@dataclass
class Column:
    name: str = ""
    type: DataType = DataType.INTEGER
    varchar_length: int = 0
    auto_increment: bool = False
    not_null: bool = False
    unique: bool = False


@dataclass
class ForeignKeyReference:
    reference_table_id: int = 0
    on_update_action: ForeignKeyAction = ForeignKeyAction.NO_ACTION
    on_delete_action: ForeignKeyAction = ForeignKeyAction.NO_ACTION
    primary_foreign_key_col_id_map: PrimaryForeignKeyColumnIdMap = field(default_factory=dict)


@dataclass
class Table:
    name: str = ""
    columns: Dict[int, Column] = field(default_factory=dict)
    relationship_to_foreign_key_references_map: Dict[
        RelationshipTableId, List[ForeignKeyReference]
    ] = field(default_factory=dict)
    primary_keys: Set[int] = field(default_factory=set)
    unique_col_ids: Set[int] = field(default_factory=set)


@dataclass
class Relationship:
    table_from_id: int = 0
    table_to_id: int = 0
    type: RelationshipType = RelationshipType.ONE_TO_MANY
    on_update_action: ForeignKeyAction = ForeignKeyAction.NO_ACTION
    on_delete_action: ForeignKeyAction = ForeignKeyAction.NO_ACTION
    foreign_key_indexing_enabled: bool = False


@dataclass
class Index:
    table_id: int = 0
    name: str = ""
    column_ids: List[int] = field(default_factory=list)
    is_unique: bool = False


@dataclass(frozen=True)
class ColumnID:
    """Reference to a column, optionally bound to a table and a table alias."""

    table_column_id: TableColumnId = TableColumnId(0, 0)
    table_id_valid: bool = False
    table_alias: str = ""


IdLike = Union[int, Enum]


def id_value(value: IdLike) -> int:
    """Return the integer id of an int or an enum member with an int value."""
    raw = value.value if isinstance(value, Enum) else value
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise TypeError(f"An id must be an integer or an integer enum, got {value!r}.")
    return int(raw)


def id_list(*args: IdLike) -> List[int]:
    """Return the integer ids of all arguments, in order."""
    if not args:
        raise TypeError("id_list() needs at least one id.")
    return [id_value(arg) for arg in args]


def column_ref(column_id: IdLike) -> ColumnID:
    """Reference a column of the query's default table."""
    return ColumnID(TableColumnId(0, id_value(column_id)), False, "")


def table_column_ref(table_id: IdLike, column_id: IdLike, table_alias: str = "") -> ColumnID:
    """Reference a column of an explicit table, optionally through an alias."""
    return ColumnID(TableColumnId(id_value(table_id), id_value(column_id)), True, table_alias)