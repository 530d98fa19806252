from enum import Enum, IntEnum

import pytest

from sqlitemodel.schema_types import (
    Column,
    ColumnID,
    DataType,
    ForeignKeyAction,
    Index,
    Relationship,
    RelationshipTableId,
    RelationshipType,
    Table,
    TableColumnId,
    column_ref,
    id_list,
    id_value,
    table_column_ref,
)


class Tables(IntEnum):
    PERSON = 0
    PET = 4


class Named(Enum):
    BAD = "x"


def test_table_column_id_orders_by_table_then_column():
    a = TableColumnId(1, 5)
    b = TableColumnId(2, 0)
    c = TableColumnId(1, 2)
    assert sorted([a, b, c]) == [c, a, b]
    assert a < b
    assert not (b < a)


def test_table_column_id_equality_and_hashing():
    assert TableColumnId(3, 4) == TableColumnId(3, 4)
    assert TableColumnId(3, 4) != TableColumnId(4, 3)
    values = {TableColumnId(3, 4): "v"}
    assert values[TableColumnId(3, 4)] == "v"


def test_relationship_table_id_orders_by_relationship_first():
    x = RelationshipTableId(1, 9)
    y = RelationshipTableId(2, 0)
    assert sorted([y, x]) == [x, y]
    assert RelationshipTableId(1, 1) < RelationshipTableId(1, 2)


def test_id_value_accepts_ints_and_enums():
    assert id_value(7) == 7
    assert id_value(Tables.PET) == int(Tables.PET)


def test_id_value_rejects_non_integer():
    with pytest.raises(TypeError):
        id_value("1")
    with pytest.raises(TypeError):
        id_value(Named.BAD)
    with pytest.raises(TypeError):
        id_value(True)


def test_id_list_preserves_order():
    assert id_list(Tables.PET, 2, Tables.PERSON) == [int(Tables.PET), 2, int(Tables.PERSON)]
    assert id_list(5) == [5]


def test_id_list_requires_an_argument():
    with pytest.raises(TypeError):
        id_list()


def test_default_column_id_has_no_valid_table():
    ref = ColumnID()
    assert ref.table_id_valid is False
    assert ref.table_column_id == TableColumnId(0, 0)
    assert ref.table_alias == ""


def test_column_ref_is_bound_to_default_table():
    ref = column_ref(Tables.PET)
    assert ref.table_id_valid is False
    assert ref.table_column_id.column_id == int(Tables.PET)


def test_table_column_ref_with_alias():
    ref = table_column_ref(2, 3, "alias")
    assert ref.table_id_valid is True
    assert ref.table_column_id == TableColumnId(2, 3)
    assert ref.table_alias == "alias"
    assert table_column_ref(2, 3).table_alias == ""


def test_defaults_of_data_structures():
    column = Column()
    assert column.type is DataType.INTEGER
    assert not (column.auto_increment or column.not_null or column.unique)
    rel = Relationship()
    assert rel.type is RelationshipType.ONE_TO_MANY
    assert rel.on_delete_action is ForeignKeyAction.NO_ACTION
    assert Index().column_ids == []


def test_tables_do_not_share_mutable_state():
    first = Table()
    second = Table()
    first.columns[0] = Column(name="id")
    first.primary_keys.add(0)
    assert second.columns == {}
    assert second.primary_keys == set()