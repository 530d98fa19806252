import pytest

from sqlitemodel.exceptions import DatabaseException, ErrorType
from sqlitemodel.schema import Schema
from sqlitemodel.schema_types import (
    Column,
    DataType,
    Index,
    Relationship,
    RelationshipTableId,
    RelationshipType,
    Table,
    TableColumnId,
)

PARENT = 1
CHILD = 2
REL = 5


@pytest.fixture
def schema():
    s = Schema()
    s.tables[PARENT] = Table(
        name="parent",
        columns={0: Column("id", DataType.VARCHAR, 32), 1: Column("title", DataType.TEXT)},
        primary_keys={0},
    )
    s.tables[CHILD] = Table(
        name="child",
        columns={0: Column("id"), 1: Column("name", DataType.TEXT)},
        primary_keys={0},
    )
    return s


def parent_key(value=1):
    return {TableColumnId(PARENT, 0): value}


def child_key(value=1):
    return {TableColumnId(CHILD, 0): value}


def test_one_to_many_adds_foreign_key_column_to_child(schema):
    schema.relationships[REL] = Relationship(PARENT, CHILD, RelationshipType.ONE_TO_MANY)
    old_ids = set(schema.tables[CHILD].columns)
    schema.configure_relationships()

    child = schema.tables[CHILD]
    new_ids = set(child.columns) - old_ids
    assert len(new_ids) == 1
    new_id = new_ids.pop()
    column = child.columns[new_id]
    assert column.name == "rel_5_foreign_key_id"
    assert column.type is DataType.VARCHAR
    assert column.varchar_length == 32

    refs = child.relationship_to_foreign_key_references_map[RelationshipTableId(REL, PARENT)]
    assert len(refs) == 1
    assert refs[0].reference_table_id == PARENT
    assert refs[0].primary_foreign_key_col_id_map == {TableColumnId(PARENT, 0): new_id}
    assert schema.tables[PARENT].relationship_to_foreign_key_references_map == {}


def test_many_to_one_puts_foreign_key_into_from_table(schema):
    schema.relationships[REL] = Relationship(CHILD, PARENT, RelationshipType.MANY_TO_ONE)
    schema.configure_relationships()
    key = RelationshipTableId(REL, PARENT)
    assert key in schema.tables[CHILD].relationship_to_foreign_key_references_map
    assert len(schema.tables[PARENT].columns) == 2


def test_relationship_to_parent_without_primary_key_fails(schema):
    schema.tables[PARENT].primary_keys.clear()
    schema.relationships[REL] = Relationship(PARENT, CHILD, RelationshipType.ONE_TO_MANY)
    with pytest.raises(DatabaseException) as info:
        schema.configure_relationships()
    assert info.value.error_type is ErrorType.INVALID_SYNTAX


def test_relationship_to_unknown_table_fails(schema):
    schema.relationships[REL] = Relationship(PARENT, 99, RelationshipType.ONE_TO_MANY)
    with pytest.raises(DatabaseException) as info:
        schema.configure_relationships()
    assert info.value.error_type is ErrorType.INVALID_ID


def test_foreign_key_indexing_adds_index_on_child(schema):
    schema.relationships[REL] = Relationship(
        PARENT, CHILD, RelationshipType.ONE_TO_MANY, foreign_key_indexing_enabled=True
    )
    schema.configure_relationships()
    assert len(schema.indices) == 1
    index = schema.indices[0]
    assert index.table_id == CHILD
    refs = schema.tables[CHILD].relationship_to_foreign_key_references_map[
        RelationshipTableId(REL, PARENT)
    ]
    assert index.column_ids == list(refs[0].primary_foreign_key_col_id_map.values())


def test_many_to_many_creates_link_table(schema):
    schema.relationships[REL] = Relationship(
        PARENT, CHILD, RelationshipType.MANY_TO_MANY, foreign_key_indexing_enabled=True
    )
    schema.configure_relationships()

    link_id = schema.many_to_many_link_table_id(REL)
    assert link_id not in (PARENT, CHILD)
    link = schema.tables[link_id]
    assert link.name == "rel_5_link_parent_to_child"
    assert link.primary_keys == set(link.columns)
    assert set(link.relationship_to_foreign_key_references_map) == {
        RelationshipTableId(REL, PARENT),
        RelationshipTableId(REL, CHILD),
    }
    assert len(schema.indices) == 2
    assert all(index.table_id == link_id for index in schema.indices)


def test_link_table_id_for_unknown_relationship_fails(schema):
    with pytest.raises(DatabaseException) as info:
        schema.many_to_many_link_table_id(42)
    assert info.value.error_type is ErrorType.INVALID_ID


def test_link_table_id_for_one_to_many_relationship_fails(schema):
    schema.relationships[REL] = Relationship(PARENT, CHILD, RelationshipType.ONE_TO_MANY)
    schema.configure_relationships()
    with pytest.raises(DatabaseException):
        schema.many_to_many_link_table_id(REL)


def test_indices_are_named_per_table(schema):
    schema.indices.extend([Index(CHILD, "", [1]), Index(CHILD, "", [0, 1]), Index(PARENT, "", [1])])
    schema.validate_and_prepare_indices()
    names = [index.name for index in schema.indices]
    assert names[0] == "index_child_1"
    assert len(set(names)) == 3
    assert names[2].startswith("index_parent_")


def test_index_on_unknown_table_fails(schema):
    schema.indices.append(Index(99, "", [0]))
    with pytest.raises(DatabaseException) as info:
        schema.validate_and_prepare_indices()
    assert info.value.error_type is ErrorType.INVALID_ID


def test_index_on_unknown_column_fails(schema):
    schema.indices.append(Index(CHILD, "", [7]))
    with pytest.raises(DatabaseException) as info:
        schema.validate_and_prepare_indices()
    assert info.value.error_type is ErrorType.INVALID_ID


def test_validate_primary_keys_returns_table_id(schema):
    assert schema.validate_primary_keys(parent_key()) == PARENT


@pytest.mark.parametrize(
    "values",
    [
        {},
        {TableColumnId(PARENT, 0): 1, TableColumnId(CHILD, 0): 1},
        {TableColumnId(PARENT, 1): "x"},
        {TableColumnId(PARENT, 0): 1, TableColumnId(PARENT, 1): "x"},
    ],
)
def test_validate_primary_keys_rejects_bad_keys(schema, values):
    with pytest.raises(DatabaseException) as info:
        schema.validate_primary_keys(values)
    assert info.value.error_type is ErrorType.INVALID_SYNTAX


def test_validate_primary_keys_unknown_table(schema):
    with pytest.raises(DatabaseException) as info:
        schema.validate_primary_keys({TableColumnId(99, 0): 1})
    assert info.value.error_type is ErrorType.INVALID_ID


def test_validate_primary_keys_list(schema):
    assert schema.validate_primary_keys_list([child_key(1), child_key(2)]) == CHILD
    with pytest.raises(DatabaseException):
        schema.validate_primary_keys_list([])
    with pytest.raises(DatabaseException):
        schema.validate_primary_keys_list([child_key(1), parent_key(1)])


def test_verify_one_to_one_returns_table_ids(schema):
    schema.relationships[REL] = Relationship(PARENT, CHILD, RelationshipType.ONE_TO_MANY)
    assert schema.verify_one_to_one_relationship(REL, parent_key(), child_key()) == (PARENT, CHILD)
    assert schema.verify_one_to_one_relationship(REL, child_key(), parent_key()) == (CHILD, PARENT)


def test_verify_with_ignored_from_keys_uses_other_table(schema):
    schema.relationships[REL] = Relationship(PARENT, CHILD, RelationshipType.ONE_TO_MANY)
    assert schema.verify_one_to_one_relationship(REL, {}, child_key()) == (PARENT, CHILD)


def test_verify_mismatching_tables_fails(schema):
    schema.tables[3] = Table(name="other", columns={0: Column("id")}, primary_keys={0})
    schema.relationships[REL] = Relationship(PARENT, CHILD, RelationshipType.ONE_TO_MANY)
    with pytest.raises(DatabaseException) as info:
        schema.verify_one_to_one_relationship(REL, {TableColumnId(3, 0): 1}, child_key())
    assert info.value.error_type is ErrorType.INVALID_SYNTAX


def test_verify_one_to_many(schema):
    schema.relationships[REL] = Relationship(PARENT, CHILD, RelationshipType.ONE_TO_MANY)
    result = schema.verify_one_to_many_relationship(REL, parent_key(), [child_key(1), child_key(2)])
    assert result == (PARENT, CHILD)
    with pytest.raises(DatabaseException) as info:
        schema.verify_one_to_many_relationship(REL, child_key(), [parent_key(1), parent_key(2)])
    assert info.value.error_type is ErrorType.INVALID_SYNTAX


def test_verify_unknown_relationship(schema):
    with pytest.raises(DatabaseException) as info:
        schema.verify_one_to_one_relationship(REL, parent_key(), child_key())
    assert info.value.error_type is ErrorType.INVALID_ID