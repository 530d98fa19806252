"""The database schema: tables, relationships, indices and key validation."""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Tuple

from .exceptions import DatabaseException, ErrorType
from .sanity_checker import SanityChecker
from .schema_types import (
    Column,
    ForeignKeyReference,
    Index,
    Relationship,
    RelationshipTableId,
    RelationshipType,
    Table,
    TableColumnId,
    TupleValues,
)


def _next_free_id(used: Iterable[int]) -> int:
    taken = set(used)
    candidate = 0
    while candidate in taken:
        candidate += 1
    return candidate


class Schema:
    """Tables, relationships and indices of a database, plus the checks on them."""

    def __init__(self) -> None:
        self.tables: Dict[int, Table] = {}
        self.relationships: Dict[int, Relationship] = {}
        self.indices: List[Index] = []
        self.sanity_checker = SanityChecker(self.tables, self.relationships)
        self._link_table_ids: Dict[int, int] = {}

    def many_to_many_link_table_id(self, relationship_id: int) -> int:
        """Return the id of the link table generated for a many-to-many relationship."""
        self.sanity_checker.check_relationship_exists(relationship_id)
        try:
            return self._link_table_ids[relationship_id]
        except KeyError:
            raise DatabaseException(
                ErrorType.INVALID_ID,
                f"Relationship with id {relationship_id} has no link table.",
            ) from None

    def configure_relationships(self) -> None:
        """Add foreign key columns and link tables for all configured relationships."""
        for relationship_id in sorted(self.relationships):
            relationship = self.relationships[relationship_id]
            for table_id in (relationship.table_from_id, relationship.table_to_id):
                if table_id not in self.tables:
                    raise DatabaseException(
                        ErrorType.INVALID_ID,
                        f"Relationship with id {relationship_id} references an unknown "
                        f"table with id {table_id}.",
                    )

            parent_id, child_id = relationship.table_from_id, relationship.table_to_id
            if relationship.type is RelationshipType.MANY_TO_ONE:
                parent_id, child_id = child_id, parent_id

            if relationship.type is RelationshipType.MANY_TO_MANY:
                self._add_link_table(relationship_id, relationship, parent_id, child_id)
            else:
                self._add_foreign_key_columns(relationship_id, relationship, parent_id, child_id)

    def _add_foreign_key_columns(
        self, relationship_id: int, relationship: Relationship, parent_id: int, child_id: int
    ) -> None:
        parent = self.tables[parent_id]
        child = self.tables[child_id]
        parent_keys = sorted(parent.primary_keys)
        if not parent_keys:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX,
                f"Relationship with id {relationship_id} expects the table '{parent.name}' "
                "to have a primary key column",
            )

        reference = ForeignKeyReference(
            parent_id, relationship.on_update_action, relationship.on_delete_action, {}
        )
        indexed_columns: List[int] = []
        for parent_key_id in parent_keys:
            new_col_id = _next_free_id(child.columns)
            parent_col = parent.columns[parent_key_id]
            child.columns[new_col_id] = Column(
                name=f"rel_{relationship_id}_foreign_key_{parent_col.name}",
                type=parent_col.type,
                varchar_length=parent_col.varchar_length,
            )
            reference.primary_foreign_key_col_id_map[TableColumnId(parent_id, parent_key_id)] = (
                new_col_id
            )
            if relationship.foreign_key_indexing_enabled:
                indexed_columns.append(new_col_id)

        if relationship.foreign_key_indexing_enabled:
            self.indices.append(Index(table_id=child_id, column_ids=indexed_columns))

        child.relationship_to_foreign_key_references_map.setdefault(
            RelationshipTableId(relationship_id, parent_id), []
        ).append(reference)

    def _add_link_table(
        self, relationship_id: int, relationship: Relationship, parent_id: int, child_id: int
    ) -> None:
        parent = self.tables[parent_id]
        child = self.tables[child_id]
        link_table = Table(name=f"rel_{relationship_id}_link_{parent.name}_to_{child.name}")
        link_table_id = _next_free_id(self.tables)
        next_col_id = 0

        for ref_table_id, ref_table in ((parent_id, parent), (child_id, child)):
            reference = ForeignKeyReference(
                ref_table_id, relationship.on_update_action, relationship.on_delete_action, {}
            )
            indexed_columns: List[int] = []
            for ref_col_id in sorted(ref_table.primary_keys):
                ref_col = ref_table.columns[ref_col_id]
                link_table.columns[next_col_id] = Column(
                    name=f"{ref_table.name}_{ref_col.name}_{next_col_id}", type=ref_col.type
                )
                reference.primary_foreign_key_col_id_map[TableColumnId(ref_table_id, ref_col_id)] = (
                    next_col_id
                )
                link_table.primary_keys.add(next_col_id)
                if relationship.foreign_key_indexing_enabled:
                    indexed_columns.append(next_col_id)
                next_col_id += 1

            link_table.relationship_to_foreign_key_references_map.setdefault(
                RelationshipTableId(relationship_id, ref_table_id), []
            ).append(reference)

            if relationship.foreign_key_indexing_enabled:
                self.indices.append(Index(table_id=link_table_id, column_ids=indexed_columns))

        self.tables[link_table_id] = link_table
        self._link_table_ids[relationship_id] = link_table_id

    def validate_and_prepare_indices(self) -> None:
        """Check every index and give it a name unique within its table."""
        counters: Dict[int, int] = {}
        for index in self.indices:
            if index.table_id not in self.tables:
                raise DatabaseException(
                    ErrorType.INVALID_ID,
                    f"Index cannot be created for non-existing table id '{index.table_id}'",
                )
            table = self.tables[index.table_id]
            for col_id in index.column_ids:
                if col_id not in table.columns:
                    raise DatabaseException(
                        ErrorType.INVALID_ID,
                        f"Index cannot be created. Table with id '{index.table_id}' "
                        f"has no column id '{col_id}'",
                    )
            number = counters.get(index.table_id, 1)
            counters[index.table_id] = number + 1
            index.name = f"index_{table.name}_{number}"

    def validate_primary_keys(self, tuple_key_values: TupleValues) -> int:
        """Check the values are exactly the primary keys of one table; return its id."""
        if not tuple_key_values:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "Expected at least one column.")

        keys = sorted(tuple_key_values)
        table_id = keys[0].table_id
        if any(key.table_id != table_id for key in keys):
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX,
                "Inconsistent table ids detected. Columns should reference only a single table.",
            )
        col_ids = {key.column_id for key in keys}

        self.sanity_checker.check_table_exists(table_id)
        table = self.tables[table_id]

        if any(primary_key not in col_ids for primary_key in table.primary_keys):
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX, "Column id expected to be a primary key."
            )
        if len(table.primary_keys) != len(col_ids):
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "Wrong number of primary keys given.")
        return table_id

    def validate_primary_keys_list(self, tuple_key_values_list: Sequence[TupleValues]) -> int:
        """Check each entry holds the primary keys of one and the same table; return its id."""
        if not tuple_key_values_list:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX, "Primary key column values must not be empty."
            )
        table_id = self.validate_primary_keys(tuple_key_values_list[0])
        for tuple_key_values in tuple_key_values_list[1:]:
            if self.validate_primary_keys(tuple_key_values) != table_id:
                raise DatabaseException(
                    ErrorType.INVALID_SYNTAX, "Primary keys should belong to a single table."
                )
        self.sanity_checker.check_table_exists(table_id)
        return table_id

    def verify_one_to_one_relationship(
        self, relationship_id: int, from_key_values: TupleValues, to_key_values: TupleValues
    ) -> Tuple[int, int]:
        """Check keys linking one tuple to one tuple; return (from table id, to table id)."""
        return self._verify_relationship(False, relationship_id, from_key_values, [to_key_values])

    def verify_one_to_many_relationship(
        self,
        relationship_id: int,
        from_key_values: TupleValues,
        to_key_values_list: Sequence[TupleValues],
    ) -> Tuple[int, int]:
        """Check keys linking one tuple to many; return (from table id, to table id)."""
        return self._verify_relationship(True, relationship_id, from_key_values, to_key_values_list)

    def _verify_relationship(
        self,
        is_one_to_many: bool,
        relationship_id: int,
        from_key_values: TupleValues,
        to_key_values_list: Sequence[TupleValues],
    ) -> Tuple[int, int]:
        self.sanity_checker.check_relationship_exists(relationship_id)
        relationship = self.relationships[relationship_id]
        ignore_from_keys = not from_key_values

        table_to_id = self.validate_primary_keys_list(to_key_values_list)
        expected_from_id = (
            relationship.table_from_id
            if table_to_id == relationship.table_to_id
            else relationship.table_to_id
        )
        table_from_id = (
            expected_from_id if ignore_from_keys else self.validate_primary_keys(from_key_values)
        )

        if is_one_to_many:
            kind = relationship.type
            if (kind is RelationshipType.MANY_TO_ONE and relationship.table_to_id == table_to_id) or (
                kind is RelationshipType.ONE_TO_MANY and relationship.table_to_id != table_to_id
            ):
                raise DatabaseException(
                    ErrorType.INVALID_SYNTAX,
                    "Not possible to assign multiple tuple keys for this relationship type.",
                )

        if not self._table_ids_match(relationship, table_from_id, table_to_id, ignore_from_keys):
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX,
                "Given entity keys not are not matching relationship table ids.",
            )
        return table_from_id, table_to_id

    @staticmethod
    def _table_ids_match(
        relationship: Relationship, table_from_id: int, table_to_id: int, ignore_from_keys: bool
    ) -> bool:
        if ignore_from_keys:
            return table_to_id in (relationship.table_to_id, relationship.table_from_id)
        return (
            table_to_id == relationship.table_to_id and table_from_id == relationship.table_from_id
        ) or (
            table_to_id == relationship.table_from_id and table_from_id == relationship.table_to_id
        )