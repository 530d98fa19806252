# sqlitemodel

`sqlitemodel` lets you describe an SQLite database in code. You declare its
tables, columns, primary keys, indices and the relationships between tables.
You then build queries against that schema instead of writing SQL strings by
hand. It uses only the Python standard library, including `sqlite3`.

## What it does

- **Schema description** (`sqlitemodel.schema_types`,
  `sqlitemodel.schema_configurator`, `sqlitemodel.configurators`)
  - Tables are `Table` objects holding `Column` objects. Column types come from
    `DataType`: `INTEGER`, `REAL`, `VARCHAR`, `TEXT` and `BLOB`.
  - `SchemaConfigurator.add_table` collects the tables.
  - `SchemaConfigurator.configure_relationship` declares relationships and
    returns a `RelationshipConfigurator`. Its methods are `on_delete`,
    `on_update` and `enable_foreign_key_indexing`.
  - `SchemaConfigurator.configure_index` declares indices and returns an
    `IndexConfigurator`. Its methods are `columns` and `unique`.
  - Ids can be plain ints or members of an enum with int values; `id_value`
    and `id_list` convert them.
- **Generated foreign keys** (`sqlitemodel.schema.Schema`)
  - `configure_relationships` adds one foreign key column to the child table
    for each primary key column of the parent. This applies to `ONE_TO_MANY`
    and `MANY_TO_ONE` relationships.
  - Each `MANY_TO_MANY` relationship gets its own link table.
  - When foreign key indexing is enabled, an index is added for the generated
    columns.
  - `validate_and_prepare_indices` checks every index and names it
    `index_<table>_<n>`.
- **Versioned database files** (`sqlitemodel.database.Database`)
  - `initialize` takes a configurator, a file name and an optional database
    name.
  - On a new file it creates all tables and indices, plus a
    `database_version` table holding version 1.
  - On a file that already has that table, it checks the stored version.
    A version newer than expected raises `DatabaseException`.
  - `Database` is a context manager; leaving the block closes the connection.
- **Queries**
  - `sqlitemodel.insert`:
    - `InsertInto(table).value(column, value)` inserts one row.
    - `BatchInsertInto(table).values(column, [...])` inserts many rows with
      one statement.
  - `sqlitemodel.from_table.FromTable` builds a `SELECT`. Its methods are
    `select_all`, `select`, `join_all`, `join` and `where`. Joins follow
    relationships, including many-to-many ones through their link table.
  - `sqlitemodel.delete_from.DeleteFrom(table).where(expr)` deletes rows.
  - `sqlitemodel.expr.Expr` builds conditions with `equal`, `unequal`,
    `less`, `less_equal`, `greater`, `greater_equal` and `is_null`. Combine
    them with `op_and` and `op_or`, and nest them with `braces`.
    - A column can be given as an id of the query's table, or as a `ColumnID`
      made with `column_ref` or `table_column_ref`.
    - Passing a `ColumnID` as the value compares two columns.
  - `sqlitemodel.inserted_ids.QueryInsertedIds` reads back the primary keys of
    the last inserted row of a table.
  - `sqlitemodel.query.QuerySequence` runs several queries in order.
- **Transactions.** `Database.exec_query` runs a query or a sequence in one
  transaction. Any error rolls the transaction back. The call returns the
  last valid `ResultSet` the queries produced.
- **Results** (`sqlitemodel.result_set.ResultSet`)
  - Step through the rows with `has_next` and `next`, and restart with
    `reset_iteration`.
  - Each row is a dict mapping `TableColumnId` (table id and column id) to
    the stored value.
  - Rows from a join are grouped by the primary key of the queried table.
  - The rows joined to the current row come from
    `has_next_joined_tuple(relationship_id)` and
    `next_joined_tuple(relationship_id)`.
    `current_num_joined_results(relationship_id)` gives their count.
- **Errors.** Every failure raises `sqlitemodel.exceptions.DatabaseException`.
  Its `error_type` is one of the `ErrorType` members:
  - `UNABLE_TO_LOAD`
  - `INVALID_ID`
  - `INVALID_SYNTAX`
  - `QUERY_ERROR`
  - `UNEXPECTED_ERROR`

## Installation

```
pip install .
```

## Example

```python
from sqlitemodel.database import Database
from sqlitemodel.delete_from import DeleteFrom
from sqlitemodel.expr import Expr
from sqlitemodel.from_table import FromTable
from sqlitemodel.insert import BatchInsertInto, InsertInto
from sqlitemodel.schema_configurator import SchemaConfigurator
from sqlitemodel.schema_types import Column, DataType, Table, TableColumnId

PERSON = 1
PERSON_ID, PERSON_NAME = 0, 1

configurator = SchemaConfigurator()
configurator.add_table(
    PERSON,
    Table(
        name="person",
        columns={
            PERSON_ID: Column(name="id", type=DataType.INTEGER, auto_increment=True),
            PERSON_NAME: Column(name="name", type=DataType.VARCHAR, varchar_length=64),
        },
        primary_keys={PERSON_ID},
    ),
)

with Database() as db:
    db.initialize(configurator, "people.db", "people")

    db.exec_query(InsertInto(PERSON).value(PERSON_NAME, "Alice"))
    db.exec_query(BatchInsertInto(PERSON).values(PERSON_NAME, ["Bob", "Carol"]))

    results = db.exec_query(
        FromTable(PERSON).select_all().where(Expr().equal(PERSON_NAME, "Alice"))
    )
    while results.has_next():
        row = results.next()
        print(row[TableColumnId(PERSON, PERSON_NAME)])

    db.exec_query(DeleteFrom(PERSON).where(Expr().equal(PERSON_NAME, "Bob")))
```

## Relationships

Declare relationships on the configurator before you pass it to
`Database.initialize`:

```python
from sqlitemodel.schema_types import ForeignKeyAction, RelationshipType

configurator.configure_relationship(
    relationship_id, table_from_id, table_to_id, RelationshipType.ONE_TO_MANY
).on_delete(ForeignKeyAction.CASCADE).enable_foreign_key_indexing()
```

A table may not have a `MANY_TO_ONE` relationship to itself; use
`ONE_TO_MANY` for that case.

To read related rows, pass the relationship id to `FromTable.join_all` or
`FromTable.join`. If the same table takes part more than once, the query uses
table aliases automatically.

## What it does not do

- **No updates.** There is no query type for `UPDATE` statements.
- **No linking or unlinking.** There is no query that sets or clears the
  generated foreign key columns, or rows of a link table, for chosen tuples.
  `sqlitemodel.relationship_preparation.RelationshipPreparationData` works out
  which table, columns and key values such a change would touch. It does not
  run anything against the database.
- **No migrations.** Only schema version 1 exists. A new file is created at
  that version; an existing file at version 1 is opened unchanged.

## Running the tests

```
pip install .[test]
pytest
```