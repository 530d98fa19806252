"""Boolean expressions over columns and values, rendered to SQL WHERE/ON clauses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, List, Optional, Protocol, Union

from .exceptions import DatabaseException, ErrorType
from .schema_types import (
    ColumnID,
    ComparisonOperator,
    IdLike,
    LogicalOperator,
    column_ref,
    id_value,
)

_COMPARISON_SQL = {
    ComparisonOperator.EQUAL: "==",
    ComparisonOperator.UNEQUAL: "!=",
    ComparisonOperator.LESS_EQUAL: "<=",
    ComparisonOperator.LESS: "<",
    ComparisonOperator.GREATER_EQUAL: ">=",
    ComparisonOperator.GREATER: ">",
    ComparisonOperator.IS_NULL: "is",
}

_LOGIC_SQL = {
    LogicalOperator.AND: "AND",
    LogicalOperator.OR: "OR",
}


class _TermElement(Protocol):
    def to_sql(self, schema: Any, default_table_id: Optional[int] = None) -> str:
        ...


class OperandType(Enum):
    COLUMN_ID = auto()
    VALUE = auto()


@dataclass(frozen=True)
class Operand:
    """One side of a comparison: a column reference or a literal value."""

    type: OperandType
    value: Any


def _value_to_sql(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, str):
        return f"'{value}'"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _as_column(column: Union[ColumnID, IdLike]) -> ColumnID:
    return column if isinstance(column, ColumnID) else column_ref(column)


class Comparison:
    """A comparison of a column with a value or another column."""

    def __init__(self, op: ComparisonOperator, lhs: Operand, rhs: Operand) -> None:
        self.op = op
        self.lhs = lhs
        self.rhs = rhs

    @staticmethod
    def _operand_to_sql(operand: Operand, schema: Any, default_table_id: Optional[int]) -> str:
        if operand.type is OperandType.VALUE:
            return _value_to_sql(operand.value)

        column: ColumnID = operand.value
        if default_table_id is None and not column.table_id_valid:
            return "NULL"

        table_id = column.table_column_id.table_id if column.table_id_valid else default_table_id
        schema.sanity_checker.check_table_exists(table_id)
        table = schema.tables[table_id]

        col_id = column.table_column_id.column_id
        schema.sanity_checker.check_column_exists(table, col_id)

        table_name = column.table_alias or table.name
        return f"'{table_name}'.'{table.columns[col_id].name}'"

    def to_sql(self, schema: Any, default_table_id: Optional[int] = None) -> str:
        lhs = self._operand_to_sql(self.lhs, schema, default_table_id)
        rhs = self._operand_to_sql(self.rhs, schema, default_table_id)
        return f"{lhs} {_COMPARISON_SQL[self.op]} {rhs}"


class Logic:
    """A logical operator joining two terms."""

    def __init__(self, op: LogicalOperator) -> None:
        self.op = op

    def to_sql(self, schema: Any, default_table_id: Optional[int] = None) -> str:
        return _LOGIC_SQL[self.op]


class NestedExpression:
    """An expression wrapped in parentheses."""

    def __init__(self, expr: "Expr") -> None:
        self.expr = expr

    def to_sql(self, schema: Any, default_table_id: Optional[int] = None) -> str:
        return f"({self.expr.to_sql(schema, default_table_id)})"


class Expr:
    """Fluent builder of comparisons joined by AND/OR, with nested parentheses."""

    def __init__(self) -> None:
        self._terms: List[_TermElement] = []
        self._expect_comparison = True

    def equal(self, column: Union[ColumnID, IdLike], value: Any) -> "Expr":
        return self._add_comparison(ComparisonOperator.EQUAL, column, value)

    def unequal(self, column: Union[ColumnID, IdLike], value: Any) -> "Expr":
        return self._add_comparison(ComparisonOperator.UNEQUAL, column, value)

    def less_equal(self, column: Union[ColumnID, IdLike], value: Any) -> "Expr":
        return self._add_comparison(ComparisonOperator.LESS_EQUAL, column, value)

    def less(self, column: Union[ColumnID, IdLike], value: Any) -> "Expr":
        return self._add_comparison(ComparisonOperator.LESS, column, value)

    def greater_equal(self, column: Union[ColumnID, IdLike], value: Any) -> "Expr":
        return self._add_comparison(ComparisonOperator.GREATER_EQUAL, column, value)

    def greater(self, column: Union[ColumnID, IdLike], value: Any) -> "Expr":
        return self._add_comparison(ComparisonOperator.GREATER, column, value)

    def is_null(self, column: Union[ColumnID, IdLike]) -> "Expr":
        return self._add_comparison(ComparisonOperator.IS_NULL, column, None)

    def op_or(self) -> "Expr":
        return self._add_logic(Logic(LogicalOperator.OR))

    def op_and(self) -> "Expr":
        return self._add_logic(Logic(LogicalOperator.AND))

    def braces(self, nested: "Expr") -> "Expr":
        if not self._expect_comparison:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "Nested Expression not expected")
        self._terms.append(NestedExpression(nested))
        self._expect_comparison = False
        return self

    def to_sql(self, schema: Any, default_table_id: Optional[IdLike] = None) -> str:
        """Render the expression, resolving unbound columns against the default table."""
        if not self._terms:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "Expression must not be empty")
        if self._expect_comparison:
            raise DatabaseException(
                ErrorType.INVALID_SYNTAX, "Expression must not end with a logical operator"
            )
        table_id = None if default_table_id is None else id_value(default_table_id)
        return " ".join(term.to_sql(schema, table_id) for term in self._terms)

    def _add_comparison(
        self, op: ComparisonOperator, column: Union[ColumnID, IdLike], value: Any
    ) -> "Expr":
        if not self._expect_comparison:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "Comparison not expected")
        lhs = Operand(OperandType.COLUMN_ID, _as_column(column))
        rhs_type = OperandType.COLUMN_ID if isinstance(value, ColumnID) else OperandType.VALUE
        self._terms.append(Comparison(op, lhs, Operand(rhs_type, value)))
        self._expect_comparison = False
        return self

    def _add_logic(self, logic: Logic) -> "Expr":
        if self._expect_comparison:
            raise DatabaseException(ErrorType.INVALID_SYNTAX, "Logical operator not expected")
        self._terms.append(logic)
        self._expect_comparison = True
        return self