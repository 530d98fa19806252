"""Results of a query, iterated tuple by tuple with joined tuples per relationship."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .exceptions import DatabaseException, ErrorType
from .schema_types import TupleValues


@dataclass
class ResultTuple:
    """One result row and the rows joined to it, keyed by relationship id."""

    values: TupleValues = field(default_factory=dict)
    joined_tuples: Dict[int, List[TupleValues]] = field(default_factory=dict)


class ResultSet:
    """A list of result tuples with a cursor over them."""

    def __init__(self, tuples: Iterable[ResultTuple] = (), valid: bool = True) -> None:
        self._valid = valid
        self._tuples = list(tuples)
        self._current = -1
        self._current_joined = -1

    def is_valid(self) -> bool:
        return self._valid

    def reset_iteration(self) -> None:
        self._current = -1
        self._current_joined = -1

    def num_results(self) -> int:
        return len(self._tuples)

    def has_next(self) -> bool:
        return self._current < len(self._tuples) - 1

    def next(self) -> TupleValues:
        """Advance to the next tuple and return its values."""
        if not self.has_next():
            raise DatabaseException(ErrorType.UNEXPECTED_ERROR, "ResultSet has no further tuples.")
        self._current += 1
        self._current_joined = -1
        return self._tuples[self._current].values

    def _joined(self, relationship_id: int) -> List[TupleValues]:
        if self._current < 0:
            raise DatabaseException(ErrorType.UNEXPECTED_ERROR, "ResultSet has no current tuple.")
        joined = self._tuples[self._current].joined_tuples
        if relationship_id not in joined:
            raise DatabaseException(
                ErrorType.UNEXPECTED_ERROR, "Invalid relationship id for result set."
            )
        return joined[relationship_id]

    def current_num_joined_results(self, relationship_id: int) -> int:
        return len(self._joined(relationship_id))

    def has_next_joined_tuple(self, relationship_id: int) -> bool:
        return self._current_joined < len(self._joined(relationship_id)) - 1

    def next_joined_tuple(self, relationship_id: int) -> TupleValues:
        """Advance to the next tuple joined to the current one over a relationship."""
        if not self.has_next_joined_tuple(relationship_id):
            raise DatabaseException(ErrorType.UNEXPECTED_ERROR, "Joined data has no further tuples.")
        self._current_joined += 1
        return self._joined(relationship_id)[self._current_joined]


def invalid_results() -> ResultSet:
    """Return an empty result set marked invalid."""
    return ResultSet((), valid=False)