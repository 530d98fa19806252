"""Exception type raised for every database and schema error."""

from __future__ import annotations

from enum import Enum, auto


class ErrorType(Enum):
    """Category of a database error."""

    UNABLE_TO_LOAD = auto()
    INVALID_ID = auto()
    INVALID_SYNTAX = auto()
    QUERY_ERROR = auto()
    UNEXPECTED_ERROR = auto()


class DatabaseException(RuntimeError):
    """Error raised by schema configuration, query building and execution."""

    def __init__(self, error_type: ErrorType, message: str) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message