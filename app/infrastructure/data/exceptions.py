"""Data-access exceptions shared by both database backends.

Every backend-specific failure (SQLAlchemy/asyncpg, PostgREST, httpx,
timeouts) is translated into one of these types, so callers never depend on
which backend is active.
"""

from typing import Any

# SQLSTATE classes/codes used for translation
_CONSTRAINT_CODES = {"23000", "23502", "23503", "23505", "23514", "23P01"}
NOT_FOUND_CODES = frozenset({"P0002", "PGRST116"})
_MALFORMED_CODES = {"42P01", "42703", "42601", "42883", "PGRST200", "PGRST204", "PGRST202"}
_CONNECTION_PREFIXES = ("08", "57P")


class DataAccessError(Exception):
    """Base exception for data-access operations."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.code = code


class DatabaseConnectionError(DataAccessError):
    """Raised when the backend cannot be reached or a call times out."""

    pass


class ConstraintViolationError(DataAccessError):
    """Raised when a uniqueness, foreign-key or check constraint is broken."""

    pass


class RecordNotFoundError(DataAccessError):
    """Raised when an update or transition targets a missing row."""

    def __init__(self, table: str, record_id: Any, id_column: str = "id"):
        super().__init__(
            f"{table}.{id_column}={record_id} not found",
            {"table": table, "id_column": id_column, "record_id": record_id},
        )
        self.table = table
        self.record_id = record_id


class UnsupportedOperationError(DataAccessError):
    """Raised when an operation is not available on the active backend."""

    pass


class MalformedQueryError(DataAccessError):
    """Raised for unknown tables/columns or otherwise invalid queries."""

    pass


class ConfigurationError(DataAccessError):
    """Raised when a required configuration value is missing or invalid."""

    pass


class InvalidTransitionError(DataAccessError):
    """Raised when a referral status transition is not allowed."""

    def __init__(self, record_id: Any, current: str | None, target: str):
        super().__init__(
            f"Cannot move referral {record_id} from '{current}' to '{target}'",
            {"record_id": record_id, "current": current, "target": target},
        )
        self.record_id = record_id
        self.current = current
        self.target = target


def error_for_sqlstate(
    code: str | None,
    message: str,
    details: dict[str, Any] | None = None,
) -> DataAccessError:
    """Build the taxonomy error matching a SQLSTATE / PostgREST error code.

    Args:
        code: SQLSTATE (e.g. "23505") or PostgREST code (e.g. "PGRST116")
        message: Human-readable message
        details: Extra context (table, operation, backend message)

    Returns:
        The most specific DataAccessError subclass for the code
    """
    if code in _CONSTRAINT_CODES:
        cls: type[DataAccessError] = ConstraintViolationError
    elif code in _MALFORMED_CODES:
        cls = MalformedQueryError
    elif code and code.startswith(_CONNECTION_PREFIXES):
        cls = DatabaseConnectionError
    else:
        cls = DataAccessError

    return cls(message, details, code=code)
