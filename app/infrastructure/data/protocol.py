"""Contract implemented by both database backends."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any

from app.core.backend import BackendKind
from app.infrastructure.data.query import QueryOptions, QueryResult, ValueRange
from app.infrastructure.data.tables import Procedure, Table

RecordId = int | str


class QueryBackend(ABC):
    """Low-level data access against one backend.

    Implementations translate every backend-specific failure into a
    `DataAccessError` subclass and never retry.
    """

    kind: BackendKind

    @abstractmethod
    async def query(self, table: Table | str, options: QueryOptions) -> QueryResult:
        """Rows matching the options; an empty result is not an error."""

    @abstractmethod
    async def count(
        self,
        table: Table | str,
        filters: dict[str, Any] | None = None,
        ranges: dict[str, ValueRange] | None = None,
    ) -> int:
        """True number of rows matching the filters."""

    @abstractmethod
    async def find_by_id(
        self, table: Table | str, record_id: RecordId, id_column: str = "id"
    ) -> dict[str, Any] | None:
        """One row, or None when no row matches."""

    @abstractmethod
    async def insert(self, table: Table | str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert and return the server-populated row."""

    @abstractmethod
    async def update(
        self,
        table: Table | str,
        record_id: RecordId,
        data: dict[str, Any],
        id_column: str = "id",
    ) -> dict[str, Any]:
        """Partial update; raises RecordNotFoundError when nothing matched."""

    @abstractmethod
    async def delete(self, table: Table | str, record_id: RecordId, id_column: str = "id") -> bool:
        """True when a row was removed."""

    @abstractmethod
    async def search(
        self,
        table: Table | str,
        term: str,
        fields: list[str],
        order_by: str = "id",
        ascending: bool = False,
    ) -> list[dict[str, Any]]:
        """Case-insensitive partial match of `term` on any of `fields`."""

    @abstractmethod
    async def raw_query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Raw SQL; only the relational backend supports it."""

    @abstractmethod
    async def call_procedure(self, name: Procedure | str, params: dict[str, Any]) -> Any:
        """Invoke a stored procedure atomically on the server."""

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[Any]:
        """Unit of work: commit on success, rollback on error."""

    @abstractmethod
    async def ping(self) -> None:
        """Cheap round-trip used by startup probes and health checks."""

    @abstractmethod
    async def describe(self) -> dict[str, Any]:
        """Diagnostic information about the connected backend."""

    @abstractmethod
    async def close(self) -> None:
        """Release pooled connections / HTTP sessions."""

