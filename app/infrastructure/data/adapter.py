"""Query Adapter: the single entry point repositories use to reach the data store.

The adapter delegates to whichever QueryBackend it was built with and adds
tracing and logging around each call. It never retries and never changes the
semantics of the backend: errors surface as DataAccessError subclasses.
"""

import logging
from contextlib import AbstractAsyncContextManager
from typing import Any

from opentelemetry import trace

from app.core.backend import BackendKind
from app.infrastructure.data.exceptions import DataAccessError
from app.infrastructure.data.protocol import QueryBackend, RecordId
from app.infrastructure.data.query import QueryOptions, QueryResult, ValueRange
from app.infrastructure.data.tables import Procedure, Table

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def _name(value: Table | Procedure | str) -> str:
    return value.value if isinstance(value, Table | Procedure) else str(value)


class QueryAdapter:
    """Backend-neutral CRUD, search and raw-query operations.

    Example:
        ```python
        adapter = QueryAdapter(PostgresQueryBackend(engine))
        patient = await adapter.find_by_id(Table.PACIENTES, 12)
        ```
    """

    def __init__(self, backend: QueryBackend):
        self.backend = backend

    @property
    def kind(self) -> BackendKind:
        return self.backend.kind

    async def _traced(self, operation: str, table: Table | str | None, call, **attributes: Any) -> Any:
        with tracer.start_as_current_span(f"db.{operation}") as span:
            span.set_attribute("db.system", self.kind.value)
            if table is not None:
                span.set_attribute("db.table", _name(table))
            for key, value in attributes.items():
                span.set_attribute(f"db.{key}", value)
            try:
                return await call
            except DataAccessError as e:
                span.record_exception(e)
                span.set_attribute("db.error_code", e.code or "")
                logger.warning(f"{operation} sur {_name(table) if table else '-'} échoué: {e.message}")
                raise

    async def query(self, table: Table | str, options: QueryOptions | None = None) -> QueryResult:
        return await self._traced("query", table, self.backend.query(table, options or QueryOptions()))

    async def count(
        self,
        table: Table | str,
        filters: dict[str, Any] | None = None,
        ranges: dict[str, ValueRange] | None = None,
    ) -> int:
        return await self._traced("count", table, self.backend.count(table, filters, ranges))

    async def find_by_id(
        self, table: Table | str, record_id: RecordId, id_column: str = "id"
    ) -> dict[str, Any] | None:
        return await self._traced(
            "find_by_id",
            table,
            self.backend.find_by_id(table, record_id, id_column),
            record_id=str(record_id),
        )

    async def insert(self, table: Table | str, data: dict[str, Any]) -> dict[str, Any]:
        row = await self._traced("insert", table, self.backend.insert(table, data))
        logger.debug(f"Insert dans {_name(table)}: id={row.get('id')}")
        return row

    async def update(
        self,
        table: Table | str,
        record_id: RecordId,
        data: dict[str, Any],
        id_column: str = "id",
    ) -> dict[str, Any]:
        return await self._traced(
            "update",
            table,
            self.backend.update(table, record_id, data, id_column),
            record_id=str(record_id),
        )

    async def delete(self, table: Table | str, record_id: RecordId, id_column: str = "id") -> bool:
        return await self._traced(
            "delete",
            table,
            self.backend.delete(table, record_id, id_column),
            record_id=str(record_id),
        )

    async def search(
        self,
        table: Table | str,
        term: str,
        fields: list[str],
        order_by: str = "id",
        ascending: bool = False,
    ) -> list[dict[str, Any]]:
        return await self._traced(
            "search",
            table,
            self.backend.search(table, term, fields, order_by, ascending),
        )

    async def raw_query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Raw SQL on the relational backend; UnsupportedOperationError on Supabase."""
        return await self._traced("raw_query", None, self.backend.raw_query(sql, params))

    async def call_procedure(self, name: Procedure | str, params: dict[str, Any]) -> Any:
        return await self._traced("rpc", None, self.backend.call_procedure(name, params), procedure=_name(name))

    def transaction(self) -> AbstractAsyncContextManager[Any]:
        return self.backend.transaction()

    async def ping(self) -> None:
        await self.backend.ping()

    async def describe(self) -> dict[str, Any]:
        return await self.backend.describe()

    async def close(self) -> None:
        await self.backend.close()
