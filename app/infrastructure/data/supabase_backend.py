"""Hosted Supabase backend (PostgREST over HTTP, supabase-py async client).

Every request goes through `execute()`, which bounds it with a timeout and
translates PostgREST / httpx failures into the data-access taxonomy.
Raw SQL and client-side transactions are not available through PostgREST;
multi-statement operations use stored procedures (`call_procedure`).
"""

import asyncio
import logging
from typing import Any

import httpx
import sqlalchemy as sa
from postgrest.exceptions import APIError
from postgrest.types import CountMethod
from pydantic_core import to_jsonable_python
from supabase import AsyncClient

from app.core.backend import BackendKind
from app.infrastructure.data.exceptions import (
    DataAccessError,
    DatabaseConnectionError,
    MalformedQueryError,
    RecordNotFoundError,
    UnsupportedOperationError,
    error_for_sqlstate,
)
from app.infrastructure.data.protocol import QueryBackend, RecordId
from app.infrastructure.data.query import (
    QueryOptions,
    QueryResult,
    ValueRange,
    active_filters,
    active_ranges,
)
from app.infrastructure.data.tables import (
    Procedure,
    Table,
    resolve_column,
    resolve_columns,
    resolve_procedure,
    resolve_table,
)

logger = logging.getLogger(__name__)


def translate_api_error(error: APIError, operation: str) -> DataAccessError:
    """Map a PostgREST error payload onto the data-access taxonomy (code preserved)."""
    code = getattr(error, "code", None)
    message = getattr(error, "message", None) or str(error)
    details = {
        "operation": operation,
        "backend": BackendKind.SUPABASE.value,
        "details": getattr(error, "details", None),
        "hint": getattr(error, "hint", None),
    }
    return error_for_sqlstate(str(code) if code else None, f"{operation} failed: {message}", details)


def quote_filter_value(value: str) -> str:
    """Double-quote a value for PostgREST logic trees (or=(...))."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally (backslash is the ILIKE default escape)."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def apply_conditions(
    builder: Any,
    table: sa.Table,
    filters: dict[str, Any] | None,
    ranges: dict[str, ValueRange] | None = None,
) -> Any:
    """Chain eq / in / gte / lte on a request builder, in mapping order."""
    for name, value in active_filters(filters):
        column = resolve_column(table, name).name
        builder = builder.in_(column, value) if isinstance(value, list) else builder.eq(column, value)
    for name, bounds in active_ranges(ranges):
        column = resolve_column(table, name).name
        if bounds.gte is not None:
            builder = builder.gte(column, bounds.gte)
        if bounds.lte is not None:
            builder = builder.lte(column, bounds.lte)
    return builder


class SupabaseQueryBackend(QueryBackend):
    """QueryBackend over a supabase-py AsyncClient.

    Example:
        ```python
        client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
        backend = SupabaseQueryBackend(client, timeout=settings.SUPABASE_TIMEOUT)
        ```
    """

    kind = BackendKind.SUPABASE

    def __init__(self, client: AsyncClient, timeout: float = 10.0):
        self.client = client
        self.timeout = timeout

    async def execute(self, builder: Any, operation: str = "request") -> Any:
        """
        Run a request builder with the configured timeout.

        Args:
            builder: Any supabase-py request builder (table / rpc chain)
            operation: Label used in error messages and logs

        Returns:
            The APIResponse (`.data`, `.count`)

        Raises:
            DatabaseConnectionError: Network failure or timeout
            DataAccessError: PostgREST error, translated by code
        """
        try:
            return await asyncio.wait_for(builder.execute(), timeout=self.timeout)
        except APIError as e:
            error = translate_api_error(e, operation)
            logger.warning(f"Supabase {operation} failed: {error.message} (code={error.code})")
            raise error from e
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(f"Supabase {operation} timed out after {self.timeout}s")
            raise DatabaseConnectionError(
                f"Supabase request timed out during {operation}",
                {"operation": operation, "timeout": self.timeout},
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"Supabase {operation} failed: {e}")
            raise DatabaseConnectionError(
                f"Supabase unavailable during {operation}: {e}",
                {"operation": operation},
            ) from e

    def transaction(self):
        raise UnsupportedOperationError(
            "Client-side transactions are not available on the Supabase backend; use a stored procedure",
            {"backend": self.kind.value},
        )

    async def query(self, table: Table | str, options: QueryOptions) -> QueryResult:
        target = resolve_table(table)
        columns = ",".join(column.name for column in resolve_columns(target, options.select))
        builder = self.client.table(target.name).select(columns if options.select else "*")
        builder = apply_conditions(builder, target, options.filters, options.ranges)
        if options.order_by is not None:
            column = resolve_column(target, options.order_by.column).name
            builder = builder.order(column, desc=not options.order_by.ascending)
        if options.limit is not None:
            builder = builder.range(options.offset, options.offset + options.limit - 1)

        response = await self.execute(builder, f"query {target.name}")
        rows = list(response.data or [])
        return QueryResult(rows=rows, count=len(rows))

    async def count(
        self,
        table: Table | str,
        filters: dict[str, Any] | None = None,
        ranges: dict[str, ValueRange] | None = None,
    ) -> int:
        target = resolve_table(table)
        builder = self.client.table(target.name).select("*", count=CountMethod.exact, head=True)
        builder = apply_conditions(builder, target, filters, ranges)
        response = await self.execute(builder, f"count {target.name}")
        return int(response.count or 0)

    async def find_by_id(
        self, table: Table | str, record_id: RecordId, id_column: str = "id"
    ) -> dict[str, Any] | None:
        target = resolve_table(table)
        column = resolve_column(target, id_column).name
        builder = self.client.table(target.name).select("*").eq(column, record_id).limit(1)
        response = await self.execute(builder, f"find_by_id {target.name}")
        return response.data[0] if response.data else None

    async def insert(self, table: Table | str, data: dict[str, Any]) -> dict[str, Any]:
        target = resolve_table(table)
        values = {resolve_column(target, key).name: to_jsonable_python(value) for key, value in data.items()}
        response = await self.execute(self.client.table(target.name).insert(values), f"insert {target.name}")
        if not response.data:
            raise DataAccessError(f"insert {target.name} returned no row", {"table": target.name})
        return response.data[0]

    async def update(
        self,
        table: Table | str,
        record_id: RecordId,
        data: dict[str, Any],
        id_column: str = "id",
    ) -> dict[str, Any]:
        target = resolve_table(table)
        if not data:
            current = await self.find_by_id(target.name, record_id, id_column)
            if current is None:
                raise RecordNotFoundError(target.name, record_id, id_column)
            return current

        column = resolve_column(target, id_column).name
        values = {resolve_column(target, key).name: to_jsonable_python(value) for key, value in data.items()}
        builder = self.client.table(target.name).update(values).eq(column, record_id)
        response = await self.execute(builder, f"update {target.name}")
        if not response.data:
            raise RecordNotFoundError(target.name, record_id, id_column)
        return response.data[0]

    async def delete(self, table: Table | str, record_id: RecordId, id_column: str = "id") -> bool:
        target = resolve_table(table)
        column = resolve_column(target, id_column).name
        builder = self.client.table(target.name).delete().eq(column, record_id)
        response = await self.execute(builder, f"delete {target.name}")
        return bool(response.data)

    async def search(
        self,
        table: Table | str,
        term: str,
        fields: list[str],
        order_by: str = "id",
        ascending: bool = False,
    ) -> list[dict[str, Any]]:
        target = resolve_table(table)
        if not fields:
            raise MalformedQueryError("search requires at least one field", {"table": target.name})
        pattern = quote_filter_value(f"%{escape_like(term)}%")
        expression = ",".join(f"{resolve_column(target, field).name}.ilike.{pattern}" for field in fields)
        order_column = resolve_column(target, order_by).name
        builder = self.client.table(target.name).select("*").or_(expression).order(order_column, desc=not ascending)
        response = await self.execute(builder, f"search {target.name}")
        return list(response.data or [])

    async def raw_query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        raise UnsupportedOperationError(
            "Raw SQL is not available on the Supabase backend",
            {"backend": self.kind.value},
        )

    async def call_procedure(self, name: Procedure | str, params: dict[str, Any]) -> Any:
        procedure = resolve_procedure(name)
        builder = self.client.rpc(procedure.value, to_jsonable_python(params))
        response = await self.execute(builder, f"rpc {procedure.value}")
        return response.data

    async def ping(self) -> None:
        builder = self.client.table(Table.MEDICOS.value).select("id").limit(1)
        await self.execute(builder, "ping")

    async def describe(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "url": str(getattr(self.client, "supabase_url", "")),
            "timeout": self.timeout,
        }

    async def close(self) -> None:
        await self.client.postgrest.aclose()
        logger.info("Client Supabase fermé")
