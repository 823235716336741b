"""Direct PostgreSQL backend built on SQLAlchemy Core (async engine, asyncpg driver).

Reads run on a pooled connection without an explicit transaction; every write
runs inside `engine.begin()` so it either commits as a whole or rolls back.
"""

import asyncio
import logging
import re
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

import sqlalchemy as sa
from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from app.core.backend import BackendKind
from app.infrastructure.data.exceptions import (
    ConstraintViolationError,
    DataAccessError,
    DatabaseConnectionError,
    MalformedQueryError,
    RecordNotFoundError,
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

_PARAM_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


def _sqlstate(error: sa_exc.DBAPIError) -> str | None:
    """SQLSTATE carried by the driver exception, when there is one."""
    for candidate in (error.orig, getattr(error.orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def translate_error(error: BaseException, operation: str) -> DataAccessError:
    """Map a SQLAlchemy / driver / network failure onto the data-access taxonomy."""
    details = {"operation": operation, "backend": BackendKind.POSTGRES.value}

    if isinstance(error, sa_exc.IntegrityError):
        return ConstraintViolationError(
            f"Constraint violation during {operation}: {error.orig}",
            details,
            code=_sqlstate(error),
        )
    if isinstance(error, sa_exc.OperationalError | sa_exc.InterfaceError):
        code = _sqlstate(error)
        if code and not code.startswith(("08", "57P")):
            return error_for_sqlstate(code, f"{operation} failed: {error.orig}", details)
        return DatabaseConnectionError(f"Database unavailable during {operation}: {error.orig}", details, code=code)
    if isinstance(error, sa_exc.ProgrammingError):
        return MalformedQueryError(f"Malformed query during {operation}: {error.orig}", details, code=_sqlstate(error))
    if isinstance(error, sa_exc.DBAPIError):
        code = _sqlstate(error)
        return error_for_sqlstate(code, f"{operation} failed: {error.orig}", details)
    if isinstance(error, sa_exc.TimeoutError | asyncio.TimeoutError | OSError):
        return DatabaseConnectionError(f"Database unavailable during {operation}: {error}", details)
    if isinstance(error, sa_exc.ArgumentError | sa_exc.CompileError):
        return MalformedQueryError(f"Malformed query during {operation}: {error}", details)
    return DataAccessError(f"{operation} failed: {error}", details)


def build_conditions(
    table: sa.Table,
    filters: dict[str, Any] | None,
    ranges: dict[str, ValueRange] | None = None,
) -> list[sa.ColumnElement[bool]]:
    """WHERE clauses for the active filters, in mapping order.

    Scalars become equality, collections become membership, ranges become
    inclusive bounds.
    """
    conditions: list[sa.ColumnElement[bool]] = []
    for name, value in active_filters(filters):
        column = resolve_column(table, name)
        conditions.append(column.in_(value) if isinstance(value, list) else column == value)
    for name, bounds in active_ranges(ranges):
        column = resolve_column(table, name)
        if bounds.gte is not None:
            conditions.append(column >= bounds.gte)
        if bounds.lte is not None:
            conditions.append(column <= bounds.lte)
    return conditions


class PostgresQueryBackend(QueryBackend):
    """QueryBackend over a pooled AsyncEngine.

    Example:
        ```python
        backend = PostgresQueryBackend(create_engine())
        rows = await backend.query(Table.PACIENTES, QueryOptions(filters={"activo": True}))
        await backend.close()
        ```
    """

    kind = BackendKind.POSTGRES

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @asynccontextmanager
    async def connection(self, begin: bool = False, operation: str = "query") -> AsyncIterator[AsyncConnection]:
        """Pooled connection with error translation; `begin=True` wraps it in a transaction."""
        try:
            if begin:
                async with self.engine.begin() as conn:
                    yield conn
            else:
                async with self.engine.connect() as conn:
                    yield conn
        except DataAccessError:
            raise
        except (sa_exc.SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            error = translate_error(e, operation)
            logger.warning(f"PostgreSQL {operation} failed: {error.message}")
            raise error from e

    def transaction(self) -> AbstractAsyncContextManager[AsyncConnection]:
        return self.connection(begin=True, operation="transaction")

    async def query(self, table: Table | str, options: QueryOptions) -> QueryResult:
        target = resolve_table(table)
        stmt = sa.select(*resolve_columns(target, options.select)).where(
            *build_conditions(target, options.filters, options.ranges)
        )
        if options.order_by is not None:
            column = resolve_column(target, options.order_by.column)
            stmt = stmt.order_by(column.asc() if options.order_by.ascending else column.desc())
        if options.limit is not None:
            stmt = stmt.limit(options.limit).offset(options.offset)

        async with self.connection(operation=f"query {target.name}") as conn:
            result = await conn.execute(stmt)
            rows = [dict(row) for row in result.mappings()]
        return QueryResult(rows=rows, count=len(rows))

    async def count(
        self,
        table: Table | str,
        filters: dict[str, Any] | None = None,
        ranges: dict[str, ValueRange] | None = None,
    ) -> int:
        target = resolve_table(table)
        stmt = sa.select(sa.func.count()).select_from(target).where(*build_conditions(target, filters, ranges))
        async with self.connection(operation=f"count {target.name}") as conn:
            return int((await conn.execute(stmt)).scalar_one())

    async def find_by_id(
        self, table: Table | str, record_id: RecordId, id_column: str = "id"
    ) -> dict[str, Any] | None:
        target = resolve_table(table)
        stmt = sa.select(target).where(resolve_column(target, id_column) == record_id).limit(1)
        async with self.connection(operation=f"find_by_id {target.name}") as conn:
            row = (await conn.execute(stmt)).mappings().first()
        return dict(row) if row is not None else None

    async def insert(self, table: Table | str, data: dict[str, Any]) -> dict[str, Any]:
        target = resolve_table(table)
        values = {resolve_column(target, key).name: value for key, value in data.items()}
        stmt = sa.insert(target).values(values).returning(*target.c)
        async with self.connection(begin=True, operation=f"insert {target.name}") as conn:
            row = (await conn.execute(stmt)).mappings().one()
        return dict(row)

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

        values = {resolve_column(target, key).name: value for key, value in data.items()}
        stmt = (
            sa.update(target)
            .where(resolve_column(target, id_column) == record_id)
            .values(values)
            .returning(*target.c)
        )
        async with self.connection(begin=True, operation=f"update {target.name}") as conn:
            row = (await conn.execute(stmt)).mappings().first()
            if row is None:
                raise RecordNotFoundError(target.name, record_id, id_column)
        return dict(row)

    async def delete(self, table: Table | str, record_id: RecordId, id_column: str = "id") -> bool:
        target = resolve_table(table)
        stmt = sa.delete(target).where(resolve_column(target, id_column) == record_id)
        async with self.connection(begin=True, operation=f"delete {target.name}") as conn:
            result = await conn.execute(stmt)
        return result.rowcount > 0

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
        columns = [resolve_column(target, field) for field in fields]
        order_column = resolve_column(target, order_by)
        stmt = (
            sa.select(target)
            .where(sa.or_(*(column.icontains(term, autoescape=True) for column in columns)))
            .order_by(order_column.asc() if ascending else order_column.desc())
        )
        async with self.connection(operation=f"search {target.name}") as conn:
            return [dict(row) for row in (await conn.execute(stmt)).mappings()]

    async def raw_query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        if not sql or not sql.strip():
            raise MalformedQueryError("raw_query requires a SQL statement")
        async with self.connection(begin=True, operation="raw_query") as conn:
            result = await conn.execute(sa.text(sql), params or {})
            if not result.returns_rows:
                return []
            return [dict(row) for row in result.mappings()]

    async def call_procedure(self, name: Procedure | str, params: dict[str, Any]) -> Any:
        procedure = resolve_procedure(name)
        for key in params:
            if not _PARAM_NAME.match(key):
                raise MalformedQueryError(f"Invalid parameter name '{key}'", {"procedure": procedure.value})
        arguments = ", ".join(f"{key} => :{key}" for key in params)
        stmt = sa.text(f"SELECT {procedure.value}({arguments})")
        async with self.connection(begin=True, operation=f"rpc {procedure.value}") as conn:
            return (await conn.execute(stmt, params)).scalar()

    async def ping(self) -> None:
        async with self.connection(operation="ping") as conn:
            await conn.execute(sa.text("SELECT 1"))

    async def describe(self) -> dict[str, Any]:
        async with self.connection(operation="describe") as conn:
            version = conn.dialect.server_version_info or ()
        return {
            "type": self.kind.value,
            "dialect": self.engine.dialect.name,
            "server_version": ".".join(str(part) for part in version),
            "url": self.engine.url.render_as_string(hide_password=True),
            "pool": self.engine.pool.status(),
        }

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Pool PostgreSQL fermé")
