"""
Contrat commun des repositories.

BaseRepository implémente le contrat (find_all, find_by_id, create, update,
delete, search) uniquement via le QueryAdapter, donc identique sur les deux
backends. PostgresRepository et SupabaseRepository ajoutent l'accès natif
(expressions SQLAlchemy Core ou builder PostgREST) pour les requêtes propres
à une entité.
"""

import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, ClassVar

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine
from supabase import AsyncClient

from app.core.backend import BackendKind
from app.infrastructure.data.adapter import QueryAdapter
from app.infrastructure.data.exceptions import ConfigurationError, MalformedQueryError
from app.infrastructure.data.postgres_backend import PostgresQueryBackend
from app.infrastructure.data.protocol import RecordId
from app.infrastructure.data.query import OrderBy, Page, PaginationInfo, QueryOptions
from app.infrastructure.data.supabase_backend import SupabaseQueryBackend
from app.infrastructure.data.tables import Table, resolve_table

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


class BaseRepository:
    """
    Repository générique sur une table de l'énumération `Table`.

    Les sous-classes fixent `table` (et `id_column` si différent de "id").
    """

    table: ClassVar[Table]
    id_column: ClassVar[str] = "id"

    def __init__(self, adapter: QueryAdapter):
        self.adapter = adapter

    @property
    def kind(self) -> BackendKind:
        return self.adapter.kind

    async def find_all(
        self,
        filters: dict[str, Any] | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Page:
        """
        Liste paginée, id décroissant.

        Les filtres vides (None, "", collection vide) sont ignorés; une
        collection devient une condition d'appartenance.

        Args:
            filters: Mapping colonne -> valeur
            page: Numéro de page (>= 1)
            limit: Taille de page (>= 1)

        Returns:
            Page(data, pagination) avec pages = ceil(total / limit)

        Raises:
            MalformedQueryError: page/limit invalides, colonne inconnue
        """
        if page < 1 or limit < 1:
            raise MalformedQueryError(
                "page and limit must be positive integers",
                {"page": page, "limit": limit},
            )

        total = await self.adapter.count(self.table, filters)
        result = await self.adapter.query(
            self.table,
            QueryOptions(
                filters=filters or {},
                order_by=OrderBy(column=self.id_column, ascending=False),
                limit=limit,
                offset=(page - 1) * limit,
            ),
        )
        return Page(data=result.rows, pagination=PaginationInfo.build(page, limit, total))

    async def find_by_id(self, record_id: RecordId) -> dict[str, Any] | None:
        return await self.adapter.find_by_id(self.table, record_id, self.id_column)

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self.adapter.insert(self.table, data)

    async def update(self, record_id: RecordId, data: dict[str, Any]) -> dict[str, Any]:
        return await self.adapter.update(self.table, record_id, data, self.id_column)

    async def delete(self, record_id: RecordId) -> bool:
        return await self.adapter.delete(self.table, record_id, self.id_column)

    async def search(self, term: str, fields: list[str]) -> list[dict[str, Any]]:
        """Correspondance partielle insensible à la casse sur l'un des champs, id décroissant."""
        return await self.adapter.search(self.table, term, fields, order_by=self.id_column)

    async def list_where(self, options: QueryOptions) -> list[dict[str, Any]]:
        """Lignes correspondant à `options`, sans pagination."""
        return (await self.adapter.query(self.table, options)).rows


class PostgresRepository(BaseRepository):
    """Repository adossé au backend PostgreSQL (accès SQLAlchemy Core natif)."""

    def __init__(self, adapter: QueryAdapter):
        if not isinstance(adapter.backend, PostgresQueryBackend):
            raise ConfigurationError(
                f"{type(self).__name__} requires the postgres backend, got '{adapter.kind.value}'"
            )
        super().__init__(adapter)
        self.backend: PostgresQueryBackend = adapter.backend

    @property
    def engine(self) -> AsyncEngine:
        return self.backend.engine

    @property
    def sa_table(self) -> sa.Table:
        return resolve_table(self.table)

    def transaction(self) -> AbstractAsyncContextManager[AsyncConnection]:
        """Unité de travail: commit si succès, rollback sur toute exception."""
        return self.backend.transaction()

    async def raw_query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        return await self.adapter.raw_query(sql, params)

    async def fetch_all(self, stmt: sa.Executable, operation: str = "fetch") -> list[dict[str, Any]]:
        async with self.backend.connection(operation=f"{operation} {self.table.value}") as conn:
            result = await conn.execute(stmt)
            return [dict(row) for row in result.mappings()]

    async def fetch_one(self, stmt: sa.Executable, operation: str = "fetch") -> dict[str, Any] | None:
        rows = await self.fetch_all(stmt, operation)
        return rows[0] if rows else None


class SupabaseRepository(BaseRepository):
    """Repository adossé au client Supabase (builder PostgREST natif)."""

    def __init__(self, adapter: QueryAdapter):
        if not isinstance(adapter.backend, SupabaseQueryBackend):
            raise ConfigurationError(
                f"{type(self).__name__} requires the supabase backend, got '{adapter.kind.value}'"
            )
        super().__init__(adapter)
        self.backend: SupabaseQueryBackend = adapter.backend

    @property
    def client(self) -> AsyncClient:
        return self.backend.client

    def builder(self, columns: str = "*") -> Any:
        """Requête `select` sur la table du repository."""
        return self.client.table(self.table.value).select(columns)

    async def execute(self, builder: Any, operation: str = "request") -> Any:
        return await self.backend.execute(builder, f"{operation} {self.table.value}")

    async def fetch_all(self, builder: Any, operation: str = "fetch") -> list[dict[str, Any]]:
        response = await self.execute(builder, operation)
        return list(response.data or [])

    async def fetch_one(self, builder: Any, operation: str = "fetch") -> dict[str, Any] | None:
        rows = await self.fetch_all(builder.limit(1), operation)
        return rows[0] if rows else None
