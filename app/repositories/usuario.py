"""Repository des comptes utilisateurs (table usuarios)."""

import logging
from typing import Any

import sqlalchemy as sa

from app.core.backend import ACTIVE_BACKEND, BackendKind
from app.infrastructure.data.tables import Table
from app.repositories.base import PostgresRepository, SupabaseRepository

logger = logging.getLogger(__name__)


class UsuarioRepositoryPostgres(PostgresRepository):
    table = Table.USUARIOS

    async def find_by_username(self, username: str) -> dict[str, Any] | None:
        """
        Recherche un compte actif par username.

        Returns:
            Le compte, ou None s'il n'existe pas ou est désactivé
        """
        t = self.sa_table
        stmt = sa.select(t).where(t.c.username == username, t.c.activo.is_(True)).limit(1)
        usuario = await self.fetch_one(stmt, "find_by_username")
        if usuario is None:
            logger.debug(f"Aucun compte actif pour username={username}")
        return usuario


class UsuarioRepositorySupabase(SupabaseRepository):
    table = Table.USUARIOS

    async def find_by_username(self, username: str) -> dict[str, Any] | None:
        builder = self.builder().eq("username", username).eq("activo", True)
        usuario = await self.fetch_one(builder, "find_by_username")
        if usuario is None:
            logger.debug(f"Aucun compte actif pour username={username}")
        return usuario


UsuarioRepository = (
    UsuarioRepositoryPostgres if ACTIVE_BACKEND is BackendKind.POSTGRES else UsuarioRepositorySupabase
)
