"""Repository des patients (table pacientes)."""

from typing import Any, get_args

import sqlalchemy as sa

from app.core.backend import ACTIVE_BACKEND, BackendKind
from app.infrastructure.data.exceptions import MalformedQueryError
from app.infrastructure.data.tables import Table
from app.models.patient import Sexo
from app.repositories.base import BaseRepository, PostgresRepository, SupabaseRepository

SEARCH_NAME_FIELDS = ["nombres", "apellidos"]


def _check_sexo(sexo: str) -> str:
    if sexo not in get_args(Sexo):
        raise MalformedQueryError(
            f"Invalid sexo '{sexo}'. Must be one of: {', '.join(get_args(Sexo))}",
            {"sexo": sexo},
        )
    return sexo


class _PatientQueries(BaseRepository):
    table = Table.PACIENTES

    async def search_by_name(self, name: str) -> list[dict[str, Any]]:
        """Recherche partielle sur nombres ou apellidos."""
        return await self.search(name, SEARCH_NAME_FIELDS)

    async def search_by_cedula(self, cedula: str) -> list[dict[str, Any]]:
        return await self.search(cedula, ["cedula"])


class PatientRepositoryPostgres(PostgresRepository, _PatientQueries):
    """Patients via SQLAlchemy Core."""

    async def find_by_email(self, email: str) -> dict[str, Any] | None:
        t = self.sa_table
        return await self.fetch_one(sa.select(t).where(t.c.email == email).limit(1), "find_by_email")

    async def find_by_age_range(self, min_age: int, max_age: int) -> list[dict[str, Any]]:
        t = self.sa_table
        stmt = sa.select(t).where(t.c.edad >= min_age, t.c.edad <= max_age).order_by(t.c.id.desc())
        return await self.fetch_all(stmt, "find_by_age_range")

    async def find_by_sex(self, sexo: str) -> list[dict[str, Any]]:
        t = self.sa_table
        stmt = sa.select(t).where(t.c.sexo == _check_sexo(sexo)).order_by(t.c.id.desc())
        return await self.fetch_all(stmt, "find_by_sex")


class PatientRepositorySupabase(SupabaseRepository, _PatientQueries):
    """Patients via le client Supabase."""

    async def find_by_email(self, email: str) -> dict[str, Any] | None:
        return await self.fetch_one(self.builder().eq("email", email), "find_by_email")

    async def find_by_age_range(self, min_age: int, max_age: int) -> list[dict[str, Any]]:
        builder = self.builder().gte("edad", min_age).lte("edad", max_age).order("id", desc=True)
        return await self.fetch_all(builder, "find_by_age_range")

    async def find_by_sex(self, sexo: str) -> list[dict[str, Any]]:
        builder = self.builder().eq("sexo", _check_sexo(sexo)).order("id", desc=True)
        return await self.fetch_all(builder, "find_by_sex")


PatientRepository = (
    PatientRepositoryPostgres if ACTIVE_BACKEND is BackendKind.POSTGRES else PatientRepositorySupabase
)
