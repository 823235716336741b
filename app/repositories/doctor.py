"""Repository des médecins (table medicos)."""

from typing import Any

from app.infrastructure.data.tables import Table
from app.repositories.base import BaseRepository


class DoctorRepository(BaseRepository):
    table = Table.MEDICOS

    async def search_by_name(self, name: str) -> list[dict[str, Any]]:
        return await self.search(name, ["nombres", "apellidos"])
