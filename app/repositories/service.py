"""Repository du catalogue de services facturables (table servicios)."""

from typing import Any

from app.infrastructure.data.adapter import QueryAdapter
from app.infrastructure.data.exceptions import ConfigurationError
from app.infrastructure.data.query import OrderBy, QueryOptions
from app.infrastructure.data.tables import Table
from app.repositories.base import BaseRepository


class ServiceRepository(BaseRepository):
    """Les services appartiennent à une clinique: clinica_alias est imposé à la création."""

    table = Table.SERVICIOS

    def __init__(self, adapter: QueryAdapter, clinic_alias: str | None = None):
        super().__init__(adapter)
        self.clinic_alias = clinic_alias

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        """
        Crée un service rattaché à la clinique courante.

        Raises:
            ConfigurationError: CLINICA_ALIAS non configuré
        """
        if not self.clinic_alias:
            raise ConfigurationError("CLINICA_ALIAS must be set to create services")
        return await super().create({**data, "clinica_alias": self.clinic_alias})

    async def find_active(self) -> list[dict[str, Any]]:
        """
        Services actifs de la clinique courante, par nom.

        Raises:
            ConfigurationError: CLINICA_ALIAS non configuré
        """
        if not self.clinic_alias:
            raise ConfigurationError("CLINICA_ALIAS must be set to list services")
        return await self.list_where(
            QueryOptions(
                filters={"activo": True, "clinica_alias": self.clinic_alias},
                order_by=OrderBy(column="nombre_servicio"),
            )
        )
