"""Repository des rendez-vous (table appointments).

Toutes les listes sont triées par date de rendez-vous croissante.
"""

from datetime import date
from typing import Any

from app.infrastructure.data.query import OrderBy, QueryOptions, ValueRange
from app.infrastructure.data.tables import Table
from app.repositories.base import BaseRepository

SCHEDULED = "scheduled"
APPOINTMENT_STATUSES = ("scheduled", "completed", "cancelled", "no_show")

_BY_DATE = OrderBy(column="appointment_date", ascending=True)


class AppointmentRepository(BaseRepository):
    table = Table.APPOINTMENTS

    async def find_by_patient(self, patient_id: int) -> list[dict[str, Any]]:
        return await self.list_where(QueryOptions(filters={"patient_id": patient_id}, order_by=_BY_DATE))

    async def find_by_doctor(self, doctor_id: int) -> list[dict[str, Any]]:
        return await self.list_where(QueryOptions(filters={"doctor_id": doctor_id}, order_by=_BY_DATE))

    async def find_by_date_range(self, start: date, end: date) -> list[dict[str, Any]]:
        """Rendez-vous entre `start` et `end` inclus."""
        return await self.list_where(
            QueryOptions(ranges={"appointment_date": ValueRange(gte=start, lte=end)}, order_by=_BY_DATE)
        )

    async def find_by_status(self, status: str) -> list[dict[str, Any]]:
        return await self.list_where(QueryOptions(filters={"status": status}, order_by=_BY_DATE))

    async def upcoming(self, doctor_id: int | None = None, today: date | None = None) -> list[dict[str, Any]]:
        """
        Rendez-vous planifiés à partir d'aujourd'hui.

        Args:
            doctor_id: Restreint à un médecin si fourni
            today: Date de référence (par défaut date du jour)
        """
        return await self.list_where(
            QueryOptions(
                filters={"status": SCHEDULED, "doctor_id": doctor_id},
                ranges={"appointment_date": ValueRange(gte=today or date.today())},
                order_by=_BY_DATE,
            )
        )
