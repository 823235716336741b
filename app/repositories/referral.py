"""
Repository des remisiones.

Les écritures qui touchent à l'état d'une remisión sont atomiques:
- PostgreSQL: une seule transaction, UPDATE gardé par l'état courant
- Supabase: procédures stockées crear_remision / actualizar_estado_remision

Les lectures "détaillées" joignent le patient et les deux médecins et
exposent paciente_nombre, paciente_apellidos, medico_remitente_nombre,
medico_remitente_apellidos, medico_remitido_nombre, medico_remitido_apellidos.
"""

import logging
from collections.abc import Iterable
from typing import Any, Literal

import sqlalchemy as sa

from app.core.backend import ACTIVE_BACKEND, BackendKind
from app.infrastructure.data.exceptions import (
    NOT_FOUND_CODES,
    DataAccessError,
    InvalidTransitionError,
    RecordNotFoundError,
    UnsupportedOperationError,
)
from app.infrastructure.data.protocol import RecordId
from app.infrastructure.data.tables import Procedure, Table, resolve_table
from app.models.referral import ReferralStatus
from app.repositories.base import BaseRepository, PostgresRepository, SupabaseRepository

logger = logging.getLogger(__name__)

DoctorColumn = Literal["medico_remitente_id", "medico_remitido_id"]

# SQLSTATE levée par actualizar_estado_remision pour une transition refusée
INVALID_TRANSITION_CODE = "22023"


class _ReferralQueries(BaseRepository):
    table = Table.REMISIONES

    async def delete(self, record_id: RecordId) -> bool:
        raise UnsupportedOperationError(
            "Referrals cannot be deleted; reject or complete them instead",
            {"table": self.table.value, "record_id": record_id},
        )

    async def count_by_status(self) -> dict[ReferralStatus, int]:
        """Nombre de remisiones par état (tous les états présents, même à zéro)."""
        return {
            status: await self.adapter.count(self.table, {"estado_remision": status.value})
            for status in ReferralStatus
        }


class ReferralRepositoryPostgres(PostgresRepository, _ReferralQueries):
    """Remisiones via SQLAlchemy Core, transitions dans une transaction."""

    def _detailed(self) -> sa.Select:
        r = self.sa_table
        p = resolve_table(Table.PACIENTES).alias("p")
        m1 = resolve_table(Table.MEDICOS).alias("m1")
        m2 = resolve_table(Table.MEDICOS).alias("m2")
        return sa.select(
            r,
            p.c.nombres.label("paciente_nombre"),
            p.c.apellidos.label("paciente_apellidos"),
            m1.c.nombres.label("medico_remitente_nombre"),
            m1.c.apellidos.label("medico_remitente_apellidos"),
            m2.c.nombres.label("medico_remitido_nombre"),
            m2.c.apellidos.label("medico_remitido_apellidos"),
        ).select_from(
            r.outerjoin(p, r.c.paciente_id == p.c.id)
            .outerjoin(m1, r.c.medico_remitente_id == m1.c.id)
            .outerjoin(m2, r.c.medico_remitido_id == m2.c.id)
        )

    def _newest_first(self, stmt: sa.Select) -> sa.Select:
        r = self.sa_table
        return stmt.order_by(r.c.fecha_creacion.desc(), r.c.id.desc())

    async def create_referral(
        self,
        paciente_id: int,
        medico_remitente_id: int,
        medico_remitido_id: int,
        motivo_remision: str,
        observaciones: str | None,
        clinica_alias: str,
    ) -> dict[str, Any]:
        """Insère une remisión Pendiente dans une transaction unique."""
        r = self.sa_table
        stmt = (
            sa.insert(r)
            .values(
                paciente_id=paciente_id,
                medico_remitente_id=medico_remitente_id,
                medico_remitido_id=medico_remitido_id,
                motivo_remision=motivo_remision,
                observaciones=observaciones,
                estado_remision=ReferralStatus.PENDING.value,
                clinica_alias=clinica_alias,
            )
            .returning(*r.c)
        )
        async with self.transaction() as conn:
            row = (await conn.execute(stmt)).mappings().one()
        return dict(row)

    async def update_status(
        self,
        referral_id: int,
        status: ReferralStatus,
        observations: str | None,
        allowed_sources: Iterable[ReferralStatus],
    ) -> dict[str, Any]:
        """
        Transition gardée: l'UPDATE ne s'applique que si l'état courant fait
        partie de `allowed_sources`.

        Raises:
            RecordNotFoundError: Remisión inexistante
            InvalidTransitionError: État courant ne permettant pas la transition
        """
        r = self.sa_table
        values: dict[str, Any] = {"estado_remision": status.value}
        if status is not ReferralStatus.PENDING:
            values["fecha_respuesta"] = sa.func.now()
        if observations is not None:
            values["observaciones"] = observations

        sources = [source.value for source in allowed_sources]
        stmt = (
            sa.update(r)
            .where(r.c.id == referral_id, r.c.estado_remision.in_(sources))
            .values(values)
            .returning(*r.c)
        )
        async with self.transaction() as conn:
            row = (await conn.execute(stmt)).mappings().first()
            if row is None:
                current = (
                    await conn.execute(sa.select(r.c.estado_remision).where(r.c.id == referral_id))
                ).scalar_one_or_none()
                if current is None:
                    raise RecordNotFoundError(r.name, referral_id)
                raise InvalidTransitionError(referral_id, current, status.value)
        return dict(row)

    async def find_by_doctor(self, doctor_id: int, column: DoctorColumn) -> list[dict[str, Any]]:
        r = self.sa_table
        stmt = self._newest_first(self._detailed().where(r.c[column] == doctor_id))
        return await self.fetch_all(stmt, "find_by_doctor")

    async def find_by_patient(self, patient_id: int) -> list[dict[str, Any]]:
        r = self.sa_table
        stmt = self._newest_first(self._detailed().where(r.c.paciente_id == patient_id))
        return await self.fetch_all(stmt, "find_by_patient")

    async def find_detailed(self, status: ReferralStatus | None = None) -> list[dict[str, Any]]:
        """Toutes les remisiones (ou celles d'un état), les plus récentes d'abord."""
        r = self.sa_table
        stmt = self._detailed()
        if status is not None:
            stmt = stmt.where(r.c.estado_remision == status.value)
        return await self.fetch_all(self._newest_first(stmt), "find_detailed")

    async def find_detailed_by_id(self, referral_id: int) -> dict[str, Any] | None:
        r = self.sa_table
        return await self.fetch_one(self._detailed().where(r.c.id == referral_id), "find_detailed_by_id")


# Jointures PostgREST; le hint !colonne désambiguïse les deux clés vers medicos
DETAIL_SELECT = (
    "*, "
    "paciente:pacientes(nombres,apellidos), "
    "remitente:medicos!medico_remitente_id(nombres,apellidos), "
    "remitido:medicos!medico_remitido_id(nombres,apellidos)"
)


def flatten_detail(row: dict[str, Any]) -> dict[str, Any]:
    """Aplatit les objets imbriqués PostgREST vers les colonnes *_nombre / *_apellidos."""
    flat = dict(row)
    for embedded, prefix in (
        ("paciente", "paciente"),
        ("remitente", "medico_remitente"),
        ("remitido", "medico_remitido"),
    ):
        related = flat.pop(embedded, None) or {}
        flat[f"{prefix}_nombre"] = related.get("nombres")
        flat[f"{prefix}_apellidos"] = related.get("apellidos")
    return flat


def _returned_id(data: Any) -> Any:
    """Identifiant renvoyé par une RPC (scalaire, ligne ou liste de lignes)."""
    if isinstance(data, list):
        data = data[0] if data else None
    if isinstance(data, dict):
        data = data.get("id", next(iter(data.values()), None))
    return data


class ReferralRepositorySupabase(SupabaseRepository, _ReferralQueries):
    """Remisiones via le client Supabase, transitions par procédure stockée."""

    async def create_referral(
        self,
        paciente_id: int,
        medico_remitente_id: int,
        medico_remitido_id: int,
        motivo_remision: str,
        observaciones: str | None,
        clinica_alias: str,
    ) -> dict[str, Any]:
        data = await self.adapter.call_procedure(
            Procedure.CREAR_REMISION,
            {
                "p_paciente_id": paciente_id,
                "p_medico_remitente_id": medico_remitente_id,
                "p_medico_remitido_id": medico_remitido_id,
                "p_motivo_remision": motivo_remision,
                "p_observaciones": observaciones,
                "p_clinica_alias": clinica_alias,
            },
        )
        referral_id = _returned_id(data)
        row = await self.find_by_id(referral_id) if referral_id is not None else None
        if row is None:
            raise DataAccessError(
                "crear_remision did not return the created referral",
                {"procedure": Procedure.CREAR_REMISION.value, "returned": data},
            )
        return row

    async def update_status(
        self,
        referral_id: int,
        status: ReferralStatus,
        observations: str | None,
        allowed_sources: Iterable[ReferralStatus],
    ) -> dict[str, Any]:
        try:
            await self.adapter.call_procedure(
                Procedure.ACTUALIZAR_ESTADO_REMISION,
                {
                    "p_remision_id": referral_id,
                    "p_estado": status.value,
                    "p_observaciones": observations,
                    "p_estados_origen": [source.value for source in allowed_sources],
                },
            )
        except DataAccessError as e:
            if e.code in NOT_FOUND_CODES:
                raise RecordNotFoundError(self.table.value, referral_id) from e
            if e.code == INVALID_TRANSITION_CODE:
                current = await self.find_by_id(referral_id)
                raise InvalidTransitionError(
                    referral_id,
                    current.get("estado_remision") if current else None,
                    status.value,
                ) from e
            raise

        row = await self.find_by_id(referral_id)
        if row is None:
            raise RecordNotFoundError(self.table.value, referral_id)
        return row

    async def find_by_doctor(self, doctor_id: int, column: DoctorColumn) -> list[dict[str, Any]]:
        builder = self.builder(DETAIL_SELECT).eq(column, doctor_id)
        return await self._fetch_detailed(builder, "find_by_doctor")

    async def find_by_patient(self, patient_id: int) -> list[dict[str, Any]]:
        builder = self.builder(DETAIL_SELECT).eq("paciente_id", patient_id)
        return await self._fetch_detailed(builder, "find_by_patient")

    async def find_detailed(self, status: ReferralStatus | None = None) -> list[dict[str, Any]]:
        builder = self.builder(DETAIL_SELECT)
        if status is not None:
            builder = builder.eq("estado_remision", status.value)
        return await self._fetch_detailed(builder, "find_detailed")

    async def find_detailed_by_id(self, referral_id: int) -> dict[str, Any] | None:
        row = await self.fetch_one(self.builder(DETAIL_SELECT).eq("id", referral_id), "find_detailed_by_id")
        return flatten_detail(row) if row is not None else None

    async def _fetch_detailed(self, builder: Any, operation: str) -> list[dict[str, Any]]:
        builder = builder.order("fecha_creacion", desc=True).order("id", desc=True)
        return [flatten_detail(row) for row in await self.fetch_all(builder, operation)]


ReferralRepository = (
    ReferralRepositoryPostgres if ACTIVE_BACKEND is BackendKind.POSTGRES else ReferralRepositorySupabase
)
