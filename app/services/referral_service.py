"""Service métier pour les remisiones (transferts de patients entre médecins).

Valide les demandes, applique le graphe de transitions configuré et délègue
l'écriture atomique au repository du backend actif.
"""

import logging
from typing import Any, Literal

from opentelemetry import trace

from app.core.config import settings
from app.infrastructure.data.exceptions import (
    ConfigurationError,
    InvalidTransitionError,
    RecordNotFoundError,
)
from app.models.referral import ReferralStatus, ReferralWorkflow
from app.repositories.referral import ReferralRepositoryPostgres, ReferralRepositorySupabase

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DoctorRole = Literal["referring", "remitente", "received", "remitido"]

_ROLE_COLUMNS = {
    "referring": "medico_remitente_id",
    "remitente": "medico_remitente_id",
    "received": "medico_remitido_id",
    "remitido": "medico_remitido_id",
}


class ReferralValidationError(ValueError):
    """Demande de remisión invalide (avant tout accès à la base)."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


def _require_positive(value: int, field: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ReferralValidationError(f"{field} must be a positive integer", field)


class ReferralService:
    """
    Cycle de vie des remisiones.

    Example:
        ```python
        service = ReferralService(context.referrals, clinic_alias=settings.CLINICA_ALIAS)
        referral = await service.create_referral(42, 1, 2, "follow-up")
        await service.update_referral_status(referral["id"], "Aceptada")
        ```
    """

    def __init__(
        self,
        repository: ReferralRepositoryPostgres | ReferralRepositorySupabase,
        clinic_alias: str | None = None,
        workflow: ReferralWorkflow | None = None,
        min_reason_length: int = settings.REFERRAL_MIN_REASON_LENGTH,
    ):
        self.repository = repository
        self.clinic_alias = clinic_alias
        self.workflow = workflow or ReferralWorkflow.from_mapping(settings.REFERRAL_TRANSITIONS)
        self.min_reason_length = min_reason_length

    async def create_referral(
        self,
        patient_id: int,
        referring_doctor_id: int,
        receiving_doctor_id: int,
        reason: str,
        observations: str | None = None,
    ) -> dict[str, Any]:
        """
        Crée une remisión à l'état Pendiente.

        Args:
            patient_id: ID du patient remis
            referring_doctor_id: Médecin qui remet
            receiving_doctor_id: Médecin qui reçoit (différent du premier)
            reason: Motif, au moins `min_reason_length` caractères hors espaces
            observations: Notes libres

        Returns:
            La remisión créée (estado_remision = Pendiente)

        Raises:
            ReferralValidationError: Données invalides
            ConfigurationError: CLINICA_ALIAS non configuré
            ConstraintViolationError: Patient ou médecin inexistant
        """
        _require_positive(patient_id, "paciente_id")
        _require_positive(referring_doctor_id, "medico_remitente_id")
        _require_positive(receiving_doctor_id, "medico_remitido_id")
        if referring_doctor_id == receiving_doctor_id:
            raise ReferralValidationError("Cannot refer patient to the same doctor", "medico_remitido_id")

        motive = (reason or "").strip()
        if len(motive) < self.min_reason_length:
            raise ReferralValidationError(
                f"motivo_remision must be at least {self.min_reason_length} characters long",
                "motivo_remision",
            )
        if not self.clinic_alias:
            raise ConfigurationError("CLINICA_ALIAS must be set to create referrals")

        with tracer.start_as_current_span("referral.create") as span:
            span.set_attribute("referral.patient_id", patient_id)
            referral = await self.repository.create_referral(
                paciente_id=patient_id,
                medico_remitente_id=referring_doctor_id,
                medico_remitido_id=receiving_doctor_id,
                motivo_remision=motive,
                observaciones=observations,
                clinica_alias=self.clinic_alias,
            )
            span.set_attribute("referral.id", referral["id"])

        logger.info(
            f"Remisión {referral['id']} créée: patient {patient_id}, "
            f"médecin {referring_doctor_id} -> {receiving_doctor_id}"
        )
        return referral

    async def update_referral_status(
        self,
        referral_id: int,
        new_status: str | ReferralStatus,
        observations: str | None = None,
    ) -> dict[str, Any]:
        """
        Fait passer une remisión dans un nouvel état.

        La garde (état courant autorisé) est évaluée par la base dans la même
        opération que l'écriture.

        Raises:
            InvalidStatusError: État inconnu
            RecordNotFoundError: Remisión inexistante
            InvalidTransitionError: Transition non autorisée depuis l'état courant
        """
        _require_positive(referral_id, "id")
        target = ReferralStatus.parse(new_status)

        sources = self.workflow.sources_for(target)
        with tracer.start_as_current_span("referral.update_status") as span:
            span.set_attribute("referral.id", referral_id)
            span.set_attribute("referral.target_status", target.value)
            if not sources:
                current = await self.repository.find_by_id(referral_id)
                if current is None:
                    raise RecordNotFoundError(self.repository.table.value, referral_id)
                raise InvalidTransitionError(referral_id, current.get("estado_remision"), target.value)

            referral = await self.repository.update_status(referral_id, target, observations, sources)

        logger.info(f"Remisión {referral_id} -> {target.value}")
        return referral

    async def get_referrals_by_doctor(self, doctor_id: int, role: DoctorRole) -> list[dict[str, Any]]:
        """Remisiones envoyées ("referring") ou reçues ("received") par un médecin."""
        _require_positive(doctor_id, "medico_id")
        column = _ROLE_COLUMNS.get(role)
        if column is None:
            raise ReferralValidationError(
                'role must be one of "referring", "received" (or "remitente", "remitido")', "role"
            )
        return await self.repository.find_by_doctor(doctor_id, column)

    async def get_referrals_by_patient(self, patient_id: int) -> list[dict[str, Any]]:
        _require_positive(patient_id, "paciente_id")
        return await self.repository.find_by_patient(patient_id)

    async def get_referral_by_id(self, referral_id: int) -> dict[str, Any] | None:
        _require_positive(referral_id, "id")
        return await self.repository.find_detailed_by_id(referral_id)

    async def get_all_referrals(self) -> list[dict[str, Any]]:
        return await self.repository.find_detailed()

    async def get_referrals_by_status(self, status: str | ReferralStatus) -> list[dict[str, Any]]:
        return await self.repository.find_detailed(ReferralStatus.parse(status))

    async def get_referral_statistics(self) -> dict[str, int]:
        """Total et nombre de remisiones par état."""
        counts = await self.repository.count_by_status()
        return {
            "total": sum(counts.values()),
            "pendientes": counts[ReferralStatus.PENDING],
            "aceptadas": counts[ReferralStatus.ACCEPTED],
            "rechazadas": counts[ReferralStatus.REJECTED],
            "completadas": counts[ReferralStatus.COMPLETED],
        }
