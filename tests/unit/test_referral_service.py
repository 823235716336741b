"""Tests du service des remisiones."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.config import DEFAULT_REFERRAL_TRANSITIONS
from app.infrastructure.data.exceptions import (
    ConfigurationError,
    InvalidTransitionError,
    RecordNotFoundError,
)
from app.models.referral import InvalidStatusError, ReferralStatus, ReferralWorkflow
from app.services.referral_service import ReferralService, ReferralValidationError


@pytest.fixture
def workflow() -> ReferralWorkflow:
    return ReferralWorkflow.from_mapping(DEFAULT_REFERRAL_TRANSITIONS)


@pytest.fixture
def service(seeded_context, workflow) -> ReferralService:
    return ReferralService(seeded_context.referrals, clinic_alias="clinica-test", workflow=workflow)


@pytest.fixture
def mock_repository():
    repository = MagicMock()
    repository.table.value = "remisiones"
    for method in (
        "create_referral",
        "update_status",
        "find_by_id",
        "find_by_doctor",
        "find_by_patient",
        "find_detailed",
        "find_detailed_by_id",
        "count_by_status",
    ):
        setattr(repository, method, AsyncMock())
    return repository


@pytest.mark.asyncio
class TestReferralLifecycle:
    async def test_create_accept_then_back_to_pending_fails(self, service, seeded_context):
        await seeded_context.patients.create({"id": 42, "nombres": "Pedro", "apellidos": "Salas"})

        referral = await service.create_referral(42, 1, 2, "follow-up")
        assert referral["estado_remision"] == "Pendiente"
        assert referral["fecha_creacion"] is not None
        assert referral["fecha_respuesta"] is None

        accepted = await service.update_referral_status(referral["id"], "Accepted")
        assert accepted["estado_remision"] == "Aceptada"
        assert accepted["fecha_respuesta"] is not None

        with pytest.raises(InvalidTransitionError):
            await service.update_referral_status(referral["id"], "Pending")

    async def test_received_referrals_of_a_doctor(self, service):
        older = await service.create_referral(1, 1, 2, "Evaluación cardiológica")
        await service.create_referral(2, 2, 1, "Control de tensión")
        newer = await service.create_referral(2, 1, 2, "Segunda opinión")

        referrals = await service.get_referrals_by_doctor(2, "received")

        assert [r["id"] for r in referrals] == [newer["id"], older["id"]]
        for referral in referrals:
            assert referral["medico_remitido_id"] == 2
            assert referral["medico_remitente_nombre"] == "Ana"
            assert referral["medico_remitido_nombre"] == "Luis"
            assert referral["paciente_nombre"]

    async def test_full_path_to_completion(self, service):
        referral = await service.create_referral(1, 1, 2, "Cirugía programada", observations="urgente")

        await service.update_referral_status(referral["id"], ReferralStatus.ACCEPTED)
        completed = await service.update_referral_status(referral["id"], "Completada", "alta médica")

        assert completed["estado_remision"] == "Completada"
        assert completed["observaciones"] == "alta médica"

    @pytest.mark.parametrize("terminal", ["Rechazada", "Completada"])
    async def test_terminal_states_refuse_every_transition(self, service, terminal):
        referral = await service.create_referral(1, 1, 2, "Evaluación")
        if terminal == "Completada":
            await service.update_referral_status(referral["id"], "Aceptada")
        await service.update_referral_status(referral["id"], terminal)

        for target in ReferralStatus:
            with pytest.raises(InvalidTransitionError):
                await service.update_referral_status(referral["id"], target)

    async def test_statistics(self, service):
        first = await service.create_referral(1, 1, 2, "Evaluación")
        second = await service.create_referral(2, 1, 2, "Evaluación")
        await service.create_referral(2, 2, 1, "Evaluación")
        await service.update_referral_status(first["id"], "Aceptada")
        await service.update_referral_status(second["id"], "Rechazada")

        assert await service.get_referral_statistics() == {
            "total": 3,
            "pendientes": 1,
            "aceptadas": 1,
            "rechazadas": 1,
            "completadas": 0,
        }

    async def test_lookups(self, service):
        referral = await service.create_referral(1, 1, 2, "Evaluación")

        assert (await service.get_referral_by_id(referral["id"]))["paciente_apellidos"] == "González"
        assert await service.get_referral_by_id(999) is None
        assert len(await service.get_referrals_by_patient(1)) == 1
        assert len(await service.get_all_referrals()) == 1
        assert len(await service.get_referrals_by_status("pendiente")) == 1
        assert await service.get_referrals_by_status("Completada") == []


@pytest.mark.asyncio
class TestReferralValidation:
    async def test_same_doctor(self, mock_repository):
        service = ReferralService(mock_repository, clinic_alias="c")
        with pytest.raises(ReferralValidationError, match="same doctor") as exc_info:
            await service.create_referral(1, 3, 3, "follow-up")
        assert exc_info.value.field == "medico_remitido_id"
        mock_repository.create_referral.assert_not_called()

    @pytest.mark.parametrize("reason", ["", "   ", "abc", " ab  "])
    async def test_reason_too_short(self, mock_repository, reason):
        service = ReferralService(mock_repository, clinic_alias="c", min_reason_length=5)
        with pytest.raises(ReferralValidationError) as exc_info:
            await service.create_referral(1, 1, 2, reason)
        assert exc_info.value.field == "motivo_remision"

    @pytest.mark.parametrize("ids", [(0, 1, 2), (1, -1, 2), (1, 1, True)])
    async def test_ids_must_be_positive_integers(self, mock_repository, ids):
        service = ReferralService(mock_repository, clinic_alias="c")
        with pytest.raises(ReferralValidationError):
            await service.create_referral(*ids, "follow-up")

    async def test_reason_is_stripped(self, mock_repository):
        mock_repository.create_referral.return_value = {"id": 1}
        service = ReferralService(mock_repository, clinic_alias="sede-norte")

        await service.create_referral(1, 1, 2, "  follow-up  ")

        kwargs = mock_repository.create_referral.call_args.kwargs
        assert kwargs["motivo_remision"] == "follow-up"
        assert kwargs["clinica_alias"] == "sede-norte"

    async def test_missing_clinic_alias(self, mock_repository):
        service = ReferralService(mock_repository, clinic_alias=None)
        with pytest.raises(ConfigurationError, match="CLINICA_ALIAS"):
            await service.create_referral(1, 1, 2, "follow-up")

    async def test_unknown_status(self, mock_repository):
        service = ReferralService(mock_repository, clinic_alias="c")
        with pytest.raises(InvalidStatusError):
            await service.update_referral_status(1, "Archivada")
        mock_repository.update_status.assert_not_called()

    async def test_unknown_role(self, mock_repository):
        service = ReferralService(mock_repository, clinic_alias="c")
        with pytest.raises(ReferralValidationError) as exc_info:
            await service.get_referrals_by_doctor(1, "observer")  # type: ignore[arg-type]
        assert exc_info.value.field == "role"

    @pytest.mark.parametrize(
        ("role", "column"),
        [
            ("referring", "medico_remitente_id"),
            ("remitente", "medico_remitente_id"),
            ("received", "medico_remitido_id"),
            ("remitido", "medico_remitido_id"),
        ],
    )
    async def test_role_aliases(self, mock_repository, role, column):
        mock_repository.find_by_doctor.return_value = []
        await ReferralService(mock_repository).get_referrals_by_doctor(4, role)
        mock_repository.find_by_doctor.assert_awaited_once_with(4, column)


@pytest.mark.asyncio
class TestStatusUpdateGuard:
    async def test_allowed_sources_come_from_workflow(self, mock_repository, workflow):
        mock_repository.update_status.return_value = {"id": 5, "estado_remision": "Completada"}
        service = ReferralService(mock_repository, workflow=workflow)

        await service.update_referral_status(5, "completed", "ok")

        mock_repository.update_status.assert_awaited_once_with(
            5, ReferralStatus.COMPLETED, "ok", frozenset({ReferralStatus.ACCEPTED})
        )

    async def test_unreachable_target_fails_without_writing(self, mock_repository, workflow):
        mock_repository.find_by_id.return_value = {"id": 5, "estado_remision": "Aceptada"}
        service = ReferralService(mock_repository, workflow=workflow)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await service.update_referral_status(5, "Pendiente")

        assert exc_info.value.current == "Aceptada"
        mock_repository.update_status.assert_not_called()

    async def test_unreachable_target_on_missing_referral(self, mock_repository, workflow):
        mock_repository.find_by_id.return_value = None
        service = ReferralService(mock_repository, workflow=workflow)

        with pytest.raises(RecordNotFoundError):
            await service.update_referral_status(5, "Pendiente")
