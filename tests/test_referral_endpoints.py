"""Tests des endpoints remisiones, patients et santé (dépendances simulées)."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from fastapi_errors_rfc9457 import RFC9457Config, setup_rfc9457_handlers

from app.api.v1 import health
from app.api.v1.endpoints import patients, referrals
from app.core.backend import BackendKind
from app.core.dependencies import get_data_context, get_referral_service
from app.infrastructure.data.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    InvalidTransitionError,
    RecordNotFoundError,
)
from app.infrastructure.data.query import Page, PaginationInfo
from app.models.referral import InvalidStatusError
from app.services.referral_service import ReferralValidationError

NOW = datetime(2026, 10, 19, 9, 30, tzinfo=UTC)


def referral_row(referral_id: int = 7, estado: str = "Pendiente", **extra) -> dict:
    return {
        "id": referral_id,
        "paciente_id": 42,
        "medico_remitente_id": 1,
        "medico_remitido_id": 2,
        "motivo_remision": "follow-up",
        "observaciones": None,
        "estado_remision": estado,
        "clinica_alias": "clinica-test",
        "fecha_remision": NOW,
        "fecha_respuesta": None,
        "fecha_creacion": NOW,
        "fecha_actualizacion": NOW,
        **extra,
    }


def patient_row(patient_id: int) -> dict:
    return {"id": patient_id, "nombres": "María", "apellidos": "González", "activo": True}


@pytest.fixture
def referral_service():
    service = MagicMock()
    for method in (
        "create_referral",
        "update_referral_status",
        "get_referrals_by_doctor",
        "get_referrals_by_patient",
        "get_referral_by_id",
        "get_all_referrals",
        "get_referrals_by_status",
        "get_referral_statistics",
    ):
        setattr(service, method, AsyncMock())
    return service


@pytest.fixture
def data_context():
    context = MagicMock()
    context.kind = BackendKind.POSTGRES
    context.adapter.ping = AsyncMock()
    context.describe = AsyncMock(return_value={"type": "postgres", "dialect": "postgresql"})
    context.patients.find_all = AsyncMock()
    context.patients.find_by_id = AsyncMock()
    context.patients.search_by_name = AsyncMock(return_value=[])
    context.patients.search_by_cedula = AsyncMock(return_value=[])
    return context


@pytest.fixture
def app(referral_service, data_context):
    """Application FastAPI minimale avec handlers RFC 9457."""
    test_app = FastAPI()
    setup_rfc9457_handlers(test_app, config=RFC9457Config(base_url="about:blank", include_error_pages=False))
    test_app.dependency_overrides[get_referral_service] = lambda: referral_service
    test_app.dependency_overrides[get_data_context] = lambda: data_context
    test_app.include_router(referrals.router, prefix="/api/v1/referrals")
    test_app.include_router(patients.router, prefix="/api/v1/patients")
    test_app.include_router(health.router, prefix="/api/v1")
    return test_app


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


class TestCreateReferral:
    def test_created(self, client, referral_service):
        referral_service.create_referral.return_value = referral_row()

        response = client.post(
            "/api/v1/referrals/",
            json={"paciente_id": 42, "medico_remitente_id": 1, "medico_remitido_id": 2, "motivo_remision": "follow-up"},
        )

        assert response.status_code == 201
        assert response.json()["estado_remision"] == "Pendiente"
        referral_service.create_referral.assert_awaited_once_with(
            patient_id=42, referring_doctor_id=1, receiving_doctor_id=2, reason="follow-up", observations=None
        )

    def test_validation_error_is_422_with_field(self, client, referral_service):
        referral_service.create_referral.side_effect = ReferralValidationError(
            "Cannot refer patient to the same doctor", "medico_remitido_id"
        )

        response = client.post(
            "/api/v1/referrals/",
            json={"paciente_id": 42, "medico_remitente_id": 1, "medico_remitido_id": 1, "motivo_remision": "x" * 10},
        )

        assert response.status_code == 422
        assert response.headers["content-type"] == "application/problem+json"
        assert response.json()["field"] == "medico_remitido_id"

    def test_missing_clinic_alias_is_503(self, client, referral_service):
        referral_service.create_referral.side_effect = ConfigurationError("CLINICA_ALIAS must be set")

        response = client.post(
            "/api/v1/referrals/",
            json={"paciente_id": 42, "medico_remitente_id": 1, "medico_remitido_id": 2, "motivo_remision": "follow-up"},
        )
        assert response.status_code == 503

    def test_body_validation(self, client):
        response = client.post("/api/v1/referrals/", json={"paciente_id": 0})
        assert response.status_code == 422


class TestUpdateReferralStatus:
    def test_status_is_normalized(self, client, referral_service):
        referral_service.update_referral_status.return_value = referral_row(estado="Aceptada", fecha_respuesta=NOW)

        response = client.put("/api/v1/referrals/7/status", json={"estado_remision": "accepted"})

        assert response.status_code == 200
        assert response.json()["fecha_respuesta"] is not None
        referral_service.update_referral_status.assert_awaited_once_with(7, "Aceptada", None)

    def test_unknown_status_is_422(self, client, referral_service):
        response = client.put("/api/v1/referrals/7/status", json={"estado_remision": "Archivada"})

        assert response.status_code == 422
        referral_service.update_referral_status.assert_not_called()

    def test_invalid_transition_is_409(self, client, referral_service):
        referral_service.update_referral_status.side_effect = InvalidTransitionError(7, "Aceptada", "Pendiente")

        response = client.put("/api/v1/referrals/7/status", json={"estado_remision": "Pendiente"})

        assert response.status_code == 409
        assert response.json()["conflicting_resource"] == "remisiones/7"

    def test_missing_referral_is_404(self, client, referral_service):
        referral_service.update_referral_status.side_effect = RecordNotFoundError("remisiones", 7)

        response = client.put("/api/v1/referrals/7/status", json={"estado_remision": "Aceptada"})
        assert response.status_code == 404


class TestReadReferrals:
    def test_get_by_id(self, client, referral_service):
        referral_service.get_referral_by_id.return_value = referral_row(paciente_nombre="Pedro")

        response = client.get("/api/v1/referrals/7")

        assert response.status_code == 200
        assert response.json()["paciente_nombre"] == "Pedro"

    def test_get_by_id_not_found(self, client, referral_service):
        referral_service.get_referral_by_id.return_value = None

        response = client.get("/api/v1/referrals/7")

        assert response.status_code == 404
        assert response.json()["resource_type"] == "remision"

    def test_by_doctor_defaults_to_received(self, client, referral_service):
        referral_service.get_referrals_by_doctor.return_value = [referral_row(3), referral_row(1)]

        response = client.get("/api/v1/referrals/doctor/2")

        assert [r["id"] for r in response.json()] == [3, 1]
        referral_service.get_referrals_by_doctor.assert_awaited_once_with(2, "received")

    def test_by_doctor_rejects_unknown_role(self, client):
        assert client.get("/api/v1/referrals/doctor/2?role=observer").status_code == 422

    def test_list_by_unknown_status(self, client, referral_service):
        referral_service.get_referrals_by_status.side_effect = InvalidStatusError("Archivada")
        assert client.get("/api/v1/referrals/?estado=Archivada").status_code == 422

    def test_statistics(self, client, referral_service):
        referral_service.get_referral_statistics.return_value = {
            "total": 3,
            "pendientes": 1,
            "aceptadas": 1,
            "rechazadas": 1,
            "completadas": 0,
        }

        response = client.get("/api/v1/referrals/statistics")

        assert response.status_code == 200
        assert response.json()["total"] == 3

    def test_database_unavailable(self, client, referral_service):
        referral_service.get_all_referrals.side_effect = DatabaseConnectionError("connection refused")
        assert client.get("/api/v1/referrals/").status_code == 503


class TestPatients:
    def test_list(self, client, data_context):
        data_context.patients.find_all.return_value = Page(
            data=[patient_row(2), patient_row(1)],
            pagination=PaginationInfo.build(page=1, limit=10, total=2),
        )

        response = client.get("/api/v1/patients/?activo=true")

        assert response.status_code == 200
        body = response.json()
        assert body["pagination"]["pages"] == 1
        assert [p["id"] for p in body["data"]] == [2, 1]
        data_context.patients.find_all.assert_awaited_once_with({"activo": True, "medico_id": None}, page=1, limit=10)

    def test_limit_is_bounded(self, client):
        assert client.get("/api/v1/patients/?limit=1000").status_code == 422

    def test_search_by_cedula(self, client, data_context):
        data_context.patients.search_by_cedula.return_value = [patient_row(1)]

        response = client.get("/api/v1/patients/search?q=V-123&by=cedula")

        assert response.status_code == 200
        data_context.patients.search_by_cedula.assert_awaited_once_with("V-123")

    def test_get_missing_patient(self, client, data_context):
        data_context.patients.find_by_id.return_value = None
        assert client.get("/api/v1/patients/5").status_code == 404


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "backend": "postgres"}

    def test_health_database_down(self, client, data_context):
        data_context.adapter.ping.side_effect = DatabaseConnectionError("timeout")
        assert client.get("/api/v1/health").status_code == 503

    def test_health_detailed(self, client):
        body = client.get("/api/v1/health/detailed").json()

        assert body["status"] == "ok"
        assert body["database"]["dialect"] == "postgresql"
        assert body["database"]["build_time"] is True
