"""
Configuration pytest.

Les tests de la couche relationnelle tournent sur SQLite (aiosqlite) via le
même PostgresQueryBackend que la production: seules les procédures stockées
(Supabase) et les codes SQLSTATE spécifiques à PostgreSQL en sont exclus.
Le backend Supabase est testé avec un client simulé (unittest.mock).

Usage:
    pip install -e ".[test]"
    pytest
"""

import os
from collections.abc import AsyncGenerator

import pytest

# Variables d'environnement pour les tests
# Respecte les variables déjà définies (ex: dans la CI)
TEST_ENV = {
    "ENVIRONMENT": os.getenv("ENVIRONMENT", "development"),
    "DEBUG": os.getenv("DEBUG", "false"),
    "CLINICA_ALIAS": os.getenv("CLINICA_ALIAS", "clinica-test"),
    "POSTGRES_HOST": os.getenv("POSTGRES_HOST", "localhost"),
    "POSTGRES_DB": os.getenv("POSTGRES_DB", "clinica_test"),
    # OpenTelemetry (test mode)
    "OTEL_SERVICE_NAME": os.getenv("OTEL_SERVICE_NAME", "clinica-core-data-test"),
    "OTEL_TRACES_EXPORTER": os.getenv("OTEL_TRACES_EXPORTER", "console"),
    "OTEL_METRICS_EXPORTER": os.getenv("OTEL_METRICS_EXPORTER", "console"),
    "OTEL_LOGS_EXPORTER": os.getenv("OTEL_LOGS_EXPORTER", "console"),
}

# Appliquer les variables d'environnement de test (ne remplace pas si déjà définies)
for key, value in TEST_ENV.items():
    if key not in os.environ:
        os.environ[key] = value

from sqlalchemy.ext.asyncio import AsyncEngine  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.core.database import create_db_and_tables, create_engine  # noqa: E402
from app.infrastructure.data.postgres_backend import PostgresQueryBackend  # noqa: E402
from app.repositories.registry import DataContext  # noqa: E402

CLINIC_ALIAS = TEST_ENV["CLINICA_ALIAS"]


# ============================================================================
# Fixtures base relationnelle (SQLite fichier, une base par test)
# ============================================================================


@pytest.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Moteur SQLAlchemy async sur une base SQLite jetable, schéma créé."""
    engine = create_engine(settings, dsn=f"sqlite+aiosqlite:///{tmp_path / 'clinica.db'}")
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def postgres_backend(test_engine) -> PostgresQueryBackend:
    return PostgresQueryBackend(test_engine)


@pytest.fixture
def data_context(postgres_backend) -> DataContext:
    """DataContext complet au-dessus du backend relationnel de test."""
    return DataContext.for_backend(postgres_backend, clinic_alias=CLINIC_ALIAS)


@pytest.fixture
async def seeded_context(data_context) -> DataContext:
    """
    Jeu de données minimal:
    - médecins 1 (Ana Pérez) et 2 (Luis Gómez)
    - patients 1 à 3 (le patient 3 est inactif)
    """
    doctors = data_context.doctors
    await doctors.create({"nombres": "Ana", "apellidos": "Pérez", "email": "ana@clinica.test"})
    await doctors.create({"nombres": "Luis", "apellidos": "Gómez", "email": "luis@clinica.test"})

    patients = data_context.patients
    await patients.create(
        {
            "nombres": "María",
            "apellidos": "González",
            "cedula": "V-12345678",
            "edad": 34,
            "sexo": "Femenino",
            "email": "maria@example.com",
            "medico_id": 1,
        }
    )
    await patients.create(
        {
            "nombres": "José",
            "apellidos": "Martínez",
            "cedula": "V-87654321",
            "edad": 52,
            "sexo": "Masculino",
            "email": "jose@example.com",
            "medico_id": 2,
        }
    )
    await patients.create(
        {
            "nombres": "Carmen",
            "apellidos": "Gonzalo",
            "cedula": "E-11111111",
            "edad": 71,
            "sexo": "Femenino",
            "activo": False,
            "medico_id": 1,
        }
    )
    return data_context


@pytest.fixture
def test_env():
    """Fournit les variables d'environnement de test."""
    return TEST_ENV.copy()
