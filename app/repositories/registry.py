"""
DataContext: backend, adapter et repositories construits une seule fois.

L'application en garde un exemplaire dans `app.state.data_context`
(créé dans le lifespan); les tests en construisent un pour le backend de
leur choix.
"""

import logging
from dataclasses import dataclass
from typing import Any

from app.core.backend import ACTIVE_BACKEND, BackendKind
from app.core.config import Settings, settings
from app.infrastructure.data.adapter import QueryAdapter
from app.infrastructure.data.factory import create_query_backend
from app.infrastructure.data.protocol import QueryBackend
from app.repositories.appointment import AppointmentRepository
from app.repositories.doctor import DoctorRepository
from app.repositories.patient import PatientRepositoryPostgres, PatientRepositorySupabase
from app.repositories.referral import ReferralRepositoryPostgres, ReferralRepositorySupabase
from app.repositories.service import ServiceRepository
from app.repositories.usuario import UsuarioRepositoryPostgres, UsuarioRepositorySupabase

logger = logging.getLogger(__name__)

_DUAL_BACKEND: dict[BackendKind, tuple[type, type, type]] = {
    BackendKind.POSTGRES: (PatientRepositoryPostgres, UsuarioRepositoryPostgres, ReferralRepositoryPostgres),
    BackendKind.SUPABASE: (PatientRepositorySupabase, UsuarioRepositorySupabase, ReferralRepositorySupabase),
}


@dataclass
class DataContext:
    kind: BackendKind
    backend: QueryBackend
    adapter: QueryAdapter
    patients: PatientRepositoryPostgres | PatientRepositorySupabase
    usuarios: UsuarioRepositoryPostgres | UsuarioRepositorySupabase
    referrals: ReferralRepositoryPostgres | ReferralRepositorySupabase
    doctors: DoctorRepository
    appointments: AppointmentRepository
    services: ServiceRepository

    @classmethod
    def for_backend(cls, backend: QueryBackend, clinic_alias: str | None = None) -> "DataContext":
        """Construit tous les repositories au-dessus d'un backend déjà créé."""
        adapter = QueryAdapter(backend)
        patient_cls, usuario_cls, referral_cls = _DUAL_BACKEND[backend.kind]
        return cls(
            kind=backend.kind,
            backend=backend,
            adapter=adapter,
            patients=patient_cls(adapter),
            usuarios=usuario_cls(adapter),
            referrals=referral_cls(adapter),
            doctors=DoctorRepository(adapter),
            appointments=AppointmentRepository(adapter),
            services=ServiceRepository(adapter, clinic_alias),
        )

    @classmethod
    async def create(cls, kind: BackendKind = ACTIVE_BACKEND, config: Settings = settings) -> "DataContext":
        """Crée le backend `kind` puis le contexte complet."""
        backend = await create_query_backend(kind, config)
        logger.info(f"DataContext initialisé (backend={kind.value})")
        return cls.for_backend(backend, clinic_alias=config.CLINICA_ALIAS)

    async def describe(self) -> dict[str, Any]:
        return await self.adapter.describe()

    async def close(self) -> None:
        await self.adapter.close()
        logger.info(f"DataContext fermé (backend={self.kind.value})")
