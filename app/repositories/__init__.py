# Repositories par entité.
#
# PatientRepository, UsuarioRepository et ReferralRepository désignent la
# variante du backend figé au build (ACTIVE_BACKEND); DataContext construit la
# variante d'un backend injecté.

from .appointment import AppointmentRepository
from .base import BaseRepository, PostgresRepository, SupabaseRepository
from .doctor import DoctorRepository
from .patient import PatientRepository, PatientRepositoryPostgres, PatientRepositorySupabase
from .referral import ReferralRepository, ReferralRepositoryPostgres, ReferralRepositorySupabase
from .registry import DataContext
from .service import ServiceRepository
from .usuario import UsuarioRepository, UsuarioRepositoryPostgres, UsuarioRepositorySupabase

__all__ = [
    "AppointmentRepository",
    "BaseRepository",
    "DataContext",
    "DoctorRepository",
    "PatientRepository",
    "PatientRepositoryPostgres",
    "PatientRepositorySupabase",
    "PostgresRepository",
    "ReferralRepository",
    "ReferralRepositoryPostgres",
    "ReferralRepositorySupabase",
    "ServiceRepository",
    "SupabaseRepository",
    "UsuarioRepository",
    "UsuarioRepositoryPostgres",
    "UsuarioRepositorySupabase",
]
