# Modèles SQLAlchemy du schéma clinique.
#
# Les noms de tables/colonnes reprennent le schéma existant (en espagnol,
# sauf appointments). L'énumération fermée des tables exposées à la couche
# d'accès aux données se trouve dans app/infrastructure/data/tables.py.

from .appointment import Appointment
from .doctor import Doctor
from .patient import Patient
from .referral import Referral, ReferralStatus, ReferralWorkflow
from .service import Service
from .usuario import Usuario

__all__ = [
    "Appointment",
    "Doctor",
    "Patient",
    "Referral",
    "ReferralStatus",
    "ReferralWorkflow",
    "Service",
    "Usuario",
]
