"""Sélecteur de backend de données.

Le backend (PostgreSQL direct ou client Supabase hébergé) est choisi une seule
fois, au moment du build, via app/core/database_config.py. Aucun code ne relit
cette valeur depuis l'environnement à l'exécution : un processus utilise un
seul backend pendant toute sa durée de vie.
"""

from enum import Enum
from typing import Any, Final

from app.core.database_config import USE_POSTGRES


class BackendKind(str, Enum):
    """Backends de données supportés."""

    POSTGRES = "postgres"  # Connexion directe via pool SQLAlchemy/asyncpg
    SUPABASE = "supabase"  # Client hébergé (PostgREST)

    @property
    def supports_raw_sql(self) -> bool:
        return self is BackendKind.POSTGRES


ACTIVE_BACKEND: Final[BackendKind] = BackendKind.POSTGRES if USE_POSTGRES else BackendKind.SUPABASE


def describe_backend(kind: BackendKind = ACTIVE_BACKEND) -> dict[str, Any]:
    """
    Décrit le backend pour les endpoints de santé et le diagnostic.

    Args:
        kind: Backend à décrire (par défaut celui figé au build)

    Returns:
        Dictionnaire sérialisable (type, label, support SQL brut)
    """
    return {
        "type": kind.value,
        "label": "PostgreSQL" if kind is BackendKind.POSTGRES else "Supabase",
        "raw_sql": kind.supports_raw_sql,
        "build_time": True,
    }
