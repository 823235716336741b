"""Construction des backends de données et sonde de démarrage."""

import logging

from supabase import acreate_client
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.core.backend import ACTIVE_BACKEND, BackendKind
from app.core.config import Settings, settings
from app.core.database import create_engine
from app.infrastructure.data.exceptions import ConfigurationError, DatabaseConnectionError
from app.infrastructure.data.postgres_backend import PostgresQueryBackend
from app.infrastructure.data.protocol import QueryBackend
from app.infrastructure.data.supabase_backend import SupabaseQueryBackend

logger = logging.getLogger(__name__)


async def create_query_backend(
    kind: BackendKind = ACTIVE_BACKEND,
    config: Settings = settings,
) -> QueryBackend:
    """
    Construit le backend correspondant à `kind`.

    Aucun appel réseau n'est fait ici pour PostgreSQL: les paramètres de
    connexion erronés apparaissent à la première requête.

    Args:
        kind: Backend figé au build (ACTIVE_BACKEND) ou injecté (tests)
        config: Paramètres de l'application

    Returns:
        QueryBackend prêt à l'emploi

    Raises:
        DatabaseConnectionError: URL/clé Supabase absentes
        ConfigurationError: Valeur de `kind` inconnue
    """
    if kind is BackendKind.POSTGRES:
        logger.info(f"Backend PostgreSQL: {config.POSTGRES_HOST}:{config.POSTGRES_PORT}/{config.POSTGRES_DB}")
        return PostgresQueryBackend(create_engine(config))

    if kind is BackendKind.SUPABASE:
        if not config.SUPABASE_URL or not config.SUPABASE_KEY:
            raise DatabaseConnectionError(
                "SUPABASE_URL and SUPABASE_KEY must be set to use the Supabase backend",
                {"backend": kind.value},
            )
        client = await acreate_client(config.SUPABASE_URL, config.SUPABASE_KEY)
        logger.info(f"Backend Supabase: {config.SUPABASE_URL}")
        return SupabaseQueryBackend(client, timeout=config.SUPABASE_TIMEOUT)

    raise ConfigurationError(f"Unknown backend '{kind}'")


async def wait_for_database(backend: QueryBackend, attempts: int = settings.DATABASE_STARTUP_RETRY_ATTEMPTS) -> None:
    """
    Attend que la base réponde au démarrage (backoff exponentiel).

    Seule la sonde de démarrage réessaie; les opérations de données ne
    réessaient jamais.

    Raises:
        DatabaseConnectionError: Base toujours injoignable après `attempts` essais
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max(attempts, 1)),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=10),
        retry=retry_if_exception_type(DatabaseConnectionError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            await backend.ping()
    logger.info(f"Base de données {backend.kind.value} joignable")
