"""
Configuration de la base de données relationnelle.

Base de données: PostgreSQL avec SQLAlchemy 2.0 async (driver asyncpg).
Le moteur n'est jamais créé à l'import: il est construit au démarrage et
injecté dans le backend de données.
"""

import logging
import ssl

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import Settings, settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class pour tous les modèles SQLAlchemy."""

    pass


def build_connect_args(config: Settings = settings) -> dict:
    """
    Arguments de connexion asyncpg avec timeouts explicites.

    - timeout: délai max d'établissement de la connexion
    - command_timeout: délai max côté client pour une requête
    - statement_timeout: même limite appliquée côté serveur (ms)
    """
    connect_args: dict = {
        "timeout": config.POSTGRES_CONNECTION_TIMEOUT,
        "command_timeout": config.POSTGRES_QUERY_TIMEOUT,
        "server_settings": {
            "statement_timeout": str(int(config.POSTGRES_QUERY_TIMEOUT * 1000)),
            "application_name": config.PROJECT_SLUG,
        },
    }
    if config.POSTGRES_SSL:
        context = ssl.create_default_context()
        # Serveurs managés avec certificats auto-signés
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = context
    return connect_args


def create_engine(config: Settings = settings, dsn: str | None = None) -> AsyncEngine:
    """
    Crée le moteur async et son pool de connexions.

    Args:
        config: Paramètres de l'application
        dsn: URL de connexion explicite (tests, scripts). Par défaut postgres_dsn.

    Returns:
        AsyncEngine configuré (pool borné, timeout d'acquisition)
    """
    url = dsn or config.postgres_dsn
    if url.startswith("postgresql"):
        engine = create_async_engine(
            url,
            echo=False,
            pool_pre_ping=True,
            pool_size=config.POSTGRES_POOL_SIZE,
            max_overflow=config.POSTGRES_MAX_OVERFLOW,
            pool_timeout=config.POSTGRES_POOL_TIMEOUT,
            connect_args=build_connect_args(config),
        )
    else:
        engine = create_async_engine(url, echo=False)
    logger.info(f"Moteur SQLAlchemy créé pour {engine.url.render_as_string(hide_password=True)}")
    return engine


async def create_db_and_tables(engine: AsyncEngine) -> None:
    """Crée toutes les tables (tests et environnements locaux)."""
    # Import des modèles pour peupler Base.metadata
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
