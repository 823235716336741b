from opentelemetry.instrumentation import auto_instrumentation

auto_instrumentation.initialize()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi_errors_rfc9457 import RFC9457Config, setup_rfc9457_handlers

from app.api.v1 import api as api_v1
from app.core.backend import ACTIVE_BACKEND
from app.core.config import settings
from app.infrastructure.data.factory import wait_for_database
from app.models.referral import ReferralWorkflow
from app.repositories.registry import DataContext

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gère le cycle de vie de l'application:
    - Valide le graphe de transitions des remisiones.
    - Construit le DataContext du backend figé au build.
    - Attend que la base réponde (backoff exponentiel).
    - Ferme le pool / client HTTP à l'arrêt.
    """
    logger.info("=== Application Startup ===")

    # 1. Graphe de transitions (ConfigurationError si invalide)
    app.state.referral_workflow = ReferralWorkflow.from_mapping(settings.REFERRAL_TRANSITIONS)

    # 2. Backend de données
    context = await DataContext.create(ACTIVE_BACKEND, settings)
    app.state.data_context = context
    logger.info(f"Backend de données: {ACTIVE_BACKEND.value}")

    try:
        # 3. Sonde de démarrage
        await wait_for_database(context.backend, settings.DATABASE_STARTUP_RETRY_ATTEMPTS)

        if not settings.CLINICA_ALIAS:
            logger.warning("CLINICA_ALIAS non configuré: la création de remisiones sera refusée")

        logger.info("=== Application Startup Complete ===")
        yield

    finally:
        logger.info("=== Application Shutdown ===")
        await context.close()
        logger.info("=== Application Shutdown Complete ===")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan,
    openapi_url=f"{settings.get_api_prefix()}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Exception handlers RFC 9457 Problem Details
config_rfc9457 = RFC9457Config(
    base_url="about:blank",  # Auto-detect request domain
    include_trace_id=True,  # Include OpenTelemetry trace_id
    expose_internal_errors=settings.DEBUG,
    include_error_pages=False,
)
setup_rfc9457_handlers(app, config=config_rfc9457)

# Middleware CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.ALLOWED_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware Trusted Hosts
if settings.ENVIRONMENT != "development":
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.TRUSTED_HOSTS,
    )

app.include_router(api_v1.router, prefix=settings.get_api_prefix("v1"))
