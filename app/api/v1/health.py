import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.core.backend import ACTIVE_BACKEND, describe_backend
from app.core.dependencies import get_data_context
from app.core.exceptions import ServiceUnavailableError
from app.infrastructure.data.exceptions import DataAccessError
from app.repositories.registry import DataContext

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    status: Literal["ok", "error"] = Field(..., description="The status of the health check")
    backend: str = Field(..., description="Data backend selected at build time")


class DetailedHealthResponse(HealthResponse):
    database: dict[str, Any] = Field(default_factory=dict, description="Connected backend description")


@router.get("/health", tags=["health"], response_model=HealthResponse)
async def health(context: DataContext = Depends(get_data_context)):
    try:
        await context.adapter.ping()
        return HealthResponse(status="ok", backend=context.kind.value)
    except DataAccessError as e:
        logger.error(f"Error checking health: {e.message}")
        raise ServiceUnavailableError(
            detail=f"Database unreachable: {e.message}", retry_after=30, instance="/api/v1/health"
        ) from None


@router.get("/health/detailed", tags=["health"], response_model=DetailedHealthResponse)
async def health_detailed(context: DataContext = Depends(get_data_context)):
    database = {**describe_backend(ACTIVE_BACKEND), "active": context.kind.value}
    try:
        database.update(await context.describe())
        return DetailedHealthResponse(status="ok", backend=context.kind.value, database=database)
    except DataAccessError as e:
        logger.error(f"Error describing database: {e.message}")
        return DetailedHealthResponse(
            status="error",
            backend=context.kind.value,
            database={**database, "error": e.message, "code": e.code},
        )
