from fastapi import APIRouter

from app.api.v1 import health
from app.api.v1.endpoints import patients, referrals
from app.schemas import COMMON_RESPONSES

# Router principal avec réponses RFC 9457 par défaut
router = APIRouter(responses=COMMON_RESPONSES)

router.include_router(health.router, tags=["health"])
router.include_router(patients.router, prefix="/patients", tags=["patients"])
router.include_router(referrals.router, prefix="/referrals", tags=["referrals"])
