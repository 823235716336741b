"""Schémas Pydantic pour la validation des données."""

from fastapi_errors_rfc9457 import COMMON_RESPONSES, ConflictErrorResponse, ProblemDetailResponse

from app.schemas.patient import PaginationResponse, PatientListResponse, PatientResponse
from app.schemas.referral import (
    ReferralCreate,
    ReferralDetailResponse,
    ReferralResponse,
    ReferralStatistics,
    ReferralStatusUpdate,
)

__all__ = [
    "COMMON_RESPONSES",
    "ConflictErrorResponse",
    "PaginationResponse",
    "PatientListResponse",
    "PatientResponse",
    "ProblemDetailResponse",
    "ReferralCreate",
    "ReferralDetailResponse",
    "ReferralResponse",
    "ReferralStatistics",
    "ReferralStatusUpdate",
]
