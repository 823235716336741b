"""Endpoints API pour les remisiones.

Ce module expose la création, le changement d'état et la consultation des
remisiones entre médecins.
"""

from fastapi import APIRouter, Depends, Query, status

from app.core.dependencies import get_referral_service
from app.core.exceptions import NotFoundError, UnprocessableEntityError, problem_from_data_error
from app.infrastructure.data.exceptions import DataAccessError
from app.models.referral import InvalidStatusError
from app.schemas.referral import (
    ReferralCreate,
    ReferralDetailResponse,
    ReferralResponse,
    ReferralStatistics,
    ReferralStatusUpdate,
)
from app.services.referral_service import DoctorRole, ReferralService, ReferralValidationError

router = APIRouter()

BASE_PATH = "/api/v1/referrals"


@router.get(
    "/",
    response_model=list[ReferralDetailResponse],
    summary="Lister les remisiones",
    description="Toutes les remisiones, ou celles d'un état donné, les plus récentes d'abord",
)
async def list_referrals(
    estado: str | None = Query(None, description="Pendiente, Aceptada, Rechazada ou Completada"),
    service: ReferralService = Depends(get_referral_service),
) -> list[ReferralDetailResponse]:
    try:
        if estado:
            referrals = await service.get_referrals_by_status(estado)
        else:
            referrals = await service.get_all_referrals()
    except InvalidStatusError as e:
        raise UnprocessableEntityError(detail=str(e), instance=BASE_PATH) from e
    except DataAccessError as e:
        raise problem_from_data_error(e, instance=BASE_PATH) from e
    return [ReferralDetailResponse.model_validate(r) for r in referrals]


@router.get(
    "/statistics",
    response_model=ReferralStatistics,
    summary="Statistiques des remisiones",
    description="Nombre total de remisiones et répartition par état",
)
async def get_referral_statistics(
    service: ReferralService = Depends(get_referral_service),
) -> ReferralStatistics:
    try:
        return ReferralStatistics(**await service.get_referral_statistics())
    except DataAccessError as e:
        raise problem_from_data_error(e, instance=f"{BASE_PATH}/statistics") from e


@router.get(
    "/doctor/{doctor_id}",
    response_model=list[ReferralDetailResponse],
    summary="Remisiones d'un médecin",
    description="Remisiones envoyées (role=referring) ou reçues (role=received) par un médecin",
)
async def get_referrals_by_doctor(
    doctor_id: int,
    role: DoctorRole = Query("received", description="referring/remitente ou received/remitido"),
    service: ReferralService = Depends(get_referral_service),
) -> list[ReferralDetailResponse]:
    instance = f"{BASE_PATH}/doctor/{doctor_id}"
    try:
        referrals = await service.get_referrals_by_doctor(doctor_id, role)
    except ReferralValidationError as e:
        raise UnprocessableEntityError(detail=e.message, instance=instance, field=e.field) from e
    except DataAccessError as e:
        raise problem_from_data_error(e, instance=instance) from e
    return [ReferralDetailResponse.model_validate(r) for r in referrals]


@router.get(
    "/patient/{patient_id}",
    response_model=list[ReferralDetailResponse],
    summary="Remisiones d'un patient",
)
async def get_referrals_by_patient(
    patient_id: int,
    service: ReferralService = Depends(get_referral_service),
) -> list[ReferralDetailResponse]:
    instance = f"{BASE_PATH}/patient/{patient_id}"
    try:
        referrals = await service.get_referrals_by_patient(patient_id)
    except ReferralValidationError as e:
        raise UnprocessableEntityError(detail=e.message, instance=instance, field=e.field) from e
    except DataAccessError as e:
        raise problem_from_data_error(e, instance=instance) from e
    return [ReferralDetailResponse.model_validate(r) for r in referrals]


@router.get(
    "/{referral_id}",
    response_model=ReferralDetailResponse,
    summary="Récupérer une remisión par ID",
)
async def get_referral(
    referral_id: int,
    service: ReferralService = Depends(get_referral_service),
) -> ReferralDetailResponse:
    instance = f"{BASE_PATH}/{referral_id}"
    try:
        referral = await service.get_referral_by_id(referral_id)
    except ReferralValidationError as e:
        raise UnprocessableEntityError(detail=e.message, instance=instance, field=e.field) from e
    except DataAccessError as e:
        raise problem_from_data_error(e, instance=instance) from e
    if referral is None:
        raise NotFoundError(
            detail=f"Remisión {referral_id} non trouvée",
            resource_type="remision",
            resource_id=str(referral_id),
            instance=instance,
        )
    return ReferralDetailResponse.model_validate(referral)


@router.post(
    "/",
    response_model=ReferralResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Créer une remisión",
    description="Crée une remisión à l'état Pendiente pour la clinique configurée",
)
async def create_referral(
    payload: ReferralCreate,
    service: ReferralService = Depends(get_referral_service),
) -> ReferralResponse:
    try:
        referral = await service.create_referral(
            patient_id=payload.paciente_id,
            referring_doctor_id=payload.medico_remitente_id,
            receiving_doctor_id=payload.medico_remitido_id,
            reason=payload.motivo_remision,
            observations=payload.observaciones,
        )
    except ReferralValidationError as e:
        raise UnprocessableEntityError(detail=e.message, instance=BASE_PATH, field=e.field) from e
    except DataAccessError as e:
        raise problem_from_data_error(e, instance=BASE_PATH) from e
    return ReferralResponse.model_validate(referral)


@router.put(
    "/{referral_id}/status",
    response_model=ReferralResponse,
    summary="Changer l'état d'une remisión",
    description="Applique une transition autorisée (Pendiente -> Aceptada/Rechazada, Aceptada -> Completada)",
)
async def update_referral_status(
    referral_id: int,
    payload: ReferralStatusUpdate,
    service: ReferralService = Depends(get_referral_service),
) -> ReferralResponse:
    instance = f"{BASE_PATH}/{referral_id}/status"
    try:
        referral = await service.update_referral_status(
            referral_id, payload.estado_remision, payload.observaciones
        )
    except ReferralValidationError as e:
        raise UnprocessableEntityError(detail=e.message, instance=instance, field=e.field) from e
    except DataAccessError as e:
        raise problem_from_data_error(e, instance=instance) from e
    return ReferralResponse.model_validate(referral)
