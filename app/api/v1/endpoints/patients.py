"""Endpoints API pour la consultation des patients."""

from fastapi import APIRouter, Depends, Query

from app.core.dependencies import get_data_context
from app.core.exceptions import NotFoundError, problem_from_data_error
from app.infrastructure.data.exceptions import DataAccessError
from app.repositories.registry import DataContext
from app.schemas.patient import PatientListResponse, PatientResponse

router = APIRouter()


@router.get(
    "/",
    response_model=PatientListResponse,
    summary="Lister les patients",
    description="Liste paginée des patients, les plus récents d'abord",
)
async def list_patients(
    page: int = Query(1, ge=1, description="Numéro de page"),
    limit: int = Query(10, ge=1, le=100, description="Taille de page"),
    activo: bool | None = Query(None, description="Filtrer par statut actif"),
    medico_id: int | None = Query(None, description="Filtrer par médecin traitant"),
    context: DataContext = Depends(get_data_context),
) -> PatientListResponse:
    try:
        result = await context.patients.find_all(
            {"activo": activo, "medico_id": medico_id}, page=page, limit=limit
        )
    except DataAccessError as e:
        raise problem_from_data_error(e, instance="/api/v1/patients") from e
    return PatientListResponse.model_validate(result.model_dump())


@router.get(
    "/search",
    response_model=list[PatientResponse],
    summary="Rechercher des patients",
    description="Recherche partielle, insensible à la casse, sur le nom ou la cédula",
)
async def search_patients(
    q: str = Query(..., min_length=1, description="Texte recherché"),
    by: str = Query("name", pattern="^(name|cedula)$", description="name ou cedula"),
    context: DataContext = Depends(get_data_context),
) -> list[PatientResponse]:
    try:
        if by == "cedula":
            patients = await context.patients.search_by_cedula(q)
        else:
            patients = await context.patients.search_by_name(q)
    except DataAccessError as e:
        raise problem_from_data_error(e, instance="/api/v1/patients/search") from e
    return [PatientResponse.model_validate(p) for p in patients]


@router.get(
    "/{patient_id}",
    response_model=PatientResponse,
    summary="Récupérer un patient par ID",
)
async def get_patient(
    patient_id: int,
    context: DataContext = Depends(get_data_context),
) -> PatientResponse:
    instance = f"/api/v1/patients/{patient_id}"
    try:
        patient = await context.patients.find_by_id(patient_id)
    except DataAccessError as e:
        raise problem_from_data_error(e, instance=instance) from e
    if patient is None:
        raise NotFoundError(
            detail=f"Patient avec ID {patient_id} non trouvé",
            resource_type="paciente",
            resource_id=str(patient_id),
            instance=instance,
        )
    return PatientResponse.model_validate(patient)
