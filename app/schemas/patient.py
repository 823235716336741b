"""Schémas Pydantic pour Patient (lecture, liste paginée, recherche)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.patient import Sexo


class PatientResponse(BaseModel):
    """Patient tel que stocké dans la table pacientes."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    nombres: str = Field(..., description="Prénoms", examples=["María José"])
    apellidos: str = Field(..., description="Noms de famille", examples=["Pérez"])
    cedula: str | None = Field(None, description="Numéro d'identité national")
    edad: int | None = Field(None, ge=0, description="Âge en années")
    sexo: Sexo | None = None
    email: str | None = None
    telefono: str | None = None
    medico_id: int | None = Field(None, description="Médecin traitant")
    motivo_consulta: str | None = None
    diagnostico: str | None = None
    conclusiones: str | None = None
    plan: str | None = None
    antecedentes_medicos: str | None = None
    medicamentos: str | None = None
    alergias: str | None = None
    observaciones: str | None = None
    activo: bool = True
    clinica_alias: str | None = None
    fecha_creacion: datetime | None = None
    fecha_actualizacion: datetime | None = None


class PaginationResponse(BaseModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)


class PatientListResponse(BaseModel):
    """Page de patients, id décroissant."""

    data: list[PatientResponse]
    pagination: PaginationResponse
