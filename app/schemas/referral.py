"""Schémas Pydantic pour les remisiones.

Les noms de champs reprennent les colonnes de la table remisiones.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.referral import ReferralStatus


class ReferralCreate(BaseModel):
    """Demande de création d'une remisión."""

    paciente_id: int = Field(..., gt=0, description="ID du patient remis", examples=[42])
    medico_remitente_id: int = Field(..., gt=0, description="Médecin qui remet", examples=[1])
    medico_remitido_id: int = Field(..., gt=0, description="Médecin qui reçoit", examples=[2])
    motivo_remision: str = Field(..., min_length=1, description="Motif de la remisión", examples=["follow-up"])
    observaciones: str | None = Field(None, description="Observations libres")


class ReferralStatusUpdate(BaseModel):
    """Changement d'état d'une remisión."""

    estado_remision: str = Field(
        ...,
        description="Nouvel état: Pendiente, Aceptada, Rechazada ou Completada",
        examples=["Aceptada"],
    )
    observaciones: str | None = Field(None, description="Conservées telles quelles si absentes")

    @field_validator("estado_remision")
    @classmethod
    def validate_estado(cls, v: str) -> str:
        return ReferralStatus.parse(v).value


class ReferralResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    paciente_id: int
    medico_remitente_id: int
    medico_remitido_id: int
    motivo_remision: str
    observaciones: str | None = None
    estado_remision: ReferralStatus
    clinica_alias: str | None = None
    fecha_remision: datetime | None = None
    fecha_respuesta: datetime | None = None
    fecha_creacion: datetime | None = None
    fecha_actualizacion: datetime | None = None


class ReferralDetailResponse(ReferralResponse):
    """Remisión avec les noms du patient et des deux médecins."""

    paciente_nombre: str | None = None
    paciente_apellidos: str | None = None
    medico_remitente_nombre: str | None = None
    medico_remitente_apellidos: str | None = None
    medico_remitido_nombre: str | None = None
    medico_remitido_apellidos: str | None = None


class ReferralStatistics(BaseModel):
    total: int = Field(..., ge=0)
    pendientes: int = Field(..., ge=0)
    aceptadas: int = Field(..., ge=0)
    rechazadas: int = Field(..., ge=0)
    completadas: int = Field(..., ge=0)
