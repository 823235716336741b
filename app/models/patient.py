"""Modèle de données Patient (table pacientes).

Ce module définit le modèle SQLAlchemy des patients de la clinique. Les noms
de tables et colonnes reprennent le schéma existant de la base.
"""

from datetime import datetime
from typing import Literal

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

Sexo = Literal["Masculino", "Femenino", "Otro"]


class Patient(Base):
    """
    Modèle Patient.

    Champs clés :
    - Identité (nombres, apellidos, cédula)
    - Médecin traitant (medico_id)
    - Antécédents cliniques en texte libre
    - Clinique propriétaire (clinica_alias)
    """

    __tablename__ = "pacientes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombres: Mapped[str] = mapped_column(String(100), nullable=False, comment="Prénoms")
    apellidos: Mapped[str] = mapped_column(String(100), nullable=False, comment="Noms de famille")
    cedula: Mapped[str | None] = mapped_column(
        String(30), unique=True, nullable=True, index=True, comment="Numéro de cédula"
    )
    edad: Mapped[int | None] = mapped_column(Integer, nullable=True, comment="Âge en années")
    sexo: Mapped[str | None] = mapped_column(
        String(20), nullable=True, comment="Masculino, Femenino ou Otro"
    )
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)
    telefono: Mapped[str | None] = mapped_column(String(30), nullable=True)
    medico_id: Mapped[int | None] = mapped_column(
        ForeignKey("medicos.id"), nullable=True, comment="Médecin traitant"
    )

    # Dossier clinique
    motivo_consulta: Mapped[str | None] = mapped_column(Text, nullable=True)
    diagnostico: Mapped[str | None] = mapped_column(Text, nullable=True)
    conclusiones: Mapped[str | None] = mapped_column(Text, nullable=True)
    plan: Mapped[str | None] = mapped_column(Text, nullable=True)
    antecedentes_medicos: Mapped[str | None] = mapped_column(Text, nullable=True)
    medicamentos: Mapped[str | None] = mapped_column(Text, nullable=True)
    alergias: Mapped[str | None] = mapped_column(Text, nullable=True)
    observaciones: Mapped[str | None] = mapped_column(Text, nullable=True)

    activo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    clinica_alias: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)

    # Métadonnées
    fecha_creacion: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    fecha_actualizacion: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
