"""Modèle de données Rendez-vous (table appointments)."""

from datetime import date, datetime
from typing import Literal

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

AppointmentStatus = Literal["scheduled", "completed", "cancelled", "no_show"]


class Appointment(Base):
    """
    Rendez-vous entre un patient et un médecin.

    Note: cette table utilise des colonnes en anglais, contrairement au reste
    du schéma, et doit rester ainsi pour les clients existants.
    """

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    patient_id: Mapped[int] = mapped_column(ForeignKey("pacientes.id"), nullable=False, index=True)
    doctor_id: Mapped[int] = mapped_column(ForeignKey("medicos.id"), nullable=False, index=True)
    appointment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    appointment_time: Mapped[str] = mapped_column(String(8), nullable=False, comment="HH:MM")
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
