"""Modèle de données Remisión et machine à états associée.

Une remisión transfère un patient d'un médecin remitente vers un médecin
remitido. Son état suit un cycle de vie fermé:

    Pendiente -> Aceptada | Rechazada
    Aceptada  -> Completada

Rechazada et Completada sont terminaux: aucune transition n'en sort, quelle
que soit la configuration.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.infrastructure.data.exceptions import ConfigurationError


class InvalidStatusError(ValueError):
    """Valeur d'état de remisión hors de l'énumération."""

    def __init__(self, value: object):
        self.value = value
        valid = ", ".join(status.value for status in ReferralStatus)
        super().__init__(f"Invalid estado_remision '{value}'. Must be one of: {valid}")


class ReferralStatus(str, Enum):
    """États d'une remisión (valeurs stockées en base)."""

    PENDING = "Pendiente"
    ACCEPTED = "Aceptada"
    REJECTED = "Rechazada"
    COMPLETED = "Completada"

    @classmethod
    def _missing_(cls, value: object) -> "ReferralStatus | None":
        # Accepte aussi les libellés anglais ("Accepted") et la casse libre
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if key in (member.value.lower(), member.name.lower()):
                    return member
        return None

    @classmethod
    def parse(cls, value: "str | ReferralStatus") -> "ReferralStatus":
        """
        Convertit une valeur externe en ReferralStatus.

        Raises:
            InvalidStatusError: Si la valeur ne correspond à aucun état
        """
        try:
            return cls(value)
        except ValueError:
            raise InvalidStatusError(value) from None


TERMINAL_STATUSES: frozenset[ReferralStatus] = frozenset(
    {ReferralStatus.REJECTED, ReferralStatus.COMPLETED}
)


@dataclass(frozen=True)
class ReferralWorkflow:
    """
    Graphe des transitions légales entre états de remisión.

    Le graphe provient de la configuration (REFERRAL_TRANSITIONS) afin de
    pouvoir être aligné sur le système en production; les états terminaux ne
    peuvent jamais recevoir de transitions sortantes.
    """

    transitions: Mapping[ReferralStatus, frozenset[ReferralStatus]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, list[str]]) -> "ReferralWorkflow":
        """
        Construit le workflow depuis un mapping {état: [états cibles]}.

        Raises:
            ConfigurationError: État inconnu, transition sortant d'un état terminal
                ou boucle sur le même état
        """
        transitions: dict[ReferralStatus, frozenset[ReferralStatus]] = {}
        try:
            for source, targets in mapping.items():
                source_status = ReferralStatus.parse(source)
                transitions[source_status] = frozenset(ReferralStatus.parse(t) for t in targets)
        except InvalidStatusError as e:
            raise ConfigurationError(f"REFERRAL_TRANSITIONS invalide: {e}") from e

        for status in TERMINAL_STATUSES:
            if transitions.get(status):
                raise ConfigurationError(
                    f"REFERRAL_TRANSITIONS invalide: l'état terminal '{status.value}' "
                    "ne peut pas avoir de transitions sortantes"
                )
        for source, targets in transitions.items():
            if source in targets:
                raise ConfigurationError(
                    f"REFERRAL_TRANSITIONS invalide: '{source.value}' ne peut pas boucler sur lui-même"
                )
        return cls(transitions=transitions)

    def can_transition(self, source: ReferralStatus, target: ReferralStatus) -> bool:
        return target in self.transitions.get(source, frozenset())

    def sources_for(self, target: ReferralStatus) -> frozenset[ReferralStatus]:
        """États depuis lesquels `target` est atteignable."""
        return frozenset(
            source for source, targets in self.transitions.items() if target in targets
        )

    def is_terminal(self, status: ReferralStatus) -> bool:
        return status in TERMINAL_STATUSES or not self.transitions.get(status)


class Referral(Base):
    """Remisión d'un patient entre deux médecins."""

    __tablename__ = "remisiones"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    paciente_id: Mapped[int] = mapped_column(ForeignKey("pacientes.id"), nullable=False, index=True)
    medico_remitente_id: Mapped[int] = mapped_column(
        ForeignKey("medicos.id"), nullable=False, index=True, comment="Médecin qui remet"
    )
    medico_remitido_id: Mapped[int] = mapped_column(
        ForeignKey("medicos.id"), nullable=False, index=True, comment="Médecin qui reçoit"
    )
    motivo_remision: Mapped[str] = mapped_column(Text, nullable=False)
    observaciones: Mapped[str | None] = mapped_column(Text, nullable=True)
    estado_remision: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReferralStatus.PENDING.value, index=True
    )
    clinica_alias: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    fecha_remision: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    fecha_respuesta: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Horodatage de la réponse du médecin remitido"
    )
    fecha_creacion: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    fecha_actualizacion: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
