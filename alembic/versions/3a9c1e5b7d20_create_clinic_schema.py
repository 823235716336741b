"""Create clinic schema

Revision ID: 3a9c1e5b7d20
Revises:
Create Date: 2026-10-19 08:10:00.000000

Tables reachable by the data-access layer:
- medicos, pacientes, usuarios, servicios, appointments
- remisiones: patient handoffs between two doctors with a status lifecycle
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3a9c1e5b7d20"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps(created: str = "fecha_creacion", updated: str = "fecha_actualizacion") -> list[sa.Column]:
    return [
        sa.Column(created, sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column(updated, sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "medicos",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("nombres", sa.String(100), nullable=False),
        sa.Column("apellidos", sa.String(100), nullable=False),
        sa.Column("cedula", sa.String(30), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("telefono", sa.String(30), nullable=True),
        sa.Column("especialidad_id", sa.Integer(), nullable=True),
        sa.Column("mpps", sa.String(30), nullable=True, comment="Numero d'inscription professionnelle"),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("cedula"),
    )
    op.create_index("ix_medicos_email", "medicos", ["email"], unique=True)

    op.create_table(
        "pacientes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("nombres", sa.String(100), nullable=False),
        sa.Column("apellidos", sa.String(100), nullable=False),
        sa.Column("cedula", sa.String(30), nullable=True),
        sa.Column("edad", sa.Integer(), nullable=True),
        sa.Column("sexo", sa.String(20), nullable=True, comment="Masculino, Femenino ou Otro"),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("telefono", sa.String(30), nullable=True),
        sa.Column("medico_id", sa.Integer(), nullable=True, comment="Medecin traitant"),
        sa.Column("motivo_consulta", sa.Text(), nullable=True),
        sa.Column("diagnostico", sa.Text(), nullable=True),
        sa.Column("conclusiones", sa.Text(), nullable=True),
        sa.Column("plan", sa.Text(), nullable=True),
        sa.Column("antecedentes_medicos", sa.Text(), nullable=True),
        sa.Column("medicamentos", sa.Text(), nullable=True),
        sa.Column("alergias", sa.Text(), nullable=True),
        sa.Column("observaciones", sa.Text(), nullable=True),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("clinica_alias", sa.String(50), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["medico_id"], ["medicos.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("sexo IN ('Masculino', 'Femenino', 'Otro')", name="ck_pacientes_sexo"),
    )
    op.create_index("ix_pacientes_cedula", "pacientes", ["cedula"], unique=True)
    op.create_index("ix_pacientes_email", "pacientes", ["email"], unique=True)
    op.create_index("ix_pacientes_clinica_alias", "pacientes", ["clinica_alias"])

    op.create_table(
        "usuarios",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("rol", sa.String(30), nullable=False),
        sa.Column("medico_id", sa.Integer(), nullable=True),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("verificado", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("first_login", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("password_changed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["medico_id"], ["medicos.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_usuarios_username", "usuarios", ["username"], unique=True)

    op.create_table(
        "servicios",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("nombre_servicio", sa.String(150), nullable=False),
        sa.Column("descripcion", sa.Text(), nullable=True),
        sa.Column("monto", sa.Numeric(12, 2), nullable=False),
        sa.Column("moneda", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("clinica_alias", sa.String(50), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_servicios_clinica_alias", "servicios", ["clinica_alias"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("patient_id", sa.Integer(), nullable=False),
        sa.Column("doctor_id", sa.Integer(), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.String(8), nullable=False, comment="HH:MM"),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("status", sa.String(20), nullable=False, server_default="scheduled"),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps("created_at", "updated_at"),
        sa.ForeignKeyConstraint(["patient_id"], ["pacientes.id"]),
        sa.ForeignKeyConstraint(["doctor_id"], ["medicos.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled', 'no_show')",
            name="ck_appointments_status",
        ),
    )
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_doctor_id", "appointments", ["doctor_id"])
    op.create_index("ix_appointments_appointment_date", "appointments", ["appointment_date"])

    op.create_table(
        "remisiones",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("paciente_id", sa.Integer(), nullable=False),
        sa.Column("medico_remitente_id", sa.Integer(), nullable=False, comment="Medecin qui remet"),
        sa.Column("medico_remitido_id", sa.Integer(), nullable=False, comment="Medecin qui recoit"),
        sa.Column("motivo_remision", sa.Text(), nullable=False),
        sa.Column("observaciones", sa.Text(), nullable=True),
        sa.Column("estado_remision", sa.String(20), nullable=False, server_default="Pendiente"),
        sa.Column("clinica_alias", sa.String(50), nullable=True),
        sa.Column("fecha_remision", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("fecha_respuesta", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["paciente_id"], ["pacientes.id"]),
        sa.ForeignKeyConstraint(["medico_remitente_id"], ["medicos.id"]),
        sa.ForeignKeyConstraint(["medico_remitido_id"], ["medicos.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "estado_remision IN ('Pendiente', 'Aceptada', 'Rechazada', 'Completada')",
            name="ck_remisiones_estado",
        ),
        sa.CheckConstraint("medico_remitente_id <> medico_remitido_id", name="ck_remisiones_medicos_distintos"),
    )
    op.create_index("ix_remisiones_paciente_id", "remisiones", ["paciente_id"])
    op.create_index("ix_remisiones_medico_remitente_id", "remisiones", ["medico_remitente_id"])
    op.create_index("ix_remisiones_medico_remitido_id", "remisiones", ["medico_remitido_id"])
    op.create_index("ix_remisiones_estado_remision", "remisiones", ["estado_remision"])
    op.create_index("ix_remisiones_clinica_alias", "remisiones", ["clinica_alias"])
    op.create_index("ix_remisiones_fecha_creacion", "remisiones", ["fecha_creacion"])


def downgrade() -> None:
    op.drop_table("remisiones")
    op.drop_table("appointments")
    op.drop_table("servicios")
    op.drop_table("usuarios")
    op.drop_table("pacientes")
    op.drop_table("medicos")
