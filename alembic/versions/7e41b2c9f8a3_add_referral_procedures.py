"""Add referral procedures

Revision ID: 7e41b2c9f8a3
Revises: 3a9c1e5b7d20
Create Date: 2026-10-19 08:40:00.000000

Fonctions PL/pgSQL appelées par le backend Supabase (RPC):
- crear_remision: insère une remisión à l'état Pendiente, retourne son id
- actualizar_estado_remision: transition gardée par les états d'origine
  autorisés (SQLSTATE P0002 si absente, 22023 si transition refusée)
"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "7e41b2c9f8a3"
down_revision: str | None = "3a9c1e5b7d20"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


CREAR_REMISION = """
CREATE OR REPLACE FUNCTION crear_remision(
    p_paciente_id integer,
    p_medico_remitente_id integer,
    p_medico_remitido_id integer,
    p_motivo_remision text,
    p_observaciones text,
    p_clinica_alias text
) RETURNS integer
LANGUAGE plpgsql
AS $$
DECLARE
    v_id integer;
BEGIN
    INSERT INTO remisiones (
        paciente_id, medico_remitente_id, medico_remitido_id,
        motivo_remision, observaciones, estado_remision, clinica_alias
    )
    VALUES (
        p_paciente_id, p_medico_remitente_id, p_medico_remitido_id,
        p_motivo_remision, p_observaciones, 'Pendiente', p_clinica_alias
    )
    RETURNING id INTO v_id;
    RETURN v_id;
END;
$$;
"""

ACTUALIZAR_ESTADO_REMISION = """
CREATE OR REPLACE FUNCTION actualizar_estado_remision(
    p_remision_id integer,
    p_estado text,
    p_observaciones text,
    p_estados_origen text[]
) RETURNS integer
LANGUAGE plpgsql
AS $$
DECLARE
    v_actual text;
BEGIN
    SELECT estado_remision INTO v_actual
    FROM remisiones
    WHERE id = p_remision_id
    FOR UPDATE;

    IF NOT FOUND THEN
        RAISE EXCEPTION 'remision % no encontrada', p_remision_id
            USING ERRCODE = 'P0002';
    END IF;

    IF NOT (v_actual = ANY (p_estados_origen)) THEN
        RAISE EXCEPTION 'transicion % -> % no permitida', v_actual, p_estado
            USING ERRCODE = '22023';
    END IF;

    UPDATE remisiones
    SET estado_remision = p_estado,
        observaciones = COALESCE(p_observaciones, observaciones),
        fecha_respuesta = CASE WHEN p_estado <> 'Pendiente' THEN now() ELSE fecha_respuesta END,
        fecha_actualizacion = now()
    WHERE id = p_remision_id;

    RETURN p_remision_id;
END;
$$;
"""


def upgrade() -> None:
    op.execute(CREAR_REMISION)
    op.execute(ACTUALIZAR_ESTADO_REMISION)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS actualizar_estado_remision(integer, text, text, text[])")
    op.execute("DROP FUNCTION IF EXISTS crear_remision(integer, integer, integer, text, text, text)")
