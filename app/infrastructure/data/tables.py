"""Closed enumeration of tables, columns and procedures reachable by the data layer.

Table and column identifiers are never interpolated from caller strings:
they must resolve against the SQLAlchemy metadata declared in app.models.
"""

from enum import Enum

import sqlalchemy as sa

from app.core.database import Base
from app.infrastructure.data.exceptions import MalformedQueryError
from app.models import Appointment, Doctor, Patient, Referral, Service, Usuario


class Table(str, Enum):
    PACIENTES = Patient.__tablename__
    MEDICOS = Doctor.__tablename__
    APPOINTMENTS = Appointment.__tablename__
    USUARIOS = Usuario.__tablename__
    SERVICIOS = Service.__tablename__
    REMISIONES = Referral.__tablename__


class Procedure(str, Enum):
    """Stored procedures created by the alembic migrations."""

    CREAR_REMISION = "crear_remision"
    ACTUALIZAR_ESTADO_REMISION = "actualizar_estado_remision"


def resolve_table(table: "Table | str") -> sa.Table:
    """Return the SQLAlchemy table for an enumerated name.

    Raises:
        MalformedQueryError: If the name is not part of the enumeration
    """
    try:
        name = Table(table).value
    except ValueError:
        raise MalformedQueryError(f"Unknown table '{table}'", {"table": str(table)}) from None
    return Base.metadata.tables[name]


def resolve_column(table: sa.Table, column: str) -> sa.Column:
    """Return a declared column of `table`.

    Raises:
        MalformedQueryError: If the column is not declared on the table
    """
    if not isinstance(column, str) or column not in table.c:
        raise MalformedQueryError(
            f"Unknown column '{column}' on table '{table.name}'",
            {"table": table.name, "column": str(column)},
        )
    return table.c[column]


def resolve_columns(table: sa.Table, columns: "list[str] | None") -> list[sa.Column]:
    """Resolve a projection; None or empty means every column."""
    if not columns:
        return list(table.c)
    return [resolve_column(table, column) for column in columns]


def resolve_procedure(name: "Procedure | str") -> Procedure:
    try:
        return Procedure(name)
    except ValueError:
        raise MalformedQueryError(f"Unknown procedure '{name}'", {"procedure": str(name)}) from None
