"""Couche d'accès aux données (PostgreSQL direct ou Supabase).

Les backends, la table d'identifiants et la factory ne sont pas importés ici:
les modèles importent `app.infrastructure.data.exceptions` et doivent pouvoir
le faire sans charger app.models en retour.
"""

from app.infrastructure.data.exceptions import (
    ConfigurationError,
    ConstraintViolationError,
    DataAccessError,
    DatabaseConnectionError,
    InvalidTransitionError,
    MalformedQueryError,
    RecordNotFoundError,
    UnsupportedOperationError,
)
from app.infrastructure.data.query import OrderBy, Page, PaginationInfo, QueryOptions, QueryResult, ValueRange

__all__ = [
    "ConfigurationError",
    "ConstraintViolationError",
    "DataAccessError",
    "DatabaseConnectionError",
    "InvalidTransitionError",
    "MalformedQueryError",
    "OrderBy",
    "Page",
    "PaginationInfo",
    "QueryOptions",
    "QueryResult",
    "RecordNotFoundError",
    "UnsupportedOperationError",
    "ValueRange",
]
