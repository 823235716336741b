"""
RFC 9457 Problem Details pour HTTP APIs.

Ce module réexporte les exceptions du module fastapi-errors-rfc9457 et
convertit les erreurs de la couche de données en Problem Details.
"""

from fastapi_errors_rfc9457 import (
    ConflictError,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
    ProblemDetail,
    RFC9457Exception,
    ServiceUnavailableError,
    UnauthorizedError,
    ValidationError,
)

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

# Alias de base pour les exceptions métier de la clinique
ClinicaException = RFC9457Exception

ERROR_TYPE_BASE = "https://clinica.app/errors"


class UnprocessableEntityError(RFC9457Exception):
    """
    Requête bien formée mais sémantiquement invalide (422).

    Utilisée pour les états de remisión inconnus, les motifs trop courts et
    les requêtes de données mal formées (colonne inconnue, pagination invalide).
    """

    def __init__(self, detail: str, instance: str | None = None, **extensions):
        super().__init__(
            status_code=422,
            title="Unprocessable Content",
            detail=detail,
            type_uri=f"{ERROR_TYPE_BASE}/unprocessable-content",
            instance=instance,
            **extensions,
        )


class NotImplementedOnBackendError(RFC9457Exception):
    """Opération indisponible sur le backend de données actif (501)."""

    def __init__(self, detail: str, instance: str | None = None, backend: str | None = None):
        super().__init__(
            status_code=501,
            title="Not Implemented",
            detail=detail,
            type_uri=f"{ERROR_TYPE_BASE}/unsupported-operation",
            instance=instance,
            backend=backend,
        )


def problem_from_data_error(error: DataAccessError, instance: str | None = None) -> RFC9457Exception:
    """
    Convertit une erreur de la couche de données en exception RFC 9457.

    Mapping:
        RecordNotFoundError -> 404
        ConstraintViolationError, InvalidTransitionError -> 409
        ConfigurationError, DatabaseConnectionError -> 503
        UnsupportedOperationError -> 501
        MalformedQueryError -> 422
        autre DataAccessError -> 500 (message interne non exposé)

    Args:
        error: Erreur levée par un repository ou un service
        instance: URI de la requête concernée

    Returns:
        Exception RFC 9457 prête à être levée
    """
    if isinstance(error, RecordNotFoundError):
        return NotFoundError(
            detail=error.message,
            resource_type=error.table,
            resource_id=str(error.record_id),
            instance=instance,
        )
    if isinstance(error, InvalidTransitionError):
        return ConflictError(
            detail=error.message,
            conflicting_resource=f"remisiones/{error.record_id}",
            instance=instance,
        )
    if isinstance(error, ConstraintViolationError):
        return ConflictError(detail="La donnée viole une contrainte d'intégrité", instance=instance)
    if isinstance(error, ConfigurationError | DatabaseConnectionError):
        return ServiceUnavailableError(detail=error.message, retry_after=30, instance=instance)
    if isinstance(error, UnsupportedOperationError):
        return NotImplementedOnBackendError(
            detail=error.message,
            instance=instance,
            backend=error.details.get("backend"),
        )
    if isinstance(error, MalformedQueryError):
        return UnprocessableEntityError(detail=error.message, instance=instance)
    return InternalServerError(detail="Erreur d'accès aux données", instance=instance)


__all__ = [
    "ClinicaException",
    "ConflictError",
    "ForbiddenError",
    "InternalServerError",
    "NotFoundError",
    "NotImplementedOnBackendError",
    "ProblemDetail",
    "RFC9457Exception",
    "ServiceUnavailableError",
    "UnauthorizedError",
    "UnprocessableEntityError",
    "ValidationError",
    "problem_from_data_error",
]
