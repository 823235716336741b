"""Dépendances FastAPI pour l'injection de la couche de données et des services."""

from fastapi import Depends, Request

from app.core.config import settings
from app.models.referral import ReferralWorkflow
from app.repositories.registry import DataContext
from app.services.referral_service import ReferralService


def get_data_context(request: Request) -> DataContext:
    """
    Récupère le DataContext depuis l'état de l'application.

    Le contexte est construit dans le lifespan de l'application (main.py)
    et stocké dans app.state.data_context.

    Raises:
        RuntimeError: Si le contexte n'est pas initialisé
    """
    context = getattr(request.app.state, "data_context", None)
    if context is None:
        raise RuntimeError(
            "DataContext not initialized. "
            "Ensure the application lifespan properly initializes app.state.data_context"
        )
    return context


def get_referral_workflow(request: Request) -> ReferralWorkflow:
    """Graphe de transitions validé au démarrage (app.state.referral_workflow)."""
    workflow = getattr(request.app.state, "referral_workflow", None)
    if workflow is None:
        workflow = ReferralWorkflow.from_mapping(settings.REFERRAL_TRANSITIONS)
    return workflow


def get_referral_service(
    context: DataContext = Depends(get_data_context),
    workflow: ReferralWorkflow = Depends(get_referral_workflow),
) -> ReferralService:
    return ReferralService(
        context.referrals,
        clinic_alias=settings.CLINICA_ALIAS,
        workflow=workflow,
        min_reason_length=settings.REFERRAL_MIN_REASON_LENGTH,
    )
