# modules/registration/router.py
"""
Endpoints des inscriptions marin → étape.
Couvre : création / réactivation, liste, réponses, vue détaillée,
décision propriétaire, annulation marin.

Règle : zéro try/except ici. Les ServiceException remontent aux handlers
enregistrés dans main.py.
"""
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Query, Response, status

from app.shared.deps import DbDep, UserDep, CrewDep, OwnerDep
from app.shared.enums import RegistrationStatus
from app.modules.registration.service import RegistrationService
from app.modules.registration.schemas import (
    AnswersSubmitIn,
    AnswersListOut,
    RegistrationCreateIn,
    RegistrationCreatedOut,
    RegistrationDecisionIn,
    RegistrationDetailsOut,
    RegistrationListOut,
    RegistrationOut,
)

router = APIRouter(prefix="/registrations", tags=["Registrations"])
service = RegistrationService()


# ─────────────────────────────────────────────
# CRÉATION / LISTE (marin)
# ─────────────────────────────────────────────

@router.post(
    "",
    response_model=RegistrationCreatedOut,
    status_code=status.HTTP_201_CREATED,
    summary="S'inscrire à une étape",
)
async def create_registration(
    payload: RegistrationCreateIn,
    response: Response,
    background_tasks: BackgroundTasks,
    db: DbDep,
    crew: CrewDep,
):
    """
    201 à la création, 200 si une inscription annulée est réactivée.
    L'auto-approbation éventuelle tourne après la réponse.
    """
    registration, reactivated = await service.create_registration(
        db, payload=payload, crew=crew, background_tasks=background_tasks,
    )
    if reactivated:
        response.status_code = status.HTTP_200_OK
        message = "Registration reactivated"
    else:
        message = "Registration created"
    return {"registration": registration, "message": message}


@router.get(
    "",
    response_model=RegistrationListOut,
    summary="Mes inscriptions",
)
async def list_registrations(
    db: DbDep,
    crew: CrewDep,
    leg_id: Optional[int] = Query(None),
    registration_status: Optional[RegistrationStatus] = Query(None, alias="status"),
):
    registrations = await service.list_registrations(
        db, crew=crew, leg_id=leg_id, status=registration_status,
    )
    return {"registrations": registrations, "count": len(registrations)}


# ─────────────────────────────────────────────
# DÉCISION (propriétaire) / ANNULATION (marin)
# ─────────────────────────────────────────────

@router.patch(
    "/{registration_id}",
    response_model=RegistrationOut,
    summary="Approuver ou refuser une inscription",
)
async def decide_registration(
    registration_id: int,
    payload: RegistrationDecisionIn,
    background_tasks: BackgroundTasks,
    db: DbDep,
    owner: OwnerDep,
):
    return await service.decide(
        db, registration_id, payload=payload, owner=owner, background_tasks=background_tasks,
    )


@router.post(
    "/{registration_id}/cancel",
    response_model=RegistrationOut,
    summary="Annuler mon inscription",
)
async def cancel_registration(registration_id: int, db: DbDep, crew: CrewDep):
    return await service.cancel(db, registration_id, crew=crew)


# ─────────────────────────────────────────────
# RÉPONSES AUX QUESTIONS
# ─────────────────────────────────────────────

@router.get(
    "/{registration_id}/answers",
    response_model=AnswersListOut,
    summary="Réponses d'une inscription",
)
async def get_answers(registration_id: int, db: DbDep, user: UserDep):
    """Accessible au marin inscrit et au propriétaire du voyage."""
    answers = await service.get_answers(db, registration_id, user=user)
    return {"answers": answers, "count": len(answers)}


@router.post(
    "/{registration_id}/answers",
    response_model=AnswersListOut,
    summary="Remplacer les réponses d'une inscription",
)
async def submit_answers(
    registration_id: int,
    payload: AnswersSubmitIn,
    db: DbDep,
    crew: CrewDep,
):
    """Uniquement tant que l'inscription est en Pending approval."""
    answers = await service.submit_answers(db, registration_id, payload=payload, crew=crew)
    return {"answers": answers, "count": len(answers)}


# ─────────────────────────────────────────────
# VUE DÉTAILLÉE (propriétaire)
# ─────────────────────────────────────────────

@router.get(
    "/{registration_id}/details",
    response_model=RegistrationDetailsOut,
    summary="Dossier complet d'une inscription",
)
async def get_details(registration_id: int, db: DbDep, owner: OwnerDep):
    return await service.get_details(db, registration_id, owner=owner)
