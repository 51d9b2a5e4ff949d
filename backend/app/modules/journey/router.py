# modules/journey/router.py
"""
Endpoints de configuration d'un voyage côté inscriptions :
questions posées aux marins et réglage de l'auto-approbation.
"""
from fastapi import APIRouter, Response, status

from app.shared.deps import DbDep, UserDep, OwnerDep
from app.modules.journey.service import JourneyService
from app.modules.journey.schemas import (
    AutoApprovalIn,
    AutoApprovalOut,
    RequirementCreateIn,
    RequirementListOut,
)
from app.modules.registration.schemas import RequirementOut

router = APIRouter(prefix="/journeys", tags=["Journeys"])
service = JourneyService()


# ─────────────────────────────────────────────
# QUESTIONS
# ─────────────────────────────────────────────

@router.get(
    "/{journey_id}/requirements",
    response_model=RequirementListOut,
    summary="Questions d'un voyage",
)
async def list_requirements(journey_id: int, db: DbDep, user: UserDep):
    """Triées par order puis id."""
    requirements = await service.list_requirements(db, journey_id, user=user)
    return {"requirements": requirements, "count": len(requirements)}


@router.post(
    "/{journey_id}/requirements",
    response_model=RequirementOut,
    status_code=status.HTTP_201_CREATED,
    summary="Ajouter une question",
)
async def add_requirement(journey_id: int, payload: RequirementCreateIn, db: DbDep, owner: OwnerDep):
    return await service.add_requirement(db, journey_id, payload=payload, owner=owner)


@router.delete(
    "/{journey_id}/requirements/{requirement_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Supprimer une question",
)
async def delete_requirement(journey_id: int, requirement_id: int, db: DbDep, owner: OwnerDep):
    await service.delete_requirement(db, journey_id, requirement_id, owner=owner)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─────────────────────────────────────────────
# AUTO-APPROBATION
# ─────────────────────────────────────────────

@router.patch(
    "/{journey_id}/auto-approval",
    response_model=AutoApprovalOut,
    summary="Activer / régler l'auto-approbation",
)
async def set_auto_approval(journey_id: int, payload: AutoApprovalIn, db: DbDep, owner: OwnerDep):
    return await service.set_auto_approval(db, journey_id, payload=payload, owner=owner)
