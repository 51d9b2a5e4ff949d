# modules/journey/service.py
"""
Gestion des questions d'un voyage et de son auto-approbation.
Écritures réservées au propriétaire du bateau (ou admin).
"""
import logging
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import log_event
from app.modules.journey.repository import JourneyRepository
from app.shared.enums import JourneyState, UserRole
from app.shared.exceptions import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

repo = JourneyRepository()


class JourneyService:

    async def _get_journey(self, db: AsyncSession, journey_id: int):
        journey = await repo.get_journey(db, journey_id)
        if not journey:
            raise NotFoundError("Journey not found", reason="JOURNEY_NOT_FOUND")
        return journey

    async def _is_owner(self, db: AsyncSession, journey, user) -> bool:
        if user.role == UserRole.ADMIN:
            return True
        boat = await repo.get_boat(db, journey.boat_id)
        return boat is not None and boat.owner_id == user.id

    async def _get_owned_journey(self, db: AsyncSession, journey_id: int, user):
        journey = await self._get_journey(db, journey_id)
        if not await self._is_owner(db, journey, user):
            raise ForbiddenError("Only the journey owner can manage this journey")
        return journey

    # ── Questions ─────────────────────────────────────────────

    async def list_requirements(self, db: AsyncSession, journey_id: int, user) -> List:
        """Visible par tous sur un voyage publié, par le propriétaire sinon."""
        journey = await self._get_journey(db, journey_id)
        if journey.state != JourneyState.PUBLISHED and not await self._is_owner(db, journey, user):
            raise NotFoundError("Journey not found", reason="JOURNEY_NOT_FOUND")
        return await repo.get_requirements(db, journey.id)

    async def add_requirement(self, db: AsyncSession, journey_id: int, payload, owner):
        journey = await self._get_owned_journey(db, journey_id, owner)
        requirement = await repo.create_requirement(db, journey.id, payload)
        log_event(
            logger, "journey.requirement_added",
            journey_id=journey.id, requirement_id=requirement.id,
            question_type=requirement.question_type.value,
        )
        return requirement

    async def delete_requirement(self, db: AsyncSession, journey_id: int, requirement_id: int, owner) -> None:
        journey = await self._get_owned_journey(db, journey_id, owner)
        requirement = await repo.get_requirement(db, journey.id, requirement_id)
        if not requirement:
            raise NotFoundError("Requirement not found", reason="REQUIREMENT_NOT_FOUND")
        await repo.delete_requirement(db, requirement)
        log_event(logger, "journey.requirement_deleted", journey_id=journey.id, requirement_id=requirement_id)

    # ── Auto-approbation ──────────────────────────────────────

    async def set_auto_approval(self, db: AsyncSession, journey_id: int, payload, owner) -> Dict:
        journey = await self._get_owned_journey(db, journey_id, owner)
        journey = await repo.update_auto_approval(db, journey, payload.enabled, payload.threshold)
        count = await repo.count_requirements(db, journey.id)
        log_event(
            logger, "journey.auto_approval_updated",
            journey_id=journey.id, enabled=journey.auto_approval_enabled,
            threshold=journey.auto_approval_threshold, requirement_count=count,
        )
        return {
            "journey_id":              journey.id,
            "auto_approval_enabled":   journey.auto_approval_enabled,
            "auto_approval_threshold": journey.auto_approval_threshold,
            "requirement_count":       count,
        }
