# app/modules/journey/repository.py
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.models import Boat, Journey, JourneyRequirement


class JourneyRepository:

    async def get_journey(self, db: AsyncSession, journey_id: int) -> Optional[Journey]:
        r = await db.execute(select(Journey).where(Journey.id == journey_id))
        return r.scalar_one_or_none()

    async def get_boat(self, db: AsyncSession, boat_id: int) -> Optional[Boat]:
        r = await db.execute(select(Boat).where(Boat.id == boat_id))
        return r.scalar_one_or_none()

    async def get_requirements(self, db: AsyncSession, journey_id: int) -> List[JourneyRequirement]:
        r = await db.execute(
            select(JourneyRequirement)
            .where(JourneyRequirement.journey_id == journey_id)
            .order_by(JourneyRequirement.order.asc(), JourneyRequirement.id.asc())
        )
        return list(r.scalars().all())

    async def count_requirements(self, db: AsyncSession, journey_id: int) -> int:
        r = await db.execute(
            select(func.count(JourneyRequirement.id))
            .where(JourneyRequirement.journey_id == journey_id)
        )
        return r.scalar_one()

    async def get_requirement(
        self, db: AsyncSession, journey_id: int, requirement_id: int
    ) -> Optional[JourneyRequirement]:
        r = await db.execute(
            select(JourneyRequirement).where(
                JourneyRequirement.id == requirement_id,
                JourneyRequirement.journey_id == journey_id,
            )
        )
        return r.scalar_one_or_none()

    async def create_requirement(self, db: AsyncSession, journey_id: int, payload) -> JourneyRequirement:
        db_obj = JourneyRequirement(journey_id=journey_id, **payload.model_dump())
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def delete_requirement(self, db: AsyncSession, requirement: JourneyRequirement) -> None:
        await db.delete(requirement)
        await db.commit()

    async def update_auto_approval(
        self, db: AsyncSession, journey: Journey, enabled: bool, threshold: Optional[int]
    ) -> Journey:
        journey.auto_approval_enabled = enabled
        if threshold is not None:
            journey.auto_approval_threshold = threshold
        await db.commit()
        await db.refresh(journey)
        return journey
