# app/modules/registration/repository.py
"""
Accès DB pour les inscriptions et leurs réponses.

Chaque entité est lue séparément (registration, leg, journey, boat) ;
la jointure se fait dans le service. Les relations chargées en async
passent par selectinload (pas de lazy-load hors greenlet).

Écritures sensibles :
- create_registration : s'appuie sur uq_registration_leg_user ; une
  insertion concurrente lève DuplicateRegistration (→ 409)
- replace_answers     : une transaction, ligne registration verrouillée
  (FOR UPDATE), remplacement indexé par requirement_id
"""
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.shared.enums import AssessmentStatus, RegistrationStatus
from app.shared.models import (
    Boat, CrewProfile, Journey, JourneyRequirement, Leg,
    Registration, RegistrationAnswer, User,
)


class DuplicateRegistration(Exception):
    pass


class RegistrationRepository:

    # ── Lectures de contexte ──────────────────────────────────

    async def get_leg(self, db: AsyncSession, leg_id: int) -> Optional[Leg]:
        r = await db.execute(select(Leg).where(Leg.id == leg_id))
        return r.scalar_one_or_none()

    async def get_journey(self, db: AsyncSession, journey_id: int) -> Optional[Journey]:
        r = await db.execute(select(Journey).where(Journey.id == journey_id))
        return r.scalar_one_or_none()

    async def get_boat(self, db: AsyncSession, boat_id: int) -> Optional[Boat]:
        r = await db.execute(select(Boat).where(Boat.id == boat_id))
        return r.scalar_one_or_none()

    async def get_user(self, db: AsyncSession, user_id: int) -> Optional[User]:
        r = await db.execute(select(User).where(User.id == user_id))
        return r.scalar_one_or_none()

    async def get_crew_profile(self, db: AsyncSession, user_id: int) -> Optional[CrewProfile]:
        r = await db.execute(select(CrewProfile).where(CrewProfile.user_id == user_id))
        return r.scalar_one_or_none()

    async def get_requirements(self, db: AsyncSession, journey_id: int) -> List[JourneyRequirement]:
        r = await db.execute(
            select(JourneyRequirement)
            .where(JourneyRequirement.journey_id == journey_id)
            .order_by(JourneyRequirement.order.asc(), JourneyRequirement.id.asc())
        )
        return list(r.scalars().all())

    # ── Inscriptions ──────────────────────────────────────────

    async def get_registration(self, db: AsyncSession, registration_id: int) -> Optional[Registration]:
        r = await db.execute(select(Registration).where(Registration.id == registration_id))
        return r.scalar_one_or_none()

    async def get_registration_for(
        self, db: AsyncSession, leg_id: int, user_id: int
    ) -> Optional[Registration]:
        r = await db.execute(
            select(Registration).where(
                Registration.leg_id == leg_id,
                Registration.user_id == user_id,
            )
        )
        return r.scalar_one_or_none()

    async def lock_registration(self, db: AsyncSession, registration_id: int) -> Optional[Registration]:
        """
        Relit la ligne sous verrou (SELECT ... FOR UPDATE) jusqu'au prochain commit.
        populate_existing : l'objet déjà chargé dans la session reçoit l'état courant.
        """
        r = await db.execute(
            select(Registration)
            .where(Registration.id == registration_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return r.scalar_one_or_none()

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: int,
        leg_id: Optional[int] = None,
        status: Optional[RegistrationStatus] = None,
    ) -> List[Registration]:
        q = select(Registration).where(Registration.user_id == user_id)
        if leg_id is not None:
            q = q.where(Registration.leg_id == leg_id)
        if status is not None:
            q = q.where(Registration.status == status)
        r = await db.execute(q.order_by(Registration.created_at.desc(), Registration.id.desc()))
        return list(r.scalars().all())

    async def create_registration(
        self,
        db: AsyncSession,
        leg_id: int,
        user_id: int,
        notes: Optional[str],
    ) -> Registration:
        db_obj = Registration(
            leg_id=leg_id,
            user_id=user_id,
            status=RegistrationStatus.PENDING_APPROVAL,
            notes=notes,
            auto_approved=False,
            assessment_status=AssessmentStatus.NOT_REQUIRED,
        )
        try:
            db.add(db_obj)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise DuplicateRegistration(f"leg={leg_id} user={user_id}") from e
        await db.refresh(db_obj)
        return db_obj

    async def save(self, db: AsyncSession, registration: Registration) -> Registration:
        """Persiste les mutations appliquées par la machine à états."""
        await db.commit()
        await db.refresh(registration)
        return registration

    # ── Réponses ──────────────────────────────────────────────

    async def get_answers(self, db: AsyncSession, registration_id: int) -> List[RegistrationAnswer]:
        r = await db.execute(
            select(RegistrationAnswer)
            .options(selectinload(RegistrationAnswer.requirement))
            .where(RegistrationAnswer.registration_id == registration_id)
        )
        answers = list(r.scalars().all())
        return sorted(
            answers,
            key=lambda a: ((a.requirement.order or 0) if a.requirement else 0, a.requirement_id),
        )

    async def replace_answers(
        self, db: AsyncSession, registration_id: int, answers: Iterable
    ) -> List[RegistrationAnswer]:
        """
        Remplacement atomique des réponses d'une inscription.
        Deux soumissions concurrentes sont sérialisées par le verrou de ligne ;
        la dernière réponse envoyée pour une même question l'emporte.
        """
        by_requirement: Dict[int, object] = {}
        for answer in answers:
            by_requirement[answer.requirement_id] = answer

        now = datetime.now(timezone.utc)
        try:
            await db.execute(
                select(Registration.id)
                .where(Registration.id == registration_id)
                .with_for_update()
            )
            await db.execute(
                delete(RegistrationAnswer)
                .where(RegistrationAnswer.registration_id == registration_id)
            )
            rows = [
                RegistrationAnswer(
                    registration_id=registration_id,
                    requirement_id=requirement_id,
                    answer_text=answer.answer_text or None,
                    answer_json=answer.answer_json,
                    updated_at=now,
                )
                for requirement_id, answer in by_requirement.items()
            ]
            db.add_all(rows)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return rows
