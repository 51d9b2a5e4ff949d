# modules/registration/service.py
"""
Cycle de vie d'une inscription marin → étape.

Flux de création (POST /registrations) :
    1. Contrôles synchrones, AVANT toute écriture :
       leg_id fourni, étape existante, voyage publié,
       réponses obligatoires si l'auto-approbation s'applique, format des réponses
    2. Machine à états : création, réactivation d'une ligne Cancelled
       (relue sous verrou), ou 409
    3. Écriture inscription (not_required) puis remplacement atomique des réponses
       échec des réponses sous auto-approbation → needs_manual_review
    4. assessment_status = queued, puis évaluation planifiée en tâche de fond
    5. Notification propriétaire selon notification_policy

Toutes les erreurs sont des ServiceException : les routers ne font aucun try/except.
"""
import logging
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import SessionLocal
from app.core.logging import log_event
from app.engine.registration import state_machine
from app.engine.registration.answers import (
    AnswerViolation, InvalidAnswerFormat, MissingRequiredAnswers, UnknownRequirement,
    sort_requirements, validate_answers,
)
from app.engine.registration.matching import breakdown
from app.engine.registration.notification_policy import (
    NewRegistrationNotice, crew_display_name, decide_new_registration,
)
from app.engine.registration.skills import normalize_skill_names
from app.engine.registration.state_machine import InvalidTransition, RegistrationAction
from app.infra.notifications import NotificationService
from app.modules.registration.orchestrator import orchestrator
from app.modules.registration.repository import DuplicateRegistration, RegistrationRepository
from app.shared.enums import AssessmentStatus, JourneyState, RegistrationStatus, UserRole
from app.shared.exceptions import (
    AnswersNotSaved, ConflictError, ForbiddenError, NotFoundError, ValidationFailed,
)

logger = logging.getLogger(__name__)

repo = RegistrationRepository()
notifier = NotificationService()


def _violation_error(violation: AnswerViolation) -> ValidationFailed:
    context: Dict = {}
    if isinstance(violation, MissingRequiredAnswers):
        context["missing_requirement_ids"] = list(violation.missing_ids)
    elif isinstance(violation, UnknownRequirement):
        context["requirement_id"] = violation.requirement_id
    elif isinstance(violation, InvalidAnswerFormat):
        context["requirement_id"] = violation.requirement_id
        context["question_type"] = violation.question_type.value
    return ValidationFailed(violation.message(), reason=violation.code, **context)


class RegistrationService:

    # ── Contexte ──────────────────────────────────────────────────────────────

    async def _get_registration(self, db: AsyncSession, registration_id: int):
        registration = await repo.get_registration(db, registration_id)
        if not registration:
            raise NotFoundError("Registration not found", reason="REGISTRATION_NOT_FOUND")
        return registration

    async def _load_leg_context(self, db: AsyncSession, leg_id: int):
        """leg → journey → boat, lus séparément."""
        leg = await repo.get_leg(db, leg_id)
        if not leg:
            raise NotFoundError("Leg not found", reason="LEG_NOT_FOUND")
        journey = await repo.get_journey(db, leg.journey_id)
        if not journey:
            raise NotFoundError("Journey not found", reason="JOURNEY_NOT_FOUND")
        boat = await repo.get_boat(db, journey.boat_id)
        return leg, journey, boat

    @staticmethod
    def _is_journey_owner(user, boat) -> bool:
        return user.role == UserRole.ADMIN or (boat is not None and boat.owner_id == user.id)

    # ── Création / réactivation ──────────────────────────────────────────────

    async def create_registration(
        self,
        db: AsyncSession,
        payload,
        crew,
        background_tasks: BackgroundTasks,
    ) -> Tuple[object, bool]:
        """Retourne (inscription, réactivée?)."""
        if payload.leg_id is None:
            raise ValidationFailed("leg_id is required", reason="LEG_ID_REQUIRED")

        leg, journey, boat = await self._load_leg_context(db, payload.leg_id)
        if journey.state != JourneyState.PUBLISHED:
            raise ValidationFailed(
                "Journey is not published", reason="JOURNEY_NOT_PUBLISHED", journey_id=journey.id,
            )

        requirements = await repo.get_requirements(db, journey.id)
        auto_approval = orchestrator.applies(journey, len(requirements))
        answers = payload.answers or []

        if orchestrator.requires_answers(journey, len(requirements)) and not answers:
            raise ValidationFailed(
                "Answers to the journey requirements are required for this journey",
                reason="ANSWERS_REQUIRED",
                journey_id=journey.id,
            )
        if answers:
            violation = validate_answers(requirements, answers)
            if violation is not None:
                raise _violation_error(violation)

        existing = await repo.get_registration_for(db, leg.id, crew.id)
        try:
            action = state_machine.plan_registration(existing.status if existing else None)
        except InvalidTransition:
            raise ConflictError(
                "You have already registered for this leg",
                reason="ALREADY_REGISTERED",
                registration_id=existing.id,
                status=existing.status.value,
            )

        if action == RegistrationAction.CREATE:
            try:
                registration = await repo.create_registration(db, leg.id, crew.id, payload.notes)
            except DuplicateRegistration:
                raise ConflictError("You have already registered for this leg", reason="ALREADY_REGISTERED")
        else:
            registration = await self._reactivate(db, existing.id, payload.notes)

        registration_id = registration.id
        reactivated = action == RegistrationAction.REACTIVATE
        log_event(
            logger, "registration.reactivated" if reactivated else "registration.created",
            registration_id=registration_id, journey_id=journey.id, leg_id=leg.id,
            user_id=crew.id, auto_approval=auto_approval,
        )

        if answers:
            try:
                await self._replace_answers(db, registration_id, answers)
            except AnswersNotSaved:
                if auto_approval:
                    await self._flag_manual_review(db, registration, registration_id, journey.id)
                raise

        # queued n'est persisté qu'avec une tâche derrière
        if auto_approval:
            registration.assessment_status = AssessmentStatus.QUEUED
            registration = await repo.save(db, registration)
            orchestrator.schedule(background_tasks, registration_id, journey.id)

        owner = await repo.get_user(db, boat.owner_id) if boat else None
        decision = decide_new_registration(
            owner_id=boat.owner_id if boat else None,
            registration_id=registration_id,
            journey_id=journey.id,
            journey_name=journey.name,
            crew_name=crew_display_name(crew.full_name, crew.username),
            crew_id=crew.id,
            auto_approval_in_effect=auto_approval,
        )
        log_event(
            logger, "registration.notification_decision",
            registration_id=registration_id, journey_id=journey.id,
            notify=decision.notify, reason=decision.reason,
        )
        if decision.notify:
            background_tasks.add_task(
                self._deliver_new_registration, decision.notice, getattr(owner, "email", None),
            )

        return registration, reactivated

    async def _replace_answers(self, db: AsyncSession, registration_id: int, answers) -> None:
        try:
            await repo.replace_answers(db, registration_id, answers)
        except SQLAlchemyError as e:
            log_event(
                logger, "registration.answers_failed", level=logging.ERROR,
                registration_id=registration_id, error=str(e),
            )
            raise AnswersNotSaved(
                "Registration saved but answers could not be stored",
                registration_id=registration_id,
            ) from e

    async def _reactivate(self, db: AsyncSession, registration_id: int, notes: Optional[str]):
        """
        Cancelled → Pending approval sous verrou de ligne.
        Deux réactivations concurrentes sont sérialisées : la seconde relit
        Pending approval et reçoit un 409.
        """
        registration = await repo.lock_registration(db, registration_id)
        if registration is None:
            await db.rollback()
            raise NotFoundError("Registration not found", reason="REGISTRATION_NOT_FOUND")
        current = registration.status
        try:
            state_machine.reactivate(registration, notes)
        except InvalidTransition:
            await db.rollback()
            raise ConflictError(
                "You have already registered for this leg",
                reason="ALREADY_REGISTERED",
                registration_id=registration_id,
                status=current.value,
            )
        return await repo.save(db, registration)

    async def _flag_manual_review(self, db: AsyncSession, registration,
                                  registration_id: int, journey_id: int) -> None:
        """Réponses perdues : aucune évaluation ne sera lancée, la revue revient au propriétaire."""
        registration.assessment_status = AssessmentStatus.NEEDS_MANUAL_REVIEW
        try:
            await repo.save(db, registration)
        except SQLAlchemyError as e:
            await db.rollback()
            log_event(
                logger, "registration.review_flag_failed", level=logging.ERROR,
                registration_id=registration_id, journey_id=journey_id, error=str(e),
            )
            return
        log_event(
            logger, "assessment.needs_manual_review", level=logging.WARNING,
            registration_id=registration_id, journey_id=journey_id, reason="answers_not_saved",
        )

    async def _deliver_new_registration(self, notice: NewRegistrationNotice, owner_email: Optional[str]) -> None:
        """Background task : session DB dédiée, la réponse HTTP est déjà partie."""
        async with SessionLocal() as db:
            await notifier.notify_new_registration(db, notice, owner_email=owner_email)

    async def _deliver_decision(self, registration_id: int, crew_user_id: int, journey_id: int,
                                journey_name: str, approved: bool, reason: Optional[str]) -> None:
        async with SessionLocal() as db:
            await notifier.notify_registration_decision(
                db, crew_user_id=crew_user_id, registration_id=registration_id,
                journey_id=journey_id, journey_name=journey_name, approved=approved, reason=reason,
            )

    # ── Lecture (marin) ──────────────────────────────────────────────────────

    async def list_registrations(
        self,
        db: AsyncSession,
        crew,
        leg_id: Optional[int] = None,
        status: Optional[RegistrationStatus] = None,
    ) -> List:
        return await repo.list_for_user(db, crew.id, leg_id=leg_id, status=status)

    # ── Réponses ─────────────────────────────────────────────────────────────

    async def get_answers(self, db: AsyncSession, registration_id: int, user) -> List:
        registration = await self._get_registration(db, registration_id)
        if registration.user_id != user.id:
            _, _, boat = await self._load_leg_context(db, registration.leg_id)
            if not self._is_journey_owner(user, boat):
                raise ForbiddenError("You do not have access to this registration")
        return await repo.get_answers(db, registration_id)

    async def submit_answers(self, db: AsyncSession, registration_id: int, payload, crew) -> List:
        registration = await self._get_registration(db, registration_id)
        if registration.user_id != crew.id:
            raise ForbiddenError("You can only answer for your own registration")
        if registration.status != RegistrationStatus.PENDING_APPROVAL:
            raise ValidationFailed(
                "Answers can only be updated while the registration is pending approval",
                reason="REGISTRATION_NOT_PENDING",
                status=registration.status.value,
            )

        leg, journey, _ = await self._load_leg_context(db, registration.leg_id)
        requirements = await repo.get_requirements(db, journey.id)
        violation = validate_answers(requirements, payload.answers)
        if violation is not None:
            raise _violation_error(violation)

        await self._replace_answers(db, registration.id, payload.answers)
        log_event(
            logger, "registration.answers_replaced",
            registration_id=registration.id, journey_id=journey.id, count=len(payload.answers),
        )
        return await repo.get_answers(db, registration.id)

    # ── Vue détaillée (propriétaire) ─────────────────────────────────────────

    async def get_details(self, db: AsyncSession, registration_id: int, owner) -> Dict:
        registration = await self._get_registration(db, registration_id)
        leg, journey, boat = await self._load_leg_context(db, registration.leg_id)
        if not self._is_journey_owner(owner, boat):
            raise ForbiddenError("Only the journey owner can view registration details")

        crew = await repo.get_user(db, registration.user_id)
        profile = await repo.get_crew_profile(db, registration.user_id)
        requirements = sort_requirements(await repo.get_requirements(db, journey.id))
        answers_by_requirement = {a.requirement_id: a for a in await repo.get_answers(db, registration.id)}

        match = breakdown(profile, journey, leg)
        return {
            "registration": registration,
            "crew": {
                "user_id":            registration.user_id,
                "full_name":          getattr(crew, "full_name", None),
                "username":           getattr(crew, "username", None),
                "sailing_experience": getattr(profile, "sailing_experience", None),
                "skills":             normalize_skill_names(getattr(profile, "skills", None)),
                "risk_level":         list(getattr(profile, "risk_level", None) or []),
            },
            "leg": {
                "leg_id":               leg.id,
                "leg_name":             leg.name,
                "journey_id":           journey.id,
                "journey_name":         journey.name,
                "skills":               match.effective.skills,
                "risk_level":           match.effective.risk_level,
                "min_experience_level": match.effective.min_experience_level,
            },
            "requirements": [
                {"requirement": r, "answer": answers_by_requirement.get(r.id)}
                for r in requirements
            ],
            # Sans profil marin, pas de score calculable
            "skill_match_percentage":   match.match_percentage if profile else None,
            "experience_level_matches": match.experience_level_matches,
            "matching_skills":          match.matching_skills,
            "missing_skills":           match.missing_skills,
        }

    # ── Décision propriétaire / annulation marin ────────────────────────────

    async def decide(self, db: AsyncSession, registration_id: int, payload, owner,
                     background_tasks: BackgroundTasks):
        registration = await self._get_registration(db, registration_id)
        leg, journey, boat = await self._load_leg_context(db, registration.leg_id)
        if not self._is_journey_owner(owner, boat):
            raise ForbiddenError("Only the journey owner can decide on this registration")
        if payload.status not in (RegistrationStatus.APPROVED, RegistrationStatus.NOT_APPROVED):
            raise ValidationFailed(
                "status must be 'Approved' or 'Not approved'", reason="INVALID_DECISION",
            )

        try:
            if payload.status == RegistrationStatus.APPROVED:
                state_machine.approve(registration, notes=payload.notes)
            else:
                state_machine.deny(registration, reason=payload.notes)
        except InvalidTransition as e:
            raise ConflictError(
                str(e), reason="INVALID_TRANSITION",
                status=registration.status.value, target=payload.status.value,
            )
        registration = await repo.save(db, registration)
        log_event(
            logger, "registration.decided",
            registration_id=registration.id, journey_id=journey.id,
            status=registration.status.value, owner_id=owner.id,
        )

        background_tasks.add_task(
            self._deliver_decision,
            registration.id, registration.user_id, journey.id, journey.name,
            registration.status == RegistrationStatus.APPROVED, payload.notes,
        )
        return registration

    async def cancel(self, db: AsyncSession, registration_id: int, crew):
        registration = await self._get_registration(db, registration_id)
        if registration.user_id != crew.id:
            raise ForbiddenError("You can only cancel your own registration")
        try:
            state_machine.cancel(registration)
        except InvalidTransition as e:
            raise ConflictError(str(e), reason="INVALID_TRANSITION", status=registration.status.value)
        registration = await repo.save(db, registration)
        log_event(
            logger, "registration.cancelled",
            registration_id=registration.id, leg_id=registration.leg_id, user_id=crew.id,
        )
        return registration
