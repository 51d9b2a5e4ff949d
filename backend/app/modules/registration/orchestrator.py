# modules/registration/orchestrator.py
"""
Auto-approbation d'une inscription par le service d'évaluation externe.

Côté requête (synchrone) :
    applies(journey, n)      → auto-approbation active ET ≥ 1 question
    schedule(bg, id)         → planifie run(id) après l'envoi de la réponse HTTP

Côté tâche de fond (run) :
    1. Relecture de la ligne commitée, avec quelques tentatives espacées
    2. Consentement IA absent → needs_manual_review + alerte propriétaire
    3. Appel évaluation : tentatives bornées, backoff exponentiel
       échec final → needs_manual_review, statut laissé à Pending approval
    4. Application du résultat via la machine à états
           approve ET score ≥ seuil  → Approved (auto_approved)
           approve = False           → Not approved (reasoning = raison)
           approve ET score < seuil  → reste Pending, score conservé
    5. Notification différée du propriétaire (decide_after_assessment)

La tâche utilise sa propre session DB et ne lève jamais : la réponse
de création est déjà partie.
"""
import asyncio
import logging
from typing import Optional

from fastapi import BackgroundTasks

from app.core.config import settings
from app.core.database import SessionLocal
from app.core.logging import log_event
from app.engine.registration import state_machine
from app.engine.registration.notification_policy import crew_display_name, decide_after_assessment
from app.engine.registration.state_machine import InvalidTransition
from app.infra.assessment import AssessmentClient, AssessmentError, AssessmentResult
from app.infra.notifications import NotificationService
from app.modules.registration.repository import RegistrationRepository
from app.shared.enums import AssessmentStatus, RegistrationStatus

logger = logging.getLogger(__name__)

repo = RegistrationRepository()

MAX_BACKOFF_SECONDS = 30.0


def backoff_delay(attempt: int, base: float) -> float:
    """base × 2^(attempt-1), plafonné."""
    return min(base * (2 ** max(0, attempt - 1)), MAX_BACKOFF_SECONDS)


class AutoApprovalOrchestrator:

    def __init__(
        self,
        client: Optional[AssessmentClient] = None,
        notifier: Optional[NotificationService] = None,
        session_factory=None,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        read_attempts: Optional[int] = None,
        max_concurrency: Optional[int] = None,
    ):
        self.client = client or AssessmentClient()
        self.notifier = notifier or NotificationService()
        self.session_factory = session_factory or SessionLocal
        self.max_attempts = max_attempts or settings.ASSESSMENT_MAX_ATTEMPTS
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.ASSESSMENT_BACKOFF_SECONDS
        self.read_attempts = read_attempts or settings.ASSESSMENT_READ_ATTEMPTS
        self._slots = asyncio.Semaphore(max_concurrency or settings.ASSESSMENT_MAX_CONCURRENCY)

    # ── Côté requête ──────────────────────────────────────────

    @staticmethod
    def applies(journey, requirement_count: int) -> bool:
        return bool(getattr(journey, "auto_approval_enabled", False)) and requirement_count > 0

    # Même condition : dès que l'évaluation peut tourner, les réponses sont obligatoires
    requires_answers = applies

    def schedule(self, background_tasks: BackgroundTasks, registration_id: int, journey_id: int = None) -> None:
        background_tasks.add_task(self.run, registration_id)
        log_event(logger, "assessment.scheduled", registration_id=registration_id, journey_id=journey_id)

    # ── Tâche de fond ─────────────────────────────────────────

    async def run(self, registration_id: int) -> Optional[AssessmentStatus]:
        async with self._slots:
            async with self.session_factory() as db:
                try:
                    return await self._process(db, registration_id)
                except Exception as e:
                    log_event(
                        logger, "assessment.crashed", level=logging.ERROR, exc_info=True,
                        registration_id=registration_id, error=str(e),
                    )
                    return None

    async def _read_committed(self, db, registration_id: int):
        for attempt in range(1, self.read_attempts + 1):
            registration = await repo.get_registration(db, registration_id)
            if registration is not None:
                return registration
            if attempt < self.read_attempts:
                await asyncio.sleep(backoff_delay(attempt, self.backoff_seconds))
        return None

    async def _assess(self, registration_id: int, journey_id) -> Optional[AssessmentResult]:
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self.client.assess(registration_id)
            except AssessmentError as e:
                log_event(
                    logger, "assessment.attempt_failed", level=logging.WARNING,
                    registration_id=registration_id, journey_id=journey_id,
                    attempt=attempt, max_attempts=self.max_attempts, error=str(e),
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(backoff_delay(attempt, self.backoff_seconds))
        return None

    async def _process(self, db, registration_id: int) -> Optional[AssessmentStatus]:
        registration = await self._read_committed(db, registration_id)
        if registration is None:
            log_event(logger, "assessment.registration_missing", level=logging.ERROR,
                      registration_id=registration_id)
            return None
        if registration.status != RegistrationStatus.PENDING_APPROVAL:
            log_event(logger, "assessment.skipped", registration_id=registration_id,
                      status=registration.status.value)
            return registration.assessment_status

        leg = await repo.get_leg(db, registration.leg_id)
        journey = await repo.get_journey(db, leg.journey_id)
        boat = await repo.get_boat(db, journey.boat_id)
        owner_id = boat.owner_id if boat else None

        profile = await repo.get_crew_profile(db, registration.user_id)
        if profile is None or not profile.ai_processing_consent:
            return await self._escalate(db, registration, journey, owner_id, reason="no_ai_consent")

        result = await self._assess(registration_id, journey.id)
        if result is None:
            return await self._escalate(db, registration, journey, owner_id, reason="assessment_failed")

        # La ligne a pu changer pendant l'appel (annulation par le marin)
        await db.refresh(registration)
        threshold = journey.auto_approval_threshold
        if threshold is None:
            threshold = settings.AUTO_APPROVAL_DEFAULT_THRESHOLD
        try:
            if result.approve and result.score >= threshold:
                state_machine.approve(registration, reasoning=result.reasoning, score=result.score, auto=True)
            elif not result.approve:
                state_machine.deny(registration, reason=result.reasoning, score=result.score, auto=True)
            else:
                state_machine.ensure_transition(registration.status, RegistrationStatus.APPROVED)
                registration.ai_match_score = result.score
                registration.ai_match_reasoning = result.reasoning
        except InvalidTransition:
            await db.rollback()
            log_event(logger, "assessment.stale", level=logging.WARNING,
                      registration_id=registration_id, journey_id=journey.id)
            return None

        registration.assessment_status = AssessmentStatus.COMPLETED
        await repo.save(db, registration)
        log_event(
            logger, "assessment.completed",
            registration_id=registration_id, journey_id=journey.id,
            score=result.score, threshold=threshold, status=registration.status.value,
        )

        await self._notify(db, registration, journey, owner_id)
        return registration.assessment_status

    async def _escalate(self, db, registration, journey, owner_id, reason: str) -> AssessmentStatus:
        registration.assessment_status = AssessmentStatus.NEEDS_MANUAL_REVIEW
        await repo.save(db, registration)
        log_event(
            logger, "assessment.needs_manual_review", level=logging.WARNING,
            registration_id=registration.id, journey_id=journey.id, reason=reason,
        )
        if owner_id is not None:
            await self.notifier.notify_review_needed(
                db, owner_id=owner_id, registration_id=registration.id,
                journey_id=journey.id, reason=reason,
            )
        return registration.assessment_status

    async def _notify(self, db, registration, journey, owner_id) -> None:
        crew = await repo.get_user(db, registration.user_id)
        owner = await repo.get_user(db, owner_id) if owner_id is not None else None
        decision = decide_after_assessment(
            owner_id=owner_id,
            registration_id=registration.id,
            journey_id=journey.id,
            journey_name=journey.name,
            crew_name=crew_display_name(getattr(crew, "full_name", None), getattr(crew, "username", None)),
            crew_id=registration.user_id,
            auto_approved=bool(registration.auto_approved),
        )
        if decision.notify:
            await self.notifier.notify_new_registration(
                db, decision.notice, owner_email=getattr(owner, "email", None),
            )
        if registration.status != RegistrationStatus.PENDING_APPROVAL:
            await self.notifier.notify_registration_decision(
                db,
                crew_user_id=registration.user_id,
                registration_id=registration.id,
                journey_id=journey.id,
                journey_name=journey.name,
                approved=registration.status == RegistrationStatus.APPROVED,
                reason=registration.ai_match_reasoning,
            )


orchestrator = AutoApprovalOrchestrator()
