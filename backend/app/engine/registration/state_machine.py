# engine/registration/state_machine.py
"""
Machine à états des inscriptions.

    ┌──────────────────┐  approve   ┌──────────────┐
    │ Pending approval │──────────▶│   Approved   │──┐
    │                  │  deny      ┌──────────────┐ │ cancel
    │                  │──────────▶│ Not approved │─┤
    └──────────────────┘            └──────────────┘ │
        ▲        │ cancel                             ▼
        │        └──────────────────────────▶┌─────────────┐
        └────────── reactivate ───────────────│  Cancelled  │
                                              └─────────────┘

Pending approval est le seul état initial. Toute autre transition lève
InvalidTransition, traduite en 409 par le service.

Les fonctions d'application (approve, deny, cancel, reactivate) mutent
l'objet inscription passé (ligne ORM ou équivalent) ; la persistance
reste au repository.
"""
from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, Optional

from app.shared.enums import RegistrationStatus, AssessmentStatus

S = RegistrationStatus

TRANSITIONS: Dict[RegistrationStatus, FrozenSet[RegistrationStatus]] = {
    S.PENDING_APPROVAL: frozenset({S.APPROVED, S.NOT_APPROVED, S.CANCELLED}),
    S.APPROVED:         frozenset({S.CANCELLED}),
    S.NOT_APPROVED:     frozenset({S.CANCELLED}),
    S.CANCELLED:        frozenset({S.PENDING_APPROVAL}),
}


class InvalidTransition(ValueError):
    def __init__(self, current: Optional[RegistrationStatus], target: RegistrationStatus):
        self.current = current
        self.target = target
        src = current.value if current else "∅"
        super().__init__(f"Transition refusée : {src} → {target.value}")


class RegistrationAction(str, Enum):
    CREATE     = "create"
    REACTIVATE = "reactivate"


def can_transition(current: RegistrationStatus, target: RegistrationStatus) -> bool:
    return RegistrationStatus(target) in TRANSITIONS[RegistrationStatus(current)]


def ensure_transition(current: RegistrationStatus, target: RegistrationStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransition(RegistrationStatus(current), RegistrationStatus(target))


def plan_registration(existing_status: Optional[RegistrationStatus]) -> RegistrationAction:
    """
    Décide comment traiter une demande d'inscription d'un marin sur une étape.
        aucune ligne     → CREATE
        Cancelled        → REACTIVATE (même ligne)
        tout autre état  → InvalidTransition (conflit)
    """
    if existing_status is None:
        return RegistrationAction.CREATE
    ensure_transition(existing_status, S.PENDING_APPROVAL)
    return RegistrationAction.REACTIVATE


# ── Application des transitions ───────────────────────────────────────────────

def _now() -> datetime:
    return datetime.now(timezone.utc)


def _apply(registration, target: RegistrationStatus) -> None:
    ensure_transition(registration.status, target)
    registration.status = target
    registration.updated_at = _now()


def approve(registration, notes: Optional[str] = None, reasoning: Optional[str] = None,
            score: Optional[int] = None, auto: bool = False):
    _apply(registration, S.APPROVED)
    if notes is not None:
        registration.notes = notes
    if reasoning is not None:
        registration.ai_match_reasoning = reasoning
    if score is not None:
        registration.ai_match_score = score
    registration.auto_approved = auto
    return registration


def deny(registration, reason: Optional[str] = None, score: Optional[int] = None,
         auto: bool = False):
    _apply(registration, S.NOT_APPROVED)
    if auto:
        registration.ai_match_reasoning = reason
    elif reason is not None:
        registration.notes = reason
    if score is not None:
        registration.ai_match_score = score
    registration.auto_approved = False
    return registration


def cancel(registration):
    _apply(registration, S.CANCELLED)
    return registration


def reactivate(registration, notes: Optional[str] = None):
    """
    Cancelled → Pending approval sur la même ligne.
    notes écrasées (None compris), résultats d'évaluation précédents effacés.
    """
    _apply(registration, S.PENDING_APPROVAL)
    registration.notes = notes
    registration.ai_match_score = None
    registration.ai_match_reasoning = None
    registration.auto_approved = False
    registration.assessment_status = AssessmentStatus.NOT_REQUIRED
    return registration
