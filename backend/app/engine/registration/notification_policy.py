# engine/registration/notification_policy.py
"""
Décision de notification du propriétaire. Pure : ne livre rien.

Règle "nouvelle inscription" :
    auto-approbation inactive → notifier tout de suite (rien à calculer)
    auto-approbation active   → taire ; le propriétaire est notifié quand
                                l'évaluation est résolue (decide_after_assessment)

La livraison est faite par infra/notifications.NotificationService.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional

DEFAULT_CREW_NAME = "A crew member"


@dataclass(frozen=True)
class NewRegistrationNotice:
    owner_id:        Any
    registration_id: Any
    journey_id:      Any
    journey_name:    str
    crew_name:       str
    actor_id:        Any
    auto_approved:   bool = False


@dataclass(frozen=True)
class NotificationDecision:
    notify: bool
    reason: str
    notice: Optional[NewRegistrationNotice] = None


def crew_display_name(full_name: Optional[str], username: Optional[str]) -> str:
    return (full_name or "").strip() or (username or "").strip() or DEFAULT_CREW_NAME


def decide_new_registration(
    *,
    owner_id,
    registration_id,
    journey_id,
    journey_name: str,
    crew_name: str,
    crew_id,
    auto_approval_in_effect: bool,
) -> NotificationDecision:
    if auto_approval_in_effect:
        return NotificationDecision(notify=False, reason="deferred_to_assessment")
    if owner_id is None:
        return NotificationDecision(notify=False, reason="no_owner")
    return NotificationDecision(
        notify=True,
        reason="manual_review",
        notice=NewRegistrationNotice(
            owner_id=owner_id,
            registration_id=registration_id,
            journey_id=journey_id,
            journey_name=journey_name,
            crew_name=crew_name,
            actor_id=crew_id,
        ),
    )


def decide_after_assessment(
    *,
    owner_id,
    registration_id,
    journey_id,
    journey_name: str,
    crew_name: str,
    crew_id,
    auto_approved: bool,
) -> NotificationDecision:
    """Notification différée, une fois l'évaluation résolue (quel qu'en soit le résultat)."""
    if owner_id is None:
        return NotificationDecision(notify=False, reason="no_owner")
    return NotificationDecision(
        notify=True,
        reason="assessment_resolved",
        notice=NewRegistrationNotice(
            owner_id=owner_id,
            registration_id=registration_id,
            journey_id=journey_id,
            journey_name=journey_name,
            crew_name=crew_name,
            actor_id=crew_id,
            auto_approved=auto_approved,
        ),
    )
