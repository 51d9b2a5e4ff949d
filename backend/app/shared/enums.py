# app/shared/enums.py
"""
Toutes les énumérations du projet.

Source unique de vérité pour les statuts, rôles et types.
Importé par les modèles, schemas, services et engine.

Les valeurs (pas les noms) sont persistées et exposées à l'UI :
elles doivent rester identiques au caractère près.
"""

from enum import Enum

class UserRole(str, Enum):
    CREW  = "crew"
    OWNER = "owner"    # Propriétaire / skipper
    ADMIN = "admin"


class JourneyState(str, Enum):
    IN_PLANNING = "In planning"
    PUBLISHED   = "Published"
    ARCHIVED    = "Archived"


class RiskLevel(str, Enum):
    COASTAL  = "Coastal sailing"
    OFFSHORE = "Offshore sailing"
    EXTREME  = "Extreme sailing"


class RegistrationStatus(str, Enum):
    PENDING_APPROVAL = "Pending approval"
    APPROVED         = "Approved"
    NOT_APPROVED     = "Not approved"
    CANCELLED        = "Cancelled"


class QuestionType(str, Enum):
    TEXT            = "text"
    YES_NO          = "yes_no"
    MULTIPLE_CHOICE = "multiple_choice"
    RATING          = "rating"


class AssessmentStatus(str, Enum):
    NOT_REQUIRED        = "not_required"          # Auto-approbation inactive
    QUEUED              = "queued"                # Tâche de fond planifiée
    COMPLETED           = "completed"             # Résultat appliqué
    NEEDS_MANUAL_REVIEW = "needs_manual_review"   # Échec ou consentement absent


class NotificationType(str, Enum):
    NEW_REGISTRATION      = "new_registration"
    REGISTRATION_APPROVED = "registration_approved"
    REGISTRATION_DENIED   = "registration_denied"
    AI_REVIEW_NEEDED      = "ai_review_needed"


def enum_values(enum_cls) -> list:
    """values_callable pour SAEnum : persister la valeur, pas le nom."""
    return [member.value for member in enum_cls]
