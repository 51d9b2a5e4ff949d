# app/shared/models/__init__.py
"""
Point d'entrée unique pour tous les modèles SQLAlchemy.

TOUJOURS importer les modèles depuis ce fichier :
  from app.shared.models import Registration, Journey, ...

Jamais directement depuis app.shared.models.Registration, etc.
→ Garantit que tous les modèles sont enregistrés dans Base.metadata
  avant la création des tables (Alembic, create_all) et que les
  relationship() par nom de classe se résolvent.
"""

from app.shared.models.User         import User, CrewProfile
from app.shared.models.Journey      import Boat, Journey, Leg, JourneyRequirement
from app.shared.models.Registration import Registration, RegistrationAnswer
from app.shared.models.Notification import Notification

__all__ = [
    # User
    "User", "CrewProfile",
    # Journey
    "Boat", "Journey", "Leg", "JourneyRequirement",
    # Registration
    "Registration", "RegistrationAnswer",
    # Notification
    "Notification",
]
