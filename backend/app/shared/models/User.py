# app/shared/models/User.py
"""
Modèles liés aux utilisateurs.

Stratégie de découpage User :
- User        : identité auth (le token porte User.id) + rôle
- CrewProfile : données marin lues par le moteur de matching
                (compétences, niveaux de risque acceptés, expérience)

CrewProfile est en lecture seule pour le moteur d'inscription.
Format de skills : liste de noms, ou d'objets {"skill_name", "description"},
éventuellement sérialisés en chaîne JSON (voir engine/registration/skills.py).
"""
from sqlalchemy import (
    Column, Integer, String, Boolean,
    DateTime, JSON, ForeignKey, Enum as SAEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base
from app.shared.enums import UserRole, enum_values


class User(Base):
    __tablename__ = "users"

    id       = Column(Integer, primary_key=True, index=True)
    email    = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, nullable=True)
    full_name = Column(String, nullable=True)

    role      = Column(
        SAEnum(UserRole, name="userrole", values_callable=enum_values),
        default=UserRole.CREW, nullable=False, index=True,
    )
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # ── Relation 1:1 vers le profil marin ────────────────────
    crew_profile = relationship(
        "CrewProfile", back_populates="user",
        uselist=False, cascade="all, delete-orphan",
    )

    # ── Helpers ──────────────────────────────────────────────
    @property
    def is_crew(self) -> bool:
        return self.role == UserRole.CREW

    @property
    def is_owner(self) -> bool:
        return self.role in (UserRole.OWNER, UserRole.ADMIN)

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or "A crew member"

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"


class CrewProfile(Base):
    __tablename__ = "crew_profiles"

    id      = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)

    sailing_experience = Column(Integer, nullable=True)   # niveau 1-4
    skills             = Column(JSON, nullable=True)
    risk_level         = Column(JSON, nullable=True)      # ["Coastal sailing", ...]

    # Consentement RGPD au traitement automatisé (évaluation externe)
    ai_processing_consent = Column(Boolean, default=False, nullable=False)

    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="crew_profile")

    def __repr__(self):
        return f"<CrewProfile id={self.id} user={self.user_id} xp={self.sailing_experience}>"
