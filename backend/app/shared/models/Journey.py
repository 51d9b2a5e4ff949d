# app/shared/models/Journey.py
"""
Modèles des voyages publiés par les propriétaires.

Boat               : le bateau, porte owner_id (propriété d'un voyage)
Journey            : un voyage multi-étapes + réglages d'auto-approbation
Leg                : une étape, peut surcharger skills / risk_level /
                     min_experience_level du voyage (attributs effectifs)
JourneyRequirement : une question posée aux marins à l'inscription

Les relations sont explicites (FK + relationship) : le service récupère
chaque entité séparément et fait la jointure côté application.
"""
from sqlalchemy import (
    Column, Integer, String, Boolean, Float,
    DateTime, JSON, ForeignKey, Enum as SAEnum, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base
from app.shared.enums import JourneyState, QuestionType, enum_values


class Boat(Base):
    __tablename__ = "boats"

    id       = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name     = Column(String, nullable=False)

    journeys = relationship("Journey", back_populates="boat")

    def __repr__(self):
        return f"<Boat id={self.id} name={self.name}>"


class Journey(Base):
    __tablename__ = "journeys"

    id      = Column(Integer, primary_key=True, index=True)
    boat_id = Column(Integer, ForeignKey("boats.id"), nullable=False, index=True)
    name    = Column(String, nullable=False)
    state   = Column(
        SAEnum(JourneyState, name="journeystate", values_callable=enum_values),
        default=JourneyState.IN_PLANNING, nullable=False,
    )

    skills               = Column(JSON, nullable=True)
    risk_level           = Column(JSON, nullable=True)      # liste de catégories
    min_experience_level = Column(Integer, nullable=True)

    # ── Auto-approbation ─────────────────────────────────────
    auto_approval_enabled   = Column(Boolean, default=False, nullable=False)
    auto_approval_threshold = Column(Integer, default=80, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "auto_approval_threshold >= 0 AND auto_approval_threshold <= 100",
            name="journeys_auto_approval_threshold_check",
        ),
    )

    boat         = relationship("Boat", back_populates="journeys")
    legs         = relationship("Leg", back_populates="journey", cascade="all, delete-orphan")
    requirements = relationship(
        "JourneyRequirement", back_populates="journey", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Journey id={self.id} name={self.name} state={self.state}>"


class Leg(Base):
    __tablename__ = "legs"

    id         = Column(Integer, primary_key=True, index=True)
    journey_id = Column(Integer, ForeignKey("journeys.id"), nullable=False, index=True)
    name       = Column(String, nullable=False)

    # Surcharges : None = hériter du voyage (0 est une valeur explicite)
    skills               = Column(JSON, nullable=True)
    risk_level           = Column(String, nullable=True)
    min_experience_level = Column(Integer, nullable=True)

    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date   = Column(DateTime(timezone=True), nullable=True)

    journey       = relationship("Journey", back_populates="legs")
    registrations = relationship("Registration", back_populates="leg")

    def __repr__(self):
        return f"<Leg id={self.id} journey={self.journey_id} name={self.name}>"


class JourneyRequirement(Base):
    """
    Question attachée à un voyage.
    weight : informatif uniquement, jamais lu par le moteur de score.
    order  : clé de tri d'affichage (non unique, départage par id).
    """
    __tablename__ = "journey_requirements"

    id            = Column(Integer, primary_key=True, index=True)
    journey_id    = Column(Integer, ForeignKey("journeys.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(String, nullable=False)
    question_type = Column(
        SAEnum(QuestionType, name="questiontype", values_callable=enum_values),
        nullable=False,
    )
    options     = Column(JSON, nullable=True)
    is_required = Column(Boolean, default=True, nullable=False)
    weight      = Column(Float, default=1.0, nullable=False)
    order       = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    journey = relationship("Journey", back_populates="requirements")

    def __repr__(self):
        return f"<JourneyRequirement id={self.id} type={self.question_type} required={self.is_required}>"
