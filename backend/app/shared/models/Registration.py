# app/shared/models/Registration.py
"""
Modèles des inscriptions marin ↔ étape.

Registration       : une candidature d'un marin sur une étape
RegistrationAnswer : la réponse du marin à une JourneyRequirement

Cycle Registration (voir engine/registration/state_machine.py) :
    Pending approval → Approved / Not approved / Cancelled
    Approved | Not approved → Cancelled
    Cancelled → Pending approval   (réactivation, même ligne)

Unicité (leg_id, user_id) garantie par la base : la réactivation
réutilise la ligne, une double insertion concurrente lève IntegrityError.
"""
from sqlalchemy import (
    Column, Integer, String, Boolean,
    DateTime, JSON, ForeignKey, Enum as SAEnum,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base
from app.shared.enums import RegistrationStatus, AssessmentStatus, enum_values


class Registration(Base):
    __tablename__ = "registrations"

    id      = Column(Integer, primary_key=True, index=True)
    leg_id  = Column(Integer, ForeignKey("legs.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(
        SAEnum(RegistrationStatus, name="registrationstatus", values_callable=enum_values),
        default=RegistrationStatus.PENDING_APPROVAL, nullable=False, index=True,
    )
    notes = Column(String, nullable=True)

    # ── Évaluation externe ───────────────────────────────────
    ai_match_score     = Column(Integer, nullable=True)
    ai_match_reasoning = Column(String, nullable=True)
    auto_approved      = Column(Boolean, default=False, nullable=False)
    assessment_status  = Column(
        SAEnum(AssessmentStatus, name="assessmentstatus", values_callable=enum_values),
        default=AssessmentStatus.NOT_REQUIRED, nullable=False,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("leg_id", "user_id", name="uq_registration_leg_user"),
        CheckConstraint(
            "ai_match_score >= 0 AND ai_match_score <= 100",
            name="registrations_ai_match_score_check",
        ),
    )

    leg     = relationship("Leg", back_populates="registrations")
    answers = relationship(
        "RegistrationAnswer", back_populates="registration", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Registration id={self.id} leg={self.leg_id} user={self.user_id} status={self.status}>"


class RegistrationAnswer(Base):
    __tablename__ = "registration_answers"

    id              = Column(Integer, primary_key=True, index=True)
    registration_id = Column(Integer, ForeignKey("registrations.id", ondelete="CASCADE"), nullable=False, index=True)
    requirement_id  = Column(Integer, ForeignKey("journey_requirements.id", ondelete="CASCADE"), nullable=False, index=True)

    answer_text = Column(String, nullable=True)
    answer_json = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("registration_id", "requirement_id", name="uq_answer_registration_requirement"),
    )

    registration = relationship("Registration", back_populates="answers")
    requirement  = relationship("JourneyRequirement")

    def __repr__(self):
        return f"<RegistrationAnswer registration={self.registration_id} requirement={self.requirement_id}>"
