# app/modules/registration/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Any
from datetime import datetime
from app.shared.enums import RegistrationStatus, AssessmentStatus, QuestionType


# ── Réponses aux questions ─────────────────────────────────

class AnswerIn(BaseModel):
    requirement_id: int
    answer_text: Optional[str] = None
    answer_json: Optional[Any] = None


class AnswersSubmitIn(BaseModel):
    answers: List[AnswerIn] = Field(..., min_length=1)


class RequirementOut(BaseModel):
    id: int
    question_text: str
    question_type: QuestionType
    options: Optional[List[Any]] = None
    is_required: bool
    weight: float
    order: int
    model_config = ConfigDict(from_attributes=True)


class AnswerOut(BaseModel):
    id: int
    registration_id: int
    requirement_id: int
    answer_text: Optional[str] = None
    answer_json: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    requirement: Optional[RequirementOut] = None
    model_config = ConfigDict(from_attributes=True)


class AnswersListOut(BaseModel):
    answers: List[AnswerOut]
    count: int


# ── Inscription ────────────────────────────────────────────

class RegistrationCreateIn(BaseModel):
    # Optionnel pour renvoyer un 400 LEG_ID_REQUIRED plutôt qu'un 422
    leg_id: Optional[int] = None
    notes: Optional[str] = Field(None, max_length=2000)
    answers: Optional[List[AnswerIn]] = None


class RegistrationOut(BaseModel):
    id: int
    leg_id: int
    user_id: int
    status: RegistrationStatus
    notes: Optional[str] = None
    ai_match_score: Optional[int] = None
    ai_match_reasoning: Optional[str] = None
    auto_approved: bool = False
    assessment_status: AssessmentStatus = AssessmentStatus.NOT_REQUIRED
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class RegistrationCreatedOut(BaseModel):
    registration: RegistrationOut
    message: str


class RegistrationListOut(BaseModel):
    registrations: List[RegistrationOut]
    count: int


class RegistrationDecisionIn(BaseModel):
    """Décision propriétaire : seules Approved / Not approved sont acceptées."""
    status: RegistrationStatus
    notes: Optional[str] = Field(None, max_length=2000)


# ── Vue détaillée (propriétaire) ───────────────────────────

class CrewProfileOut(BaseModel):
    user_id: int
    full_name: Optional[str] = None
    username: Optional[str] = None
    sailing_experience: Optional[int] = None
    skills: List[str] = []
    risk_level: List[str] = []


class EffectiveLegOut(BaseModel):
    leg_id: int
    leg_name: str
    journey_id: int
    journey_name: str
    skills: List[str] = []
    risk_level: Optional[str] = None
    min_experience_level: Optional[int] = None


class RequirementAnswerOut(BaseModel):
    requirement: RequirementOut
    answer: Optional[AnswerOut] = None


class RegistrationDetailsOut(BaseModel):
    registration: RegistrationOut
    crew: Optional[CrewProfileOut] = None
    leg: EffectiveLegOut
    requirements: List[RequirementAnswerOut] = []
    skill_match_percentage: Optional[int] = None
    experience_level_matches: Optional[bool] = None
    matching_skills: List[str] = []
    missing_skills: List[str] = []
