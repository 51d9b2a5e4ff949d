# app/modules/journey/schemas.py
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Any
from app.shared.enums import QuestionType
from app.modules.registration.schemas import RequirementOut


class RequirementCreateIn(BaseModel):
    question_text: str = Field(..., min_length=1, max_length=1000)
    question_type: QuestionType
    options: Optional[List[Any]] = None
    is_required: bool = True
    weight: float = Field(1.0, ge=0)
    order: int = 0

    @model_validator(mode="after")
    def options_for_multiple_choice(self):
        if self.question_type == QuestionType.MULTIPLE_CHOICE and not self.options:
            raise ValueError("options are required for multiple_choice questions")
        return self


class RequirementListOut(BaseModel):
    requirements: List[RequirementOut]
    count: int


class AutoApprovalIn(BaseModel):
    enabled: bool
    threshold: Optional[int] = Field(None, ge=0, le=100)


class AutoApprovalOut(BaseModel):
    journey_id: int
    auto_approval_enabled: bool
    auto_approval_threshold: int
    requirement_count: int
    model_config = ConfigDict(from_attributes=True)
