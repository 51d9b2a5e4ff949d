# app/infra/assessment.py
"""
Client du service d'évaluation externe.

    POST {ASSESSMENT_SERVICE_URL}/assess/{registration_id}
    → {"score": 0-100, "reasoning": "...", "approve": true|false}

Toute anomalie (timeout, statut HTTP, corps invalide) devient
AssessmentError : l'orchestrateur décide s'il réessaie.
"""
from typing import Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from app.core.config import settings


class AssessmentError(Exception):
    pass


class AssessmentResult(BaseModel):
    score: int = Field(..., ge=0, le=100)
    reasoning: Optional[str] = None
    approve: bool


class AssessmentClient:

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.ASSESSMENT_SERVICE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.ASSESSMENT_TIMEOUT_SECONDS

    async def assess(self, registration_id) -> AssessmentResult:
        url = f"{self.base_url}/assess/{registration_id}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            raise AssessmentError(f"Assessment call failed: {e.__class__.__name__}: {e}") from e
        except ValueError as e:
            raise AssessmentError(f"Assessment returned non-JSON body: {e}") from e

        try:
            return AssessmentResult.model_validate(payload)
        except ValidationError as e:
            raise AssessmentError(f"Invalid assessment payload: {e.error_count()} error(s)") from e
