# tests/conftest.py
"""
Fixtures et factories partagées sur l'ensemble de la suite de tests.

Trois couches :
    1. Engine  : fonctions pures, aucun mock nécessaire
    2. Service : mocks AsyncSession + repos via pytest-mock
    3. Router  : httpx.AsyncClient + dependency_overrides FastAPI
"""
import pytest
from types import SimpleNamespace
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from app.main import app
from app.core.database import get_db
from app.shared.deps import get_current_user, get_current_crew, get_current_owner
from app.shared.enums import (
    UserRole, JourneyState, QuestionType, RegistrationStatus, AssessmentStatus,
)


# ── Factories de modèles ORM (SimpleNamespace, sans ORM) ──────────────

def make_user(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1,
        "email": "crew@test.com",
        "username": "jmarin",
        "full_name": "Jean Marin",
        "role": UserRole.CREW,
        "is_active": True,
        "created_at": datetime(2025, 1, 1),
        "updated_at": datetime(2025, 1, 1),
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_owner(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 2,
        "email": "owner@test.com",
        "username": "skipper",
        "full_name": "Anne Skipper",
        "role": UserRole.OWNER,
    }
    defaults.update(kwargs)
    return make_user(**defaults)


def make_crew_profile(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1,
        "user_id": 1,
        "sailing_experience": 3,
        "skills": [{"skill_name": "navigation", "description": "10 ans"}, {"skill_name": "cooking"}],
        "risk_level": ["Coastal sailing", "Offshore sailing"],
        "ai_processing_consent": True,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_boat(**kwargs) -> SimpleNamespace:
    defaults = {"id": 1, "owner_id": 2, "name": "Lady Aurora"}
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_journey(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1,
        "boat_id": 1,
        "name": "Transat Méditerranée",
        "state": JourneyState.PUBLISHED,
        "skills": ["Navigation"],
        "risk_level": ["Offshore sailing"],
        "min_experience_level": 2,
        "auto_approval_enabled": False,
        "auto_approval_threshold": 80,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_leg(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 10,
        "journey_id": 1,
        "name": "Palma → Gibraltar",
        "skills": ["First Aid"],
        "risk_level": None,
        "min_experience_level": None,
        "start_date": None,
        "end_date": None,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_requirement(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 100,
        "journey_id": 1,
        "question_text": "Avez-vous déjà fait une traversée ?",
        "question_type": QuestionType.YES_NO,
        "options": None,
        "is_required": True,
        "weight": 1.0,
        "order": 0,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_answer(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1000,
        "registration_id": 50,
        "requirement_id": 100,
        "answer_text": "Yes",
        "answer_json": None,
        "created_at": datetime(2025, 1, 2),
        "updated_at": datetime(2025, 1, 2),
        "requirement": None,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_registration(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 50,
        "leg_id": 10,
        "user_id": 1,
        "status": RegistrationStatus.PENDING_APPROVAL,
        "notes": None,
        "ai_match_score": None,
        "ai_match_reasoning": None,
        "auto_approved": False,
        "assessment_status": AssessmentStatus.NOT_REQUIRED,
        "created_at": datetime(2025, 1, 2),
        "updated_at": datetime(2025, 1, 2),
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ── DB mock factory ───────────────────────────────────────────────────────────

def make_async_db() -> AsyncMock:
    """
    AsyncMock simulant une AsyncSession SQLAlchemy.
    refresh() attribue un id aux objets qui n'en ont pas encore.
    """
    db = AsyncMock(spec=AsyncSession)
    added_objects: list = []

    db.add = MagicMock(side_effect=added_objects.append)
    db.add_all = MagicMock(side_effect=added_objects.extend)
    db.added = added_objects

    async def refresh_side_effect(obj, *args, **kwargs):
        if not getattr(obj, "id", None):
            try:
                obj.id = 1
            except (AttributeError, TypeError):
                pass

    db.refresh = AsyncMock(side_effect=refresh_side_effect)
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.close = AsyncMock()

    return db


class FakeSessionFactory:
    """Remplace SessionLocal dans les tâches de fond : `async with factory() as db`."""

    def __init__(self, db=None):
        self.db = db or make_async_db()

    def __call__(self):
        return self

    async def __aenter__(self):
        return self.db

    async def __aexit__(self, *exc):
        return False


# ── Fixtures HTTP (httpx.AsyncClient + dependency_overrides) ─────────────────

@pytest.fixture
async def client():
    """Client sans auth : endpoints publics, ou 401 attendus."""
    mock_db = AsyncMock(spec=AsyncSession)
    app.dependency_overrides[get_db] = lambda: mock_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def crew_client():
    """Client authentifié comme marin (rôle CREW)."""
    mock_db = AsyncMock(spec=AsyncSession)
    mock_user = make_user()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: mock_user
    app.dependency_overrides[get_current_crew] = lambda: mock_user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def owner_client():
    """Client authentifié comme propriétaire (rôle OWNER)."""
    mock_db = AsyncMock(spec=AsyncSession)
    mock_owner = make_owner()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: mock_owner
    app.dependency_overrides[get_current_owner] = lambda: mock_owner
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
