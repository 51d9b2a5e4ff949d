# tests/modules/registration/test_router.py
"""
Tests HTTP pour modules.registration.router

Couverture :
    POST  /registrations                    → 201 création, 200 réactivation
    POST  /registrations sans token         → 401
    POST  /registrations rôle propriétaire  → 403
    POST  /registrations erreurs service    → 400 / 404 / 409 / 500 assaini
    GET   /registrations                    → 200 liste + filtres transmis
    PATCH /registrations/{id}               → 200 décision propriétaire
    POST  /registrations/{id}/cancel        → 200
    GET / POST /registrations/{id}/answers  → 200
    GET   /registrations/{id}/details       → 200 agrégat propriétaire
    GET   /health                           → 200
"""
import pytest
from unittest.mock import AsyncMock

from app.main import app
from app.shared.deps import _get_user_from_token
from app.shared.enums import RegistrationStatus as S
from app.shared.exceptions import AnswersNotSaved, ConflictError, NotFoundError, ValidationFailed
from tests.conftest import (
    make_answer, make_owner, make_registration, make_requirement,
)

pytestmark = pytest.mark.router

SERVICE = "app.modules.registration.router.service"


# ── POST /registrations ───────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_201(crew_client, mocker):
    create = mocker.patch(
        f"{SERVICE}.create_registration",
        AsyncMock(return_value=(make_registration(), False)),
    )
    resp = await crew_client.post("/registrations", json={
        "leg_id": 10,
        "notes": "Motivé",
        "answers": [{"requirement_id": 100, "answer_text": "Yes"}],
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["registration"]["id"] == 50
    assert body["registration"]["status"] == "Pending approval"
    assert body["registration"]["assessment_status"] == "not_required"
    assert body["message"] == "Registration created"
    payload = create.call_args.kwargs["payload"]
    assert payload.leg_id == 10
    assert payload.answers[0].answer_text == "Yes"


@pytest.mark.asyncio
async def test_reactivation_200(crew_client, mocker):
    mocker.patch(
        f"{SERVICE}.create_registration",
        AsyncMock(return_value=(make_registration(id=77), True)),
    )
    resp = await crew_client.post("/registrations", json={"leg_id": 10})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Registration reactivated"
    assert resp.json()["registration"]["id"] == 77


@pytest.mark.asyncio
async def test_create_sans_token_401(client):
    resp = await client.post("/registrations", json={"leg_id": 10})
    assert resp.status_code == 401
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_create_role_proprietaire_403(client):
    app.dependency_overrides[_get_user_from_token] = lambda: make_owner()
    resp = await client.post("/registrations", json={"leg_id": 10})
    assert resp.status_code == 403
    assert resp.json()["error"] == "Only crew members can register for legs"


@pytest.mark.asyncio
@pytest.mark.parametrize("exc,status_code,reason", [
    (ValidationFailed("leg_id is required", reason="LEG_ID_REQUIRED"), 400, "LEG_ID_REQUIRED"),
    (ValidationFailed("Journey is not published", reason="JOURNEY_NOT_PUBLISHED"), 400, "JOURNEY_NOT_PUBLISHED"),
    (NotFoundError("Leg not found", reason="LEG_NOT_FOUND"), 404, "LEG_NOT_FOUND"),
    (ConflictError("You have already registered for this leg", reason="ALREADY_REGISTERED"), 409, "ALREADY_REGISTERED"),
])
async def test_create_erreurs_service(crew_client, mocker, exc, status_code, reason):
    mocker.patch(f"{SERVICE}.create_registration", AsyncMock(side_effect=exc))
    resp = await crew_client.post("/registrations", json={"leg_id": 10})
    assert resp.status_code == status_code
    body = resp.json()
    assert body["success"] is False
    assert body["reason"] == reason
    assert body["error"] == exc.message


@pytest.mark.asyncio
async def test_create_reponses_non_enregistrees_500_assaini(crew_client, mocker):
    mocker.patch(
        f"{SERVICE}.create_registration",
        AsyncMock(side_effect=AnswersNotSaved("connexion perdue pendant l'INSERT", registration_id=50)),
    )
    resp = await crew_client.post("/registrations", json={"leg_id": 10})
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Internal server error"
    assert body["reason"] == "ANSWERS_NOT_SAVED"
    assert body["registration_id"] == 50
    assert "INSERT" not in resp.text


@pytest.mark.asyncio
async def test_create_leg_id_non_entier_422(crew_client):
    resp = await crew_client.post("/registrations", json={"leg_id": "abc"})
    assert resp.status_code == 422


# ── GET /registrations ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_200(crew_client, mocker):
    list_ = mocker.patch(
        f"{SERVICE}.list_registrations",
        AsyncMock(return_value=[make_registration(id=2), make_registration(id=1)]),
    )
    resp = await crew_client.get("/registrations", params={"leg_id": 10, "status": "Pending approval"})
    assert resp.status_code == 200
    assert resp.json()["count"] == 2
    assert [r["id"] for r in resp.json()["registrations"]] == [2, 1]
    assert list_.call_args.kwargs["leg_id"] == 10
    assert list_.call_args.kwargs["status"] == S.PENDING_APPROVAL


@pytest.mark.asyncio
async def test_list_statut_inconnu_422(crew_client):
    resp = await crew_client.get("/registrations", params={"status": "Waiting"})
    assert resp.status_code == 422


# ── PATCH /registrations/{id} + cancel ───────────────────────────────────────

@pytest.mark.asyncio
async def test_decision_proprietaire_200(owner_client, mocker):
    decide = mocker.patch(
        f"{SERVICE}.decide",
        AsyncMock(return_value=make_registration(status=S.APPROVED, notes="Bienvenue")),
    )
    resp = await owner_client.patch("/registrations/50", json={"status": "Approved", "notes": "Bienvenue"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "Approved"
    assert decide.call_args.kwargs["payload"].status == S.APPROVED


@pytest.mark.asyncio
async def test_annulation_200(crew_client, mocker):
    mocker.patch(f"{SERVICE}.cancel", AsyncMock(return_value=make_registration(status=S.CANCELLED)))
    resp = await crew_client.post("/registrations/50/cancel")
    assert resp.status_code == 200
    assert resp.json()["status"] == "Cancelled"


# ── Réponses ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_get_answers_200(crew_client, mocker):
    answer = make_answer(requirement=make_requirement())
    mocker.patch(f"{SERVICE}.get_answers", AsyncMock(return_value=[answer]))
    resp = await crew_client.get("/registrations/50/answers")
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    assert body["answers"][0]["requirement"]["question_type"] == "yes_no"


@pytest.mark.asyncio
async def test_submit_answers_200(crew_client, mocker):
    submit = mocker.patch(f"{SERVICE}.submit_answers", AsyncMock(return_value=[make_answer()]))
    resp = await crew_client.post("/registrations/50/answers", json={
        "answers": [{"requirement_id": 100, "answer_text": "Yes"}],
    })
    assert resp.status_code == 200
    assert resp.json()["count"] == 1
    assert submit.call_args.args[1] == 50


@pytest.mark.asyncio
async def test_submit_answers_liste_vide_422(crew_client):
    resp = await crew_client.post("/registrations/50/answers", json={"answers": []})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_submit_answers_hors_pending_400(crew_client, mocker):
    mocker.patch(
        f"{SERVICE}.submit_answers",
        AsyncMock(side_effect=ValidationFailed("not pending", reason="REGISTRATION_NOT_PENDING")),
    )
    resp = await crew_client.post("/registrations/50/answers", json={
        "answers": [{"requirement_id": 100, "answer_text": "Yes"}],
    })
    assert resp.status_code == 400
    assert resp.json()["reason"] == "REGISTRATION_NOT_PENDING"


# ── Vue détaillée ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_details_200(owner_client, mocker):
    requirement = make_requirement()
    mocker.patch(f"{SERVICE}.get_details", AsyncMock(return_value={
        "registration": make_registration(),
        "crew": {"user_id": 1, "full_name": "Jean Marin", "username": "jmarin",
                 "sailing_experience": 3, "skills": ["navigation", "cooking"], "risk_level": []},
        "leg": {"leg_id": 10, "leg_name": "Palma → Gibraltar", "journey_id": 1,
                "journey_name": "Transat Méditerranée", "skills": ["navigation", "first_aid"],
                "risk_level": None, "min_experience_level": 2},
        "requirements": [{"requirement": requirement, "answer": make_answer()}],
        "skill_match_percentage": 70,
        "experience_level_matches": True,
        "matching_skills": ["navigation"],
        "missing_skills": ["first_aid"],
    }))
    resp = await owner_client.get("/registrations/50/details")
    assert resp.status_code == 200
    body = resp.json()
    assert body["skill_match_percentage"] == 70
    assert body["experience_level_matches"] is True
    assert body["requirements"][0]["answer"]["answer_text"] == "Yes"


@pytest.mark.asyncio
async def test_details_sans_token_401(client):
    resp = await client.get("/registrations/50/details")
    assert resp.status_code == 401


# ── Health ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
