# tests/modules/journey/test_router.py
"""
Tests HTTP pour modules.journey.router

Couverture :
    GET    /journeys/{id}/requirements          → 200 liste
    POST   /journeys/{id}/requirements          → 201
    POST   multiple_choice sans options         → 422
    DELETE /journeys/{id}/requirements/{rid}    → 204
    PATCH  /journeys/{id}/auto-approval         → 200, seuil hors bornes → 422
"""
import pytest
from unittest.mock import AsyncMock

from app.shared.enums import QuestionType
from app.shared.exceptions import ForbiddenError
from tests.conftest import make_requirement

pytestmark = pytest.mark.router

SERVICE = "app.modules.journey.router.service"


@pytest.mark.asyncio
async def test_list_requirements_200(crew_client, mocker):
    mocker.patch(f"{SERVICE}.list_requirements", AsyncMock(return_value=[
        make_requirement(id=1, order=0),
        make_requirement(id=2, order=1, question_type=QuestionType.RATING, options=[1, 2, 3, 4, 5]),
    ]))
    resp = await crew_client.get("/journeys/1/requirements")
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 2
    assert body["requirements"][1]["question_type"] == "rating"


@pytest.mark.asyncio
async def test_add_requirement_201(owner_client, mocker):
    add = mocker.patch(f"{SERVICE}.add_requirement", AsyncMock(return_value=make_requirement(id=7)))
    resp = await owner_client.post("/journeys/1/requirements", json={
        "question_text": "Avez-vous votre permis côtier ?",
        "question_type": "yes_no",
    })
    assert resp.status_code == 201
    assert resp.json()["id"] == 7
    assert add.call_args.kwargs["payload"].is_required is True


@pytest.mark.asyncio
async def test_multiple_choice_sans_options_422(owner_client):
    resp = await owner_client.post("/journeys/1/requirements", json={
        "question_text": "Poste souhaité ?",
        "question_type": "multiple_choice",
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_add_requirement_non_proprietaire_403(owner_client, mocker):
    mocker.patch(f"{SERVICE}.add_requirement", AsyncMock(side_effect=ForbiddenError("Only the journey owner can manage this journey")))
    resp = await owner_client.post("/journeys/1/requirements", json={
        "question_text": "Question ?",
        "question_type": "text",
    })
    assert resp.status_code == 403
    assert resp.json()["reason"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_delete_requirement_204(owner_client, mocker):
    delete = mocker.patch(f"{SERVICE}.delete_requirement", AsyncMock(return_value=None))
    resp = await owner_client.delete("/journeys/1/requirements/7")
    assert resp.status_code == 204
    assert delete.call_args.args[1:3] == (1, 7)


@pytest.mark.asyncio
async def test_auto_approval_200(owner_client, mocker):
    mocker.patch(f"{SERVICE}.set_auto_approval", AsyncMock(return_value={
        "journey_id": 1,
        "auto_approval_enabled": True,
        "auto_approval_threshold": 75,
        "requirement_count": 3,
    }))
    resp = await owner_client.patch("/journeys/1/auto-approval", json={"enabled": True, "threshold": 75})
    assert resp.status_code == 200
    assert resp.json()["auto_approval_threshold"] == 75


@pytest.mark.asyncio
async def test_auto_approval_seuil_hors_bornes_422(owner_client):
    resp = await owner_client.patch("/journeys/1/auto-approval", json={"enabled": True, "threshold": 120})
    assert resp.status_code == 422
