# tests/engine/registration/test_state_machine.py
"""
Tests unitaires pour engine.registration.state_machine

Couverture :
    - Table des transitions (autorisées / refusées)
    - plan_registration : aucune ligne → CREATE, Cancelled → REACTIVATE, sinon conflit
    - approve / deny : champs IA, notes, auto_approved
    - cancel depuis chaque état actif
    - reactivate : même ligne, notes écrasées, résultats IA effacés, updated_at avancé
"""
import itertools
import pytest
from datetime import datetime

from app.engine.registration import state_machine as sm
from app.engine.registration.state_machine import (
    InvalidTransition,
    RegistrationAction,
    TRANSITIONS,
)
from app.shared.enums import AssessmentStatus, RegistrationStatus as S
from tests.conftest import make_registration

pytestmark = pytest.mark.engine

ALLOWED = {
    (S.PENDING_APPROVAL, S.APPROVED),
    (S.PENDING_APPROVAL, S.NOT_APPROVED),
    (S.PENDING_APPROVAL, S.CANCELLED),
    (S.APPROVED, S.CANCELLED),
    (S.NOT_APPROVED, S.CANCELLED),
    (S.CANCELLED, S.PENDING_APPROVAL),
}


class TestTransitions:
    @pytest.mark.parametrize("current,target", list(itertools.product(S, S)))
    def test_table_complete(self, current, target):
        assert sm.can_transition(current, target) is ((current, target) in ALLOWED)

    def test_tous_les_etats_couverts(self):
        assert set(TRANSITIONS) == set(S)

    def test_transition_refusee_leve(self):
        with pytest.raises(InvalidTransition) as exc:
            sm.ensure_transition(S.APPROVED, S.PENDING_APPROVAL)
        assert exc.value.current == S.APPROVED
        assert exc.value.target == S.PENDING_APPROVAL

    def test_accepte_les_valeurs_brutes(self):
        assert sm.can_transition("Pending approval", "Approved") is True


class TestPlanRegistration:
    def test_aucune_inscription_creation(self):
        assert sm.plan_registration(None) == RegistrationAction.CREATE

    def test_annulee_reactivation(self):
        assert sm.plan_registration(S.CANCELLED) == RegistrationAction.REACTIVATE

    @pytest.mark.parametrize("status", [S.PENDING_APPROVAL, S.APPROVED, S.NOT_APPROVED])
    def test_active_conflit(self, status):
        with pytest.raises(InvalidTransition):
            sm.plan_registration(status)


class TestApply:
    def test_approve_auto(self):
        reg = make_registration()
        sm.approve(reg, reasoning="Profil solide", score=91, auto=True)
        assert reg.status == S.APPROVED
        assert reg.ai_match_score == 91
        assert reg.ai_match_reasoning == "Profil solide"
        assert reg.auto_approved is True

    def test_approve_manuel_conserve_ia(self):
        reg = make_registration(ai_match_score=60, ai_match_reasoning="Moyen")
        sm.approve(reg, notes="Bienvenue à bord")
        assert reg.notes == "Bienvenue à bord"
        assert reg.ai_match_score == 60
        assert reg.auto_approved is False

    def test_deny_auto_raison_dans_reasoning(self):
        reg = make_registration(notes="Motivé")
        sm.deny(reg, reason="Expérience insuffisante", score=30, auto=True)
        assert reg.status == S.NOT_APPROVED
        assert reg.ai_match_reasoning == "Expérience insuffisante"
        assert reg.notes == "Motivé"

    def test_deny_manuel_raison_dans_notes(self):
        reg = make_registration()
        sm.deny(reg, reason="Équipage complet")
        assert reg.notes == "Équipage complet"

    @pytest.mark.parametrize("status", [S.PENDING_APPROVAL, S.APPROVED, S.NOT_APPROVED])
    def test_cancel_depuis_etat_actif(self, status):
        reg = make_registration(status=status)
        sm.cancel(reg)
        assert reg.status == S.CANCELLED

    def test_cancel_deux_fois_refuse(self):
        reg = make_registration(status=S.CANCELLED)
        with pytest.raises(InvalidTransition):
            sm.cancel(reg)

    def test_approve_depuis_annulee_refuse(self):
        reg = make_registration(status=S.CANCELLED)
        with pytest.raises(InvalidTransition):
            sm.approve(reg)
        assert reg.status == S.CANCELLED


class TestReactivate:
    def test_meme_ligne_reinitialisee(self):
        reg = make_registration(
            id=77,
            status=S.CANCELLED,
            notes="ancienne note",
            ai_match_score=40,
            ai_match_reasoning="ancien",
            auto_approved=True,
            assessment_status=AssessmentStatus.COMPLETED,
            updated_at=datetime(2020, 1, 1),
        )
        sm.reactivate(reg, notes="nouvelle note")
        assert reg.id == 77
        assert reg.status == S.PENDING_APPROVAL
        assert reg.notes == "nouvelle note"
        assert reg.ai_match_score is None
        assert reg.ai_match_reasoning is None
        assert reg.auto_approved is False
        assert reg.assessment_status == AssessmentStatus.NOT_REQUIRED
        assert reg.updated_at.year > 2020

    def test_notes_absentes_ecrasent(self):
        reg = make_registration(status=S.CANCELLED, notes="ancienne note")
        sm.reactivate(reg)
        assert reg.notes is None

    def test_reactivation_depuis_pending_refusee(self):
        with pytest.raises(InvalidTransition):
            sm.reactivate(make_registration(status=S.PENDING_APPROVAL))
