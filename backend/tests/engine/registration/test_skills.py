# tests/engine/registration/test_skills.py
"""
Tests unitaires pour engine.registration.skills
"""
import pytest

from app.engine.registration.skills import (
    merge_skills,
    normalize_skill_names,
    to_canonical,
    to_display,
)

pytestmark = pytest.mark.engine


class TestCanonical:
    @pytest.mark.parametrize("raw,expected", [
        ("Navigation", "navigation"),
        ("Sailing Experience", "sailing_experience"),
        ("  First   Aid ", "first_aid"),
        ("first_aid", "first_aid"),
        ("", ""),
        (None, ""),
    ])
    def test_to_canonical(self, raw, expected):
        assert to_canonical(raw) == expected

    def test_to_display(self):
        assert to_display("sailing_experience") == "Sailing Experience"
        assert to_display(None) == ""


class TestNormalize:
    def test_formes_historiques(self):
        skills = [
            "Navigation",
            {"skill_name": "First Aid", "description": "PSC1"},
            '{"skill_name": "night watch", "description": "..."}',
            {"skillName": "Cooking"},
        ]
        assert normalize_skill_names(skills) == ["navigation", "first_aid", "night_watch", "cooking"]

    def test_doublons_et_vides_ignores(self):
        assert normalize_skill_names(["Navigation", "navigation", "", None, {}]) == ["navigation"]

    def test_json_invalide_garde_le_texte(self):
        assert normalize_skill_names(["{broken"]) == ["{broken"]

    def test_chaine_seule_refusee(self):
        assert normalize_skill_names("Navigation") == []

    def test_merge_union_ordonnee(self):
        assert merge_skills(["Navigation"], None, ["first aid", "Navigation"]) == ["navigation", "first_aid"]
