# engine/registration/skills.py
"""
Normalisation des noms de compétences.

Format canonique (stockage + comparaison) : minuscules, espaces → "_"
    "Navigation"         → "navigation"
    "Sailing Experience" → "sailing_experience"
    "first_aid"          → "first_aid"   (déjà canonique)

Les profils marins stockent les compétences sous plusieurs formes
historiques, toutes acceptées par normalize_skill_names() :
    "Navigation"
    {"skill_name": "navigation", "description": "..."}
    '{"skill_name": "navigation", "description": "..."}'   (chaîne JSON)
"""
from __future__ import annotations
import json
import re
from typing import Any, Iterable, List, Optional

_WHITESPACE = re.compile(r"\s+")

# Clés rencontrées dans les objets compétence, par ordre de priorité
_NAME_KEYS = ("skill_name", "skillName", "skill Name", "skill", "name")


def to_canonical(skill_name: Optional[str]) -> str:
    if not skill_name or not isinstance(skill_name, str):
        return ""
    return _WHITESPACE.sub("_", skill_name.strip().lower())


def to_display(canonical_name: Optional[str]) -> str:
    """'sailing_experience' → 'Sailing Experience'"""
    if not canonical_name or not isinstance(canonical_name, str):
        return ""
    return " ".join(word.capitalize() for word in canonical_name.split("_") if word)


def _extract_name(skill: Any) -> str:
    if skill is None:
        return ""
    if isinstance(skill, dict):
        for key in _NAME_KEYS:
            if skill.get(key):
                return str(skill[key])
        return ""
    text = str(skill).strip()
    if text.startswith("{"):
        try:
            parsed = json.loads(text)
        except ValueError:
            return text
        return _extract_name(parsed) if isinstance(parsed, dict) else text
    return text


def normalize_skill_names(skills: Optional[Iterable[Any]]) -> List[str]:
    """
    Liste canonique dédupliquée, ordre de première apparition conservé.
    Les entrées vides ou illisibles sont ignorées.
    """
    if not skills or isinstance(skills, (str, bytes)):
        return []
    seen: List[str] = []
    for skill in skills:
        name = to_canonical(_extract_name(skill))
        if name and name not in seen:
            seen.append(name)
    return seen


def merge_skills(*skill_lists: Optional[Iterable[Any]]) -> List[str]:
    """Union normalisée (journey ∪ leg), sans doublon."""
    merged: List[str] = []
    for skills in skill_lists:
        for name in normalize_skill_names(skills):
            if name not in merged:
                merged.append(name)
    return merged
