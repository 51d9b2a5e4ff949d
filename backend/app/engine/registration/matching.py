# engine/registration/matching.py
"""
Score de correspondance marin ↔ étape (0-100).

Trois signaux combinés par somme pondérée :

    score = 100 × (W_SKILL · S + W_RISK · R + W_EXPERIENCE · E)

    S (compétences) : |compétences marin ∩ effectives| / |effectives|
                      effectives vides → 1.0 (neutre)
    R (risque)      : part des niveaux de risque exigés que le marin accepte
                      niveaux exigés = effectif de l'étape, sinon ceux du voyage
                      donnée absente d'un côté → 1.0 (neutre)
    E (expérience)  : 1.0 si niveau marin ≥ minimum, sinon niveau / minimum
                      niveau ou minimum absent → 1.0 (neutre)

Propriétés garanties :
    - borné : résultat clampé dans [0, 100]
    - monotone : ajouter une compétence exigée que le marin possède
      n'abaisse jamais le score (S croît, R et E inchangés)
    - déterministe : aucune source d'aléa ni d'horloge

Attributs effectifs (leg surcharge journey) :
    skills               : union journey ∪ leg, normalisée
    risk_level           : leg.risk_level, sinon premier niveau du voyage (affichage)
    risk (score)         : surcharge de l'étape seule si présente, sinon tous
                           les niveaux du voyage
    min_experience_level : leg si non None (0 compris), sinon journey
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

from app.engine.registration.skills import merge_skills, normalize_skill_names

# ── Pondérations ──────────────────────────────────────────────────────────────

W_SKILL:      float = 0.60
W_RISK:       float = 0.20
W_EXPERIENCE: float = 0.20

NEUTRAL: float = 1.0


# ── Attributs effectifs ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class EffectiveAttributes:
    skills:               List[str]
    risk_level:           Optional[str]
    leg_risk_level:       Optional[str]
    journey_risk_levels:  List[str]
    min_experience_level: Optional[int]


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    return [v for v in value if v]


def effective_attributes(journey, leg) -> EffectiveAttributes:
    journey_risks = _as_list(getattr(journey, "risk_level", None))
    leg_risk = getattr(leg, "risk_level", None)
    leg_min = getattr(leg, "min_experience_level", None)

    return EffectiveAttributes(
        skills=merge_skills(getattr(journey, "skills", None), getattr(leg, "skills", None)),
        risk_level=leg_risk or (journey_risks[0] if journey_risks else None),
        leg_risk_level=leg_risk or None,
        journey_risk_levels=journey_risks,
        min_experience_level=leg_min if leg_min is not None else getattr(journey, "min_experience_level", None),
    )


# ── Composantes ───────────────────────────────────────────────────────────────

def skill_component(crew_skills: Iterable[Any], effective_skills: Iterable[Any]) -> float:
    required = normalize_skill_names(effective_skills)
    if not required:
        return NEUTRAL
    owned = set(normalize_skill_names(crew_skills))
    return sum(1 for s in required if s in owned) / len(required)


def risk_component(
    crew_risk_levels: Optional[Sequence[str]],
    effective_risk_level: Optional[str],
    journey_risk_levels: Optional[Sequence[str]],
) -> float:
    required = set(_as_list(effective_risk_level)) or set(_as_list(journey_risk_levels))
    accepted = set(_as_list(crew_risk_levels))
    if not required or not accepted:
        return NEUTRAL
    return len(required & accepted) / len(required)


def experience_component(crew_experience: Optional[int], min_experience: Optional[int]) -> float:
    if crew_experience is None or min_experience is None:
        return NEUTRAL
    if min_experience <= 0 or crew_experience >= min_experience:
        return 1.0
    return max(0.0, crew_experience / min_experience)


def experience_matches(crew_experience: Optional[int], min_experience: Optional[int]) -> Optional[bool]:
    """None si l'une des deux valeurs est absente."""
    if crew_experience is None or min_experience is None:
        return None
    return crew_experience >= min_experience


# ── Score global ──────────────────────────────────────────────────────────────

def compute_match(
    crew_skills: Optional[Iterable[Any]],
    effective_skills: Optional[Iterable[Any]],
    crew_risk_levels: Optional[Sequence[str]],
    effective_risk_level: Optional[str],
    journey_risk_levels: Optional[Sequence[str]],
    crew_experience: Optional[int],
    effective_min_experience: Optional[int],
) -> int:
    raw = (
        W_SKILL      * skill_component(crew_skills or [], effective_skills or [])
        + W_RISK       * risk_component(crew_risk_levels, effective_risk_level, journey_risk_levels)
        + W_EXPERIENCE * experience_component(crew_experience, effective_min_experience)
    )
    return int(min(100, max(0, round(raw * 100))))


def matching_and_missing_skills(crew_skills: Iterable[Any], effective_skills: Iterable[Any]):
    owned = set(normalize_skill_names(crew_skills))
    required = normalize_skill_names(effective_skills)
    return (
        [s for s in required if s in owned],
        [s for s in required if s not in owned],
    )


# ── Vue détaillée (page propriétaire) ────────────────────────────────────────

@dataclass
class MatchBreakdown:
    match_percentage:       int
    experience_level_matches: Optional[bool]
    effective:              EffectiveAttributes
    matching_skills:        List[str] = field(default_factory=list)
    missing_skills:         List[str] = field(default_factory=list)


def breakdown(crew_profile, journey, leg) -> MatchBreakdown:
    effective = effective_attributes(journey, leg)
    crew_skills = getattr(crew_profile, "skills", None) or []
    crew_risks = getattr(crew_profile, "risk_level", None)
    crew_xp = getattr(crew_profile, "sailing_experience", None)

    matching, missing = matching_and_missing_skills(crew_skills, effective.skills)
    return MatchBreakdown(
        match_percentage=compute_match(
            crew_skills, effective.skills,
            crew_risks, effective.leg_risk_level, effective.journey_risk_levels,
            crew_xp, effective.min_experience_level,
        ),
        experience_level_matches=experience_matches(crew_xp, effective.min_experience_level),
        effective=effective,
        matching_skills=matching,
        missing_skills=missing,
    )
