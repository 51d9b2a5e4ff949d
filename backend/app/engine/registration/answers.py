# engine/registration/answers.py
"""
Validation des réponses d'un marin aux questions d'un voyage.

Fonction pure, sans accès DB. Le service appelle
validate_answers() AVANT toute écriture et traduit la violation en 400.

Règles, dans cet ordre (la première violation est retournée) :
    ① Toute question is_required doit avoir une réponse
       → MissingRequiredAnswers(missing_ids)
    ② Toute réponse doit viser une question de CE voyage
       → UnknownRequirement(requirement_id)
    ③ Format de la réponse selon question_type
       → InvalidAnswerFormat(requirement_id, question_type)

Formats :
    text            : answer_text non vide
    yes_no          : answer_text ∈ {"Yes", "No"}
    multiple_choice : answer_json non null
    rating          : answer_json non null
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from app.shared.enums import QuestionType

YES_NO_VALUES: Tuple[str, ...] = ("Yes", "No")


# ── Violations ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AnswerViolation:
    code = "INVALID_ANSWERS"

    def message(self) -> str:
        return "Invalid answers"


@dataclass(frozen=True)
class MissingRequiredAnswers(AnswerViolation):
    missing_ids: Tuple[Any, ...]
    code = "MISSING_REQUIRED_ANSWERS"

    def message(self) -> str:
        ids = ", ".join(str(i) for i in self.missing_ids)
        return f"Missing answers for required questions: {ids}"


@dataclass(frozen=True)
class UnknownRequirement(AnswerViolation):
    requirement_id: Any
    code = "UNKNOWN_REQUIREMENT"

    def message(self) -> str:
        return f"Invalid requirement_id: {self.requirement_id}"


@dataclass(frozen=True)
class InvalidAnswerFormat(AnswerViolation):
    requirement_id: Any
    question_type: QuestionType
    code = "INVALID_ANSWER_FORMAT"

    def message(self) -> str:
        if self.question_type == QuestionType.YES_NO:
            return 'yes_no questions require answer_text to be "Yes" or "No"'
        field = "answer_text" if self.question_type == QuestionType.TEXT else "answer_json"
        return f"{field} is required for {self.question_type.value} questions"


# ── Règles de format par type ─────────────────────────────────────────────────

def _has_text(answer) -> bool:
    text = getattr(answer, "answer_text", None)
    return isinstance(text, str) and text.strip() != ""


def _is_yes_no(answer) -> bool:
    return _has_text(answer) and answer.answer_text in YES_NO_VALUES


def _has_json(answer) -> bool:
    return getattr(answer, "answer_json", None) is not None


FORMAT_RULES: Dict[QuestionType, Callable[[Any], bool]] = {
    QuestionType.TEXT:            _has_text,
    QuestionType.YES_NO:          _is_yes_no,
    QuestionType.MULTIPLE_CHOICE: _has_json,
    QuestionType.RATING:          _has_json,
}

# Un nouveau QuestionType sans règle casse l'import, pas la prod.
_uncovered = set(QuestionType) - set(FORMAT_RULES)
if _uncovered:
    raise RuntimeError(f"No answer format rule for question types: {sorted(t.value for t in _uncovered)}")


def answer_matches_format(question_type: QuestionType, answer) -> bool:
    return FORMAT_RULES[QuestionType(question_type)](answer)


# ── Point d'entrée ────────────────────────────────────────────────────────────

def validate_answers(requirements: Sequence, answers: Sequence) -> Optional[AnswerViolation]:
    """
    Retourne None si les réponses sont valides, sinon la première violation.

    requirements : objets avec id, is_required, question_type
    answers      : objets avec requirement_id, answer_text, answer_json
    """
    requirements_by_id = {r.id: r for r in requirements}
    answered_ids = {a.requirement_id for a in answers}

    missing = [r.id for r in requirements if r.is_required and r.id not in answered_ids]
    if missing:
        return MissingRequiredAnswers(tuple(missing))

    for answer in answers:
        if answer.requirement_id not in requirements_by_id:
            return UnknownRequirement(answer.requirement_id)

    for answer in answers:
        requirement = requirements_by_id[answer.requirement_id]
        question_type = QuestionType(requirement.question_type)
        if not answer_matches_format(question_type, answer):
            return InvalidAnswerFormat(answer.requirement_id, question_type)

    return None


def sort_requirements(requirements: Sequence) -> List:
    """Tri d'affichage stable : order puis id."""
    return sorted(requirements, key=lambda r: (r.order if r.order is not None else 0, r.id))
