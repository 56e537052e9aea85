"""Assessment scoring — turns assessment answers into a wellbeing report.

Four category scores in [0, 100] are derived from the answers and combined
into a weighted overall score:

    mental clarity     0.30   mood, physical distress, symptom count
    emotional balance  0.30   depression / anxiety, professional help, medication
    stress management  0.25   stress rating, physical distress
    sleep quality      0.15   sleep rating, insomnia

Step ids refer to the shipped ``flows/assessment.yaml``.  Answers may be
keyed by typed step id or by its string form (as persisted in JSON).
"""

from __future__ import annotations

import math
from typing import Any, Literal, Mapping

from pydantic import BaseModel, Field

# --- Assessment step ids (flows/assessment.yaml) ---
MOOD_STEP = 5
PROFESSIONAL_HELP_STEP = 6
PHYSICAL_DISTRESS_STEP = 7
SLEEP_STEP = 8
MEDICATIONS_STEP = 9
SYMPTOMS_STEP = 11
STRESS_STEP = 12

CATEGORY_WEIGHTS: dict[str, float] = {
    "mental_clarity": 0.30,
    "emotional_balance": 0.30,
    "stress_management": 0.25,
    "sleep_quality": 0.15,
}

# Mood option id → mental clarity starting score
MOOD_SCORES: dict[str, int] = {"sad": 40, "neutral": 60, "happy": 100}

# (threshold, severity, color), checked top-down
SEVERITY_BANDS: list[tuple[int, str, str]] = [
    (85, "excellent", "#8FBC8F"),
    (70, "good", "#B8976B"),
    (50, "fair", "#E8A872"),
    (0, "needs-attention", "#D97F52"),
]

MAX_RECOMMENDATIONS = 5

Severity = Literal["excellent", "good", "fair", "needs-attention"]


class CategoryScore(BaseModel):
    score: int = Field(ge=0, le=100)
    severity: Severity
    color: str


class AssessmentResult(BaseModel):
    """Scored assessment report stored with a submitted flow."""

    overall_score: int = Field(ge=0, le=100)
    severity: Severity
    categories: dict[str, CategoryScore]
    recommendations: list[str] = Field(default_factory=list)
    insights: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _round(value: float) -> int:
    """Round half up (``round`` would round half to even)."""
    return int(math.floor(value + 0.5))


def _get(answers: Mapping[Any, Any], step_id: int, default: Any = None) -> Any:
    if step_id in answers:
        return answers[step_id]
    return answers.get(str(step_id), default)


def _selection(answers: Mapping[Any, Any], step_id: int) -> list[str]:
    """Multiple-choice answer without the exclusive "none" option."""
    value = _get(answers, step_id)
    if not isinstance(value, (list, tuple)):
        return []
    return [v for v in value if v != "none"]


def _number(answers: Mapping[Any, Any], step_id: int, default: float) -> float:
    value = _get(answers, step_id)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


def _mood_id(answers: Mapping[Any, Any]) -> str | None:
    value = _get(answers, MOOD_STEP)
    if isinstance(value, Mapping):
        return value.get("id")
    return getattr(value, "id", value)


def severity_for(score: float) -> tuple[str, str]:
    """Return ``(severity, color)`` for a 0–100 score."""
    for threshold, severity, color in SEVERITY_BANDS:
        if score >= threshold:
            return severity, color
    return SEVERITY_BANDS[-1][1], SEVERITY_BANDS[-1][2]


def _category(score: float) -> CategoryScore:
    score = max(0.0, min(100.0, score))
    severity, color = severity_for(score)
    return CategoryScore(score=_round(score), severity=severity, color=color)


def _distress_penalty(answers: Mapping[Any, Any], heavy: int, light: int) -> int:
    distress = _selection(answers, PHYSICAL_DISTRESS_STEP)
    if "quite_a_lot" in distress:
        return heavy
    if "not_much" in distress:
        return light
    return 0


# ---------------------------------------------------------------------------
# Category scores
# ---------------------------------------------------------------------------

def mental_clarity(answers: Mapping[Any, Any]) -> CategoryScore:
    score = 100.0
    mood = _mood_id(answers)
    if mood:
        score = MOOD_SCORES.get(mood, 60)
    score -= _distress_penalty(answers, 20, 10)
    score -= len(_selection(answers, SYMPTOMS_STEP)) * 8
    return _category(score)


def emotional_balance(answers: Mapping[Any, Any]) -> CategoryScore:
    score = 80.0
    symptoms = _selection(answers, SYMPTOMS_STEP)
    if "depression" in symptoms:
        score -= 15
    if "anxiety" in symptoms:
        score -= 12
    if _get(answers, PROFESSIONAL_HELP_STEP) == "yes":
        score += 10
    if _get(answers, MEDICATIONS_STEP) == "yes":
        score += 5
    return _category(score)


def stress_management(answers: Mapping[Any, Any]) -> CategoryScore:
    stress = _number(answers, STRESS_STEP, 3)
    score = 75.0 - (stress - 1) * 12.5
    score -= _distress_penalty(answers, 15, 8)
    return _category(score)


def sleep_quality(answers: Mapping[Any, Any]) -> CategoryScore:
    score = 70.0
    rating = _get(answers, SLEEP_STEP)
    if isinstance(rating, (int, float)) and not isinstance(rating, bool):
        score = rating * 10
    if "insomnia" in _selection(answers, SYMPTOMS_STEP):
        score -= 20
    return _category(score)


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

def _recommendations(answers: Mapping[Any, Any], categories: dict[str, CategoryScore]) -> list[str]:
    recs: list[str] = []

    if categories["stress_management"].score < 70:
        if _number(answers, STRESS_STEP, 3) >= 4:
            recs.append(
                "Practice daily stress-reduction techniques like deep breathing "
                "or progressive muscle relaxation"
            )
        recs.append("Identify and limit exposure to major stress triggers when possible")

    if categories["sleep_quality"].score < 70:
        recs.append("Establish a consistent sleep schedule with 7-9 hours per night")
        recs.append("Create a calming bedtime routine and limit screen time before sleep")

    if (
        _get(answers, PROFESSIONAL_HELP_STEP) != "yes"
        and categories["emotional_balance"].score < 60
    ):
        recs.append("Consider seeking professional support from a therapist or counselor")

    symptoms = _selection(answers, SYMPTOMS_STEP)
    if "depression" in symptoms or "anxiety" in symptoms:
        recs.append("Engage in regular physical activity - even 15-20 minutes daily can help")
    if "panic_attacks" in symptoms:
        recs.append("Learn and practice grounding techniques for managing panic episodes")

    if categories["mental_clarity"].score < 75:
        recs.append(
            "Practice mindfulness meditation for 10-15 minutes daily to improve mental clarity"
        )

    return recs[:MAX_RECOMMENDATIONS]


def _insights(answers: Mapping[Any, Any], overall: int) -> list[str]:
    insights: list[str] = []

    if overall >= 85:
        insights.append(
            "Your mental health assessment shows excellent overall wellbeing. "
            "Continue your positive practices!"
        )
    elif overall >= 70:
        insights.append(
            "Your mental health is generally good with some areas for improvement. "
            "Small changes can make a big difference."
        )
    elif overall >= 50:
        insights.append(
            "Your assessment indicates some mental health challenges. "
            "The recommendations below can help you improve."
        )
    else:
        insights.append(
            "Your assessment shows significant mental health concerns. "
            "Professional support is strongly recommended."
        )

    symptoms = _selection(answers, SYMPTOMS_STEP)
    if len(symptoms) > 2:
        insights.append(
            f"You indicated experiencing {len(symptoms)} mental health symptoms. "
            "Addressing these with professional help may be beneficial."
        )

    if _number(answers, SLEEP_STEP, 5) <= 4:
        insights.append(
            "Your sleep quality may be affecting your mental health. "
            "Improving sleep should be a priority."
        )

    return insights


def score_assessment(answers: Mapping[Any, Any]) -> AssessmentResult:
    """Score a completed assessment.

    Missing answers fall back to neutral defaults, so partial answer sets
    still produce a report.
    """
    categories = {
        "mental_clarity": mental_clarity(answers),
        "emotional_balance": emotional_balance(answers),
        "stress_management": stress_management(answers),
        "sleep_quality": sleep_quality(answers),
    }
    overall = _round(
        sum(categories[name].score * weight for name, weight in CATEGORY_WEIGHTS.items())
    )
    severity, _ = severity_for(overall)
    return AssessmentResult(
        overall_score=overall,
        severity=severity,
        categories=categories,
        recommendations=_recommendations(answers, categories),
        insights=_insights(answers, overall),
    )
