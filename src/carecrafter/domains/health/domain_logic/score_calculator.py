"""Daily health score: six piecewise component curves summed to 0-100.

Every component is rounded half-up before summing, so the total is always
an integer and always equals the sum of its parts.
"""

from __future__ import annotations

import math

from carecrafter.domains.health.domain_logic.tracker_models import (
    SCORE_WEIGHTS,
    DailyMetrics,
    HealthScore,
    Meals,
    Medications,
    ScoreBreakdown,
)

# Rating tiers, checked top-down against the total score.
RATING_TIERS = [
    (85, "Excellent"),
    (70, "Good"),
    (50, "Fair"),
    (0, "Needs Improvement"),
]

RATING_COLORS = {
    "Excellent": "hsl(142, 76%, 36%)",
    "Good": "hsl(199, 89%, 48%)",
    "Fair": "hsl(45, 93%, 47%)",
    "Needs Improvement": "hsl(0, 84%, 60%)",
}
_UNKNOWN_COLOR = "hsl(215, 20%, 65%)"

# Exercise type multipliers: sports earn a small bonus, yoga a small discount.
EXERCISE_TYPE_FACTORS = {
    "cardio": 1.0,
    "strength": 1.0,
    "yoga": 0.95,
    "sports": 1.05,
    "none": 0.0,
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero.

    Python's built-in ``round`` uses banker's rounding (``round(10.5) == 10``),
    which would shift component scores at exact .5 boundaries.
    """
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def sleep_score(hours: float) -> int:
    weight = SCORE_WEIGHTS["sleep"]
    if 7 <= hours <= 9:
        return weight
    if 6 <= hours < 7:
        return round_half_up(weight * 0.8)
    if 9 < hours <= 10:
        return round_half_up(weight * 0.85)
    if 5 <= hours < 6:
        return round_half_up(weight * 0.6)
    if hours > 10:
        return round_half_up(weight * 0.7)
    if 4 <= hours < 5:
        return round_half_up(weight * 0.4)
    return round_half_up(weight * (hours / 7) * 0.5)


def exercise_score(minutes: float, exercise_type: str) -> int:
    weight = SCORE_WEIGHTS["exercise"]
    if exercise_type == "none" or minutes == 0:
        return 0

    if minutes >= 30:
        base = weight
    elif minutes >= 20:
        base = round_half_up(weight * 0.8)
    elif minutes >= 15:
        base = round_half_up(weight * 0.6)
    elif minutes >= 10:
        base = round_half_up(weight * 0.4)
    else:
        base = round_half_up(weight * (minutes / 30))

    factor = EXERCISE_TYPE_FACTORS.get(exercise_type, 1.0)
    return min(weight, round_half_up(base * factor))


def steps_score(steps: int) -> int:
    weight = SCORE_WEIGHTS["steps"]
    if steps >= 10000:
        return weight
    if steps >= 7500:
        return round_half_up(weight * 0.85)
    if steps >= 5000:
        return round_half_up(weight * 0.7)
    if steps >= 2500:
        return round_half_up(weight * 0.5)
    return round_half_up(weight * (steps / 10000))


def water_score(glasses: float) -> int:
    weight = SCORE_WEIGHTS["water"]
    if glasses >= 8:
        return weight
    if glasses >= 6:
        return round_half_up(weight * 0.8)
    if glasses >= 4:
        return round_half_up(weight * 0.6)
    return round_half_up(weight * (glasses / 8))


def medication_score(medications: Medications) -> int:
    return round_half_up(SCORE_WEIGHTS["medication"] * medications.adherence_percent() / 100)


def nutrition_score(meals: Meals) -> int:
    return round_half_up(SCORE_WEIGHTS["nutrition"] * meals.count() / 3)


def get_rating(total_score: int) -> str:
    for floor, rating in RATING_TIERS:
        if total_score >= floor:
            return rating
    return "Needs Improvement"


def get_color(rating: str) -> str:
    return RATING_COLORS.get(rating, _UNKNOWN_COLOR)


def compute_score(metrics: DailyMetrics) -> HealthScore:
    """Score one day of metrics.

    Pure and total: inputs are expected to be clamped by the caller
    (see ``HealthTracker``), and no input raises.
    """
    breakdown = ScoreBreakdown(
        sleep=sleep_score(metrics.sleep_hours),
        exercise=exercise_score(metrics.exercise.minutes, metrics.exercise.type),
        steps=steps_score(metrics.steps),
        water=water_score(metrics.water_glasses),
        medication=medication_score(metrics.medications),
        nutrition=nutrition_score(metrics.meals),
    )
    total = breakdown.total()
    rating = get_rating(total)
    return HealthScore(
        total_score=total,
        breakdown=breakdown,
        rating=rating,
        color=get_color(rating),
    )
