"""Daily health tracking models and domain constants."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

METRIC_NAMES = ["sleep", "exercise", "steps", "water", "medication", "nutrition"]

# Points available per component; the six weights sum to 100.
SCORE_WEIGHTS = {
    "sleep": 25,
    "exercise": 20,
    "steps": 15,
    "water": 10,
    "medication": 20,
    "nutrition": 10,
}

EXERCISE_TYPES = ("cardio", "strength", "yoga", "sports", "none")
MOODS = ("happy", "neutral", "sad", "stressed", "anxious")

# A day at or above this total counts toward a streak.
GOOD_SCORE_THRESHOLD = 70

MAX_SLEEP_HOURS = 12.0


class MetricsValidationError(ValueError):
    """Raised when raw daily metrics cannot be turned into DailyMetrics."""


# ---------------------------------------------------------------------------
# Input types
# ---------------------------------------------------------------------------

@dataclass
class Exercise:
    minutes: float = 0
    type: str = "none"


@dataclass
class Meals:
    breakfast: bool = False
    lunch: bool = False
    dinner: bool = False

    def count(self) -> int:
        """Number of meals logged (0-3)."""
        return sum(1 for logged in (self.breakfast, self.lunch, self.dinner) if logged)


@dataclass
class Medications:
    taken: list[str] = field(default_factory=list)
    prescribed: list[str] = field(default_factory=list)

    def adherence_percent(self) -> float:
        """Share of prescribed medications taken, 0-100.

        Nothing prescribed means nothing to miss, so adherence is 100.
        """
        if not self.prescribed:
            return 100.0
        taken = min(len(self.taken), len(self.prescribed))
        return taken * 100 / len(self.prescribed)


@dataclass
class DailyMetrics:
    """One calendar day of self-reported metrics."""

    sleep_hours: float = 0
    exercise: Exercise = field(default_factory=Exercise)
    steps: int = 0
    water_glasses: float = 0
    meals: Meals = field(default_factory=Meals)
    medications: Medications = field(default_factory=Medications)
    mood: str | None = None
    notes: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DailyMetrics:
        """Build metrics from a plain dict (stored JSON or tool input).

        Raises:
            MetricsValidationError: On an unknown exercise type or mood,
                or a non-numeric quantity.
        """
        exercise_data = data.get("exercise") or {}
        meals_data = data.get("meals") or {}
        meds_data = data.get("medications") or {}

        exercise_type = exercise_data.get("type", "none") or "none"
        if exercise_type not in EXERCISE_TYPES:
            raise MetricsValidationError(
                f"Unknown exercise type: {exercise_type!r}. Valid: {', '.join(EXERCISE_TYPES)}"
            )

        mood = data.get("mood") or None
        if mood is not None and mood not in MOODS:
            raise MetricsValidationError(
                f"Unknown mood: {mood!r}. Valid: {', '.join(MOODS)}"
            )

        try:
            return cls(
                sleep_hours=float(data.get("sleep_hours", 0) or 0),
                exercise=Exercise(
                    minutes=float(exercise_data.get("minutes", 0) or 0),
                    type=exercise_type,
                ),
                steps=int(data.get("steps", 0) or 0),
                water_glasses=float(data.get("water_glasses", 0) or 0),
                meals=Meals(
                    breakfast=bool(meals_data.get("breakfast", False)),
                    lunch=bool(meals_data.get("lunch", False)),
                    dinner=bool(meals_data.get("dinner", False)),
                ),
                medications=Medications(
                    taken=list(meds_data.get("taken", [])),
                    prescribed=list(meds_data.get("prescribed", [])),
                ),
                mood=mood,
                notes=data.get("notes", "") or "",
            )
        except (TypeError, ValueError) as exc:
            raise MetricsValidationError(f"Invalid metric value: {exc}") from exc


# ---------------------------------------------------------------------------
# Score types
# ---------------------------------------------------------------------------

@dataclass
class ScoreBreakdown:
    """The six weighted component scores."""

    sleep: int = 0
    exercise: int = 0
    steps: int = 0
    water: int = 0
    medication: int = 0
    nutrition: int = 0

    def total(self) -> int:
        return (
            self.sleep + self.exercise + self.steps
            + self.water + self.medication + self.nutrition
        )

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class HealthScore:
    total_score: int
    breakdown: ScoreBreakdown
    rating: str
    color: str


@dataclass
class HealthEntry:
    """A scored day. ``date`` is the canonical ``YYYY-MM-DD`` key."""

    date: str
    metrics: DailyMetrics
    score: HealthScore

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "metrics": self.metrics.to_dict(),
            "score": asdict(self.score),
        }
