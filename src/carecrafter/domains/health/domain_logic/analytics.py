"""Period analytics over scored daily entries.

Computes averages, best day, trailing streak, period-over-period trend,
per-metric breakdowns and rule-based pattern findings for an inclusive
date range.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date

from carecrafter.domains.health.domain_logic.date_ranges import (
    day_key,
    days_between,
    is_weekend,
    shift_day,
    short_label,
    weekday_index,
)
from carecrafter.domains.health.domain_logic.score_calculator import round_half_up
from carecrafter.domains.health.domain_logic.tracker_models import (
    GOOD_SCORE_THRESHOLD,
    METRIC_NAMES,
    HealthEntry,
)

logger = logging.getLogger(__name__)

# Metric targets: lower bound for "met", plus display text.
TARGETS = {
    "sleep": {"min": 7, "max": 9, "unit": "hrs/night", "target": "7-9 hours"},
    "exercise": {"min": 30, "max": 300, "unit": "min", "target": "30+ min"},
    "steps": {"min": 10000, "max": 50000, "unit": "steps", "target": "10,000"},
    "water": {"min": 8, "max": 12, "unit": "glasses", "target": "8 glasses"},
    "medication": {"min": 100, "max": 100, "unit": "%", "target": "100%"},
    "nutrition": {"min": 100, "max": 100, "unit": "%", "target": "3 meals"},
}

# Patterns need at least this many days to say anything.
MIN_PATTERN_ENTRIES = 3
WEEKEND_DROP_RATIO = 0.6

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

NO_DATE_LABEL = "N/A"


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class DatedValue:
    value: float
    date: str = ""
    label: str = NO_DATE_LABEL


@dataclass
class DailyPoint:
    date: str
    total_score: int
    sleep: int
    exercise: int
    steps: int
    water: int
    medication: int
    nutrition: int


@dataclass
class ComponentAnalysis:
    metric: str
    average: float
    target: str
    unit: str
    best: DatedValue
    worst: DatedValue
    days_met_target: int
    total_days: int
    trend: float
    insight: str
    alert: str | None = None


@dataclass
class Patterns:
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class AnalyticsResult:
    avg_score: float
    best_score: DatedValue
    streak: int
    trend: float
    daily_data: list[DailyPoint]
    component_analysis: dict[str, ComponentAnalysis]
    patterns: Patterns


# ---------------------------------------------------------------------------
# Metric extraction
# ---------------------------------------------------------------------------

def metric_value(entry: HealthEntry, metric: str) -> float:
    """Raw daily value of a metric (hours, minutes, steps, glasses or %)."""
    m = entry.metrics
    if metric == "sleep":
        return m.sleep_hours
    if metric == "exercise":
        return m.exercise.minutes
    if metric == "steps":
        return m.steps
    if metric == "water":
        return m.water_glasses
    if metric == "medication":
        return m.medications.adherence_percent()
    if metric == "nutrition":
        return m.meals.count() * 100 / 3
    raise ValueError(f"Unknown metric: {metric!r}")


def meets_target(metric: str, value: float) -> bool:
    if metric == "sleep":
        return TARGETS["sleep"]["min"] <= value <= TARGETS["sleep"]["max"]
    return value >= TARGETS[metric]["min"]


def percent_change(current: float, previous: float) -> float:
    """Relative change in percent; 0 when there is no positive baseline."""
    if previous > 0:
        return (current - previous) / previous * 100
    return 0.0


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _in_range(
    entries: Mapping[str, HealthEntry], start: str, end: str
) -> list[HealthEntry]:
    """Entries with ``start <= key <= end``, oldest first."""
    keys = sorted(k for k in entries if start <= k <= end)
    return [entries[k] for k in keys]


# ---------------------------------------------------------------------------
# Insight rules
# ---------------------------------------------------------------------------

def generate_insight(metric: str, average: float, target_fraction: float) -> tuple[str, str | None]:
    """Pick the insight (and optional alert) for a metric's period summary."""
    pct = round_half_up(target_fraction * 100)

    if metric == "sleep":
        if 7 <= average <= 9 and pct >= 80:
            return "Excellent sleep consistency! Keep up the great work.", None
        if average < 6:
            return (
                "Sleep duration is below the recommended 7-9 hours.",
                "Try setting a consistent bedtime to improve sleep quality.",
            )
        if average > 9:
            return "You might be oversleeping. Consider a more consistent schedule.", None
        return "Your sleep pattern is developing. Aim for 7-9 hours consistently.", None

    if metric == "exercise":
        if average >= 30 and pct >= 80:
            return "Outstanding exercise routine! You're meeting daily targets.", None
        if average < 15:
            return "Exercise levels are low.", "Start with 15-minute walks to build a habit."
        return "Good effort! Try to reach 30 minutes daily for optimal health.", None

    if metric == "steps":
        if average >= 10000:
            return "Excellent step count! You're highly active.", None
        if average < 5000:
            return "Step count is below recommended levels.", "Try taking short walks during breaks."
        return "Good progress! Aim for 10,000 steps daily.", None

    if metric == "water":
        if average >= 8:
            return "Great hydration habits!", None
        if average < 6:
            return "Water intake is below target.", "Set hourly reminders to drink water."
        return "Almost there! Try adding one more glass daily.", None

    if metric == "medication":
        if pct >= 95:
            return "Excellent medication adherence! Keep it up.", None
        if pct < 80:
            return (
                "Medication adherence needs improvement.",
                "Set daily alarms to remind you to take medications.",
            )
        return "Good medication tracking. Aim for 100% adherence.", None

    if metric == "nutrition":
        if pct >= 90:
            return "Consistent meal logging! Great job.", None
        if pct < 60:
            return "Meal logging is inconsistent.", "Enable meal reminders to improve tracking."
        return "Good progress on meal tracking. Try to log all 3 meals.", None

    return "Keep tracking for more insights!", None


def analyze_component(
    entries: list[HealthEntry],
    metric: str,
    previous: list[HealthEntry],
) -> ComponentAnalysis:
    """Summarize one metric over a non-empty, date-ordered list of entries."""
    target = TARGETS[metric]
    values = [(metric_value(e, metric), e.date) for e in entries]

    average = _mean([v for v, _ in values])

    best = values[0]
    worst = values[0]
    for value, key in values[1:]:
        if value > best[0]:
            best = (value, key)
        if value < worst[0]:
            worst = (value, key)

    days_met = sum(1 for v, _ in values if meets_target(metric, v))

    prev_avg = _mean([metric_value(e, metric) for e in previous]) if previous else average
    insight, alert = generate_insight(metric, average, days_met / len(values))

    return ComponentAnalysis(
        metric=metric,
        average=average,
        target=target["target"],
        unit=target["unit"],
        best=DatedValue(value=best[0], date=best[1], label=short_label(best[1])),
        worst=DatedValue(value=worst[0], date=worst[1], label=short_label(worst[1])),
        days_met_target=days_met,
        total_days=len(values),
        trend=percent_change(average, prev_avg),
        insight=insight,
        alert=alert,
    )


# ---------------------------------------------------------------------------
# Pattern rules
# ---------------------------------------------------------------------------

def _weekend_drop(
    weekday: list[HealthEntry],
    weekend: list[HealthEntry],
    value: Callable[[HealthEntry], float],
) -> tuple[float, float] | None:
    """Weekday/weekend means when the weekend falls below the drop ratio."""
    weekday_avg = _mean([value(e) for e in weekday])
    weekend_avg = _mean([value(e) for e in weekend])
    if weekday_avg > 0 and weekend_avg < weekday_avg * WEEKEND_DROP_RATIO:
        return weekday_avg, weekend_avg
    return None


def detect_patterns(entries: list[HealthEntry]) -> Patterns:
    """Run the fixed rule sequence over date-ordered entries."""
    patterns = Patterns()
    if len(entries) < MIN_PATTERN_ENTRIES:
        return patterns

    # Weekday vs weekend activity
    weekday = [e for e in entries if not is_weekend(e.date)]
    weekend = [e for e in entries if is_weekend(e.date)]
    if weekday and weekend:
        drop = _weekend_drop(weekday, weekend, lambda e: e.metrics.exercise.minutes)
        if drop is not None:
            weekday_avg, weekend_avg = drop
            drop_percent = round_half_up((1 - weekend_avg / weekday_avg) * 100)
            patterns.improvements.append(f"Weekend activity {drop_percent}% lower than weekdays")
            patterns.recommendations.append("Set weekend morning workout reminders")

        if _weekend_drop(weekday, weekend, lambda e: e.metrics.steps) is not None:
            patterns.improvements.append("Weekend steps significantly lower than weekdays")
            patterns.recommendations.append("Plan weekend outdoor activities")

    # Medication adherence
    adherence = _mean([e.metrics.medications.adherence_percent() for e in entries])
    if adherence >= 95:
        patterns.strengths.append(f"Excellent medication adherence ({round_half_up(adherence)}%)")
    elif adherence < 80:
        patterns.improvements.append(f"Medication adherence at {round_half_up(adherence)}%")
        patterns.recommendations.append("Set daily medication reminders")

    # Sleep consistency
    good_sleep_days = sum(1 for e in entries if meets_target("sleep", e.metrics.sleep_hours))
    sleep_consistency = good_sleep_days * 100 / len(entries)
    if sleep_consistency >= 80:
        patterns.strengths.append(
            f"Consistent sleep pattern ({round_half_up(sleep_consistency)}% optimal)"
        )

    # Water intake by day of week, first low day only
    for day in range(7):
        day_entries = [e for e in entries if weekday_index(e.date) == day]
        if not day_entries:
            continue
        avg_water = _mean([e.metrics.water_glasses for e in day_entries])
        if avg_water < 6:
            name = DAY_NAMES[day]
            patterns.improvements.append(
                f"{name} water intake below target ({avg_water:.1f} glasses)"
            )
            patterns.recommendations.append(f"Prepare water bottle the night before {name}")
            break

    # Overall score level
    if _mean([e.score.total_score for e in entries]) >= 80:
        patterns.strengths.append("Consistently high health scores")

    # Exercise variety
    exercise_types = {
        e.metrics.exercise.type
        for e in entries
        if e.metrics.exercise.minutes > 0 and e.metrics.exercise.type != "none"
    }
    if len(exercise_types) >= 3:
        patterns.strengths.append("Diverse exercise routine with multiple activity types")

    return patterns


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def trailing_streak(entries: list[HealthEntry]) -> int:
    """Count entries from the newest backwards while the score stays good."""
    streak = 0
    for entry in reversed(entries):
        if entry.score.total_score >= GOOD_SCORE_THRESHOLD:
            streak += 1
        else:
            break
    return streak


def empty_component(metric: str) -> ComponentAnalysis:
    target = TARGETS[metric]
    return ComponentAnalysis(
        metric=metric,
        average=0.0,
        target=target["target"],
        unit=target["unit"],
        best=DatedValue(value=0),
        worst=DatedValue(value=0),
        days_met_target=0,
        total_days=0,
        trend=0.0,
        insight="Start tracking to see insights!",
    )


def empty_analytics() -> AnalyticsResult:
    return AnalyticsResult(
        avg_score=0.0,
        best_score=DatedValue(value=0),
        streak=0,
        trend=0.0,
        daily_data=[],
        component_analysis={m: empty_component(m) for m in METRIC_NAMES},
        patterns=Patterns(),
    )


def compute_analytics(
    entries: Mapping[str, HealthEntry],
    start_date: date | str,
    end_date: date | str,
) -> AnalyticsResult:
    """Analyze all entries between ``start_date`` and ``end_date`` inclusive.

    Args:
        entries: Scored entries keyed by ``YYYY-MM-DD``. Read only.
        start_date: First day of the period.
        end_date: Last day of the period.

    Returns:
        The period analytics. An empty period yields zeros and empty
        lists rather than raising.
    """
    start = day_key(start_date)
    end = day_key(end_date)

    current = _in_range(entries, start, end)
    if not current:
        return empty_analytics()

    scores = [e.score.total_score for e in current]
    avg_score = _mean(scores)

    best = current[0]
    for entry in current[1:]:
        if entry.score.total_score > best.score.total_score:
            best = entry

    # Same-length window immediately before the period
    period_length = days_between(start, end) + 1
    previous = _in_range(entries, shift_day(start, -period_length), shift_day(start, -1))
    prev_avg = _mean([e.score.total_score for e in previous]) if previous else avg_score

    daily_data = [
        DailyPoint(date=e.date, total_score=e.score.total_score, **e.score.breakdown.as_dict())
        for e in current
    ]

    logger.debug(
        "Analytics %s..%s: %d entries, %d in previous window",
        start, end, len(current), len(previous),
    )

    return AnalyticsResult(
        avg_score=avg_score,
        best_score=DatedValue(
            value=best.score.total_score, date=best.date, label=short_label(best.date)
        ),
        streak=trailing_streak(current),
        trend=percent_change(avg_score, prev_avg),
        daily_data=daily_data,
        component_analysis={
            m: analyze_component(current, m, previous) for m in METRIC_NAMES
        },
        patterns=detect_patterns(current),
    )
