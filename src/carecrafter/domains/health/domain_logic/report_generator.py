"""Health report generation and plain-text export.

``generate_report`` wraps period analytics with logging coverage, streak
history, formatted per-metric summaries and achievements.
``format_report_text`` renders a report as a downloadable text document
without computing anything new.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime

from carecrafter.domains.health.domain_logic.analytics import (
    AnalyticsResult,
    ComponentAnalysis,
    compute_analytics,
)
from carecrafter.domains.health.domain_logic.date_ranges import (
    day_key,
    days_between,
    parse_day_key,
)
from carecrafter.domains.health.domain_logic.score_calculator import round_half_up
from carecrafter.domains.health.domain_logic.tracker_models import (
    GOOD_SCORE_THRESHOLD,
    SCORE_WEIGHTS,
    HealthEntry,
)

logger = logging.getLogger(__name__)

STEPS_CLUB_MIN_DAYS = 18
MEDICATION_ACHIEVEMENT_SHARE = 0.95


@dataclass
class ComponentReport:
    score: int
    average: str
    target: str
    best: str
    worst: str
    trend: float
    recommendation: str


@dataclass
class HealthReport:
    generated_at: datetime
    start_date: str
    end_date: str
    total_days: int
    days_logged: int
    current_score: float
    avg_score: float
    trend: float
    streak: int
    best_streak: int
    components: dict[str, ComponentReport]
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    achievements: list[str] = field(default_factory=list)
    next_milestone: str = ""


# ---------------------------------------------------------------------------
# Streaks and achievements
# ---------------------------------------------------------------------------

def best_streak(entries: Mapping[str, HealthEntry]) -> int:
    """Longest run of good-score entries across the whole history."""
    longest = 0
    run = 0
    for key in sorted(entries):
        if entries[key].score.total_score >= GOOD_SCORE_THRESHOLD:
            run += 1
            longest = max(longest, run)
        else:
            run = 0
    return longest


def unlocked_achievements(analytics: AnalyticsResult) -> list[str]:
    achievements: list[str] = []
    if analytics.streak >= 7:
        achievements.append("7-Day Streak Champion")
    if analytics.streak >= 14:
        achievements.append("14-Day Streak Warrior")
    if analytics.avg_score >= 80:
        achievements.append("Health Excellence Badge")

    medication = analytics.component_analysis["medication"]
    if (
        medication.total_days > 0
        and medication.days_met_target >= medication.total_days * MEDICATION_ACHIEVEMENT_SHARE
    ):
        achievements.append("95%+ Medication Adherence")

    if analytics.component_analysis["steps"].days_met_target >= STEPS_CLUB_MIN_DAYS:
        achievements.append("10,000 Steps Club (18+ days)")
    return achievements


def next_milestone(streak: int) -> str:
    if streak >= 30:
        return "60-Day Streak - You're on fire!"
    if streak < 7:
        return f"7-Day Streak - Only {7 - streak} days to go!"
    if streak < 14:
        return f"14-Day Streak - Only {14 - streak} days to go!"
    return "30-Day Streak - Keep going!"


# ---------------------------------------------------------------------------
# Component summaries
# ---------------------------------------------------------------------------

def _rescaled(average: float, full_at: float, weight: int) -> int:
    return round_half_up(min(average, full_at) / full_at * weight)


def _with_label(text: str, label: str) -> str:
    return f"{text} ({label})"


def component_reports(analytics: AnalyticsResult) -> dict[str, ComponentReport]:
    ca: dict[str, ComponentAnalysis] = analytics.component_analysis

    def build(metric: str, score: int, average: str, target: str, fmt) -> ComponentReport:
        c = ca[metric]
        return ComponentReport(
            score=score,
            average=average,
            target=target,
            best=_with_label(fmt(c.best.value), c.best.label),
            worst=_with_label(fmt(c.worst.value), c.worst.label),
            trend=c.trend,
            recommendation=c.insight,
        )

    sleep = ca["sleep"].average
    exercise = ca["exercise"].average
    steps = ca["steps"].average
    water = ca["water"].average
    medication = ca["medication"].average
    nutrition = ca["nutrition"].average

    return {
        "sleep": build(
            "sleep",
            _rescaled(sleep, 8, SCORE_WEIGHTS["sleep"]),
            f"{sleep:.1f} hours/night",
            "7-9 hrs",
            lambda v: f"{v:.1f} hrs",
        ),
        "exercise": build(
            "exercise",
            _rescaled(exercise, 30, SCORE_WEIGHTS["exercise"]),
            f"{exercise:.0f} min/day",
            "30+ min",
            lambda v: f"{v:.0f} min",
        ),
        "steps": build(
            "steps",
            _rescaled(steps, 10000, SCORE_WEIGHTS["steps"]),
            f"{round_half_up(steps):,} steps/day",
            "10,000",
            lambda v: f"{round_half_up(v):,}",
        ),
        "water": build(
            "water",
            _rescaled(water, 8, SCORE_WEIGHTS["water"]),
            f"{water:.1f} glasses/day",
            "8 glasses",
            lambda v: f"{v:.0f}",
        ),
        "medication": build(
            "medication",
            _rescaled(medication, 100, SCORE_WEIGHTS["medication"]),
            f"{medication:.0f}% adherence",
            "100%",
            lambda v: f"{v:.0f}%",
        ),
        "nutrition": build(
            "nutrition",
            _rescaled(nutrition, 100, SCORE_WEIGHTS["nutrition"]),
            f"{nutrition:.0f}% meals logged",
            "3 meals",
            lambda v: f"{v:.0f}%",
        ),
    }


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

def generate_report(
    entries: Mapping[str, HealthEntry],
    start_date: date | str,
    end_date: date | str,
    *,
    today: date | None = None,
    generated_at: datetime | None = None,
) -> HealthReport:
    """Build the full health report for an inclusive period.

    Args:
        entries: Every stored entry keyed by ``YYYY-MM-DD``. The whole
            history is needed for ``best_streak``.
        start_date: First day of the period.
        end_date: Last day of the period.
        today: Day whose score is reported as current. Defaults to the
            local calendar day.
        generated_at: Report timestamp. Defaults to now.
    """
    start = day_key(start_date)
    end = day_key(end_date)
    today_key = day_key(today or date.today())

    analytics = compute_analytics(entries, start, end)

    today_entry = entries.get(today_key)
    current_score = (
        float(today_entry.score.total_score) if today_entry is not None else analytics.avg_score
    )

    days_logged = sum(1 for k in entries if start <= k <= end)

    report = HealthReport(
        generated_at=generated_at or datetime.now(),
        start_date=start,
        end_date=end,
        total_days=days_between(start, end) + 1,
        days_logged=days_logged,
        current_score=current_score,
        avg_score=analytics.avg_score,
        trend=analytics.trend,
        streak=analytics.streak,
        best_streak=best_streak(entries),
        components=component_reports(analytics),
        strengths=list(analytics.patterns.strengths),
        improvements=list(analytics.patterns.improvements),
        recommendations=list(analytics.patterns.recommendations),
        achievements=unlocked_achievements(analytics),
        next_milestone=next_milestone(analytics.streak),
    )
    logger.info(
        "Generated report %s..%s (%d/%d days logged)",
        start, end, days_logged, report.total_days,
    )
    return report


# ---------------------------------------------------------------------------
# Plain-text export
# ---------------------------------------------------------------------------

def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def long_date(value: date) -> str:
    """e.g. ``October 19th, 2026``."""
    return f"{value:%B} {_ordinal(value.day)}, {value.year}"


def short_time(value: datetime) -> str:
    """e.g. ``3:05 PM``."""
    hour = value.hour % 12 or 12
    return f"{hour}:{value:%M} {'AM' if value.hour < 12 else 'PM'}"


def _score_text(value: float) -> str:
    rounded = round_half_up(value * 10) / 10
    return f"{rounded:.0f}" if rounded == int(rounded) else f"{rounded:.1f}"


def report_filename(report: HealthReport) -> str:
    return f"health-report-{report.generated_at:%Y-%m-%d}.txt"


def format_report_text(report: HealthReport) -> str:
    """Render the report as labeled plain-text sections."""
    start = parse_day_key(report.start_date)
    end = parse_day_key(report.end_date)
    trend_sign = "+" if report.trend > 0 else ""

    lines = [
        "COMPREHENSIVE HEALTH REPORT",
        f"Generated: {long_date(report.generated_at.date())} at {short_time(report.generated_at)}",
        f"Period: {long_date(start)} - {long_date(end)}",
        f"Total Days: {report.total_days}",
        "",
        "EXECUTIVE SUMMARY",
        f"Current Score: {_score_text(report.current_score)}/100",
        f"Average Score: {_score_text(report.avg_score)}/100",
        f"Trend: {trend_sign}{report.trend:.1f}%",
        f"Current Streak: {report.streak} days",
        f"Days Logged: {report.days_logged}/{report.total_days}",
        "",
        "STRENGTHS",
        *[f"• {s}" for s in report.strengths],
        "",
        "AREAS FOR IMPROVEMENT",
        *[f"• {i}" for i in report.improvements],
        "",
        "RECOMMENDATIONS",
        *[f"{n}. {r}" for n, r in enumerate(report.recommendations, start=1)],
    ]
    return "\n".join(lines) + "\n"
