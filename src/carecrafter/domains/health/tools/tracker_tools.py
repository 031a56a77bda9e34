"""MCP tools for the daily health tracker.

Logging a day, previewing its score, managing the prescription list,
and period analytics and reports. Every call is audit-logged when an
audit logger is available; health values never reach the audit trail.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from carecrafter.domains.health.domain_logic.date_ranges import InvalidDateError, resolve_range
from carecrafter.domains.health.domain_logic.report_generator import (
    HealthReport,
    format_report_text,
    report_filename,
)
from carecrafter.domains.health.domain_logic.tracker_models import (
    DailyMetrics,
    HealthEntry,
    MetricsValidationError,
)

if TYPE_CHECKING:
    from carecrafter.core.audit.logger import AuditLogger
    from carecrafter.domains.health.domain_logic.tracker import HealthTracker

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("json", "text")


def build_metrics(
    *,
    sleep_hours: float,
    exercise_minutes: float,
    exercise_type: str,
    steps: int,
    water_glasses: float,
    breakfast: bool,
    lunch: bool,
    dinner: bool,
    medications_taken: list[str] | None,
    mood: str,
    notes: str,
) -> DailyMetrics:
    """Flat tool arguments to DailyMetrics (validated, not yet clamped)."""
    return DailyMetrics.from_dict({
        "sleep_hours": sleep_hours,
        "exercise": {"minutes": exercise_minutes, "type": exercise_type},
        "steps": steps,
        "water_glasses": water_glasses,
        "meals": {"breakfast": breakfast, "lunch": lunch, "dinner": dinner},
        "medications": {"taken": medications_taken or []},
        "mood": mood or None,
        "notes": notes,
    })


def entry_summary(entry: HealthEntry) -> dict[str, Any]:
    return {
        "date": entry.date,
        "total_score": entry.score.total_score,
        "rating": entry.score.rating,
        "color": entry.score.color,
        "breakdown": entry.score.breakdown.as_dict(),
    }


def report_to_dict(report: HealthReport) -> dict[str, Any]:
    data = asdict(report)
    data["generated_at"] = report.generated_at.isoformat()
    return data


def _error(message: str) -> str:
    return json.dumps({"status": "error", "message": message})


def register_tracker_tools(
    mcp: FastMCP,
    tracker: HealthTracker,
    audit_logger: AuditLogger | None = None,
    *,
    default_range_preset: str = "last_30_days",
) -> None:
    """Register daily tracking, analytics and report tools on the MCP server."""

    def _audit(
        tool_name: str,
        tool_input: dict[str, Any],
        start_time: float,
        *,
        entry_date: str | None = None,
        error: Exception | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if audit_logger is None:
            return
        audit_logger.log_tool_call(
            tool_name=tool_name,
            tool_input=tool_input,
            entry_date=entry_date,
            duration_ms=round((time.monotonic() - start_time) * 1000, 1),
            status="failure" if error is not None else "success",
            error_type=type(error).__name__ if error is not None else None,
            metadata=metadata,
        )

    # ------------------------------------------------------------------
    # Daily entries
    # ------------------------------------------------------------------

    @mcp.tool
    async def log_daily_health(
        ctx: Context,
        sleep_hours: float = 0,
        exercise_minutes: float = 0,
        exercise_type: str = "none",
        steps: int = 0,
        water_glasses: float = 0,
        breakfast: bool = False,
        lunch: bool = False,
        dinner: bool = False,
        medications_taken: list[str] | None = None,
        mood: str = "",
        notes: str = "",
        entry_date: str = "",
    ) -> str:
        """Log one day of health metrics and get its 0-100 health score.

        Saving a date that already has an entry replaces it.

        Args:
            sleep_hours: Hours slept (clamped to 0-12).
            exercise_minutes: Minutes of exercise.
            exercise_type: One of 'cardio', 'strength', 'yoga', 'sports', 'none'.
            steps: Step count.
            water_glasses: Glasses of water.
            breakfast: Whether breakfast was eaten.
            lunch: Whether lunch was eaten.
            dinner: Whether dinner was eaten.
            medications_taken: Names of prescribed medications taken today.
            mood: Optional mood: 'happy', 'neutral', 'sad', 'stressed', 'anxious'.
            notes: Optional free-text notes (stored encrypted).
            entry_date: Day to log (YYYY-MM-DD). Defaults to today.
        """
        start_time = time.monotonic()
        tool_input = {"entry_date": entry_date}
        try:
            metrics = build_metrics(
                sleep_hours=sleep_hours,
                exercise_minutes=exercise_minutes,
                exercise_type=exercise_type,
                steps=steps,
                water_glasses=water_glasses,
                breakfast=breakfast,
                lunch=lunch,
                dinner=dinner,
                medications_taken=medications_taken,
                mood=mood,
                notes=notes,
            )
            entry = tracker.save_entry(metrics, entry_date or None)
        except (MetricsValidationError, InvalidDateError) as exc:
            _audit("log_daily_health", tool_input, start_time, error=exc)
            return _error(str(exc))

        _audit("log_daily_health", tool_input, start_time, entry_date=entry.date)
        return json.dumps({"status": "saved", **entry_summary(entry)})

    @mcp.tool
    async def preview_health_score(
        ctx: Context,
        sleep_hours: float = 0,
        exercise_minutes: float = 0,
        exercise_type: str = "none",
        steps: int = 0,
        water_glasses: float = 0,
        breakfast: bool = False,
        lunch: bool = False,
        dinner: bool = False,
        medications_taken: list[str] | None = None,
    ) -> str:
        """Compute the health score for a set of metrics without saving anything.

        Args:
            sleep_hours: Hours slept.
            exercise_minutes: Minutes of exercise.
            exercise_type: One of 'cardio', 'strength', 'yoga', 'sports', 'none'.
            steps: Step count.
            water_glasses: Glasses of water.
            breakfast: Whether breakfast was eaten.
            lunch: Whether lunch was eaten.
            dinner: Whether dinner was eaten.
            medications_taken: Names of prescribed medications taken.
        """
        try:
            metrics = build_metrics(
                sleep_hours=sleep_hours,
                exercise_minutes=exercise_minutes,
                exercise_type=exercise_type,
                steps=steps,
                water_glasses=water_glasses,
                breakfast=breakfast,
                lunch=lunch,
                dinner=dinner,
                medications_taken=medications_taken,
                mood="",
                notes="",
            )
        except MetricsValidationError as exc:
            return _error(str(exc))

        score = tracker.preview_score(metrics)
        return json.dumps({
            "status": "ok",
            "total_score": score.total_score,
            "rating": score.rating,
            "color": score.color,
            "breakdown": score.breakdown.as_dict(),
        })

    @mcp.tool
    async def get_health_entry(
        ctx: Context,
        entry_date: str = "",
    ) -> str:
        """Show the logged metrics and score for one day.

        Args:
            entry_date: Day to show (YYYY-MM-DD). Defaults to today.
        """
        start_time = time.monotonic()
        key = entry_date or tracker.today_key()
        try:
            entry = tracker.get_entry(key)
        except InvalidDateError as exc:
            _audit("get_health_entry", {"entry_date": entry_date}, start_time, error=exc)
            return _error(str(exc))

        _audit("get_health_entry", {"entry_date": key}, start_time, entry_date=key)
        if entry is None:
            return json.dumps({
                "status": "not_found",
                "date": key,
                "message": "No entry logged for that day.",
            })
        return json.dumps({"status": "ok", **entry.to_dict()}, indent=2)

    @mcp.tool
    async def list_health_entries(
        ctx: Context,
        start_date: str = "",
        end_date: str = "",
        range_preset: str = "",
    ) -> str:
        """List daily scores over a period, oldest first.

        Args:
            start_date: First day (YYYY-MM-DD). Needs end_date too.
            end_date: Last day (YYYY-MM-DD). Needs start_date too.
            range_preset: 'last_7_days', 'last_30_days', 'last_90_days' or 'all_time'.
        """
        start_time = time.monotonic()
        tool_input = {"start_date": start_date, "end_date": end_date, "range_preset": range_preset}
        try:
            period = resolve_range(
                start_date, end_date, range_preset or default_range_preset, tracker.today()
            )
        except InvalidDateError as exc:
            _audit("list_health_entries", tool_input, start_time, error=exc)
            return _error(str(exc))

        entries = [
            entry_summary(entry)
            for key, entry in sorted(tracker.entries().items())
            if period.start <= key <= period.end
        ]
        _audit("list_health_entries", tool_input, start_time, metadata={"count": len(entries)})
        return json.dumps({
            "status": "ok",
            "start_date": period.start,
            "end_date": period.end,
            "label": period.label,
            "count": len(entries),
            "entries": entries,
        }, indent=2)

    # ------------------------------------------------------------------
    # Prescriptions
    # ------------------------------------------------------------------

    @mcp.tool
    async def add_prescribed_medication(ctx: Context, name: str) -> str:
        """Add a medication to the prescription list used for adherence scoring.

        Args:
            name: Medication name (e.g., 'Metformin').
        """
        if not name.strip():
            return _error("Medication name must not be empty")
        added = tracker.add_prescribed_medication(name)
        return json.dumps({
            "status": "added" if added else "exists",
            "prescribed": tracker.prescribed_medications(),
        })

    @mcp.tool
    async def remove_prescribed_medication(ctx: Context, name: str) -> str:
        """Remove a medication from the prescription list.

        Args:
            name: Medication name as it was added.
        """
        removed = tracker.remove_prescribed_medication(name)
        return json.dumps({
            "status": "removed" if removed else "not_found",
            "prescribed": tracker.prescribed_medications(),
        })

    @mcp.tool
    async def list_prescribed_medications(ctx: Context) -> str:
        """List the current prescription list."""
        prescribed = tracker.prescribed_medications()
        return json.dumps({"status": "ok", "count": len(prescribed), "prescribed": prescribed})

    # ------------------------------------------------------------------
    # Analytics and reports
    # ------------------------------------------------------------------

    @mcp.tool
    async def health_analytics(
        ctx: Context,
        start_date: str = "",
        end_date: str = "",
        range_preset: str = "",
    ) -> str:
        """Analyze a period: average and best score, streak, trend,
        per-metric breakdowns, and detected patterns with recommendations.

        Args:
            start_date: First day (YYYY-MM-DD). Needs end_date too.
            end_date: Last day (YYYY-MM-DD). Needs start_date too.
            range_preset: 'last_7_days', 'last_30_days', 'last_90_days' or 'all_time'.
        """
        start_time = time.monotonic()
        tool_input = {"start_date": start_date, "end_date": end_date, "range_preset": range_preset}
        try:
            period = resolve_range(
                start_date, end_date, range_preset or default_range_preset, tracker.today()
            )
        except InvalidDateError as exc:
            _audit("health_analytics", tool_input, start_time, error=exc)
            return _error(str(exc))

        result = tracker.analytics(period.start, period.end)
        _audit(
            "health_analytics", tool_input, start_time,
            metadata={"days_with_data": len(result.daily_data)},
        )
        return json.dumps({
            "status": "ok",
            "start_date": period.start,
            "end_date": period.end,
            "label": period.label,
            "analytics": asdict(result),
        }, indent=2)

    @mcp.tool
    async def health_report(
        ctx: Context,
        start_date: str = "",
        end_date: str = "",
        range_preset: str = "",
        output_format: str = "json",
    ) -> str:
        """Generate a comprehensive health report for a period.

        Args:
            start_date: First day (YYYY-MM-DD). Needs end_date too.
            end_date: Last day (YYYY-MM-DD). Needs start_date too.
            range_preset: 'last_7_days', 'last_30_days', 'last_90_days' or 'all_time'.
            output_format: 'json' for structured data, 'text' for a
                plain-text document ready to save.
        """
        if output_format not in OUTPUT_FORMATS:
            return _error(
                f"Unknown output_format {output_format!r}. Valid: {', '.join(OUTPUT_FORMATS)}"
            )

        start_time = time.monotonic()
        tool_input = {
            "start_date": start_date,
            "end_date": end_date,
            "range_preset": range_preset,
            "output_format": output_format,
        }
        try:
            period = resolve_range(
                start_date, end_date, range_preset or default_range_preset, tracker.today()
            )
        except InvalidDateError as exc:
            _audit("health_report", tool_input, start_time, error=exc)
            return _error(str(exc))

        report = tracker.report(period.start, period.end)
        _audit(
            "health_report", tool_input, start_time,
            metadata={"days_logged": report.days_logged, "format": output_format},
        )

        if output_format == "text":
            return json.dumps({
                "status": "ok",
                "filename": report_filename(report),
                "content": format_report_text(report),
            })
        return json.dumps({"status": "ok", "report": report_to_dict(report)}, indent=2)
