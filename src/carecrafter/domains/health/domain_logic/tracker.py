"""Health tracker: the boundary between raw daily input and the scoring core.

Clamps incoming metrics, attaches the stored prescription list, scores the
day and upserts it by date. Analytics and reports load the full collection
from the injected store on every call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import date, datetime

from carecrafter.domains.health.connectors import EntryStore
from carecrafter.domains.health.domain_logic.analytics import AnalyticsResult, compute_analytics
from carecrafter.domains.health.domain_logic.date_ranges import day_key
from carecrafter.domains.health.domain_logic.report_generator import (
    HealthReport,
    format_report_text,
    generate_report,
)
from carecrafter.domains.health.domain_logic.score_calculator import compute_score
from carecrafter.domains.health.domain_logic.tracker_models import (
    MAX_SLEEP_HOURS,
    DailyMetrics,
    Exercise,
    HealthEntry,
    HealthScore,
    Medications,
)

logger = logging.getLogger(__name__)


def clamp_metrics(metrics: DailyMetrics, prescribed: list[str]) -> DailyMetrics:
    """Bring raw metrics into the ranges the score curves expect.

    Sleep is limited to 0-12 hours, quantities can't go negative, and only
    medications on the prescription list count as taken.
    """
    taken = []
    for name in metrics.medications.taken:
        if name in prescribed and name not in taken:
            taken.append(name)

    return replace(
        metrics,
        sleep_hours=min(max(metrics.sleep_hours, 0.0), MAX_SLEEP_HOURS),
        exercise=Exercise(
            minutes=max(metrics.exercise.minutes, 0),
            type=metrics.exercise.type,
        ),
        steps=max(metrics.steps, 0),
        water_glasses=max(metrics.water_glasses, 0),
        medications=Medications(taken=taken, prescribed=list(prescribed)),
    )


class HealthTracker:
    """Records scored days and answers period queries.

    Usage::

        tracker = HealthTracker(InMemoryEntryStore())
        tracker.add_prescribed_medication("Metformin")
        entry = tracker.save_entry(metrics)
        analytics = tracker.analytics("2026-02-01", "2026-02-28")
    """

    def __init__(
        self,
        store: EntryStore,
        *,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._today = today
        self._now = now

    @property
    def store(self) -> EntryStore:
        return self._store

    def today(self) -> date:
        return self._today()

    def today_key(self) -> str:
        return self._today().isoformat()

    # ------------------------------------------------------------------
    # Daily entries
    # ------------------------------------------------------------------

    def prepare(self, metrics: DailyMetrics) -> DailyMetrics:
        return clamp_metrics(metrics, self._store.list_prescribed_medications())

    def preview_score(self, metrics: DailyMetrics) -> HealthScore:
        """Score metrics as they would be saved, without saving."""
        return compute_score(self.prepare(metrics))

    def save_entry(self, metrics: DailyMetrics, entry_date: date | str | None = None) -> HealthEntry:
        """Score and store a day, replacing any entry already on that date."""
        key = day_key(entry_date) if entry_date else self.today_key()
        prepared = self.prepare(metrics)
        entry = HealthEntry(date=key, metrics=prepared, score=compute_score(prepared))
        self._store.save_entry(entry)
        logger.info("Saved health entry %s (score=%d)", key, entry.score.total_score)
        return entry

    def get_entry(self, entry_date: date | str) -> HealthEntry | None:
        return self._store.get_entry(day_key(entry_date))

    def entries(self) -> dict[str, HealthEntry]:
        return self._store.load_entries()

    # ------------------------------------------------------------------
    # Prescriptions
    # ------------------------------------------------------------------

    def prescribed_medications(self) -> list[str]:
        return self._store.list_prescribed_medications()

    def add_prescribed_medication(self, name: str) -> bool:
        name = name.strip()
        if not name:
            return False
        added = self._store.add_prescribed_medication(name)
        if added:
            logger.info("Added prescribed medication")
        return added

    def remove_prescribed_medication(self, name: str) -> bool:
        return self._store.remove_prescribed_medication(name.strip())

    # ------------------------------------------------------------------
    # Period queries
    # ------------------------------------------------------------------

    def analytics(self, start: date | str, end: date | str) -> AnalyticsResult:
        return compute_analytics(self._store.load_entries(), start, end)

    def report(self, start: date | str, end: date | str) -> HealthReport:
        return generate_report(
            self._store.load_entries(),
            start,
            end,
            today=self._today(),
            generated_at=self._now(),
        )

    def export_report(self, start: date | str, end: date | str) -> str:
        return format_report_text(self.report(start, end))
