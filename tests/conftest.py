"""Shared test fixtures for CareCrafter Health tests."""

from __future__ import annotations

import sys
from datetime import date, datetime
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("DB_PATH", str(tmp_path / "health.db"))
    monkeypatch.setenv("KNOWLEDGE_BASE_PATH", "")
    monkeypatch.setenv("DEFAULT_AGE_GROUP", "adult")
    monkeypatch.setenv("DEFAULT_RANGE_PRESET", "last_30_days")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from carecrafter.domains.health.domain_logic.score_calculator import compute_score  # noqa: E402
from carecrafter.domains.health.domain_logic.tracker_models import (  # noqa: E402
    DailyMetrics,
    Exercise,
    HealthEntry,
    Meals,
    Medications,
)

# Saturday
FIXED_TODAY = date(2026, 2, 14)
FIXED_NOW = datetime(2026, 2, 14, 15, 5)


def make_metrics(
    *,
    sleep: float = 8,
    exercise_minutes: float = 30,
    exercise_type: str = "cardio",
    steps: int = 10000,
    water: float = 8,
    meals: int = 3,
    taken: list[str] | None = None,
    prescribed: list[str] | None = None,
    mood: str | None = None,
    notes: str = "",
) -> DailyMetrics:
    """Metrics for a perfect day unless overridden. ``meals`` counts from breakfast."""
    return DailyMetrics(
        sleep_hours=sleep,
        exercise=Exercise(minutes=exercise_minutes, type=exercise_type),
        steps=steps,
        water_glasses=water,
        meals=Meals(breakfast=meals >= 1, lunch=meals >= 2, dinner=meals >= 3),
        medications=Medications(taken=list(taken or []), prescribed=list(prescribed or [])),
        mood=mood,
        notes=notes,
    )


def make_entry(entry_date: str, **overrides) -> HealthEntry:
    """A scored entry built through the real score calculator."""
    metrics = make_metrics(**overrides)
    return HealthEntry(date=entry_date, metrics=metrics, score=compute_score(metrics))


def entries_by_date(*entries: HealthEntry) -> dict[str, HealthEntry]:
    return {e.date: e for e in entries}


# ---------------------------------------------------------------------------
# Tracker fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_store():
    from carecrafter.domains.health.connectors.memory_store import InMemoryEntryStore

    return InMemoryEntryStore()


@pytest.fixture
def tracker(memory_store):
    """HealthTracker on an in-memory store with a fixed clock."""
    from carecrafter.domains.health.domain_logic.tracker import HealthTracker

    return HealthTracker(memory_store, today=lambda: FIXED_TODAY, now=lambda: FIXED_NOW)


# ---------------------------------------------------------------------------
# Knowledge base fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def disease_registry():
    """The bundled disease knowledge base, loaded fresh."""
    from carecrafter.domains.health.chatbot.knowledge import load_knowledge_base

    return load_knowledge_base()


@pytest.fixture
def matcher(disease_registry):
    from carecrafter.domains.health.chatbot.symptom_matcher import SymptomMatcher

    return SymptomMatcher(disease_registry)


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def health_db():
    """Create an in-memory HealthDatabase for testing."""
    from carecrafter.core.storage.database import HealthDatabase

    db = HealthDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def field_encryptor():
    """Create a FieldEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from carecrafter.core.storage.encryption import FieldEncryptor

    return FieldEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def health_repository(health_db, field_encryptor):
    """Create a HealthRepository backed by in-memory SQLite."""
    from carecrafter.core.storage.repository import HealthRepository

    return HealthRepository(health_db, field_encryptor)


@pytest.fixture
def audit_logger(health_db):
    """Create an AuditLogger backed by in-memory SQLite."""
    from carecrafter.core.audit.logger import AuditLogger

    return AuditLogger(health_db)
