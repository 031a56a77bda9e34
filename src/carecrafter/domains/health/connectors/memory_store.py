"""In-memory entry store: non-persistent fallback and test double."""

from __future__ import annotations

import copy
import logging

from carecrafter.domains.health.domain_logic.tracker_models import HealthEntry

logger = logging.getLogger(__name__)


class InMemoryEntryStore:
    """EntryStore held in process memory.

    Used when no encryption key is configured (nothing is written to disk)
    and by tests that don't need SQLite. Returns copies so callers can't
    mutate stored entries in place.
    """

    def __init__(self, entries: dict[str, HealthEntry] | None = None) -> None:
        self._entries: dict[str, HealthEntry] = dict(entries or {})
        self._prescribed: list[str] = []

    def load_entries(self) -> dict[str, HealthEntry]:
        return copy.deepcopy(self._entries)

    def save_entry(self, entry: HealthEntry) -> None:
        replaced = entry.date in self._entries
        self._entries[entry.date] = copy.deepcopy(entry)
        logger.debug("%s in-memory entry %s", "Replaced" if replaced else "Stored", entry.date)

    def get_entry(self, entry_date: str) -> HealthEntry | None:
        entry = self._entries.get(entry_date)
        return copy.deepcopy(entry) if entry is not None else None

    def list_prescribed_medications(self) -> list[str]:
        return list(self._prescribed)

    def add_prescribed_medication(self, name: str) -> bool:
        if name in self._prescribed:
            return False
        self._prescribed.append(name)
        return True

    def remove_prescribed_medication(self, name: str) -> bool:
        if name not in self._prescribed:
            return False
        self._prescribed.remove(name)
        return True
