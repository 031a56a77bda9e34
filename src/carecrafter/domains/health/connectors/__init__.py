"""Entry stores: persistence boundary for scored daily entries."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from carecrafter.domains.health.domain_logic.tracker_models import HealthEntry


@runtime_checkable
class EntryStore(Protocol):
    """Abstract interface for loading and saving daily health entries.

    The analytics core never touches storage directly; callers load the
    whole collection through this interface and hand it over. Any backend
    must keep at most one entry per date key.
    """

    def load_entries(self) -> dict[str, HealthEntry]:
        """Every stored entry keyed by ``YYYY-MM-DD``."""
        ...

    def save_entry(self, entry: HealthEntry) -> None:
        """Insert or overwrite the entry for ``entry.date``."""
        ...

    def get_entry(self, entry_date: str) -> HealthEntry | None:
        """The entry for one day, if any."""
        ...

    def list_prescribed_medications(self) -> list[str]:
        """Current prescription list, in the order added."""
        ...

    def add_prescribed_medication(self, name: str) -> bool:
        """Add a medication; False if it was already present."""
        ...

    def remove_prescribed_medication(self, name: str) -> bool:
        """Remove a medication; False if it was not present."""
        ...
